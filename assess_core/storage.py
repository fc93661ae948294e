"""Storage port standing in for the browser's sessionStorage / localStorage.

The engine never touches ambient browser state; adapters inject one of these.
"""
from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol

BANNER_COLLAPSED_KEY = "ems-attr-banner-collapsed"


class StoragePort(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage; one instance per browser tab / client."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._data)


def is_banner_collapsed(storage: Optional[StoragePort]) -> bool:
    if storage is None:
        return False
    return storage.get_item(BANNER_COLLAPSED_KEY) == "true"


def set_banner_collapsed(storage: Optional[StoragePort], collapsed: bool) -> None:
    if storage is None:
        return
    if collapsed:
        storage.set_item(BANNER_COLLAPSED_KEY, "true")
    else:
        storage.remove_item(BANNER_COLLAPSED_KEY)

