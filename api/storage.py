"""Per-client storage ports for the API adapter.

Each client id gets its own in-memory storage, mirroring a browser tab's
sessionStorage. Nothing is written to disk: the engine keeps no state beyond
a single browsing session.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional

from assess_core.storage import MemoryStorage


_PORTS: Dict[str, MemoryStorage] = {}
_LOCK = threading.Lock()


def storage_for(client_id: Optional[str]) -> Optional[MemoryStorage]:
    """Storage port for a client, created on first use. None without a client id."""

    if not client_id:
        return None
    with _LOCK:
        port = _PORTS.get(client_id)
        if port is None:
            port = MemoryStorage()
            _PORTS[client_id] = port
        return port


def client_count() -> int:
    with _LOCK:
        return len(_PORTS)
