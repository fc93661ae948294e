"""URL-fragment transport for embed payloads.

Wire format: compact JSON ``{"title": ..., "items": [...]}`` encoded as
standard base64 over its UTF-8 bytes, i.e. the same bytes a browser produces
with ``btoa(unescape(encodeURIComponent(json)))``. Tokens produced by the
older players (``questions`` / ``cards`` keys, MCQ-maker question objects)
still decode.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Dict, List, Union
from urllib.parse import unquote

from .types import DecodeError, EmbedPayload, Item
from .validators import parse_item

log = logging.getLogger(__name__)

_ITEM_KEYS: tuple[str, ...] = ("items", "questions", "cards")


def _num(val: float) -> Union[int, float]:
    return int(val) if float(val).is_integer() else val


def _item_to_wire(item: Item) -> Dict[str, Any]:
    if item.is_card:
        out: Dict[str, Any] = {"front": item.prompt, "back": item.back or ""}
    else:
        out = {
            "prompt": item.prompt,
            "options": [
                {"label": o.label, "body": o.body, "isCorrect": bool(o.is_correct)}
                for o in item.options
            ],
        }
    if item.hint:
        out["hint"] = item.hint
    if item.difficulty:
        out["difficulty"] = item.difficulty
    if item.explanation:
        out["explanation"] = item.explanation
    if item.weight != 1.0:
        out["weight"] = _num(item.weight)
    return out


def to_wire(payload: EmbedPayload) -> Dict[str, Any]:
    return {"title": payload.title, "items": [_item_to_wire(it) for it in payload.items]}


def encode(payload: EmbedPayload) -> str:
    """Serialize a payload into a fragment-safe token. Deterministic; never drops items."""

    text = json.dumps(to_wire(payload), ensure_ascii=False, separators=(",", ":"))
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _normalize_token(token: Any) -> str:
    if not isinstance(token, str):
        return ""
    raw = token.strip()
    if raw.startswith("#"):
        raw = raw[1:]
    if "%" in raw:
        raw = unquote(raw)
    raw = "".join(raw.split())
    # tolerate the URL-safe alphabet and stripped padding
    raw = raw.replace("-", "+").replace("_", "/").rstrip("=")
    if not raw:
        return ""
    return raw + "=" * (-len(raw) % 4)


def _fail(reason: str, detail: str) -> DecodeError:
    log.info("embed payload rejected: %s (%s)", reason, detail)
    return DecodeError(reason=reason, detail=detail)  # type: ignore[arg-type]


def from_wire(obj: Any) -> Union[EmbedPayload, DecodeError]:
    """Validate an already-parsed JSON object (steps 3-4 of decoding)."""

    if not isinstance(obj, dict):
        return _fail("invalid_json", "top level is not an object")
    title = obj.get("title")
    if not isinstance(title, str) or not title.strip():
        return _fail("missing_title", "title must be a non-empty string")
    raw_items: Any = None
    for key in _ITEM_KEYS:
        if key in obj:
            raw_items = obj[key]
            break
    if not isinstance(raw_items, list) or not raw_items:
        return _fail("empty_items", "no items")
    items: List[Item] = []
    for idx, raw in enumerate(raw_items):
        item, why = parse_item(raw)
        if item is None:
            return _fail("invalid_item", f"item {idx}: {why}")
        items.append(item)
    return EmbedPayload(title=title, items=tuple(items))


def decode(token: Any) -> Union[EmbedPayload, DecodeError]:
    """Decode a fragment token. Never raises; failures come back as DecodeError."""

    raw = _normalize_token(token)
    if not raw:
        return _fail("malformed_encoding", "empty token")
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        return _fail("malformed_encoding", str(exc))
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        return _fail("malformed_encoding", f"not utf-8: {exc.reason}")
    try:
        obj = json.loads(text)
    except ValueError as exc:
        return _fail("invalid_json", str(exc))
    return from_wire(obj)


def read_fragment(location: str) -> str:
    """Return the part after ``#`` (stand-in for ``window.location.hash``)."""

    if not isinstance(location, str):
        return ""
    if "#" in location:
        return location.split("#", 1)[1]
    if "://" in location or location.startswith("/"):
        return ""
    return location


__all__ = ["encode", "decode", "from_wire", "to_wire", "read_fragment"]
