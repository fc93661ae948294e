"""Helpers for the "copy embed code" flow: cap, encode, build URL and iframe snippet."""
from __future__ import annotations
from html import escape
from typing import Optional, Sequence, Tuple
from urllib.parse import urlencode
import logging

from .codec import encode
from .config import (
    ATTRIBUTION_TEXT,
    ATTRIBUTION_URL,
    EMBED_CARDS_PATH,
    EMBED_QUESTIONS_PATH,
    IFRAME_HEIGHT,
    IFRAME_WIDTH,
    MAX_EMBED_CARDS,
    MAX_EMBED_QUESTIONS,
    SITE_URL,
)
from .theme import DEFAULT_THEME, Theme, theme_to_query
from .types import EmbedPayload, Item

log = logging.getLogger(__name__)


def is_card_deck(items: Sequence[Item]) -> bool:
    return bool(items) and all(it.is_card for it in items)


def cap_items(items: Sequence[Item], limit: Optional[int] = None) -> Tuple[Item, ...]:
    """Pre-slice before encoding; the codec itself never drops items."""
    if limit is None:
        limit = MAX_EMBED_CARDS if is_card_deck(items) else MAX_EMBED_QUESTIONS
    out = tuple(items[: max(0, limit)])
    if len(out) < len(items):
        log.info("embed payload capped at %d of %d items", len(out), len(items))
    return out


def build_payload(title: str, items: Sequence[Item], limit: Optional[int] = None) -> EmbedPayload:
    return EmbedPayload(title=title, items=cap_items(items, limit))


def embed_url(
    payload: EmbedPayload,
    theme: Optional[Theme] = None,
    site_url: str = SITE_URL,
) -> str:
    path = EMBED_CARDS_PATH if is_card_deck(payload.items) else EMBED_QUESTIONS_PATH
    query = theme_to_query(theme) if theme is not None else {}
    qs = f"?{urlencode(query)}" if query else ""
    return f"{site_url.rstrip('/')}{path}{qs}#{encode(payload)}"


def iframe_code(
    title: str,
    url: str,
    width: str = IFRAME_WIDTH,
    height: str = IFRAME_HEIGHT,
    theme: Theme = DEFAULT_THEME,
) -> str:
    """Copy-paste snippet. The attribution paragraph is always part of it."""
    t = escape(title, quote=True)
    return (
        f"<!-- {t} - {ATTRIBUTION_TEXT} -->\n"
        "<div style=\"max-width:100%;\">\n"
        "  <iframe\n"
        f"    src=\"{escape(url, quote=True)}\"\n"
        f"    width=\"{escape(str(width), quote=True)}\" height=\"{escape(str(height), quote=True)}\"\n"
        f"    style=\"border:none;border-radius:{int(theme.border_radius)}px;overflow:hidden;\"\n"
        f"    title=\"{t} - {ATTRIBUTION_TEXT}\"\n"
        "    loading=\"lazy\"\n"
        "  ></iframe>\n"
        "  <p style=\"margin:8px 0 0;font-size:12px;font-family:sans-serif;color:#666;text-align:center;\">\n"
        f"    Powered by <a href=\"{ATTRIBUTION_URL}\" rel=\"dofollow\" "
        f"style=\"color:{theme.accent};font-weight:600;text-decoration:none;\">{ATTRIBUTION_TEXT}</a>\n"
        "  </p>\n"
        "</div>"
    )
