# tools/encode_payload.py
from __future__ import annotations
import argparse, json, pathlib, sys

from assess_core.codec import from_wire
from assess_core.config import IFRAME_HEIGHT, IFRAME_WIDTH, SITE_URL
from assess_core.embed import build_payload, embed_url, iframe_code
from assess_core.theme import DEFAULT_THEME, theme_from_dict
from assess_core.types import DecodeError


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Turn a quiz/deck JSON file into an embed URL and iframe snippet.")
    ap.add_argument("path", help="JSON file: {title, items|questions|cards, theme?}")
    ap.add_argument("--limit", type=int, default=None, help="override the 20 question / 30 card cap")
    ap.add_argument("--site", default=SITE_URL)
    ap.add_argument("--width", default=IFRAME_WIDTH)
    ap.add_argument("--height", default=IFRAME_HEIGHT)
    ap.add_argument("--url-only", action="store_true")
    args = ap.parse_args(argv)

    raw = json.loads(pathlib.Path(args.path).read_text(encoding="utf-8"))
    parsed = from_wire(raw)
    if isinstance(parsed, DecodeError):
        print(f"✗ {args.path}: {parsed.reason} ({parsed.detail})", file=sys.stderr)
        return 1

    theme = theme_from_dict(raw.get("theme")) if isinstance(raw.get("theme"), dict) else None
    payload = build_payload(parsed.title, parsed.items, args.limit)
    if len(payload.items) < len(parsed.items):
        print(f"  note: kept {len(payload.items)} of {len(parsed.items)} items", file=sys.stderr)

    url = embed_url(payload, theme, site_url=args.site)
    if args.url_only:
        print(url)
    else:
        print(iframe_code(payload.title, url, args.width, args.height, theme or DEFAULT_THEME))
    return 0


if __name__ == "__main__":
    sys.exit(main())
