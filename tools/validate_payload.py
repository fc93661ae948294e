from __future__ import annotations
from collections import Counter
import json, pathlib, sys

from assess_core.codec import decode, from_wire, read_fragment
from assess_core.config import MAX_EMBED_CARDS, MAX_EMBED_QUESTIONS, MAX_OPTIONS
from assess_core.embed import is_card_deck
from assess_core.types import DecodeError
from assess_core.validators import content_defects


def _load(src: str):
    p = pathlib.Path(src)
    if p.suffix == ".json":
        try:
            return from_wire(json.loads(p.read_text(encoding="utf-8")))
        except ValueError as exc:
            return DecodeError(reason="invalid_json", detail=str(exc))
    return decode(read_fragment(src))


def main(argv=None) -> int:
    sources = list(sys.argv[1:] if argv is None else argv)
    if not sources:
        print("usage: validate_payload.py <file.json | token | embed url> ...")
        return 2
    bad = 0
    for src in sources:
        name = src if len(src) < 60 else src[:57] + "..."
        res = _load(src)
        if isinstance(res, DecodeError):
            bad += 1
            print(f"{name}: ✗ {res.reason} ({res.detail})\n")
            continue

        cards = is_card_deck(res.items)
        cap = MAX_EMBED_CARDS if cards else MAX_EMBED_QUESTIONS
        kinds = Counter(it.type for it in res.items)
        print(f"{name}: {res.title!r}  MCQ={kinds['MCQ']} CARD={kinds['CARD']}")

        defects = content_defects(res.items)
        for d in defects:
            print(f"  item {d['index']}: {d['kind']}={d['count']}")
        wide = [i for i, it in enumerate(res.items) if len(it.options) > MAX_OPTIONS]
        if wide:
            print(f"  items with more than {MAX_OPTIONS} options: {wide}")
        if len(res.items) > cap:
            print(f"  → only the first {cap} items fit in an embed")
        if not defects and not wide and len(res.items) <= cap:
            print("  ✓ Ready to embed\n")
        else:
            print()
    return 1 if bad else 0


if __name__ == "__main__":
    sys.exit(main())
