from __future__ import annotations
import logging, math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import MIN_OPTIONS
from .types import Item, Option, option_label

log = logging.getLogger(__name__)


def _text(raw: Dict[str, Any], *keys: str) -> Optional[str]:
    for k in keys:
        v = raw.get(k)
        if isinstance(v, str) and v.strip():
            return v
    return None


def _weight(raw: Dict[str, Any]) -> Optional[float]:
    val = raw.get("weight", raw.get("points"))
    if val is None:
        return 1.0
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return None
    try:
        w = float(val)
    except OverflowError:
        return None
    if not math.isfinite(w) or w < 0:
        return None
    return w


def _parse_options(raw: Dict[str, Any]) -> Tuple[Optional[Tuple[Option, ...]], str]:
    opts = raw.get("options")
    if not isinstance(opts, list) or len(opts) < MIN_OPTIONS:
        return None, f"needs at least {MIN_OPTIONS} options"
    # legacy MCQ-maker shape marks the key by id instead of per-option flags
    correct_id = raw.get("correctOptionId")
    out: List[Option] = []
    for idx, o in enumerate(opts):
        if isinstance(o, str):
            o = {"body": o}
        if not isinstance(o, dict):
            return None, f"option {idx} is not an object"
        body = _text(o, "body", "text")
        if body is None:
            return None, f"option {idx} has no body"
        flag = o.get("isCorrect", o.get("is_correct"))
        if flag is None:
            flag = correct_id is not None and o.get("id") == correct_id
        elif not isinstance(flag, bool):
            return None, f"option {idx} isCorrect must be true or false"
        # an explicit label is kept as written, even when empty
        label = o["label"] if isinstance(o.get("label"), str) else option_label(idx)
        out.append(Option(label=label, body=body, is_correct=flag))
    if not any(o.is_correct for o in out):
        return None, "no option is marked correct"
    return tuple(out), ""


def parse_item(raw: Any) -> Tuple[Optional[Item], str]:
    """Build an Item from a wire/legacy dict. Returns (item, "") or (None, why)."""

    if not isinstance(raw, dict):
        return None, "not an object"
    weight = _weight(raw)
    if weight is None:
        return None, "weight must be a finite non-negative number"
    explanation = _text(raw, "explanation")
    hint = _text(raw, "hint")
    difficulty = _text(raw, "difficulty")
    is_card = raw.get("type") == "CARD" or ("front" in raw and "options" not in raw)
    if is_card:
        front = _text(raw, "front", "prompt")
        back = _text(raw, "back")
        if front is None:
            return None, "card has no front"
        if back is None:
            return None, "card has no back"
        return Item(type="CARD", prompt=front, back=back, hint=hint,
                    explanation=explanation, weight=weight, difficulty=difficulty), ""
    prompt = _text(raw, "prompt", "question")
    if prompt is None:
        return None, "question has no prompt"
    options, why = _parse_options(raw)
    if options is None:
        return None, why
    return Item(type="MCQ", prompt=prompt, options=options, explanation=explanation,
                weight=weight, difficulty=difficulty, hint=hint), ""


def content_defects(items: Sequence[Item]) -> List[Dict[str, object]]:
    """Authoring defects the engine tolerates (e.g. zero or several correct options)."""

    out: List[Dict[str, object]] = []
    for idx, it in enumerate(items):
        if it.is_card: continue
        n_correct = sum(1 for o in it.options if o.is_correct)
        if n_correct != 1:
            out.append({"index": idx, "kind": "correct_count", "count": n_correct})
        if len(it.options) < MIN_OPTIONS:
            out.append({"index": idx, "kind": "too_few_options", "count": len(it.options)})
    return out


def log_content_defects(items: Sequence[Item]) -> int:
    defects = content_defects(items)
    for d in defects:
        log.warning("content defect in item %s: %s=%s", d["index"], d["kind"], d["count"])
    return len(defects)
