from __future__ import annotations
from typing import Mapping, Optional, Sequence
from decimal import Decimal, ROUND_HALF_UP

from .types import Answer, Item, Score


def option_is_correct(item: Item, option: Optional[int]) -> bool:
    """Correctness of one selection. An item with no correct option never scores."""
    if option is None:
        return False
    try:
        idx = int(option)
    except (TypeError, ValueError):
        return False
    if idx < 0 or idx >= item.option_count:
        return False
    if item.is_card:
        return idx == 0
    return bool(item.options[idx].is_correct)


def _pct(num: float, den: float) -> int:
    if den <= 0:
        return 0
    # Math.round semantics: halves go up
    return int((Decimal(str(num)) * 100 / Decimal(str(den))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def score(
    items: Sequence[Item],
    answers: Mapping[int, Answer],
    passing_score: Optional[float] = None,
) -> Score:
    """
    Aggregate score over the whole item list.
    Unanswered items count toward total_points and contribute zero.
    Uses the stored Answer.correct flag; nothing is re-graded here.
    """
    total = 0.0
    correct = 0.0
    for idx, it in enumerate(items):
        w = float(it.weight)
        total += w
        ans = answers.get(idx)
        if ans is not None and ans.correct:
            correct += w
    pct = _pct(correct, total)
    passed = None if passing_score is None else pct >= passing_score
    return Score(correct_points=correct, total_points=total, percentage=pct, passed=passed)
