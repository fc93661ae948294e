"""Key bindings for the players.

Keys are translated into the same events the pointer controls dispatch, so
there is exactly one code path per intent.
"""
from __future__ import annotations
from typing import Optional

from .session import (
    Advance, ConfirmAnswer, Flip, IN_PROGRESS, Retreat, SelectOption, SessionState,
)

NEXT_KEYS = frozenset({"ArrowRight", "Right"})
PREV_KEYS = frozenset({"ArrowLeft", "Left"})
ENTER_KEYS = frozenset({"Enter", "Return"})
FLIP_KEYS = frozenset({" ", "Space", "Spacebar"})


def event_for_key(key: str, state: SessionState) -> Optional[object]:
    if not isinstance(key, str) or not key:
        return None
    if key in NEXT_KEYS:
        return Advance()
    if key in PREV_KEYS:
        return Retreat()
    item = state.current
    if key in ENTER_KEYS:
        pending = (
            state.mode == "exam" and state.status == IN_PROGRESS
            and state.selected is not None and state.index not in state.answers
        )
        return ConfirmAnswer() if pending else Advance()
    if key in FLIP_KEYS:
        return Flip() if item is not None and item.is_card else None
    if key.isdigit() and item is not None:
        n = int(key)
        if 1 <= n <= item.option_count:
            return SelectOption(state.index, n - 1)
    return None
