from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .session import COMPLETED, REVIEWING, SessionState
from .types import Option


@dataclass(frozen=True)
class ReviewEntry:
    index: int
    prompt: str
    options: Tuple[Option, ...]
    selected: Optional[int]
    answered: bool
    correct: bool
    correct_option: Optional[int]
    explanation: Optional[str] = None
    back: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "index": self.index,
            "prompt": self.prompt,
            "options": [{"label": o.label, "body": o.body, "isCorrect": o.is_correct} for o in self.options],
            "selected": self.selected,
            "answered": self.answered,
            "correct": self.correct,
            "correctOption": self.correct_option,
            "explanation": self.explanation,
            "back": self.back,
        }


def build_review(state: SessionState) -> List[ReviewEntry]:
    """
    Read-only walkthrough of a finished session.

    `correct` is copied from the recorded Answer, never re-graded, so the
    review always agrees with the score shown on the results screen.
    """
    if state.status not in (COMPLETED, REVIEWING):
        return []
    out: List[ReviewEntry] = []
    for idx, it in enumerate(state.items):
        ans = state.answers.get(idx)
        out.append(
            ReviewEntry(
                index=idx,
                prompt=it.prompt,
                options=it.options,
                selected=ans.selected if ans else None,
                answered=ans is not None,
                correct=bool(ans.correct) if ans else False,
                correct_option=it.correct_option(),
                explanation=it.explanation,
                back=it.back,
            )
        )
    return out


def review_summary(entries: List[ReviewEntry]) -> Dict[str, int]:
    right = sum(1 for e in entries if e.correct)
    unanswered = sum(1 for e in entries if not e.answered)
    return {"correct": right, "incorrect": len(entries) - right - unanswered, "unanswered": unanswered}
