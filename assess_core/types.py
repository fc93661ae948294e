from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, Literal, Tuple

ItemType = Literal["MCQ", "CARD"]
Mode = Literal["practice", "exam"]
DecodeReason = Literal[
    "malformed_encoding", "invalid_json", "missing_title", "empty_items", "invalid_item"
]

OPTION_LETTERS: Tuple[str, ...] = ("A", "B", "C", "D", "E", "F", "G", "H")
# flashcard self-rating: 0 = knew it, 1 = study again
CARD_RATINGS: Tuple[str, ...] = ("knew", "again")


@dataclass(frozen=True)
class Option:
    label: str; body: str; is_correct: bool = False


@dataclass(frozen=True)
class Item:
    type: ItemType; prompt: str
    options: Tuple[Option, ...] = ()
    explanation: Optional[str] = None
    weight: float = 1.0
    difficulty: Optional[str] = None
    back: Optional[str] = None
    hint: Optional[str] = None

    @property
    def front(self) -> str:
        return self.prompt

    @property
    def is_card(self) -> bool:
        return self.type == "CARD"

    @property
    def option_count(self) -> int:
        return len(CARD_RATINGS) if self.is_card else len(self.options)

    def correct_option(self) -> Optional[int]:
        """Index of the first option flagged correct (None when there is none)."""
        if self.is_card:
            return 0
        for idx, opt in enumerate(self.options):
            if opt.is_correct:
                return idx
        return None


@dataclass(frozen=True)
class Answer:
    item_index: int; selected: Optional[int]; correct: bool


@dataclass(frozen=True)
class EmbedPayload:
    title: str
    items: Tuple[Item, ...]


@dataclass(frozen=True)
class DecodeError:
    reason: DecodeReason
    detail: str = ""


@dataclass(frozen=True)
class TransitionNoOp:
    event: str; reason: str


@dataclass(frozen=True)
class Score:
    correct_points: float
    total_points: float
    percentage: int
    passed: Optional[bool] = None

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "correctPoints": self.correct_points,
            "totalPoints": self.total_points,
            "percentage": self.percentage,
        }
        if self.passed is not None:
            out["passed"] = self.passed
        return out


@dataclass
class ViewState:
    status: str
    mode: Mode
    index: int
    total: int
    item: Optional[Item]
    progress: float
    selected: Optional[int] = None
    answered: bool = False
    revealed: bool = False
    flipped: bool = False
    can_go_prev: bool = False
    can_go_next: bool = False
    can_confirm: bool = False
    can_submit: bool = False
    score: Optional[Score] = None
    remaining_sec: Optional[int] = None
    timer_display: Optional[str] = None
    answered_count: int = 0
    last_noop: Optional[TransitionNoOp] = None


def option_label(idx: int) -> str:
    if 0 <= idx < len(OPTION_LETTERS):
        return OPTION_LETTERS[idx]
    return str(idx + 1)


def item_to_dict(item: Item) -> Dict[str, object]:
    """JSON-friendly view of an item (wire names, used by adapters)."""
    if item.is_card:
        out: Dict[str, object] = {"type": "CARD", "front": item.prompt, "back": item.back or ""}
    else:
        out = {
            "type": "MCQ",
            "prompt": item.prompt,
            "options": [
                {"label": o.label, "body": o.body, "isCorrect": o.is_correct} for o in item.options
            ],
        }
    if item.hint:
        out["hint"] = item.hint
    if item.difficulty:
        out["difficulty"] = item.difficulty
    if item.explanation:
        out["explanation"] = item.explanation
    if item.weight != 1.0:
        out["weight"] = item.weight
    return out
