from __future__ import annotations

import pytest

from assess_core.timer import ManualScheduler
from assess_core.types import EmbedPayload, Item, Option, option_label


def build_mcq(
    prompt: str = "Which is correct?",
    *,
    n_options: int = 4,
    correct: int | None = 0,
    weight: float = 1.0,
    explanation: str | None = None,
) -> Item:
    """MCQ with bodies "opt 0".."opt n-1"; `correct=None` builds a keyless item."""

    return Item(
        type="MCQ",
        prompt=prompt,
        options=tuple(
            Option(label=option_label(j), body=f"opt {j}", is_correct=(j == correct))
            for j in range(n_options)
        ),
        explanation=explanation,
        weight=weight,
    )


def build_card(front: str = "Front", back: str = "Back", hint: str | None = None) -> Item:
    return Item(type="CARD", prompt=front, back=back, hint=hint)


def build_quiz(n: int = 3, *, correct: int = 0) -> list[Item]:
    return [
        build_mcq(f"Question {i}", correct=correct, explanation=f"Because {i}")
        for i in range(n)
    ]


def build_deck(n: int = 3) -> list[Item]:
    return [build_card(f"Term {i}", f"Definition {i}") for i in range(n)]


def build_demo_payload() -> EmbedPayload:
    return EmbedPayload(
        title="Cardio basics",
        items=(
            build_mcq("Normal resting heart rate?", correct=1, explanation="60-100 bpm"),
            build_mcq("Largest artery?", correct=2, weight=2.0),
        ),
    )


def wire_demo() -> dict:
    return {
        "title": "Cardio basics",
        "questions": [
            {
                "prompt": "Normal resting heart rate?",
                "options": [
                    {"label": "A", "body": "20-40 bpm", "isCorrect": False},
                    {"label": "B", "body": "60-100 bpm", "isCorrect": True},
                ],
                "explanation": "Adults at rest.",
            }
        ],
    }


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def quiz_items() -> list[Item]:
    return build_quiz()


@pytest.fixture
def deck_items() -> list[Item]:
    return build_deck()
