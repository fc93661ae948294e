from __future__ import annotations

import logging
import random
from typing import List

from .codec import decode, encode
from .config import DEBUG_SEED, DEBUG_TRACE
from .embed import build_payload, embed_url
from .review import build_review, review_summary
from .session import QuizSession
from .types import DecodeError, Item, Option, option_label


def _maybe_enable_trace() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    if DEBUG_TRACE:
        logging.getLogger("assess_core.session").setLevel(logging.INFO)


def _synthetic_items(n: int = 25) -> List[Item]:
    items: List[Item] = []
    for idx in range(n):
        key = idx % 4
        items.append(
            Item(
                type="MCQ",
                prompt=f"Smoke question #{idx}",
                options=tuple(
                    Option(label=option_label(j), body=f"choice {j}", is_correct=(j == key))
                    for j in range(4)
                ),
                explanation=f"The key is {option_label(key)}",
                weight=2.0 if idx % 5 == 0 else 1.0,
            )
        )
    return items


def main() -> None:
    _maybe_enable_trace()
    rng = random.Random(DEBUG_SEED if DEBUG_SEED is not None else 7)

    payload = build_payload("Smoke quiz", _synthetic_items())
    token = encode(payload)
    logging.info("Encoded %d items into %d chars", len(payload.items), len(token))
    logging.info("Embed URL prefix: %s...", embed_url(payload)[:80])

    decoded = decode(token)
    if isinstance(decoded, DecodeError):
        logging.error("Round trip failed: %s (%s)", decoded.reason, decoded.detail)
        return

    sess = QuizSession(decoded.items, mode="exam", passing_score=60, seed=rng.randrange(1 << 30))
    try:
        while sess.state.status == "in_progress":
            item = sess.state.current
            assert item is not None
            sess.select_option(rng.randrange(item.option_count))
            sess.confirm_answer()
            if sess.go_next().last_noop is not None:
                sess.submit()
        view = sess.view()
        assert view.score is not None
        logging.info(
            "Score: %g/%g (%d%%) passed=%s",
            view.score.correct_points,
            view.score.total_points,
            view.score.percentage,
            view.score.passed,
        )
        sess.enter_review()
        logging.info("Review: %s", review_summary(build_review(sess.state)))
    finally:
        sess.close()


if __name__ == "__main__":
    main()
