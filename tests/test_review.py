from __future__ import annotations

from dataclasses import replace
from types import MappingProxyType

from assess_core.review import build_review, review_summary
from assess_core.scoring import score
from assess_core.session import QuizSession, initial_state
from assess_core.types import Answer

from tests.conftest import build_mcq, build_quiz


def _finished(picks: list[int | None]) -> QuizSession:
    sess = QuizSession(build_quiz(len(picks), correct=1), mode="exam")
    for pick in picks:
        if pick is None:
            break
        sess.select_option(pick)
        sess.confirm_answer()
        sess.go_next()
    sess.submit()
    return sess


def test_review_matches_score():
    sess = _finished([1, 0, 1, None])
    entries = build_review(sess.state)
    sc = score(sess.state.items, sess.state.answers)
    assert [e.correct for e in entries] == [True, False, True, False]
    assert sum(it.weight for it, e in zip(sess.state.items, entries) if e.correct) == sc.correct_points
    assert review_summary(entries) == {"correct": 2, "incorrect": 1, "unanswered": 1}


def test_review_entry_details():
    sess = _finished([0])
    e = build_review(sess.state)[0]
    assert e.selected == 0
    assert e.correct_option == 1
    assert e.explanation == "Because 0"
    d = e.to_dict()
    assert d["correctOption"] == 1 and d["options"][1]["isCorrect"] is True


def test_review_never_regrades():
    # stored flag disagrees with the key: the review reports what was scored
    st = replace(
        initial_state([build_mcq(correct=0)]),
        status="completed",
        answers=MappingProxyType({0: Answer(item_index=0, selected=2, correct=True)}),
    )
    entry = build_review(st)[0]
    assert entry.correct is True
    assert entry.correct_option == 0
    assert score(st.items, st.answers).percentage == 100


def test_no_review_while_in_progress():
    assert build_review(initial_state(build_quiz(2))) == []


def test_review_walkthrough_and_back_to_results():
    sess = _finished([1, 1])
    view = sess.enter_review()
    assert view.status == "reviewing" and view.revealed
    assert view.selected == 1, "review shows the recorded choice"
    view = sess.go_next()
    assert view.index == 1
    assert sess.go_next().last_noop is not None
    view = sess.back_to_results()
    assert view.status == "completed" and view.score.percentage == 100
