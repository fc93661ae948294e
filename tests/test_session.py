from __future__ import annotations

from dataclasses import replace

import pytest

from assess_core.codec import decode, encode
from assess_core.review import build_review
from assess_core.scoring import score
from assess_core.session import (
    COMPLETED,
    IN_PROGRESS,
    REVIEWING,
    Advance,
    ConfirmAnswer,
    EnterReview,
    Expire,
    explain_noop,
    QuizSession,
    Restart,
    Retreat,
    SelectOption,
    initial_state,
    step,
    transition,
)
from assess_core.types import EmbedPayload, Item, Option

from tests.conftest import build_mcq, build_quiz


def _demo() -> EmbedPayload:
    return EmbedPayload(
        title="Demo",
        items=(
            Item(
                type="MCQ",
                prompt="2+2?",
                options=(Option("A", "3", False), Option("B", "4", True)),
            ),
        ),
    )


def test_demo_payload_select_confirm_score():
    payload = decode(encode(_demo()))
    assert payload == _demo()
    sess = QuizSession(payload.items, mode="exam")
    sess.select_option(1)
    view = sess.confirm_answer()
    assert view.answered and view.revealed
    assert sess.state.answers[0].correct is True
    view = sess.go_next()
    assert view.status == COMPLETED
    assert view.score.to_dict() == {"correctPoints": 1, "totalPoints": 1, "percentage": 100}


def test_initial_state():
    st = initial_state(build_quiz(3))
    assert (st.status, st.index, dict(st.answers), st.selected) == (IN_PROGRESS, 0, {}, None)


def test_transition_is_pure():
    st = initial_state(build_quiz(2))
    nxt = transition(st, SelectOption(0, 1))
    assert st.selected is None, "the input state is never mutated"
    assert nxt.selected == 1
    assert transition(nxt, ConfirmAnswer()).answers[0].selected == 1


def test_exam_select_does_not_record_until_confirm():
    st = transition(initial_state(build_quiz(2)), SelectOption(0, 2))
    assert 0 not in st.answers
    st = transition(st, SelectOption(0, 0))
    assert st.selected == 0, "selection may change before confirming"


def test_confirm_is_idempotent():
    st = transition(initial_state(build_quiz(2)), SelectOption(0, 0))
    once = transition(st, ConfirmAnswer())
    twice, noop = step(once, ConfirmAnswer())
    assert twice is once
    assert noop is not None and noop.reason == "item already answered"
    assert dict(twice.answers) == dict(once.answers)


def test_confirm_without_selection_is_noop():
    st = initial_state(build_quiz(2))
    out, noop = step(st, ConfirmAnswer())
    assert out is st and noop.event == "ConfirmAnswer"


def test_select_rejected_for_other_items_and_after_answer():
    st = initial_state(build_quiz(2))
    assert transition(st, SelectOption(1, 0)) is st
    assert transition(st, SelectOption(0, 9)) is st
    answered = transition(transition(st, SelectOption(0, 1)), ConfirmAnswer())
    assert transition(answered, SelectOption(0, 0)) is answered


def test_practice_select_records_and_reveals():
    st = initial_state(build_quiz(2), "practice")
    st = transition(st, SelectOption(0, 0))
    assert st.answers[0].correct is True
    assert step(st, ConfirmAnswer())[1] is not None, "practice mode has nothing to confirm"


def test_advance_requires_an_answer():
    st = initial_state(build_quiz(2))
    out, noop = step(st, Advance())
    assert out is st and noop.reason == "current item is unanswered"


def test_advance_past_last_with_unanswered_items_is_noop():
    # sitting on the last item while item 0 is still unanswered
    st2 = replace(initial_state(build_quiz(2)), index=1)
    st2 = transition(transition(st2, SelectOption(1, 0)), ConfirmAnswer())
    out, noop = step(st2, Advance())
    assert out is st2 and out.status == IN_PROGRESS
    assert noop.reason == "unanswered items remain"


def test_advance_from_last_completes_when_all_answered():
    st = initial_state(build_quiz(2))
    for i in range(2):
        st = transition(transition(st, SelectOption(i, 0)), ConfirmAnswer())
        st = transition(st, Advance())
    assert st.status == COMPLETED


def test_retreat_restores_previous_selection():
    st = initial_state(build_quiz(2))
    st = transition(transition(st, SelectOption(0, 3)), ConfirmAnswer())
    st = transition(st, Advance())
    assert st.index == 1 and st.selected is None
    st = transition(st, Retreat())
    assert st.index == 0 and st.selected == 3
    assert transition(st, Retreat()) is st, "clamped at the first item"


def test_three_items_timer_expires_before_last():
    items = build_quiz(3)
    sess = QuizSession(items, mode="exam")
    for _ in range(2):
        sess.select_option(0)
        sess.confirm_answer()
        sess.go_next()
    view = sess.dispatch(Expire())
    assert view.status == COMPLETED
    assert view.score.total_points == 3
    assert view.score.correct_points == 2
    review = build_review(sess.state)
    assert review[2].answered is False and review[2].selected is None
    assert review[2].correct is False


def test_expire_only_from_in_progress():
    st = transition(initial_state(build_quiz(1)), Expire())
    assert st.status == COMPLETED
    assert transition(st, Expire()) is st


def test_review_is_read_only():
    st = transition(initial_state(build_quiz(2)), Expire())
    st = transition(st, EnterReview())
    assert st.status == REVIEWING and st.index == 0
    assert transition(st, SelectOption(0, 0)) is st
    assert transition(st, ConfirmAnswer()) is st
    st = transition(st, Advance())
    assert st.index == 1, "review navigation needs no answers"
    assert transition(st, Advance()) is st


def test_enter_review_only_from_completed():
    st = initial_state(build_quiz(2))
    assert transition(st, EnterReview()) is st


def test_restart_clears_answers():
    st = initial_state(build_quiz(2))
    st = transition(transition(st, SelectOption(0, 0)), ConfirmAnswer())
    assert transition(st, Restart()) is st, "restart needs a finished session"
    st = transition(st, Expire())
    st = transition(st, Restart())
    assert (st.status, st.index, dict(st.answers)) == (IN_PROGRESS, 0, {})


def test_score_invariant_over_random_play():
    import random

    rng = random.Random(3)
    items = [build_mcq(weight=float(rng.randint(0, 3)), correct=rng.randrange(4)) for _ in range(10)]
    for _ in range(20):
        st = initial_state(items)
        for i in range(len(items)):
            if rng.random() < 0.7:
                st = transition(transition(st, SelectOption(i, rng.randrange(4))), ConfirmAnswer())
            if i not in st.answers:
                break
            st = transition(st, Advance())
        st = transition(st, Expire())
        sc = score(st.items, st.answers)
        assert sc.correct_points <= sc.total_points
        assert sc.total_points == sum(it.weight for it in items)


def test_session_timer_forces_completion(scheduler):
    sess = QuizSession(build_quiz(3), mode="exam", time_limit_sec=1, scheduler=scheduler)
    assert sess.view().timer_display == "00:01"
    scheduler.advance(2)
    view = sess.view()
    assert view.status == COMPLETED
    assert view.score.correct_points == 0 and view.score.total_points == 3


def test_practice_mode_has_no_timer(scheduler):
    sess = QuizSession(build_quiz(2), mode="practice", time_limit_min=5, scheduler=scheduler)
    assert sess.timer is None
    assert sess.view().remaining_sec is None


def test_no_limit_is_not_zero(scheduler):
    sess = QuizSession(build_quiz(2), mode="exam", scheduler=scheduler)
    assert sess.timer is None
    assert sess.view().timer_display is None


def test_restart_resets_timer(scheduler):
    sess = QuizSession(build_quiz(1), mode="exam", time_limit_sec=3, scheduler=scheduler)
    scheduler.advance(1)
    sess.submit()
    assert not sess.timer.running
    sess.restart()
    assert sess.timer.remaining == 3 and sess.timer.running
    assert scheduler.live == 1


def test_shuffle_is_seeded():
    items = build_quiz(6)
    a = QuizSession(items, mode="practice", shuffle=True, seed=11)
    b = QuizSession(items, mode="practice", shuffle=True, seed=11)
    assert a.state.items == b.state.items
    assert sorted(it.prompt for it in a.state.items) == sorted(it.prompt for it in items)


def test_session_rejects_bad_input():
    with pytest.raises(ValueError):
        QuizSession([], mode="exam")
    with pytest.raises(ValueError):
        QuizSession(build_quiz(1), mode="quiz")


def test_keyless_item_is_tolerated(caplog):
    caplog.set_level("WARNING")
    sess = QuizSession([build_mcq(correct=None)], mode="practice")
    assert "content defect" in caplog.text
    sess.select_option(0)
    assert sess.state.answers[0].correct is False


def test_explain_noop():
    st = initial_state(build_quiz(2))
    assert explain_noop(st, Advance()) == "current item is unanswered"
    assert explain_noop(st, SelectOption(0, 1)) is None
    assert explain_noop(st, object()) == "unknown event"


def test_restart_after_study_missed_uses_full_set():
    from tests.conftest import build_deck

    sess = QuizSession(build_deck(3), mode="practice")
    sess.rate_card(True)
    sess.rate_card(False)
    sess.rate_card(True)
    sess.study_missed()
    assert len(sess.state.items) == 1
    sess.rate_card(True)
    sess.restart()
    assert len(sess.state.items) == 3
