from __future__ import annotations

from assess_core.session import COMPLETED, QuizSession

from tests.conftest import build_deck


def test_flip_and_rate_through_deck():
    sess = QuizSession(build_deck(3), mode="practice")
    assert sess.flip().flipped is True
    view = sess.rate_card(True)
    assert view.index == 1 and view.flipped is False, "moving on shows the front again"
    sess.rate_card(False)
    view = sess.rate_card(True)
    assert view.status == COMPLETED
    assert (view.score.correct_points, view.score.total_points, view.score.percentage) == (2, 3, 67)


def test_rating_records_immediately_in_exam_mode():
    sess = QuizSession(build_deck(2), mode="exam")
    sess.select_option(1)
    assert sess.state.answers[0].correct is False
    assert sess.view().can_confirm is False


def test_study_missed_restarts_with_missed_cards_only():
    deck = build_deck(3)
    sess = QuizSession(deck, mode="practice")
    sess.rate_card(True)
    sess.rate_card(False)
    sess.rate_card(False)
    sess.study_missed()
    assert sess.state.status == "in_progress"
    assert [it.front for it in sess.state.items] == ["Term 1", "Term 2"]
    sess.rate_card(True)
    sess.rate_card(True)
    assert sess.view().score.percentage == 100


def test_study_missed_with_nothing_missed_keeps_the_deck():
    sess = QuizSession(build_deck(2), mode="practice")
    sess.rate_card(True)
    sess.rate_card(True)
    sess.study_missed()
    assert len(sess.state.items) == 2


def test_space_key_flips_and_digits_rate():
    sess = QuizSession(build_deck(2), mode="practice")
    assert sess.press_key(" ").flipped is True
    assert sess.press_key(" ").flipped is False
    sess.press_key("2")
    assert sess.state.answers[0].correct is False
    assert sess.press_key("ArrowRight").index == 1


def test_flip_is_noop_for_questions():
    from tests.conftest import build_quiz

    sess = QuizSession(build_quiz(1), mode="practice")
    assert sess.flip().last_noop is not None


def test_study_missed_after_a_clean_round_returns_to_full_deck():
    sess = QuizSession(build_deck(3), mode="practice")
    sess.rate_card(True)
    sess.rate_card(False)
    sess.rate_card(True)
    sess.study_missed()
    assert [it.front for it in sess.state.items] == ["Term 1"]
    sess.rate_card(True)
    sess.study_missed()
    assert [it.front for it in sess.state.items] == ["Term 0", "Term 1", "Term 2"]
