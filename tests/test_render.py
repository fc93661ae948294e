from __future__ import annotations

import pytest

from assess_core.codec import decode
from assess_core.config import ATTRIBUTION_URL
from assess_core.render import FALLBACK_HEADLINE, FALLBACK_MESSAGE, render_fallback, render_view
from assess_core.review import build_review
from assess_core.session import QuizSession
from assess_core.storage import MemoryStorage, is_banner_collapsed, set_banner_collapsed
from assess_core.theme import DEFAULT_THEME, Theme

from tests.conftest import build_deck, build_mcq, build_quiz

FOOTER = f'<a href="{ATTRIBUTION_URL}"'

THEMES = [
    DEFAULT_THEME,
    Theme(dark=True),
    Theme(show_progress=False, show_score=False, show_explanations=False, border_radius=0),
]


def _surfaces(theme: Theme) -> dict[str, str]:
    sess = QuizSession(build_quiz(2), mode="exam", passing_score=50)
    out = {"question": render_view(sess.view(), "Quiz", theme)}
    sess.select_option(0)
    sess.confirm_answer()
    out["answered"] = render_view(sess.view(), "Quiz", theme)
    sess.submit()
    out["results"] = render_view(sess.view(), "Quiz", theme)
    sess.enter_review()
    out["review"] = render_view(sess.view(), "Quiz", theme, review=build_review(sess.state))
    deck = QuizSession(build_deck(1), mode="practice")
    out["card"] = render_view(deck.view(), "Deck", theme, has_cards=True)
    out["fallback"] = render_fallback(None, theme)
    return out


@pytest.mark.parametrize("theme", THEMES)
def test_every_surface_carries_the_attribution_link(theme):
    for name, html in _surfaces(theme).items():
        assert FOOTER in html, f"{name} is missing the attribution footer"
        assert "Powered by EnterMedSchool.org" in html, name


def test_fallback_for_bad_token():
    err = decode("not-valid-base64!!")
    html = render_fallback(err)
    assert FALLBACK_HEADLINE in html
    assert FALLBACK_MESSAGE in html
    assert 'data-reason="malformed_encoding"' in html
    assert FOOTER in html


def test_content_is_escaped():
    sess = QuizSession([build_mcq("<img src=x onerror=alert(1)>")], mode="practice")
    html = render_view(sess.view(), "<script>t</script>")
    assert "<img src=x" not in html
    assert "<script>t" not in html
    assert "&lt;img" in html


def test_explanation_appears_only_after_answer():
    sess = QuizSession(build_quiz(1), mode="exam")
    assert "Because 0" not in render_view(sess.view())
    sess.select_option(1)
    assert "Because 0" not in render_view(sess.view())
    sess.confirm_answer()
    html = render_view(sess.view())
    assert "Because 0" in html
    assert 'class="ems-option selected incorrect"' in html
    assert 'class="ems-option correct"' in html
    hidden = render_view(sess.view(), theme=Theme(show_explanations=False))
    assert "Because 0" not in hidden


def test_pass_fail_only_with_threshold():
    sess = QuizSession(build_quiz(2), mode="exam")
    sess.submit()
    html = render_view(sess.view())
    assert "Passed!" not in html and "Not Passed" not in html
    assert "0%" in html

    sess = QuizSession(build_quiz(2), mode="exam", passing_score=50)
    sess.submit()
    assert "Not Passed" in render_view(sess.view())


def test_exam_controls(scheduler):
    sess = QuizSession(build_quiz(2), mode="exam", time_limit_min=2, scheduler=scheduler)
    html = render_view(sess.view())
    assert 'data-intent="confirm"' in html and " disabled" in html
    assert '<span class="ems-timer">02:00</span>' in html
    assert 'data-intent="submit"' in html
    sess.close()


def test_card_faces():
    sess = QuizSession(build_deck(1), mode="practice")
    assert "Term 0" in render_view(sess.view())
    assert "Definition 0" not in render_view(sess.view())
    html = render_view(sess.flip())
    assert "Definition 0" in html and 'data-intent="rate-knew"' in html


def test_banner_state_from_storage():
    port = MemoryStorage()
    sess = QuizSession(build_quiz(1), mode="practice")
    html = render_view(sess.view(), banner_collapsed=is_banner_collapsed(port))
    assert 'data-intent="collapse-banner"' in html
    set_banner_collapsed(port, True)
    assert port.snapshot() == {"ems-attr-banner-collapsed": "true"}
    html = render_view(sess.view(), banner_collapsed=is_banner_collapsed(port))
    assert 'data-intent="expand-banner"' in html
    assert FOOTER in html, "collapsing the banner never hides the footer"
    set_banner_collapsed(port, False)
    assert port.snapshot() == {}
