from __future__ import annotations
from html import escape
from typing import List, Optional

from .config import ATTRIBUTION_TEXT, ATTRIBUTION_URL
from .review import ReviewEntry
from .session import COMPLETED, REVIEWING
from .theme import DEFAULT_THEME, Theme
from .types import DecodeError, Score, ViewState, option_label

FALLBACK_HEADLINE = "Could not load quiz"
FALLBACK_MESSAGE = "Invalid or missing quiz data in URL. Please check the embed link."


def _e(x: object) -> str:
    return escape("" if x is None else str(x), quote=True)


def attribution_footer(theme: Theme = DEFAULT_THEME) -> str:
    # fixed product requirement: no theme or query flag can remove this
    return (
        '<footer class="ems-attribution">'
        f'<a href="{ATTRIBUTION_URL}" target="_blank" rel="dofollow noopener noreferrer" '
        f'style="color:{_e(theme.accent)}">Powered by {ATTRIBUTION_TEXT}</a>'
        "</footer>"
    )


def _banner(collapsed: bool) -> str:
    if collapsed:
        return '<div class="ems-banner collapsed" data-intent="expand-banner">Credits</div>'
    return (
        '<div class="ems-banner" data-intent="collapse-banner">'
        "Free to use with attribution. Please keep the credit link visible."
        "</div>"
    )


def _style(theme: Theme) -> str:
    return (
        f"background:{_e(theme.surface)};color:{_e(theme.ink)};"
        f"font-family:{_e(theme.css_font)};border-radius:{int(theme.border_radius)}px;"
        f"--ems-accent:{_e(theme.accent)};"
    )


def render_page(body: str, theme: Theme = DEFAULT_THEME, title: str = "", banner_collapsed: Optional[bool] = None) -> str:
    banner = _banner(banner_collapsed) if banner_collapsed is not None else ""
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{_e(title or ATTRIBUTION_TEXT)}</title></head>"
        f'<body><div class="ems-embed{" dark" if theme.dark else ""}" style="{_style(theme)}">'
        f"{banner}{body}{attribution_footer(theme)}</div></body></html>"
    )


def render_fallback(error: Optional[DecodeError] = None, theme: Theme = DEFAULT_THEME) -> str:
    reason = f' data-reason="{_e(error.reason)}"' if error is not None else ""
    body = (
        f'<div class="ems-fallback"{reason}>'
        f"<p class=\"headline\">{FALLBACK_HEADLINE}</p>"
        f"<p>{FALLBACK_MESSAGE}</p>"
        "</div>"
    )
    return render_page(body, theme)


def _btn(label: str, intent: str, enabled: bool, extra: str = "") -> str:
    dis = "" if enabled else " disabled"
    return f'<button data-intent="{intent}"{extra}{dis}>{_e(label)}</button>'


def _score_line(score: Score) -> str:
    return f"{score.correct_points:g} out of {score.total_points:g} points"


def _header(view: ViewState, title: str, theme: Theme) -> str:
    parts = ['<div class="ems-top">']
    if title:
        parts.append(f"<h2>{_e(title)}</h2>")
    if view.timer_display:
        parts.append(f'<span class="ems-timer">{_e(view.timer_display)}</span>')
    noun = "Card" if view.item is not None and view.item.is_card else "Question"
    parts.append(f'<span class="ems-counter">{noun} {view.index + 1} of {view.total}</span>')
    parts.append("</div>")
    if theme.show_progress:
        pct = round(view.progress * 100, 1)
        parts.append(f'<div class="ems-progress"><div style="width:{pct}%"></div></div>')
    return "".join(parts)


def _options(view: ViewState) -> str:
    it = view.item
    assert it is not None
    rows: List[str] = []
    for idx, opt in enumerate(it.options):
        cls = ["ems-option"]
        if view.selected == idx:
            cls.append("selected")
        if view.revealed:
            if opt.is_correct:
                cls.append("correct")
            elif view.selected == idx:
                cls.append("incorrect")
        enabled = not view.answered and view.status not in (COMPLETED, REVIEWING)
        dis = "" if enabled else " disabled"
        rows.append(
            f'<button class="{" ".join(cls)}" data-intent="select" data-option="{idx}"{dis}>'
            f'<span class="letter">{_e(opt.label or option_label(idx))}</span>'
            f"<span>{_e(opt.body)}</span></button>"
        )
    return '<div class="ems-options">' + "".join(rows) + "</div>"


def _card(view: ViewState) -> str:
    it = view.item
    assert it is not None
    face = it.back if view.flipped else it.front
    side = "back" if view.flipped else "front"
    out = [f'<button class="ems-card {side}" data-intent="flip"><p>{_e(face)}</p></button>']
    if it.hint and not view.flipped:
        out.append(f'<p class="ems-hint">{_e(it.hint)}</p>')
    if view.flipped and not view.answered and view.status != REVIEWING:
        out.append(
            '<div class="ems-rate">'
            + _btn("Knew it", "rate-knew", True)
            + _btn("Study again", "rate-again", True)
            + "</div>"
        )
    return "".join(out)


def _question_view(view: ViewState, title: str, theme: Theme) -> str:
    it = view.item
    assert it is not None
    parts = [_header(view, title, theme)]
    if it.is_card:
        parts.append(_card(view))
    else:
        parts.append(f'<p class="ems-prompt">{view.index + 1}. {_e(it.prompt)}</p>')
        parts.append(_options(view))
    if view.revealed and theme.show_explanations and it.explanation:
        parts.append(f'<div class="ems-explanation"><b>Explanation: </b>{_e(it.explanation)}</div>')
    nav = ['<div class="ems-nav">', _btn("Previous", "prev", view.can_go_prev)]
    if view.status == REVIEWING:
        nav.append(_btn("Next", "next", view.can_go_next))
        nav.append(_btn("Back to results", "back-to-results", True))
    elif view.mode == "exam" and not view.answered and not it.is_card:
        nav.append(_btn("Check Answer", "confirm", view.can_confirm))
    else:
        label = "Finish" if view.index >= view.total - 1 else "Next"
        nav.append(_btn(label, "next", view.can_go_next))
    if view.can_submit and view.status != REVIEWING:
        nav.append(_btn("Submit", "submit", True))
    nav.append("</div>")
    parts.append("".join(nav))
    return '<div class="ems-question">' + "".join(parts) + "</div>"


def _results_view(view: ViewState, theme: Theme, has_cards: bool) -> str:
    sc = view.score
    assert sc is not None
    if sc.passed is True:
        head = "Passed!"
    elif sc.passed is False:
        head = "Not Passed"
    else:
        head = "Results"
    parts = ['<div class="ems-results">']
    if theme.show_score:
        parts.append(f'<div class="ems-score">{sc.percentage}%</div>')
        parts.append(f"<h2>{head}</h2>")
        parts.append(f"<p>{_score_line(sc)}</p>")
    else:
        parts.append("<h2>Complete!</h2>")
    parts.append(_btn("Review Answers", "review", True))
    parts.append(_btn("Restart", "restart", True))
    if has_cards:
        parts.append(_btn("Study missed", "study-missed", True))
    parts.append("</div>")
    return "".join(parts)


def render_review(entries: List[ReviewEntry], theme: Theme = DEFAULT_THEME) -> str:
    blocks: List[str] = []
    for e in entries:
        rows: List[str] = []
        for j, opt in enumerate(e.options):
            mark = ""
            if j == e.correct_option or opt.is_correct:
                mark = '<span class="tag correct">correct</span>'
            elif e.selected == j:
                mark = '<span class="tag yours">your answer</span>'
            rows.append(f"<li>{_e(opt.label)} {_e(opt.body)} {mark}</li>")
        status = "correct" if e.correct else ("unanswered" if not e.answered else "incorrect")
        extra = ""
        if e.back:
            extra += f'<p class="ems-back">{_e(e.back)}</p>'
        if theme.show_explanations and e.explanation:
            extra += f'<div class="ems-explanation">{_e(e.explanation)}</div>'
        blocks.append(
            f'<div class="ems-review-item {status}" data-index="{e.index}">'
            f"<p>{e.index + 1}. {_e(e.prompt)}</p><ul>{''.join(rows)}</ul>{extra}</div>"
        )
    return '<div class="ems-review">' + "".join(blocks) + "</div>"


def render_view(
    view: ViewState,
    title: str = "",
    theme: Theme = DEFAULT_THEME,
    review: Optional[List[ReviewEntry]] = None,
    has_cards: bool = False,
    banner_collapsed: Optional[bool] = None,
) -> str:
    if view.status == COMPLETED:
        body = _results_view(view, theme, has_cards)
    else:
        body = _question_view(view, title, theme)
        if view.status == REVIEWING and review is not None:
            body += render_review(review, theme)
    return render_page(body, theme, title, banner_collapsed)
