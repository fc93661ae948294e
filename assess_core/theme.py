from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional
import re

from .types import Mode

_HEX_RX = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

RADIUS_MAX = 48


@dataclass(frozen=True)
class Theme:
    bg: str = "#ffffff"
    accent: str = "#6C5CE7"
    text_color: str = "#1a1a2e"
    font_family: str = "system"
    border_radius: int = 12
    dark: bool = False
    mode: Mode = "practice"
    show_progress: bool = True
    show_score: bool = True
    show_explanations: bool = True

    @property
    def surface(self) -> str:
        return "#1a1a2e" if self.dark else self.bg

    @property
    def ink(self) -> str:
        return "#e2e8f0" if self.dark else self.text_color

    @property
    def css_font(self) -> str:
        return "system-ui, sans-serif" if self.font_family == "system" else self.font_family

    def to_dict(self) -> Dict[str, object]:
        return {
            "bg": self.bg,
            "accent": self.accent,
            "textColor": self.text_color,
            "fontFamily": self.font_family,
            "borderRadius": self.border_radius,
            "theme": "dark" if self.dark else "light",
            "mode": self.mode,
            "showProgress": self.show_progress,
            "showScore": self.show_score,
            "showExplanations": self.show_explanations,
        }


DEFAULT_THEME = Theme()


def _hex(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    m = _HEX_RX.match(raw.strip())
    if not m:
        return None
    return "#" + m.group(1)


def _int(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


def _flag(raw: Any) -> Optional[bool]:
    if isinstance(raw, bool):
        return raw
    if not isinstance(raw, str):
        return None
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return None


def _mode(raw: Any) -> Optional[Mode]:
    if not isinstance(raw, str):
        return None
    v = raw.strip().lower()
    if v == "practice":
        return "practice"
    # "quiz" is what the older MCQ-maker embeds called exam mode
    if v in ("exam", "quiz"):
        return "exam"
    return None


def _font(raw: Any) -> Optional[str]:
    if not isinstance(raw, str) or not raw.strip():
        return None
    v = raw.strip()
    # keep it usable inside a style attribute
    if any(c in v for c in '<>;"{}'):
        return None
    return v[:64]


def _apply(base: Theme, values: Dict[str, Any]) -> Theme:
    patch: Dict[str, Any] = {}
    for key, parse in (("bg", _hex), ("accent", _hex), ("text_color", _hex)):
        v = parse(values.get(key))
        if v is not None:
            patch[key] = v
    r = _int(values.get("border_radius"))
    if r is not None:
        patch["border_radius"] = max(0, min(RADIUS_MAX, r))
    f = _font(values.get("font_family"))
    if f is not None:
        patch["font_family"] = f
    scheme = values.get("scheme")
    if isinstance(scheme, str) and scheme.strip().lower() in ("light", "dark"):
        patch["dark"] = scheme.strip().lower() == "dark"
    m = _mode(values.get("mode"))
    if m is not None:
        patch["mode"] = m
    for key in ("show_progress", "show_score", "show_explanations"):
        b = _flag(values.get(key))
        if b is not None:
            patch[key] = b
    return replace(base, **patch) if patch else base


def theme_from_query(params: Mapping[str, Any], base: Theme = DEFAULT_THEME) -> Theme:
    """`?bg=<hex>&accent=<hex>&radius=<int>&theme=light|dark` (+ mode/progress/score/explanations)."""

    return _apply(base, {
        "bg": params.get("bg"),
        "accent": params.get("accent"),
        "text_color": params.get("text"),
        "font_family": params.get("font"),
        "border_radius": params.get("radius"),
        "scheme": params.get("theme"),
        "mode": params.get("mode"),
        "show_progress": params.get("progress"),
        "show_score": params.get("score"),
        "show_explanations": params.get("explanations"),
    })


def theme_from_dict(raw: Any, base: Theme = DEFAULT_THEME) -> Theme:
    """Theme objects as the MCQ-maker embeds stored them (camelCase keys)."""

    if not isinstance(raw, dict):
        return base
    return _apply(base, {
        "bg": raw.get("bg"),
        "accent": raw.get("accent"),
        "text_color": raw.get("textColor"),
        "font_family": raw.get("fontFamily"),
        "border_radius": raw.get("borderRadius"),
        "scheme": raw.get("theme"),
        "mode": raw.get("mode"),
        "show_progress": raw.get("showProgress"),
        "show_score": raw.get("showScore"),
        "show_explanations": raw.get("showExplanations"),
    })


def theme_to_query(theme: Theme) -> Dict[str, str]:
    """Only the fields that differ from the defaults, to keep embed URLs short."""

    out: Dict[str, str] = {}
    d = DEFAULT_THEME
    if theme.bg != d.bg: out["bg"] = theme.bg.lstrip("#")
    if theme.accent != d.accent: out["accent"] = theme.accent.lstrip("#")
    if theme.text_color != d.text_color: out["text"] = theme.text_color.lstrip("#")
    if theme.font_family != d.font_family: out["font"] = theme.font_family
    if theme.border_radius != d.border_radius: out["radius"] = str(theme.border_radius)
    if theme.dark != d.dark: out["theme"] = "dark" if theme.dark else "light"
    if theme.mode != d.mode: out["mode"] = theme.mode
    if theme.show_progress != d.show_progress: out["progress"] = "1" if theme.show_progress else "0"
    if theme.show_score != d.show_score: out["score"] = "1" if theme.show_score else "0"
    if theme.show_explanations != d.show_explanations: out["explanations"] = "1" if theme.show_explanations else "0"
    return out
