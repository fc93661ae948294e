from __future__ import annotations
import os, json, pathlib


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# embed caps: URLs pasted into chat apps get cut off somewhere past ~8k chars
MAX_EMBED_QUESTIONS: int = 20
MAX_EMBED_CARDS: int = 30

MIN_OPTIONS: int = 2
MAX_OPTIONS: int = 6

SITE_URL: str = "https://entermedschool.org"
EMBED_QUESTIONS_PATH: str = "/embed/questions"
EMBED_CARDS_PATH: str = "/embed/flashcards-viewer"
ATTRIBUTION_URL: str = "https://entermedschool.org"
ATTRIBUTION_TEXT: str = "EnterMedSchool.org"

IFRAME_WIDTH: str = "100%"
IFRAME_HEIGHT: str = "560"

TIMER_TICK_SEC: float = 1.0

DEBUG_TRACE: bool = False
DEBUG_SEED: int | None = None

# // env overrides for staging/ops
MAX_EMBED_QUESTIONS = _env_int("MAX_EMBED_QUESTIONS", MAX_EMBED_QUESTIONS)
MAX_EMBED_CARDS = _env_int("MAX_EMBED_CARDS", MAX_EMBED_CARDS)
SITE_URL = _env_str("SITE_URL", SITE_URL).rstrip("/")
TIMER_TICK_SEC = _env_float("TIMER_TICK_SEC", TIMER_TICK_SEC)
DEBUG_TRACE = _env_bool("DEBUG_TRACE", False)
_seed_raw = os.getenv("DEBUG_SEED")
DEBUG_SEED = int(_seed_raw) if _seed_raw and _seed_raw.strip().lstrip("-").isdigit() else None


def load_config() -> dict:
    cfg = {}
    p = pathlib.Path("config.json")
    if p.exists():
        try:
            cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            cfg = {}
    if not isinstance(cfg, dict):
        cfg = {}
    e = os.environ
    if e.get("SITE_URL"): cfg["SITE_URL"] = e.get("SITE_URL").rstrip("/")
    if e.get("PASSING_SCORE"): cfg["PASSING_SCORE"] = _env_int("PASSING_SCORE", 0)
    if e.get("TIME_LIMIT_MIN"): cfg["TIME_LIMIT_MIN"] = _env_int("TIME_LIMIT_MIN", 0)
    if e.get("SEED"): cfg["SEED"] = _env_int("SEED", 0)
    cfg.setdefault("SITE_URL", SITE_URL)
    cfg.setdefault("SEED", DEBUG_SEED)
    return cfg
