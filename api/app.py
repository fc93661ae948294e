from __future__ import annotations
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
import logging, os, uuid, typing as t

from assess_core.codec import decode, from_wire, encode
from assess_core.config import DEBUG_TRACE, MAX_EMBED_CARDS, MAX_EMBED_QUESTIONS, load_config
from assess_core.embed import build_payload, embed_url, iframe_code, is_card_deck
from assess_core.render import render_fallback, render_view
from assess_core.review import build_review, review_summary
from assess_core.session import QuizSession
from assess_core.storage import is_banner_collapsed, set_banner_collapsed
from assess_core.theme import DEFAULT_THEME, Theme, theme_from_dict, theme_from_query
from assess_core.types import DecodeError, ViewState, item_to_dict
from .storage import client_count, storage_for

log = logging.getLogger(__name__)
if DEBUG_TRACE:
    logging.basicConfig(level=logging.DEBUG, format="[%(levelname)s] %(name)s: %(message)s")

SESS: dict[str, QuizSession] = {}
SESSION_INFO: dict[str, dict[str, t.Any]] = {}

app = FastAPI(title="Quiz Embed API")


@app.get("/")
def root():
    return {"status": "ok", "service": "quiz-embed-api"}


ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)


# ---- Schemas ----
class EncodeReq(BaseModel):
    title: str
    items: list[dict[str, t.Any]]
    theme: dict[str, t.Any] | None = None
    limit: int | None = None
    width: str = "100%"
    height: str = "560"


class DecodeReq(BaseModel):
    token: str


class StartReq(BaseModel):
    token: str
    mode: str | None = None            # "practice" | "exam"; falls back to theme mode
    time_limit_min: float | None = None
    passing_score: float | None = None
    shuffle: bool = False
    seed: int | None = None
    query: dict[str, str] | None = None  # theming query parameters of the embed URL
    client_id: str | None = None


class IntentReq(BaseModel):
    intent: str
    option: int | None = None


class KeyReq(BaseModel):
    key: str


class BannerReq(BaseModel):
    collapsed: bool


# ---- Helpers ----
def _get(sid: str) -> QuizSession:
    sess = SESS.get(sid)
    if not sess:
        raise HTTPException(404, "session not found")
    return sess


def _theme(sid: str) -> Theme:
    return SESSION_INFO.get(sid, {}).get("theme", DEFAULT_THEME)


def _serialize_view(view: ViewState) -> dict[str, t.Any]:
    item = None
    if view.item is not None:
        item = item_to_dict(view.item)
        if not view.revealed:
            # the key and explanation stay hidden until the answer is revealed
            for opt in item.get("options", []):
                opt.pop("isCorrect", None)
            item.pop("explanation", None)
            if view.item.is_card and not view.flipped:
                item.pop("back", None)
    return {
        "status": view.status,
        "mode": view.mode,
        "index": view.index,
        "total": view.total,
        "item": item,
        "progress": view.progress,
        "selected": view.selected,
        "answered": view.answered,
        "revealed": view.revealed,
        "flipped": view.flipped,
        "canGoPrev": view.can_go_prev,
        "canGoNext": view.can_go_next,
        "canConfirm": view.can_confirm,
        "canSubmit": view.can_submit,
        "answeredCount": view.answered_count,
        "score": view.score.to_dict() if view.score is not None else None,
        "remainingSec": view.remaining_sec,
        "timer": view.timer_display,
        "noop": ({"event": view.last_noop.event, "reason": view.last_noop.reason}
                 if view.last_noop is not None else None),
    }


def _render(sid: str) -> str:
    sess = _get(sid)
    info = SESSION_INFO.get(sid, {})
    view = sess.view()
    review = build_review(sess.state) if view.status == "reviewing" else None
    port = storage_for(info.get("client_id"))
    collapsed = is_banner_collapsed(port) if port is not None else None
    return render_view(
        view,
        title=sess.title,
        theme=_theme(sid),
        review=review,
        has_cards=any(it.is_card for it in sess.state.items),
        banner_collapsed=collapsed,
    )


# ---- Health ----
@app.get("/health")
def health():
    return {
        "sessions": len(SESS),
        "clients": client_count(),
        "max_questions": MAX_EMBED_QUESTIONS,
        "max_cards": MAX_EMBED_CARDS,
        "site_url": load_config().get("SITE_URL"),
    }


# ---- Embed code ----
@app.post("/embed/encode")
def embed_encode(req: EncodeReq):
    parsed = from_wire({"title": req.title, "items": req.items})
    if isinstance(parsed, DecodeError):
        raise HTTPException(422, {"reason": parsed.reason, "detail": parsed.detail})
    payload = build_payload(parsed.title, parsed.items, req.limit)
    theme = theme_from_dict(req.theme) if req.theme else None
    url = embed_url(payload, theme, site_url=load_config().get("SITE_URL"))
    return {
        "token": encode(payload),
        "url": url,
        "iframe": iframe_code(payload.title, url, req.width, req.height, theme or DEFAULT_THEME),
        "count": len(payload.items),
        "capped": len(payload.items) < len(parsed.items),
    }


@app.post("/embed/decode")
def embed_decode(req: DecodeReq):
    res = decode(req.token)
    if isinstance(res, DecodeError):
        return {"ok": False, "reason": res.reason, "detail": res.detail}
    return {
        "ok": True,
        "title": res.title,
        "kind": "cards" if is_card_deck(res.items) else "questions",
        "items": [item_to_dict(it) for it in res.items],
    }


_SHELL = """<!DOCTYPE html><html><head><meta charset="utf-8"><title>Quiz</title></head>
<body><div id="ems-root"></div><script>
(function () {
  var root = document.getElementById("ems-root");
  var query = Object.fromEntries(new URLSearchParams(window.location.search));
  var sid = null;
  function paint() {
    fetch("/sessions/" + sid + "/html").then(function (r) { return r.json(); })
      .then(function (d) { root.innerHTML = d.html; });
  }
  function post(path, body) {
    return fetch(path, {method: "POST", headers: {"Content-Type": "application/json"},
                        body: JSON.stringify(body)}).then(function (r) { return r.json(); });
  }
  post("/sessions", {token: window.location.hash.slice(1), query: query}).then(function (d) {
    if (!d.ok) { root.innerHTML = d.html; return; }
    sid = d.session_id; paint();
    setInterval(function () { if (d.view.timer) paint(); }, 1000);
  });
  root.addEventListener("click", function (e) {
    var b = e.target.closest("[data-intent]");
    if (!b || !sid) return;
    var opt = b.getAttribute("data-option");
    post("/sessions/" + sid + "/intent",
         {intent: b.getAttribute("data-intent"), option: opt === null ? null : Number(opt)}).then(paint);
  });
  window.addEventListener("keydown", function (e) {
    if (!sid) return;
    post("/sessions/" + sid + "/key", {key: e.key}).then(paint);
  });
})();
</script></body></html>"""


@app.get("/embed/questions", response_class=HTMLResponse)
@app.get("/embed/flashcards-viewer", response_class=HTMLResponse)
def embed_shell():
    # the payload lives in the fragment and never reaches this handler
    return HTMLResponse(_SHELL)


# ---- Sessions ----
@app.post("/sessions")
def start(req: StartReq):
    theme = theme_from_query(req.query or {})
    res = decode(req.token)
    if isinstance(res, DecodeError):
        return {"ok": False, "reason": res.reason, "html": render_fallback(res, theme)}
    cfg = load_config()
    mode = req.mode if req.mode in ("practice", "exam") else theme.mode
    time_limit = req.time_limit_min if req.time_limit_min is not None else cfg.get("TIME_LIMIT_MIN")
    passing = req.passing_score if req.passing_score is not None else cfg.get("PASSING_SCORE")
    seed = req.seed if req.seed is not None else cfg.get("SEED")
    sess = QuizSession(
        res.items,
        mode=mode,
        title=res.title,
        time_limit_min=time_limit,
        passing_score=passing,
        shuffle=req.shuffle,
        seed=seed,
    )
    sid = str(uuid.uuid4())
    SESS[sid] = sess
    SESSION_INFO[sid] = {"theme": theme, "client_id": req.client_id}
    log.info("session %s started: %d items, mode=%s", sid, len(res.items), mode)
    return {"ok": True, "session_id": sid, "title": res.title, "view": _serialize_view(sess.view())}


@app.get("/sessions/{sid}/view")
def get_view(sid: str):
    return _serialize_view(_get(sid).view())


_INTENTS: dict[str, t.Callable[[QuizSession, IntentReq], ViewState]] = {
    "select": lambda s, r: s.select_option(r.option if r.option is not None else -1),
    "confirm": lambda s, r: s.confirm_answer(),
    "next": lambda s, r: s.go_next(),
    "prev": lambda s, r: s.go_prev(),
    "submit": lambda s, r: s.submit(),
    "restart": lambda s, r: s.restart(),
    "review": lambda s, r: s.enter_review(),
    "back-to-results": lambda s, r: s.back_to_results(),
    "flip": lambda s, r: s.flip(),
    "rate-knew": lambda s, r: s.rate_card(True),
    "rate-again": lambda s, r: s.rate_card(False),
    "study-missed": lambda s, r: s.study_missed(),
}


@app.post("/sessions/{sid}/intent")
def intent(sid: str, req: IntentReq):
    sess = _get(sid)
    if req.intent in ("collapse-banner", "expand-banner"):
        port = storage_for(SESSION_INFO.get(sid, {}).get("client_id"))
        set_banner_collapsed(port, req.intent == "collapse-banner")
        return _serialize_view(sess.view())
    fn = _INTENTS.get(req.intent)
    if fn is None:
        raise HTTPException(400, f"unknown intent {req.intent!r}")
    return _serialize_view(fn(sess, req))


@app.post("/sessions/{sid}/key")
def key(sid: str, req: KeyReq):
    return _serialize_view(_get(sid).press_key(req.key))


@app.get("/sessions/{sid}/review")
def review(sid: str):
    sess = _get(sid)
    entries = build_review(sess.state)
    if not entries:
        raise HTTPException(409, "session is not finished")
    view = sess.view()
    return {
        "score": view.score.to_dict() if view.score is not None else None,
        "summary": review_summary(entries),
        "entries": [e.to_dict() for e in entries],
    }


@app.get("/sessions/{sid}/html")
def session_html(sid: str):
    return {"html": _render(sid)}


@app.post("/sessions/{sid}/banner")
def banner(sid: str, req: BannerReq):
    _get(sid)
    port = storage_for(SESSION_INFO.get(sid, {}).get("client_id"))
    if port is None:
        raise HTTPException(400, "no client id for this session")
    set_banner_collapsed(port, req.collapsed)
    return {"ok": True, "collapsed": is_banner_collapsed(port)}


@app.delete("/sessions/{sid}")
def close_session(sid: str):
    sess = SESS.pop(sid, None)
    SESSION_INFO.pop(sid, None)
    if not sess:
        raise HTTPException(404, "session not found")
    sess.close()
    return {"ok": True}


@app.get("/fallback", response_class=HTMLResponse)
def fallback(request: Request, reason: str | None = Query(None)):
    err = DecodeError(reason=reason) if reason in (
        "malformed_encoding", "invalid_json", "missing_title", "empty_items", "invalid_item"
    ) else None
    return HTMLResponse(render_fallback(err, theme_from_query(dict(request.query_params))))


def main() -> None:
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    main()
