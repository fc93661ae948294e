# assess_core/session.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple, Type, Union
import logging, random, threading, time

from .types import Answer, Item, Mode, Score, TransitionNoOp, ViewState
from .scoring import option_is_correct, score
from .timer import Scheduler, TimerController
from .validators import log_content_defects
from .config import DEBUG_TRACE, DEBUG_SEED


log = logging.getLogger(__name__)

IN_PROGRESS = "in_progress"
COMPLETED = "completed"
REVIEWING = "reviewing"


def _emit_trace(event: str, before: "SessionState", after: "SessionState", noop: Optional[str]) -> None:
    if not DEBUG_TRACE:
        return
    log.info(
        "trace event=%s status=%s->%s index=%s->%s answered=%s noop=%s",
        event, before.status, after.status, before.index, after.index,
        len(after.answers), noop or "-",
    )


def _frozen(d: Mapping[int, Answer]) -> Mapping[int, Answer]:
    return MappingProxyType(dict(d))


@dataclass(frozen=True)
class SessionState:
    items: Tuple[Item, ...]
    mode: Mode = "exam"
    status: str = IN_PROGRESS
    index: int = 0
    answers: Mapping[int, Answer] = field(default_factory=lambda: MappingProxyType({}))
    selected: Optional[int] = None
    flipped: bool = False
    deadline_epoch_ms: Optional[int] = None

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def current(self) -> Optional[Item]:
        if 0 <= self.index < len(self.items):
            return self.items[self.index]
        return None

    @property
    def current_answer(self) -> Optional[Answer]:
        return self.answers.get(self.index)

    @property
    def all_answered(self) -> bool:
        return len(self.answers) >= len(self.items)


def initial_state(items: Sequence[Item], mode: Mode = "exam") -> SessionState:
    return SessionState(items=tuple(items), mode=mode)


# ---- Events ----
@dataclass(frozen=True)
class SelectOption:
    item_index: int
    option: int

@dataclass(frozen=True)
class ConfirmAnswer: pass

@dataclass(frozen=True)
class Advance: pass

@dataclass(frozen=True)
class Retreat: pass

@dataclass(frozen=True)
class Submit: pass

@dataclass(frozen=True)
class Expire: pass

@dataclass(frozen=True)
class Restart:
    items: Optional[Tuple[Item, ...]] = None

@dataclass(frozen=True)
class EnterReview: pass

@dataclass(frozen=True)
class BackToResults: pass

@dataclass(frozen=True)
class Flip: pass

Event = Union[SelectOption, ConfirmAnswer, Advance, Retreat, Submit, Expire,
              Restart, EnterReview, BackToResults, Flip]

# a handler returns the next state, or a string naming why it was ignored
Handler = Callable[[SessionState, object], Union[SessionState, str]]


# ---- Handlers ----
def _record(state: SessionState, option: int) -> SessionState:
    item = state.items[state.index]
    ans = Answer(item_index=state.index, selected=option, correct=option_is_correct(item, option))
    answers = dict(state.answers)
    answers[state.index] = ans
    return replace(state, answers=_frozen(answers), selected=option)


def _check_select(state: SessionState, ev: SelectOption) -> Optional[str]:
    if state.status != IN_PROGRESS:
        return "answers are frozen"
    if ev.item_index != state.index:
        return "not the current item"
    item = state.current
    if item is None or not (0 <= ev.option < item.option_count):
        return "option out of range"
    if state.index in state.answers:
        return "item already answered"
    return None


def _select_instant(state: SessionState, ev: SelectOption) -> Union[SessionState, str]:
    why = _check_select(state, ev)
    if why:
        return why
    return _record(state, ev.option)


def _select_pending(state: SessionState, ev: SelectOption) -> Union[SessionState, str]:
    why = _check_select(state, ev)
    if why:
        return why
    if state.items[state.index].is_card:
        # self-rating is the answer; there is nothing to confirm
        return _record(state, ev.option)
    if state.selected == ev.option:
        return "option already selected"
    return replace(state, selected=ev.option)


def _confirm(state: SessionState, ev: ConfirmAnswer) -> Union[SessionState, str]:
    if state.status != IN_PROGRESS:
        return "answers are frozen"
    if state.index in state.answers:
        return "item already answered"
    if state.selected is None:
        return "nothing selected"
    return _record(state, state.selected)


def _confirm_instant_mode(state: SessionState, ev: ConfirmAnswer) -> str:
    return "practice mode records answers on selection"


def _move(state: SessionState, index: int) -> SessionState:
    prev = state.answers.get(index)
    return replace(state, index=index, selected=(prev.selected if prev else None), flipped=False)


def _advance(state: SessionState, ev: Advance) -> Union[SessionState, str]:
    last = state.total - 1
    if state.status == REVIEWING:
        if state.index >= last:
            return "already at last item"
        return _move(state, state.index + 1)
    if state.status != IN_PROGRESS:
        return "session is not in progress"
    if state.index not in state.answers:
        return "current item is unanswered"
    if state.index >= last:
        if state.all_answered:
            return replace(state, status=COMPLETED, selected=None, flipped=False)
        return "unanswered items remain"
    return _move(state, state.index + 1)


def _retreat(state: SessionState, ev: Retreat) -> Union[SessionState, str]:
    if state.status not in (IN_PROGRESS, REVIEWING):
        return "session is not navigable"
    if state.index <= 0:
        return "already at first item"
    return _move(state, state.index - 1)


def _complete(state: SessionState, ev: object) -> Union[SessionState, str]:
    if state.status != IN_PROGRESS:
        return "session is not in progress"
    return replace(state, status=COMPLETED, selected=None, flipped=False)


def _restart(state: SessionState, ev: Restart) -> Union[SessionState, str]:
    if state.status not in (COMPLETED, REVIEWING):
        return "restart is only available after completion"
    items = ev.items if ev.items else state.items
    return initial_state(items, state.mode)


def _enter_review(state: SessionState, ev: EnterReview) -> Union[SessionState, str]:
    if state.status != COMPLETED:
        return "review needs a completed session"
    return _move(replace(state, status=REVIEWING), 0)


def _back_to_results(state: SessionState, ev: BackToResults) -> Union[SessionState, str]:
    if state.status != REVIEWING:
        return "not reviewing"
    return replace(state, status=COMPLETED, index=0, selected=None, flipped=False)


def _flip(state: SessionState, ev: Flip) -> Union[SessionState, str]:
    if state.status not in (IN_PROGRESS, REVIEWING):
        return "session is not navigable"
    item = state.current
    if item is None or not item.is_card:
        return "only flashcards flip"
    return replace(state, flipped=not state.flipped)


_SHARED: Dict[Type, Handler] = {
    Advance: _advance,
    Retreat: _retreat,
    Submit: _complete,
    Expire: _complete,
    Restart: _restart,
    EnterReview: _enter_review,
    BackToResults: _back_to_results,
    Flip: _flip,
}

_TABLE: Dict[Tuple[str, Type], Handler] = {}
for _mode in ("practice", "exam"):
    for _ev, _h in _SHARED.items():
        _TABLE[(_mode, _ev)] = _h
_TABLE[("practice", SelectOption)] = _select_instant
_TABLE[("practice", ConfirmAnswer)] = _confirm_instant_mode
_TABLE[("exam", SelectOption)] = _select_pending
_TABLE[("exam", ConfirmAnswer)] = _confirm


def step(state: SessionState, event: object) -> Tuple[SessionState, Optional[TransitionNoOp]]:
    """Apply one event. Invalid events leave the state untouched and report why."""

    name = type(event).__name__
    handler = _TABLE.get((state.mode, type(event)))
    if handler is None:
        out: Union[SessionState, str] = "unknown event"
    else:
        out = handler(state, event)
    if isinstance(out, str):
        _emit_trace(name, state, state, out)
        log.debug("no-op %s: %s", name, out)
        return state, TransitionNoOp(event=name, reason=out)
    _emit_trace(name, state, out, None)
    return out, None


def transition(state: SessionState, event: object) -> SessionState:
    """Pure (state, event) -> state. A no-op returns the very same object."""
    return step(state, event)[0]


def explain_noop(state: SessionState, event: object) -> Optional[str]:
    """Why `event` would be ignored in `state`; None when it applies."""
    noop = step(state, event)[1]
    return noop.reason if noop is not None else None


# ---- View ----
def view_of(
    state: SessionState,
    passing_score: Optional[float] = None,
    timer: Optional[TimerController] = None,
    last_noop: Optional[TransitionNoOp] = None,
) -> ViewState:
    total = state.total
    nav = state.status in (IN_PROGRESS, REVIEWING)
    item = state.current if nav else None
    answered = nav and state.index in state.answers
    last = total - 1
    if state.status == REVIEWING:
        can_next = state.index < last
    elif state.status == IN_PROGRESS:
        can_next = answered and (state.index < last or state.all_answered)
    else:
        can_next = False
    can_confirm = (
        state.status == IN_PROGRESS and state.mode == "exam" and not answered
        and state.selected is not None and item is not None and not item.is_card
    )
    sc: Optional[Score] = None
    if state.status in (COMPLETED, REVIEWING):
        sc = score(state.items, state.answers, passing_score)
    progress = 1.0 if state.status == COMPLETED else ((state.index + 1) / total if total else 0.0)
    return ViewState(
        status=state.status,
        mode=state.mode,
        index=state.index,
        total=total,
        item=item,
        progress=progress,
        selected=state.selected if nav else None,
        answered=answered,
        revealed=answered or state.status == REVIEWING,
        flipped=state.flipped,
        can_go_prev=nav and state.index > 0,
        can_go_next=can_next,
        can_confirm=can_confirm,
        can_submit=state.status == IN_PROGRESS and state.mode == "exam",
        score=sc,
        remaining_sec=timer.remaining if timer is not None else None,
        timer_display=timer.formatted if timer is not None else None,
        answered_count=len(state.answers),
        last_noop=last_noop,
    )


class QuizSession:
    """Owns one session: state, optional shuffle RNG and optional timer."""

    def __init__(
        self,
        items: Sequence[Item],
        mode: Mode = "exam",
        *,
        title: str = "",
        time_limit_min: Optional[float] = None,
        time_limit_sec: Optional[int] = None,
        passing_score: Optional[float] = None,
        shuffle: bool = False,
        seed: Optional[int] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.time,
        autostart: bool = True,
    ):
        if not items:
            raise ValueError("a session needs at least one item")
        if mode not in ("practice", "exam"):
            raise ValueError(f"unknown mode {mode!r}")
        self.title = title
        self.mode: Mode = mode
        self.passing_score = passing_score
        self.shuffle = shuffle
        self._all: Tuple[Item, ...] = tuple(items)
        # the items the next round draws from; narrowed by study_missed
        self._pool: Tuple[Item, ...] = self._all
        self._rng = random.Random(seed if seed is not None else DEBUG_SEED)
        self._lock = threading.RLock()
        self.last_noop: Optional[TransitionNoOp] = None
        log_content_defects(self._pool)

        self.state = initial_state(self._ordered(), mode)

        self.timer: Optional[TimerController] = None
        if mode == "exam":
            kw = {"scheduler": scheduler, "clock": clock}
            if time_limit_sec is not None and time_limit_sec > 0:
                self.timer = TimerController(time_limit_sec, self._on_expire, **kw)
            else:
                self.timer = TimerController.from_minutes(time_limit_min, self._on_expire, **kw)
        if self.timer is not None and autostart:
            self._start_timer()

    def _ordered(self) -> Tuple[Item, ...]:
        if not self.shuffle:
            return self._pool
        items = list(self._pool)
        self._rng.shuffle(items)
        return tuple(items)

    def _start_timer(self) -> None:
        assert self.timer is not None
        self.timer.reset()
        self.state = replace(self.state, deadline_epoch_ms=self.timer.deadline_epoch_ms)

    def _on_expire(self) -> None:
        self.dispatch(Expire())

    # ---- core dispatch ----
    def dispatch(self, event: object) -> ViewState:
        with self._lock:
            before = self.state
            after, noop = step(before, event)
            self.state = after
            self.last_noop = noop
            if noop is None and self.timer is not None:
                if isinstance(event, Restart):
                    self._start_timer()
                elif after.status == COMPLETED and before.status == IN_PROGRESS:
                    self.timer.stop()
            return self.view()

    def view(self) -> ViewState:
        with self._lock:
            return view_of(self.state, self.passing_score, self.timer, self.last_noop)

    # ---- intents (pointer and keyboard share these) ----
    def select_option(self, option: int) -> ViewState:
        return self.dispatch(SelectOption(self.state.index, option))

    def confirm_answer(self) -> ViewState:
        return self.dispatch(ConfirmAnswer())

    def go_next(self) -> ViewState:
        return self.dispatch(Advance())

    def go_prev(self) -> ViewState:
        return self.dispatch(Retreat())

    def submit(self) -> ViewState:
        return self.dispatch(Submit())

    def enter_review(self) -> ViewState:
        return self.dispatch(EnterReview())

    def back_to_results(self) -> ViewState:
        return self.dispatch(BackToResults())

    def flip(self) -> ViewState:
        return self.dispatch(Flip())

    def restart(self) -> ViewState:
        """Start over with the full item set."""
        with self._lock:
            if self.state.status not in (COMPLETED, REVIEWING):
                return self.dispatch(Restart())
            self._pool = self._all
            return self.dispatch(Restart(items=self._ordered()))

    def rate_card(self, knew: bool) -> ViewState:
        """Flashcard self-rating: records knew/again, then moves on."""
        with self._lock:
            v = self.select_option(0 if knew else 1)
            if v.last_noop is not None:
                return v
            if self.state.index < self.state.total - 1 or self.state.all_answered:
                return self.go_next()
            return v

    def study_missed(self) -> ViewState:
        """Restart with only the items that were missed (all items if none were)."""
        with self._lock:
            st = self.state
            if st.status not in (COMPLETED, REVIEWING):
                return self.dispatch(Restart())
            missed = tuple(
                it for i, it in enumerate(st.items)
                if not (st.answers.get(i) and st.answers[i].correct)
            )
            self._pool = missed or self._all
            return self.dispatch(Restart(items=self._ordered()))

    def press_key(self, key: str) -> ViewState:
        from .keyboard import event_for_key

        with self._lock:
            ev = event_for_key(key, self.state)
            if ev is None:
                self.last_noop = TransitionNoOp(event=f"key:{key}", reason="unbound key")
                return self.view()
            return self.dispatch(ev)

    def tick(self) -> ViewState:
        """Advance the timer by one second by hand (terminal player / tests)."""
        if self.timer is not None:
            self.timer.tick()
        return self.view()

    def close(self) -> None:
        if self.timer is not None:
            self.timer.stop()
