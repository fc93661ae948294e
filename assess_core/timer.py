from __future__ import annotations
from typing import Callable, Optional, Protocol, List
import logging, threading, time

from .config import TIMER_TICK_SEC

log = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class ThreadingScheduler:
    """Production scheduler: one daemon threading.Timer per pending tick."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        t = threading.Timer(delay, callback)
        t.daemon = True
        t.start()
        return t


class _ManualHandle:
    def __init__(self, owner: "ManualScheduler", callback: Callable[[], None]):
        self._owner = owner
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler for tests and the terminal player: fires on advance()."""

    def __init__(self) -> None:
        self.pending: List[_ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        h = _ManualHandle(self, callback)
        self.pending.append(h)
        return h

    @property
    def live(self) -> int:
        return sum(1 for h in self.pending if not h.cancelled)

    def advance(self, ticks: int = 1) -> None:
        for _ in range(ticks):
            due = [h for h in self.pending if not h.cancelled]
            self.pending = []
            for h in due:
                h.callback()


class TimerController:
    """
    Whole-second countdown. Fires on_expire exactly once when it reaches zero.
    No pause; reset() cancels the pending tick before scheduling a new one.
    """

    def __init__(
        self,
        total_seconds: int,
        on_expire: Callable[[], None],
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.time,
        tick_sec: float = TIMER_TICK_SEC,
    ):
        self.total_seconds = max(0, int(total_seconds))
        self._on_expire = on_expire
        self._scheduler: Scheduler = scheduler or ThreadingScheduler()
        self._clock = clock
        self._tick_sec = tick_sec
        self._remaining = self.total_seconds
        self._expired = False
        self._running = False
        self._handle: Optional[Cancellable] = None
        self._gen = 0
        self._deadline_ms: Optional[int] = None
        self._lock = threading.Lock()

    @classmethod
    def from_minutes(cls, minutes: Optional[float], on_expire: Callable[[], None], **kw) -> Optional["TimerController"]:
        """None (or a non-positive limit) means the session has no timer at all."""
        if minutes is None or minutes <= 0:
            return None
        return cls(int(round(minutes * 60)), on_expire, **kw)

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def running(self) -> bool:
        return self._running

    @property
    def deadline_epoch_ms(self) -> Optional[int]:
        return self._deadline_ms

    @property
    def formatted(self) -> str:
        m, s = divmod(max(0, self._remaining), 60)
        return f"{m:02d}:{s:02d}"

    def _cancel_pending(self) -> None:
        self._gen += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        self._cancel_pending()
        gen = self._gen
        self._handle = self._scheduler.call_later(self._tick_sec, lambda: self._on_tick(gen))

    def _on_tick(self, gen: int) -> None:
        self._advance(gen)

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._expired = False
            self._remaining = self.total_seconds
            self._deadline_ms = int(self._clock() * 1000) + self.total_seconds * 1000
            self._schedule()

    def tick(self) -> bool:
        """Advance one second. Returns True when this tick expired the timer."""
        return self._advance(None)

    def _advance(self, gen: Optional[int]) -> bool:
        # gen is set for scheduled ticks; the check and the decrement share one lock
        with self._lock:
            if gen is not None:
                if gen != self._gen or not self._running:
                    return False  # stale callback from a cancelled schedule
                self._handle = None
            if self._expired or self._remaining <= 0:
                return False
            self._remaining -= 1
            if self._remaining > 0:
                if gen is not None:
                    self._schedule()
                return False
            self._remaining = 0
            self._expired = True
            self._running = False
            self._cancel_pending()
        log.debug("timer expired after %ss", self.total_seconds)
        self._on_expire()
        return True

    def reset(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._running = False
        self.start()

    def stop(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._running = False
