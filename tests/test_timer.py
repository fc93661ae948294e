from __future__ import annotations

from assess_core.timer import ManualScheduler, TimerController


def _timer(seconds: int, scheduler: ManualScheduler, fired: list) -> TimerController:
    return TimerController(seconds, lambda: fired.append(1), scheduler=scheduler, clock=lambda: 1000.0)


def test_no_limit_means_no_timer():
    assert TimerController.from_minutes(None, lambda: None) is None
    assert TimerController.from_minutes(0, lambda: None) is None
    assert TimerController.from_minutes(-5, lambda: None) is None


def test_minutes_convert_to_seconds(scheduler):
    t = TimerController.from_minutes(1.5, lambda: None, scheduler=scheduler)
    assert t is not None
    assert t.total_seconds == 90
    t.start()
    assert t.formatted == "01:30"


def test_one_second_limit_expires_once(scheduler):
    fired: list = []
    t = _timer(1, scheduler, fired)
    t.start()
    assert t.deadline_epoch_ms == 1_001_000
    scheduler.advance(1)
    assert fired == [1]
    assert t.expired and t.remaining == 0 and not t.running
    scheduler.advance(5)
    assert t.tick() is False
    assert fired == [1], "expiry must fire exactly once"


def test_counts_down_one_tick_per_second(scheduler):
    fired: list = []
    t = _timer(3, scheduler, fired)
    t.start()
    scheduler.advance(2)
    assert t.remaining == 1
    assert t.formatted == "00:01"
    assert fired == []
    scheduler.advance(1)
    assert fired == [1]


def test_reset_cancels_pending_tick(scheduler):
    fired: list = []
    t = _timer(2, scheduler, fired)
    t.start()
    scheduler.advance(1)
    assert t.remaining == 1
    t.reset()
    assert scheduler.live == 1, "only the new schedule may be pending"
    assert t.remaining == 2
    scheduler.advance(1)
    assert t.remaining == 1 and fired == []
    scheduler.advance(1)
    assert fired == [1]


def test_stale_callback_is_ignored(scheduler):
    fired: list = []
    t = _timer(1, scheduler, fired)
    t.start()
    stale = scheduler.pending[0]
    t.reset()
    stale.callback()
    assert fired == [] and t.remaining == 1


def test_stop_cancels(scheduler):
    fired: list = []
    t = _timer(1, scheduler, fired)
    t.start()
    t.stop()
    assert scheduler.live == 0
    scheduler.advance(3)
    assert fired == [] and not t.running


def test_stale_ticks_racing_resets_never_count(scheduler):
    import threading

    fired: list = []
    t = _timer(5, scheduler, fired)
    t.start()
    stale = [scheduler.pending[-1]]
    for _ in range(30):
        t.reset()
        stale.append(scheduler.pending[-1])
    workers = [threading.Thread(target=h.callback) for h in stale[:-1]]
    workers += [threading.Thread(target=t.reset) for _ in range(10)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
    assert t.remaining == 5, "a cancelled tick must not eat into a fresh countdown"
    assert fired == []
