import threading

import pytest

from src.designproxy.ratelimit import NullRateLimiter, SlidingWindowRateLimiter

class FakeClock:
    def __init__(self, t=0.0):
        self.t = t

    def __call__(self):
        return self.t

def test_cap_then_next_window():
    clock = FakeClock(100.0)
    rl = SlidingWindowRateLimiter(max_requests=3, window_seconds=10, clock=clock)
    assert [rl.allow("a") for _ in range(4)] == [True, True, True, False]

    clock.t += 10.01
    assert rl.allow("a") is True

def test_window_slides():
    clock = FakeClock(0.0)
    rl = SlidingWindowRateLimiter(max_requests=2, window_seconds=10, clock=clock)
    assert rl.allow("a")
    clock.t = 5
    assert rl.allow("a")
    clock.t = 9
    assert not rl.allow("a")
    clock.t = 10.5  # first hit has left the window
    assert rl.allow("a")
    assert not rl.allow("a")

def test_keys_are_independent():
    rl = SlidingWindowRateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    assert rl.allow("a")
    assert rl.allow("b")
    assert not rl.allow("a")

def test_idle_keys_are_evicted():
    clock = FakeClock(0.0)
    rl = SlidingWindowRateLimiter(max_requests=5, window_seconds=10, clock=clock)
    for i in range(20):
        rl.allow(f"ip-{i}")
    assert rl.tracked_keys() == 20

    clock.t = 30
    rl.allow("fresh")
    assert rl.tracked_keys() == 1

def test_concurrent_allow_is_exact():
    rl = SlidingWindowRateLimiter(max_requests=10, window_seconds=60)
    results = []
    lock = threading.Lock()
    start = threading.Barrier(50)

    def worker():
        start.wait()
        ok = rl.allow("shared")
        with lock:
            results.append(ok)

    threads = [threading.Thread(target=worker) for _ in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 10
    assert results.count(False) == 40

def test_invalid_limits():
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(max_requests=0, window_seconds=1)

def test_null_limiter_allows_all():
    rl = NullRateLimiter()
    assert all(rl.allow("x") for _ in range(1000))

def test_idle_sweep_runs_at_most_once_per_window():
    clock = FakeClock(0.0)
    rl = SlidingWindowRateLimiter(max_requests=5, window_seconds=10, clock=clock)
    clock.t = 12
    rl.allow("a")  # sweep at t=12
    clock.t = 13
    rl.allow("b")

    clock.t = 20  # "a" is idle, but the last sweep was under a window ago
    rl.allow("c")
    assert rl.tracked_keys() == 3

    clock.t = 23.5  # sweep: cutoff 13.5 drops "a" and "b"
    rl.allow("d")
    assert rl.tracked_keys() == 2
