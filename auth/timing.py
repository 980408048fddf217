"""
auth/timing.py -- Minimum wall-clock duration for credential checks.

Without a floor, "no such user" returns after one indexed lookup while
"wrong password" returns after a bcrypt comparison. The difference is
measurable from outside and enumerates usernames. TimingGuard makes every
outcome of the guarded block take at least min_duration; blocks that are
already slower are not delayed further.

The guard sleeps (it never spins), so it only ties up the worker thread
running the request. Login is a sync route, so that is a threadpool worker,
not the event loop.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager


class TimingGuard:
    """Pads the duration of a block up to a fixed minimum.

    Usage:
        guard = TimingGuard(1.0)
        with guard.hold():
            account = check_credentials(...)

    Results and exceptions leave the block unchanged; only their timing is
    affected. clock and sleep are injectable for tests.
    """

    def __init__(
        self,
        min_duration: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if min_duration < 0:
            raise ValueError("min_duration must not be negative")
        self.min_duration = min_duration
        self._clock = clock
        self._sleep = sleep

    @contextmanager
    def hold(self) -> Iterator[None]:
        # Start time is local to this call, so one guard can be shared by
        # concurrent requests.
        started = self._clock()
        try:
            yield
        finally:
            remaining = self.min_duration - (self._clock() - started)
            if remaining > 0:
                self._sleep(remaining)
