from __future__ import annotations

import heapq
import itertools
import time
from typing import Callable, List, Optional, Tuple


class ManualClock:
    """Simulierte Uhr für Tests und Offline-Auswertung."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Timer:
    def __init__(
        self,
        deadline: float,
        callback: Callable[[], None],
        interval: Optional[float] = None,
    ):
        self.deadline = deadline
        self.callback = callback
        self.interval = interval
        self.active = True

    @property
    def periodic(self) -> bool:
        return self.interval is not None

    def cancel(self) -> None:
        self.active = False


class Scheduler:
    """Abbrechbare Deadlines und periodische Timer, angetrieben durch ``run_due``.

    Es gibt keinen eigenen Thread: der Frame-Loop ruft ``run_due`` auf und alle
    fälligen Callbacks laufen synchron in Deadline-Reihenfolge.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._queue: List[Tuple[float, int, Timer]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self.clock()

    def call_at(self, deadline: float, callback: Callable[[], None]) -> Timer:
        timer = Timer(deadline, callback)
        self._push(timer)
        return timer

    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
        return self.call_at(self.clock() + delay, callback)

    def call_every(
        self,
        interval: float,
        callback: Callable[[], None],
        start: Optional[float] = None,
    ) -> Timer:
        """Periodischer Timer, erster Aufruf bei ``start + interval``.

        Ohne ``start`` zählt die aktuelle Zeit. Liegt ``start`` in der
        Vergangenheit, holt der nächste ``run_due`` die verpassten Schritte nach.
        """
        if interval <= 0:
            raise ValueError(f"Intervall muss > 0 sein, erhalten: {interval}")
        if start is None:
            start = self.clock()
        timer = Timer(start + interval, callback, interval=interval)
        self._push(timer)
        return timer

    def pending(self) -> int:
        return sum(1 for _, _, timer in self._queue if timer.active)

    def run_due(self) -> int:
        now = self.clock()
        fired = 0
        while self._queue and self._queue[0][0] <= now:
            deadline, _, timer = heapq.heappop(self._queue)
            if not timer.active:
                continue
            if timer.periodic:
                timer.deadline = deadline + timer.interval
                self._push(timer)
            else:
                timer.active = False
            fired += 1
            timer.callback()
        return fired

    def _push(self, timer: Timer) -> None:
        heapq.heappush(self._queue, (timer.deadline, next(self._counter), timer))
