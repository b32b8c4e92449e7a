from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from .config import TrackerConfig
from .constants import OPACITY_MAX
from .scheduler import Scheduler, Timer

LOGGER = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass(frozen=True)
class TrackSnapshot:
    track: Tuple[Point, ...]
    old_track: Tuple[Point, ...]
    old_track_opacity: int
    old_track_showing: bool
    canvas_size: Optional[Tuple[int, int]]


class TrackAccumulator:
    """Sammelt die letzten Laserpositionen zu einer begrenzten Spur.

    Bleibt der Laser länger als ``max_delay`` Sekunden aus, wird die Spur
    geschlossen: sie wandert in ``old_track`` und wird schrittweise
    ausgeblendet, die aktive Spur beginnt leer von vorn.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: Optional[TrackerConfig] = None,
        canvas_size: Optional[Tuple[int, int]] = None,
        on_change: Optional[Callable[[TrackSnapshot], None]] = None,
    ):
        config = config or TrackerConfig()
        self.scheduler = scheduler
        self.max_size = config.max_size
        self.max_delay = config.max_delay
        self.fade_duration = config.fade_duration
        self.fade_steps = config.fade_steps
        self.canvas_size = canvas_size
        self.on_change = on_change

        self.track: List[Point] = []
        self.old_track: List[Point] = []
        self.old_track_opacity = 0
        self.old_track_showing = False

        self._timeout: Optional[Timer] = None
        self._fade_timer: Optional[Timer] = None
        self._fade_step = 0

    @property
    def state(self) -> str:
        return "tracking" if self.track else "idle"

    def snapshot(self) -> TrackSnapshot:
        return TrackSnapshot(
            track=tuple(self.track),
            old_track=tuple(self.old_track),
            old_track_opacity=self.old_track_opacity,
            old_track_showing=self.old_track_showing,
            canvas_size=self.canvas_size,
        )

    def add_tip(self, point: Optional[Point], found: bool) -> None:
        # Ein Fehlschlag ändert nichts, die laufende Deadline entscheidet
        if not found:
            return
        self.track.append(point)
        self._trim()
        self._arm_timeout()
        self._notify()

    def restart(self) -> None:
        """Aktuelle Spur beenden und eine neue, leere beginnen."""
        self._close()

    def _close(self, fade_start: Optional[float] = None) -> None:
        self._cancel_timeout()
        if not self.track:
            return
        self._stop_fade()
        self.old_track = self.track
        self.track = []
        self.old_track_opacity = OPACITY_MAX
        self.old_track_showing = True
        self._fade_step = 0
        self._fade_timer = self.scheduler.call_every(
            self.fade_duration / self.fade_steps, self._on_fade_step, start=fade_start
        )
        LOGGER.info("Spur mit %s Punkten beendet", len(self.old_track))
        self._notify()

    def set_canvas_size(self, canvas_size: Tuple[int, int]) -> None:
        self.canvas_size = canvas_size
        # Keine Ausblendung einer Spur auf der alten Zeichenfläche
        self.track = []
        self.restart()
        self._notify()

    @property
    def config(self) -> TrackerConfig:
        return TrackerConfig(
            max_size=self.max_size,
            max_delay=self.max_delay,
            fade_duration=self.fade_duration,
            fade_steps=self.fade_steps,
        )

    def set_max_size(self, max_size: int) -> None:
        """Neue Maximallänge, eine zu lange Spur wird sofort gekürzt.

        Ungültige Werte lösen ``ConfigError`` aus.
        """
        self.max_size = replace(self.config, max_size=max_size).max_size
        if self._trim():
            self._notify()

    def set_max_delay(self, max_delay: float) -> None:
        self.max_delay = replace(self.config, max_delay=max_delay).max_delay
        if self._timeout is not None and self._timeout.active:
            self._arm_timeout()

    def _trim(self) -> bool:
        excess = len(self.track) - self.max_size
        if excess <= 0:
            return False
        del self.track[:excess]
        return True

    def _arm_timeout(self) -> None:
        self._cancel_timeout()
        self._timeout = self.scheduler.call_later(self.max_delay, self._on_timeout)

    def _cancel_timeout(self) -> None:
        if self._timeout is not None:
            self._timeout.cancel()
            self._timeout = None

    def _on_timeout(self) -> None:
        # Ausblendung ab der Deadline, nicht ab dem späteren Poll
        deadline = self._timeout.deadline
        self._timeout = None
        LOGGER.debug("Kein Laser seit %.1f s", self.max_delay)
        self._close(deadline)

    def _on_fade_step(self) -> None:
        self._fade_step += 1
        remaining = self.fade_steps - self._fade_step
        if remaining <= 0:
            self.old_track_opacity = 0
            self.old_track_showing = False
            self._stop_fade()
        else:
            self.old_track_opacity = round(OPACITY_MAX * remaining / self.fade_steps)
        self._notify()

    def _stop_fade(self) -> None:
        if self._fade_timer is not None:
            self._fade_timer.cancel()
            self._fade_timer = None

    def _notify(self) -> None:
        if self.on_change:
            self.on_change(self.snapshot())
