from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional, Tuple

import numpy as np

from .config import (
    BlobFilterConfig,
    DetectorConfig,
    HSVRange,
    MorphologyConfig,
    ROIScaleTransform,
    TrackerConfig,
)
from .errors import ConfigError, FrameError, PipelineWarning, WarningKind
from .image_modifier import crop_and_scale
from .laser_detector import DetectionResult, FilteredImages, LaserDetector
from .point_modifier import correct_point
from .scheduler import Scheduler
from .track import TrackAccumulator, TrackSnapshot

LOGGER = logging.getLogger(__name__)

_DETECTOR_SECTIONS = {
    "hsv": HSVRange,
    "morphology": MorphologyConfig,
    "blob_filter": BlobFilterConfig,
}


@dataclass(frozen=True)
class PipelineConfig:
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    transform: ROIScaleTransform = field(default_factory=ROIScaleTransform)


@dataclass(frozen=True)
class FrameResult:
    detection: DetectionResult
    corrected: DetectionResult
    transform: ROIScaleTransform

    @property
    def found(self) -> bool:
        return self.corrected.found

    @property
    def position(self) -> Optional[Tuple[float, float]]:
        return self.corrected.position


class LaserPipeline:
    """Ein synchroner Durchlauf pro Frame: ROI/Skalierung → Detektor → Korrektur → Spur.

    Die Konfiguration ist unveränderlich und wird bei Änderungen als Ganzes
    ersetzt; ``process`` liest sie genau einmal pro Frame.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        tracker: Optional[TrackerConfig] = None,
        scheduler: Optional[Scheduler] = None,
        on_warning: Optional[Callable[[PipelineWarning], None]] = None,
        on_track_changed: Optional[Callable[[TrackSnapshot], None]] = None,
        on_filtered_images: Optional[Callable[[FilteredImages], None]] = None,
        canvas_size: Optional[Tuple[int, int]] = None,
    ):
        self._config = config or PipelineConfig()
        self.scheduler = scheduler or Scheduler()
        self.on_warning = on_warning
        self.detector = LaserDetector(on_warning=on_warning, on_filtered_images=on_filtered_images)
        self.track = TrackAccumulator(
            self.scheduler,
            tracker,
            canvas_size=canvas_size,
            on_change=on_track_changed,
        )
        self._roi_warned_for: Optional[ROIScaleTransform] = None

    @property
    def config(self) -> PipelineConfig:
        return self._config

    def update(self, **changes: Any) -> bool:
        """Konfiguration ändern; ungültige Werte werden abgewiesen, die alte bleibt aktiv."""

        try:
            config = self._build_config(changes)
        except (ConfigError, TypeError) as exc:
            LOGGER.warning("Konfiguration abgelehnt: %s", exc)
            self._warn(WarningKind.CONFIG_REJECTED, str(exc))
            return False
        self._config = config
        LOGGER.info("Konfiguration aktualisiert: %s", ", ".join(sorted(changes)))
        return True

    def process(self, frame: np.ndarray) -> FrameResult:
        config = self._config
        self.scheduler.run_due()

        result = DetectionResult.not_found()
        try:
            processing = crop_and_scale(frame, config.transform)
        except FrameError as exc:
            LOGGER.warning("Frame übersprungen: %s", exc)
            self._warn(WarningKind.INVALID_FRAME, str(exc))
        else:
            if processing is None:
                self._warn_skipped(frame, config.transform)
            else:
                result = self.detector.run(processing, config.detector)

        corrected = correct_point(result, config.transform)
        self.track.add_tip(corrected.position, corrected.found)
        return FrameResult(detection=result, corrected=corrected, transform=config.transform)

    def poll(self) -> int:
        """Fällige Timer zwischen zwei Frames ausführen."""
        return self.scheduler.run_due()

    def set_canvas_size(self, canvas_size: Tuple[int, int]) -> None:
        LOGGER.info("Neue Bildgröße %sx%s, Spur wird neu begonnen", *canvas_size)
        self.track.set_canvas_size(canvas_size)

    def set_max_delay(self, max_delay: float) -> bool:
        return self._update_tracker(self.track.set_max_delay, max_delay)

    def set_max_size(self, max_size: int) -> bool:
        return self._update_tracker(self.track.set_max_size, max_size)

    def _update_tracker(self, setter: Callable[[Any], None], value: Any) -> bool:
        try:
            setter(value)
        except (ConfigError, TypeError) as exc:
            LOGGER.warning("Spur-Einstellung abgelehnt: %s", exc)
            self._warn(WarningKind.CONFIG_REJECTED, str(exc))
            return False
        return True

    def _build_config(self, changes: dict) -> PipelineConfig:
        detector_changes = {}
        transform = self._config.transform
        for key, value in changes.items():
            if key in _DETECTOR_SECTIONS:
                cls = _DETECTOR_SECTIONS[key]
                detector_changes[key] = value if isinstance(value, cls) else cls(**value)
            elif key == "emit_filtered_images":
                detector_changes[key] = bool(value)
            elif key == "transform":
                transform = (
                    value if isinstance(value, ROIScaleTransform) else ROIScaleTransform.from_dict(value)
                )
            else:
                raise ConfigError(f"Unbekannter Konfigurationsschlüssel: {key}")
        return PipelineConfig(
            detector=replace(self._config.detector, **detector_changes),
            transform=transform,
        )

    def _warn_skipped(self, frame: np.ndarray, transform: ROIScaleTransform) -> None:
        height, width = frame.shape[:2]
        if transform.roi is None or transform.roi.fits_in(width, height):
            LOGGER.debug("Frame nach dem Skalieren leer, übersprungen")
            self._warn(WarningKind.INVALID_FRAME, "Frame nach dem Skalieren leer")
            return
        message = f"ROI {transform.roi} liegt nicht im Frame {width}x{height}"
        # Nur einmal pro Konfiguration loggen, sonst bei jedem Frame
        if self._roi_warned_for is not transform:
            LOGGER.warning("%s", message)
            self._roi_warned_for = transform
        self._warn(WarningKind.ROI_OUT_OF_FRAME, message)

    def _warn(self, kind: WarningKind, message: str) -> None:
        if self.on_warning:
            self.on_warning(PipelineWarning(kind, message))
