from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import cv2
import numpy as np

from .blobs import blob_centroid, extract_blobs, select_blob
from .config import DetectorConfig
from .errors import FrameError, PipelineWarning, WarningKind
from .segmentation import close_mask, segment_hsv, to_hsv

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionResult:
    position: Optional[Tuple[float, float]]
    found: bool

    @classmethod
    def not_found(cls) -> "DetectionResult":
        return cls(position=None, found=False)


@dataclass
class FilteredImages:
    """Binärbilder (0/255) für die Kalibrierung der Detektor-Einstellungen."""

    hue: np.ndarray
    saturation: np.ndarray
    value: np.ndarray
    blobs: np.ndarray
    laser_blob: np.ndarray


class LaserDetector:
    """Finde die Position eines Laserpunkts (oder dessen Fehlen) in einem RGB-Frame.

    Ablauf: HSV-Schwellwerte → optionales Schließen → Blob-Filter → Schwerpunkt.
    Die Position liegt in Koordinaten des übergebenen Frames.
    """

    def __init__(
        self,
        on_warning: Optional[Callable[[PipelineWarning], None]] = None,
        on_filtered_images: Optional[Callable[[FilteredImages], None]] = None,
    ):
        self.on_warning = on_warning
        self.on_filtered_images = on_filtered_images

    def run(self, frame: np.ndarray, config: DetectorConfig) -> DetectionResult:
        try:
            hsv = to_hsv(frame)
        except FrameError as exc:
            LOGGER.warning("Frame übersprungen: %s", exc)
            if self.on_warning:
                self.on_warning(PipelineWarning(WarningKind.INVALID_FRAME, str(exc)))
            return DetectionResult.not_found()

        masks = segment_hsv(hsv, config.hsv)
        mask = close_mask(masks.candidates, config.morphology.closing_radius)

        blobs = extract_blobs(mask)
        laser_blob = select_blob(blobs, config.blob_filter)
        position = blob_centroid(laser_blob) if laser_blob is not None else None

        if config.emit_filtered_images and self.on_filtered_images:
            laser_mask = np.zeros_like(mask)
            if position is not None:
                cv2.drawContours(laser_mask, [laser_blob.contour], -1, 255, cv2.FILLED)
            self.on_filtered_images(
                FilteredImages(
                    hue=masks.hue,
                    saturation=masks.saturation,
                    value=masks.value,
                    blobs=mask,
                    laser_blob=laser_mask,
                )
            )

        if position is None:
            return DetectionResult.not_found()
        LOGGER.debug("Laser gefunden bei (%.1f, %.1f), Fläche %.1f", position[0], position[1], laser_blob.area)
        return DetectionResult(position=position, found=True)
