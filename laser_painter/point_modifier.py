from __future__ import annotations

from typing import Tuple

from .config import ROIScaleTransform
from .laser_detector import DetectionResult


def correct_point(result: DetectionResult, transform: ROIScaleTransform) -> DetectionResult:
    """Punkt aus der skalierten ROI zurück in Koordinaten des Originalframes."""

    if not result.found:
        return result
    x, y = result.position
    dx, dy = transform.offset
    return DetectionResult(
        position=(x / transform.scale + dx, y / transform.scale + dy),
        found=True,
    )


def to_processing(point: Tuple[float, float], transform: ROIScaleTransform) -> Tuple[float, float]:
    dx, dy = transform.offset
    return (point[0] - dx) * transform.scale, (point[1] - dy) * transform.scale
