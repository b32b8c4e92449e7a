from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from .config import HSVRange
from .constants import HUE_LIMIT
from .errors import FrameError


@dataclass
class ChannelMasks:
    hue: np.ndarray
    saturation: np.ndarray
    value: np.ndarray
    candidates: np.ndarray


def validate_frame(frame: np.ndarray) -> None:
    if frame is None:
        raise FrameError("Kein Frame erhalten")
    if not isinstance(frame, np.ndarray) or frame.size == 0:
        raise FrameError("Leerer Frame")
    if frame.dtype != np.uint8:
        raise FrameError(f"Nicht unterstützter Datentyp {frame.dtype}")
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise FrameError(f"Nicht unterstütztes Frame-Format {frame.shape}")


def to_hsv(frame: np.ndarray) -> np.ndarray:
    """RGB(A)-Frame nach HSV konvertieren, ungültige Frames werfen FrameError."""

    validate_frame(frame)
    if frame.shape[2] == 4:
        frame = cv2.cvtColor(frame, cv2.COLOR_RGBA2RGB)
    return cv2.cvtColor(frame, cv2.COLOR_RGB2HSV)


def range_mask(channel: np.ndarray, low: int, high: int) -> np.ndarray:
    return cv2.inRange(channel, low, high)


def hue_mask(hue: np.ndarray, hue_min: int, hue_max: int) -> np.ndarray:
    if hue_min <= hue_max:
        return range_mask(hue, hue_min, hue_max)
    # z. B. Rot: [170, 179] ∪ [0, 8]
    upper = range_mask(hue, hue_min, HUE_LIMIT - 1)
    lower = range_mask(hue, 0, hue_max)
    return cv2.bitwise_or(upper, lower)


def segment_hsv(hsv: np.ndarray, hsv_range: HSVRange) -> ChannelMasks:
    hue, saturation, value = cv2.split(hsv)
    hue_valid = hue_mask(hue, hsv_range.hue_min, hsv_range.hue_max)
    saturation_valid = range_mask(saturation, hsv_range.saturation_min, hsv_range.saturation_max)
    value_valid = range_mask(value, hsv_range.value_min, hsv_range.value_max)

    candidates = cv2.bitwise_and(hue_valid, value_valid)
    if hsv_range.with_saturation:
        candidates = cv2.bitwise_and(candidates, saturation_valid)
    return ChannelMasks(
        hue=hue_valid,
        saturation=saturation_valid,
        value=value_valid,
        candidates=candidates,
    )


def close_mask(mask: np.ndarray, radius: int) -> np.ndarray:
    """Morphologisches Schließen mit einer Kreisscheibe vom Radius ``radius``.

    Bei ``radius == 0`` wird die Maske unverändert zurückgegeben.
    """

    if radius <= 0:
        return mask
    size = 2 * radius + 1
    kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size))
    return cv2.morphologyEx(mask, cv2.MORPH_CLOSE, kernel)
