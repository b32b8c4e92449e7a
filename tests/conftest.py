"""Gemeinsame Fixtures für die Laser-Painter-Tests."""
from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np
import pytest

from laser_painter.config import BlobFilterConfig, TrackerConfig
from laser_painter.scheduler import ManualClock, Scheduler

RED = (255, 0, 0)
GREEN = (0, 255, 0)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def scheduler(clock: ManualClock) -> Scheduler:
    return Scheduler(clock)


@pytest.fixture
def tracker_config() -> TrackerConfig:
    return TrackerConfig(max_size=100, max_delay=1.0, fade_duration=1.0, fade_steps=20)


@pytest.fixture
def no_filters() -> BlobFilterConfig:
    return BlobFilterConfig(area_filter_enabled=False, circularity_filter_enabled=False)


def blank_mask(width: int = 80, height: int = 60) -> np.ndarray:
    return np.zeros((height, width), dtype=np.uint8)


def blank_frame(width: int = 80, height: int = 60) -> np.ndarray:
    return np.zeros((height, width, 3), dtype=np.uint8)


def frame_with_dot(
    center: Tuple[int, int],
    radius: int = 5,
    color: Tuple[int, int, int] = RED,
    width: int = 80,
    height: int = 60,
) -> np.ndarray:
    frame = blank_frame(width, height)
    cv2.circle(frame, center, radius, color, -1)
    return frame
