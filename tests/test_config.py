"""Tests for laser_painter.config."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from laser_painter.config import (
    BlobFilterConfig,
    HSVRange,
    MorphologyConfig,
    Rect,
    ROIScaleTransform,
    Settings,
    TrackerConfig,
    compute_range,
    load_settings,
    save_settings,
)
from laser_painter.errors import ConfigError


# --- validation ----------------------------------------------------------

@pytest.mark.parametrize(
    "kwargs",
    [
        {"hue_min": 180},
        {"hue_max": -1},
        {"saturation_min": 200, "saturation_max": 100},
        {"value_min": 10, "value_max": 5},
        {"value_max": 256},
    ],
)
def test_hsv_range_rejects_invalid_values(kwargs):
    with pytest.raises(ConfigError):
        HSVRange(**kwargs)


def test_hsv_range_allows_wrapping_hue():
    rng = HSVRange(hue_min=175, hue_max=5)
    assert rng.hue_wraps
    assert not HSVRange(hue_min=5, hue_max=5).hue_wraps


def test_blob_filter_validation():
    with pytest.raises(ConfigError):
        BlobFilterConfig(area_min=50, area_max=10)
    with pytest.raises(ConfigError):
        BlobFilterConfig(circularity_min=0.2, circularity_max=1.2)
    assert not BlobFilterConfig(area_filter_enabled=False, circularity_filter_enabled=False).any_enabled


def test_morphology_kernel_size():
    assert MorphologyConfig(0).kernel_size == 0
    assert MorphologyConfig(3).kernel_size == 7
    with pytest.raises(ConfigError):
        MorphologyConfig(-1)


def test_transform_validation():
    with pytest.raises(ConfigError):
        ROIScaleTransform(scale=0)
    with pytest.raises(ConfigError):
        ROIScaleTransform(scale=1.01)
    with pytest.raises(ConfigError):
        ROIScaleTransform(roi=Rect(0, 0, 0, 10))
    with pytest.raises(ConfigError):
        Rect(-1, 0, 5, 5)
    assert ROIScaleTransform(roi=None).offset == (0, 0)
    assert ROIScaleTransform(roi=Rect(3, 4, 5, 6)).offset == (3, 4)


def test_tracker_validation():
    with pytest.raises(ConfigError):
        TrackerConfig(max_size=1)
    with pytest.raises(ConfigError):
        TrackerConfig(max_delay=0)


# --- mean/span -----------------------------------------------------------

class TestMeanSpan:
    def test_compute_range(self):
        assert compute_range(10, 1) == (10, 10)
        assert compute_range(10, 4) == (9, 12)
        assert compute_range(10, 5) == (8, 12)
        with pytest.raises(ConfigError):
            compute_range(10, 0)

    def test_red_hue_wraps(self):
        rng = HSVRange.from_mean_span(0, 42, 128, 256, 200, 111)
        assert (rng.hue_min, rng.hue_max) == (160, 21)
        assert (rng.saturation_min, rng.saturation_max) == (1, 255)
        assert (rng.value_min, rng.value_max) == (145, 255)

    def test_full_hue_span(self):
        rng = HSVRange.from_mean_span(0, 180, 0, 1, 0, 1)
        assert (rng.hue_min, rng.hue_max) == (91, 90)
        assert (rng.saturation_min, rng.saturation_max) == (0, 0)

    def test_hue_span_too_large(self):
        with pytest.raises(ConfigError):
            HSVRange.from_mean_span(0, 181, 0, 1, 0, 1)


# --- persistence ---------------------------------------------------------

def test_settings_round_trip(tmp_path: Path):
    path = tmp_path / "settings.json"
    settings = Settings(
        transform=ROIScaleTransform(roi=Rect(10, 20, 300, 200), scale=0.5),
        tracker=TrackerConfig(max_size=50, max_delay=2.5),
    )
    save_settings(settings, path)
    loaded = load_settings(path)
    assert loaded == settings
    assert json.loads(path.read_text())["transform"]["roi"] == {"x": 10, "y": 20, "width": 300, "height": 200}


def test_missing_settings_are_created(tmp_path: Path):
    path = tmp_path / "sub" / "settings.json"
    settings = load_settings(path)
    assert settings == Settings()
    assert path.exists()


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"detector": {"hsv": {"hue_min": 300}}}),
        json.dumps({"tracker": {"unknown": 1}}),
    ],
)
def test_corrupt_settings_fall_back_to_defaults(tmp_path: Path, content: str):
    path = tmp_path / "settings.json"
    path.write_text(content)
    settings = load_settings(path)
    assert settings == Settings()
    assert (tmp_path / "settings.json.bak").read_text() == content
    assert json.loads(path.read_text())["tracker"]["max_size"] == settings.tracker.max_size


@pytest.mark.parametrize(
    "factory",
    [
        lambda: MorphologyConfig(1.5),
        lambda: MorphologyConfig(True),
        lambda: Rect(1.5, 0, 10, 10),
        lambda: Rect(0, 0, 10, "10"),
        lambda: HSVRange(hue_min=10.5),
        lambda: TrackerConfig(max_size=2.5),
    ],
)
def test_integer_fields_reject_other_types(factory):
    with pytest.raises(ConfigError):
        factory()
