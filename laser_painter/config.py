from __future__ import annotations

import json
import logging
import numbers
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .constants import (
    BLOB_FILTER_PROFILE,
    CHANNEL_MAX,
    CLOSING_RADIUS,
    CONFIG_FILE,
    DOWNSCALE,
    FADE_DURATION_S,
    FADE_STEPS,
    HUE_LIMIT,
    LASER_COLOR_PROFILE,
    TRACK_MAX_DELAY_S,
    TRACK_MAX_SIZE,
)
from .errors import ConfigError


LOGGER = logging.getLogger(__name__)


def compute_range(mean: int, span: int) -> Tuple[int, int]:
    """Min/Max aus Mittelwert und Spanne (Spanne = Max - Min + 1)."""

    if span < 1:
        raise ConfigError(f"Spanne muss mindestens 1 sein, erhalten: {span}")
    return mean - (span - 1) // 2, mean + span // 2


def _check_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigError(f"{name} muss eine ganze Zahl sein, erhalten: {value!r}")


def _check_channel(name: str, value: int, limit: int = CHANNEL_MAX + 1) -> None:
    _check_int(name, value)
    if not 0 <= value < limit:
        raise ConfigError(f"{name}={value} liegt nicht in [0, {limit - 1}]")


@dataclass(frozen=True)
class HSVRange:
    hue_min: int = LASER_COLOR_PROFILE["hue_min"]
    hue_max: int = LASER_COLOR_PROFILE["hue_max"]
    saturation_min: int = LASER_COLOR_PROFILE["saturation_min"]
    saturation_max: int = LASER_COLOR_PROFILE["saturation_max"]
    value_min: int = LASER_COLOR_PROFILE["value_min"]
    value_max: int = LASER_COLOR_PROFILE["value_max"]
    with_saturation: bool = LASER_COLOR_PROFILE["with_saturation"]

    def __post_init__(self) -> None:
        _check_channel("hue_min", self.hue_min, HUE_LIMIT)
        _check_channel("hue_max", self.hue_max, HUE_LIMIT)
        for name in ("saturation_min", "saturation_max", "value_min", "value_max"):
            _check_channel(name, getattr(self, name))
        # Nur Hue ist zirkulär
        if self.saturation_min > self.saturation_max:
            raise ConfigError("saturation_min darf nicht größer als saturation_max sein")
        if self.value_min > self.value_max:
            raise ConfigError("value_min darf nicht größer als value_max sein")

    @property
    def hue_wraps(self) -> bool:
        return self.hue_min > self.hue_max

    @classmethod
    def from_mean_span(
        cls,
        hue_mean: int,
        hue_span: int,
        saturation_mean: int,
        saturation_span: int,
        value_mean: int,
        value_span: int,
        with_saturation: bool = True,
    ) -> "HSVRange":
        """Baue einen Bereich wie das Einstellungs-Panel: Mittelwert + Spanne je Kanal."""

        if hue_span > HUE_LIMIT:
            raise ConfigError(f"Hue-Spanne darf höchstens {HUE_LIMIT} sein")
        hue_min, hue_max = compute_range(hue_mean, hue_span)
        saturation_min, saturation_max = compute_range(saturation_mean, saturation_span)
        value_min, value_max = compute_range(value_mean, value_span)
        return cls(
            hue_min=hue_min % HUE_LIMIT,
            hue_max=hue_max % HUE_LIMIT,
            saturation_min=max(0, saturation_min),
            saturation_max=min(CHANNEL_MAX, saturation_max),
            value_min=max(0, value_min),
            value_max=min(CHANNEL_MAX, value_max),
            with_saturation=with_saturation,
        )


@dataclass(frozen=True)
class MorphologyConfig:
    closing_radius: int = CLOSING_RADIUS

    def __post_init__(self) -> None:
        _check_int("closing_radius", self.closing_radius)
        if self.closing_radius < 0:
            raise ConfigError(f"closing_radius muss >= 0 sein, erhalten: {self.closing_radius}")

    @property
    def kernel_size(self) -> int:
        return 2 * self.closing_radius + 1 if self.closing_radius > 0 else 0


@dataclass(frozen=True)
class BlobFilterConfig:
    area_filter_enabled: bool = BLOB_FILTER_PROFILE["area_filter_enabled"]
    area_min: float = BLOB_FILTER_PROFILE["area_min"]
    area_max: float = BLOB_FILTER_PROFILE["area_max"]
    circularity_filter_enabled: bool = BLOB_FILTER_PROFILE["circularity_filter_enabled"]
    circularity_min: float = BLOB_FILTER_PROFILE["circularity_min"]
    circularity_max: float = BLOB_FILTER_PROFILE["circularity_max"]

    def __post_init__(self) -> None:
        if self.area_min < 0 or self.area_min > self.area_max:
            raise ConfigError(
                f"Ungültiger Flächenbereich [{self.area_min}, {self.area_max}]"
            )
        if not 0.0 <= self.circularity_min <= self.circularity_max <= 1.0:
            raise ConfigError(
                f"Ungültiger Rundheitsbereich [{self.circularity_min}, {self.circularity_max}]"
            )

    @property
    def any_enabled(self) -> bool:
        return self.area_filter_enabled or self.circularity_filter_enabled


@dataclass(frozen=True)
class DetectorConfig:
    hsv: HSVRange = field(default_factory=HSVRange)
    morphology: MorphologyConfig = field(default_factory=MorphologyConfig)
    blob_filter: BlobFilterConfig = field(default_factory=BlobFilterConfig)
    emit_filtered_images: bool = False


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        for name in ("x", "y", "width", "height"):
            _check_int(name, getattr(self, name))
        if self.x < 0 or self.y < 0 or self.width < 0 or self.height < 0:
            raise ConfigError(f"Ungültiges Rechteck {self}")

    @property
    def top_left(self) -> Tuple[int, int]:
        return self.x, self.y

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def fits_in(self, width: int, height: int) -> bool:
        return self.x + self.width <= width and self.y + self.height <= height


@dataclass(frozen=True)
class ROIScaleTransform:
    roi: Optional[Rect] = None
    scale: float = DOWNSCALE

    def __post_init__(self) -> None:
        if not 0.0 < self.scale <= 1.0:
            raise ConfigError(f"scale muss in (0, 1] liegen, erhalten: {self.scale}")
        if self.roi is not None and self.roi.is_empty():
            raise ConfigError("Leere ROI, für das ganze Bild roi=None verwenden")

    @property
    def offset(self) -> Tuple[int, int]:
        return self.roi.top_left if self.roi is not None else (0, 0)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ROIScaleTransform":
        data = dict(data)
        roi_cfg = data.pop("roi", None)
        return cls(roi=Rect(**roi_cfg) if roi_cfg else None, **data)


@dataclass(frozen=True)
class TrackerConfig:
    max_size: int = TRACK_MAX_SIZE
    max_delay: float = TRACK_MAX_DELAY_S
    fade_duration: float = FADE_DURATION_S
    fade_steps: int = FADE_STEPS

    def __post_init__(self) -> None:
        _check_int("max_size", self.max_size)
        _check_int("fade_steps", self.fade_steps)
        if self.max_size < 2:
            raise ConfigError(f"max_size muss >= 2 sein, erhalten: {self.max_size}")
        if self.max_delay <= 0:
            raise ConfigError(f"max_delay muss > 0 sein, erhalten: {self.max_delay}")
        if self.fade_duration <= 0 or self.fade_steps < 1:
            raise ConfigError("Ungültige Ausblend-Parameter")


@dataclass
class CameraConfig:
    device_index: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30


@dataclass
class Settings:
    camera: CameraConfig = field(default_factory=CameraConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    transform: ROIScaleTransform = field(default_factory=ROIScaleTransform)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "camera": vars(self.camera),
            "detector": asdict(self.detector),
            "transform": asdict(self.transform),
            "tracker": asdict(self.tracker),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        camera_cfg = data.get("camera", {})
        detector_cfg = data.get("detector", {})
        return cls(
            camera=CameraConfig(**camera_cfg),
            detector=DetectorConfig(
                hsv=HSVRange(**detector_cfg.get("hsv", {})),
                morphology=MorphologyConfig(**detector_cfg.get("morphology", {})),
                blob_filter=BlobFilterConfig(**detector_cfg.get("blob_filter", {})),
                emit_filtered_images=detector_cfg.get("emit_filtered_images", False),
            ),
            transform=ROIScaleTransform.from_dict(data.get("transform", {})),
            tracker=TrackerConfig(**data.get("tracker", {})),
        )


def load_settings(path: Path = CONFIG_FILE) -> Settings:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return Settings.from_dict(data)
        except (json.JSONDecodeError, OSError, AttributeError, TypeError, ConfigError) as exc:
            LOGGER.warning("Einstellungen defekt, lade Defaults: %s", exc)
            _backup_corrupt_file(path)
    settings = Settings()
    save_settings(settings, path)
    return settings


def save_settings(settings: Settings, path: Path = CONFIG_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2)


def _backup_corrupt_file(path: Path) -> None:
    if not path.exists():
        return
    try:
        backup_path = path.with_suffix(path.suffix + ".bak")
        counter = 1
        while backup_path.exists():
            backup_path = path.with_suffix(path.suffix + f".bak{counter}")
            counter += 1
        path.rename(backup_path)
        LOGGER.info("Defekte Datei gesichert unter %s", backup_path)
    except OSError as exc:
        LOGGER.warning("Backup fehlgeschlagen für %s: %s", path, exc)
