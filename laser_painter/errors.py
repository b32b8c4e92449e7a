from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ConfigError(ValueError):
    """Ungültige Konfiguration, wird vor Erreichen der Pipeline abgewiesen."""


class FrameError(ValueError):
    """Frame ist leer oder hat ein nicht unterstütztes Format."""


class WarningKind(str, Enum):
    INVALID_FRAME = "invalid_frame"
    ROI_OUT_OF_FRAME = "roi_out_of_frame"
    CONFIG_REJECTED = "config_rejected"


@dataclass(frozen=True)
class PipelineWarning:
    kind: WarningKind
    message: str
