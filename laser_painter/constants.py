from __future__ import annotations

from pathlib import Path

HOME_DIR = Path.home()
APP_DIR = HOME_DIR / ".laser_painter"
CONFIG_FILE = APP_DIR / "settings.json"
LOG_DIR = APP_DIR / "logs"

# OpenCV hue is stored as degrees / 2
HUE_LIMIT = 180
CHANNEL_MAX = 255

# Roter Laser: Hue läuft über die 0 hinweg
LASER_COLOR_PROFILE = {
    "hue_min": 170,
    "hue_max": 8,
    "saturation_min": 120,
    "saturation_max": 255,
    "value_min": 120,
    "value_max": 255,
    "with_saturation": True,
}

BLOB_FILTER_PROFILE = {
    "area_filter_enabled": True,
    "area_min": 12.0,
    "area_max": 4000.0,
    "circularity_filter_enabled": False,
    "circularity_min": 0.6,
    "circularity_max": 1.0,
}

CLOSING_RADIUS = 1
DOWNSCALE = 0.7

TRACK_MAX_SIZE = 10000
TRACK_MAX_DELAY_S = 1.0
FADE_DURATION_S = 1.0
FADE_STEPS = 20
OPACITY_MAX = 255
