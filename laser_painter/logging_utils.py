from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import cv2

from .constants import LOG_DIR

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int = logging.INFO, log_dir: Path = LOG_DIR) -> Path:
    """Log in die Konsole und in eine rotierende Datei, gibt den Dateipfad zurück."""

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "laser_painter.log"
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    file_handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3)
    console_handler = logging.StreamHandler()
    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=[file_handler, console_handler])
    # OpenCV schreibt sonst V4L2-Meldungen direkt nach stderr
    if level > logging.DEBUG:
        cv2.utils.logging.setLogLevel(cv2.utils.logging.LOG_LEVEL_ERROR)
    return log_file
