from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple, Union

import cv2
import numpy as np

from .config import CameraConfig

LOGGER = logging.getLogger(__name__)


class VideoFrameGrabber:
    """Liefert RGB-Frames aus einer Kamera oder Videodatei.

    Ändert sich die Bildgröße, wird ``on_geometry_change`` vor der Rückgabe
    des Frames aufgerufen.
    """

    def __init__(
        self,
        source: Union[int, str],
        camera: Optional[CameraConfig] = None,
        on_geometry_change: Optional[Callable[[Tuple[int, int]], None]] = None,
    ):
        self.source = source
        self.camera = camera
        self.on_geometry_change = on_geometry_change
        self.cap: Optional[cv2.VideoCapture] = None
        self.frame_size: Optional[Tuple[int, int]] = None

    def start(self) -> None:
        self.cap = cv2.VideoCapture(self.source)
        if not self.cap.isOpened():
            self.cap = None
            raise RuntimeError(f"Videoquelle {self.source!r} konnte nicht geöffnet werden")
        if isinstance(self.source, int) and self.camera is not None:
            cam = self.camera
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, cam.width)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cam.height)
            self.cap.set(cv2.CAP_PROP_FPS, cam.fps)
            LOGGER.info("Kamera gestartet (%s x %s @ %sfps)", cam.width, cam.height, cam.fps)
        else:
            LOGGER.info("Videoquelle %s geöffnet", self.source)

    def stop(self) -> None:
        if self.cap:
            self.cap.release()
            self.cap = None
            LOGGER.info("Videoquelle geschlossen")

    def read(self) -> Optional[np.ndarray]:
        """Nächster Frame als RGB, ``None`` am Ende einer Videodatei."""

        if self.cap is None:
            raise RuntimeError("Videoquelle nicht initialisiert")
        ret, frame = self.cap.read()
        if not ret:
            if isinstance(self.source, int):
                raise RuntimeError("Frame konnte nicht gelesen werden")
            return None

        size = (frame.shape[1], frame.shape[0])
        if size != self.frame_size:
            self.frame_size = size
            LOGGER.info("Bildgröße %sx%s", *size)
            if self.on_geometry_change:
                self.on_geometry_change(size)
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def __enter__(self) -> "VideoFrameGrabber":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
