from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

from .config import ROIScaleTransform
from .segmentation import validate_frame

LOGGER = logging.getLogger(__name__)


def crop_and_scale(frame: np.ndarray, transform: ROIScaleTransform) -> Optional[np.ndarray]:
    """Schneide die ROI aus dem Originalframe und verkleinere sie um ``transform.scale``.

    Gibt ``None`` zurück, wenn die ROI nicht im Frame liegt oder das Ergebnis
    nach dem Skalieren leer wäre.
    """

    validate_frame(frame)
    height, width = frame.shape[:2]
    result = frame
    roi = transform.roi
    if roi is not None:
        if not roi.fits_in(width, height):
            LOGGER.debug("ROI %s liegt nicht im Frame %sx%s", roi, width, height)
            return None
        if roi.size != (width, height):
            result = frame[roi.y:roi.y + roi.height, roi.x:roi.x + roi.width].copy()

    if transform.scale != 1.0:
        h, w = result.shape[:2]
        size = (int(w * transform.scale), int(h * transform.scale))
        # Kleine Bilder können beim Skalieren leer werden
        if size[0] == 0 or size[1] == 0:
            return None
        result = cv2.resize(result, size, interpolation=cv2.INTER_AREA)
    return result
