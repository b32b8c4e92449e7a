from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np

from .config import BlobFilterConfig

LOGGER = logging.getLogger(__name__)


@dataclass
class Blob:
    """Zusammenhängende Maskenregion.

    ``m00`` ist die Pixelfläche, ``m10``/``m01`` die Pixelsummen der x- und
    y-Koordinaten. Der Umfang stammt aus der äußeren Kontur.
    """

    contour: np.ndarray
    m00: float
    m10: float
    m01: float
    perimeter: float

    @property
    def area(self) -> float:
        return self.m00

    @property
    def circularity(self) -> Optional[float]:
        """4π·Fläche / Umfang², auf 1 begrenzt; ``None`` bei Umfang 0.

        Bei kleinen Blobs läuft die Kontur durch die Pixelmitten und ist
        kürzer als der Rand der Pixelfläche, der Rohwert liegt dann über 1.
        """
        if self.perimeter <= 0:
            return None
        return min(1.0, 4.0 * math.pi * self.m00 / (self.perimeter * self.perimeter))


def extract_blobs(mask: np.ndarray) -> List[Blob]:
    count, labels, stats, centroids = cv2.connectedComponentsWithStats(mask, connectivity=8)
    blobs = []
    for label in range(1, count):
        x, y, w, h, area = (int(v) for v in stats[label])
        # Rand von einem Pixel, damit die Kontur nicht am Bildrand klebt
        component = np.pad((labels[y:y + h, x:x + w] == label).astype(np.uint8), 1)
        contours, _ = cv2.findContours(
            component, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE, offset=(x - 1, y - 1)
        )
        contour = max(contours, key=len)
        cx, cy = centroids[label]
        blobs.append(
            Blob(
                contour=contour,
                m00=float(area),
                m10=float(cx) * area,
                m01=float(cy) * area,
                perimeter=cv2.arcLength(contour, True),
            )
        )
    return blobs


def passes_filters(blob: Blob, cfg: BlobFilterConfig) -> bool:
    if cfg.area_filter_enabled and not cfg.area_min <= blob.m00 <= cfg.area_max:
        return False
    if cfg.circularity_filter_enabled:
        circularity = blob.circularity
        if circularity is None:
            return False
        if not cfg.circularity_min <= circularity <= cfg.circularity_max:
            return False
    return True


def select_blob(blobs: List[Blob], cfg: BlobFilterConfig) -> Optional[Blob]:
    """Wähle den einzigen Laser-Kandidaten oder ``None``.

    Mehrdeutige Ergebnisse (kein oder mehr als ein Blob nach dem Filtern)
    gelten als nicht gefunden, es wird nie geraten.
    """

    if not blobs:
        return None
    if len(blobs) == 1 and not cfg.any_enabled:
        return blobs[0]

    survivors = [b for b in blobs if b.m00 > 0 and passes_filters(b, cfg)]
    if len(survivors) != 1:
        LOGGER.debug("Kein eindeutiger Blob: %s von %s übrig", len(survivors), len(blobs))
        return None
    return survivors[0]


def blob_centroid(blob: Blob) -> Optional[Tuple[float, float]]:
    if blob.m00 == 0:
        return None
    return blob.m10 / blob.m00, blob.m01 / blob.m00
