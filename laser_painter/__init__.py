"""
Laser Painter
=============

Laserpunkt im Kamerabild finden und seine Bewegung als Spur sammeln.
"""

__all__ = [
    "constants",
    "config",
    "errors",
    "logging_utils",
    "segmentation",
    "blobs",
    "laser_detector",
    "image_modifier",
    "point_modifier",
    "scheduler",
    "track",
    "pipeline",
    "frame_grabber",
]
