from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional, Union

from .config import Rect, ROIScaleTransform, Settings, load_settings
from .errors import ConfigError, PipelineWarning
from .frame_grabber import VideoFrameGrabber
from .logging_utils import setup_logging
from .pipeline import LaserPipeline, PipelineConfig
from .track import TrackSnapshot


LOGGER = logging.getLogger(__name__)


def parse_source(value: str) -> Union[int, str]:
    return int(value) if value.isdigit() else value


def parse_roi(value: str) -> Rect:
    try:
        x, y, width, height = (int(v) for v in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"ROI im Format x,y,breite,höhe erwartet: {value!r}")
    try:
        return Rect(x, y, width, height)
    except ConfigError as exc:
        raise argparse.ArgumentTypeError(str(exc))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="laser_painter", description="Laserpunkt verfolgen")
    parser.add_argument("--source", type=parse_source, default=None, help="Kameraindex oder Videodatei")
    parser.add_argument("--roi", type=parse_roi, default=None, help="x,y,breite,höhe im Originalbild")
    parser.add_argument("--scale", type=float, default=None, help="Verkleinerung in (0, 1]")
    parser.add_argument("--max-delay", type=float, default=None, help="Sekunden bis eine neue Spur beginnt")
    parser.add_argument("--max-size", type=int, default=None, help="Maximale Anzahl Spurpunkte")
    parser.add_argument("--debug", action="store_true")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    transform = settings.transform
    if args.roi is not None or args.scale is not None:
        transform = ROIScaleTransform(
            roi=args.roi if args.roi is not None else transform.roi,
            scale=args.scale if args.scale is not None else transform.scale,
        )
    tracker = settings.tracker
    if args.max_delay is not None:
        tracker = replace(tracker, max_delay=args.max_delay)
    if args.max_size is not None:
        tracker = replace(tracker, max_size=args.max_size)
    return replace(settings, transform=transform, tracker=tracker)


def log_warning(warning: PipelineWarning) -> None:
    LOGGER.debug("Warnung (%s): %s", warning.kind.value, warning.message)


def log_track(snapshot: TrackSnapshot) -> None:
    if snapshot.track:
        x, y = snapshot.track[-1]
        LOGGER.debug("Spitze bei (%.1f, %.1f), %s Punkte", x, y, len(snapshot.track))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.debug else logging.INFO)
    try:
        settings = apply_overrides(load_settings(), args)
    except ConfigError as exc:
        LOGGER.error("Ungültige Parameter: %s", exc)
        return 1

    pipeline = LaserPipeline(
        PipelineConfig(detector=settings.detector, transform=settings.transform),
        settings.tracker,
        on_warning=log_warning,
        on_track_changed=log_track,
    )
    source = args.source if args.source is not None else settings.camera.device_index
    grabber = VideoFrameGrabber(source, settings.camera, on_geometry_change=pipeline.set_canvas_size)

    frames = found = 0
    try:
        with grabber:
            while True:
                frame = grabber.read()
                if frame is None:
                    break
                result = pipeline.process(frame)
                frames += 1
                found += result.found
    except KeyboardInterrupt:
        LOGGER.info("Abbruch durch Benutzer")
    except RuntimeError as exc:
        LOGGER.exception("Kamerafehler: %s", exc)
        return 1
    LOGGER.info("%s Frames verarbeitet, Laser in %s gefunden", frames, found)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as exc:
        logging.basicConfig(level=logging.ERROR)
        LOGGER.exception("Fehler im Hauptprogramm: %s", exc)
        sys.exit(1)
