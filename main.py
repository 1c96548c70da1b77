#!/usr/bin/env python3
"""
framescan - recognize text inside named regions of an image.

Usage:
    # Scan the whole image
    python main.py scan <image>

    # Scan named frames (pixels, fractions or percentages)
    python main.py scan <image> -f "title=0,0,1,0.1" -f "total=80%,90%,20%,10%"

    # Show the image properties frames are resolved against
    python main.py info <image>
"""

import os
import warnings

# Quiet native logging before paddle is imported
os.environ.setdefault("PADDLE_PDX_LOG_LEVEL", "ERROR")
os.environ.setdefault("GLOG_minloglevel", "3")
os.environ.setdefault("PADDLE_PDX_DISABLE_MODEL_SOURCE_CHECK", "True")
warnings.filterwarnings("ignore", category=UserWarning)

import argparse
import json
import logging
import sys

from framescan import Frame, InvalidImageError, Scanner
from framescan.config import get_settings
from framescan.image_io import read_image_properties
from framescan.logging_config import get_log_level, setup_logging


def _parse_frames(specs, properties):
    frames = []
    for spec in specs:
        frame = Frame.from_string(spec, properties)
        if frame is None:
            print(f"Invalid frame: {spec!r}", file=sys.stderr)
            sys.exit(2)
        frames.append(frame)
    return frames


def scan_cmd(args):
    """Scan frames of one image."""
    settings = get_settings()
    if args.engine:
        settings = settings.model_copy(update={"engine": args.engine})

    try:
        scanner = Scanner.from_path(args.image, settings=settings)
    except InvalidImageError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    with scanner:
        if args.lang:
            scanner.language_codes = args.lang
        frames = _parse_frames(args.frame, scanner.properties) or [scanner.extent()]

        def on_result(name, value):
            if not args.json:
                print(f"{name or '-'}: {value if value is not None else ''}", flush=True)

        results = scanner.scan_frames(frames, on_result)

    if args.json:
        print(json.dumps(results, ensure_ascii=False, indent=2))


def info_cmd(args):
    """Print image properties as JSON."""
    try:
        props = read_image_properties(args.image)
    except InvalidImageError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    print(json.dumps(props.model_dump(by_alias=True, exclude_none=True), indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Recognize text inside named regions of an image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Frame syntax:
  [name=]x,y,w,h      pixels, or fractions when all values are within 0..1
  [name=]Xpx,...      force pixels
  [name=]X%,...       percent of the image size
  [name=]extent       the whole image
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    scan_parser = subparsers.add_parser("scan", help="Scan frames of an image")
    scan_parser.add_argument("image", help="Image path")
    scan_parser.add_argument(
        "-f", "--frame", action="append", default=[], help="Frame spec (repeatable)"
    )
    scan_parser.add_argument(
        "-l", "--lang", action="append", default=[], help="Language hint (repeatable)"
    )
    scan_parser.add_argument("--engine", choices=["paddle", "mock"], help="Recognition engine")
    scan_parser.add_argument("--json", action="store_true", help="Print a JSON mapping")
    scan_parser.set_defaults(func=scan_cmd)

    info_parser = subparsers.add_parser("info", help="Show image properties")
    info_parser.add_argument("image", help="Image path")
    info_parser.set_defaults(func=info_cmd)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    level = logging.DEBUG if args.verbose else get_log_level("FRAMESCAN_LOG_LEVEL", logging.WARNING)
    setup_logging(level=level)
    args.func(args)


if __name__ == "__main__":
    main()
