"""Command-line front end: rectanglify an image file."""

import argparse
import logging
import os
import sys
from pathlib import Path

from config_manager import ConfigManager
from models import CONFIG_FILE, OutputFormat, RectanglifyConfig, validate_rects_per_pixel
from rectanglify import RectanglifyProcessor

logger = logging.getLogger("rectanglify")


def _rects_per_pixel(value: str) -> float:
    try:
        return validate_rects_per_pixel(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="rectanglify",
        description="Redraw an image as black-bordered rectangles whose density "
        "follows the image's darkness.",
    )
    parser.add_argument("input", type=Path, help="Image to read")
    parser.add_argument("output", type=Path, help="Where to write the result")
    parser.add_argument(
        "-r",
        "--rects-per-pixel",
        type=_rects_per_pixel,
        default=None,
        help="Rectangles per unit of darkness (a fully black pixel is 1 unit)",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=[fmt.value for fmt in OutputFormat],
        default=None,
        help="Output pixel layout (default: gray)",
    )
    parser.add_argument("--svg", type=Path, default=None, help="Also write the lines as SVG")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Read defaults from this JSON file (e.g. {CONFIG_FILE})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> RectanglifyConfig:
    """Merge command-line options over the defaults (or a config file)."""
    config = ConfigManager(args.config).load() if args.config else RectanglifyConfig()
    if args.rects_per_pixel is not None:
        config.rects_per_pixel = args.rects_per_pixel
    if args.format is not None:
        config.output_format = OutputFormat(args.format)
    return config


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if args.verbose:
        level = logging.DEBUG
    else:
        level_name = os.environ.get("RECTANGLIFY_LOG_LEVEL", "INFO")
        level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    config = build_config(args)
    processor = RectanglifyProcessor(config)

    try:
        processed = processor.process(args.input)
        processor.save(processed, args.output)
        if args.svg is not None:
            processor.export_svg(processed, args.svg)
        elif config.export_svg:
            processor.export_svg(processed, args.output.with_suffix(".svg"))
    except (ValueError, OSError) as e:
        logger.error("%s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
