#!/usr/bin/env python3
"""
Quadrilateral Rectification Script.

Rectifies the region bounded by four corners of an image into a rectangle
and writes the result to disk.

Corners are given in source-image pixels in TL, TR, BR, BL order. When
``--display-width`` is set they are interpreted in the coordinates of a copy
of the image scaled to that width (as reported by an on-screen editor).

Usage:
    python scripts/rectify_image.py \
        --input photo.jpg \
        --corners 120 80 520 110 540 420 90 400 \
        --width 800 --height 800 \
        --output rectified.jpg
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.rectification import RectificationProcessor  # noqa: E402
from src.rectification.config_loader import DEFAULT_CONFIG_PATH, load_config  # noqa: E402
from src.utils.image_io import load_image, save_image  # noqa: E402
from src.utils.visualization import (  # noqa: E402
    draw_crop_overlay,
    fit_to_display,
    side_by_side,
)

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_corners(values):
    """Group 8 numbers into 4 (x, y) pairs."""
    if len(values) != 8:
        raise ValueError(f"Expected 8 numbers (4 corners), got {len(values)}")
    return [[values[i], values[i + 1]] for i in range(0, 8, 2)]


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Rectify a quadrilateral region of an image"
    )
    parser.add_argument("--input", type=str, required=True, help="Source image path")
    parser.add_argument(
        "--corners",
        type=float,
        nargs=8,
        required=True,
        metavar=("TLX", "TLY", "TRX", "TRY", "BRX", "BRY", "BLX", "BLY"),
        help="Corner coordinates in TL, TR, BR, BL order",
    )
    parser.add_argument("--output", type=str, required=True, help="Output image path")
    parser.add_argument("--width", type=int, default=None, help="Output width")
    parser.add_argument("--height", type=int, default=None, help="Output height")
    parser.add_argument(
        "--display-width",
        type=float,
        default=None,
        help="Width of the display copy the corners were picked on",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to configuration file",
    )
    parser.add_argument(
        "--preview",
        type=str,
        default=None,
        help="Optional path for a side-by-side overlay/result preview (PNG)",
    )

    args = parser.parse_args()

    try:
        config = load_config(Path(args.config))
        image = load_image(args.input)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    corners = parse_corners(args.corners)
    if args.display_width:
        ratio = image.width / args.display_width
        corners = [[x * ratio, y * ratio] for x, y in corners]

    processor = RectificationProcessor(config=config)
    result = processor.process(image, corners, args.width, args.height)

    if not result.is_pass():
        logger.error(result.get_error_message())
        return 1

    save_image(result.rectified_image, args.output, config.output.jpeg_quality)

    if args.preview:
        display = fit_to_display(image, result.output_width)
        ratio = display.width / image.width
        display_corners = [[x * ratio, y * ratio] for x, y in corners]
        overlay = draw_crop_overlay(display, display_corners)
        save_image(side_by_side([overlay, result.rectified_image]), args.preview)

    return 0


if __name__ == "__main__":
    sys.exit(main())
