"""
Visualization Utilities

Draws the crop overlay shown while the user positions the four corners:
the area outside the quadrilateral is dimmed, the quadrilateral is outlined
and each corner gets a round handle (filled when it is being dragged).
"""

from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from src.common.types import Quadrilateral, RasterImage

HIGHLIGHT_RGB = (37, 99, 235)  # #2563EB
HANDLE_FILL_RGB = (255, 255, 255)
DIM_ALPHA = 0.5
OUTLINE_THICKNESS = 2
HANDLE_RADIUS = 10


def draw_crop_overlay(
    image: RasterImage,
    corners,
    active_corner: Optional[int] = None,
    highlight: Tuple[int, int, int] = HIGHLIGHT_RGB,
    dim_alpha: float = DIM_ALPHA,
) -> RasterImage:
    """
    Render the corner-selection overlay on a copy of ``image``.

    Args:
        image: Display image (RGBA). Not modified.
        corners: 4 corner points [TL, TR, BR, BL] in display coordinates.
        active_corner: Index of the handle being dragged, drawn filled.
        highlight: RGB color of the outline and the active handle.
        dim_alpha: Fraction of black blended over the area outside the quad.

    Returns:
        New RGBA raster with the overlay drawn.
    """
    quad = Quadrilateral.from_any(corners).to_numpy()
    polygon = np.round(quad).astype(np.int32)

    canvas = image.data.copy()
    rgb = canvas[:, :, :3]

    # Dim everything, then restore the inside of the quadrilateral
    inside = np.zeros(canvas.shape[:2], dtype=np.uint8)
    cv2.fillPoly(inside, [polygon], 255)
    dimmed = (rgb.astype(np.float32) * (1.0 - dim_alpha)).astype(np.uint8)
    rgb[inside == 0] = dimmed[inside == 0]

    rgb = np.ascontiguousarray(rgb)
    cv2.polylines(
        rgb, [polygon], isClosed=True, color=highlight, thickness=OUTLINE_THICKNESS
    )

    for index, (x, y) in enumerate(polygon):
        fill = highlight if index == active_corner else HANDLE_FILL_RGB
        center = (int(x), int(y))
        cv2.circle(rgb, center, HANDLE_RADIUS, fill, thickness=-1)
        cv2.circle(rgb, center, HANDLE_RADIUS, highlight, thickness=OUTLINE_THICKNESS)

    canvas[:, :, :3] = rgb
    return RasterImage(data=canvas)


def fit_to_display(image: RasterImage, display_width: int) -> RasterImage:
    """Resize an image to ``display_width`` keeping its aspect ratio."""
    display_height = max(1, int(round(display_width * image.height / image.width)))
    interpolation = cv2.INTER_AREA if display_width < image.width else cv2.INTER_LINEAR
    resized = cv2.resize(
        image.data, (int(display_width), display_height), interpolation=interpolation
    )
    return RasterImage(data=resized)


def side_by_side(images: Sequence[RasterImage], gap: int = 8) -> RasterImage:
    """Place images left to right on a transparent strip, top-aligned."""
    height = max(img.height for img in images)
    width = sum(img.width for img in images) + gap * (len(images) - 1)

    strip = np.zeros((height, width, 4), dtype=np.uint8)
    x = 0
    for img in images:
        strip[: img.height, x : x + img.width] = img.data
        x += img.width + gap

    return RasterImage(data=strip)
