"""
Perspective Resampler

Produces the rectified output raster by inverse mapping: every output pixel
centre is sent back through the inverse homography into the source image,
where the color is read by bilinear interpolation.

Coordinate convention: source pixel ``(i, j)`` covers the square
``[i, i+1) x [j, j+1)`` and its value sits at the centre ``(i+0.5, j+0.5)``.
Mapped points are therefore shifted by half a pixel into index space before
being clamped to ``[0, W-1] x [0, H-1]``, which makes an identity transform
reproduce the source exactly.

Output rows are processed in independent bands. Each band reads the shared,
read-only source and writes only its own rows of the output buffer, so bands
can run on a thread pool without locking.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence, Tuple

import numpy as np

from src.common.types import RasterImage
from src.rectification.errors import InvalidDimensions, SingularTransform
from src.rectification.homography_solver import invert_homography
from src.rectification.types import Homography

logger = logging.getLogger(__name__)

DEFAULT_W_EPSILON = 1e-12
DEFAULT_DETERMINANT_EPSILON = 1e-12
DEFAULT_BAND_HEIGHT = 64
TRANSPARENT = (0, 0, 0, 0)

PIXEL_CENTER = 0.5


def sample_bilinear(pixels: np.ndarray, sx: np.ndarray, sy: np.ndarray) -> np.ndarray:
    """
    Sample an (H, W, C) uint8 image at continuous source coordinates.

    Coordinates are clamped to the image (edge-extend policy), so every input
    position yields a color; there is no wraparound and no index overflow.

    Args:
        pixels: Source buffer of shape (H, W, C).
        sx: X coordinates in source pixel space, any shape.
        sy: Y coordinates, same shape as ``sx``.

    Returns:
        uint8 array of shape ``sx.shape + (C,)``.
    """
    height, width = pixels.shape[:2]

    fx = np.clip(np.asarray(sx, dtype=np.float64) - PIXEL_CENTER, 0.0, width - 1)
    fy = np.clip(np.asarray(sy, dtype=np.float64) - PIXEL_CENTER, 0.0, height - 1)

    x0 = np.floor(fx).astype(np.intp)
    y0 = np.floor(fy).astype(np.intp)
    x1 = np.minimum(x0 + 1, width - 1)
    y1 = np.minimum(y0 + 1, height - 1)

    wx = (fx - x0)[..., np.newaxis]
    wy = (fy - y0)[..., np.newaxis]

    top = pixels[y0, x0] * (1.0 - wx) + pixels[y0, x1] * wx
    bottom = pixels[y1, x0] * (1.0 - wx) + pixels[y1, x1] * wx
    blended = top * (1.0 - wy) + bottom * wy

    return np.clip(np.rint(blended), 0, 255).astype(np.uint8)


def _row_bands(height: int, band_height: int) -> List[Tuple[int, int]]:
    """Split ``[0, height)`` into consecutive ``(start, stop)`` row ranges."""
    band_height = max(1, int(band_height))
    return [
        (start, min(start + band_height, height))
        for start in range(0, height, band_height)
    ]


def _resample_band(
    pixels: np.ndarray,
    inverse: np.ndarray,
    output: np.ndarray,
    row_start: int,
    row_stop: int,
    background: np.ndarray,
    w_epsilon: float,
) -> int:
    """
    Fill output rows ``[row_start, row_stop)``.

    Returns:
        Number of pixels in the band that mapped to infinity.
    """
    out_width = output.shape[1]

    u = np.arange(out_width, dtype=np.float64) + PIXEL_CENTER
    v = np.arange(row_start, row_stop, dtype=np.float64) + PIXEL_CENTER
    uu, vv = np.meshgrid(u, v)

    xh = inverse[0, 0] * uu + inverse[0, 1] * vv + inverse[0, 2]
    yh = inverse[1, 0] * uu + inverse[1, 1] * vv + inverse[1, 2]
    wh = inverse[2, 0] * uu + inverse[2, 1] * vv + inverse[2, 2]

    at_infinity = np.abs(wh) < w_epsilon
    safe_w = np.where(at_infinity, 1.0, wh)

    with np.errstate(over="ignore"):
        sx = xh / safe_w
        sy = yh / safe_w

    colors = sample_bilinear(pixels, sx, sy)
    colors[at_infinity] = background

    output[row_start:row_stop] = colors
    return int(np.count_nonzero(at_infinity))


def resample(
    source: RasterImage,
    transform: Homography,
    out_width: int,
    out_height: int,
    background: Sequence[int] = TRANSPARENT,
    w_epsilon: float = DEFAULT_W_EPSILON,
    determinant_epsilon: float = DEFAULT_DETERMINANT_EPSILON,
    workers: int = 1,
    band_height: int = DEFAULT_BAND_HEIGHT,
) -> RasterImage:
    """
    Warp ``source`` through ``transform`` into a new ``out_width x out_height`` image.

    For each output pixel ``(u, v)`` the centre ``(u+0.5, v+0.5)`` is mapped by
    the inverse transform to homogeneous source coordinates ``(x, y, w)``.
    When ``|w| < w_epsilon`` the point lies at infinity and the background
    color is written; otherwise the source is sampled bilinearly at
    ``(x/w, y/w)`` with edge clamping.

    Args:
        source: RGBA source image. Read only.
        transform: Source -> output homography (e.g. from ``solve``).
        out_width: Output width in pixels (> 0).
        out_height: Output height in pixels (> 0).
        background: RGBA written for points at infinity.
        w_epsilon: Threshold on ``|w|`` for the at-infinity case.
        determinant_epsilon: Threshold on ``|det|`` for invertibility.
        workers: Number of threads; values above 1 split the rows in bands
            across a thread pool.
        band_height: Output rows per band.

    Returns:
        Newly allocated RasterImage of shape (out_height, out_width, 4).

    Raises:
        InvalidDimensions: If either output dimension is not positive. No
            buffer is allocated in that case.
        SingularTransform: If ``transform`` cannot be inverted.
    """
    if out_width <= 0 or out_height <= 0:
        raise InvalidDimensions(
            f"Output size must be positive, got {out_width}x{out_height}"
        )
    out_width = int(out_width)
    out_height = int(out_height)

    if not isinstance(source, RasterImage):
        raise TypeError(f"Expected RasterImage source, got {type(source)}")

    inverse = invert_homography(transform, determinant_epsilon).matrix
    if not np.all(np.isfinite(inverse)):
        raise SingularTransform(f"Inverse transform is not finite:\n{inverse}")

    background_px = np.asarray(background, dtype=np.uint8)
    if background_px.shape != (4,):
        raise ValueError(f"Background must be an RGBA tuple, got {background}")

    pixels = source.data
    output = np.empty((out_height, out_width, 4), dtype=np.uint8)
    bands = _row_bands(out_height, band_height)

    logger.debug(
        f"Resampling {source.width}x{source.height} -> {out_width}x{out_height} "
        f"in {len(bands)} band(s) with {workers} worker(s)"
    )

    def run(band: Tuple[int, int]) -> int:
        return _resample_band(
            pixels, inverse, output, band[0], band[1], background_px, w_epsilon
        )

    if workers > 1 and len(bands) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            at_infinity = sum(pool.map(run, bands))
    else:
        at_infinity = sum(run(band) for band in bands)

    if at_infinity:
        logger.warning(
            f"{at_infinity} output pixel(s) mapped to infinity and were filled "
            f"with background {tuple(background_px.tolist())}"
        )

    logger.info(f"Resampled output image {out_width}x{out_height}")
    return RasterImage(data=output)
