"""
Geometric diagnostics for quadrilaterals before rectification.

These checks never reject input on their own. They predict a natural output
size from the corner geometry and report shapes (concave, self-intersecting)
that rectify into visually meaningless output.
"""

import logging
from typing import List, Tuple

import numpy as np

from src.common.types import Quadrilateral

logger = logging.getLogger(__name__)


def calculate_edge_lengths(quad) -> Tuple[float, float, float, float]:
    """
    Calculate the length of all 4 edges of a quadrilateral.

    Args:
        quad: 4 corner points in order [TL, TR, BR, BL].

    Returns:
        Tuple of (top_edge, right_edge, bottom_edge, left_edge) lengths.

    Example:
        >>> top, right, bottom, left = calculate_edge_lengths(
        ...     [[100, 100], [400, 100], [400, 200], [100, 200]]
        ... )
        >>> print(f"Width: {top:.0f}, Height: {right:.0f}")
        Width: 300, Height: 100
    """
    tl, tr, br, bl = Quadrilateral.from_any(quad).to_numpy()

    top_edge = float(np.linalg.norm(tr - tl))
    right_edge = float(np.linalg.norm(br - tr))
    bottom_edge = float(np.linalg.norm(bl - br))
    left_edge = float(np.linalg.norm(tl - bl))

    logger.debug(
        f"Edge lengths - Top: {top_edge:.1f}, Right: {right_edge:.1f}, "
        f"Bottom: {bottom_edge:.1f}, Left: {left_edge:.1f}"
    )

    return top_edge, right_edge, bottom_edge, left_edge


def calculate_predicted_dimensions(quad) -> Tuple[int, int]:
    """
    Predict an output size that keeps the source resolution.

    Uses the longer of each pair of opposite edges, rounded to whole pixels
    and never below 1.

    Returns:
        Tuple of (width, height) in pixels.
    """
    top, right, bottom, left = calculate_edge_lengths(quad)

    width = max(1, int(round(max(top, bottom))))
    height = max(1, int(round(max(left, right))))

    logger.debug(f"Predicted dimensions: {width} x {height}")
    return width, height


def _turn_cross_products(points: np.ndarray) -> List[float]:
    """Cross product of each pair of consecutive edges, TL->TR->BR->BL->TL."""
    cross_products = []
    for i in range(4):
        v1 = points[(i + 1) % 4] - points[i]
        v2 = points[(i + 2) % 4] - points[(i + 1) % 4]
        cross_products.append(float(v1[0] * v2[1] - v1[1] * v2[0]))
    return cross_products


def is_convex_quadrilateral(quad, tolerance: float = 1e-6) -> bool:
    """
    Check if 4 ordered points form a convex quadrilateral.

    A quadrilateral is convex when every turn along TL->TR->BR->BL->TL has
    the same orientation, i.e. all edge cross products share a sign.
    """
    cross_products = _turn_cross_products(Quadrilateral.from_any(quad).to_numpy())

    positive = [cp > tolerance for cp in cross_products]
    negative = [cp < -tolerance for cp in cross_products]
    return all(positive) or all(negative)


def _segments_intersect(p1, p2, q1, q2) -> bool:
    """Proper intersection test for segments p1-p2 and q1-q2."""

    def orient(a, b, c):
        return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])

    d1 = orient(q1, q2, p1)
    d2 = orient(q1, q2, p2)
    d3 = orient(p1, p2, q1)
    d4 = orient(p1, p2, q2)
    return (d1 * d2 < 0) and (d3 * d4 < 0)


def is_self_intersecting(quad) -> bool:
    """
    Check whether opposite edges of the quadrilateral cross ("bow-tie").

    Only the two pairs of non-adjacent edges can cross in a quadrilateral:
    top/bottom and left/right.
    """
    tl, tr, br, bl = Quadrilateral.from_any(quad).to_numpy()
    return _segments_intersect(tl, tr, br, bl) or _segments_intersect(tr, br, bl, tl)


def inspect_quadrilateral(quad) -> bool:
    """
    Log diagnostics for the quadrilateral and return whether it is convex.

    Non-convex input is accepted but logged, since the resulting transform is
    mathematically valid while the picture it produces is not meaningful.
    """
    if is_convex_quadrilateral(quad):
        logger.debug("Quadrilateral is convex")
        return True

    if is_self_intersecting(quad):
        logger.warning(
            "Self-intersecting quadrilateral: corners are likely out of "
            "TL, TR, BR, BL order; output will be folded"
        )
    else:
        logger.warning("Concave quadrilateral: output will be distorted")

    return False
