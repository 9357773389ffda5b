"""
Homography Solver

Computes the projective transform that maps four source corners onto four
destination corners. The main entry point, ``solve``, targets the
axis-aligned rectangle ``(0, 0)``-``(width, height)``, which is what
perspective rectification needs.

The 9th coefficient is fixed to 1 and the remaining 8 are found from the
8x8 system produced by the four point correspondences:

    x' * (h7*x + h8*y + 1) = h1*x + h2*y + h3
    y' * (h7*x + h8*y + 1) = h4*x + h5*y + h6
"""

import itertools
import logging
from typing import Union

import numpy as np

from src.common.types import Quadrilateral
from src.rectification.errors import DegenerateQuadrilateral, InvalidDimensions
from src.rectification.linalg import solve_linear_system
from src.rectification.types import Homography

logger = logging.getLogger(__name__)

DEFAULT_PIVOT_EPSILON = 1e-10
DEFAULT_COLLINEARITY_EPSILON = 1e-9

QuadLike = Union[Quadrilateral, np.ndarray, list]


def check_quadrilateral(
    points: np.ndarray, collinearity_epsilon: float = DEFAULT_COLLINEARITY_EPSILON
) -> None:
    """
    Reject corner sets that cannot define a projective transform.

    Checks, in order: finite coordinates, pairwise-distinct corners, and that
    no three corners are collinear. Collinearity is tested with the 2D cross
    product of the two edge vectors leaving a corner, normalised by their
    lengths (i.e. the sine of the angle between them), so the test does not
    depend on the image scale.

    Args:
        points: Corners of shape (4, 2).
        collinearity_epsilon: |sin(angle)| at or below which three corners are
            considered collinear.

    Raises:
        DegenerateQuadrilateral: If any check fails.
    """
    if not np.all(np.isfinite(points)):
        raise DegenerateQuadrilateral(f"Corner coordinates must be finite, got {points.tolist()}")

    for i, j in itertools.combinations(range(4), 2):
        if np.hypot(*(points[j] - points[i])) <= collinearity_epsilon:
            raise DegenerateQuadrilateral(
                f"Corners {i} and {j} coincide at {points[i].tolist()}"
            )

    for i, j, k in itertools.combinations(range(4), 3):
        v1 = points[j] - points[i]
        v2 = points[k] - points[i]
        cross = v1[0] * v2[1] - v1[1] * v2[0]
        scale = np.hypot(*v1) * np.hypot(*v2)

        if abs(cross) <= collinearity_epsilon * scale:
            raise DegenerateQuadrilateral(
                f"Corners {i}, {j} and {k} are collinear "
                f"({points[i].tolist()}, {points[j].tolist()}, {points[k].tolist()})"
            )


def build_linear_system(src: np.ndarray, dst: np.ndarray):
    """
    Build the 8x8 system ``A h = b`` for the coefficients h1..h8.

    Args:
        src: Source corners, shape (4, 2).
        dst: Destination corners, shape (4, 2).

    Returns:
        Tuple ``(A, b)`` with shapes (8, 8) and (8,).
    """
    a = np.zeros((8, 8), dtype=np.float64)
    b = np.zeros(8, dtype=np.float64)

    for i, ((x, y), (xp, yp)) in enumerate(zip(src, dst)):
        a[2 * i] = [x, y, 1.0, 0.0, 0.0, 0.0, -xp * x, -xp * y]
        a[2 * i + 1] = [0.0, 0.0, 0.0, x, y, 1.0, -yp * x, -yp * y]
        b[2 * i] = xp
        b[2 * i + 1] = yp

    return a, b


def solve_point_correspondence(
    src: QuadLike,
    dst: QuadLike,
    pivot_epsilon: float = DEFAULT_PIVOT_EPSILON,
    collinearity_epsilon: float = DEFAULT_COLLINEARITY_EPSILON,
) -> Homography:
    """
    Compute the homography taking four source corners to four destination corners.

    Both corner sets are validated; each must be free of coincident and
    collinear triples. Corner order is preserved: ``src[i]`` maps to ``dst[i]``.

    Args:
        src: Source corners (Quadrilateral, (4, 2) array or list of pairs).
        dst: Destination corners, same forms as ``src``.
        pivot_epsilon: Relative pivot threshold for the elimination.
        collinearity_epsilon: Collinearity tolerance (see ``check_quadrilateral``).

    Returns:
        Homography with bottom-right entry 1.

    Raises:
        DegenerateQuadrilateral: If either corner set is degenerate or the
            linear system is numerically singular.
    """
    src_pts = Quadrilateral.from_any(src).to_numpy()
    dst_pts = Quadrilateral.from_any(dst).to_numpy()

    check_quadrilateral(src_pts, collinearity_epsilon)
    check_quadrilateral(dst_pts, collinearity_epsilon)

    a, b = build_linear_system(src_pts, dst_pts)

    try:
        h = solve_linear_system(a, b, pivot_epsilon)
    except np.linalg.LinAlgError as e:
        raise DegenerateQuadrilateral(f"Homography system is singular: {e}") from e

    if not np.all(np.isfinite(h)):
        raise DegenerateQuadrilateral(f"Homography coefficients are not finite: {h}")

    matrix = np.append(h, 1.0).reshape(3, 3)
    logger.debug(f"Solved homography:\n{matrix}")

    return Homography(matrix)


def solve(
    src: QuadLike,
    dst_width: float,
    dst_height: float,
    pivot_epsilon: float = DEFAULT_PIVOT_EPSILON,
    collinearity_epsilon: float = DEFAULT_COLLINEARITY_EPSILON,
) -> Homography:
    """
    Compute the homography mapping a quadrilateral onto an output rectangle.

    The destination corners are ``(0, 0), (W, 0), (W, H), (0, H)`` in the same
    TL, TR, BR, BL order as ``src``. No reordering of ``src`` takes place.

    Args:
        src: Source corners [TL, TR, BR, BL] in source-image pixels.
        dst_width: Output rectangle width (W).
        dst_height: Output rectangle height (H).
        pivot_epsilon: Relative pivot threshold for the elimination.
        collinearity_epsilon: Collinearity tolerance for the corner check.

    Returns:
        Homography mapping source coordinates to output coordinates.

    Raises:
        InvalidDimensions: If the rectangle size is not finite and positive.
        DegenerateQuadrilateral: If the corners are coincident/collinear or the
            linear system is singular.

    Example:
        >>> H = solve([[10, 10], [90, 10], [90, 90], [10, 90]], 50, 50)
        >>> H.apply([90, 90])
        array([50., 50.])
    """
    if not (np.isfinite(dst_width) and np.isfinite(dst_height)):
        raise InvalidDimensions(
            f"Destination size must be finite, got {dst_width}x{dst_height}"
        )
    if dst_width <= 0 or dst_height <= 0:
        raise InvalidDimensions(
            f"Destination size must be positive, got {dst_width}x{dst_height}"
        )

    dst = Quadrilateral.from_rectangle(float(dst_width), float(dst_height))
    homography = solve_point_correspondence(
        src, dst, pivot_epsilon, collinearity_epsilon
    )

    logger.info(
        f"Solved quadrilateral -> {dst_width:g}x{dst_height:g} rectangle transform "
        f"(det={homography.determinant:.3e})"
    )
    return homography


def invert_homography(
    homography: Homography, determinant_epsilon: float = 1e-12
) -> Homography:
    """
    Inverse of a homography, normalised so its bottom-right entry is 1.

    Raises:
        SingularTransform: If the determinant is ~0.
    """
    inverse = homography.inverse(determinant_epsilon)
    if abs(inverse.matrix[2, 2]) < determinant_epsilon:
        # Output origin maps to infinity; leave unscaled.
        return inverse
    return inverse.normalized()


def project_points(homography: Homography, points) -> np.ndarray:
    """Map an (N, 2) array of points through ``homography``."""
    return homography.apply(points)
