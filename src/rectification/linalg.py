"""
Small dense linear algebra helpers used by the homography solver and resampler.

Failures are reported with ``numpy.linalg.LinAlgError``; callers translate
them into the rectification error taxonomy.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def solve_linear_system(
    a: np.ndarray, b: np.ndarray, pivot_epsilon: float = 1e-10
) -> np.ndarray:
    """
    Solve ``A x = b`` by Gaussian elimination with partial pivoting.

    At every column the row with the largest absolute value among the
    remaining rows is swapped into the pivot position. The pivot threshold is
    relative to the largest coefficient of ``A`` so that systems built from
    large pixel coordinates are judged on the same footing as small ones.

    Args:
        a: Square coefficient matrix of shape (n, n).
        b: Right-hand side of shape (n,).
        pivot_epsilon: Relative magnitude below which a pivot is treated as 0.

    Returns:
        Solution vector of shape (n,), float64.

    Raises:
        ValueError: If the shapes of ``a`` and ``b`` are inconsistent.
        numpy.linalg.LinAlgError: If the matrix is numerically singular.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    n = a.shape[0]
    if a.shape != (n, n) or b.shape != (n,):
        raise ValueError(
            f"Expected square matrix and matching vector, got {a.shape} and {b.shape}"
        )

    # Augmented matrix [A | b], eliminated in place
    m = np.column_stack([a, b])
    threshold = pivot_epsilon * max(float(np.abs(a).max(initial=0.0)), 1.0)

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(m[col:, col])))
        pivot = m[pivot_row, col]

        if abs(pivot) < threshold:
            raise np.linalg.LinAlgError(
                f"Pivot {pivot:.3e} in column {col} below threshold {threshold:.3e}"
            )

        if pivot_row != col:
            m[[col, pivot_row]] = m[[pivot_row, col]]

        factors = m[col + 1 :, col] / m[col, col]
        m[col + 1 :, col:] -= np.outer(factors, m[col, col:])

    # Back substitution on the upper triangular system
    x = np.zeros(n, dtype=np.float64)
    for row in range(n - 1, -1, -1):
        x[row] = (m[row, n] - m[row, row + 1 : n] @ x[row + 1 :]) / m[row, row]

    return x


def determinant_3x3(m: np.ndarray) -> float:
    """Determinant of a 3x3 matrix by cofactor expansion along the first row."""
    (a, b, c), (d, e, f), (g, h, i) = np.asarray(m, dtype=np.float64)
    return float(a * (e * i - f * h) - b * (d * i - f * g) + c * (d * h - e * g))


def adjugate_3x3(m: np.ndarray) -> np.ndarray:
    """Adjugate (transposed cofactor matrix) of a 3x3 matrix."""
    (a, b, c), (d, e, f), (g, h, i) = np.asarray(m, dtype=np.float64)
    return np.array(
        [
            [e * i - f * h, c * h - b * i, b * f - c * e],
            [f * g - d * i, a * i - c * g, c * d - a * f],
            [d * h - e * g, b * g - a * h, a * e - b * d],
        ],
        dtype=np.float64,
    )


def invert_3x3(m: np.ndarray, determinant_epsilon: float = 1e-12) -> np.ndarray:
    """
    Invert a 3x3 matrix analytically via ``adj(M) / det(M)``.

    Raises:
        numpy.linalg.LinAlgError: If ``|det(M)| < determinant_epsilon``.
    """
    det = determinant_3x3(m)
    if not np.isfinite(det) or abs(det) < determinant_epsilon:
        raise np.linalg.LinAlgError(f"Matrix is singular (determinant={det:.3e})")

    logger.debug(f"Inverting 3x3 matrix with determinant {det:.6e}")
    return adjugate_3x3(m) / det
