"""
Data types and structures for the Rectification module.

Provides type-safe containers for the homography, configuration and results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from src.common.types import RasterImage
from src.rectification.errors import SingularTransform
from src.rectification.linalg import determinant_3x3, invert_3x3


@dataclass(frozen=True, eq=False)
class Homography:
    """
    Immutable 3x3 projective transform (float64, row-major).

    The matrix is copied on construction and marked read-only, so a
    Homography can be shared between threads without copying.

    Example:
        >>> H = Homography(np.eye(3))
        >>> H.apply([[10.0, 20.0]])
        array([[10., 20.]])
    """

    matrix: np.ndarray

    def __post_init__(self):
        m = np.array(self.matrix, dtype=np.float64)
        if m.shape != (3, 3):
            raise ValueError(f"Expected homography of shape (3, 3), got {m.shape}")
        m.setflags(write=False)
        object.__setattr__(self, "matrix", m)

    @classmethod
    def identity(cls) -> "Homography":
        return cls(np.eye(3))

    @property
    def determinant(self) -> float:
        return determinant_3x3(self.matrix)

    def apply(self, points) -> np.ndarray:
        """
        Map points through the transform and dehomogenize.

        Args:
            points: Array-like of shape (N, 2) or (2,).

        Returns:
            Mapped points with the same shape as the input. Points sent to
            infinity (w == 0) come back as ``inf``/``nan``.
        """
        pts = np.asarray(points, dtype=np.float64)
        single = pts.ndim == 1
        pts = pts.reshape(-1, 2)

        homogeneous = np.column_stack([pts, np.ones(len(pts))]) @ self.matrix.T
        with np.errstate(divide="ignore", invalid="ignore"):
            mapped = homogeneous[:, :2] / homogeneous[:, 2:3]

        return mapped[0] if single else mapped

    def inverse(self, determinant_epsilon: float = 1e-12) -> "Homography":
        """
        Analytic inverse via adjugate / determinant.

        Raises:
            SingularTransform: If the determinant is ~0.
        """
        try:
            return Homography(invert_3x3(self.matrix, determinant_epsilon))
        except np.linalg.LinAlgError as e:
            raise SingularTransform(f"Homography is not invertible: {e}") from e

    def normalized(self) -> "Homography":
        """Scale the matrix so that its bottom-right entry is 1 (if non-zero)."""
        h33 = self.matrix[2, 2]
        if h33 == 0:
            return self
        return Homography(self.matrix / h33)


class DecisionStatus(Enum):
    """Processor decision outcomes."""

    PASS = "PASS"
    REJECT = "REJECT"


class RejectionReason(Enum):
    """Specific reasons for rejection."""

    DEGENERATE_QUADRILATERAL = "Degenerate Quadrilateral"  # Collinear/coincident corners
    SINGULAR_TRANSFORM = "Singular Transform"  # Homography not invertible
    INVALID_DIMENSIONS = "Invalid Dimensions"  # Zero/negative output size
    NONE = "None"  # No rejection (passed all checks)


class SizeMode(Enum):
    """How the processor picks the output size when the caller gives none."""

    FIXED = "fixed"  # output.default_width x output.default_height
    AUTO = "auto"  # max opposite edge lengths of the quadrilateral


@dataclass
class SolverConfig:
    """Configuration for the homography solver."""

    pivot_epsilon: float  # Relative pivot threshold for Gaussian elimination
    collinearity_epsilon: float  # |sin| of corner angle treated as collinear


@dataclass
class ResamplerConfig:
    """Configuration for the perspective resampler."""

    w_epsilon: float  # |w| below which a mapped point is at infinity
    determinant_epsilon: float  # |det| below which a transform is singular
    background_rgba: Tuple[int, int, int, int]  # Written where no sample exists
    workers: int  # Threads for row-band parallelism (1 = serial)
    band_height: int  # Output rows per band


@dataclass
class OutputConfig:
    """Configuration for output sizing and export."""

    size_mode: SizeMode
    default_width: int
    default_height: int
    jpeg_quality: int


@dataclass
class RectificationConfig:
    """Complete rectification module configuration."""

    solver: SolverConfig
    resampler: ResamplerConfig
    output: OutputConfig


@dataclass
class RectificationResult:
    """
    Output from the rectification processor.

    Attributes:
        decision: PASS or REJECT status.
        rectified_image: The rectified RGBA output (None if rejected).
        homography: Source -> output transform (None if it could not be solved).
        rejection_reason: Specific reason if rejected, NONE otherwise.
        output_width: Requested output width.
        output_height: Requested output height.
        is_convex: Whether the corners formed a convex quadrilateral.
        error_detail: Message of the engine error that caused rejection.
    """

    decision: DecisionStatus
    rectified_image: Optional[RasterImage]
    homography: Optional[Homography]
    rejection_reason: RejectionReason
    output_width: int
    output_height: int
    is_convex: bool
    error_detail: str = ""

    def is_pass(self) -> bool:
        """Check if rectification succeeded."""
        return self.decision == DecisionStatus.PASS

    def get_error_message(self) -> str:
        """Get human-readable error message."""
        if self.is_pass():
            return "Rectification succeeded"

        reason_messages = {
            RejectionReason.DEGENERATE_QUADRILATERAL: (
                "Corners do not form a usable quadrilateral; "
                "move the corners apart so no three lie on a line"
            ),
            RejectionReason.SINGULAR_TRANSFORM: (
                "Perspective transform could not be inverted"
            ),
            RejectionReason.INVALID_DIMENSIONS: (
                f"Output size {self.output_width}x{self.output_height} is invalid"
            ),
        }

        return reason_messages.get(
            self.rejection_reason, f"Rejected: {self.rejection_reason.value}"
        )
