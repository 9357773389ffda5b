"""
Error taxonomy for the Rectification module.

All engine errors derive from ``RectificationError`` which is itself a
``ValueError``, so callers that only guard against bad input values keep
working unchanged.
"""


class RectificationError(ValueError):
    """Base class for every error raised by the rectification engine."""


class DegenerateQuadrilateral(RectificationError):
    """
    The source quadrilateral cannot define a projective transform.

    Raised when two corners coincide, three corners are collinear, a corner
    is not finite, or the 8x8 linear system is numerically singular.
    """


class SingularTransform(RectificationError):
    """The homography is not invertible (determinant is ~0)."""


class InvalidDimensions(RectificationError):
    """A requested output width or height is zero, negative or not finite."""
