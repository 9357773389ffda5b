"""
Common type definitions for the quadrilateral rectification engine.

This module provides Pydantic-based type definitions for the core data
structures shared by the solver, the resampler and the I/O helpers:
RGBA raster images, 2D points and ordered quadrilaterals.

These types provide:
- Type validation and conversion
- Consistent interfaces across modules
- Integration with numpy arrays
"""

from typing import Any, List, Sequence, Tuple, Union

import numpy as np
from pydantic import BaseModel, Field, field_validator

CORNER_NAMES = ("Top-Left", "Top-Right", "Bottom-Right", "Bottom-Left")


class RasterImage(BaseModel):
    """
    Type-safe wrapper for an interleaved RGBA image (8 bits per channel).

    The buffer is always a C-contiguous numpy array of shape (H, W, 4) and
    dtype uint8. A RasterImage is owned by whichever stage created it; the
    resampler never writes into the image it reads from.

    Attributes:
        data: Pixel buffer, shape (H, W, 4), dtype uint8, channel order RGBA.

    Example:
        >>> raster = RasterImage.blank(640, 480, fill=(255, 0, 0, 255))
        >>> print(raster.width, raster.height)  # 640 480
    """

    data: np.ndarray = Field(..., description="RGBA pixel buffer (H, W, 4)")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("data")
    @classmethod
    def _validate_buffer(cls, v: np.ndarray) -> np.ndarray:
        """
        Validate that the numpy array is a non-empty RGBA uint8 buffer.

        Raises:
            ValueError: If array is not a valid RGBA image.
        """
        if not isinstance(v, np.ndarray):
            raise ValueError(f"Expected numpy.ndarray, got {type(v)}")

        if v.size == 0:
            raise ValueError("Image array is empty")

        if v.ndim != 3 or v.shape[2] != 4:
            raise ValueError(f"Expected RGBA image of shape (H, W, 4), got {v.shape}")

        if v.dtype != np.uint8:
            raise ValueError(
                f"Expected uint8 dtype for image, got {v.dtype}. "
                "Images should be in range [0, 255]"
            )

        return np.ascontiguousarray(v)

    @classmethod
    def blank(
        cls, width: int, height: int, fill: Tuple[int, int, int, int] = (0, 0, 0, 0)
    ) -> "RasterImage":
        """Allocate a new image filled with a single RGBA color."""
        data = np.empty((int(height), int(width), 4), dtype=np.uint8)
        data[...] = np.asarray(fill, dtype=np.uint8)
        return cls(data=data)

    @property
    def shape(self) -> Tuple[int, ...]:
        """Get image shape (H, W, 4)."""
        return self.data.shape

    @property
    def height(self) -> int:
        """Get image height in pixels."""
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        """Get image width in pixels."""
        return int(self.data.shape[1])

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """Return the RGBA value at column ``x``, row ``y``."""
        r, g, b, a = self.data[y, x]
        return int(r), int(g), int(b), int(a)

    def to_numpy(self) -> np.ndarray:
        """Get underlying numpy array."""
        return self.data

    def copy(self) -> "RasterImage":
        """Create a deep copy of the image."""
        return RasterImage(data=self.data.copy())

    def __repr__(self) -> str:
        return f"RasterImage(width={self.width}, height={self.height})"


class Point2D(BaseModel):
    """
    A 2D coordinate in a specific pixel frame (source image or output image).

    Coordinates are kept as float64; unlike detector keypoints they are
    never rounded, because sub-pixel corner positions change the transform.

    Example:
        >>> p = Point2D(x=10.5, y=20)
        >>> p.to_tuple()
        (10.5, 20.0)
    """

    x: float = Field(..., description="X-coordinate (horizontal)")
    y: float = Field(..., description="Y-coordinate (vertical)")

    model_config = {"frozen": True}

    @field_validator("x", "y", mode="before")
    @classmethod
    def _convert_to_float(cls, v: Any) -> float:
        if isinstance(v, bool) or not isinstance(v, (int, float, np.number)):
            raise ValueError(f"Coordinate must be numeric, got {type(v)}")
        return float(v)

    @classmethod
    def from_any(cls, value: Union["Point2D", Sequence[float], np.ndarray]) -> "Point2D":
        """Create a point from a Point2D, an (x, y) sequence or a (2,) array."""
        if isinstance(value, Point2D):
            return value
        arr = np.asarray(value)
        if arr.shape != (2,):
            raise ValueError(f"Expected point with shape (2,), got {arr.shape}")
        return cls(x=arr[0], y=arr[1])

    def to_numpy(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float64)

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def distance_to(self, other: "Point2D") -> float:
        """Euclidean distance to another point."""
        return float(np.hypot(self.x - other.x, self.y - other.y))

    def scaled(self, sx: float, sy: float) -> "Point2D":
        """Return this point with x scaled by ``sx`` and y by ``sy``."""
        return Point2D(x=self.x * sx, y=self.y * sy)


class Quadrilateral(BaseModel):
    """
    Exactly four corners in fixed cyclic order: TL, TR, BR, BL.

    The order is taken as given. No sorting or convex-hull reordering is
    applied, since the order defines which source corner lands on which
    output corner. Non-convex and self-intersecting shapes are accepted here;
    only the solver decides whether a transform exists.

    Example:
        >>> quad = Quadrilateral.from_any([[10, 10], [90, 10], [90, 90], [10, 90]])
        >>> quad.to_numpy().shape
        (4, 2)
    """

    points: List[Point2D] = Field(..., description="Corners [TL, TR, BR, BL]")

    model_config = {"frozen": True}

    @field_validator("points")
    @classmethod
    def _validate_count(cls, v: List[Point2D]) -> List[Point2D]:
        if len(v) != 4:
            raise ValueError(f"Expected exactly 4 corner points, got {len(v)}")
        return v

    @classmethod
    def from_any(
        cls, value: Union["Quadrilateral", Sequence[Any], np.ndarray]
    ) -> "Quadrilateral":
        """
        Build a quadrilateral from a Quadrilateral, a (4, 2) array, or a list
        of four ``[x, y]`` pairs / ``Point2D`` objects.

        Raises:
            ValueError: If the input does not describe exactly four points.
        """
        if isinstance(value, Quadrilateral):
            return value

        if isinstance(value, np.ndarray):
            if value.shape != (4, 2):
                raise ValueError(
                    f"Expected exactly 4 points with shape (4, 2), got shape {value.shape}"
                )
            return cls(points=[Point2D(x=px, y=py) for px, py in value])

        points = [Point2D.from_any(p) for p in value]
        return cls(points=points)

    @classmethod
    def from_rectangle(cls, width: float, height: float) -> "Quadrilateral":
        """Corners of the axis-aligned rectangle ``(0, 0)``-``(width, height)``."""
        return cls.from_any(
            [[0.0, 0.0], [width, 0.0], [width, height], [0.0, height]]
        )

    @property
    def top_left(self) -> Point2D:
        return self.points[0]

    @property
    def top_right(self) -> Point2D:
        return self.points[1]

    @property
    def bottom_right(self) -> Point2D:
        return self.points[2]

    @property
    def bottom_left(self) -> Point2D:
        return self.points[3]

    def to_numpy(self) -> np.ndarray:
        """Corners as a float64 array of shape (4, 2)."""
        return np.array([p.to_tuple() for p in self.points], dtype=np.float64)

    def scaled(self, sx: float, sy: float) -> "Quadrilateral":
        """Return the quadrilateral with every corner scaled per axis."""
        return Quadrilateral(points=[p.scaled(sx, sy) for p in self.points])

    def __repr__(self) -> str:
        corners = ", ".join(
            f"{name}=({p.x:.1f}, {p.y:.1f})" for name, p in zip(CORNER_NAMES, self.points)
        )
        return f"Quadrilateral({corners})"
