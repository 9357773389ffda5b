"""
Common types shared across the rectification engine and its I/O helpers.

This module provides standardized data types (points, quadrilaterals and
RGBA rasters) so that solver, resampler and image I/O agree on shapes,
dtypes and corner order.
"""

from src.common.types import CORNER_NAMES, Point2D, Quadrilateral, RasterImage

__all__ = ["CORNER_NAMES", "Point2D", "Quadrilateral", "RasterImage"]
