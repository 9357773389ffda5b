"""
Unit tests for common types (RasterImage, Point2D, Quadrilateral).
"""

import numpy as np
import pytest

from src.common.types import Point2D, Quadrilateral, RasterImage


class TestRasterImage:
    """Tests for the RGBA raster wrapper."""

    def test_blank_fill(self):
        raster = RasterImage.blank(4, 3, fill=(1, 2, 3, 4))

        assert raster.shape == (3, 4, 4)
        assert raster.width == 4 and raster.height == 3
        assert raster.pixel(3, 2) == (1, 2, 3, 4)

    def test_non_contiguous_input_made_contiguous(self):
        data = np.zeros((10, 10, 4), dtype=np.uint8)[:, ::2]

        raster = RasterImage(data=data)

        assert raster.data.flags["C_CONTIGUOUS"]

    @pytest.mark.parametrize(
        "data,message",
        [
            (np.zeros((0, 0, 4), dtype=np.uint8), "empty"),
            (np.zeros((4, 4), dtype=np.uint8), "RGBA"),
            (np.zeros((4, 4, 3), dtype=np.uint8), "RGBA"),
            (np.zeros((4, 4, 4), dtype=np.float32), "uint8"),
        ],
    )
    def test_invalid_buffers(self, data, message):
        with pytest.raises(ValueError, match=message):
            RasterImage(data=data)

    def test_copy_is_independent(self):
        raster = RasterImage.blank(2, 2)
        clone = raster.copy()
        clone.data[0, 0] = 9

        assert raster.pixel(0, 0) == (0, 0, 0, 0)


class TestPoint2D:
    """Tests for float points."""

    def test_keeps_sub_pixel_precision(self):
        assert Point2D(x=10.25, y=3).to_tuple() == (10.25, 3.0)

    def test_from_any(self):
        assert Point2D.from_any(np.array([1.5, 2.5])) == Point2D(x=1.5, y=2.5)
        assert Point2D.from_any([4, 5]).to_tuple() == (4.0, 5.0)

    def test_rejects_non_numeric(self):
        with pytest.raises(ValueError):
            Point2D(x="a", y=1)

    def test_distance(self):
        assert Point2D(x=0, y=0).distance_to(Point2D(x=3, y=4)) == pytest.approx(5.0)

    def test_is_immutable(self):
        point = Point2D(x=1, y=2)
        with pytest.raises(ValueError):
            point.x = 5


class TestQuadrilateral:
    """Tests for ordered four-corner shapes."""

    def test_order_preserved(self):
        corners = [[90, 90], [10, 10], [90, 10], [10, 90]]

        quad = Quadrilateral.from_any(corners)

        np.testing.assert_array_equal(quad.to_numpy(), np.array(corners, dtype=np.float64))
        assert quad.top_left.to_tuple() == (90.0, 90.0)

    def test_from_rectangle(self):
        quad = Quadrilateral.from_rectangle(5, 3)
        np.testing.assert_array_equal(quad.to_numpy(), [[0, 0], [5, 0], [5, 3], [0, 3]])

    def test_wrong_array_shape(self):
        with pytest.raises(ValueError, match="Expected exactly 4 points"):
            Quadrilateral.from_any(np.zeros((3, 2)))

    def test_wrong_list_length(self):
        with pytest.raises(ValueError, match="Expected exactly 4 corner points"):
            Quadrilateral.from_any([[0, 0], [1, 0], [1, 1], [0, 1], [2, 2]])

    def test_scaled(self):
        quad = Quadrilateral.from_rectangle(10, 20).scaled(2.0, 0.5)
        assert quad.bottom_right.to_tuple() == (20.0, 10.0)
