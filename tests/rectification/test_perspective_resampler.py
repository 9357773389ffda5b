"""
Unit tests for perspective_resampler module.
"""

import numpy as np
import pytest

from src.common.types import RasterImage
from src.rectification.errors import InvalidDimensions, SingularTransform
from src.rectification.homography_solver import solve
from src.rectification.perspective_resampler import (
    _row_bands,
    resample,
    sample_bilinear,
)
from src.rectification.types import Homography

RED = (255, 0, 0, 255)


class TestSampleBilinear:
    """Tests for the bilinear sampling kernel."""

    def test_pixel_centres_return_exact_values(self, random_image):
        ys, xs = np.mgrid[0 : random_image.height, 0 : random_image.width]

        sampled = sample_bilinear(random_image.data, xs + 0.5, ys + 0.5)

        np.testing.assert_array_equal(sampled, random_image.data)

    def test_midpoint_averages_neighbours(self):
        data = np.zeros((1, 2, 4), dtype=np.uint8)
        data[0, 0] = [0, 0, 0, 255]
        data[0, 1] = [200, 100, 50, 255]

        sampled = sample_bilinear(data, np.array([1.0]), np.array([0.5]))

        np.testing.assert_array_equal(sampled[0], [100, 50, 25, 255])

    def test_bottom_right_boundary_is_clamped(self, gradient_image):
        width, height = gradient_image.width, gradient_image.height

        sampled = sample_bilinear(
            gradient_image.data,
            np.array([width - 0.0001]),
            np.array([height - 0.0001]),
        )

        np.testing.assert_array_equal(sampled[0], gradient_image.data[-1, -1])

    def test_far_outside_points_extend_edges(self, gradient_image):
        sampled = sample_bilinear(
            gradient_image.data,
            np.array([-1e6, 1e6, np.inf]),
            np.array([-50.0, 1e9, 5.5]),
        )

        np.testing.assert_array_equal(sampled[0], gradient_image.data[0, 0])
        np.testing.assert_array_equal(sampled[1], gradient_image.data[-1, -1])
        np.testing.assert_array_equal(sampled[2], gradient_image.data[5, -1])


class TestResample:
    """Tests for the full inverse-mapping resample."""

    def test_identity_reproduces_source(self, random_image):
        H = solve(
            [[0, 0], [random_image.width, 0],
             [random_image.width, random_image.height], [0, random_image.height]],
            random_image.width,
            random_image.height,
        )

        output = resample(random_image, H, random_image.width, random_image.height)

        np.testing.assert_array_equal(output.data, random_image.data)

    def test_inset_square_of_solid_red(self, solid_red_image):
        quad = [[10, 10], [90, 10], [90, 90], [10, 90]]
        H = solve(quad, 50, 50)

        output = resample(solid_red_image, H, 50, 50)

        assert output.width == 50 and output.height == 50
        assert np.all(output.data == np.array(RED, dtype=np.uint8))

    def test_output_is_new_buffer(self, gradient_image):
        before = gradient_image.data.copy()

        output = resample(gradient_image, Homography.identity(), 64, 48)

        assert not np.shares_memory(output.data, gradient_image.data)
        np.testing.assert_array_equal(gradient_image.data, before)

    def test_crop_region_of_gradient(self, gradient_image):
        """An axis-aligned crop at 1:1 scale copies the pixels verbatim."""
        quad = [[8, 4], [40, 4], [40, 36], [8, 36]]
        H = solve(quad, 32, 32)

        output = resample(gradient_image, H, 32, 32)

        np.testing.assert_array_equal(output.data, gradient_image.data[4:36, 8:40])

    def test_horizontal_flip_via_corner_order(self, gradient_image):
        w, h = gradient_image.width, gradient_image.height
        mirrored = [[w, 0], [0, 0], [0, h], [w, h]]
        H = solve(mirrored, w, h)

        output = resample(gradient_image, H, w, h)

        np.testing.assert_array_equal(output.data, gradient_image.data[:, ::-1])

    def test_skewed_quadrilateral_recovers_rectangle(self):
        """Warp a checker rectangle into a skewed quad, then rectify it back."""
        size = 40
        checker = np.zeros((size, size, 4), dtype=np.uint8)
        checker[..., 3] = 255
        checker[:20, :20, :3] = 255
        checker[20:, 20:, :3] = 255
        flat = RasterImage(data=checker)

        quad = np.array([[30, 20], [150, 35], [140, 130], [20, 110]], dtype=np.float64)
        to_skewed = solve(quad, size, size).inverse()
        skewed = resample(flat, to_skewed, 170, 150)

        restored = resample(skewed, solve(quad, size, size), size, size)

        # Compare away from the checker edges where interpolation blurs
        core = (slice(4, 16), slice(4, 16))
        np.testing.assert_array_equal(restored.data[core][..., :3], 255)
        core = (slice(24, 36), slice(4, 16))
        np.testing.assert_array_equal(restored.data[core][..., :3], 0)

    def test_points_at_infinity_get_background(self, solid_red_image):
        """Rows whose inverse mapping has w == 0 are not sampled."""
        # Inverse maps (u, v) to w = v - 2.5, i.e. zero on row 2 (centre 2.5)
        inverse = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 1.0, -2.5]])
        transform = Homography(np.linalg.inv(inverse))

        output = resample(solid_red_image, transform, 6, 5, background=(1, 2, 3, 4))

        np.testing.assert_array_equal(output.data[2], np.tile([1, 2, 3, 4], (6, 1)))
        assert np.all(output.data[0] == np.array(RED, dtype=np.uint8))
        assert np.all(output.data[4] == np.array(RED, dtype=np.uint8))

    def test_default_background_is_transparent(self, solid_red_image):
        inverse = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 1.0, -0.5]])
        transform = Homography(np.linalg.inv(inverse))

        output = resample(solid_red_image, transform, 3, 3)

        np.testing.assert_array_equal(output.data[0], np.zeros((3, 4)))

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (0, 0), (-3, 5)])
    def test_invalid_dimensions(self, solid_red_image, width, height, monkeypatch):
        def fail_alloc(*args, **kwargs):
            raise AssertionError("output buffer must not be allocated")

        monkeypatch.setattr(np, "empty", fail_alloc)

        with pytest.raises(InvalidDimensions):
            resample(solid_red_image, Homography.identity(), width, height)

    def test_singular_transform(self, solid_red_image):
        singular = Homography(np.array([[1, 2, 0], [2, 4, 0], [0, 0, 1]]))

        with pytest.raises(SingularTransform):
            resample(solid_red_image, singular, 10, 10)

    def test_rejects_non_raster_source(self):
        with pytest.raises(TypeError, match="RasterImage"):
            resample(np.zeros((4, 4, 4), dtype=np.uint8), Homography.identity(), 4, 4)

    def test_invalid_background(self, solid_red_image):
        with pytest.raises(ValueError, match="RGBA"):
            resample(solid_red_image, Homography.identity(), 4, 4, background=(1, 2, 3))


class TestParallelBands:
    """Row-band splitting and threaded execution."""

    def test_row_bands_cover_all_rows(self):
        bands = _row_bands(130, 64)
        assert bands == [(0, 64), (64, 128), (128, 130)]

    def test_row_band_height_floor(self):
        assert _row_bands(3, 0) == [(0, 1), (1, 2), (2, 3)]

    def test_threaded_matches_serial(self, gradient_image, skewed_quadrilateral):
        quad = skewed_quadrilateral / 10.0
        H = solve(quad, 90, 70)

        serial = resample(gradient_image, H, 90, 70, workers=1, band_height=8)
        threaded = resample(gradient_image, H, 90, 70, workers=4, band_height=8)

        np.testing.assert_array_equal(serial.data, threaded.data)
