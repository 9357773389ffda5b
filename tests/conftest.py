"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import numpy as np
import pytest

from src.common.types import RasterImage

RED = (255, 0, 0, 255)


@pytest.fixture
def solid_red_image():
    """Fixture providing a 100x100 opaque red RGBA image."""
    return RasterImage.blank(100, 100, fill=RED)


@pytest.fixture
def gradient_image():
    """Fixture providing a 64x48 image whose colors encode pixel position."""
    height, width = 48, 64
    ys, xs = np.mgrid[0:height, 0:width]
    data = np.zeros((height, width, 4), dtype=np.uint8)
    data[..., 0] = xs * 4  # R grows left to right
    data[..., 1] = ys * 5  # G grows top to bottom
    data[..., 2] = (xs + ys) % 256
    data[..., 3] = 255
    return RasterImage(data=data)


@pytest.fixture
def random_image():
    """Fixture providing a reproducible 40x30 noise image."""
    rng = np.random.default_rng(1234)
    data = rng.integers(0, 256, size=(30, 40, 4), dtype=np.uint8)
    return RasterImage(data=data)


@pytest.fixture
def skewed_quadrilateral():
    """Fixture providing a convex, perspective-skewed quadrilateral [TL, TR, BR, BL]."""
    return np.array(
        [
            [120.0, 80.0],  # Top-Left
            [520.0, 110.0],  # Top-Right
            [540.0, 420.0],  # Bottom-Right
            [90.0, 400.0],  # Bottom-Left
        ],
        dtype=np.float64,
    )
