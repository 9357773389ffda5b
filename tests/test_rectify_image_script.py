"""
Tests for the scripts/rectify_image.py command line entry point.
"""

import importlib.util
import sys
from pathlib import Path

import numpy as np
import pytest

from src.common.types import RasterImage
from src.utils.image_io import load_image, save_image

SCRIPT_PATH = Path(__file__).resolve().parent.parent / "scripts" / "rectify_image.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("rectify_image", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def red_png(tmp_path):
    path = tmp_path / "red.png"
    save_image(RasterImage.blank(100, 100, fill=(255, 0, 0, 255)), path)
    return path


def run(cli, monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["rectify_image.py", *map(str, args)])
    return cli.main()


class TestRectifyImageScript:
    """End-to-end runs of the CLI."""

    def test_parse_corners(self, cli):
        assert cli.parse_corners([1, 2, 3, 4, 5, 6, 7, 8]) == [[1, 2], [3, 4], [5, 6], [7, 8]]

    def test_parse_corners_wrong_count(self, cli):
        with pytest.raises(ValueError, match="Expected 8 numbers"):
            cli.parse_corners([1, 2, 3])

    def test_rectifies_to_png(self, cli, monkeypatch, red_png, tmp_path):
        output = tmp_path / "out.png"

        code = run(
            cli, monkeypatch,
            "--input", red_png, "--output", output,
            "--corners", 10, 10, 90, 10, 90, 90, 10, 90,
            "--width", 50, "--height", 50,
        )

        assert code == 0
        result = load_image(output)
        assert (result.width, result.height) == (50, 50)
        assert np.all(result.data == np.array([255, 0, 0, 255], dtype=np.uint8))

    def test_display_width_scales_corners(self, cli, monkeypatch, red_png, tmp_path):
        output = tmp_path / "out.png"
        preview = tmp_path / "preview.png"

        code = run(
            cli, monkeypatch,
            "--input", red_png, "--output", output, "--preview", preview,
            "--corners", 5, 5, 45, 5, 45, 45, 5, 45,
            "--display-width", 50, "--width", 20, "--height", 20,
        )

        assert code == 0
        assert preview.exists()
        assert np.all(load_image(output).data == np.array([255, 0, 0, 255], dtype=np.uint8))

    def test_degenerate_corners_fail(self, cli, monkeypatch, red_png, tmp_path):
        output = tmp_path / "out.png"

        code = run(
            cli, monkeypatch,
            "--input", red_png, "--output", output,
            "--corners", 0, 0, 10, 0, 20, 0, 0, 10,
        )

        assert code == 1
        assert not output.exists()

    def test_missing_input_fails(self, cli, monkeypatch, tmp_path):
        code = run(
            cli, monkeypatch,
            "--input", tmp_path / "missing.png", "--output", tmp_path / "out.png",
            "--corners", 0, 0, 1, 0, 1, 1, 0, 1,
        )

        assert code == 1
