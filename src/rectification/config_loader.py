"""
Configuration loader for the Rectification module.

Loads and validates configuration from config.yaml file.
"""

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from src.rectification.types import (
    OutputConfig,
    RectificationConfig,
    ResamplerConfig,
    SizeMode,
    SolverConfig,
)

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> RectificationConfig:
    """
    Load rectification configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated RectificationConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid or missing required fields.

    Example:
        >>> config = load_config()
        >>> print(config.output.default_width)
        800
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading rectification config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    try:
        config = _parse_config(raw_config)
        _validate_config(config)
        logger.info("Successfully loaded rectification configuration")
        return config
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e


def _parse_config(raw: Dict[str, Any]) -> RectificationConfig:
    """Parse raw dictionary into structured config objects."""
    background = tuple(int(c) for c in raw["resampler"]["background_rgba"])

    return RectificationConfig(
        solver=SolverConfig(
            pivot_epsilon=float(raw["solver"]["pivot_epsilon"]),
            collinearity_epsilon=float(raw["solver"]["collinearity_epsilon"]),
        ),
        resampler=ResamplerConfig(
            w_epsilon=float(raw["resampler"]["w_epsilon"]),
            determinant_epsilon=float(raw["resampler"]["determinant_epsilon"]),
            background_rgba=background,
            workers=int(raw["resampler"]["workers"]),
            band_height=int(raw["resampler"]["band_height"]),
        ),
        output=OutputConfig(
            size_mode=SizeMode(str(raw["output"]["size_mode"])),
            default_width=int(raw["output"]["default_width"]),
            default_height=int(raw["output"]["default_height"]),
            jpeg_quality=int(raw["output"]["jpeg_quality"]),
        ),
    )


def _validate_config(config: RectificationConfig) -> None:
    """
    Validate configuration values for logical consistency.

    Raises:
        ValueError: If any configuration value is invalid.
    """
    # Validate tolerances
    for name, value in [
        ("pivot_epsilon", config.solver.pivot_epsilon),
        ("collinearity_epsilon", config.solver.collinearity_epsilon),
        ("w_epsilon", config.resampler.w_epsilon),
        ("determinant_epsilon", config.resampler.determinant_epsilon),
    ]:
        if not value > 0:
            raise ValueError(f"{name} must be positive, got {value}")

    # Validate resampler
    if len(config.resampler.background_rgba) != 4:
        raise ValueError("background_rgba must have exactly 4 components")

    if any(not 0 <= c <= 255 for c in config.resampler.background_rgba):
        raise ValueError("background_rgba components must be in [0, 255]")

    if config.resampler.workers < 1:
        raise ValueError("workers must be at least 1")

    if config.resampler.band_height < 1:
        raise ValueError("band_height must be at least 1")

    # Validate output
    if config.output.default_width < 1 or config.output.default_height < 1:
        raise ValueError("default_width and default_height must be at least 1")

    if not 0 <= config.output.jpeg_quality <= 100:
        raise ValueError("jpeg_quality must be in [0, 100]")

    logger.debug("Configuration validation passed")
