"""
Main processor for the Rectification module.

Orchestrates the complete pipeline:
1. Corner parsing and geometric diagnostics
2. Output size selection
3. Homography solving
4. Perspective resampling

Implements fail-fast strategy: stops at first failure and reports it as a
REJECT result instead of raising.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from src.common.types import Quadrilateral, RasterImage
from src.rectification.config_loader import load_config
from src.rectification.errors import (
    DegenerateQuadrilateral,
    InvalidDimensions,
    SingularTransform,
)
from src.rectification.geometric_validator import (
    calculate_predicted_dimensions,
    inspect_quadrilateral,
)
from src.rectification.homography_solver import solve
from src.rectification.perspective_resampler import resample
from src.rectification.types import (
    DecisionStatus,
    Homography,
    RectificationConfig,
    RectificationResult,
    RejectionReason,
    SizeMode,
)

logger = logging.getLogger(__name__)


class RectificationProcessor:
    """
    Main processor for quadrilateral rectification.

    Holds only the (read-only) configuration, so one processor can serve
    concurrent requests.

    Example:
        >>> processor = RectificationProcessor()
        >>> corners = [[120, 80], [520, 110], [540, 420], [90, 400]]
        >>> result = processor.process(raster, corners, 600, 400)
        >>> if result.is_pass():
        ...     save_image(result.rectified_image, "rectified.png")
    """

    def __init__(
        self,
        config: Optional[RectificationConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the rectification processor.

        Args:
            config: Pre-loaded configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = load_config(config_path) if config_path else load_config()
            logger.info("Loaded configuration from file")

    def resolve_output_size(
        self,
        quad: Quadrilateral,
        out_width: Optional[int] = None,
        out_height: Optional[int] = None,
    ) -> Tuple[int, int]:
        """
        Pick the output size: explicit arguments win, then the configured mode.

        In AUTO mode the missing dimension(s) come from the quadrilateral's
        longest opposite edges; in FIXED mode from the configured defaults.
        """
        if out_width is not None and out_height is not None:
            return out_width, out_height

        if self.config.output.size_mode == SizeMode.AUTO:
            default_width, default_height = calculate_predicted_dimensions(quad)
        else:
            default_width = self.config.output.default_width
            default_height = self.config.output.default_height

        return (
            out_width if out_width is not None else default_width,
            out_height if out_height is not None else default_height,
        )

    def solve(self, quad, out_width: float, out_height: float) -> Homography:
        """Solve the source -> output transform with configured tolerances."""
        return solve(
            quad,
            out_width,
            out_height,
            pivot_epsilon=self.config.solver.pivot_epsilon,
            collinearity_epsilon=self.config.solver.collinearity_epsilon,
        )

    def resample(
        self, image: RasterImage, homography: Homography, out_width: int, out_height: int
    ) -> RasterImage:
        """Resample with configured tolerances, background and workers."""
        cfg = self.config.resampler
        return resample(
            image,
            homography,
            out_width,
            out_height,
            background=cfg.background_rgba,
            w_epsilon=cfg.w_epsilon,
            determinant_epsilon=cfg.determinant_epsilon,
            workers=cfg.workers,
            band_height=cfg.band_height,
        )

    def process(
        self,
        image: Union[RasterImage, np.ndarray],
        corners,
        out_width: Optional[int] = None,
        out_height: Optional[int] = None,
    ) -> RectificationResult:
        """
        Execute the complete rectification pipeline.

        Args:
            image: Source image (RasterImage or RGBA uint8 array).
            corners: 4 corner points [TL, TR, BR, BL] in source-image pixels.
            out_width: Output width; defaults per configuration.
            out_height: Output height; defaults per configuration.

        Returns:
            RectificationResult containing the decision, the rectified image
            (if passed), the homography and diagnostic information.

        Raises:
            ValueError: If ``image`` or ``corners`` have the wrong shape/dtype.
        """
        if not isinstance(image, RasterImage):
            image = RasterImage(data=image)

        logger.info("=" * 60)
        logger.info("Starting Rectification Pipeline")
        logger.info("=" * 60)

        # Stage 1: Corner parsing and diagnostics
        logger.info("[Stage 1/3] Geometric Diagnostics")
        quad = Quadrilateral.from_any(corners)
        logger.info(f"Corners: {quad!r}")
        is_convex = inspect_quadrilateral(quad)

        out_width, out_height = self.resolve_output_size(quad, out_width, out_height)
        logger.info(f"Output size: {out_width}x{out_height}")

        def reject(
            reason: RejectionReason, error: Exception, homography: Optional[Homography] = None
        ) -> RectificationResult:
            logger.error(f"Pipeline REJECTED: {reason.value} ({error})")
            return RectificationResult(
                decision=DecisionStatus.REJECT,
                rectified_image=None,
                homography=homography,
                rejection_reason=reason,
                output_width=out_width,
                output_height=out_height,
                is_convex=is_convex,
                error_detail=str(error),
            )

        # Stage 2: Homography
        logger.info("[Stage 2/3] Homography Solving")
        try:
            homography = self.solve(quad, out_width, out_height)
        except InvalidDimensions as e:
            return reject(RejectionReason.INVALID_DIMENSIONS, e)
        except DegenerateQuadrilateral as e:
            return reject(RejectionReason.DEGENERATE_QUADRILATERAL, e)

        # Stage 3: Resampling
        logger.info("[Stage 3/3] Perspective Resampling")
        try:
            rectified = self.resample(image, homography, out_width, out_height)
        except InvalidDimensions as e:
            return reject(RejectionReason.INVALID_DIMENSIONS, e, homography)
        except SingularTransform as e:
            return reject(RejectionReason.SINGULAR_TRANSFORM, e, homography)

        logger.info("=" * 60)
        logger.info("Pipeline PASSED - Rectified image ready")
        logger.info("=" * 60)

        return RectificationResult(
            decision=DecisionStatus.PASS,
            rectified_image=rectified,
            homography=homography,
            rejection_reason=RejectionReason.NONE,
            output_width=out_width,
            output_height=out_height,
            is_convex=is_convex,
        )


def rectify_quadrilateral(
    image: RasterImage,
    corners,
    out_width: int,
    out_height: int,
    config: Optional[RectificationConfig] = None,
) -> RasterImage:
    """
    Solve and resample in one call, raising engine errors to the caller.

    Raises:
        DegenerateQuadrilateral: If the corners admit no transform.
        InvalidDimensions: If the output size is not positive.
        SingularTransform: If the transform cannot be inverted.
    """
    processor = RectificationProcessor(config=config)
    homography = processor.solve(corners, out_width, out_height)
    return processor.resample(image, homography, out_width, out_height)


def process_rectification(
    image: Union[RasterImage, np.ndarray],
    corners,
    out_width: Optional[int] = None,
    out_height: Optional[int] = None,
    config: Optional[RectificationConfig] = None,
) -> RectificationResult:
    """
    Convenience function for one-shot rectification processing.

    Example:
        >>> result = process_rectification(raster, [[10, 10], [90, 10], [90, 90], [10, 90]], 50, 50)
        >>> print(result.get_error_message())
        Rectification succeeded
    """
    processor = RectificationProcessor(config=config)
    return processor.process(image, corners, out_width, out_height)
