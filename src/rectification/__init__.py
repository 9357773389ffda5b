"""
Quadrilateral Rectification Engine

Maps an arbitrary (possibly skewed) quadrilateral of a source image onto an
axis-aligned rectangle, as if the region had been photographed head-on.

Pipeline stages:
1. Geometric diagnostics (convexity, predicted size)
2. Homography solving (8x8 system, partial pivoting)
3. Perspective resampling (inverse mapping + bilinear sampling)
"""

from src.rectification.config_loader import load_config
from src.rectification.corner_editor import CornerEditor, DragState
from src.rectification.errors import (
    DegenerateQuadrilateral,
    InvalidDimensions,
    RectificationError,
    SingularTransform,
)
from src.rectification.homography_solver import invert_homography, solve
from src.rectification.perspective_resampler import resample
from src.rectification.processor import (
    RectificationProcessor,
    process_rectification,
    rectify_quadrilateral,
)
from src.rectification.types import (
    DecisionStatus,
    Homography,
    RectificationConfig,
    RectificationResult,
    RejectionReason,
)

__all__ = [
    "RectificationProcessor",
    "process_rectification",
    "rectify_quadrilateral",
    "load_config",
    "solve",
    "resample",
    "invert_homography",
    "CornerEditor",
    "DragState",
    "Homography",
    "RectificationConfig",
    "RectificationResult",
    "DecisionStatus",
    "RejectionReason",
    "RectificationError",
    "DegenerateQuadrilateral",
    "SingularTransform",
    "InvalidDimensions",
]
