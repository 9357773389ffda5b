"""
Corner editor state machine for interactive quadrilateral selection.

Models the four draggable corner handles shown over a scaled-down display
copy of the source image:

    idle --pointer_down(on handle i)--> dragging(i)
    dragging(i) --pointer_move--> dragging(i)   (corner i follows, clamped)
    dragging(i) --pointer_up--> idle

Handles live in display coordinates. ``source_corners`` converts them to
source-image coordinates for the rectification engine. Rendering is left to
``src.utils.visualization``.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from src.common.types import Quadrilateral

logger = logging.getLogger(__name__)

HANDLE_HIT_RADIUS = 15.0  # px, generous for touch input
INITIAL_MARGIN = 20.0  # px between display edge and initial handles


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


def initial_corners(
    display_width: float, display_height: float, margin: float = INITIAL_MARGIN
) -> List[Tuple[float, float]]:
    """Corners inset by ``margin`` from each display edge, in TL, TR, BR, BL order."""
    return [
        (margin, margin),
        (display_width - margin, margin),
        (display_width - margin, display_height - margin),
        (margin, display_height - margin),
    ]


@dataclass
class CornerEditor:
    """
    Tracks handle positions and the active drag for one source image.

    The display keeps the source aspect ratio, so a single ratio
    ``source_width / display_width`` converts display to source pixels.

    Example:
        >>> editor = CornerEditor(source_width=1600, source_height=1200, display_width=400)
        >>> editor.pointer_down(20, 20)
        0
        >>> editor.pointer_move(50, 40)
        True
        >>> editor.pointer_up()
        >>> editor.source_corners().top_left.to_tuple()
        (200.0, 160.0)
    """

    source_width: int
    source_height: int
    display_width: float
    margin: float = INITIAL_MARGIN
    hit_radius: float = HANDLE_HIT_RADIUS
    corners: List[Tuple[float, float]] = field(default_factory=list)
    active_corner: Optional[int] = None

    def __post_init__(self):
        if self.source_width <= 0 or self.source_height <= 0:
            raise ValueError(
                f"Source size must be positive, got {self.source_width}x{self.source_height}"
            )
        self.resize(self.display_width)

    @property
    def display_height(self) -> float:
        return self.display_width * self.source_height / self.source_width

    @property
    def scale_ratio(self) -> float:
        """Source pixels per display pixel."""
        return self.source_width / self.display_width

    @property
    def state(self) -> DragState:
        return DragState.IDLE if self.active_corner is None else DragState.DRAGGING

    def resize(self, display_width: float) -> None:
        """Adopt a new display width and reset the handles to their initial inset."""
        if display_width <= 0:
            raise ValueError(f"Display width must be positive, got {display_width}")

        self.display_width = float(display_width)
        self.corners = initial_corners(self.display_width, self.display_height, self.margin)
        self.active_corner = None
        logger.debug(
            f"Display resized to {self.display_width:.1f}x{self.display_height:.1f} "
            f"(scale {self.scale_ratio:.3f})"
        )

    def hit_test(self, x: float, y: float) -> Optional[int]:
        """Index of the first handle within ``hit_radius`` of ``(x, y)``, else None."""
        for index, (cx, cy) in enumerate(self.corners):
            if ((cx - x) ** 2 + (cy - y) ** 2) ** 0.5 <= self.hit_radius:
                return index
        return None

    def pointer_down(self, x: float, y: float) -> Optional[int]:
        """Start dragging the handle under the pointer, if any."""
        self.active_corner = self.hit_test(x, y)
        if self.active_corner is not None:
            logger.debug(f"Dragging corner {self.active_corner}")
        return self.active_corner

    def pointer_move(self, x: float, y: float) -> bool:
        """
        Move the active handle to ``(x, y)`` clamped to the display.

        Returns:
            True if a handle moved, False when idle.
        """
        if self.active_corner is None:
            return False

        cx = min(max(x, 0.0), self.display_width)
        cy = min(max(y, 0.0), self.display_height)
        self.corners[self.active_corner] = (cx, cy)
        return True

    def pointer_up(self) -> None:
        """End any drag."""
        self.active_corner = None

    def source_corners(self) -> Quadrilateral:
        """Current handles scaled into source-image coordinates."""
        ratio = self.scale_ratio
        return Quadrilateral.from_any([[x * ratio, y * ratio] for x, y in self.corners])
