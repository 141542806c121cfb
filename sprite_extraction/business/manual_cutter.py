"""
Manual Cutter
Freehand rectangle drawing plus move/resize commits for existing rectangles.
"""

import logging
from typing import Callable, Optional, Tuple

from ..config import EngineConfig, get_engine_config
from ..core.rect_registry import RectRegistry
from ..models import ManualSettings, SelectionMode, SpriteRect
from ..utils.geometry_utils import Box, GeometryUtils, Point2D

logger = logging.getLogger(__name__)


class ManualCutter:
    """
    Handles the draw gesture of MANUAL mode.

    Coordinates are image space; the caller converts pointer events first.
    Move and resize are committed once, at gesture end.
    """

    def __init__(self, registry: RectRegistry, settings_provider: Callable[[], ManualSettings],
                 config: Optional[EngineConfig] = None):
        """
        Args:
            registry: Destination of finalized rectangles
            settings_provider: Returns the current ManualSettings
            config: Engine configuration (size floors)
        """
        self.registry = registry
        self.settings_provider = settings_provider
        self.config = config or get_engine_config()
        self._start: Optional[Point2D] = None
        self._draft: Optional[Box] = None

    @property
    def is_drawing(self) -> bool:
        return self._start is not None

    @property
    def draft(self) -> Optional[Box]:
        """The in-progress rectangle, normalized for display."""
        return self._draft.normalized() if self._draft is not None else None

    def begin(self, point: Point2D):
        self._start = point
        self._draft = Box(point.x, point.y, 0, 0)

    def drag(self, point: Point2D) -> Optional[Box]:
        """
        Update the draft for the current pointer position.

        Returns:
            The raw (signed) draft box, or None when no gesture is active
        """
        if self._start is None:
            return None

        raw = GeometryUtils.box_from_points(self._start, point)
        width, height = raw.width, raw.height
        settings = self.settings_provider()
        if settings.aspect_lock_active:
            width, height = GeometryUtils.lock_aspect_ratio(
                width, height, settings.aspect_ratio_x, settings.aspect_ratio_y
            )
        self._draft = Box(self._start.x, self._start.y, width, height)
        return self._draft

    def cancel(self):
        self._start = None
        self._draft = None

    def release(self, image_size: Tuple[int, int], prefix: str) -> Optional[SpriteRect]:
        """
        Finalize the gesture.

        Args:
            image_size: (width, height) of the source image
            prefix: Naming prefix

        Returns:
            The rectangle added to the registry, or None if the draw was discarded
        """
        draft = self._draft
        self.cancel()
        if draft is None:
            return None
        return self.finalize(draft, image_size, prefix)

    def finalize(self, draft: Box, image_size: Tuple[int, int], prefix: str) -> Optional[SpriteRect]:
        """Normalize, validate and register a drawn box."""
        box = draft.normalized()
        min_size = self.config.min_draw_size
        if box.width <= min_size or box.height <= min_size:
            logger.debug(f"Discarded degenerate draw {box.width:.1f}x{box.height:.1f}")
            return None

        settings = self.settings_provider()
        if not settings.allow_partial and not box.is_within(*image_size):
            logger.debug("Discarded draw extending outside the image")
            return None

        box = box.rounded()
        rect = SpriteRect(
            x=box.x, y=box.y, width=box.width, height=box.height,
            name=self.registry.next_name(prefix),
            source=SelectionMode.MANUAL,
            selected=True,
        )
        return self.registry.add(rect)

    def commit_transform(self, rect_id: str, x: float, y: float, width: float, height: float,
                         scale_x: float = 1.0, scale_y: float = 1.0, locked: bool = False) -> bool:
        """
        Commit a finished resize, folding the scale factor into width/height.

        Args:
            rect_id: Rectangle being resized
            x, y: Final position of the node
            width, height: Unscaled node extents
            scale_x, scale_y: Scale applied during the gesture
            locked: Whether the active mode locks its sprites

        Returns:
            True if the registry was updated
        """
        if locked:
            logger.info("Resize refused: sprites are locked")
            return False

        floor = self.config.min_resize_size
        return self.registry.update(
            rect_id,
            x=int(round(x)),
            y=int(round(y)),
            width=max(floor, int(round(abs(width * scale_x)))),
            height=max(floor, int(round(abs(height * scale_y)))),
        )

    def commit_move(self, rect_id: str, x: float, y: float, locked: bool = False) -> Optional[Tuple[int, int]]:
        """
        Commit a finished drag.

        With prevent_overlap on a MANUAL rectangle, any strict overlap with
        another MANUAL rectangle rolls the move back entirely.

        Returns:
            The position the node must end up at (the new one, or the
            original one after a rollback); None for an unknown id
        """
        rect = self.registry.get(rect_id)
        if rect is None:
            return None
        original = (rect.x, rect.y)
        if locked:
            logger.info("Move refused: sprites are locked")
            return original

        new_x, new_y = int(round(x)), int(round(y))
        settings = self.settings_provider()
        if settings.prevent_overlap and rect.source == SelectionMode.MANUAL:
            candidate = Box(new_x, new_y, rect.width, rect.height)
            others = (r.box for r in self.registry.visible(SelectionMode.MANUAL) if r.id != rect_id)
            if GeometryUtils.find_overlapping(candidate, others) is not None:
                logger.debug(f"Move of {rect.name} rolled back: overlap")
                return original

        self.registry.update(rect_id, x=new_x, y=new_y)
        return new_x, new_y
