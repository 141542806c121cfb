"""
Extraction Session
Owns the state of one editing session: the image, the rectangle registry,
the view transform, all settings and the AUTO preview. Host UIs forward
pointer events and settings changes here.
"""

import asyncio
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np
from PIL import Image

from ..config import EngineConfig, get_engine_config
from ..core.coordinate_system import PointLike, ViewTransform
from ..core.detection_scheduler import DetectionScheduler
from ..core.image_buffer import ImageBuffer
from ..core.rect_registry import RectRegistry
from ..core.sprite_detector import SpriteDetector
from ..models import (
    AutoSettings,
    GridSettings,
    ManualSettings,
    SelectionMode,
    SpriteRect,
    apply_settings_patch,
)
from ..utils.error_handling import ErrorHandlingSystem
from ..utils.export_utils import iter_sprite_crops
from ..utils.geometry_utils import Box, GeometryUtils, Point2D
from .grid_slicer import GridSlicer
from .manual_cutter import ManualCutter
from .overlap_resolver import OverlapResolver
from .strategies import STRATEGIES, SelectionStrategy

logger = logging.getLogger(__name__)

ImageInput = Union[ImageBuffer, np.ndarray, Image.Image]


class ExtractionSession:
    """
    Explicitly owned engine state; pass it to every consumer instead of
    relying on module-level globals.
    """

    def __init__(self, config: Optional[EngineConfig] = None,
                 detector: Optional[SpriteDetector] = None,
                 initialize_detection: bool = True):
        """
        Args:
            config: Engine configuration
            detector: Detection engine (a new one is created if omitted)
            initialize_detection: Run the detector's initialization now
        """
        self.config = config or get_engine_config()
        self.error_handler = ErrorHandlingSystem(self.config.max_error_history)

        self.image: Optional[ImageBuffer] = None
        self.mode = SelectionMode.MANUAL
        self.naming_prefix = self.config.naming_prefix

        self.grid_settings = GridSettings()
        self.auto_settings = AutoSettings()
        self.manual_settings = ManualSettings()

        self.registry = RectRegistry(self.mode)
        self.view = ViewTransform(self.config)
        self.resolver = OverlapResolver(self.registry)
        self.cutter = ManualCutter(self.registry, lambda: self.manual_settings, self.config)

        self.detector = detector or SpriteDetector(self.error_handler)
        if initialize_detection and not self.detector.is_ready:
            self.detector.initialize()
        self.scheduler = DetectionScheduler(
            self.detector,
            self._apply_preview,
            debounce_ms=self.config.debounce_ms,
            discard_stale=self.config.discard_stale_results,
        )
        self.preview: List[SpriteRect] = []

        self._strategies: Dict[SelectionMode, SelectionStrategy] = {
            mode: strategy_cls(self) for mode, strategy_cls in STRATEGIES.items()
        }
        self._selection_start: Optional[Point2D] = None
        self._selection: Optional[Box] = None
        self.cursor: Point2D = Point2D(0.0, 0.0)

    # ----- state -----

    @property
    def strategy(self) -> SelectionStrategy:
        return self._strategies[self.mode]

    @property
    def image_size(self) -> Tuple[int, int]:
        return self.image.size if self.image is not None else (0, 0)

    @property
    def selection_box(self) -> Optional[Box]:
        """The in-progress box selection, normalized for display."""
        return self._selection.normalized() if self._selection is not None else None

    def load_image(self, image: ImageInput):
        """
        Replace the current image; clears rectangles, preview and view.

        Raises:
            ImageDecodeError: if the buffer cannot be used
        """
        if isinstance(image, Image.Image):
            image = ImageBuffer.from_pil(image)
        elif isinstance(image, np.ndarray):
            image = ImageBuffer(image)

        self.scheduler.cancel_pending()
        self.image = image
        self.registry.clear()
        self.preview = []
        self.view.reset()
        self._cancel_gestures()
        logger.info(f"Loaded image {image.width}x{image.height} ({image.channels} channels)")

        if self.mode == SelectionMode.AUTO:
            self._schedule_preview()

    def set_mode(self, mode: SelectionMode):
        """
        Activate a strategy; clears every selection flag.

        Leaving AUTO cancels a preview request that is still debouncing and
        drops the preview.
        """
        if mode == self.mode:
            return
        if self.mode == SelectionMode.AUTO:
            self.scheduler.cancel_pending()
            self.preview = []
        self.mode = mode
        self.registry.set_active_mode(mode)
        self._cancel_gestures()
        if mode == SelectionMode.AUTO:
            self._schedule_preview()

    # ----- settings -----

    def update_grid_settings(self, **changes: Any) -> GridSettings:
        self.grid_settings = apply_settings_patch(self.grid_settings, **changes)
        return self.grid_settings

    def update_manual_settings(self, **changes: Any) -> ManualSettings:
        self.manual_settings = apply_settings_patch(self.manual_settings, **changes)
        return self.manual_settings

    def update_auto_settings(self, **changes: Any) -> AutoSettings:
        """Patch AUTO settings; detection parameters re-trigger the preview."""
        previous = self.auto_settings
        self.auto_settings = apply_settings_patch(self.auto_settings, **changes)
        detection_fields = ('threshold', 'min_area', 'padding', 'margin')
        if self.mode == SelectionMode.AUTO and any(
                getattr(previous, f) != getattr(self.auto_settings, f) for f in detection_fields):
            self._schedule_preview()
        return self.auto_settings

    def reset_settings(self):
        self.grid_settings = GridSettings()
        self.auto_settings = AutoSettings()
        self.manual_settings = ManualSettings()
        self.naming_prefix = self.config.naming_prefix
        if self.mode == SelectionMode.AUTO:
            self._schedule_preview()

    # ----- AUTO preview -----

    def refresh_preview(self) -> List[SpriteRect]:
        """Run detection synchronously and replace the preview."""
        if self.image is None:
            self.preview = []
            return self.preview
        self.preview = self.detector.detect(self.image, self.auto_settings)
        return self.preview

    def request_preview(self) -> Optional[int]:
        """
        Schedule a debounced preview refresh on the running loop.

        Returns:
            The request id, or None when there is nothing to detect
        """
        if self.image is None or not self.detector.is_ready:
            logger.debug("Preview request skipped: no image or detection engine not ready")
            return None
        return self.scheduler.request(self.image, self.auto_settings)

    def _schedule_preview(self):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.refresh_preview()
            return
        self.request_preview()

    def _apply_preview(self, request_id: int, candidates: List[SpriteRect]):
        self.preview = candidates
        logger.debug(f"Preview updated from request {request_id}: {len(candidates)} candidates")

    # ----- pointer input (screen coordinates) -----

    def pointer_down(self, screen_point: PointLike, rect_id: Optional[str] = None,
                     modifier: bool = False):
        """
        Press on the canvas.

        Args:
            screen_point: Pointer position in screen space
            rect_id: Id of the sprite under the pointer, if any
            modifier: Shift/Ctrl/Meta held (toggle instead of exclusive select)
        """
        if rect_id is not None:
            if modifier:
                self.registry.toggle_select(rect_id)
            else:
                self.registry.select_exclusive(rect_id)
            return

        self.registry.select_exclusive(None)
        point = self.view.screen_to_image(screen_point)
        if self.mode == SelectionMode.MANUAL:
            self.cutter.begin(point)
        elif self.strategy.is_box_select:
            self._selection_start = point
            self._selection = Box(point.x, point.y, 0, 0)

    def pointer_move(self, screen_point: PointLike):
        point = self.view.screen_to_image(screen_point)
        self.cursor = point
        if self.cutter.is_drawing:
            self.cutter.drag(point)
        elif self._selection_start is not None:
            self._selection = GeometryUtils.box_from_points(self._selection_start, point)

    def pointer_up(self) -> List[SpriteRect]:
        """
        Release; finalizes a manual draw or a box selection.

        Returns:
            Rectangles added to the registry
        """
        added: List[SpriteRect] = []
        if self.mode == SelectionMode.MANUAL and self.cutter.is_drawing:
            rect = self.cutter.release(self.image_size, self.naming_prefix)
            added = [rect] if rect is not None else []
        elif self._selection is not None:
            added = self.strategy.finalize_selection(self._selection)
        self._cancel_gestures()
        return added

    def wheel(self, screen_point: PointLike, delta_y: float) -> bool:
        return self.view.zoom_from_wheel(screen_point, delta_y)

    def _cancel_gestures(self):
        self.cutter.cancel()
        self._selection_start = None
        self._selection = None

    # ----- existing rectangles -----

    def move_end(self, rect_id: str, x: float, y: float) -> Optional[Tuple[int, int]]:
        """Commit a finished sprite drag; returns where the sprite must be drawn."""
        return self.cutter.commit_move(rect_id, x, y, locked=self.strategy.locked)

    def transform_end(self, rect_id: str, x: float, y: float, width: float, height: float,
                      scale_x: float = 1.0, scale_y: float = 1.0) -> bool:
        """Commit a finished sprite resize."""
        return self.cutter.commit_transform(rect_id, x, y, width, height, scale_x, scale_y,
                                            locked=self.strategy.locked)

    def rename(self, rect_id: str, name: str) -> bool:
        return self.registry.rename(rect_id, name)

    def select_all(self) -> int:
        return self.registry.select_all(self.mode)

    def delete_selected(self) -> int:
        return self.registry.remove_selected()

    # ----- generation -----

    def generate(self) -> List[SpriteRect]:
        """
        Materialize every candidate of the active strategy.

        Returns:
            Rectangles added (empty when nothing could be generated)
        """
        if self.image is None:
            logger.warning("Generate requested without an image")
            return []
        added = self.strategy.generate_all()
        if added:
            logger.info(f"Generated {len(added)} {self.mode.value} sprites")
        else:
            logger.warning(f"No sprites generated in {self.mode.value} mode")
        return added

    def candidates(self) -> List[Box]:
        return self.strategy.compute_candidates()

    # ----- rendering / export feeds -----

    def grid_overlay(self) -> List[Box]:
        if self.mode != SelectionMode.GRID or self.image is None:
            return []
        slicer = GridSlicer(self.grid_settings, self.image_size)
        return slicer.overlay_cells(self.config.overlay_cell_limit)

    def export_records(self) -> List[Dict[str, Any]]:
        return self.registry.export_records()

    def crop_sprites(self, selected_only: bool = False) -> Iterator[Tuple[SpriteRect, np.ndarray]]:
        rects = [r for r in self.registry.all() if r.selected] if selected_only else self.registry.all()
        return iter_sprite_crops(self.image, rects, self.error_handler)
