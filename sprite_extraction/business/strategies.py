"""
Selection Strategies
One strategy object per SelectionMode, chosen once when the mode changes.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Type

from ..models import InteractionMode, SelectionMode, SpriteRect
from ..utils.geometry_utils import Box
from .grid_slicer import GridSlicer

if TYPE_CHECKING:
    from .extraction_session import ExtractionSession

logger = logging.getLogger(__name__)


class SelectionStrategy(ABC):
    """Common interface of the three extraction strategies."""

    mode: SelectionMode

    def __init__(self, session: 'ExtractionSession'):
        self.session = session

    @property
    def is_box_select(self) -> bool:
        """Whether a background drag box-selects candidates."""
        return False

    @property
    def locked(self) -> bool:
        return False

    @abstractmethod
    def compute_candidates(self) -> List[Box]:
        """Boxes currently offered to the user (preview / grid cells / draft)."""

    @abstractmethod
    def finalize_selection(self, selection: Box) -> List[SpriteRect]:
        """Materialize what a finished drag rectangle selects."""

    @abstractmethod
    def generate_all(self) -> List[SpriteRect]:
        """Materialize every candidate."""


class ManualStrategy(SelectionStrategy):
    mode = SelectionMode.MANUAL

    @property
    def locked(self) -> bool:
        return self.session.manual_settings.lock_sprites

    def compute_candidates(self) -> List[Box]:
        draft = self.session.cutter.draft
        return [draft] if draft is not None else []

    def finalize_selection(self, selection: Box) -> List[SpriteRect]:
        rect = self.session.cutter.finalize(selection, self.session.image_size, self.session.naming_prefix)
        return [rect] if rect is not None else []

    def generate_all(self) -> List[SpriteRect]:
        logger.info("Nothing to generate in MANUAL mode")
        return []


class GridStrategy(SelectionStrategy):
    mode = SelectionMode.GRID

    def _slicer(self) -> GridSlicer:
        return GridSlicer(self.session.grid_settings, self.session.image_size)

    @property
    def is_box_select(self) -> bool:
        return self.session.grid_settings.interaction_mode == InteractionMode.SELECT

    @property
    def locked(self) -> bool:
        return self.session.grid_settings.lock_sprites

    def compute_candidates(self) -> List[Box]:
        return self._slicer().generate_cells()

    def finalize_selection(self, selection: Box) -> List[SpriteRect]:
        settings = self.session.grid_settings
        return self.session.resolver.pick(
            selection,
            self._slicer().cells_in_selection(selection),
            SelectionMode.GRID,
            self.session.naming_prefix,
            settings.allow_partial,
            self.session.image_size,
        )

    def generate_all(self) -> List[SpriteRect]:
        # Edge filtering already happened in GridSlicer (PIXEL mode only).
        return self.session.resolver.materialize_all(
            self.compute_candidates(),
            SelectionMode.GRID,
            self.session.naming_prefix,
            allow_partial=True,
            image_size=None,
        )


class AutoStrategy(SelectionStrategy):
    mode = SelectionMode.AUTO

    @property
    def is_box_select(self) -> bool:
        return self.session.auto_settings.interaction_mode == InteractionMode.SELECT

    @property
    def locked(self) -> bool:
        return self.session.auto_settings.lock_sprites

    def compute_candidates(self) -> List[Box]:
        return [rect.box for rect in self.session.preview]

    def finalize_selection(self, selection: Box) -> List[SpriteRect]:
        return self.session.resolver.pick(
            selection,
            self.compute_candidates(),
            SelectionMode.AUTO,
            self.session.naming_prefix,
            self.session.auto_settings.allow_partial,
            self.session.image_size,
        )

    def generate_all(self) -> List[SpriteRect]:
        return self.session.resolver.materialize_all(
            self.compute_candidates(),
            SelectionMode.AUTO,
            self.session.naming_prefix,
            self.session.auto_settings.allow_partial,
            self.session.image_size,
        )


STRATEGIES: Dict[SelectionMode, Type[SelectionStrategy]] = {
    SelectionMode.MANUAL: ManualStrategy,
    SelectionMode.GRID: GridStrategy,
    SelectionMode.AUTO: AutoStrategy,
}
