"""
Grid Slicer
Cell geometry for PIXEL and COUNT grids, full-grid enumeration and the
index-range lookup used by interactive box selection.
"""

import logging
import math
from typing import Iterator, List, Optional, Tuple

from ..models import CalculationMode, GridSettings
from ..utils.geometry_utils import Box

logger = logging.getLogger(__name__)


class GridSlicer:
    """
    Computes grid cells for one image size.

    All boxes returned are sprite boxes: the cell shrunk by padding on every
    side. Cells whose padded box has a non-positive extent are skipped.
    """

    def __init__(self, settings: GridSettings, image_size: Tuple[int, int]):
        """
        Args:
            settings: Grid configuration
            image_size: (width, height) of the image, (0, 0) when none is loaded
        """
        self.settings = settings
        self.image_width, self.image_height = image_size

    def cell_size(self) -> Tuple[int, int]:
        """
        Cell size for the current mode.

        Returns:
            (width, height); (0, 0) signals an unusable COUNT grid
        """
        s = self.settings
        if s.calculation_mode == CalculationMode.PIXEL:
            return s.width, s.height

        if s.columns <= 0 or s.rows <= 0 or not self.image_width:
            return 0, 0
        avail_w = self.image_width - s.offset_x - s.gap * (s.columns - 1)
        avail_h = self.image_height - s.offset_y - s.gap * (s.rows - 1)
        return math.floor(avail_w / s.columns), math.floor(avail_h / s.rows)

    def is_valid(self) -> bool:
        cell_w, cell_h = self.cell_size()
        s = self.settings
        return cell_w > 0 and cell_h > 0 and cell_w + s.gap > 0 and cell_h + s.gap > 0

    def _cell_origin(self, row: int, col: int, cell_w: int, cell_h: int) -> Tuple[int, int]:
        s = self.settings
        return s.offset_x + col * (cell_w + s.gap), s.offset_y + row * (cell_h + s.gap)

    def _sprite_box(self, row: int, col: int, cell_w: int, cell_h: int) -> Optional[Box]:
        x, y = self._cell_origin(row, col, cell_w, cell_h)
        box = Box(x, y, cell_w, cell_h).inset(self.settings.padding)
        return box.rounded() if box.has_positive_extent() else None

    def _iter_indices(self, cell_w: int, cell_h: int) -> Iterator[Tuple[int, int]]:
        """
        Yield (row, col) for every cell of the full grid.

        COUNT iterates exactly rows x columns. PIXEL iterates while the cell
        origin is below the image bound (extended by one cell when partial
        cells are allowed) and, without partial cells, skips cells crossing
        the right/bottom edge.
        """
        s = self.settings
        if s.calculation_mode == CalculationMode.COUNT:
            for row in range(s.rows):
                for col in range(s.columns):
                    yield row, col
            return

        limit_x = self.image_width + cell_w if s.allow_partial else self.image_width
        limit_y = self.image_height + cell_h if s.allow_partial else self.image_height
        row = 0
        while self._cell_origin(row, 0, cell_w, cell_h)[1] < limit_y:
            col = 0
            while True:
                x, y = self._cell_origin(row, col, cell_w, cell_h)
                if x >= limit_x:
                    break
                if s.allow_partial or (x + cell_w <= self.image_width and
                                       y + cell_h <= self.image_height):
                    yield row, col
                col += 1
            row += 1

    def generate_cells(self) -> List[Box]:
        """
        Sprite boxes of the full grid.

        COUNT mode does not skip cells that cross the image edge; PIXEL mode
        does when partial cells are not allowed.

        Returns:
            Boxes in row-major order; empty for invalid geometry
        """
        if not self.is_valid():
            logger.warning(f"Invalid grid geometry: cell size {self.cell_size()}, gap {self.settings.gap}")
            return []

        cell_w, cell_h = self.cell_size()
        boxes = []
        for row, col in self._iter_indices(cell_w, cell_h):
            box = self._sprite_box(row, col, cell_w, cell_h)
            if box is not None:
                boxes.append(box)
        return boxes

    def overlay_cells(self, limit: int = 5000) -> List[Box]:
        """
        Sprite boxes to draw as the grid preview.

        Unlike generate_cells(), the edge check applies in both modes.
        """
        if not self.is_valid():
            return []

        s = self.settings
        cell_w, cell_h = self.cell_size()
        boxes = []
        for row, col in self._iter_indices(cell_w, cell_h):
            if len(boxes) >= limit:
                logger.debug(f"Grid overlay truncated at {limit} cells")
                break
            if s.calculation_mode == CalculationMode.COUNT and not s.allow_partial:
                x, y = self._cell_origin(row, col, cell_w, cell_h)
                if x + cell_w > self.image_width or y + cell_h > self.image_height:
                    continue
            box = self._sprite_box(row, col, cell_w, cell_h)
            if box is not None:
                boxes.append(box)
        return boxes

    def cells_in_selection(self, selection: Box) -> List[Box]:
        """
        Sprite boxes of the cells whose index range covers a selection box.

        The column/row range is derived directly from the selection geometry,
        so only cells near the selection are visited. Overlap and bounds
        filtering is left to the caller.

        Args:
            selection: Drag rectangle in image space (any orientation)

        Returns:
            Candidate boxes in row-major order
        """
        if not self.is_valid():
            return []

        s = self.settings
        cell_w, cell_h = self.cell_size()
        sel = selection.normalized()
        step_x = cell_w + s.gap
        step_y = cell_h + s.gap

        start_col = math.floor((sel.x - s.offset_x) / step_x)
        end_col = math.floor((sel.right - s.offset_x) / step_x)
        start_row = math.floor((sel.y - s.offset_y) / step_y)
        end_row = math.floor((sel.bottom - s.offset_y) / step_y)

        # Not clamped to [0, columns) x [0, rows) in COUNT mode: a drag past
        # the grid can pick cells beyond it, subject to the caller's bounds filter.
        boxes = []
        for row in range(start_row, end_row + 1):
            for col in range(start_col, end_col + 1):
                box = self._sprite_box(row, col, cell_w, cell_h)
                if box is not None:
                    boxes.append(box)
        return boxes
