"""
Overlap Resolver
Turns candidate boxes into named registry entries, either all at once
("generate") or through a box selection ("pick").
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ..core.rect_registry import RectRegistry
from ..models import SelectionMode, SpriteRect
from ..utils.geometry_utils import Box

logger = logging.getLogger(__name__)


class OverlapResolver:
    """
    Shared materialization path of the GRID and AUTO strategies.

    Naming: the next index for the prefix is read once per batch and then
    incremented locally for every accepted candidate.
    """

    def __init__(self, registry: RectRegistry):
        self.registry = registry

    def materialize_all(self, candidates: Iterable[Box], source: SelectionMode, prefix: str,
                        allow_partial: bool, image_size: Optional[Tuple[int, int]]) -> List[SpriteRect]:
        """
        Insert every candidate, unselected.

        Args:
            candidates: Candidate boxes
            source: Provenance of the new rectangles
            prefix: Naming prefix
            allow_partial: Keep candidates extending outside the image
            image_size: (width, height); None disables the bounds filter

        Returns:
            The rectangles inserted
        """
        accepted = self._filter_bounds(candidates, allow_partial, image_size)
        return self._insert(accepted, source, prefix, selected=False)

    def pick(self, selection: Box, candidates: Iterable[Box], source: SelectionMode, prefix: str,
             allow_partial: bool, image_size: Tuple[int, int]) -> List[SpriteRect]:
        """
        Insert, selected, every candidate strictly overlapping the selection.

        Candidates that only touch the selection along an edge are not picked.

        Args:
            selection: Drag rectangle in image space (any orientation)
            candidates: Candidate boxes
            source: Provenance of the new rectangles
            prefix: Naming prefix
            allow_partial: Keep candidates extending outside the image
            image_size: (width, height) of the image

        Returns:
            The rectangles inserted
        """
        sel = selection.normalized()
        hits = [box for box in candidates if sel.overlaps(box)]
        accepted = self._filter_bounds(hits, allow_partial, image_size)
        return self._insert(accepted, source, prefix, selected=True)

    def _filter_bounds(self, boxes: Iterable[Box], allow_partial: bool,
                       image_size: Optional[Tuple[int, int]]) -> List[Box]:
        boxes = list(boxes)
        if allow_partial or image_size is None:
            return boxes
        kept = [box for box in boxes if box.is_within(*image_size)]
        if len(kept) != len(boxes):
            logger.debug(f"Dropped {len(boxes) - len(kept)} candidates outside the image")
        return kept

    def _insert(self, boxes: List[Box], source: SelectionMode, prefix: str,
                selected: bool) -> List[SpriteRect]:
        if not boxes:
            return []

        counter = self.registry.next_index(prefix)
        rects = []
        for box in boxes:
            box = box.rounded()
            rects.append(SpriteRect(
                x=box.x, y=box.y, width=box.width, height=box.height,
                name=f"{prefix}_{counter}",
                source=source,
                selected=selected,
            ))
            counter += 1
        return self.registry.add_batch(rects)
