from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterator, List, Optional, Sequence

from ..models import SelectionMode, SpriteRect

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = ("x", "y", "width", "height", "name", "selected")


class RectRegistry:
    """
    Canonical store of finalized sprite rectangles.

    The registry owns the active mode and enforces the selection invariant:
    only rectangles whose source equals the active mode may be selected, and
    switching modes clears every selection flag.
    """

    def __init__(self, active_mode: SelectionMode = SelectionMode.MANUAL) -> None:
        self._rects: List[SpriteRect] = []
        self._active_mode = active_mode
        self._lock = threading.RLock()

    # ----- read access -----

    def __len__(self) -> int:
        with self._lock:
            return len(self._rects)

    def __iter__(self) -> Iterator[SpriteRect]:
        return iter(self.all())

    @property
    def active_mode(self) -> SelectionMode:
        return self._active_mode

    def all(self) -> List[SpriteRect]:
        with self._lock:
            return list(self._rects)

    def get(self, rect_id: str) -> Optional[SpriteRect]:
        with self._lock:
            return self._find_locked(rect_id)

    def visible(self, mode: Optional[SelectionMode] = None) -> List[SpriteRect]:
        """Rectangles rendered (and selectable) in the given mode."""
        mode = mode or self._active_mode
        with self._lock:
            return [r for r in self._rects if r.source == mode]

    def selected(self, mode: Optional[SelectionMode] = None) -> List[SpriteRect]:
        mode = mode or self._active_mode
        with self._lock:
            return [r for r in self._rects if r.source == mode and r.selected]

    def _find_locked(self, rect_id: str) -> Optional[SpriteRect]:
        for rect in self._rects:
            if rect.id == rect_id:
                return rect
        return None

    def _deselect_all_locked(self) -> None:
        for rect in self._rects:
            rect.selected = False

    # ----- mode -----

    def set_active_mode(self, mode: SelectionMode) -> None:
        """Switch the active mode; clears every selection flag."""
        with self._lock:
            self._active_mode = mode
            self._deselect_all_locked()
        logger.info("Active mode set to %s", mode.value)

    # ----- insertion -----

    def add(self, rect: SpriteRect) -> SpriteRect:
        """Deselect everything and append rect as the only selected rectangle."""
        with self._lock:
            self._deselect_all_locked()
            rect.selected = True
            self._rects.append(rect)
        logger.debug("Added %s (%s) at %d,%d %dx%d", rect.name, rect.source.value,
                     rect.x, rect.y, rect.width, rect.height)
        return rect

    def add_batch(self, rects: Sequence[SpriteRect]) -> List[SpriteRect]:
        """
        Deselect everything and append rects, keeping each element's own
        selected flag.
        """
        batch = list(rects)
        with self._lock:
            self._deselect_all_locked()
            self._rects.extend(batch)
        logger.info("Added batch of %d rectangles", len(batch))
        return batch

    # ----- mutation -----

    def update(self, rect_id: str, **changes: Any) -> bool:
        """
        Patch a rectangle in place.

        Returns:
            False if no rectangle has rect_id

        Raises:
            ValueError: for immutable or unknown fields, or non-positive extents
        """
        illegal = set(changes) - set(_MUTABLE_FIELDS)
        if illegal:
            raise ValueError(f"Cannot update fields {sorted(illegal)}; id and source are immutable")
        for dim in ("width", "height"):
            if dim in changes and changes[dim] <= 0:
                raise ValueError(f"{dim} must be positive, got {changes[dim]}")

        with self._lock:
            rect = self._find_locked(rect_id)
            if rect is None:
                logger.warning("Update ignored, unknown rectangle %s", rect_id)
                return False
            if changes.get("selected") and rect.source != self._active_mode:
                logger.warning("Cannot select %s outside the active mode", rect.name)
                changes = {k: v for k, v in changes.items() if k != "selected"}
            for key, value in changes.items():
                setattr(rect, key, value)
        return True

    def rename(self, rect_id: str, name: str) -> bool:
        """Rename after trimming; empty or unchanged names are rejected."""
        new_name = name.strip()
        with self._lock:
            rect = self._find_locked(rect_id)
            if rect is None or not new_name or new_name == rect.name:
                return False
            rect.name = new_name
        return True

    def remove(self, rect_id: str) -> bool:
        with self._lock:
            before = len(self._rects)
            self._rects = [r for r in self._rects if r.id != rect_id]
            return len(self._rects) != before

    def remove_selected(self) -> int:
        with self._lock:
            before = len(self._rects)
            self._rects = [r for r in self._rects if not r.selected]
            removed = before - len(self._rects)
        if removed:
            logger.info("Removed %d selected rectangles", removed)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._rects = []

    # ----- selection -----

    def select_exclusive(self, rect_id: Optional[str]) -> bool:
        """
        Select exactly rect_id (or nothing when rect_id is None).

        Returns:
            True if a rectangle ended up selected
        """
        with self._lock:
            target = self._find_locked(rect_id) if rect_id is not None else None
            if target is not None and target.source != self._active_mode:
                logger.warning("Cannot select %s outside the active mode", target.name)
                return False
            self._deselect_all_locked()
            if target is not None:
                target.selected = True
                return True
        return False

    def toggle_select(self, rect_id: str) -> bool:
        """Flip one selection flag; returns the new flag value."""
        with self._lock:
            target = self._find_locked(rect_id)
            if target is None:
                return False
            if target.source != self._active_mode:
                logger.warning("Cannot select %s outside the active mode", target.name)
                return False
            target.selected = not target.selected
            return target.selected

    def select_all(self, mode: Optional[SelectionMode] = None) -> int:
        """Select every rectangle whose source equals mode; returns the count."""
        mode = mode or self._active_mode
        count = 0
        with self._lock:
            if mode != self._active_mode:
                logger.warning("select_all(%s) ignored while %s is active", mode.value, self._active_mode.value)
                return 0
            for rect in self._rects:
                if rect.source == mode:
                    rect.selected = True
                    count += 1
        return count

    # ----- naming -----

    def next_index(self, prefix: str) -> int:
        """1 + number of rectangles whose name starts with prefix."""
        with self._lock:
            return sum(1 for r in self._rects if r.name.startswith(prefix)) + 1

    def next_name(self, prefix: str) -> str:
        return f"{prefix}_{self.next_index(prefix)}"

    def export_records(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [r.to_export_dict() for r in self._rects]
