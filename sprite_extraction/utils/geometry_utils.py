"""
Geometry Utilities
This module provides the rectangle and point primitives shared by every extraction strategy.
"""

import math
import logging
from typing import Iterable, Optional, Tuple
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class Point2D:
    """2D point with basic vector operations."""
    x: float
    y: float

    def __add__(self, other: 'Point2D') -> 'Point2D':
        return Point2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Point2D') -> 'Point2D':
        return Point2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> 'Point2D':
        return Point2D(self.x * scalar, self.y * scalar)

    def __truediv__(self, scalar: float) -> 'Point2D':
        return Point2D(self.x / scalar, self.y / scalar)

    def to_tuple(self) -> Tuple[float, float]:
        """Convert to tuple."""
        return (self.x, self.y)


@dataclass(frozen=True)
class Box:
    """
    Axis-aligned box in image space.

    Width and height may be negative while a drag gesture is in progress;
    call normalized() before running any containment or overlap test.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def normalized(self) -> 'Box':
        """Return the same box with a top-left origin and positive extents."""
        x = self.x + self.width if self.width < 0 else self.x
        y = self.y + self.height if self.height < 0 else self.y
        return Box(x, y, abs(self.width), abs(self.height))

    def rounded(self) -> 'Box':
        return Box(int(round(self.x)), int(round(self.y)),
                   int(round(self.width)), int(round(self.height)))

    def inset(self, padding: float) -> 'Box':
        """Shrink every side by padding (negative padding grows the box)."""
        return Box(self.x + padding, self.y + padding,
                   self.width - padding * 2, self.height - padding * 2)

    def expanded(self, padding: float) -> 'Box':
        """Grow every side by padding (negative padding shrinks the box)."""
        return self.inset(-padding)

    def has_positive_extent(self) -> bool:
        return self.width > 0 and self.height > 0

    def overlaps(self, other: 'Box') -> bool:
        """
        Strict AABB overlap test.

        Boxes that only share an edge (zero-area intersection) do not overlap.
        A zero-size box overlaps another box only when it lies strictly inside it.
        """
        return (self.x < other.x + other.width and
                self.x + self.width > other.x and
                self.y < other.y + other.height and
                self.y + self.height > other.y)

    def is_within(self, width: float, height: float) -> bool:
        """Check full containment in [0, width] x [0, height]."""
        return (self.x >= 0 and self.y >= 0 and
                self.right <= width and self.bottom <= height)

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


class GeometryUtils:
    """
    Collection of rectangle helpers used by the cutters, slicers and resolvers.
    """

    @staticmethod
    def box_from_points(start: Point2D, end: Point2D) -> Box:
        """Build a (possibly negative) box spanning a drag from start to end."""
        return Box(start.x, start.y, end.x - start.x, end.y - start.y)

    @staticmethod
    def lock_aspect_ratio(width: float, height: float,
                          ratio_x: float, ratio_y: float) -> Tuple[float, float]:
        """
        Constrain a raw drag extent to ratio_x:ratio_y.

        Whichever dimension is too small for the target ratio is expanded;
        the sign of each axis (drag direction) is preserved.

        Args:
            width: Raw signed drag width
            height: Raw signed drag height
            ratio_x: Horizontal ratio component (> 0)
            ratio_y: Vertical ratio component (> 0)

        Returns:
            Constrained (width, height)
        """
        target_ratio = ratio_x / ratio_y
        sign_w = math.copysign(1.0, width) if width != 0 else 1.0
        sign_h = math.copysign(1.0, height) if height != 0 else 1.0
        abs_w = abs(width)
        abs_h = abs(height)

        if abs_w > abs_h * target_ratio:
            return abs_w * sign_w, (abs_w / target_ratio) * sign_h
        return (abs_h * target_ratio) * sign_w, abs_h * sign_h

    @staticmethod
    def find_overlapping(candidate: Box, others: Iterable[Box]) -> Optional[Box]:
        """Return the first box in others that strictly overlaps candidate."""
        for other in others:
            if candidate.overlaps(other):
                return other
        return None

