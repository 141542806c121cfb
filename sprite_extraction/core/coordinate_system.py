"""
Coordinate System Component
This module handles screen/image coordinate transformations under pan and zoom.
"""

import logging
from typing import Tuple, Optional, Dict, Any, Union
from enum import Enum

from ..config import EngineConfig, get_engine_config
from ..utils.geometry_utils import Point2D

logger = logging.getLogger(__name__)

PointLike = Union[Point2D, Tuple[float, float]]


class CoordinateSystem(Enum):
    """Supported coordinate systems."""
    SCREEN = "screen"   # Canvas/pointer coordinates
    IMAGE = "image"     # Source image pixel coordinates


def _as_point(point: PointLike) -> Point2D:
    if isinstance(point, tuple):
        return Point2D(float(point[0]), float(point[1]))
    return point


class ViewTransform:
    """
    Maps between screen space and image space for a uniformly scaled, panned view.

    image = (screen - pan) / scale
    screen = image * scale + pan
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the view transform.

        Args:
            config: Engine configuration (zoom step and scale bounds)
        """
        self.config = config or get_engine_config()
        self.scale: float = 1.0
        self.pan: Point2D = Point2D(0.0, 0.0)

    def reset(self):
        """Return to identity (used when a new image is loaded)."""
        self.scale = 1.0
        self.pan = Point2D(0.0, 0.0)

    def set_transform(self, scale: float, pan: PointLike):
        """
        Set scale and pan directly, e.g. after the host finishes a canvas drag.

        Args:
            scale: New scale factor (> 0)
            pan: New pan offset in screen space
        """
        if scale <= 0:
            raise ValueError(f"Scale must be positive, got {scale}")
        self.scale = float(scale)
        self.pan = _as_point(pan)

    def pan_by(self, dx: float, dy: float):
        """Shift the view by a screen-space delta."""
        self.pan = Point2D(self.pan.x + dx, self.pan.y + dy)

    def screen_to_image(self, screen_point: PointLike) -> Point2D:
        """
        Convert a screen-space point to image space.

        Args:
            screen_point: Pointer position in screen coordinates

        Returns:
            Point in image coordinates
        """
        return (_as_point(screen_point) - self.pan) / self.scale

    def image_to_screen(self, image_point: PointLike) -> Point2D:
        """Convert an image-space point to screen space."""
        return _as_point(image_point) * self.scale + self.pan

    def zoom_at(self, pointer: PointLike, direction: int) -> bool:
        """
        Apply one wheel-zoom step anchored at the pointer.

        The image-space point under the pointer stays under the pointer.
        A step that would leave [min_scale, max_scale] is refused.

        Args:
            pointer: Pointer position in screen coordinates
            direction: > 0 zooms in, otherwise zooms out

        Returns:
            True if the scale changed
        """
        pointer = _as_point(pointer)
        anchor = self.screen_to_image(pointer)

        step = self.config.zoom_step
        new_scale = self.scale * step if direction > 0 else self.scale / step

        if new_scale < self.config.min_scale or new_scale > self.config.max_scale:
            logger.debug(f"Zoom step refused: scale {new_scale:.4f} outside bounds")
            return False

        self.scale = new_scale
        self.pan = pointer - anchor * new_scale
        return True

    def zoom_from_wheel(self, pointer: PointLike, delta_y: float) -> bool:
        """Wheel convention: negative delta (scroll up) zooms in."""
        return self.zoom_at(pointer, -1 if delta_y > 0 else 1)

    def get_transformation_info(self) -> Dict[str, Any]:
        """
        Get information about the current transformation.

        Returns:
            Dictionary with transformation information
        """
        return {
            'scale': self.scale,
            'pan': self.pan.to_tuple(),
            'scale_bounds': (self.config.min_scale, self.config.max_scale),
            'coordinate_systems_supported': [cs.value for cs in CoordinateSystem],
        }
