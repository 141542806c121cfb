"""
Core Components Package for Sprite Extraction
This package provides the view transform, the rectangle registry and the detection engine.
"""

from .coordinate_system import ViewTransform, CoordinateSystem
from .image_buffer import ImageBuffer
from .rect_registry import RectRegistry
from .sprite_detector import SpriteDetector, PREVIEW_NAME_PREFIX
from .detection_scheduler import DetectionScheduler

__all__ = [
    # Coordinate System
    'ViewTransform',
    'CoordinateSystem',

    # Image Data
    'ImageBuffer',

    # Rectangle Store
    'RectRegistry',

    # Detection
    'SpriteDetector',
    'PREVIEW_NAME_PREFIX',
    'DetectionScheduler',
]
