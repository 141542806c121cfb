"""
Utilities Package for Sprite Extraction
This package provides the geometry primitives and error handling shared by every component.

Crop helpers live in utils.export_utils, which depends on core and is imported
by the top-level package instead of here.
"""

from .error_handling import (
    ErrorHandlingSystem,
    ErrorSeverity,
    ErrorCategory,
    ErrorContext,
    ErrorRecord,
    SpriteExtractionError,
    SettingsValidationError,
    InvalidGeometryError,
    ImageDecodeError,
    DetectionUnavailableError,
)
from .geometry_utils import (
    GeometryUtils,
    Point2D,
    Box,
)

__all__ = [
    # Error Handling
    'ErrorHandlingSystem',
    'ErrorSeverity',
    'ErrorCategory',
    'ErrorContext',
    'ErrorRecord',
    'SpriteExtractionError',
    'SettingsValidationError',
    'InvalidGeometryError',
    'ImageDecodeError',
    'DetectionUnavailableError',

    # Geometry Utils
    'GeometryUtils',
    'Point2D',
    'Box',
]
