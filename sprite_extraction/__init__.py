"""
Sprite Extraction Package
This package partitions a decoded raster image into named sprite rectangles.

## Package Structure

### Core Components (core/)
- coordinate_system.py: Screen/image mapping under pan and zoom
- image_buffer.py: Validated pixel buffer handed over by the image loader
- rect_registry.py: Canonical store of finalized rectangles
- sprite_detector.py: Threshold / dilate / contour sprite detection (OpenCV)
- detection_scheduler.py: Debounced preview detection on the asyncio loop

### Business Logic (business/)
- manual_cutter.py: Freehand drawing, move and resize commits
- grid_slicer.py: PIXEL and COUNT grid geometry
- overlap_resolver.py: Candidate materialization and box selection
- strategies.py: One strategy per selection mode
- extraction_session.py: Owned session state wiring everything together

### Utilities (utils/)
- error_handling.py: Exception hierarchy and error history
- geometry_utils.py: Box and point primitives, AABB tests
- export_utils.py: Export records and per-sprite pixel crops

## Usage

```python
from sprite_extraction import ExtractionSession, SelectionMode, init_logging

init_logging()
session = ExtractionSession()
session.load_image(pil_image)

session.set_mode(SelectionMode.GRID)
session.update_grid_settings(calculation_mode="COUNT", columns=4, rows=2)
sprites = session.generate()

records = session.export_records()
```
"""

# Main components
from .core import ViewTransform, ImageBuffer, RectRegistry, SpriteDetector, DetectionScheduler
from .business import (
    ExtractionSession,
    ManualCutter,
    GridSlicer,
    OverlapResolver,
    SelectionStrategy,
    STRATEGIES,
)
from .utils import ErrorHandlingSystem, GeometryUtils, Box, Point2D
from .utils.export_utils import crop_sprite, iter_sprite_crops, to_pil_image

# Configuration
from .config import EngineConfig, get_engine_config
from .logging_config import init_logging

# Types and Enums
from .models import (
    SpriteRect,
    SelectionMode,
    CalculationMode,
    InteractionMode,
    GridSettings,
    AutoSettings,
    ManualSettings,
    apply_settings_patch,
)
from .core import CoordinateSystem
from .utils import (
    ErrorSeverity,
    ErrorCategory,
    SpriteExtractionError,
    SettingsValidationError,
    InvalidGeometryError,
    ImageDecodeError,
    DetectionUnavailableError,
)

__version__ = "1.0.0"

__all__ = [
    # Core Components
    'ViewTransform',
    'ImageBuffer',
    'RectRegistry',
    'SpriteDetector',
    'DetectionScheduler',

    # Business Logic
    'ExtractionSession',
    'ManualCutter',
    'GridSlicer',
    'OverlapResolver',
    'SelectionStrategy',
    'STRATEGIES',

    # Utilities
    'ErrorHandlingSystem',
    'GeometryUtils',
    'Box',
    'Point2D',
    'crop_sprite',
    'iter_sprite_crops',
    'to_pil_image',

    # Configuration
    'EngineConfig',
    'get_engine_config',
    'init_logging',

    # Data model
    'SpriteRect',
    'GridSettings',
    'AutoSettings',
    'ManualSettings',
    'apply_settings_patch',

    # Enums and Types
    'SelectionMode',
    'CalculationMode',
    'InteractionMode',
    'CoordinateSystem',
    'ErrorSeverity',
    'ErrorCategory',

    # Exceptions
    'SpriteExtractionError',
    'SettingsValidationError',
    'InvalidGeometryError',
    'ImageDecodeError',
    'DetectionUnavailableError',
]
