"""
Business Logic Package for Sprite Extraction
This package provides the three extraction strategies and the session that drives them.
"""

from .manual_cutter import ManualCutter
from .grid_slicer import GridSlicer
from .overlap_resolver import OverlapResolver
from .strategies import (
    SelectionStrategy,
    ManualStrategy,
    GridStrategy,
    AutoStrategy,
    STRATEGIES,
)
from .extraction_session import ExtractionSession

__all__ = [
    # Manual cutting
    'ManualCutter',

    # Grid slicing
    'GridSlicer',

    # Materialization
    'OverlapResolver',

    # Strategies
    'SelectionStrategy',
    'ManualStrategy',
    'GridStrategy',
    'AutoStrategy',
    'STRATEGIES',

    # Session
    'ExtractionSession',
]
