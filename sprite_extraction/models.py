from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, TypeVar
from uuid import uuid4

from pydantic import BaseModel, Field, ValidationError

from .utils.error_handling import SettingsValidationError
from .utils.geometry_utils import Box


class SelectionMode(str, Enum):
    """Extraction strategy; also the provenance tag of every rectangle."""
    MANUAL = "MANUAL"
    GRID = "GRID"
    AUTO = "AUTO"


class CalculationMode(str, Enum):
    PIXEL = "PIXEL"
    COUNT = "COUNT"


class InteractionMode(str, Enum):
    GENERATE = "GENERATE"
    SELECT = "SELECT"


def new_sprite_id() -> str:
    return uuid4().hex


@dataclass
class SpriteRect:
    """
    A finalized (or candidate) sprite rectangle in image space.

    Instances are mutated in place by the registry; `source` never changes
    after creation.
    """
    x: int
    y: int
    width: int
    height: int
    name: str
    source: SelectionMode
    selected: bool = False
    id: str = field(default_factory=new_sprite_id)

    @property
    def box(self) -> Box:
        return Box(self.x, self.y, self.width, self.height)

    def to_export_dict(self) -> Dict[str, Any]:
        """Fields required to crop the sprite out of the source image."""
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "name": self.name,
        }


class GridSettings(BaseModel):
    """Grid slicing configuration."""
    calculation_mode: CalculationMode = Field(CalculationMode.PIXEL, description="PIXEL: fixed cell size, COUNT: fixed rows/columns")
    width: int = Field(32, description="Cell width in PIXEL mode")
    height: int = Field(32, description="Cell height in PIXEL mode")
    columns: int = Field(4, description="Column count in COUNT mode")
    rows: int = Field(4, description="Row count in COUNT mode")
    offset_x: int = 0
    offset_y: int = 0
    padding: int = Field(0, description="Inset applied to every side of a cell (may be negative)")
    gap: int = Field(0, description="Spacing between adjacent cells")
    allow_partial: bool = False
    interaction_mode: InteractionMode = InteractionMode.GENERATE
    lock_sprites: bool = False


class AutoSettings(BaseModel):
    """Connected-component detection configuration."""
    threshold: int = Field(10, ge=1, le=254, description="Foreground iff intensity > threshold")
    min_area: int = Field(100, ge=0, description="Minimum box area after padding")
    padding: int = Field(0, description="Expansion applied to every side of a detected box")
    margin: int = Field(0, ge=0, description="Dilation radius used to merge nearby blobs")
    allow_partial: bool = False
    interaction_mode: InteractionMode = InteractionMode.GENERATE
    lock_sprites: bool = False


class ManualSettings(BaseModel):
    """Freehand cutting configuration."""
    maintain_aspect_ratio: bool = False
    aspect_ratio_x: float = Field(1.0, ge=0.0)
    aspect_ratio_y: float = Field(1.0, ge=0.0)
    prevent_overlap: bool = False
    allow_partial: bool = False
    lock_sprites: bool = False

    @property
    def aspect_lock_active(self) -> bool:
        return self.maintain_aspect_ratio and self.aspect_ratio_x > 0 and self.aspect_ratio_y > 0


SettingsT = TypeVar("SettingsT", GridSettings, AutoSettings, ManualSettings)


def apply_settings_patch(settings: SettingsT, **changes: Any) -> SettingsT:
    """
    Return a validated copy of settings with changes applied.

    Raises:
        SettingsValidationError: if the patched values are invalid
    """
    unknown = set(changes) - set(type(settings).model_fields)
    if unknown:
        raise SettingsValidationError(
            f"Unknown {type(settings).__name__} fields: {sorted(unknown)}",
            settings_name=type(settings).__name__,
        )
    try:
        return type(settings).model_validate({**settings.model_dump(), **changes})
    except ValidationError as e:
        raise SettingsValidationError(
            f"Invalid {type(settings).__name__}: {e.error_count()} error(s)",
            settings_name=type(settings).__name__,
            errors=e.errors(include_url=False),
        ) from e
