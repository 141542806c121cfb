from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineConfig(BaseSettings):
    """
    Engine-wide configuration.
    Loaded from environment variables (SPRITE_EXTRACT_*), e.g.
    SPRITE_EXTRACT_NAMING_PREFIX=tile or SPRITE_EXTRACT_DEBOUNCE_MS=150.
    """

    model_config = SettingsConfigDict(env_prefix="SPRITE_EXTRACT_", case_sensitive=False)

    # Naming
    naming_prefix: str = Field("sprite", min_length=1, description="Prefix for generated sprite names")

    # Auto detection preview
    debounce_ms: int = Field(300, ge=0, description="Delay before a preview detection runs")
    discard_stale_results: bool = Field(
        False,
        description="Drop detection results whose request is no longer the latest"
    )

    # View transform
    zoom_step: float = Field(1.1, gt=1.0, description="Multiplicative scale change per wheel tick")
    min_scale: float = Field(0.1, gt=0.0)
    max_scale: float = Field(20.0, gt=0.0)

    # Rectangle constraints
    min_draw_size: int = Field(2, ge=0, description="Draws with an extent at or below this are discarded")
    min_resize_size: int = Field(5, ge=1, description="Floor applied to width/height after a resize")

    # Rendering support
    overlay_cell_limit: int = Field(5000, ge=1, description="Maximum grid cells returned for overlays")

    # Logging / error history
    log_dir: str = Field("logs", description="Directory for log files")
    max_error_history: int = Field(100, ge=1)


@lru_cache(maxsize=1)
def get_engine_config() -> EngineConfig:
    """Return the process-wide engine configuration."""
    return EngineConfig()
