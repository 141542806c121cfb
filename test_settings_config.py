"""
Settings model and engine configuration tests
"""

import pytest

from sprite_extraction.config import EngineConfig
from sprite_extraction.models import (
    AutoSettings,
    CalculationMode,
    GridSettings,
    ManualSettings,
    apply_settings_patch,
)
from sprite_extraction.utils.error_handling import ErrorCategory, SettingsValidationError


def test_defaults():
    grid = GridSettings()
    auto = AutoSettings()
    manual = ManualSettings()

    assert (grid.calculation_mode, grid.width, grid.height, grid.columns, grid.rows) == \
        (CalculationMode.PIXEL, 32, 32, 4, 4)
    assert (auto.threshold, auto.min_area, auto.margin) == (10, 100, 0)
    assert not manual.aspect_lock_active


def test_patch_returns_validated_copy():
    original = AutoSettings()
    patched = apply_settings_patch(original, threshold=200, padding=-3)

    assert patched.threshold == 200
    assert patched.padding == -3
    assert original.threshold == 10


@pytest.mark.parametrize("changes", [
    {"threshold": 0},
    {"threshold": 255},
    {"min_area": -1},
    {"margin": -2},
])
def test_patch_rejects_out_of_range(changes):
    with pytest.raises(SettingsValidationError) as exc_info:
        apply_settings_patch(AutoSettings(), **changes)

    error = exc_info.value
    assert error.category == ErrorCategory.VALIDATION
    assert error.context["settings"] == "AutoSettings"
    assert error.context["errors"]


def test_patch_rejects_unknown_field():
    with pytest.raises(SettingsValidationError):
        apply_settings_patch(GridSettings(), colums=3)


def test_aspect_lock_requires_positive_components():
    assert ManualSettings(maintain_aspect_ratio=True, aspect_ratio_x=16, aspect_ratio_y=9).aspect_lock_active
    assert not ManualSettings(maintain_aspect_ratio=True, aspect_ratio_x=16, aspect_ratio_y=0).aspect_lock_active


def test_engine_config_defaults(monkeypatch):
    monkeypatch.delenv("SPRITE_EXTRACT_NAMING_PREFIX", raising=False)
    config = EngineConfig()

    assert config.naming_prefix == "sprite"
    assert config.debounce_ms == 300
    assert config.discard_stale_results is False
    assert (config.min_scale, config.max_scale, config.zoom_step) == (0.1, 20.0, 1.1)


def test_engine_config_from_environment(monkeypatch):
    monkeypatch.setenv("SPRITE_EXTRACT_NAMING_PREFIX", "tile")
    monkeypatch.setenv("SPRITE_EXTRACT_DISCARD_STALE_RESULTS", "true")

    config = EngineConfig()

    assert config.naming_prefix == "tile"
    assert config.discard_stale_results is True
