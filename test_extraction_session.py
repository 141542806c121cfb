"""
Extraction session tests
End-to-end flows through the session: pointer gestures, strategies, preview and export.
"""

import asyncio

import numpy as np
import pytest
from PIL import Image

from sprite_extraction.business.extraction_session import ExtractionSession
from sprite_extraction.config import EngineConfig
from sprite_extraction.models import CalculationMode, InteractionMode, SelectionMode
from sprite_extraction.utils.error_handling import SettingsValidationError


def sprite_sheet():
    """200x100 RGBA sheet with three opaque squares on a transparent background."""
    pixels = np.zeros((100, 200, 4), dtype=np.uint8)
    for x in (10, 80, 150):
        pixels[20:50, x:x + 30] = (255, 0, 0, 255)
    return Image.fromarray(pixels, mode="RGBA")


@pytest.fixture
def session():
    s = ExtractionSession(EngineConfig(debounce_ms=10))
    s.load_image(sprite_sheet())
    return s


def test_load_image_from_pil(session):
    assert session.image_size == (200, 100)
    assert session.image.has_alpha
    assert session.detector.is_ready


def test_manual_draw_through_zoomed_view(session):
    session.view.set_transform(2.0, (0, 0))

    session.pointer_down((20, 20))
    session.pointer_move((120, 100))
    assert session.candidates()[0].width == 50

    added = session.pointer_up()

    assert len(added) == 1
    rect = added[0]
    assert (rect.x, rect.y, rect.width, rect.height) == (10, 10, 50, 40)
    assert rect.selected
    assert session.cutter.draft is None


def test_clicking_sprite_selects_it(session):
    session.pointer_down((10, 10))
    session.pointer_move((50, 50))
    first = session.pointer_up()[0]
    session.pointer_down((60, 60))
    session.pointer_move((90, 90))
    second = session.pointer_up()[0]

    session.pointer_down((20, 20), rect_id=first.id)
    assert first.selected and not second.selected

    session.pointer_down((70, 70), rect_id=second.id, modifier=True)
    assert first.selected and second.selected

    assert session.delete_selected() == 2
    assert len(session.registry) == 0


def test_grid_generate_count_mode(session):
    session.set_mode(SelectionMode.GRID)
    session.update_grid_settings(calculation_mode="COUNT", columns=4, rows=2)

    added = session.generate()

    assert len(added) == 8
    assert [r.name for r in added] == [f"sprite_{i}" for i in range(1, 9)]
    assert (added[0].width, added[0].height) == (50, 50)
    assert all(r.source == SelectionMode.GRID and not r.selected for r in added)
    assert len(session.grid_overlay()) == 8


def test_grid_box_select(session):
    session.set_mode(SelectionMode.GRID)
    session.update_grid_settings(width=50, height=50, interaction_mode=InteractionMode.SELECT)

    session.pointer_down((60, 10))
    session.pointer_move((110, 20))
    assert session.selection_box is not None
    added = session.pointer_up()

    assert [(r.x, r.y) for r in added] == [(50, 0), (100, 0)]
    assert all(r.selected for r in added)
    assert session.selection_box is None


def test_auto_mode_without_loop_refreshes_synchronously(session):
    session.update_auto_settings(min_area=0)
    session.set_mode(SelectionMode.AUTO)

    assert [(r.x, r.y, r.width, r.height) for r in session.preview] == [
        (10, 20, 30, 30), (80, 20, 30, 30), (150, 20, 30, 30)
    ]

    added = session.generate()
    assert [r.name for r in added] == ["sprite_1", "sprite_2", "sprite_3"]
    assert session.select_all() == 3


def test_auto_box_select_picks_overlapping_candidates(session):
    session.set_mode(SelectionMode.AUTO)
    session.update_auto_settings(interaction_mode=InteractionMode.SELECT)

    session.pointer_down((0, 0))
    session.pointer_move((100, 30))
    added = session.pointer_up()

    assert [r.x for r in added] == [10, 80]


def test_preview_request_on_running_loop(session):
    async def scenario():
        session.set_mode(SelectionMode.AUTO)
        await session.scheduler.wait_idle()
        before = len(session.preview)

        session.update_auto_settings(min_area=1000)
        await session.scheduler.wait_idle()
        return before

    before = asyncio.run(scenario())

    assert before == 3
    assert session.preview == []
    assert session.scheduler.last_applied_request == session.scheduler.latest_request


def test_mode_switch_clears_selection(session):
    session.pointer_down((10, 10))
    session.pointer_move((50, 50))
    rect = session.pointer_up()[0]
    assert rect.selected

    session.set_mode(SelectionMode.GRID)

    assert not rect.selected
    assert session.registry.visible() == []


def test_locked_sprites_do_not_move(session):
    session.update_manual_settings(lock_sprites=True)
    session.pointer_down((10, 10))
    session.pointer_move((50, 50))
    rect = session.pointer_up()[0]

    assert session.move_end(rect.id, 100, 40) == (10, 10)
    assert not session.transform_end(rect.id, 10, 10, 40, 40, 2.0, 2.0)


def test_invalid_settings_patch_raises(session):
    with pytest.raises(SettingsValidationError):
        session.update_auto_settings(threshold=0)
    with pytest.raises(SettingsValidationError):
        session.update_grid_settings(colums=3)
    assert session.auto_settings.threshold == 10


def test_reset_settings(session):
    session.update_grid_settings(calculation_mode=CalculationMode.COUNT)
    session.reset_settings()
    assert session.grid_settings.calculation_mode == CalculationMode.PIXEL


def test_new_image_clears_state(session):
    session.pointer_down((10, 10))
    session.pointer_move((50, 50))
    session.pointer_up()
    session.wheel((10, 10), -1)

    session.load_image(np.zeros((10, 10, 3), dtype=np.uint8))

    assert len(session.registry) == 0
    assert session.view.scale == 1.0
    assert session.image_size == (10, 10)


def test_generate_without_image():
    session = ExtractionSession(EngineConfig())
    session.set_mode(SelectionMode.GRID)
    assert session.generate() == []


def test_crop_and_export(session):
    session.set_mode(SelectionMode.GRID)
    session.update_grid_settings(width=30, height=30, offset_x=10, offset_y=20)
    added = session.generate()
    session.rename(added[0].id, "hero")

    crops = dict((rect.name, pixels) for rect, pixels in session.crop_sprites())
    records = session.export_records()

    assert records[0]["name"] == "hero"
    assert crops["hero"].shape == (30, 30, 4)
    assert (crops["hero"][..., 3] == 255).all()
    assert len(crops) == len(records)


def single_blob(size=100):
    pixels = np.zeros((size, size, 4), dtype=np.uint8)
    pixels[10:40, 10:40] = (0, 255, 0, 255)
    return pixels


def test_leaving_auto_cancels_debouncing_preview():
    session = ExtractionSession(EngineConfig(debounce_ms=50))
    session.load_image(single_blob())

    async def scenario():
        session.set_mode(SelectionMode.AUTO)
        session.update_auto_settings(min_area=0)
        session.set_mode(SelectionMode.GRID)
        session.load_image(np.zeros((100, 100, 4), dtype=np.uint8))
        await session.scheduler.wait_idle()

    asyncio.run(scenario())

    assert session.preview == []
    assert session.scheduler.last_applied_request is None


def test_new_image_replaces_debouncing_preview():
    session = ExtractionSession(EngineConfig(debounce_ms=50))
    session.load_image(single_blob())

    async def scenario():
        session.set_mode(SelectionMode.AUTO)
        session.load_image(np.zeros((100, 100, 4), dtype=np.uint8))
        await session.scheduler.wait_idle()

    asyncio.run(scenario())

    assert session.preview == []
    assert session.scheduler.last_applied_request == session.scheduler.latest_request
    assert session.generate() == []
