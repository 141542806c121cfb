"""
Sprite detector tests
Builds small synthetic buffers with numpy and checks the OpenCV detection pipeline.
"""

import numpy as np
import pytest

from sprite_extraction.core.image_buffer import ImageBuffer
from sprite_extraction.core.sprite_detector import SpriteDetector
from sprite_extraction.models import AutoSettings, SelectionMode
from sprite_extraction.utils.error_handling import ErrorCategory, ErrorHandlingSystem


@pytest.fixture
def detector():
    det = SpriteDetector(ErrorHandlingSystem())
    assert det.initialize()
    return det


def two_blobs(gap=1):
    pixels = np.zeros((50, 50), dtype=np.uint8)
    pixels[10:20, 10:20] = 255
    pixels[10:20, 20 + gap:30 + gap] = 255
    return ImageBuffer(pixels)


def test_transparent_image_has_no_candidates(detector):
    pixels = np.zeros((40, 40, 4), dtype=np.uint8)
    pixels[..., :3] = 200
    image = ImageBuffer(pixels)

    for threshold in (1, 10, 128, 254):
        assert detector.detect(image, AutoSettings(threshold=threshold, min_area=0)) == []


def test_blobs_one_pixel_apart(detector):
    image = two_blobs(gap=1)

    separate = detector.detect(image, AutoSettings(min_area=0, margin=0))
    merged = detector.detect(image, AutoSettings(min_area=0, margin=1))

    assert len(separate) == 2
    assert len(merged) == 1


def test_candidate_shape_and_names(detector):
    candidates = detector.detect(two_blobs(gap=5), AutoSettings(min_area=0))

    assert [(c.x, c.y, c.width, c.height) for c in candidates] == [(10, 10, 10, 10), (25, 10, 10, 10)]
    assert [c.name for c in candidates] == ["auto_preview_0", "auto_preview_1"]
    assert all(c.source == SelectionMode.AUTO and not c.selected for c in candidates)


def test_reading_order(detector):
    pixels = np.zeros((60, 60), dtype=np.uint8)
    pixels[40:50, 5:15] = 255
    pixels[5:15, 40:50] = 255
    pixels[5:15, 5:15] = 255

    candidates = detector.detect(ImageBuffer(pixels), AutoSettings(min_area=0))

    assert [(c.x, c.y) for c in candidates] == [(5, 5), (40, 5), (5, 40)]


def test_padding_and_min_area(detector):
    image = two_blobs(gap=5)

    padded = detector.detect(image, AutoSettings(min_area=0, padding=2))
    assert (padded[0].x, padded[0].y, padded[0].width, padded[0].height) == (8, 8, 14, 14)

    assert detector.detect(image, AutoSettings(min_area=101)) == []
    assert len(detector.detect(image, AutoSettings(min_area=100))) == 2

    # negative padding consuming the whole box drops it
    assert detector.detect(image, AutoSettings(min_area=0, padding=-5)) == []


def test_threshold_is_strictly_greater(detector):
    pixels = np.zeros((20, 20), dtype=np.uint8)
    pixels[5:15, 5:15] = 10

    assert detector.detect(ImageBuffer(pixels), AutoSettings(threshold=10, min_area=0)) == []
    assert len(detector.detect(ImageBuffer(pixels), AutoSettings(threshold=9, min_area=0))) == 1


def test_rgb_uses_luminance(detector):
    pixels = np.zeros((30, 30, 3), dtype=np.uint8)
    pixels[5:15, 5:15] = (255, 255, 255)

    candidates = detector.detect(ImageBuffer(pixels), AutoSettings(min_area=0))

    assert [(c.x, c.y, c.width, c.height) for c in candidates] == [(5, 5, 10, 10)]


def test_gray_alpha_uses_alpha(detector):
    pixels = np.zeros((30, 30, 2), dtype=np.uint8)
    pixels[..., 0] = 255
    pixels[20:25, 20:28, 1] = 255

    candidates = detector.detect(ImageBuffer(pixels), AutoSettings(min_area=0))

    assert [(c.x, c.y, c.width, c.height) for c in candidates] == [(20, 20, 8, 5)]


def test_uninitialized_engine_returns_nothing():
    det = SpriteDetector()
    assert not det.is_ready
    assert det.detect(two_blobs(), AutoSettings(min_area=0)) == []


def test_bad_buffer_is_recorded_not_raised(detector):
    pixels = np.zeros((20, 20), dtype=np.float32)

    assert detector.detect(pixels, AutoSettings()) == []

    history = detector.error_handler.get_error_history()
    assert len(history) == 1
    assert history[0].category == ErrorCategory.IMAGE_DATA
    assert history[0].context.component == "SpriteDetector"


def test_performance_stats_track_completed_detections(detector):
    assert detector.get_performance_stats()['detection_count'] == 0

    detector.detect(two_blobs(), AutoSettings(min_area=0))
    detector.detect(two_blobs(), AutoSettings(min_area=0))
    detector.detect(np.zeros((4, 4), dtype=np.float32), AutoSettings())

    stats = detector.get_performance_stats()
    assert stats['engine_ready']
    assert stats['detection_count'] == 2
    assert stats['last_processing_time_ms'] >= 0.0
    assert stats['average_processing_time_ms'] >= 0.0
