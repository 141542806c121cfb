"""
Sprite Detector Module

Connected-component sprite detection based on OpenCV:
threshold -> optional dilation -> external contours -> padded bounding boxes.
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional, Union

import cv2
import numpy as np

from ..models import AutoSettings, SelectionMode, SpriteRect
from ..utils.error_handling import (
    DetectionUnavailableError,
    ErrorHandlingSystem,
    ImageDecodeError,
)
from ..utils.geometry_utils import Box
from .image_buffer import ImageBuffer, validate_pixels

logger = logging.getLogger(__name__)

PREVIEW_NAME_PREFIX = "auto_preview"


class SpriteDetector:
    """
    Detects sprite candidates in a decoded image.

    The detector must be initialized before use; until then detect() returns
    no candidates without raising, which mirrors a detection backend that is
    still loading.
    """

    def __init__(self, error_handler: Optional[ErrorHandlingSystem] = None):
        """
        Args:
            error_handler: Receives failures that are absorbed into empty results
        """
        self.error_handler = error_handler or ErrorHandlingSystem()
        self._initialized = False
        self._stats_lock = threading.Lock()
        self._detection_count = 0
        self._total_processing_time_ms = 0.0
        self._last_processing_time_ms = 0.0

    @property
    def is_ready(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        """
        Run a smoke test of the OpenCV operations used by detect().

        Returns:
            True if the engine is ready
        """
        try:
            probe = np.zeros((8, 8), dtype=np.uint8)
            probe[2:5, 2:5] = 255
            contours = cv2.findContours(probe, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)[-2]
            self._initialized = len(contours) == 1
        except cv2.error as e:
            self.error_handler.handle_error(e, "SpriteDetector", "initialize")
            self._initialized = False

        if self._initialized:
            logger.info(f"Detection engine ready (OpenCV {cv2.__version__})")
        else:
            logger.warning("Detection engine failed its smoke test")
        return self._initialized

    def detect(self, image: Union[ImageBuffer, np.ndarray], settings: AutoSettings) -> List[SpriteRect]:
        """
        Detect candidate sprite rectangles.

        Failures (engine not ready, unreadable buffer, OpenCV errors) are
        logged and resolve to an empty list.

        Args:
            image: Decoded image
            settings: Threshold, min area, margin and padding

        Returns:
            Unselected AUTO candidates with placeholder names
        """
        if not self._initialized:
            logger.debug("Detection skipped: %s", DetectionUnavailableError().message)
            return []

        start_time = time.perf_counter()
        try:
            pixels = image.pixels if isinstance(image, ImageBuffer) else image
            validate_pixels(pixels)
            mask = self._foreground_mask(pixels, settings.threshold)
            if settings.margin > 0:
                mask = self._merge_nearby(mask, settings.margin)
            boxes = self._contour_boxes(mask)
        except (ImageDecodeError, cv2.error) as e:
            self.error_handler.handle_error(e, "SpriteDetector", "detect")
            return []

        candidates = []
        for box in boxes:
            padded = box.expanded(settings.padding)
            if not padded.has_positive_extent() or padded.area < settings.min_area:
                continue
            candidates.append(SpriteRect(
                x=int(padded.x),
                y=int(padded.y),
                width=int(padded.width),
                height=int(padded.height),
                name=f"{PREVIEW_NAME_PREFIX}_{len(candidates)}",
                source=SelectionMode.AUTO,
                selected=False,
            ))

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        with self._stats_lock:
            self._detection_count += 1
            self._total_processing_time_ms += elapsed_ms
            self._last_processing_time_ms = elapsed_ms
        logger.debug(f"Detected {len(candidates)} of {len(boxes)} regions in {elapsed_ms:.1f}ms")
        return candidates

    def _foreground_mask(self, pixels: np.ndarray, threshold: int) -> np.ndarray:
        """Binarize alpha (if present) or luminance: foreground iff value > threshold."""
        if pixels.ndim == 2:
            intensity = pixels
        else:
            channels = pixels.shape[2]
            if channels in (2, 4):
                intensity = pixels[:, :, channels - 1]
            elif channels == 3:
                intensity = cv2.cvtColor(pixels, cv2.COLOR_RGB2GRAY)
            else:
                intensity = pixels[:, :, 0]

        _, mask = cv2.threshold(np.ascontiguousarray(intensity), threshold, 255, cv2.THRESH_BINARY)
        return mask

    def _merge_nearby(self, mask: np.ndarray, margin: int) -> np.ndarray:
        """Dilate with a (2*margin+1) square so blobs closer than ~margin merge."""
        kernel_size = margin * 2 + 1
        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (kernel_size, kernel_size))
        return cv2.dilate(mask, kernel)

    def _contour_boxes(self, mask: np.ndarray) -> List[Box]:
        """Bounding boxes of external contours, in reading order."""
        contours = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)[-2]
        boxes = [Box(*cv2.boundingRect(contour)) for contour in contours]
        boxes.sort(key=lambda b: (b.y, b.x))
        return boxes

    def get_performance_stats(self) -> Dict[str, Any]:
        """
        Timing of completed detections.

        detect() runs on executor threads, so counters are read under a lock.
        """
        with self._stats_lock:
            count = self._detection_count
            return {
                'engine_ready': self._initialized,
                'detection_count': count,
                'last_processing_time_ms': self._last_processing_time_ms,
                'average_processing_time_ms': self._total_processing_time_ms / count if count else 0.0,
            }
