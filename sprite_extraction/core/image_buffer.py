"""
Image Buffer Component
Wraps the decoded pixel buffer handed over by the image-loading collaborator.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from PIL import Image

from ..utils.error_handling import ImageDecodeError

logger = logging.getLogger(__name__)

# channel count -> whether the last channel is alpha
_CHANNEL_LAYOUTS = {1: False, 2: True, 3: False, 4: True}


@dataclass(frozen=True, eq=False)
class ImageBuffer:
    """
    Decoded image pixels.

    Accepted layouts (uint8): H x W (gray), H x W x 1, H x W x 2 (gray + alpha),
    H x W x 3 (RGB), H x W x 4 (RGBA).
    """
    pixels: np.ndarray

    def __post_init__(self):
        validate_pixels(self.pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])

    @property
    def has_alpha(self) -> bool:
        return _CHANNEL_LAYOUTS[self.channels]

    @classmethod
    def from_pil(cls, image: Image.Image) -> 'ImageBuffer':
        """
        Convert a Pillow image, keeping transparency when the image has any.

        Args:
            image: Decoded Pillow image

        Returns:
            ImageBuffer with RGBA pixels if the source carries alpha, else RGB
        """
        has_alpha = image.mode in ('RGBA', 'LA', 'PA') or (
            image.mode == 'P' and 'transparency' in image.info
        )
        converted = image.convert('RGBA' if has_alpha else 'RGB')
        return cls(np.asarray(converted, dtype=np.uint8))


def validate_pixels(pixels: np.ndarray) -> None:
    """
    Raise ImageDecodeError unless pixels is a non-empty uint8 image array.
    """
    if not isinstance(pixels, np.ndarray):
        raise ImageDecodeError(f"Expected numpy array, got {type(pixels).__name__}")
    if pixels.dtype != np.uint8:
        raise ImageDecodeError("Pixel buffer must be uint8", shape=pixels.shape, dtype=str(pixels.dtype))
    if pixels.ndim not in (2, 3) or (pixels.ndim == 3 and pixels.shape[2] not in _CHANNEL_LAYOUTS):
        raise ImageDecodeError("Unsupported pixel buffer layout", shape=pixels.shape, dtype=str(pixels.dtype))
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise ImageDecodeError("Pixel buffer is empty", shape=pixels.shape, dtype=str(pixels.dtype))
