"""
Export Utilities
Feeds the export collaborator: per-sprite pixel crops taken from the source buffer.
"""

import logging
from typing import Iterable, Iterator, Optional, Tuple

import numpy as np
from PIL import Image

from ..core.image_buffer import ImageBuffer
from ..models import SpriteRect
from .error_handling import ErrorHandlingSystem, ImageDecodeError, InvalidGeometryError

logger = logging.getLogger(__name__)


def crop_sprite(image: ImageBuffer, rect: SpriteRect) -> np.ndarray:
    """
    Copy the pixels covered by rect.

    Parts of the rectangle outside the image are filled with zeros
    (transparent for images with alpha).

    Raises:
        InvalidGeometryError: for non-positive extents
    """
    if rect.width <= 0 or rect.height <= 0:
        raise InvalidGeometryError(f"Cannot crop {rect.name}", geometry=rect.box)

    pixels = image.pixels
    out = np.zeros((rect.height, rect.width) + pixels.shape[2:], dtype=pixels.dtype)

    src_x0, src_y0 = max(rect.x, 0), max(rect.y, 0)
    src_x1 = min(rect.x + rect.width, image.width)
    src_y1 = min(rect.y + rect.height, image.height)
    if src_x1 > src_x0 and src_y1 > src_y0:
        dst_x0, dst_y0 = src_x0 - rect.x, src_y0 - rect.y
        out[dst_y0:dst_y0 + (src_y1 - src_y0), dst_x0:dst_x0 + (src_x1 - src_x0)] = \
            pixels[src_y0:src_y1, src_x0:src_x1]
    return out


def iter_sprite_crops(image: Optional[ImageBuffer], rects: Iterable[SpriteRect],
                      error_handler: Optional[ErrorHandlingSystem] = None
                      ) -> Iterator[Tuple[SpriteRect, np.ndarray]]:
    """
    Yield (rect, pixels) for every rectangle that can be cropped.

    A rectangle that fails is recorded and skipped; the rest continue.
    """
    if image is None:
        logger.warning("No image loaded, nothing to crop")
        return

    for rect in rects:
        try:
            yield rect, crop_sprite(image, rect)
        except (InvalidGeometryError, ImageDecodeError, ValueError) as e:
            if error_handler is not None:
                error_handler.handle_error(e, "export_utils", "crop_sprite", {"rect": rect.name})
            else:
                logger.error(f"Skipping sprite {rect.name}: {e}")


def to_pil_image(pixels: np.ndarray) -> Image.Image:
    """Wrap a crop as a Pillow image (mode inferred from the channel count)."""
    if pixels.ndim == 3 and pixels.shape[2] == 1:
        pixels = pixels[:, :, 0]
    return Image.fromarray(pixels)
