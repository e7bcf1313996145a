"""Selection masks for edit requests.

White, fully opaque pixels mark the region the model may repaint; fully
transparent pixels are preserved.
"""
from __future__ import annotations

import logging
import math
from typing import Iterable

import cv2
import numpy as np

from .buffer import PixelBuffer, blank_buffer
from .distance import bounded_edge_distance
from .webp import encode_lossless

logger = logging.getLogger(__name__)

SELECTION_FEATHER_WINDOW = 5
DEFAULT_FEATHER_AMOUNT = 0.03


def selection_buffer(width: int, height: int, selected_pixels: Iterable[int]) -> PixelBuffer:
    buffer = blank_buffer(width, height)
    indices = np.fromiter((int(idx) for idx in selected_pixels), dtype=np.int64)
    indices = indices[(indices >= 0) & (indices < width * height)]
    buffer.reshape(-1, 4)[indices] = 255
    return buffer


def apply_feathering(buffer: PixelBuffer, feather_radius: int) -> None:
    """Soften opaque boundary pixels in place.

    A boundary pixel is fully transparent or fully opaque and has an in-bounds
    8-neighbour with a different alpha. Opaque boundary pixels are scaled by
    their distance to the nearest transparent pixel, capped at 1.
    """
    alpha = buffer[..., 3]
    source = alpha.copy()
    kernel = np.ones((3, 3), dtype=np.uint8)
    # Out-of-bounds neighbours never make a pixel a boundary pixel.
    neighbour_min = cv2.erode(source, kernel, borderType=cv2.BORDER_CONSTANT, borderValue=255)
    boundary = (source == 255) & (neighbour_min != 255)
    if not boundary.any():
        return
    distances = bounded_edge_distance(source == 0, SELECTION_FEATHER_WINDOW)
    factor = np.minimum(distances[boundary] / float(feather_radius), 1.0)
    alpha[boundary] = np.floor(255 * factor).astype(np.uint8)


def create_binary_mask(
    width: int,
    height: int,
    selected_pixels: Iterable[int],
    feather_amount: float = DEFAULT_FEATHER_AMOUNT,
) -> str:
    """Build a selection mask and return it as a lossless WebP data URL.

    ``selected_pixels`` holds row-major indices (``y * width + x``); indices
    outside the canvas are ignored. An empty selection gives a fully
    transparent mask.
    """
    buffer = selection_buffer(width, height, selected_pixels)
    if feather_amount > 0:
        feather_pixels = int(math.ceil(max(width, height) * feather_amount))
        apply_feathering(buffer, feather_pixels)
    selected = int(np.count_nonzero(buffer[..., 3]))
    if selected == 0:
        logger.warning("Selection mask %dx%d has no selected pixels", width, height)
    else:
        logger.debug("Selection mask %dx%d with %d selected pixels", width, height, selected)
    return encode_lossless(buffer)
