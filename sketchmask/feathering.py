"""Feathered alpha mask for the sketch layer."""
from __future__ import annotations

import math

import numpy as np

from maskcodec.buffer import PixelBuffer
from maskcodec.distance import bounded_edge_distance
from maskcodec.webp import encode_lossless

from .structure import STROKE_ALPHA_THRESHOLD

SKETCH_FEATHER_WINDOW = 20


def feather_radius(width: int, height: int, feather_amount: float) -> int:
    return max(1, int(math.floor(min(width, height) * feather_amount)))


def distance_to_transparent(alpha: np.ndarray) -> np.ndarray:
    """Distance from each opaque pixel to the nearest transparent one.

    Only a ``SKETCH_FEATHER_WINDOW`` window is searched; opaque pixels with no
    transparent pixel in range get the canvas diagonal. Non-opaque pixels are 0.
    """
    height, width = alpha.shape
    opaque = alpha > STROKE_ALPHA_THRESHOLD
    edge = bounded_edge_distance(alpha < STROKE_ALPHA_THRESHOLD, SKETCH_FEATHER_WINDOW)
    edge[np.isinf(edge)] = math.sqrt(width * width + height * height)
    return np.where(opaque, edge, 0.0)


def feather_mask_alpha(buffer: PixelBuffer, feather_amount: float) -> np.ndarray:
    alpha = buffer[..., 3]
    height, width = alpha.shape
    radius = feather_radius(width, height, feather_amount)
    distances = distance_to_transparent(alpha)

    feathered = alpha.copy()
    fade = (distances < radius) & (alpha > 0)
    feathered[fade] = np.floor(alpha[fade] * (distances[fade] / radius)).astype(np.uint8)
    return feathered


def create_feathered_mask(buffer: PixelBuffer, feather_amount: float) -> str:
    """Return the sketch mask as a data URL: white pixels, feathered alpha."""
    mask = np.full(buffer.shape, 255, dtype=np.uint8)
    mask[..., 3] = feather_mask_alpha(buffer, feather_amount)
    return encode_lossless(mask)
