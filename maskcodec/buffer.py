"""Pixel buffer helpers shared by the mask codec and the sketch analyzer."""
from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np

PixelBuffer = np.ndarray


def as_pixel_buffer(array: np.ndarray) -> PixelBuffer:
    """Validate an RGBA ``(height, width, 4)`` uint8 array.

    The array is returned as-is; callers must not write to it.
    """
    buffer = np.asarray(array)
    if buffer.ndim != 3 or buffer.shape[2] != 4:
        raise ValueError(f"Pixel buffer must have shape (height, width, 4), got {buffer.shape}")
    if buffer.dtype != np.uint8:
        raise ValueError(f"Pixel buffer must be uint8, got {buffer.dtype}")
    if buffer.shape[0] == 0 or buffer.shape[1] == 0:
        raise ValueError("Pixel buffer dimensions must be greater than zero")
    return buffer


def load_pixel_buffer(path: str | Path) -> PixelBuffer:
    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise FileNotFoundError(f"Could not read image: {path}")
    if image.dtype != np.uint8:
        image = cv2.convertScaleAbs(image, alpha=255.0 / max(1.0, float(image.max())))
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    if image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)


def blank_buffer(width: int, height: int) -> PixelBuffer:
    if width <= 0 or height <= 0:
        raise ValueError("Mask dimensions must be greater than zero")
    return np.zeros((height, width, 4), dtype=np.uint8)
