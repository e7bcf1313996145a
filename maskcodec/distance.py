"""Window-bounded distance-to-edge used by both feathering paths."""
from __future__ import annotations

import math
from typing import List, Tuple

import cv2
import numpy as np


def _outer_ring_offsets(window: int) -> List[Tuple[float, int, int]]:
    offsets = []
    for dy in range(-window, window + 1):
        for dx in range(-window, window + 1):
            dist = math.sqrt(dx * dx + dy * dy)
            if dist > window:
                offsets.append((dist, dy, dx))
    offsets.sort()
    return offsets


def bounded_edge_distance(background: np.ndarray, window: int) -> np.ndarray:
    """Euclidean distance from each pixel to the nearest background pixel.

    Only background pixels within ``window`` steps on both axes (a square
    search window) are considered. Pixels outside the image never count as
    background. Pixels with no background inside their window get ``inf``.
    """
    background = np.asarray(background, dtype=bool)
    height, width = background.shape
    result = np.full((height, width), np.inf, dtype=np.float64)
    if not background.any():
        return result

    src = np.where(background, 0, 255).astype(np.uint8)
    exact = cv2.distanceTransform(src, cv2.DIST_L2, cv2.DIST_MASK_PRECISE).astype(np.float64)
    chessboard = cv2.distanceTransform(src, cv2.DIST_C, 3)

    # Anything within the inscribed circle is exact.
    inside = exact <= window
    result[inside] = exact[inside]

    # The square corners reach further than the circle; resolve those by scanning
    # only the offsets that lie outside it.
    corners = ~inside & (chessboard <= window)
    if not corners.any():
        return result
    ys, xs = np.nonzero(corners)
    best = np.full(ys.shape, np.inf, dtype=np.float64)
    for dist, dy, dx in _outer_ring_offsets(window):
        ny = ys + dy
        nx = xs + dx
        valid = (ny >= 0) & (ny < height) & (nx >= 0) & (nx < width)
        hit = np.zeros(ys.shape, dtype=bool)
        hit[valid] = background[ny[valid], nx[valid]]
        best = np.where(hit & (dist < best), dist, best)
    result[ys, xs] = best
    return result
