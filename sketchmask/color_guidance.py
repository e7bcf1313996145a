"""Color guidance regions extracted from quantized sketch colors."""
from __future__ import annotations

import colorsys
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import numpy as np

from maskcodec.buffer import PixelBuffer

from .structure import STROKE_ALPHA_THRESHOLD

QUANTIZATION_STEP = 32
LEVELS_PER_CHANNEL = 256 // QUANTIZATION_STEP
MIN_REGION_PIXELS = 10
WEIGHT_GAIN = 100.0


@dataclass(frozen=True)
class Region:
    x: int
    y: int
    width: int
    height: int

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class ColorGuidance:
    color: str
    region: Region
    weight: float
    pixel_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"color": self.color, "region": self.region.to_dict(), "weight": self.weight}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def rgb_to_hsl(r: int, g: int, b: int) -> Tuple[int, int, int]:
    """Return hue in degrees and saturation/lightness in percent."""
    hue, lightness, saturation = colorsys.rgb_to_hls(r / 255, g / 255, b / 255)
    return _round_half_up(hue * 360), _round_half_up(saturation * 100), _round_half_up(lightness * 100)


def hsl_string(rgb: Tuple[int, int, int]) -> str:
    h, s, l = rgb_to_hsl(*rgb)
    return f"hsl({h}, {s}%, {l}%)"


def quantize_keys(rgb: np.ndarray) -> np.ndarray:
    levels = rgb.astype(np.int32) // QUANTIZATION_STEP
    return (levels[:, 0] * LEVELS_PER_CHANNEL + levels[:, 1]) * LEVELS_PER_CHANNEL + levels[:, 2]


def extract_color_guidance(buffer: PixelBuffer, color_weight: float) -> List[ColorGuidance]:
    height, width = buffer.shape[:2]
    flat = buffer.reshape(-1, 4)
    strong = np.flatnonzero(flat[:, 3] > STROKE_ALPHA_THRESHOLD)
    if strong.size == 0:
        return []

    rgb = flat[strong, :3]
    keys = quantize_keys(rgb)
    buckets, first_seen, counts = np.unique(keys, return_index=True, return_counts=True)
    ys, xs = np.divmod(strong, width)
    canvas_area = width * height

    guidance: List[ColorGuidance] = []
    # Buckets are reported in the order their first pixel appears.
    for bucket_idx in np.argsort(first_seen, kind="stable"):
        count = int(counts[bucket_idx])
        if count < MIN_REGION_PIXELS:
            continue
        members = keys == buckets[bucket_idx]
        bucket_xs = xs[members]
        bucket_ys = ys[members]
        min_x, max_x = int(bucket_xs.min()), int(bucket_xs.max())
        min_y, max_y = int(bucket_ys.min()), int(bucket_ys.max())
        # The first pixel's raw color stands for the whole bucket.
        representative = tuple(int(c) for c in rgb[first_seen[bucket_idx]])
        guidance.append(
            ColorGuidance(
                color=hsl_string(representative),
                region=Region(x=min_x, y=min_y, width=max_x - min_x, height=max_y - min_y),
                weight=min(1.0, (count / canvas_area) * WEIGHT_GAIN * color_weight),
                pixel_count=count,
            )
        )
    return guidance
