"""Structural (line geometry) control signal extracted from sketch strokes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import numpy as np

from maskcodec.buffer import PixelBuffer

STROKE_ALPHA_THRESHOLD = 128
# Upper bound on points collected per flood fill. Large scribbles are split into
# several segments once the cap is reached.
MAX_SEGMENT_POINTS = 1000
MIN_SEGMENT_POINTS = 3
CONFIDENCE_GAIN = 10.0

_NEIGHBOURS: Tuple[Tuple[int, int], ...] = tuple(
    (dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if dx or dy
)


@dataclass(frozen=True)
class LineSegment:
    points: List[Tuple[int, int]]
    thickness: float
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [{"x": x, "y": y} for x, y in self.points],
            "thickness": self.thickness,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class StructuralMap:
    line_geometry: List[LineSegment]
    density_map: np.ndarray
    confidence_score: float

    def to_dict(self, include_density: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "lineGeometry": [segment.to_dict() for segment in self.line_geometry],
            "confidenceScore": self.confidence_score,
        }
        if include_density:
            payload["densityMap"] = self.density_map.tolist()
        return payload


def trace_line_segment(
    alpha: List[List[int]],
    start_x: int,
    start_y: int,
    visited: bytearray,
    max_points: int = MAX_SEGMENT_POINTS,
) -> LineSegment:
    """Collect one 8-connected run of strong pixels starting at ``(start_x, start_y)``.

    ``alpha`` is the alpha plane as nested lists and ``visited`` a row-major
    flag per pixel shared across calls. Every popped pixel is marked visited,
    so no strong pixel is ever claimed by two segments.
    """
    height = len(alpha)
    width = len(alpha[0])
    points: List[Tuple[int, int]] = []
    stack = [(start_x, start_y)]
    total_thickness = 0.0

    while stack and len(points) < max_points:
        x, y = stack.pop()
        key = y * width + x
        if visited[key]:
            continue
        visited[key] = 1

        value = alpha[y][x]
        if value <= STROKE_ALPHA_THRESHOLD:
            continue
        points.append((x, y))
        total_thickness += value / 255

        for dx, dy in _NEIGHBOURS:
            nx = x + dx
            ny = y + dy
            if 0 <= nx < width and 0 <= ny < height:
                stack.append((nx, ny))

    count = len(points)
    thickness = total_thickness / count if count else 0.5
    return LineSegment(points=points, thickness=thickness, confidence=min(1.0, count / 10))


def extract_structural_map(buffer: PixelBuffer, structure_weight: float) -> StructuralMap:
    alpha_plane = buffer[..., 3]
    height, width = alpha_plane.shape

    density = alpha_plane.astype(np.float64) / 255.0
    density.setflags(write=False)

    alpha = alpha_plane.tolist()
    visited = bytearray(width * height)
    line_geometry: List[LineSegment] = []
    for start in np.flatnonzero(alpha_plane > STROKE_ALPHA_THRESHOLD).tolist():
        if visited[start]:
            continue
        start_y, start_x = divmod(start, width)
        segment = trace_line_segment(alpha, start_x, start_y, visited)
        if len(segment.points) >= MIN_SEGMENT_POINTS:
            line_geometry.append(segment)

    stroke_pixels = sum(len(segment.points) for segment in line_geometry)
    confidence = min(1.0, (stroke_pixels / (width * height)) * CONFIDENCE_GAIN * structure_weight)
    return StructuralMap(line_geometry=line_geometry, density_map=density, confidence_score=confidence)
