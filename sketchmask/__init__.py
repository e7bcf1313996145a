"""Sketch analysis: structural, color and mask signals from a sketch layer."""

from .analyzer import SketchAnalysis, analyze_sketch
from .color_guidance import ColorGuidance, Region, extract_color_guidance, rgb_to_hsl
from .feathering import create_feathered_mask, feather_mask_alpha
from .options import AnalysisOptions
from .structure import LineSegment, StructuralMap, extract_structural_map, trace_line_segment

__all__ = [
    "SketchAnalysis",
    "analyze_sketch",
    "ColorGuidance",
    "Region",
    "extract_color_guidance",
    "rgb_to_hsl",
    "create_feathered_mask",
    "feather_mask_alpha",
    "AnalysisOptions",
    "LineSegment",
    "StructuralMap",
    "extract_structural_map",
    "trace_line_segment",
]
