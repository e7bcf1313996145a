"""Turn a sketch layer into control signals for an image generation request.

Three independent signals come out of one pass over the same buffer:

* a feathered alpha mask of the sketched area,
* the structural map (traced line segments, stroke density and a coverage
  based confidence score),
* color guidance regions built from quantized stroke colors.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from maskcodec.buffer import PixelBuffer, as_pixel_buffer

from .color_guidance import ColorGuidance, extract_color_guidance
from .feathering import create_feathered_mask
from .options import AnalysisOptions
from .structure import StructuralMap, extract_structural_map

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SketchAnalysis:
    binary_mask: str
    structural_map: StructuralMap
    color_map: List[ColorGuidance]
    feather_amount: float

    def summary(self) -> Dict[str, Any]:
        return {
            "structuralSegments": len(self.structural_map.line_geometry),
            "colorRegions": len(self.color_map),
            "confidence": self.structural_map.confidence_score,
        }

    def to_dict(self, include_density: bool = True) -> Dict[str, Any]:
        return {
            "binaryMask": self.binary_mask,
            "structuralMap": self.structural_map.to_dict(include_density=include_density),
            "colorMap": [entry.to_dict() for entry in self.color_map],
            "featherAmount": self.feather_amount,
        }


def analyze_sketch(buffer: np.ndarray, options: Optional[AnalysisOptions] = None) -> SketchAnalysis:
    """Analyze an RGBA sketch buffer.

    The buffer is only read. Raises ``ContextUnavailableError`` or
    ``EncodingFailureError`` when the mask cannot be serialised.
    """
    sketch: PixelBuffer = as_pixel_buffer(buffer)
    opts = options or AnalysisOptions()
    height, width = sketch.shape[:2]

    structural_map = extract_structural_map(sketch, opts.structure_weight)
    color_map = extract_color_guidance(sketch, opts.color_weight)
    binary_mask = create_feathered_mask(sketch, opts.feather_amount)

    analysis = SketchAnalysis(
        binary_mask=binary_mask,
        structural_map=structural_map,
        color_map=color_map,
        feather_amount=opts.feather_amount,
    )
    logger.debug(
        "Analyzed %dx%d sketch: %d segments, %d color regions, confidence %.3f",
        width,
        height,
        len(structural_map.line_geometry),
        len(color_map),
        structural_map.confidence_score,
    )
    return analysis
