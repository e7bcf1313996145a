"""Outgoing generation requests and their pre-flight checks.

A request is only built once every attached image has been encoded and
measured; anything that would make the upstream call fail or silently degrade
is rejected here with an error the UI can show as-is.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import numpy as np

from maskcodec.binary_mask import DEFAULT_FEATHER_AMOUNT, create_binary_mask
from maskcodec.buffer import as_pixel_buffer
from maskcodec.limits import exceeds_limit
from maskcodec.webp import encode_lossless
from sketchmask.analyzer import SketchAnalysis

logger = logging.getLogger(__name__)

MODES = ("generate", "edit")
ASPECT_RATIOS = ("1:1", "16:9", "9:16", "21:9", "4:3")


class GenerationRequestError(ValueError):
    """Base error for requests that must not be sent."""


class PromptRequiredError(GenerationRequestError):
    """Raised when the prompt is empty."""


class EmptySelectionError(GenerationRequestError):
    """Raised when an edit request has no selected pixels."""


class SizeLimitExceededError(GenerationRequestError):
    """Raised when an attached image is over the transport limit."""

    def __init__(self, label: str) -> None:
        super().__init__(f"{label} exceeds 7MB limit. Please reduce canvas size.")
        self.label = label


class InvalidRequestError(GenerationRequestError):
    """Raised for malformed request fields."""


@dataclass
class GenerationRequest:
    mode: str
    prompt: str
    aspect_ratio: str = "1:1"
    base_image: Optional[str] = None
    mask_image: Optional[str] = None
    sketch_analysis: Optional[SketchAnalysis] = None
    structural_weight: float = 1.0
    color_weight: float = 1.0
    feather_amount: float = DEFAULT_FEATHER_AMOUNT
    generate_got: bool = False

    def validate(self) -> None:
        if not self.prompt or not self.prompt.strip():
            raise PromptRequiredError("Please enter a prompt first.")
        if self.mode not in MODES:
            raise InvalidRequestError(f"Mode must be one of {', '.join(MODES)}.")
        if self.aspect_ratio not in ASPECT_RATIOS:
            raise InvalidRequestError(f"Aspect ratio must be one of {', '.join(ASPECT_RATIOS)}.")
        for name in ("structural_weight", "color_weight", "feather_amount"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidRequestError(f"{name} must be between 0 and 1.")
        if self.mode == "edit" and not self.generate_got:
            if not self.base_image:
                raise InvalidRequestError("Edit requests need a base image.")
            if not self.mask_image:
                raise EmptySelectionError("Please select an area to edit.")
        if self.mode == "generate" and (self.base_image or self.mask_image):
            raise InvalidRequestError("Generate requests cannot carry a base image or mask.")
        if self.base_image and exceeds_limit(self.base_image):
            raise SizeLimitExceededError("Base image")
        if self.mask_image and exceeds_limit(self.mask_image):
            raise SizeLimitExceededError("Mask")

    def to_payload(self, include_density: bool = True) -> Dict[str, Any]:
        self.validate()
        payload: Dict[str, Any] = {"mode": self.mode, "prompt": self.prompt, "aspectRatio": self.aspect_ratio}
        if self.base_image:
            payload["baseImage"] = self.base_image
        if self.mask_image:
            payload["maskImage"] = self.mask_image
        if self.sketch_analysis is not None:
            payload["sketchAnalysis"] = self.sketch_analysis.to_dict(include_density=include_density)
        if not self.generate_got:
            payload["structuralWeight"] = self.structural_weight
            payload["colorWeight"] = self.color_weight
            payload["featherAmount"] = self.feather_amount
        payload["generateGoT"] = self.generate_got
        return payload


def build_generate_request(
    prompt: str,
    aspect_ratio: str = "1:1",
    sketch_analysis: Optional[SketchAnalysis] = None,
    structural_weight: float = 1.0,
    color_weight: float = 1.0,
) -> GenerationRequest:
    request = GenerationRequest(
        mode="generate",
        prompt=prompt,
        aspect_ratio=aspect_ratio,
        sketch_analysis=sketch_analysis,
        structural_weight=structural_weight,
        color_weight=color_weight,
    )
    request.validate()
    return request


def build_got_preview_request(
    prompt: str,
    mode: str = "generate",
    aspect_ratio: str = "1:1",
    sketch_analysis: Optional[SketchAnalysis] = None,
) -> GenerationRequest:
    """Request a textual generation plan before any pixels are produced."""
    request = GenerationRequest(
        mode=mode,
        prompt=prompt,
        aspect_ratio=aspect_ratio,
        sketch_analysis=sketch_analysis,
        generate_got=True,
    )
    request.validate()
    return request


def build_edit_request(
    prompt: str,
    base: np.ndarray,
    selected_pixels: Iterable[int],
    aspect_ratio: str = "1:1",
    sketch_analysis: Optional[SketchAnalysis] = None,
    structural_weight: float = 1.0,
    color_weight: float = 1.0,
    feather_amount: float = DEFAULT_FEATHER_AMOUNT,
) -> GenerationRequest:
    """Encode the canvas and selection and build an edit request.

    Checks run in the order a user would fix them: prompt, base image size,
    selection, mask size.
    """
    if not prompt or not prompt.strip():
        raise PromptRequiredError("Please enter a prompt to edit the image.")
    canvas = as_pixel_buffer(base)
    height, width = canvas.shape[:2]

    base_image = encode_lossless(canvas)
    if exceeds_limit(base_image):
        raise SizeLimitExceededError("Base image")

    selection = {int(idx) for idx in selected_pixels if 0 <= int(idx) < width * height}
    if not selection:
        raise EmptySelectionError("Please select an area to edit using the selection tools.")
    mask_image = create_binary_mask(width, height, selection, feather_amount)
    if exceeds_limit(mask_image):
        raise SizeLimitExceededError("Mask")

    request = GenerationRequest(
        mode="edit",
        prompt=prompt,
        aspect_ratio=aspect_ratio,
        base_image=base_image,
        mask_image=mask_image,
        sketch_analysis=sketch_analysis,
        structural_weight=structural_weight,
        color_weight=color_weight,
        feather_amount=feather_amount,
    )
    request.validate()
    if sketch_analysis is not None:
        logger.info("Edit request carries sketch analysis %s", sketch_analysis.summary())
    logger.debug("Edit request %dx%d with %d selected pixels", width, height, len(selection))
    return request
