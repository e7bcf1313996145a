"""Outgoing image generation requests."""

from .request import (
    ASPECT_RATIOS,
    MODES,
    EmptySelectionError,
    GenerationRequest,
    GenerationRequestError,
    InvalidRequestError,
    PromptRequiredError,
    SizeLimitExceededError,
    build_edit_request,
    build_generate_request,
    build_got_preview_request,
)

__all__ = [
    "ASPECT_RATIOS",
    "MODES",
    "EmptySelectionError",
    "GenerationRequest",
    "GenerationRequestError",
    "InvalidRequestError",
    "PromptRequiredError",
    "SizeLimitExceededError",
    "build_edit_request",
    "build_generate_request",
    "build_got_preview_request",
]
