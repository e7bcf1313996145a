"""Lossless mask encoding and size validation for generation requests."""

from .binary_mask import apply_feathering, create_binary_mask
from .buffer import PixelBuffer, as_pixel_buffer, load_pixel_buffer
from .distance import bounded_edge_distance
from .limits import MAX_PAYLOAD_BYTES, MaskSizeReport, exceeds_limit, validate_mask_size
from .webp import (
    ContextUnavailableError,
    EncodingFailureError,
    MaskCodecError,
    decode_data_url,
    encode_lossless,
    estimate_webp_size,
    image_file_to_webp,
    supports_webp,
)

__all__ = [
    "apply_feathering",
    "create_binary_mask",
    "PixelBuffer",
    "as_pixel_buffer",
    "load_pixel_buffer",
    "bounded_edge_distance",
    "MAX_PAYLOAD_BYTES",
    "MaskSizeReport",
    "exceeds_limit",
    "validate_mask_size",
    "ContextUnavailableError",
    "EncodingFailureError",
    "MaskCodecError",
    "decode_data_url",
    "encode_lossless",
    "estimate_webp_size",
    "image_file_to_webp",
    "supports_webp",
]
