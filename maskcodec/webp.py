"""Lossless WebP serialisation for canvas and mask buffers.

Masks carry their whole signal in the alpha channel, so every encode here is
lossless with alpha preserved; no lossy quality setting is ever used.
"""
from __future__ import annotations

import base64
import binascii
import io
import logging
import math
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError, features

from .buffer import PixelBuffer, as_pixel_buffer

logger = logging.getLogger(__name__)

WEBP_MIME = "image/webp"
WEBP_COMPRESSION_RATIO = 0.55


class MaskCodecError(RuntimeError):
    """Base error for mask encoding issues."""


class ContextUnavailableError(MaskCodecError):
    """Raised when no image surface can be allocated for a buffer."""


class EncodingFailureError(MaskCodecError):
    """Raised when lossless serialisation produces no data."""


def _to_image(buffer: PixelBuffer) -> Image.Image:
    try:
        return Image.fromarray(np.ascontiguousarray(buffer))
    except (TypeError, ValueError, MemoryError) as exc:
        raise ContextUnavailableError("Could not allocate an image surface for the buffer") from exc


def encode_image(image: Image.Image) -> str:
    """Serialise a Pillow image to a lossless WebP data URL."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    stream = io.BytesIO()
    try:
        image.save(stream, format="WEBP", lossless=True, quality=100, method=4, exact=True)
    except (OSError, KeyError, ValueError) as exc:
        raise EncodingFailureError("Failed to encode image as lossless WebP") from exc
    payload = stream.getvalue()
    if not payload:
        raise EncodingFailureError("Lossless WebP encoder returned no data")
    logger.debug("Encoded %dx%d image to %d bytes of WebP", image.width, image.height, len(payload))
    return f"data:{WEBP_MIME};base64,{base64.b64encode(payload).decode('ascii')}"


def encode_lossless(buffer: PixelBuffer) -> str:
    """Encode an RGBA buffer as a ``data:image/webp;base64,...`` URL."""
    return encode_image(_to_image(as_pixel_buffer(buffer)))


def decode_data_url(data_url: str) -> PixelBuffer:
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:image/") or ";base64" not in header:
        raise ValueError("Expected a base64 image data URL")
    try:
        raw = base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise ValueError("Data URL payload is not valid base64") from exc
    try:
        with Image.open(io.BytesIO(raw)) as image:
            return np.array(image.convert("RGBA"), dtype=np.uint8)
    except UnidentifiedImageError as exc:
        raise ValueError("Data URL payload is not a readable image") from exc


def image_file_to_webp(path: str | Path) -> str:
    image_path = Path(path)
    if not image_path.exists():
        raise FileNotFoundError(f"Image not found: {image_path}")
    try:
        with Image.open(image_path) as image:
            image.load()
            return encode_image(image.convert("RGBA"))
    except UnidentifiedImageError as exc:
        raise ValueError(f"Unsupported image file: {image_path}") from exc


def supports_webp() -> bool:
    return bool(features.check("webp"))


def estimate_webp_size(width: int, height: int, has_alpha: bool) -> int:
    """Rough lossless WebP size in bytes for a canvas of the given size."""
    bits_per_pixel = 32 if has_alpha else 24
    uncompressed = (width * height * bits_per_pixel) / 8
    return int(math.ceil(uncompressed * WEBP_COMPRESSION_RATIO))
