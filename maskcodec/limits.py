"""Transport size checks for encoded images.

The upstream image API silently drops requests whose images are larger than
7 MiB, so every encoded image is measured before it is attached.
"""
from __future__ import annotations

from dataclasses import dataclass

MAX_PAYLOAD_BYTES = 7 * 1024 * 1024


@dataclass(frozen=True)
class MaskSizeReport:
    valid: bool
    size_kb: int


def _base64_payload(data_url: str) -> str:
    parts = data_url.split(",")
    if len(parts) > 1 and parts[1]:
        return parts[1]
    return data_url


def estimated_decoded_size(data_url: str) -> float:
    """Approximate decoded byte count of a base64 data URL."""
    return len(_base64_payload(data_url)) * 3 / 4


def exceeds_limit(data_url: str) -> bool:
    return estimated_decoded_size(data_url) > MAX_PAYLOAD_BYTES


def validate_mask_size(data_url: str) -> MaskSizeReport:
    size_kb = estimated_decoded_size(data_url) / 1024
    size_mb = size_kb / 1024
    return MaskSizeReport(valid=size_mb < 7, size_kb=int(round(size_kb)))
