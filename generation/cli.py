from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np

from maskcodec.binary_mask import DEFAULT_FEATHER_AMOUNT
from maskcodec.buffer import load_pixel_buffer
from maskcodec.webp import MaskCodecError
from sketchmask.analyzer import analyze_sketch

from .request import (
    ASPECT_RATIOS,
    MODES,
    GenerationRequestError,
    build_edit_request,
    build_generate_request,
    build_got_preview_request,
)


def _parse_args(args: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a generation request JSON for the image proxy")
    parser.add_argument("--prompt", required=True, help="Text prompt")
    parser.add_argument("--mode", choices=MODES, default="generate", help="generate or edit")
    parser.add_argument("--aspect-ratio", choices=ASPECT_RATIOS, default="1:1", help="Output aspect ratio")
    parser.add_argument("--image", help="Base image path (edit mode)")
    parser.add_argument("--selection", help="Selection image path; non-transparent pixels are edited")
    parser.add_argument("--sketch", help="Optional sketch layer to analyze and attach")
    parser.add_argument("--feather", type=float, default=DEFAULT_FEATHER_AMOUNT, help="Mask feather amount 0..1")
    parser.add_argument("--structural-weight", type=float, default=1.0, help="Structural weight 0..1")
    parser.add_argument("--color-weight", type=float, default=1.0, help="Color weight 0..1")
    parser.add_argument("--got", action="store_true", help="Request a generation plan preview only")
    parser.add_argument("--output", default="generation_request.json", help="Output path for the request JSON")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser.parse_args(args=args)


def selected_indices(selection: np.ndarray) -> List[int]:
    """Row-major indices of selected pixels in an RGBA selection image."""
    alpha = selection[..., 3]
    if np.all(alpha == 255):
        # Opaque selection images mark the region with any non-black value.
        picked = np.any(selection[..., :3] > 0, axis=2)
    else:
        picked = alpha > 0
    return np.flatnonzero(picked).tolist()


def main(args: Optional[Sequence[str]] = None) -> int:
    parsed = _parse_args(args)
    logging.basicConfig(
        level=getattr(logging, parsed.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    logger = logging.getLogger("generation.cli")

    try:
        analysis = analyze_sketch(load_pixel_buffer(Path(parsed.sketch))) if parsed.sketch else None
        if parsed.got:
            request = build_got_preview_request(parsed.prompt, parsed.mode, parsed.aspect_ratio, analysis)
        elif parsed.mode == "edit":
            if not parsed.image or not parsed.selection:
                raise ValueError("Edit mode needs --image and --selection.")
            base = load_pixel_buffer(Path(parsed.image))
            selection = load_pixel_buffer(Path(parsed.selection))
            if selection.shape[:2] != base.shape[:2]:
                raise ValueError("Selection image must match the base image size.")
            request = build_edit_request(
                parsed.prompt,
                base,
                selected_indices(selection),
                aspect_ratio=parsed.aspect_ratio,
                sketch_analysis=analysis,
                structural_weight=parsed.structural_weight,
                color_weight=parsed.color_weight,
                feather_amount=parsed.feather,
            )
        else:
            request = build_generate_request(
                parsed.prompt,
                parsed.aspect_ratio,
                sketch_analysis=analysis,
                structural_weight=parsed.structural_weight,
                color_weight=parsed.color_weight,
            )
        payload = request.to_payload()
    except GenerationRequestError as exc:
        logger.error("Request rejected: %s", exc)
        return 1
    except (FileNotFoundError, ValueError, MaskCodecError) as exc:
        logger.error("Error: %s", exc)
        return 1

    output_path = Path(parsed.output)
    output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Wrote %s request to %s", payload["mode"], output_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
