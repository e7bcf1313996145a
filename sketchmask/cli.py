from __future__ import annotations

import argparse
import base64
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from maskcodec.buffer import load_pixel_buffer
from maskcodec.webp import MaskCodecError

from .analyzer import analyze_sketch
from .options import AnalysisOptions


def _parse_args(args: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyze a sketch layer into mask, structure and color signals")
    parser.add_argument("--sketch", required=True, help="Path to the sketch image (RGBA, transparent background)")
    parser.add_argument("--options", default="sketch_options.json", help="Path to analysis options JSON")
    parser.add_argument("--feather", type=float, help="Feather amount 0..1")
    parser.add_argument("--structure-weight", type=float, help="Structural weight 0..1")
    parser.add_argument("--color-weight", type=float, help="Color weight 0..1")
    parser.add_argument("--output", help="Output path for the analysis JSON")
    parser.add_argument("--mask-output", help="Also write the feathered mask as a .webp file")
    parser.add_argument("--no-density", action="store_true", help="Leave the per-pixel density map out of the JSON")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser.parse_args(args=args)


def _write_mask(data_url: str, path: Path) -> None:
    payload = data_url.split(",", 1)[1]
    path.write_bytes(base64.b64decode(payload))


def main(args: Optional[Sequence[str]] = None) -> int:
    parsed = _parse_args(args)
    logging.basicConfig(
        level=getattr(logging, parsed.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    logger = logging.getLogger("sketchmask.cli")

    sketch_path = Path(parsed.sketch)
    try:
        options = AnalysisOptions.load(Path(parsed.options)).merged(
            feather_amount=parsed.feather,
            structure_weight=parsed.structure_weight,
            color_weight=parsed.color_weight,
        )
        buffer = load_pixel_buffer(sketch_path)
        analysis = analyze_sketch(buffer, options)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Error: %s", exc)
        return 1
    except MaskCodecError as exc:
        logger.error("Failed to build sketch mask: %s", exc)
        return 1

    summary = analysis.summary()
    logger.info(
        "Sketch %s: %d segments, %d color regions, confidence %.2f",
        sketch_path.name,
        summary["structuralSegments"],
        summary["colorRegions"],
        summary["confidence"],
    )

    output_path = Path(parsed.output) if parsed.output else sketch_path.with_suffix(".analysis.json")
    payload = analysis.to_dict(include_density=not parsed.no_density)
    output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Wrote %s", output_path)

    if parsed.mask_output:
        _write_mask(analysis.binary_mask, Path(parsed.mask_output))
        logger.info("Wrote %s", parsed.mask_output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
