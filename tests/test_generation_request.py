import json
import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from generation import (
    EmptySelectionError,
    GenerationRequest,
    InvalidRequestError,
    PromptRequiredError,
    SizeLimitExceededError,
    build_edit_request,
    build_generate_request,
    build_got_preview_request,
)
from generation.cli import main as generation_main
from generation.cli import selected_indices
from sketchmask import analyze_sketch
from sketchmask.cli import main as sketch_main


def _base(width=8, height=8):
    base = np.zeros((height, width, 4), dtype=np.uint8)
    base[...] = (90, 120, 200, 255)
    return base


def _sketch():
    sketch = np.zeros((16, 16, 4), dtype=np.uint8)
    sketch[8, 2:14] = (255, 0, 0, 255)
    return sketch


def test_edit_request_payload():
    request = build_edit_request("make the sky orange", _base(), range(0, 20), aspect_ratio="16:9")

    payload = request.to_payload()

    assert payload["mode"] == "edit"
    assert payload["aspectRatio"] == "16:9"
    assert payload["baseImage"].startswith("data:image/webp;base64,")
    assert payload["maskImage"].startswith("data:image/webp;base64,")
    assert payload["featherAmount"] == pytest.approx(0.03)
    assert payload["generateGoT"] is False
    assert "sketchAnalysis" not in payload


def test_edit_request_needs_selection():
    with pytest.raises(EmptySelectionError):
        build_edit_request("fix it", _base(), [])
    with pytest.raises(EmptySelectionError):
        build_edit_request("fix it", _base(), [500])


def test_edit_request_needs_prompt():
    with pytest.raises(PromptRequiredError):
        build_edit_request("   ", _base(), [1, 2, 3])


def test_edit_request_rejects_oversized_images(monkeypatch):
    monkeypatch.setattr("generation.request.exceeds_limit", lambda data_url: True)

    with pytest.raises(SizeLimitExceededError) as excinfo:
        build_edit_request("fix it", _base(), [1, 2, 3])
    assert excinfo.value.label == "Base image"
    assert "reduce canvas size" in str(excinfo.value)


def test_generate_request_validation():
    with pytest.raises(InvalidRequestError):
        build_generate_request("a lighthouse", aspect_ratio="3:2")
    with pytest.raises(InvalidRequestError):
        build_generate_request("a lighthouse", structural_weight=1.5)
    with pytest.raises(InvalidRequestError):
        GenerationRequest(mode="generate", prompt="x", base_image="data:image/webp;base64,AAAA").validate()
    with pytest.raises(InvalidRequestError):
        GenerationRequest(mode="upscale", prompt="x").validate()


def test_generate_request_carries_sketch_analysis():
    analysis = analyze_sketch(_sketch())

    payload = build_generate_request("a red line", "21:9", sketch_analysis=analysis).to_payload(include_density=False)

    assert payload["sketchAnalysis"]["binaryMask"] == analysis.binary_mask
    assert payload["sketchAnalysis"]["colorMap"][0]["color"] == "hsl(0, 100%, 50%)"
    assert "baseImage" not in payload
    assert payload["structuralWeight"] == 1.0


def test_got_preview_payload():
    payload = build_got_preview_request("a castle", mode="edit", aspect_ratio="4:3").to_payload()

    assert payload == {"mode": "edit", "prompt": "a castle", "aspectRatio": "4:3", "generateGoT": True}


def test_selected_indices_from_selection_image():
    selection = np.zeros((3, 3, 4), dtype=np.uint8)
    selection[1, 1] = (255, 255, 255, 255)
    selection[2, 0] = (255, 255, 255, 40)
    assert selected_indices(selection) == [4, 6]

    opaque = np.zeros((2, 2, 4), dtype=np.uint8)
    opaque[..., 3] = 255
    opaque[0, 1, :3] = 255
    assert selected_indices(opaque) == [1]


def test_generation_cli_writes_edit_request(tmp_path):
    base_path = tmp_path / "base.png"
    selection_path = tmp_path / "selection.png"
    output_path = tmp_path / "request.json"
    Image.fromarray(_base(12, 10)).save(base_path)
    selection = np.zeros((10, 12, 4), dtype=np.uint8)
    selection[2:6, 3:9] = 255
    Image.fromarray(selection).save(selection_path)

    code = generation_main(
        [
            "--prompt",
            "replace with flowers",
            "--mode",
            "edit",
            "--image",
            str(base_path),
            "--selection",
            str(selection_path),
            "--output",
            str(output_path),
        ]
    )

    assert code == 0
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload["mode"] == "edit"
    assert payload["maskImage"].startswith("data:image/webp;base64,")


def test_generation_cli_rejects_edit_without_selection(tmp_path):
    base_path = tmp_path / "base.png"
    Image.fromarray(_base()).save(base_path)
    selection_path = tmp_path / "selection.png"
    Image.fromarray(np.zeros((8, 8, 4), dtype=np.uint8)).save(selection_path)

    code = generation_main(
        [
            "--prompt",
            "replace",
            "--mode",
            "edit",
            "--image",
            str(base_path),
            "--selection",
            str(selection_path),
            "--output",
            str(tmp_path / "request.json"),
        ]
    )

    assert code == 1
    assert not (tmp_path / "request.json").exists()


def test_sketch_cli_writes_analysis_and_mask(tmp_path):
    sketch_path = tmp_path / "sketch.png"
    Image.fromarray(_sketch()).save(sketch_path)
    output_path = tmp_path / "analysis.json"
    mask_path = tmp_path / "mask.webp"

    code = sketch_main(
        [
            "--sketch",
            str(sketch_path),
            "--options",
            str(tmp_path / "missing.json"),
            "--feather",
            "0.1",
            "--output",
            str(output_path),
            "--mask-output",
            str(mask_path),
            "--no-density",
        ]
    )

    assert code == 0
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload["featherAmount"] == pytest.approx(0.1)
    assert "densityMap" not in payload["structuralMap"]
    with Image.open(mask_path) as mask:
        assert mask.size == (16, 16)


def test_sketch_cli_reports_missing_file(tmp_path):
    assert sketch_main(["--sketch", str(tmp_path / "nope.png"), "--options", str(tmp_path / "o.json")]) == 1
