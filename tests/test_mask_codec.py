import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from maskcodec import (
    MAX_PAYLOAD_BYTES,
    ContextUnavailableError,
    EncodingFailureError,
    as_pixel_buffer,
    create_binary_mask,
    decode_data_url,
    encode_lossless,
    estimate_webp_size,
    exceeds_limit,
    image_file_to_webp,
    load_pixel_buffer,
    validate_mask_size,
)


def _data_url(payload_length):
    return "data:image/webp;base64," + "A" * payload_length


def test_binary_mask_without_feathering():
    mask = decode_data_url(create_binary_mask(10, 10, {0, 1, 2}, 0))

    opaque = np.argwhere(mask[..., 3] == 255)
    assert [tuple(p) for p in opaque] == [(0, 0), (0, 1), (0, 2)]
    assert (mask[0, 0:3, :3] == 255).all()
    assert np.count_nonzero(mask[..., 3]) == 3


def test_binary_mask_ignores_out_of_range_indices():
    mask = decode_data_url(create_binary_mask(4, 4, [5, -1, 16, 99], 0))
    assert np.flatnonzero(mask[..., 3]).tolist() == [5]


def test_binary_mask_feathers_selection_boundary():
    selected = [y * 10 + x for y in range(3, 7) for x in range(3, 7)]

    mask = decode_data_url(create_binary_mask(10, 10, selected, 0.2))

    alpha = mask[..., 3]
    assert alpha[4:6, 4:6].tolist() == [[255, 255], [255, 255]]
    ring = alpha[3:7, 3:7].copy()
    ring[1:3, 1:3] = 0
    assert sorted(set(ring.ravel().tolist())) == [0, 127]
    assert np.count_nonzero(ring) == 12
    assert np.count_nonzero(alpha) == 16


def test_empty_selection_gives_transparent_mask():
    mask = decode_data_url(create_binary_mask(6, 5, set()))
    assert mask.shape == (5, 6, 4)
    assert not mask[..., 3].any()


def test_encode_lossless_round_trip():
    rng = np.random.default_rng(5)
    buffer = rng.integers(0, 256, size=(16, 12, 4), dtype=np.uint8)

    data_url = encode_lossless(buffer)

    assert data_url.startswith("data:image/webp;base64,")
    decoded = decode_data_url(data_url)
    assert np.array_equal(decoded[..., 3], buffer[..., 3])
    visible = buffer[..., 3] > 0
    assert np.array_equal(decoded[visible], buffer[visible])


def test_encode_reports_missing_surface(monkeypatch):
    def fail(*args, **kwargs):
        raise ValueError("cannot allocate")

    monkeypatch.setattr("maskcodec.webp.Image.fromarray", fail)

    with pytest.raises(ContextUnavailableError):
        encode_lossless(np.zeros((4, 4, 4), dtype=np.uint8))


def test_encode_reports_encoder_failure(monkeypatch):
    def fail(self, *args, **kwargs):
        raise OSError("encoder missing")

    monkeypatch.setattr(Image.Image, "save", fail)

    with pytest.raises(EncodingFailureError):
        encode_lossless(np.zeros((4, 4, 4), dtype=np.uint8))


def test_exceeds_limit_threshold():
    over = _data_url(MAX_PAYLOAD_BYTES * 4 // 3 + 4)
    under = _data_url(MAX_PAYLOAD_BYTES * 4 // 3 - 4)

    assert exceeds_limit(over) is True
    assert exceeds_limit(over) is True
    assert exceeds_limit(under) is False


def test_exceeds_limit_accepts_bare_payload():
    assert exceeds_limit("A" * (MAX_PAYLOAD_BYTES * 4 // 3 + 4)) is True
    assert exceeds_limit("data:image/webp;base64,") is False


def test_real_mask_is_within_limit():
    data_url = create_binary_mask(64, 64, range(0, 64 * 64, 3))
    assert exceeds_limit(data_url) is False
    assert exceeds_limit(data_url) == exceeds_limit(data_url)


def test_validate_mask_size():
    report = validate_mask_size(_data_url(4096))
    assert report.valid is True
    assert report.size_kb == 3

    assert validate_mask_size(_data_url(MAX_PAYLOAD_BYTES * 4 // 3 + 4)).valid is False


def test_estimate_webp_size():
    assert estimate_webp_size(100, 100, True) == 22000
    assert estimate_webp_size(100, 100, False) == 16500


def test_decode_rejects_non_image_urls():
    with pytest.raises(ValueError):
        decode_data_url("not a data url")
    with pytest.raises(ValueError):
        decode_data_url("data:image/webp;base64,AAAA")


def test_as_pixel_buffer_validation():
    with pytest.raises(ValueError):
        as_pixel_buffer(np.zeros((4, 4, 4), dtype=np.float32))
    buffer = np.zeros((2, 3, 4), dtype=np.uint8)
    assert as_pixel_buffer(buffer) is buffer


def test_image_files_load_as_rgba(tmp_path):
    path = tmp_path / "swatch.png"
    rgba = np.zeros((6, 8, 4), dtype=np.uint8)
    rgba[2:4, 2:6] = (10, 20, 30, 255)
    Image.fromarray(rgba).save(path)

    buffer = load_pixel_buffer(path)
    assert np.array_equal(buffer, rgba)

    decoded = decode_data_url(image_file_to_webp(path))
    assert np.array_equal(decoded[..., 3], rgba[..., 3])

    with pytest.raises(FileNotFoundError):
        load_pixel_buffer(tmp_path / "missing.png")
