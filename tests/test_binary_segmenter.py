"""Tests for the decode → classify → encode pipeline."""

from io import BytesIO
from pathlib import Path

import numpy as np
import pytest

from models.errors import DecodeError, EncodeError, ResourceError
from models.image_format import ImageFormat
from pipeline.binary_segmenter import segment, segment_stream
from repositories import image_repository
from services.image_service import ImageService
from tests.imaging import decode_rgba8, encode, halves_rgb, noise_rgb, solid_rgb

WHITE8 = (255, 255, 255, 255)
BLACK8 = (0, 0, 0, 255)


def _write(path: Path, data: bytes) -> Path:
    path.write_bytes(data)
    return path


def _colours(rgba: np.ndarray) -> set[tuple[int, ...]]:
    return {tuple(int(v) for v in c) for c in rgba.reshape(-1, 4)}


def test_output_has_input_dimensions_and_only_two_colours(tmp_path: Path) -> None:
    src = _write(tmp_path / "in.png", encode(noise_rgb(37, 23)))
    out = tmp_path / "out.png"

    segment(src, out)

    rgba = decode_rgba8(out.read_bytes())
    assert rgba.shape[:2] == (23, 37)
    assert _colours(rgba) <= {WHITE8, BLACK8}


def test_all_white_input_gives_all_white_output(tmp_path: Path) -> None:
    src = _write(tmp_path / "white.png", encode(solid_rgb(10, 6, 255)))
    out = tmp_path / "white_out.png"

    segment(src, out)

    assert _colours(decode_rgba8(out.read_bytes())) == {WHITE8}


def test_all_black_input_gives_all_black_output(tmp_path: Path) -> None:
    src = _write(tmp_path / "black.jpg", encode(solid_rgb(10, 6, 0), "JPEG"))
    out = tmp_path / "black_out.png"

    segment(src, out)

    assert _colours(decode_rgba8(out.read_bytes())) == {BLACK8}


def test_threshold_boundary_on_16_bit_input(tmp_path: Path) -> None:
    gray = np.array([[32768, 32769]], dtype=np.uint16)
    src = _write(tmp_path / "edge.png", encode(gray))
    out = tmp_path / "edge_out.png"

    segment(src, out)

    rgba = decode_rgba8(out.read_bytes())
    assert tuple(rgba[0, 0]) == BLACK8
    assert tuple(rgba[0, 1]) == WHITE8


def test_threshold_boundary_on_8_bit_input(tmp_path: Path) -> None:
    # 127 * 257 = 32639 (below), 128 * 257 = 32896 (above)
    rgb = np.array([[[127, 127, 127], [128, 128, 128]]], dtype=np.uint8)
    src = _write(tmp_path / "edge8.png", encode(rgb))
    out = tmp_path / "edge8_out.png"

    segment(src, out)

    rgba = decode_rgba8(out.read_bytes())
    assert tuple(rgba[0, 0]) == BLACK8
    assert tuple(rgba[0, 1]) == WHITE8


def test_explicit_threshold_overrides_default(tmp_path: Path) -> None:
    src = _write(tmp_path / "grey.png", encode(solid_rgb(2, 2, 100)))
    out = tmp_path / "grey_out.png"

    segment(src, out, threshold=0)

    assert _colours(decode_rgba8(out.read_bytes())) == {WHITE8}


def test_rerun_is_deterministic(tmp_path: Path) -> None:
    src = _write(tmp_path / "in.jpg", encode(noise_rgb(40, 30), "JPEG"))
    first, second = tmp_path / "a.png", tmp_path / "b.png"

    segment(src, first)
    segment(src, second)

    assert first.read_bytes() == second.read_bytes()
    assert np.array_equal(decode_rgba8(first.read_bytes()), decode_rgba8(second.read_bytes()))


@pytest.mark.parametrize("out_name", ["out.png", "out.jpg", "out.JPEG", "out.bmp"])
def test_output_codec_follows_output_suffix(tmp_path: Path, out_name: str) -> None:
    src = _write(tmp_path / "in.png", encode(halves_rgb(32, 16)))
    out = tmp_path / out_name

    segment(src, out)

    expected = ImageFormat.from_name(out_name)
    magic = b"\x89PNG" if expected is ImageFormat.PNG else b"\xff\xd8"
    assert out.read_bytes().startswith(magic)


def test_unknown_input_suffix_is_read_as_jpeg(tmp_path: Path) -> None:
    src = _write(tmp_path / "scan.dat", encode(solid_rgb(4, 4, 255), "JPEG"))
    out = tmp_path / "scan.png"

    segment(src, out)

    assert _colours(decode_rgba8(out.read_bytes())) == {WHITE8}


def test_one_by_one_image(tmp_path: Path) -> None:
    src = _write(tmp_path / "dot.png", encode(solid_rgb(1, 1, 255)))
    out = tmp_path / "dot_out.png"

    segment(src, out)

    rgba = decode_rgba8(out.read_bytes())
    assert rgba.shape == (1, 1, 4)
    assert tuple(rgba[0, 0]) == WHITE8


def test_large_image(tmp_path: Path) -> None:
    width, height = 4000, 3000
    ramp = np.linspace(0, 255, width, dtype=np.uint8)
    rgb = np.repeat(np.repeat(ramp[np.newaxis, :, np.newaxis], height, axis=0), 3, axis=2)
    src = _write(tmp_path / "large.jpg", encode(rgb, "JPEG"))
    out = tmp_path / "large_out.png"

    segment(src, out)

    rgba = decode_rgba8(out.read_bytes())
    assert rgba.shape[:2] == (height, width)
    assert tuple(rgba[0, 0]) == BLACK8
    assert tuple(rgba[-1, -1]) == WHITE8


def test_corrupt_input_raises_and_writes_nothing(tmp_path: Path) -> None:
    data = encode(noise_rgb(64, 64))
    src = _write(tmp_path / "broken.png", data[: len(data) // 3])
    out = tmp_path / "broken_out.png"

    with pytest.raises(DecodeError):
        segment(src, out)
    assert not out.exists()


def test_mismatched_suffix_raises_decode_error(tmp_path: Path) -> None:
    src = _write(tmp_path / "actually_png.jpg", encode(solid_rgb(2, 2, 0)))

    with pytest.raises(DecodeError):
        segment(src, tmp_path / "out.png")


def test_missing_input_raises_resource_error(tmp_path: Path) -> None:
    with pytest.raises(ResourceError):
        segment(tmp_path / "nope.png", tmp_path / "out.png")


def test_unwritable_output_raises_resource_error(tmp_path: Path) -> None:
    src = _write(tmp_path / "in.png", encode(solid_rgb(2, 2, 0)))
    out = tmp_path / "missing_dir" / "out.png"

    with pytest.raises(ResourceError):
        segment(src, out)
    assert not out.exists()


def test_output_path_that_is_a_directory_raises_resource_error(tmp_path: Path) -> None:
    src = _write(tmp_path / "in.png", encode(solid_rgb(2, 2, 0)))
    out = tmp_path / "out.png"
    out.mkdir()

    with pytest.raises(ResourceError):
        segment(src, out)
    assert out.is_dir()


def test_encode_failure_leaves_no_output(tmp_path: Path, monkeypatch) -> None:
    def _reject(image):
        raise OSError("encoder exploded")

    monkeypatch.setitem(image_repository._ENCODERS, ImageFormat.PNG, _reject)
    src = _write(tmp_path / "in.png", encode(solid_rgb(2, 2, 0)))
    out = tmp_path / "out.png"

    with pytest.raises(EncodeError):
        segment(src, out)
    assert not out.exists()


def test_segment_stream_uses_names_only_for_codec() -> None:
    source = BytesIO(encode(halves_rgb(8, 2), "JPEG"))
    sink = BytesIO()

    segment_stream(source, "upload.jpeg", sink, "result.png")

    rgba = decode_rgba8(sink.getvalue())
    assert rgba.shape[:2] == (2, 8)
    assert _colours(rgba) <= {WHITE8, BLACK8}
    assert not source.closed and not sink.closed


def test_segment_stream_failed_decode_writes_nothing() -> None:
    sink = BytesIO()

    with pytest.raises(DecodeError):
        segment_stream(BytesIO(b"garbage"), "x.png", sink, "y.png", image_service=ImageService())
    assert sink.getvalue() == b""
