from __future__ import annotations

from datetime import datetime

import numpy as np
import pytest

from errors import INVALID_IMAGE, AppError
from image_source import ImageSource
from fakes import oversized_png_header, png_bytes


class FakePipeline:
    def __init__(self) -> None:
        self.cleared = 0

    def clear_outcome(self) -> None:
        self.cleared += 1


def test_load_from_file_keeps_bytes_and_mime_type() -> None:
    stamp = datetime(2024, 5, 1, 12, 0, 0)
    source = ImageSource(clock=lambda: stamp)
    data = png_bytes(8, 6)

    image = source.load_from_file(data)

    assert image.mime_type == "image/png"
    assert image.data == data
    assert (image.width, image.height) == (8, 6)
    assert image.source == "file"
    assert image.captured_at == stamp
    assert source.current is image


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"definitely not an image",
        png_bytes()[:40],
        b"\x00" + png_bytes()[1:],
        oversized_png_header(),
    ],
    ids=["empty", "text", "truncated-png", "corrupted-signature", "oversized-canvas"],
)
def test_load_from_file_rejects_undecodable_input(data: bytes) -> None:
    pipeline = FakePipeline()
    source = ImageSource(pipeline=pipeline)
    previous = source.load_from_file(png_bytes())

    with pytest.raises(AppError) as info:
        source.load_from_file(data)

    assert info.value.code == INVALID_IMAGE
    assert source.current is previous
    assert pipeline.cleared == 1


def test_load_from_frame_encodes_jpeg_at_frame_resolution() -> None:
    source = ImageSource()
    frame = np.zeros((40, 30, 3), dtype=np.uint8)

    image = source.load_from_frame(frame)

    assert image.mime_type == "image/jpeg"
    assert image.data[:2] == b"\xff\xd8"
    assert (image.width, image.height) == (30, 40)
    assert image.source == "camera"


def test_load_from_frame_rejects_empty_buffer() -> None:
    source = ImageSource()
    with pytest.raises(AppError) as info:
        source.load_from_frame(np.zeros((0,), dtype=np.uint8))
    assert info.value.code == INVALID_IMAGE
    assert source.current is None


def test_every_acquisition_clears_analysis_outcome() -> None:
    pipeline = FakePipeline()
    source = ImageSource(pipeline=pipeline)

    first = source.load_from_file(png_bytes())
    second = source.load_from_file(png_bytes(4, 4))
    third = source.load_from_frame(np.zeros((4, 4, 3), dtype=np.uint8))

    assert pipeline.cleared == 3
    assert source.current is third
    assert first is not second


def test_load_from_path_reads_file(tmp_path) -> None:  # noqa: ANN001
    path = tmp_path / "lesion.png"
    path.write_bytes(png_bytes())
    image = ImageSource().load_from_path(path)
    assert image.mime_type == "image/png"


def test_load_from_missing_path_is_invalid_image(tmp_path) -> None:  # noqa: ANN001
    with pytest.raises(AppError) as info:
        ImageSource().load_from_path(tmp_path / "missing.png")
    assert info.value.code == INVALID_IMAGE
