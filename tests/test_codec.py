"""Tests for image decoding, probing and PNG encoding."""

from __future__ import annotations

import io
from unittest.mock import patch

import pytest
from PIL import Image

from anonymizex.errors import EncodeError, ImageDecodeError
from anonymizex.imaging.codec import decode_image, encode_png, probe_image


def _encode(image: Image.Image, fmt: str = "PNG", **params: object) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def _rotated_jpeg() -> bytes:
    exif = Image.Exif()
    exif[0x0112] = 6  # Orientation: rotate 90 CW
    return _encode(Image.new("RGB", (40, 20), (10, 20, 30)), "JPEG", exif=exif.tobytes())


class TestProbeImage:
    def test_png_dimensions(self) -> None:
        info = probe_image(_encode(Image.new("RGB", (33, 17))))
        assert (info.width, info.height) == (33, 17)
        assert info.format == "PNG"
        assert info.mode == "RGB"

    def test_exif_orientation_swaps_dimensions(self) -> None:
        info = probe_image(_rotated_jpeg())
        assert (info.width, info.height) == (20, 40)
        assert info.format == "JPEG"

    def test_garbage_raises(self) -> None:
        with pytest.raises(ImageDecodeError, match="Failed to load image for processing"):
            probe_image(b"\x00\x01garbage")


class TestDecodeImage:
    def test_rgb_source_becomes_rgba_canvas(self) -> None:
        decoded = decode_image(_encode(Image.new("RGB", (8, 6), (1, 2, 3))))
        assert decoded.image.mode == "RGBA"
        assert decoded.image.size == (8, 6)
        assert decoded.has_alpha is False
        assert decoded.image.getpixel((0, 0)) == (1, 2, 3, 255)

    def test_alpha_detected(self) -> None:
        decoded = decode_image(_encode(Image.new("RGBA", (4, 4), (1, 2, 3, 100))))
        assert decoded.has_alpha is True
        assert decoded.image.getpixel((1, 1)) == (1, 2, 3, 100)

    def test_palette_transparency_detected(self) -> None:
        image = Image.new("P", (4, 4), 0)
        decoded = decode_image(_encode(image, transparency=0))
        assert decoded.has_alpha is True

    def test_exif_orientation_applied(self) -> None:
        assert decode_image(_rotated_jpeg()).image.size == (20, 40)

    def test_pixel_limit(self) -> None:
        with pytest.raises(ImageDecodeError, match="limit is 10"):
            decode_image(_encode(Image.new("RGB", (4, 4))), max_pixels=10)

    def test_truncated_data(self) -> None:
        noise = Image.effect_noise((64, 64), 64).convert("RGB")
        data = _encode(noise)
        with pytest.raises(ImageDecodeError):
            decode_image(data[: len(data) // 2])


class TestEncodePng:
    def test_keeps_alpha(self) -> None:
        data = encode_png(Image.new("RGBA", (3, 3), (9, 8, 7, 50)))
        with Image.open(io.BytesIO(data)) as image:
            assert image.format == "PNG"
            assert image.mode == "RGBA"

    def test_drops_alpha_on_request(self) -> None:
        data = encode_png(Image.new("RGBA", (3, 3), (9, 8, 7, 255)), keep_alpha=False)
        with Image.open(io.BytesIO(data)) as image:
            assert image.mode == "RGB"
            assert image.getpixel((0, 0)) == (9, 8, 7)

    def test_writer_failure_raises_encode_error(self) -> None:
        with (
            patch.object(Image.Image, "save", side_effect=OSError("disk full")),
            pytest.raises(EncodeError, match="disk full"),
        ):
            encode_png(Image.new("RGBA", (2, 2)))
