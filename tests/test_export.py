"""Tests for export naming and saving."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from anonymizex.export import DEFAULT_EXPORT_FILENAME, content_disposition, export_image, sanitize_filename

if TYPE_CHECKING:
    from pathlib import Path


class TestSanitizeFilename:
    @pytest.mark.parametrize(
        ("given", "expected"),
        [
            (None, DEFAULT_EXPORT_FILENAME),
            ("", DEFAULT_EXPORT_FILENAME),
            ("...", DEFAULT_EXPORT_FILENAME),
            ("photo.jpg", "photo.png"),
            ("photo", "photo.png"),
            ("my holiday photo.jpeg", "my_holiday_photo.png"),
            ("../../etc/passwd", "passwd.png"),
            ("C:\\Users\\me\\face.webp", "face.png"),
        ],
    )
    def test_cases(self, given: str | None, expected: str) -> None:
        assert sanitize_filename(given) == expected

    def test_custom_default(self) -> None:
        assert sanitize_filename(None, default="out.png") == "out.png"


class TestContentDisposition:
    def test_attachment_header(self) -> None:
        header = content_disposition("blurred-image.png")
        assert header.startswith("attachment;")
        assert 'filename="blurred-image.png"' in header


class TestExportImage:
    def test_writes_bytes(self, tmp_path: Path) -> None:
        target = export_image(b"\x89PNG fake", "result.jpg", tmp_path / "out")
        assert target == tmp_path / "out" / "result.png"
        assert target.read_bytes() == b"\x89PNG fake"

    def test_default_name(self, tmp_path: Path) -> None:
        assert export_image(b"x", None, tmp_path).name == DEFAULT_EXPORT_FILENAME
