from __future__ import annotations

from pathlib import Path

from metazap.formats.detect import ImageFormat, detect_format, format_from_bytes


def test_detect_by_extension_without_bytes(tmp_path: Path) -> None:
    assert detect_format(tmp_path / "a.png") is ImageFormat.PNG
    assert detect_format(tmp_path / "b.JPG") is ImageFormat.JPEG
    assert detect_format(tmp_path / "c.Jpeg") is ImageFormat.JPEG
    assert detect_format(tmp_path / "notes.txt") is ImageFormat.UNSUPPORTED
    assert detect_format(tmp_path / "anim.gif") is ImageFormat.UNSUPPORTED


def test_signature_wins_over_extension(tmp_path: Path, jpeg_bytes: bytes) -> None:
    assert detect_format(tmp_path / "mislabelled.png", jpeg_bytes) is ImageFormat.JPEG


def test_unsupported_extension_ignores_content(tmp_path: Path, png_bytes: bytes) -> None:
    assert detect_format(tmp_path / "image.txt", png_bytes) is ImageFormat.UNSUPPORTED


def test_garbage_keeps_claimed_format(tmp_path: Path) -> None:
    assert detect_format(tmp_path / "broken.png", b"definitely not a png") is ImageFormat.PNG


def test_format_from_bytes(png_bytes: bytes, jpeg_bytes: bytes) -> None:
    assert format_from_bytes(png_bytes) is ImageFormat.PNG
    assert format_from_bytes(jpeg_bytes) is ImageFormat.JPEG
    assert format_from_bytes(b"plain text") is ImageFormat.UNSUPPORTED
