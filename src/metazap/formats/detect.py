"""Classify files as PNG, JPEG or unsupported."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import filetype

from metazap.util.paths import is_image, is_jpg, is_png


class ImageFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"
    UNSUPPORTED = "unsupported"


_MIME_FORMATS = {
    "image/png": ImageFormat.PNG,
    "image/apng": ImageFormat.PNG,
    "image/jpeg": ImageFormat.JPEG,
}


def format_from_extension(path: Path) -> ImageFormat:
    if is_png(path):
        return ImageFormat.PNG
    if is_jpg(path):
        return ImageFormat.JPEG
    return ImageFormat.UNSUPPORTED


def format_from_bytes(data: bytes) -> ImageFormat:
    """Detect the format from the file signature using filetype."""
    kind = filetype.guess(data)
    if kind is None:
        return ImageFormat.UNSUPPORTED
    return _MIME_FORMATS.get(kind.mime, ImageFormat.UNSUPPORTED)


def detect_format(path: Path, data: bytes | None = None) -> ImageFormat:
    """Return the format of ``path``.

    - The extension gates support: anything but .png/.jpg/.jpeg is UNSUPPORTED.
    - When bytes are available the signature wins over the extension
      (a JPEG saved as ``.png`` is stripped as a JPEG).
    - Bytes that match neither format keep the extension's format so the
      stripper reports them as corrupt.
    """
    if not is_image(path):
        return ImageFormat.UNSUPPORTED
    claimed = format_from_extension(path)
    if not data:
        return claimed
    sniffed = format_from_bytes(data)
    if sniffed is ImageFormat.UNSUPPORTED:
        return claimed
    return sniffed
