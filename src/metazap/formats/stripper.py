from __future__ import annotations

from dataclasses import dataclass
import io

from PIL import Image

from metazap.formats.detect import ImageFormat
from metazap.formats.jpeg_segments import strip_jpeg
from metazap.formats.png_chunks import strip_png
from metazap.util.errors import CorruptImageError, UnsupportedFormatError


@dataclass(frozen=True)
class StripResult:
    data: bytes
    removed: tuple[str, ...]

    @property
    def changed(self) -> bool:
        return bool(self.removed)


def strip_metadata(
    data: bytes,
    fmt: ImageFormat,
    keep_color_profile: bool = False,
    verify: bool = True,
) -> StripResult:
    """Remove metadata from PNG/JPEG bytes without touching pixel data.

    Raises:
        UnsupportedFormatError: fmt is not PNG or JPEG.
        CorruptImageError: the bytes do not parse or do not decode as fmt.
    """
    if fmt is ImageFormat.PNG:
        cleaned, removed = strip_png(data, keep_color_profile=keep_color_profile)
    elif fmt is ImageFormat.JPEG:
        cleaned, removed = strip_jpeg(data, keep_color_profile=keep_color_profile)
    else:
        raise UnsupportedFormatError(f"unsupported format: {fmt.value}")

    if verify:
        verify_decodable(cleaned, fmt)
    return StripResult(data=cleaned, removed=tuple(removed))


def verify_decodable(data: bytes, fmt: ImageFormat) -> None:
    """Fully decode ``data`` with Pillow; raise CorruptImageError on failure."""
    try:
        with Image.open(io.BytesIO(data)) as im:
            im.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise CorruptImageError(f"{fmt.name} does not decode: {e}") from e
