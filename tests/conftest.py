from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo


def _pixels() -> Image.Image:
    return Image.linear_gradient("L").resize((32, 32)).convert("RGB")


def _exif_bytes() -> bytes:
    exif = Image.Exif()
    exif[0x010F] = "ACME Camera"  # Make
    exif[0x0132] = "2024:01:02 03:04:05"  # DateTime
    return exif.tobytes()


def make_png(with_metadata: bool = True) -> bytes:
    img = _pixels()
    buf = io.BytesIO()
    if not with_metadata:
        img.save(buf, "PNG")
        return buf.getvalue()
    info = PngInfo()
    info.add_text("Author", "Jane Doe")
    info.add_text("Comment", "compressed comment", zip=True)
    info.add_itxt("Description", "international text")
    img.save(buf, "PNG", pnginfo=info, dpi=(300, 300), exif=_exif_bytes())
    return buf.getvalue()


def make_jpeg(with_metadata: bool = True) -> bytes:
    img = _pixels()
    buf = io.BytesIO()
    if not with_metadata:
        img.save(buf, "JPEG", quality=90)
        return buf.getvalue()
    img.save(buf, "JPEG", quality=90, exif=_exif_bytes(), comment=b"secret comment")
    return buf.getvalue()


def decode_pixels(data: bytes) -> bytes:
    with Image.open(io.BytesIO(data)) as im:
        return im.convert("RGBA").tobytes()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_jpeg()


@pytest.fixture
def image_tree(tmp_path: Path) -> Path:
    """root/a.png, root/photo.jpg, root/notes.txt, root/sub/b.png, root/sub/c.jpeg"""
    root = tmp_path / "root"
    sub = root / "sub"
    sub.mkdir(parents=True)
    (root / "a.png").write_bytes(make_png())
    (root / "photo.jpg").write_bytes(make_jpeg())
    (root / "notes.txt").write_text("not an image", encoding="utf-8")
    (sub / "b.png").write_bytes(make_png())
    (sub / "c.jpeg").write_bytes(make_jpeg())
    return root


def snapshot(root: Path) -> dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def png_factory():
    return make_png


@pytest.fixture
def jpeg_factory():
    return make_jpeg


@pytest.fixture
def pixels_of():
    return decode_pixels


@pytest.fixture
def tree_snapshot():
    return snapshot
