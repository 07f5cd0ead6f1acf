from __future__ import annotations

from pathlib import Path

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg"}
BACKUP_MARKER = ".bak"

def ensure_dir(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p

def is_png(p: Path) -> bool:
    return p.suffix.lower() == ".png"

def is_jpg(p: Path) -> bool:
    return p.suffix.lower() in {".jpg", ".jpeg"}

def is_image(p: Path) -> bool:
    return p.suffix.lower() in IMAGE_EXTENSIONS

def is_backup_file(p: Path) -> bool:
    """True for backups written by this tool.

    ``photo.bak.jpg`` only counts as a backup while ``photo.jpg`` sits beside it;
    otherwise it is an ordinary image that happens to have ``.bak`` in its name.
    """
    if not is_image(p) or not p.stem.endswith(BACKUP_MARKER):
        return False
    original = p.with_name(p.stem[: -len(BACKUP_MARKER)] + p.suffix)
    return original.is_file()

def is_macos_artifact(p: Path) -> bool:
    name = p.name
    if name.startswith("._") or name == ".DS_Store":
        return True
    parts = p.parts
    return "__MACOSX" in parts

def is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False
