from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator
import os

from metazap.core.image_task import ImageFile
from metazap.formats.detect import ImageFormat, detect_format
from metazap.util.paths import is_backup_file, is_image, is_macos_artifact

HEAD_BYTES = 8192

def scan_directory(
    root: Path,
    recursive: bool = True,
    exclude: Iterable[Path] = (),
) -> Iterator[ImageFile]:
    """Lazily walk ``root`` and yield every regular file, classified.

    - Order is filesystem enumeration order (not sorted).
    - recursive=False lists only the top level.
    - Directories in ``exclude`` are not entered.
    - macOS artefacts are not yielded.
    - Backups written by this tool are yielded with ``is_backup`` set so the
      pipeline can report them as skipped.
    """
    root = root.expanduser().resolve()
    excluded = {p.expanduser().resolve() for p in exclude}

    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        if not recursive:
            dirnames.clear()
        else:
            dirnames[:] = [
                d for d in dirnames
                if (current / d).resolve() not in excluded and not is_macos_artifact(current / d)
            ]

        for name in filenames:
            p = current / name
            if not p.is_file():
                continue
            if is_macos_artifact(p):
                continue
            yield ImageFile(
                src_path=p,
                rel_path=p.relative_to(root),
                fmt=classify(p),
                is_backup=is_backup_file(p),
            )

def classify(path: Path) -> ImageFormat:
    if not is_image(path):
        return ImageFormat.UNSUPPORTED
    return detect_format(path, _read_head(path))

def _read_head(path: Path) -> bytes:
    # Unreadable files fall back to their extension; the read error is
    # reported when the pipeline loads the full file.
    try:
        with path.open("rb") as f:
            return f.read(HEAD_BYTES)
    except OSError:
        return b""
