from __future__ import annotations

from pathlib import Path
import os
import shutil

from metazap.util.paths import BACKUP_MARKER

def backup_path_for(path: Path) -> Path:
    """``photo.jpg`` -> ``photo.bak.jpg`` in the same folder."""
    return path.with_name(f"{path.stem}{BACKUP_MARKER}{path.suffix}")

def write_backup(src: Path, backup: Path | None = None) -> Path:
    """Copy ``src`` to its backup path and flush it to disk.

    An existing backup is overwritten. Must complete before ``src`` is replaced.
    """
    bak = backup or backup_path_for(src)
    shutil.copy2(src, bak)
    with bak.open("r+b") as f:
        os.fsync(f.fileno())
    return bak
