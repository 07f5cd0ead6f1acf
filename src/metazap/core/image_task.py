from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from metazap.formats.detect import ImageFormat

@dataclass(frozen=True)
class ImageFile:
    """One file found while walking the input root."""
    src_path: Path
    rel_path: Path
    fmt: ImageFormat
    is_backup: bool = False  # a backup left by an earlier in-place run

    @property
    def supported(self) -> bool:
        return self.fmt is not ImageFormat.UNSUPPORTED

@dataclass(frozen=True)
class WorkPlanEntry:
    src_path: Path
    dest_path: Path
    backup_path: Path | None
    recompress: bool

@dataclass
class ImageTask:
    """Represents one file through the processing pipeline.

    - image: what the scanner found
    - plan: where it goes (None for skipped files)
    """
    image: ImageFile
    plan: WorkPlanEntry | None = None

    # Results
    status: str = "PENDING"  # SUCCESS|PLANNED|SKIPPED|FAILED|PENDING
    reason: str = ""
    warning: str = ""
    removed: tuple[str, ...] = ()
    bytes_before: int = 0
    bytes_after: int = 0
    backed_up: bool = False
    recompressed: bool = False
