from __future__ import annotations

from pathlib import Path

from metazap.core.image_task import ImageFile, WorkPlanEntry
from metazap.formats.detect import ImageFormat
from metazap.ops.backup import backup_path_for
from metazap.util.paths import is_within

def resolve_output_root(input_root: Path, output_root: Path | None) -> Path | None:
    """Return the absolute output root, or None for in-place mode.

    An output root equal to the input root means in-place.
    """
    if output_root is None:
        return None
    out = output_root.expanduser().resolve()
    if out == input_root.expanduser().resolve():
        return None
    return out

def excluded_dirs(input_root: Path, output_root: Path | None) -> list[Path]:
    """Directories the scanner must not enter (an output tree nested in the input)."""
    if output_root is None:
        return []
    if is_within(output_root, input_root):
        return [output_root]
    return []

def plan_destination(
    image: ImageFile,
    output_root: Path | None,
    backup: bool,
    optimize: bool,
) -> WorkPlanEntry:
    """Decide where ``image`` is written.

    - output_root set: mirror the relative path under it, never back up.
    - in-place: destination is the source; back up when requested. A
      symlinked source is written through to its target so the link survives.
    """
    if output_root is None:
        dest = image.src_path.resolve()
        backup_path = backup_path_for(dest) if backup else None
    else:
        dest = output_root / image.rel_path
        backup_path = None

    return WorkPlanEntry(
        src_path=image.src_path,
        dest_path=dest,
        backup_path=backup_path,
        recompress=optimize and image.fmt is ImageFormat.PNG,
    )
