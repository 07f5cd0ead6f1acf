from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from pathlib import Path
import csv

@dataclass
class ManifestRow:
    source_path: str
    output_path: str
    format: str  # png|jpeg|unsupported
    status: str  # SUCCESS|PLANNED|SKIPPED|FAILED
    reason: str
    warning: str
    removed: str  # ';'-joined chunk/segment names
    backup_path: str  # planned backup location
    backed_up: str  # YES|NO, whether the backup was actually written
    recompressed: str  # YES|NO
    bytes_before: str
    bytes_after: str

class ManifestWriter:
    def __init__(self, path: Path) -> None:
        self.path = path
        self._rows: list[ManifestRow] = []

    def add(self, row: ManifestRow) -> None:
        self._rows.append(row)

    def write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=[fld.name for fld in fields(ManifestRow)])
            w.writeheader()
            for r in self._rows:
                w.writerow(asdict(r))
