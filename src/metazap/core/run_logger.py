from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
import sys

@dataclass
class RunLogger:
    """Console output plus an optional timestamped log file.

    Errors and warnings go to stderr and are printed even when quiet.
    """
    path: Path | None = None
    quiet: bool = False

    def log(self, message: str) -> None:
        if not self.quiet:
            print(message)
        self._append(message)

    def warning(self, message: str) -> None:
        print(f"Warning: {message}", file=sys.stderr)
        self._append(f"WARNING {message}")

    def error(self, message: str) -> None:
        print(message, file=sys.stderr)
        self._append(f"ERROR {message}")

    def _append(self, message: str) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        with self.path.open("a", encoding="utf-8") as f:
            f.write(f"[{ts}] {message}\n")
