from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from metazap.core.image_task import ImageTask
from metazap.optimize.oxipng_runner import DEFAULT_OPTIMIZE_LEVEL, DEFAULT_TIMEOUT_SECONDS

@dataclass
class JobOptions:
    input_root: Path
    output_root: Path | None = None
    recursive: bool = True
    dry_run: bool = False
    optimize: bool = False
    backup: bool = False
    keep_color_profile: bool = False

    # recompression
    optimize_level: int = DEFAULT_OPTIMIZE_LEVEL
    optimize_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    oxipng_path: str = ""

    # artifacts
    log_file: Path | None = None
    manifest_path: Path | None = None
    summary_path: Path | None = None
    quiet: bool = False

@dataclass
class JobState:
    """Per-run accumulator; the only state shared between files."""
    stage: str = "PENDING"
    discovered: int = 0
    processed: int = 0
    planned: int = 0
    skipped: int = 0
    failed: int = 0
    warnings: int = 0
    bytes_before: int = 0
    bytes_after: int = 0
    message: str = ""

    def record(self, task: ImageTask) -> None:
        self.discovered += 1
        if task.status == "SUCCESS":
            self.processed += 1
        elif task.status == "PLANNED":
            self.planned += 1
        elif task.status == "SKIPPED":
            self.skipped += 1
        elif task.status == "FAILED":
            self.failed += 1
        if task.warning:
            self.warnings += 1
        if task.status in ("SUCCESS", "PLANNED"):
            self.bytes_before += task.bytes_before
            self.bytes_after += task.bytes_after

@dataclass
class Job:
    id: str
    options: JobOptions
    state: JobState = field(default_factory=JobState)
    tasks: list[ImageTask] = field(default_factory=list)
