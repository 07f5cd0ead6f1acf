from __future__ import annotations

from pathlib import Path
from typing import Callable

from metazap.core.image_task import ImageFile, ImageTask
from metazap.core.job import Job, JobOptions, JobState
from metazap.core.manifest import ManifestRow, ManifestWriter
from metazap.core.planner import excluded_dirs, plan_destination, resolve_output_root
from metazap.core.run_logger import RunLogger
from metazap.core.run_summary import CountSummary, RunSummary, write_run_summary
from metazap.core.scanner import scan_directory
from metazap.formats.stripper import strip_metadata
from metazap.ops.backup import write_backup
from metazap.ops.writer import write_atomic
from metazap.optimize.oxipng_runner import OxipngRecompressor, Recompressor
from metazap.util.errors import CorruptImageError, InputNotFoundError, UserCancelledError
from metazap.util.paths import ensure_dir

ProgressCb = Callable[[ImageTask], None]  # called after each file
CancelCb = Callable[[], bool]  # returns True if cancelled

def run_job(
    job: Job,
    progress_cb: ProgressCb | None = None,
    cancel_cb: CancelCb | None = None,
    recompressor: Recompressor | None = None,
) -> JobState:
    """Run a single job end-to-end and return its counters.

    Only InputNotFoundError and UserCancelledError escape; every per-file
    problem is recorded on its task. Manifest and summary (when requested)
    are written even if the run is cancelled.
    """
    opts = job.options
    state = job.state
    logger = RunLogger(opts.log_file, quiet=opts.quiet)

    input_root = opts.input_root.expanduser()
    if not input_root.is_dir():
        state.stage = "FAILED"
        state.message = f"Input directory '{input_root}' does not exist or is not a directory"
        raise InputNotFoundError(state.message)
    input_root = input_root.resolve()
    output_root = resolve_output_root(input_root, opts.output_root)

    if opts.optimize and recompressor is None:
        recompressor = OxipngRecompressor(
            level=opts.optimize_level,
            timeout_seconds=opts.optimize_timeout_seconds,
            oxipng_path=opts.oxipng_path,
        )

    if opts.log_file:
        logger.log(f"Run {job.id} started.")
    _log_run_settings(logger, opts, input_root, output_root)

    cancelled = False
    written: set[Path] = set()
    try:
        if output_root is not None and not opts.dry_run:
            ensure_dir(output_root)

        state.stage = "PROCESS"
        images = scan_directory(
            input_root,
            recursive=opts.recursive,
            exclude=excluded_dirs(input_root, output_root),
        )
        for image in images:
            if cancel_cb and cancel_cb():
                raise UserCancelledError()
            task = process_image(image, opts, output_root, recompressor, logger, written)
            job.tasks.append(task)
            state.record(task)
            if progress_cb:
                progress_cb(task)

        state.stage = "DONE"
    except UserCancelledError:
        cancelled = True
        state.stage = "CANCELLED"
        state.message = "Cancelled by user."
        logger.error(state.message)
        raise
    finally:
        _log_summary(logger, state, opts.dry_run)
        if opts.manifest_path:
            _write_manifest(opts.manifest_path, job.tasks)
        if opts.summary_path:
            write_run_summary(
                opts.summary_path,
                _build_run_summary(job, input_root, output_root, cancelled),
            )

    return state

def process_image(
    image: ImageFile,
    opts: JobOptions,
    output_root: Path | None,
    recompressor: Recompressor | None,
    logger: RunLogger,
    written: set[Path] | None = None,
) -> ImageTask:
    """Take one file from Discovered to Done, Skipped or Failed.

    ``written`` collects destinations already handled in this run; a symlink
    and its target inside the same tree are zapped once.
    """
    task = ImageTask(image=image)
    if not image.supported:
        task.status = "SKIPPED"
        task.reason = "unsupported format"
        logger.log(f"Skipped (unsupported): {image.src_path}")
        return task
    if image.is_backup:
        task.status = "SKIPPED"
        task.reason = "backup file"
        logger.log(f"Skipped (backup): {image.src_path}")
        return task

    plan = plan_destination(image, output_root, backup=opts.backup, optimize=opts.optimize)
    task.plan = plan
    if written is not None:
        if plan.dest_path in written:
            task.status = "SKIPPED"
            task.reason = f"same file as {plan.dest_path}"
            logger.log(f"Skipped (duplicate): {image.src_path}")
            return task
        written.add(plan.dest_path)

    try:
        data = image.src_path.read_bytes()
        task.bytes_before = len(data)
        result = strip_metadata(data, image.fmt, keep_color_profile=opts.keep_color_profile)
        task.removed = result.removed
        task.bytes_after = len(result.data)

        if opts.dry_run:
            task.status = "PLANNED"
            logger.log(_describe_plan(task))
            return task

        if plan.backup_path is not None:
            write_backup(plan.src_path, plan.backup_path)
            task.backed_up = True
        write_atomic(plan.dest_path, result.data, mode_from=plan.src_path)
    except CorruptImageError as e:
        return _fail(task, f"corrupt image: {e}", logger)
    except OSError as e:
        return _fail(task, f"I/O error: {e}", logger)

    task.status = "SUCCESS"
    if plan.recompress and recompressor is not None:
        _recompress(task, recompressor, logger)

    logger.log(f"Zapped: {plan.src_path} -> {plan.dest_path}{_removed_suffix(task)}")
    return task

def _recompress(task: ImageTask, recompressor: Recompressor, logger: RunLogger) -> None:
    dest = task.plan.dest_path
    res = recompressor.recompress(dest)
    if not res.success:
        task.warning = f"recompression failed: {res.error}"
        logger.warning(f"{dest}: {task.warning}")
        return
    task.recompressed = True
    try:
        task.bytes_after = dest.stat().st_size
    except OSError:
        pass

def _fail(task: ImageTask, reason: str, logger: RunLogger) -> ImageTask:
    task.status = "FAILED"
    task.reason = reason
    logger.error(f"Error zapping {task.image.src_path}: {reason}")
    return task

def _describe_plan(task: ImageTask) -> str:
    plan = task.plan
    extras = [
        f"backup -> {plan.backup_path}" if plan.backup_path else "no backup",
        "recompress" if plan.recompress else "no recompress",
    ]
    return f"Would process: {plan.src_path} -> {plan.dest_path} ({', '.join(extras)}){_removed_suffix(task)}"

def _removed_suffix(task: ImageTask) -> str:
    if not task.removed:
        return ""
    return f" [removed: {', '.join(task.removed)}]"

def _log_run_settings(
    logger: RunLogger,
    opts: JobOptions,
    input_root: Path,
    output_root: Path | None,
) -> None:
    logger.log(f"Input: {input_root}")
    logger.log(f"Output: {output_root if output_root else 'in-place'}")
    if opts.log_file is None:
        return
    logger.log(f"Recursive: {'Yes' if opts.recursive else 'No'}")
    logger.log(f"Backup: {'Yes' if opts.backup else 'No'}")
    optimize = f"Yes (oxipng -o {opts.optimize_level})" if opts.optimize else "No"
    logger.log(f"Optimize: {optimize}")
    logger.log(f"Keep colour profile: {'Yes' if opts.keep_color_profile else 'No'}")
    logger.log(f"Dry run: {'Yes' if opts.dry_run else 'No'}")

def _log_summary(logger: RunLogger, state: JobState, dry_run: bool) -> None:
    done = state.planned if dry_run else state.processed
    verb = "planned" if dry_run else "processed"
    logger.log(
        f"\nSummary: {done} {verb}, {state.skipped} skipped, "
        f"{state.failed} failed, {state.warnings} warnings"
    )
    if done and state.bytes_before:
        saved = state.bytes_before - state.bytes_after
        logger.log(f"Bytes: {state.bytes_before} -> {state.bytes_after} ({saved} saved)")

def _build_run_summary(
    job: Job,
    input_root: Path,
    output_root: Path | None,
    cancelled: bool,
) -> RunSummary:
    opts = job.options
    state = job.state
    settings = {
        "recursive": opts.recursive,
        "backup": opts.backup,
        "optimize": opts.optimize,
        "optimize_level": opts.optimize_level,
        "keep_color_profile": opts.keep_color_profile,
    }
    return RunSummary(
        run_id=job.id,
        input_root=str(input_root),
        output_root=str(output_root) if output_root else None,
        dry_run=opts.dry_run,
        settings=settings,
        counts=CountSummary(
            discovered=state.discovered,
            processed=state.processed,
            planned=state.planned,
            skipped=state.skipped,
            failed=state.failed,
            warnings=state.warnings,
            bytes_before=state.bytes_before,
            bytes_after=state.bytes_after,
        ),
        cancelled=cancelled,
        error=state.message if cancelled else "",
    )

def _write_manifest(path: Path, tasks: list[ImageTask]) -> None:
    """Write one row per discovered file, including skipped and failed ones."""
    manifest = ManifestWriter(path)
    for t in tasks:
        plan = t.plan
        manifest.add(ManifestRow(
            source_path=str(t.image.src_path),
            output_path=str(plan.dest_path) if plan else "",
            format=t.image.fmt.value,
            status=t.status,
            reason=t.reason,
            warning=t.warning,
            removed=";".join(t.removed),
            backup_path=str(plan.backup_path) if plan and plan.backup_path else "",
            backed_up="YES" if t.backed_up else "NO",
            recompressed="YES" if t.recompressed else "NO",
            bytes_before=str(t.bytes_before),
            bytes_after=str(t.bytes_after),
        ))
    manifest.write()
