"""Application entrypoint.

Run in development:
    python -m metazap.app --input photos --dry-run

Installed, this is the ``metazap`` console script.
"""

from __future__ import annotations

import argparse
import signal
import sys
import uuid
from pathlib import Path
from typing import Sequence

from metazap.core.job import Job, JobOptions
from metazap.core.pipeline import run_job
from metazap.core.settings import AppSettings
from metazap.optimize.oxipng_runner import is_oxipng_available
from metazap.util.errors import InputNotFoundError, MetazapError, UserCancelledError

VERSION = "0.1.0"

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_INPUT_NOT_FOUND = 2
EXIT_CANCELLED = 130


def build_parser(settings: AppSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metazap",
        description="Zap metadata from PNG/JPG images in a directory",
    )
    parser.add_argument(
        "-i", "--input",
        type=Path,
        default=Path("."),
        help="Input directory (default: current dir)",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output directory mirroring the input tree (default: overwrite in-place)",
    )
    parser.add_argument(
        "-r", "--recursive",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Recurse into subdirectories (default: on)",
    )
    parser.add_argument(
        "-d", "--dry-run",
        action="store_true",
        help="Show what would be done without writing anything",
    )
    parser.add_argument(
        "--optimize",
        action="store_true",
        help="Run oxipng on every written PNG",
    )
    parser.add_argument(
        "--backup",
        action=argparse.BooleanOptionalAction,
        default=settings.backup_default,
        help="Write <name>.bak.<ext> next to each original before an in-place overwrite",
    )
    parser.add_argument(
        "--keep-color-profile",
        action=argparse.BooleanOptionalAction,
        default=settings.keep_color_profile_default,
        help="Keep ICC profile and gamma/chromaticity information",
    )
    parser.add_argument(
        "--optimize-level",
        type=int,
        choices=range(0, 7),
        default=settings.optimize_level,
        metavar="0-6",
        help="oxipng optimization level",
    )
    parser.add_argument(
        "--optimize-timeout",
        type=float,
        default=settings.optimize_timeout_seconds,
        metavar="SECONDS",
        help="Give up on oxipng for a file after this many seconds",
    )
    parser.add_argument(
        "--oxipng",
        default=settings.oxipng_path,
        metavar="PATH",
        help="Path to the oxipng executable",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Append a timestamped run log here")
    parser.add_argument("--manifest", type=Path, default=None, help="Write a per-file CSV manifest here")
    parser.add_argument("--summary", type=Path, default=None, help="Write a JSON run summary here")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print warnings and errors")
    parser.add_argument(
        "--save-settings",
        action="store_true",
        help="Remember --backup, --keep-color-profile and the oxipng options as defaults",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def options_from_args(args: argparse.Namespace) -> JobOptions:
    return JobOptions(
        input_root=args.input,
        output_root=args.output,
        recursive=args.recursive,
        dry_run=args.dry_run,
        optimize=args.optimize,
        backup=args.backup,
        keep_color_profile=args.keep_color_profile,
        optimize_level=args.optimize_level,
        optimize_timeout_seconds=args.optimize_timeout,
        oxipng_path=args.oxipng,
        log_file=args.log_file,
        manifest_path=args.manifest,
        summary_path=args.summary,
        quiet=args.quiet,
    )


def _save_settings(settings: AppSettings, opts: JobOptions) -> None:
    settings.backup_default = opts.backup
    settings.keep_color_profile_default = opts.keep_color_profile
    settings.oxipng_path = opts.oxipng_path
    settings.optimize_level = opts.optimize_level
    settings.optimize_timeout_seconds = opts.optimize_timeout_seconds
    path = settings.save()
    if not opts.quiet:
        print(f"Saved defaults to {path}")


def main(argv: Sequence[str] | None = None) -> int:
    settings = AppSettings.load()
    args = build_parser(settings).parse_args(argv)
    opts = options_from_args(args)

    if args.save_settings:
        _save_settings(settings, opts)

    if opts.optimize and not opts.dry_run and not is_oxipng_available(opts.oxipng_path):
        print(
            "Warning: oxipng not found; PNGs will be stripped but not recompressed.",
            file=sys.stderr,
        )

    job = Job(id=uuid.uuid4().hex[:12], options=opts)

    # First Ctrl-C stops after the current file; a second one aborts.
    cancelled = {"flag": False}

    def _on_sigint(_signum, _frame) -> None:
        if cancelled["flag"]:
            raise KeyboardInterrupt
        cancelled["flag"] = True

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        state = run_job(job, cancel_cb=lambda: cancelled["flag"])
    except InputNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_NOT_FOUND
    except (UserCancelledError, KeyboardInterrupt):
        return EXIT_CANCELLED
    except (MetazapError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURES
    finally:
        signal.signal(signal.SIGINT, previous)

    return EXIT_FAILURES if state.failed else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
