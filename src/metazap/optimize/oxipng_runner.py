from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import shutil
import subprocess
from typing import Protocol

from metazap.util.errors import RecompressError

DEFAULT_OPTIMIZE_LEVEL = 2
DEFAULT_TIMEOUT_SECONDS = 120.0

@dataclass
class RecompressResult:
    success: bool
    error: str = ""

class Recompressor(Protocol):
    def recompress(self, path: Path) -> RecompressResult:
        ...

class OxipngRecompressor:
    """Run oxipng on a written PNG, in place.

    Failures never raise: they come back as RecompressResult(success=False)
    and the caller keeps the un-recompressed file.
    """

    def __init__(
        self,
        level: int = DEFAULT_OPTIMIZE_LEVEL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        oxipng_path: str = "",
    ) -> None:
        if not 0 <= level <= 6:
            raise RecompressError(f"oxipng optimization level must be 0-6, got {level}")
        if timeout_seconds <= 0:
            raise RecompressError("oxipng timeout must be positive")
        self.level = level
        self.timeout_seconds = timeout_seconds
        self.oxipng_path = _resolve_oxipng_path(oxipng_path)

    def command(self, path: Path) -> list[str]:
        return [self.oxipng_path, "-q", "-o", str(self.level), str(path)]

    def recompress(self, path: Path) -> RecompressResult:
        try:
            proc = subprocess.run(
                self.command(path),
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError:
            return RecompressResult(success=False, error=_oxipng_missing_message())
        except subprocess.TimeoutExpired:
            return RecompressResult(
                success=False,
                error=f"oxipng timed out after {self.timeout_seconds:g}s",
            )
        except OSError as e:
            return RecompressResult(success=False, error=f"oxipng could not start: {e}")

        if proc.returncode != 0:
            msg = (proc.stderr or "").strip() or f"oxipng exited with code {proc.returncode}"
            return RecompressResult(success=False, error=msg)
        return RecompressResult(success=True)


def _resolve_oxipng_path(configured: str = "") -> str:
    """Resolve an oxipng executable path.

    Resolution order:
    1) METAZAP_OXIPNG_PATH env var (explicit override)
    2) Path from settings / --oxipng
    3) PATH lookup
    4) Common install locations (cargo, Homebrew, system)
    5) Fallback: "oxipng" (fails at runtime with a friendly warning)
    """
    env_path = os.environ.get("METAZAP_OXIPNG_PATH")
    if env_path and Path(env_path).exists():
        return env_path

    if configured and Path(configured).expanduser().exists():
        return str(Path(configured).expanduser())

    which = shutil.which("oxipng")
    if which:
        return which

    candidates = (
        Path.home() / ".cargo" / "bin" / "oxipng",
        Path("/opt/homebrew/bin/oxipng"),
        Path("/usr/local/bin/oxipng"),
        Path("/usr/bin/oxipng"),
    )
    for cand in candidates:
        if cand.exists():
            return str(cand)

    return "oxipng"


def _oxipng_missing_message() -> str:
    return (
        "oxipng not found. Install oxipng or set METAZAP_OXIPNG_PATH "
        "(or --oxipng) to its location."
    )


def is_oxipng_available(configured: str = "") -> bool:
    path = _resolve_oxipng_path(configured)
    if path == "oxipng":
        return shutil.which("oxipng") is not None
    return Path(path).exists()
