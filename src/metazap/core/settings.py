from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
import json
from appdirs import user_config_dir

from metazap.optimize.oxipng_runner import DEFAULT_OPTIMIZE_LEVEL, DEFAULT_TIMEOUT_SECONDS

def _config_path() -> Path:
    cfg_dir = Path(user_config_dir(appname="Metazap", appauthor=False))
    return cfg_dir / "settings.json"

@dataclass
class AppSettings:
    """User-persistent defaults for the command line.

    Stored in: ~/.config/Metazap/settings.json (Linux),
    ~/Library/Application Support/Metazap/settings.json (macOS)
    """
    backup_default: bool = False
    keep_color_profile_default: bool = False
    oxipng_path: str = ""
    optimize_level: int = DEFAULT_OPTIMIZE_LEVEL
    optimize_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def load(cls) -> "AppSettings":
        p = _config_path()
        if not p.exists():
            return cls()
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
            known = {f.name for f in fields(cls)}
            return cls(**{k: v for k, v in data.items() if k in known})
        except (OSError, ValueError, TypeError, AttributeError):
            # Fail safe: a broken settings file must not block a run.
            return cls()

    def save(self) -> Path:
        p = _config_path()
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")
        return p
