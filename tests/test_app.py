from __future__ import annotations

import signal
from pathlib import Path

import pytest

from metazap.app import main
from metazap.core.settings import AppSettings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "cfg" / "settings.json"
    monkeypatch.setattr("metazap.core.settings._config_path", lambda: path)
    monkeypatch.delenv("METAZAP_OXIPNG_PATH", raising=False)
    return path


def test_success_exit_zero_even_with_skips(image_tree: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    assert main(["-i", str(image_tree), "-o", str(out), "-q"]) == 0
    assert (out / "sub" / "c.jpeg").exists()


def test_missing_input_exit_two(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["-i", str(tmp_path / "nope")]) == 2
    assert "does not exist" in capsys.readouterr().err


def test_failed_file_exit_one(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    (root / "bad.png").write_bytes(b"not a png at all")
    assert main(["-i", str(root), "-q"]) == 1


def test_dry_run_flag(image_tree: Path, tree_snapshot, capsys: pytest.CaptureFixture[str]) -> None:
    before = tree_snapshot(image_tree)
    assert main(["-i", str(image_tree), "--dry-run", "--backup"]) == 0
    assert tree_snapshot(image_tree) == before
    assert "Would process:" in capsys.readouterr().out


def test_no_recursive_flag(image_tree: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    assert main(["-i", str(image_tree), "-o", str(out), "--no-recursive", "-q"]) == 0
    assert (out / "a.png").exists()
    assert not (out / "sub").exists()


def test_backup_flag_in_place(image_tree: Path) -> None:
    original = (image_tree / "photo.jpg").read_bytes()
    assert main(["-i", str(image_tree), "--backup", "-q"]) == 0
    assert (image_tree / "photo.bak.jpg").read_bytes() == original


def test_save_settings_become_defaults(image_tree: Path, isolated_settings: Path) -> None:
    assert main(["-i", str(image_tree), "--dry-run", "--backup", "--optimize-level", "5",
                 "--save-settings", "-q"]) == 0
    assert isolated_settings.exists()

    saved = AppSettings.load()
    assert saved.backup_default is True
    assert saved.optimize_level == 5


def test_settings_default_backup(image_tree: Path) -> None:
    AppSettings(backup_default=True).save()
    assert main(["-i", str(image_tree), "-q"]) == 0
    assert (image_tree / "a.bak.png").exists()


def test_optimize_without_oxipng_still_succeeds(
    image_tree: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def fake_run(*_args, **_kwargs):
        raise FileNotFoundError("oxipng")

    monkeypatch.setattr("metazap.optimize.oxipng_runner.subprocess.run", fake_run)
    out = tmp_path / "out"
    assert main(["-i", str(image_tree), "-o", str(out), "--optimize", "-q"]) == 0
    assert (out / "a.png").exists()


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert "metazap" in capsys.readouterr().out


def test_io_failure_exit_one(image_tree: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    original = (image_tree / "photo.jpg").read_bytes()

    def failing_write_backup(src: Path, backup: Path | None = None) -> Path:
        raise OSError("read-only file system")

    monkeypatch.setattr("metazap.core.pipeline.write_backup", failing_write_backup)

    assert main(["-i", str(image_tree), "--backup", "-q"]) == 1
    assert (image_tree / "photo.jpg").read_bytes() == original


def test_second_interrupt_exits_cancelled(image_tree: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def interrupted(*_args, **_kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr("metazap.app.run_job", interrupted)
    before = signal.getsignal(signal.SIGINT)

    assert main(["-i", str(image_tree), "-q"]) == 130
    assert signal.getsignal(signal.SIGINT) == before
