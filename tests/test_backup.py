from __future__ import annotations

from pathlib import Path

from metazap.ops.backup import backup_path_for, write_backup


def test_backup_path_keeps_extension(tmp_path: Path) -> None:
    assert backup_path_for(tmp_path / "photo.jpg") == tmp_path / "photo.bak.jpg"
    assert backup_path_for(tmp_path / "IMG.PNG") == tmp_path / "IMG.bak.PNG"


def test_backup_written_beside_original(tmp_path: Path) -> None:
    photo = tmp_path / "sub" / "a.jpg"
    photo.parent.mkdir()
    photo.write_bytes(b"original bytes")

    bak = write_backup(photo)

    assert bak == tmp_path / "sub" / "a.bak.jpg"
    assert bak.read_bytes() == b"original bytes"


def test_existing_backup_is_overwritten(tmp_path: Path) -> None:
    photo = tmp_path / "a.png"
    photo.write_bytes(b"new original")
    stale = tmp_path / "a.bak.png"
    stale.write_bytes(b"stale backup from a previous run")

    write_backup(photo)

    assert stale.read_bytes() == b"new original"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["a.bak.png", "a.png"]
