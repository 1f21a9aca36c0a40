from __future__ import annotations

from pathlib import Path

from ubinary.scripts.inspect_ubinary import main

from _payload import f64s, header, tag, text


def _write(root: Path) -> Path:
    p = root / "run.bin"
    p.write_bytes(
        tag("settings") + header(["gain"], [10]) + f64s([2.0])
        + tag("notes") + header(["comment"], [48]) + text("calibrated")
    )
    return p


def test_list_mode(tmp_path: Path, capsys) -> None:
    p = _write(tmp_path)
    assert main([str(p), "--list"]) == 0
    out = capsys.readouterr().out
    assert "settings" in out and "notes" in out


def test_decode_summary(tmp_path: Path, capsys) -> None:
    p = _write(tmp_path)
    assert main([str(p), "--tags", "notes", "--by-tag"]) == 0
    out = capsys.readouterr().out
    assert "tags: notes" in out
    assert "comment: text('calibrated')" in out
    assert "gain" not in out


def test_folder_mode_reports_failures(tmp_path: Path, capsys) -> None:
    _write(tmp_path)
    (tmp_path / "broken.bin").write_bytes(header(["a"], [10]) + b"\x00")
    assert main([str(tmp_path), "--pattern", r"\.bin$"]) == 1
    out = capsys.readouterr().out
    assert "[info] 2 files" in out
    assert "BufferOverrun" in out
