from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from takeoff_import.cli import main as cli_main

"""Exit code contract: 0 imported, 2 rejected, 1 fatal."""


def _write(temp_workdir: Path, name: str, text: str) -> Path:
    p = temp_workdir / "data" / name
    p.write_text(text, encoding="utf-8")
    return p


def test_exit_code_fatal_without_config(temp_workdir: Path, capsys):
    f = _write(temp_workdir, "t.csv", "DRAWING,TYPE,QTY,CMDTY CODE\n")
    code = cli_main([str(f), "--project-id", "p", "--user-id", "u", "--dry-run"])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_fatal_unreadable_file(write_config, temp_workdir: Path, capsys):
    code = cli_main([str(temp_workdir / "data" / "missing.csv"), "--project-id", "p", "--user-id", "u", "--dry-run"])
    assert code == 1
    assert "ERROR read:" in capsys.readouterr().out


def test_exit_code_success(write_config, temp_workdir: Path, valid_csv, capsys):
    f = _write(temp_workdir, "t.csv", valid_csv)
    assert cli_main([str(f), "--project-id", "p", "--user-id", "u", "--dry-run"]) == 0


def test_exit_code_rejected(write_config, temp_workdir: Path, duplicate_csv, capsys):
    f = _write(temp_workdir, "t.csv", duplicate_csv)
    assert cli_main([str(f), "--project-id", "p", "--user-id", "u", "--dry-run"]) == 2


def test_exit_code_fatal_db_connect(write_config, temp_workdir: Path, valid_csv, capsys):
    f = _write(temp_workdir, "t.csv", valid_csv)
    with patch("takeoff_import.cli.__main__.open_component_store", side_effect=RuntimeError("connection refused")):
        code = cli_main([str(f), "--project-id", "p", "--user-id", "u"])
    assert code == 1
    assert "ERROR database:" in capsys.readouterr().out
