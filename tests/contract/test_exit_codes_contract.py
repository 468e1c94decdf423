from __future__ import annotations

from pathlib import Path

from actorqr.cli import __main__ as cli

"""Exit code contract: 0 all ok/skipped, 2 at least one row error, 1 fatal."""


def test_exit_code_values():
    assert cli.EXIT_SUCCESS_ALL == 0
    assert cli.EXIT_FATAL == 1
    assert cli.EXIT_PARTIAL_FAILURE == 2


def test_exit_code_fatal_startup(temp_workdir: Path, capsys):
    # no config file and no environment -> exit 1
    code = cli.main([str(temp_workdir / "data" / "any.xlsx")])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_fatal_unreadable_workbook(write_config, temp_workdir: Path, capsys):
    p = temp_workdir / "data" / "broken.xlsx"
    p.write_bytes(b"not a zip")
    code = cli.main([str(p), "--inspect"])
    assert code == 1
    assert "ERROR workbook:" in capsys.readouterr().out
