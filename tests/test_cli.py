from __future__ import annotations

import io
from pathlib import Path

from ui import cli

REPO_CONFIG = str(Path(__file__).resolve().parents[1] / "config" / "defaults.json")


def _run(args: list[str]) -> tuple[int, str]:
    out = io.StringIO()
    code = cli.main([*args, "--config", REPO_CONFIG], out=out)
    return code, out.getvalue()


def test_lines_echoes_file(tmp_path) -> None:
    path = tmp_path / "input.txt"
    path.write_bytes(b"alpha\r\nbeta\n\ngamma")
    code, output = _run(["lines", str(path), "--buffer-size", "4", "--chunk-size", "3"])
    assert code == 0
    assert output == "alpha\r\nbeta\n\ngamma"


def test_lines_numbered(tmp_path) -> None:
    path = tmp_path / "input.txt"
    path.write_text("a\nb\n", encoding="utf-8")
    code, output = _run(["lines", str(path), "--number"])
    assert code == 0
    assert output == "     1\ta\n     2\tb\n"


def test_count_uses_profile(tmp_path) -> None:
    path = tmp_path / "input.txt"
    path.write_text("x\n" * 1000 + "tail", encoding="utf-8")
    code, output = _run(["count", str(path), "--profile", "low_memory"])
    assert code == 0
    assert output == "1001\n"


def test_decode_failure_reports_and_fails(tmp_path, capsys) -> None:
    path = tmp_path / "input.txt"
    path.write_bytes(b"ok\n\xff\n")
    code, output = _run(["lines", str(path)])
    assert code == 1
    assert output == "ok\n"
    assert "Decode failed" in capsys.readouterr().err


def test_replace_policy_substitutes(tmp_path) -> None:
    path = tmp_path / "input.txt"
    path.write_bytes(b"ok\n\xff\n")
    code, output = _run(["lines", str(path), "--errors", "replace"])
    assert code == 0
    assert output == "ok\n\ufffd\n"


def test_unknown_profile_fails(tmp_path, capsys) -> None:
    path = tmp_path / "input.txt"
    path.write_text("a\n", encoding="utf-8")
    code, _ = _run(["count", str(path), "--profile", "missing"])
    assert code == 1
    assert "CONFIG_ERROR" in capsys.readouterr().err


def test_missing_input_file_fails(tmp_path, capsys) -> None:
    code, _ = _run(["count", str(tmp_path / "absent.txt")])
    assert code == 1
    assert "Cannot open" in capsys.readouterr().err


def test_no_command_prints_help(capsys) -> None:
    assert cli.main([]) == 0
    assert "fdlines" in capsys.readouterr().out
