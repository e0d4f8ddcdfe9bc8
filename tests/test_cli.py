"""Tests for the termexec command line."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from termexec import __version__
from termexec.cli import create_parser, main

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX sh syntax")


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty project with no user config or env overrides."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("TERMEXEC_LOG", raising=False)
    monkeypatch.delenv("TERMEXEC_COMMAND_TIMEOUT", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestParser:
    def test_command_collects_remaining_arguments(self):
        args = create_parser().parse_args(["--timeout", "500", "ls", "-la"])

        assert args.timeout == 500
        assert args.command == ["ls", "-la"]

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--version"])

        assert __version__ in capsys.readouterr().out


class TestMain:
    def test_no_command_is_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2
        assert "usage" in capsys.readouterr().err

    def test_success(self, capsys):
        assert main(["echo", "hello"]) == 0

        out = capsys.readouterr().out
        assert "Exit code: 0" in out
        assert "hello" in out

    def test_failure_exit_code(self, capsys):
        assert main(["exit", "4"]) == 1

        assert "Exit code: 4" in capsys.readouterr().out

    def test_timeout(self, capsys):
        assert main(["--timeout", "300", "sleep", "10"]) == 1

        assert "0.3s timeout" in capsys.readouterr().out

    def test_custom_cwd(self, isolated_environment: Path, capsys):
        (isolated_environment / "sub").mkdir()
        (isolated_environment / "sub" / "marker.txt").write_text("found")

        assert main(["--cwd", "sub", "cat", "marker.txt"]) == 0

        out = capsys.readouterr().out
        assert "found" in out
        assert "/sub'" in out

    def test_missing_cwd(self, capsys):
        assert main(["--cwd", "nowhere", "ls"]) == 1

        assert "does not exist" in capsys.readouterr().out

    def test_project_config_line_limit(self, isolated_environment: Path, capsys):
        (isolated_environment / ".termexec").mkdir()
        (isolated_environment / ".termexec" / "config.yaml").write_text(
            "terminal:\n  output_line_limit: 5\n"
        )

        assert main(["seq", "1", "50"]) == 0

        assert "lines omitted" in capsys.readouterr().out

    def test_separator_without_command_is_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--"])

        assert exc_info.value.code == 2
        assert "a command is required" in capsys.readouterr().err

    def test_separator_before_command(self, capsys):
        assert main(["--timeout", "5000", "--", "echo", "after-separator"]) == 0

        assert "after-separator" in capsys.readouterr().out
