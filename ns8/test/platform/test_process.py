"""Tests for ns8.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from ns8.core.result import Err, Ok
from ns8.platform.process import ProcessError, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("gh", "api"), returncode=1, stdout="", stderr="HTTP 404")
        assert str(error) == "gh api failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("gh", "release", "list", "--repo", "NethServer/ns8-mail"),
            returncode=1,
            stdout="",
            stderr="error",
        )
        assert str(error) == "gh release list ... failed (exit 1)"

    def test_frozen(self) -> None:
        error = ProcessError(("gh",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"],
            cwd=tmp_path,
        )

        assert isinstance(result, Err)
        assert result.error.returncode == 3
        assert "bad" in result.error.stderr

    def test_input_text_is_passed_to_stdin(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"],
            cwd=tmp_path,
            input_text="notes",
        )

        assert isinstance(result, Ok)
        assert "NOTES" in result.value

    def test_missing_command(self, tmp_path: Path) -> None:
        result = run(["ns8-command-that-does-not-exist"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert "timed out" in result.error.stderr
