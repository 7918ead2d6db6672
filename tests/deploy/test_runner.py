"""Tests for the subprocess command runner."""

from __future__ import annotations

import sys

import pytest

from swarmhook.deploy.runner import CommandResult, SubprocessRunner
from swarmhook.errors import CommandError


class TestCommandResult:
    def test_zero_is_ok(self) -> None:
        assert CommandResult(returncode=0).ok is True

    def test_nonzero_is_not_ok(self) -> None:
        assert CommandResult(returncode=2, output="err").ok is False


class TestSubprocessRunner:
    async def test_success_captures_output(self) -> None:
        result = await SubprocessRunner().run([sys.executable, "-c", "print('hello')"])
        assert result.ok
        assert result.output.strip() == "hello"

    async def test_exit_status(self) -> None:
        result = await SubprocessRunner().run([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert result.returncode == 3
        assert result.ok is False

    async def test_stderr_merged(self) -> None:
        code = "import sys; sys.stderr.write('oops'); sys.exit(1)"
        result = await SubprocessRunner().run([sys.executable, "-c", code])
        assert "oops" in result.output

    async def test_arguments_not_shell_interpreted(self) -> None:
        result = await SubprocessRunner().run(
            [sys.executable, "-c", "import sys; print(sys.argv[1])", "$HOME; echo hi"]
        )
        assert result.output.strip() == "$HOME; echo hi"

    async def test_deadline_kills_command(self) -> None:
        runner = SubprocessRunner(deadline_seconds=0.2)
        result = await runner.run([sys.executable, "-c", "import time; time.sleep(10)"])
        assert result.ok is False
        assert "Timed out" in result.output

    async def test_missing_binary_raises(self) -> None:
        with pytest.raises(CommandError, match="Cannot run"):
            await SubprocessRunner().run(["/nonexistent/docker", "info"])
