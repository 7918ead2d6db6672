"""External command execution for docker CLI calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from swarmhook.errors import CommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Exit status and combined stdout/stderr of a finished command."""

    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    """Runs a command and reports how it exited."""

    async def run(self, args: Sequence[str]) -> CommandResult: ...


class SubprocessRunner:
    """Runs commands with ``asyncio.create_subprocess_exec`` (no shell).

    With *deadline_seconds* set, a command still running at the deadline is
    killed and reported as failed.
    """

    def __init__(self, *, deadline_seconds: float | None = None) -> None:
        self._deadline = deadline_seconds

    async def run(self, args: Sequence[str]) -> CommandResult:
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as exc:
            msg = f"Cannot run {args[0]}: {exc}"
            raise CommandError(msg) from exc

        try:
            async with asyncio.timeout(self._deadline):
                stdout, _ = await proc.communicate()
        except TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning("Command timed out after %ss: %s", self._deadline, args[:3])
            return CommandResult(returncode=-1, output=f"Timed out after {self._deadline}s")

        output = stdout.decode(errors="replace") if stdout else ""
        return CommandResult(returncode=proc.returncode or 0, output=output)
