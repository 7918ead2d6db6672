"""Test doubles for the command runner and notifier."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from swarmhook.deploy.runner import CommandResult

TOKEN = "test-secret-token"


class FakeRunner:
    """Command runner that records calls and returns scripted results.

    *results* maps a docker subcommand (``"login"``, ``"service"``) to the
    exit code it should report.
    """

    def __init__(self, results: dict[str, int] | None = None, delay: float = 0) -> None:
        self.results = results or {}
        self.delay = delay
        self.calls: list[list[str]] = []
        self.log: list[str] = []

    async def run(self, args: Sequence[str]) -> CommandResult:
        cmd = list(args)
        self.calls.append(cmd)
        subcommand = cmd[1]
        label = f"{subcommand}:{cmd[3]}" if subcommand == "service" else subcommand
        self.log.append(f"start {label}")
        if self.delay:
            await asyncio.sleep(self.delay)
        self.log.append(f"end {label}")
        code = self.results.get(subcommand, 0)
        return CommandResult(returncode=code, output="" if code == 0 else "boom")

    def subcommands(self) -> list[str]:
        return [c[1] for c in self.calls]


class FakeNotifier:
    """Collects sent messages."""

    def __init__(self) -> None:
        self.messages: list[str] = []
        self.closed = False

    async def send(self, text: str) -> None:
        self.messages.append(text)

    async def close(self) -> None:
        self.closed = True
