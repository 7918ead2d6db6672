"""Deployment orchestration: registry login, then a forced service update.

Each deployment runs two docker commands in strict order.  A failure in
either stage ends the deployment and is reported; nothing is retried.
Deployments to the same service are serialised, different services run
concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from swarmhook.deploy.runner import CommandResult
from swarmhook.errors import CommandError
from swarmhook.log_context import set_log_context

if TYPE_CHECKING:
    from swarmhook.config import Credentials
    from swarmhook.deploy.policy import Deployment
    from swarmhook.deploy.runner import CommandRunner
    from swarmhook.notify.slack import Notifier

logger = logging.getLogger(__name__)

Stage = Literal["login", "update"]


@dataclass(frozen=True, slots=True)
class DeploymentOutcome:
    """Result of one login + update sequence."""

    image: str
    service: str
    success: bool
    stage: Stage
    message: str


class Deployer:
    """Runs deployments through an injected command runner and notifier."""

    def __init__(
        self,
        credentials: Credentials,
        runner: CommandRunner,
        notifier: Notifier,
        *,
        docker_command: str = "docker",
    ) -> None:
        self._credentials = credentials
        self._runner = runner
        self._notifier = notifier
        self._docker = docker_command
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending: set[asyncio.Task[None]] = set()

    # -- Commands --

    def login_command(self) -> list[str]:
        cmd = [
            self._docker,
            "login",
            "-u",
            self._credentials.username,
            "-p",
            self._credentials.password,
        ]
        if self._credentials.registry:
            cmd.append(self._credentials.registry)
        return cmd

    def update_command(self, deployment: Deployment) -> list[str]:
        return [
            self._docker,
            "service",
            "update",
            deployment.service,
            "--force",
            "--with-registry-auth",
            f"--image={deployment.image}",
        ]

    # -- Deployment --

    async def deploy(self, deployment: Deployment) -> DeploymentOutcome:
        """Deploy one image and report the outcome."""
        set_log_context(operation="deploy", image=deployment.image)
        lock = self._locks.setdefault(deployment.service, asyncio.Lock())
        if lock.locked():
            logger.info("Waiting for running deployment of %s to finish", deployment.service)
        async with lock:
            outcome = await self._run_stages(deployment)
        self._report(outcome)
        return outcome

    async def deploy_all(self, deployments: Iterable[Deployment]) -> list[DeploymentOutcome]:
        """Deploy independently; outcomes are returned in input order."""
        return list(await asyncio.gather(*(self.deploy(d) for d in deployments)))

    async def _run_stages(self, deployment: Deployment) -> DeploymentOutcome:
        image = deployment.image
        service = deployment.service
        logger.info('Updating image "%s"', image)

        # Pulling from a private registry needs a fresh login
        login = await self._run(self.login_command(), stage="login")
        if not login.ok:
            registry = self._credentials.registry or "the default registry"
            message = f"Failed to log in to {registry} before deploying {image} to {service}!"
            return DeploymentOutcome(image, service, success=False, stage="login", message=message)

        logger.info("Deploying %s to %s...", image, service)
        update = await self._run(self.update_command(deployment), stage="update")
        if not update.ok:
            message = f"Failed to deploy {image} to {service}!"
            return DeploymentOutcome(image, service, success=False, stage="update", message=message)

        message = f"Deployed {image} to {service} successfully and restarted the service."
        return DeploymentOutcome(image, service, success=True, stage="update", message=message)

    async def _run(self, args: list[str], *, stage: Stage) -> CommandResult:
        try:
            result = await self._runner.run(args)
        except CommandError as exc:
            logger.error("docker %s could not be started: %s", stage, exc)
            return CommandResult(returncode=-1, output=str(exc))
        if not result.ok:
            logger.error(
                "docker %s exited with status %d:\n%s",
                stage,
                result.returncode,
                result.output[-2000:],
            )
        return result

    # -- Notification --

    def _report(self, outcome: DeploymentOutcome) -> None:
        if outcome.success:
            logger.info("%s", outcome.message)
        else:
            logger.error("%s", outcome.message)
        task = asyncio.create_task(self._safe_send(outcome.message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _safe_send(self, text: str) -> None:
        try:
            await self._notifier.send(text)
        except Exception:
            logger.exception("Notification delivery error")

    async def drain(self) -> None:
        """Wait for notifications that are still being delivered."""
        if self._pending:
            await asyncio.gather(*self._pending)

    async def close(self) -> None:
        await self._notifier.close()
