"""From raw webhook body to finished deployments."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from swarmhook.errors import PayloadError
from swarmhook.webhook.payloads import decode_body

if TYPE_CHECKING:
    from swarmhook.deploy.orchestrator import Deployer, DeploymentOutcome
    from swarmhook.deploy.policy import DeploymentPolicy
    from swarmhook.webhook.payloads import PayloadParser

logger = logging.getLogger(__name__)


class DeployPipeline:
    """Decode, normalize, filter and deploy one authenticated webhook."""

    def __init__(
        self,
        parser: PayloadParser,
        policy: DeploymentPolicy,
        deployer: Deployer,
    ) -> None:
        self._parser = parser
        self._policy = policy
        self._deployer = deployer

    async def handle(self, content_type: str, body: bytes) -> list[DeploymentOutcome]:
        try:
            payload = decode_body(content_type, body)
        except PayloadError as exc:
            logger.warning("Ignoring webhook body: %s", exc)
            return []

        events = self._parser.parse(payload)
        deployments = self._policy.select(events)
        if not deployments:
            logger.debug("No eligible deployments in webhook (%d push event(s))", len(events))
            return []
        return await self._deployer.deploy_all(deployments)
