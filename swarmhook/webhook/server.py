"""Webhook HTTP server: aiohttp-based ingress for registry push notifications."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from aiohttp import web

from swarmhook.log_context import set_log_context
from swarmhook.webhook.auth import check_authorization

if TYPE_CHECKING:
    from swarmhook.config import DeployConfig
    from swarmhook.webhook.pipeline import DeployPipeline

logger = logging.getLogger(__name__)


class WebhookServer:
    """HTTP server accepting push notifications and scheduling deployments.

    Routes:
    - ``POST /`` -- Webhook endpoint (bearer token required).
    - anything else -- ``404 Not found``.

    The response is sent as soon as the caller is authenticated; the
    deployment runs afterwards in a background task.
    """

    def __init__(self, config: DeployConfig, pipeline: DeployPipeline) -> None:
        self._config = config
        self._pipeline = pipeline
        self._runner: web.AppRunner | None = None
        self._background_tasks: set[asyncio.Task[None]] = set()

    def build_app(self) -> web.Application:
        app = web.Application(client_max_size=self._config.max_body_bytes)
        app.router.add_post("/", self._handle_hook)
        app.router.add_route("*", "/{tail:.*}", self._handle_not_found)
        return app

    async def start(self) -> None:
        """Create the aiohttp app and start listening."""
        self._runner = web.AppRunner(self.build_app(), access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.host, self._config.port)
        await site.start()
        logger.info(
            "Listening for webhooks on http://%s:%d",
            self._config.host,
            self._config.port,
        )

    async def stop(self) -> None:
        """Shut down the server and wait for in-flight deployments."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        if self._background_tasks:
            logger.info("Waiting for %d running deployment(s)", len(self._background_tasks))
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        logger.info("Webhook server stopped")

    # -- Handlers --

    async def _handle_not_found(self, _request: web.Request) -> web.Response:
        return web.Response(status=404, text="Not found\n")

    async def _handle_hook(self, request: web.Request) -> web.Response:
        set_log_context(operation="wh")
        logger.debug("Webhook request received from %s", request.remote)

        auth = check_authorization(
            request.headers.get("Authorization"), self._config.credentials.token
        )
        if not auth.ok:
            return web.Response(status=401, text=f"{auth.value}\n")

        try:
            body = await request.read()
        except web.HTTPRequestEntityTooLarge:
            logger.warning("Webhook body exceeds %d bytes, ignoring", self._config.max_body_bytes)
            return web.Response(text="OK")

        task = asyncio.create_task(self._safe_dispatch(request.content_type, body))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return web.Response(text="OK")

    async def _safe_dispatch(self, content_type: str, body: bytes) -> None:
        """Run the pipeline in a task with exception protection."""
        try:
            await self._pipeline.handle(content_type, body)
        except Exception:
            logger.exception("Webhook dispatch error")
