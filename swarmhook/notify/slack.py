"""Slack incoming-webhook notifier."""

from __future__ import annotations

import logging
from typing import Protocol

import aiohttp

logger = logging.getLogger(__name__)

_TIMEOUT = aiohttp.ClientTimeout(total=10)


class Notifier(Protocol):
    """Sends a plain text message to the operator channel."""

    async def send(self, text: str) -> None: ...

    async def close(self) -> None: ...


class NullNotifier:
    """Used when no notification endpoint is configured."""

    async def send(self, text: str) -> None:
        logger.debug("Notifications disabled, dropping message: %s", text)

    async def close(self) -> None:
        return None


class SlackNotifier:
    """Posts ``{"text": ...}`` to a Slack incoming webhook.

    Delivery failures are logged and swallowed: a lost notification never
    affects the deployment it reports on.
    """

    def __init__(self, url: str) -> None:
        self._url = url
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=_TIMEOUT)
        return self._session

    async def send(self, text: str) -> None:
        try:
            async with self._get_session().post(self._url, json={"text": text}) as resp:
                if resp.status >= 300:
                    body = await resp.text()
                    logger.warning(
                        "Slack notification rejected status=%d body=%s", resp.status, body[:200]
                    )
                    return
        except (aiohttp.ClientError, TimeoutError):
            logger.warning("Slack notification failed", exc_info=True)
            return
        logger.debug("Slack notification sent")

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None


def build_notifier(url: str) -> Notifier:
    """Return a SlackNotifier for *url*, or a no-op notifier when it is empty."""
    if not url:
        logger.info("SLACK_WEBHOOK_URL not set, deployment notifications disabled")
        return NullNotifier()
    return SlackNotifier(url)
