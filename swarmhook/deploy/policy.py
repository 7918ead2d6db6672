"""Which pushed images are deployed, and to which service."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from swarmhook.config import ServiceTarget
    from swarmhook.webhook.payloads import PayloadParser, PushEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Deployment:
    """An eligible push event resolved to its target service."""

    event: PushEvent
    service: str

    @property
    def image(self) -> str:
        return self.event.image


class DeploymentPolicy:
    """Filters push events down to configured images with accepted tags.

    An event is eligible when its lookup key (per payload format) is a
    configured target and, for formats that require it, its tag matches
    ``<environment>-<digits>`` in full.
    """

    def __init__(
        self,
        targets: Mapping[str, ServiceTarget],
        environment: str,
        parser: PayloadParser,
    ) -> None:
        self._targets = targets
        self._parser = parser
        self._tag_re = re.compile(rf"{re.escape(environment)}-[0-9]+")

    def tag_is_recognized(self, tag: str) -> bool:
        return self._tag_re.fullmatch(tag) is not None

    def resolve(self, event: PushEvent) -> Deployment | None:
        """Return the deployment for *event*, or None if it is not eligible."""
        target = self._targets.get(self._parser.lookup_key(event))
        if target is None or (
            self._parser.requires_tag_pattern and not self.tag_is_recognized(event.tag)
        ):
            logger.info(
                'Received update for "%s" but not configured to handle updates for this image.',
                event.image,
            )
            return None
        return Deployment(event=event, service=target.service)

    def select(self, events: Iterable[PushEvent]) -> list[Deployment]:
        """Resolve every event, dropping the ineligible ones."""
        return [d for d in (self.resolve(e) for e in events) if d is not None]
