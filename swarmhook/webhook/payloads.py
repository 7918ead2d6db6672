"""Webhook payload decoding and normalization into push events.

Two payload formats are supported, one active per deployment:

- ``registry``: Docker Registry notifications (``{"events": [...]}``), possibly
  several push events per request.
- ``dockerhub``: Docker Hub webhooks, one push per request
  (``repository.repo_name`` + ``push_data.tag``).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar, Protocol
from urllib.parse import parse_qsl

from swarmhook.errors import PayloadError

logger = logging.getLogger(__name__)

_JSON_TYPES = frozenset(
    {
        "application/json",
        "application/vnd.docker.distribution.events.v1+json",
    }
)
_FORM_TYPE = "application/x-www-form-urlencoded"


class PayloadFormat(StrEnum):
    """Which webhook payload shape this deployment accepts."""

    REGISTRY = "registry"
    DOCKERHUB = "dockerhub"


@dataclass(frozen=True, slots=True)
class PushEvent:
    """A pushed image, reduced to repository and tag."""

    repository: str
    tag: str

    @property
    def image(self) -> str:
        return f"{self.repository}:{self.tag}"


class PayloadParser(Protocol):
    """Contract shared by every payload format."""

    format: ClassVar[PayloadFormat]
    requires_tag_pattern: ClassVar[bool]

    def parse(self, payload: Any) -> list[PushEvent]: ...

    def lookup_key(self, event: PushEvent) -> str: ...


def _get_str(data: Any, *path: str) -> str:
    """Walk nested dicts along *path*; return the string found or ``""``."""
    node = data
    for key in path:
        if not isinstance(node, dict):
            return ""
        node = node.get(key)
    return node if isinstance(node, str) else ""


class RegistryEventsParser:
    """Docker Registry notification envelope with an ``events`` list."""

    format: ClassVar[PayloadFormat] = PayloadFormat.REGISTRY
    requires_tag_pattern: ClassVar[bool] = True

    def parse(self, payload: Any) -> list[PushEvent]:
        events = payload.get("events") if isinstance(payload, dict) else None
        if not isinstance(events, list):
            logger.warning("Registry payload has no events list, ignoring")
            return []

        result: list[PushEvent] = []
        for event in events:
            if not isinstance(event, dict) or event.get("action") != "push":
                continue
            repository = _get_str(event, "target", "repository")
            tag = _get_str(event, "target", "tag")
            if not repository or not tag:
                continue
            host = _get_str(event, "request", "host")
            if not host:
                logger.warning(
                    "Push event for %s:%s has no request.host, skipping", repository, tag
                )
                continue
            result.append(PushEvent(repository=f"{host}/{repository}", tag=tag))

        logger.debug("Registry payload: %d event(s), %d push(es)", len(events), len(result))
        return result

    def lookup_key(self, event: PushEvent) -> str:
        return event.repository


class DockerHubParser:
    """Docker Hub webhook: a single push per request."""

    format: ClassVar[PayloadFormat] = PayloadFormat.DOCKERHUB
    requires_tag_pattern: ClassVar[bool] = False

    def parse(self, payload: Any) -> list[PushEvent]:
        repository = _get_str(payload, "repository", "repo_name")
        tag = _get_str(payload, "push_data", "tag")
        if not repository or not tag:
            logger.warning("Docker Hub payload missing repository.repo_name or push_data.tag")
            return []
        return [PushEvent(repository=repository, tag=tag)]

    def lookup_key(self, event: PushEvent) -> str:
        # Hub targets are configured per tag
        return event.image


_PARSERS: dict[PayloadFormat, type[RegistryEventsParser] | type[DockerHubParser]] = {
    PayloadFormat.REGISTRY: RegistryEventsParser,
    PayloadFormat.DOCKERHUB: DockerHubParser,
}


def get_parser(payload_format: PayloadFormat) -> PayloadParser:
    """Return the parser for *payload_format*."""
    return _PARSERS[payload_format]()


# -- Body decoding --


def _nest_form(pairs: list[tuple[str, str]]) -> dict[str, Any]:
    """Expand ``a[b][c]=v`` style keys into nested dicts.

    Array keys such as ``a[]=v`` have no meaning in a push payload and are rejected.
    """
    result: dict[str, Any] = {}
    for key, value in pairs:
        head, _, rest = key.partition("[")
        parts = [head] + [p.rstrip("]") for p in rest.split("[")] if rest else [head]
        if not all(parts):
            msg = f"Unsupported form field '{key}'"
            raise PayloadError(msg)
        node = result
        for part in parts[:-1]:
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                msg = f"Conflicting form field '{key}'"
                raise PayloadError(msg)
            node = child
        node[parts[-1]] = value
    return result


def decode_body(content_type: str, body: bytes) -> Any:
    """Decode a raw webhook body according to its content type.

    JSON (including ``+json`` media types) is parsed directly.  Form bodies
    are expanded with bracket nesting; a ``payload`` form field carrying
    JSON is unwrapped.  Raises PayloadError when the body cannot be decoded.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()

    if media_type in _JSON_TYPES or media_type.endswith("+json"):
        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            msg = f"Invalid JSON body: {exc}"
            raise PayloadError(msg) from exc

    if media_type == _FORM_TYPE:
        try:
            pairs = parse_qsl(body.decode("utf-8"), keep_blank_values=True)
        except UnicodeDecodeError as exc:
            msg = f"Invalid form body: {exc}"
            raise PayloadError(msg) from exc
        form = _nest_form(pairs)
        wrapped = form.get("payload")
        if isinstance(wrapped, str):
            try:
                return json.loads(wrapped)
            except json.JSONDecodeError as exc:
                msg = f"Invalid JSON in form field 'payload': {exc}"
                raise PayloadError(msg) from exc
        return form

    msg = f"Unsupported content type '{media_type or 'none'}'"
    raise PayloadError(msg)
