"""Webhook ingress: authentication, payload normalization and the HTTP server."""

from swarmhook.webhook.auth import AuthResult, check_authorization
from swarmhook.webhook.payloads import PayloadFormat, PushEvent, get_parser

__all__ = ["AuthResult", "PayloadFormat", "PushEvent", "check_authorization", "get_parser"]
