"""Bearer token authentication for inbound webhooks."""

from __future__ import annotations

import hmac
import logging
from enum import Enum

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class AuthResult(Enum):
    """Outcome of checking an ``Authorization`` header.

    The value of each rejection is the plaintext body returned with 401.
    """

    MISSING = "Authorization header missing"
    BAD_SCHEME = "Invalid authentication scheme"
    BAD_TOKEN = "Invalid token"
    VALID = "OK"

    @property
    def ok(self) -> bool:
        return self is AuthResult.VALID


def check_authorization(header: str | None, expected_token: str) -> AuthResult:
    """Check an ``Authorization: Bearer <token>`` header value.

    The scheme prefix is case sensitive and must be followed by exactly the
    configured token.  Uses constant-time comparison.
    """
    if not header:
        logger.warning("Webhook called without Authorization header")
        return AuthResult.MISSING
    if header == BEARER_PREFIX.rstrip():
        # Proxies and HTTP parsers strip the trailing space of "Bearer "
        logger.warning("Webhook called with empty bearer token")
        return AuthResult.BAD_TOKEN
    if not header.startswith(BEARER_PREFIX):
        logger.warning("Webhook called with invalid authentication scheme (must be Bearer)")
        return AuthResult.BAD_SCHEME
    token = header[len(BEARER_PREFIX) :]
    if not token or not hmac.compare_digest(token.encode(), expected_token.encode()):
        logger.warning("Webhook called with invalid token")
        return AuthResult.BAD_TOKEN
    return AuthResult.VALID
