"""Logging context: ContextVar-based log enrichment for async operations.

Every log record is automatically enriched with an ``[op:image]`` prefix
via a `ContextFilter` attached to the root logger handlers.

Operation codes: ``wh`` (inbound webhook request), ``deploy`` (deployment task).
"""

from __future__ import annotations

import logging
from contextvars import ContextVar

# Cross-cutting context propagated through asyncio tasks.
ctx_operation: ContextVar[str | None] = ContextVar("ctx_operation", default=None)
ctx_image: ContextVar[str | None] = ContextVar("ctx_image", default=None)


class ContextFilter(logging.Filter):
    """Inject ContextVar values into every LogRecord as ``record.ctx``."""

    def filter(self, record: logging.LogRecord) -> bool:
        op = ctx_operation.get(None)
        image = ctx_image.get(None)
        parts: list[str] = []
        if op:
            parts.append(op)
        if image:
            parts.append(image)
        record.ctx = f"[{':'.join(parts)}] " if parts else ""
        return True


def set_log_context(
    *,
    operation: str | None = None,
    image: str | None = None,
) -> None:
    """Set logging context for the current asyncio task.

    Values propagate to all coroutines called within the same task.
    Each ``asyncio.create_task()`` copies the current context automatically.
    """
    if operation is not None:
        ctx_operation.set(operation)
    if image is not None:
        ctx_image.set(image)
