"""Logging setup for the webhook service.

Logs go to stderr, which is what ``docker service logs`` collects; colors are
only used on a terminal.  ``LOG_DIR`` adds a rotating ``swarmhook.log`` for
hosts that keep deployment history on disk.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from swarmhook.log_context import ContextFilter

LOG_FILE = "swarmhook.log"
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 3

FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(ctx)s%(message)s"
DATE_FMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)

_installed: list[logging.Handler] = []

_LEVEL_COLORS = {
    logging.DEBUG: "\x1b[36m",
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[35m",
}


class _TerminalFormatter(logging.Formatter):
    """Colors the whole line by level, so failed deployments stand out."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        color = _LEVEL_COLORS.get(record.levelno)
        return f"{color}{line}\x1b[0m" if color else line


def resolve_level(name: str, default: int = logging.INFO) -> int:
    """Map a level name such as ``"debug"`` to its numeric value."""
    level = logging.getLevelName(name.strip().upper()) if name else default
    return level if isinstance(level, int) else default


def setup_logging(
    level: int = logging.INFO,
    verbose: bool = False,
    log_dir: Path | None = None,
) -> None:
    """Configure the root logger. Safe to call again after config is loaded."""
    if verbose:
        level = logging.DEBUG

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in _installed:
        handler.close()
    _installed.clear()
    root.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    formatter_cls = _TerminalFormatter if sys.stderr.isatty() else logging.Formatter
    console.setFormatter(formatter_cls(FORMAT, datefmt=DATE_FMT))
    handlers: list[logging.Handler] = [console]

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(FORMAT, datefmt=DATE_FMT))
        handlers.append(file_handler)

    ctx_filter = ContextFilter()
    for handler in handlers:
        handler.addFilter(ctx_filter)
        root.addHandler(handler)
        _installed.append(handler)

    # Access lines would repeat every webhook call already logged by the server
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    logger.info("Logging initialized (level=%s)", logging.getLevelName(level))
