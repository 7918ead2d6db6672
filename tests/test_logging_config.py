"""Tests for centralized logging setup and log context."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from swarmhook.log_context import ContextFilter, ctx_image, ctx_operation, set_log_context
from swarmhook.logging_config import resolve_level, setup_logging


class TestSetupLogging:
    """Test logging configuration."""

    def test_sets_root_level(self) -> None:
        setup_logging(level=logging.WARNING, log_dir=None)
        assert logging.getLogger().level == logging.WARNING

    def test_verbose_sets_debug(self) -> None:
        setup_logging(verbose=True, log_dir=None)
        assert logging.getLogger().level == logging.DEBUG

    def test_console_handler_added(self) -> None:
        setup_logging(log_dir=None)
        handler_types = [type(h).__name__ for h in logging.getLogger().handlers]
        assert "StreamHandler" in handler_types

    def test_file_handler_when_log_dir(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        setup_logging(log_dir=log_dir)
        logging.getLogger("swarmhook.test").warning("Deployed a to b")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "Deployed a to b" in (log_dir / "swarmhook.log").read_text(encoding="utf-8")
        setup_logging(log_dir=None)

    def test_records_carry_context_prefix(self, tmp_path: Path) -> None:
        async def _inner() -> None:
            set_log_context(operation="deploy", image="repo/app:production-1")
            logging.getLogger("swarmhook.test").warning("updating")

        setup_logging(log_dir=tmp_path)
        asyncio.run(_inner())
        for handler in logging.getLogger().handlers:
            handler.flush()
        text = (tmp_path / "swarmhook.log").read_text(encoding="utf-8")
        assert "[deploy:repo/app:production-1] updating" in text
        setup_logging(log_dir=None)

    def test_access_log_quieted(self) -> None:
        setup_logging(log_dir=None)
        assert logging.getLogger("aiohttp.access").level >= logging.WARNING

    def test_repeated_calls_no_duplicate_handlers(self) -> None:
        setup_logging(log_dir=None)
        setup_logging(log_dir=None)
        stream_handlers = [
            h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler
        ]
        assert len(stream_handlers) == 1


class TestResolveLevel:
    def test_names(self) -> None:
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level("WARNING") == logging.WARNING

    def test_unknown_falls_back(self) -> None:
        assert resolve_level("chatty") == logging.INFO

    def test_empty_falls_back(self) -> None:
        assert resolve_level("", default=logging.ERROR) == logging.ERROR


class TestContextFilter:
    def _record(self) -> logging.LogRecord:
        return logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

    def test_no_context(self) -> None:
        async def _inner() -> str:
            record = self._record()
            ContextFilter().filter(record)
            return record.ctx  # type: ignore[attr-defined,no-any-return]

        assert asyncio.run(_inner()) == ""

    def test_operation_and_image(self) -> None:
        async def _inner() -> str:
            set_log_context(operation="deploy", image="repo/app:production-1")
            record = self._record()
            ContextFilter().filter(record)
            return record.ctx  # type: ignore[attr-defined,no-any-return]

        assert asyncio.run(_inner()) == "[deploy:repo/app:production-1] "

    def test_context_stays_in_task(self) -> None:
        async def _inner() -> None:
            set_log_context(operation="wh")

        asyncio.run(_inner())
        assert ctx_operation.get() is None
        assert ctx_image.get() is None
