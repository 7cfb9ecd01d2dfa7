"""Tests for structured logging setup and trace id propagation."""

from __future__ import annotations

import contextvars
import logging

import pytest
import structlog

from pancake_lab.observability.logger import (
    bind_trace_id,
    current_trace_id,
    get_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestTraceId:
    def test_bind_explicit(self):
        def _run():
            assert bind_trace_id("trace-123") == "trace-123"
            return current_trace_id()

        assert contextvars.copy_context().run(_run) == "trace-123"

    def test_bind_generates_when_missing(self):
        def _run():
            tid = bind_trace_id(None)
            return tid, current_trace_id()

        tid, bound = contextvars.copy_context().run(_run)
        assert tid
        assert bound == tid

    def test_unbound_context_has_no_trace_id(self):
        assert contextvars.Context().run(current_trace_id) is None


class TestSetupLogging:
    def test_json_setup_sets_level(self):
        setup_logging(level="DEBUG", format="json")
        assert logging.getLogger().level == logging.DEBUG

    def test_console_setup(self):
        setup_logging(level="warning", format="console")
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_single_stderr_handler_installed(self):
        setup_logging()
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_get_logger(self):
        assert get_logger("pancake_lab.test") is not None
