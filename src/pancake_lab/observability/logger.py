"""Structured logging for the pancake lab service.

structlog renders every record, including those emitted by library modules
through ``logging.getLogger(__name__)``, as either JSON lines or a
developer console format.  Each entry carries the ``trace_id`` of the HTTP
request being served, taken from the ``X-Trace-Id`` header when present.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any

import structlog

_trace_id: ContextVar[str | None] = ContextVar("pancake_lab_trace_id", default=None)


def bind_trace_id(trace_id: str | None = None) -> str:
    """Bind ``trace_id`` (or a fresh one) to the current context."""
    trace_id = trace_id or uuid.uuid4().hex
    _trace_id.set(trace_id)
    return trace_id


def current_trace_id() -> str | None:
    """Trace id bound to the current context, ``None`` outside a request."""
    return _trace_id.get()


def _inject_trace_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    trace_id = _trace_id.get()
    if trace_id is not None:
        event_dict.setdefault("trace_id", trace_id)
    return event_dict


def _renderer(fmt: str) -> Any:
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer()


def setup_logging(level: str = "INFO", format: str = "json") -> None:
    """Install structlog as the renderer for the root logger.

    Args:
        level: Root log level name; unknown names fall back to INFO.
        format: ``"json"`` or ``"console"``.
    """
    pre_chain: list[Any] = [
        _inject_trace_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            *pre_chain,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(format),
        ],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), None) or logging.INFO)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
