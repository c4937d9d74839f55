"""structlog configuration for the rehook process.

Every record goes through the stdlib root logger, so aiohttp and httpx
records are rendered the same way as our own events.
"""

from __future__ import annotations

import logging
import re
import sys

import structlog

# Component options (tokens, webhook secrets) must never reach the logs
_REDACTED = "***REDACTED***"
_SECRET_KEYS = frozenset({"token", "secret", "authorization"})
_SECRET_VALUE_RE = re.compile(
    r"(token|secret|authorization)[\"']?\s*[:=]\s*[\"']?[\w\-\.]+", re.IGNORECASE
)

_NOISY_LOGGERS = ("aiohttp.access", "httpx", "httpcore", "aiosqlite")


def _filter_sensitive(
    _logger: structlog.types.WrappedLogger,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    for key, value in list(event_dict.items()):
        if key in _SECRET_KEYS:
            if value:
                event_dict[key] = _REDACTED
        elif isinstance(value, str) and _SECRET_VALUE_RE.search(value):
            event_dict[key] = _SECRET_VALUE_RE.sub(rf"\1={_REDACTED}", value)
    return event_dict


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Route structlog through stdlib logging at the given level."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    if numeric_level <= logging.DEBUG:
        print(
            "WARNING: DEBUG logging is enabled. Webhook payloads and component "
            "configuration may appear in logs. Do not use in production.",
            file=sys.stderr,
        )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            _filter_sensitive,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_output),
        ],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
