"""
Logging configuration for StreamMeter.

This module configures structlog for JSON logging across the engine.
"""

import logging
import re
import sys
from typing import Any

import structlog

from .settings import settings

# Keys whose values identify a viewer
_IDENTITY_KEYS = ("viewer", "viewer_identity", "identity", "address")

_ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")


def _mask(value: str) -> str:
    if len(value) <= 4:
        return "***"
    return value[:2] + "***" + value[-4:]


def redact_identities(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask viewer identities and wallet addresses in log events."""

    def redact_value(value: Any) -> Any:
        if isinstance(value, str):
            return _ADDRESS_PATTERN.sub(lambda m: _mask(m.group(0)), value)
        elif isinstance(value, dict):
            return {k: redact_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [redact_value(item) for item in value]
        return value

    for key in list(event_dict.keys()):
        value = event_dict[key]
        if key.lower() in _IDENTITY_KEYS and isinstance(value, str):
            event_dict[key] = _mask(value)
        elif key != "event":
            event_dict[key] = redact_value(value)

    return event_dict


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Configure structlog, JSON output by default."""
    level_name = (level or settings.log_level).upper()
    use_json = settings.log_json if json_output is None else json_output

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.INFO),
    )

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_identities,  # Redact before rendering
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Get a lazily configured logger with service context.

    The logger resolves its processors on first use, so module-level loggers
    pick up whatever :func:`configure_logging` installed later.
    """
    return structlog.get_logger(name, service="streammeter", env=settings.env)
