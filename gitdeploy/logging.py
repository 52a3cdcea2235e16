"""structlog setup for the service, with secret redaction."""

from __future__ import annotations

import logging
import re
import sys

import structlog


_SENSITIVE_PATTERNS = [
    (
        re.compile(r"(token|key|secret|password|authorization)[\"']?\s*[:=]\s*[\"']?[\w\-\.]+", re.IGNORECASE),
        r"\1=***REDACTED***",
    ),
    # Telegram bot tokens travel inside the request URL.
    (re.compile(r"/bot\d+:[\w\-]+"), "/bot***REDACTED***"),
]


def _filter_sensitive(
    _logger: structlog.types.WrappedLogger,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Mask secrets in any string value, the event name included."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            for pattern, replacement in _SENSITIVE_PATTERNS:
                value = pattern.sub(replacement, value)
            event_dict[key] = value
    return event_dict


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Route structlog and stdlib records (uvicorn, httpx) through one stderr handler."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if json_output:
        renderers: list[structlog.types.Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _filter_sensitive,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[structlog.stdlib.add_log_level, _filter_sensitive],
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(numeric_level)

    # httpx logs every request URL, bot tokens included
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
