"""Structured logging for staging output via structlog.

The staging pipeline writes its user-facing lines (``Installing go 1.12.3``,
``Running: go install ...``) through a structlog bound logger. How those
lines look on the platform's staging stream is decided here, once.

Renderer selection:
  json_logs=True — `JSONRenderer` for machine-parseable logs.
  debug=True     — `ConsoleRenderer` with level and timestamp columns.
  otherwise      — plain renderer: the event text exactly as emitted, with
                   warnings and errors prefixed the way buildpack output is.
"""

from __future__ import annotations

import logging
import sys

import structlog

_PLAIN_PREFIXES = {
    "warning": "**WARNING** ",
    "error": "**ERROR** ",
}


def get_log(name: str = "gobuildpack") -> structlog.typing.FilteringBoundLogger:
    """Return the staging log sink.

    A fresh lazy proxy is returned on every call, so configuration changes
    (including `structlog.testing.capture_logs`) apply to it.
    """
    return structlog.get_logger(name)


def _render_plain(logger: logging.Logger, method: str, event_dict: dict) -> str:
    """Structlog renderer: the event verbatim, plus any bound key/values."""
    event = str(event_dict.pop("event", ""))
    level = event_dict.pop("level", method)
    event_dict.pop("timestamp", None)
    prefix = _PLAIN_PREFIXES.get(level, "")
    extras = " ".join(f"{key}={value}" for key, value in event_dict.items())
    line = f"{prefix}{event}"
    return f"{line} {extras}" if extras else line


def configure_structlog(debug: bool = False, json_logs: bool = False) -> None:
    """Configure structlog for the staging process.

    Call once before the first staging run. Calling multiple times is safe.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        shared_processors.insert(1, structlog.processors.TimeStamper(fmt="iso"))
        renderer = structlog.processors.JSONRenderer()
    elif debug:
        shared_processors.insert(1, structlog.processors.TimeStamper(fmt="iso"))
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = _render_plain

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.INFO
        ),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )

    # Internal diagnostics go to stderr so staging output stays clean.
    logging.basicConfig(
        format="%(name)s: %(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.WARNING,
    )
