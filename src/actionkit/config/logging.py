"""structlog setup for applications embedding actionkit.

actionkit never configures logging on import; library modules only log
through ``logging.getLogger(__name__)``. An application that wants
structured output calls :func:`configure_logging` once, and the
``verbose`` / ``log_json`` settings decide how records are rendered.
"""

from __future__ import annotations

import logging
import sys

import structlog

from actionkit.config.settings import ActionkitSettings, get_settings

LOGGER_NAME = "actionkit"

# Third-party loggers that stay at WARNING even in verbose mode.
QUIET_LOGGERS = ("sqlalchemy", "pluggy")


def shared_processors() -> list[structlog.types.Processor]:
    """Processors applied to both structlog and foreign (stdlib) records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(settings: ActionkitSettings | None = None) -> logging.Handler:
    """Route actionkit logging through structlog according to *settings*.

    Uses the process-wide settings when *settings* is None. The
    ``actionkit`` logger runs at DEBUG when ``verbose`` is set and at
    WARNING otherwise; ``log_json`` switches from console to JSON lines.
    Calling it again replaces the handler installed by the previous call.

    Returns the stderr handler that was installed on the root logger.
    """
    settings = settings or get_settings()
    processors = shared_processors()

    renderer: structlog.types.Processor
    if settings.log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG if settings.verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
