"""structlog setup for the client and CLI.

Everything logs through get_logger(); events are snake_case names with
key/value context (``login_succeeded``, ``cache_hit``, ``request_sent``).
Output goes to stderr, leaving stdout to the CLI's JSON.
"""

import logging
import sys

import structlog

# httpx logs every request at INFO; request_sent already covers it
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog and route stdlib logging to the same stream.

    Args:
        json_output: Render JSON lines instead of the coloured console format.
        log_level: Minimum level name; unknown names fall back to INFO.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info if json_output else structlog.dev.set_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(sys.stderr)]
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger bound to *name*, usually the calling module's ``__name__``."""
    return structlog.get_logger(name)
