"""Structured logging configuration using structlog."""

import logging
import sys
from urllib.parse import urlsplit, urlunsplit

import structlog

# Event keys whose values are credentials for a single transfer
SECRET_KEYS = frozenset({"csrf_token", "security_hash", "recipient_id"})


def _strip_query(value: str) -> str:
    """Drop the query string (signature) from a direct download URL."""
    parts = urlsplit(value)
    if not parts.query:
        return value
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def redact_transfer_secrets(logger, method_name, event_dict):
    """Mask session tokens and signed URL parameters before rendering."""
    for key, value in event_dict.items():
        if key in SECRET_KEYS and value:
            event_dict[key] = "***"
        elif isinstance(value, str) and value.startswith(("http://", "https://")):
            event_dict[key] = _strip_query(value)
    return event_dict


def build_processors() -> list:
    """Processors shared by structlog loggers and foreign (stdlib) records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        redact_transfer_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(json_logs: bool = False, log_level: str = "INFO"):
    """
    Route wetransfer-dl, httpx and tenacity logs through one structlog renderer.

    The library never calls this itself; until an application does, the
    downloader's debug lines go to structlog's default stdout printer.

    Args:
        json_logs: JSON lines instead of colored console output
        log_level: Root logging level (DEBUG, INFO, WARNING, ERROR)
    """
    processors = build_processors()
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Transport chatter would repeat every redirect hop and chunk
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def configure_from_settings(settings=None):
    """Configure logging from the ``log_level``/``json_logs`` settings."""
    if settings is None:
        from .config import get_settings

        settings = get_settings()
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)


def get_logger(name: str | None = None):
    """Get a structlog logger."""
    return structlog.get_logger(name)
