"""Logging configuration for the storefront.

Console output for development, JSON lines in production and staging, and a
rotating pair of files (everything, errors only) under ``STOREFRONT_LOG_DIR``.
Payment secrets never reach a log line: ``redact_secrets`` masks them before
rendering.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog
from rich.traceback import install as install_rich_traceback

logging.getLogger("protean").setLevel(logging.WARNING)
logging.getLogger("stripe").setLevel(logging.WARNING)

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Event keys whose values are credentials or payer-facing secrets
SECRET_KEYS = frozenset({"client_secret", "api_key", "stripe_secret_key", "authorization"})

_MAX_BYTES = 10 * 1024 * 1024
_BACKUPS = 5


def current_environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """LOG_LEVEL if set, else the default for the current environment."""
    return os.getenv("LOG_LEVEL", _LEVELS.get(current_environment(), "INFO")).upper()


def redact_secrets(logger, method_name: str, event_dict: dict) -> dict:
    """structlog processor: mask secret values, keeping a short prefix for correlation."""
    for key in SECRET_KEYS.intersection(event_dict):
        value = event_dict[key]
        if value:
            event_dict[key] = f"{str(value)[:6]}***"
    return event_dict


def _rotating(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(log_dir: Path | None = None) -> None:
    level = get_log_level()
    log_dir = Path(log_dir or os.getenv("STOREFRONT_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [
        console,
        _rotating(log_dir / "storefront.log", level),
        _rotating(log_dir / "storefront_error.log", logging.ERROR),
    ]

    for noisy in ("urllib3", "asyncio", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _renderer():
    if current_environment() in ("production", "staging"):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
    )


def setup_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: Path | None = None) -> None:
    """Configure stdlib handlers and structlog for the whole process.

    In development, uncaught exceptions are also rendered by Rich.
    """
    setup_stdlib_logging(log_dir)
    setup_structlog()
    if current_environment() == "development":
        install_rich_traceback(show_locals=False, max_frames=2)


def bind_request_context(**kwargs: Any) -> None:
    """Attach key/values (user_id, order_id, ...) to every log line of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
