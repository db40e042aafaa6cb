"""
Logging utilities for gcs-publish.

Console logging is colorized with coloredlogs during development and switches
to one JSON object per line when ``LOG_FORMAT=json`` is set, which is what log
collectors on Cloud Run / GKE expect.

Features:
    - Structured JSON logging for production environments
    - Correlation ID tracking across one publish run
    - Entry/exit decorator with timing for sync and async callables
    - Colorized console output for development

Example usage:
    >>> from gcs_publish.utils.logging import get_logger, set_correlation_id
    >>>
    >>> logger = get_logger(__name__)
    >>> set_correlation_id("deploy-2291")
    >>> logger.info("Publishing build output")
"""

import asyncio
import functools
import json
import logging
import os
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, TypeVar, cast

import coloredlogs

F = TypeVar("F", bound=Callable[..., Any])

# Correlation ID for the current publish run (task-local under asyncio)
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
JSON_LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower() == "json"

# Attributes present on every LogRecord; anything else came in via ``extra``
_STANDARD_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


# ============================================================================
# Correlation ID Management
# ============================================================================

def get_correlation_id() -> str:
    """
    Get current correlation ID or generate new one.

    Returns:
        Current correlation ID (generates UUID if not set)
    """
    corr_id = _correlation_id.get()
    if corr_id is None:
        corr_id = str(uuid.uuid4())
        _correlation_id.set(corr_id)
    return corr_id


def set_correlation_id(corr_id: str) -> None:
    """Set correlation ID for the current context."""
    _correlation_id.set(corr_id)


def clear_correlation_id() -> None:
    """Clear correlation ID for the current context."""
    _correlation_id.set(None)


# ============================================================================
# JSON Formatter
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Example output:
        {
            "timestamp": "2026-10-18T10:30:15.123456Z",
            "level": "INFO",
            "logger": "gcs_publish.uploader.uploader",
            "message": "Uploaded gs://assets/static/app.css",
            "correlation_id": "deploy-2291",
            "extra": {"object_key": "static/app.css"}
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_FIELDS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", enable_colors: bool = True) -> None:
    """
    Configure global logging settings for the application.

    Uses JSON output when ``LOG_FORMAT=json``, colorized text otherwise.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_colors: Whether to colorize console output (default: True)

    Example:
        >>> setup_logging(level="DEBUG")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if JSON_LOG_FORMAT:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(console_handler)
    elif enable_colors:
        coloredlogs.install(
            level=log_level,
            fmt=LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            logger=root_logger,
        )
    else:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__ of the calling module)
    """
    return logging.getLogger(name)


def _format_call(func: Callable[..., Any], args: Any, kwargs: Any) -> str:
    arg_names = func.__code__.co_varnames[: func.__code__.co_argcount]
    args_repr = [f"{name}={value!r}" for name, value in zip(arg_names, args)]
    kwargs_repr = [f"{key}={value!r}" for key, value in kwargs.items()]
    return ", ".join(args_repr + kwargs_repr)


def log_function_call(func: F) -> F:
    """
    Decorator that logs function entry and exit at DEBUG level.

    Works on plain functions and on coroutine functions. Exceptions are
    logged with traceback and re-raised unchanged. Do not apply it to
    functions that receive credentials; arguments are logged with repr().

    Example:
        >>> @log_function_call
        ... def normalize_path(base_path, relative_path):
        ...     ...
        >>> # DEBUG - ENTER normalize_path(base_path='/static', relative_path='app.css')
        >>> # DEBUG - EXIT normalize_path -> 'static/app.css' (0.00s)
    """
    logger = get_logger(func.__module__)

    def _enter(args: Any, kwargs: Any) -> datetime:
        logger.debug(
            f"ENTER {func.__name__}({_format_call(func, args, kwargs)})",
            extra={
                "function": func.__name__,
                "correlation_id": get_correlation_id(),
                "event": "function_entry",
            },
        )
        return datetime.now()

    def _exit(result: Any, started: datetime) -> None:
        duration = (datetime.now() - started).total_seconds()
        logger.debug(
            f"EXIT {func.__name__} -> {result!r} ({duration:.2f}s)",
            extra={
                "function": func.__name__,
                "duration_seconds": duration,
                "event": "function_exit",
                "status": "success",
            },
        )

    def _error(error: Exception, started: datetime) -> None:
        duration = (datetime.now() - started).total_seconds()
        logger.error(
            f"ERROR {func.__name__} raised {type(error).__name__}: {error}",
            extra={
                "function": func.__name__,
                "duration_seconds": duration,
                "event": "function_error",
                "status": "error",
                "error_type": type(error).__name__,
            },
            exc_info=True,
        )

    if asyncio.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            started = _enter(args, kwargs)
            try:
                result = await func(*args, **kwargs)
            except Exception as error:
                _error(error, started)
                raise
            _exit(result, started)
            return result

        return cast(F, async_wrapper)

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        started = _enter(args, kwargs)
        try:
            result = func(*args, **kwargs)
        except Exception as error:
            _error(error, started)
            raise
        _exit(result, started)
        return result

    return cast(F, wrapper)
