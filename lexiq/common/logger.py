"""
Engine Logging

Every engine module logs through ``logging.getLogger(__name__)``, so all
records land under the "lexiq" logger. This module configures that logger
from a LoggingConfig, tags session records with their session id, and
times the aggregation step.
"""

import os
import sys
import json
import time
import logging
import datetime
import functools
from typing import Any, Callable, Dict, Optional, TypeVar, Union

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Parent of every module logger ("lexiq.assessments.session", ...)
APP_LOGGER_NAME = "lexiq"

F = TypeVar('F', bound=Callable[..., Any])

__all__ = [
    'configure_logger',
    'configure_from_config',
    'LoggerAdapter',
    'JsonFormatter',
    'log_execution_time'
]


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Context attached by LoggerAdapter (such as ``session_id``) is merged into
    the top level, so a session's records can be filtered by field.
    """

    def __init__(self, indent: Optional[int] = None):
        super().__init__()
        self.indent = indent

    def format(self, record: logging.LogRecord) -> str:
        log_object: Dict[str, Any] = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, datetime.timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, 'data', None)
        if isinstance(context, dict):
            log_object.update(context)

        if record.exc_info:
            log_object["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        return json.dumps(log_object, indent=self.indent, default=str)


def configure_logger(
    level: Union[str, int] = logging.INFO,
    use_json: bool = False,
    log_file: Optional[str] = None,
    console_output: bool = True,
    name: str = APP_LOGGER_NAME
) -> logging.Logger:
    """
    Attach handlers to the engine logger, replacing any it already has.

    Args:
        level: Log level name or number
        use_json: Emit JsonFormatter records instead of plain text
        log_file: Also write to this file, creating its directory
        console_output: Also write to stdout
        name: Logger to configure

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = JsonFormatter() if use_json else logging.Formatter(
        DEFAULT_LOG_FORMAT, DEFAULT_DATE_FORMAT
    )

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def configure_from_config(logging_config: Any) -> logging.Logger:
    """
    Configure the engine logger from a LoggingConfig.

    Args:
        logging_config: Object with level, use_json and file_path attributes
    """
    return configure_logger(
        level=logging_config.level,
        use_json=logging_config.use_json,
        log_file=logging_config.file_path
    )


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adds fixed context to every record under ``extra['data']``.

    SessionController keeps one per session so each record it emits carries
    the session id. Context passed per call wins over the adapter's own.
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        super().__init__(logger, context or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs = kwargs.copy()
        extra = dict(kwargs.get('extra') or {})
        data = dict(self.extra)
        data.update(extra.get('data') or {})
        extra['data'] = data
        kwargs['extra'] = extra
        return msg, kwargs


def log_execution_time(logger: logging.Logger) -> Callable[[F], F]:
    """
    Log how long each call of the decorated function takes.

    Durations go out at DEBUG; a call that raises is logged at ERROR with
    its duration and the exception is re-raised.
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = time.perf_counter() - start_time
                logger.error(f"{func.__qualname__} failed after {elapsed:.3f} seconds: {e}")
                raise
            elapsed = time.perf_counter() - start_time
            logger.debug(f"{func.__qualname__} executed in {elapsed:.3f} seconds")
            return result

        return wrapper
    return decorator
