"""Structured logging for sync passes.

structlog renders every event exactly once (JSON or key=value text). The
rendered line is then handed to stdlib handlers: a colorlog console handler
colored by level, and an optional rotating file that ``drive-sync tail-log``
follows line by line.
"""

import functools
import logging
import logging.handlers
import sys
import time
import uuid
from contextlib import AbstractContextManager
from pathlib import Path
from typing import List, Optional

import structlog
import colorlog
from structlog.typing import Processor

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 5

LEVEL_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("googleapiclient.discovery_cache", "google_auth_httplib2")


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None
) -> None:
    """Configure structlog and the root handlers.

    Arguments left as None fall back to the LOG_* application settings.
    Calling this again replaces the previous handlers.
    """
    from ..config.settings import get_settings

    defaults = get_settings().logging
    level = getattr(logging, (log_level or defaults.level).upper())
    format_type = (log_format or defaults.format).lower()
    file_path = log_file or defaults.file_path

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    structlog.configure(
        processors=_build_processors(format_type),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger.addHandler(_console_handler(level))
    if file_path:
        root_logger.addHandler(_file_handler(file_path, level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def _build_processors(format_type: str) -> List[Processor]:
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Plain text; the console handler adds color
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return processors


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(colorlog.ColoredFormatter(
        "%(log_color)s%(message)s",
        reset=True,
        log_colors=LEVEL_COLORS
    ))
    return handler


def _file_handler(file_path: str, level: int) -> logging.Handler:
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        file_path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8"
    )
    handler.setLevel(level)
    # One rendered event per line
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def pass_context(direction: str) -> AbstractContextManager:
    """Bind the direction and a short pass id to every event logged inside."""
    return structlog.contextvars.bound_contextvars(
        direction=direction,
        pass_id=uuid.uuid4().hex[:8]
    )


def log_async_execution_time(func):
    """Log how long a coroutine took, at DEBUG on success and ERROR on failure."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        started = time.perf_counter()

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            logger.error(
                "Timed call failed",
                function=func.__qualname__,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
                error=str(e)
            )
            raise

        logger.debug(
            "Timed call finished",
            function=func.__qualname__,
            duration_ms=round((time.perf_counter() - started) * 1000, 1)
        )
        return result

    return wrapper
