"""
Structured JSON logging for the daemon MCP service, built on structlog.

Every entry is one JSON object per line carrying ``event``, ``logger``,
``level`` and ``timestamp``; timed request entries add ``elapsed_ms``.
The daemon document body is never logged.
"""

import logging
import logging.handlers
import time
from typing import Any, List, Optional

import structlog

from common.config import Config

# Chatty third-party loggers and the level they are capped at
_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "httpx": logging.WARNING,
}


def _build_handlers(config: Config) -> List[logging.Handler]:
    """Console handler, plus a rotating file handler when ``save_to_file`` is set."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if config.save_to_file:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=config.log_file_path,
                maxBytes=config.max_log_file_size,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))
    return handlers


def setup_logging(config: Config) -> None:
    """
    Route structlog through stdlib logging with a JSON renderer.

    Args:
        config: Application configuration
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        handlers=_build_handlers(config),
        format="%(message)s",
        force=True,
    )

    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


class TimedLogger:
    """
    Context manager that logs one event with the time spent inside it.

    ``context`` stays mutable so the body can attach fields, such as the reply
    status, that are only known once the work is done.
    """

    def __init__(self, logger: structlog.BoundLogger, event: str, **context: Any):
        self.logger = logger
        self.event = event
        self.context = context
        self.start_time: Optional[float] = None

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.start_time is None:
            return
        elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        self.logger.info(event=self.event, elapsed_ms=round(elapsed_ms, 2), **self.context)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a configured structlog logger."""
    return structlog.get_logger(name)


def log_startup_message(message: str, **kwargs: Any) -> None:
    """Log a startup banner event through the structured logger."""
    get_logger("startup").info(event=message, **kwargs)
