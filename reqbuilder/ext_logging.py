"""
Logging setup for the ``reqbuilder`` logger tree.

``init_logging`` only touches the ``reqbuilder`` logger: the root logger and
the loggers of other libraries (httpx included) stay as the application
configured them.
"""

import logging
import os
import uuid
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler

from reqbuilder.configs import BuilderConfig, builder_config

LOGGER_NAME = "reqbuilder"

trace_id_var: ContextVar[str | None] = ContextVar("reqbuilder_trace_id", default=None)

# handlers added by init_logging, replaced on the next call
_handlers: list[logging.Handler] = []


def trace_id_generator() -> str:
    return uuid.uuid4().hex


class TraceIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = trace_id_var.get() or ""
        return True


def _build_handlers(config: BuilderConfig) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.LOG_FILE:
        log_dir = os.path.dirname(config.LOG_FILE)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                config.LOG_FILE,
                maxBytes=config.LOG_FILE_MAX_SIZE * 1024 * 1024,
                backupCount=config.LOG_FILE_BACKUP_COUNT,
                encoding="utf-8",
            )
        )
    return handlers


def init_logging(config: BuilderConfig | None = None) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the ``reqbuilder`` logger.

    Calling it again replaces the handlers from the previous call.
    """
    config = config or builder_config
    logger = logging.getLogger(LOGGER_NAME)

    for handler in _handlers:
        logger.removeHandler(handler)
        handler.close()
    _handlers.clear()

    formatter = logging.Formatter(config.LOG_FORMAT, config.LOG_DATEFORMAT)
    for handler in _build_handlers(config):
        # handler filters also see records from child loggers
        handler.addFilter(TraceIdFilter())
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        _handlers.append(handler)

    logger.setLevel(config.LOG_LEVEL)
    logger.propagate = config.LOG_PROPAGATE
    return logger
