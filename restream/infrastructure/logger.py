#!/usr/bin/env python3
"""Structured logging for restream.

Messages carry key=value context after a " | " marker:

    Module routed | identifier=myapp.views channel=stream3fa1

Context given to a single call is merged over context pushed with
add_context(), which is kept per thread so concurrent imports do not
mix their identifiers.

Example:
    >>> logger = Logger(level=LogLevel.INFO)
    >>> logger.info("Channel registered", channel="demo")
    >>> with logger.add_context(identifier="app.views"):
    ...     logger.debug("Routing module")
"""

import logging
import logging.handlers
import threading
from contextlib import contextmanager
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONTEXT_MARKER = " | "


class LogLevel(IntEnum):
    """Log levels matching Python's logging module."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


def _formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


class Logger:
    """Wrapper around a standard logger that renders key=value context."""

    # One context stack per thread, shared by every Logger
    _local = threading.local()

    def __init__(
        self,
        name: str = "restream",
        level: Union[LogLevel, str] = LogLevel.INFO,
        handlers: Optional[List[logging.Handler]] = None,
    ):
        """Initialize logger.

        Replaces any handlers already attached to the standard logger of
        the same name.

        Args:
            name: Standard logger name
            level: Minimum level emitted
            handlers: Output handlers (a stderr handler if None)
        """
        self.name = name
        self.logger = logging.getLogger(name)
        self.set_level(level)

        self.logger.handlers.clear()
        for handler in handlers if handlers is not None else [self._create_console_handler()]:
            self.logger.addHandler(handler)

        self.logger.propagate = False

    def _create_console_handler(self) -> logging.StreamHandler:
        handler = logging.StreamHandler()
        handler.setFormatter(_formatter())
        return handler

    def create_file_handler(
        self,
        filename: Union[str, Path],
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> logging.handlers.RotatingFileHandler:
        """Create a rotating file handler using the console format.

        Args:
            filename: Log file path
            max_bytes: Size that triggers rotation
            backup_count: Rotated files kept

        Returns:
            Handler ready for add_handler()
        """
        handler = logging.handlers.RotatingFileHandler(
            filename, maxBytes=max_bytes, backupCount=backup_count
        )
        handler.setFormatter(_formatter())
        return handler

    def add_handler(self, handler: logging.Handler) -> None:
        self.logger.addHandler(handler)

    def remove_handler(self, handler: logging.Handler) -> None:
        self.logger.removeHandler(handler)

    def set_level(self, level: Union[LogLevel, str]) -> None:
        """Set the minimum level; names are case-insensitive.

        Raises:
            KeyError: If level names no LogLevel
        """
        if isinstance(level, str):
            level = LogLevel[level.upper()]
        self.logger.setLevel(level)

    def get_level(self) -> LogLevel:
        return LogLevel(self.logger.level)

    def is_enabled_for(self, level: Union[LogLevel, str]) -> bool:
        if isinstance(level, str):
            level = LogLevel[level.upper()]
        return self.logger.isEnabledFor(level)

    @classmethod
    def _stack(cls) -> List[Dict[str, Any]]:
        if not hasattr(cls._local, "stack"):
            cls._local.stack = []
        return cls._local.stack

    @contextmanager
    def add_context(self, **kwargs) -> Iterator[None]:
        """Attach kwargs to every message logged inside the block.

        Example:
            >>> with logger.add_context(channel="demo"):
            ...     logger.info("Materializing")
        """
        stack = self._stack()
        stack.append(kwargs)
        try:
            yield
        finally:
            stack.pop()

    def _render(self, msg: str, context: Dict[str, Any]) -> str:
        merged: Dict[str, Any] = {}
        for pushed in self._stack():
            merged.update(pushed)
        merged.update(context)

        if not merged:
            return msg
        return msg + CONTEXT_MARKER + " ".join(f"{key}={value}" for key, value in merged.items())

    def _log(self, level: LogLevel, msg: str, context: Dict[str, Any], **kwargs) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, self._render(msg, context), **kwargs)

    def debug(self, msg: str, **context) -> None:
        self._log(LogLevel.DEBUG, msg, context)

    def info(self, msg: str, **context) -> None:
        self._log(LogLevel.INFO, msg, context)

    def warning(self, msg: str, **context) -> None:
        self._log(LogLevel.WARNING, msg, context)

    def error(self, msg: str, **context) -> None:
        self._log(LogLevel.ERROR, msg, context)

    def exception(self, msg: str, exc: BaseException, **context) -> None:
        """Log msg at ERROR with the traceback of exc.

        Args:
            msg: Log message
            exc: Exception whose traceback is attached
            **context: Additional key-value context
        """
        context["exception_type"] = type(exc).__name__
        context["exception_message"] = str(exc)
        self._log(LogLevel.ERROR, msg, context, exc_info=exc)


# Logger instances by name
_loggers: Dict[str, Logger] = {}


def get_logger(name: str = "restream") -> Logger:
    """Return the Logger registered under name, creating it on first use."""
    if name not in _loggers:
        _loggers[name] = Logger(name=name)
    return _loggers[name]


def set_global_logger(logger: Logger) -> None:
    """Use logger for every get_logger() call with its name.

    Args:
        logger: Logger to register
    """
    _loggers[logger.name] = logger
