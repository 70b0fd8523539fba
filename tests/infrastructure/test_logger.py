#!/usr/bin/env python3
"""Tests for the Logger module."""

import io
import logging
import uuid

import pytest

from restream.infrastructure.logger import LogLevel, Logger, get_logger, set_global_logger


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def logger(stream):
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    return Logger(name=f"restream.test.{uuid.uuid4().hex[:8]}", level=LogLevel.DEBUG, handlers=[handler])


class TestLogLevel:
    """Tests for LogLevel enum."""

    def test_log_levels(self):
        """Test log level values match Python logging."""
        assert LogLevel.DEBUG == logging.DEBUG
        assert LogLevel.INFO == logging.INFO
        assert LogLevel.WARNING == logging.WARNING
        assert LogLevel.ERROR == logging.ERROR
        assert LogLevel.CRITICAL == logging.CRITICAL


class TestLogger:
    """Tests for Logger."""

    def test_message_with_context(self, logger, stream):
        """Test context renders as key=value pairs after the message."""
        logger.info("Channel registered", channel="demo", size=3)
        assert stream.getvalue() == "INFO Channel registered | channel=demo size=3\n"

    def test_message_without_context(self, logger, stream):
        logger.warning("plain")
        assert stream.getvalue() == "WARNING plain\n"

    def test_level_filtering(self, logger, stream):
        """Test messages below the level are dropped."""
        logger.set_level("warning")
        logger.info("hidden")
        logger.error("shown")
        assert stream.getvalue() == "ERROR shown\n"
        assert logger.get_level() == LogLevel.WARNING
        assert not logger.is_enabled_for("info")
        assert logger.is_enabled_for(LogLevel.ERROR)

    def test_invalid_level(self, logger):
        with pytest.raises(KeyError):
            logger.set_level("verbose")

    def test_add_context(self, logger, stream):
        """Test pushed context applies only inside the block."""
        with logger.add_context(identifier="app.views"):
            logger.debug("inside", channel="demo")
        logger.debug("outside")

        lines = stream.getvalue().splitlines()
        assert lines == [
            "DEBUG inside | identifier=app.views channel=demo",
            "DEBUG outside",
        ]

    def test_exception(self, logger, stream):
        """Test exceptions log with type and traceback."""
        try:
            raise ValueError("boom")
        except ValueError as e:
            logger.exception("Failed", e, channel="demo")

        output = stream.getvalue()
        assert "exception_type=ValueError" in output
        assert "exception_message=boom" in output
        assert "Traceback" in output

    def test_does_not_propagate(self, logger):
        assert logger.logger.propagate is False

    def test_default_console_handler(self):
        logger = Logger(name=f"restream.test.{uuid.uuid4().hex[:8]}")
        assert len(logger.logger.handlers) == 1
        assert isinstance(logger.logger.handlers[0], logging.StreamHandler)

    def test_file_handler(self, logger, temp_dir):
        """Test the rotating file handler writes formatted lines."""
        handler = logger.create_file_handler(temp_dir / "restream.log")
        logger.add_handler(handler)
        try:
            logger.info("to file", channel="demo")
        finally:
            logger.remove_handler(handler)
            handler.close()

        assert "INFO - to file | channel=demo" in (temp_dir / "restream.log").read_text()


class TestGlobalLogger:
    """Tests for get_logger and set_global_logger."""

    def test_get_logger_is_cached(self):
        assert get_logger() is get_logger()
        assert get_logger().name == "restream"

    def test_loggers_by_name(self):
        name = f"restream.test.{uuid.uuid4().hex[:8]}"
        assert get_logger(name) is not get_logger()
        assert get_logger(name).name == name

    def test_set_global_logger(self, logger):
        set_global_logger(logger)
        assert get_logger(logger.name) is logger
