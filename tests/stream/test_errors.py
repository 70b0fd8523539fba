#!/usr/bin/env python3
"""Tests for stream exceptions."""

from restream.core.constants import ErrorCode
from restream.stream.errors import (
    AccessError,
    NotAcceptableError,
    NotFoundError,
    NotReadableError,
    StreamCreatingError,
    StreamError,
    StreamErrorCode,
    StreamOpenError,
)


class TestHierarchy:
    """Tests for the exception hierarchy."""

    def test_all_derive_from_stream_error(self):
        for cls in (StreamCreatingError, StreamOpenError, AccessError, NotAcceptableError):
            assert issubclass(cls, StreamError)

    def test_access_errors(self):
        assert issubclass(NotFoundError, AccessError)
        assert issubclass(NotReadableError, AccessError)
        assert not issubclass(NotFoundError, NotReadableError)


class TestCodes:
    """Tests for operation and error codes."""

    def test_defaults(self):
        error = StreamError("boom")
        assert error.message == "boom"
        assert error.code == StreamErrorCode.GENERIC
        assert error.error_code == ErrorCode.INTERNAL_ERROR

    def test_creating_error(self):
        assert StreamCreatingError("taken").error_code == ErrorCode.CONFLICT
        error = StreamCreatingError("missing", error_code=ErrorCode.NOT_FOUND)
        assert error.error_code == ErrorCode.NOT_FOUND

    def test_open_error(self):
        error = StreamOpenError("bad")
        assert error.code == StreamErrorCode.OPEN
        assert error.error_code == ErrorCode.INVALID_INPUT

    def test_access_error_codes(self):
        assert NotFoundError("x", "/a").error_code == ErrorCode.NOT_FOUND
        assert NotReadableError("x", "/a").error_code == ErrorCode.PERMISSION_DENIED
        assert NotFoundError("x", "/a").path == "/a"

    def test_not_acceptable(self):
        error = NotAcceptableError("Wrapper", "mkdir", StreamErrorCode.MKDIR)
        assert str(error) == "Wrapper.mkdir is not acceptable"
        assert error.owner == "Wrapper"
        assert error.code == StreamErrorCode.MKDIR

    def test_operation_codes_are_distinct(self):
        values = [code.value for code in StreamErrorCode]
        assert len(values) == len(set(values))
        assert StreamErrorCode.TRUNCATE == 0x17
