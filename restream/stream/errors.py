"""Exceptions raised by channels, the registry and the stream wrappers.

Every exception carries two codes:
- ``code``: the StreamErrorCode naming the adapter operation involved
- ``error_code``: the package-wide ErrorCode classifying the failure
"""

from enum import IntEnum
from typing import Optional

from restream.core.constants import ErrorCode


class StreamErrorCode(IntEnum):
    """Adapter operation in which an error was raised."""

    GENERIC = 0x0000
    CAST = 0x0001
    SET_OPTION = 0x0002
    METADATA = 0x0003
    UNLINK = 0x0004
    RENAME = 0x0005
    MKDIR = 0x0006
    RMDIR = 0x0007
    OPENDIR = 0x0008
    READDIR = 0x0009
    REWINDDIR = 0x000A
    CLOSEDIR = 0x000B
    LOCK = 0x000C
    URL_STAT = 0x000D
    OPEN = 0x000E
    READ = 0x000F
    EOF = 0x0010
    STAT = 0x0011
    CLOSE = 0x0012
    TELL = 0x0013
    SEEK = 0x0014
    FLUSH = 0x0015
    WRITE = 0x0016
    TRUNCATE = 0x0017


class StreamError(Exception):
    """Base error for the stream package."""

    default_error_code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: StreamErrorCode = StreamErrorCode.GENERIC,
        error_code: Optional[ErrorCode] = None,
    ):
        self.message = message
        self.code = code
        self.error_code = error_code if error_code is not None else self.default_error_code
        super().__init__(message)


class StreamCreatingError(StreamError):
    """A channel name is already claimed, or no channel is bound to it."""

    default_error_code = ErrorCode.CONFLICT


class StreamOpenError(StreamError):
    """A virtual path could not be opened."""

    default_error_code = ErrorCode.INVALID_INPUT

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None):
        super().__init__(message, StreamErrorCode.OPEN, error_code)


class AccessError(StreamError):
    """The raw path behind a virtual path cannot be materialized."""

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(message, StreamErrorCode.OPEN)


class NotFoundError(AccessError):
    """The raw path does not name an existing regular file."""

    default_error_code = ErrorCode.NOT_FOUND


class NotReadableError(AccessError):
    """The raw path exists but cannot be read."""

    default_error_code = ErrorCode.PERMISSION_DENIED


class NotAcceptableError(StreamError):
    """The read-only adapter was asked to perform an unsupported operation."""

    default_error_code = ErrorCode.INVALID_INPUT

    def __init__(self, owner: str, operation: str, code: StreamErrorCode):
        self.owner = owner
        self.operation = operation
        super().__init__(f"{owner}.{operation} is not acceptable", code)
