#!/usr/bin/env python3
"""Read-only stream wrappers over channel output.

A wrapper is the virtual-I/O adapter a StreamHost hands back for
"<channel>://<raw path>" uris. ReadStreamWrapper materializes the whole
rewritten source into memory when opened and then behaves like a
seekable, statable, read-only file.

Lifecycle:
    CLOSED --open()--> OPEN --close()--> CLOSED

Every write, directory, locking and metadata operation is refused with
NotAcceptableError naming the operation.

Example:
    >>> wrapper = ReadStreamWrapper(registry)
    >>> wrapper.open("demo:///srv/app/module.py")
    True
    >>> wrapper.read()
    b'hello!'
    >>> wrapper.eof()
    True
"""

import dataclasses
import inspect
import io
import os
from enum import Enum
from typing import Optional, Tuple

from restream.core.constants import (
    VIRTUAL_PATH_SEPARATOR,
    FileAttributes,
    Limits,
    SplitPolicy,
)
from restream.infrastructure.logger import get_logger
from restream.stream.errors import (
    NotAcceptableError,
    StreamError,
    StreamErrorCode,
    StreamOpenError,
)

# Files below this directory belong to restream itself
_PACKAGE_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

_WRITE_MODE_FLAGS = ("w", "a", "x", "+")


class StreamState(Enum):
    """Adapter lifecycle state."""

    CLOSED = "closed"
    OPEN = "open"


def parse_virtual_path(uri: str, policy: SplitPolicy = SplitPolicy.FIRST) -> Tuple[str, str]:
    """Split a virtual path into channel name and raw path.

    Args:
        uri: "<channel>://<raw path>"
        policy: FIRST keeps any later "://" in the raw path,
            STRICT rejects uris where "://" occurs more than once

    Returns:
        (channel name, raw path)

    Raises:
        StreamOpenError: If the separator is missing, repeated under STRICT,
            or the channel name is empty
    """
    if policy is SplitPolicy.STRICT:
        chunks = uri.split(VIRTUAL_PATH_SEPARATOR)
        if len(chunks) != 2:
            raise StreamOpenError(f'Bad protocol format "{uri}"')
        name, pathname = chunks
    else:
        name, separator, pathname = uri.partition(VIRTUAL_PATH_SEPARATOR)
        if not separator:
            raise StreamOpenError(f'Bad protocol format "{uri}"')

    if not name:
        raise StreamOpenError(f'Bad protocol format "{uri}"')

    return name, pathname


def _caller_directory() -> str:
    """Directory of the nearest calling frame outside restream."""
    frame = inspect.currentframe()
    try:
        while frame is not None:
            filename = frame.f_code.co_filename
            if not filename.startswith("<"):
                filename = os.path.abspath(filename)
                if not filename.startswith(_PACKAGE_ROOT + os.sep):
                    return os.path.dirname(filename)
            frame = frame.f_back
    finally:
        del frame
    return os.getcwd()


class StreamWrapper:
    """Base adapter refusing every operation.

    Subclasses override the operations they support; everything left
    untouched raises NotAcceptableError.
    """

    def _not_acceptable(self, operation: str, code: StreamErrorCode) -> NotAcceptableError:
        return NotAcceptableError(type(self).__name__, operation, code)

    def cast(self, cast_as: int):
        raise self._not_acceptable("cast", StreamErrorCode.CAST)

    def set_option(self, option: int, arg1: int, arg2: int) -> bool:
        raise self._not_acceptable("set_option", StreamErrorCode.SET_OPTION)

    def metadata(self, path: str, option: int, value) -> bool:
        raise self._not_acceptable("metadata", StreamErrorCode.METADATA)

    def unlink(self, path: str) -> bool:
        raise self._not_acceptable("unlink", StreamErrorCode.UNLINK)

    def rename(self, source: str, destination: str) -> bool:
        raise self._not_acceptable("rename", StreamErrorCode.RENAME)

    def mkdir(self, path: str, mode: int = 0o777, options: int = 0) -> bool:
        raise self._not_acceptable("mkdir", StreamErrorCode.MKDIR)

    def rmdir(self, path: str, options: int = 0) -> bool:
        raise self._not_acceptable("rmdir", StreamErrorCode.RMDIR)

    def opendir(self, path: str, options: int = 0) -> bool:
        raise self._not_acceptable("opendir", StreamErrorCode.OPENDIR)

    def readdir(self):
        raise self._not_acceptable("readdir", StreamErrorCode.READDIR)

    def rewinddir(self) -> bool:
        raise self._not_acceptable("rewinddir", StreamErrorCode.REWINDDIR)

    def closedir(self) -> bool:
        raise self._not_acceptable("closedir", StreamErrorCode.CLOSEDIR)

    def lock(self, operation: int) -> bool:
        raise self._not_acceptable("lock", StreamErrorCode.LOCK)

    def url_stat(self, path: str, flags: int = 0) -> FileAttributes:
        raise self._not_acceptable("url_stat", StreamErrorCode.URL_STAT)

    def open(self, uri: str, mode: str = "rb", use_path: bool = False) -> bool:
        raise self._not_acceptable("open", StreamErrorCode.OPEN)

    def read(self, length: int = -1) -> bytes:
        raise self._not_acceptable("read", StreamErrorCode.READ)

    def eof(self) -> bool:
        raise self._not_acceptable("eof", StreamErrorCode.EOF)

    def stat(self) -> FileAttributes:
        raise self._not_acceptable("stat", StreamErrorCode.STAT)

    def close(self) -> None:
        raise self._not_acceptable("close", StreamErrorCode.CLOSE)

    def tell(self) -> int:
        raise self._not_acceptable("tell", StreamErrorCode.TELL)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> bool:
        raise self._not_acceptable("seek", StreamErrorCode.SEEK)

    def flush(self) -> bool:
        raise self._not_acceptable("flush", StreamErrorCode.FLUSH)

    def write(self, data: bytes) -> int:
        raise self._not_acceptable("write", StreamErrorCode.WRITE)

    def truncate(self, size: int) -> bool:
        raise self._not_acceptable("truncate", StreamErrorCode.TRUNCATE)


class ReadStreamWrapper(StreamWrapper):
    """In-memory, read-only view of a channel's rewritten bytes.

    One instance serves exactly one open/close cycle.
    """

    def __init__(self, registry, split_policy: Optional[SplitPolicy] = None):
        """Initialize the wrapper.

        Args:
            registry: ChannelRegistry used to look up the channel
            split_policy: Virtual path split policy (registry's if None)
        """
        self._registry = registry
        self._split_policy = SplitPolicy(
            split_policy if split_policy is not None else registry.split_policy
        )
        self._logger = get_logger()

        self.state = StreamState.CLOSED
        self.channel_name: Optional[str] = None
        self.pathname: Optional[str] = None
        self._buffer: Optional[io.BytesIO] = None
        self._size = 0

    def open(self, uri: str, mode: str = "rb", use_path: bool = False) -> bool:
        """Materialize the channel output for uri.

        Args:
            uri: "<channel>://<raw path>"
            mode: Open mode; only read modes are accepted
            use_path: Re-root a missing raw path at the caller's directory

        Returns:
            True once the buffer is ready

        Raises:
            StreamOpenError: Malformed uri or adapter already open
            StreamCreatingError: No channel bound to the name
            NotFoundError: Raw path is not an existing file
            NotReadableError: Raw path cannot be read
            NotAcceptableError: Write mode requested
        """
        if self.state is StreamState.OPEN:
            raise StreamOpenError(f"{type(self).__name__} is already open")

        if any(flag in mode for flag in _WRITE_MODE_FLAGS):
            raise self._not_acceptable("write", StreamErrorCode.WRITE)

        name, pathname = parse_virtual_path(uri, self._split_policy)
        channel = self._registry.get(name)

        if use_path and not os.path.isfile(pathname):
            pathname = os.path.join(_caller_directory(), pathname)

        content = channel.read(pathname)

        self._buffer = io.BytesIO(content)
        self._size = len(content)
        self.channel_name = name
        self.pathname = pathname
        self.state = StreamState.OPEN

        self._logger.debug("Stream opened", channel=name, path=pathname, size=self._size)
        return True

    def _require_open(self, operation: str, code: StreamErrorCode) -> io.BytesIO:
        if self.state is not StreamState.OPEN or self._buffer is None:
            raise StreamError(f"{type(self).__name__}.{operation} on a closed stream", code)
        return self._buffer

    def read(self, length: int = -1) -> bytes:
        """Read up to length bytes; empty bytes once the end is reached."""
        buffer = self._require_open("read", StreamErrorCode.READ)
        if length is None or length < 0:
            return buffer.read()
        return buffer.read(length)

    def eof(self) -> bool:
        buffer = self._require_open("eof", StreamErrorCode.EOF)
        return buffer.tell() >= self._size

    def _raw_stat(self) -> FileAttributes:
        return FileAttributes(
            st_mode=Limits.MEMORY_FILE_MODE,
            st_ino=0,
            st_dev=0,
            st_nlink=1,
            st_uid=0,
            st_gid=0,
            st_size=self._size,
            st_atime=0,
            st_mtime=0,
            st_ctime=0,
        )

    def stat(self) -> FileAttributes:
        """Attributes of the buffer, modification time shifted by one.

        The shift marks the result as synthesized content.
        """
        self._require_open("stat", StreamErrorCode.STAT)
        raw = self._raw_stat()
        return dataclasses.replace(raw, st_mtime=raw.st_mtime + Limits.STAT_MTIME_OFFSET)

    def tell(self) -> int:
        return self._require_open("tell", StreamErrorCode.TELL).tell()

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> bool:
        """Move the cursor.

        Returns:
            False, leaving the cursor in place, if the target is negative
        """
        buffer = self._require_open("seek", StreamErrorCode.SEEK)

        if whence == os.SEEK_SET:
            target = offset
        elif whence == os.SEEK_CUR:
            target = buffer.tell() + offset
        elif whence == os.SEEK_END:
            target = self._size + offset
        else:
            return False

        if target < 0:
            return False

        buffer.seek(target)
        return True

    def close(self) -> None:
        """Release the buffer."""
        buffer = self._require_open("close", StreamErrorCode.CLOSE)
        buffer.close()
        self._buffer = None
        self.state = StreamState.CLOSED
        self._logger.debug("Stream closed", channel=self.channel_name, path=self.pathname)

    def __enter__(self) -> "ReadStreamWrapper":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.state is StreamState.OPEN:
            self.close()

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} channel={self.channel_name} "
            f"path={self.pathname} {self.state.value}>"
        )
