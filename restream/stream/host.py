#!/usr/bin/env python3
"""Scheme table that virtual paths are opened through.

The host keeps the set of active stream kinds: a fixed tuple of built-in
schemes it owns, plus the wrapper factories that channel registries
activate. open() dispatches "<kind>://..." uris to the wrapper registered
for that kind and falls back to the filesystem for plain paths and
file:// uris.

Example:
    >>> host = StreamHost()
    >>> host.register_wrapper("demo", factory)
    True
    >>> with host.open("demo:///srv/app/module.py") as stream:
    ...     source = stream.read()
"""

import re
from typing import IO, Callable, Dict, Iterable, List, Optional, Union

from restream.core.constants import VIRTUAL_PATH_SEPARATOR, ErrorCode
from restream.infrastructure.logger import get_logger
from restream.stream.errors import StreamOpenError
from restream.stream.wrapper import StreamWrapper

WrapperFactory = Callable[[], StreamWrapper]

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")


class StreamHost:
    """Active stream kinds and the opener that dispatches on them.

    Built-in kinds are reserved: they can never be activated by a registry
    and unregister_wrapper() never removes them.
    """

    BUILTIN_KINDS = ("file", "data", "http", "https", "ftp", "zip")

    def __init__(self, builtin_kinds: Optional[Iterable[str]] = None):
        """Initialize the host.

        Args:
            builtin_kinds: Reserved scheme names (BUILTIN_KINDS if None)
        """
        self._builtin = tuple(builtin_kinds) if builtin_kinds is not None else self.BUILTIN_KINDS
        self._wrappers: Dict[str, WrapperFactory] = {}
        self._logger = get_logger()

    def kinds(self) -> List[str]:
        """Names of every active kind, built-ins first."""
        return list(self._builtin) + list(self._wrappers)

    def is_builtin(self, kind: str) -> bool:
        """Check whether kind is a reserved scheme."""
        return kind in self._builtin

    def register_wrapper(self, kind: str, factory: WrapperFactory) -> bool:
        """Activate a wrapper factory under kind.

        Args:
            kind: Scheme name
            factory: Zero-argument callable returning a fresh wrapper

        Returns:
            False if the kind is already active
        """
        if self.is_builtin(kind) or kind in self._wrappers:
            return False

        self._wrappers[kind] = factory
        self._logger.debug("Stream kind activated", kind=kind)
        return True

    def unregister_wrapper(self, kind: str) -> bool:
        """Deactivate a wrapper; built-in kinds are left alone.

        Returns:
            True if a wrapper was removed
        """
        if kind not in self._wrappers:
            return False

        del self._wrappers[kind]
        self._logger.debug("Stream kind deactivated", kind=kind)
        return True

    def open(
        self, uri: str, mode: str = "rb", use_path: bool = False
    ) -> Union[StreamWrapper, IO]:
        """Open uri through the wrapper active for its scheme.

        Args:
            uri: "<kind>://<path>" or a plain filesystem path
            mode: Open mode
            use_path: Resolve a missing raw path against the caller's directory

        Returns:
            An open wrapper, or a regular file object for filesystem paths

        Raises:
            StreamOpenError: If the scheme is reserved but has no opener
        """
        scheme, separator, rest = uri.partition(VIRTUAL_PATH_SEPARATOR)

        if not separator or not _SCHEME.match(scheme):
            return open(uri, mode)

        if scheme in self._wrappers:
            wrapper = self._wrappers[scheme]()
            wrapper.open(uri, mode, use_path)
            return wrapper

        if scheme == "file":
            return open(rest, mode)

        raise StreamOpenError(
            f'No wrapper is registered for "{scheme}{VIRTUAL_PATH_SEPARATOR}"',
            ErrorCode.NOT_FOUND,
        )


# Global stream host instance
_global_host: Optional[StreamHost] = None


def get_stream_host() -> StreamHost:
    """Get or create the process-wide stream host."""
    global _global_host
    if _global_host is None:
        _global_host = StreamHost()
    return _global_host


def set_stream_host(host: StreamHost) -> None:
    """Replace the process-wide stream host.

    Args:
        host: Host to use globally
    """
    global _global_host
    _global_host = host
