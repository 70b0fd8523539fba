"""Restream Stream Layer.

Channels, the registry binding them to stream kinds, and the read-only
wrappers that serve "<channel>://<raw path>" uris.
"""

from .channel import (
    Channel,
    ChannelRegistry,
    get_registry,
    registry_from_config,
    set_registry,
)
from .errors import (
    AccessError,
    NotAcceptableError,
    NotFoundError,
    NotReadableError,
    StreamCreatingError,
    StreamError,
    StreamErrorCode,
    StreamOpenError,
)
from .host import StreamHost, get_stream_host, set_stream_host
from .wrapper import ReadStreamWrapper, StreamState, StreamWrapper, parse_virtual_path

__all__ = [
    # Channel exports
    "Channel",
    "ChannelRegistry",
    "get_registry",
    "set_registry",
    "registry_from_config",
    # Host exports
    "StreamHost",
    "get_stream_host",
    "set_stream_host",
    # Wrapper exports
    "StreamWrapper",
    "ReadStreamWrapper",
    "StreamState",
    "parse_virtual_path",
    # Error exports
    "StreamErrorCode",
    "StreamError",
    "StreamCreatingError",
    "StreamOpenError",
    "AccessError",
    "NotFoundError",
    "NotReadableError",
    "NotAcceptableError",
]
