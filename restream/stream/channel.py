#!/usr/bin/env python3
"""Named channels and the registry that binds them to stream kinds.

A channel is a named pair of hook chains. Reading a raw path through a
channel runs its open hooks until one supplies content (falling back to
the filesystem), then passes that content through every read hook in
registration order.

The registry maps channel names to channels and keeps the StreamHost in
sync: registering a channel activates a ReadStreamWrapper factory under
the channel's name, so "<name>://<raw path>" can be opened on the host.

Example:
    >>> registry = ChannelRegistry()
    >>> channel = registry.create("demo").on_read(lambda src: src + b"!")
    >>> channel.pathname("/srv/app/module.py")
    'demo:///srv/app/module.py'
"""

import functools
import os
import secrets
from typing import Dict, List, Optional, Set, Union

from restream.core.constants import (
    ANONYMOUS_CHANNEL_PREFIX,
    VIRTUAL_PATH_SEPARATOR,
    ConfigKey,
    ErrorCode,
    Limits,
    OpenHook,
    ReadHook,
    SplitPolicy,
)
from restream.core.validators import ensure_bytes
from restream.infrastructure.logger import get_logger
from restream.stream.errors import (
    NotFoundError,
    NotReadableError,
    StreamCreatingError,
)
from restream.stream.host import StreamHost, get_stream_host
from restream.stream.wrapper import ReadStreamWrapper


class Channel:
    """Named pipeline of open hooks and read hooks."""

    def __init__(self, name: str, registry: Optional["ChannelRegistry"] = None):
        """Initialize channel.

        Args:
            name: Channel name, used as the stream kind
            registry: Registry the channel belongs to (default registry if None)
        """
        self._name = name
        self._registry = registry
        self._open_hooks: List[OpenHook] = []
        self._read_hooks: List[ReadHook] = []
        self._logger = get_logger()

    @property
    def name(self) -> str:
        return self._name

    @property
    def open_hooks(self) -> List[OpenHook]:
        return list(self._open_hooks)

    @property
    def read_hooks(self) -> List[ReadHook]:
        return list(self._read_hooks)

    def is_registered(self) -> bool:
        """Check whether the channel's name is an active stream kind."""
        registry = self._registry if self._registry is not None else get_registry()
        return registry.exists(self._name)

    def on_open(self, hook: OpenHook) -> "Channel":
        """Append a content supplier.

        Args:
            hook: Callable taking the raw path and returning content, or
                None to defer to the next supplier

        Returns:
            This channel
        """
        self._open_hooks.append(hook)
        return self

    def on_read(self, hook: ReadHook) -> "Channel":
        """Append a content transform.

        Args:
            hook: Callable taking source bytes and returning new source

        Returns:
            This channel
        """
        self._read_hooks.append(hook)
        return self

    def pathname(self, raw: str) -> str:
        """Virtual path addressing raw through this channel."""
        return f"{self._name}{VIRTUAL_PATH_SEPARATOR}{raw}"

    def read(self, pathname: str) -> bytes:
        """Materialize the rewritten content of pathname.

        Args:
            pathname: Raw filesystem path

        Returns:
            Content after every read hook has been applied

        Raises:
            NotFoundError: No open hook supplied content and pathname is not a file
            NotReadableError: No open hook supplied content and pathname is unreadable
        """
        content = self._handle_open(pathname)

        for hook in self._read_hooks:
            content = ensure_bytes(hook(content))

        self._logger.debug(
            "Channel materialized",
            channel=self._name,
            path=pathname,
            size=len(content),
        )
        return content

    def _handle_open(self, pathname: str) -> bytes:
        for hook in self._open_hooks:
            result = hook(pathname)
            if result is not None:
                return ensure_bytes(result)

        if not os.path.isfile(pathname):
            raise NotFoundError(f'File "{pathname}" not found', pathname)

        if not os.access(pathname, os.R_OK):
            raise NotReadableError(f'File "{pathname}" is not readable', pathname)

        try:
            with open(pathname, "rb") as f:
                return f.read()
        except FileNotFoundError as e:
            raise NotFoundError(f'File "{pathname}" not found', pathname) from e
        except PermissionError as e:
            raise NotReadableError(f'File "{pathname}" is not readable', pathname) from e

    def __repr__(self) -> str:
        return (
            f"<Channel {self._name} open_hooks={len(self._open_hooks)} "
            f"read_hooks={len(self._read_hooks)}>"
        )


class ChannelRegistry:
    """Name-to-channel map kept in sync with a StreamHost.

    The registry only ever deactivates stream kinds it activated itself,
    so the host's built-in kinds and kinds claimed by other registries
    are left untouched.
    """

    def __init__(
        self,
        host: Optional[StreamHost] = None,
        split_policy: Union[SplitPolicy, str] = SplitPolicy.FIRST,
        name_complexity: int = Limits.DEFAULT_NAME_COMPLEXITY,
    ):
        """Initialize registry.

        Args:
            host: Stream host to activate kinds on (process-wide host if None)
            split_policy: How wrappers split virtual paths
            name_complexity: Default complexity of anonymous channel names
        """
        self.host = host if host is not None else get_stream_host()
        self.split_policy = SplitPolicy(split_policy)
        self.name_complexity = name_complexity
        self._channels: Dict[str, Channel] = {}
        self._activated: Set[str] = set()
        self._logger = get_logger()

    def create(self, name: str) -> Channel:
        """Return the channel bound to name, creating and registering it if absent.

        Raises:
            StreamCreatingError: If name is already an active stream kind
                not bound in this registry
        """
        if name in self._channels:
            return self._channels[name]

        return self.register(name, Channel(name, self))

    def create_anonymous(self, complexity: Optional[int] = None) -> Channel:
        """Create a channel under a freshly generated name.

        Args:
            complexity: Upper bound on the number of random bytes in the name
                (the registry's name_complexity if None)

        Returns:
            Registered channel named "stream<hex>"

        Raises:
            ValueError: If complexity is less than 1
            StreamCreatingError: If no free name was found
        """
        if complexity is None:
            complexity = self.name_complexity
        if complexity < 1:
            raise ValueError(f"Name complexity must be positive: {complexity}")

        for _ in range(Limits.MAX_NAME_ATTEMPTS):
            name = ANONYMOUS_CHANNEL_PREFIX + secrets.token_hex(secrets.randbelow(complexity) + 1)
            if name not in self._channels and not self.exists(name):
                return self.create(name)

        raise StreamCreatingError(
            f"Could not generate a free channel name in {Limits.MAX_NAME_ATTEMPTS} attempts"
        )

    def register(self, name: str, channel: Channel) -> Channel:
        """Bind channel to name and activate the stream kind.

        Args:
            name: Channel name
            channel: Channel to bind

        Returns:
            The registered channel

        Raises:
            StreamCreatingError: If name is already an active stream kind;
                the registry is left as it was
        """
        previous = self._channels.get(name)
        self._channels[name] = channel

        if self.exists(name) or not self.host.register_wrapper(name, self._wrapper_factory()):
            if previous is None:
                del self._channels[name]
            else:
                self._channels[name] = previous
            raise StreamCreatingError(
                f'Could not create stream "{name}{VIRTUAL_PATH_SEPARATOR}", '
                f"because protocol already registered"
            )

        if channel._registry is None:
            channel._registry = self

        self._activated.add(name)
        self._logger.debug("Channel registered", channel=name)
        return channel

    def unregister(self, name: str) -> bool:
        """Drop the channel bound to name.

        Returns:
            False if this registry never bound name
        """
        if name not in self._channels:
            return False

        del self._channels[name]

        if name in self._activated:
            self._activated.discard(name)
            self.host.unregister_wrapper(name)

        self._logger.debug("Channel unregistered", channel=name)
        return True

    def get(self, name: str) -> Channel:
        """Return the channel bound to name.

        Raises:
            StreamCreatingError: If no channel is bound to name
        """
        try:
            return self._channels[name]
        except KeyError:
            raise StreamCreatingError(
                f'Protocol "{name}{VIRTUAL_PATH_SEPARATOR}" should be registered',
                error_code=ErrorCode.NOT_FOUND,
            ) from None

    def exists(self, name: str) -> bool:
        """Check whether name is an active stream kind on the host."""
        return name in self.host.kinds()

    def names(self) -> List[str]:
        return list(self._channels)

    def _wrapper_factory(self):
        return functools.partial(ReadStreamWrapper, self)

    def __contains__(self, name: str) -> bool:
        return name in self._channels

    def __len__(self) -> int:
        return len(self._channels)


def registry_from_config(config, host: Optional[StreamHost] = None) -> ChannelRegistry:
    """Build a ChannelRegistry from the restream.channel section of a ConfigManager.

    Args:
        config: ConfigManager instance
        host: Stream host (process-wide host if None)

    Returns:
        Configured registry
    """
    policy = config.get(ConfigKey.CHANNEL_SPLIT_POLICY, SplitPolicy.FIRST.value)
    return ChannelRegistry(
        host=host,
        split_policy=SplitPolicy(str(policy).lower()),
        name_complexity=int(
            config.get(ConfigKey.CHANNEL_NAME_COMPLEXITY, Limits.DEFAULT_NAME_COMPLEXITY)
        ),
    )


# Global registry instance
_global_registry: Optional[ChannelRegistry] = None


def get_registry() -> ChannelRegistry:
    """Get or create the process-wide channel registry."""
    global _global_registry
    if _global_registry is None:
        _global_registry = ChannelRegistry()
    return _global_registry


def set_registry(registry: ChannelRegistry) -> None:
    """Replace the process-wide channel registry.

    Args:
        registry: Registry to use globally
    """
    global _global_registry
    _global_registry = registry
