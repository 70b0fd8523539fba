"""Shortcuts for common channel setups."""

from typing import Optional

from restream.core.constants import OpenHook
from restream.stream.channel import Channel, ChannelRegistry, get_registry


def restream(name: str, hook: OpenHook, registry: Optional[ChannelRegistry] = None) -> Channel:
    """Create (or fetch) channel name and add hook as its content supplier.

    Example:
        >>> restream("greeting", lambda path: b"print('hi')")
        >>> exec(get_stream_host().open("greeting://anything").read())
        hi
    """
    registry = registry if registry is not None else get_registry()
    return registry.create(name).on_open(hook)
