#!/usr/bin/env python3
"""Routing filter: a conjunction bound to its own anonymous channel.

Modules matching the filter are read through the channel, which applies
every transform registered with then() in order. Sources below the
vendor directory are excluded unless with_vendors() is called.

Example:
    >>> routing = RoutingFilter("/srv/venv/lib/site-packages", registry)
    >>> routing.namespace("myapp").then(lambda src: src.replace(b"DEBUG = True", b"DEBUG = False"))
    >>> routing.pathname("/srv/myapp/settings.py")
    'stream3fa1...:///srv/myapp/settings.py'
"""

import hashlib
from typing import List, Optional

from restream.core.constants import PATH_SEPARATOR, Limits, ReadHook
from restream.core.validators import ensure_bytes, normalize_path, normalize_separators
from restream.filters.base import Conjunction
from restream.infrastructure.logger import get_logger
from restream.stream.channel import Channel, ChannelRegistry, get_registry


def is_within(path: str, root: str) -> bool:
    """Check whether path is root or lies below it."""
    root = root.rstrip(PATH_SEPARATOR)
    return path == root or path.startswith(root + PATH_SEPARATOR)


class RoutingFilter(Conjunction):
    """Conjunction that routes matching sources through a private channel."""

    def __init__(
        self,
        vendor_dir: str,
        registry: Optional[ChannelRegistry] = None,
        complexity: int = Limits.FILTER_NAME_COMPLEXITY,
    ):
        """Initialize routing filter.

        Args:
            vendor_dir: Root of third-party packages
            registry: Registry to create the channel in (default registry if None)
            complexity: Name complexity of the anonymous channel
        """
        super().__init__()
        self._vendor_dir = normalize_path(vendor_dir)
        self._registry = registry if registry is not None else get_registry()
        self._vendors_allowed = False
        self._then: List[ReadHook] = []
        self._logger = get_logger()

        self._channel = self._registry.create_anonymous(complexity)
        self._channel.on_read(self._apply_transforms)

        # Must stay the first node
        self.where(self._vendor_guard, "vendor_guard")

    @property
    def channel(self) -> Channel:
        return self._channel

    @property
    def vendor_dir(self) -> str:
        return self._vendor_dir

    @property
    def transforms(self) -> List[ReadHook]:
        return list(self._then)

    def _vendor_guard(self, identifier: str, path: str) -> bool:
        if self._vendors_allowed:
            return True
        return not is_within(normalize_separators(path), self._vendor_dir)

    def _apply_transforms(self, content: bytes) -> bytes:
        for transform in self._then:
            content = ensure_bytes(transform(content))
        return content

    def with_vendors(self) -> "RoutingFilter":
        """Let sources below the vendor directory match."""
        self._vendors_allowed = True
        return self

    def except_vendors(self) -> "RoutingFilter":
        """Exclude sources below the vendor directory (the default)."""
        self._vendors_allowed = False
        return self

    def then(self, transform: ReadHook) -> "RoutingFilter":
        """Append a transform applied to every source read through the channel.

        Args:
            transform: Callable taking source bytes and returning new source

        Returns:
            This filter
        """
        self._then.append(transform)
        return self

    def through(self, cache, transform: ReadHook) -> "RoutingFilter":
        """Append a transform memoized by content fingerprint.

        Args:
            cache: Store offering has(key), get(key) and set(key, value)
            transform: Callable taking source bytes and returning new source

        Returns:
            This filter
        """

        def cached(content: bytes) -> bytes:
            key = hashlib.sha256(content).hexdigest()

            if cache.has(key):
                result = cache.get(key)
                if result is not None:
                    self._logger.debug("Transform cache hit", channel=self._channel.name, key=key)
                    return result

            result = ensure_bytes(transform(content))
            cache.set(key, result)
            return result

        return self.then(cached)

    def pathname(self, raw: str) -> str:
        """Virtual path addressing raw through this filter's channel."""
        return self._channel.pathname(raw)

    def __repr__(self) -> str:
        return (
            f"<RoutingFilter channel={self._channel.name} nodes={len(self)} "
            f"transforms={len(self._then)} vendors={self._vendors_allowed}>"
        )
