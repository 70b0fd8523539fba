#!/usr/bin/env python3
"""Import-system integration routing modules through channels.

ModuleLoader sits on sys.meta_path. For every import it resolves the
module's source file, asks its routing filters in registration order,
and hands the first match to a ChannelSourceLoader that reads the
source from the filter's virtual path. Modules no filter accepts are
left to the remaining finders.

Rewritten modules keep their real __file__ and never read or write
bytecode caches.

Example:
    >>> loader = ModuleLoader()
    >>> loader.when().namespace("myapp").then(TemplateTransform({"DEBUG": False}))
    >>> import myapp.settings  # rendered before compilation
"""

import importlib.abc
import importlib.util
import sys
import sysconfig
from typing import List, Optional, Sequence, Tuple

from restream.core.constants import (
    NAMESPACE_SEPARATOR,
    PACKAGE_NAME,
    ConfigKey,
    Limits,
)
from restream.core.validators import normalize_path
from restream.filters.routing import RoutingFilter
from restream.infrastructure.logger import get_logger
from restream.loader.hooks import MetaPathHooks
from restream.loader.resolver import PathFinderResolver
from restream.stream.channel import ChannelRegistry, get_registry
from restream.stream.host import StreamHost


def default_vendor_dir() -> str:
    """Directory third-party distributions are installed into."""
    return sysconfig.get_paths()["purelib"]


def is_own_identifier(identifier: str) -> bool:
    """Check whether identifier names restream or one of its submodules."""
    return identifier == PACKAGE_NAME or identifier.startswith(PACKAGE_NAME + NAMESPACE_SEPARATOR)


class ChannelSourceLoader(importlib.abc.SourceLoader):
    """Source loader reading one module through a virtual path.

    No path_stats() is provided, so bytecode is neither read nor written.
    """

    def __init__(self, fullname: str, path: str, virtual_path: str, host: StreamHost):
        """Initialize loader.

        Args:
            fullname: Dotted module name
            path: Real source path, exposed as __file__
            virtual_path: "<channel>://<path>" the source is read from
            host: Stream host able to open virtual_path
        """
        self.name = fullname
        self.path = path
        self.virtual_path = virtual_path
        self._host = host

    def get_filename(self, fullname: Optional[str] = None) -> str:
        return self.path

    def get_data(self, path: str) -> bytes:
        if path == self.path:
            with self._host.open(self.virtual_path, "rb") as stream:
                return stream.read()

        with open(path, "rb") as f:
            return f.read()

    def __repr__(self) -> str:
        return f"<ChannelSourceLoader {self.name} from {self.virtual_path}>"


class ModuleLoader(importlib.abc.MetaPathFinder):
    """Meta path finder dispatching modules to routing filters."""

    def __init__(
        self,
        resolver: Optional[PathFinderResolver] = None,
        registry: Optional[ChannelRegistry] = None,
        hooks: Optional[MetaPathHooks] = None,
        vendor_dir: Optional[str] = None,
        complexity: int = Limits.FILTER_NAME_COMPLEXITY,
        register: bool = True,
    ):
        """Initialize module loader.

        Args:
            resolver: Resolves identifiers to source paths
            registry: Registry the routing channels are created in
            hooks: Meta path the loader installs itself on
            vendor_dir: Root of third-party packages (site-packages if None)
            complexity: Name complexity of each routing channel
            register: Install on the meta path immediately
        """
        self._resolver = resolver if resolver is not None else PathFinderResolver()
        self._registry = registry if registry is not None else get_registry()
        self._hooks = hooks if hooks is not None else MetaPathHooks()
        self._vendor_dir = normalize_path(vendor_dir if vendor_dir is not None else default_vendor_dir())
        self._complexity = complexity
        self._filters: List[RoutingFilter] = []
        self._registered = False
        self._logger = get_logger()

        if register:
            self.register()

    @property
    def filters(self) -> List[RoutingFilter]:
        return list(self._filters)

    @property
    def vendor_dir(self) -> str:
        return self._vendor_dir

    @property
    def registry(self) -> ChannelRegistry:
        return self._registry

    def register(self) -> "ModuleLoader":
        """Install the loader ahead of the other finders."""
        self._hooks.install(self)
        self._registered = True
        return self

    def unregister(self) -> "ModuleLoader":
        self._hooks.remove(self)
        self._registered = False
        return self

    def is_registered(self) -> bool:
        return self._registered

    def when(self) -> RoutingFilter:
        """Add a routing filter with its own channel.

        Returns:
            The new filter, consulted after every filter added before it
        """
        routing = RoutingFilter(self._vendor_dir, self._registry, self._complexity)
        self._filters.append(routing)
        self._logger.debug("Routing filter added", channel=routing.channel.name)
        return routing

    def route(
        self, identifier: str, search_path: Optional[Sequence[str]] = None
    ) -> Optional[Tuple[str, RoutingFilter]]:
        """Find the filter that accepts identifier.

        Args:
            identifier: Dotted module name
            search_path: Parent package's __path__ for submodules

        Returns:
            (normalized source path, first matching filter), or None
        """
        if is_own_identifier(identifier) or not self._filters:
            return None

        raw = self._resolver.resolve(identifier, search_path)
        if raw is None:
            return None

        path = normalize_path(raw)
        for routing in self._filters:
            if routing.match(identifier, path):
                self._logger.debug(
                    "Module routed", identifier=identifier, channel=routing.channel.name
                )
                return path, routing

        return None

    def find_spec(self, fullname: str, path=None, target=None):
        """Return a spec reading fullname through its channel, or None."""
        routed = self.route(fullname, path)
        if routed is None:
            return None

        source_path, routing = routed
        loader = ChannelSourceLoader(
            fullname, source_path, routing.pathname(source_path), self._registry.host
        )
        return importlib.util.spec_from_file_location(fullname, source_path, loader=loader)

    def load_identifier(self, identifier: str) -> bool:
        """Load identifier through its channel into sys.modules.

        Returns:
            False if no filter accepts identifier
        """
        spec = self.find_spec(identifier)
        if spec is None:
            return False

        module = importlib.util.module_from_spec(spec)
        sys.modules[identifier] = module
        try:
            with self._logger.add_context(identifier=identifier):
                spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(identifier, None)
            raise

        return True

    def __repr__(self) -> str:
        state = "registered" if self._registered else "unregistered"
        return f"<ModuleLoader filters={len(self._filters)} {state}>"


def loader_from_config(
    config,
    registry: Optional[ChannelRegistry] = None,
    hooks: Optional[MetaPathHooks] = None,
    register: bool = False,
) -> ModuleLoader:
    """Build a ModuleLoader from the restream.loader section of a ConfigManager.

    Args:
        config: ConfigManager instance
        registry: Channel registry (default registry if None)
        hooks: Meta path hooks (sys.meta_path if None)
        register: Install on the meta path immediately

    Returns:
        Configured loader without routing filters
    """
    return ModuleLoader(
        registry=registry,
        hooks=hooks,
        vendor_dir=config.get(ConfigKey.LOADER_VENDOR_DIR),
        complexity=int(config.get(ConfigKey.LOADER_NAME_COMPLEXITY, Limits.FILTER_NAME_COMPLEXITY)),
        register=register,
    )
