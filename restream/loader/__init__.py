"""Restream Loader.

Import-system integration: the meta path finder, its source loader,
module resolution and meta path installation.
"""

from .hooks import MetaPathHooks
from .module_loader import (
    ChannelSourceLoader,
    ModuleLoader,
    default_vendor_dir,
    is_own_identifier,
    loader_from_config,
)
from .resolver import PathFinderResolver

__all__ = [
    "ModuleLoader",
    "ChannelSourceLoader",
    "MetaPathHooks",
    "PathFinderResolver",
    "default_vendor_dir",
    "is_own_identifier",
    "loader_from_config",
]
