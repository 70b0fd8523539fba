"""Restream Infrastructure Layer.

This layer provides the services used by the filter, stream and loader
packages:
- ConfigManager: Hierarchical configuration (YAML, environment, runtime)
- LRUCache: Memoizing store for rewritten sources
- Logger: Structured logging system
"""

from .cache import CacheConfig, CacheEntry, LRUCache, cache_from_config
from .config_manager import (
    ConfigError,
    ConfigManager,
    ConfigSource,
    get_config_manager,
    set_global_config,
)
from .logger import Logger, LogLevel, get_logger, set_global_logger

__all__ = [
    # Logger exports
    "Logger",
    "LogLevel",
    "get_logger",
    "set_global_logger",
    # Cache exports
    "CacheEntry",
    "CacheConfig",
    "LRUCache",
    "cache_from_config",
    # ConfigManager exports
    "ConfigSource",
    "ConfigError",
    "ConfigManager",
    "get_config_manager",
    "set_global_config",
]
