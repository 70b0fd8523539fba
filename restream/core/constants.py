"""
Restream Core: Constants and Type Definitions

This module provides package-wide constants, error codes, and type definitions
shared by the filter engine, the channel registry and the loader.
"""
import re
import stat
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Callable, Optional, TypeAlias

# Version information
RESTREAM_VERSION = "1.0.0"

# Name of the import package; identifiers inside it are never routed
PACKAGE_NAME = "restream"


# Error codes (0-9 range)
class ErrorCode(IntEnum):
    """Standardized error codes for restream operations."""

    SUCCESS = 0  # Operation completed successfully
    INVALID_INPUT = 1  # Bad uri, invalid configuration, bad pattern
    NOT_FOUND = 2  # File, channel or module doesn't exist
    PERMISSION_DENIED = 3  # Insufficient permissions
    CONFLICT = 4  # Name already claimed
    INTERNAL_ERROR = 5  # Bug in restream or a hook


# Hook signatures
OpenHook: TypeAlias = Callable[[str], Optional[bytes]]
ReadHook: TypeAlias = Callable[[bytes], bytes]
Predicate: TypeAlias = Callable[[str, str], bool]


# Virtual path syntax
VIRTUAL_PATH_SEPARATOR = "://"
NAMESPACE_SEPARATOR = "."
PATH_SEPARATOR = "/"

# Prefix used for generated channel names
ANONYMOUS_CHANNEL_PREFIX = "stream"


class SplitPolicy(Enum):
    """How a virtual path is split into channel name and raw path."""

    FIRST = "first"  # Split on the first "://", the rest is the raw path
    STRICT = "strict"  # "://" must occur exactly once


class TransformType(Enum):
    """Transform kinds available to configured rules."""

    TEMPLATE = "template"  # Jinja2 rendering
    REPLACE = "replace"  # Regex substitution


# Leaf builders a configured rule may name
RULE_LEAVES = (
    "fqn",
    "class_name",
    "namespace",
    "file_name",
    "path_name_matches",
    "file_name_matches",
    "class_name_matches",
    "fqn_matches",
)

# Regex flags for every pattern leaf
PATTERN_FLAGS = re.IGNORECASE | re.DOTALL


# File attributes matching os.stat_result
@dataclass(frozen=True)
class FileAttributes:
    """File attributes matching os.stat_result structure."""

    st_mode: int  # File mode (type and permissions)
    st_ino: int  # Inode number
    st_dev: int  # Device ID
    st_nlink: int  # Number of hard links
    st_uid: int  # User ID
    st_gid: int  # Group ID
    st_size: int  # File size in bytes
    st_atime: float  # Access time
    st_mtime: float  # Modification time
    st_ctime: float  # Status change time

    @property
    def is_file(self) -> bool:
        """Check if this is a regular file."""
        return stat.S_ISREG(self.st_mode)


# Resource limits and defaults
class Limits:
    """Resource limits and default values."""

    # Channel names
    DEFAULT_NAME_COMPLEXITY = 8
    FILTER_NAME_COMPLEXITY = 32
    MAX_NAME_ATTEMPTS = 100

    # In-memory buffers
    MEMORY_FILE_MODE = stat.S_IFREG | 0o666
    STAT_MTIME_OFFSET = 1

    # Memoizing cache for through()
    CACHE_MAX_ENTRIES = 1000
    CACHE_MAX_SIZE_MB = 64
    CACHE_TTL_SECONDS = 3600


# Configuration keys
class ConfigKey:
    """Configuration key constants."""

    ROOT = "restream"

    LOADER_VENDOR_DIR = "restream.loader.vendor_dir"
    LOADER_NAME_COMPLEXITY = "restream.loader.name_complexity"

    CHANNEL_NAME_COMPLEXITY = "restream.channel.name_complexity"
    CHANNEL_SPLIT_POLICY = "restream.channel.split_policy"

    CACHE_MAX_ENTRIES = "restream.cache.max_entries"
    CACHE_SIZE_MB = "restream.cache.max_size_mb"
    CACHE_TTL = "restream.cache.ttl_seconds"

    LOGGING_LEVEL = "restream.logging.level"
    LOGGING_FILE = "restream.logging.file"

    RULES = "restream.rules"

    # Rule entry fields
    RULE_NAME = "name"
    RULE_WITH_VENDORS = "with_vendors"
    RULE_MATCH = "match"
    RULE_ANY = "any"
    RULE_NOT = "not"
    RULE_TRANSFORMS = "transforms"
    RULE_CACHE = "cache"

    # Transform entry fields
    TRANSFORM_TYPE = "type"
    TRANSFORM_CONTEXT = "context"
    TRANSFORM_PATTERN = "pattern"
    TRANSFORM_REPLACEMENT = "replacement"
    TRANSFORM_COUNT = "count"


# Default configuration values
DEFAULT_CONFIG = {
    "restream": {
        "loader": {
            "vendor_dir": None,
            "name_complexity": Limits.FILTER_NAME_COMPLEXITY,
        },
        "channel": {
            "name_complexity": Limits.DEFAULT_NAME_COMPLEXITY,
            "split_policy": SplitPolicy.FIRST.value,
        },
        "cache": {
            "max_entries": Limits.CACHE_MAX_ENTRIES,
            "max_size_mb": Limits.CACHE_MAX_SIZE_MB,
            "ttl_seconds": Limits.CACHE_TTL_SECONDS,
        },
        "logging": {
            "level": "INFO",
            "file": None,
        },
        "rules": [],
    }
}
