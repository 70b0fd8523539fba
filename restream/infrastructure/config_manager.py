#!/usr/bin/env python3
"""Layered configuration for restream.

Every source keeps its own tree; a lookup walks the layers from the
highest precedence down and returns the first value that is not None:

    RUNTIME > CLI_ARGS > ENVIRONMENT > USER_CONFIG > SYSTEM_CONFIG > COMPILED_DEFAULTS

Files are YAML. Environment variables use the RESTREAM_ prefix with a
double underscore between levels below the restream root:

    RESTREAM_CHANNEL__SPLIT_POLICY=strict  ->  restream.channel.split_policy

Example:
    >>> config = ConfigManager()
    >>> config.load_file("restream.yaml")
    >>> config.get("restream.channel.split_policy", default="first")
"""

import copy
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from restream.core.constants import DEFAULT_CONFIG, ConfigKey, ErrorCode

ENV_PREFIX = "RESTREAM_"
ENV_NESTING_SEPARATOR = "__"

_TRUE_WORDS = ("true", "yes")
_FALSE_WORDS = ("false", "no")


class ConfigSource(Enum):
    """Configuration layers, lowest precedence first."""

    COMPILED_DEFAULTS = 1
    SYSTEM_CONFIG = 2
    USER_CONFIG = 3
    ENVIRONMENT = 4
    CLI_ARGS = 5
    RUNTIME = 6


class ConfigError(Exception):
    """Configuration could not be loaded."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


def parse_env_value(value: str) -> Any:
    """Convert an environment string to bool, int or float where it reads as one."""
    if value.lower() in _TRUE_WORDS:
        return True
    if value.lower() in _FALSE_WORDS:
        return False

    for convert in (int, float):
        try:
            return convert(value)
        except ValueError:
            continue

    return value


def _lookup(tree: Mapping[str, Any], key: str) -> Optional[Any]:
    node: Any = tree
    for part in key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node


def _merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, Mapping):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Thread-safe stack of configuration layers with dotted-key access."""

    def __init__(self, config_file: Optional[str] = None, load_environment: bool = True):
        """Initialize configuration manager.

        Args:
            config_file: YAML file loaded as the USER_CONFIG layer
            load_environment: Read RESTREAM_* variables into the ENVIRONMENT layer

        Raises:
            ConfigError: If config_file cannot be loaded
        """
        self._layers: Dict[ConfigSource, Dict[str, Any]] = {
            ConfigSource.COMPILED_DEFAULTS: copy.deepcopy(DEFAULT_CONFIG)
        }
        self._lock = threading.RLock()

        if config_file:
            self.load_file(config_file)

        if load_environment:
            self._load_environment()

    def load_file(self, file_path: str, source: ConfigSource = ConfigSource.USER_CONFIG) -> None:
        """Replace a layer with the contents of a YAML file.

        Args:
            file_path: Path to the YAML file
            source: Layer to replace

        Raises:
            ConfigError: If the file is missing, unreadable, malformed or
                not a mapping
        """
        path = Path(file_path).expanduser().resolve()

        if not path.exists():
            raise ConfigError(f"Config file not found: {file_path}", ErrorCode.NOT_FOUND)

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {file_path}: {e}") from e
        except OSError as e:
            raise ConfigError(
                f"Error loading config {file_path}: {e}", ErrorCode.PERMISSION_DENIED
            ) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Invalid config format in {file_path}")

        with self._lock:
            self._layers[source] = data

    def load_dict(
        self, data: Mapping[str, Any], source: ConfigSource = ConfigSource.RUNTIME
    ) -> None:
        """Replace a layer with a copy of data."""
        with self._lock:
            self._layers[source] = copy.deepcopy(dict(data))

    def _load_environment(self) -> None:
        tree: Dict[str, Any] = {}

        for name, value in os.environ.items():
            if not name.startswith(ENV_PREFIX):
                continue

            parts = name[len(ENV_PREFIX):].lower().split(ENV_NESTING_SEPARATOR)
            if not all(parts):
                continue

            node = tree
            for part in parts[:-1]:
                node = node.setdefault(part, {})
                if not isinstance(node, dict):
                    break
            else:
                node[parts[-1]] = parse_env_value(value)

        if tree:
            with self._lock:
                self._layers[ConfigSource.ENVIRONMENT] = {ConfigKey.ROOT: tree}

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key in the highest layer defining it.

        Args:
            key: Dotted key, e.g. "restream.cache.ttl_seconds"
            default: Returned when no layer holds a non-None value

        Returns:
            Configuration value or default
        """
        with self._lock:
            for source in sorted(self._layers, key=lambda s: s.value, reverse=True):
                value = _lookup(self._layers[source], key)
                if value is not None:
                    return value
            return default

    def set(self, key: str, value: Any, source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Set a dotted key in one layer, creating intermediate sections."""
        with self._lock:
            node = self._layers.setdefault(source, {})
            *sections, leaf = key.split(".")
            for section in sections:
                node = node.setdefault(section, {})
            node[leaf] = value

    def get_all(self) -> Dict[str, Any]:
        """Every layer merged into one tree, higher layers winning."""
        with self._lock:
            merged: Dict[str, Any] = {}
            for source in sorted(self._layers, key=lambda s: s.value):
                merged = _merge(merged, self._layers[source])
            return merged

    def clear(self, source: Optional[ConfigSource] = None) -> None:
        """Drop one layer, or every layer if source is None.

        Compiled defaults are never dropped.
        """
        with self._lock:
            targets = [source] if source is not None else list(self._layers)
            for target in targets:
                if target is not ConfigSource.COMPILED_DEFAULTS:
                    self._layers.pop(target, None)


# Global config manager instance
_global_config: Optional[ConfigManager] = None


def get_config_manager(config_file: Optional[str] = None) -> ConfigManager:
    """Return the process-wide manager, creating it on first use.

    Args:
        config_file: YAML file loaded when the manager is created
    """
    global _global_config
    if _global_config is None:
        _global_config = ConfigManager(config_file)
    return _global_config


def set_global_config(config: Optional[ConfigManager]) -> None:
    """Replace the process-wide manager (None resets it)."""
    global _global_config
    _global_config = config
