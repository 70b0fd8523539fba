"""
Restream Core: Input Validators.

This module provides validation and normalization for paths, patterns,
and the routing rules read from configuration files.
"""
import os
import re
from typing import Any, Dict, Pattern, Union

from restream.core.constants import (
    PATH_SEPARATOR,
    PATTERN_FLAGS,
    RULE_LEAVES,
    ConfigKey,
    ErrorCode,
    TransformType,
)

_RULE_FIELDS = {
    ConfigKey.RULE_NAME,
    ConfigKey.RULE_WITH_VENDORS,
    ConfigKey.RULE_MATCH,
    ConfigKey.RULE_ANY,
    ConfigKey.RULE_NOT,
    ConfigKey.RULE_TRANSFORMS,
    ConfigKey.RULE_CACHE,
}


class ValidationError(ValueError):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


def normalize_path(path: str) -> str:
    """Resolve symlinks and relative segments, then use "/" as separator.

    Args:
        path: Filesystem path

    Returns:
        Canonical absolute path
    """
    return normalize_separators(os.path.realpath(path))


def normalize_separators(path: str) -> str:
    """Replace backslashes with "/" without touching the filesystem."""
    return path.replace("\\", PATH_SEPARATOR)


def ensure_bytes(content: Union[bytes, str]) -> bytes:
    """Encode str content as UTF-8; bytes-like content is copied to bytes."""
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)


def compile_pattern(pattern: str) -> Pattern[str]:
    """Compile a case-insensitive, dot-all regex.

    Args:
        pattern: Regex pattern string

    Returns:
        Compiled regex pattern

    Raises:
        ValidationError: If pattern is not a string or fails to compile
    """
    if not isinstance(pattern, str):
        raise ValidationError(f"Pattern must be string, got {type(pattern).__name__}")

    try:
        return re.compile(pattern, PATTERN_FLAGS)
    except re.error as e:
        raise ValidationError(f'Invalid pattern "{pattern}": {e}') from e


def _validate_leaf_map(leaves: Any, where: str) -> None:
    if not isinstance(leaves, dict) or not leaves:
        raise ValidationError(f"Rule {where} entries must be non-empty dictionaries")

    for leaf, value in leaves.items():
        if leaf not in RULE_LEAVES:
            raise ValidationError(
                f"Unknown leaf in rule {where}: {leaf}. Must be one of {list(RULE_LEAVES)}"
            )
        if not isinstance(value, str):
            raise ValidationError(f"Leaf {leaf} in rule {where} must be a string: {value!r}")
        if leaf.endswith("_matches"):
            compile_pattern(value)


def validate_rule_config(rule: Dict[str, Any]) -> bool:
    """Validate a routing rule.

    Args:
        rule: Rule configuration dictionary

    Returns:
        True if valid

    Raises:
        ValidationError: If rule is invalid
    """
    if not isinstance(rule, dict):
        raise ValidationError("Rule must be a dictionary")

    unknown = set(rule) - _RULE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown rule fields: {sorted(unknown)}")

    if ConfigKey.RULE_NAME in rule and not isinstance(rule[ConfigKey.RULE_NAME], str):
        raise ValidationError(f"Rule name must be string: {rule[ConfigKey.RULE_NAME]!r}")

    with_vendors = rule.get(ConfigKey.RULE_WITH_VENDORS, False)
    if not isinstance(with_vendors, bool):
        raise ValidationError(f"Rule with_vendors must be boolean: {with_vendors!r}")

    cache = rule.get(ConfigKey.RULE_CACHE, False)
    if not isinstance(cache, bool):
        raise ValidationError(f"Rule cache must be boolean: {cache!r}")

    if ConfigKey.RULE_MATCH in rule:
        _validate_leaf_map(rule[ConfigKey.RULE_MATCH], ConfigKey.RULE_MATCH)

    for key in (ConfigKey.RULE_ANY, ConfigKey.RULE_NOT):
        if key not in rule:
            continue
        entries = rule[key]
        if not isinstance(entries, list):
            raise ValidationError(f"Rule {key} must be a list")
        for entry in entries:
            _validate_leaf_map(entry, key)

    transforms = rule.get(ConfigKey.RULE_TRANSFORMS, [])
    if not isinstance(transforms, list):
        raise ValidationError("Rule transforms must be a list")

    for transform in transforms:
        validate_transform_config(transform)

    return True


def validate_transform_config(transform: Dict[str, Any]) -> bool:
    """Validate transform configuration.

    Args:
        transform: Transform configuration dictionary

    Returns:
        True if valid

    Raises:
        ValidationError: If transform is invalid
    """
    if not isinstance(transform, dict):
        raise ValidationError("Transform must be a dictionary")

    # Required field: type
    if ConfigKey.TRANSFORM_TYPE not in transform:
        raise ValidationError("Transform must have 'type' field")

    transform_type = transform[ConfigKey.TRANSFORM_TYPE]
    try:
        TransformType(transform_type)
    except ValueError:
        valid_types = [t.value for t in TransformType]
        raise ValidationError(
            f"Invalid transform type: {transform_type}. Must be one of {valid_types}"
        )

    if transform_type == TransformType.REPLACE.value:
        if ConfigKey.TRANSFORM_PATTERN not in transform:
            raise ValidationError("Replace transform must have 'pattern' field")
        compile_pattern(transform[ConfigKey.TRANSFORM_PATTERN])

    if transform_type == TransformType.TEMPLATE.value:
        context = transform.get(ConfigKey.TRANSFORM_CONTEXT, {})
        if not isinstance(context, dict):
            raise ValidationError("Template transform context must be a dictionary")

    return True
