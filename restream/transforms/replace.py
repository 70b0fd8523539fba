#!/usr/bin/env python3
"""Regex substitution on module source."""

import re
from typing import Union

from restream.transforms.base import Transform, TransformError


class ReplaceTransform(Transform):
    """Replace every match of a pattern in the decoded source.

    Example:
        >>> ReplaceTransform(r"DEBUG = True", "DEBUG = False")(b"DEBUG = True\\n")
        b'DEBUG = False\\n'
    """

    def __init__(
        self,
        pattern: Union[str, "re.Pattern[str]"],
        replacement: str,
        count: int = 0,
        name: str = "replace",
    ):
        """Initialize replace transform.

        Args:
            pattern: Regex pattern or compiled pattern
            replacement: Replacement string, may reference groups
            count: Maximum substitutions per source (0 means all)
            name: Transform name

        Raises:
            TransformError: If pattern does not compile
        """
        super().__init__(name=name)
        try:
            self._pattern = re.compile(pattern, re.MULTILINE) if isinstance(pattern, str) else pattern
        except re.error as e:
            raise TransformError(f"Invalid pattern {pattern!r}: {e}", name) from e
        self._replacement = replacement
        self._count = count

    @property
    def pattern(self) -> "re.Pattern[str]":
        return self._pattern

    def transform(self, content: bytes) -> bytes:
        try:
            source = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TransformError(f"Failed to decode source: {e}", self.name) from e

        try:
            return self._pattern.sub(self._replacement, source, count=self._count).encode("utf-8")
        except (re.error, IndexError) as e:
            raise TransformError(f"Bad replacement {self._replacement!r}: {e}", self.name) from e
