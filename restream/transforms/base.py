#!/usr/bin/env python3
"""Base classes for source transformations.

A transform is a callable taking source bytes and returning new source
bytes, usable anywhere a read hook is expected:

    routing.then(transform)
    channel.on_read(transform)

Failures raise TransformError; the original source is never returned in
place of a failed rewrite.

Example:
    >>> class UppercaseTransform(Transform):
    ...     def transform(self, content):
    ...         return content.upper()
    ...
    >>> UppercaseTransform()(b"hello")
    b'HELLO'
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from restream.core.constants import ErrorCode


class TransformError(Exception):
    """Error during transformation."""

    def __init__(
        self,
        message: str,
        transform_name: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    ):
        self.message = message
        self.transform_name = transform_name
        self.error_code = error_code
        super().__init__(message)


class Transform(ABC):
    """Abstract base class for source transformations.

    Subclasses implement transform(); calling the instance applies it with
    timing, statistics and error wrapping. A disabled transform returns
    its input unchanged.
    """

    def __init__(self, name: Optional[str] = None, enabled: bool = True):
        """Initialize transform.

        Args:
            name: Optional name for this transform
            enabled: Whether transform is enabled
        """
        self.name = name or self.__class__.__name__
        self.enabled = enabled
        self.reset_stats()

    @abstractmethod
    def transform(self, content: bytes) -> bytes:
        """Transform content.

        Args:
            content: Input source

        Returns:
            Transformed source

        Raises:
            TransformError: If transformation fails
        """

    def __call__(self, content: bytes) -> bytes:
        if not self.enabled:
            return content

        start_time = time.time()
        try:
            transformed = self.transform(content)
        except TransformError:
            self._record(start_time, success=False)
            raise
        except Exception as e:
            self._record(start_time, success=False)
            raise TransformError(f"{self.name}: {e}", self.name) from e

        self._record(start_time, success=True)
        return transformed

    def _record(self, start_time: float, success: bool) -> None:
        self._stats["total_transforms"] += 1
        self._stats["successful_transforms" if success else "failed_transforms"] += 1
        self._stats["total_duration_ms"] += (time.time() - start_time) * 1000

    def get_stats(self) -> Dict[str, Any]:
        """Get transform statistics.

        Returns:
            Statistics dictionary
        """
        stats = self._stats.copy()
        if stats["total_transforms"] > 0:
            stats["avg_duration_ms"] = stats["total_duration_ms"] / stats["total_transforms"]
            stats["success_rate"] = stats["successful_transforms"] / stats["total_transforms"]
        else:
            stats["avg_duration_ms"] = 0.0
            stats["success_rate"] = 0.0

        return stats

    def reset_stats(self) -> None:
        """Reset transform statistics."""
        self._stats = {
            "total_transforms": 0,
            "successful_transforms": 0,
            "failed_transforms": 0,
            "total_duration_ms": 0.0,
        }

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def __repr__(self) -> str:
        status = "enabled" if self.enabled else "disabled"
        return f"<{self.__class__.__name__} name={self.name} {status}>"
