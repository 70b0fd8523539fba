#!/usr/bin/env python3
"""Resolution of module names to source files.

Example:
    >>> PathFinderResolver().resolve("json.decoder")
    '/usr/lib/python3.12/json/decoder.py'
"""

import importlib
import importlib.machinery
from typing import Optional, Sequence

from restream.core.constants import NAMESPACE_SEPARATOR


class PathFinderResolver:
    """Locate a module's source file the way the path-based finder would.

    Only modules backed by a source file resolve; builtins, extension
    modules, namespace packages and unknown names give None.
    """

    def resolve(self, identifier: str, search_path: Optional[Sequence[str]] = None) -> Optional[str]:
        """Resolve identifier to a source path.

        Args:
            identifier: Dotted module name
            search_path: Directories to search (parent package's __path__,
                or sys.path for top-level names, if None)

        Returns:
            Absolute source path, or None if the module has no source file
        """
        if search_path is None and NAMESPACE_SEPARATOR in identifier:
            parent_name = identifier.rpartition(NAMESPACE_SEPARATOR)[0]
            try:
                parent = importlib.import_module(parent_name)
            except ImportError:
                return None
            search_path = getattr(parent, "__path__", None)
            if search_path is None:
                return None

        try:
            spec = importlib.machinery.PathFinder.find_spec(identifier, search_path)
        except (ImportError, ValueError):
            return None

        if spec is None or not spec.has_location or spec.origin is None:
            return None

        if not spec.origin.endswith(tuple(importlib.machinery.SOURCE_SUFFIXES)):
            return None

        return spec.origin
