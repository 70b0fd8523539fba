#!/usr/bin/env python3
"""Installation of finders on the import system's meta path."""

import sys
from typing import List, Optional

from restream.infrastructure.logger import get_logger


class MetaPathHooks:
    """Install and remove finders at the front of a meta path list.

    Operates on sys.meta_path unless another list is given, which keeps
    tests away from the interpreter's import state.
    """

    def __init__(self, meta_path: Optional[List[object]] = None):
        """Initialize hooks.

        Args:
            meta_path: Finder list to manage (sys.meta_path if None)
        """
        self._meta_path = meta_path
        self._logger = get_logger()

    @property
    def meta_path(self) -> List[object]:
        return self._meta_path if self._meta_path is not None else sys.meta_path

    def is_installed(self, finder: object) -> bool:
        return any(entry is finder for entry in self.meta_path)

    def install(self, finder: object) -> bool:
        """Put finder ahead of every other finder.

        Returns:
            False if finder was already installed
        """
        if self.is_installed(finder):
            return False

        self.meta_path.insert(0, finder)
        self._logger.debug("Finder installed", finder=type(finder).__name__)
        return True

    def remove(self, finder: object) -> bool:
        """Take finder off the meta path.

        Returns:
            False if finder was not installed
        """
        for index, entry in enumerate(self.meta_path):
            if entry is finder:
                del self.meta_path[index]
                self._logger.debug("Finder removed", finder=type(finder).__name__)
                return True
        return False
