"""Restream Core - Shared constants, type definitions and validators.

Import specific names from submodules:
    from restream.core.constants import ErrorCode, Limits, SplitPolicy
    from restream.core.validators import ValidationError, normalize_path
"""

from restream.core import constants, validators

__all__ = [
    "constants",
    "validators",
]
