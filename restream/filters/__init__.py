"""Restream Filters.

Predicate trees deciding which modules are rewritten, and the routing
filter that binds a tree to a channel.
"""

from .base import BaseFilter, Conjunction, Disjunction, FilterError, Leaf, evaluate
from .routing import RoutingFilter, is_within

__all__ = [
    "BaseFilter",
    "Conjunction",
    "Disjunction",
    "Leaf",
    "FilterError",
    "evaluate",
    "RoutingFilter",
    "is_within",
]
