#!/usr/bin/env python3
"""Composable predicate filters over (identifier, path) pairs.

This module provides the filter tree evaluated for every module the
loader is asked about:
- Leaf nodes wrapping a single predicate
- Conjunction (all children must hold, empty is true)
- Disjunction (any child must hold, empty is false)
- Builder methods for the common identifier and path predicates

Children are evaluated in the order they were added and evaluation
stops as soon as the result is known.

Example:
    >>> f = Conjunction().namespace("myapp").file_name_matches(r"^views")
    >>> f.match("myapp.views", "/srv/myapp/views.py")
    True
    >>> f.any(lambda g: g.fqn("myapp.a").fqn("myapp.b"))
"""

import os
import posixpath
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from restream.core.constants import NAMESPACE_SEPARATOR, Predicate
from restream.core.validators import ValidationError, compile_pattern, normalize_separators


class FilterError(ValidationError):
    """A filter could not be built from the given arguments."""


@dataclass(frozen=True)
class Leaf:
    """A single predicate in a filter tree."""

    predicate: Predicate
    name: str = "predicate"

    def __call__(self, identifier: str, path: str) -> bool:
        return bool(self.predicate(identifier, path))


Node = Union[Leaf, "BaseFilter", Predicate]


def evaluate(node: Node, identifier: str, path: str) -> bool:
    """Evaluate a filter tree node.

    Args:
        node: Leaf, Conjunction, Disjunction or plain predicate
        identifier: Dotted module name
        path: Normalized source path

    Returns:
        Whether the node holds for the pair
    """
    if isinstance(node, Disjunction):
        return any(evaluate(child, identifier, path) for child in node.nodes)
    if isinstance(node, BaseFilter):
        return all(evaluate(child, identifier, path) for child in node.nodes)
    return bool(node(identifier, path))


def _trim(identifier: str) -> str:
    return identifier.strip(NAMESPACE_SEPARATOR).casefold()


def _stem(path: str) -> str:
    return os.path.splitext(posixpath.basename(normalize_separators(path)))[0]


def _compile(pattern: str):
    try:
        return compile_pattern(pattern)
    except ValidationError as e:
        raise FilterError(e.message) from e


def _describe(predicate) -> str:
    return getattr(predicate, "__name__", type(predicate).__name__)


class BaseFilter:
    """Ordered list of nodes with builder methods.

    Every builder appends one node and returns the filter, so calls chain.
    How the nodes combine is decided by the concrete subclass.
    """

    def __init__(self, nodes: Optional[List[Node]] = None):
        self._nodes: List[Node] = list(nodes or [])

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes)

    def where(self, predicate: Union[Predicate, "BaseFilter"], name: Optional[str] = None) -> "BaseFilter":
        """Append a predicate, or a whole filter as one nested node.

        Args:
            predicate: Callable taking (identifier, path), or a filter
            name: Label for the leaf

        Returns:
            This filter
        """
        if isinstance(predicate, (BaseFilter, Leaf)):
            self._nodes.append(predicate)
        else:
            self._nodes.append(Leaf(predicate, name or _describe(predicate)))
        return self

    def not_(self, predicate: Union[Predicate, "BaseFilter"], name: Optional[str] = None) -> "BaseFilter":
        """Append the negation of a predicate or filter."""
        label = name or f"not {_describe(predicate)}"

        def negated(identifier: str, path: str) -> bool:
            return not evaluate(predicate, identifier, path)

        self._nodes.append(Leaf(negated, label))
        return self

    def every(self, builder: Callable[["Conjunction"], object]) -> "BaseFilter":
        """Append a nested conjunction populated by builder.

        The group is built right away, so pattern errors surface here.
        """
        group = Conjunction()
        builder(group)
        self._nodes.append(group)
        return self

    def any(self, builder: Callable[["Disjunction"], object]) -> "BaseFilter":
        """Append a nested disjunction populated by builder."""
        group = Disjunction()
        builder(group)
        self._nodes.append(group)
        return self

    # Identifier leaves

    def fqn(self, name: str) -> "BaseFilter":
        """Identifier equals name, ignoring case and surrounding dots."""
        expected = _trim(name)
        return self.where(lambda identifier, path: _trim(identifier) == expected, f"fqn={name}")

    def class_name(self, suffix: str) -> "BaseFilter":
        """Identifier ends with suffix, ignoring case and surrounding dots."""
        expected = _trim(suffix)
        return self.where(
            lambda identifier, path: _trim(identifier).endswith(expected),
            f"class_name={suffix}",
        )

    def namespace(self, prefix: str) -> "BaseFilter":
        """Identifier starts with prefix, ignoring case and surrounding dots."""
        expected = _trim(prefix)
        return self.where(
            lambda identifier, path: _trim(identifier).startswith(expected),
            f"namespace={prefix}",
        )

    # Path leaves

    def file_name(self, name: str) -> "BaseFilter":
        """File name without extension equals name exactly."""
        return self.where(lambda identifier, path: _stem(path) == name, f"file_name={name}")

    def path_name_matches(self, pattern: str) -> "BaseFilter":
        regex = _compile(pattern)
        return self.where(
            lambda identifier, path: regex.search(normalize_separators(path)) is not None,
            f"path_name_matches={pattern}",
        )

    def file_name_matches(self, pattern: str) -> "BaseFilter":
        regex = _compile(pattern)
        return self.where(
            lambda identifier, path: regex.search(_stem(path)) is not None,
            f"file_name_matches={pattern}",
        )

    # Identifier patterns

    def class_name_matches(self, pattern: str) -> "BaseFilter":
        """Last identifier segment matches pattern as a whole."""
        regex = _compile(pattern)

        def last_segment_matches(identifier: str, path: str) -> bool:
            segment = identifier.strip(NAMESPACE_SEPARATOR).rsplit(NAMESPACE_SEPARATOR, 1)[-1]
            return regex.fullmatch(segment) is not None

        return self.where(last_segment_matches, f"class_name_matches={pattern}")

    def fqn_matches(self, pattern: str) -> "BaseFilter":
        regex = _compile(pattern)
        return self.where(
            lambda identifier, path: regex.search(identifier) is not None,
            f"fqn_matches={pattern}",
        )

    def match(self, identifier: str, path: str) -> bool:
        """Evaluate the filter for an identifier and its source path."""
        return evaluate(self, identifier, path)

    def __call__(self, identifier: str, path: str) -> bool:
        return self.match(identifier, path)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} nodes={len(self._nodes)}>"


class Conjunction(BaseFilter):
    """Holds when every node holds."""


class Disjunction(BaseFilter):
    """Holds when at least one node holds."""
