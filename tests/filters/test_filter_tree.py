#!/usr/bin/env python3
"""Tests for the predicate filter tree."""

import pytest

from restream.core.constants import ErrorCode
from restream.filters.base import (
    BaseFilter,
    Conjunction,
    Disjunction,
    FilterError,
    Leaf,
    evaluate,
)

PATH = "/srv/myapp/views.py"


def recording(result, calls, label):
    """Predicate appending label to calls and returning result."""

    def predicate(identifier, path):
        calls.append(label)
        return result

    return predicate


class TestEmptyGroups:
    """Tests for groups without nodes."""

    def test_empty_conjunction_holds(self):
        assert Conjunction().match("anything", PATH) is True

    def test_empty_disjunction_fails(self):
        assert Disjunction().match("anything", PATH) is False

    def test_nested_empty_groups(self):
        """Test empty groups keep their meaning when nested."""
        assert Conjunction().every(lambda g: None).match("a", PATH)
        assert not Conjunction().any(lambda g: None).match("a", PATH)


class TestEvaluation:
    """Tests for evaluation order and short-circuiting."""

    def test_conjunction_stops_at_first_false(self):
        calls = []
        f = (
            Conjunction()
            .where(recording(True, calls, "a"))
            .where(recording(False, calls, "b"))
            .where(recording(True, calls, "c"))
        )
        assert f.match("x", PATH) is False
        assert calls == ["a", "b"]

    def test_disjunction_stops_at_first_true(self):
        calls = []
        f = (
            Disjunction()
            .where(recording(False, calls, "a"))
            .where(recording(True, calls, "b"))
            .where(recording(True, calls, "c"))
        )
        assert f.match("x", PATH) is True
        assert calls == ["a", "b"]

    def test_predicate_receives_identifier_and_path(self):
        seen = []
        Conjunction().where(lambda i, p: seen.append((i, p)) or True).match("app.views", PATH)
        assert seen == [("app.views", PATH)]

    def test_evaluate_plain_callable(self):
        assert evaluate(lambda i, p: i == "a", "a", PATH)
        assert not evaluate(Leaf(lambda i, p: False, "never"), "a", PATH)

    def test_filter_is_callable(self):
        f = Conjunction().fqn("app.views")
        assert f("app.views", PATH)
        assert not f("app.models", PATH)

    def test_truthy_results_are_coerced(self):
        assert Conjunction().where(lambda i, p: "yes").match("a", PATH) is True


class TestComposition:
    """Tests for where, not_, every and any."""

    def test_where_appends_leaf(self):
        f = Conjunction().where(lambda i, p: True, name="always")
        assert len(f) == 1
        assert isinstance(f.nodes[0], Leaf)
        assert f.nodes[0].name == "always"

    def test_where_nests_filter(self):
        """Test a filter passed to where() becomes one nested node."""
        inner = Disjunction().fqn("a").fqn("b")
        f = Conjunction().where(inner)
        assert f.nodes == [inner]
        assert f.match("b", PATH)
        assert not f.match("c", PATH)

    def test_not_negates_predicate(self):
        f = Conjunction().not_(lambda i, p: i.startswith("test"))
        assert f.match("app", PATH)
        assert not f.match("tests.unit", PATH)

    def test_not_negates_filter(self):
        f = Conjunction().not_(Disjunction().fqn("a").fqn("b"))
        assert not f.match("a", PATH)
        assert f.match("c", PATH)

    def test_every_builds_conjunction(self):
        groups = []
        f = Disjunction().every(lambda g: groups.append(g) or g.namespace("app").file_name("views"))
        assert isinstance(groups[0], Conjunction)
        assert f.match("app.views", PATH)
        assert not f.match("app.views", "/srv/myapp/models.py")

    def test_any_builds_disjunction(self):
        groups = []
        f = Conjunction().any(lambda g: groups.append(g) or g.fqn("a").fqn("b"))
        assert isinstance(groups[0], Disjunction)
        assert f.match("a", PATH)
        assert not f.match("c", PATH)

    def test_builders_return_same_filter(self):
        f = Conjunction()
        assert f.fqn("a") is f
        assert f.every(lambda g: None) is f
        assert f.not_(lambda i, p: False) is f

    def test_groups_are_base_filters(self):
        assert isinstance(Conjunction(), BaseFilter)
        assert isinstance(Disjunction(), BaseFilter)


class TestIdentifierLeaves:
    """Tests for identifier-based leaves."""

    def test_fqn_trims_separators(self):
        f = Conjunction().fqn(".App.Views.")
        assert f.match("app.views", PATH)
        assert f.match(".APP.VIEWS", PATH)
        assert not f.match("app.views.extra", PATH)

    def test_fqn_unicode_case_folding(self):
        assert Conjunction().fqn("straße").match("STRASSE", PATH)

    def test_namespace_prefix(self):
        f = Conjunction().namespace("MyApp.")
        assert f.match("myapp.views", PATH)
        assert not f.match("other.myapp", PATH)

    def test_class_name_suffix(self):
        f = Conjunction().class_name("Views")
        assert f.match("myapp.views", PATH)
        assert not f.match("myapp.views.helpers", PATH)

    def test_class_name_matches_whole_segment(self):
        """Test the pattern must match the last segment entirely."""
        f = Conjunction().class_name_matches("view")
        assert not f.match("myapp.views", PATH)
        assert Conjunction().class_name_matches("views?").match("myapp.views", PATH)
        assert Conjunction().class_name_matches("VIEW.*").match("myapp.views", PATH)

    def test_class_name_matches_single_segment(self):
        assert Conjunction().class_name_matches("main").match("main", PATH)

    def test_fqn_matches_searches(self):
        f = Conjunction().fqn_matches(r"app\.vie")
        assert f.match("myapp.views", PATH)
        assert not f.match("myapp.models", PATH)


class TestPathLeaves:
    """Tests for path-based leaves."""

    def test_file_name_exact_stem(self):
        f = Conjunction().file_name("views")
        assert f.match("a", "/srv/myapp/views.py")
        assert not f.match("a", "/srv/myapp/views_extra.py")
        assert not f.match("a", "/srv/myapp/Views.py")

    def test_file_name_ignores_directories(self):
        assert not Conjunction().file_name("myapp").match("a", "/srv/myapp/views.py")

    def test_path_name_matches(self):
        f = Conjunction().path_name_matches("/MYAPP/")
        assert f.match("a", PATH)
        assert not f.match("a", "/srv/other/views.py")

    def test_file_name_matches_stem_only(self):
        f = Conjunction().file_name_matches(r"^views$")
        assert f.match("a", PATH)
        assert not Conjunction().file_name_matches(r"\.py").match("a", PATH)

    def test_backslash_separators(self):
        """Test path leaves see backslash paths with "/" separators."""
        path = "C:\\srv\\myapp\\views.py"
        assert Conjunction().file_name("views").match("myapp.views", path)
        assert Conjunction().file_name_matches(r"^views$").match("myapp.views", path)
        assert Conjunction().path_name_matches(r"srv/myapp/").match("myapp.views", path)
        assert not Conjunction().file_name("myapp").match("myapp.views", path)


class TestInvalidPatterns:
    """Tests for regex errors at build time."""

    @pytest.mark.parametrize(
        "builder", ["path_name_matches", "file_name_matches", "class_name_matches", "fqn_matches"]
    )
    def test_invalid_pattern_raises_immediately(self, builder):
        f = Conjunction()
        with pytest.raises(FilterError) as exc_info:
            getattr(f, builder)("(unclosed")
        assert len(f) == 0
        assert exc_info.value.error_code == ErrorCode.INVALID_INPUT

    def test_filter_error_is_value_error(self):
        with pytest.raises(ValueError):
            Conjunction().fqn_matches("*")

    def test_invalid_pattern_inside_group(self):
        """Test errors surface from every() and any() before any evaluation."""
        with pytest.raises(FilterError):
            Conjunction().every(lambda g: g.fqn_matches("[a-"))
        with pytest.raises(FilterError):
            Conjunction().any(lambda g: g.path_name_matches("(?P<"))
