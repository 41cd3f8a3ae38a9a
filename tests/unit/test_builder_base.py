"""
Unit tests for the shared ClauseBuilder behaviour.

Tests empty defaults, EmptyBuilderError, set/clone semantics and
expression resolution.
"""

import pytest

from mdb_kit.builders import (ClauseBuilder, FilterClause, IndexClause, ProjectionClause,
                              SortClause, UpdateClause, resolve_expression)
from mdb_kit.builders.filters import and_, eq
from mdb_kit.builders.updates import combine, inc, set_
from mdb_kit.exceptions import EmptyBuilderError, MdbKitError


class TestAbstractBase:
    """Test that only builders with a merge rule can be created."""

    def test_base_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            ClauseBuilder({"a": 1}, {"b": 2})

    def test_subclass_without_merge_cannot_be_instantiated(self):
        class Incomplete(ClauseBuilder):
            pass

        with pytest.raises(TypeError):
            Incomplete()

    def test_subclass_with_merge_works(self):
        class LastWins(ClauseBuilder):
            def merge(self, current, new):
                return new

        assert LastWins({"a": 1}, {"b": 2}).build() == {"b": 2}


class TestEmptyDefaults:
    """Test what each builder builds when nothing was added."""

    @pytest.mark.parametrize(
        "builder_class,expected",
        [
            (FilterClause, {}),
            (SortClause, {"_id": 1}),
            (ProjectionClause, {"_id": 1}),
        ],
    )
    def test_default_expression(self, builder_class, expected):
        assert builder_class().build() == expected

    @pytest.mark.parametrize("builder_class", [IndexClause, UpdateClause])
    def test_no_default_raises(self, builder_class):
        with pytest.raises(EmptyBuilderError) as exc_info:
            builder_class().build()

        assert isinstance(exc_info.value, MdbKitError)
        assert exc_info.value.context["builder"] == builder_class.__name__

    def test_default_is_fresh_each_time(self):
        clause = FilterClause()
        clause.build()["status"] = "mutated"
        assert clause.build() == {}


class TestSet:
    """Test replacing the current expression."""

    def test_set_replaces_expression(self):
        clause = FilterClause(eq("a", 1)).set(eq("b", 2))
        assert clause.build() == {"b": 2}

    def test_set_none_empties_builder(self):
        clause = UpdateClause(set_("a", 1)).set(None)
        assert clause.is_empty()
        with pytest.raises(EmptyBuilderError):
            clause.build()

    def test_set_accepts_builder(self):
        clause = FilterClause().set(FilterClause(eq("a", 1)))
        assert clause.build() == {"a": 1}

    def test_set_normalizes_sort_pairs(self):
        assert SortClause().set([("a", -1)]).build() == {"a": -1}

    def test_add_copies_input(self):
        expression = {"a": 1}
        clause = FilterClause(expression)
        expression["b"] = 2
        assert clause.build() == {"a": 1}


class TestClone:
    """Test clone independence."""

    def test_clone_mutation_does_not_affect_original(self):
        original = FilterClause(eq("a", 1))
        before = original.build()

        copy = original.clone()
        copy.add(eq("b", 2))

        assert original.build() == before
        assert copy.build() == and_(before, eq("b", 2))

    def test_original_mutation_does_not_affect_clone(self):
        original = UpdateClause(set_("a", 1))
        copy = original.clone()
        original.add(inc("n"))

        assert copy.build() == {"$set": {"a": 1}}
        assert original.build() == combine(set_("a", 1), inc("n"))

    def test_clone_keeps_type(self):
        assert type(SortClause().clone()) is SortClause

    def test_clone_of_empty_stays_empty(self):
        copy = IndexClause().clone()
        assert copy.is_empty()


class TestResolveExpression:
    """Test builder resolution helper."""

    def test_builder_is_built(self):
        assert resolve_expression(FilterClause(eq("a", 1))) == {"a": 1}

    def test_plain_values_pass_through(self):
        expression = {"a": 1}
        assert resolve_expression(expression) is expression
        assert resolve_expression(None) is None

    def test_repr_shows_current(self):
        assert repr(FilterClause(eq("a", 1))) == "FilterClause({'a': 1})"
