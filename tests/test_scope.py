"""Tests for query scopes."""

import pytest

from cypherguard.errors import InvalidFilterError
from cypherguard.filters import CompiledFilter, compile_filter, eq
from cypherguard.scope import CONTEXT_PARAM, QueryScope


class TestNarrowing:
    """Test building scopes."""

    def test_empty_scope(self):
        """A new scope has no constraints."""
        scope = QueryScope()
        assert scope.is_empty()
        assert scope.clause == ""

    def test_single_constraint_unwrapped(self):
        """One constraint should render as-is."""
        scope = QueryScope().narrowed_by("n.tenant = $tenant", tenant="acme")
        assert scope.clause == "n.tenant = $tenant"
        assert scope.parameters == {"tenant": "acme"}

    def test_several_constraints_parenthesized(self):
        """Several constraints should be AND-ed, each in parentheses."""
        scope = (
            QueryScope()
            .narrowed_by("n.tenant = $tenant", tenant="acme")
            .narrowed_by("n.visible OR n.public")
        )
        assert scope.clause == "(n.tenant = $tenant) AND (n.visible OR n.public)"

    def test_narrowing_does_not_mutate(self):
        """narrowed_by should return a new scope."""
        base = QueryScope()
        base.narrowed_by("n.x = $x", x=1)
        assert base.is_empty()
        assert base.parameters == {}

    def test_blank_constraint_rejected(self):
        """Blank constraints would add nothing and are refused."""
        with pytest.raises(InvalidFilterError):
            QueryScope().narrowed_by("   ")

    def test_conflicting_parameter_rejected(self):
        """Rebinding a parameter to a different value should fail."""
        scope = QueryScope().narrowed_by("n.a = $v", v=1)
        with pytest.raises(InvalidFilterError):
            scope.narrowed_by("n.b = $v", v=2)

    def test_same_parameter_value_allowed(self):
        """Rebinding a parameter to the same value is harmless."""
        scope = QueryScope().narrowed_by("n.a = $v", v=1).narrowed_by("n.b = $v", v=1)
        assert scope.parameters == {"v": 1}


class TestContextScope:
    """Test the conversation-context narrowing."""

    def test_context_id_is_bound(self):
        """The context id should be a parameter, not clause text."""
        scope = QueryScope().scoped_to_context("ctx'; DROP")
        assert "ctx'; DROP" not in scope.clause
        assert scope.parameters == {CONTEXT_PARAM: "ctx'; DROP"}
        assert scope.clause == (
            "EXISTS { (n)<-[:MENTIONS]-(:Proposition {contextId: $_scope_context_id}) }"
        )

    def test_custom_alias(self):
        """The alias should be used in the pattern."""
        assert "(e)<-[:MENTIONS]-" in QueryScope().scoped_to_context("c1", alias="e").clause

    def test_unsafe_alias_rejected(self):
        """Aliases are interpolated and must be identifiers."""
        with pytest.raises(InvalidFilterError):
            QueryScope().scoped_to_context("c1", alias="n)-[*]-(m")


class TestApply:
    """Test combining scopes with WHERE fragments and filters."""

    def test_empty_scope_leaves_clause(self):
        """An empty scope should not change the clause."""
        assert QueryScope().apply("n.x = 1") == "n.x = 1"

    def test_blank_clause_gives_scope(self):
        """A blank clause should yield just the scope."""
        scope = QueryScope().narrowed_by("n.tenant = $tenant", tenant="acme")
        assert scope.apply("") == "n.tenant = $tenant"

    def test_both(self):
        """Both sides should be parenthesized and AND-ed."""
        scope = QueryScope().narrowed_by("n.tenant = $tenant", tenant="acme")
        assert scope.apply("n.x = 1 OR n.y = 2") == "(n.x = 1 OR n.y = 2) AND (n.tenant = $tenant)"

    def test_with_filter(self):
        """Structural clause, filter and scope should end up in one CompiledFilter."""
        scope = QueryScope().narrowed_by("n.tenant = $tenant", tenant="acme")
        compiled = compile_filter(eq("owner", "alice"), node_alias="n")
        result = scope.with_filter(compiled, "$label IN labels(n)")
        assert result.clause == (
            "($label IN labels(n) AND n.owner = $_filter_0) AND (n.tenant = $tenant)"
        )
        assert result.parameters == {"_filter_0": "alice", "tenant": "acme"}

    def test_with_empty_filter(self):
        """An empty filter with an empty scope should stay empty."""
        assert QueryScope().with_filter(CompiledFilter.EMPTY).is_empty()

    def test_with_filter_collision(self):
        """Scope parameters must not clash with filter parameters."""
        scope = QueryScope().narrowed_by("n.x = $_filter_0", _filter_0="other")
        compiled = compile_filter(eq("owner", "alice"), node_alias="n")
        with pytest.raises(InvalidFilterError):
            scope.with_filter(compiled)
