"""Query narrowing.

A QueryScope is an always-applied extra constraint, used to give a caller a
restricted view of the graph (e.g. only entities mentioned in one
conversation). Scopes compose with compiled filters through
CompiledFilter.append_to and keep their own parameters, so scope values are
bound the same way filter values are.

Example:
    scope = QueryScope().scoped_to_context("ctx-42")
    where = scope.with_filter(compiled, "$label IN labels(n)")
    graph.query(f"MATCH (n) WHERE {where.clause} RETURN n", where.parameters)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from cypherguard.errors import InvalidFilterError
from cypherguard.filters.compiler import CompiledFilter
from cypherguard.filters.expressions import check_identifier
from cypherguard.log_config import get_logger

log = get_logger("scope")

CONTEXT_PARAM = "_scope_context_id"


@dataclass(frozen=True)
class QueryScope:
    """Immutable set of narrowing constraints plus their parameters."""

    clauses: tuple[str, ...] = ()
    parameters: dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.clauses

    @property
    def clause(self) -> str:
        """All constraints AND-ed, each parenthesized when there are several."""
        if len(self.clauses) == 1:
            return self.clauses[0]
        return " AND ".join(f"({c})" for c in self.clauses)

    def narrowed_by(self, constraint: str, **params: Any) -> "QueryScope":
        """Return a new scope that also requires `constraint`.

        Args:
            constraint: Cypher boolean expression; values belong in params
            **params: Parameters referenced by the constraint

        Raises:
            InvalidFilterError: If the constraint is blank or a parameter
                name is already bound to a different value
        """
        if not constraint.strip():
            raise InvalidFilterError("Narrowing constraint must not be blank")
        merged = _merge(self.parameters, params)
        log.debug(f"Narrowing scope by: {constraint}")
        return QueryScope(self.clauses + (constraint,), merged)

    def scoped_to_context(self, context_id: str, alias: str = "n") -> "QueryScope":
        """Only entities mentioned by a Proposition from the given context."""
        alias = check_identifier(alias, "node alias")
        return self.narrowed_by(
            f"EXISTS {{ ({alias})<-[:MENTIONS]-(:Proposition {{contextId: ${CONTEXT_PARAM}}}) }}",
            **{CONTEXT_PARAM: context_id},
        )

    def apply(self, where_clause: str) -> str:
        """Combine a WHERE fragment with this scope's constraints."""
        if self.is_empty():
            return where_clause
        if not where_clause.strip():
            return self.clause
        return f"({where_clause}) AND ({self.clause})"

    def with_filter(self, compiled: CompiledFilter, where_clause: str = "") -> CompiledFilter:
        """Structural clause + compiled filter + scope, as one CompiledFilter.

        Raises:
            InvalidFilterError: If filter and scope parameters collide
        """
        clause = self.apply(compiled.append_to(where_clause))
        return CompiledFilter(clause, _merge(compiled.parameters, self.parameters))


def _merge(left: Mapping[str, Any], right: Mapping[str, Any]) -> dict[str, Any]:
    for name, value in right.items():
        if name in left and left[name] != value:
            raise InvalidFilterError(f"Parameter '{name}' is already bound to a different value")
    return {**left, **right}
