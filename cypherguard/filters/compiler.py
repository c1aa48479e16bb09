"""Compile filter expressions into parameterized Cypher WHERE fragments.

Values never reach the clause text. Each literal is replaced by a generated
`$<prefix><n>` reference and stored in the parameters mapping, which the
execution layer binds out-of-band. Keys are rendered as identifiers and are
checked when the expression is built (see expressions.check_identifier).

Example:
    compiler = CypherFilterCompiler(node_alias="e")
    result = compiler.compile(eq("owner", "alice") & gte("score", 0.8))

    # result.clause     == "(e.owner = $_filter_0) AND (e.score >= $_filter_1)"
    # result.parameters == {"_filter_0": "alice", "_filter_1": 0.8}

    query = f"MATCH (e:Entity) WHERE {result.append_to('e.active = true')} RETURN e"
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Iterator, Mapping

from cypherguard.errors import FilterCompilationError
from cypherguard.filters.expressions import (
    And,
    Contains,
    ContainsIgnoreCase,
    EndsWith,
    Eq,
    EqIgnoreCase,
    Gt,
    Gte,
    HasAnyLabel,
    In,
    Lt,
    Lte,
    MatchesPattern,
    Ne,
    Not,
    NotIn,
    Or,
    PropertyFilter,
    StartsWith,
    check_identifier,
)
from cypherguard.log_config import get_logger

log = get_logger("filters.compiler")

DEFAULT_NODE_ALIAS = "e"
DEFAULT_PARAM_PREFIX = "_filter_"

# Binary operators rendered as `alias.key OP $param`
_BINARY_OPERATORS: dict[type, str] = {
    Eq: "=",
    Ne: "<>",
    Gt: ">",
    Gte: ">=",
    Lt: "<",
    Lte: "<=",
    Contains: "CONTAINS",
    StartsWith: "STARTS WITH",
    EndsWith: "ENDS WITH",
}

# Case-insensitive operators: property wrapped in toLower(), value lower-cased now
_CASE_FOLDED_OPERATORS: dict[type, str] = {
    ContainsIgnoreCase: "CONTAINS",
    EqIgnoreCase: "=",
}


@dataclass(frozen=True)
class CompiledFilter:
    """A WHERE fragment (without the WHERE keyword) plus its parameter bindings.

    Attributes:
        clause: Cypher boolean expression; empty string when there was no filter
        parameters: Generated parameter names mapped to literal values (read-only)
    """

    clause: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    EMPTY: ClassVar[CompiledFilter]

    def __post_init__(self):
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    def is_empty(self) -> bool:
        """True when this represents no filter at all."""
        return self.clause == ""

    def append_to(self, existing_clause: str) -> str:
        """AND this clause onto an existing WHERE fragment.

        Returns the existing clause untouched when this filter is empty, and
        this clause alone when the existing one is blank.
        """
        if self.is_empty():
            return existing_clause
        if not existing_clause.strip():
            return self.clause
        return f"{existing_clause} AND {self.clause}"


CompiledFilter.EMPTY = CompiledFilter("", {})


class CypherFilterCompiler:
    """Renders PropertyFilter / EntityFilter trees as parameterized Cypher.

    The compiler itself is stateless; the parameter counter lives for exactly
    one compile() call, so two results from the same compiler reuse names
    (`_filter_0`, ...). Give filters that will share a query different
    param_prefix values.
    """

    def __init__(
        self,
        node_alias: str = DEFAULT_NODE_ALIAS,
        param_prefix: str = DEFAULT_PARAM_PREFIX,
    ):
        """Initialize the compiler.

        Args:
            node_alias: Cypher variable the properties belong to (e.g. "e" -> e.name)
            param_prefix: Prefix for generated parameter names

        Raises:
            InvalidFilterError: If alias or prefix is not a simple identifier
        """
        self.node_alias = check_identifier(node_alias, "node alias")
        self.param_prefix = check_identifier(param_prefix, "parameter prefix")

    def compile(self, expr: PropertyFilter | None) -> CompiledFilter:
        """Compile a filter expression.

        Args:
            expr: Filter tree, or None for no filtering

        Returns:
            CompiledFilter; CompiledFilter.EMPTY when expr is None

        Raises:
            FilterCompilationError: If the tree contains an unsupported node
        """
        if expr is None:
            return CompiledFilter.EMPTY

        parameters: dict[str, Any] = {}
        counter = itertools.count()
        clause = self._compile(expr, parameters, counter)

        log.trace(f"Compiled filter: {clause} ({len(parameters)} params)")
        return CompiledFilter(clause, parameters)

    def _bind(self, value: Any, parameters: dict[str, Any], counter: Iterator[int]) -> str:
        name = f"{self.param_prefix}{next(counter)}"
        parameters[name] = value
        return f"${name}"

    def _compile(
        self,
        expr: PropertyFilter,
        parameters: dict[str, Any],
        counter: Iterator[int],
    ) -> str:
        alias = self.node_alias
        expr_type = type(expr)

        if expr_type in _BINARY_OPERATORS:
            ref = self._bind(expr.value, parameters, counter)
            return f"{alias}.{expr.key} {_BINARY_OPERATORS[expr_type]} {ref}"

        if expr_type in _CASE_FOLDED_OPERATORS:
            ref = self._bind(str(expr.value).lower(), parameters, counter)
            return f"toLower({alias}.{expr.key}) {_CASE_FOLDED_OPERATORS[expr_type]} {ref}"

        if isinstance(expr, In):
            ref = self._bind(list(expr.values), parameters, counter)
            return f"{alias}.{expr.key} IN {ref}"

        if isinstance(expr, NotIn):
            ref = self._bind(list(expr.values), parameters, counter)
            return f"NOT {alias}.{expr.key} IN {ref}"

        if isinstance(expr, MatchesPattern):
            ref = self._bind(expr.pattern, parameters, counter)
            return f"{alias}.{expr.key} =~ {ref}"

        if isinstance(expr, HasAnyLabel):
            ref = self._bind(sorted(expr.labels), parameters, counter)
            return f"ANY(label IN labels({alias}) WHERE label IN {ref})"

        if isinstance(expr, (And, Or)):
            clauses = [self._compile(child, parameters, counter) for child in expr.filters]
            if len(clauses) == 1:
                return clauses[0]
            joiner = " AND " if isinstance(expr, And) else " OR "
            return joiner.join(f"({c})" for c in clauses)

        if isinstance(expr, Not):
            return f"NOT ({self._compile(expr.filter, parameters, counter)})"

        raise FilterCompilationError(
            f"Unsupported filter type {expr_type.__name__}; refusing to drop the predicate"
        )


def compile_filter(
    expr: PropertyFilter | None,
    node_alias: str = DEFAULT_NODE_ALIAS,
    param_prefix: str = DEFAULT_PARAM_PREFIX,
) -> CompiledFilter:
    """Compile a filter with a one-off compiler."""
    return CypherFilterCompiler(node_alias, param_prefix).compile(expr)
