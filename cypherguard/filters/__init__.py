"""Structured filters and their compilation to parameterized Cypher.

Module Structure:
- expressions.py: Immutable filter tree (PropertyFilter, EntityFilter) and builders
- compiler.py: CypherFilterCompiler and CompiledFilter

Example:
    from cypherguard.filters import CypherFilterCompiler, eq, has_any_label

    result = CypherFilterCompiler("n").compile(has_any_label("Person") & eq("status", "active"))
    graph.query(f"MATCH (n) WHERE {result.clause} RETURN n", result.parameters)
"""

from cypherguard.filters.compiler import (
    CompiledFilter,
    CypherFilterCompiler,
    compile_filter,
)
from cypherguard.filters.expressions import (
    And,
    Contains,
    ContainsIgnoreCase,
    EndsWith,
    EntityFilter,
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
    all_of,
    any_of,
    contains,
    contains_ignore_case,
    ends_with,
    eq,
    eq_ignore_case,
    filter_from_dict,
    gt,
    gte,
    has_any_label,
    in_,
    like,
    lt,
    lte,
    ne,
    not_,
    not_in,
    starts_with,
)

__all__ = [
    "CompiledFilter",
    "CypherFilterCompiler",
    "compile_filter",
    "PropertyFilter",
    "EntityFilter",
    "Eq",
    "Ne",
    "Gt",
    "Gte",
    "Lt",
    "Lte",
    "In",
    "NotIn",
    "Contains",
    "ContainsIgnoreCase",
    "EqIgnoreCase",
    "StartsWith",
    "EndsWith",
    "MatchesPattern",
    "HasAnyLabel",
    "And",
    "Or",
    "Not",
    "eq",
    "ne",
    "gt",
    "gte",
    "lt",
    "lte",
    "in_",
    "not_in",
    "contains",
    "contains_ignore_case",
    "eq_ignore_case",
    "starts_with",
    "ends_with",
    "like",
    "all_of",
    "any_of",
    "not_",
    "has_any_label",
    "filter_from_dict",
]
