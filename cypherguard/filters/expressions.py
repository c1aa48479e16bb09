"""Filter expression model.

An immutable, composable boolean expression tree over node properties and
labels. Pure data: the Cypher rendering lives in compiler.py.

Example:
    from cypherguard.filters import eq, gte, has_any_label

    f = (eq("owner", "alice") & gte("score", 0.8)) | eq("role", "admin")
    people = has_any_label("Person") & eq("status", "active")
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

from cypherguard.errors import InvalidFilterError

# Keys are rendered into clause text as identifiers, so only plain names pass
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def check_identifier(name: Any, what: str = "property key") -> str:
    """Return name if it is a simple Cypher identifier, else raise."""
    if not isinstance(name, str) or not IDENTIFIER_RE.match(name):
        raise InvalidFilterError(
            f"Invalid {what} {name!r}: must match {IDENTIFIER_RE.pattern}"
        )
    return name


class PropertyFilter:
    """Base class for every filter expression.

    Supports `&` (And), `|` (Or) and `~` (Not). Combining never flattens:
    `(a & b) & c` keeps its nesting.
    """

    __slots__ = ()

    def __and__(self, other: PropertyFilter) -> And:
        return And((self, other))

    def __or__(self, other: PropertyFilter) -> Or:
        return Or((self, other))

    def __invert__(self) -> Not:
        return Not(self)


class EntityFilter(PropertyFilter):
    """Filters that look at the entity itself (labels) rather than a property."""

    __slots__ = ()


# ---------------------------------------------------------------------------
# Leaf predicates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _KeyedFilter(PropertyFilter):
    key: str

    def __post_init__(self):
        check_identifier(self.key)


@dataclass(frozen=True)
class Eq(_KeyedFilter):
    value: Any


@dataclass(frozen=True)
class Ne(_KeyedFilter):
    value: Any


@dataclass(frozen=True)
class Gt(_KeyedFilter):
    value: Any


@dataclass(frozen=True)
class Gte(_KeyedFilter):
    value: Any


@dataclass(frozen=True)
class Lt(_KeyedFilter):
    value: Any


@dataclass(frozen=True)
class Lte(_KeyedFilter):
    value: Any


@dataclass(frozen=True)
class In(_KeyedFilter):
    values: tuple

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class NotIn(_KeyedFilter):
    values: tuple

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class Contains(_KeyedFilter):
    value: str


@dataclass(frozen=True)
class ContainsIgnoreCase(_KeyedFilter):
    """Case-insensitive substring match; the value is lower-cased at compile time."""

    value: str


@dataclass(frozen=True)
class EqIgnoreCase(_KeyedFilter):
    """Case-insensitive equality; the value is lower-cased at compile time."""

    value: str


@dataclass(frozen=True)
class StartsWith(_KeyedFilter):
    value: str


@dataclass(frozen=True)
class EndsWith(_KeyedFilter):
    value: str


@dataclass(frozen=True)
class MatchesPattern(_KeyedFilter):
    """Regex match. The pattern is passed through untouched, so callers put
    flags such as `(?i)` inside the pattern themselves."""

    pattern: str


@dataclass(frozen=True)
class HasAnyLabel(EntityFilter):
    """True when the entity carries at least one of the given labels."""

    labels: frozenset

    def __post_init__(self):
        labels = frozenset(self.labels)
        if not labels:
            raise InvalidFilterError("HasAnyLabel requires at least one label")
        object.__setattr__(self, "labels", labels)


# ---------------------------------------------------------------------------
# Composites
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Composite(PropertyFilter):
    filters: tuple

    def __post_init__(self):
        filters = tuple(self.filters)
        if not filters:
            raise InvalidFilterError(f"{type(self).__name__} requires at least one filter")
        for child in filters:
            if not isinstance(child, PropertyFilter):
                raise InvalidFilterError(
                    f"{type(self).__name__} children must be filters, got {type(child).__name__}"
                )
        object.__setattr__(self, "filters", filters)


@dataclass(frozen=True)
class And(_Composite):
    pass


@dataclass(frozen=True)
class Or(_Composite):
    pass


@dataclass(frozen=True)
class Not(PropertyFilter):
    filter: PropertyFilter

    def __post_init__(self):
        if not isinstance(self.filter, PropertyFilter):
            raise InvalidFilterError(f"Not requires a filter, got {type(self.filter).__name__}")


# ---------------------------------------------------------------------------
# Construction helpers
# ---------------------------------------------------------------------------

def eq(key: str, value: Any) -> Eq:
    return Eq(key, value)


def ne(key: str, value: Any) -> Ne:
    return Ne(key, value)


def gt(key: str, value: Any) -> Gt:
    return Gt(key, value)


def gte(key: str, value: Any) -> Gte:
    return Gte(key, value)


def lt(key: str, value: Any) -> Lt:
    return Lt(key, value)


def lte(key: str, value: Any) -> Lte:
    return Lte(key, value)


def _collect(values: tuple) -> tuple:
    # in_("k", ["a", "b"]) and in_("k", "a", "b") are equivalent
    if len(values) == 1 and isinstance(values[0], (list, tuple, set, frozenset)):
        return tuple(values[0])
    return values


def in_(key: str, *values: Any) -> In:
    return In(key, _collect(values))


def not_in(key: str, *values: Any) -> NotIn:
    return NotIn(key, _collect(values))


def contains(key: str, value: str) -> Contains:
    return Contains(key, value)


def contains_ignore_case(key: str, value: str) -> ContainsIgnoreCase:
    return ContainsIgnoreCase(key, value)


def eq_ignore_case(key: str, value: str) -> EqIgnoreCase:
    return EqIgnoreCase(key, value)


def starts_with(key: str, value: str) -> StartsWith:
    return StartsWith(key, value)


def ends_with(key: str, value: str) -> EndsWith:
    return EndsWith(key, value)


def like(key: str, pattern: str) -> MatchesPattern:
    return MatchesPattern(key, pattern)


def all_of(*filters: PropertyFilter) -> And:
    return And(filters)


def any_of(*filters: PropertyFilter) -> Or:
    return Or(filters)


def not_(filter: PropertyFilter) -> Not:
    return Not(filter)


def has_any_label(*labels: str) -> HasAnyLabel:
    return HasAnyLabel(frozenset(_collect(labels)))


# ---------------------------------------------------------------------------
# Dict form (for filters that arrive as JSON from a tool call or API)
# ---------------------------------------------------------------------------

_VALUE_OPERATORS: dict[str, type] = {
    "eq": Eq,
    "ne": Ne,
    "gt": Gt,
    "gte": Gte,
    "lt": Lt,
    "lte": Lte,
    "contains": Contains,
    "contains_ignore_case": ContainsIgnoreCase,
    "eq_ignore_case": EqIgnoreCase,
    "starts_with": StartsWith,
    "ends_with": EndsWith,
}

_LIST_OPERATORS: dict[str, type] = {"in": In, "not_in": NotIn}


def _list_body(op: str, body: Any) -> tuple:
    # A bare string would otherwise be split into characters
    if not isinstance(body, (list, tuple)):
        raise InvalidFilterError(f"'{op}' expects a list, got {type(body).__name__}")
    return tuple(body)


def filter_from_dict(data: dict[str, Any]) -> PropertyFilter:
    """Build a filter tree from its JSON form.

    Each node is a single-key dict naming the operator:
        {"eq": {"key": "owner", "value": "alice"}}
        {"in": {"key": "status", "values": ["a", "b"]}}
        {"like": {"key": "code", "pattern": "ERR-\\\\d+"}}
        {"has_any_label": ["Person", "Organization"]}
        {"and": [...]}, {"or": [...]}, {"not": {...}}

    Raises:
        InvalidFilterError: On unknown operators or malformed nodes
    """
    if not isinstance(data, dict) or len(data) != 1:
        raise InvalidFilterError(f"Filter node must be a single-key object, got {data!r}")

    (op, body), = data.items()

    try:
        if op in _VALUE_OPERATORS:
            return _VALUE_OPERATORS[op](body["key"], body["value"])
        if op in _LIST_OPERATORS:
            return _LIST_OPERATORS[op](body["key"], _list_body(op, body["values"]))
        if op == "like":
            return MatchesPattern(body["key"], body["pattern"])
        if op == "has_any_label":
            return HasAnyLabel(frozenset(_list_body(op, body)))
        if op == "and":
            return And(tuple(filter_from_dict(child) for child in _list_body(op, body)))
        if op == "or":
            return Or(tuple(filter_from_dict(child) for child in _list_body(op, body)))
        if op == "not":
            return Not(filter_from_dict(body))
    except (KeyError, TypeError) as e:
        raise InvalidFilterError(f"Malformed '{op}' filter: {e}") from e

    raise InvalidFilterError(f"Unknown filter operator '{op}'")
