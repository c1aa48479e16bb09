"""Exception hierarchy for cypherguard.

Library code raises these and lets them propagate. Only the agent tool
executor turns them into text, since an LLM caller needs a readable
reason it can act on rather than a traceback.
"""

from typing import Iterable


class CypherGuardError(Exception):
    """Base class for all cypherguard errors."""


class InvalidFilterError(CypherGuardError, ValueError):
    """A filter expression was built with an unsafe or empty component."""


class FilterCompilationError(CypherGuardError):
    """The compiler met a filter variant it does not know how to render.

    Raised instead of silently dropping the predicate, which would widen
    the result set.
    """


class SchemaDefinitionError(CypherGuardError, ValueError):
    """Schema configuration is inconsistent (unknown type, cycle, bad file)."""


class QueryValidationError(CypherGuardError, ValueError):
    """A free-text Cypher query failed a safety check.

    Attributes:
        reason: Human (and LLM) readable explanation
        validator: Name of the check that failed
    """

    validator = "query"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class MutationRejectedError(QueryValidationError):
    """Query contains a write keyword or a write-capable procedure."""

    validator = "no_mutation"

    def __init__(self, keyword: str, reason: str | None = None):
        super().__init__(reason or f"Write operations are not allowed. Found: {keyword}")
        self.keyword = keyword


class UnreadableQueryError(QueryValidationError):
    """Query does not begin with a read clause."""

    validator = "no_mutation"

    def __init__(self, first_token: str, allowed: Iterable[str]):
        allowed = tuple(allowed)
        super().__init__(
            f"Query must start with a valid read operation ({', '.join(allowed)}). "
            f"Found: '{first_token}'"
        )
        self.first_token = first_token
        self.allowed = allowed


class SchemaViolationError(QueryValidationError):
    """Query references labels or relationship types the schema does not declare.

    Attributes:
        kind: "entity" or "relationship"
        unknown: Tokens found in the query but not in the schema
        known: The declared tokens of that kind
    """

    validator = "schema_adherence"

    def __init__(self, kind: str, unknown: Iterable[str], known: Iterable[str]):
        self.kind = kind
        self.unknown = sorted(unknown)
        self.known = sorted(known)
        super().__init__(schema_violation_message(kind, self.unknown, self.known))


def schema_violation_message(kind: str, unknown: Iterable[str], known: Iterable[str]) -> str:
    """Build the message shared by strict failures and lenient warnings."""
    noun = "entity types" if kind == "entity" else "relationship types"
    return (
        f"Query uses {noun} not in schema: {sorted(unknown)}. "
        f"Available types: {sorted(known)}"
    )
