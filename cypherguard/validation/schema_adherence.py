"""Schema adherence check for free-text Cypher.

Extracts node labels and relationship types from pattern syntax and compares
them with the declared schema. This is a lexical scan, not a parser:
- Labels inside string literals (e.g. "'(a:Robot)'") are picked up too
- Backticked names and unusual spacing can slip past

Both gaps are accepted; unknown names would fail at execution time anyway and
the mutation check does not depend on this one.
"""

from __future__ import annotations

import re

from cypherguard.errors import SchemaViolationError, schema_violation_message
from cypherguard.log_config import get_logger
from cypherguard.schema import SchemaDescriptor
from cypherguard.validation.query import CompiledCypherQuery

log = get_logger("validation.schema")

_NAME = r"[A-Za-z_][A-Za-z0-9_]*"

# (n:Label), (:A:B), (n:A|B), (n:A&B)
_NODE_LABELS_RE = re.compile(rf"\(\s*(?:{_NAME})?\s*:\s*({_NAME}(?:\s*[:|&]\s*{_NAME})*)")

# -[:REL]->, -[r:REL*1..3]-, -[:A|B]-, -[:A|:B]-
_REL_TYPES_RE = re.compile(rf"\[\s*(?:{_NAME})?\s*:\s*({_NAME}(?:\s*\|\s*:?\s*{_NAME})*)")

_SEPARATOR_RE = re.compile(r"[\s:|&]+")


def _split(groups: list[str]) -> set[str]:
    return {token for group in groups for token in _SEPARATOR_RE.split(group) if token}


def extract_labels(cypher: str) -> set[str]:
    """All node labels used in node patterns, stacked labels included."""
    return _split(_NODE_LABELS_RE.findall(cypher))


def extract_relationship_types(cypher: str) -> set[str]:
    """All relationship types used in relationship patterns."""
    return _split(_REL_TYPES_RE.findall(cypher))


class SchemaAdherenceValidator:
    """Checks that a query only uses labels and relationship types from the schema.

    Args:
        strict: Raise on unknown names (default). When False, log a warning
            and accept the query.
    """

    def __init__(self, strict: bool = True):
        self.strict = strict

    def validate(self, query: CompiledCypherQuery, schema: SchemaDescriptor) -> None:
        """Validate entity labels, then relationship types.

        Raises:
            SchemaViolationError: In strict mode, on the first kind with unknown names
        """
        self._check(
            "entity",
            used=extract_labels(query.query),
            known=schema.all_labels(),
        )
        self._check(
            "relationship",
            used=extract_relationship_types(query.query),
            known=schema.relationship_names(),
        )

    def _check(self, kind: str, used: set[str], known: frozenset[str]) -> None:
        unknown = used - known
        if not unknown:
            return
        if self.strict:
            raise SchemaViolationError(kind, unknown, known)
        log.warning(schema_violation_message(kind, unknown, known))

    def __repr__(self) -> str:
        return f"SchemaAdherenceValidator(strict={self.strict})"
