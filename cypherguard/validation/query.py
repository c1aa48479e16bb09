"""Query text normalization and the validator protocol.

LLM tool calls arrive as JSON, and models regularly double-escape, so a
query shows up with the two characters `\\n` where a line break was meant.
Checks such as "what is the first keyword" must see the query as it will
run, so everything is normalized before validation and execution.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from cypherguard.schema import SchemaDescriptor


def normalize_query(raw: str) -> str:
    """Turn literal backslash-n / backslash-t sequences into newline / tab.

    Idempotent: the replacements never produce a new backslash sequence.
    """
    return raw.replace("\\n", "\n").replace("\\t", "\t")


@dataclass(frozen=True)
class CompiledCypherQuery:
    """A Cypher query ready for validation and execution.

    Build with from_raw() for text of unknown origin; the plain constructor
    trusts that the text is already normalized.
    """

    query: str

    @classmethod
    def from_raw(cls, raw: str) -> "CompiledCypherQuery":
        return cls(normalize_query(raw))

    def __str__(self) -> str:
        return self.query


def as_compiled(query: str | CompiledCypherQuery) -> CompiledCypherQuery:
    """Normalize raw text; pass already-compiled queries through."""
    if isinstance(query, CompiledCypherQuery):
        return query
    return CompiledCypherQuery.from_raw(query)


@runtime_checkable
class CypherQueryValidator(Protocol):
    """A single safety check over query text.

    validate() returns None when the query passes and raises a
    QueryValidationError subclass when it does not.
    """

    def validate(self, query: CompiledCypherQuery, schema: SchemaDescriptor) -> None:
        ...
