"""cypherguard - safe graph retrieval for applications and LLM agents.

Two halves:
- Filters: structured predicates compiled to parameterized Cypher WHERE clauses
- Validation: accept/reject checks for model-generated Cypher
  (read-only enforcement + schema adherence, chained fail-fast)
"""

__version__ = "0.1.0"

from cypherguard.config import Config
from cypherguard.errors import (
    CypherGuardError,
    FilterCompilationError,
    InvalidFilterError,
    MutationRejectedError,
    QueryValidationError,
    SchemaDefinitionError,
    SchemaViolationError,
    UnreadableQueryError,
)
from cypherguard.filters import CompiledFilter, CypherFilterCompiler, compile_filter
from cypherguard.schema import NodeType, RelationshipType, SchemaDescriptor, load_schema
from cypherguard.scope import QueryScope
from cypherguard.tools import CypherToolExecutor
from cypherguard.validation import (
    ChainedQueryValidator,
    CompiledCypherQuery,
    NoMutationValidator,
    SchemaAdherenceValidator,
    ValidationOutcome,
    default_validator,
    normalize_query,
)

__all__ = [
    "Config",
    "CypherGuardError",
    "FilterCompilationError",
    "InvalidFilterError",
    "MutationRejectedError",
    "QueryValidationError",
    "SchemaDefinitionError",
    "SchemaViolationError",
    "UnreadableQueryError",
    "CompiledFilter",
    "CypherFilterCompiler",
    "compile_filter",
    "NodeType",
    "RelationshipType",
    "SchemaDescriptor",
    "load_schema",
    "QueryScope",
    "CypherToolExecutor",
    "ChainedQueryValidator",
    "CompiledCypherQuery",
    "NoMutationValidator",
    "SchemaAdherenceValidator",
    "ValidationOutcome",
    "default_validator",
    "normalize_query",
]
