"""Safety validation for model-generated Cypher.

Module Structure:
- query.py: Normalization (CompiledCypherQuery) and the validator protocol
- mutation.py: NoMutationValidator (read-only enforcement)
- schema_adherence.py: SchemaAdherenceValidator (declared labels/relationships only)
- chain.py: ChainedQueryValidator, ValidationOutcome, default_validator

Example:
    from cypherguard.validation import default_validator

    validator = default_validator(strict=True)
    outcome = validator.check(llm_cypher, schema)
    if not outcome:
        return f"ERROR: {outcome.reason}"
"""

from cypherguard.validation.chain import (
    ChainedQueryValidator,
    ValidationOutcome,
    default_validator,
)
from cypherguard.validation.mutation import NoMutationValidator
from cypherguard.validation.query import (
    CompiledCypherQuery,
    CypherQueryValidator,
    as_compiled,
    normalize_query,
)
from cypherguard.validation.schema_adherence import (
    SchemaAdherenceValidator,
    extract_labels,
    extract_relationship_types,
)

__all__ = [
    "ChainedQueryValidator",
    "ValidationOutcome",
    "default_validator",
    "NoMutationValidator",
    "SchemaAdherenceValidator",
    "CompiledCypherQuery",
    "CypherQueryValidator",
    "as_compiled",
    "normalize_query",
    "extract_labels",
    "extract_relationship_types",
]
