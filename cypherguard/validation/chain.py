"""Ordered, fail-fast composition of query validators."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from cypherguard.errors import QueryValidationError
from cypherguard.log_config import get_logger, log_timing
from cypherguard.schema import SchemaDescriptor
from cypherguard.validation.mutation import NoMutationValidator
from cypherguard.validation.query import (
    CompiledCypherQuery,
    CypherQueryValidator,
    as_compiled,
)
from cypherguard.validation.schema_adherence import SchemaAdherenceValidator

log = get_logger("validation.chain")


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of ChainedQueryValidator.check().

    Attributes:
        ok: True when every validator passed
        reason: Failure reason, None on success
        validator: Name of the failing check, None on success
        error: The raised QueryValidationError, None on success
    """

    ok: bool
    reason: str | None = None
    validator: str | None = None
    error: QueryValidationError | None = None

    def __bool__(self) -> bool:
        return self.ok


class ChainedQueryValidator:
    """Runs validators in order and stops at the first failure.

    Accepts validators as varargs or as one iterable (list, tuple, generator):
        ChainedQueryValidator(a, b) == ChainedQueryValidator([a, b])
    """

    def __init__(self, *validators: CypherQueryValidator | Iterable[CypherQueryValidator]):
        if (
            len(validators) == 1
            and isinstance(validators[0], Iterable)
            and not isinstance(validators[0], CypherQueryValidator)
        ):
            validators = tuple(validators[0])
        for validator in validators:
            if not isinstance(validator, CypherQueryValidator):
                raise TypeError(f"Not a query validator: {validator!r}")
        self.validators: tuple[CypherQueryValidator, ...] = tuple(validators)

    def validate(self, query: str | CompiledCypherQuery, schema: SchemaDescriptor) -> None:
        """Validate a query against every check in order.

        Args:
            query: Raw text (normalized here) or an already compiled query
            schema: Schema snapshot passed to each validator

        Raises:
            QueryValidationError: The first failing validator's error, unchanged
        """
        compiled = as_compiled(query)
        with log_timing(f"Validated query with {len(self.validators)} checks", log, level="trace"):
            for validator in self.validators:
                validator.validate(compiled, schema)

    def check(self, query: str | CompiledCypherQuery, schema: SchemaDescriptor) -> ValidationOutcome:
        """Non-raising form of validate() for tool-execution callers."""
        try:
            self.validate(query, schema)
        except QueryValidationError as e:
            log.info(f"Query rejected by {e.validator}: {e.reason}")
            return ValidationOutcome(ok=False, reason=e.reason, validator=e.validator, error=e)
        return ValidationOutcome(ok=True)

    def __repr__(self) -> str:
        return f"ChainedQueryValidator({', '.join(repr(v) for v in self.validators)})"


def default_validator(strict: bool = True) -> ChainedQueryValidator:
    """Read-only check followed by schema adherence."""
    return ChainedQueryValidator(
        NoMutationValidator(),
        SchemaAdherenceValidator(strict=strict),
    )
