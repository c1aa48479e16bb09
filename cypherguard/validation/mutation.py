"""Read-only enforcement for free-text Cypher.

NoMutationValidator rejects:
- Write clauses (CREATE, MERGE, SET, DELETE, REMOVE, DETACH, DROP)
- Write-capable procedures invoked with CALL (apoc.create.*, dbms.security.*,
  and any procedure named like db.createLabel or dbms.killQuery)
- Queries that do not start with a read clause

Keywords are matched on word boundaries so identifiers such as RESET or
DELETED_AT do not trip the SET / DELETE checks.
"""

from __future__ import annotations

import re

from cypherguard.errors import MutationRejectedError, UnreadableQueryError
from cypherguard.log_config import get_logger
from cypherguard.schema import SchemaDescriptor
from cypherguard.validation.query import CompiledCypherQuery

log = get_logger("validation.mutation")

WRITE_KEYWORDS = ("CREATE", "MERGE", "SET", "DELETE", "REMOVE", "DETACH", "DROP")

WRITE_PROCEDURES = (
    "APOC.CREATE",
    "APOC.MERGE",
    "APOC.REFACTOR",
    "APOC.PERIODIC",
    "APOC.CYPHER.DOIT",
    "APOC.ATOMIC",
    "APOC.LOCK",
    "DBMS.SECURITY",
)

# Procedures whose last name segment starts with a write verb, e.g.
# db.createLabel, db.index.fulltext.createNodeIndex, dbms.killQuery
WRITE_PROCEDURE_VERBS = ("CREATE", "SET", "DELETE", "DROP", "MERGE", "REMOVE", "ADD", "KILL")

READ_START_KEYWORDS = ("MATCH", "OPTIONAL", "WITH", "CALL", "RETURN", "UNWIND")

_WRITE_KEYWORD_PATTERNS = [(kw, re.compile(rf"\b{kw}\b")) for kw in WRITE_KEYWORDS]
_CALL_RE = re.compile(r"\bCALL\b")
_WRITE_VERB_PROCEDURE_RE = re.compile(
    rf"\bCALL\s+([A-Z0-9_.]*\.(?:{'|'.join(WRITE_PROCEDURE_VERBS)})[A-Z0-9_]*)(?![A-Z0-9_.])"
)
_FIRST_TOKEN_RE = re.compile(r"^[A-Z_]+")


class NoMutationValidator:
    """Stateless check that a query cannot write to the graph."""

    def validate(self, query: CompiledCypherQuery, schema: SchemaDescriptor) -> None:
        """Validate the query; schema is unused but part of the validator contract.

        Raises:
            MutationRejectedError: If a write keyword or write procedure is found
            UnreadableQueryError: If the query does not start with a read clause
        """
        cypher = query.query.upper()

        self._check_write_keywords(cypher)
        self._check_write_procedures(cypher)
        self._check_read_start(cypher)

        log.debug(f"Query passed mutation check: {query.query[:100]}")

    def _check_write_keywords(self, cypher: str) -> None:
        for keyword, pattern in _WRITE_KEYWORD_PATTERNS:
            if pattern.search(cypher):
                log.warning(f"Mutation keyword '{keyword}' detected in query, rejecting")
                raise MutationRejectedError(keyword)

    def _check_write_procedures(self, cypher: str) -> None:
        if not _CALL_RE.search(cypher):
            return
        for procedure in WRITE_PROCEDURES:
            if procedure in cypher:
                log.warning(f"Write procedure '{procedure}' detected in query, rejecting")
                raise MutationRejectedError(
                    procedure,
                    reason=f"Write procedures are not allowed. Found: {procedure.lower()}",
                )
        match = _WRITE_VERB_PROCEDURE_RE.search(cypher)
        if match:
            procedure = match.group(1)
            log.warning(f"Write procedure '{procedure}' detected in query, rejecting")
            raise MutationRejectedError(
                procedure,
                reason=f"Write procedures are not allowed. Found: {procedure.lower()}",
            )

    def _check_read_start(self, cypher: str) -> None:
        match = _FIRST_TOKEN_RE.match(cypher.strip())
        first_token = match.group(0) if match else cypher.strip()[:20]
        if first_token not in READ_START_KEYWORDS:
            raise UnreadableQueryError(first_token, READ_START_KEYWORDS)

    def __repr__(self) -> str:
        return "NoMutationValidator()"
