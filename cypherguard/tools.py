"""Agent-facing Cypher tools.

CypherToolExecutor is the boundary between an LLM agent and the graph. The
agent writes Cypher; every query is normalized and run through the validator
chain before it reaches the backend. Tools always return text: a failure
becomes an "ERROR: ..." message with guidance, so the agent can fix its
query and call again instead of the whole run aborting.

Example:
    executor = CypherToolExecutor(schema, graph)
    executor.cypher_count("MATCH (p:Person)-[:WORKS_AT]->(:Organization) RETURN count(p)")
    # "Count: 12"
    executor.query_for_rows("MATCH (p:Person) DETACH DELETE p")
    # "ERROR: Write operations are not allowed. Found: DELETE\\nPlease fix the query and try again."
"""

from __future__ import annotations

import re
from typing import Any

from cypherguard.errors import CypherGuardError, QueryValidationError
from cypherguard.filters.compiler import CypherFilterCompiler
from cypherguard.filters.expressions import check_identifier, contains_ignore_case
from cypherguard.graph_protocol import GraphQueryProtocol, QueryResult
from cypherguard.log_config import get_logger
from cypherguard.schema import SchemaDescriptor
from cypherguard.validation.chain import ChainedQueryValidator, default_validator
from cypherguard.validation.query import CompiledCypherQuery

log = get_logger("tools")

# Only a LIMIT closing the whole query counts; one inside CALL { ... } does not
_FINAL_LIMIT_RE = re.compile(r"\bLIMIT\s+(\d+|\$\w+)\s*$", re.IGNORECASE)

# String literals are matched so that '//' inside them is not taken for a comment
_STRING_OR_COMMENT_RE = re.compile(
    r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|//[^\n]*|/\*.*?\*/",
    re.DOTALL,
)

FIND_ENTITY_LIMIT = 10


class CypherToolExecutor:
    """Validated, text-returning Cypher tools for an LLM agent."""

    def __init__(
        self,
        schema: SchemaDescriptor,
        graph: GraphQueryProtocol,
        validator: ChainedQueryValidator | None = None,
        max_results: int = 100,
    ):
        """Initialize the executor.

        Args:
            schema: Schema snapshot queries are checked against
            graph: Backend implementing query(cypher, params)
            validator: Validator chain (default: read-only + strict schema)
            max_results: LIMIT injected into row queries that have none
        """
        if max_results < 1:
            raise ValueError(f"max_results must be >= 1, got {max_results}")
        self.schema = schema
        self.graph = graph
        self.validator = validator or default_validator(strict=True)
        self.max_results = max_results
        self._compiler = CypherFilterCompiler(node_alias="n")

    # =========================================================================
    # Tools
    # =========================================================================

    def cypher_count(self, cypher: str) -> str:
        """Run a query that returns a single count."""
        try:
            compiled = self._validated(cypher)
            log.info(f"Executing count query: {compiled.query}")
            count = self._extract_count(self.graph.query(compiled.query))
            log.info(f"Count result: {count}")
            return f"Count: {count}"
        except Exception as e:
            message = str(e) or type(e).__name__
            log.error(f"Error executing count query: {message}")
            if "Expected exactly one" in message:
                guidance = (
                    "Your query returns multiple rows or columns. "
                    "Use query_for_rows for aggregations that return multiple results."
                )
            else:
                guidance = _guidance(message)
            return f"ERROR: {message}\n{guidance}"

    def query_for_rows(self, cypher: str) -> str:
        """Run a read query and render every row as `key: value` pairs."""
        try:
            compiled = self._validated(cypher)
            query = self._with_limit(compiled.query)
            log.info(f"Executing rows query: {query}")
            rows = self.graph.query(query).rows()
            log.info(f"Found {len(rows)} rows")
        except Exception as e:
            message = str(e) or type(e).__name__
            log.error(f"Error executing rows query: {message}")
            return f"ERROR: {message}\n{_guidance(message)}"

        if not rows:
            return (
                "No results found. This could mean:\n"
                "- No data matches your query criteria\n"
                "- The relationships you're querying don't exist in the database\n"
                "- Try a simpler query first to verify the data exists"
            )
        lines = [", ".join(f"{k}: {v}" for k, v in row.items()) for row in rows]
        return f"Found {len(rows)} rows:\n" + "\n".join(lines)

    def query_for_values(self, cypher: str) -> str:
        """Run a read query whose rows carry a `value` column."""
        try:
            compiled = self._validated(cypher)
            query = self._with_limit(compiled.query)
            log.info(f"Executing values query: {query}")
            values = [
                str(row["value"])
                for row in self.graph.query(query).rows()
                if row.get("value") is not None
            ]
            log.info(f"Found {len(values)} values")
        except Exception as e:
            message = f"Error executing values query: {e}"
            log.error(message)
            return f"ERROR: {message}\nPlease fix the query and try again."

        if not values:
            return "No values found."
        return f"Found {len(values)} values:\n" + "\n".join(f"- {v}" for v in values)

    def find_entity(self, label: str, search_term: str) -> str:
        """Case-insensitive name search within one declared label."""
        try:
            label = self._declared_label(label)
            name_filter = self._compiler.compile(contains_ignore_case("name", search_term))
            query = (
                f"MATCH (n:{label}) WHERE {name_filter.clause} "
                f"RETURN n.id AS id, n.name AS name, labels(n) AS labels "
                f"LIMIT {FIND_ENTITY_LIMIT}"
            )
            log.info(f"Finding entity with label={label}, search_term={search_term}")
            rows = self.graph.query(query, dict(name_filter.parameters)).rows()
            log.info(f"Found {len(rows)} matching entities")
        except Exception as e:
            message = f"Error finding entity: {e}"
            log.error(message)
            return (
                f"ERROR: {message}\n"
                "Please check the label name and try again with a different search term."
            )

        if not rows:
            return (
                f"No {label} found matching '{search_term}'.\n"
                "Try again with a different or shorter search term (e.g., just the surname)."
            )
        if len(rows) == 1:
            row = rows[0]
            return (
                f"Found exact match: {row.get('name', 'unknown')} "
                f"(id: {row.get('id', 'unknown')}). Use this id or name in your query."
            )
        listing = "\n".join(
            f"- {row.get('name', 'unknown')} (id: {row.get('id', 'unknown')})" for row in rows
        )
        return (
            f"Found {len(rows)} matching {label}(s). Choose the most relevant one:\n"
            f"{listing}\n\nUse the chosen entity's id or exact name in your query."
        )

    def list_all(self, label: str, limit: int = 50) -> str:
        """List id and name of every node with a declared label."""
        try:
            label = self._declared_label(label)
            limit = max(1, min(int(limit), self.max_results))
            query = (
                f"MATCH (n:{label}) RETURN n.id AS id, n.name AS name "
                f"ORDER BY n.name LIMIT $limit"
            )
            log.info(f"Listing all {label} (limit {limit})")
            rows = self.graph.query(query, {"limit": limit}).rows()
        except Exception as e:
            message = f"Error listing {label}: {e}"
            log.error(message)
            return f"ERROR: {message}"

        if not rows:
            return f"No {label} entities found in the database."
        listing = "\n".join(f"- {row.get('name', '?')} (id: {row.get('id', '?')})" for row in rows)
        return f"Found {len(rows)} {label} entities:\n{listing}"

    def describe_schema(self) -> str:
        """The declared schema as text, for the agent's system prompt."""
        return self.schema.describe()

    def tool_specs(self) -> list[dict[str, Any]]:
        """Name, description and JSON-schema parameters for each tool."""
        cypher_param = {
            "type": "object",
            "properties": {"cypher": {"type": "string", "description": "Read-only Cypher query"}},
            "required": ["cypher"],
        }
        label_param = {"type": "string", "description": "Node label declared in the schema"}
        return [
            {
                "name": "cypher_count",
                "description": "Run a Cypher query returning a single count, e.g. RETURN count(n)",
                "parameters": cypher_param,
            },
            {
                "name": "query_for_rows",
                "description": "Run a read-only Cypher query and get rows of named columns",
                "parameters": cypher_param,
            },
            {
                "name": "query_for_values",
                "description": "Run a read-only Cypher query returning a column aliased AS value",
                "parameters": cypher_param,
            },
            {
                "name": "find_entity",
                "description": "Find entities of a label whose name contains a search term",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "label": label_param,
                        "search_term": {"type": "string", "description": "Part of the name"},
                    },
                    "required": ["label", "search_term"],
                },
            },
            {
                "name": "list_all",
                "description": "List ids and names of all entities with a label",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "label": label_param,
                        "limit": {"type": "integer", "description": "Maximum rows (default 50)"},
                    },
                    "required": ["label"],
                },
            },
        ]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validated(self, cypher: str) -> CompiledCypherQuery:
        compiled = CompiledCypherQuery.from_raw(cypher)
        self.validator.validate(compiled, self.schema)
        return compiled

    def _with_limit(self, query: str) -> str:
        """Append LIMIT max_results unless the query already ends with a LIMIT.

        The limit goes on its own line so a trailing `//` comment cannot
        swallow it.
        """
        query = query.strip().rstrip(";")
        code = _STRING_OR_COMMENT_RE.sub(
            lambda m: m.group(0) if m.group(0)[0] in "'\"" else " ", query
        )
        if _FINAL_LIMIT_RE.search(code.rstrip().rstrip(";")):
            return query
        log.debug(f"Injected LIMIT {self.max_results}")
        return f"{query}\nLIMIT {self.max_results}"

    def _declared_label(self, label: str) -> str:
        check_identifier(label, "label")
        if not self.schema.has_label(label):
            raise QueryValidationError(
                f"Unknown label '{label}'. Available types: {sorted(self.schema.all_labels())}"
            )
        return label

    @staticmethod
    def _extract_count(result: QueryResult) -> int | float:
        rows = result.rows()
        if len(rows) == 1:
            row = rows[0]
            value = row.get("count", row.get("cnt"))
            if value is None and len(row) == 1:
                value = next(iter(row.values()))
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return value
        raise CypherGuardError(
            f"Expected exactly one numeric result, got {len(rows)} row(s)"
        )


def _guidance(message: str) -> str:
    """Hint for the agent, based on what went wrong."""
    if "Invalid input" in message:
        return "Cypher syntax error. Check your query syntax and try again."
    if "not in schema" in message or "not defined" in message or "unknown" in message.lower():
        return "Unknown label or relationship type. Check that you're using types from the schema."
    return "Please fix the query and try again."
