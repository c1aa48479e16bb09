"""Graph execution protocol for cypherguard.

cypherguard never talks to a database itself. Callers hand the agent tools
any object with a `query(cypher, params)` method returning QueryResult; a
thin adapter around a FalkorDB, Memgraph or Neo4j client is enough.
"""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass
class QueryResult:
    """Unified query result from any graph backend.

    Attributes:
        result_set: List of result rows (each row is a list of values)
        header: Column names if available
        stats: Query statistics (nodes created, relationships created, etc.)
    """
    result_set: list[list[Any]]
    header: list[str] | None = None
    stats: dict[str, Any] | None = None

    def __iter__(self):
        """Allow iteration over result set."""
        return iter(self.result_set)

    def __len__(self):
        """Return number of result rows."""
        return len(self.result_set)

    def __bool__(self):
        """Check if result has any rows."""
        return len(self.result_set) > 0

    def rows(self) -> list[dict[str, Any]]:
        """Rows as dicts keyed by header; positional `col_<i>` keys without one."""
        rows = []
        for row in self.result_set:
            if self.header and len(self.header) == len(row):
                rows.append(dict(zip(self.header, row)))
            else:
                rows.append({f"col_{i}": val for i, val in enumerate(row)})
        return rows

    def single_or_none(self) -> dict[str, Any] | None:
        """The only row, or None when there are zero or several."""
        rows = self.rows()
        return rows[0] if len(rows) == 1 else None

    def number_or_zero(self, key: str) -> int | float:
        """Numeric value of `key` in the first row, 0 if missing or non-numeric."""
        rows = self.rows()
        if not rows:
            return 0
        value = rows[0].get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0
        return value


@runtime_checkable
class GraphQueryProtocol(Protocol):
    """Protocol for graph query capability."""

    def query(self, cypher: str, params: dict[str, Any] | None = None) -> QueryResult:
        """Execute a Cypher query.

        Args:
            cypher: Cypher query string
            params: Optional query parameters (use $param syntax)

        Returns:
            QueryResult with result_set, header, and stats
        """
        ...
