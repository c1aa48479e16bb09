"""Shared pytest fixtures for cypherguard tests."""

from __future__ import annotations

from typing import Any

import pytest
from loguru import logger

from cypherguard.graph_protocol import QueryResult
from cypherguard.schema import SchemaDescriptor


@pytest.fixture
def people_schema() -> SchemaDescriptor:
    """Person and Organization, both Entities, linked by WORKS_AT."""
    return SchemaDescriptor.from_dict({
        "node_types": {
            "Entity": {"description": "Anything with a name", "properties": ["id", "name"]},
            "Person": {"extends": ["Entity"], "description": "A human being"},
            "Organization": {"extends": ["Entity"], "description": "A company or institution"},
        },
        "relationships": {
            "WORKS_AT": {"from": "Person", "to": "Organization", "description": "Employment"},
            "KNOWS": {"from": "Person", "to": "Person"},
        },
    })


@pytest.fixture
def log_messages():
    """Capture loguru messages at WARNING and above.

    loguru does not feed pytest's caplog, so tests add a list sink instead.
    """
    messages: list[str] = []
    handler_id = logger.add(lambda msg: messages.append(msg.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)


class FakeGraph:
    """In-memory GraphQueryProtocol double returning canned results."""

    def __init__(self, result: QueryResult | None = None, error: Exception | None = None):
        self.result = result or QueryResult(result_set=[])
        self.error = error
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    def query(self, cypher: str, params: dict[str, Any] | None = None) -> QueryResult:
        self.calls.append((cypher, params))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_graph_factory():
    """Factory for FakeGraph instances."""
    return FakeGraph
