"""Tests for schema adherence checking of free-text Cypher."""

import pytest

from cypherguard.errors import SchemaViolationError
from cypherguard.validation import (
    CompiledCypherQuery,
    SchemaAdherenceValidator,
    extract_labels,
    extract_relationship_types,
)


class TestExtraction:
    """Test label and relationship extraction."""

    @pytest.mark.parametrize(
        "cypher, labels",
        [
            ("MATCH (n:Person) RETURN n", {"Person"}),
            ("MATCH (:Person)-[:WORKS_AT]->(o:Organization) RETURN o", {"Person", "Organization"}),
            ("MATCH (n:Person:Entity) RETURN n", {"Person", "Entity"}),
            ("MATCH (n:Person|Robot) RETURN n", {"Person", "Robot"}),
            ("MATCH (n:Person&Entity) RETURN n", {"Person", "Entity"}),
            ("MATCH ( n : Person ) RETURN n", {"Person"}),
            ("MATCH (n:Person {name: 'x'}) RETURN n", {"Person"}),
            ("MATCH (n) WHERE n.x IN [1, 2] RETURN count(n)", set()),
        ],
    )
    def test_labels(self, cypher, labels):
        """Every label in a node pattern should be extracted."""
        assert extract_labels(cypher) == labels

    @pytest.mark.parametrize(
        "cypher, types",
        [
            ("MATCH (a)-[:WORKS_AT]->(b) RETURN a", {"WORKS_AT"}),
            ("MATCH (a)-[r:KNOWS]-(b) RETURN r", {"KNOWS"}),
            ("MATCH (a)-[:KNOWS*1..3]->(b) RETURN b", {"KNOWS"}),
            ("MATCH (a)-[:KNOWS|WORKS_AT]->(b) RETURN b", {"KNOWS", "WORKS_AT"}),
            ("MATCH (a)-[:KNOWS|:OWNS]->(b) RETURN b", {"KNOWS", "OWNS"}),
            ("MATCH (a)-[r]->(b) RETURN [x IN collect(b) | x.name]", set()),
        ],
    )
    def test_relationship_types(self, cypher, types):
        """Every relationship type in a pattern should be extracted."""
        assert extract_relationship_types(cypher) == types

    def test_labels_in_string_literals_are_picked_up(self):
        """Lexical scanning cannot tell string literals apart from patterns."""
        assert extract_labels("MATCH (n) WHERE n.note = '(x:Robot)' RETURN n") == {"Robot"}


class TestStrictMode:
    """Test strict schema adherence."""

    def test_known_names_pass(self, people_schema):
        """Declared labels (own or implied) and relationships should pass."""
        query = CompiledCypherQuery(
            "MATCH (p:Person:Entity)-[:WORKS_AT]->(o:Organization) RETURN p, o"
        )
        SchemaAdherenceValidator(strict=True).validate(query, people_schema)

    def test_unknown_label_rejected(self, people_schema):
        """An undeclared label should fail with it in the unknown set."""
        query = CompiledCypherQuery("MATCH (r:Robot)-[:WORKS_AT]->(o:Organization) RETURN r")
        with pytest.raises(SchemaViolationError) as exc_info:
            SchemaAdherenceValidator(strict=True).validate(query, people_schema)
        error = exc_info.value
        assert error.kind == "entity"
        assert error.unknown == ["Robot"]
        assert error.known == ["Entity", "Organization", "Person"]
        assert "Robot" in error.reason
        assert "Available types" in error.reason

    def test_unknown_relationship_rejected(self, people_schema):
        """An undeclared relationship type should fail."""
        query = CompiledCypherQuery("MATCH (p:Person)-[:OWNS]->(o:Organization) RETURN p")
        with pytest.raises(SchemaViolationError) as exc_info:
            SchemaAdherenceValidator().validate(query, people_schema)
        assert exc_info.value.kind == "relationship"
        assert exc_info.value.unknown == ["OWNS"]
        assert exc_info.value.known == ["KNOWS", "WORKS_AT"]

    def test_labels_are_case_sensitive(self, people_schema):
        """Labels that only differ in case are different labels."""
        query = CompiledCypherQuery("MATCH (p:person) RETURN p")
        with pytest.raises(SchemaViolationError):
            SchemaAdherenceValidator().validate(query, people_schema)


class TestLenientMode:
    """Test lenient schema adherence."""

    def test_unknown_label_only_logged(self, people_schema, log_messages):
        """Lenient mode should warn and accept the query."""
        query = CompiledCypherQuery("MATCH (r:Robot) RETURN r")
        SchemaAdherenceValidator(strict=False).validate(query, people_schema)
        assert any("Robot" in m for m in log_messages)

    def test_both_kinds_logged(self, people_schema, log_messages):
        """Label and relationship checks should both run."""
        query = CompiledCypherQuery("MATCH (r:Robot)-[:OWNS]->(o:Organization) RETURN r")
        SchemaAdherenceValidator(strict=False).validate(query, people_schema)
        assert any("Robot" in m for m in log_messages)
        assert any("OWNS" in m for m in log_messages)

    def test_clean_query_logs_nothing(self, people_schema, log_messages):
        """Known names should not produce warnings."""
        query = CompiledCypherQuery("MATCH (p:Person)-[:KNOWS]->(q:Person) RETURN q")
        SchemaAdherenceValidator(strict=False).validate(query, people_schema)
        assert log_messages == []
