"""Graph schema descriptor.

Read-only catalog of declared node types and relationship types. Validators
check free-text queries against it and the agent tools render it into the
LLM's prompt. Built once at startup, then shared without locking: the
models are frozen.

Schema file shape (JSON or TOML):

    {
      "node_types": {
        "Entity": {"description": "Anything with a name", "properties": ["id", "name"]},
        "Person": {"extends": ["Entity"], "description": "A human"},
        "Organization": {"extends": ["Entity"]}
      },
      "relationships": {
        "WORKS_AT": {"from": "Person", "to": "Organization", "description": "Employment"}
      }
    }

A type's label set is its own label plus every label it extends, transitively,
so a Person node is also an Entity node.
"""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from cypherguard.errors import SchemaDefinitionError
from cypherguard.log_config import get_logger

log = get_logger("schema")


class NodeType(BaseModel):
    """A declared node type.

    Attributes:
        label: The type's own (primary) label
        labels: Every label a node of this type carries, own label included
        description: Free text shown to the LLM
        properties: Property names worth mentioning in prompts
    """

    model_config = ConfigDict(frozen=True)

    label: str
    labels: frozenset[str] = frozenset()
    description: str = ""
    properties: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _include_own_label(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("label"), str):
            data = {**data, "labels": set(data.get("labels", ())) | {data["label"]}}
        return data


class RelationshipType(BaseModel):
    """A declared relationship type between two node types."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    from_type: str = Field(alias="from")
    to_type: str = Field(alias="to")
    description: str = ""


class SchemaDescriptor(BaseModel):
    """Immutable snapshot of the graph schema."""

    model_config = ConfigDict(frozen=True)

    node_types: tuple[NodeType, ...] = ()
    relationships: tuple[RelationshipType, ...] = ()

    def all_labels(self) -> frozenset[str]:
        """Union of every type's implied label set."""
        return frozenset(label for t in self.node_types for label in t.labels)

    def relationship_names(self) -> frozenset[str]:
        return frozenset(r.name for r in self.relationships)

    def node_type(self, label: str) -> NodeType | None:
        """Look up a node type by its own label."""
        for t in self.node_types:
            if t.label == label:
                return t
        return None

    def has_label(self, label: str) -> bool:
        return label in self.all_labels()

    def describe(self) -> str:
        """Render the schema as plain text for an LLM system prompt."""
        lines = ["Entity types:"]
        for t in self.node_types:
            line = f"- {t.label}"
            parents = sorted(t.labels - {t.label})
            if parents:
                line += f" (also: {', '.join(parents)})"
            if t.description:
                line += f": {t.description}"
            if t.properties:
                line += f" [properties: {', '.join(t.properties)}]"
            lines.append(line)

        lines.append("Relationships:")
        for r in self.relationships:
            line = f"- ({r.from_type})-[:{r.name}]->({r.to_type})"
            if r.description:
                line += f": {r.description}"
            lines.append(line)

        return "\n".join(lines)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SchemaDescriptor":
        """Build a descriptor from the schema file shape (see module docstring).

        Raises:
            SchemaDefinitionError: On unknown parents or endpoints, inheritance
                cycles, or fields of the wrong type
        """
        raw_types: dict[str, Any] = data.get("node_types", {}) or {}
        raw_rels: dict[str, Any] = data.get("relationships", {}) or {}

        parents = {
            label: tuple((spec or {}).get("extends", ()))
            for label, spec in raw_types.items()
        }
        for label, extends in parents.items():
            for parent in extends:
                if parent not in parents:
                    raise SchemaDefinitionError(
                        f"Node type '{label}' extends unknown type '{parent}'"
                    )

        resolved: dict[str, frozenset[str]] = {}

        def implied(label: str, visiting: tuple[str, ...]) -> frozenset[str]:
            if label in visiting:
                cycle = " -> ".join(visiting + (label,))
                raise SchemaDefinitionError(f"Inheritance cycle in schema: {cycle}")
            if label not in resolved:
                labels = {label}
                for parent in parents[label]:
                    labels |= implied(parent, visiting + (label,))
                resolved[label] = frozenset(labels)
            return resolved[label]

        try:
            node_types = tuple(
                NodeType(
                    label=label,
                    labels=implied(label, ()),
                    description=(spec or {}).get("description", ""),
                    properties=tuple((spec or {}).get("properties", ())),
                )
                for label, spec in raw_types.items()
            )

            relationships = []
            for name, spec in raw_rels.items():
                rel = RelationshipType.model_validate({"name": name, **spec})
                for endpoint in (rel.from_type, rel.to_type):
                    if endpoint not in parents:
                        raise SchemaDefinitionError(
                            f"Relationship '{name}' references unknown type '{endpoint}'"
                        )
                relationships.append(rel)
        except ValidationError as e:
            raise SchemaDefinitionError(f"Invalid schema definition: {e}") from e

        schema = cls(node_types=node_types, relationships=tuple(relationships))
        log.debug(
            f"Schema built: {len(schema.node_types)} node types, "
            f"{len(schema.relationships)} relationships"
        )
        return schema


def load_schema(path: Path | str) -> SchemaDescriptor:
    """Load a schema descriptor from a .json or .toml file.

    Raises:
        SchemaDefinitionError: If the file type is unsupported or unparseable
    """
    path = Path(path)
    log.info(f"Loading schema from {path}")

    try:
        if path.suffix == ".json":
            data = json.loads(path.read_text())
        elif path.suffix == ".toml":
            data = tomllib.loads(path.read_text())
        else:
            raise SchemaDefinitionError(f"Unsupported schema file type: {path.suffix}")
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise SchemaDefinitionError(f"Could not parse schema file {path}: {e}") from e

    return SchemaDescriptor.from_dict(data)
