"""Configuration for cypherguard.

Simple dataclass-based configuration with sensible defaults.
Override via environment variables with CYPHERGUARD_ prefix.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from cypherguard.filters.compiler import (
    DEFAULT_NODE_ALIAS,
    DEFAULT_PARAM_PREFIX,
    CypherFilterCompiler,
)
from cypherguard.log_config import get_logger
from cypherguard.schema import SchemaDescriptor, load_schema
from cypherguard.validation.chain import ChainedQueryValidator, default_validator

log = get_logger("config")

# Load .env file if present (current directory, then package parent)
_pkg_dir = Path(__file__).parent.parent
_env_loaded = load_dotenv() or load_dotenv(_pkg_dir / ".env")
log.debug(f"Loaded .env file: {_env_loaded}")


def _get_env(key: str, default: str) -> str:
    """Get environment variable with CYPHERGUARD_ prefix."""
    return os.getenv(f"CYPHERGUARD_{key}", default)


def _get_env_bool(key: str, default: bool) -> bool:
    """Get boolean environment variable."""
    val = os.getenv(f"CYPHERGUARD_{key}")
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


@dataclass
class Config:
    """cypherguard configuration.

    Attributes:
        node_alias: Default Cypher alias for compiled filters (default: e)
        param_prefix: Prefix for generated filter parameters (default: _filter_)
        strict_schema: Reject unknown labels/relationships instead of warning (default: True)
        schema_path: JSON or TOML schema file (default: None)
        max_results: LIMIT injected into agent row queries (default: 100)
    """

    node_alias: str = field(
        default_factory=lambda: _get_env("NODE_ALIAS", DEFAULT_NODE_ALIAS)
    )
    param_prefix: str = field(
        default_factory=lambda: _get_env("PARAM_PREFIX", DEFAULT_PARAM_PREFIX)
    )
    strict_schema: bool = field(
        default_factory=lambda: _get_env_bool("STRICT_SCHEMA", True)
    )
    schema_path: Path | None = field(
        default_factory=lambda: Path(p) if (p := _get_env("SCHEMA_PATH", "")) else None
    )
    max_results: int = field(
        default_factory=lambda: int(_get_env("MAX_RESULTS", "100"))
    )

    def __post_init__(self):
        """Normalize paths and check limits."""
        log.trace("Initializing Config")

        if isinstance(self.schema_path, str):
            self.schema_path = Path(self.schema_path)

        if self.max_results < 1:
            raise ValueError(f"max_results must be >= 1, got {self.max_results}")

        log.debug(f"node_alias={self.node_alias}, param_prefix={self.param_prefix}")
        log.debug(f"strict_schema={self.strict_schema}, max_results={self.max_results}")
        log.info(f"Config initialized: schema_path={self.schema_path}")

    def load_schema(self) -> SchemaDescriptor:
        """Load the configured schema, or an empty one when no path is set."""
        if self.schema_path is None:
            log.warning("No schema_path configured, using an empty schema")
            return SchemaDescriptor()
        return load_schema(self.schema_path)

    def build_compiler(self) -> CypherFilterCompiler:
        return CypherFilterCompiler(self.node_alias, self.param_prefix)

    def build_validator(self) -> ChainedQueryValidator:
        return default_validator(strict=self.strict_schema)
