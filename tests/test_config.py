"""Config tests for cypherguard.

Tests critical configuration pathways:
- Defaults match the library defaults
- Environment variable override mechanism works
- Config builds the compiler, validator and schema it describes
"""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from cypherguard.config import Config
from cypherguard.errors import InvalidFilterError
from cypherguard.filters import eq
from cypherguard.schema import SchemaDescriptor


@pytest.fixture
def clean_env():
    """Environment without any CYPHERGUARD_ overrides."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("CYPHERGUARD_")}
    with patch.dict(os.environ, env, clear=True):
        yield


class TestConfigDefaults:
    """Test that config has expected default values."""

    def test_defaults(self, clean_env):
        """Defaults should match the compiler and tool defaults."""
        config = Config()
        assert config.node_alias == "e"
        assert config.param_prefix == "_filter_"
        assert config.strict_schema is True
        assert config.schema_path is None
        assert config.max_results == 100


class TestConfigEnvironmentOverrides:
    """Test environment variable overrides for config."""

    def test_string_overrides(self, clean_env):
        """Alias and prefix should be overridable via env vars."""
        with patch.dict(os.environ, {"CYPHERGUARD_NODE_ALIAS": "n", "CYPHERGUARD_PARAM_PREFIX": "_p_"}):
            config = Config()
            assert config.node_alias == "n"
            assert config.param_prefix == "_p_"

    @pytest.mark.parametrize("raw, expected", [("false", False), ("0", False), ("TRUE", True), ("yes", True)])
    def test_strict_schema_override(self, clean_env, raw, expected):
        """Strict schema mode should parse common boolean spellings."""
        with patch.dict(os.environ, {"CYPHERGUARD_STRICT_SCHEMA": raw}):
            assert Config().strict_schema is expected

    def test_max_results_override(self, clean_env):
        """Max results should be overridable via env var."""
        with patch.dict(os.environ, {"CYPHERGUARD_MAX_RESULTS": "25"}):
            assert Config().max_results == 25

    def test_schema_path_override(self, clean_env, tmp_path):
        """Schema path should be read as a Path."""
        with patch.dict(os.environ, {"CYPHERGUARD_SCHEMA_PATH": str(tmp_path / "schema.json")}):
            assert Config().schema_path == tmp_path / "schema.json"


class TestConfigValidation:
    """Test checks done at construction."""

    def test_max_results_must_be_positive(self, clean_env):
        """A zero row limit should be refused."""
        with pytest.raises(ValueError):
            Config(max_results=0)

    def test_schema_path_string_converted(self, clean_env):
        """A string schema_path should become a Path."""
        assert isinstance(Config(schema_path="schema.toml").schema_path, Path)


class TestConfigBuilders:
    """Test objects built from config."""

    def test_build_compiler(self, clean_env):
        """The compiler should use the configured alias and prefix."""
        compiler = Config(node_alias="n", param_prefix="_p_").build_compiler()
        result = compiler.compile(eq("owner", "alice"))
        assert result.clause == "n.owner = $_p_0"

    def test_build_compiler_rejects_bad_alias(self, clean_env):
        """Unsafe aliases from the environment should fail when used."""
        with pytest.raises(InvalidFilterError):
            Config(node_alias="n) DELETE (m").build_compiler()

    def test_build_validator(self, clean_env):
        """The validator should follow strict_schema."""
        chain = Config(strict_schema=False).build_validator()
        assert chain.validators[1].strict is False

    def test_load_schema_without_path(self, clean_env):
        """No schema_path should give an empty schema."""
        assert Config().load_schema() == SchemaDescriptor()

    def test_load_schema_from_path(self, clean_env, tmp_path):
        """A configured schema file should be loaded."""
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"node_types": {"Person": {}}}))
        schema = Config(schema_path=path).load_schema()
        assert schema.all_labels() == frozenset({"Person"})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
