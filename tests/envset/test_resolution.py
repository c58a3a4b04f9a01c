"""Tests for envset.resolution and envset.environment modules."""

import os
from unittest.mock import patch

import pytest

from envset.environment import EnvReader
from envset.exceptions import MissingValueError
from envset.resolution import SKIP, ResolvedValue, Resolver, ValueSource
from envset.tags import Tags


class TestEnvReader:
    """Tests for EnvReader."""

    def test_lookup(self):
        """Test reading a variable."""
        reader = EnvReader(environ={"PORT": "80"})
        assert reader.lookup("PORT") == "80"
        assert reader.lookup("HOST") is None

    def test_empty_value_is_not_unset(self):
        """Test empty values are returned as empty strings."""
        reader = EnvReader(environ={"EMPTY": ""})
        assert reader.lookup("EMPTY") == ""
        assert reader.lookup("MISSING") is None

    def test_prefix(self):
        """Test prefixed keys."""
        reader = EnvReader(prefix="APP", environ={"APP_PORT": "80", "PORT": "1"})
        assert reader.make_key("PORT") == "APP_PORT"
        assert reader.lookup("PORT") == "80"
        assert reader.lookup("HOST") is None

    def test_defaults_to_process_environment(self):
        """Test os.environ is read when no mapping is given."""
        with patch.dict(os.environ, {"ENVSET_TEST_VALUE": "x"}):
            assert EnvReader().lookup("ENVSET_TEST_VALUE") == "x"

    def test_repr(self):
        """Test repr hides environment contents."""
        reader = EnvReader(prefix="APP", environ={"APP_SECRET": "s"})
        assert repr(reader) == "EnvReader(prefix='APP')"


class TestResolvedValue:
    """Tests for ResolvedValue."""

    def test_skip(self):
        """Test the skip marker."""
        assert SKIP.is_skip
        assert SKIP.key is None

    def test_value(self):
        """Test a resolved value is not a skip."""
        resolved = ResolvedValue("PORT", "", ValueSource.ENVIRONMENT)
        assert not resolved.is_skip


class TestResolver:
    """Tests for Resolver."""

    @pytest.fixture
    def resolver(self) -> Resolver:
        return Resolver(EnvReader(environ={"PORT": "80", "EMPTY": ""}))

    def test_no_source_key(self, resolver):
        """Test fields without a source key are skipped."""
        assert resolver.resolve(Tags(default="1")) is SKIP
        assert not resolver.has_source_key(Tags(default="1"))

    def test_environment_value(self, resolver):
        """Test an environment value is used."""
        resolved = resolver.resolve(Tags(env="PORT", default="8080"))
        assert resolved == ResolvedValue("PORT", "80", ValueSource.ENVIRONMENT)

    def test_empty_environment_value(self, resolver):
        """Test an empty environment value wins over the default."""
        resolved = resolver.resolve(Tags(env="EMPTY", default="x"))
        assert resolved.value == ""
        assert resolved.source is ValueSource.ENVIRONMENT

    def test_default_value(self, resolver):
        """Test the default literal is used when the key is unset."""
        resolved = resolver.resolve(Tags(env="HOST", default="localhost"))
        assert resolved == ResolvedValue("HOST", "localhost", ValueSource.DEFAULT)

    def test_optional_without_value(self, resolver):
        """Test an optional key without value or default is skipped."""
        resolved = resolver.resolve(Tags(env="HOST,omitempty"))
        assert resolved.is_skip
        assert resolved.key == "HOST"
        assert resolved.optional

    def test_optional_flag_is_stripped(self, resolver):
        """Test the optional suffix is not part of the key."""
        resolved = resolver.resolve(Tags(env="PORT,omitempty"))
        assert resolved.key == "PORT"
        assert resolved.value == "80"
        assert resolved.optional

    def test_required_without_value(self, resolver):
        """Test a required key without value or default fails."""
        with pytest.raises(MissingValueError, match="Value required for 'HOST', but not set") as exc_info:
            resolver.resolve(Tags(env="HOST"))
        assert exc_info.value.key == "HOST"

    def test_custom_tag_names(self):
        """Test renamed annotations."""
        resolver = Resolver(EnvReader(environ={}), env_tag="e", default_tag="d")
        resolved = resolver.resolve(Tags(e="A", d="10", env="IGNORED"))
        assert resolved == ResolvedValue("A", "10", ValueSource.DEFAULT)

    def test_prefixed_missing_key(self):
        """Test the missing key error names the prefixed key."""
        resolver = Resolver(EnvReader(prefix="APP", environ={}))
        with pytest.raises(MissingValueError) as exc_info:
            resolver.resolve(Tags(env="PORT"))
        assert exc_info.value.key == "APP_PORT"
