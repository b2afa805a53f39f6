"""
Unit tests for engine configuration loading.
"""

import pytest
from pydantic import ValidationError

from quizcentral.config import CONFIG_ENV_VAR, EngineConfig, load_engine_config, resolve_config_path


class TestEngineConfig:
    def test_defaults(self):
        """Test default settings."""
        config = EngineConfig()
        assert config.shuffle_seed is None
        assert config.max_cascade_depth == 32
        assert config.guard_navigation is True

    def test_rejects_unknown_keys(self):
        """Test that typos in config keys are errors."""
        with pytest.raises(ValidationError):
            EngineConfig(shuffle_sed=1)

    def test_cascade_depth_positive(self):
        """Test that the cascade depth must be at least 1."""
        with pytest.raises(ValidationError):
            EngineConfig(max_cascade_depth=0)


class TestLoadEngineConfig:
    """Test YAML loading and path resolution."""

    def test_explicit_file(self, tmp_path):
        """Test loading an explicit YAML file."""
        path = tmp_path / "quizcentral.yaml"
        path.write_text("shuffle_seed: 42\nguard_navigation: false\n", encoding="utf-8")

        config = load_engine_config(path)
        assert config.shuffle_seed == 42
        assert config.guard_navigation is False

    def test_explicit_missing_file(self, tmp_path):
        """Test that an explicit path must exist."""
        with pytest.raises(ValueError, match="not found"):
            load_engine_config(tmp_path / "missing.yaml")

    def test_no_file_means_defaults(self, tmp_path, monkeypatch):
        """Test defaults when nothing is configured."""
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        assert load_engine_config() == EngineConfig()

    def test_env_var_path(self, tmp_path, monkeypatch):
        """Test the environment variable override."""
        path = tmp_path / "custom.yaml"
        path.write_text("max_cascade_depth: 5\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert resolve_config_path() == path
        assert load_engine_config().max_cascade_depth == 5

    def test_empty_file(self, tmp_path):
        """Test that an empty file means defaults."""
        path = tmp_path / "quizcentral.yaml"
        path.write_text("", encoding="utf-8")
        assert load_engine_config(path) == EngineConfig()

    def test_invalid_values(self, tmp_path):
        """Test that invalid settings raise ValueError."""
        path = tmp_path / "quizcentral.yaml"
        path.write_text("max_cascade_depth: -1\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Failed to load"):
            load_engine_config(path)

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML."""
        path = tmp_path / "quizcentral.yaml"
        path.write_text("shuffle_seed: [1", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_engine_config(path)
