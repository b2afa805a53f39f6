"""
Unit tests for process start-up (.env loading).
"""

import os

import pytest

from quizcentral import startup


@pytest.fixture(autouse=True)
def fresh_startup():
    startup.reset()
    yield
    startup.reset()


class TestEnsureInitialized:
    def test_finds_root_and_loads_env(self, tmp_path, monkeypatch):
        """Test that .env at the project root is loaded once."""
        monkeypatch.delenv("QUIZCENTRAL_TEST_FLAG", raising=False)
        (tmp_path / "quizcentral.yaml").write_text("", encoding="utf-8")
        (tmp_path / ".env").write_text("QUIZCENTRAL_TEST_FLAG=on\n", encoding="utf-8")
        nested = tmp_path / "quizzes" / "demo"
        nested.mkdir(parents=True)

        state = startup.ensure_initialized(nested)

        assert state.project_root == tmp_path.resolve()
        assert state.env_loaded is True
        assert os.environ["QUIZCENTRAL_TEST_FLAG"] == "on"
        monkeypatch.delenv("QUIZCENTRAL_TEST_FLAG")

    def test_existing_environment_wins(self, tmp_path, monkeypatch):
        """Test that .env never overrides variables already set."""
        monkeypatch.setenv("QUIZCENTRAL_TEST_FLAG", "shell")
        (tmp_path / ".env").write_text("QUIZCENTRAL_TEST_FLAG=file\n", encoding="utf-8")

        startup.ensure_initialized(tmp_path)

        assert os.environ["QUIZCENTRAL_TEST_FLAG"] == "shell"

    def test_idempotent(self, tmp_path):
        """Test that later calls return the first result."""
        first = startup.ensure_initialized(tmp_path)
        assert startup.ensure_initialized(tmp_path / "elsewhere") is first

    def test_without_env_file(self, tmp_path):
        """Test a root with a marker but no .env."""
        (tmp_path / "pyproject.toml").write_text("", encoding="utf-8")
        assert startup.ensure_initialized(tmp_path).env_loaded is False
