"""
Pytest fixtures and configuration for quizcentral tests.
Provides the example quiz documents and freshly built engine components.
"""

import copy
import json
from pathlib import Path

import pytest

from quizcentral.config import EngineConfig
from quizcentral.domains import DomainRegistry
from quizcentral.runtime.engine import QuizEngine
from quizcentral.runtime.evaluator import LogicEvaluator

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "quiz"


def _load_json(name: str):
    with open(FIXTURES_DIR / name, "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding the example quiz, domain, template and action files."""
    return FIXTURES_DIR


@pytest.fixture
def quiz_schema():
    """The example quiz as a plain dict (a fresh copy per test)."""
    return copy.deepcopy(_load_json("quiz_basic.json"))


@pytest.fixture
def domain_definitions():
    """Example domain definitions (scores, letters, doubled, seats, profile)."""
    return _load_json("domains.json")["domains"]


@pytest.fixture
def template_definitions():
    """Example template definitions (single_choice)."""
    return _load_json("templates.json")


@pytest.fixture
def evaluator() -> LogicEvaluator:
    """A private evaluator; operators registered on it never leak."""
    return LogicEvaluator()


@pytest.fixture
def registry(evaluator, domain_definitions) -> DomainRegistry:
    """Domain registry loaded with the example domains."""
    registry = DomainRegistry(evaluator)
    registry.register(domain_definitions)
    return registry


@pytest.fixture
def engine_config() -> EngineConfig:
    """Config with a pinned shuffle seed."""
    return EngineConfig(shuffle_seed=7)


@pytest.fixture
def engine(quiz_schema, domain_definitions, engine_config) -> QuizEngine:
    """Engine running the example quiz."""
    return QuizEngine(quiz_schema, domains=domain_definitions, config=engine_config)
