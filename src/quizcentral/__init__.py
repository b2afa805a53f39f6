"""quizcentral - declarative quiz engine.

Compiles authored quiz schemas, hydrates them into a reactive session and keeps
derived state consistent as actions are dispatched.
"""

__version__ = "0.1.0"

from quizcentral.config import EngineConfig, load_engine_config

# runtime before domains: the domain registry imports its evaluator from runtime
from quizcentral.runtime import LogicEvaluator, QuizEngine, StateStore, TemplateCompiler
from quizcentral.domains import DomainCheck, DomainCheckStatus, DomainRegistry

__all__ = [
    "DomainCheck",
    "DomainCheckStatus",
    "DomainRegistry",
    "EngineConfig",
    "LogicEvaluator",
    "QuizEngine",
    "StateStore",
    "TemplateCompiler",
    "__version__",
    "load_engine_config",
]
