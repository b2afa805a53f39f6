"""
Runtime components of the quiz engine.

Data flow:
1. TemplateCompiler - expands template instances (template_compiler)
2. QuizEngine - indexes, hydrates and drives the session (engine)
3. StateStore - observable session snapshot (state_store)
4. LogicEvaluator - evaluates expressions and builds intents (evaluator, intents)

High-level modules depend on the IEvaluator abstraction, not on json-logic.
"""

from quizcentral.runtime.engine import QuizEngine
from quizcentral.runtime.evaluator import IEvaluator, LogicEvaluator
from quizcentral.runtime.intents import CompoundIntent, NavigateIntent, Pointer, SetIntent
from quizcentral.runtime.persistence import SessionSnapshot, SnapshotWriter
from quizcentral.runtime.schema_loader import SchemaLoadError, load_domains, load_schema, load_styles, load_templates
from quizcentral.runtime.state_store import StateStore
from quizcentral.runtime.styles import resolve_style
from quizcentral.runtime.template_compiler import TemplateCompiler, TemplateError, TemplateNotFoundError

__all__ = [
    "CompoundIntent",
    "IEvaluator",
    "LogicEvaluator",
    "NavigateIntent",
    "Pointer",
    "QuizEngine",
    "SchemaLoadError",
    "SessionSnapshot",
    "SetIntent",
    "SnapshotWriter",
    "StateStore",
    "TemplateCompiler",
    "TemplateError",
    "TemplateNotFoundError",
    "load_domains",
    "load_schema",
    "load_styles",
    "load_templates",
    "resolve_style",
]
