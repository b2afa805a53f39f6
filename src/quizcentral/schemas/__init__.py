"""Schema definitions: authored quiz documents, domains, templates and runtime state."""

from quizcentral.schemas.domain import DomainDefinition, PRIMITIVE_DOMAINS
from quizcentral.schemas.quiz_schema import (
    BlockType,
    InteractionUnit,
    PageNode,
    QuizSchema,
)
from quizcentral.schemas.runtime import (
    BlockRuntimeState,
    EngineAction,
    Navigate,
    QuizSessionState,
    SessionStatus,
    SetNodeProperty,
    SetValue,
    SetVariable,
)
from quizcentral.schemas.template import TemplateDefinition

__all__ = [
    "BlockRuntimeState",
    "BlockType",
    "DomainDefinition",
    "EngineAction",
    "InteractionUnit",
    "Navigate",
    "PRIMITIVE_DOMAINS",
    "PageNode",
    "QuizSchema",
    "QuizSessionState",
    "SessionStatus",
    "SetNodeProperty",
    "SetValue",
    "SetVariable",
    "TemplateDefinition",
]
