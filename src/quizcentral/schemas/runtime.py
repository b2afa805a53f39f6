"""Pydantic schemas for the mutable runtime session.

Snapshots are frozen: the engine never edits a node in place, it builds a new
node with `model_copy(update=...)` and commits a new session state. Consumers
read snapshots and request changes only through engine actions.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Unique key for a block instance in the node map
RuntimeID = str

# Node properties a SET_NODE_PROPERTY action may touch
SETTABLE_NODE_PROPERTIES = frozenset({"required", "visited"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    """Lifecycle status of a session (terminal states are reserved)."""

    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool = True
    errors: List[str] = Field(default_factory=list)


class ComputedState(BaseModel):
    """Flags derived from logic expressions during the recompute cycle."""

    model_config = ConfigDict(frozen=True)

    hidden: bool = False
    disabled: bool = False
    required: bool = False
    active: bool = False


class BlockRuntimeState(BaseModel):
    """Runtime counterpart of one schema block.

    Attributes:
        id: Runtime id (matches the schema id after normalization).
        schema_id: Id of the static block definition.
        scope_id: Owning interaction unit for visual sub-blocks.
        value: Current data (meaningful on interaction units).
        visited: Set once the user focused/blurred the node.
        touched: Set once the user modified the value.
        validation: Domain validation of the current value.
        computed: Derived hidden/disabled/required/active flags.
        children_ids: Container child order after shuffle/pick-n.
    """

    model_config = ConfigDict(frozen=True)

    id: RuntimeID
    schema_id: str
    scope_id: Optional[RuntimeID] = None
    value: Any = None
    visited: bool = False
    touched: bool = False
    validation: ValidationResult = Field(default_factory=ValidationResult)
    computed: ComputedState = Field(default_factory=ComputedState)
    children_ids: Optional[List[RuntimeID]] = None


class QuizSessionState(BaseModel):
    """Root aggregate of a running quiz session."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    schema_id: str
    start_time: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    status: SessionStatus = SessionStatus.ACTIVE

    # Navigation
    current_step_id: str
    history: List[str] = Field(default_factory=list)

    # Flat global variables ("score", "stats.hits")
    variables: Dict[str, Any] = Field(default_factory=dict)

    nodes: Dict[RuntimeID, BlockRuntimeState] = Field(default_factory=dict)


# =============================================================================
# Engine actions
# =============================================================================


class SetValue(BaseModel):
    type: Literal["SET_VALUE"] = "SET_VALUE"
    id: RuntimeID
    value: Any = None


class SetNodeProperty(BaseModel):
    type: Literal["SET_NODE_PROPERTY"] = "SET_NODE_PROPERTY"
    id: RuntimeID
    property: str
    value: Any = None


class SetVariable(BaseModel):
    type: Literal["SET_VARIABLE"] = "SET_VARIABLE"
    name: str
    value: Any = None


class Navigate(BaseModel):
    type: Literal["NAVIGATE"] = "NAVIGATE"
    target_id: str


EngineAction = Annotated[
    Union[SetValue, SetNodeProperty, SetVariable, Navigate],
    Field(discriminator="type"),
]
