"""Pydantic schemas for authored quiz documents.

A quiz is an ordered list of pages, each holding a tree of blocks. Blocks are a
closed set of variants discriminated by their `type` tag: logic-bearing
interaction units, structural containers, static content and input metaphors.
Logic fields (hidden, disabled, listeners, events) hold JSON Logic expressions
and are kept as raw JSON.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# JSON Logic expression (string, number, bool, list or {operator: args})
LogicExpression = Any

# Domain id, or an inline literal array treated as an explicit domain
DomainRef = Union[str, List[Any]]


class BlockType(str, Enum):
    """Discriminant for every block variant in the schema tree."""

    INTERACTION_UNIT = "interaction_unit"
    TEMPLATE_INSTANCE = "template_instance"
    CONTAINER = "container"
    TEXT = "text"
    DIVIDER = "divider"
    IMAGE = "image"
    INPUT = "input"
    TRIGGER = "trigger"
    TOGGLE = "toggle"
    SLIDER = "slider"
    SELECT = "select"


METAPHOR_TYPES = frozenset(
    {BlockType.INPUT, BlockType.TRIGGER, BlockType.TOGGLE, BlockType.SLIDER, BlockType.SELECT}
)


# =============================================================================
# Styling & props
# =============================================================================


class StylingProps(BaseModel):
    """Reusable style classes plus per-block overrides (last one wins)."""

    classes: List[str] = Field(default_factory=list)
    overrides: Dict[str, Any] = Field(default_factory=dict)


class BaseProps(BaseModel):
    model_config = ConfigDict(extra="allow")

    styling: Optional[StylingProps] = None


class StateLogic(BaseModel):
    """Logic evaluated per render cycle for an input metaphor."""

    active: Optional[LogicExpression] = None
    disabled: Optional[LogicExpression] = None
    hidden: Optional[LogicExpression] = None


class MetaphorProps(BaseProps):
    """Props shared by every interactive metaphor (inputs, toggles, ...)."""

    disabled: bool = False
    state_logic: Optional[StateLogic] = None
    events: Dict[str, LogicExpression] = Field(
        default_factory=dict,
        description="Event name (on_click, on_change, ...) to logic expression",
    )


class TextProps(BaseProps):
    content: str = ""


class ImageProps(BaseProps):
    src: str = ""
    alt: str = ""
    aspect: Optional[str] = None


class TriggerProps(MetaphorProps):
    label: str = ""


class ToggleProps(MetaphorProps):
    variant: Union[str, Dict[str, str]] = "checkbox"
    label: str = ""
    label_position: Optional[Literal["start", "end"]] = None


class InputProps(MetaphorProps):
    mode: Literal["text", "numeric", "decimal", "tel", "email"] = "text"
    lines: Optional[int] = None
    placeholder: Optional[str] = None


class SliderProps(MetaphorProps):
    show_ticks: Optional[bool] = None
    show_track: Optional[bool] = None
    show_value_tooltip: Optional[bool] = None
    orientation: Optional[Literal["horizontal", "vertical"]] = None


class SelectProps(MetaphorProps):
    variant: Literal["dropdown", "listbox", "chips"] = "dropdown"
    placeholder: Optional[str] = None
    clearable: Optional[bool] = None


class ContainerBehavior(BaseModel):
    """Ordering behavior applied once when a session is hydrated."""

    shuffle_children: bool = False
    pick_n: Optional[int] = Field(default=None, ge=0)


class ContainerProps(BaseProps):
    children: List["Block"] = Field(default_factory=list)
    behavior: Optional[ContainerBehavior] = None


# =============================================================================
# Blocks
# =============================================================================


class BaseBlock(BaseModel):
    model_config = ConfigDict(extra="allow")

    # Optional in authored documents; the engine assigns ids to blocks lacking one
    id: Optional[str] = None


class TextBlock(BaseBlock):
    type: Literal["text"] = "text"
    props: TextProps = Field(default_factory=TextProps)


class DividerBlock(BaseBlock):
    type: Literal["divider"] = "divider"
    props: BaseProps = Field(default_factory=BaseProps)


class ImageBlock(BaseBlock):
    type: Literal["image"] = "image"
    props: ImageProps = Field(default_factory=ImageProps)


class TriggerBlock(BaseBlock):
    type: Literal["trigger"] = "trigger"
    props: TriggerProps = Field(default_factory=TriggerProps)


class ToggleBlock(BaseBlock):
    type: Literal["toggle"] = "toggle"
    props: ToggleProps = Field(default_factory=ToggleProps)


class InputBlock(BaseBlock):
    type: Literal["input"] = "input"
    props: InputProps = Field(default_factory=InputProps)


class SliderBlock(BaseBlock):
    type: Literal["slider"] = "slider"
    props: SliderProps = Field(default_factory=SliderProps)


class SelectBlock(BaseBlock):
    type: Literal["select"] = "select"
    props: SelectProps = Field(default_factory=SelectProps)


class ContainerBlock(BaseBlock):
    type: Literal["container"] = "container"
    props: ContainerProps = Field(default_factory=ContainerProps)


class InteractionState(BaseModel):
    """Declarative initial state of an interaction unit."""

    value: Any = None
    visited: bool = False
    required: bool = False


class ContextValidator(BaseModel):
    rule: LogicExpression
    error_message: str = ""


class InteractionBehavior(BaseModel):
    """Visibility logic and listeners of an interaction unit.

    Attributes:
        hidden: Expression resolved into computed.hidden.
        disabled: Expression resolved into computed.disabled.
        context_validators: Cross-field validators (declared, not evaluated yet).
        listeners: Trigger key ("q1.value", "quiz.timer") to an expression,
            or a list of expressions evaluated in order.
    """

    hidden: Optional[LogicExpression] = None
    disabled: Optional[LogicExpression] = None
    context_validators: List[ContextValidator] = Field(default_factory=list)
    listeners: Dict[str, LogicExpression] = Field(default_factory=dict)


class InteractionUnit(BaseBlock):
    """Logic wrapper owning a value, a domain and behavior around one view."""

    type: Literal["interaction_unit"] = "interaction_unit"
    domain_id: DomainRef = "$$ANY"
    state: InteractionState = Field(default_factory=InteractionState)
    behavior: Optional[InteractionBehavior] = None
    view: "VisualBlock"


VisualBlock = Annotated[
    Union[
        ContainerBlock,
        TextBlock,
        DividerBlock,
        ImageBlock,
        TriggerBlock,
        ToggleBlock,
        InputBlock,
        SliderBlock,
        SelectBlock,
    ],
    Field(discriminator="type"),
]

Block = Annotated[
    Union[
        InteractionUnit,
        ContainerBlock,
        TextBlock,
        DividerBlock,
        ImageBlock,
        TriggerBlock,
        ToggleBlock,
        InputBlock,
        SliderBlock,
        SelectBlock,
    ],
    Field(discriminator="type"),
]

AnyBlock = Union[
    InteractionUnit,
    ContainerBlock,
    TextBlock,
    DividerBlock,
    ImageBlock,
    TriggerBlock,
    ToggleBlock,
    InputBlock,
    SliderBlock,
    SelectBlock,
]


# =============================================================================
# Root
# =============================================================================


class PageNode(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    title: Optional[str] = None
    blocks: List[Block] = Field(default_factory=list)


class QuizMeta(BaseModel):
    title: str = ""
    description: Optional[str] = None


class QuizConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    time_limit_seconds: Optional[int] = None
    navigation_mode: Literal["linear", "free"] = "linear"


class DomainTypeRef(BaseModel):
    dom: DomainRef


class GlobalVariable(BaseModel):
    """Declared global variable (e.g. the quiz score) with its seed value."""

    type: Optional[DomainTypeRef] = None
    default: Any = None


class QuizSchema(BaseModel):
    """Root of an authored quiz document."""

    model_config = ConfigDict(extra="allow")

    id: str
    meta: QuizMeta = Field(default_factory=QuizMeta)
    config: QuizConfig = Field(default_factory=QuizConfig)
    state: Dict[str, GlobalVariable] = Field(default_factory=dict)
    pages: List[PageNode] = Field(default_factory=list)


ContainerProps.model_rebuild()
ContainerBlock.model_rebuild()
InteractionUnit.model_rebuild()
PageNode.model_rebuild()
QuizSchema.model_rebuild()
