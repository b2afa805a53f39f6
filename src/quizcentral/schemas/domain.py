"""Pydantic schemas for domain definitions.

A domain is the set of legal values of an interaction unit. It is either
explicit (a literal source list), pipeline-derived (a source run through
filter/map/union/combine transforms) or a construct (structural shape and
size constraints over keyed collections).
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from quizcentral.schemas.quiz_schema import DomainRef, LogicExpression

# Reserved ids of the infinite primitive domains
STRING_DOMAIN = "$$STRING"
INT_DOMAIN = "$$INT"
BOOL_DOMAIN = "$$BOOL"
FLOAT_DOMAIN = "$$FLOAT"
ARRAY_DOMAIN = "$$ARRAY"
ANY_DOMAIN = "$$ANY"

PRIMITIVE_DOMAINS = frozenset(
    {STRING_DOMAIN, INT_DOMAIN, BOOL_DOMAIN, FLOAT_DOMAIN, ARRAY_DOMAIN, ANY_DOMAIN}
)

TransformKind = Literal["filter", "map", "union", "combine"]


class ExprSpec(BaseModel):
    expr: LogicExpression


class UnionSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    with_: DomainRef = Field(..., alias="with")


class CombineSpec(BaseModel):
    """Cartesian product with another domain, merged through `expr`.

    `expr` sees the pipeline item as `x` and the other domain's item as `y`
    (or the name given in `as`).
    """

    model_config = ConfigDict(populate_by_name=True)

    with_: DomainRef = Field(..., alias="with")
    as_: Optional[str] = Field(default=None, alias="as")
    expr: LogicExpression

    @property
    def other_name(self) -> str:
        return self.as_ or "y"


class FilterTransform(BaseModel):
    model_config = ConfigDict(extra="forbid")

    filter: ExprSpec

    @property
    def kind(self) -> TransformKind:
        return "filter"


class MapTransform(BaseModel):
    model_config = ConfigDict(extra="forbid")

    map: ExprSpec

    @property
    def kind(self) -> TransformKind:
        return "map"


class UnionTransform(BaseModel):
    model_config = ConfigDict(extra="forbid")

    union: UnionSpec

    @property
    def kind(self) -> TransformKind:
        return "union"


class CombineTransform(BaseModel):
    model_config = ConfigDict(extra="forbid")

    combine: CombineSpec

    @property
    def kind(self) -> TransformKind:
        return "combine"


DomainTransform = Union[FilterTransform, MapTransform, UnionTransform, CombineTransform]


class ShapeSlot(BaseModel):
    dom: DomainRef


class SizeBounds(BaseModel):
    min: Optional[int] = Field(default=None, ge=0)
    max: Optional[int] = Field(default=None, ge=0)


class Construct(BaseModel):
    """Structural domain: keyed slots (named or `default`) plus size bounds."""

    shape: Optional[Dict[str, ShapeSlot]] = None
    size: Optional[SizeBounds] = None


class DomainBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: Optional[Union[List[Any], str]] = None
    transforms: List[DomainTransform] = Field(default_factory=list)
    construct_: Optional[Construct] = Field(default=None, alias="construct")

    @model_validator(mode="after")
    def require_source_or_construct(self) -> "DomainBody":
        """A domain must be generated from a source or described structurally."""
        if self.source is None and self.construct_ is None:
            raise ValueError("Domain definition needs a 'source' or a 'construct'")
        return self


class DomainDefinition(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    definition: DomainBody
    markers: Optional[Dict[str, Any]] = None
    relations: Dict[str, Any] = Field(default_factory=dict)
    operations: Dict[str, Any] = Field(default_factory=dict)
