"""
Domain Registry - generates and validates the legal values of interaction units.

Domains are looked up by id. Primitive domains ($$INT, $$STRING, ...) are
infinite and only validated structurally. Defined domains are explicit
(literal source), pipeline-derived (source + filter/map/union/combine) or
constructs (shape and size constraints over keyed collections).

generate() runs a pipeline forward and memoizes the result per domain id.
check()/validate() run it backward from the value to the source, so large or
infinite derived domains never need to be materialized.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from quizcentral.domains.inversion import NoPreimage, UninvertibleExpression, deconstruct_combine, invert_map
from quizcentral.runtime.evaluator import IEvaluator, LogicEvaluator
from quizcentral.schemas.domain import (
    ANY_DOMAIN,
    ARRAY_DOMAIN,
    BOOL_DOMAIN,
    FLOAT_DOMAIN,
    INT_DOMAIN,
    PRIMITIVE_DOMAINS,
    STRING_DOMAIN,
    CombineTransform,
    Construct,
    DomainDefinition,
    DomainTransform,
    FilterTransform,
    MapTransform,
    UnionTransform,
)
from quizcentral.utils.paths import deep_equal

logger = logging.getLogger(__name__)

DomainId = Union[str, List[Any]]

# Name the pipeline item is bound to in filter/map/combine expressions
ITEM_VAR = "x"


class DomainError(Exception):
    """Base class for domain registry errors."""
    pass


class DomainNotFoundError(DomainError):
    """Raised when generating a domain id that was never registered."""
    pass


class InfiniteDomainError(DomainError):
    """Raised when generating a domain that has no finite source."""
    pass


class DomainCheckStatus(str, Enum):
    VALID = "valid"
    REJECTED = "rejected"
    UNINVERTIBLE = "uninvertible"
    UNKNOWN_DOMAIN = "unknown_domain"


@dataclass(frozen=True)
class DomainCheck:
    """Outcome of validating one value against one domain."""

    status: DomainCheckStatus
    reason: str = ""

    @property
    def is_valid(self) -> bool:
        return self.status == DomainCheckStatus.VALID

    @classmethod
    def valid(cls) -> "DomainCheck":
        return cls(DomainCheckStatus.VALID)

    @classmethod
    def rejected(cls, reason: str) -> "DomainCheck":
        return cls(DomainCheckStatus.REJECTED, reason)


def _is_int(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


_PRIMITIVE_CHECKS = {
    STRING_DOMAIN: lambda v: isinstance(v, str),
    INT_DOMAIN: _is_int,
    FLOAT_DOMAIN: _is_number,
    BOOL_DOMAIN: lambda v: isinstance(v, bool),
    ARRAY_DOMAIN: lambda v: isinstance(v, (list, tuple)),
    ANY_DOMAIN: lambda v: True,
}


class DomainRegistry:
    """
    Registry of domain definitions.

    One registry per engine (or per test): it receives its evaluator by
    injection and keeps its own generation cache.
    """

    def __init__(self, evaluator: Optional[IEvaluator] = None):
        self._evaluator = evaluator or LogicEvaluator()
        self._definitions: Dict[str, DomainDefinition] = {}
        self._cache: Dict[str, List[Any]] = {}
        self._generating: Set[str] = set()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, definitions: Iterable[Union[DomainDefinition, Mapping[str, Any]]]) -> None:
        """
        Register domain definitions, replacing any with the same id.

        Args:
            definitions: DomainDefinition models or their dict form
        """
        count = 0
        for definition in definitions:
            if not isinstance(definition, DomainDefinition):
                definition = DomainDefinition.model_validate(definition)
            if definition.id in PRIMITIVE_DOMAINS:
                raise DomainError(f"Cannot redefine primitive domain: {definition.id}")
            self._definitions[definition.id] = definition
            count += 1

        # Any cached set may depend on a redefined domain
        self._cache.clear()
        logger.debug(f"Registered {count} domain definitions ({len(self._definitions)} total)")

    def get(self, domain_id: str) -> Optional[DomainDefinition]:
        return self._definitions.get(domain_id)

    def is_defined(self, domain_id: DomainId) -> bool:
        if isinstance(domain_id, list):
            return True
        return domain_id in PRIMITIVE_DOMAINS or domain_id in self._definitions

    def __contains__(self, domain_id: object) -> bool:
        return isinstance(domain_id, str) and self.is_defined(domain_id)

    @property
    def domain_ids(self) -> List[str]:
        return sorted(self._definitions)

    # ------------------------------------------------------------------
    # Forward generation
    # ------------------------------------------------------------------

    def generate(self, domain_id: DomainId) -> List[Any]:
        """
        Materialize a finite domain.

        Args:
            domain_id: Registered domain id, or a literal array (inline domain)

        Returns:
            A new list with the domain's values, in pipeline order

        Raises:
            InfiniteDomainError: Primitive or construct-only domains
            DomainNotFoundError: Unknown domain id
            DomainError: Cyclic source/union/combine references
        """
        if isinstance(domain_id, list):
            return list(domain_id)

        if domain_id in self._cache:
            return list(self._cache[domain_id])

        if domain_id in PRIMITIVE_DOMAINS:
            raise InfiniteDomainError(f"Cannot generate infinite primitive domain: {domain_id}")

        definition = self._definitions.get(domain_id)
        if definition is None:
            raise DomainNotFoundError(f"Domain not found: {domain_id}")

        body = definition.definition
        if body.source is None:
            raise InfiniteDomainError(f"Domain {domain_id} has no source to generate from")

        if domain_id in self._generating:
            raise DomainError(f"Cyclic domain reference while generating: {domain_id}")

        self._generating.add(domain_id)
        try:
            if isinstance(body.source, list):
                data = list(body.source)
            else:
                data = self.generate(body.source)
            data = self._run_pipeline(data, body.transforms)
        finally:
            self._generating.discard(domain_id)

        self._cache[domain_id] = data
        logger.debug(f"Generated domain {domain_id}: {len(data)} values")
        return list(data)

    def _run_pipeline(self, data: List[Any], transforms: List[DomainTransform]) -> List[Any]:
        for step in transforms:
            if isinstance(step, FilterTransform):
                data = [x for x in data if self._evaluator.evaluate(step.filter.expr, self._loop_context(x))]

            elif isinstance(step, MapTransform):
                data = [self._evaluator.evaluate(step.map.expr, self._loop_context(x)) for x in data]

            elif isinstance(step, UnionTransform):
                data = data + self.generate(step.union.with_)

            elif isinstance(step, CombineTransform):
                spec = step.combine
                others = self.generate(spec.with_)
                data = [
                    self._evaluator.evaluate(spec.expr, self._loop_context(x, **{spec.other_name: y}))
                    for x in data
                    for y in others
                ]
        return data

    @staticmethod
    def _loop_context(item: Any, **bindings: Any) -> Dict[str, Any]:
        context: Dict[str, Any] = {"globals": {}, "nodes": {}, ITEM_VAR: item}
        context.update(bindings)
        return context

    # ------------------------------------------------------------------
    # Reverse validation
    # ------------------------------------------------------------------

    def validate(self, value: Any, domain_id: DomainId) -> bool:
        return self.check(value, domain_id).is_valid

    def check(self, value: Any, domain_id: DomainId) -> DomainCheck:
        """
        Validate a value against a domain and report why it failed.

        Never raises: unknown domains and malformed definitions come back as
        non-valid results.
        """
        try:
            return self._check(value, domain_id)
        except RecursionError:
            logger.error(f"Validation of {value!r} against {domain_id!r} exceeded recursion depth")
            return DomainCheck.rejected("cyclic domain reference")

    def _check(self, value: Any, domain_id: DomainId) -> DomainCheck:
        if isinstance(domain_id, list):
            if any(deep_equal(value, item) for item in domain_id):
                return DomainCheck.valid()
            return DomainCheck.rejected("not a member of the inline domain")

        primitive = _PRIMITIVE_CHECKS.get(domain_id)
        if primitive is not None:
            if primitive(value):
                return DomainCheck.valid()
            return DomainCheck.rejected(f"not a {domain_id} value")

        definition = self._definitions.get(domain_id)
        if definition is None:
            logger.warning(f"Validation failed: unknown domain {domain_id}")
            return DomainCheck(DomainCheckStatus.UNKNOWN_DOMAIN, f"unknown domain {domain_id}")

        body = definition.definition
        if body.construct_ is not None:
            return self._check_construct(value, body.construct_)

        return self._check_pipeline(value, body.transforms, len(body.transforms), body.source)

    def _check_pipeline(
        self,
        value: Any,
        transforms: List[DomainTransform],
        end: int,
        source: Union[List[Any], str, None],
    ) -> DomainCheck:
        """Walk transforms[:end] backward from `value`, then check the source."""
        current = value

        for index in range(end - 1, -1, -1):
            step = transforms[index]

            if isinstance(step, FilterTransform):
                if not self._evaluator.evaluate(step.filter.expr, self._loop_context(current)):
                    return DomainCheck.rejected(f"filtered out at step {index}")

            elif isinstance(step, MapTransform):
                try:
                    current = invert_map(current, step.map.expr, ITEM_VAR)
                except UninvertibleExpression as e:
                    return DomainCheck(DomainCheckStatus.UNINVERTIBLE, f"step {index}: {e}")
                except NoPreimage as e:
                    return DomainCheck.rejected(f"step {index}: {e}")

            elif isinstance(step, UnionTransform):
                if self._check(current, step.union.with_).is_valid:
                    return DomainCheck.valid()

            elif isinstance(step, CombineTransform):
                return self._check_combine(current, step, transforms, index, source)

        return self._check_source(current, source)

    def _check_combine(
        self,
        value: Any,
        step: CombineTransform,
        transforms: List[DomainTransform],
        index: int,
        source: Union[List[Any], str, None],
    ) -> DomainCheck:
        spec = step.combine
        try:
            candidates: List[Tuple[Any, Any]] = deconstruct_combine(value, spec.expr, ITEM_VAR, spec.other_name)
        except UninvertibleExpression as e:
            return DomainCheck(DomainCheckStatus.UNINVERTIBLE, f"step {index}: {e}")
        except NoPreimage as e:
            return DomainCheck.rejected(f"step {index}: {e}")

        last = DomainCheck.rejected(f"step {index}: no valid split")
        for head, other in candidates:
            other_check = self._check(other, spec.with_)
            if not other_check.is_valid:
                last = other_check
                continue
            result = self._check_pipeline(head, transforms, index, source)
            if result.is_valid:
                return result
            last = result
        return last

    def _check_source(self, value: Any, source: Union[List[Any], str, None]) -> DomainCheck:
        if isinstance(source, list):
            if any(deep_equal(value, item) for item in source):
                return DomainCheck.valid()
            return DomainCheck.rejected("not a member of the source")
        if isinstance(source, str):
            return self._check(value, source)
        return DomainCheck.rejected("domain has no source")

    def _check_construct(self, value: Any, construct: Construct) -> DomainCheck:
        if isinstance(value, Mapping):
            items = [(str(key), item) for key, item in value.items()]
        elif isinstance(value, (list, tuple)):
            items = [(str(i), item) for i, item in enumerate(value)]
        else:
            return DomainCheck.rejected("expected a keyed collection")

        size = construct.size
        if size is not None:
            if size.min is not None and len(items) < size.min:
                return DomainCheck.rejected(f"expected at least {size.min} entries, got {len(items)}")
            if size.max is not None and len(items) > size.max:
                return DomainCheck.rejected(f"expected at most {size.max} entries, got {len(items)}")

        shape = construct.shape or {}
        default_slot = shape.get("default")
        for key, item in items:
            slot = shape.get(key) if key != "default" else None
            slot = slot or default_slot
            if slot is None:
                return DomainCheck.rejected(f"forbidden field: {key}")
            result = self._check(item, slot.dom)
            if not result.is_valid:
                return DomainCheck(result.status, f"field {key}: {result.reason}")

        return DomainCheck.valid()
