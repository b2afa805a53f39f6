"""
Effect intents produced by logic evaluation.

Effect-constructing operators (set, +=, append, navigate, ...) never mutate
session state. They return one of these tagged values, which the engine
interprets in a separate stage. Each intent converts to and from its tagged
dictionary form ({"__action": "SET", ...}) so it can cross JSON boundaries.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

POINTER_TYPE = "pointer"

ACTION_SET = "SET"
ACTION_COMPOUND = "COMPOUND"
ACTION_NAVIGATE = "NAVIGATE"


@dataclass(frozen=True)
class Pointer:
    """Unresolved reference to a state path, produced by {"ref": path}."""

    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {"__type": POINTER_TYPE, "path": self.path}


@dataclass(frozen=True)
class SetIntent:
    target: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"__action": ACTION_SET, "target": self.target, "value": self.value}


@dataclass(frozen=True)
class CompoundIntent:
    """Read-modify-write of `target`; `operator` is one of + - * / % cat uncat."""

    operator: str
    target: str
    amount: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "__action": ACTION_COMPOUND,
            "operator": self.operator,
            "target": self.target,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class NavigateIntent:
    target: str

    def to_dict(self) -> Dict[str, Any]:
        return {"__action": ACTION_NAVIGATE, "target": self.target}


Intent = Union[SetIntent, CompoundIntent, NavigateIntent]


def as_pointer(obj: Any) -> Optional[Pointer]:
    """Return `obj` as a Pointer if it is one (object or tagged dict form)."""
    if isinstance(obj, Pointer):
        return obj
    if (
        isinstance(obj, dict)
        and obj.get("__type") == POINTER_TYPE
        and isinstance(obj.get("path"), str)
    ):
        return Pointer(path=obj["path"])
    return None


def parse_intent(obj: Any) -> Optional[Intent]:
    """Coerce an intent object or its tagged dict form; anything else is None."""
    if isinstance(obj, (SetIntent, CompoundIntent, NavigateIntent)):
        return obj
    if not isinstance(obj, dict) or "__action" not in obj:
        return None

    action = obj["__action"]
    target = obj.get("target")
    if not isinstance(target, str):
        return None

    if action == ACTION_SET:
        return SetIntent(target=target, value=obj.get("value"))
    if action == ACTION_COMPOUND and isinstance(obj.get("operator"), str):
        return CompoundIntent(operator=obj["operator"], target=target, amount=obj.get("amount"))
    if action == ACTION_NAVIGATE:
        return NavigateIntent(target=target)
    return None


def collect_intents(result: Any) -> List[Intent]:
    """Flatten an evaluation result into the intents it carries.

    A single intent, a tagged dict, or (nested) lists thereof are accepted.
    Non-intent items such as the None of an untaken branch are dropped.
    """
    if isinstance(result, (list, tuple)):
        intents: List[Intent] = []
        for item in result:
            intents.extend(collect_intents(item))
        return intents

    intent = parse_intent(result)
    return [intent] if intent is not None else []
