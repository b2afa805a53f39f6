"""
Logic Evaluator - executes JSON Logic rules against runtime state.

Responsibility: evaluate schema-authored expressions (visibility, listeners,
domain filters) against a context of global variables, node values and local
bindings.

High-level modules (engine, domain registry) depend on the IEvaluator
abstraction, not on the json-logic library. Each LogicEvaluator owns a private
copy of the operator table, so custom operators registered on one instance
never leak into another.

Effect-constructing operators (set, +=, append, navigate, ...) do not touch
state: they return intents (see intents.py) for the engine to interpret.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

try:
    from json_logic import operations as json_logic_operations
except ImportError:
    raise ImportError(
        "json-logic library not found. Install with: pip install json-logic-qubit"
    )

from quizcentral.runtime import operators
from quizcentral.runtime.intents import CompoundIntent, NavigateIntent, Pointer, SetIntent, as_pointer
from quizcentral.utils.paths import MISSING, get_path, unflatten

logger = logging.getLogger(__name__)

# Operator key -> instruction carried by the CompoundIntent
COMPOUND_OPERATORS: Dict[str, str] = {
    "+=": "+",
    "-=": "-",
    "*=": "*",
    "/=": "/",
    "%=": "%",
    "append": "cat",
    "remove": "uncat",
}

# Operators handled by the interpreter itself rather than the operator table
SPECIAL_FORMS = frozenset({"var", "missing", "missing_some", "if", "?:", "and", "or"})

CONTEXT_RESERVED_KEYS = ("globals", "nodes")


class IEvaluator(ABC):
    """
    Abstract interface for rule evaluation engines.

    Stateless with respect to the quiz: accepts (rule + context) and returns a
    value. Implementations must never raise out of `evaluate`.
    """

    @abstractmethod
    def evaluate(self, rule: Any, context: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Evaluate a rule against a context.

        Args:
            rule: JSON Logic expression
            context: {"globals": flat-key -> value, "nodes": id -> {...}, **locals}

        Returns:
            The rule's value, or None when evaluation failed
        """
        pass

    @abstractmethod
    def register_operator(self, name: str, func: Callable[..., Any]) -> None:
        """Make `name` available as an operator to subsequent evaluations."""
        pass


class LogicEvaluator(IEvaluator):
    """
    JSON Logic interpreter built on the json-logic operator table.

    Differences from the stock library:
    - `if`, `?:`, `and`, `or` short-circuit (json-logic-js semantics)
    - arrays are evaluated element-wise
    - `==` compares arrays by value, `cat` concatenates arrays
    - quiz helpers: len, is_empty, uncat, int
    - effect operators: ref, set, +=, -=, *=, /=, %=, append, remove, navigate
    """

    def __init__(self) -> None:
        self._operations: Dict[str, Callable[..., Any]] = dict(json_logic_operations)
        self._initialize_base_operators()
        self._override_equality()

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register_operator(self, name: str, func: Callable[..., Any]) -> None:
        if name in SPECIAL_FORMS:
            raise ValueError(f"Operator '{name}' is reserved by the interpreter")
        if name in self._operations:
            logger.debug(f"Overriding logic operator '{name}'")
        self._operations[name] = func

    def has_operator(self, name: str) -> bool:
        return name in self._operations or name in SPECIAL_FORMS

    @property
    def operator_names(self) -> List[str]:
        return sorted(set(self._operations) | SPECIAL_FORMS)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, rule: Any, context: Optional[Mapping[str, Any]] = None) -> Any:
        if rule is None:
            return None

        data = self.build_data(context or {})

        try:
            return self._apply(rule, data)
        except Exception as e:
            logger.error(f"Logic evaluation failed: {e} (rule={rule!r})")
            return None

    @staticmethod
    def make_context(
        globals: Optional[Mapping[str, Any]] = None,
        nodes: Optional[Mapping[str, Any]] = None,
        **locals: Any,
    ) -> Dict[str, Any]:
        """Build an evaluation context: flat globals, node snapshots, local bindings."""
        context: Dict[str, Any] = {
            "globals": dict(globals or {}),
            "nodes": dict(nodes or {}),
        }
        context.update(locals)
        return context

    @staticmethod
    def build_data(context: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Merge a context into the single data object rules are applied to.

        Flat dotted globals are inflated so {"var": "quiz.timer"} resolves;
        node snapshots and locals are merged as-is (locals win).
        """
        data = unflatten(context.get("globals") or {})
        data.update(context.get("nodes") or {})
        for key, value in context.items():
            if key not in CONTEXT_RESERVED_KEYS:
                data[key] = value
        return data

    def _apply(self, logic: Any, data: Dict[str, Any]) -> Any:
        if isinstance(logic, list):
            return [self._apply(item, data) for item in logic]

        if not self._is_logic(logic):
            return logic

        operator, args = next(iter(logic.items()))
        if not isinstance(args, (list, tuple)):
            args = [args]

        # Short-circuiting forms evaluate their arguments on demand
        if operator in ("if", "?:"):
            return self._apply_if(args, data)
        if operator == "and":
            return self._apply_and(args, data)
        if operator == "or":
            return self._apply_or(args, data)

        values = [self._apply(arg, data) for arg in args]

        if operator == "var":
            return self._get_var(data, *values)
        if operator == "missing":
            return self._missing(data, *values)
        if operator == "missing_some":
            return self._missing_some(data, *values)

        func = self._operations.get(operator)
        if func is None:
            raise ValueError(f"Unrecognized operation {operator}")

        return func(*values)

    @staticmethod
    def _is_logic(logic: Any) -> bool:
        return isinstance(logic, dict) and len(logic) == 1 and isinstance(next(iter(logic)), str)

    def _apply_if(self, args: List[Any], data: Dict[str, Any]) -> Any:
        for i in range(0, len(args) - 1, 2):
            if self._apply(args[i], data):
                return self._apply(args[i + 1], data)
        if len(args) % 2 == 1:
            return self._apply(args[-1], data)
        return None

    def _apply_and(self, args: List[Any], data: Dict[str, Any]) -> Any:
        value = None
        for arg in args:
            value = self._apply(arg, data)
            if not value:
                return value
        return value

    def _apply_or(self, args: List[Any], data: Dict[str, Any]) -> Any:
        value = None
        for arg in args:
            value = self._apply(arg, data)
            if value:
                return value
        return value

    @staticmethod
    def _get_var(data: Dict[str, Any], path: Any = None, default: Any = None) -> Any:
        if path is None or path == "":
            return data

        path = str(path)
        # Flat bindings ("q1.value" injected by a listener trigger) win over traversal
        if path in data:
            return data[path]

        value = get_path(data, path)
        return default if value is MISSING else value

    def _missing(self, data: Dict[str, Any], *keys: Any) -> List[Any]:
        if len(keys) == 1 and isinstance(keys[0], list):
            keys = tuple(keys[0])
        return [key for key in keys if self._get_var(data, key) in (None, "")]

    def _missing_some(self, data: Dict[str, Any], need_count: int, keys: Iterable[Any]) -> List[Any]:
        keys = list(keys)
        missing = self._missing(data, keys)
        if len(keys) - len(missing) >= need_count:
            return []
        return missing

    # ------------------------------------------------------------------
    # Built-in operators
    # ------------------------------------------------------------------

    def _initialize_base_operators(self) -> None:
        self.register_operator("len", operators.length)
        self.register_operator("is_empty", operators.is_empty)
        self.register_operator("uncat", operators.uncat)
        self.register_operator("int", operators.to_int)
        self.register_operator("cat", operators.cat)

        # Usage: {"ref": "q1.value"} -> Pointer("q1.value"); performs no lookup
        self.register_operator("ref", self._ref)

        # Usage: {"set": [{"ref": "q1.value"}, true]}
        self.register_operator("set", self._set)

        for op, instruction in COMPOUND_OPERATORS.items():
            self.register_operator(op, self._compound_factory(op, instruction))

        # Usage: {"navigate": "page02"}
        self.register_operator("navigate", self._navigate)

    def _override_equality(self) -> None:
        self.register_operator("==", operators.loose_equals)
        self.register_operator("!=", lambda a, b: not operators.loose_equals(a, b))

    @staticmethod
    def _ref(path: Any = None) -> Optional[Pointer]:
        if not isinstance(path, str) or not path:
            logger.warning(f"Invalid 'ref' operation: path must be a non-empty string, got {path!r}")
            return None
        return Pointer(path=path)

    @staticmethod
    def _set(target: Any = None, value: Any = None) -> Optional[SetIntent]:
        pointer = as_pointer(target)
        if pointer is None:
            logger.warning(f"Invalid 'set' operation: target must be a {{ref: path}}, got {target!r}")
            return None
        return SetIntent(target=pointer.path, value=value)

    @staticmethod
    def _compound_factory(op: str, instruction: str) -> Callable[..., Optional[CompoundIntent]]:
        def compound(target: Any = None, amount: Any = None) -> Optional[CompoundIntent]:
            pointer = as_pointer(target)
            if pointer is None:
                logger.warning(f"Invalid '{op}' operation: target must be a {{ref: path}}, got {target!r}")
                return None
            return CompoundIntent(operator=instruction, target=pointer.path, amount=amount)

        return compound

    @staticmethod
    def _navigate(target: Any = None) -> Optional[NavigateIntent]:
        if not isinstance(target, str) or not target:
            logger.warning(f"Invalid 'navigate' operation: target must be a page id, got {target!r}")
            return None
        return NavigateIntent(target=target)
