"""
Pure value operators shared by the logic evaluator and the effect stage.

These follow JavaScript-flavoured semantics where authored logic expects them
(string concatenation of null is empty, booleans render as true/false,
remainder keeps the dividend's sign).
"""

import math
import re
from typing import Any, List

from json_logic import operations as json_logic_operations

from quizcentral.utils.paths import deep_equal

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")

# Library loose equality, kept before "==" is overridden on evaluator tables
_soft_equals = json_logic_operations["=="]


def stringify(value: Any) -> str:
    """Render a value the way string concatenation in logic expects."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def loose_equals(a: Any, b: Any) -> bool:
    """Value equality for arrays, loose equality otherwise.

    null only equals null; it is not coerced to false or "None".
    """
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return deep_equal(a, b)
    if a is None or b is None:
        return a is None and b is None
    return _soft_equals(a, b)


def cat(*args: Any) -> Any:
    """Polymorphic concatenation.

    Array mode when the first operand is a list (lists are spread, scalars
    appended); otherwise every operand is stringified and joined.
    """
    if args and isinstance(args[0], (list, tuple)):
        result: List[Any] = []
        for arg in args:
            if isinstance(arg, (list, tuple)):
                result.extend(arg)
            else:
                result.append(arg)
        return result

    return "".join(stringify(arg) for arg in args)


def uncat(source: Any, item: Any) -> Any:
    """Remove every occurrence of `item` from a list, or of a substring from a string."""
    if isinstance(source, (list, tuple)):
        return [entry for entry in source if not deep_equal(entry, item)]
    if isinstance(source, str):
        needle = stringify(item)
        return source.replace(needle, "") if needle else source
    return source


def length(value: Any) -> int:
    if isinstance(value, (str, list, tuple)):
        return len(value)
    return 0


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return True
    return False


def to_int(value: Any) -> Any:
    """Best-effort integer coercion.

    Numbers truncate toward zero, booleans become 1/0, strings parse their
    leading integer (0 when there is none), null becomes 0, anything else None.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return math.trunc(value)
    if isinstance(value, str):
        match = _INT_PREFIX.match(value)
        return int(match.group(1)) if match else 0
    return None


def to_number(value: Any) -> Any:
    """Coerce an operand for arithmetic; raises ValueError when impossible."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return float(text)
    raise ValueError(f"Cannot use {type(value).__name__} as a number: {value!r}")


def tidy_number(result: Any, *operands: Any) -> Any:
    """Keep integer results integral when every operand was an integer."""
    if isinstance(result, float) and result.is_integer():
        if all(isinstance(op, int) for op in operands):
            return int(result)
    return result


def apply_compound(operator: str, base: Any, amount: Any) -> Any:
    """
    Compute the new value of a compound update (`base <operator>= amount`).

    A missing base counts as 0 for arithmetic, as [] when appending a list
    and as "" when appending anything else.

    Raises:
        ValueError: Unknown operator or non-numeric operand.
        ZeroDivisionError: Division or remainder by zero.
    """
    if operator == "cat":
        if isinstance(base, (list, tuple)) or isinstance(amount, (list, tuple)):
            left = [] if base is None else (list(base) if isinstance(base, (list, tuple)) else [base])
            right = list(amount) if isinstance(amount, (list, tuple)) else [amount]
            return left + right
        return stringify(base) + stringify(amount)

    if operator == "uncat":
        return uncat(base, amount)

    left = to_number(base)
    right = to_number(amount)

    if operator == "+":
        return left + right
    if operator == "-":
        return left - right
    if operator == "*":
        return left * right
    if operator == "/":
        if right == 0:
            raise ZeroDivisionError("division by zero in compound update")
        return tidy_number(left / right, left, right)
    if operator == "%":
        if right == 0:
            raise ZeroDivisionError("remainder by zero in compound update")
        return tidy_number(math.fmod(left, right), left, right)

    raise ValueError(f"Unknown compound operator: {operator}")
