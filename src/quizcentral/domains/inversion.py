"""
Inverses of domain pipeline expressions.

Reverse validation walks a domain pipeline from its output back to its source.
Each map step needs the pre-image of a value, and each combine step needs the
two parts a composite value was built from. Only these shapes are invertible:

    map:     {"var": "x"}                          identity
             {"+"|"-"|"*"|"/": [{"var": "x"}, n]}  one bound operand, one literal number
             {"+"|"-"|"*"|"/": [n, {"var": "x"}]}  (operand position picks the solution)
    combine: {"cat": [{"var": "x"}, "sep", {"var": "y"}]}  (parts read back as text or as the
             number, boolean or null that renders to that text)
             [{"var": "x"}, {"var": "y"}]          (either order)

Any other expression raises UninvertibleExpression. A supported expression
that cannot have produced the value raises NoPreimage.
"""

import json
from typing import Any, List, Tuple

from quizcentral.runtime.operators import stringify, tidy_number

ARITHMETIC_OPERATORS = frozenset({"+", "-", "*", "/"})


class InversionError(Exception):
    """Base class for failed inversions."""
    pass


class UninvertibleExpression(InversionError):
    """The expression has no implemented inverse."""
    pass


class NoPreimage(InversionError):
    """The expression is invertible but no input produces this value."""
    pass


def is_var(expr: Any, name: str = "x") -> bool:
    """True if `expr` is {"var": name} (or {"var": [name]})."""
    if not isinstance(expr, dict) or len(expr) != 1 or "var" not in expr:
        return False
    ref = expr["var"]
    if isinstance(ref, list):
        return len(ref) == 1 and ref[0] == name
    return ref == name


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def invert_map(value: Any, expr: Any, var: str = "x") -> Any:
    """
    Solve `expr(x) == value` for x.

    Args:
        value: Output of the map step
        expr: The map step's expression
        var: Name of the bound variable

    Returns:
        The pre-image of `value`

    Raises:
        UninvertibleExpression: If the expression shape is unsupported or ambiguous
        NoPreimage: If no input maps to `value`
    """
    if is_var(expr, var):
        return value

    if not isinstance(expr, dict) or len(expr) != 1:
        raise UninvertibleExpression(f"Cannot invert expression: {expr!r}")

    op, args = next(iter(expr.items()))
    if op not in ARITHMETIC_OPERATORS:
        raise UninvertibleExpression(f"Cannot invert operator: {op}")
    if not isinstance(args, list) or len(args) != 2:
        raise UninvertibleExpression(f"Operator '{op}' needs exactly two operands to invert")

    var_positions = [i for i, arg in enumerate(args) if is_var(arg, var)]
    if len(var_positions) != 1:
        raise UninvertibleExpression(f"Expected '{var}' exactly once in {expr!r}")

    x_index = var_positions[0]
    constant = args[1 - x_index]
    if not _is_number(constant):
        raise UninvertibleExpression(f"Other operand of '{op}' must be a literal number: {constant!r}")

    if not _is_number(value):
        raise NoPreimage(f"Arithmetic map cannot produce non-numeric value {value!r}")

    if op == "+":
        return tidy_number(value - constant, value, constant)

    if op == "-":
        # x - c = v -> x = v + c ; c - x = v -> x = c - v
        if x_index == 0:
            return tidy_number(value + constant, value, constant)
        return tidy_number(constant - value, value, constant)

    if op == "*":
        if constant == 0:
            raise UninvertibleExpression("Multiplication by 0 has no unique inverse")
        return tidy_number(value / constant, value, constant)

    # op == "/"
    if x_index == 0:
        # x / c = v -> x = v * c
        if constant == 0:
            raise UninvertibleExpression("Division by 0 is not a valid map")
        return tidy_number(value * constant, value, constant)

    # c / x = v -> x = c / v
    if value == 0:
        if constant == 0:
            raise UninvertibleExpression("0 / x has no unique inverse")
        raise NoPreimage(f"{constant} / x never equals 0")
    return tidy_number(constant / value, value, constant)


def read_rendered(part: str) -> List[Any]:
    """
    Values that string concatenation renders as `part`.

    The text itself always comes first. A part that parses as a JSON number
    or boolean whose rendering is exactly `part` is also returned decoded
    ("1" -> 1, "true" -> True, but not "1.0" or "01"), and the empty string
    also reads back as null.
    """
    readings: List[Any] = [part]
    if part == "":
        readings.append(None)
        return readings

    try:
        decoded = json.loads(part)
    except ValueError:
        return readings

    if isinstance(decoded, (bool, int, float)) and stringify(decoded) == part:
        readings.append(decoded)
    return readings


def deconstruct_combine(value: Any, expr: Any, x: str = "x", y: str = "y") -> List[Tuple[Any, Any]]:
    """
    Split a combined value back into its (x, y) parts.

    String concatenation around a separator may be ambiguous when a part
    itself contains the separator, so every split point is returned and the
    caller keeps the first one that validates. Concatenated parts are offered
    both as text and decoded (see read_rendered), text first.

    Returns:
        Candidate (x, y) pairs, in order of separator occurrence

    Raises:
        UninvertibleExpression: If the combine expression shape is unsupported
        NoPreimage: If the value cannot have been produced by the expression
    """
    if isinstance(expr, list):
        if len(expr) == 2:
            if is_var(expr[0], x) and is_var(expr[1], y):
                x_pos, y_pos = 0, 1
            elif is_var(expr[0], y) and is_var(expr[1], x):
                x_pos, y_pos = 1, 0
            else:
                raise UninvertibleExpression(f"Cannot deconstruct tuple expression: {expr!r}")

            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise NoPreimage(f"Expected a 2-element array, got {value!r}")
            return [(value[x_pos], value[y_pos])]

        raise UninvertibleExpression(f"Cannot deconstruct tuple expression: {expr!r}")

    if isinstance(expr, dict) and len(expr) == 1 and "cat" in expr:
        args = expr["cat"]
        if (
            isinstance(args, list)
            and len(args) == 3
            and is_var(args[0], x)
            and isinstance(args[1], str)
            and args[1]
            and is_var(args[2], y)
        ):
            separator = args[1]
            if not isinstance(value, str) or separator not in value:
                raise NoPreimage(f"Value {value!r} does not contain separator {separator!r}")

            candidates = []
            start = value.find(separator)
            while start != -1:
                head, other = value[:start], value[start + len(separator):]
                candidates.extend(
                    (x_part, y_part) for x_part in read_rendered(head) for y_part in read_rendered(other)
                )
                start = value.find(separator, start + 1)
            return candidates

        raise UninvertibleExpression(f"Cannot deconstruct concatenation: {expr!r}")

    raise UninvertibleExpression(f"Cannot deconstruct combine expression: {expr!r}")
