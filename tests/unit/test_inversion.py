"""
Unit tests for map and combine inversion used by reverse domain validation.
"""

import pytest

from quizcentral.domains.inversion import (
    NoPreimage,
    UninvertibleExpression,
    deconstruct_combine,
    invert_map,
    is_var,
    read_rendered,
)

X = {"var": "x"}
Y = {"var": "y"}


class TestIsVar:
    def test_forms(self):
        """Test plain and list var forms."""
        assert is_var(X)
        assert is_var({"var": ["x"]})
        assert not is_var({"var": "y"})
        assert not is_var({"var": "x", "other": 1})
        assert not is_var("x")


class TestInvertMap:
    """Test solving arithmetic maps for their input."""

    def test_identity(self):
        """Test that the identity map returns the value."""
        assert invert_map("abc", X) == "abc"

    @pytest.mark.parametrize(
        "expr, value, expected",
        [
            ({"+": [X, 3]}, 10, 7),
            ({"+": [3, X]}, 10, 7),
            ({"-": [X, 3]}, 10, 13),
            ({"-": [3, X]}, 1, 2),
            ({"*": [X, 2]}, 8, 4),
            ({"/": [X, 2]}, 4, 8),
            ({"/": [12, X]}, 4, 3),
        ],
    )
    def test_arithmetic(self, expr, value, expected):
        """Test each operator in both operand positions."""
        assert invert_map(value, expr) == expected

    def test_fractional_preimage(self):
        """Test that a non-integral pre-image is kept as a float."""
        assert invert_map(7, {"*": [X, 2]}) == 3.5

    def test_custom_variable_name(self):
        """Test inversion against a different bound name."""
        assert invert_map(5, {"+": [{"var": "item"}, 1]}, var="item") == 4

    def test_multiplication_by_zero_is_uninvertible(self):
        """Test that x * 0 has no unique inverse."""
        with pytest.raises(UninvertibleExpression):
            invert_map(0, {"*": [X, 0]})

    def test_constant_over_x_never_zero(self):
        """Test that c / x can never produce 0."""
        with pytest.raises(NoPreimage):
            invert_map(0, {"/": [5, X]})
        with pytest.raises(UninvertibleExpression):
            invert_map(0, {"/": [0, X]})

    def test_non_numeric_value(self):
        """Test that arithmetic maps cannot produce strings."""
        with pytest.raises(NoPreimage):
            invert_map("a", {"+": [X, 1]})

    @pytest.mark.parametrize(
        "expr",
        [
            {"%": [X, 2]},
            {"+": [X, X]},
            {"+": [X, {"var": "y"}]},
            {"+": [X, "1"]},
            {"+": [X, 1, 2]},
            {"cat": [X, "!"]},
            "x",
        ],
    )
    def test_unsupported_shapes(self, expr):
        """Test that unsupported expressions are reported as uninvertible."""
        with pytest.raises(UninvertibleExpression):
            invert_map(4, expr)


class TestDeconstructCombine:
    """Test splitting combined values into their parts."""

    def test_tuple_form(self):
        """Test the [x, y] form."""
        assert deconstruct_combine([1, "a"], [X, Y]) == [(1, "a")]

    def test_tuple_form_reversed(self):
        """Test the [y, x] form."""
        assert deconstruct_combine([1, "a"], [Y, X]) == [("a", 1)]

    def test_tuple_wrong_shape(self):
        """Test that a non-pair value has no pre-image."""
        with pytest.raises(NoPreimage):
            deconstruct_combine("a-1", [X, Y])

    def test_cat_single_split(self):
        """Test a separator occurring once."""
        assert deconstruct_combine("a-1", {"cat": [X, "-", Y]}) == [("a", "1"), ("a", 1)]

    def test_cat_every_split_point(self):
        """Test that an ambiguous separator yields every candidate."""
        assert deconstruct_combine("a-b-c", {"cat": [X, "-", Y]}) == [("a", "b-c"), ("a-b", "c")]

    def test_cat_numeric_parts(self):
        """Test that rendered numbers come back both as text and as numbers."""
        assert deconstruct_combine("3-1.5", {"cat": [X, "-", Y]}) == [
            ("3", "1.5"),
            ("3", 1.5),
            (3, "1.5"),
            (3, 1.5),
        ]

    def test_cat_missing_separator(self):
        """Test a value without the separator."""
        with pytest.raises(NoPreimage):
            deconstruct_combine("a1", {"cat": [X, "-", Y]})

    def test_named_other(self):
        """Test a combine whose other item is bound under another name."""
        expr = {"cat": [X, ":", {"var": "row"}]}
        assert deconstruct_combine("a:2", expr, y="row") == [("a", "2"), ("a", 2)]

    @pytest.mark.parametrize(
        "expr",
        [
            {"cat": [X, Y]},
            {"cat": [X, "", Y]},
            {"+": [X, Y]},
            [X, X],
            [X, Y, X],
        ],
    )
    def test_unsupported_shapes(self, expr):
        """Test expressions without an implemented inverse."""
        with pytest.raises(UninvertibleExpression):
            deconstruct_combine("a-1", expr)


class TestReadRendered:
    """Test reading concatenated text back into the values that render as it."""

    @pytest.mark.parametrize(
        "part,expected",
        [
            ("A", ["A"]),
            ("1", ["1", 1]),
            ("-4", ["-4", -4]),
            ("2.5", ["2.5", 2.5]),
            ("true", ["true", True]),
            ("", ["", None]),
        ],
    )
    def test_readings(self, part, expected):
        """Test text-first readings of a part."""
        assert read_rendered(part) == expected

    @pytest.mark.parametrize("part", ["1.0", "01", " 1", "1e3", "null", "[1]", "NaN"])
    def test_non_canonical_text_stays_text(self, part):
        """Test that text no number or boolean renders as is not decoded."""
        assert read_rendered(part) == [part]
