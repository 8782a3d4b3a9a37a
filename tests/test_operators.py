"""Tests for binary operator semantics on single values."""

import pytest

from jqlite.errors import DivisionByZero, QueryTypeError
from jqlite.operators import (
    ARITHMETIC_OPERATORS,
    COMPARISON_OPERATORS,
    add,
    apply_operator,
    divide,
    modulo,
    multiply,
    subtract,
)

HUGE = 10**400


class TestAdd:
    """Tests for addition."""

    def test_numbers(self):
        """Test adding integers and floats."""
        assert add(1, 2) == 3
        assert add(1, 2.5) == 3.5

    def test_null_is_neutral(self):
        """Test that null on either side returns the other operand."""
        assert add(None, [1]) == [1]
        assert add({"a": 1}, None) == {"a": 1}
        assert add(None, None) is None

    def test_merge_does_not_mutate(self):
        """Test that merging objects leaves the operands untouched."""
        left = {"a": 1}
        right = {"a": 2, "b": 3}
        assert add(left, right) == {"a": 2, "b": 3}
        assert left == {"a": 1}

    def test_boolean_fails(self):
        """Test the error message for adding a boolean."""
        with pytest.raises(QueryTypeError) as exc_info:
            add(True, 1)
        assert "boolean (true) and number (1) cannot be added" == str(exc_info.value)

    def test_long_values_are_abbreviated(self):
        """Test that long operands are truncated in error messages."""
        with pytest.raises(QueryTypeError) as exc_info:
            add("a" * 40, 1)
        assert "..." in str(exc_info.value)


class TestSubtract:
    """Tests for subtraction."""

    def test_numbers(self):
        """Test subtracting numbers."""
        assert subtract(5, 7) == -2

    def test_array_difference_uses_value_equality(self):
        """Test that array difference compares by value."""
        assert subtract([1, 1.0, 2, {"a": 1}], [1, {"a": 1}]) == [2]

    def test_strings_fail(self):
        """Test that strings cannot be subtracted."""
        with pytest.raises(QueryTypeError):
            subtract("ab", "b")


class TestMultiplyDivide:
    """Tests for multiplication and division."""

    def test_multiply(self):
        """Test multiplying numbers."""
        assert multiply(3, 4) == 12

    def test_multiply_null_fails(self):
        """Test that null cannot be multiplied."""
        with pytest.raises(QueryTypeError):
            multiply(None, 2)

    def test_divide_exact(self):
        """Test that exact integer division stays an integer."""
        assert divide(9, 3) == 3
        assert isinstance(divide(9, 3), int)

    def test_divide_float(self):
        """Test inexact division producing floats."""
        assert divide(1, 4) == 0.25
        assert divide(3.0, 1.5) == 2.0

    def test_divide_by_zero(self):
        """Test dividing by integer zero."""
        with pytest.raises(DivisionByZero) as exc_info:
            divide(4, 0)
        assert exc_info.value.kind == "DivisionByZero"
        assert exc_info.value.dividend == 4

    def test_divide_by_float_zero(self):
        """Test dividing by float zero."""
        with pytest.raises(DivisionByZero):
            divide(4, 0.0)


class TestLargeIntegers:
    """Tests for integers too large to convert to floats."""

    @pytest.mark.parametrize(
        "func, right",
        [
            (add, 0.5),
            (subtract, 0.5),
            (multiply, 1.5),
            (divide, 3),
            (divide, 0.5),
        ],
    )
    def test_overflow_is_a_type_error(self, func, right):
        """Test that float overflow surfaces as a query type error."""
        with pytest.raises(QueryTypeError) as exc_info:
            func(HUGE, right)
        assert exc_info.value.kind == "TypeError"

    def test_integer_arithmetic_is_exact(self):
        """Test that pure integer arithmetic never overflows."""
        assert add(HUGE, 1) == HUGE + 1
        assert subtract(HUGE, HUGE) == 0
        assert multiply(HUGE, 2) == 2 * HUGE

    def test_exact_division_stays_integral(self):
        """Test that exact division of large integers stays exact."""
        assert divide(HUGE, 10**200) == 10**200


class TestModulo:
    """Tests for the modulo operator."""

    def test_sign_follows_dividend(self):
        """Test that the result takes the sign of the dividend."""
        assert modulo(-7, 2) == -1
        assert modulo(7, -2) == 1

    def test_by_zero(self):
        """Test modulo by zero."""
        with pytest.raises(DivisionByZero) as exc_info:
            modulo(1, 0)
        assert exc_info.value.operator == "%"

    def test_fraction_below_one_is_zero_divisor(self):
        """Test that a divisor truncating to zero is rejected."""
        with pytest.raises(DivisionByZero):
            modulo(5, 0.5)


class TestApplyOperator:
    """Tests for operator dispatch."""

    def test_comparisons(self):
        """Test the comparison operators across types."""
        assert apply_operator("<", 1, "a") is True
        assert apply_operator(">=", [2], [1, 5]) is True
        assert apply_operator("==", {"a": 1}, {"a": 1.0}) is True
        assert apply_operator("!=", None, False) is True

    def test_operator_sets(self):
        """Test the published operator sets."""
        assert ARITHMETIC_OPERATORS == {"+", "-", "*", "/", "%"}
        assert COMPARISON_OPERATORS == {"==", "!=", "<", "<=", ">", ">="}

    def test_unknown_operator(self):
        """Test dispatching an unknown operator."""
        with pytest.raises(NotImplementedError):
            apply_operator("**", 1, 2)
