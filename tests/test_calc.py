"""
Tests for the evaluator: tokenizer, stack machine, percent handling and tracing.
"""

import math

import pytest

from shuntcalc import (
    CalcError,
    CalcSyntaxError,
    DivisionByZeroError,
    ErrorKind,
    InvalidCharacterError,
    InvalidNumberError,
    evaluate,
    evaluate_with_trace,
)
from shuntcalc.calc import Number, Operator, Paren, Tokenizer


class TestBasicOperations:
    """Single-operator expressions."""

    def test_simple_addition(self):
        assert evaluate("5 + 3") == 8.0

    def test_simple_subtraction(self):
        assert evaluate("10 - 4") == 6.0

    def test_simple_multiplication(self):
        assert evaluate("7 * 3") == 21.0

    def test_simple_division(self):
        assert evaluate("20 / 4") == 5.0

    def test_floating_point(self):
        assert evaluate("1.5 + 2.5") == 4.0

    def test_exponentiation(self):
        assert evaluate("2 ^ 3") == 8.0

    def test_fractional_exponent(self):
        assert evaluate("9 ^ 0.5") == pytest.approx(3.0)

    def test_leading_decimal_point(self):
        assert evaluate(".5 * 4") == 2.0

    def test_bare_number(self):
        assert evaluate("42") == 42.0

    def test_whitespace_is_ignored(self):
        assert evaluate("  ( 1+2 )\t*3 ") == 9.0

    def test_ascii_control_whitespace_is_ignored(self):
        assert evaluate("\x0b1\r\n+\x0c1") == 2.0

    def test_digits_split_by_whitespace_join(self):
        assert evaluate("1 2 + 1") == 13.0


class TestPrecedence:
    """Precedence and associativity of the stack machine."""

    def test_order_of_operations(self):
        assert evaluate("5 + 2 * 3") == 11.0

    def test_parentheses(self):
        assert evaluate("(5 + 2) * 3") == 21.0

    def test_nested_parentheses(self):
        assert evaluate("((10 + 5) * 2) / 3") == 10.0

    def test_subtraction_is_left_associative(self):
        assert evaluate("8 - 3 - 2") == 3.0

    def test_division_is_left_associative(self):
        assert evaluate("64 / 4 / 2") == 8.0

    def test_power_is_left_associative(self):
        assert evaluate("2 ^ 3 ^ 2") == 64.0

    def test_power_binds_tighter_than_multiplication(self):
        assert evaluate("2 * 3 ^ 2") == 18.0

    def test_complex_expression(self):
        assert evaluate("3 + 4 * 2 / ( 1 - 5 ) ^ 2") == pytest.approx(3.5)


class TestPercent:
    """'%' after a number: share of the running total after + and -, plain /100 elsewhere."""

    def test_bare_percent(self):
        assert evaluate("50%") == 0.5

    def test_add_percent_of_previous(self):
        assert evaluate("200 + 10%") == pytest.approx(220.0)

    def test_subtract_percent_of_previous(self):
        assert evaluate("100 - 25%") == pytest.approx(75.0)

    def test_multiply_by_percent(self):
        assert evaluate("100 * 50%") == pytest.approx(50.0)

    def test_divide_by_percent(self):
        assert evaluate("10 / 50%") == pytest.approx(20.0)

    def test_percent_after_open_paren_is_absolute(self):
        assert evaluate("200 + (10%)") == pytest.approx(200.1)

    def test_percent_uses_last_operand_not_running_total(self):
        # 200 * 10% is reduced when '+' arrives, so 5% is taken of 20
        assert evaluate("200 * 10% + 5%") == pytest.approx(21.0)

    def test_negative_literal_percent_ignores_context(self):
        assert evaluate("100 + -50%") == pytest.approx(99.5)

    def test_negative_percent_alone(self):
        assert evaluate("-5%") == pytest.approx(-0.05)

    def test_percent_without_operand_is_syntax_error(self):
        with pytest.raises(CalcSyntaxError):
            evaluate("+10%")

    def test_leading_percent_is_invalid_character(self):
        with pytest.raises(InvalidCharacterError):
            evaluate("%5")


class TestUnaryMinus:

    def test_unary_minus_after_operator(self):
        assert evaluate("10 * -2") == -20.0

    def test_unary_minus_at_start(self):
        assert evaluate("-3 + 5") == 2.0

    def test_unary_minus_after_paren(self):
        assert evaluate("(-3) * 2") == -6.0

    def test_double_minus_is_subtract_negative(self):
        assert evaluate("1 - -2") == 3.0

    def test_negative_base_power(self):
        assert evaluate("-2 ^ 2") == 4.0

    def test_minus_before_paren_is_invalid_number(self):
        with pytest.raises(InvalidNumberError):
            evaluate("-(1 + 2)")

    def test_repeated_unary_minus_is_invalid_number(self):
        with pytest.raises(InvalidNumberError):
            evaluate("--1")


class TestErrors:
    """Every failure surfaces as a CalcError with the matching kind."""

    def test_division_by_zero(self):
        with pytest.raises(DivisionByZeroError) as exc:
            evaluate("10 / 0")
        assert exc.value.kind is ErrorKind.DIVISION_BY_ZERO

    def test_division_by_computed_zero(self):
        with pytest.raises(DivisionByZeroError):
            evaluate("1 / (2 - 2)")

    def test_operator_without_operand(self):
        with pytest.raises(CalcSyntaxError) as exc:
            evaluate("5 * + 3")
        assert exc.value.kind is ErrorKind.SYNTAX_ERROR

    def test_trailing_operator(self):
        with pytest.raises(CalcSyntaxError):
            evaluate("5 +")

    def test_unclosed_paren(self):
        with pytest.raises(CalcSyntaxError):
            evaluate("(5 + 3")

    def test_unopened_paren(self):
        with pytest.raises(CalcSyntaxError):
            evaluate("5 + 3)")

    def test_empty_parens(self):
        with pytest.raises(CalcSyntaxError):
            evaluate("()")

    def test_empty_expression(self):
        with pytest.raises(CalcSyntaxError):
            evaluate("")

    def test_juxtaposed_values(self):
        with pytest.raises(CalcSyntaxError):
            evaluate("(2)3")

    @pytest.mark.parametrize("expr", ["(1)(2)+", "2(3)+", "5(3)*", "(2)(3)^"])
    def test_adjacent_values_with_trailing_operator(self, expr):
        with pytest.raises(CalcSyntaxError):
            evaluate(expr)

    def test_open_paren_after_value(self):
        with pytest.raises(CalcSyntaxError) as exc:
            evaluate("2 (3)")
        assert "expected an operator" in str(exc.value)

    def test_number_after_close_paren(self):
        with pytest.raises(CalcSyntaxError):
            evaluate("(2) 3 + 1")

    def test_operator_where_value_expected(self):
        with pytest.raises(CalcSyntaxError) as exc:
            evaluate("5 * + 3")
        assert "expected a value" in str(exc.value)

    def test_close_paren_where_value_expected(self):
        with pytest.raises(CalcSyntaxError):
            evaluate("(5 +)")

    def test_trailing_operator_after_paren(self):
        with pytest.raises(CalcSyntaxError):
            evaluate("(1 + 2) *")

    def test_multiple_decimal_points(self):
        with pytest.raises(InvalidNumberError) as exc:
            evaluate("1.2.3 + 1")
        assert exc.value.kind is ErrorKind.INVALID_NUMBER

    def test_lone_decimal_point(self):
        with pytest.raises(InvalidNumberError):
            evaluate(".")

    def test_invalid_character(self):
        with pytest.raises(InvalidCharacterError) as exc:
            evaluate("2 + a")
        assert exc.value.kind is ErrorKind.INVALID_CHARACTER

    def test_non_ascii_digit_is_invalid_character(self):
        with pytest.raises(InvalidCharacterError):
            evaluate("2 + ٣")

    @pytest.mark.parametrize("expr", ["1\u00a0+ 1", "1 +\x1c1"])
    def test_non_ascii_whitespace_is_invalid_character(self, expr):
        with pytest.raises(InvalidCharacterError):
            evaluate(expr)

    def test_errors_share_a_base_class(self):
        with pytest.raises(CalcError):
            evaluate("1 / 0")

    def test_non_string_input(self):
        with pytest.raises(TypeError):
            evaluate(5)


class TestFloatEdgeCases:

    def test_negative_base_fractional_exponent_is_nan(self):
        assert math.isnan(evaluate("(-8) ^ (1 / 3)"))

    def test_power_overflow_is_inf(self):
        assert evaluate("10 ^ 400") == math.inf

    def test_odd_power_overflow_keeps_sign(self):
        assert evaluate("-10 ^ 401") == -math.inf

    def test_zero_to_negative_power_is_inf(self):
        assert evaluate("0 ^ -1") == math.inf


class TestTokenizer:

    def test_number_with_percent(self):
        assert Tokenizer("12.5%").next_token(True) == Number(12.5, percent=True)

    def test_minus_when_expecting_value_is_literal(self):
        assert Tokenizer("-3").next_token(True) == Number(-3.0, negated=True)

    def test_minus_when_expecting_operator_is_binary(self):
        assert Tokenizer("-3").next_token(False) == Operator("-")

    def test_parens(self):
        tokens = Tokenizer("()")
        assert tokens.next_token(True) == Paren("(")
        assert tokens.next_token(True) == Paren(")")
        assert tokens.next_token(False) is None

    def test_end_of_input(self):
        assert Tokenizer("   ").next_token(True) is None


class TestTrace:

    def test_steps_end_with_result(self):
        result, steps = evaluate_with_trace("5 + 3")
        assert result == 8.0
        assert "ADD  5.0 + 3.0 = 8.0" in steps
        assert steps[-1] == "RESULT = 8.0"

    def test_percent_step_is_recorded(self):
        _, steps = evaluate_with_trace("200 + 10%")
        assert "PCT  10.0% of 200.0 = 20.0" in steps

    def test_steps_attached_to_error(self):
        with pytest.raises(DivisionByZeroError) as exc:
            evaluate_with_trace("2 + 10 / 0")
        steps = exc.value.steps
        assert "PUSH 10.0" in steps
        assert steps[-1].startswith("ERROR Division by zero")

    def test_each_call_has_its_own_trace(self):
        _, first = evaluate_with_trace("1 + 1")
        _, second = evaluate_with_trace("2 * 2")
        assert first != second
        assert not any("MUL" in s for s in first)
