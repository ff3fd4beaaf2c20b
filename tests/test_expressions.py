# =============================================================================
# test_expressions.py - Expression Parser and Evaluator Tests
# =============================================================================
# Tests for expression parsing (precedence, canonical text) and evaluation
# (arithmetic, comparison, strings, arrays, structures, built-ins).
# =============================================================================

import math

import pytest

from edubasic.context import ExecutionContext
from edubasic.errors import BasicRuntimeError
from edubasic.expression_parser import parse_expression_text
from edubasic.values import BasicArray, ValueType


# =============================================================================
# Helper Functions
# =============================================================================

def parse(source: str):
    result = parse_expression_text(source)
    assert result.ok, result.error
    return result.value


def evaluate(source: str, context=None):
    return parse(source).evaluate(context or ExecutionContext())


# =============================================================================
# Parsing
# =============================================================================

class TestParsing:
    """Expression trees and their canonical text."""

    def test_canonical_text(self):
        assert str(parse("2+3*x%")) == "2 + 3 * x%"

    def test_keywords_are_uppercased(self):
        assert str(parse("a% and not b%")) == "a% AND NOT b%"

    def test_function_with_parentheses(self):
        assert str(parse("sqrt(16)")) == "SQRT(16)"

    def test_string_literal_is_requoted(self):
        assert str(parse(r'"say \"hi\""')) == r'"say \"hi\""'

    def test_canonical_text_reparses_identically(self):
        text = str(parse('name$ MID 2 TO 4 + "x"'))
        assert str(parse(text)) == text

    def test_empty_input_fails(self):
        result = parse_expression_text("")
        assert not result.ok
        assert result.error == "Expected expression"

    def test_trailing_operator_fails(self):
        assert not parse_expression_text("2 +").ok

    def test_leftover_tokens_fail(self):
        result = parse_expression_text("2 3")
        assert not result.ok
        assert "Unexpected token: 3" in result.error

    def test_tokenize_error_becomes_failure(self):
        result = parse_expression_text('"open')
        assert not result.ok
        assert "Unterminated string" in result.error


# =============================================================================
# Arithmetic
# =============================================================================

class TestArithmetic:
    """Numeric operators and precedence."""

    def test_precedence(self):
        assert evaluate("2 + 3 * 4") == 14

    def test_parentheses(self):
        assert evaluate("(2 + 3) * 4") == 20

    def test_power_is_right_associative(self):
        assert evaluate("2 ^ 3 ^ 2") == 512

    def test_double_star_power(self):
        assert evaluate("2 ** 10") == 1024

    def test_division_is_real(self):
        assert evaluate("7 / 2") == 3.5

    def test_integer_arithmetic_stays_integer(self):
        value = evaluate("6 * 7")
        assert value == 42
        assert isinstance(value, int)

    def test_mixed_arithmetic_is_real(self):
        value = evaluate("1 + 0.5")
        assert value == 1.5
        assert isinstance(value, float)

    def test_mod_follows_dividend_sign(self):
        assert evaluate("7 MOD 3") == 1
        assert evaluate("-7 MOD 3") == -1

    def test_division_by_zero(self):
        with pytest.raises(BasicRuntimeError, match="Division by zero"):
            evaluate("1 / 0")

    def test_complex_product(self):
        assert evaluate("(1+2i) * (1-2i)") == complex(5, 0)

    def test_factorial(self):
        assert evaluate("5!") == 120

    def test_absolute_value_bars(self):
        assert evaluate("|-3|") == 3
        assert evaluate('|"abcd"|') == 4

    def test_degrees(self):
        assert evaluate("PI DEG") == pytest.approx(180.0)

    def test_string_plus_number_is_mismatch(self):
        with pytest.raises(BasicRuntimeError, match="Type mismatch"):
            evaluate('"a" + 1')


# =============================================================================
# Comparison and Logic
# =============================================================================

class TestComparisonAndLogic:
    """TRUE is -1 and FALSE is 0."""

    def test_true_comparison(self):
        assert evaluate("3 = 3") == -1

    def test_false_comparison(self):
        assert evaluate("3 < 2") == 0

    def test_string_comparison(self):
        assert evaluate('"abc" < "abd"') == -1

    def test_not(self):
        assert evaluate("NOT 0") == -1
        assert evaluate("NOT TRUE") == 0

    def test_and_or(self):
        assert evaluate("TRUE AND FALSE") == 0
        assert evaluate("TRUE OR FALSE") == -1

    def test_comparison_binds_tighter_than_and(self):
        assert evaluate("1 < 2 AND 3 < 4") == -1


# =============================================================================
# Strings
# =============================================================================

class TestStringOperators:
    """Keyword string operators."""

    def test_concatenation(self):
        assert evaluate('"abc" + "def"') == "abcdef"

    def test_left_and_right(self):
        assert evaluate('"hello" LEFT 2') == "he"
        assert evaluate('"hello" RIGHT 3') == "llo"

    def test_mid(self):
        assert evaluate('"hello" MID 2 TO 4') == "ell"

    def test_replace(self):
        assert evaluate('"a-b-c" REPLACE "-" WITH "+"') == "a+b+c"

    def test_instr(self):
        assert evaluate('"hello" INSTR "l"') == 3
        assert evaluate('"hello" INSTR "z"') == 0

    def test_startswith(self):
        assert evaluate('"hello" STARTSWITH "he"') == -1

    def test_string_functions(self):
        assert evaluate('UCASE "abc"') == "ABC"
        assert evaluate('TRIM "  x  "') == "x"
        assert evaluate('CHR 65') == "A"
        assert evaluate('ASC "A"') == 65


# =============================================================================
# Arrays, Structures and Variables
# =============================================================================

class TestContainers:
    """Array and structure literals."""

    def test_array_literal_widens_to_real(self):
        value = evaluate("[1, 2.5]")
        assert isinstance(value, BasicArray)
        assert value.element_type == ValueType.REAL
        assert value.data == [1.0, 2.5]

    def test_array_index_is_one_based(self):
        assert evaluate("[10, 20, 30][2]") == 20

    def test_array_index_out_of_bounds(self):
        with pytest.raises(BasicRuntimeError, match="out of bounds"):
            evaluate("[10, 20][3]")

    def test_includes_and_indexof(self):
        assert evaluate("[1, 2, 3] INCLUDES 2") == -1
        assert evaluate("[1, 2, 3] INDEXOF 3") == 3

    def test_join(self):
        assert evaluate('["a", "b"] JOIN ", "') == "a, b"

    def test_structure_member(self):
        assert evaluate("{ a: 1, b: 2 }.b") == 2

    def test_mixed_string_array_fails(self):
        with pytest.raises(BasicRuntimeError, match="cannot mix STRING"):
            evaluate('[1, "a"]')


class TestVariables:
    """Variables read from the execution context."""

    def test_assigned_variable(self):
        context = ExecutionContext()
        context.set_variable("x%", 4)
        assert evaluate("x% * 2", context) == 8

    def test_unassigned_variables_have_defaults(self):
        assert evaluate("n%") == 0
        assert evaluate("s$") == ""

    def test_names_are_case_insensitive(self):
        context = ExecutionContext()
        context.set_variable("Total#", 1.5)
        assert evaluate("TOTAL#", context) == 1.5

    def test_integer_variable_truncates(self):
        context = ExecutionContext()
        context.set_variable("n%", 3.9)
        assert context.get_variable("n%") == 3


class TestBuiltins:
    """Numeric functions and constants."""

    def test_sqrt(self):
        assert evaluate("SQRT 16") == 4.0

    def test_sqrt_of_negative_is_complex(self):
        assert evaluate("SQRT(-4)") == pytest.approx(2j)

    def test_pi(self):
        assert evaluate("PI") == pytest.approx(math.pi)

    def test_rnd_is_seeded(self):
        first = evaluate("RND", ExecutionContext(seed=7))
        second = evaluate("RND", ExecutionContext(seed=7))
        assert first == second
        assert 0 <= first < 1
