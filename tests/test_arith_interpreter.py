import math
import operator
from concurrent.futures import ThreadPoolExecutor

import pytest
from arith.arith_builtins import build_default_registry
from arith.arith_datatypes import (
    LeftParen, Comma, Number, Constant, Function, Operator, Unary, PostfixSequence
)
from arith.arith_errors import ErrorKind, ParseError, EvaluationError
from arith.arith_interpreter import Evaluator, PostfixEvaluator
from arith.arith_registry import Registry


@pytest.fixture
def evaluator():
    return Evaluator(build_default_registry())


# Test cases: (id, expression, expected)
EVAL_TEST_CASES = [
    ("precedence", "2 + 3 * 4", 14.0),
    ("grouping", "(2 + 3) * 4", 20.0),
    ("left_assoc_sub", "8 - 3 - 2", 3.0),
    ("left_assoc_div", "8 / 2 / 2", 2.0),
    ("double_negation", "--5", 5.0),
    ("unary_plus", "+5", 5.0),
    ("negate_product_operand", "2 * -3", -6.0),
    ("negate_group", "-(1 + 2)", -3.0),
    ("percent", "50%", 0.5),
    ("percent_then_add", "100% + 1", 2.0),
    ("half_plus_one", "50% + 1", 1.5),
    ("percent_of_group", "(20 + 30)%", 0.5),
    ("pow", "pow(2,3)", 8.0),
    ("pow_negative_exponent", "pow(2, -1)", 0.5),
    ("pow_negative_base_integral", "pow(-2, 3)", -8.0),
    ("sqrt", "sqrt(4)", 2.0),
    ("sqrt_zero", "sqrt(0)", 0.0),
    ("nested_calls", "sqrt(16) + pow(2, sqrt(9))", 12.0),
    ("negated_call", "-sqrt(4)", -2.0),
    ("abs", "abs(-4.5)", 4.5),
    ("exp", "exp(0)", 1.0),
    ("log_e", "log(e)", 1.0),
    ("division", "10 / 4", 2.5),
    ("exponent_literal", "1.5e2 + 1", 151.0),
    ("pi_times_two", "pi * 2", 6.283185307179586),
    ("constant_alone", "e", math.e),
    ("deep_parens", "((((7))))", 7.0),
]


@pytest.mark.parametrize(
    "expression, expected",
    [(expr, exp) for _, expr, exp in EVAL_TEST_CASES],
    ids=[case_id for case_id, _, _ in EVAL_TEST_CASES],
)
def test_evaluate(evaluator, expression, expected):
    assert evaluator.evaluate(expression) == pytest.approx(expected)


def test_call_alias(evaluator):
    assert evaluator("1 + 1") == 2.0


def test_result_is_float(evaluator):
    assert isinstance(evaluator.evaluate("2"), float)


def test_subtract_percent(evaluator):
    assert evaluator.evaluate("2 - 3%") == pytest.approx(1.97)


# Error cases: (id, expression, kind, symbol)
EVAL_ERROR_CASES = [
    ("divide_by_zero", "1/0", ErrorKind.VALIDATOR_REJECTED, "/"),
    ("divide_by_zero_expression", "1 / (2 - 2)", ErrorKind.VALIDATOR_REJECTED, "/"),
    ("sqrt_negative", "sqrt(-1)", ErrorKind.VALIDATOR_REJECTED, "sqrt"),
    ("log_zero", "log(0)", ErrorKind.VALIDATOR_REJECTED, "log"),
    ("pow_zero_negative", "pow(0, -1)", ErrorKind.VALIDATOR_REJECTED, "pow"),
    ("pow_negative_fractional", "pow(-8, 0.5)", ErrorKind.VALIDATOR_REJECTED, "pow"),
    ("exp_overflow", "exp(1000)", ErrorKind.ARITHMETIC_FAULT, "exp"),
    ("pow_overflow", "pow(10, 400)", ErrorKind.ARITHMETIC_FAULT, "pow"),
]


@pytest.mark.parametrize(
    "expression, kind, symbol",
    [case[1:] for case in EVAL_ERROR_CASES],
    ids=[case[0] for case in EVAL_ERROR_CASES],
)
def test_evaluation_errors(evaluator, expression, kind, symbol):
    with pytest.raises(EvaluationError) as excinfo:
        evaluator.evaluate(expression)
    assert excinfo.value.kind is kind
    assert excinfo.value.symbol == symbol


@pytest.mark.parametrize("expression", [
    "pow(2)", "pow(2,3,4)", "(1+2", "1+2)", "1+", "1,2", "", "sqrt 4",
])
def test_malformed_expressions_raise_parse_errors(evaluator, expression):
    with pytest.raises(ParseError):
        evaluator.evaluate(expression)


def test_validator_error_points_at_operator(evaluator):
    with pytest.raises(EvaluationError) as excinfo:
        evaluator.evaluate("4 + 1/0")
    assert excinfo.value.position == 5


def test_overflow_is_chained(evaluator):
    with pytest.raises(EvaluationError) as excinfo:
        evaluator.evaluate("exp(1000)")
    assert isinstance(excinfo.value.__cause__, OverflowError)


def test_complex_result_is_arithmetic_fault():
    ev = Evaluator(build_default_registry()).register_operator('^', 4, 'right', pow)
    with pytest.raises(EvaluationError) as excinfo:
        ev.evaluate("(-8) ^ 0.5")
    assert excinfo.value.kind is ErrorKind.ARITHMETIC_FAULT
    assert excinfo.value.symbol == '^'
    assert excinfo.value.position == 5
    assert isinstance(excinfo.value.__cause__, TypeError)


@pytest.mark.parametrize("result", [None, "text", 1j])
def test_non_real_function_result_is_arithmetic_fault(result):
    ev = Evaluator().register_function("bad", 1, lambda a: result)
    with pytest.raises(EvaluationError) as excinfo:
        ev.evaluate("bad(1)")
    assert excinfo.value.kind is ErrorKind.ARITHMETIC_FAULT
    assert excinfo.value.symbol == "bad"


def test_raising_validator_is_arithmetic_fault():
    ev = Evaluator().register_operator('/', 3, 'left', operator.truediv, lambda a, b: a / b < 1e300)
    with pytest.raises(EvaluationError) as excinfo:
        ev.evaluate("1/0")
    assert excinfo.value.kind is ErrorKind.ARITHMETIC_FAULT
    assert excinfo.value.position == 1
    assert isinstance(excinfo.value.__cause__, ZeroDivisionError)


def test_raising_unary_and_function_validators_are_wrapped():
    ev = (Evaluator()
          .register_unary('~', 'right', operator.neg, lambda x: math.log(x) > 0)
          .register_function("f", 1, lambda a: a[0], lambda a: 1 / a[0] > 0))
    with pytest.raises(EvaluationError) as excinfo:
        ev.evaluate("~0")
    assert excinfo.value.kind is ErrorKind.ARITHMETIC_FAULT
    with pytest.raises(EvaluationError) as excinfo:
        ev.evaluate("f(0)")
    assert excinfo.value.kind is ErrorKind.ARITHMETIC_FAULT
    assert excinfo.value.symbol == "f"


# --- Idempotence ---

def test_repeated_evaluation_is_stable(evaluator):
    results = {evaluator.evaluate("sqrt(16) + pi * 2 - 50%") for _ in range(5)}
    assert len(results) == 1


def test_evaluate_does_not_mutate_parsed_sequence(evaluator):
    tokens = evaluator.parse("pow(2, 3) + 1")
    before = list(tokens)
    assert evaluator.evaluate(tokens) == 9.0
    assert list(tokens) == before
    assert evaluator.evaluate(tokens) == 9.0


def test_failed_evaluation_leaves_registry_untouched(evaluator):
    before = (len(evaluator.registry.constants), len(evaluator.registry.functions))
    with pytest.raises(EvaluationError):
        evaluator.evaluate("1/0")
    assert (len(evaluator.registry.constants), len(evaluator.registry.functions)) == before
    assert evaluator.evaluate("1/1") == 1.0


def test_parallel_evaluation_against_fixed_registry(evaluator):
    expressions = [f"{i} * 2 + pow({i}, 2)" for i in range(50)]
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(evaluator.evaluate, expressions))
    assert results == [i * 2 + i ** 2 for i in range(50)]


# --- Constants ---

def test_constants_resolve_by_value():
    ev = Evaluator().register_constant("k", 3).register_operator('*', 3, 'left', operator.mul)
    assert ev.evaluate("k * k") == 9.0


def test_constant_table_lookup_is_lazy():
    registry = Registry().register_constant("k", 2)
    postfix = PostfixSequence([Constant(0)])
    assert PostfixEvaluator(registry).evaluate(postfix) == 2.0


# --- Custom symbols ---

def test_right_associative_operator():
    ev = (Evaluator()
          .register_operator('^', 4, 'right', pow)
          .register_operator('-', 2, 'left', operator.sub))
    assert ev.evaluate("2 ^ 3 ^ 2") == 512.0
    assert ev.evaluate("10 - 2 ^ 3") == 2.0


def test_custom_function_and_validator():
    ev = (Evaluator()
          .register_function("inv", 1, lambda a: 1 / a[0], lambda a: a[0] != 0)
          .register_function("clamp", 3, lambda a: min(max(a[0], a[1]), a[2])))
    assert ev.evaluate("inv(4)") == 0.25
    assert ev.evaluate("clamp(5, 0, 3)") == 3.0
    assert ev.evaluate("clamp(inv(2), 0, 3)") == 0.5
    with pytest.raises(EvaluationError) as excinfo:
        ev.evaluate("inv(0)")
    assert excinfo.value.kind is ErrorKind.VALIDATOR_REJECTED


def test_function_receives_arguments_in_source_order():
    seen = []

    def record(args):
        seen.append(list(args))
        return 0

    ev = Evaluator().register_function("f", 3, record)
    ev.evaluate("f(1, 2, 3)")
    assert seen == [[1.0, 2.0, 3.0]]


def test_custom_unary_validator():
    ev = Evaluator().register_unary(
        '!', 'left', lambda x: math.factorial(int(x)), lambda x: x >= 0 and float(x).is_integer()
    )
    ev.register_unary('-', 'right', operator.neg)
    assert ev.evaluate("5!") == 120.0
    with pytest.raises(EvaluationError):
        ev.evaluate("(-5)!")


def test_zero_arity_function_cannot_be_called():
    ev = Evaluator().register_function("one", 0, lambda a: 1.0)
    with pytest.raises(ParseError) as excinfo:
        ev.evaluate("one()")
    assert excinfo.value.kind is ErrorKind.UNEXPECTED_CHARACTER


def test_zero_arity_function_in_hand_built_postfix():
    ev = Evaluator().register_function("one", 0, lambda a: 1.0)
    assert ev.evaluate(PostfixSequence([Function(0)])) == 1.0


# --- Malformed postfix input ---

@pytest.mark.parametrize("tokens", [
    [],
    [Number(1), Number(2)],
    [Operator('+')],
    [Number(1), Operator('+')],
    [Unary('-')],
    [LeftParen(), Number(1)],
    [Number(1), Comma()],
    [Number(1), Function(42)],
    [Constant(42)],
    [Number(1), Number(2), Operator('?')],
], ids=["empty", "two_values", "bare_operator", "one_operand", "bare_unary",
        "paren", "comma", "unknown_function", "unknown_constant", "unknown_operator"])
def test_malformed_postfix(evaluator, tokens):
    with pytest.raises(EvaluationError) as excinfo:
        evaluator.evaluate(PostfixSequence(tokens))
    assert excinfo.value.kind is ErrorKind.MALFORMED_POSTFIX


def test_plain_list_of_tokens_is_accepted(evaluator):
    assert evaluator.evaluate([Number(2), Number(3), Operator('*')]) == 6.0
