"""
Postfix evaluation and the public `Evaluator` facade.

The postfix evaluator walks a private copy of the sequence left to right.
Numbers and constants are left in place. Each operator, unary operator or
function consumes the operands immediately before it, and that whole span
is replaced by a single Number at the position the reduction started, so
later reductions see the result as a plain operand.
"""

import logging
from typing import List, Union

from arith.arith_datatypes import (
    Token, PostfixSequence, TokenSequence, LeftParen, RightParen, Comma,
    Number, Constant, Function, Operator, Unary, ConstantInfo, OperatorInfo,
    UnaryInfo, FunctionInfo, always_valid
)
from arith.arith_errors import ErrorKind, EvaluationError
from arith.arith_registry import Registry
from arith.arith_tokenizer import Tokenizer
from arith.arith_postfix import PostfixConverter
from arith.arith_printer import Printer

logger = logging.getLogger(__name__)


class PostfixEvaluator:
    def __init__(self, registry: Registry):
        self.registry = registry

    def evaluate(self, postfix_tokens) -> float:
        tokens = PostfixSequence(postfix_tokens)

        i = 0
        while i < len(tokens):
            token = tokens[i]
            match token:
                case Number() | Constant():
                    pass
                case Unary():
                    i = self._reduce_unary(tokens, i, token)
                case Operator():
                    i = self._reduce_operator(tokens, i, token)
                case Function():
                    i = self._reduce_function(tokens, i, token)
                case LeftParen() | RightParen() | Comma():
                    raise EvaluationError(
                        ErrorKind.MALFORMED_POSTFIX,
                        f"unexpected {token.symbol!r} in postfix expression",
                        token.pos, token.symbol
                    )
                case _:
                    raise EvaluationError(
                        ErrorKind.MALFORMED_POSTFIX,
                        f"unexpected {token!r} in postfix expression",
                        getattr(token, "pos", None)
                    )
            i += 1

        if len(tokens) != 1:
            raise EvaluationError(
                ErrorKind.MALFORMED_POSTFIX,
                f"postfix expression reduced to {len(tokens)} values, expected 1"
            )
        return self._value_of(tokens[0])

    # --- Reductions ---

    def _reduce_unary(self, tokens: TokenSequence, i: int, token: Unary) -> int:
        info = self.registry.unary(token.symbol)
        if info is None:
            raise self._unknown(token, f"unknown unary operator {token.symbol!r}")
        x = self._operand(tokens, i, 1, token.symbol)
        self._check(token, token.symbol, info.validator, (x,),
                    f"unary operator '{token.symbol}' cannot be applied to {x!r}")
        result = self._apply(token, token.symbol, info.operation, x)
        return tokens.replace_span(i - 1, i, Number(result))

    def _reduce_operator(self, tokens: TokenSequence, i: int, token: Operator) -> int:
        info = self.registry.operator(token.symbol)
        if info is None:
            raise self._unknown(token, f"unknown operator {token.symbol!r}")
        b = self._operand(tokens, i, 1, token.symbol)
        a = self._operand(tokens, i, 2, token.symbol)
        self._check(token, token.symbol, info.validator, (a, b),
                    f"operator '{token.symbol}' cannot be applied to {a!r} and {b!r}")
        result = self._apply(token, token.symbol, info.operation, a, b)
        return tokens.replace_span(i - 2, i, Number(result))

    def _reduce_function(self, tokens: TokenSequence, i: int, token: Function) -> int:
        try:
            info = self.registry.function(token.index)
        except IndexError:
            raise self._unknown(token, f"unknown function index {token.index}")
        n = info.arity
        args = [self._operand(tokens, i, n - k, info.name) for k in range(n)]
        rendered = ", ".join(repr(a) for a in args)
        self._check(token, info.name, info.validator, (list(args),),
                    f"function '{info.name}' cannot be applied to ({rendered})")
        result = self._apply(token, info.name, info.operation, args)
        return tokens.replace_span(i - n, i, Number(result))

    # --- Helpers ---

    def _operand(self, tokens: TokenSequence, i: int, back: int, owner: str) -> float:
        """Value of the element `back` places before index i."""
        j = i - back
        if j < 0:
            raise EvaluationError(
                ErrorKind.MALFORMED_POSTFIX,
                f"'{owner}' is missing an operand",
                tokens[i].pos, owner
            )
        return self._value_of(tokens[j])

    def _value_of(self, token: Token) -> float:
        match token:
            case Number():
                return token.value
            case Constant():
                try:
                    return self.registry.constant(token.index).value
                except IndexError:
                    raise self._unknown(token, f"unknown constant index {token.index}")
        # Only reachable with a hand-built or altered sequence.
        raise EvaluationError(
            ErrorKind.MALFORMED_POSTFIX,
            f"expected a number or constant, found {token!r}",
            getattr(token, "pos", None)
        )

    @staticmethod
    def _check(token: Token, name: str, validator, args: tuple, message: str) -> None:
        try:
            accepted = validator(*args)
        except (ArithmeticError, ValueError, TypeError) as e:
            raise EvaluationError(
                ErrorKind.ARITHMETIC_FAULT,
                f"validator for '{name}' failed: {e}",
                token.pos, name
            ) from e
        if not accepted:
            raise EvaluationError(ErrorKind.VALIDATOR_REJECTED, message, token.pos, name)

    @staticmethod
    def _apply(token: Token, name: str, operation, *args) -> float:
        try:
            result = operation(*args)
        except (ArithmeticError, ValueError) as e:
            raise EvaluationError(
                ErrorKind.ARITHMETIC_FAULT,
                f"'{name}' failed: {e}",
                token.pos, name
            ) from e
        # Complex numbers, None and strings are not results.
        try:
            return float(result)
        except (TypeError, ValueError) as e:
            raise EvaluationError(
                ErrorKind.ARITHMETIC_FAULT,
                f"'{name}' produced {result!r}, which is not a real number",
                token.pos, name
            ) from e

    @staticmethod
    def _unknown(token: Token, message: str) -> EvaluationError:
        return EvaluationError(ErrorKind.MALFORMED_POSTFIX, message, token.pos)


class Evaluator:
    """Parses and evaluates arithmetic expressions against a registry.

    Registration methods return the evaluator so calls can be chained:

        ev = Evaluator().register_operator('+', 2, 'left', operator.add)
    """

    def __init__(self, registry: Registry = None):
        self.registry = registry if registry is not None else Registry()
        self.tokenizer = Tokenizer(self.registry)
        self.converter = PostfixConverter(self.registry)
        self.postfix_evaluator = PostfixEvaluator(self.registry)

    def __repr__(self) -> str:
        return f"<Evaluator {self.registry!r}>"

    def parse(self, expression: str) -> PostfixSequence:
        return self.converter.convert(self.tokenizer.tokenize(expression))

    def evaluate(self, expression: Union[str, PostfixSequence, List[Token]]) -> float:
        if isinstance(expression, str):
            expression = self.parse(expression)
        return self.postfix_evaluator.evaluate(expression)

    def __call__(self, expression) -> float:
        return self.evaluate(expression)

    def format_tokens(self, tokens) -> str:
        return Printer(self.registry).pformat(tokens)

    # --- Chainable registration ---

    def register_constant(self, name: str, value: float) -> 'Evaluator':
        self.registry.register_constant(name, value)
        return self

    def register_operator(self, symbol: str, precedence: int, associativity, op,
                          validator=always_valid) -> 'Evaluator':
        self.registry.register_operator(symbol, precedence, associativity, op, validator)
        return self

    def register_unary(self, symbol: str, associativity, op, validator=always_valid) -> 'Evaluator':
        self.registry.register_unary(symbol, associativity, op, validator)
        return self

    def register_function(self, name: str, arity: int, fn, validator=always_valid) -> 'Evaluator':
        self.registry.register_function(name, arity, fn, validator)
        return self

    def add_constant(self, info: ConstantInfo) -> 'Evaluator':
        self.registry.add_constant(info)
        return self

    def add_operator(self, info: OperatorInfo) -> 'Evaluator':
        self.registry.add_operator(info)
        return self

    def add_unary(self, info: UnaryInfo) -> 'Evaluator':
        self.registry.add_unary(info)
        return self

    def add_function(self, info: FunctionInfo) -> 'Evaluator':
        self.registry.add_function(info)
        return self
