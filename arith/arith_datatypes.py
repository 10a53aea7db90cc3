"""
Defines the core data types for the arith expression engine.

This module provides the token variants that flow through the pipeline
(tokenizer -> postfix converter -> evaluator), the symbol records held by
the registry, and the mutable postfix sequence returned by `parse`.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence
import collections.abc


class Associativity(Enum):
    LEFT = "left"
    RIGHT = "right"


def always_valid(*args) -> bool:
    return True


# =================================================================
# Symbol Records
# =================================================================

@dataclass(frozen=True)
class ConstantInfo:
    name: str
    value: float


@dataclass(frozen=True)
class OperatorInfo:
    """A binary operator. Higher precedence binds tighter."""
    symbol: str
    precedence: int
    operation: Callable[[float, float], float]
    associativity: Associativity = Associativity.LEFT
    validator: Callable[[float, float], bool] = always_valid


@dataclass(frozen=True)
class UnaryInfo:
    """A unary operator.

    RIGHT associativity means prefix (applied to the operand that follows,
    e.g. unary minus); LEFT means postfix (applied to the operand already
    read, e.g. percent).
    """
    symbol: str
    operation: Callable[[float], float]
    associativity: Associativity = Associativity.RIGHT
    validator: Callable[[float], bool] = always_valid

    @property
    def is_prefix(self) -> bool:
        return self.associativity is Associativity.RIGHT


@dataclass(frozen=True)
class FunctionInfo:
    """A named function taking exactly `arity` arguments as a list."""
    name: str
    arity: int
    operation: Callable[[List[float]], float]
    validator: Callable[[List[float]], bool] = always_valid


# =================================================================
# Tokens
# =================================================================

class Token(ABC):
    """Abstract base class for all tokens.

    The concrete class is the tag; each variant carries only its own
    payload. `pos` is the 0-based source column the token was read from,
    or None for tokens produced during evaluation. It is not part of
    equality.
    """
    pos: Optional[int] = None


class _SymbolToken(Token):
    """Internal helper for the payload-free punctuation tokens."""
    symbol = ""

    def __init__(self, pos: Optional[int] = None):
        self.pos = pos

    def __repr__(self) -> str:
        return f"{type(self).__name__}<>"

    def __eq__(self, other):
        return type(other) is type(self)

    def __hash__(self):
        return hash(type(self))


class LeftParen(_SymbolToken):
    symbol = "("


class RightParen(_SymbolToken):
    symbol = ")"


class Comma(_SymbolToken):
    symbol = ","


class Number(Token):
    """A numeric literal, or the result of a reduction step."""
    def __init__(self, value: float, pos: Optional[int] = None):
        self.value = float(value)
        self.pos = pos

    def __repr__(self) -> str:
        return f"Number({self.value!r})"

    def __eq__(self, other):
        return isinstance(other, Number) and self.value == other.value

    def __hash__(self):
        return hash(("number", self.value))


class Constant(Token):
    """An index into the registry's constant table."""
    def __init__(self, index: int, pos: Optional[int] = None):
        self.index = index
        self.pos = pos

    def __repr__(self) -> str:
        return f"Constant({self.index})"

    def __eq__(self, other):
        return isinstance(other, Constant) and self.index == other.index

    def __hash__(self):
        return hash(("constant", self.index))


class Function(Token):
    """An index into the registry's function table."""
    def __init__(self, index: int, pos: Optional[int] = None):
        self.index = index
        self.pos = pos

    def __repr__(self) -> str:
        return f"Function({self.index})"

    def __eq__(self, other):
        return isinstance(other, Function) and self.index == other.index

    def __hash__(self):
        return hash(("function", self.index))


class Operator(Token):
    """A binary operator, resolved by symbol against the registry."""
    def __init__(self, symbol: str, pos: Optional[int] = None):
        self.symbol = symbol
        self.pos = pos

    def __repr__(self) -> str:
        return f"Operator({self.symbol!r})"

    def __eq__(self, other):
        return isinstance(other, Operator) and self.symbol == other.symbol

    def __hash__(self):
        return hash(("operator", self.symbol))


class Unary(Token):
    """A unary operator, resolved by symbol against the registry."""
    def __init__(self, symbol: str, pos: Optional[int] = None):
        self.symbol = symbol
        self.pos = pos

    def __repr__(self) -> str:
        return f"Unary({self.symbol!r})"

    def __eq__(self, other):
        return isinstance(other, Unary) and self.symbol == other.symbol

    def __hash__(self):
        return hash(("unary", self.symbol))


# Tokens that may stand as an operand during reduction.
VALUE_TOKENS = (Number, Constant)


# =================================================================
# Sequences
# =================================================================

class TokenSequence(collections.abc.MutableSequence):
    """
    Base class for ordered token containers. Supports in-place
    replacement and removal so the evaluator can reduce a span of
    operands into a single result token.
    """
    def __init__(self, tokens: Sequence[Token] = ()):
        self.tokens = list(tokens)

    def __getitem__(self, index):
        return self.tokens[index]

    def __setitem__(self, index, value):
        self.tokens[index] = value

    def __delitem__(self, index):
        del self.tokens[index]

    def __len__(self) -> int:
        return len(self.tokens)

    def insert(self, index, value):
        self.tokens.insert(index, value)

    def replace_span(self, start: int, end: int, token: Token) -> int:
        """Replaces tokens[start:end + 1] with `token`; returns its new index."""
        self.tokens[start:end + 1] = [token]
        return start

    def copy(self):
        return type(self)(self.tokens)

    def __eq__(self, other: Any):
        if isinstance(other, TokenSequence):
            return type(self) is type(other) and self.tokens == other.tokens
        return NotImplemented


class InfixSequence(TokenSequence):
    """Tokens in source order, as produced by the tokenizer."""
    def __repr__(self) -> str:
        return f"InfixSequence({self.tokens!r})"


class PostfixSequence(TokenSequence):
    """Tokens in Reverse Polish order, as produced by `parse`."""
    def __repr__(self) -> str:
        return f"PostfixSequence({self.tokens!r})"
