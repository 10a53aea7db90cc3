"""
The symbol registry: constants, binary operators, unary operators and
functions known to an evaluator.

Constants and functions get stable, append-only indices at registration
time; tokens refer to them by index. Operators and unary operators are
keyed by their one-character symbol. The same symbol may be registered
both as a binary and as a unary operator (e.g. `-`); the tokenizer tells
them apart by position.

The first registration of a key wins. Registering it again is ignored.
"""

import logging
from typing import Callable, Dict, List, Optional

from arith.arith_datatypes import (
    Associativity, ConstantInfo, OperatorInfo, UnaryInfo, FunctionInfo, always_valid
)

logger = logging.getLogger(__name__)

# Characters the tokenizer handles itself and which therefore can never be
# operator symbols.
RESERVED_SYMBOLS = frozenset("(),")


def _check_symbol(symbol) -> str:
    if not isinstance(symbol, str) or len(symbol) != 1:
        raise ValueError(f"Operator symbol must be a single character, got {symbol!r}")
    if symbol.isalnum() or symbol.isspace() or symbol in RESERVED_SYMBOLS:
        raise ValueError(f"Character {symbol!r} cannot be used as an operator symbol")
    return symbol


def _check_name(name) -> str:
    if not isinstance(name, str) or not name or not name[0].isalpha() or not name.isalnum():
        raise ValueError(f"Name must start with a letter and contain only letters and digits, got {name!r}")
    return name


def _check_callable(fn, what: str):
    if not callable(fn):
        raise TypeError(f"{what} must be callable, not {type(fn).__name__}")


def _check_associativity(associativity) -> Associativity:
    if isinstance(associativity, str):
        try:
            return Associativity(associativity.lower())
        except ValueError:
            pass
    if isinstance(associativity, Associativity):
        return associativity
    raise ValueError(f"Associativity must be 'left' or 'right', got {associativity!r}")


class Registry:
    """Holds every symbol an evaluator can recognise."""

    def __init__(self):
        self.constants: List[ConstantInfo] = []
        self.constant_names: Dict[str, int] = {}
        self.operators: Dict[str, OperatorInfo] = {}
        self.unaries: Dict[str, UnaryInfo] = {}
        self.functions: List[FunctionInfo] = []
        self.function_names: Dict[str, int] = {}

    def __repr__(self) -> str:
        return (f"<Registry constants={len(self.constants)} operators={len(self.operators)} "
                f"unaries={len(self.unaries)} functions={len(self.functions)}>")

    # --- Registration ---

    def add_constant(self, info: ConstantInfo) -> 'Registry':
        _check_name(info.name)
        if info.name in self.constant_names:
            logger.debug("constant %r already registered; ignoring", info.name)
            return self
        self.constant_names[info.name] = len(self.constants)
        self.constants.append(info)
        return self

    def add_operator(self, info: OperatorInfo) -> 'Registry':
        _check_symbol(info.symbol)
        if not isinstance(info.precedence, int) or isinstance(info.precedence, bool):
            raise TypeError(f"Precedence must be an int, not {type(info.precedence).__name__}")
        _check_callable(info.operation, "Operator operation")
        _check_callable(info.validator, "Operator validator")
        if info.symbol in self.operators:
            logger.debug("operator %r already registered; ignoring", info.symbol)
            return self
        self.operators[info.symbol] = info
        return self

    def add_unary(self, info: UnaryInfo) -> 'Registry':
        _check_symbol(info.symbol)
        _check_callable(info.operation, "Unary operation")
        _check_callable(info.validator, "Unary validator")
        if info.symbol in self.unaries:
            logger.debug("unary operator %r already registered; ignoring", info.symbol)
            return self
        self.unaries[info.symbol] = info
        return self

    def add_function(self, info: FunctionInfo) -> 'Registry':
        _check_name(info.name)
        if not isinstance(info.arity, int) or isinstance(info.arity, bool) or info.arity < 0:
            raise ValueError(f"Function arity must be a non-negative int, got {info.arity!r}")
        _check_callable(info.operation, "Function")
        _check_callable(info.validator, "Function validator")
        if info.name in self.function_names:
            logger.debug("function %r already registered; ignoring", info.name)
            return self
        self.function_names[info.name] = len(self.functions)
        self.functions.append(info)
        return self

    def register_constant(self, name: str, value: float) -> 'Registry':
        return self.add_constant(ConstantInfo(name, float(value)))

    def register_operator(self, symbol: str, precedence: int, associativity,
                          op: Callable[[float, float], float],
                          validator: Callable[[float, float], bool] = always_valid) -> 'Registry':
        assoc = _check_associativity(associativity)
        return self.add_operator(OperatorInfo(symbol, precedence, op, assoc, validator))

    def register_unary(self, symbol: str, associativity, op: Callable[[float], float],
                       validator: Callable[[float], bool] = always_valid) -> 'Registry':
        assoc = _check_associativity(associativity)
        return self.add_unary(UnaryInfo(symbol, op, assoc, validator))

    def register_function(self, name: str, arity: int, fn: Callable[[List[float]], float],
                          validator: Callable[[List[float]], bool] = always_valid) -> 'Registry':
        return self.add_function(FunctionInfo(name, arity, fn, validator))

    # --- Lookup by symbol / name (tokenizer) ---

    def operator(self, symbol: str) -> Optional[OperatorInfo]:
        return self.operators.get(symbol)

    def unary(self, symbol: str) -> Optional[UnaryInfo]:
        return self.unaries.get(symbol)

    def constant_index(self, name: str) -> Optional[int]:
        return self.constant_names.get(name)

    def function_index(self, name: str) -> Optional[int]:
        return self.function_names.get(name)

    def has_operator(self, symbol: str) -> bool:
        return symbol in self.operators

    def has_unary(self, symbol: str) -> bool:
        return symbol in self.unaries

    def has_constant(self, name: str) -> bool:
        return name in self.constant_names

    def has_function(self, name: str) -> bool:
        return name in self.function_names

    # --- Lookup by index (evaluator) ---

    def constant(self, index: int) -> ConstantInfo:
        if not 0 <= index < len(self.constants):
            raise IndexError(f"No constant with index {index}")
        return self.constants[index]

    def function(self, index: int) -> FunctionInfo:
        if not 0 <= index < len(self.functions):
            raise IndexError(f"No function with index {index}")
        return self.functions[index]
