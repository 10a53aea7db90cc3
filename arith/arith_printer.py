"""
A pretty-printer for arith tokens, token sequences and results.
"""
import math
from typing import Optional

from arith.arith_datatypes import (
    TokenSequence, InfixSequence, PostfixSequence, LeftParen, RightParen, Comma,
    Number, Constant, Function, Operator, Unary
)
from arith.arith_registry import Registry


class Printer:
    """Formats tokens using the names registered in `registry`."""

    def __init__(self, registry: Optional[Registry] = None, precision: Optional[int] = None):
        self.registry = registry
        self.precision = precision
        self._handlers = self._create_handlers()

    def pformat(self, obj) -> str:
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj)

    def _get_handler(self, obj):
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, TokenSequence) or isinstance(obj, (list, tuple)):
            return self._pformat_sequence
        return repr

    def _create_handlers(self):
        return {
            float: self._pformat_float,
            int: self._pformat_float,
            LeftParen: self._pformat_symbol,
            RightParen: self._pformat_symbol,
            Comma: self._pformat_symbol,
            Operator: self._pformat_symbol,
            Unary: self._pformat_symbol,
            Number: self._pformat_number,
            Constant: self._pformat_constant,
            Function: self._pformat_function,
            InfixSequence: self._pformat_sequence,
            PostfixSequence: self._pformat_sequence,
        }

    def _pformat_float(self, value) -> str:
        value = float(value)
        if math.isnan(value) or math.isinf(value):
            return str(value)
        if self.precision is None:
            text = repr(value)
        else:
            text = format(value, f".{self.precision}g")
        if text.endswith(".0"):
            text = text[:-2]
        return text

    def _pformat_symbol(self, token) -> str:
        return token.symbol

    def _pformat_number(self, token: Number) -> str:
        return self._pformat_float(token.value)

    def _pformat_constant(self, token: Constant) -> str:
        if self.registry is None or not 0 <= token.index < len(self.registry.constants):
            return f"[constant {token.index}]"
        return self.registry.constant(token.index).name

    def _pformat_function(self, token: Function) -> str:
        if self.registry is None or not 0 <= token.index < len(self.registry.functions):
            return f"[function {token.index}]"
        return self.registry.function(token.index).name

    def _pformat_sequence(self, tokens) -> str:
        return " ".join(self.pformat(t) for t in tokens)
