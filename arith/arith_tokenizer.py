"""
Turns expression source text into an infix token sequence.

Recognition is position dependent. While an operand is expected the
tokenizer accepts function names, constant names, prefix unary operators
and numeric literals; otherwise it accepts `)`, `,`, binary operators and
postfix unary operators. `(` is accepted anywhere and a function name
must be followed immediately by one.
"""

import logging
import re
from typing import Optional, Tuple

from arith.arith_datatypes import (
    Token, InfixSequence, LeftParen, RightParen, Comma,
    Number, Constant, Function, Operator, Unary
)
from arith.arith_errors import ErrorKind, ParseError
from arith.arith_registry import Registry

logger = logging.getLogger(__name__)

# Same shape as C's "%lf": digits, optional fraction, optional exponent.
NUMBER_RE = re.compile(r"[0-9]+(?:\.[0-9]*)?(?:[eE][+-]?[0-9]+)?")


def _identifier_end(source: str, start: int) -> int:
    end = start + 1
    while end < len(source) and source[end].isalnum():
        end += 1
    return end


class Tokenizer:
    def __init__(self, registry: Registry):
        self.registry = registry

    def tokenize(self, source: str) -> InfixSequence:
        output = InfixSequence()
        expecting_identifier = True
        expecting_left_paren = False
        function_pos = None

        position = 0
        while position < len(source):
            ch = source[position]
            if ch.isspace():
                position += 1
                continue

            if ch == "(":
                token = LeftParen(position)
                position += 1
                expecting_left_paren = False
            else:
                if expecting_left_paren:
                    name = self.registry.function(output[-1].index).name
                    raise ParseError(
                        ErrorKind.MISSING_LEFT_PAREN,
                        f"expected '(' after function '{name}' at position {function_pos}, got {ch!r}",
                        position, ch
                    )
                read = self._read_token(source, position, expecting_identifier)
                if read is None:
                    raise self._unexpected(source, position, expecting_identifier)
                token, position = read

            output.append(token)

            match token:
                case Function():
                    expecting_left_paren = True
                    function_pos = token.pos
                    expecting_identifier = True
                case LeftParen() | Comma() | Operator():
                    expecting_identifier = True
                case Unary():
                    expecting_identifier = self.registry.unary(token.symbol).is_prefix
                case _:
                    expecting_identifier = False

        if expecting_identifier:
            if expecting_left_paren:
                name = self.registry.function(output[-1].index).name
                raise ParseError(
                    ErrorKind.UNEXPECTED_END,
                    f"expression ends after function '{name}'; expected '('",
                    len(source), name
                )
            raise ParseError(
                ErrorKind.UNEXPECTED_END,
                "expression ends where an operand was expected",
                len(source)
            )

        logger.debug("tokens for %r: %r", source, output)
        return output

    def _read_token(self, source: str, position: int,
                    expecting_identifier: bool) -> Optional[Tuple[Token, int]]:
        ch = source[position]
        registry = self.registry

        if expecting_identifier:
            if ch.isalpha():
                end = _identifier_end(source, position)
                identifier = source[position:end]
                # Functions first: they are names that must be followed by '('.
                index = registry.function_index(identifier)
                if index is not None:
                    return Function(index, position), end
                index = registry.constant_index(identifier)
                if index is not None:
                    return Constant(index, position), end

            info = registry.unary(ch)
            if info is not None and info.is_prefix:
                return Unary(ch, position), position + 1

            m = NUMBER_RE.match(source, position)
            if m:
                return Number(float(m.group(0)), position), m.end()
        else:
            if ch == ")":
                return RightParen(position), position + 1
            if ch == ",":
                return Comma(position), position + 1
            if registry.has_operator(ch):
                return Operator(ch, position), position + 1
            info = registry.unary(ch)
            if info is not None and not info.is_prefix:
                return Unary(ch, position), position + 1

        return None

    def _unexpected(self, source: str, position: int, expecting_identifier: bool) -> ParseError:
        ch = source[position]
        if ch.isalpha():
            text = source[position:_identifier_end(source, position)]
            if expecting_identifier:
                msg = f"unknown name '{text}' at position {position}"
            else:
                msg = f"unexpected name '{text}' at position {position}; expected an operator"
        else:
            text = ch
            wanted = "an operand" if expecting_identifier else "an operator"
            msg = f"unexpected {ch!r} at position {position}; expected {wanted}"
        return ParseError(ErrorKind.UNEXPECTED_CHARACTER, msg, position, text)
