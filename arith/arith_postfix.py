"""
Infix to postfix conversion (shunting-yard) with argument counting.

Besides the usual operator stack this keeps an arity stack with one entry
per open parenthesis: the number of arguments still expected in that
group. A plain group expects 1; a call group expects the function's
arity. Each comma uses one argument up, and the closing parenthesis
requires exactly one to be left (the final argument).
"""

import logging
from typing import List

from arith.arith_datatypes import (
    Token, InfixSequence, PostfixSequence, LeftParen, RightParen, Comma,
    Number, Constant, Function, Operator, Unary, Associativity
)
from arith.arith_errors import ErrorKind, ParseError
from arith.arith_registry import Registry

logger = logging.getLogger(__name__)


class PostfixConverter:
    def __init__(self, registry: Registry):
        self.registry = registry

    def convert(self, infix_tokens: InfixSequence) -> PostfixSequence:
        stack: List[Token] = []
        arity_stack: List[int] = []
        output = PostfixSequence()

        for token in infix_tokens:
            match token:
                case Number() | Constant():
                    output.append(token)
                    self._drain_unaries(stack, output)

                case Unary():
                    if self.registry.unary(token.symbol).is_prefix:
                        stack.append(token)
                    else:
                        output.append(token)

                case Function():
                    # Emitted when its closing parenthesis is reached.
                    stack.append(token)

                case Operator():
                    self._push_operator(token, stack, output)

                case Comma():
                    if not arity_stack:
                        raise ParseError(
                            ErrorKind.MISPLACED_COMMA,
                            f"comma at position {token.pos} is not inside a function call",
                            token.pos, ","
                        )
                    if arity_stack[-1] < 1:
                        raise ParseError(
                            ErrorKind.TOO_MANY_ARGUMENTS,
                            f"comma at position {token.pos}: too many arguments",
                            token.pos, ","
                        )
                    arity_stack[-1] -= 1
                    self._drain_operators(stack, output)

                case LeftParen():
                    if stack and isinstance(stack[-1], Function):
                        arity_stack.append(self.registry.function(stack[-1].index).arity)
                    else:
                        arity_stack.append(1)
                    stack.append(token)

                case RightParen():
                    self._close_group(token, stack, arity_stack, output)

        while stack:
            top = stack.pop()
            if isinstance(top, LeftParen):
                raise ParseError(
                    ErrorKind.UNCLOSED_LEFT_PAREN,
                    f"parenthesis opened at position {top.pos} is never closed",
                    top.pos, "("
                )
            output.append(top)

        logger.debug("postfix: %r", output)
        return output

    def _push_operator(self, token: Operator, stack: List[Token], output: PostfixSequence):
        info = self.registry.operator(token.symbol)
        while stack and isinstance(stack[-1], Operator):
            top = self.registry.operator(stack[-1].symbol)
            if top.precedence > info.precedence or (
                top.precedence == info.precedence and info.associativity is Associativity.LEFT
            ):
                output.append(stack.pop())
            else:
                break
        stack.append(token)

    def _close_group(self, token: RightParen, stack: List[Token],
                     arity_stack: List[int], output: PostfixSequence):
        if not arity_stack:
            raise ParseError(
                ErrorKind.UNMATCHED_RIGHT_PAREN,
                f"closing parenthesis at position {token.pos} has no matching '('",
                token.pos, ")"
            )
        # Each comma decremented the count, so exactly one argument remains.
        remaining = arity_stack.pop()
        if remaining != 1:
            opener = self._open_group_owner(stack)
            raise ParseError(
                ErrorKind.ARGUMENT_COUNT_MISMATCH,
                self._count_mismatch_message(token, opener, remaining),
                token.pos, self._owner_name(opener)
            )

        self._drain_operators(stack, output)

        if not stack or not isinstance(stack[-1], LeftParen):
            raise ParseError(
                ErrorKind.UNMATCHED_RIGHT_PAREN,
                f"mismatched parentheses: closing parenthesis at position {token.pos} has no matching '('",
                token.pos, ")"
            )
        stack.pop()

        if stack and isinstance(stack[-1], Function):
            output.append(stack.pop())

        self._drain_unaries(stack, output)

    @staticmethod
    def _drain_operators(stack: List[Token], output: PostfixSequence):
        while stack and isinstance(stack[-1], Operator):
            output.append(stack.pop())

    @staticmethod
    def _drain_unaries(stack: List[Token], output: PostfixSequence):
        # Only prefix unaries are ever stacked; their operand is now complete.
        while stack and isinstance(stack[-1], Unary):
            output.append(stack.pop())

    @staticmethod
    def _open_group_owner(stack: List[Token]):
        """Returns the Function owning the innermost open group, if any."""
        for i in range(len(stack) - 1, -1, -1):
            if isinstance(stack[i], LeftParen):
                if i > 0 and isinstance(stack[i - 1], Function):
                    return stack[i - 1]
                return None
        return None

    def _owner_name(self, owner):
        if owner is None:
            return None
        return self.registry.function(owner.index).name

    def _count_mismatch_message(self, token: RightParen, owner, remaining: int) -> str:
        if owner is None:
            return f"closing parenthesis at position {token.pos}: a group must hold exactly one expression"
        info = self.registry.function(owner.index)
        given = info.arity - remaining + 1
        return (f"function '{info.name}' takes {info.arity} argument{'s' if info.arity != 1 else ''} "
                f"but {given} {'were' if given != 1 else 'was'} given")
