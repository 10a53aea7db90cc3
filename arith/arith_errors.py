"""
Exception types raised by the arith engine.

Every failure carries a closed `ErrorKind`, the source column when one is
known, and the offending symbol or name. Turning these into user-facing
text (category labels, carets) is left to `arith_runtime`.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    # Structural / lexical
    UNEXPECTED_CHARACTER = "unexpected-character"
    MISSING_LEFT_PAREN = "missing-left-paren"
    UNEXPECTED_END = "unexpected-end"
    MISPLACED_COMMA = "misplaced-comma"
    TOO_MANY_ARGUMENTS = "too-many-arguments"
    UNMATCHED_RIGHT_PAREN = "unmatched-right-paren"
    ARGUMENT_COUNT_MISMATCH = "argument-count-mismatch"
    UNCLOSED_LEFT_PAREN = "unclosed-left-paren"
    # Evaluation
    VALIDATOR_REJECTED = "validator-rejected"
    MALFORMED_POSTFIX = "malformed-postfix"
    ARITHMETIC_FAULT = "arithmetic-fault"


class ArithError(Exception):
    def __init__(self, kind: ErrorKind, message: str,
                 position: Optional[int] = None, symbol: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.position = position
        self.symbol = symbol

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.value}, {self.message!r}, position={self.position!r})"


class ParseError(ArithError):
    """Raised while tokenizing or converting to postfix."""
    pass


class EvaluationError(ArithError):
    """Raised while reducing a postfix sequence."""
    pass
