"""
Runs expressions and turns engine errors into readable reports.
"""

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from arith.arith_errors import ArithError, ParseError, EvaluationError
from arith.arith_interpreter import Evaluator
from arith.arith_printer import Printer

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """The structured result of evaluating one expression."""
    status: Literal['success', 'error']
    value: Optional[float] = None
    error_message: Optional[str] = None
    error: Optional[ArithError] = None
    source: str = ""

    def format_error(self) -> str:
        """Formats the error with its category and, if known, a caret under the column."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        match self.error:
            case ParseError():
                label = "ParseError"
            case EvaluationError():
                label = "EvaluationError"
            case _:
                label = "Error"
        msg = f"{label}: {msg}"
        position = getattr(self.error, 'position', None)
        if position is not None and self.source:
            msg = f"{msg}\n{_source_context(self.source, position)}"
        return msg


def _source_context(source: str, position: int) -> str:
    position = max(0, min(position, len(source)))
    start = source.rfind("\n", 0, position) + 1
    end = source.find("\n", position)
    if end == -1:
        end = len(source)
    line = source[start:end]
    return f"  | {line}\n  | {' ' * (position - start)}^"


class ExpressionRunner:
    """Evaluates expressions, reporting failures as results instead of raising."""

    def __init__(self, evaluator: Evaluator, precision: Optional[int] = 12):
        self.evaluator = evaluator
        self.printer = Printer(evaluator.registry, precision=precision)

    def handle_expression(self, source: str) -> ExecutionResult:
        try:
            value = self.evaluator.evaluate(source)
        except ArithError as e:
            logger.debug("evaluation of %r failed: %r", source, e)
            return ExecutionResult(status='error', error_message=e.message, error=e, source=source)
        return ExecutionResult(status='success', value=value, source=source)

    def format_value(self, value: float) -> str:
        return self.printer.pformat(value)

    def format_postfix(self, source: str) -> str:
        """The postfix rendering of `source`; raises ParseError on bad input."""
        return self.printer.pformat(self.evaluator.parse(source))
