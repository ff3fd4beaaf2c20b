"""
Statement Base Classes
======================

Every parsed line becomes one Statement. Statements are dataclasses whose
fields are the parsed parts of the line (expressions, names, flags); the
analyzer sets line_number and the line parser sets indent_level.

Execution Protocol
------------------
execute(context, runtime) runs the statement once and returns what the
engine should do next:

- ExecutionResult.CONTINUE: advance to the following line
- Jump(line): continue at another line
- ExecutionResult.END: stop the program

Statements raise BasicRuntimeError for any failure; the engine attaches
the line and statement text and routes the error to an enclosing TRY.

Display Protocol
----------------
str(statement) is the canonical source text. indent_adjustment is +1
for block openers and -1 for closers; clauses (ELSE, CASE, CATCH, ...)
set is_clause and print one level out from their block body.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional, Union

from edubasic.errors import BasicRuntimeError, FatalRuntimeError
from edubasic.values import is_truthy, to_int, to_number, to_string


class ExecutionResult(Enum):
    CONTINUE = auto()
    END = auto()


@dataclass(frozen=True)
class Jump:
    """
    Transfer control to a program line.

    Attributes:
        line: Target line index
        unwind: Pop control frames whose block does not contain the
            target (GOTO, EXIT and RETURN leave blocks this way)
    """
    line: int
    unwind: bool = False


Outcome = Union[ExecutionResult, Jump]


class Statement:
    """
    Base class for all statements.

    Subclasses are dataclasses; the attributes below are shared
    bookkeeping that is not part of a statement's identity.
    """
    line_number: int = -1
    indent_level: int = 0

    indent_adjustment = 0
    is_clause = False

    @property
    def label_name(self) -> Optional[str]:
        """Name defined by a LABEL statement, None for everything else."""
        return None

    def execute(self, context, runtime) -> Outcome:
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        raise NotImplementedError(type(self).__name__)


@dataclass
class UnparsableStatement(Statement):
    """
    Placeholder for comments, blank lines and lines that failed to parse.

    Attributes:
        source: The original line text
        message: Parse error message (empty for comments and blanks)
        is_error: True when the line failed to tokenize or parse
    """
    source: str
    message: str = ""
    is_error: bool = False

    def execute(self, context, runtime) -> Outcome:
        if self.is_error:
            raise FatalRuntimeError(f"Cannot execute unparsable line: {self.message}")
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return self.source.strip()


# =============================================================================
# Evaluation Helpers
# =============================================================================

def evaluate_int(expression, context, operation: str) -> int:
    return to_int(expression.evaluate(context), operation)


def evaluate_number(expression, context, operation: str):
    return to_number(expression.evaluate(context), operation)


def evaluate_string(expression, context, operation: str) -> str:
    return to_string(expression.evaluate(context), operation)


def evaluate_condition(expression, context) -> bool:
    return is_truthy(expression.evaluate(context))


def optional_text(prefix: str, expression: Optional[Any]) -> str:
    """Render ' PREFIX expr' when expression is present."""
    if expression is None:
        return ""
    return f" {prefix} {expression}"


__all__ = [
    "ExecutionResult",
    "Jump",
    "Outcome",
    "Statement",
    "UnparsableStatement",
    "evaluate_condition",
    "evaluate_int",
    "evaluate_number",
    "evaluate_string",
    "optional_text",
]
