"""
Array Statements: PUSH, POP, SHIFT, UNSHIFT

All four work on one-dimensional arrays in place. PUSH and UNSHIFT
create the array if the name has never been assigned.
"""

from dataclasses import dataclass

from edubasic.errors import BasicRuntimeError
from edubasic.expressions import Expression
from edubasic.statements.base import ExecutionResult, Outcome, Statement
from edubasic.values import BasicArray


def _array(context, name: str, operation: str, create: bool = False) -> BasicArray:
    value = context.ensure_variable(name) if create else context.get_variable(name)
    if not isinstance(value, BasicArray):
        raise BasicRuntimeError(f"{operation}: {name} is not an array")
    return value


@dataclass
class PushStatement(Statement):
    """PUSH array[], value: append to the end."""
    array: str
    value: Expression

    def execute(self, context, runtime) -> Outcome:
        value = self.value.evaluate(context)
        _array(context, self.array, "PUSH", create=True).push(value)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"PUSH {self.array}, {self.value}"


@dataclass
class UnshiftStatement(Statement):
    """UNSHIFT array[], value: insert at the front."""
    array: str
    value: Expression

    def execute(self, context, runtime) -> Outcome:
        value = self.value.evaluate(context)
        _array(context, self.array, "UNSHIFT", create=True).unshift(value)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"UNSHIFT {self.array}, {self.value}"


@dataclass
class PopStatement(Statement):
    """POP array[] INTO variable: remove the last element."""
    array: str
    target: str

    keyword = "POP"

    def _remove(self, array: BasicArray):
        return array.pop()

    def execute(self, context, runtime) -> Outcome:
        array = _array(context, self.array, self.keyword)
        if not array.data:
            raise BasicRuntimeError(f"{self.keyword}: {self.array} is empty")
        context.set_variable(self.target, self._remove(array))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"{self.keyword} {self.array} INTO {self.target}"


@dataclass
class ShiftStatement(PopStatement):
    """SHIFT array[] INTO variable: remove the first element."""

    keyword = "SHIFT"

    def _remove(self, array: BasicArray):
        return array.shift()
