"""
Variable Statements: LET, LOCAL, DIM
"""

from dataclasses import dataclass, field
from typing import Optional

from edubasic.expressions import Expression, assign
from edubasic.statements.base import ExecutionResult, Outcome, Statement, evaluate_int
from edubasic.values import BasicArray, copy_value, split_name, type_for_name


@dataclass
class LetStatement(Statement):
    """LET target = value, where target is a variable, element or member."""
    target: Expression
    value: Expression

    def execute(self, context, runtime) -> Outcome:
        assign(self.target, context, copy_value(self.value.evaluate(context)))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"LET {self.target} = {self.value}"


@dataclass
class LocalStatement(Statement):
    """LOCAL name = value: declare a variable in the current SUB."""
    name: str
    value: Expression

    def execute(self, context, runtime) -> Outcome:
        context.declare_local(self.name, copy_value(self.value.evaluate(context)))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"LOCAL {self.name} = {self.value}"


@dataclass
class Dimension:
    """One DIM dimension: "size" (1 TO size) or "lower TO upper"."""
    upper: Expression
    lower: Optional[Expression] = None

    def __str__(self) -> str:
        if self.lower is None:
            return str(self.upper)
        return f"{self.lower} TO {self.upper}"


@dataclass
class DimStatement(Statement):
    """
    DIM name[d1, d2, ...]

    The array is stored under the name with its rank suffix, so
    DIM grid#[3, 4] creates grid#[,].
    """
    name: str
    dimensions: list[Dimension] = field(default_factory=list)

    @property
    def storage_name(self) -> str:
        base, sigil, _ = split_name(self.name)
        return f"{base}{sigil}[{',' * (len(self.dimensions) - 1)}]"

    def execute(self, context, runtime) -> Outcome:
        bounds = []
        for dimension in self.dimensions:
            upper = evaluate_int(dimension.upper, context, "DIM")
            lower = 1 if dimension.lower is None else evaluate_int(dimension.lower, context, "DIM")
            bounds.append((lower, upper))
        array = BasicArray.dimensioned(type_for_name(self.name), bounds)
        context.set_variable(self.storage_name, array)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        base, sigil, _ = split_name(self.name)
        return f"DIM {base}{sigil}[" + ", ".join(str(d) for d in self.dimensions) + "]"
