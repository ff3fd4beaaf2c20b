"""
Console Statements: PRINT, INPUT, CLS, COLOR, LOCATE
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from edubasic.builtins import FUNCTIONS
from edubasic.devices.graphics import pack_color, resolve_color
from edubasic.errors import BasicRuntimeError
from edubasic.expressions import Expression
from edubasic.statements.base import ExecutionResult, Outcome, Statement, evaluate_int
from edubasic.values import ValueType, format_value, type_for_name


@dataclass
class PrintStatement(Statement):
    """
    PRINT [expr {(,|;) expr}] [;|,]

    A comma inserts a tab between values; a semicolon joins them. A
    trailing semicolon suppresses the newline.
    """
    items: list[Expression] = field(default_factory=list)
    separators: list[str] = field(default_factory=list)

    @property
    def newline(self) -> bool:
        return not (self.separators and len(self.separators) == len(self.items)
                    and self.separators[-1] == ";")

    def execute(self, context, runtime) -> Outcome:
        parts = []
        for i, item in enumerate(self.items):
            parts.append(format_value(item.evaluate(context)))
            if i < len(self.separators) and self.separators[i] == ",":
                parts.append("\t")
        if self.newline:
            parts.append("\n")
        runtime.require("console").print_output("".join(parts))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        text = "PRINT"
        if not self.items:
            return text
        parts = []
        for i, item in enumerate(self.items):
            parts.append(str(item))
            if i < len(self.separators):
                parts.append(self.separators[i])
                if i < len(self.items) - 1:
                    parts.append(" ")
        return text + " " + "".join(parts)


def convert_input(name: str, text: str) -> Any:
    """Convert an INPUT line to the type implied by the variable's sigil."""
    target = type_for_name(name)
    if target == ValueType.STRING:
        return text
    stripped = text.strip()
    try:
        if target == ValueType.INTEGER:
            return int(stripped)
        if target == ValueType.REAL:
            return float(stripped)
    except ValueError:
        raise BasicRuntimeError(f"INPUT: expected a {target.value}, got '{text}'") from None
    if target == ValueType.COMPLEX:
        return complex(FUNCTIONS["VAL"](None, stripped))
    return text


@dataclass
class InputStatement(Statement):
    """INPUT name: take the next queued input line."""
    variable: str

    def execute(self, context, runtime) -> Outcome:
        line = context.take_input_line()
        if line is None:
            raise BasicRuntimeError("INPUT: no input available")
        context.set_variable(self.variable, convert_input(self.variable, line))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"INPUT {self.variable}"


@dataclass
class ClsStatement(Statement):
    def execute(self, context, runtime) -> Outcome:
        devices = runtime.devices
        if devices.graphics is not None:
            devices.graphics.clear()
        if devices.console is not None:
            devices.console.clear()
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return "CLS"


@dataclass
class ColorStatement(Statement):
    """COLOR foreground [, background]"""
    foreground: Expression
    background: Optional[Expression] = None

    def execute(self, context, runtime) -> Outcome:
        devices = runtime.devices
        fg = resolve_color(self.foreground.evaluate(context))
        bg = resolve_color(self.background.evaluate(context)) if self.background else None
        if devices.graphics is not None:
            devices.graphics.set_foreground(fg)
            if bg is not None:
                devices.graphics.set_background(bg)
        if devices.console is not None:
            devices.console.set_color(pack_color(fg), pack_color(bg) if bg else None)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        if self.background is None:
            return f"COLOR {self.foreground}"
        return f"COLOR {self.foreground}, {self.background}"


@dataclass
class LocateStatement(Statement):
    """LOCATE row, column"""
    row: Expression
    column: Expression

    def execute(self, context, runtime) -> Outcome:
        row = evaluate_int(self.row, context, "LOCATE")
        column = evaluate_int(self.column, context, "LOCATE")
        runtime.require("console").locate(row, column)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"LOCATE {self.row}, {self.column}"
