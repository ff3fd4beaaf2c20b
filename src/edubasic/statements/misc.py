"""
Miscellaneous Statements
========================

SLEEP, RANDOMIZE, SET, HELP, CONSOLE, and the DATA/RESTORE pair that
feeds READ without a file handle.
"""

from dataclasses import dataclass, field
from typing import Any, Optional
import logging

from edubasic.errors import BasicRuntimeError
from edubasic.expressions import Expression
from edubasic.statements.base import ExecutionResult, Outcome, Statement
from edubasic.values import format_value, is_numeric

logger = logging.getLogger(__name__)


@dataclass
class SleepStatement(Statement):
    """
    SLEEP milliseconds

    Advisory: the request is recorded on the context and the engine
    reports a SLEEPING step; the caller decides whether to wait.
    """
    milliseconds: Expression

    def execute(self, context, runtime) -> Outcome:
        value = self.milliseconds.evaluate(context)
        if not isinstance(value, (int, float)):
            raise BasicRuntimeError("SLEEP: milliseconds must be a number")
        context.sleep_request = max(0, int(value))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"SLEEP {self.milliseconds}"


@dataclass
class RandomizeStatement(Statement):
    """RANDOMIZE [seed]: reseed the generator (from the clock without a seed)."""
    seed: Optional[Expression] = None

    def execute(self, context, runtime) -> Outcome:
        if self.seed is None:
            context.randomize()
            return ExecutionResult.CONTINUE
        value = self.seed.evaluate(context)
        if not is_numeric(value) or isinstance(value, complex):
            raise BasicRuntimeError("RANDOMIZE: seed must be a number")
        context.randomize(value)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"RANDOMIZE {self.seed}" if self.seed is not None else "RANDOMIZE"


# Option name -> canonical words after SET
SET_OPTIONS = {
    "LINE SPACING": ("LINE", "SPACING"),
    "TEXT WRAP": ("TEXT", "WRAP"),
    "AUDIO": ("AUDIO",),
}


@dataclass
class SetStatement(Statement):
    """
    SET LINE SPACING ON|OFF, SET TEXT WRAP ON|OFF, SET AUDIO ON|OFF

    Display options are kept in context.settings for the console to
    consult. SET AUDIO OFF mutes the audio device.
    """
    option: str
    enabled: bool

    def execute(self, context, runtime) -> Outcome:
        context.settings[self.option] = self.enabled
        if self.option == "AUDIO":
            runtime.require("audio").mute(not self.enabled)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"SET {self.option} {'ON' if self.enabled else 'OFF'}"


# =============================================================================
# HELP / CONSOLE
# =============================================================================

HELP_FORMS: dict[str, tuple[str, ...]] = {
    "PRINT": ("PRINT expression1, expression2, ...", "PRINT expression1; expression2;", "PRINT"),
    "INPUT": ("INPUT variable",),
    "COLOR": ("COLOR foreground", "COLOR foreground, background"),
    "LOCATE": ("LOCATE row%, column%",),
    "CLS": ("CLS",),
    "LET": ("LET variable = expression", "LET array[index] = expression", "LET struct.member = expression"),
    "DIM": ("DIM array[size]", "DIM array[rows, columns]", "DIM array[lower TO upper]"),
    "LOCAL": ("LOCAL variable = expression",),
    "IF": (
        "IF condition THEN ... END IF",
        "IF condition THEN ... ELSE ... END IF",
        "IF condition THEN ... ELSEIF condition THEN ... END IF",
    ),
    "UNLESS": ("UNLESS condition THEN ... END UNLESS", "UNLESS condition THEN ... ELSE ... END UNLESS"),
    "FOR": ("FOR var% = start TO end", "FOR var% = start TO end STEP step"),
    "NEXT": ("NEXT", "NEXT var%"),
    "WHILE": ("WHILE condition ... WEND",),
    "WEND": ("WEND",),
    "DO": ("DO ... LOOP", "DO WHILE condition ... LOOP", "DO UNTIL condition ... LOOP"),
    "LOOP": ("LOOP", "LOOP WHILE condition", "LOOP UNTIL condition"),
    "UNTIL": ("UNTIL condition ... UEND",),
    "GOTO": ("GOTO label",),
    "GOSUB": ("GOSUB label",),
    "RETURN": ("RETURN",),
    "LABEL": ("LABEL name",),
    "END": ("END", "END IF", "END UNLESS", "END SELECT", "END SUB", "END TRY"),
    "EXIT": ("EXIT FOR", "EXIT FOR var%", "EXIT WHILE", "EXIT DO", "EXIT SUB"),
    "CONTINUE": ("CONTINUE FOR", "CONTINUE WHILE", "CONTINUE DO"),
    "SELECT": ("SELECT CASE expression ... END SELECT",),
    "CASE": ("CASE value", "CASE value1 TO value2", "CASE IS >= value", "CASE ELSE"),
    "TRY": ("TRY ... CATCH ... FINALLY ... END TRY",),
    "CATCH": ("CATCH", "CATCH errorVar$"),
    "FINALLY": ("FINALLY",),
    "THROW": ("THROW message$",),
    "SUB": ("SUB name param1, BYREF param2 ... END SUB",),
    "CALL": ("CALL name arg1, arg2",),
    "OPEN": ("OPEN filename$ FOR READ|APPEND|OVERWRITE AS handle%",),
    "CLOSE": ("CLOSE handle%",),
    "READ": ("READ variable FROM handle%", "READ variable"),
    "WRITE": ("WRITE expression TO handle%",),
    "SEEK": ("SEEK position% IN handle%",),
    "READFILE": ("READFILE content$ FROM filename$",),
    "WRITEFILE": ("WRITEFILE content$ TO filename$",),
    "LISTDIR": ("LISTDIR names$[] FROM path$",),
    "MKDIR": ("MKDIR path$",),
    "RMDIR": ("RMDIR path$",),
    "COPY": ("COPY source$ TO destination$",),
    "MOVE": ("MOVE source$ TO destination$",),
    "DELETE": ("DELETE filename$",),
    "PUSH": ("PUSH array[], value",),
    "POP": ("POP array[] INTO variable",),
    "SHIFT": ("SHIFT array[] INTO variable",),
    "UNSHIFT": ("UNSHIFT array[], value",),
    "PSET": ("PSET (x, y)", "PSET (x, y) WITH color"),
    "LINE": ("LINE FROM (x1, y1) TO (x2, y2) [WITH color]", "LINE INPUT variable$ FROM handle%"),
    "RECTANGLE": ("RECTANGLE FROM (x1, y1) TO (x2, y2) [WITH color] [FILLED]",),
    "OVAL": ("OVAL AT (x, y) RADII (rx, ry) [WITH color] [FILLED]",),
    "CIRCLE": ("CIRCLE AT (x, y) RADIUS r [WITH color] [FILLED]",),
    "TRIANGLE": ("TRIANGLE (x1, y1) (x2, y2) (x3, y3) [WITH color] [FILLED]",),
    "ARC": ("ARC AT (x, y) RADIUS r FROM start TO end [WITH color]",),
    "PAINT": ("PAINT (x, y) WITH color",),
    "GET": ("GET array[] FROM (x1, y1) TO (x2, y2)",),
    "PUT": ("PUT array[] AT (x, y)",),
    "TURTLE": ("TURTLE commands$",),
    "TEMPO": ("TEMPO bpm",),
    "VOLUME": ("VOLUME level",),
    "VOICE": ("VOICE voice% INSTRUMENT instrument",),
    "PLAY": ("PLAY voice%, mml$",),
    "SLEEP": ("SLEEP milliseconds",),
    "RANDOMIZE": ("RANDOMIZE", "RANDOMIZE seed"),
    "SET": ("SET LINE SPACING ON|OFF", "SET TEXT WRAP ON|OFF", "SET AUDIO ON|OFF"),
    "HELP": ("HELP keyword",),
    "CONSOLE": ("CONSOLE expression",),
    "DATA": ("DATA value1, value2, ...",),
    "RESTORE": ("RESTORE", "RESTORE label"),
}


def help_forms(keyword: str) -> tuple[str, ...]:
    """Usage lines for a statement keyword (empty when unknown)."""
    return HELP_FORMS.get(keyword.upper(), ())


@dataclass
class HelpStatement(Statement):
    keyword: str

    def execute(self, context, runtime) -> Outcome:
        console = runtime.devices.console
        if console is None:
            return ExecutionResult.CONTINUE
        runtime.request_switch("help")
        forms = help_forms(self.keyword)
        if not forms:
            console.print_output(f"No help available for statement: {self.keyword.upper()}\n")
        for form in forms:
            console.print_output(form + "\n")
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"HELP {self.keyword.upper()}"


@dataclass
class ConsoleStatement(Statement):
    """CONSOLE expr: write a value to the console and bring it forward."""
    expression: Expression

    def execute(self, context, runtime) -> Outcome:
        console = runtime.devices.console
        if console is None:
            return ExecutionResult.CONTINUE
        runtime.request_switch("console")
        console.print_output(format_value(self.expression.evaluate(context)) + "\n")
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"CONSOLE {self.expression}"


# =============================================================================
# DATA / RESTORE
# =============================================================================

@dataclass
class DataStatement(Statement):
    """
    DATA value, ...

    Does nothing when executed. READ without FROM takes items from the
    DATA statements in program order.
    """
    items: list[Expression] = field(default_factory=list)

    def __str__(self) -> str:
        return "DATA " + ", ".join(str(item) for item in self.items)


def data_items(program) -> list[tuple[int, Expression]]:
    """Every DATA item of program as (line, expression), in order."""
    items = []
    for line, statement in enumerate(program.statements):
        if isinstance(statement, DataStatement):
            items.extend((line, item) for item in statement.items)
    return items


def next_data_value(context, runtime) -> Any:
    items = data_items(runtime.program)
    if context.data_pointer >= len(items):
        raise BasicRuntimeError("READ: out of DATA")
    _, expression = items[context.data_pointer]
    context.data_pointer += 1
    return expression.evaluate(context)


@dataclass
class RestoreStatement(Statement):
    """RESTORE [label]: rewind the DATA pointer (to the first item after label)."""
    label: Optional[str] = None

    def execute(self, context, runtime) -> Outcome:
        if self.label is None:
            context.data_pointer = 0
            return ExecutionResult.CONTINUE
        start = runtime.program.label_index(self.label)
        if start is None:
            raise BasicRuntimeError(f"Label '{self.label}' not found")
        items = data_items(runtime.program)
        context.data_pointer = next(
            (index for index, (line, _) in enumerate(items) if line >= start),
            len(items),
        )
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"RESTORE {self.label}" if self.label else "RESTORE"
