"""
Graphics Statements
===================

Drawing statements act on the attached Graphics device. Coordinates are
pixel positions with (0, 0) at the top left; real values are rounded.
The optional WITH clause takes a packed 0xRRGGBBAA integer or a color
name and overrides the foreground color for that one shape.

The first graphics statement of a run asks the UI to switch to the
graphics view (see RuntimeEngine.require).
"""

from dataclasses import dataclass
from typing import Optional

from edubasic.devices.graphics import resolve_color
from edubasic.errors import BasicRuntimeError
from edubasic.expressions import Expression
from edubasic.statements.base import ExecutionResult, Outcome, Statement, evaluate_number, evaluate_string, optional_text
from edubasic.values import BasicArray, ValueType, split_name

Point = tuple[Expression, Expression]


def _coordinate(expression: Expression, context, operation: str) -> int:
    return int(round(evaluate_number(expression, context, operation)))


def _point(point: Point, context, operation: str) -> tuple[int, int]:
    x, y = point
    return _coordinate(x, context, operation), _coordinate(y, context, operation)


def _color(expression: Optional[Expression], context):
    if expression is None:
        return None
    return resolve_color(expression.evaluate(context))


def _point_text(point: Point) -> str:
    return f"({point[0]}, {point[1]})"


def _style_text(color: Optional[Expression], filled: bool = False) -> str:
    text = optional_text("WITH", color)
    if filled:
        text += " FILLED"
    return text


def block_variable(name: str) -> str:
    """Storage name of a GET/PUT pixel block: always two-dimensional."""
    base, sigil, _ = split_name(name)
    return f"{base}{sigil}[,]"


@dataclass
class PsetStatement(Statement):
    """PSET (x, y) [WITH color]"""
    point: Point
    color: Optional[Expression] = None

    def execute(self, context, runtime) -> Outcome:
        x, y = _point(self.point, context, "PSET")
        runtime.require("graphics").draw_pixel(x, y, _color(self.color, context))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"PSET {_point_text(self.point)}{_style_text(self.color)}"


@dataclass
class LineStatement(Statement):
    """LINE FROM (x1, y1) TO (x2, y2) [WITH color]"""
    start: Point
    end: Point
    color: Optional[Expression] = None

    def execute(self, context, runtime) -> Outcome:
        x1, y1 = _point(self.start, context, "LINE")
        x2, y2 = _point(self.end, context, "LINE")
        runtime.require("graphics").draw_line(x1, y1, x2, y2, _color(self.color, context))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"LINE FROM {_point_text(self.start)} TO {_point_text(self.end)}{_style_text(self.color)}"


@dataclass
class RectangleStatement(Statement):
    """RECTANGLE FROM (x1, y1) TO (x2, y2) [WITH color] [FILLED]"""
    start: Point
    end: Point
    color: Optional[Expression] = None
    filled: bool = False

    def execute(self, context, runtime) -> Outcome:
        x1, y1 = _point(self.start, context, "RECTANGLE")
        x2, y2 = _point(self.end, context, "RECTANGLE")
        runtime.require("graphics").draw_rectangle(
            x1, y1, x2, y2, _color(self.color, context), self.filled
        )
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return (
            f"RECTANGLE FROM {_point_text(self.start)} TO {_point_text(self.end)}"
            f"{_style_text(self.color, self.filled)}"
        )


@dataclass
class OvalStatement(Statement):
    """OVAL AT (x, y) RADII (rx, ry) [WITH color] [FILLED]"""
    center: Point
    radii: Point
    color: Optional[Expression] = None
    filled: bool = False

    def execute(self, context, runtime) -> Outcome:
        cx, cy = _point(self.center, context, "OVAL")
        rx, ry = _point(self.radii, context, "OVAL")
        runtime.require("graphics").draw_oval(cx, cy, rx, ry, _color(self.color, context), self.filled)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return (
            f"OVAL AT {_point_text(self.center)} RADII {_point_text(self.radii)}"
            f"{_style_text(self.color, self.filled)}"
        )


@dataclass
class CircleStatement(Statement):
    """CIRCLE AT (x, y) RADIUS r [WITH color] [FILLED]"""
    center: Point
    radius: Expression
    color: Optional[Expression] = None
    filled: bool = False

    def execute(self, context, runtime) -> Outcome:
        cx, cy = _point(self.center, context, "CIRCLE")
        radius = _coordinate(self.radius, context, "CIRCLE")
        runtime.require("graphics").draw_circle(cx, cy, radius, _color(self.color, context), self.filled)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return (
            f"CIRCLE AT {_point_text(self.center)} RADIUS {self.radius}"
            f"{_style_text(self.color, self.filled)}"
        )


@dataclass
class TriangleStatement(Statement):
    """TRIANGLE (x1, y1) (x2, y2) (x3, y3) [WITH color] [FILLED]"""
    points: tuple[Point, Point, Point]
    color: Optional[Expression] = None
    filled: bool = False

    def execute(self, context, runtime) -> Outcome:
        corners = [_point(p, context, "TRIANGLE") for p in self.points]
        runtime.require("graphics").draw_triangle(corners, _color(self.color, context), self.filled)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        corners = " ".join(_point_text(p) for p in self.points)
        return f"TRIANGLE {corners}{_style_text(self.color, self.filled)}"


@dataclass
class ArcStatement(Statement):
    """ARC AT (x, y) RADIUS r FROM start TO end [WITH color]; angles in degrees."""
    center: Point
    radius: Expression
    start_angle: Expression
    end_angle: Expression
    color: Optional[Expression] = None

    def execute(self, context, runtime) -> Outcome:
        cx, cy = _point(self.center, context, "ARC")
        radius = _coordinate(self.radius, context, "ARC")
        start = evaluate_number(self.start_angle, context, "ARC")
        end = evaluate_number(self.end_angle, context, "ARC")
        runtime.require("graphics").draw_arc(cx, cy, radius, start, end, _color(self.color, context))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return (
            f"ARC AT {_point_text(self.center)} RADIUS {self.radius} "
            f"FROM {self.start_angle} TO {self.end_angle}{_style_text(self.color)}"
        )


@dataclass
class PaintStatement(Statement):
    """PAINT (x, y) WITH color: flood fill."""
    point: Point
    color: Expression

    def execute(self, context, runtime) -> Outcome:
        x, y = _point(self.point, context, "PAINT")
        runtime.require("graphics").paint(x, y, _color(self.color, context))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"PAINT {_point_text(self.point)} WITH {self.color}"


@dataclass
class GetStatement(Statement):
    """
    GET name FROM (x1, y1) TO (x2, y2)

    Copies the pixels into a two-dimensional Integer array of packed
    colors, indexed [row, column] from 1.
    """
    variable: str
    start: Point
    end: Point

    def execute(self, context, runtime) -> Outcome:
        x1, y1 = _point(self.start, context, "GET")
        x2, y2 = _point(self.end, context, "GET")
        rows = runtime.require("graphics").get_block(x1, y1, x2, y2)
        width = len(rows[0]) if rows else 0
        block = BasicArray(
            ValueType.INTEGER,
            [(1, len(rows)), (1, width)],
            [color for row in rows for color in row],
        )
        context.set_variable(block_variable(self.variable), block)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"GET {self.variable} FROM {_point_text(self.start)} TO {_point_text(self.end)}"


@dataclass
class PutStatement(Statement):
    """PUT name AT (x, y): draw a block captured by GET."""
    variable: str
    point: Point

    def execute(self, context, runtime) -> Outcome:
        block = context.get_variable(block_variable(self.variable))
        if not isinstance(block, BasicArray) or block.rank != 2:
            raise BasicRuntimeError(f"PUT: {self.variable} is not a pixel block")
        x, y = _point(self.point, context, "PUT")
        (_, _), (col_lo, col_hi) = block.bounds
        width = col_hi - col_lo + 1
        rows = [block.data[i:i + width] for i in range(0, len(block.data), width)] if width else []
        runtime.require("graphics").put_block(x, y, rows)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"PUT {self.variable} AT {_point_text(self.point)}"


@dataclass
class TurtleStatement(Statement):
    """TURTLE commands$, e.g. TURTLE "PD FD 50 RT 90 FD 50"."""
    commands: Expression

    def execute(self, context, runtime) -> Outcome:
        commands = evaluate_string(self.commands, context, "TURTLE")
        runtime.require("graphics").turtle.run(commands)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"TURTLE {self.commands}"
