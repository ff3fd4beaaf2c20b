"""
Graphics Statement Parsers
==========================

Shapes share the trailing style clause [WITH color] [FILLED]. LINE also
introduces LINE INPUT, which is a file statement.
"""

from typing import Optional

from edubasic.expressions import Expression
from edubasic.parsers.context import ParseFailure, ParserContext, statement_parser
from edubasic.parsers.file_io import parse_line_input_tail
from edubasic.statements.graphics import (
    ArcStatement,
    CircleStatement,
    GetStatement,
    LineStatement,
    OvalStatement,
    PaintStatement,
    PsetStatement,
    PutStatement,
    RectangleStatement,
    TriangleStatement,
    TurtleStatement,
)


def _with_color(context: ParserContext) -> Optional[Expression]:
    return context.expression() if context.match_keyword("WITH") else None


def _style(context: ParserContext) -> tuple[Optional[Expression], bool]:
    color = _with_color(context)
    return color, context.match_keyword("FILLED")


@statement_parser
def parse_pset(context: ParserContext) -> PsetStatement:
    context.expect_keyword("PSET")
    point = context.point()
    return PsetStatement(point, _with_color(context))


@statement_parser
def parse_line(context: ParserContext):
    """LINE FROM (x1, y1) TO (x2, y2) [WITH color], or LINE INPUT."""
    context.expect_keyword("LINE")
    if context.match_keyword("INPUT"):
        return parse_line_input_tail(context)
    if not context.match_keyword("FROM"):
        raise ParseFailure("Expected INPUT or FROM after LINE")
    start = context.point()
    context.expect_keyword("TO")
    end = context.point()
    return LineStatement(start, end, _with_color(context))


@statement_parser
def parse_rectangle(context: ParserContext) -> RectangleStatement:
    context.expect_keyword("RECTANGLE")
    context.expect_keyword("FROM")
    start = context.point()
    context.expect_keyword("TO")
    end = context.point()
    return RectangleStatement(start, end, *_style(context))


@statement_parser
def parse_oval(context: ParserContext) -> OvalStatement:
    context.expect_keyword("OVAL")
    context.expect_keyword("AT")
    center = context.point()
    context.expect_keyword("RADII")
    radii = context.point()
    return OvalStatement(center, radii, *_style(context))


@statement_parser
def parse_circle(context: ParserContext) -> CircleStatement:
    context.expect_keyword("CIRCLE")
    context.expect_keyword("AT")
    center = context.point()
    context.expect_keyword("RADIUS")
    radius = context.expression()
    return CircleStatement(center, radius, *_style(context))


@statement_parser
def parse_triangle(context: ParserContext) -> TriangleStatement:
    context.expect_keyword("TRIANGLE")
    points = (context.point(), context.point(), context.point())
    return TriangleStatement(points, *_style(context))


@statement_parser
def parse_arc(context: ParserContext) -> ArcStatement:
    context.expect_keyword("ARC")
    context.expect_keyword("AT")
    center = context.point()
    context.expect_keyword("RADIUS")
    radius = context.expression()
    context.expect_keyword("FROM")
    start = context.expression()
    context.expect_keyword("TO")
    end = context.expression()
    return ArcStatement(center, radius, start, end, _with_color(context))


@statement_parser
def parse_paint(context: ParserContext) -> PaintStatement:
    context.expect_keyword("PAINT")
    point = context.point()
    context.expect_keyword("WITH")
    return PaintStatement(point, context.expression())


@statement_parser
def parse_get(context: ParserContext) -> GetStatement:
    context.expect_keyword("GET")
    variable = context.expect_identifier("array variable")
    context.expect_keyword("FROM")
    start = context.point()
    context.expect_keyword("TO")
    return GetStatement(variable, start, context.point())


@statement_parser
def parse_put(context: ParserContext) -> PutStatement:
    context.expect_keyword("PUT")
    variable = context.expect_identifier("array variable")
    context.expect_keyword("AT")
    return PutStatement(variable, context.point())


@statement_parser
def parse_turtle(context: ParserContext) -> TurtleStatement:
    context.expect_keyword("TURTLE")
    return TurtleStatement(context.expression())
