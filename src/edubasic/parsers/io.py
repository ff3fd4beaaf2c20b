"""
Console Statement Parsers: PRINT, INPUT, CLS, COLOR, LOCATE
"""

from edubasic.lexer import TokenType
from edubasic.parsers.context import ParseFailure, ParserContext, statement_parser
from edubasic.parsers.variables import NO_TERMINATORS
from edubasic.statements.io import ClsStatement, ColorStatement, InputStatement, LocateStatement, PrintStatement


@statement_parser
def parse_print(context: ParserContext) -> PrintStatement:
    context.expect_keyword("PRINT")
    items, separators = [], []
    while not context.is_at_end():
        items.append(context.expression(NO_TERMINATORS))
        separator = context.match(TokenType.COMMA, TokenType.SEMICOLON)
        if separator is None:
            break
        separators.append(separator.value)
    return PrintStatement(items, separators)


@statement_parser
def parse_input(context: ParserContext) -> InputStatement:
    context.expect_keyword("INPUT")
    return InputStatement(context.expect_identifier("variable name"))


@statement_parser
def parse_cls(context: ParserContext) -> ClsStatement:
    context.expect_keyword("CLS")
    return ClsStatement()


@statement_parser
def parse_color(context: ParserContext) -> ColorStatement:
    context.expect_keyword("COLOR")
    if context.check(TokenType.COMMA):
        raise ParseFailure("COLOR requires at least a foreground color")
    foreground = context.expression()
    background = context.expression() if context.match(TokenType.COMMA) else None
    return ColorStatement(foreground, background)


@statement_parser
def parse_locate(context: ParserContext) -> LocateStatement:
    context.expect_keyword("LOCATE")
    row = context.expression()
    context.expect(TokenType.COMMA, ",")
    return LocateStatement(row, context.expression())
