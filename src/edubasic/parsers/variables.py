"""
Variable Statement Parsers: LET, LOCAL, DIM
"""

from edubasic.expressions import Expression, IndexAccess, MemberAccess, VariableRef
from edubasic.lexer import TokenType
from edubasic.parsers.context import ParserContext, statement_parser
from edubasic.statements.variables import Dimension, DimStatement, LetStatement, LocalStatement

NO_TERMINATORS = frozenset()


def parse_target(context: ParserContext) -> Expression:
    """
    Parse an assignment target: name followed by any mix of .member and
    [i] / [i, j] suffixes.
    """
    target: Expression = VariableRef(context.expect_identifier("variable name"))
    while True:
        if context.match(TokenType.DOT):
            target = MemberAccess(target, context.expect_identifier("member name"))
        elif context.match(TokenType.LBRACKET):
            indices = [context.expression()]
            while context.match(TokenType.COMMA):
                indices.append(context.expression())
            context.expect(TokenType.RBRACKET, "]")
            target = IndexAccess(target, indices)
        else:
            return target


@statement_parser
def parse_let(context: ParserContext) -> LetStatement:
    context.expect_keyword("LET")
    target = parse_target(context)
    context.expect(TokenType.EQUAL, "=")
    return LetStatement(target, context.expression(NO_TERMINATORS))


@statement_parser
def parse_local(context: ParserContext) -> LocalStatement:
    context.expect_keyword("LOCAL")
    name = context.expect_identifier("variable name")
    context.expect(TokenType.EQUAL, "=")
    return LocalStatement(name, context.expression(NO_TERMINATORS))


def _dimension(context: ParserContext) -> Dimension:
    first = context.expression()
    if context.match_keyword("TO"):
        return Dimension(upper=context.expression(), lower=first)
    return Dimension(upper=first)


@statement_parser
def parse_dim(context: ParserContext) -> DimStatement:
    """DIM name[dim, ...]; the name token may already carry a [] suffix."""
    context.expect_keyword("DIM")
    name = context.expect_identifier("array name")
    if "[" in name:
        name = name[:name.index("[")]
    context.expect(TokenType.LBRACKET, "[")
    dimensions = [_dimension(context)]
    while context.match(TokenType.COMMA):
        dimensions.append(_dimension(context))
    context.expect(TokenType.RBRACKET, "]")
    return DimStatement(name, dimensions)
