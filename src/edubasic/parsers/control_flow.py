"""
Control-Flow Statement Parsers
==============================

Block openers, clauses and closers are parsed one line at a time; the
analyzer pairs them up afterwards.
"""

from typing import Optional

from edubasic.expression_parser import COMPARISON_TOKENS
from edubasic.expressions import Expression
from edubasic.lexer import TokenType
from edubasic.parsers.context import ParseFailure, ParserContext, statement_parser
from edubasic.parsers.variables import NO_TERMINATORS
from edubasic.statements.control_flow import (
    END_BLOCKS,
    CallStatement,
    CaseSelector,
    CaseStatement,
    CatchStatement,
    ContinueStatement,
    DoStatement,
    ElseIfStatement,
    ElseStatement,
    EndStatement,
    ExitStatement,
    FinallyStatement,
    ForStatement,
    GosubStatement,
    GotoStatement,
    IfStatement,
    LabelStatement,
    LoopStatement,
    NextStatement,
    Parameter,
    ReturnStatement,
    SelectCaseStatement,
    SubStatement,
    ThrowStatement,
    TryStatement,
    UendStatement,
    UnlessStatement,
    UntilStatement,
    WendStatement,
    WhileStatement,
)


def _optional_identifier(context: ParserContext) -> Optional[str]:
    token = context.match(TokenType.IDENTIFIER)
    return token.value if token else None


def _bare(keyword: str, statement_class):
    """Parser for a statement that is a single keyword."""
    @statement_parser
    def parse(context: ParserContext):
        context.expect_keyword(keyword)
        return statement_class()
    parse.__name__ = f"parse_{keyword.lower()}"
    return parse


# =============================================================================
# IF / UNLESS / SELECT CASE
# =============================================================================

@statement_parser
def parse_if(context: ParserContext) -> IfStatement:
    context.expect_keyword("IF")
    condition = context.expression()
    context.expect_keyword("THEN")
    return IfStatement(condition)


@statement_parser
def parse_elseif(context: ParserContext) -> ElseIfStatement:
    context.expect_keyword("ELSEIF")
    condition = context.expression()
    context.expect_keyword("THEN")
    return ElseIfStatement(condition)


@statement_parser
def parse_unless(context: ParserContext) -> UnlessStatement:
    context.expect_keyword("UNLESS")
    condition = context.expression()
    context.expect_keyword("THEN")
    return UnlessStatement(condition)


@statement_parser
def parse_select(context: ParserContext) -> SelectCaseStatement:
    context.expect_keyword("SELECT")
    context.expect_keyword("CASE")
    return SelectCaseStatement(context.expression())


def _case_selector(context: ParserContext) -> CaseSelector:
    if context.match_keyword("IS"):
        token = context.match(*COMPARISON_TOKENS)
        if token is None:
            found = context.peek().value or "end of input"
            raise ParseFailure(f"Expected relational operator after IS, got: {found}")
        return CaseSelector(context.expression(), relation=COMPARISON_TOKENS[token.type])
    value = context.expression()
    if context.match_keyword("TO"):
        return CaseSelector(value, end=context.expression())
    return CaseSelector(value)


@statement_parser
def parse_case(context: ParserContext) -> CaseStatement:
    context.expect_keyword("CASE")
    if context.match_keyword("ELSE"):
        return CaseStatement(is_else=True)
    if context.is_at_end():
        raise ParseFailure("CASE must include a clause or ELSE")
    selectors = [_case_selector(context)]
    while context.match(TokenType.COMMA):
        selectors.append(_case_selector(context))
    return CaseStatement(selectors)


# =============================================================================
# Loops
# =============================================================================

@statement_parser
def parse_for(context: ParserContext) -> ForStatement:
    context.expect_keyword("FOR")
    variable = context.expect_identifier("loop variable")
    context.expect(TokenType.EQUAL, "=")
    start = context.expression()
    context.expect_keyword("TO")
    end = context.expression()
    step = context.expression() if context.match_keyword("STEP") else None
    return ForStatement(variable, start, end, step)


@statement_parser
def parse_next(context: ParserContext) -> NextStatement:
    context.expect_keyword("NEXT")
    return NextStatement(_optional_identifier(context))


@statement_parser
def parse_while(context: ParserContext) -> WhileStatement:
    context.expect_keyword("WHILE")
    return WhileStatement(context.expression())


def _loop_condition(context: ParserContext) -> tuple[Optional[str], Optional[Expression]]:
    for mode in ("WHILE", "UNTIL"):
        if context.match_keyword(mode):
            return mode, context.expression()
    return None, None


@statement_parser
def parse_do(context: ParserContext) -> DoStatement:
    context.expect_keyword("DO")
    return DoStatement(*_loop_condition(context))


@statement_parser
def parse_loop(context: ParserContext) -> LoopStatement:
    context.expect_keyword("LOOP")
    return LoopStatement(*_loop_condition(context))


@statement_parser
def parse_until(context: ParserContext) -> UntilStatement:
    context.expect_keyword("UNTIL")
    return UntilStatement(context.expression())


parse_wend = _bare("WEND", WendStatement)
parse_uend = _bare("UEND", UendStatement)


# =============================================================================
# SUB / CALL / Jumps
# =============================================================================

def _parameter(context: ParserContext) -> Parameter:
    by_ref = context.match_keyword("BYREF")
    return Parameter(context.expect_identifier("parameter name"), by_ref)


@statement_parser
def parse_sub(context: ParserContext) -> SubStatement:
    context.expect_keyword("SUB")
    name = context.expect_identifier("SUB name")
    parameters = []
    if not context.is_at_end():
        parameters.append(_parameter(context))
        while context.match(TokenType.COMMA):
            parameters.append(_parameter(context))
    return SubStatement(name, parameters)


@statement_parser
def parse_call(context: ParserContext) -> CallStatement:
    context.expect_keyword("CALL")
    name = context.expect_identifier("SUB name")
    arguments = []
    if not context.is_at_end():
        arguments.append(context.expression())
        while context.match(TokenType.COMMA):
            arguments.append(context.expression())
    return CallStatement(name, arguments)


@statement_parser
def parse_goto(context: ParserContext) -> GotoStatement:
    context.expect_keyword("GOTO")
    return GotoStatement(context.expect_identifier("label name"))


@statement_parser
def parse_gosub(context: ParserContext) -> GosubStatement:
    context.expect_keyword("GOSUB")
    return GosubStatement(context.expect_identifier("label name"))


@statement_parser
def parse_label(context: ParserContext) -> LabelStatement:
    context.expect_keyword("LABEL")
    return LabelStatement(context.expect_identifier("label name"))


parse_return = _bare("RETURN", ReturnStatement)


# =============================================================================
# END / EXIT / CONTINUE
# =============================================================================

@statement_parser
def parse_end(context: ParserContext) -> EndStatement:
    context.expect_keyword("END")
    for block in END_BLOCKS:
        if context.match_keyword(block):
            return EndStatement(block)
    return EndStatement()


@statement_parser
def parse_exit(context: ParserContext) -> ExitStatement:
    context.expect_keyword("EXIT")
    if context.match_keyword("FOR"):
        return ExitStatement("FOR", _optional_identifier(context))
    for target in ("WHILE", "DO", "SUB"):
        if context.match_keyword(target):
            return ExitStatement(target)
    raise ParseFailure("EXIT must specify target: FOR, WHILE, DO, or SUB")


@statement_parser
def parse_continue(context: ParserContext) -> ContinueStatement:
    context.expect_keyword("CONTINUE")
    for target in ("FOR", "WHILE", "DO"):
        if context.match_keyword(target):
            return ContinueStatement(target)
    raise ParseFailure("CONTINUE must specify target: FOR, WHILE, or DO")


# =============================================================================
# TRY / CATCH / FINALLY / THROW
# =============================================================================

@statement_parser
def parse_catch(context: ParserContext) -> CatchStatement:
    context.expect_keyword("CATCH")
    return CatchStatement(_optional_identifier(context))


@statement_parser
def parse_throw(context: ParserContext) -> ThrowStatement:
    context.expect_keyword("THROW")
    return ThrowStatement(context.expression(NO_TERMINATORS))


parse_else = _bare("ELSE", ElseStatement)
parse_try = _bare("TRY", TryStatement)
parse_finally = _bare("FINALLY", FinallyStatement)
