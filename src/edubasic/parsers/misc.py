"""
Array, Audio and Miscellaneous Statement Parsers
"""

from edubasic.lexer import TokenType
from edubasic.parsers.context import ParseFailure, ParserContext, statement_parser
from edubasic.parsers.variables import NO_TERMINATORS
from edubasic.statements.arrays import PopStatement, PushStatement, ShiftStatement, UnshiftStatement
from edubasic.statements.audio import PlayStatement, TempoStatement, VoiceStatement, VolumeStatement
from edubasic.statements.misc import (
    SET_OPTIONS,
    ConsoleStatement,
    DataStatement,
    HelpStatement,
    RandomizeStatement,
    RestoreStatement,
    SetStatement,
    SleepStatement,
)


# =============================================================================
# Arrays
# =============================================================================

def _append_parser(keyword: str, statement_class):
    """PUSH / UNSHIFT: keyword array, value"""
    @statement_parser
    def parse(context: ParserContext):
        context.expect_keyword(keyword)
        array = context.expect_identifier("array variable")
        context.expect(TokenType.COMMA, ",")
        return statement_class(array, context.expression(NO_TERMINATORS))
    parse.__name__ = f"parse_{keyword.lower()}"
    return parse


def _remove_parser(keyword: str, statement_class):
    """POP / SHIFT: keyword array INTO variable"""
    @statement_parser
    def parse(context: ParserContext):
        context.expect_keyword(keyword)
        array = context.expect_identifier("array variable")
        context.expect_keyword("INTO")
        return statement_class(array, context.expect_identifier("target variable"))
    parse.__name__ = f"parse_{keyword.lower()}"
    return parse


parse_push = _append_parser("PUSH", PushStatement)
parse_unshift = _append_parser("UNSHIFT", UnshiftStatement)
parse_pop = _remove_parser("POP", PopStatement)
parse_shift = _remove_parser("SHIFT", ShiftStatement)


# =============================================================================
# Audio
# =============================================================================

@statement_parser
def parse_tempo(context: ParserContext) -> TempoStatement:
    context.expect_keyword("TEMPO")
    return TempoStatement(context.expression())


@statement_parser
def parse_volume(context: ParserContext) -> VolumeStatement:
    context.expect_keyword("VOLUME")
    return VolumeStatement(context.expression())


@statement_parser
def parse_voice(context: ParserContext) -> VoiceStatement:
    context.expect_keyword("VOICE")
    voice = context.expression()
    context.expect_keyword("INSTRUMENT")
    return VoiceStatement(voice, context.expression())


@statement_parser
def parse_play(context: ParserContext) -> PlayStatement:
    context.expect_keyword("PLAY")
    voice = context.expression()
    context.expect(TokenType.COMMA, ",")
    return PlayStatement(voice, context.expression())


# =============================================================================
# Miscellaneous
# =============================================================================

@statement_parser
def parse_sleep(context: ParserContext) -> SleepStatement:
    context.expect_keyword("SLEEP")
    return SleepStatement(context.expression(NO_TERMINATORS))


@statement_parser
def parse_randomize(context: ParserContext) -> RandomizeStatement:
    context.expect_keyword("RANDOMIZE")
    if context.is_at_end():
        return RandomizeStatement()
    seed = context.parse_expression()
    if not seed:
        raise ParseFailure(f"RANDOMIZE: {seed.error}")
    return RandomizeStatement(seed.value)


@statement_parser
def parse_set(context: ParserContext) -> SetStatement:
    """SET LINE SPACING ON|OFF, SET TEXT WRAP ON|OFF, SET AUDIO ON|OFF"""
    context.expect_keyword("SET")
    option = None
    for name, words in SET_OPTIONS.items():
        if context.check_keyword(words[0]):
            for word in words:
                context.expect_keyword(word)
            option = name
            break
    if option is None:
        raise ParseFailure(f"Unknown SET option: {context.peek().value or 'end of input'}")
    if context.match_keyword("ON"):
        return SetStatement(option, True)
    context.expect_keyword("OFF")
    return SetStatement(option, False)


@statement_parser
def parse_help(context: ParserContext) -> HelpStatement:
    context.expect_keyword("HELP")
    return HelpStatement(context.expect(TokenType.KEYWORD, "statement keyword").value)


@statement_parser
def parse_console(context: ParserContext) -> ConsoleStatement:
    context.expect_keyword("CONSOLE")
    return ConsoleStatement(context.expression(NO_TERMINATORS))


@statement_parser
def parse_data(context: ParserContext) -> DataStatement:
    context.expect_keyword("DATA")
    items = [context.expression()]
    while context.match(TokenType.COMMA):
        items.append(context.expression())
    return DataStatement(items)


@statement_parser
def parse_restore(context: ParserContext) -> RestoreStatement:
    context.expect_keyword("RESTORE")
    label = context.match(TokenType.IDENTIFIER)
    return RestoreStatement(label.value if label else None)
