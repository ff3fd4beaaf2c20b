"""
Statement Dispatch
==================

Maps a line's leading keyword to its statement parser. Every parser
consumes its own keyword, so the table entry is chosen by peeking.
"""

from typing import Callable
import logging

from edubasic.lexer import Token, TokenType
from edubasic.parse_result import ParseResult
from edubasic.parsers import control_flow, file_io, graphics, io, misc, variables
from edubasic.parsers.context import ParserContext
from edubasic.statements.base import Statement

logger = logging.getLogger(__name__)

StatementParser = Callable[[ParserContext], ParseResult[Statement]]

STATEMENT_PARSERS: dict[str, StatementParser] = {
    # Variables
    "LET": variables.parse_let,
    "LOCAL": variables.parse_local,
    "DIM": variables.parse_dim,
    # Console
    "PRINT": io.parse_print,
    "INPUT": io.parse_input,
    "CLS": io.parse_cls,
    "COLOR": io.parse_color,
    "LOCATE": io.parse_locate,
    # Control flow
    "IF": control_flow.parse_if,
    "ELSEIF": control_flow.parse_elseif,
    "ELSE": control_flow.parse_else,
    "UNLESS": control_flow.parse_unless,
    "SELECT": control_flow.parse_select,
    "CASE": control_flow.parse_case,
    "FOR": control_flow.parse_for,
    "NEXT": control_flow.parse_next,
    "WHILE": control_flow.parse_while,
    "WEND": control_flow.parse_wend,
    "DO": control_flow.parse_do,
    "LOOP": control_flow.parse_loop,
    "UNTIL": control_flow.parse_until,
    "UEND": control_flow.parse_uend,
    "SUB": control_flow.parse_sub,
    "CALL": control_flow.parse_call,
    "GOTO": control_flow.parse_goto,
    "GOSUB": control_flow.parse_gosub,
    "LABEL": control_flow.parse_label,
    "RETURN": control_flow.parse_return,
    "END": control_flow.parse_end,
    "EXIT": control_flow.parse_exit,
    "CONTINUE": control_flow.parse_continue,
    "TRY": control_flow.parse_try,
    "CATCH": control_flow.parse_catch,
    "FINALLY": control_flow.parse_finally,
    "THROW": control_flow.parse_throw,
    # Files
    "OPEN": file_io.parse_open,
    "CLOSE": file_io.parse_close,
    "READ": file_io.parse_read,
    "WRITE": file_io.parse_write,
    "SEEK": file_io.parse_seek,
    "READFILE": file_io.parse_readfile,
    "WRITEFILE": file_io.parse_writefile,
    "LISTDIR": file_io.parse_listdir,
    "MKDIR": file_io.parse_mkdir,
    "RMDIR": file_io.parse_rmdir,
    "COPY": file_io.parse_copy,
    "MOVE": file_io.parse_move,
    "DELETE": file_io.parse_delete,
    # Graphics
    "PSET": graphics.parse_pset,
    "LINE": graphics.parse_line,
    "RECTANGLE": graphics.parse_rectangle,
    "OVAL": graphics.parse_oval,
    "CIRCLE": graphics.parse_circle,
    "TRIANGLE": graphics.parse_triangle,
    "ARC": graphics.parse_arc,
    "PAINT": graphics.parse_paint,
    "GET": graphics.parse_get,
    "PUT": graphics.parse_put,
    "TURTLE": graphics.parse_turtle,
    # Arrays
    "PUSH": misc.parse_push,
    "POP": misc.parse_pop,
    "SHIFT": misc.parse_shift,
    "UNSHIFT": misc.parse_unshift,
    # Audio
    "TEMPO": misc.parse_tempo,
    "VOLUME": misc.parse_volume,
    "VOICE": misc.parse_voice,
    "PLAY": misc.parse_play,
    # Miscellaneous
    "SLEEP": misc.parse_sleep,
    "RANDOMIZE": misc.parse_randomize,
    "SET": misc.parse_set,
    "HELP": misc.parse_help,
    "CONSOLE": misc.parse_console,
    "DATA": misc.parse_data,
    "RESTORE": misc.parse_restore,
}


def parse_statement(tokens: list[Token]) -> ParseResult[Statement]:
    """
    Parse the tokens of one line into a statement.

    Fails when the line does not start with a statement keyword, when
    the statement's parser fails, or when tokens are left over.
    """
    context = ParserContext(tokens)
    first = context.peek()
    if first.type != TokenType.KEYWORD:
        return ParseResult.failure("Expected keyword or statement")

    parser = STATEMENT_PARSERS.get(first.value.upper())
    if parser is None:
        return ParseResult.failure(f"Unknown keyword: {first.value}")

    result = parser(context)
    if not result:
        return result
    if not context.is_at_end():
        return ParseResult.failure(f"Unexpected token: {context.peek().value}")
    return result
