"""
File Statement Parsers
======================

OPEN, CLOSE, READ, LINE INPUT, WRITE, SEEK and the whole-path
statements READFILE, WRITEFILE, LISTDIR, MKDIR, RMDIR, COPY, MOVE,
DELETE.
"""

from edubasic.parsers.context import ParseFailure, ParserContext, statement_parser
from edubasic.statements.file_io import (
    FILE_MODES,
    CloseStatement,
    LineInputStatement,
    ListDirStatement,
    OpenStatement,
    PathStatement,
    ReadFileStatement,
    ReadStatement,
    SeekStatement,
    TransferStatement,
    WriteFileStatement,
    WriteStatement,
)


@statement_parser
def parse_open(context: ParserContext) -> OpenStatement:
    context.expect_keyword("OPEN")
    filename = context.expression()
    context.expect_keyword("FOR")
    mode = context.advance()
    if mode.value not in FILE_MODES:
        raise ParseFailure(f"Invalid file mode: {mode.value or 'end of input'}")
    context.expect_keyword("AS")
    return OpenStatement(filename, mode.value, context.expect_identifier("file handle variable"))


@statement_parser
def parse_close(context: ParserContext) -> CloseStatement:
    context.expect_keyword("CLOSE")
    return CloseStatement(context.expression())


@statement_parser
def parse_read(context: ParserContext) -> ReadStatement:
    """READ variable [FROM handle]"""
    context.expect_keyword("READ")
    variable = context.expect_identifier("variable name")
    handle = context.expression() if context.match_keyword("FROM") else None
    return ReadStatement(variable, handle)


def parse_line_input_tail(context: ParserContext) -> LineInputStatement:
    """The rest of LINE INPUT, after both keywords."""
    variable = context.expect_identifier("variable name")
    context.expect_keyword("FROM")
    return LineInputStatement(variable, context.expression())


@statement_parser
def parse_write(context: ParserContext) -> WriteStatement:
    context.expect_keyword("WRITE")
    value = context.expression()
    context.expect_keyword("TO")
    return WriteStatement(value, context.expression())


@statement_parser
def parse_seek(context: ParserContext) -> SeekStatement:
    context.expect_keyword("SEEK")
    position = context.expression()
    context.expect_keyword("IN")
    return SeekStatement(position, context.expression())


@statement_parser
def parse_readfile(context: ParserContext) -> ReadFileStatement:
    context.expect_keyword("READFILE")
    variable = context.expect_identifier("variable name")
    context.expect_keyword("FROM")
    return ReadFileStatement(variable, context.expression())


@statement_parser
def parse_writefile(context: ParserContext) -> WriteFileStatement:
    context.expect_keyword("WRITEFILE")
    content = context.expression()
    context.expect_keyword("TO")
    return WriteFileStatement(content, context.expression())


@statement_parser
def parse_listdir(context: ParserContext) -> ListDirStatement:
    context.expect_keyword("LISTDIR")
    variable = context.expect_identifier("array variable")
    context.expect_keyword("FROM")
    return ListDirStatement(variable, context.expression())


def _path_parser(keyword: str):
    @statement_parser
    def parse(context: ParserContext) -> PathStatement:
        context.expect_keyword(keyword)
        return PathStatement(keyword, context.expression())
    parse.__name__ = f"parse_{keyword.lower()}"
    return parse


def _transfer_parser(keyword: str):
    @statement_parser
    def parse(context: ParserContext) -> TransferStatement:
        context.expect_keyword(keyword)
        source = context.expression()
        context.expect_keyword("TO")
        return TransferStatement(keyword, source, context.expression())
    parse.__name__ = f"parse_{keyword.lower()}"
    return parse


parse_mkdir = _path_parser("MKDIR")
parse_rmdir = _path_parser("RMDIR")
parse_delete = _path_parser("DELETE")
parse_copy = _transfer_parser("COPY")
parse_move = _transfer_parser("MOVE")
