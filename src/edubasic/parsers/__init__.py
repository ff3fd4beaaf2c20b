"""
EduBASIC Statement Parsers
==========================

One parse function per statement keyword, grouped like the statement
modules. parse_statement() in dispatch picks the parser by keyword.
"""

from edubasic.parsers.context import ParseFailure, ParserContext, statement_parser

__all__ = ["ParseFailure", "ParserContext", "statement_parser"]
