"""
Line Parser
===========

Turns source lines into statements, one line at a time.

Every line produces a ParsedLine, never an exception: blank lines and
comments become non-error placeholders, and lines that fail to tokenize
or parse become error placeholders that carry the message. Only
unexpected internal errors escape from parse_program().

The parser also tracks display indentation across lines:

    FOR i% = 1 TO 3          level 0, opens a block
        IF i% = 2 THEN       level 1, opens a block
            PRINT i%         level 2
        ELSE                 level 1 (clause)
            PRINT 0          level 2
        END IF               level 1 (closer)
    NEXT i%                  level 0 (closer)
"""

from dataclasses import dataclass
from typing import Iterable, Optional
import logging

from edubasic.errors import TokenizeError
from edubasic.lexer import tokenize
from edubasic.parsers.dispatch import parse_statement
from edubasic.program import Program
from edubasic.statements.base import Statement, UnparsableStatement

logger = logging.getLogger(__name__)

INDENT = "    "


@dataclass
class ParsedLine:
    """
    Result of parsing one source line.

    Attributes:
        line_number: Zero-based line index
        source_text: The line as written
        statement: Parsed statement, or an UnparsableStatement placeholder
        has_error: True when the line failed to tokenize or parse
        error_message: The failure message (None on success)
    """
    line_number: int
    source_text: str
    statement: Statement
    has_error: bool = False
    error_message: Optional[str] = None


class LineParser:
    """
    Stateful parser for consecutive lines of one program.

    Usage:
        parser = LineParser()
        parsed = parser.parse_line(0, "for i% = 1 to 3")
        str(parsed.statement)   # "FOR i% = 1 TO 3"
    """

    def __init__(self):
        self.indent_level = 0

    def reset(self) -> None:
        self.indent_level = 0

    def parse_line(self, line_number: int, text: str) -> ParsedLine:
        stripped = text.strip()
        if not stripped or stripped.startswith("'"):
            return self._placeholder(line_number, text)

        try:
            tokens = tokenize(stripped)
        except TokenizeError as e:
            return self._placeholder(line_number, text, e.message)

        result = parse_statement(tokens)
        if not result:
            return self._placeholder(line_number, text, result.error)

        statement = result.value
        self._apply_indent(statement)
        return ParsedLine(line_number, text, statement)

    def _placeholder(self, line_number: int, text: str, error: Optional[str] = None) -> ParsedLine:
        statement = UnparsableStatement(text, error or "", is_error=error is not None)
        statement.indent_level = self.indent_level
        if error is not None:
            logger.debug("line %d: %s", line_number + 1, error)
        return ParsedLine(line_number, text, statement, error is not None, error)

    def _apply_indent(self, statement: Statement) -> None:
        adjustment = statement.indent_adjustment
        if adjustment < 0:
            self.indent_level = max(0, self.indent_level + adjustment)
            statement.indent_level = self.indent_level
        elif statement.is_clause:
            statement.indent_level = max(0, self.indent_level - 1)
        else:
            statement.indent_level = self.indent_level
            self.indent_level += adjustment


def parse_program(source: str) -> tuple[Program, list[ParsedLine]]:
    """Parse every line of source into a new Program."""
    parser = LineParser()
    program = Program()
    parsed_lines = []
    for index, text in enumerate(source.splitlines()):
        parsed = parser.parse_line(index, text)
        program.append_line(parsed.statement, text)
        parsed_lines.append(parsed)
    return program, parsed_lines


def format_lines(parsed_lines: Iterable[ParsedLine]) -> str:
    """Canonical, indented source text of parsed lines."""
    output = []
    for parsed in parsed_lines:
        text = str(parsed.statement)
        output.append(INDENT * parsed.statement.indent_level + text if text else "")
    return "\n".join(output) + "\n"
