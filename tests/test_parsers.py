# =============================================================================
# test_parsers.py - Statement Parser and Line Parser Tests
# =============================================================================
# Tests for statement dispatch, canonical statement text, per-line error
# placeholders and display indentation.
# =============================================================================

import pytest

from edubasic.lexer import tokenize
from edubasic.line_parser import INDENT, LineParser, format_lines, parse_program
from edubasic.parsers.dispatch import STATEMENT_PARSERS, parse_statement
from edubasic.statements import (
    ColorStatement,
    ForStatement,
    PrintStatement,
    RandomizeStatement,
    UnparsableStatement,
)


# =============================================================================
# Helper Functions
# =============================================================================

def parse(text: str):
    return parse_statement(tokenize(text))


def canonical(text: str) -> str:
    result = parse(text)
    assert result.ok, result.error
    return str(result.value)


ROUND_TRIP_SOURCES = [
    # one form per statement keyword
    "let total# = sqrt(2) ^ 2",
    "let grid%[1, 2] = 5",
    "let p.x = 3",
    "local n% = 0",
    "dim box#[0 to 3, 5]",
    'print "x"; 1 + 2 * 3;',
    "input name$",
    "cls",
    "color 1, 2",
    "locate 3, 4",
    'if name$ startswith "A" and n% <> 0 then',
    "elseif n% > 1 then",
    "else",
    "unless done% then",
    "select case n% mod 3",
    "case 1, 2 to 5, is >= 10",
    "for i% = 10 to 1 step -2",
    "next i%",
    "while n% < 10",
    "wend",
    "do until n% = 0",
    "loop while n% > 0",
    "until done%",
    "uend",
    "sub greet name$, byref count%",
    'call greet "Ann", n% + 1',
    "goto top",
    "gosub top",
    "label top",
    "return",
    "end sub",
    "exit for i%",
    "continue do",
    "try",
    "catch err$",
    "finally",
    'throw "bad " + str n%',
    'open "f.txt" for append as h%',
    "close h%",
    "read v% from h%",
    "line input l$ from h%",
    "write [1, 2] to h%",
    "seek 0 in h%",
    'readfile t$ from "a.txt"',
    'writefile "x" to "a.txt"',
    'listdir names$[] from "/"',
    'mkdir "d"',
    'rmdir "d"',
    'delete "a.txt"',
    'copy "a" to "b"',
    'move "a" to "b"',
    'pset (1, 2) with "red"',
    "line from (0, 0) to (5, 5) with 255",
    "rectangle from (0, 0) to (5, 5) filled",
    "oval at (5, 5) radii (3, 2) with 255 filled",
    "circle at (5, 5) radius 3",
    "triangle (0, 0) (4, 0) (2, 3) filled",
    'arc at (5, 5) radius 3 from 0 to 90 with "blue"',
    'paint (1, 1) with "green"',
    "get sprite% from (0, 0) to (3, 3)",
    "put sprite% at (4, 4)",
    'turtle "FD 10"',
    "push list%[], 4",
    "pop list%[] into v%",
    "shift list%[] into v%",
    "unshift list%[], 0",
    "tempo 120",
    "volume 80",
    'voice 1 instrument "piano"',
    'play 1, "CDE"',
    "sleep 10",
    "randomize 123",
    "set line spacing on",
    "help print",
    'console "ready"',
    'data 1, "two", 3.5',
    "restore top",
    # expression forms
    "let z& = 3+4i",
    "let z& = 2.5i - 1",
    "let h% = &HFF + &B1010_0101",
    "let big# = 1.5E-3 * 2E20",
    "let s$ = t$[2 TO 4] + t$ MID 1 TO 2",
    'let s$ = t$ REPLACE "a" WITH "b"',
    'let n% = t$ INSTR "x" FROM 2',
    'let p = { name: "Ann", age: 3 }',
    "let a% = |x% - 3| + 5!",
    "let r# = 90 DEG + PI RAD",
    "let b% = NOT a% OR b% IMP c%",
    "let n% = list%[] INDEXOF 3",
    "let v# = -(a# + b#) * c#",
    "let q% = p.items[1]",
]


# =============================================================================
# Dispatch
# =============================================================================

class TestDispatch:
    """Keyword lookup and leftover-token checks."""

    def test_print(self):
        result = parse('print "hi"')
        assert result.ok
        assert isinstance(result.value, PrintStatement)

    def test_non_keyword_start(self):
        result = parse("x% = 1")
        assert not result.ok
        assert result.error == "Expected keyword or statement"

    def test_keyword_without_parser(self):
        result = parse("THEN")
        assert not result.ok
        assert result.error == "Unknown keyword: THEN"

    def test_leftover_tokens(self):
        result = parse("CLS 5")
        assert not result.ok
        assert result.error == "Unexpected token: 5"

    def test_every_parser_is_callable(self):
        assert all(callable(parser) for parser in STATEMENT_PARSERS.values())


# =============================================================================
# Canonical Text
# =============================================================================

class TestCanonicalText:
    """Statements print in upper-case keyword form with normalized spacing."""

    @pytest.mark.parametrize("source, expected", [
        ("let x% = 1+2", "LET x% = 1 + 2"),
        ("for i% = 1 to 10 step 2", "FOR i% = 1 TO 10 STEP 2"),
        ("next i%", "NEXT i%"),
        ("if a% > 1 then", "IF a% > 1 THEN"),
        ("elseif a% = 1 then", "ELSEIF a% = 1 THEN"),
        ("end if", "END IF"),
        ("select case n%", "SELECT CASE n%"),
        ("case 1, 2 to 5, is >= 10", "CASE 1, 2 TO 5, IS >= 10"),
        ("case else", "CASE ELSE"),
        ("do while n% < 3", "DO WHILE n% < 3"),
        ("loop until done%", "LOOP UNTIL done%"),
        ("sub greet name$, byref count%", "SUB greet name$, BYREF count%"),
        ("call greet \"Ann\", n%", 'CALL greet "Ann", n%'),
        ("exit for i%", "EXIT FOR i%"),
        ("catch err$", "CATCH err$"),
        ('print "a"; b%, c#;', 'PRINT "a"; b%, c#;'),
        ("color 1, 2", "COLOR 1, 2"),
        ("locate 3,4", "LOCATE 3, 4"),
        ('open "f.txt" for read as h%', 'OPEN "f.txt" FOR READ AS h%'),
        ("line input l$ from h%", "LINE INPUT l$ FROM h%"),
        ("write 42 to h%", "WRITE 42 TO h%"),
        ("seek 0 in h%", "SEEK 0 IN h%"),
        ("pset (1, 2) with 255", "PSET (1, 2) WITH 255"),
        ("line from (0,0) to (5,5)", "LINE FROM (0, 0) TO (5, 5)"),
        ("rectangle from (0,0) to (5,5) filled", "RECTANGLE FROM (0, 0) TO (5, 5) FILLED"),
        ("pop list%[] into v%", "POP list%[] INTO v%"),
        ("push list%[], 4", "PUSH list%[], 4"),
        ("randomize 123", "RANDOMIZE 123"),
        ("sleep 10", "SLEEP 10"),
        ("dim grid%[3, 4]", "DIM grid%[3, 4]"),
    ])
    def test_canonical(self, source, expected):
        assert canonical(source) == expected

    @pytest.mark.parametrize("source", ROUND_TRIP_SOURCES)
    def test_canonical_form_is_a_fixed_point(self, source):
        """Parsing the canonical text again yields the same text and tree."""
        first = parse(source)
        assert first.ok, first.error
        text = str(first.value)
        second = parse(text)
        assert second.ok, second.error
        assert str(second.value) == text
        assert second.value == first.value

    def test_fixed_point_covers_every_statement_keyword(self):
        keywords = {tokenize(source)[0].value for source in ROUND_TRIP_SOURCES}
        assert set(STATEMENT_PARSERS) <= keywords

    @pytest.mark.parametrize("source", ["let r# = 1E400", "let z& = 1E400i"])
    def test_out_of_range_literal(self, source):
        result = parse(source)
        assert not result.ok
        assert result.error.startswith("Number out of range")


# =============================================================================
# Statement Errors
# =============================================================================

class TestStatementErrors:
    """Specific parse failures."""

    def test_randomize_forms(self):
        """RANDOMIZE and RANDOMIZE 123 parse; RANDOMIZE , does not."""
        assert isinstance(parse("RANDOMIZE").value, RandomizeStatement)
        assert parse("RANDOMIZE 123").ok
        result = parse("RANDOMIZE ,")
        assert not result.ok
        assert result.error.startswith("RANDOMIZE:")

    def test_color_requires_foreground(self):
        result = parse("COLOR , 2")
        assert not result.ok
        assert result.error == "COLOR requires at least a foreground color"

    def test_color_foreground_only(self):
        statement = parse("COLOR 3").value
        assert isinstance(statement, ColorStatement)
        assert statement.background is None

    def test_if_requires_then(self):
        result = parse("IF x% > 1")
        assert not result.ok
        assert "Expected THEN" in result.error

    def test_exit_requires_target(self):
        assert parse("EXIT").error == "EXIT must specify target: FOR, WHILE, DO, or SUB"

    def test_case_requires_clause(self):
        assert parse("CASE").error == "CASE must include a clause or ELSE"

    def test_open_invalid_mode(self):
        result = parse('OPEN "f" FOR WRITE AS h%')
        assert not result.ok
        assert result.error == "Invalid file mode: WRITE"

    def test_line_requires_input_or_from(self):
        assert parse("LINE (0, 0)").error == "Expected INPUT or FROM after LINE"

    def test_unknown_set_option(self):
        assert parse("SET COLOR ON").error.startswith("Unknown SET option")


# =============================================================================
# Line Parser
# =============================================================================

class TestLineParser:
    """ParsedLine results and placeholders."""

    def test_success(self):
        parsed = LineParser().parse_line(0, "for i% = 1 to 3")
        assert not parsed.has_error
        assert parsed.error_message is None
        assert isinstance(parsed.statement, ForStatement)

    def test_blank_line_is_placeholder(self):
        parsed = LineParser().parse_line(0, "   ")
        assert not parsed.has_error
        assert isinstance(parsed.statement, UnparsableStatement)

    def test_comment_is_placeholder(self):
        parsed = LineParser().parse_line(0, "' greeting")
        assert not parsed.has_error
        assert str(parsed.statement) == "' greeting"

    def test_parse_error_is_placeholder(self):
        parsed = LineParser().parse_line(4, "COLOR , 2")
        assert parsed.has_error
        assert parsed.line_number == 4
        assert parsed.error_message == "COLOR requires at least a foreground color"
        assert parsed.statement.is_error

    def test_tokenize_error_is_placeholder(self):
        parsed = LineParser().parse_line(0, 'PRINT "open')
        assert parsed.has_error
        assert "Unterminated string" in parsed.error_message

    def test_error_lines_do_not_stop_parsing(self):
        program, lines = parse_program('PRINT @\nPRINT 2')
        assert len(program) == 2
        assert lines[0].has_error
        assert not lines[1].has_error

    def test_non_ascii_digit_becomes_error_line(self):
        program, lines = parse_program("PRINT 1\nPRINT \u00b2\nPRINT 3")
        assert len(program) == 3
        assert [line.has_error for line in lines] == [False, True, False]
        assert "Unexpected character" in lines[1].error_message


class TestIndentation:
    """Display indentation across lines."""

    def test_nested_blocks(self):
        source = "\n".join([
            "for i% = 1 to 3",
            "if i% = 2 then",
            "print i%",
            "else",
            "print 0",
            "end if",
            "next i%",
        ])
        _, lines = parse_program(source)
        assert [line.statement.indent_level for line in lines] == [0, 1, 2, 1, 2, 1, 0]

    def test_format_lines(self):
        _, lines = parse_program("while x% < 3\nlet x% = x% + 1\nwend")
        assert format_lines(lines) == (
            "WHILE x% < 3\n"
            + INDENT + "LET x% = x% + 1\n"
            + "WEND\n"
        )

    def test_unbalanced_closer_does_not_go_negative(self):
        _, lines = parse_program("next\nprint 1")
        assert lines[0].statement.indent_level == 0
        assert lines[1].statement.indent_level == 0

    def test_formatting_is_a_fixed_point(self):
        source = "sub greet name$\nprint \"hi \" + name$\nend sub\ncall greet \"Bo\""
        _, lines = parse_program(source)
        once = format_lines(lines)
        _, again = parse_program(once)
        assert format_lines(again) == once
