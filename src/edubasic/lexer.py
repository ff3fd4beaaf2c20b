"""
EduBASIC Lexer (Tokenizer)
==========================

This module converts a line (or several lines) of EduBASIC source into a
flat list of tokens. It has no knowledge of statements: the statement
parsers decide what a sequence of tokens means.

Token Categories
----------------
- Keywords: PRINT, IF, FOR, SIN, ... (case-insensitive, emitted uppercase)
- Identifiers: letters/digits/underscore, optional type sigil and rank suffix
- Numbers: integer, real, scientific, complex, &H hex, &B binary
- Strings: "double quoted" with escapes
- Operators and punctuation: + - * / ^ ** = <> < > <= >= ( ) [ ] { } , : ; | ! . ...

Identifiers
-----------
| Form      | Meaning                       |
|-----------|-------------------------------|
| count     | untyped (structure) variable  |
| count%    | integer                       |
| total#    | real                          |
| name$     | string                        |
| z&        | complex                       |
| list%[]   | one-dimensional integer array |
| grid#[,]  | two-dimensional real array    |

Number Formats
--------------
| Format      | Example      | Token              |
|-------------|--------------|--------------------|
| Integer     | 42           | INTEGER "42"       |
| Real        | 3.5, 1E6     | REAL "3.5"         |
| Complex     | 4i, 3+4i     | COMPLEX "3+4i"     |
| Hexadecimal | &HFF         | INTEGER "255"      |
| Binary      | &B1101_0011  | INTEGER "211"      |

Comments
--------
An apostrophe starts a comment that runs to the end of the line.

Example Usage
-------------
>>> from edubasic.lexer import tokenize
>>> tokenize('print "hi"')
[Token(KEYWORD, 'PRINT', 1:1), Token(STRING, 'hi', 1:7), Token(EOF, '', 1:11)]
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional
import string

from edubasic.errors import SourceLocation, TokenizeError
from edubasic.keywords import KEYWORDS


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token categories of the EduBASIC language."""

    EOF = auto()

    # === Literals ===
    INTEGER = auto()
    REAL = auto()
    COMPLEX = auto()
    STRING = auto()

    # === Names ===
    IDENTIFIER = auto()
    KEYWORD = auto()

    # === Arithmetic Operators ===
    PLUS = auto()           # +
    MINUS = auto()          # -
    STAR = auto()           # *
    SLASH = auto()          # /
    CARET = auto()          # ^
    STAR_STAR = auto()      # **

    # === Comparison Operators ===
    EQUAL = auto()          # =
    NOT_EQUAL = auto()      # <>
    LESS = auto()           # <
    GREATER = auto()        # >
    LESS_EQUAL = auto()     # <=
    GREATER_EQUAL = auto()  # >=

    # === Delimiters ===
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    LBRACKET = auto()       # [
    RBRACKET = auto()       # ]
    LBRACE = auto()         # {
    RBRACE = auto()         # }
    COMMA = auto()          # ,
    COLON = auto()          # :
    SEMICOLON = auto()      # ;
    PIPE = auto()           # |
    EXCLAMATION = auto()    # !
    DOT = auto()            # .
    ELLIPSIS = auto()       # ...


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single lexical element.

    Attributes:
        type: The TokenType classification
        value: The token text (decimal text for numbers, unescaped text
            for strings, uppercase for keywords, "" for EOF)
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
    """
    type: TokenType
    value: str
    line: int
    column: int

    def __repr__(self) -> str:
        """Format token for debugging output."""
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.line, self.column)

    def is_keyword(self, *words: str) -> bool:
        """Return True if this is a KEYWORD token with one of the given values."""
        return self.type == TokenType.KEYWORD and self.value in words


SINGLE_CHAR_TOKENS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "/": TokenType.SLASH,
    "^": TokenType.CARET,
    "=": TokenType.EQUAL,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    ";": TokenType.SEMICOLON,
    "|": TokenType.PIPE,
    "!": TokenType.EXCLAMATION,
}


# =============================================================================
# Tokenizer Implementation
# =============================================================================

def _is_digit(char: str) -> bool:
    """ASCII digits only; str.isdigit() also accepts characters like '²'."""
    return char != "" and char in string.digits


class Tokenizer:
    """
    Tokenizes EduBASIC source text.

    Usage:
        tokens = Tokenizer(source_text).tokenize()

    The result always ends with exactly one EOF token whose value is the
    empty string. Any unrecognised input raises TokenizeError.
    """

    IDENT_START = string.ascii_letters
    IDENT_CHARS = string.ascii_letters + string.digits + "_"
    SIGILS = "%#$&"

    ESCAPE_SEQUENCES = {
        "n": "\n",
        "t": "\t",
        "r": "\r",
        "\\": "\\",
        '"': '"',
    }

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = 1
        self._column = 1

    def tokenize(self) -> list[Token]:
        """
        Scan the whole source.

        Returns:
            List of tokens terminated by an EOF token

        Raises:
            TokenizeError: On an unterminated string, a bad radix literal
                or an unexpected character
        """
        tokens: list[Token] = []
        while True:
            self._skip_whitespace_and_comments()
            if self._at_end():
                break
            tokens.append(self._scan_token())

        tokens.append(Token(TokenType.EOF, "", self._line, self._column))
        return tokens

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or "" past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume one character, keeping line/column up to date."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

        return char

    def _mark(self) -> tuple[int, int, int]:
        """Snapshot the scanner position for backtracking."""
        return self._pos, self._line, self._column

    def _reset(self, mark: tuple[int, int, int]) -> None:
        self._pos, self._line, self._column = mark

    def _error(self, message: str, line: int, column: int) -> TokenizeError:
        """Create a TokenizeError pointing at line/column."""
        lines = self.source.split("\n")
        source_line = lines[line - 1] if 0 < line <= len(lines) else None
        return TokenizeError(
            f"{message} at line {line}, column {column}",
            SourceLocation(line, column, self.filename),
            source_line,
        )

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace_and_comments(self) -> None:
        while not self._at_end():
            char = self._peek()

            if char in " \t\r\n":
                self._advance()
                continue

            if char == "'":
                while not self._at_end() and self._peek() != "\n":
                    self._advance()
                continue

            break

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        line = self._line
        column = self._column
        char = self._peek()

        if char == '"':
            return self._scan_string(line, column)

        if _is_digit(char) or (char == "." and _is_digit(self._peek(1))):
            return self._scan_number(line, column)

        if char == "&" and self._peek(1).upper() in ("H", "B"):
            return self._scan_radix_number(line, column)

        if char in self.IDENT_START:
            return self._scan_identifier(line, column)

        return self._scan_operator(line, column)

    def _scan_string(self, line: int, column: int) -> Token:
        """Scan a double-quoted string; the token value is the unescaped text."""
        self._advance()  # opening "

        chars = []
        while not self._at_end():
            char = self._peek()

            if char == '"':
                self._advance()
                return Token(TokenType.STRING, "".join(chars), line, column)

            if char == "\n":
                break

            if char == "\\":
                self._advance()
                if self._at_end():
                    break
                escaped = self._advance()
                chars.append(self.ESCAPE_SEQUENCES.get(escaped, escaped))
            else:
                chars.append(self._advance())

        raise self._error("Unterminated string", line, column)

    def _scan_digits(self) -> str:
        chars = []
        while _is_digit(self._peek()):
            chars.append(self._advance())
        return "".join(chars)

    def _scan_real_text(self) -> tuple[str, bool]:
        """
        Scan digits, one optional decimal point and an optional exponent.

        Returns:
            (text, is_real) where is_real is True if a decimal point or
            exponent was present
        """
        text = self._scan_digits()
        is_real = False

        if self._peek() == "." and _is_digit(self._peek(1)):
            self._advance()
            text += "." + self._scan_digits()
            is_real = True

        if self._peek() in ("E", "e"):
            sign = self._peek(1)
            if _is_digit(sign) or (sign in ("+", "-") and _is_digit(self._peek(2))):
                self._advance()
                exponent = "E"
                if sign in "+-":
                    exponent += self._advance()
                exponent += self._scan_digits()
                text += exponent
                is_real = True

        if text.startswith("."):
            text = "0" + text
        return text, is_real

    def _imaginary_suffix_follows(self) -> bool:
        """True if the next char is i/I and does not start an identifier."""
        if self._peek() not in ("i", "I"):
            return False
        following = self._peek(1)
        return following == "" or following not in self.IDENT_CHARS + self.SIGILS

    def _scan_number(self, line: int, column: int) -> Token:
        """
        Scan an integer, real, or complex literal.

        Complex literals take the forms <real>i and <real>(+|-)<real>i.
        The second form is attempted speculatively: if no i follows the
        second number, the scanner rewinds to just after the first one.
        """
        text, is_real = self._scan_real_text()

        if self._imaginary_suffix_follows():
            self._advance()
            return Token(TokenType.COMPLEX, text + "i", line, column)

        if self._peek() in ("+", "-") and (_is_digit(self._peek(1)) or self._peek(1) == "."):
            mark = self._mark()
            sign = self._advance()
            imag_text, _ = self._scan_real_text()
            if imag_text and self._imaginary_suffix_follows():
                self._advance()
                return Token(TokenType.COMPLEX, f"{text}{sign}{imag_text}i", line, column)
            self._reset(mark)

        token_type = TokenType.REAL if is_real else TokenType.INTEGER
        return Token(token_type, text, line, column)

    def _scan_radix_number(self, line: int, column: int) -> Token:
        """Scan &H hex or &B binary digits, normalised to decimal text."""
        self._advance()  # &
        radix_char = self._advance().upper()

        if radix_char == "H":
            digits = []
            while self._peek() and self._peek() in string.hexdigits:
                digits.append(self._advance())
            if not digits:
                raise self._error("Invalid hex number", line, column)
            return Token(TokenType.INTEGER, str(int("".join(digits), 16)), line, column)

        digits = []
        while self._peek() and self._peek() in "01_":
            char = self._advance()
            if char != "_":
                digits.append(char)
        if not digits:
            raise self._error("Invalid binary number", line, column)
        return Token(TokenType.INTEGER, str(int("".join(digits), 2)), line, column)

    def _scan_identifier(self, line: int, column: int) -> Token:
        """
        Scan an identifier or keyword.

        A sigil may follow the name, and an array rank suffix ([] or [,])
        may follow that. The suffix is only taken when the brackets hold
        nothing but commas, so a[1] still scans as a, [, 1, ].
        """
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())
        name = "".join(chars)

        if self._peek() and self._peek() in self.SIGILS:
            name += self._advance()

        upper = name.upper()
        if upper in KEYWORDS:
            return Token(TokenType.KEYWORD, upper, line, column)

        if self._peek() == "[":
            offset = 1
            while self._peek(offset) == ",":
                offset += 1
            if self._peek(offset) == "]":
                for _ in range(offset + 1):
                    name += self._advance()

        return Token(TokenType.IDENTIFIER, name, line, column)

    def _scan_operator(self, line: int, column: int) -> Token:
        char = self._advance()

        if char == "*":
            if self._peek() == "*":
                self._advance()
                return Token(TokenType.STAR_STAR, "**", line, column)
            return Token(TokenType.STAR, "*", line, column)

        if char == "<":
            if self._peek() == ">":
                self._advance()
                return Token(TokenType.NOT_EQUAL, "<>", line, column)
            if self._peek() == "=":
                self._advance()
                return Token(TokenType.LESS_EQUAL, "<=", line, column)
            return Token(TokenType.LESS, "<", line, column)

        if char == ">":
            if self._peek() == "=":
                self._advance()
                return Token(TokenType.GREATER_EQUAL, ">=", line, column)
            return Token(TokenType.GREATER, ">", line, column)

        if char == ".":
            if self._peek() == "." and self._peek(1) == ".":
                self._advance()
                self._advance()
                return Token(TokenType.ELLIPSIS, "...", line, column)
            return Token(TokenType.DOT, ".", line, column)

        if char in SINGLE_CHAR_TOKENS:
            return Token(SINGLE_CHAR_TOKENS[char], char, line, column)

        raise self._error(f"Unexpected character '{char}'", line, column)


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(source: str, filename: Optional[str] = None) -> list[Token]:
    """
    Tokenize source text.

    Args:
        source: EduBASIC source text
        filename: Optional file name for error locations

    Returns:
        List of tokens ending with EOF

    Raises:
        TokenizeError: If the text cannot be tokenized
    """
    return Tokenizer(source, filename or "<input>").tokenize()
