"""
EduBASIC Error Hierarchy
========================

This module defines the exception hierarchy for the interpreter. All
exceptions inherit from EduBasicError, allowing callers to catch every
interpreter-related error with a single except clause.

Exception Hierarchy
-------------------
EduBasicError (base)
├── TokenizeError - unrecognised character, unterminated string, bad radix literal
├── ProgramStructureError - program has block-linking errors and cannot run
└── BasicRuntimeError - invalid operation while executing a statement
    ├── ThrownError - raised by the THROW statement
    └── FileSystemError - misuse of the virtual file store

Parse failures are deliberately absent from this hierarchy: statement
parsers report them as ParseResult failures so that one bad line never
aborts parsing of the rest of a program. Block-linking problems are
collected as StructuralError records rather than raised.

Error messages follow this format:
    filename:line:column: error: description
    source_line_text
        ^ (pointer to error location)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class EduBasicError(Exception):
    """
    Base exception for all interpreter errors.

        try:
            interpreter.run()
        except EduBasicError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in program source, used for error reporting.

    Attributes:
        line: Line number (0-indexed program line, as used by the analyzer)
        column: Column number (1-indexed within the line)
        filename: Name of the source file (or "<input>" for string input)
    """
    line: int
    column: int = 0
    filename: str = "<input>"

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        if self.column:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


# =============================================================================
# Located Errors
# =============================================================================

class LocatedError(EduBasicError):
    """
    Error that carries an optional source location and source text.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the message with location and a caret under the column.

        Example output:
            <input>:1:9: error: Unexpected character '@' at line 1, column 9
                PRINT x @ 2
                        ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        return "\n".join(parts)


class TokenizeError(LocatedError):
    """
    Fatal error while tokenizing a single line.

    The line parser wraps the line as an unparsable placeholder that
    carries this message; other lines are unaffected.
    """
    pass


# =============================================================================
# Structural (Block-Linking) Errors
# =============================================================================

@dataclass(frozen=True)
class StructuralError:
    """
    A block-linking problem found by the analyzer.

    Attributes:
        line: Program line index (zero-based) the problem is attributed to
        message: Human-readable description, e.g. "FOR: missing NEXT"
    """
    line: int
    message: str

    def __str__(self) -> str:
        return f"line {self.line + 1}: {self.message}"


class ProgramStructureError(EduBasicError):
    """
    Raised when execution is attempted on a program with link errors.

    Attributes:
        errors: The structural errors reported by the analyzer
    """

    def __init__(self, errors: list[StructuralError]):
        self.errors = list(errors)
        summary = "; ".join(str(e) for e in self.errors[:5])
        if len(self.errors) > 5:
            summary += f"; ... ({len(self.errors) - 5} more)"
        super().__init__(f"Program has structural errors: {summary}")


# =============================================================================
# Runtime Errors
# =============================================================================

class BasicRuntimeError(EduBasicError):
    """
    Error raised while executing a statement.

    Runtime errors are recoverable only through the language's own
    TRY/CATCH; otherwise they are fatal to the current step and are
    reported to the caller with the text of the failing statement.

    Attributes:
        message: The error description (what CATCH binds)
        line: Program line index (zero-based) of the failing statement, once known
        statement_text: Canonical text of the failing statement, once known
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        statement_text: Optional[str] = None,
    ):
        self.message = message
        self.line = line
        self.statement_text = statement_text
        super().__init__(message)

    def attach(self, line: int, statement_text: str) -> "BasicRuntimeError":
        """Record where the error happened, keeping the first location seen."""
        if self.line is None:
            self.line = line
            self.statement_text = statement_text
        return self

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line + 1}: {self.message}\n    {self.statement_text}"


class ThrownError(BasicRuntimeError):
    """Error raised explicitly by a THROW statement."""
    pass


class FileSystemError(BasicRuntimeError):
    """
    Misuse of the virtual file store.

    Examples:
        - Unknown or closed file handle
        - Writing to a handle opened for READ
        - Path does not exist, or is a directory where a file is expected
    """
    pass


class FatalRuntimeError(BasicRuntimeError):
    """
    Runtime error that TRY/CATCH never handles.

    Raised for executing a line that failed to parse and for missing
    analyzer links. The step fails and the caller sees the error.
    """
    pass
