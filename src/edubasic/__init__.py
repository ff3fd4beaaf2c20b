"""
EduBASIC - An Interpreter for a BASIC-Derived Teaching Language
===============================================================

EduBASIC programs are line-oriented: one statement per line, with
structured blocks (IF, FOR, WHILE, DO, SELECT CASE, SUB, TRY) closed by
explicit terminators. This package tokenizes and parses programs,
links their blocks, and executes them one statement at a time.

Main Components
---------------
- **lexer**: Tokenizer with sigil-typed identifiers and &H/&B literals
- **expression_parser / expressions**: Expression grammar and evaluation
- **parsers / statements**: One parser and one statement class per keyword
- **line_parser**: Per-line parsing with display indentation
- **analyzer**: Block linking and structural error reporting
- **runtime**: Step-based execution engine
- **devices**: Graphics canvas (Pillow), audio log, console, virtual files
- **interpreter**: Session facade used by hosts and the CLI

Quick Start
-----------
    >>> from edubasic import Interpreter, InterpreterConfig
    >>> interpreter = Interpreter(InterpreterConfig(echo_console=False))
    >>> interpreter.load("FOR i% = 1 TO 3\\nPRINT i%\\nNEXT i%")
    []
    >>> result = interpreter.run()
    >>> interpreter.console.text
    '1\\n2\\n3\\n'

Or use the command-line tool:
    $ edubasic run hello.bas
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from edubasic.errors import (
    BasicRuntimeError,
    EduBasicError,
    FatalRuntimeError,
    FileSystemError,
    ProgramStructureError,
    SourceLocation,
    StructuralError,
    ThrownError,
    TokenizeError,
)
from edubasic.config import InterpreterConfig, get_default_config, set_default_config
from edubasic.lexer import Token, TokenType, tokenize
from edubasic.line_parser import LineParser, ParsedLine, format_lines, parse_program
from edubasic.program import Program
from edubasic.links import LinkKind, LinkTable
from edubasic.analyzer import AnalysisResult, ProgramAnalyzer
from edubasic.context import ExecutionContext, InputState
from edubasic.devices import Devices
from edubasic.runtime import RuntimeEngine, StepOutcome
from edubasic.interpreter import Diagnostic, Interpreter, RunResult, SessionStatus

__all__ = [
    "__version__",
    # Errors
    "BasicRuntimeError",
    "EduBasicError",
    "FatalRuntimeError",
    "FileSystemError",
    "ProgramStructureError",
    "SourceLocation",
    "StructuralError",
    "ThrownError",
    "TokenizeError",
    # Configuration
    "InterpreterConfig",
    "get_default_config",
    "set_default_config",
    # Parsing
    "Token",
    "TokenType",
    "tokenize",
    "LineParser",
    "ParsedLine",
    "format_lines",
    "parse_program",
    # Linking
    "Program",
    "LinkKind",
    "LinkTable",
    "AnalysisResult",
    "ProgramAnalyzer",
    # Execution
    "ExecutionContext",
    "InputState",
    "Devices",
    "RuntimeEngine",
    "StepOutcome",
    # Sessions
    "Diagnostic",
    "Interpreter",
    "RunResult",
    "SessionStatus",
]
