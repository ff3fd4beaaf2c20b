"""
Interpreter Session
===================

One EduBASIC session: a program, its run state and its devices. The
Interpreter serializes the three things a host does with a program:
editing and re-parsing source lines, checking the program for errors,
and stepping or running it.

Example:
    interpreter = Interpreter()
    interpreter.load('PRINT "Hello"')
    result = interpreter.run()
    interpreter.console.text    # "Hello\\n"
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional
import logging
import time

from edubasic.config import InterpreterConfig, get_default_config
from edubasic.context import ExecutionContext, InputState
from edubasic.devices import BufferConsole, Devices, VirtualFileSystem
from edubasic.errors import BasicRuntimeError, EduBasicError
from edubasic.line_parser import LineParser, ParsedLine, format_lines
from edubasic.program import Program
from edubasic.runtime import RuntimeEngine, StepOutcome

logger = logging.getLogger(__name__)


# =============================================================================
# Session Types
# =============================================================================

class SessionStatus(Enum):
    EMPTY = auto()      # nothing loaded
    READY = auto()      # loaded, not started (or reset)
    RUNNING = auto()
    ENDED = auto()
    ERROR = auto()      # parse, structural or runtime error


@dataclass(frozen=True)
class Diagnostic:
    """
    A problem reported for one program line.

    Attributes:
        line: Zero-based line index
        message: Error text
        kind: "parse" or "structure"
    """
    line: int
    message: str
    kind: str = "parse"

    def __str__(self) -> str:
        return f"line {self.line + 1}: {self.message}"


@dataclass
class RunResult:
    """
    Outcome of Interpreter.run().

    Attributes:
        steps: Statements executed by this call
        status: Session status afterwards
        error: The error that stopped the run, if any
        diagnostics: Parse and structural problems that prevented the run
    """
    steps: int
    status: SessionStatus
    error: Optional[EduBasicError] = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and not self.diagnostics

    @property
    def step_limit_reached(self) -> bool:
        return self.status == SessionStatus.RUNNING


# =============================================================================
# Interpreter
# =============================================================================

class Interpreter:
    """
    Session facade over Program, ExecutionContext and RuntimeEngine.

    Attributes:
        config: Session configuration
        devices: Collaborators handed to the engine
        program: The loaded program
        parsed_lines: ParsedLine for every program line
        status: Current SessionStatus
    """

    def __init__(self, config: Optional[InterpreterConfig] = None, devices: Optional[Devices] = None):
        self.config = config if config is not None else get_default_config()
        self.devices = devices if devices is not None else self._default_devices()
        self.program = Program()
        self.parsed_lines: list[ParsedLine] = []
        self.context = ExecutionContext(self.devices.file_system, seed=self.config.rng_seed)
        self.engine = RuntimeEngine(self.program, self.context, self.devices)
        self.status = SessionStatus.EMPTY
        self.last_error: Optional[EduBasicError] = None

    def _default_devices(self) -> Devices:
        config = self.config
        return Devices.in_memory(config.canvas_width, config.canvas_height, echo=config.echo_console)

    @property
    def console(self) -> Optional[BufferConsole]:
        return self.devices.console

    @property
    def file_system(self) -> Optional[VirtualFileSystem]:
        return self.devices.file_system

    # =========================================================================
    # Source Editing
    # =========================================================================

    def load(self, source: str) -> list[Diagnostic]:
        """
        Replace the program with the lines of source.

        Returns:
            Parse and structural diagnostics (empty when runnable)
        """
        return self._reparse(source.splitlines())

    @property
    def source_lines(self) -> list[str]:
        return list(self.program.source_lines)

    def set_line(self, index: int, text: str) -> list[Diagnostic]:
        """Replace line index (appending when index is one past the end)."""
        lines = self.source_lines
        if index == len(lines):
            lines.append(text)
        else:
            if index < 0 or index > len(lines):
                raise IndexError(f"Line index out of range: {index}")
            lines[index] = text
        return self._reparse(lines)

    def insert_line(self, index: int, text: str) -> list[Diagnostic]:
        lines = self.source_lines
        if index < 0 or index > len(lines):
            raise IndexError(f"Line index out of range: {index}")
        lines.insert(index, text)
        return self._reparse(lines)

    def delete_line(self, index: int) -> list[Diagnostic]:
        lines = self.source_lines
        if index < 0 or index >= len(lines):
            raise IndexError(f"Line index out of range: {index}")
        del lines[index]
        return self._reparse(lines)

    def _reparse(self, lines: list[str]) -> list[Diagnostic]:
        # Indentation depends on every earlier line, so edits re-parse all of them
        parser = LineParser()
        self.program.clear()
        self.parsed_lines = []
        for index, text in enumerate(lines):
            parsed = parser.parse_line(index, text)
            self.program.append_line(parsed.statement, text)
            self.parsed_lines.append(parsed)
        self.reset()
        diagnostics = self.diagnostics()
        if diagnostics:
            self.status = SessionStatus.ERROR
        logger.debug("Loaded %d lines, %d diagnostics", len(lines), len(diagnostics))
        return diagnostics

    def formatted_source(self) -> str:
        """Canonical, indented text of the loaded program."""
        if not self.parsed_lines:
            return ""
        return format_lines(self.parsed_lines)

    # =========================================================================
    # Checking
    # =========================================================================

    def diagnostics(self) -> list[Diagnostic]:
        """Parse errors and structural errors, ordered by line."""
        found = [
            Diagnostic(parsed.line_number, parsed.error_message, "parse")
            for parsed in self.parsed_lines
            if parsed.has_error
        ]
        analysis = self.engine.relink()
        found.extend(Diagnostic(e.line, e.message, "structure") for e in analysis.errors)
        found.sort(key=lambda d: d.line)
        return found

    @property
    def is_runnable(self) -> bool:
        return self.program.line_count() > 0 and not self.diagnostics()

    # =========================================================================
    # Execution
    # =========================================================================

    def reset(self) -> None:
        """Rewind to the first line with fresh variables; queued input is dropped."""
        self.engine.reset()
        self.last_error = None
        self.status = SessionStatus.READY if self.program.line_count() else SessionStatus.EMPTY

    def queue_input(self, *lines: str) -> None:
        """Queue lines for INPUT statements."""
        self.context.queue_input(*lines)

    def step(self, input_state: Optional[InputState] = None) -> StepOutcome:
        """
        Execute one statement.

        Raises:
            ProgramStructureError: If the program has structural errors
            BasicRuntimeError: If the statement fails outside any TRY
        """
        try:
            outcome = self.engine.step(input_state)
        except EduBasicError as e:
            self.last_error = e
            self.status = SessionStatus.ERROR
            raise
        self.status = SessionStatus.ENDED if outcome == StepOutcome.ENDED else SessionStatus.RUNNING
        return outcome

    def run(
        self,
        max_steps: Optional[int] = None,
        input_state: Optional[InputState] = None,
    ) -> RunResult:
        """
        Run from the current position until the program ends, fails, or
        max_steps statements (default: config.max_steps) have executed.

        Errors are returned in the result rather than raised.
        """
        diagnostics = self.diagnostics()
        if diagnostics:
            self.status = SessionStatus.ERROR
            return RunResult(0, self.status, diagnostics=diagnostics)

        limit = max_steps if max_steps is not None else self.config.max_steps
        steps = 0
        outcome = StepOutcome.RUNNING
        try:
            while steps < limit and outcome != StepOutcome.ENDED:
                outcome = self.engine.step(input_state)
                steps += 1
                if outcome == StepOutcome.SLEEPING and self.config.honor_sleep:
                    time.sleep(self.context.sleep_request / 1000)
        except BasicRuntimeError as e:
            self.last_error = e
            self.status = SessionStatus.ERROR
            if self.console is not None:
                self.console.print_error(str(e))
            logger.debug("Run stopped by runtime error at line %s", e.line)
            return RunResult(steps, self.status, e)

        self.status = SessionStatus.ENDED if self.engine.ended else SessionStatus.RUNNING
        if self.status == SessionStatus.RUNNING:
            logger.debug("Run paused after %d steps", steps)
        return RunResult(steps, self.status)
