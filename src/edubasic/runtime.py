"""
Runtime Engine
==============

Executes a linked Program one statement per step() call.

Each step:

1. Re-links the program if it changed since the last analysis, and
   refuses to run while structural errors remain
2. Executes the statement at context.pc
3. Applies the outcome: CONTINUE advances, Jump moves the program
   counter (optionally leaving blocks), END stops
4. Routes a BasicRuntimeError to the innermost TRY frame that can
   handle it, or lets it propagate with the program counter left on
   the failing line

The engine also serves the statements: link lookups, device access
and UI switch requests all go through it.

Example:
    engine = RuntimeEngine(program, devices=Devices.in_memory())
    while engine.step() != StepOutcome.ENDED:
        pass
"""

from enum import Enum, auto
from typing import Optional
import logging
import time

from edubasic.analyzer import AnalysisResult, ProgramAnalyzer
from edubasic.context import ExecutionContext, InputState, TryFrame
from edubasic.devices import Devices
from edubasic.errors import BasicRuntimeError, FatalRuntimeError, ProgramStructureError
from edubasic.links import LinkKind, LinkTable
from edubasic.program import Program
from edubasic.statements.base import ExecutionResult, Jump

logger = logging.getLogger(__name__)

# Device attribute -> name used in "No ... attached" errors
DEVICE_NAMES = {
    "graphics": "graphics",
    "audio": "audio",
    "console": "console",
    "file_system": "file system",
}


class StepOutcome(Enum):
    RUNNING = auto()
    SLEEPING = auto()   # the caller should wait context.sleep_request ms
    ENDED = auto()


class RuntimeEngine:
    """
    Step-based executor for one program and one execution context.

    Attributes:
        program: The program being run
        context: Mutable run state
        devices: Collaborators the statements act on
        links: Links from the most recent analysis
        analysis: The most recent analysis result
    """

    def __init__(
        self,
        program: Program,
        context: Optional[ExecutionContext] = None,
        devices: Optional[Devices] = None,
    ):
        self.program = program
        self.devices = devices if devices is not None else Devices()
        self.context = context if context is not None else ExecutionContext(self.devices.file_system)
        self.links = LinkTable()
        self.analysis: Optional[AnalysisResult] = None
        self._linked_version: Optional[int] = None
        self._graphics_requested = False
        self.ended = False

    # =========================================================================
    # Linking
    # =========================================================================

    def relink(self) -> AnalysisResult:
        self.analysis = ProgramAnalyzer(self.links).analyze(self.program)
        self._linked_version = self.program.version
        return self.analysis

    def ensure_linked(self) -> AnalysisResult:
        """
        Re-link when the program changed.

        Raises:
            ProgramStructureError: If the program has structural errors
        """
        if self.analysis is None or self._linked_version != self.program.version:
            self.relink()
        if self.analysis.errors:
            raise ProgramStructureError(self.analysis.errors)
        return self.analysis

    def link(self, kind: LinkKind, line: int) -> int:
        """Linked target of line, for statements that require one."""
        target = self.links.get(kind, line)
        if target is None:
            raise FatalRuntimeError(f"Internal error: no {kind.name} link for line {line + 1}")
        return target

    # =========================================================================
    # Devices
    # =========================================================================

    def require(self, device: str):
        """
        Return the named device, raising when it is not attached.

        The first graphics access of a run asks the UI to show the
        graphics view.
        """
        value = getattr(self.devices, device)
        if value is None:
            raise BasicRuntimeError(f"No {DEVICE_NAMES[device]} device attached")
        if device == "graphics" and not self._graphics_requested:
            self._graphics_requested = True
            self.request_switch("graphics")
        return value

    def request_switch(self, target: str) -> None:
        if self.devices.ui is not None:
            self.devices.ui.request_switch(target)

    # =========================================================================
    # Execution
    # =========================================================================

    def reset(self) -> None:
        """Start over from the first line with fresh run state."""
        self.context.reset()
        self._graphics_requested = False
        self.ended = False

    def step(self, input_state: Optional[InputState] = None) -> StepOutcome:
        """
        Execute one statement.

        Raises:
            ProgramStructureError: If the program cannot be linked
            BasicRuntimeError: If the statement fails outside any TRY
        """
        self.ensure_linked()
        context = self.context
        if input_state is not None:
            context.set_input_state(input_state)
        context.sleep_request = None

        line = context.pc
        statement = self.program.get_statement(line)
        if statement is None:
            self.ended = True
            return StepOutcome.ENDED

        try:
            outcome = statement.execute(context, self)
        except BasicRuntimeError as e:
            e.attach(line, str(statement))
            if isinstance(e, FatalRuntimeError) or not self._handle_error(e):
                raise
            return StepOutcome.RUNNING

        if outcome is ExecutionResult.END:
            context.pc = self.program.line_count()
            self.ended = True
            return StepOutcome.ENDED
        if isinstance(outcome, Jump):
            target = context.unwind_to(outcome.line) if outcome.unwind else outcome.line
            logger.debug("Jump from line %d to line %d", line + 1, target + 1)
            context.pc = target
        else:
            context.pc = line + 1

        if context.pc >= self.program.line_count():
            self.ended = True
            return StepOutcome.ENDED
        if context.sleep_request is not None:
            return StepOutcome.SLEEPING
        return StepOutcome.RUNNING

    def run(
        self,
        max_steps: Optional[int] = None,
        input_state: Optional[InputState] = None,
        honor_sleep: bool = False,
    ) -> int:
        """
        Step until the program ends or max_steps statements have run.

        Returns:
            Number of steps executed
        """
        steps = 0
        while max_steps is None or steps < max_steps:
            outcome = self.step(input_state)
            steps += 1
            if outcome == StepOutcome.ENDED:
                break
            if outcome == StepOutcome.SLEEPING and honor_sleep:
                time.sleep(self.context.sleep_request / 1000)
        return steps

    # =========================================================================
    # Error Routing
    # =========================================================================

    def _handle_error(self, error: BasicRuntimeError) -> bool:
        """
        Send error to the innermost TRY frame that can take it.

        Returns:
            True if a frame took the error and the program counter moved
        """
        frames = self.context.control_frames
        for index in range(len(frames) - 1, -1, -1):
            frame = frames[index]
            if not isinstance(frame, TryFrame):
                continue
            if frame.phase == "try" and frame.catch_line is not None:
                self._enter_handler(index)
                frame.phase = "catch"
                self._bind_catch_variable(frame.catch_line, error)
                self.context.pc = frame.catch_line + 1
                logger.debug("Caught '%s' in TRY at line %d", error.message, frame.start + 1)
                return True
            if frame.phase in ("try", "catch") and frame.finally_line is not None:
                self._enter_handler(index)
                frame.phase = "finally"
                frame.pending = error
                self.context.pc = frame.finally_line + 1
                logger.debug("Running FINALLY of line %d for '%s'", frame.start + 1, error.message)
                return True
        return False

    def _enter_handler(self, index: int) -> None:
        """Drop the frames and SUB invocations opened inside the TRY frame at index."""
        context = self.context
        del context.control_frames[index + 1:]
        while context.call_frames and context.call_frames[-1].control_depth > index:
            context.call_frames.pop()

    def _bind_catch_variable(self, catch_line: int, error: BasicRuntimeError) -> None:
        catch = self.program.get_statement(catch_line)
        if catch.variable is not None:
            self.context.set_variable(catch.variable, error.message)
