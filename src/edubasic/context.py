"""
Execution Context
=================

Mutable interpreter state for one program run:

- global variables, and the call-frame stack of SUB invocations
- the program counter and the GOSUB return stack
- the control-frame stack of open blocks (IF, FOR, TRY, ...)
- keyboard input snapshot and queued INPUT lines
- random number generator, sleep request, DATA pointer
- the virtual file system (which owns the open file handles)

Variable names are case-insensitive; they are stored upper-cased with
their sigil and rank suffix (COUNT%, LIST$[]).
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional
import logging
import random

from edubasic.errors import BasicRuntimeError
from edubasic.values import coerce_for_name, default_for_name

logger = logging.getLogger(__name__)


# =============================================================================
# Input Snapshot
# =============================================================================

@dataclass(frozen=True)
class InputState:
    """
    Keyboard state handed to the engine on each step.

    Attributes:
        keys_down: Keys currently held
        pending_keys: Key presses not yet consumed by INKEY
    """
    keys_down: frozenset = frozenset()
    pending_keys: tuple = ()


# =============================================================================
# Frames
# =============================================================================

@dataclass
class ControlFrame:
    """
    An open block. start and end are the opener and closer lines.
    """
    kind: str
    start: int
    end: int

    def contains(self, line: int) -> bool:
        return self.start <= line <= self.end


@dataclass
class IfFrame(ControlFrame):
    branch_taken: bool = False


@dataclass
class SelectFrame(ControlFrame):
    test_value: Any = None
    matched: bool = False


@dataclass
class ForFrame(ControlFrame):
    variable: str = ""
    limit: Any = 0
    step: Any = 1


@dataclass
class TryFrame(ControlFrame):
    """
    Attributes:
        catch_line: Line of CATCH, if any
        finally_line: Line of FINALLY, if any
        phase: "try", "catch" or "finally"
        pending: Error to re-raise at END TRY
        resume_line: Jump target to continue at after END TRY, when a
            jump out of the block ran FINALLY first
    """
    catch_line: Optional[int] = None
    finally_line: Optional[int] = None
    phase: str = "try"
    pending: Optional[BasicRuntimeError] = None
    resume_line: Optional[int] = None


@dataclass
class CallFrame:
    """
    An active SUB invocation.

    Attributes:
        name: SUB name
        return_line: Line to resume at after END SUB
        control_depth: Control-frame stack depth at the CALL
        locals: Local variables (parameters and LOCAL declarations)
        bindings: BYREF parameters, mapped to (scope, key) in the caller
    """
    name: str
    return_line: int
    control_depth: int
    locals: dict[str, Any] = field(default_factory=dict)
    bindings: dict[str, tuple[dict, str]] = field(default_factory=dict)


# =============================================================================
# Execution Context
# =============================================================================

class ExecutionContext:
    """
    State of a running program.

    Attributes:
        pc: Index of the next statement to execute
        globals: Global variables
        call_frames: Active SUB invocations, innermost last
        control_frames: Open blocks, innermost last
        gosub_stack: GOSUB return lines
        input_state: Keyboard snapshot for the current step
        pending_input: Lines queued for INPUT
        sleep_request: Milliseconds requested by the last SLEEP
        file_system: Virtual file store used by file statements
    """

    def __init__(self, file_system=None, seed: Optional[int] = None):
        self.file_system = file_system
        self._seed = seed
        self.reset()

    def reset(self) -> None:
        """Clear all run state. The file system contents are kept."""
        self.pc = 0
        self.globals: dict[str, Any] = {}
        self.call_frames: list[CallFrame] = []
        self.control_frames: list[ControlFrame] = []
        self.gosub_stack: list[int] = []
        self.input_state = InputState()
        self.pending_input: deque[str] = deque()
        self._consumed_keys = 0
        self.sleep_request: Optional[int] = None
        self.data_pointer = 0
        self.rng = random.Random(self._seed)
        self.settings: dict[str, bool] = {}
        if self.file_system is not None:
            self.file_system.close_all()

    # =========================================================================
    # Variables
    # =========================================================================

    @staticmethod
    def _key(name: str) -> str:
        return name.upper()

    @property
    def current_frame(self) -> Optional[CallFrame]:
        return self.call_frames[-1] if self.call_frames else None

    def resolve_slot(self, name: str, create: bool = True) -> Optional[tuple[dict, str]]:
        """
        Find the scope that holds name: a BYREF binding, a local, or a
        global. With create, an unknown name is created as a global
        holding its default value.
        """
        key = self._key(name)
        frame = self.current_frame
        if frame is not None:
            if key in frame.bindings:
                return frame.bindings[key]
            if key in frame.locals:
                return frame.locals, key
        if key in self.globals:
            return self.globals, key
        if not create:
            return None
        self.globals[key] = default_for_name(name)
        return self.globals, key

    def get_variable(self, name: str) -> Any:
        slot = self.resolve_slot(name, create=False)
        if slot is None:
            return default_for_name(name)
        scope, key = slot
        return scope[key]

    def set_variable(self, name: str, value: Any) -> None:
        value = coerce_for_name(name, value)
        scope, key = self.resolve_slot(name, create=True)
        scope[key] = value

    def has_variable(self, name: str) -> bool:
        return self.resolve_slot(name, create=False) is not None

    def ensure_variable(self, name: str) -> Any:
        """Return the stored value of name, creating it with its default."""
        scope, key = self.resolve_slot(name, create=True)
        return scope[key]

    def declare_local(self, name: str, value: Any) -> None:
        """LOCAL: create name in the current SUB (globally at top level)."""
        value = coerce_for_name(name, value)
        frame = self.current_frame
        if frame is None:
            self.globals[self._key(name)] = value
        else:
            frame.bindings.pop(self._key(name), None)
            frame.locals[self._key(name)] = value

    def variables(self) -> dict[str, Any]:
        """Snapshot of the variables visible at the current point."""
        visible = dict(self.globals)
        frame = self.current_frame
        if frame is not None:
            visible.update(frame.locals)
            for key, (scope, target) in frame.bindings.items():
                visible[key] = scope[target]
        return visible

    # =========================================================================
    # Control Frames
    # =========================================================================

    def push_frame(self, frame: ControlFrame) -> ControlFrame:
        """Push frame, replacing an open frame for the same block."""
        self.remove_frame(frame.start)
        self.control_frames.append(frame)
        return frame

    def find_frame(self, start: int, kinds: Iterable[str] = ()) -> Optional[ControlFrame]:
        """Innermost open frame whose opener is line start."""
        kinds = tuple(kinds)
        floor = self.frame_floor()
        for frame in reversed(self.control_frames[floor:]):
            if frame.start == start and (not kinds or frame.kind in kinds):
                return frame
        return None

    def require_frame(self, start: int, kinds: Iterable[str], statement: str) -> ControlFrame:
        frame = self.find_frame(start, kinds)
        if frame is None:
            raise BasicRuntimeError(f"{statement} without an active block")
        return frame

    def remove_frame(self, start: int) -> None:
        """Pop the frame opened at start and every frame above it."""
        floor = self.frame_floor()
        for index in range(len(self.control_frames) - 1, floor - 1, -1):
            if self.control_frames[index].start == start:
                del self.control_frames[index:]
                return

    def frame_floor(self) -> int:
        """First control-frame index owned by the current SUB invocation."""
        frame = self.current_frame
        return frame.control_depth if frame is not None else 0

    def unwind_to(self, line: int) -> int:
        """
        Pop frames of the current invocation whose block excludes line.

        A TRY block with a FINALLY that has not started yet stops the
        unwinding: its FINALLY runs first and END TRY resumes the jump.

        Returns:
            The line to continue at
        """
        floor = self.frame_floor()
        while len(self.control_frames) > floor and not self.control_frames[-1].contains(line):
            frame = self.control_frames[-1]
            if isinstance(frame, TryFrame) and frame.finally_line is not None and frame.phase != "finally":
                frame.phase = "finally"
                frame.resume_line = line
                logger.debug("Running FINALLY of line %d before jumping to line %d", frame.start + 1, line + 1)
                return frame.finally_line + 1
            self.control_frames.pop()
            logger.debug("Unwound %s block at line %d", frame.kind, frame.start + 1)
        return line

    # =========================================================================
    # Input, Randomness and Timing
    # =========================================================================

    def set_input_state(self, state: InputState) -> None:
        if state is not self.input_state:
            self.input_state = state
            self._consumed_keys = 0

    def take_key(self) -> str:
        """Next unconsumed key press for INKEY ("" when none)."""
        keys = self.input_state.pending_keys
        if self._consumed_keys >= len(keys):
            return ""
        key = keys[self._consumed_keys]
        self._consumed_keys += 1
        return key

    def queue_input(self, *lines: str) -> None:
        self.pending_input.extend(lines)

    def take_input_line(self) -> Optional[str]:
        return self.pending_input.popleft() if self.pending_input else None

    def random(self) -> float:
        return self.rng.random()

    def randomize(self, seed: Optional[Any] = None) -> None:
        self.rng.seed(seed)
