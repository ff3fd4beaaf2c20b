"""
Control-Flow Statements
=======================

Block statements find their partners through the runtime's link table
(filled in by the analyzer) and keep per-block state in control frames
on the execution context.

| Block         | Opener       | Clauses         | Closer      |
|---------------|--------------|-----------------|-------------|
| if            | IF           | ELSEIF, ELSE    | END IF      |
| unless        | UNLESS       | ELSE            | END UNLESS  |
| select        | SELECT CASE  | CASE            | END SELECT  |
| for           | FOR          |                 | NEXT        |
| while         | WHILE        |                 | WEND        |
| do            | DO           |                 | LOOP        |
| until         | UNTIL        |                 | UEND        |
| sub           | SUB          |                 | END SUB     |
| try           | TRY          | CATCH, FINALLY  | END TRY     |

Error routing for TRY blocks lives in the runtime engine; the statements
here only handle the normal (non-error) path through a block.
"""

from dataclasses import dataclass, field
from typing import Any, Optional
import logging

from edubasic.context import CallFrame, ControlFrame, ForFrame, IfFrame, SelectFrame, TryFrame
from edubasic.errors import BasicRuntimeError, ThrownError
from edubasic.expressions import Expression, VariableRef, compare_values
from edubasic.links import LinkKind
from edubasic.statements.base import ExecutionResult, Jump, Outcome, Statement, evaluate_condition
from edubasic.values import coerce_for_name, copy_value, format_value, to_number

logger = logging.getLogger(__name__)

MAX_CALL_DEPTH = 1000


def _opener(statement: Statement, runtime) -> int:
    return runtime.link(LinkKind.OPENER, statement.line_number)


# =============================================================================
# IF / ELSEIF / ELSE / UNLESS
# =============================================================================

@dataclass
class IfStatement(Statement):
    condition: Expression

    indent_adjustment = 1

    def execute(self, context, runtime) -> Outcome:
        end = runtime.link(LinkKind.END_LINE, self.line_number)
        taken = evaluate_condition(self.condition, context)
        context.push_frame(IfFrame("if", self.line_number, end, branch_taken=taken))
        if taken:
            return ExecutionResult.CONTINUE
        return Jump(runtime.link(LinkKind.NEXT_CLAUSE, self.line_number))

    def __str__(self) -> str:
        return f"IF {self.condition} THEN"


@dataclass
class ElseIfStatement(Statement):
    condition: Expression

    is_clause = True

    def execute(self, context, runtime) -> Outcome:
        frame = context.require_frame(_opener(self, runtime), ("if",), "ELSEIF")
        if frame.branch_taken:
            return Jump(frame.end)
        if evaluate_condition(self.condition, context):
            frame.branch_taken = True
            return ExecutionResult.CONTINUE
        return Jump(runtime.link(LinkKind.NEXT_CLAUSE, self.line_number))

    def __str__(self) -> str:
        return f"ELSEIF {self.condition} THEN"


@dataclass
class ElseStatement(Statement):
    is_clause = True

    def execute(self, context, runtime) -> Outcome:
        frame = context.require_frame(_opener(self, runtime), ("if", "unless"), "ELSE")
        if frame.branch_taken:
            return Jump(frame.end)
        frame.branch_taken = True
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return "ELSE"


@dataclass
class UnlessStatement(Statement):
    """UNLESS condition THEN: the body runs when condition is false."""
    condition: Expression

    indent_adjustment = 1

    def execute(self, context, runtime) -> Outcome:
        end = runtime.link(LinkKind.END_LINE, self.line_number)
        taken = not evaluate_condition(self.condition, context)
        context.push_frame(IfFrame("unless", self.line_number, end, branch_taken=taken))
        if taken:
            return ExecutionResult.CONTINUE
        return Jump(runtime.link(LinkKind.ELSE_OR_END, self.line_number))

    def __str__(self) -> str:
        return f"UNLESS {self.condition} THEN"


# =============================================================================
# SELECT CASE
# =============================================================================

@dataclass
class CaseSelector:
    """
    One CASE selector.

    Forms:
        value           CASE 1
        value TO end    CASE 1 TO 5
        IS op value     CASE IS >= 10
    """
    value: Expression
    end: Optional[Expression] = None
    relation: Optional[str] = None

    def matches(self, test: Any, context) -> bool:
        value = self.value.evaluate(context)
        if self.relation is not None:
            return compare_values(self.relation, test, value)
        if self.end is not None:
            end = self.end.evaluate(context)
            return compare_values(">=", test, value) and compare_values("<=", test, end)
        return compare_values("=", test, value)

    def __str__(self) -> str:
        if self.relation is not None:
            return f"IS {self.relation} {self.value}"
        if self.end is not None:
            return f"{self.value} TO {self.end}"
        return str(self.value)


@dataclass
class SelectCaseStatement(Statement):
    test: Expression

    indent_adjustment = 1

    def execute(self, context, runtime) -> Outcome:
        end = runtime.link(LinkKind.END_LINE, self.line_number)
        value = self.test.evaluate(context)
        context.push_frame(SelectFrame("select", self.line_number, end, test_value=value))
        first = runtime.links.get(LinkKind.FIRST_CASE, self.line_number)
        return Jump(first if first is not None else end)

    def __str__(self) -> str:
        return f"SELECT CASE {self.test}"


@dataclass
class CaseStatement(Statement):
    selectors: list[CaseSelector] = field(default_factory=list)
    is_else: bool = False

    is_clause = True

    def execute(self, context, runtime) -> Outcome:
        frame = context.require_frame(_opener(self, runtime), ("select",), "CASE")
        if frame.matched:
            return Jump(frame.end)
        if self.is_else or any(s.matches(frame.test_value, context) for s in self.selectors):
            frame.matched = True
            return ExecutionResult.CONTINUE
        return Jump(runtime.link(LinkKind.NEXT_CASE, self.line_number))

    def __str__(self) -> str:
        if self.is_else:
            return "CASE ELSE"
        return "CASE " + ", ".join(str(s) for s in self.selectors)


# =============================================================================
# Loops
# =============================================================================

def _loop_finished(value, limit, step) -> bool:
    return value > limit if step > 0 else value < limit


@dataclass
class ForStatement(Statement):
    """FOR variable = start TO end [STEP step]"""
    variable: str
    start: Expression
    end: Expression
    step: Optional[Expression] = None

    indent_adjustment = 1

    def execute(self, context, runtime) -> Outcome:
        next_line = runtime.link(LinkKind.END_LINE, self.line_number)
        context.set_variable(self.variable, self.start.evaluate(context))
        limit = to_number(self.end.evaluate(context), "FOR")
        step = to_number(self.step.evaluate(context), "FOR") if self.step else 1
        if step == 0:
            raise BasicRuntimeError("FOR: STEP cannot be zero")

        current = to_number(context.get_variable(self.variable), "FOR")
        if _loop_finished(current, limit, step):
            context.remove_frame(self.line_number)
            return Jump(next_line + 1)
        context.push_frame(ForFrame(
            "for", self.line_number, next_line,
            variable=self.variable, limit=limit, step=step,
        ))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        text = f"FOR {self.variable} = {self.start} TO {self.end}"
        if self.step is not None:
            text += f" STEP {self.step}"
        return text


@dataclass
class NextStatement(Statement):
    variable: Optional[str] = None

    indent_adjustment = -1

    def execute(self, context, runtime) -> Outcome:
        opener = _opener(self, runtime)
        frame = context.require_frame(opener, ("for",), "NEXT")
        value = to_number(context.get_variable(frame.variable), "NEXT") + frame.step
        context.set_variable(frame.variable, value)
        value = context.get_variable(frame.variable)
        if _loop_finished(value, frame.limit, frame.step):
            context.remove_frame(opener)
            return ExecutionResult.CONTINUE
        return Jump(opener + 1)

    def __str__(self) -> str:
        return f"NEXT {self.variable}" if self.variable else "NEXT"


@dataclass
class WhileStatement(Statement):
    condition: Expression

    indent_adjustment = 1

    def execute(self, context, runtime) -> Outcome:
        end = runtime.link(LinkKind.END_LINE, self.line_number)
        if evaluate_condition(self.condition, context):
            context.push_frame(ControlFrame("while", self.line_number, end))
            return ExecutionResult.CONTINUE
        context.remove_frame(self.line_number)
        return Jump(end + 1)

    def __str__(self) -> str:
        return f"WHILE {self.condition}"


@dataclass
class WendStatement(Statement):
    indent_adjustment = -1

    def execute(self, context, runtime) -> Outcome:
        return Jump(_opener(self, runtime))

    def __str__(self) -> str:
        return "WEND"


def _loop_condition_met(mode: str, condition: Expression, context) -> bool:
    """True when a DO/LOOP WHILE or UNTIL condition says keep looping."""
    value = evaluate_condition(condition, context)
    return value if mode == "WHILE" else not value


@dataclass
class DoStatement(Statement):
    """DO [WHILE condition | UNTIL condition]"""
    mode: Optional[str] = None
    condition: Optional[Expression] = None

    indent_adjustment = 1

    def execute(self, context, runtime) -> Outcome:
        end = runtime.link(LinkKind.END_LINE, self.line_number)
        if self.condition is not None and not _loop_condition_met(self.mode, self.condition, context):
            context.remove_frame(self.line_number)
            return Jump(end + 1)
        context.push_frame(ControlFrame("do", self.line_number, end))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        if self.condition is None:
            return "DO"
        return f"DO {self.mode} {self.condition}"


@dataclass
class LoopStatement(Statement):
    """LOOP [WHILE condition | UNTIL condition]"""
    mode: Optional[str] = None
    condition: Optional[Expression] = None

    indent_adjustment = -1

    def execute(self, context, runtime) -> Outcome:
        opener = _opener(self, runtime)
        if self.condition is None or _loop_condition_met(self.mode, self.condition, context):
            return Jump(opener)
        context.remove_frame(opener)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        if self.condition is None:
            return "LOOP"
        return f"LOOP {self.mode} {self.condition}"


@dataclass
class UntilStatement(Statement):
    """UNTIL condition ... UEND: the body runs, then UEND tests condition."""
    condition: Expression

    indent_adjustment = 1

    def execute(self, context, runtime) -> Outcome:
        end = runtime.link(LinkKind.END_LINE, self.line_number)
        context.push_frame(ControlFrame("until", self.line_number, end))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"UNTIL {self.condition}"


@dataclass
class UendStatement(Statement):
    indent_adjustment = -1

    def execute(self, context, runtime) -> Outcome:
        opener = _opener(self, runtime)
        until = runtime.program.get_statement(opener)
        if evaluate_condition(until.condition, context):
            context.remove_frame(opener)
            return ExecutionResult.CONTINUE
        return Jump(opener + 1)

    def __str__(self) -> str:
        return "UEND"


# =============================================================================
# SUB / CALL
# =============================================================================

@dataclass
class Parameter:
    name: str
    by_ref: bool = False

    def __str__(self) -> str:
        return f"BYREF {self.name}" if self.by_ref else self.name


@dataclass
class SubStatement(Statement):
    """
    SUB name [[BYREF] param, ...]

    Reached by falling through, the body is skipped; CALL enters it at
    the line after the SUB.
    """
    name: str
    parameters: list[Parameter] = field(default_factory=list)

    indent_adjustment = 1

    def execute(self, context, runtime) -> Outcome:
        return Jump(runtime.link(LinkKind.END_LINE, self.line_number) + 1)

    def __str__(self) -> str:
        if not self.parameters:
            return f"SUB {self.name}"
        return f"SUB {self.name} " + ", ".join(str(p) for p in self.parameters)


@dataclass
class CallStatement(Statement):
    name: str
    arguments: list[Expression] = field(default_factory=list)

    def execute(self, context, runtime) -> Outcome:
        sub_line = runtime.link(LinkKind.CALL_TARGET, self.line_number)
        sub = runtime.program.get_statement(sub_line)
        if len(self.arguments) != len(sub.parameters):
            raise BasicRuntimeError(
                f"SUB {sub.name} expects {len(sub.parameters)} argument(s), got {len(self.arguments)}"
            )
        if len(context.call_frames) >= MAX_CALL_DEPTH:
            raise BasicRuntimeError("Call stack overflow")

        frame = CallFrame(
            name=sub.name,
            return_line=self.line_number + 1,
            control_depth=len(context.control_frames),
        )
        for parameter, argument in zip(sub.parameters, self.arguments):
            key = parameter.name.upper()
            if parameter.by_ref:
                if not isinstance(argument, VariableRef):
                    raise BasicRuntimeError(f"BYREF parameter {parameter.name} requires a variable")
                frame.bindings[key] = context.resolve_slot(argument.name)
            else:
                value = copy_value(argument.evaluate(context))
                frame.locals[key] = coerce_for_name(parameter.name, value)

        context.call_frames.append(frame)
        logger.debug("CALL %s from line %d", sub.name, self.line_number + 1)
        return Jump(sub_line + 1)

    def __str__(self) -> str:
        if not self.arguments:
            return f"CALL {self.name}"
        return f"CALL {self.name} " + ", ".join(str(a) for a in self.arguments)


# =============================================================================
# Jumps and Labels
# =============================================================================

@dataclass
class LabelStatement(Statement):
    label: str

    @property
    def label_name(self) -> Optional[str]:
        return self.label

    def __str__(self) -> str:
        return f"LABEL {self.label}"


@dataclass
class GotoStatement(Statement):
    label: str

    def execute(self, context, runtime) -> Outcome:
        return Jump(runtime.link(LinkKind.JUMP_TARGET, self.line_number), unwind=True)

    def __str__(self) -> str:
        return f"GOTO {self.label}"


@dataclass
class GosubStatement(Statement):
    label: str

    def execute(self, context, runtime) -> Outcome:
        target = runtime.link(LinkKind.JUMP_TARGET, self.line_number)
        context.gosub_stack.append(self.line_number + 1)
        return Jump(target)

    def __str__(self) -> str:
        return f"GOSUB {self.label}"


@dataclass
class ReturnStatement(Statement):
    """RETURN from GOSUB; with nothing to return to, the program ends."""

    def execute(self, context, runtime) -> Outcome:
        if not context.gosub_stack:
            return ExecutionResult.END
        return Jump(context.gosub_stack.pop(), unwind=True)

    def __str__(self) -> str:
        return "RETURN"


# =============================================================================
# END / EXIT / CONTINUE
# =============================================================================

END_BLOCKS = ("IF", "UNLESS", "SELECT", "SUB", "TRY")


@dataclass
class EndStatement(Statement):
    """END (stop the program) or END IF/UNLESS/SELECT/SUB/TRY."""
    block: Optional[str] = None

    @property
    def indent_adjustment(self) -> int:
        return -1 if self.block else 0

    def execute(self, context, runtime) -> Outcome:
        if self.block is None:
            return ExecutionResult.END
        if self.block == "SUB":
            return self._return_from_sub(context)

        opener = _opener(self, runtime)
        if self.block == "TRY":
            frame = context.require_frame(opener, ("try",), "END TRY")
            context.remove_frame(opener)
            if frame.pending is not None:
                raise frame.pending
            if frame.resume_line is not None:
                return Jump(frame.resume_line, unwind=True)
            return ExecutionResult.CONTINUE

        context.remove_frame(opener)
        return ExecutionResult.CONTINUE

    @staticmethod
    def _return_from_sub(context) -> Outcome:
        frame = context.current_frame
        if frame is None:
            raise BasicRuntimeError("END SUB without CALL")
        del context.control_frames[frame.control_depth:]
        context.call_frames.pop()
        return Jump(frame.return_line)

    def __str__(self) -> str:
        return f"END {self.block}" if self.block else "END"


@dataclass
class ExitStatement(Statement):
    """EXIT FOR [variable] | WHILE | DO | SUB"""
    target: str
    variable: Optional[str] = None

    def execute(self, context, runtime) -> Outcome:
        return Jump(runtime.link(LinkKind.EXIT_TARGET, self.line_number), unwind=True)

    def __str__(self) -> str:
        if self.variable:
            return f"EXIT {self.target} {self.variable}"
        return f"EXIT {self.target}"


@dataclass
class ContinueStatement(Statement):
    """CONTINUE FOR | WHILE | DO: go to the loop's closer."""
    target: str

    def execute(self, context, runtime) -> Outcome:
        return Jump(runtime.link(LinkKind.CONTINUE_TARGET, self.line_number), unwind=True)

    def __str__(self) -> str:
        return f"CONTINUE {self.target}"


# =============================================================================
# TRY / CATCH / FINALLY / THROW
# =============================================================================

@dataclass
class TryStatement(Statement):
    indent_adjustment = 1

    def execute(self, context, runtime) -> Outcome:
        context.push_frame(TryFrame(
            "try",
            self.line_number,
            runtime.link(LinkKind.END_LINE, self.line_number),
            catch_line=runtime.links.get(LinkKind.CATCH_LINE, self.line_number),
            finally_line=runtime.links.get(LinkKind.FINALLY_LINE, self.line_number),
        ))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return "TRY"


@dataclass
class CatchStatement(Statement):
    """
    CATCH [variable]

    Only reached by falling out of a TRY body that completed normally;
    errors enter the CATCH body directly at the following line.
    """
    variable: Optional[str] = None

    is_clause = True

    def execute(self, context, runtime) -> Outcome:
        frame = context.require_frame(_opener(self, runtime), ("try",), "CATCH")
        if frame.finally_line is not None:
            return Jump(frame.finally_line)
        return Jump(frame.end)

    def __str__(self) -> str:
        return f"CATCH {self.variable}" if self.variable else "CATCH"


@dataclass
class FinallyStatement(Statement):
    is_clause = True

    def execute(self, context, runtime) -> Outcome:
        frame = context.require_frame(_opener(self, runtime), ("try",), "FINALLY")
        frame.phase = "finally"
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return "FINALLY"


@dataclass
class ThrowStatement(Statement):
    message: Expression

    def execute(self, context, runtime) -> Outcome:
        raise ThrownError(format_value(self.message.evaluate(context)))

    def __str__(self) -> str:
        return f"THROW {self.message}"
