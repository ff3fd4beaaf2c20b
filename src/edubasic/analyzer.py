"""
Block-Linking Analyzer
======================

Pairs block openers with their clauses and closers, resolves labels and
SUB names, and records the results in a LinkTable. Problems are
collected as StructuralError records rather than raised, so a program
with several mistakes reports all of them at once.

Passes
------
1. Line numbers: each statement's line_number is set to its index
2. Labels and SUBs: name maps, duplicates reported (first wins)
3. Block stack: one pass pairing openers, clauses and closers
4. Unclosed blocks: one error per opener left on the stack
5. Jumps: GOTO/GOSUB/RESTORE labels and CALL targets

A mismatched closer is reported and otherwise ignored; the block stack
is not popped, so the opener is also reported as unclosed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from edubasic.errors import StructuralError
from edubasic.links import LinkKind, LinkTable
from edubasic.program import Program
from edubasic.statements.base import Statement, UnparsableStatement
from edubasic.statements.control_flow import (
    CallStatement,
    CaseStatement,
    CatchStatement,
    ContinueStatement,
    DoStatement,
    ElseIfStatement,
    ElseStatement,
    EndStatement,
    ExitStatement,
    FinallyStatement,
    ForStatement,
    GosubStatement,
    GotoStatement,
    IfStatement,
    LabelStatement,
    LoopStatement,
    NextStatement,
    SelectCaseStatement,
    SubStatement,
    TryStatement,
    UendStatement,
    UnlessStatement,
    UntilStatement,
    WendStatement,
    WhileStatement,
)
from edubasic.statements.misc import RestoreStatement

logger = logging.getLogger(__name__)


# =============================================================================
# Block Tables
# =============================================================================

OPENERS: dict[type, str] = {
    IfStatement: "if",
    UnlessStatement: "unless",
    SelectCaseStatement: "select",
    ForStatement: "for",
    WhileStatement: "while",
    DoStatement: "do",
    UntilStatement: "until",
    SubStatement: "sub",
    TryStatement: "try",
}

# Closer -> (block kind, message when no such block is open)
LOOP_CLOSERS: dict[type, tuple[str, str]] = {
    NextStatement: ("for", "NEXT without FOR"),
    WendStatement: ("while", "WEND without WHILE"),
    LoopStatement: ("do", "LOOP without DO"),
    UendStatement: ("until", "UEND without UNTIL"),
}

END_CLOSERS: dict[str, tuple[str, str]] = {
    "IF": ("if", "END IF without IF"),
    "UNLESS": ("unless", "END UNLESS without UNLESS"),
    "SELECT": ("select", "END SELECT without SELECT"),
    "SUB": ("sub", "END SUB without SUB"),
    "TRY": ("try", "END TRY without TRY"),
}

MISSING_CLOSER = {
    "if": "IF: missing END IF",
    "unless": "UNLESS: missing END UNLESS",
    "select": "SELECT CASE: missing END SELECT",
    "for": "FOR: missing NEXT",
    "while": "WHILE: missing WEND",
    "do": "DO: missing LOOP",
    "until": "UNTIL: missing UEND",
    "sub": "SUB: missing END SUB",
    "try": "TRY: missing END TRY",
}

LOOP_KINDS = {"FOR": "for", "WHILE": "while", "DO": "do", "SUB": "sub"}


@dataclass
class _Block:
    """An open block during the stack pass."""
    kind: str
    line: int
    variable: Optional[str] = None
    pending_clause: Optional[int] = None  # IF/ELSEIF line awaiting its NEXT_CLAUSE
    last_case: Optional[int] = None
    has_else: bool = False
    has_catch: bool = False
    has_finally: bool = False
    exits: list[int] = field(default_factory=list)
    continues: list[int] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """
    Outcome of analyzing a program.

    Attributes:
        links: Resolved links
        errors: Structural problems, in program order
        labels: Upper-cased label name -> line
        subs: Upper-cased SUB name -> line
    """
    links: LinkTable
    errors: list[StructuralError] = field(default_factory=list)
    labels: dict[str, int] = field(default_factory=dict)
    subs: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


# =============================================================================
# Analyzer
# =============================================================================

class ProgramAnalyzer:
    """
    Links the block structure of a Program.

    Usage:
        result = ProgramAnalyzer().analyze(program)
        if result.errors:
            for error in result.errors:
                print(error)
    """

    def __init__(self, links: Optional[LinkTable] = None):
        self.links = links if links is not None else LinkTable()
        self.errors: list[StructuralError] = []
        self.labels: dict[str, int] = {}
        self.subs: dict[str, int] = {}
        self._stack: list[_Block] = []

    def analyze(self, program: Program) -> AnalysisResult:
        self.links.clear()
        self.errors = []
        self.labels = {}
        self.subs = {}
        self._stack = []

        statements = program.statements
        for index, statement in enumerate(statements):
            statement.line_number = index

        self._collect_names(statements)
        for statement in statements:
            if not isinstance(statement, UnparsableStatement):
                self._visit(statement)
        for block in self._stack:
            self._error(block.line, MISSING_CLOSER[block.kind])
        self._resolve_jumps(statements)

        self.errors.sort(key=lambda e: e.line)
        logger.debug(
            "Analyzed %d lines: %d links, %d labels, %d subs, %d errors",
            len(statements), len(self.links), len(self.labels), len(self.subs), len(self.errors),
        )
        return AnalysisResult(self.links, list(self.errors), dict(self.labels), dict(self.subs))

    def _error(self, line: int, message: str) -> None:
        self.errors.append(StructuralError(line, message))

    def _link_opener(self, line: int, block: _Block) -> None:
        self.links.set(LinkKind.OPENER, line, block.line)

    # =========================================================================
    # Names
    # =========================================================================

    def _collect_names(self, statements: list[Statement]) -> None:
        for index, statement in enumerate(statements):
            if isinstance(statement, LabelStatement):
                self._register(self.labels, statement.label, index, "LABEL")
            elif isinstance(statement, SubStatement):
                self._register(self.subs, statement.name, index, "SUB")

    def _register(self, names: dict[str, int], name: str, line: int, what: str) -> None:
        key = name.upper()
        if key in names:
            self._error(line, f"Duplicate {what} {name}")
        else:
            names[key] = line

    # =========================================================================
    # Block Stack
    # =========================================================================

    def _top(self, *kinds: str) -> Optional[_Block]:
        if self._stack and self._stack[-1].kind in kinds:
            return self._stack[-1]
        return None

    def _visit(self, statement: Statement) -> None:
        line = statement.line_number
        kind = OPENERS.get(type(statement))
        if kind is not None:
            block = _Block(kind, line, pending_clause=line if kind == "if" else None)
            if isinstance(statement, ForStatement):
                block.variable = statement.variable
            self._stack.append(block)
        elif isinstance(statement, ElseIfStatement):
            self._visit_elseif(line)
        elif isinstance(statement, ElseStatement):
            self._visit_else(line)
        elif isinstance(statement, CaseStatement):
            self._visit_case(statement, line)
        elif isinstance(statement, CatchStatement):
            self._visit_catch(line)
        elif isinstance(statement, FinallyStatement):
            self._visit_finally(line)
        elif type(statement) in LOOP_CLOSERS:
            block_kind, message = LOOP_CLOSERS[type(statement)]
            self._visit_closer(statement, line, block_kind, message)
        elif isinstance(statement, EndStatement) and statement.block is not None:
            block_kind, message = END_CLOSERS[statement.block]
            self._visit_closer(statement, line, block_kind, message)
        elif isinstance(statement, ExitStatement):
            self._visit_exit(statement, line)
        elif isinstance(statement, ContinueStatement):
            self._visit_continue(statement, line)

    def _visit_elseif(self, line: int) -> None:
        block = self._top("if")
        if block is None:
            self._error(line, "ELSEIF without IF")
            return
        if block.has_else:
            self._error(line, "ELSEIF after ELSE")
            return
        self.links.set(LinkKind.NEXT_CLAUSE, block.pending_clause, line)
        block.pending_clause = line
        self._link_opener(line, block)

    def _visit_else(self, line: int) -> None:
        block = self._top("if", "unless")
        if block is None:
            self._error(line, "ELSE without IF/UNLESS")
            return
        if block.has_else:
            self._error(line, "Multiple ELSE clauses in the same block")
            return
        if block.kind == "if":
            self.links.set(LinkKind.NEXT_CLAUSE, block.pending_clause, line)
            block.pending_clause = None
        else:
            self.links.set(LinkKind.ELSE_OR_END, block.line, line)
        block.has_else = True
        self._link_opener(line, block)

    def _visit_case(self, statement: CaseStatement, line: int) -> None:
        block = self._top("select")
        if block is None:
            self._error(line, "CASE without SELECT")
            return
        if block.has_else:
            if statement.is_else:
                self._error(line, "Multiple CASE ELSE clauses in the same SELECT block")
            else:
                self._error(line, "CASE after CASE ELSE")
            return
        if block.last_case is None:
            self.links.set(LinkKind.FIRST_CASE, block.line, line)
        else:
            self.links.set(LinkKind.NEXT_CASE, block.last_case, line)
        block.last_case = line
        block.has_else = statement.is_else
        self._link_opener(line, block)

    def _visit_catch(self, line: int) -> None:
        block = self._top("try")
        if block is None:
            self._error(line, "CATCH without TRY")
            return
        if block.has_catch:
            self._error(line, "Multiple CATCH clauses in the same TRY block")
            return
        if block.has_finally:
            self._error(line, "CATCH after FINALLY")
            return
        block.has_catch = True
        self.links.set(LinkKind.CATCH_LINE, block.line, line)
        self._link_opener(line, block)

    def _visit_finally(self, line: int) -> None:
        block = self._top("try")
        if block is None:
            self._error(line, "FINALLY without TRY")
            return
        if block.has_finally:
            self._error(line, "Multiple FINALLY clauses in the same TRY block")
            return
        block.has_finally = True
        self.links.set(LinkKind.FINALLY_LINE, block.line, line)
        self._link_opener(line, block)

    def _visit_closer(self, statement: Statement, line: int, kind: str, message: str) -> None:
        block = self._top(kind)
        if block is None:
            self._error(line, message)
            return

        if isinstance(statement, NextStatement) and statement.variable is not None:
            if statement.variable.upper() != block.variable.upper():
                self._error(line, f"NEXT {statement.variable} does not match FOR {block.variable}")

        self._stack.pop()
        self.links.set(LinkKind.END_LINE, block.line, line)
        self._link_opener(line, block)
        if block.pending_clause is not None:
            self.links.set(LinkKind.NEXT_CLAUSE, block.pending_clause, line)
        if kind == "unless" and not block.has_else:
            self.links.set(LinkKind.ELSE_OR_END, block.line, line)
        if block.last_case is not None:
            self.links.set(LinkKind.NEXT_CASE, block.last_case, line)

        exit_target = line if kind == "sub" else line + 1
        for exit_line in block.exits:
            self.links.set(LinkKind.EXIT_TARGET, exit_line, exit_target)
        for continue_line in block.continues:
            self.links.set(LinkKind.CONTINUE_TARGET, continue_line, line)

    def _find_enclosing(self, kind: str, variable: Optional[str] = None) -> Optional[_Block]:
        """Innermost open block of kind, not looking outside the current SUB."""
        for block in reversed(self._stack):
            if block.kind == kind and (variable is None or block.variable.upper() == variable.upper()):
                return block
            if block.kind == "sub":
                return None
        return None

    def _visit_exit(self, statement: ExitStatement, line: int) -> None:
        block = self._find_enclosing(LOOP_KINDS[statement.target], statement.variable)
        if block is None:
            self._error(line, f"EXIT {statement.target} outside of {statement.target}")
            return
        block.exits.append(line)

    def _visit_continue(self, statement: ContinueStatement, line: int) -> None:
        block = self._find_enclosing(LOOP_KINDS[statement.target])
        if block is None:
            self._error(line, f"CONTINUE {statement.target} outside of {statement.target}")
            return
        block.continues.append(line)

    # =========================================================================
    # Jumps
    # =========================================================================

    def _resolve_jumps(self, statements: list[Statement]) -> None:
        for index, statement in enumerate(statements):
            if isinstance(statement, (GotoStatement, GosubStatement)):
                target = self.labels.get(statement.label.upper())
                if target is None:
                    self._error(index, f"Label '{statement.label}' not found")
                else:
                    self.links.set(LinkKind.JUMP_TARGET, index, target)
            elif isinstance(statement, RestoreStatement) and statement.label is not None:
                if statement.label.upper() not in self.labels:
                    self._error(index, f"Label '{statement.label}' not found")
            elif isinstance(statement, CallStatement):
                target = self.subs.get(statement.name.upper())
                if target is None:
                    self._error(index, f"SUB {statement.name} not found")
                else:
                    self.links.set(LinkKind.CALL_TARGET, index, target)
