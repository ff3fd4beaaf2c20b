# =============================================================================
# test_analyzer.py - Block Linking Tests
# =============================================================================
# Tests for ProgramAnalyzer: the links it records for each block kind and
# the structural errors it reports.
# =============================================================================

import pytest

from edubasic.analyzer import ProgramAnalyzer
from edubasic.line_parser import parse_program
from edubasic.links import LinkKind


# =============================================================================
# Helper Functions
# =============================================================================

def analyze(*lines: str):
    program, parsed = parse_program("\n".join(lines))
    assert not any(p.has_error for p in parsed), [p.error_message for p in parsed]
    return ProgramAnalyzer().analyze(program)


def messages(result) -> list[tuple[int, str]]:
    return [(e.line, e.message) for e in result.errors]


# =============================================================================
# Links
# =============================================================================

class TestLinks:
    """Links recorded for well-formed programs."""

    def test_for_next(self):
        result = analyze("FOR i% = 1 TO 3", "PRINT i%", "NEXT i%")
        assert result.ok
        assert result.links.get(LinkKind.END_LINE, 0) == 2
        assert result.links.get(LinkKind.OPENER, 2) == 0

    def test_if_chain(self):
        result = analyze(
            "IF a% = 1 THEN",
            "PRINT 1",
            "ELSEIF a% = 2 THEN",
            "PRINT 2",
            "ELSE",
            "PRINT 3",
            "END IF",
        )
        assert result.ok
        assert result.links.get(LinkKind.NEXT_CLAUSE, 0) == 2
        assert result.links.get(LinkKind.NEXT_CLAUSE, 2) == 4
        assert result.links.get(LinkKind.END_LINE, 0) == 6
        assert result.links.get(LinkKind.OPENER, 4) == 0

    def test_if_without_else_links_to_end(self):
        result = analyze("IF a% THEN", "PRINT 1", "END IF")
        assert result.links.get(LinkKind.NEXT_CLAUSE, 0) == 2

    def test_unless_without_else(self):
        result = analyze("UNLESS a% THEN", "PRINT 1", "END UNLESS")
        assert result.links.get(LinkKind.ELSE_OR_END, 0) == 2

    def test_select_cases(self):
        result = analyze(
            "SELECT CASE n%",
            "CASE 1",
            "PRINT 1",
            "CASE ELSE",
            "PRINT 0",
            "END SELECT",
        )
        assert result.ok
        assert result.links.get(LinkKind.FIRST_CASE, 0) == 1
        assert result.links.get(LinkKind.NEXT_CASE, 1) == 3
        assert result.links.get(LinkKind.NEXT_CASE, 3) == 5

    def test_exit_and_continue_targets(self):
        result = analyze(
            "WHILE -1",
            "CONTINUE WHILE",
            "EXIT WHILE",
            "WEND",
            "PRINT 1",
        )
        assert result.ok
        assert result.links.get(LinkKind.CONTINUE_TARGET, 1) == 3
        assert result.links.get(LinkKind.EXIT_TARGET, 2) == 4

    def test_exit_sub_targets_end_sub(self):
        result = analyze("SUB s", "EXIT SUB", "END SUB")
        assert result.links.get(LinkKind.EXIT_TARGET, 1) == 2

    def test_try_clauses(self):
        result = analyze("TRY", "THROW \"x\"", "CATCH e$", "FINALLY", "END TRY")
        assert result.ok
        assert result.links.get(LinkKind.CATCH_LINE, 0) == 2
        assert result.links.get(LinkKind.FINALLY_LINE, 0) == 3
        assert result.links.get(LinkKind.END_LINE, 0) == 4

    def test_jumps_and_calls(self):
        result = analyze(
            "GOSUB work",
            "CALL greet",
            "END",
            "LABEL work",
            "RETURN",
            "SUB Greet",
            "END SUB",
        )
        assert result.ok
        assert result.links.get(LinkKind.JUMP_TARGET, 0) == 3
        assert result.links.get(LinkKind.CALL_TARGET, 1) == 5
        assert result.labels == {"WORK": 3}
        assert result.subs == {"GREET": 5}

    def test_reanalysis_replaces_links(self):
        analyzer = ProgramAnalyzer()
        program, _ = parse_program("FOR i% = 1 TO 2\nNEXT")
        analyzer.analyze(program)
        other, _ = parse_program("PRINT 1")
        result = analyzer.analyze(other)
        assert len(result.links) == 0


# =============================================================================
# Structural Errors
# =============================================================================

class TestStructuralErrors:
    """Errors are reported per line, in program order."""

    def test_unclosed_for_reports_once(self):
        result = analyze("FOR i% = 1 TO 3", "PRINT i%")
        assert messages(result) == [(0, "FOR: missing NEXT")]

    @pytest.mark.parametrize("opener, message", [
        ("IF a% THEN", "IF: missing END IF"),
        ("UNLESS a% THEN", "UNLESS: missing END UNLESS"),
        ("SELECT CASE a%", "SELECT CASE: missing END SELECT"),
        ("WHILE a%", "WHILE: missing WEND"),
        ("DO", "DO: missing LOOP"),
        ("UNTIL a%", "UNTIL: missing UEND"),
        ("SUB s", "SUB: missing END SUB"),
        ("TRY", "TRY: missing END TRY"),
    ])
    def test_missing_closer(self, opener, message):
        assert messages(analyze(opener)) == [(0, message)]

    @pytest.mark.parametrize("closer, message", [
        ("NEXT", "NEXT without FOR"),
        ("WEND", "WEND without WHILE"),
        ("LOOP", "LOOP without DO"),
        ("UEND", "UEND without UNTIL"),
        ("END IF", "END IF without IF"),
        ("END SELECT", "END SELECT without SELECT"),
        ("END SUB", "END SUB without SUB"),
        ("END TRY", "END TRY without TRY"),
        ("ELSE", "ELSE without IF/UNLESS"),
        ("CASE 1", "CASE without SELECT"),
        ("CATCH", "CATCH without TRY"),
    ])
    def test_stray_closer_or_clause(self, closer, message):
        assert messages(analyze("PRINT 1", closer)) == [(1, message)]

    def test_mismatched_next(self):
        result = analyze("FOR i% = 1 TO 3", "NEXT j%")
        assert messages(result) == [(1, "NEXT j% does not match FOR i%")]

    def test_crossed_blocks(self):
        result = analyze("FOR i% = 1 TO 3", "WHILE -1", "NEXT i%", "WEND")
        assert (2, "NEXT without FOR") in messages(result)

    def test_case_after_case_else(self):
        result = analyze("SELECT CASE n%", "CASE ELSE", "CASE 1", "END SELECT")
        assert messages(result) == [(2, "CASE after CASE ELSE")]

    def test_multiple_else(self):
        result = analyze("IF a% THEN", "ELSE", "ELSE", "END IF")
        assert messages(result) == [(2, "Multiple ELSE clauses in the same block")]

    def test_catch_after_finally(self):
        result = analyze("TRY", "FINALLY", "CATCH", "END TRY")
        assert messages(result) == [(2, "CATCH after FINALLY")]

    def test_exit_outside_loop(self):
        assert messages(analyze("EXIT FOR")) == [(0, "EXIT FOR outside of FOR")]

    def test_exit_does_not_cross_sub(self):
        result = analyze("WHILE -1", "SUB s", "EXIT WHILE", "END SUB", "WEND")
        assert (2, "EXIT WHILE outside of WHILE") in messages(result)

    def test_continue_outside_loop(self):
        assert messages(analyze("CONTINUE DO")) == [(0, "CONTINUE DO outside of DO")]

    def test_missing_label(self):
        assert messages(analyze("GOTO nowhere")) == [(0, "Label 'nowhere' not found")]

    def test_missing_sub(self):
        assert messages(analyze("CALL nothing")) == [(0, "SUB nothing not found")]

    def test_duplicate_label(self):
        result = analyze("LABEL here", "LABEL HERE")
        assert messages(result) == [(1, "Duplicate LABEL HERE")]

    def test_errors_sorted_by_line(self):
        result = analyze("FOR i% = 1 TO 2", "GOTO x", "WEND")
        lines = [line for line, _ in messages(result)]
        assert lines == sorted(lines)
        assert len(lines) == 3
