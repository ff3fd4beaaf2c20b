# =============================================================================
# test_runtime.py - Execution Tests
# =============================================================================
# Tests for the step engine running whole programs: loops, branches,
# subroutines, jumps, error handling, input and DATA.
# =============================================================================

import pytest

from edubasic.errors import BasicRuntimeError, FatalRuntimeError, ProgramStructureError
from edubasic.interpreter import SessionStatus
from edubasic.line_parser import parse_program
from edubasic.links import LinkKind
from edubasic.runtime import RuntimeEngine, StepOutcome


def lines(*text: str) -> str:
    return "\n".join(text)


# =============================================================================
# Sequencing
# =============================================================================

class TestSequencing:
    """Straight-line execution and program end."""

    def test_print(self, run_program):
        interp = run_program('PRINT "Hello"')
        assert interp.console.text == "Hello\n"
        assert interp.status == SessionStatus.ENDED
        assert interp.last_result.ok

    def test_print_separators(self, run_program):
        interp = run_program(lines('PRINT "a"; 1, 2', 'PRINT "b";', 'PRINT "c"'))
        assert interp.console.text == "a1\t2\nbc\n"

    def test_end_stops_program(self, run_program):
        interp = run_program(lines("PRINT 1", "END", "PRINT 2"))
        assert interp.console.text == "1\n"
        assert interp.last_result.steps == 2

    def test_comments_and_blank_lines_are_skipped(self, run_program):
        interp = run_program(lines("' start", "", "PRINT 5"))
        assert interp.console.text == "5\n"

    def test_variables_default(self, run_program):
        interp = run_program(lines("PRINT n%", 'PRINT "[" + s$ + "]"'))
        assert interp.console.text == "0\n[]\n"

    def test_integer_variable_truncates(self, run_program):
        interp = run_program(lines("LET n% = 2.6", "LET m% = -2.6"))
        assert interp.context.get_variable("n%") == 2
        assert interp.context.get_variable("m%") == -2


# =============================================================================
# Branches
# =============================================================================

class TestBranches:
    """IF, UNLESS and SELECT CASE."""

    def test_if_else(self, run_program):
        interp = run_program(lines(
            "IF 0 THEN",
            'PRINT "A"',
            "ELSE",
            'PRINT "B"',
            "END IF",
        ))
        assert interp.console.text == "B\n"

    @pytest.mark.parametrize("value, expected", [(1, "one"), (2, "two"), (3, "other")])
    def test_elseif_chain(self, run_program, value, expected):
        interp = run_program(lines(
            f"LET n% = {value}",
            "IF n% = 1 THEN",
            'PRINT "one"',
            "ELSEIF n% = 2 THEN",
            'PRINT "two"',
            "ELSE",
            'PRINT "other"',
            "END IF",
        ))
        assert interp.console.text == expected + "\n"

    def test_unless(self, run_program):
        interp = run_program(lines(
            "UNLESS 0 THEN",
            'PRINT "ran"',
            "ELSE",
            'PRINT "skipped"',
            "END UNLESS",
        ))
        assert interp.console.text == "ran\n"

    @pytest.mark.parametrize("value, expected", [(1, "small"), (4, "medium"), (12, "large"), (8, "none")])
    def test_select_case(self, run_program, value, expected):
        interp = run_program(lines(
            f"LET n% = {value}",
            "SELECT CASE n%",
            "CASE 1, 2",
            'PRINT "small"',
            "CASE 3 TO 5",
            'PRINT "medium"',
            "CASE IS >= 10",
            'PRINT "large"',
            "CASE ELSE",
            'PRINT "none"',
            "END SELECT",
        ))
        assert interp.console.text == expected + "\n"

    def test_select_only_first_match_runs(self, run_program):
        interp = run_program(lines(
            "SELECT CASE 2",
            "CASE 1 TO 3",
            'PRINT "first"',
            "CASE 2",
            'PRINT "second"',
            "END SELECT",
        ))
        assert interp.console.text == "first\n"


# =============================================================================
# Loops
# =============================================================================

class TestLoops:
    """FOR, WHILE, DO, UNTIL, EXIT and CONTINUE."""

    def test_for_next(self, run_program):
        interp = run_program(lines("FOR i% = 1 TO 3", "PRINT i%", "NEXT i%"))
        assert interp.console.text == "1\n2\n3\n"

    def test_for_step_down(self, run_program):
        interp = run_program(lines("FOR i% = 5 TO 1 STEP -2", "PRINT i%;", "NEXT"))
        assert interp.console.text == "531"

    def test_for_body_skipped_when_empty(self, run_program):
        interp = run_program(lines("FOR i% = 3 TO 1", 'PRINT "x"', "NEXT i%", 'PRINT "done"'))
        assert interp.console.text == "done\n"

    def test_for_step_zero(self, run_program):
        interp = run_program(lines("FOR i% = 1 TO 3 STEP 0", "NEXT i%"))
        assert isinstance(interp.last_result.error, BasicRuntimeError)
        assert interp.last_result.error.message == "FOR: STEP cannot be zero"

    def test_nested_for(self, run_program):
        interp = run_program(lines(
            "FOR i% = 1 TO 2",
            "FOR j% = 1 TO 2",
            "PRINT i% * 10 + j%;",
            'PRINT " ";',
            "NEXT j%",
            "NEXT i%",
        ))
        assert interp.console.text == "11 12 21 22 "

    def test_while(self, run_program):
        interp = run_program(lines("WHILE n% < 3", "LET n% = n% + 1", "WEND", "PRINT n%"))
        assert interp.console.text == "3\n"

    def test_do_loop_until(self, run_program):
        interp = run_program(lines("DO", "LET n% = n% + 1", "LOOP UNTIL n% >= 4", "PRINT n%"))
        assert interp.console.text == "4\n"

    def test_do_while_never_entered(self, run_program):
        interp = run_program(lines("DO WHILE 0", 'PRINT "x"', "LOOP", 'PRINT "y"'))
        assert interp.console.text == "y\n"

    def test_until_runs_body_first(self, run_program):
        interp = run_program(lines("UNTIL -1", 'PRINT "once"', "UEND"))
        assert interp.console.text == "once\n"

    def test_exit_for(self, run_program):
        interp = run_program(lines(
            "FOR i% = 1 TO 10",
            "IF i% = 3 THEN",
            "EXIT FOR",
            "END IF",
            "PRINT i%",
            "NEXT i%",
            'PRINT "after"',
        ))
        assert interp.console.text == "1\n2\nafter\n"
        assert interp.context.control_frames == []

    def test_continue_for(self, run_program):
        interp = run_program(lines(
            "FOR i% = 1 TO 4",
            "IF i% MOD 2 = 0 THEN",
            "CONTINUE FOR",
            "END IF",
            "PRINT i%",
            "NEXT i%",
        ))
        assert interp.console.text == "1\n3\n"

    def test_exit_do(self, run_program):
        interp = run_program(lines(
            "DO",
            "LET n% = n% + 1",
            "IF n% = 5 THEN",
            "EXIT DO",
            "END IF",
            "LOOP",
            "PRINT n%",
        ))
        assert interp.console.text == "5\n"

    def test_infinite_loop_hits_step_limit(self, run_program):
        interp = run_program(lines("WHILE -1", "WEND"), max_steps=50)
        assert interp.last_result.steps == 50
        assert interp.last_result.step_limit_reached
        assert interp.status == SessionStatus.RUNNING


# =============================================================================
# Subroutines and Jumps
# =============================================================================

class TestSubroutines:
    """SUB/CALL, GOTO and GOSUB/RETURN."""

    def test_sub_skipped_when_reached(self, run_program):
        interp = run_program(lines(
            "SUB greet who$",
            'PRINT "Hi " + who$',
            "END SUB",
            'CALL greet "Ann"',
            'PRINT "end"',
        ))
        assert interp.console.text == "Hi Ann\nend\n"

    def test_byref_updates_caller(self, run_program):
        interp = run_program(lines(
            "LET count% = 1",
            "CALL bump count%",
            "PRINT count%",
            "END",
            "SUB bump BYREF n%",
            "LET n% = n% + 10",
            "END SUB",
        ))
        assert interp.console.text == "11\n"

    def test_by_value_leaves_caller(self, run_program):
        interp = run_program(lines(
            "LET count% = 1",
            "CALL bump count%",
            "PRINT count%",
            "END",
            "SUB bump n%",
            "LET n% = n% + 10",
            "END SUB",
        ))
        assert interp.console.text == "1\n"

    def test_local_is_scoped_to_sub(self, run_program):
        interp = run_program(lines(
            "LET x% = 1",
            "CALL work",
            "PRINT x%",
            "END",
            "SUB work",
            "LOCAL x% = 99",
            "PRINT x%",
            "END SUB",
        ))
        assert interp.console.text == "99\n1\n"

    def test_exit_sub(self, run_program):
        interp = run_program(lines(
            "CALL work",
            'PRINT "back"',
            "END",
            "SUB work",
            'PRINT "in"',
            "EXIT SUB",
            'PRINT "never"',
            "END SUB",
        ))
        assert interp.console.text == "in\nback\n"

    def test_wrong_argument_count(self, run_program):
        interp = run_program(lines("CALL work 1", "END", "SUB work", "END SUB"))
        assert interp.last_result.error.message == "SUB work expects 0 argument(s), got 1"

    def test_recursion_limit(self, run_program):
        interp = run_program(lines("CALL again", "END", "SUB again", "CALL again", "END SUB"))
        assert interp.last_result.error.message == "Call stack overflow"

    def test_gosub_return(self, run_program):
        interp = run_program(lines(
            "GOSUB show",
            'PRINT "back"',
            "END",
            "LABEL show",
            'PRINT "sub"',
            "RETURN",
        ))
        assert interp.console.text == "sub\nback\n"

    def test_goto(self, run_program):
        interp = run_program(lines("GOTO skip", 'PRINT "no"', "LABEL skip", 'PRINT "yes"'))
        assert interp.console.text == "yes\n"


# =============================================================================
# Error Handling
# =============================================================================

class TestErrorHandling:
    """TRY/CATCH/FINALLY/THROW and uncaught errors."""

    def test_throw_caught(self, run_program):
        interp = run_program(lines(
            "TRY",
            'THROW "boom"',
            'PRINT "not reached"',
            "CATCH e$",
            'PRINT "caught " + e$',
            "FINALLY",
            'PRINT "finally"',
            "END TRY",
            'PRINT "after"',
        ))
        assert interp.console.text == "caught boom\nfinally\nafter\n"

    def test_finally_runs_without_error(self, run_program):
        interp = run_program(lines(
            "TRY",
            'PRINT "body"',
            "CATCH",
            'PRINT "catch"',
            "FINALLY",
            'PRINT "finally"',
            "END TRY",
        ))
        assert interp.console.text == "body\nfinally\n"

    def test_runtime_error_caught(self, run_program):
        interp = run_program(lines("TRY", "LET x% = 1 / 0", "CATCH e$", "PRINT e$", "END TRY"))
        assert interp.console.text == "Division by zero\n"

    def test_finally_rethrows_uncaught_error(self, run_program):
        interp = run_program(lines(
            "TRY",
            'THROW "bad"',
            "FINALLY",
            'PRINT "cleanup"',
            "END TRY",
            'PRINT "after"',
        ))
        assert interp.console.text == "cleanup\n"
        assert interp.last_result.error.message == "bad"
        assert interp.status == SessionStatus.ERROR

    def test_error_in_sub_caught_by_caller(self, run_program):
        interp = run_program(lines(
            "TRY",
            "CALL fail",
            "CATCH e$",
            "PRINT e$",
            "END TRY",
            "END",
            "SUB fail",
            'THROW "inner"',
            "END SUB",
        ))
        assert interp.console.text == "inner\n"
        assert interp.context.call_frames == []

    def test_uncaught_error_reports_line(self, run_program):
        interp = run_program(lines('PRINT "a"', "LET x% = 1 / 0", 'PRINT "b"'))
        error = interp.last_result.error
        assert error.line == 1
        assert error.statement_text == "LET x% = 1 / 0"
        assert str(error).startswith("line 2: Division by zero")
        assert interp.console.errors == [str(error)]
        assert interp.context.pc == 1

    def test_step_raises_outside_try(self, interpreter):
        interpreter.load('THROW "stop"')
        with pytest.raises(BasicRuntimeError):
            interpreter.step()
        assert interpreter.status == SessionStatus.ERROR

    def test_unparsable_line_is_not_caught(self):
        program, parsed = parse_program(lines(
            "TRY",
            "LET = = 3",
            "CATCH e$",
            "LET caught% = 1",
            "END TRY",
        ))
        assert parsed[1].has_error
        engine = RuntimeEngine(program)
        engine.step()
        with pytest.raises(FatalRuntimeError, match="Cannot execute unparsable line"):
            engine.step()
        assert engine.context.pc == 1
        assert engine.context.get_variable("caught%") == 0


class TestFinallyOnJumps:
    """Jumps out of a TRY block run its FINALLY before landing."""

    def test_exit_for(self, run_program):
        interp = run_program(lines(
            "FOR i% = 1 TO 2",
            "TRY",
            "EXIT FOR",
            "FINALLY",
            'PRINT "fin"',
            "END TRY",
            "NEXT i%",
            'PRINT "done"',
        ))
        assert interp.console.text == "fin\ndone\n"
        assert interp.context.control_frames == []

    def test_continue_for(self, run_program):
        interp = run_program(lines(
            "FOR i% = 1 TO 2",
            "TRY",
            "CONTINUE FOR",
            'PRINT "skipped"',
            "FINALLY",
            "PRINT i%",
            "END TRY",
            "NEXT i%",
        ))
        assert interp.console.text == "1\n2\n"

    def test_goto_out_of_try_with_catch(self, run_program):
        interp = run_program(lines(
            "TRY",
            "GOTO out",
            "CATCH e$",
            'PRINT "catch"',
            "FINALLY",
            'PRINT "fin"',
            "END TRY",
            "LABEL out",
            'PRINT "after"',
        ))
        assert interp.console.text == "fin\nafter\n"

    def test_exit_sub(self, run_program):
        interp = run_program(lines(
            "CALL work",
            'PRINT "back"',
            "END",
            "SUB work",
            "TRY",
            "EXIT SUB",
            "FINALLY",
            'PRINT "fin"',
            "END TRY",
            "END SUB",
        ))
        assert interp.console.text == "fin\nback\n"
        assert interp.context.call_frames == []

    def test_nested_try_blocks(self, run_program):
        interp = run_program(lines(
            "TRY",
            "TRY",
            "GOTO out",
            "FINALLY",
            'PRINT "inner"',
            "END TRY",
            "FINALLY",
            'PRINT "outer"',
            "END TRY",
            "LABEL out",
            'PRINT "after"',
        ))
        assert interp.console.text == "inner\nouter\nafter\n"

    def test_try_without_finally_is_left_directly(self, run_program):
        interp = run_program(lines(
            "DO",
            "TRY",
            "EXIT DO",
            "CATCH",
            "END TRY",
            "LOOP",
            'PRINT "out"',
        ))
        assert interp.console.text == "out\n"
        assert interp.context.control_frames == []


# =============================================================================
# Input and DATA
# =============================================================================

class TestInput:
    """INPUT, DATA/READ/RESTORE and RANDOMIZE."""

    def test_input_typed(self, run_program):
        interp = run_program(lines("INPUT n%", "INPUT name$", "PRINT name$; n% * 2"), inputs=["21", "Bo"])
        assert interp.console.text == "Bo42\n"

    def test_input_wrong_type(self, run_program):
        interp = run_program("INPUT n%", inputs=["abc"])
        assert interp.last_result.error.message.startswith("INPUT: expected a")
        assert interp.last_result.error.message.endswith("got 'abc'")

    def test_input_exhausted(self, run_program):
        interp = run_program("INPUT n%")
        assert interp.last_result.error.message == "INPUT: no input available"

    def test_data_read(self, run_program):
        interp = run_program(lines(
            "DATA 1, 2",
            'DATA "three"',
            "READ a%",
            "READ b%",
            "READ c$",
            "PRINT a% + b%; c$",
        ))
        assert interp.console.text == "3three\n"

    def test_read_out_of_data(self, run_program):
        interp = run_program(lines("DATA 1", "READ a%", "READ b%"))
        assert interp.last_result.error.message == "READ: out of DATA"

    def test_restore_to_label(self, run_program):
        interp = run_program(lines(
            "DATA 1",
            "LABEL second",
            "DATA 2",
            "READ a%",
            "RESTORE second",
            "READ b%",
            "PRINT a%; b%",
        ))
        assert interp.console.text == "12\n"

    def test_randomize_repeats_sequence(self, run_program):
        interp = run_program(lines(
            "RANDOMIZE 7",
            "LET a# = RND",
            "RANDOMIZE 7",
            "LET b# = RND",
            "PRINT a# = b#",
        ))
        assert interp.console.text == "-1\n"


# =============================================================================
# Arrays
# =============================================================================

class TestArrays:
    """DIM, array literals and PUSH/POP/SHIFT/UNSHIFT."""

    def test_dim_and_index(self, run_program):
        interp = run_program(lines("DIM a%[3]", "LET a%[2] = 7", "PRINT a%[2]; a%[1]"))
        assert interp.console.text == "70\n"

    def test_push_and_pop(self, run_program):
        interp = run_program(lines(
            "LET a%[] = [1, 2]",
            "PUSH a%[], 3",
            "POP a%[] INTO x%",
            "SHIFT a%[] INTO y%",
            "PRINT x%; y%; a%[]",
        ))
        assert interp.console.text == "31[2]\n"

    def test_pop_empty(self, run_program):
        interp = run_program(lines("LET a%[] = []", "POP a%[] INTO x%"))
        assert interp.last_result.error.message == "POP: a%[] is empty"

    def test_out_of_bounds(self, run_program):
        interp = run_program(lines("DIM a%[2]", "PRINT a%[5]"))
        assert interp.last_result.error.message == "Array index out of bounds: 5"


# =============================================================================
# Engine
# =============================================================================

class TestEngine:
    """RuntimeEngine used directly."""

    def test_step_outcomes(self):
        program, _ = parse_program("LET a% = 1\nSLEEP 20\nLET b% = 2")
        engine = RuntimeEngine(program)
        assert engine.step() == StepOutcome.RUNNING
        assert engine.step() == StepOutcome.SLEEPING
        assert engine.context.sleep_request == 20
        assert engine.step() == StepOutcome.ENDED
        assert engine.ended

    def test_structural_errors_prevent_running(self):
        program, _ = parse_program("FOR i% = 1 TO 2")
        engine = RuntimeEngine(program)
        with pytest.raises(ProgramStructureError) as info:
            engine.step()
        assert "FOR: missing NEXT" in str(info.value)

    def test_missing_console(self):
        program, _ = parse_program('PRINT "x"')
        engine = RuntimeEngine(program)
        with pytest.raises(BasicRuntimeError, match="No console device attached"):
            engine.step()

    def test_edit_triggers_relink(self):
        program, _ = parse_program("GOTO done\nLABEL done")
        engine = RuntimeEngine(program)
        engine.ensure_linked()
        program.delete_line(1)
        with pytest.raises(ProgramStructureError):
            engine.step()

    def test_run_counts_steps(self):
        program, _ = parse_program("LET a% = 1\nLET b% = 2\nLET c% = 3")
        engine = RuntimeEngine(program)
        assert engine.run() == 3
        assert engine.context.get_variable("c%") == 3

    def test_missing_link_is_not_caught(self):
        program, _ = parse_program("LET a% = 1")
        engine = RuntimeEngine(program)
        engine.ensure_linked()
        with pytest.raises(FatalRuntimeError, match="Internal error: no END_LINE link for line 1"):
            engine.link(LinkKind.END_LINE, 0)
