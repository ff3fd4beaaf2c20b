"""
Tests for the Interpreter Session
=================================

These tests verify loading and editing program lines, diagnostics,
formatting, and the run/step/reset life cycle of an Interpreter.
"""

import pytest

from edubasic.interpreter import Diagnostic, SessionStatus
from edubasic.runtime import StepOutcome


class TestLoading:
    """load() and diagnostics."""

    def test_empty_session(self, interpreter):
        assert interpreter.status == SessionStatus.EMPTY
        assert interpreter.formatted_source() == ""
        assert not interpreter.is_runnable

    def test_load_valid(self, interpreter):
        assert interpreter.load('PRINT "hi"') == []
        assert interpreter.status == SessionStatus.READY
        assert interpreter.is_runnable

    def test_parse_and_structure_diagnostics(self, interpreter):
        diagnostics = interpreter.load("FOR i% = 1 TO 3\nCOLOR , 2\nPRINT i%")
        assert diagnostics == [
            Diagnostic(0, "FOR: missing NEXT", "structure"),
            Diagnostic(1, "COLOR requires at least a foreground color", "parse"),
        ]
        assert interpreter.status == SessionStatus.ERROR
        assert str(diagnostics[1]) == "line 2: COLOR requires at least a foreground color"

    def test_run_refuses_with_diagnostics(self, interpreter):
        interpreter.load("NEXT")
        result = interpreter.run()
        assert result.steps == 0
        assert not result.ok
        assert [d.message for d in result.diagnostics] == ["NEXT without FOR"]

    def test_formatted_source(self, interpreter):
        interpreter.load("if 1 then\nprint   2\nend if")
        assert interpreter.formatted_source() == "IF 1 THEN\n    PRINT 2\nEND IF\n"


class TestEditing:
    """Line edits re-parse the program."""

    def test_set_line_fixes_error(self, interpreter):
        interpreter.load("FOR i% = 1 TO 2\nPRINT i%")
        assert interpreter.set_line(2, "NEXT i%") == []
        assert interpreter.source_lines == ["FOR i% = 1 TO 2", "PRINT i%", "NEXT i%"]

    def test_insert_and_delete(self, interpreter):
        interpreter.load("PRINT 1\nPRINT 3")
        interpreter.insert_line(1, "PRINT 2")
        assert interpreter.source_lines == ["PRINT 1", "PRINT 2", "PRINT 3"]
        interpreter.delete_line(0)
        assert interpreter.source_lines == ["PRINT 2", "PRINT 3"]

    def test_edit_updates_indentation(self, interpreter):
        interpreter.load("PRINT 1\nPRINT 2")
        interpreter.insert_line(0, "WHILE 0")
        interpreter.set_line(3, "WEND")
        assert interpreter.formatted_source() == "WHILE 0\n    PRINT 1\n    PRINT 2\nWEND\n"

    @pytest.mark.parametrize("action", [
        lambda i: i.set_line(5, "PRINT"),
        lambda i: i.insert_line(-1, "PRINT"),
        lambda i: i.delete_line(1),
    ])
    def test_out_of_range(self, interpreter, action):
        interpreter.load("PRINT 1")
        with pytest.raises(IndexError):
            action(interpreter)

    def test_edit_resets_run(self, interpreter):
        interpreter.load("LET a% = 1\nLET b% = 2")
        interpreter.step()
        interpreter.set_line(1, "LET b% = 3")
        assert interpreter.context.pc == 0
        assert interpreter.status == SessionStatus.READY


class TestExecution:
    """step(), run() and reset()."""

    def test_step_by_step(self, interpreter):
        interpreter.load("PRINT 1\nPRINT 2")
        assert interpreter.step() == StepOutcome.RUNNING
        assert interpreter.status == SessionStatus.RUNNING
        assert interpreter.step() == StepOutcome.ENDED
        assert interpreter.status == SessionStatus.ENDED
        assert interpreter.console.text == "1\n2\n"

    def test_run_resumes_after_limit(self, interpreter):
        interpreter.load("FOR i% = 1 TO 3\nPRINT i%\nNEXT i%")
        first = interpreter.run(max_steps=2)
        assert first.step_limit_reached
        second = interpreter.run()
        assert second.status == SessionStatus.ENDED
        assert interpreter.console.text == "1\n2\n3\n"

    def test_reset_clears_variables(self, interpreter):
        interpreter.load("LET a% = 5")
        interpreter.run()
        interpreter.reset()
        assert interpreter.context.variables() == {}
        assert interpreter.status == SessionStatus.READY

    def test_seeded_sessions_repeat(self, interpreter_factory):
        outputs = []
        for _ in range(2):
            interp = interpreter_factory(rng_seed=3)
            interp.load("PRINT RND")
            interp.run()
            outputs.append(interp.console.text)
        assert outputs[0] == outputs[1]

    def test_honor_sleep_waits(self, interpreter_factory, monkeypatch):
        slept = []
        monkeypatch.setattr("edubasic.interpreter.time.sleep", slept.append)
        interp = interpreter_factory(honor_sleep=True)
        interp.load("SLEEP 250\nPRINT 1")
        interp.run()
        assert slept == [0.25]

    def test_sleep_not_honored_by_default(self, interpreter, monkeypatch):
        slept = []
        monkeypatch.setattr("edubasic.interpreter.time.sleep", slept.append)
        interpreter.load("SLEEP 250\nPRINT 1")
        interpreter.run()
        assert slept == []
        assert interpreter.console.text == "1\n"
