"""
Shared fixtures for the EduBASIC test suite.
"""

import pytest

from edubasic.config import InterpreterConfig
from edubasic.interpreter import Interpreter


def make_interpreter(**overrides) -> Interpreter:
    """Interpreter with a quiet console and a small canvas."""
    settings = {"echo_console": False, "canvas_width": 64, "canvas_height": 48, "max_steps": 10_000}
    settings.update(overrides)
    return Interpreter(InterpreterConfig(**settings))


@pytest.fixture
def interpreter() -> Interpreter:
    return make_interpreter()


@pytest.fixture
def run_program():
    """
    Run source text and return the interpreter afterwards.

    Usage:
        interp = run_program('PRINT "hi"')
        assert interp.console.text == "hi\\n"
    """
    def run(source: str, inputs=(), **overrides) -> Interpreter:
        interp = make_interpreter(**overrides)
        diagnostics = interp.load(source)
        assert diagnostics == [], [str(d) for d in diagnostics]
        interp.queue_input(*inputs)
        interp.last_result = interp.run()
        return interp
    return run


@pytest.fixture
def interpreter_factory():
    """make_interpreter, for tests that need several sessions or custom settings."""
    return make_interpreter
