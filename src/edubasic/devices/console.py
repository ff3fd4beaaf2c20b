"""
Console and UI Request Sink
===========================

Text output for PRINT and friends, and the sink that receives requests
to bring a view (console, graphics, help) to the front.

BufferConsole keeps everything it is given; with echo enabled it also
writes program output to stdout and errors to stderr through click.
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol

import click


class Console(Protocol):
    def print_output(self, text: str) -> None: ...

    def print_error(self, text: str) -> None: ...

    def clear(self) -> None: ...

    def set_color(self, foreground: Optional[int], background: Optional[int]) -> None: ...

    def locate(self, row: int, column: int) -> None: ...


@dataclass
class BufferConsole:
    """
    Console that accumulates text.

    Attributes:
        echo: Also write to the terminal
        output: Program output chunks in order
        errors: Error messages in order
        cursor: (row, column) set by LOCATE
        colors: (foreground, background) set by COLOR
    """
    echo: bool = False
    output: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    cursor: tuple[int, int] = (1, 1)
    colors: tuple[Optional[int], Optional[int]] = (None, None)

    @property
    def text(self) -> str:
        return "".join(self.output)

    def print_output(self, text: str) -> None:
        self.output.append(text)
        if self.echo:
            click.echo(text, nl=False)

    def print_error(self, text: str) -> None:
        self.errors.append(text)
        if self.echo:
            click.echo(text, err=True)

    def clear(self) -> None:
        self.output.clear()
        self.cursor = (1, 1)

    def set_color(self, foreground: Optional[int], background: Optional[int]) -> None:
        fg, bg = self.colors
        self.colors = (
            foreground if foreground is not None else fg,
            background if background is not None else bg,
        )

    def locate(self, row: int, column: int) -> None:
        self.cursor = (row, column)


class UiRequestSink(Protocol):
    def request_switch(self, target: str) -> None: ...


@dataclass
class RecordingUiSink:
    """UI sink that records the requested view switches."""
    requests: list[str] = field(default_factory=list)

    def request_switch(self, target: str) -> None:
        self.requests.append(target)
