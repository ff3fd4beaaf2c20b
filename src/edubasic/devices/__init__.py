"""
Interpreter Collaborators
=========================

Devices the statements act on. Each concern is described by a Protocol
and ships with one in-process implementation:

- **Graphics**: Canvas (Pillow image)
- **Audio**: RecordingAudio (event log)
- **Console**: BufferConsole (buffered, optionally echoed)
- **FileSystem**: VirtualFileSystem (in-memory tree)
- **UI requests**: RecordingUiSink
"""

from dataclasses import dataclass
from typing import Optional

from edubasic.devices.audio import Audio, AudioEvent, RecordingAudio
from edubasic.devices.console import BufferConsole, Console, RecordingUiSink, UiRequestSink
from edubasic.devices.filesystem import VirtualFileSystem
from edubasic.devices.graphics import Canvas, Graphics, Turtle, pack_color, resolve_color, unpack_color


@dataclass
class Devices:
    """
    Collaborator bundle handed to the runtime engine.

    Any device may be None; statements that need a missing device raise
    a runtime error, except HELP and CONSOLE which do nothing without a
    console.
    """
    graphics: Optional[Graphics] = None
    audio: Optional[Audio] = None
    console: Optional[Console] = None
    file_system: Optional[VirtualFileSystem] = None
    ui: Optional[UiRequestSink] = None

    @classmethod
    def in_memory(cls, width: int = 640, height: int = 480, echo: bool = False) -> "Devices":
        """A full set of in-process devices."""
        return cls(
            graphics=Canvas(width, height),
            audio=RecordingAudio(),
            console=BufferConsole(echo=echo),
            file_system=VirtualFileSystem(),
            ui=RecordingUiSink(),
        )


__all__ = [
    "Audio",
    "AudioEvent",
    "BufferConsole",
    "Canvas",
    "Console",
    "Devices",
    "Graphics",
    "RecordingAudio",
    "RecordingUiSink",
    "Turtle",
    "UiRequestSink",
    "VirtualFileSystem",
    "pack_color",
    "resolve_color",
    "unpack_color",
]
