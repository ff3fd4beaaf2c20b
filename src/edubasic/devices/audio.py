"""
Audio Sequencer
===============

The audio statements (TEMPO, VOLUME, VOICE, PLAY, SET AUDIO) drive an
Audio implementation. No sound is synthesized: RecordingAudio keeps an
ordered event log that callers and tests can inspect.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol
import logging

logger = logging.getLogger(__name__)


class Audio(Protocol):
    def set_tempo(self, bpm: float) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def configure_voice(self, voice: int, instrument: Any) -> None: ...

    def play(self, voice: int, mml: str) -> None: ...

    def mute(self, muted: bool) -> None: ...


@dataclass(frozen=True)
class AudioEvent:
    """One recorded call: kind is tempo, volume, voice, play or mute."""
    kind: str
    args: tuple = ()


@dataclass
class RecordingAudio:
    """
    Audio implementation that records events.

    PLAY while muted is still validated but not recorded.

    Attributes:
        events: Recorded events, oldest first
        tempo: Current tempo in beats per minute
        volume: Current volume (0-100)
        voices: Instrument assigned to each voice
        muted: True after SET AUDIO OFF
    """
    events: list[AudioEvent] = field(default_factory=list)
    tempo: float = 120.0
    volume: float = 100.0
    voices: dict[int, Any] = field(default_factory=dict)
    muted: bool = False

    def set_tempo(self, bpm: float) -> None:
        self.tempo = bpm
        self._record("tempo", bpm)

    def set_volume(self, volume: float) -> None:
        self.volume = volume
        self._record("volume", volume)

    def configure_voice(self, voice: int, instrument: Any) -> None:
        self.voices[voice] = instrument
        self._record("voice", voice, instrument)

    def play(self, voice: int, mml: str) -> None:
        if self.muted:
            logger.debug("Muted: skipped PLAY on voice %d", voice)
            return
        self._record("play", voice, mml)

    def mute(self, muted: bool) -> None:
        self.muted = muted
        self._record("mute", muted)

    def _record(self, kind: str, *args: Any) -> None:
        logger.debug("audio %s %s", kind, args)
        self.events.append(AudioEvent(kind, args))

    def played(self) -> list[tuple[int, str]]:
        """(voice, mml) pairs of every recorded PLAY."""
        return [event.args for event in self.events if event.kind == "play"]
