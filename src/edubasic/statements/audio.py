"""
Audio Statements: TEMPO, VOLUME, VOICE, PLAY
"""

from dataclasses import dataclass

from edubasic.errors import BasicRuntimeError
from edubasic.expressions import Expression
from edubasic.statements.base import ExecutionResult, Outcome, Statement, evaluate_int, evaluate_number, evaluate_string


@dataclass
class TempoStatement(Statement):
    """TEMPO bpm"""
    bpm: Expression

    def execute(self, context, runtime) -> Outcome:
        bpm = evaluate_number(self.bpm, context, "TEMPO")
        if bpm <= 0:
            raise BasicRuntimeError("TEMPO: beats per minute must be positive")
        runtime.require("audio").set_tempo(bpm)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"TEMPO {self.bpm}"


@dataclass
class VolumeStatement(Statement):
    """VOLUME level, clamped to 0..100"""
    level: Expression

    def execute(self, context, runtime) -> Outcome:
        level = evaluate_number(self.level, context, "VOLUME")
        runtime.require("audio").set_volume(min(100, max(0, level)))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"VOLUME {self.level}"


@dataclass
class VoiceStatement(Statement):
    """VOICE voice INSTRUMENT instrument"""
    voice: Expression
    instrument: Expression

    def execute(self, context, runtime) -> Outcome:
        voice = evaluate_int(self.voice, context, "VOICE")
        runtime.require("audio").configure_voice(voice, self.instrument.evaluate(context))
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"VOICE {self.voice} INSTRUMENT {self.instrument}"


@dataclass
class PlayStatement(Statement):
    """PLAY voice, mml$"""
    voice: Expression
    mml: Expression

    def execute(self, context, runtime) -> Outcome:
        voice = evaluate_int(self.voice, context, "PLAY")
        mml = evaluate_string(self.mml, context, "PLAY")
        runtime.require("audio").play(voice, mml)
        return ExecutionResult.CONTINUE

    def __str__(self) -> str:
        return f"PLAY {self.voice}, {self.mml}"
