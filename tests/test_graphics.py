# =============================================================================
# test_graphics.py - Graphics, Audio and Device Tests
# =============================================================================
# Tests for the Pillow canvas, the turtle, the graphics statements, the
# audio event log and the UI switch requests.
# =============================================================================

import pytest

from edubasic.devices import Devices
from edubasic.devices.graphics import BLACK, WHITE, Canvas, pack_color, resolve_color, unpack_color
from edubasic.errors import BasicRuntimeError
from edubasic.line_parser import parse_program
from edubasic.runtime import RuntimeEngine

RED = pack_color((255, 0, 0, 255))
GREEN = pack_color((0, 128, 0, 255))


def lines(*text: str) -> str:
    return "\n".join(text)


# =============================================================================
# Colors
# =============================================================================

class TestColors:
    """Packed integers and Pillow color names."""

    def test_pack_unpack(self):
        assert pack_color((1, 2, 3, 4)) == 0x01020304
        assert unpack_color(0x01020304) == (1, 2, 3, 4)

    def test_pack_defaults_alpha(self):
        assert pack_color((255, 255, 255)) == 0xFFFFFFFF

    def test_resolve_name(self):
        assert resolve_color("red") == (255, 0, 0, 255)
        assert resolve_color("#00ff00") == (0, 255, 0, 255)

    def test_resolve_unknown_name(self):
        with pytest.raises(BasicRuntimeError, match="Unknown color name: nocolor"):
            resolve_color("nocolor")

    def test_resolve_wrong_type(self):
        with pytest.raises(BasicRuntimeError):
            resolve_color(1.5)


# =============================================================================
# Canvas
# =============================================================================

class TestCanvas:
    """Canvas primitives."""

    def test_defaults(self):
        canvas = Canvas(10, 10)
        assert canvas.foreground == WHITE
        assert canvas.get_pixel(0, 0) == pack_color(BLACK)
        assert not canvas.dirty

    def test_pixel(self):
        canvas = Canvas(10, 10)
        canvas.draw_pixel(3, 4, (255, 0, 0, 255))
        assert canvas.get_pixel(3, 4) == RED
        assert canvas.dirty

    def test_offscreen_is_ignored(self):
        canvas = Canvas(10, 10)
        canvas.draw_pixel(50, 50)
        assert canvas.get_pixel(50, 50) == 0

    def test_filled_rectangle(self):
        canvas = Canvas(10, 10)
        canvas.draw_rectangle(6, 6, 2, 2, (255, 0, 0, 255), filled=True)
        assert canvas.get_pixel(4, 4) == RED
        assert canvas.get_pixel(7, 7) == pack_color(BLACK)

    def test_outline_rectangle(self):
        canvas = Canvas(10, 10)
        canvas.draw_rectangle(2, 2, 6, 6)
        assert canvas.get_pixel(2, 4) == pack_color(WHITE)
        assert canvas.get_pixel(4, 4) == pack_color(BLACK)

    def test_paint_fills_region(self):
        canvas = Canvas(10, 10)
        canvas.draw_rectangle(2, 2, 6, 6)
        canvas.paint(4, 4, (255, 0, 0, 255))
        assert canvas.get_pixel(4, 4) == RED
        assert canvas.get_pixel(0, 0) == pack_color(BLACK)

    def test_clear_uses_background(self):
        canvas = Canvas(4, 4)
        canvas.draw_pixel(1, 1)
        canvas.set_background((0, 0, 255, 255))
        canvas.clear()
        assert canvas.get_pixel(1, 1) == pack_color((0, 0, 255, 255))

    def test_blocks(self):
        canvas = Canvas(10, 10)
        canvas.draw_pixel(1, 1, (255, 0, 0, 255))
        block = canvas.get_block(2, 2, 1, 1)
        assert block == [[RED, pack_color(BLACK)], [pack_color(BLACK), pack_color(BLACK)]]
        canvas.put_block(5, 5, block)
        assert canvas.get_pixel(5, 5) == RED

    def test_render_png(self):
        assert Canvas(4, 4).render_png().startswith(b"\x89PNG")

    def test_save(self, tmp_path):
        target = tmp_path / "out.png"
        Canvas(4, 4).save(target)
        assert target.read_bytes().startswith(b"\x89PNG")


class TestTurtle:
    """TURTLE command strings."""

    def test_forward_draws_up(self):
        canvas = Canvas(20, 20)
        canvas.turtle.run("FD 5")
        assert canvas.get_pixel(10, 7) == pack_color(WHITE)
        assert (round(canvas.turtle.x), round(canvas.turtle.y)) == (10, 5)

    def test_pen_up_moves_without_drawing(self):
        canvas = Canvas(20, 20)
        canvas.turtle.run("PU RT 90 FD 5")
        assert (round(canvas.turtle.x), round(canvas.turtle.y)) == (15, 10)
        assert canvas.get_pixel(13, 10) == pack_color(BLACK)

    def test_heading_wraps(self):
        canvas = Canvas(20, 20)
        canvas.turtle.run("LT 90")
        assert canvas.turtle.heading == 270

    def test_unknown_command(self):
        with pytest.raises(BasicRuntimeError, match="TURTLE: unknown command JUMP"):
            Canvas(20, 20).turtle.run("JUMP")

    def test_missing_number(self):
        with pytest.raises(BasicRuntimeError, match="TURTLE: FD requires a number"):
            Canvas(20, 20).turtle.run("FD")


# =============================================================================
# Graphics Statements
# =============================================================================

class TestGraphicsStatements:
    """Programs that draw."""

    def test_pset_with_color_name(self, run_program):
        interp = run_program('PSET (3, 4) WITH "red"')
        assert interp.devices.graphics.get_pixel(3, 4) == RED

    def test_color_sets_foreground(self, run_program):
        interp = run_program(lines('COLOR "green"', "PSET (1, 1)"))
        assert interp.devices.graphics.get_pixel(1, 1) == GREEN
        assert interp.console.colors[0] == GREEN

    def test_line_and_rectangle(self, run_program):
        interp = run_program(lines(
            'LINE FROM (0, 0) TO (9, 0) WITH "red"',
            'RECTANGLE FROM (10, 10) TO (20, 20) WITH "red" FILLED',
        ))
        graphics = interp.devices.graphics
        assert graphics.get_pixel(5, 0) == RED
        assert graphics.get_pixel(15, 15) == RED

    def test_circle_filled(self, run_program):
        interp = run_program('CIRCLE AT (30, 20) RADIUS 5 WITH "red" FILLED')
        assert interp.devices.graphics.get_pixel(30, 20) == RED

    def test_get_put_block(self, run_program):
        interp = run_program(lines(
            'PSET (0, 0) WITH "red"',
            "GET sprite% FROM (0, 0) TO (1, 1)",
            "PUT sprite% AT (10, 10)",
        ))
        assert interp.devices.graphics.get_pixel(10, 10) == RED
        block = interp.context.get_variable("sprite%[,]")
        assert block.bounds == [(1, 2), (1, 2)]

    def test_put_requires_block(self, run_program):
        interp = run_program(lines("LET b%[,] = [1, 2]", "PUT b% AT (0, 0)"))
        assert interp.last_result.error.message == "PUT: b% is not a pixel block"

    def test_turtle_statement(self, run_program):
        interp = run_program('TURTLE "FD 10"')
        graphics = interp.devices.graphics
        assert graphics.get_pixel(32, 20) == pack_color(WHITE)

    def test_graphics_view_requested_once(self, run_program):
        interp = run_program(lines("PSET (1, 1)", "PSET (2, 2)", "CLS"))
        assert interp.devices.ui.requests == ["graphics"]

    def test_text_only_program_requests_nothing(self, run_program):
        interp = run_program('PRINT "x"')
        assert interp.devices.ui.requests == []

    def test_missing_graphics_device(self):
        program, _ = parse_program("PSET (1, 1)")
        engine = RuntimeEngine(program, devices=Devices())
        with pytest.raises(BasicRuntimeError, match="No graphics device attached"):
            engine.step()


# =============================================================================
# Audio
# =============================================================================

class TestAudio:
    """Audio statements record events."""

    def test_events_in_order(self, run_program):
        interp = run_program(lines(
            "TEMPO 90",
            "VOLUME 150",
            'VOICE 1 INSTRUMENT "piano"',
            'PLAY 1, "CDE"',
        ))
        audio = interp.devices.audio
        assert [event.kind for event in audio.events] == ["tempo", "volume", "voice", "play"]
        assert audio.tempo == 90
        assert audio.volume == 100
        assert audio.voices == {1: "piano"}
        assert audio.played() == [(1, "CDE")]

    def test_set_audio_off_mutes(self, run_program):
        interp = run_program(lines("SET AUDIO OFF", 'PLAY 1, "C"'))
        assert interp.devices.audio.muted
        assert interp.devices.audio.played() == []
        assert interp.context.settings == {"AUDIO": False}

    def test_tempo_must_be_positive(self, run_program):
        interp = run_program("TEMPO 0")
        assert interp.last_result.error.message == "TEMPO: beats per minute must be positive"
