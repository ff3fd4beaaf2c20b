"""
Graphics Canvas
===============

Raster canvas the graphics statements draw on, rendered with Pillow.

Colors are either packed 32-bit integers in 0xRRGGBBAA order or color
names understood by Pillow's ImageColor ("red", "#00ff00", ...).

The canvas also carries the turtle: a pen with a position and heading
driven by TURTLE command strings (FD n, BK n, LT a, RT a, PU, PD, HOME).
"""

from pathlib import Path
from typing import Any, Optional, Protocol, Union
import io
import logging
import math

from PIL import Image, ImageColor, ImageDraw

from edubasic.errors import BasicRuntimeError

logger = logging.getLogger(__name__)

RGBA = tuple[int, int, int, int]

WHITE: RGBA = (255, 255, 255, 255)
BLACK: RGBA = (0, 0, 0, 255)


# =============================================================================
# Color Conversion
# =============================================================================

def unpack_color(color: int) -> RGBA:
    """0xRRGGBBAA -> (r, g, b, a)."""
    color &= 0xFFFFFFFF
    return (color >> 24) & 0xFF, (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


def pack_color(rgba: tuple) -> int:
    r, g, b = rgba[:3]
    a = rgba[3] if len(rgba) > 3 else 255
    return (r << 24) | (g << 16) | (b << 8) | a


def resolve_color(value: Any) -> RGBA:
    """
    Convert a language value to an RGBA tuple.

    Raises:
        BasicRuntimeError: For unknown names and non-color values
    """
    if isinstance(value, int):
        return unpack_color(value)
    if not isinstance(value, str):
        raise BasicRuntimeError("Color must be an integer or a color name")
    try:
        rgb = ImageColor.getrgb(value)
    except ValueError:
        raise BasicRuntimeError(f"Unknown color name: {value}") from None
    return (*rgb[:3], rgb[3] if len(rgb) > 3 else 255)


# =============================================================================
# Graphics Interface
# =============================================================================

class Graphics(Protocol):
    """Drawing surface used by the graphics statements."""

    width: int
    height: int
    turtle: "Turtle"

    def clear(self) -> None: ...

    def set_foreground(self, color: RGBA) -> None: ...

    def set_background(self, color: RGBA) -> None: ...

    def draw_pixel(self, x: int, y: int, color: Optional[RGBA] = None) -> None: ...

    def draw_line(self, x1: int, y1: int, x2: int, y2: int, color: Optional[RGBA] = None) -> None: ...

    def draw_rectangle(self, x1: int, y1: int, x2: int, y2: int,
                       color: Optional[RGBA] = None, filled: bool = False) -> None: ...

    def draw_oval(self, cx: int, cy: int, rx: int, ry: int,
                  color: Optional[RGBA] = None, filled: bool = False) -> None: ...

    def draw_circle(self, cx: int, cy: int, radius: int,
                    color: Optional[RGBA] = None, filled: bool = False) -> None: ...

    def draw_triangle(self, points: list[tuple[int, int]],
                      color: Optional[RGBA] = None, filled: bool = False) -> None: ...

    def draw_arc(self, cx: int, cy: int, radius: int, start: float, end: float,
                 color: Optional[RGBA] = None) -> None: ...

    def paint(self, x: int, y: int, color: RGBA) -> None: ...

    def get_block(self, x1: int, y1: int, x2: int, y2: int) -> list[list[int]]: ...

    def put_block(self, x: int, y: int, rows: list[list[int]]) -> None: ...


# =============================================================================
# Turtle
# =============================================================================

class Turtle:
    """
    Turtle pen on a graphics surface.

    Heading is in degrees, 0 pointing up (north), increasing clockwise.
    The turtle starts in the centre of the surface with the pen down.
    """

    def __init__(self, graphics: "Canvas"):
        self.graphics = graphics
        self.home()

    def home(self) -> None:
        self.x = self.graphics.width / 2
        self.y = self.graphics.height / 2
        self.heading = 0.0
        self.pen_down = True

    def forward(self, distance: float) -> None:
        radians = math.radians(self.heading)
        new_x = self.x + distance * math.sin(radians)
        new_y = self.y - distance * math.cos(radians)
        if self.pen_down:
            self.graphics.draw_line(round(self.x), round(self.y), round(new_x), round(new_y))
        self.x, self.y = new_x, new_y

    def run(self, commands: str) -> None:
        """
        Execute a command string such as "PD FD 50 RT 90 FD 50".

        Raises:
            BasicRuntimeError: For unknown commands or missing arguments
        """
        words = commands.replace(",", " ").split()
        i = 0
        while i < len(words):
            command = words[i].upper()
            i += 1
            if command in ("PU", "PENUP"):
                self.pen_down = False
            elif command in ("PD", "PENDOWN"):
                self.pen_down = True
            elif command == "HOME":
                self.home()
            elif command in ("FD", "BK", "LT", "RT"):
                if i >= len(words):
                    raise BasicRuntimeError(f"TURTLE: {command} requires a number")
                try:
                    amount = float(words[i])
                except ValueError:
                    raise BasicRuntimeError(f"TURTLE: {command} requires a number, got {words[i]}") from None
                i += 1
                if command == "FD":
                    self.forward(amount)
                elif command == "BK":
                    self.forward(-amount)
                elif command == "LT":
                    self.heading = (self.heading - amount) % 360
                else:
                    self.heading = (self.heading + amount) % 360
            else:
                raise BasicRuntimeError(f"TURTLE: unknown command {words[i - 1]}")


# =============================================================================
# Pillow Canvas
# =============================================================================

class Canvas:
    """
    Graphics surface backed by a Pillow RGBA image.

    Usage:
        canvas = Canvas(320, 200)
        canvas.draw_circle(160, 100, 50, (255, 0, 0, 255), filled=True)
        canvas.save("out.png")
    """

    def __init__(self, width: int = 640, height: int = 480):
        self.width = width
        self.height = height
        self.foreground: RGBA = WHITE
        self.background: RGBA = BLACK
        self.image = Image.new("RGBA", (width, height), color=self.background)
        self._draw = ImageDraw.Draw(self.image)
        self.turtle = Turtle(self)
        self.dirty = False

    def clear(self) -> None:
        self._draw.rectangle([0, 0, self.width - 1, self.height - 1], fill=self.background)
        self.turtle.home()
        self.dirty = True

    def set_foreground(self, color: RGBA) -> None:
        self.foreground = color

    def set_background(self, color: RGBA) -> None:
        self.background = color

    def _color(self, color: Optional[RGBA]) -> RGBA:
        self.dirty = True
        return color if color is not None else self.foreground

    # =========================================================================
    # Primitives
    # =========================================================================

    def get_pixel(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return 0
        return pack_color(self.image.getpixel((x, y)))

    def draw_pixel(self, x: int, y: int, color: Optional[RGBA] = None) -> None:
        fill = self._color(color)
        if 0 <= x < self.width and 0 <= y < self.height:
            self.image.putpixel((x, y), fill)

    def draw_line(self, x1: int, y1: int, x2: int, y2: int, color: Optional[RGBA] = None) -> None:
        self._draw.line([(x1, y1), (x2, y2)], fill=self._color(color))

    def draw_rectangle(self, x1: int, y1: int, x2: int, y2: int,
                       color: Optional[RGBA] = None, filled: bool = False) -> None:
        fill = self._color(color)
        box = [min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2)]
        self._draw.rectangle(box, outline=fill, fill=fill if filled else None)

    def draw_oval(self, cx: int, cy: int, rx: int, ry: int,
                  color: Optional[RGBA] = None, filled: bool = False) -> None:
        fill = self._color(color)
        rx, ry = abs(rx), abs(ry)
        box = [cx - rx, cy - ry, cx + rx, cy + ry]
        self._draw.ellipse(box, outline=fill, fill=fill if filled else None)

    def draw_circle(self, cx: int, cy: int, radius: int,
                    color: Optional[RGBA] = None, filled: bool = False) -> None:
        self.draw_oval(cx, cy, radius, radius, color, filled)

    def draw_triangle(self, points: list[tuple[int, int]],
                      color: Optional[RGBA] = None, filled: bool = False) -> None:
        fill = self._color(color)
        self._draw.polygon(points, outline=fill, fill=fill if filled else None)

    def draw_arc(self, cx: int, cy: int, radius: int, start: float, end: float,
                 color: Optional[RGBA] = None) -> None:
        """Arc from start to end degrees, counter-clockwise from 3 o'clock."""
        fill = self._color(color)
        radius = abs(radius)
        box = [cx - radius, cy - radius, cx + radius, cy + radius]
        # Pillow measures angles clockwise; flip to the mathematical sense
        self._draw.arc(box, start=-end, end=-start, fill=fill)

    def paint(self, x: int, y: int, color: RGBA) -> None:
        """Flood fill the region containing (x, y)."""
        if 0 <= x < self.width and 0 <= y < self.height:
            ImageDraw.floodfill(self.image, (x, y), self._color(color))

    # =========================================================================
    # Blocks
    # =========================================================================

    def get_block(self, x1: int, y1: int, x2: int, y2: int) -> list[list[int]]:
        """Packed colors of the inclusive rectangle, one list per row."""
        left, right = sorted((x1, x2))
        top, bottom = sorted((y1, y2))
        return [
            [self.get_pixel(x, y) for x in range(left, right + 1)]
            for y in range(top, bottom + 1)
        ]

    def put_block(self, x: int, y: int, rows: list[list[int]]) -> None:
        for dy, row in enumerate(rows):
            for dx, color in enumerate(row):
                self.draw_pixel(x + dx, y + dy, unpack_color(color))

    # =========================================================================
    # Output
    # =========================================================================

    def render_png(self) -> bytes:
        buffer = io.BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()

    def save(self, path: Union[str, Path]) -> None:
        self.image.save(str(path), format="PNG")
        logger.debug("Saved %dx%d canvas to %s", self.width, self.height, path)
