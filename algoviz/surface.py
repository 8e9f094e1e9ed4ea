"""
Rendering sink abstraction.

Strategies only ever talk to a ``Surface``: rectangles, lines, circles and
text on an 800x400 logical canvas, an optional keyed transition per
primitive, and a full clear. ``RecordingSurface`` keeps the emitted draw
commands as plain values; the manim-backed surface lives in
``algoviz.manim_renderer``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from algoviz.config import CANVAS_HEIGHT, CANVAS_WIDTH


@dataclass(frozen=True)
class Transition:
    """Time-based interpolation the sink may apply when painting a primitive.

    ``fade`` transitions fade the primitive in; otherwise the sink
    interpolates geometry from the previous primitive with the same key.
    """

    duration: float
    easing: str = "cubic-in-out"
    delay: float = 0.0
    fade: bool = False


@dataclass(frozen=True)
class ClearCommand:
    pass


@dataclass(frozen=True)
class RectCommand:
    x: float
    y: float
    width: float
    height: float
    fill: str
    stroke: Optional[str] = None
    stroke_width: float = 1.0
    opacity: float = 1.0
    key: Optional[str] = None
    transition: Optional[Transition] = None


@dataclass(frozen=True)
class LineCommand:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str
    stroke_width: float = 1.5
    key: Optional[str] = None


@dataclass(frozen=True)
class CircleCommand:
    cx: float
    cy: float
    r: float
    fill: str
    stroke: Optional[str] = None
    stroke_width: float = 2.0
    key: Optional[str] = None
    transition: Optional[Transition] = None


@dataclass(frozen=True)
class TextCommand:
    x: float
    y: float
    content: str
    fill: str
    size: float = 12.0
    anchor: str = "middle"
    bold: bool = False
    key: Optional[str] = None
    transition: Optional[Transition] = None


DrawCommand = Union[ClearCommand, RectCommand, LineCommand, CircleCommand, TextCommand]


class Surface(ABC):
    """Drawing capability handed to the render strategies."""

    width: float = CANVAS_WIDTH
    height: float = CANVAS_HEIGHT

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def rect(self, x: float, y: float, width: float, height: float, *, fill: str,
             stroke: Optional[str] = None, stroke_width: float = 1.0, opacity: float = 1.0,
             key: Optional[str] = None, transition: Optional[Transition] = None) -> None:
        ...

    @abstractmethod
    def line(self, x1: float, y1: float, x2: float, y2: float, *, stroke: str,
             stroke_width: float = 1.5, key: Optional[str] = None) -> None:
        ...

    @abstractmethod
    def circle(self, cx: float, cy: float, r: float, *, fill: str, stroke: Optional[str] = None,
               stroke_width: float = 2.0, key: Optional[str] = None,
               transition: Optional[Transition] = None) -> None:
        ...

    @abstractmethod
    def text(self, x: float, y: float, content: str, *, fill: str, size: float = 12.0,
             anchor: str = "middle", bold: bool = False, key: Optional[str] = None,
             transition: Optional[Transition] = None) -> None:
        ...


class RecordingSurface(Surface):
    """Surface that records draw commands instead of painting them."""

    def __init__(self):
        self.commands: List[DrawCommand] = []

    def clear(self) -> None:
        self.commands.append(ClearCommand())

    def rect(self, x, y, width, height, *, fill, stroke=None, stroke_width=1.0, opacity=1.0,
             key=None, transition=None) -> None:
        self.commands.append(RectCommand(float(x), float(y), float(width), float(height), fill,
                                         stroke, stroke_width, opacity, key, transition))

    def line(self, x1, y1, x2, y2, *, stroke, stroke_width=1.5, key=None) -> None:
        self.commands.append(LineCommand(float(x1), float(y1), float(x2), float(y2),
                                         stroke, stroke_width, key))

    def circle(self, cx, cy, r, *, fill, stroke=None, stroke_width=2.0, key=None,
               transition=None) -> None:
        self.commands.append(CircleCommand(float(cx), float(cy), float(r), fill, stroke,
                                           stroke_width, key, transition))

    def text(self, x, y, content, *, fill, size=12.0, anchor="middle", bold=False, key=None,
             transition=None) -> None:
        self.commands.append(TextCommand(float(x), float(y), str(content), fill, size, anchor,
                                         bold, key, transition))

    def current_frame(self) -> Tuple[DrawCommand, ...]:
        """Commands painted since the last clear."""
        for pos in range(len(self.commands) - 1, -1, -1):
            if isinstance(self.commands[pos], ClearCommand):
                return tuple(self.commands[pos + 1:])
        return tuple(self.commands)

    def texts(self) -> List[TextCommand]:
        return [c for c in self.current_frame() if isinstance(c, TextCommand)]

    def by_key(self, key: str) -> Optional[DrawCommand]:
        for command in self.current_frame():
            if getattr(command, "key", None) == key:
                return command
        return None
