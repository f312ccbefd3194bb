"""
Clip-path geometry for element shapes.

Every outline is computed in the element's local coordinate space, with the
origin at the element's top-left corner, so the same shape can be placed
anywhere on the wall with :py:meth:`Outline.translate`.

Example::

    from wallcomp.composite.geometry import clip_path
    from wallcomp.constants import Shape

    outline = clip_path(Shape.STAR, 200, 100)
    outline.vertices()  # 10 points, first one straight up

Curves are cubic beziers; circles and ellipses use the usual four-arc
approximation.
"""

import logging
import math
from typing import Iterator, List, Tuple

from attrs import define, field

from wallcomp.constants import Shape
from wallcomp.registry import check_exhaustive, new_registry

logger = logging.getLogger(__name__)

SHAPES, register = new_registry(attribute="shape")

# Control point distance of a quarter-circle cubic bezier.
KAPPA = 4.0 * (math.sqrt(2.0) - 1.0) / 3.0

# Star.
STAR_POINTS = 5
STAR_INNER_RATIO = 0.5

# Heart indentation relative to the heart size.
HEART_TOP_RATIO = 0.3

Command = Tuple  # ("M", x, y) | ("L", x, y) | ("C", x1, y1, x2, y2, x, y) | ("Z",)
Point = Tuple[float, float]


@define(frozen=True)
class Outline(object):
    """
    Closed path made of ``M``, ``L``, ``C`` and ``Z`` commands.

    .. py:attribute:: commands

        Tuple of command tuples; coordinates are absolute.
    """

    commands: Tuple[Command, ...] = field(converter=tuple)

    def __iter__(self) -> Iterator[Command]:
        return iter(self.commands)

    def __len__(self) -> int:
        return len(self.commands)

    def vertices(self) -> List[Point]:
        """Anchor points of the path, without the implicit closing point."""
        points = []
        for command in self.commands:
            if command[0] in ("M", "L", "C"):
                points.append((command[-2], command[-1]))
        if len(points) > 1 and _close(points[0], points[-1]):
            points.pop()
        return points

    def bounds(self) -> Tuple[float, float, float, float]:
        """Bounding box of all anchor and control points."""
        xs, ys = [], []
        for command in self.commands:
            xs.extend(command[1::2])
            ys.extend(command[2::2])
        return (min(xs), min(ys), max(xs), max(ys))

    def translate(self, dx: float, dy: float) -> "Outline":
        return self._map(lambda x, y: (x + dx, y + dy))

    def scale(self, sx: float, sy: float = None) -> "Outline":
        sy = sx if sy is None else sy
        return self._map(lambda x, y: (x * sx, y * sy))

    def to_symbol(self) -> str:
        """SVG path text, as understood by ``aggdraw.Symbol``."""
        return " ".join(map(str, _generate_symbol(self.commands)))

    def _map(self, func) -> "Outline":
        commands = []
        for command in self.commands:
            values = []
            for x, y in zip(command[1::2], command[2::2]):
                values.extend(func(x, y))
            commands.append((command[0],) + tuple(values))
        return Outline(commands)


def clip_path(shape: Shape, width: float, height: float) -> Outline:
    """
    Outline restricting where an element's pixels are visible.

    :param shape: :py:class:`~wallcomp.constants.Shape` of the element.
    :param width: element width.
    :param height: element height.
    :return: :py:class:`Outline` in element-local coordinates.
    """
    builder = SHAPES[Shape(shape)]
    return Outline(builder(width, height))


@register(Shape.RECTANGLE)
def _rectangle(width: float, height: float) -> List[Command]:
    return [
        ("M", 0.0, 0.0),
        ("L", width, 0.0),
        ("L", width, height),
        ("L", 0.0, height),
        ("Z",),
    ]


@register(Shape.CIRCLE)
def _circle(width: float, height: float) -> List[Command]:
    radius = min(width, height) / 2.0
    return _ellipse(width / 2.0, height / 2.0, radius, radius)


@register(Shape.OVAL)
def _oval(width: float, height: float) -> List[Command]:
    return _ellipse(width / 2.0, height / 2.0, width / 2.0, height / 2.0)


@register(Shape.STAR)
def _star(width: float, height: float) -> List[Command]:
    cx, cy = width / 2.0, height / 2.0
    outer = min(width, height) / 2.0
    inner = outer * STAR_INNER_RATIO
    step = math.pi / STAR_POINTS
    commands: List[Command] = []
    # Starting at 3/2 pi puts the first vertex straight up.
    for i in range(2 * STAR_POINTS):
        angle = 1.5 * math.pi + i * step
        radius = outer if i % 2 == 0 else inner
        x = cx + math.cos(angle) * radius
        y = cy + math.sin(angle) * radius
        if i == 0:
            x = cx  # cos(3/2 pi) is not exactly zero.
        commands.append(("M" if i == 0 else "L", x, y))
    commands.append(("Z",))
    return commands


@register(Shape.HEART)
def _heart(width: float, height: float) -> List[Command]:
    cx, cy = width / 2.0, height / 2.0
    size = min(width, height) / 2.0
    top = size * HEART_TOP_RATIO
    half = size / 2.0
    middle = cy + (size + top) / 2.0
    return [
        ("M", cx, cy + top),
        ("C", cx, cy, cx - half, cy, cx - half, cy + top),
        ("C", cx - half, middle, cx, middle, cx, cy + size),
        ("C", cx, middle, cx + half, middle, cx + half, cy + top),
        ("C", cx + half, cy, cx, cy, cx, cy + top),
        ("Z",),
    ]


def _ellipse(cx: float, cy: float, rx: float, ry: float) -> List[Command]:
    kx, ky = KAPPA * rx, KAPPA * ry
    return [
        ("M", cx + rx, cy),
        ("C", cx + rx, cy + ky, cx + kx, cy + ry, cx, cy + ry),
        ("C", cx - kx, cy + ry, cx - rx, cy + ky, cx - rx, cy),
        ("C", cx - rx, cy - ky, cx - kx, cy - ry, cx, cy - ry),
        ("C", cx + kx, cy - ry, cx + rx, cy - ky, cx + rx, cy),
        ("Z",),
    ]


def _generate_symbol(commands):
    """Sequence generator for SVG path."""
    for command in commands:
        yield command[0]
        for value in command[1:]:
            yield "%.4f" % value


def _close(a: Point, b: Point, eps: float = 1e-9) -> bool:
    return abs(a[0] - b[0]) < eps and abs(a[1] - b[1]) < eps


check_exhaustive(SHAPES, Shape)
