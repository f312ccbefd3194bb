"""
Procedural element frames.

Each frame style is a class registered for one
:py:class:`~wallcomp.constants.FrameType` and holding its own constants.
Styles describe their strokes as :py:class:`Stroke` records; the compositor
rasterizes them. A new style only needs one more registered class::

    @register(FrameType.CLASSIC)
    class Classic(FrameStyle):
        def strokes(self, rect, width, color):
            return [Stroke(expand(rect, width / 2), width, color)]

Frames are drawn with an effective width of ``0.6 × frame.width``; strokes
are centred on their path, so a frame at full width would look heavier than
in the editor.
"""

import logging
import math
from typing import List, Tuple

from attrs import define, field

from wallcomp.constants import DEFAULT_FRAME_COLOR, FrameType
from wallcomp.registry import check_exhaustive, new_registry
from wallcomp.scene import Color, Frame

logger = logging.getLogger(__name__)

FRAME_STYLES, register = new_registry(attribute="frame_type")

WIDTH_RATIO = 0.6

Rect = Tuple[float, float, float, float]


@define(frozen=True)
class Stroke(object):
    """
    One stroked rectangle.

    .. py:attribute:: rect

        (left, top, right, bottom) of the path the stroke is centred on.
    """

    rect: Rect = field(converter=tuple)
    width: float
    color: Color
    opacity: float = 1.0


def expand(rect: Rect, amount: float) -> Rect:
    """Grow a rectangle outward by ``amount`` on every side."""
    return (rect[0] - amount, rect[1] - amount, rect[2] + amount, rect[3] + amount)


def effective_width(frame: Frame) -> float:
    return frame.width * WIDTH_RATIO


def draw_frame(rect: Rect, frame: Frame) -> List[Stroke]:
    """
    Strokes of the frame around an element's placed rectangle.

    :param rect: element (left, top, right, bottom) in wall coordinates.
    :return: strokes in paint order; empty when the frame is not visible.
    """
    if not frame.visible:
        return []
    style = FRAME_STYLES[frame.type]()
    color = frame.color or Color.parse(DEFAULT_FRAME_COLOR)
    strokes = style.strokes(rect, effective_width(frame), color)
    logger.debug("%s frame: %d strokes" % (frame.type.value, len(strokes)))
    return strokes


class FrameStyle(object):
    """Base class of frame styles."""

    frame_type: FrameType

    def strokes(self, rect: Rect, width: float, color: Color) -> List[Stroke]:
        raise NotImplementedError


@register(FrameType.NONE)
class NoFrame(FrameStyle):
    def strokes(self, rect, width, color):
        return []


@register(FrameType.CLASSIC)
class Classic(FrameStyle):
    """Single stroke of the frame colour just outside the element."""

    def strokes(self, rect, width, color):
        return [Stroke(expand(rect, width / 2.0), width, color)]


@register(FrameType.MODERN)
class Modern(FrameStyle):
    """Like classic, in a fixed dark neutral."""

    COLOR = "#333333"

    def strokes(self, rect, width, color):
        return [Stroke(expand(rect, width / 2.0), width, Color.parse(self.COLOR))]


@register(FrameType.VINTAGE)
class Vintage(FrameStyle):
    """
    Ridge: one ring per pixel of width, each 1px further out and fading
    linearly from opaque to ``1 - FADE``.
    """

    FADE = 0.3

    def strokes(self, rect, width, color):
        rings = int(math.ceil(width))
        return [
            Stroke(expand(rect, i), width, color, 1.0 - (i / width) * self.FADE)
            for i in range(rings)
        ]


@register(FrameType.ORNATE)
class Ornate(FrameStyle):
    """Two thin gold rings."""

    COLOR = "#DAA520"
    OUTER_OFFSET = 0.8
    INNER_OFFSET = 0.5
    THICKNESS = 1.0 / 3.0

    def strokes(self, rect, width, color):
        gold = Color.parse(self.COLOR)
        thickness = width * self.THICKNESS
        return [
            Stroke(expand(rect, width * self.OUTER_OFFSET), thickness, gold),
            Stroke(expand(rect, width * self.INNER_OFFSET), thickness, gold),
        ]


@register(FrameType.RUSTIC)
class Rustic(FrameStyle):
    """Full-thickness stroke with faint grain lines every ``SPACING`` px."""

    SPACING = 2
    GRAIN_WIDTH = 0.5
    GRAIN_OPACITY = 0.3

    def strokes(self, rect, width, color):
        strokes = [Stroke(expand(rect, width / 2.0), width, color)]
        offset = 0
        while offset < width:
            strokes.append(
                Stroke(expand(rect, offset), self.GRAIN_WIDTH, color, self.GRAIN_OPACITY)
            )
            offset += self.SPACING
        return strokes


check_exhaustive(FRAME_STYLES, FrameType)
