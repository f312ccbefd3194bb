"""Vector shapes and stroke rasterization for compositing.

Shapes are rasterized into float coverage masks of shape ``(height, width, 1)``
in [0, 1] by drawing on a PIL ``L`` image with aggdraw. All coordinates are
device pixels; ``viewport`` is the (left, top, right, bottom) box the mask
covers.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

import aggdraw  # type: ignore[import-not-found]
import numpy as np
from PIL import Image

from wallcomp.composite.geometry import Outline
from wallcomp.composite.utils import BBox

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
Rect = Tuple[float, float, float, float]


def draw_outline(outline: Outline, viewport: BBox) -> np.ndarray:
    """
    Fill a closed outline.

    Points outside the outline get 0, inside 1, with anti-aliased edges.
    """
    local = outline.translate(-viewport[0], -viewport[1])
    return _draw(viewport, lambda draw: draw.symbol(
        (0, 0), aggdraw.Symbol(local.to_symbol()), None, _brush()
    ))


def draw_rectangle_stroke(
    rect: Rect,
    width: float,
    viewport: BBox,
    dash: Optional[Sequence[float]] = None,
) -> np.ndarray:
    """
    Stroke a rectangle centered on its edges.

    :param rect: (left, top, right, bottom) of the stroked path.
    :param width: stroke thickness.
    :param dash: optional (on, off, ...) pattern; the dash phase continues
        around the corners.
    """
    if width <= 0:
        return np.zeros(_mask_shape(viewport), dtype=np.float32)
    left, top = rect[0] - viewport[0], rect[1] - viewport[1]
    right, bottom = rect[2] - viewport[0], rect[3] - viewport[1]
    pen = _pen(width)
    if not dash or not any(d > 0 for d in dash):
        return _draw(viewport, lambda draw: draw.rectangle(
            (left, top, right, bottom), pen
        ))

    corners = [(left, top), (right, top), (right, bottom), (left, bottom)]
    dashes = dash_polyline(corners, dash, closed=True)

    def _lines(draw):
        for polyline in dashes:
            draw.line([v for point in polyline for v in point], pen)

    return _draw(viewport, _lines)


def dash_polyline(
    points: Sequence[Point], pattern: Sequence[float], closed: bool = False
) -> List[List[Point]]:
    """
    Split a polyline into the "on" pieces of a dash pattern.

    An odd-length pattern is repeated, as canvas line dashes do.
    """
    pattern = list(pattern)
    if len(pattern) % 2 == 1:
        pattern = pattern * 2
    points = list(points)
    if closed and points:
        points.append(points[0])

    dashes: List[List[Point]] = []
    current: List[Point] = []
    index, remaining = 0, pattern[0]
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        length = math.hypot(x1 - x0, y1 - y0)
        position = 0.0
        while length - position > 1e-9:
            step = min(remaining, length - position)
            on = index % 2 == 0
            if on:
                if not current:
                    current.append(_lerp(x0, y0, x1, y1, position / length))
                current.append(_lerp(x0, y0, x1, y1, (position + step) / length))
            position += step
            remaining -= step
            if remaining <= 1e-9:
                if current:
                    dashes.append(current)
                    current = []
                index = (index + 1) % len(pattern)
                remaining = pattern[index]
    if current:
        dashes.append(current)
    return dashes


def _lerp(x0: float, y0: float, x1: float, y1: float, t: float) -> Point:
    return (x0 + (x1 - x0) * t, y0 + (y1 - y0) * t)


def _pen(width: float):
    return aggdraw.Pen(**{"color": 255, "width": float(width)})


def _brush():
    return aggdraw.Brush(**{"color": 255})


def _mask_shape(viewport: BBox) -> Tuple[int, int, int]:
    return (viewport[3] - viewport[1], viewport[2] - viewport[0], 1)


def _draw(viewport: BBox, paint) -> np.ndarray:
    height, width = viewport[3] - viewport[1], viewport[2] - viewport[0]
    mask = Image.new("L", (width, height), 0)
    draw = aggdraw.Draw(mask)
    paint(draw)
    draw.flush()
    del draw
    return np.expand_dims(np.array(mask).astype(np.float32) / 255.0, 2)
