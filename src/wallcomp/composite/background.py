"""
Background and border rendering.

The background is a flat colour or an image scaled to cover the wall and
centred, with the overflow on the longer axis cropped symmetrically. The
border is a rectangle stroked fully inside the wall bounds.
"""

import logging
from typing import Callable, List, Tuple

import numpy as np
from PIL import Image

from wallcomp import pil_io
from wallcomp.composite import vector
from wallcomp.composite.utils import pixel_size
from wallcomp.constants import (
    DASH_PATTERNS,
    FALLBACK_BACKGROUND,
    BackgroundKind,
    BorderStyle,
)
from wallcomp.exceptions import ImageLoadError
from wallcomp.scene import Background, Border, Color, Size

logger = logging.getLogger(__name__)

Rect = Tuple[float, float, float, float]


def cover_fit(
    image_size: Tuple[float, float], target_size: Tuple[float, float]
) -> Tuple[float, Tuple[float, float]]:
    """
    Uniform scale and offset that make an image cover the target.

    :return: ``(scale, (x, y))`` where ``(x, y)`` is the top-left corner of
        the scaled image relative to the target; at most one of them is
        non-zero and it is never positive.
    """
    image_width, image_height = image_size
    width, height = target_size
    scale = max(width / image_width, height / image_height)
    x = (width - image_width * scale) / 2.0
    y = (height - image_height * scale) / 2.0
    return scale, (x, y)


def draw_background(
    background: Background,
    shape: Tuple[int, int],
    loader: Callable[..., Image.Image] = pil_io.load_image,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Paint the wall's base layer.

    :param shape: device size as ``(height, width)``.
    :return: ``(color, alpha)`` arrays covering the whole wall.
    """
    height, width = shape
    if background.kind == BackgroundKind.IMAGE:
        try:
            image = loader(background.image)
        except ImageLoadError as e:
            logger.warning("Background image unavailable, using flat fill: %s" % e)
        else:
            return _draw_cover_image(image, width, height)
    color = background.color
    if background.kind == BackgroundKind.IMAGE:
        color = Color.parse(FALLBACK_BACKGROUND)
    return _flat(color, width, height)


def _flat(color: Color, width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
    rgb = np.full((height, width, 3), color.as_float(), dtype=np.float32)
    alpha = np.full((height, width, 1), color.opacity, dtype=np.float32)
    return rgb, alpha


def _draw_cover_image(
    image: Image.Image, width: int, height: int
) -> Tuple[np.ndarray, np.ndarray]:
    scale, (x, y) = cover_fit(image.size, (width, height))
    # Source region that lands on the wall after scaling.
    # Clamped to the image; float error can push the ends a few ULPs outside.
    box = (
        max(0.0, -x / scale),
        max(0.0, -y / scale),
        min(float(image.width), (width - x) / scale),
        min(float(image.height), (height - y) / scale),
    )
    logger.debug(
        "Cover fit %dx%d -> %dx%d, scale %g, crop %s"
        % (image.width, image.height, width, height, scale, box)
    )
    resized = image.resize((width, height), Image.Resampling.LANCZOS, box=box)
    pixels = pil_io.to_array(resized)
    return pixels[:, :, :3], pixels[:, :, 3:]


def border_rects(size: Size, border: Border) -> List[Rect]:
    """
    Stroke paths of the border in logical coordinates.

    The outer path is inset by half the stroke width so the stroke stays
    inside the wall. A double border adds an inner path inset a further
    ``2 × width`` from the outer one.
    """
    if not border.visible:
        return []
    w = border.width
    outer = (w / 2.0, w / 2.0, size.width - w / 2.0, size.height - w / 2.0)
    rects = [outer]
    if border.style == BorderStyle.DOUBLE:
        offset = 2.0 * w
        inner = (
            outer[0] + offset,
            outer[1] + offset,
            outer[2] - offset,
            outer[3] - offset,
        )
        if inner[0] < inner[2] and inner[1] < inner[3]:
            rects.append(inner)
        else:
            logger.debug("Wall too small for the inner border")
    return rects


def draw_border(
    size: Size, border: Border, scale: float = 1.0
) -> Tuple[np.ndarray, Color]:
    """
    Rasterize the wall border.

    :return: ``(mask, color)`` where ``mask`` covers the whole wall.
    """
    width, height = pixel_size(size.width, size.height, scale)
    viewport = (0, 0, width, height)
    mask = np.zeros((height, width, 1), dtype=np.float32)
    dash = None
    if border.style != BorderStyle.DOUBLE:
        dash = DASH_PATTERNS.get(border.style)
        if dash is not None:
            dash = tuple(d * scale for d in dash)
    for rect in border_rects(size, border):
        plane = vector.draw_rectangle_stroke(
            tuple(v * scale for v in rect), border.width * scale, viewport, dash
        )
        mask = mask + plane - mask * plane
    return mask, border.color
