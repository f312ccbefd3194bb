"""
Colour filter pipeline.

Applies an element's filter stack to straight (non-premultiplied) RGBA float
pixels, in the fixed order brightness, contrast, saturation, hue rotation,
blur. The colour steps follow the CSS filter-effects definitions used by the
editor preview:

- ``brightness(b)``: ``C × b``
- ``contrast(c)``: ``(C - 0.5) × c + 0.5``
- ``saturate(s)`` and ``hue-rotate(θ)``: the luminance-preserving colour
  matrices of SVG ``feColorMatrix``
- ``blur(r)``: Gaussian with standard deviation ``r`` pixels, on premultiplied
  colour with transparent surroundings

Colour values are clamped to [0, 1] after every step. Identity filters return
the input array itself.

Example::

    from wallcomp.composite.filters import apply_filters
    from wallcomp.scene import Filters

    pixels = apply_filters(pixels, Filters(saturation=0))  # grayscale
"""

import logging
import math
from typing import Callable, Tuple

import numpy as np
from skimage import filters as sk_filters  # type: ignore[import-untyped]

from wallcomp.composite import utils
from wallcomp.scene import Filters

logger = logging.getLogger(__name__)

# Rec. 709 luma weights used by the CSS colour matrices.
LUMA = (0.213, 0.715, 0.072)


def apply_filters(pixels: np.ndarray, filters: Filters, scale: float = 1.0) -> np.ndarray:
    """
    Apply the filter stack to ``(H, W, 4)`` RGBA pixels in [0, 1].

    :param scale: device pixels per logical pixel; scales the blur radius.
    """
    if filters.is_identity:
        return pixels
    result = pixels
    for step in PIPELINE:
        result = step(result, filters, scale)
    return result


def brightness(pixels: np.ndarray, filters: Filters, scale: float = 1.0) -> np.ndarray:
    if filters.brightness == 100:
        return pixels
    amount = filters.brightness / 100.0
    return _with_color(pixels, pixels[:, :, :3] * amount)


def contrast(pixels: np.ndarray, filters: Filters, scale: float = 1.0) -> np.ndarray:
    if filters.contrast == 100:
        return pixels
    amount = filters.contrast / 100.0
    return _with_color(pixels, (pixels[:, :, :3] - 0.5) * amount + 0.5)


def saturate(pixels: np.ndarray, filters: Filters, scale: float = 1.0) -> np.ndarray:
    if filters.saturation == 100:
        return pixels
    return _with_color(pixels, _transform(pixels, saturate_matrix(filters.saturation / 100.0)))


def hue_rotate(pixels: np.ndarray, filters: Filters, scale: float = 1.0) -> np.ndarray:
    if filters.hue % 360 == 0:
        return pixels
    return _with_color(pixels, _transform(pixels, hue_rotate_matrix(filters.hue)))


def blur(pixels: np.ndarray, filters: Filters, scale: float = 1.0) -> np.ndarray:
    sigma = filters.blur * scale
    if sigma <= 0:
        return pixels
    alpha = pixels[:, :, 3:]
    premultiplied = np.concatenate((pixels[:, :, :3] * alpha, alpha), 2)
    blurred = sk_filters.gaussian(
        premultiplied,
        sigma=sigma,
        mode="constant",
        cval=0.0,
        channel_axis=-1,
        preserve_range=True,
    ).astype(np.float32)
    alpha = utils.clip(blurred[:, :, 3:])
    color = utils.clip(utils.divide(blurred[:, :, :3], alpha))
    return np.concatenate((color, alpha), 2)


PIPELINE: Tuple[Callable[[np.ndarray, Filters, float], np.ndarray], ...] = (
    brightness,
    contrast,
    saturate,
    hue_rotate,
    blur,
)


def saturate_matrix(amount: float) -> np.ndarray:
    """Colour matrix of ``saturate(amount)``; 1 is the identity."""
    r, g, b = LUMA
    s = amount
    return np.array(
        [
            [r + (1 - r) * s, g - g * s, b - b * s],
            [r - r * s, g + (1 - g) * s, b - b * s],
            [r - r * s, g - g * s, b + (1 - b) * s],
        ],
        dtype=np.float32,
    )


def hue_rotate_matrix(degrees: float) -> np.ndarray:
    """Colour matrix of ``hue-rotate(degrees)``."""
    angle = math.radians(degrees)
    c, s = math.cos(angle), math.sin(angle)
    return np.array(
        [
            [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
            [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
            [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
        ],
        dtype=np.float32,
    )


def _transform(pixels: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    return np.einsum("hwc,kc->hwk", pixels[:, :, :3], matrix)


def _with_color(pixels: np.ndarray, color: np.ndarray) -> np.ndarray:
    return np.concatenate(
        (utils.clip(color).astype(np.float32), pixels[:, :, 3:]), 2
    )
