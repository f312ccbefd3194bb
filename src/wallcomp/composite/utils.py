"""Utility functions for composite operations."""

import math
from typing import Optional, Tuple, Union, overload

import numpy as np
from numpy.typing import NDArray

BBox = Tuple[int, int, int, int]


def divide(a: NDArray[np.floating], b: NDArray[np.floating]) -> NDArray[np.floating]:
    """Safe division for color ops."""
    with np.errstate(divide="ignore", invalid="ignore"):
        c = np.true_divide(a, b)
        c[~np.isfinite(c)] = 1.0
    return c


def intersect(a: BBox, b: BBox) -> BBox:
    """Calculate intersection of two bounding boxes."""
    inter = (max(a[0], b[0]), max(a[1], b[1]), min(a[2], b[2]), min(a[3], b[3]))
    if inter[0] >= inter[2] or inter[1] >= inter[3]:
        return (0, 0, 0, 0)
    return inter


@overload
def union(backdrop: float, source: float) -> float: ...


@overload
def union(
    backdrop: NDArray[np.floating], source: NDArray[np.floating]
) -> NDArray[np.floating]: ...


@overload
def union(backdrop: float, source: NDArray[np.floating]) -> NDArray[np.floating]: ...


@overload
def union(backdrop: NDArray[np.floating], source: float) -> NDArray[np.floating]: ...


def union(
    backdrop: Union[float, NDArray[np.floating]],
    source: Union[float, NDArray[np.floating]],
) -> Union[float, NDArray[np.floating]]:
    """Generalized union of shape."""
    return backdrop + source - (backdrop * source)


def clip(x: NDArray[np.floating]) -> NDArray[np.floating]:
    """Clip between [0, 1]."""
    return np.clip(x, 0.0, 1.0)


def paste(
    viewport: BBox,
    bbox: BBox,
    values: np.ndarray,
    background: Optional[float] = None,
) -> np.ndarray:
    """Change to the specified viewport."""
    shape = (viewport[3] - viewport[1], viewport[2] - viewport[0], values.shape[2])
    view = (
        np.full(shape, background, dtype=np.float32)
        if background
        else np.zeros(shape, dtype=np.float32)
    )
    inter = intersect(viewport, bbox)
    if inter == (0, 0, 0, 0):
        return view

    v = (
        inter[0] - viewport[0],
        inter[1] - viewport[1],
        inter[2] - viewport[0],
        inter[3] - viewport[1],
    )
    b = (inter[0] - bbox[0], inter[1] - bbox[1], inter[2] - bbox[0], inter[3] - bbox[1])
    view[v[1] : v[3], v[0] : v[2], :] = values[b[1] : b[3], b[0] : b[2], :]
    return view


def pixel_bbox(
    bbox: Tuple[float, float, float, float], scale: float = 1.0
) -> BBox:
    """Snap a logical (left, top, right, bottom) box to device pixels."""
    left = _snap(bbox[0] * scale)
    top = _snap(bbox[1] * scale)
    right = max(left + 1, _snap(bbox[2] * scale))
    bottom = max(top + 1, _snap(bbox[3] * scale))
    return (left, top, right, bottom)


def pixel_size(width: float, height: float, scale: float = 1.0) -> Tuple[int, int]:
    """Device size of a logical size, at least one pixel on each axis."""
    return (
        max(1, _snap(width * scale)),
        max(1, _snap(height * scale)),
    )


def _snap(value: float) -> int:
    # Round half up.
    return int(math.floor(value + 0.5))
