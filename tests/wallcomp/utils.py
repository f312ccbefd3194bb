import io
import logging
from typing import Any, Tuple

import numpy as np
from PIL import Image

from wallcomp.constants import Shape
from wallcomp.scene import Background, Element, Filters, Frame, Scene, SingleImage

logging.basicConfig(level=logging.DEBUG)

MISSING = "no/such/image.png"


def make_image(color: Tuple[int, ...], size: Tuple[int, int] = (20, 20)) -> Image.Image:
    """Opaque solid image."""
    if len(color) == 3:
        color = tuple(color) + (255,)
    return Image.new("RGBA", size, color)


def noise_image(size: Tuple[int, int] = (20, 20), seed: int = 0) -> Image.Image:
    """Opaque random RGB image."""
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, (size[1], size[0], 3), dtype=np.uint8)
    return Image.fromarray(pixels).convert("RGBA")


def split_image(left, right, size: Tuple[int, int]) -> Image.Image:
    """Image whose left half is ``left`` and right half ``right``."""
    image = make_image(left, size)
    image.paste(make_image(right, (size[0] // 2, size[1])), (size[0] // 2, 0))
    return image


def png_bytes(image: Image.Image) -> bytes:
    with io.BytesIO() as f:
        image.save(f, "PNG")
        return f.getvalue()


def element(id: Any, ref: Any, position=(0, 0), size=(20, 20), **kwargs) -> Element:
    kwargs.setdefault("shape", Shape.RECTANGLE)
    kwargs.setdefault("frame", Frame())
    kwargs.setdefault("filters", Filters())
    return Element(
        id=id, content=SingleImage(ref), position=position, size=size, **kwargs
    )


def white_scene(elements=(), size=(64, 64), **kwargs) -> Scene:
    kwargs.setdefault("background", Background.solid("#ffffff"))
    return Scene(size=size, elements=list(elements), **kwargs)


def rgb_at(raster, x: int, y: int) -> np.ndarray:
    return raster.color[y, x, :]
