import logging

import numpy as np
import pytest

from wallcomp.composite import composite
from wallcomp.composite.background import (
    border_rects,
    cover_fit,
    draw_background,
    draw_border,
)
from wallcomp.exceptions import ImageLoadError
from wallcomp.scene import Background, Border, Size

from ..utils import MISSING, make_image, split_image, white_scene

logger = logging.getLogger(__name__)


def test_cover_fit_wide_image():
    scale, (x, y) = cover_fit((200, 100), (100, 100))
    assert scale == 1.0
    assert (x, y) == (-50, 0)


def test_cover_fit_tall_image():
    scale, (x, y) = cover_fit((100, 400), (200, 100))
    assert scale == 2.0
    assert x == 0
    assert y == -350


def test_cover_fit_exact():
    assert cover_fit((50, 25), (100, 50)) == (2.0, (0.0, 0.0))


def test_solid_background():
    color, alpha = draw_background(Background.solid("#336699"), (4, 6))
    assert color.shape == (4, 6, 3)
    assert alpha.shape == (4, 6, 1)
    assert np.allclose(color, (0x33 / 255, 0x66 / 255, 0x99 / 255))
    assert np.all(alpha == 1.0)


def test_image_background_cover():
    # Wide image on a square wall: the outer quarters are cropped, leaving a
    # red half and a blue half.
    image = split_image((255, 0, 0), (0, 0, 255), (40, 20))
    image.paste(make_image((0, 255, 0), (10, 20)), (0, 0))
    image.paste(make_image((0, 255, 0), (10, 20)), (30, 0))
    color, alpha = draw_background(
        Background.from_image("ignored"), (20, 20), loader=lambda ref: image
    )
    assert color.shape == (20, 20, 3)
    assert np.allclose(color[10, 2], (1, 0, 0), atol=0.05)
    assert np.allclose(color[10, 17], (0, 0, 1), atol=0.05)
    assert color[:, :, 1].max() < 0.2
    assert np.all(alpha > 0.99)


@pytest.mark.parametrize(
    "image_size, shape",
    [((7, 3), (23, 61)), ((1280, 853), (600, 900)), ((1280, 853), (1200, 800))],
)
def test_image_background_inexact_aspect(image_size, shape):
    image = make_image((255, 0, 0), image_size)
    color, alpha = draw_background(
        Background.from_image(image), shape, loader=lambda ref: ref
    )
    assert color.shape == shape + (3,)
    assert np.allclose(color, (1, 0, 0), atol=1e-3)
    assert np.all(alpha > 0.99)


def test_composite_inexact_aspect_background():
    scene = white_scene(
        size=(61, 23),
        background=Background.from_image(make_image((255, 0, 0), (7, 3))),
    )
    raster = composite(scene).raster
    assert raster.size == (61, 23)
    assert np.allclose(raster.color, (1, 0, 0), atol=1e-3)


def test_image_background_fallback(caplog):
    def broken(ref):
        raise ImageLoadError("gone")

    with caplog.at_level(logging.WARNING):
        color, alpha = draw_background(Background.from_image(MISSING), (3, 3), broken)
    assert np.allclose(color, 0xF5 / 255)
    assert np.all(alpha == 1.0)
    assert "gone" in caplog.text


def test_border_rects_inside_wall():
    rects = border_rects(Size(100, 50), Border(width=4))
    assert rects == [(2, 2, 98, 48)]


def test_border_rects_hidden():
    assert border_rects(Size(100, 50), Border(width=0)) == []


def test_border_rects_double():
    rects = border_rects(Size(100, 60), Border(width=4, style="double"))
    assert rects == [(2, 2, 98, 58), (10, 10, 90, 50)]


def test_border_rects_double_too_small():
    rects = border_rects(Size(20, 20), Border(width=4, style="double"))
    assert len(rects) == 1


def test_draw_border_solid():
    mask, color = draw_border(Size(40, 30), Border(width=4, color="#ff0000"))
    assert color.tohex() == "#ff0000"
    assert mask.shape == (30, 40, 1)
    assert mask[1, 20, 0] > 0.95
    assert mask[20, 38, 0] > 0.95
    assert mask[15, 20, 0] == 0
    # Fully inside the wall.
    assert mask[0, 20, 0] > 0.95


@pytest.mark.parametrize("style", ["dashed", "dotted"])
def test_draw_border_patterned(style):
    solid, _ = draw_border(Size(100, 100), Border(width=2))
    patterned, _ = draw_border(Size(100, 100), Border(width=2, style=style))
    assert 0.3 < patterned.sum() / solid.sum() < 0.9


def test_draw_border_double():
    mask, _ = draw_border(Size(100, 100), Border(width=4, style="double"))
    assert mask[50, 2, 0] > 0.95
    assert mask[50, 10, 0] > 0.95
    assert mask[50, 6, 0] < 0.05
    assert mask[50, 50, 0] == 0


def test_draw_border_scaled():
    mask, _ = draw_border(Size(40, 30), Border(width=2), scale=2.0)
    assert mask.shape == (60, 80, 1)
    assert mask[2, 40, 0] > 0.95
    assert mask[5, 40, 0] < 0.05
