"""Pytest configuration for wallcomp tests."""

import pytest
from PIL import Image

from .wallcomp.utils import make_image


@pytest.fixture
def red_image() -> Image.Image:
    return make_image((255, 0, 0), (20, 20))


@pytest.fixture
def blue_image() -> Image.Image:
    return make_image((0, 0, 255), (20, 20))
