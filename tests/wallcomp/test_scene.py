import json
import logging

import pytest

from wallcomp import scene as scene_io
from wallcomp.constants import BackgroundKind, BorderStyle, FrameType, Shape
from wallcomp.exceptions import InvalidSceneError
from wallcomp.scene import (
    Background,
    Border,
    Collage,
    Color,
    Element,
    Filters,
    Frame,
    Scene,
    SingleImage,
    Size,
)

logger = logging.getLogger(__name__)

WALL_DATA = {
    "wallSize": {"width": 1200, "height": 800},
    "wallBackground": {"value": "#fafafa"},
    "wallBorder": {"width": 4, "color": "#222222", "style": "double"},
    "images": [
        {
            "id": 1,
            "src": "photos/a.jpg",
            "position": {"x": 10, "y": 20},
            "style": {"width": 300, "height": 200},
            "shape": "heart",
            "frame": {"type": "vintage", "width": 8, "color": "#8B4513"},
            "filters": {
                "brightness": 120,
                "contrast": 90,
                "saturation": 100,
                "hue": 30,
                "blur": 1,
            },
        },
        {
            "id": 2,
            "src": "",
            "position": {"x": 400, "y": 20},
            "style": {"width": 300, "height": 300},
            "isCollage": True,
            "collageImages": ["c/1.jpg", "c/2.jpg", "c/3.jpg"],
        },
    ],
}


@pytest.mark.parametrize(
    "value, expected",
    [
        ("#ff0000", (255, 0, 0, 255)),
        ("#F00", (255, 0, 0, 255)),
        ("00ff0080", (0, 255, 0, 128)),
        ((1, 2, 3), (1, 2, 3, 255)),
        ([1, 2, 3, 4], (1, 2, 3, 4)),
    ],
)
def test_color_parse(value, expected):
    color = Color.parse(value)
    assert (color.red, color.green, color.blue, color.alpha) == expected


@pytest.mark.parametrize("value", ["#12345", "#gggggg", (1, 2), (0, 0, 256), None])
def test_color_parse_invalid(value):
    with pytest.raises(InvalidSceneError):
        Color.parse(value)


def test_color_tohex():
    assert Color.parse("#8B4513").tohex() == "#8b4513"
    assert Color(0, 0, 0, 128).tohex() == "#00000080"
    assert Color(255, 0, 0).as_float() == (1.0, 0.0, 0.0)


@pytest.mark.parametrize("size", [(0, 10), (10, 0), (-1, 10), (10, -5)])
def test_size_must_be_positive(size):
    with pytest.raises(InvalidSceneError):
        Size(*size)
    with pytest.raises(InvalidSceneError):
        Scene(size=size)


def test_invalid_scene_is_value_error():
    with pytest.raises(ValueError):
        Scene(size=(0, 0))


def test_element_enums():
    element = Element(id="a", content=SingleImage(b"x"), shape="STAR")
    assert element.shape == Shape.STAR
    with pytest.raises(InvalidSceneError):
        Element(id="a", content=SingleImage(b"x"), shape="hexagon")
    with pytest.raises(InvalidSceneError):
        Frame(type="gilded", width=4)
    with pytest.raises(InvalidSceneError):
        Border(width=2, style="wavy")


def test_element_defaults():
    element = Element(id=1, content=SingleImage(b"x"))
    assert element.shape == Shape.RECTANGLE
    assert element.frame.type == FrameType.NONE
    assert element.filters.is_identity
    assert element.bbox == (0.0, 0.0, 100, 100)
    assert not element.is_collage


def test_element_bbox():
    element = Element(
        id=1, content=SingleImage(b"x"), position=(10, 20), size=(30, 40)
    )
    assert element.bbox == (10, 20, 40, 60)


def test_element_rejects_empty_content():
    with pytest.raises(InvalidSceneError):
        SingleImage("")
    with pytest.raises(InvalidSceneError):
        Collage([])
    with pytest.raises(InvalidSceneError):
        Element(id=1, content="photo.jpg")


def test_duplicate_element_ids():
    a = Element(id=1, content=SingleImage(b"a"))
    b = Element(id=1, content=SingleImage(b"b"))
    with pytest.raises(InvalidSceneError):
        Scene(size=(10, 10), elements=[a, b])


@pytest.mark.parametrize("element_id", [[1], {"a": 1}, None, True])
def test_invalid_element_id(element_id):
    element = Element(id=element_id, content=SingleImage(b"a"))
    with pytest.raises(InvalidSceneError):
        Scene(size=(10, 10), elements=[element])


def test_element_order_is_kept():
    elements = [Element(id=i, content=SingleImage(b"x")) for i in (3, 1, 2)]
    scene = Scene(size=(10, 10), elements=elements)
    assert [e.id for e in scene] == [3, 1, 2]
    assert isinstance(scene.elements, tuple)


def test_filters():
    assert Filters().is_identity
    assert Filters(100, 100, 100, 0, 0).is_identity
    assert Filters(hue=360).is_identity
    assert not Filters(brightness=101).is_identity
    assert not Filters(blur=0.5).is_identity
    with pytest.raises(InvalidSceneError):
        Filters(blur=-1)
    with pytest.raises(InvalidSceneError):
        Filters(saturation=float("nan"))


def test_frame_visible():
    assert not Frame().visible
    assert not Frame(type="classic", width=0).visible
    assert not Frame(type="none", width=8).visible
    assert Frame(type="classic", width=8).visible
    assert Frame(type="classic", width=8, color="").color is None


def test_background():
    assert Background().kind == BackgroundKind.COLOR
    assert Background.from_dict({"value": "#000000"}).color == Color(0, 0, 0)
    image = Background.from_dict({"value": "walls/brick.jpg"})
    assert image.kind == BackgroundKind.IMAGE
    assert image.image == "walls/brick.jpg"
    with pytest.raises(InvalidSceneError):
        Background(kind="image")


def test_scene_from_dict():
    scene = Scene.from_dict(WALL_DATA)
    assert scene.size == Size(1200, 800)
    assert scene.background.color == Color.parse("#fafafa")
    assert scene.border.style == BorderStyle.DOUBLE
    assert scene.border.width == 4
    assert len(scene) == 2

    first, second = scene.elements
    assert first.shape == Shape.HEART
    assert first.frame.type == FrameType.VINTAGE
    assert first.filters.brightness == 120
    assert first.content == SingleImage("photos/a.jpg")
    assert first.position.x == 10 and first.position.y == 20

    assert second.is_collage
    assert second.content.refs == ("c/1.jpg", "c/2.jpg", "c/3.jpg")
    assert second.filters.is_identity
    assert second.shape == Shape.RECTANGLE


def test_scene_from_dict_defaults():
    scene = Scene.from_dict({"wallSize": {"width": 100, "height": 50}})
    assert scene.background.color == Color.parse("#ffffff")
    assert not scene.border.visible
    assert scene.elements == ()


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"wallSize": {"width": 0, "height": 10}},
        {"wallSize": {"width": "wide", "height": 10}},
        {"wallSize": {"width": 10, "height": 10}, "images": [{"src": "a.jpg"}]},
        {
            "wallSize": {"width": 10, "height": 10},
            "images": [{"id": {"a": 1}, "src": "a.jpg",
                        "style": {"width": 5, "height": 5}}],
        },
        {"wallSize": {"width": 10, "height": 10}, "images": [{"id": 1}]},
        {
            "wallSize": {"width": 10, "height": 10},
            "images": [{"id": 1, "src": "a.jpg", "style": {"width": 5, "height": 5},
                        "shape": "triangle"}],
        },
        [],
    ],
)
def test_scene_from_dict_invalid(data):
    with pytest.raises(InvalidSceneError):
        Scene.from_dict(data)


def test_scene_dict_round_trip():
    scene = Scene.from_dict(WALL_DATA)
    assert Scene.from_dict(scene.to_dict()) == scene


def test_load(tmp_path):
    path = tmp_path / "wall.json"
    path.write_text(json.dumps(WALL_DATA))
    assert scene_io.load(str(path)) == Scene.from_dict(WALL_DATA)
    with open(path) as f:
        assert len(scene_io.load(f)) == 2


def test_load_invalid_json(tmp_path):
    path = tmp_path / "wall.json"
    path.write_text("{not json")
    with pytest.raises(InvalidSceneError):
        scene_io.load(path)
