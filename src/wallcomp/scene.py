"""
Scene model.

A :py:class:`Scene` is the complete, immutable description of one wall export:
its size, background, border and the ordered list of placed elements. Paint
order is list order; later elements occlude earlier ones.

Example::

    from wallcomp.scene import Scene, Element, SingleImage, Size

    scene = Scene(
        size=Size(1200, 800),
        background=Background.solid("#ffffff"),
        elements=[
            Element(id=1, position=(10, 10), size=(300, 200),
                    content=SingleImage("photo.jpg")),
        ],
    )

The editor stores walls as JSON; :py:meth:`Scene.from_dict` and
:py:meth:`Scene.to_dict` convert from and to that shape.
"""

import json
import logging
import os
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from attrs import define, field

from wallcomp.constants import (
    DEFAULT_BACKGROUND,
    BackgroundKind,
    BorderStyle,
    FitMode,
    FrameType,
    Shape,
)
from wallcomp.exceptions import InvalidSceneError
from wallcomp.validators import non_negative, positive, range_, to_enum

logger = logging.getLogger(__name__)

ImageRef = Any  # bytes, path, data URI or PIL.Image.Image


@define(frozen=True)
class Color(object):
    """
    RGBA colour with 8-bit channels.

    Use :py:meth:`parse` to build one from ``#rgb``, ``#rrggbb`` or
    ``#rrggbbaa`` strings, or from a 3- or 4-tuple.
    """

    red: int = field(validator=range_(0, 255))
    green: int = field(validator=range_(0, 255))
    blue: int = field(validator=range_(0, 255))
    alpha: int = field(default=255, validator=range_(0, 255))

    @classmethod
    def parse(cls, value: Any) -> "Color":
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            text = value.strip().lstrip("#")
            if len(text) in (3, 4):
                text = "".join(c * 2 for c in text)
            if len(text) not in (6, 8):
                raise InvalidSceneError("Invalid color: %r" % value)
            try:
                channels = [int(text[i : i + 2], 16) for i in range(0, len(text), 2)]
            except ValueError:
                raise InvalidSceneError("Invalid color: %r" % value) from None
            return cls(*channels)
        if isinstance(value, (tuple, list)) and len(value) in (3, 4):
            return cls(*(int(x) for x in value))
        raise InvalidSceneError("Invalid color: %r" % (value,))

    @property
    def opacity(self) -> float:
        return self.alpha / 255.0

    def as_float(self) -> Tuple[float, float, float]:
        """RGB channels scaled to [0, 1]."""
        return (self.red / 255.0, self.green / 255.0, self.blue / 255.0)

    def tohex(self) -> str:
        text = "#%02x%02x%02x" % (self.red, self.green, self.blue)
        if self.alpha != 255:
            text += "%02x" % self.alpha
        return text


def _optional_color(value: Any) -> Optional[Color]:
    if value is None or value == "":
        return None
    return Color.parse(value)


@define(frozen=True)
class Size(object):
    width: float = field(validator=positive)
    height: float = field(validator=positive)

    @classmethod
    def parse(cls, value: Any) -> "Size":
        if isinstance(value, Size):
            return value
        if isinstance(value, dict):
            return cls(_number(value, "width"), _number(value, "height"))
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(*value)
        raise InvalidSceneError("Invalid size: %r" % (value,))


@define(frozen=True)
class Point(object):
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def parse(cls, value: Any) -> "Point":
        if isinstance(value, Point):
            return value
        if isinstance(value, dict):
            return cls(_number(value, "x", 0.0), _number(value, "y", 0.0))
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(float(value[0]), float(value[1]))
        raise InvalidSceneError("Invalid position: %r" % (value,))


@define(frozen=True)
class Background(object):
    """
    Base layer of the wall: either a flat colour or a cover-fit image.
    """

    kind: BackgroundKind = field(
        default=BackgroundKind.COLOR, converter=to_enum(BackgroundKind)
    )
    color: Color = field(default=DEFAULT_BACKGROUND, converter=Color.parse)
    image: ImageRef = None
    fit: FitMode = field(default=FitMode.COVER, converter=to_enum(FitMode))

    def __attrs_post_init__(self) -> None:
        if self.kind == BackgroundKind.IMAGE and self.image is None:
            raise InvalidSceneError("Image background requires an image reference")

    @classmethod
    def solid(cls, color: Any) -> "Background":
        return cls(kind=BackgroundKind.COLOR, color=color)

    @classmethod
    def from_image(cls, image: ImageRef) -> "Background":
        return cls(kind=BackgroundKind.IMAGE, image=image)

    @classmethod
    def from_dict(cls, data: Any) -> "Background":
        """Editor form is ``{"value": "#hex" | image}`` or a bare value."""
        if isinstance(data, Background):
            return data
        if data is None:
            return cls()
        value = data.get("value") if isinstance(data, dict) else data
        if value is None:
            return cls()
        if isinstance(value, str) and value.startswith("#"):
            return cls.solid(value)
        return cls.from_image(value)

    def to_dict(self) -> Dict[str, Any]:
        if self.kind == BackgroundKind.COLOR:
            return {"value": self.color.tohex()}
        return {"value": _dump_ref(self.image)}


@define(frozen=True)
class Border(object):
    """
    Decorative wall border. Drawn only when ``width > 0``.
    """

    width: float = field(default=0.0, validator=non_negative)
    color: Color = field(default="#000000", converter=Color.parse)
    style: BorderStyle = field(
        default=BorderStyle.SOLID, converter=to_enum(BorderStyle)
    )

    @property
    def visible(self) -> bool:
        return self.width > 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Border":
        if not data:
            return cls()
        return cls(
            width=_number(data, "width", 0.0),
            color=data.get("color") or "#000000",
            style=data.get("style") or BorderStyle.SOLID,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "color": self.color.tohex(),
            "style": self.style.value,
        }


@define(frozen=True)
class Frame(object):
    """
    Procedural frame around an element.

    ``color`` of ``None`` falls back to the default brown where the style
    uses the configured colour at all.
    """

    type: FrameType = field(default=FrameType.NONE, converter=to_enum(FrameType))
    width: float = field(default=0.0, validator=non_negative)
    color: Optional[Color] = field(default=None, converter=_optional_color)

    @property
    def visible(self) -> bool:
        return self.type != FrameType.NONE and self.width > 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Frame":
        if not data:
            return cls()
        return cls(
            type=data.get("type") or FrameType.NONE,
            width=_number(data, "width", 0.0),
            color=data.get("color"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "width": self.width,
            "color": self.color.tohex() if self.color else None,
        }


@define(frozen=True)
class Filters(object):
    """
    Colour filter stack: brightness, contrast and saturation in percent,
    hue rotation in degrees and blur radius in pixels.

    The defaults are the identity transform.
    """

    brightness: float = field(default=100.0, validator=non_negative)
    contrast: float = field(default=100.0, validator=non_negative)
    saturation: float = field(default=100.0, validator=non_negative)
    hue: float = field(default=0.0, validator=range_(-1e6, 1e6))
    blur: float = field(default=0.0, validator=non_negative)

    @property
    def is_identity(self) -> bool:
        return (
            self.brightness == 100
            and self.contrast == 100
            and self.saturation == 100
            and self.hue % 360 == 0
            and self.blur == 0
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Filters":
        if not data:
            return cls()
        return cls(
            brightness=_number(data, "brightness", 100.0),
            contrast=_number(data, "contrast", 100.0),
            saturation=_number(data, "saturation", 100.0),
            hue=_number(data, "hue", 0.0),
            blur=_number(data, "blur", 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "brightness": self.brightness,
            "contrast": self.contrast,
            "saturation": self.saturation,
            "hue": self.hue,
            "blur": self.blur,
        }


@define(frozen=True)
class SingleImage(object):
    ref: ImageRef = field()

    @ref.validator
    def _check_ref(self, attribute: Any, value: Any) -> None:
        if value is None or (isinstance(value, (str, bytes)) and not value):
            raise InvalidSceneError("Element image reference is empty")


def _to_refs(value: Iterable[ImageRef]) -> Tuple[ImageRef, ...]:
    if isinstance(value, (str, bytes)):
        raise InvalidSceneError("Collage expects a list of image references")
    return tuple(value)


@define(frozen=True)
class Collage(object):
    """Sub-images tiled row-major into a grid inside one element."""

    refs: Tuple[ImageRef, ...] = field(converter=_to_refs)

    @refs.validator
    def _check_refs(self, attribute: Any, value: Tuple[ImageRef, ...]) -> None:
        if len(value) == 0:
            raise InvalidSceneError("Collage requires at least one image")

    def __len__(self) -> int:
        return len(self.refs)


Content = Union[SingleImage, Collage]


def _check_content(inst: Any, attr: Any, value: Any) -> None:
    if not isinstance(value, (SingleImage, Collage)):
        raise InvalidSceneError("Invalid element content: %r" % (value,))


@define(frozen=True)
class Element(object):
    """
    One placed visual unit.

    .. py:attribute:: position

        Top-left corner in wall coordinates.

    .. py:attribute:: shape

        Clip shape, computed relative to the element's own bounding box.
    """

    id: Any
    content: Content = field(validator=_check_content)
    position: Point = field(default=Point(), converter=Point.parse)
    size: Size = field(default=Size(100, 100), converter=Size.parse)
    shape: Shape = field(default=Shape.RECTANGLE, converter=to_enum(Shape))
    frame: Frame = field(factory=Frame)
    filters: Filters = field(factory=Filters)

    @property
    def bbox(self) -> Tuple[float, float, float, float]:
        """(left, top, right, bottom) in wall coordinates."""
        x, y = self.position.x, self.position.y
        return (x, y, x + self.size.width, y + self.size.height)

    @property
    def is_collage(self) -> bool:
        return isinstance(self.content, Collage)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Element":
        if "id" not in data:
            raise InvalidSceneError("Element without id: %r" % (data,))
        if data.get("isCollage") and data.get("collageImages"):
            content: Content = Collage(data["collageImages"])
        elif data.get("src"):
            content = SingleImage(data["src"])
        else:
            raise InvalidSceneError("Element %r has no image" % (data["id"],))
        size = data.get("size", data.get("style"))
        if size is None:
            raise InvalidSceneError("Element %r has no size" % (data["id"],))
        return cls(
            id=data["id"],
            content=content,
            position=data.get("position") or Point(),
            size=size,
            shape=data.get("shape") or Shape.RECTANGLE,
            frame=Frame.from_dict(data.get("frame")),
            filters=Filters.from_dict(data.get("filters")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "position": {"x": self.position.x, "y": self.position.y},
            "style": {"width": self.size.width, "height": self.size.height},
            "shape": self.shape.value,
            "frame": self.frame.to_dict(),
            "filters": self.filters.to_dict(),
        }
        if isinstance(self.content, Collage):
            data["isCollage"] = True
            data["collageImages"] = [_dump_ref(ref) for ref in self.content.refs]
        else:
            data["src"] = _dump_ref(self.content.ref)
        return data


def _to_elements(value: Iterable[Element]) -> Tuple[Element, ...]:
    return tuple(value)


@define(frozen=True)
class Scene(object):
    """
    The export unit: wall size, background, border and ordered elements.

    The compositor treats a scene as read-only input.
    """

    size: Size = field(converter=Size.parse)
    background: Background = field(factory=Background)
    border: Border = field(factory=Border)
    elements: Tuple[Element, ...] = field(factory=tuple, converter=_to_elements)

    def __attrs_post_init__(self) -> None:
        seen = set()
        for element in self.elements:
            if not isinstance(element, Element):
                raise InvalidSceneError("Invalid element: %r" % (element,))
            if not isinstance(element.id, (str, int, float)) or isinstance(
                element.id, bool
            ):
                raise InvalidSceneError("Invalid element id: %r" % (element.id,))
            if element.id in seen:
                raise InvalidSceneError("Duplicate element id: %r" % (element.id,))
            seen.add(element.id)

    @property
    def width(self) -> float:
        return self.size.width

    @property
    def height(self) -> float:
        return self.size.height

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self):
        return iter(self.elements)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Scene":
        """
        Build a scene from the editor's saved wall data.

        :raises InvalidSceneError: for missing or malformed fields.
        """
        if not isinstance(data, dict):
            raise InvalidSceneError("Scene data must be a mapping")
        size = data.get("wallSize", data.get("size"))
        if size is None:
            raise InvalidSceneError("Scene has no wall size")
        elements = data.get("images", data.get("elements")) or []
        if not isinstance(elements, list):
            raise InvalidSceneError("Scene elements must be a list")
        scene = cls(
            size=size,
            background=Background.from_dict(
                data.get("wallBackground", data.get("background"))
            ),
            border=Border.from_dict(data.get("wallBorder", data.get("border"))),
            elements=[Element.from_dict(item) for item in elements],
        )
        logger.debug("Loaded scene %gx%g with %d elements" % (
            scene.width, scene.height, len(scene)))
        return scene

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wallSize": {"width": self.size.width, "height": self.size.height},
            "wallBackground": self.background.to_dict(),
            "wallBorder": self.border.to_dict(),
            "images": [element.to_dict() for element in self.elements],
        }


def load(fp: Any) -> Scene:
    """Read a scene from a JSON file path or file object."""
    try:
        if isinstance(fp, (str, os.PathLike)):
            with open(fp, "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            data = json.load(fp)
    except json.JSONDecodeError as e:
        raise InvalidSceneError("Invalid scene JSON: %s" % e) from e
    return Scene.from_dict(data)


def _number(data: Dict[str, Any], key: str, default: Any = None) -> Any:
    value = data.get(key, default)
    if value is None:
        raise InvalidSceneError("Missing %r" % key)
    if isinstance(value, bool):
        raise InvalidSceneError("Invalid %r: %r" % (key, value))
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidSceneError("Invalid %r: %r" % (key, value)) from None


def _dump_ref(ref: ImageRef) -> Any:
    if isinstance(ref, os.PathLike):
        return os.fspath(ref)
    if isinstance(ref, str):
        return ref
    raise TypeError("Cannot serialize image reference of type %s" % type(ref).__name__)
