"""
Various constants for wallcomp.
"""

from enum import Enum


class Shape(str, Enum):
    """
    Clip shape of an element.
    """

    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    OVAL = "oval"
    STAR = "star"
    HEART = "heart"


class FrameType(str, Enum):
    """
    Procedural frame style drawn around an element.
    """

    NONE = "none"
    CLASSIC = "classic"
    MODERN = "modern"
    VINTAGE = "vintage"
    ORNATE = "ornate"
    RUSTIC = "rustic"


class BorderStyle(str, Enum):
    """
    Stroke style of the wall border.
    """

    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"
    DOUBLE = "double"


class BackgroundKind(str, Enum):
    """
    Background kind.
    """

    COLOR = "color"
    IMAGE = "image"


class FitMode(str, Enum):
    """
    How a background image is fit into the wall.
    """

    COVER = "cover"


class ExportFormat(str, Enum):
    """
    Output format of an export.
    """

    PNG = "png"
    JPEG = "jpeg"
    PDF = "pdf"

    @property
    def mime_type(self) -> str:
        return {
            ExportFormat.PNG: "image/png",
            ExportFormat.JPEG: "image/jpeg",
            ExportFormat.PDF: "application/pdf",
        }[self]

    @property
    def extension(self) -> str:
        return {
            ExportFormat.PNG: "png",
            ExportFormat.JPEG: "jpg",
            ExportFormat.PDF: "pdf",
        }[self]

    @classmethod
    def from_name(cls, name: str) -> "ExportFormat":
        """Look up a format by name or file extension, e.g. ``jpg``."""
        key = name.lower().lstrip(".")
        key = {"jpg": "jpeg"}.get(key, key)
        return cls(key)


class Quality(str, Enum):
    """
    Output resolution preset for raster exports.
    """

    STANDARD = "standard"
    X4 = "4x"
    K8 = "8k"


# Neutral fill used when the background image cannot be loaded.
FALLBACK_BACKGROUND = "#f5f5f5"

DEFAULT_BACKGROUND = "#ffffff"

# Frame colour used when an element frame has no colour of its own.
DEFAULT_FRAME_COLOR = "#8B4513"

# Dash patterns of the wall border, in logical pixels (on, off).
DASH_PATTERNS = {
    BorderStyle.DASHED: (10.0, 5.0),
    BorderStyle.DOTTED: (2.0, 2.0),
}

# Long side of an 8K export.
LONG_SIDE_8K = 7680

# CSS pixels (96 dpi) to PDF points (72 dpi).
PX_TO_PT = 0.75

JPEG_QUALITY = 100
