"""
Exceptions raised by wallcomp.
"""


class Error(Exception):
    """Base class for all wallcomp errors."""


class InvalidSceneError(Error, ValueError):
    """The scene description is structurally invalid.

    Raised before compositing begins; invalid input is never coerced.
    """


class ImageLoadError(Error):
    """An image reference could not be resolved or decoded."""


class DocumentWrapError(Error):
    """The raster could not be wrapped into a document."""
