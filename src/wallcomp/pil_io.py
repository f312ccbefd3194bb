"""
PIL IO module.

Resolves image references into decoded PIL images and converts between PIL
images and the float arrays the compositor works on.
"""

import base64
import binascii
import io
import logging
import os
from typing import Any, Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from wallcomp.exceptions import ImageLoadError

logger = logging.getLogger(__name__)

_REMOTE_SCHEMES = ("http://", "https://", "ftp://", "s3://")


def load_image(ref: Any, base_dir: Optional[Union[str, os.PathLike]] = None) -> Image.Image:
    """
    Decode an image reference into an RGBA PIL image.

    Supported references are raw bytes, ``data:`` URIs, filesystem paths and
    already decoded PIL images. Remote URIs are rejected; the caller must
    fetch them first.

    :raises ImageLoadError: when the reference cannot be resolved or decoded.
    """
    if isinstance(ref, Image.Image):
        return _normalize(ref)
    if isinstance(ref, (bytes, bytearray, memoryview)):
        return _decode(bytes(ref), "<bytes>")
    if isinstance(ref, str) and ref.startswith("data:"):
        return _decode(_parse_data_uri(ref), "<data uri>")
    if isinstance(ref, str) and ref.lower().startswith(_REMOTE_SCHEMES):
        raise ImageLoadError("Remote image references are not fetched: %s" % ref)
    if isinstance(ref, (str, os.PathLike)):
        path = os.fspath(ref)
        if base_dir is not None and not os.path.isabs(path):
            path = os.path.join(os.fspath(base_dir), path)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise ImageLoadError("Cannot read %s: %s" % (path, e)) from e
        return _decode(data, path)
    raise ImageLoadError("Unsupported image reference: %s" % type(ref).__name__)


class ImageLoader(object):
    """
    Callable loader resolving relative paths against ``base_dir``.

    Example::

        loader = ImageLoader("/srv/uploads")
        image = loader("photos/1.jpg")
    """

    def __init__(self, base_dir: Optional[Union[str, os.PathLike]] = None):
        self.base_dir = base_dir

    def __call__(self, ref: Any) -> Image.Image:
        return load_image(ref, self.base_dir)

    def __repr__(self) -> str:
        return "%s(base_dir=%r)" % (self.__class__.__name__, self.base_dir)


def _parse_data_uri(uri: str) -> bytes:
    header, sep, payload = uri.partition(",")
    if not sep:
        raise ImageLoadError("Malformed data URI")
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=True)
        return payload.encode("latin-1")
    except (binascii.Error, ValueError, UnicodeEncodeError) as e:
        raise ImageLoadError("Malformed data URI: %s" % e) from e


def _decode(data: bytes, name: str) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageLoadError("Cannot decode %s: %s" % (name, e)) from e
    logger.debug("Decoded %s: %s %dx%d" % (name, image.mode, image.width, image.height))
    return _normalize(image)


def _normalize(image: Image.Image) -> Image.Image:
    if image.width == 0 or image.height == 0:
        raise ImageLoadError("Empty image")
    if image.mode == "RGBA":
        return image
    # Palette images may carry transparency; convert through RGBA.
    return image.convert("RGBA")


def to_array(image: Image.Image) -> np.ndarray:
    """RGBA PIL image to a float32 ``(H, W, 4)`` array in [0, 1]."""
    return np.asarray(image.convert("RGBA"), dtype=np.float32) / 255.0


def from_array(color: np.ndarray, alpha: Optional[np.ndarray] = None) -> Image.Image:
    """Float arrays in [0, 1] to a PIL image (``RGB`` or ``RGBA``)."""
    if alpha is not None:
        color = np.concatenate((color, alpha), 2)
    # (H, W, 3) uint8 maps to RGB, (H, W, 4) to RGBA.
    return Image.fromarray(np.round(255 * np.clip(color, 0.0, 1.0)).astype(np.uint8))
