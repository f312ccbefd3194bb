"""Composite implementation for wall rendering."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np
from attrs import define, field
from PIL import Image

from wallcomp import pil_io
from wallcomp.composite import background, collage, filters, frames, utils, vector
from wallcomp.composite.geometry import clip_path
from wallcomp.composite.utils import BBox
from wallcomp.constants import Shape
from wallcomp.exceptions import ImageLoadError
from wallcomp.scene import Collage, Element, Scene, Size

logger = logging.getLogger(__name__)

Loader = Callable[[Any], Image.Image]


@define(frozen=True)
class SkippedElement(object):
    """
    An element, or one collage cell of it, left out of the export.

    .. py:attribute:: cell

        Collage cell index, or ``None`` when the whole element was skipped.
    """

    element_id: Any
    reason: str
    cell: Optional[int] = None


@define(eq=False)
class Raster(object):
    """
    Composited wall pixels.

    .. py:attribute:: color

        ``(height, width, 3)`` float32 RGB in [0, 1].

    .. py:attribute:: alpha

        ``(height, width, 1)`` float32 alpha in [0, 1].
    """

    color: np.ndarray
    alpha: np.ndarray
    wall_size: Size
    scale: float = 1.0

    @property
    def width(self) -> int:
        return self.color.shape[1]

    @property
    def height(self) -> int:
        return self.color.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def numpy(self) -> np.ndarray:
        """``(height, width, 4)`` RGBA array."""
        return np.concatenate((self.color, self.alpha), 2)

    def topil(self) -> Image.Image:
        """RGBA PIL image."""
        return pil_io.from_array(self.color, self.alpha)


@define(eq=False)
class CompositeResult(object):
    raster: Raster
    skipped_elements: List[SkippedElement] = field(factory=list)

    @property
    def skipped(self) -> int:
        """Number of elements left out entirely."""
        return sum(1 for item in self.skipped_elements if item.cell is None)


@define
class _Loaded(object):
    """Decoded images of one element; ``None`` marks a failed collage cell."""

    images: List[Optional[Image.Image]]
    errors: List[SkippedElement] = field(factory=list)

    @property
    def failed(self) -> bool:
        return all(image is None for image in self.images)


def composite(
    scene: Scene,
    scale: float = 1.0,
    loader: Optional[Loader] = None,
    workers: Optional[int] = None,
) -> CompositeResult:
    """
    Composite a scene into a raster.

    Example::

        result = composite(scene, scale=2.0)
        result.raster.topil().save('wall.png')
        print(result.skipped)

    :param scene: :py:class:`~wallcomp.scene.Scene` to render; never mutated.
    :param scale: device pixels per logical pixel.
    :param loader: callable resolving an image reference to a PIL image,
        raising :py:class:`~wallcomp.exceptions.ImageLoadError` on failure.
        Defaults to :py:func:`wallcomp.pil_io.load_image`.
    :param workers: decode element images on this many threads. Draws stay in
        scene order.
    :return: :py:class:`CompositeResult` with the raster and skipped elements.
    """
    compositor = Compositor(scene, scale=scale, loader=loader)
    compositor.draw_background()
    if workers and workers > 1 and len(scene.elements) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields in submission order, so draws follow scene order.
            for element, loaded in zip(
                scene.elements, executor.map(compositor.load, scene.elements)
            ):
                compositor.apply(element, loaded)
    else:
        for element in scene.elements:
            compositor.apply(element)
    return compositor.finish()


class Compositor(object):
    """Composite context of one export job.

    Owns the raster buffer; every draw takes its clip, filters and style as
    arguments.

    Example::

        compositor = Compositor(scene, scale=4.0)
        compositor.draw_background()
        for element in scene.elements:
            compositor.apply(element)
        result = compositor.finish()
    """

    def __init__(
        self,
        scene: Scene,
        scale: float = 1.0,
        loader: Optional[Loader] = None,
    ):
        if not scale > 0:
            raise ValueError("scale must be positive: %r" % (scale,))
        self._scene = scene
        self._scale = float(scale)
        self._loader = loader or pil_io.load_image
        width, height = utils.pixel_size(scene.width, scene.height, self._scale)
        self._viewport: BBox = (0, 0, width, height)
        self._color = np.ones((height, width, 3), dtype=np.float32)
        self._alpha = np.zeros((height, width, 1), dtype=np.float32)
        self._skipped: List[SkippedElement] = []

    @property
    def viewport(self) -> BBox:
        return self._viewport

    @property
    def width(self) -> int:
        return self._viewport[2] - self._viewport[0]

    @property
    def height(self) -> int:
        return self._viewport[3] - self._viewport[1]

    @property
    def scale(self) -> float:
        return self._scale

    def draw_background(self) -> None:
        """Paint the background and, when visible, the wall border."""
        color, alpha = background.draw_background(
            self._scene.background, (self.height, self.width), self._loader
        )
        self._apply_source(color, alpha, alpha)
        border = self._scene.border
        if border.visible:
            mask, border_color = background.draw_border(
                self._scene.size, border, self._scale
            )
            self._apply_fill(border_color.as_float(), mask, mask * border_color.opacity)

    def load(self, element: Element) -> _Loaded:
        """Decode the images of one element. Safe to call from worker threads."""
        refs: Sequence[Any]
        if isinstance(element.content, Collage):
            refs = element.content.refs
        else:
            refs = [element.content.ref]
        loaded = _Loaded(images=[])
        for index, ref in enumerate(refs):
            try:
                loaded.images.append(self._loader(ref))
            except ImageLoadError as e:
                loaded.images.append(None)
                cell = index if isinstance(element.content, Collage) else None
                loaded.errors.append(SkippedElement(element.id, str(e), cell))
        return loaded

    def apply(self, element: Element, loaded: Optional[_Loaded] = None) -> None:
        """Load, clip, filter, draw and frame one element."""
        logger.debug("Compositing element %r" % (element.id,))
        if loaded is None:
            loaded = self.load(element)
        if loaded.failed:
            reason = "; ".join(error.reason for error in loaded.errors)
            logger.warning("Skipping element %r: %s" % (element.id, reason))
            self._skipped.append(SkippedElement(element.id, reason))
            return
        for error in loaded.errors:
            logger.warning(
                "Skipping collage cell %d of element %r: %s"
                % (error.cell, element.id, error.reason)
            )
        self._skipped.extend(loaded.errors)
        logger.debug("Element %r: loaded" % (element.id,))

        bbox = utils.pixel_bbox(element.bbox, self._scale)
        inter = utils.intersect(self._viewport, bbox)
        if inter == (0, 0, 0, 0):
            logger.debug("Out of viewport %r" % (element.id,))
        else:
            clip = self._get_clip(element, bbox)
            logger.debug("Element %r: clipped" % (element.id,))
            pixels = self._get_pixels(element, loaded.images, bbox)
            logger.debug("Element %r: filtered" % (element.id,))
            shape = pixels[:, :, 3:] if clip is None else pixels[:, :, 3:] * clip
            self._apply_source(
                utils.paste(inter, bbox, pixels[:, :, :3], 1.0),
                utils.paste(inter, bbox, shape),
                utils.paste(inter, bbox, shape),
                inter,
            )
            logger.debug("Element %r: drawn" % (element.id,))

        self._apply_frame(element)
        logger.debug("Element %r: framed" % (element.id,))

    def finish(self) -> CompositeResult:
        raster = Raster(
            color=self._color,
            alpha=self._alpha,
            wall_size=self._scene.size,
            scale=self._scale,
        )
        return CompositeResult(raster, list(self._skipped))

    def _get_clip(self, element: Element, bbox: BBox) -> Optional[np.ndarray]:
        """Clip mask over the element's pixel box, ``None`` for no clipping."""
        if element.shape == Shape.RECTANGLE:
            return None
        outline = (
            clip_path(element.shape, element.size.width, element.size.height)
            .translate(element.position.x, element.position.y)
            .scale(self._scale)
        )
        return vector.draw_outline(outline, bbox)

    def _get_pixels(
        self, element: Element, images: List[Optional[Image.Image]], bbox: BBox
    ) -> np.ndarray:
        """Filtered RGBA pixels of the element, sized to its pixel box."""
        width, height = bbox[2] - bbox[0], bbox[3] - bbox[1]
        if not isinstance(element.content, Collage):
            image = images[0]
            assert image is not None
            return filters.apply_filters(
                _resample(image, width, height), element.filters, self._scale
            )

        pixels = np.zeros((height, width, 4), dtype=np.float32)
        grid = collage.layout(len(images), element.size.width, element.size.height)
        for index, image in enumerate(images):
            if image is None:
                continue
            left, top, right, bottom = grid.cell(index)
            x, y = element.position.x, element.position.y
            cell = utils.pixel_bbox(
                (x + left, y + top, x + right, y + bottom), self._scale
            )
            cell_pixels = filters.apply_filters(
                _resample(image, cell[2] - cell[0], cell[3] - cell[1]),
                element.filters,
                self._scale,
            )
            inter = utils.intersect(bbox, cell)
            if inter == (0, 0, 0, 0):
                continue
            region = (
                inter[0] - bbox[0],
                inter[1] - bbox[1],
                inter[2] - bbox[0],
                inter[3] - bbox[1],
            )
            pixels[region[1] : region[3], region[0] : region[2], :] = utils.paste(
                inter, cell, cell_pixels
            )
        return pixels

    def _apply_frame(self, element: Element) -> None:
        for stroke in frames.draw_frame(element.bbox, element.frame):
            reach = stroke.width / 2.0 + 1.0
            bbox = utils.intersect(
                self._viewport,
                utils.pixel_bbox(frames.expand(stroke.rect, reach), self._scale),
            )
            if bbox == (0, 0, 0, 0):
                continue
            mask = vector.draw_rectangle_stroke(
                tuple(v * self._scale for v in stroke.rect),
                stroke.width * self._scale,
                bbox,
            )
            opacity = stroke.opacity * stroke.color.opacity
            self._apply_fill(stroke.color.as_float(), mask, mask * opacity, bbox)

    def _apply_fill(
        self,
        rgb: Tuple[float, float, float],
        shape: np.ndarray,
        alpha: np.ndarray,
        bbox: Optional[BBox] = None,
    ) -> None:
        color = np.empty(shape.shape[:2] + (3,), dtype=np.float32)
        color[:, :] = rgb
        self._apply_source(color, shape, alpha, bbox)

    def _apply_source(
        self,
        color: np.ndarray,
        shape: np.ndarray,
        alpha: np.ndarray,
        bbox: Optional[BBox] = None,
    ) -> None:
        """Source-over ``color`` onto the raster, restricted to ``bbox``."""
        bbox = bbox or self._viewport
        view = (slice(bbox[1], bbox[3]), slice(bbox[0], bbox[2]))
        color_b = self._color[view]
        alpha_b = self._alpha[view]

        alpha_r = utils.union(alpha_b, alpha)
        color_t = (shape - alpha) * alpha_b * color_b + alpha * color
        self._color[view] = utils.clip(
            utils.divide((1.0 - shape) * alpha_b * color_b + color_t, alpha_r)
        )
        self._alpha[view] = alpha_r


def _resample(image: Image.Image, width: int, height: int) -> np.ndarray:
    """Stretch an image to ``width × height`` pixels as RGBA floats."""
    if image.size != (width, height):
        image = image.resize((width, height), Image.Resampling.LANCZOS)
    return pil_io.to_array(image)
