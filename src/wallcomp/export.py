"""
Export of composited walls.

Raster formats (PNG, JPEG) are rendered at the scale of the requested quality
preset. The document format (PDF) ignores the preset and embeds the
standard-scale raster on a single page sized in points, ``0.75 pt`` per wall
pixel. If the document cannot be produced the export falls back to a PNG at
standard scale, and the result says so.

Example::

    from wallcomp.export import ExportRequest, export

    result = export(scene, ExportRequest(format='pdf', file_name='altar'))
    with open(result.file_name, 'wb') as f:
        f.write(result.data)
    if result.fell_back:
        print('PDF failed, wrote %s' % result.format.value)
"""

import io
import logging
from typing import Any, List, Optional, Tuple, Union

from attrs import define, field
from PIL import Image
from reportlab.lib.pagesizes import landscape, portrait
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from wallcomp import pil_io
from wallcomp.composite.composite import (
    CompositeResult,
    Loader,
    Raster,
    SkippedElement,
    composite,
)
from wallcomp.composite.utils import pixel_size
from wallcomp.constants import (
    JPEG_QUALITY,
    LONG_SIDE_8K,
    PX_TO_PT,
    ExportFormat,
    Quality,
)
from wallcomp.exceptions import DocumentWrapError
from wallcomp.scene import Scene, Size
from wallcomp.validators import to_enum

logger = logging.getLogger(__name__)


def _to_format(value: Any) -> ExportFormat:
    if isinstance(value, str):
        try:
            return ExportFormat.from_name(value)
        except ValueError:
            pass
    return to_enum(ExportFormat)(value)


@define(frozen=True)
class ExportRequest(object):
    """
    What to produce.

    .. py:attribute:: quality

        Resolution preset; ignored for PDF.

    .. py:attribute:: file_name

        Base name of the download; the extension of the produced format is
        appended.
    """

    format: ExportFormat = field(default=ExportFormat.PNG, converter=_to_format)
    quality: Quality = field(default=Quality.STANDARD, converter=to_enum(Quality))
    file_name: str = "wall"


@define(eq=False)
class ExportResult(object):
    """
    Produced payload.

    ``format`` is the format actually produced; it differs from
    ``requested_format`` when the document fell back to PNG.
    """

    data: bytes = field(repr=lambda data: "<%d bytes>" % len(data))
    format: ExportFormat
    requested_format: ExportFormat
    file_name: str
    size: Tuple[int, int]
    scale: float
    skipped_elements: List[SkippedElement] = field(factory=list)

    @property
    def mime_type(self) -> str:
        return self.format.mime_type

    @property
    def fell_back(self) -> bool:
        return self.format != self.requested_format

    @property
    def skipped(self) -> int:
        return sum(1 for item in self.skipped_elements if item.cell is None)


def quality_scale(quality: Union[Quality, str], wall_size: Size) -> float:
    """Scale factor of a quality preset for a wall."""
    quality = to_enum(Quality)(quality)
    if quality == Quality.X4:
        return 4.0
    if quality == Quality.K8:
        return LONG_SIDE_8K / max(wall_size.width, wall_size.height)
    return 1.0


def output_size(wall_size: Size, quality: Union[Quality, str]) -> Tuple[int, int]:
    """Pixel size of a raster export."""
    return pixel_size(wall_size.width, wall_size.height, quality_scale(quality, wall_size))


def page_size(wall_size: Size) -> Tuple[float, float]:
    """PDF page size in points; landscape when the wall is wider than tall."""
    size = (wall_size.width * PX_TO_PT, wall_size.height * PX_TO_PT)
    if wall_size.width > wall_size.height:
        return landscape(size)
    return portrait(size)


def rescale(raster: Raster, scale: float) -> Raster:
    """Resample a raster to another scale."""
    if raster.scale == scale:
        return raster
    width, height = pixel_size(raster.wall_size.width, raster.wall_size.height, scale)
    logger.debug(
        "Resampling %dx%d -> %dx%d" % (raster.width, raster.height, width, height)
    )
    image = raster.topil().resize((width, height), Image.Resampling.LANCZOS)
    pixels = pil_io.to_array(image)
    return Raster(
        color=pixels[:, :, :3],
        alpha=pixels[:, :, 3:],
        wall_size=raster.wall_size,
        scale=scale,
    )


def encode_png(raster: Raster) -> bytes:
    with io.BytesIO() as f:
        raster.topil().save(f, "PNG")
        return f.getvalue()


def encode_jpeg(raster: Raster) -> bytes:
    # JPEG has no alpha; transparent areas are flattened onto black.
    image = pil_io.from_array(raster.color * raster.alpha)
    with io.BytesIO() as f:
        image.save(f, "JPEG", quality=JPEG_QUALITY)
        return f.getvalue()


def wrap_pdf(raster: Raster) -> bytes:
    """
    Embed a raster as the only image of a one-page PDF.

    :raises DocumentWrapError: when the document cannot be produced.
    """
    width, height = page_size(raster.wall_size)
    try:
        with io.BytesIO() as f:
            pdf = canvas.Canvas(f, pagesize=(width, height))
            pdf.drawImage(
                ImageReader(raster.topil()), 0, 0, width=width, height=height,
                mask="auto",
            )
            pdf.showPage()
            pdf.save()
            return f.getvalue()
    except Exception as e:
        raise DocumentWrapError("PDF generation failed: %s" % e) from e


_ENCODERS = {
    ExportFormat.PNG: encode_png,
    ExportFormat.JPEG: encode_jpeg,
}


class Exporter(object):
    """
    Turns scenes or rasters into export payloads.

    :param loader: image loader passed to the compositor.
    :param workers: image decode threads passed to the compositor.
    """

    def __init__(self, loader: Optional[Loader] = None, workers: Optional[int] = None):
        self._loader = loader
        self._workers = workers

    def export(
        self,
        source: Union[Scene, Raster, CompositeResult],
        request: Optional[ExportRequest] = None,
    ) -> ExportResult:
        """
        Export a scene, or an already composited raster.

        A scene is composited at the preset scale; a raster is resampled to
        it. Only :py:class:`~wallcomp.exceptions.InvalidSceneError` escapes
        for bad input; load and document failures are recovered.
        """
        request = request or ExportRequest()
        if request.format == ExportFormat.PDF:
            scale = 1.0
        else:
            scale = quality_scale(request.quality, self._wall_size(source))
        raster, skipped = self._render(source, scale)

        produced = request.format
        if request.format == ExportFormat.PDF:
            try:
                data = wrap_pdf(raster)
            except DocumentWrapError as e:
                logger.warning("Falling back to PNG: %s" % e)
                produced = ExportFormat.PNG
                data = encode_png(raster)
        else:
            data = _ENCODERS[request.format](raster)

        result = ExportResult(
            data=data,
            format=produced,
            requested_format=request.format,
            file_name="%s.%s" % (request.file_name, produced.extension),
            size=raster.size,
            scale=raster.scale,
            skipped_elements=skipped,
        )
        logger.info(
            "Exported %s %dx%d (%d bytes, %d skipped)"
            % (produced.value, raster.width, raster.height, len(data), result.skipped)
        )
        return result

    def _render(
        self, source: Union[Scene, Raster, CompositeResult], scale: float
    ) -> Tuple[Raster, List[SkippedElement]]:
        if isinstance(source, Scene):
            result = composite(source, scale, loader=self._loader, workers=self._workers)
            return result.raster, result.skipped_elements
        if isinstance(source, CompositeResult):
            return rescale(source.raster, scale), list(source.skipped_elements)
        if isinstance(source, Raster):
            return rescale(source, scale), []
        raise TypeError("Cannot export %s" % type(source).__name__)

    @staticmethod
    def _wall_size(source: Union[Scene, Raster, CompositeResult]) -> Size:
        if isinstance(source, Scene):
            return source.size
        if isinstance(source, CompositeResult):
            return source.raster.wall_size
        if isinstance(source, Raster):
            return source.wall_size
        raise TypeError("Cannot export %s" % type(source).__name__)


def export(
    source: Union[Scene, Raster, CompositeResult],
    request: Optional[ExportRequest] = None,
    loader: Optional[Loader] = None,
    workers: Optional[int] = None,
) -> ExportResult:
    """Export with a one-off :py:class:`Exporter`."""
    return Exporter(loader=loader, workers=workers).export(source, request)
