import importlib
import io
import logging
import re

import numpy as np
import pytest
from PIL import Image

from wallcomp import pil_io
from wallcomp.composite import composite
from wallcomp.composite.composite import Raster
from wallcomp.constants import ExportFormat, Quality
from wallcomp.exceptions import DocumentWrapError
from wallcomp.export import (
    ExportRequest,
    Exporter,
    encode_jpeg,
    export,
    output_size,
    page_size,
    quality_scale,
)
from wallcomp.scene import Frame, Size

from .utils import MISSING, element, white_scene

logger = logging.getLogger(__name__)

# The package namespace re-exports the export() function under the same name.
export_module = importlib.import_module("wallcomp.export")


@pytest.fixture
def scene(red_image):
    return white_scene(
        [element(1, red_image, position=(10, 10), size=(20, 20))], size=(60, 40)
    )


def _decode(data):
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


@pytest.mark.parametrize(
    "quality, size, expected",
    [
        (Quality.STANDARD, (1200, 800), 1.0),
        ("4x", (1200, 800), 4.0),
        ("8k", (1200, 800), 6.4),
        ("8k", (800, 1200), 6.4),
        ("8K", (7680, 100), 1.0),
    ],
)
def test_quality_scale(quality, size, expected):
    assert quality_scale(quality, Size(*size)) == pytest.approx(expected)


@pytest.mark.parametrize(
    "quality, size, expected",
    [
        ("standard", (1200, 800), (1200, 800)),
        ("4x", (1200, 800), (4800, 3200)),
        ("8k", (1200, 800), (7680, 5120)),
        ("8k", (600, 1000), (4608, 7680)),
    ],
)
def test_output_size(quality, size, expected):
    assert output_size(Size(*size), quality) == expected


def test_page_size():
    assert page_size(Size(1200, 800)) == (900, 600)
    assert page_size(Size(800, 1200)) == (600, 900)
    assert page_size(Size(500, 500)) == (375, 375)


def test_request_defaults():
    request = ExportRequest()
    assert request.format == ExportFormat.PNG
    assert request.quality == Quality.STANDARD
    assert ExportRequest(format="jpg").format == ExportFormat.JPEG
    assert ExportRequest(format="PDF").format == ExportFormat.PDF


def test_request_invalid():
    with pytest.raises(ValueError):
        ExportRequest(format="gif")
    with pytest.raises(ValueError):
        ExportRequest(quality="16k")


def test_export_png(scene):
    result = export(scene, ExportRequest(format="png", file_name="altar"))
    assert result.format == ExportFormat.PNG
    assert result.mime_type == "image/png"
    assert result.file_name == "altar.png"
    assert not result.fell_back
    assert result.skipped == 0
    assert result.size == (60, 40)

    image = _decode(result.data)
    assert image.format == "PNG"
    assert image.size == (60, 40)
    assert image.convert("RGB").getpixel((15, 15)) == (255, 0, 0)
    assert image.convert("RGB").getpixel((5, 5)) == (255, 255, 255)


def test_export_jpeg(scene):
    result = export(scene, ExportRequest(format="jpeg"))
    assert result.mime_type == "image/jpeg"
    assert result.file_name == "wall.jpg"
    image = _decode(result.data)
    assert image.format == "JPEG"
    assert image.mode == "RGB"
    assert image.size == (60, 40)
    r, g, b = image.getpixel((20, 20))
    assert r > 240 and g < 16 and b < 16


def test_encode_jpeg_flattens_alpha():
    color = np.zeros((16, 16, 3), dtype=np.float32)
    color[:, :, 0] = 1.0
    alpha = np.ones((16, 16, 1), dtype=np.float32)
    alpha[:, :8] = 0.0
    image = _decode(encode_jpeg(Raster(color, alpha, Size(16, 16))))
    assert image.mode == "RGB"
    r, g, b = image.getpixel((1, 8))
    assert r < 16 and g < 16 and b < 16
    r, g, b = image.getpixel((14, 8))
    assert r > 200 and g < 40 and b < 40


def test_export_4x(scene):
    result = export(scene, ExportRequest(quality="4x"))
    assert result.size == (240, 160)
    assert result.scale == 4.0
    image = _decode(result.data).convert("RGB")
    assert image.size == (240, 160)
    assert image.getpixel((80, 80)) == (255, 0, 0)
    assert image.getpixel((20, 20)) == (255, 255, 255)


def test_export_pdf(scene):
    result = export(scene, ExportRequest(format="pdf", quality="4x", file_name="altar"))
    assert result.format == ExportFormat.PDF
    assert result.mime_type == "application/pdf"
    assert result.file_name == "altar.pdf"
    assert not result.fell_back
    assert result.data.startswith(b"%PDF")
    # Quality presets do not apply to documents.
    assert result.scale == 1.0
    assert result.size == (60, 40)
    match = re.search(rb"/MediaBox\s*\[\s*0 0 ([\d.]+) ([\d.]+)\s*\]", result.data)
    assert match is not None
    assert float(match.group(1)) == pytest.approx(45)
    assert float(match.group(2)) == pytest.approx(30)


def test_export_pdf_fallback(scene, monkeypatch):
    def broken(raster):
        raise DocumentWrapError("no fonts today")

    monkeypatch.setattr(export_module, "wrap_pdf", broken)
    result = export(scene, ExportRequest(format="pdf", file_name="altar"))
    assert result.fell_back
    assert result.format == ExportFormat.PNG
    assert result.requested_format == ExportFormat.PDF
    assert result.mime_type == "image/png"
    assert result.file_name == "altar.png"
    assert result.size == (60, 40)
    assert _decode(result.data).format == "PNG"


def test_export_reports_skipped(red_image):
    scene = white_scene(
        [
            element(1, red_image),
            element(2, MISSING, frame=Frame(type="classic", width=4)),
            element(3, red_image, position=(30, 30)),
        ]
    )
    result = export(scene, ExportRequest(format="jpeg"))
    assert result.skipped == 1
    assert [item.element_id for item in result.skipped_elements] == [2]
    assert _decode(result.data).size == (64, 64)


def test_export_composited_result(scene):
    composited = composite(scene)
    result = Exporter().export(composited, ExportRequest(quality="4x"))
    assert result.size == (240, 160)
    assert result.skipped == 0

    result = Exporter().export(composited.raster, ExportRequest())
    assert result.size == (60, 40)
    image = _decode(result.data).convert("RGBA")
    assert np.array_equal(np.asarray(image), np.asarray(composited.raster.topil()))


def test_export_unsupported_source():
    with pytest.raises(TypeError):
        export("wall.json")


def test_export_uses_loader(tmp_path, red_image):
    red_image.save(tmp_path / "red.png")
    scene = white_scene([element(1, "red.png")], size=(30, 30))
    loader = lambda ref: pil_io.load_image(ref, tmp_path)  # noqa: E731
    result = Exporter(loader=loader).export(scene)
    assert result.skipped == 0
    assert _decode(result.data).convert("RGB").getpixel((5, 5)) == (255, 0, 0)
