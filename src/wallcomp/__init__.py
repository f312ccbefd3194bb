"""
wallcomp: export compositor for photo and decor walls.

Given a finished wall arrangement (background, border and placed elements with
clip shapes, frames, colour filters and collages) it renders the wall at any
resolution and encodes it as PNG, JPEG or a one-page PDF.

Basic usage::

    from wallcomp import Scene, ExportRequest, export

    scene = Scene.from_dict(wall_data)
    result = export(scene, ExportRequest(format='png', quality='4x'))
    with open(result.file_name, 'wb') as f:
        f.write(result.data)

Architecture:

- :py:mod:`wallcomp.scene`: Immutable scene model
- :py:mod:`wallcomp.composite`: Rendering engine
- :py:mod:`wallcomp.export`: Quality presets and encoders
- :py:mod:`wallcomp.pil_io`: Image reference loading
"""

from wallcomp.composite import composite
from wallcomp.export import ExportRequest, ExportResult, Exporter, export
from wallcomp.scene import Scene
from wallcomp.version import __version__

__all__ = [
    "ExportRequest",
    "ExportResult",
    "Exporter",
    "Scene",
    "composite",
    "export",
    "__version__",
]
