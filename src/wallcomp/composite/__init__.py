"""
Composite module for wall rendering.

This subpackage rasterizes a :py:class:`~wallcomp.scene.Scene` into float
pixel arrays: background and border, then every element in scene order,
each clipped to its shape, filtered, drawn and framed.

Key modules:

- :py:mod:`wallcomp.composite.composite`: The compositor
- :py:mod:`wallcomp.composite.geometry`: Clip-path outlines of element shapes
- :py:mod:`wallcomp.composite.vector`: Outline and stroke rasterization
- :py:mod:`wallcomp.composite.background`: Background fill and wall border
- :py:mod:`wallcomp.composite.frames`: Procedural element frames
- :py:mod:`wallcomp.composite.filters`: Colour filter pipeline
- :py:mod:`wallcomp.composite.collage`: Collage grid layout

Example usage::

    from wallcomp.composite import composite

    result = composite(scene, scale=4.0)
    result.raster.topil().save('wall.png')

Performance considerations:

- The raster holds four float32 channels, so an 8K export needs several
  hundred megabytes
- Frames and clip masks are rasterized only over the pixels they touch
"""

from wallcomp.composite.composite import (
    CompositeResult,
    Compositor,
    Raster,
    SkippedElement,
    composite,
)

__all__ = [
    "CompositeResult",
    "Compositor",
    "Raster",
    "SkippedElement",
    "composite",
]
