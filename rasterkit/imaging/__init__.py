"""Imaging stages: resources, color conversions, rendering, encoding.

Modules:
    - resources: scoped decode of the source raster, typeface registry
    - conversions: five color-space PNGs, partial failure tolerated
    - renderer: synthetic RGBA test image
    - encoders: tiff/gif/png/svg + flattened jpg/bmp + 1-bit wbmp
    - wbmp: Pillow plugin for WBMP type 0 (registered on import)
"""

from . import wbmp
from . import resources
from . import conversions
from . import renderer
from . import encoders

__all__ = ['wbmp', 'resources', 'conversions', 'renderer', 'encoders']
