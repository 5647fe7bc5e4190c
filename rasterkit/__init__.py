"""rasterkit: deterministic multi-format raster showcase.

This package decodes a source raster into several color spaces, renders a
synthetic test image (rotated stripes, translucent overlay, two typefaces)
and encodes it into every supported raster container plus an SVG document.

Architecture layers (strict one-way dependency):
    scripts/ → rasterkit/pipeline.py → rasterkit/imaging/ → rasterkit/utils/

Key invariants:
    - Every synthetic-image artifact derives from one canonical RGBA buffer
    - Narrowing (alpha flatten, 1-bit) always happens on explicit copies
    - Same inputs + library versions → byte-identical outputs
    - YAML-only configs, validated with pydantic
"""

__version__ = "1.0.0"
