"""Multi-format encoder for the synthetic image.

Writes seven artifacts from one canonical RGBA image:

    alpha-preserving (canonical image):  <prefix>.tiff  <prefix>.gif  <prefix>.png
    vector document (canonical image):   <prefix>.svg   (raster embedded as PNG)
    alpha-flattened copy, 3 channels:    <prefix>.jpg   <prefix>.bmp
    binarized copy, 1 bit per pixel:     <prefix>.wbmp

Narrowing is explicit and always works on a copy:
    - GIF keeps 1-bit transparency: alpha < gif_alpha_threshold → transparent
      palette entry, colors quantized to the remaining 255 entries
    - JPEG/BMP get the image composited over an opaque backdrop
    - WBMP gets the flattened copy thresholded on luma (no dithering)

Any encoder failure propagates; there is no retry and no partial output
contract for this stage.

Usage:
    from rasterkit.imaging import encoders

    artifacts = encoders.encode_all(img, "out/", "showcase")
    sorted(artifacts)  # ['bmp', 'gif', 'jpg', 'png', 'svg', 'tiff', 'wbmp']
"""

import base64
import io
import logging
from pathlib import Path
from typing import Dict, Sequence, Union

import numpy as np
import svg
from PIL import Image

from rasterkit.imaging import wbmp  # noqa: F401  (registers the WBMP plugin)
from rasterkit.utils import fs

logger = logging.getLogger(__name__)

ALPHA_FORMATS = ("tiff", "gif", "png")
VECTOR_FORMATS = ("svg",)
FLAT_FORMATS = ("jpg", "bmp")
MONO_FORMATS = ("wbmp",)
ALL_FORMATS = ALPHA_FORMATS + VECTOR_FORMATS + FLAT_FORMATS + MONO_FORMATS

# Palette index reserved for transparent GIF pixels
GIF_TRANSPARENT_INDEX = 255

_PIL_FORMATS = {
    "tiff": "TIFF",
    "gif": "GIF",
    "png": "PNG",
    "jpg": "JPEG",
    "bmp": "BMP",
    "wbmp": wbmp.FORMAT,
}


def flatten_alpha(
    image: Image.Image,
    background: Sequence[int] = (0, 0, 0)
) -> Image.Image:
    """Composite an image over an opaque backdrop and drop alpha.

    Parameters
    ----------
    image : Image.Image
        Source image (any mode; RGBA expected)
    background : Sequence[int]
        Backdrop RGB, default black

    Returns
    -------
    Image.Image
        New "RGB" image (exactly 3 channels); the source is untouched
    """
    rgba = image.convert("RGBA")
    flat = Image.new("RGB", rgba.size, tuple(background))
    flat.paste(rgba, mask=rgba.getchannel("A"))
    return flat


def binarize(
    image: Image.Image,
    threshold: int = 128,
    background: Sequence[int] = (0, 0, 0)
) -> Image.Image:
    """Reduce an image to 1 bit per pixel.

    Parameters
    ----------
    image : Image.Image
        Source image
    threshold : int
        Luma at or above which a pixel becomes white
    background : Sequence[int]
        Backdrop used to flatten alpha first

    Returns
    -------
    Image.Image
        New mode "1" image
    """
    luma = flatten_alpha(image, background).convert("L")
    return luma.point(lambda v: 255 if v >= threshold else 0).convert("1", dither=Image.Dither.NONE)


def to_gif_palette(image: Image.Image, alpha_threshold: int = 255) -> Image.Image:
    """Palette copy of an RGBA image with 1-bit transparency.

    Parameters
    ----------
    image : Image.Image
        RGBA source
    alpha_threshold : int
        Pixels with alpha below this map to GIF_TRANSPARENT_INDEX

    Returns
    -------
    Image.Image
        Mode "P" image with a 256-entry palette; ``info["transparency"]``
        is set when any pixel is transparent
    """
    rgba = image.convert("RGBA")
    paletted = rgba.convert("RGB").quantize(
        colors=GIF_TRANSPARENT_INDEX,
        method=Image.Quantize.MEDIANCUT,
        dither=Image.Dither.NONE,
    )
    palette = paletted.getpalette() or []
    palette = (palette + [0] * 768)[:768]
    paletted.putpalette(palette)

    alpha = np.asarray(rgba.getchannel("A"))
    transparent = alpha < alpha_threshold
    if transparent.any():
        mask = Image.fromarray(transparent.astype(np.uint8) * 255)
        paletted.paste(GIF_TRANSPARENT_INDEX, mask=mask)
        paletted.info["transparency"] = GIF_TRANSPARENT_INDEX
    return paletted


def to_svg(image: Image.Image) -> str:
    """Serialize an image as an SVG document embedding it as a PNG.

    This is not vectorization: the document holds one <image> element of
    the raster's size with a base64 data URI.
    """
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    href = "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")

    width, height = image.size
    doc = svg.SVG(
        width=width,
        height=height,
        viewBox=svg.ViewBoxSpec(0, 0, width, height),
        elements=[
            svg.Image(x=0, y=0, width=width, height=height, href=href),
        ],
    )
    return doc.as_str()


def artifact_path(directory: Union[str, Path], prefix: str, fmt: str) -> Path:
    return Path(directory) / f"{prefix}.{fmt}"


def encode_all(
    image: Image.Image,
    directory: Union[str, Path],
    prefix: str,
    gif_alpha_threshold: int = 255,
    flatten_background: Sequence[int] = (0, 0, 0),
    mono_threshold: int = 128,
    jpeg_quality: int = 75
) -> Dict[str, Path]:
    """Encode the canonical image into every output format.

    Parameters
    ----------
    image : Image.Image
        Canonical RGBA synthetic image (never modified)
    directory : Union[str, Path]
        Output directory (created if missing)
    prefix : str
        File name prefix
    gif_alpha_threshold : int
        See to_gif_palette()
    flatten_background : Sequence[int]
        Backdrop for the JPEG/BMP/WBMP copies
    mono_threshold : int
        Luma cut for the WBMP copy
    jpeg_quality : int
        JPEG quality

    Returns
    -------
    Dict[str, Path]
        Format → written path, exactly len(ALL_FORMATS) entries

    Raises
    ------
    RuntimeError
        If any artifact fails to encode or write (fatal)
    """
    if image.mode != "RGBA":
        raise ValueError(f"Expected canonical RGBA image, got mode {image.mode}")

    artifacts: Dict[str, Path] = {}

    def _save(img: Image.Image, fmt: str, **pil_kwargs) -> None:
        path = artifact_path(directory, prefix, fmt)
        fs.atomic_save_image(img, path, format=_PIL_FORMATS[fmt], pil_kwargs=pil_kwargs)
        artifacts[fmt] = path
        logger.info(f"Wrote {path.name} ({img.mode})")

    # Handles transparency
    _save(image, "tiff")
    gif = to_gif_palette(image, gif_alpha_threshold)
    _save(gif, "gif", optimize=False, **({"transparency": GIF_TRANSPARENT_INDEX}
                                         if "transparency" in gif.info else {}))
    _save(image, "png")

    svg_path = artifact_path(directory, prefix, "svg")
    fs.atomic_write_text(svg_path, to_svg(image))
    artifacts["svg"] = svg_path
    logger.info(f"Wrote {svg_path.name} (embedded PNG)")

    # No alpha channel
    flat = flatten_alpha(image, flatten_background)
    _save(flat, "jpg", quality=jpeg_quality)
    _save(flat, "bmp")

    # Monochrome
    mono = binarize(flat, mono_threshold)
    _save(mono, "wbmp")

    return artifacts
