"""Color-space conversion routine.

Takes one decoded source raster and writes one PNG per color space:

    <prefix>_toG.png   gray (linear luminance, single channel)
    <prefix>_toC.png   CIE XYZ (D65, normalized to reference white)
    <prefix>_toL.png   linear RGB
    <prefix>_toP.png   Kodak PhotoYCC
    <prefix>_toS.png   sRGB

Each transform is a pure function of the same source tensor, so conversions
are independent of each other and of their order. A failed write is logged
and recorded in the report; the batch carries on with the remaining spaces.
Anything else (decode errors, bad input shapes) propagates.

Usage:
    from rasterkit.imaging import conversions

    report = conversions.convert_file("resources/source.jp2", "out/", "showcase")
    assert report.total == 5
"""

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Union

import numpy as np
import torch
from PIL import Image

from rasterkit.imaging import resources
from rasterkit.utils import color, fs, hashing

logger = logging.getLogger(__name__)


class ColorSpace(enum.Enum):
    """Target color spaces; the value is the config name."""
    GRAY = "gray"
    CIEXYZ = "ciexyz"
    LINEAR_RGB = "linear_rgb"
    PYCC = "pycc"
    SRGB = "srgb"

    @property
    def tag(self) -> str:
        """Output file tag (e.g., "toG")."""
        return _TAGS[self]


_TAGS = {
    ColorSpace.GRAY: "toG",
    ColorSpace.CIEXYZ: "toC",
    ColorSpace.LINEAR_RGB: "toL",
    ColorSpace.PYCC: "toP",
    ColorSpace.SRGB: "toS",
}

ALL_SPACES = tuple(ColorSpace)

# Full scale of 16-bit gray sources
WIDE_GRAY_MAX = 65535.0


@dataclass
class ConversionReport:
    """Outcome of a conversion batch.

    Invariant: every requested space ends up in exactly one of
    ``written`` or ``failed``.
    """
    written: Dict[ColorSpace, Path] = field(default_factory=dict)
    failed: Dict[ColorSpace, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.written) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


def _is_wide_gray(mode: str) -> bool:
    return mode == "I" or mode.startswith("I;16")


def to_tensor(image: Image.Image) -> torch.Tensor:
    """Decoded raster → sRGB float tensor (3, H, W) in [0, 1].

    Alpha and palette modes are resolved by Pillow's RGB conversion.
    16-bit gray ("I;16*", and "I" as Pillow decodes 16-bit PNG/JP2 gray) is
    scaled by 1/65535 at full depth and broadcast to three channels;
    Pillow's own RGB conversion would clip it at 255.
    """
    if _is_wide_gray(image.mode):
        gray = np.asarray(image).astype(np.float32) / WIDE_GRAY_MAX
        plane = torch.from_numpy(np.clip(gray, 0.0, 1.0))
        return plane.unsqueeze(0).expand(3, -1, -1).contiguous()

    rgb = np.asarray(image.convert("RGB"), dtype=np.uint8)
    return torch.from_numpy(rgb.copy()).permute(2, 0, 1).to(torch.float32) / 255.0


def _gray(srgb: torch.Tensor) -> torch.Tensor:
    return color.luminance_linear(color.srgb_to_linear(srgb))


def _ciexyz(srgb: torch.Tensor) -> torch.Tensor:
    return color.normalize_xyz(color.rgb_to_xyz(color.srgb_to_linear(srgb)))


def _srgb(srgb: torch.Tensor) -> torch.Tensor:
    return torch.clamp(srgb, 0.0, 1.0)


_TRANSFORMS: Dict[ColorSpace, Callable[[torch.Tensor], torch.Tensor]] = {
    ColorSpace.GRAY: _gray,
    ColorSpace.CIEXYZ: _ciexyz,
    ColorSpace.LINEAR_RGB: color.srgb_to_linear,
    ColorSpace.PYCC: color.rgb_to_photoycc,
    ColorSpace.SRGB: _srgb,
}


def convert(srgb: torch.Tensor, space: ColorSpace) -> torch.Tensor:
    """Apply one color-space transform.

    Parameters
    ----------
    srgb : torch.Tensor
        Source image, shape (3, H, W), sRGB [0, 1]
    space : ColorSpace
        Target space

    Returns
    -------
    torch.Tensor
        (H, W) for GRAY, (3, H, W) otherwise; range [0, 1]
        The input tensor is never modified.
    """
    if srgb.ndim != 3 or srgb.shape[0] != 3:
        raise ValueError(f"Expected shape (3, H, W), got {tuple(srgb.shape)}")
    return _TRANSFORMS[space](srgb)


def output_path(directory: Union[str, Path], prefix: str, space: ColorSpace) -> Path:
    return Path(directory) / f"{prefix}_{space.tag}.png"


def convert_all(
    image: Image.Image,
    directory: Union[str, Path],
    prefix: str,
    spaces: Optional[Iterable[ColorSpace]] = None
) -> ConversionReport:
    """Convert one raster into every requested space and write PNGs.

    Parameters
    ----------
    image : Image.Image
        Decoded source raster
    directory : Union[str, Path]
        Output directory (created if missing)
    prefix : str
        File name prefix
    spaces : Iterable[ColorSpace], optional
        Spaces to produce, default all five

    Returns
    -------
    ConversionReport
        Written paths and failure messages; ``total`` equals the number of
        requested spaces
    """
    spaces = ALL_SPACES if spaces is None else tuple(spaces)
    srgb = to_tensor(image)
    report = ConversionReport()

    for space in spaces:
        out = convert(srgb, space)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"{space.tag}: tensor sha256={hashing.sha256_tensor(out)}")

        path = output_path(directory, prefix, space)
        try:
            fs.atomic_save_image(out, path)
        except (RuntimeError, OSError) as e:
            logger.error(f"Skipping {space.value} conversion, write failed: {e}", exc_info=True)
            report.failed[space] = str(e)
            continue
        report.written[space] = path
        logger.info(f"Wrote {path.name} ({space.value})")

    logger.info(f"Color conversions: {len(report.written)} written, {len(report.failed)} skipped")
    return report


def convert_file(
    source_path: Union[str, Path],
    directory: Union[str, Path],
    prefix: str,
    spaces: Optional[Iterable[ColorSpace]] = None
) -> ConversionReport:
    """Decode the source raster (scoped) and run convert_all().

    Raises
    ------
    FileNotFoundError
        If the source raster is missing (fatal)
    """
    with resources.open_source_image(source_path) as image:
        return convert_all(image, directory, prefix, spaces)
