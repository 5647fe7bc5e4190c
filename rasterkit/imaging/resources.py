"""Scoped loading of the bundled read-only inputs.

Provides:
    - open_source_image(): decode the source raster (JPEG2000 via OpenJPEG)
    - TypefaceRegistry: family name → TrueType bytes, fonts built on demand
    - load_typefaces(): register every configured typeface or fail

Every file stream is opened in a ``with`` block and released on all exit
paths; nothing here keeps a handle open after returning. Missing or
unreadable resources raise and are fatal to the run (no fallback font).
"""

import io
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Union

from PIL import Image, ImageFont

logger = logging.getLogger(__name__)


@contextmanager
def open_source_image(path: Union[str, Path]) -> Iterator[Image.Image]:
    """Decode a raster file and yield it fully loaded.

    Parameters
    ----------
    path : Union[str, Path]
        Raster file (any format Pillow can decode, typically .jp2)

    Yields
    ------
    Image.Image
        Decoded image; the underlying file is already closed

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    PIL.UnidentifiedImageError
        If no decoder accepts the file
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Source image not found: {path}")

    with Image.open(path) as img:
        img.load()
        logger.info(f"Decoded {path.name}: {img.format} {img.mode} {img.size[0]}x{img.size[1]}")
        yield img


class TypefaceRegistry:
    """Fonts registered for the renderer, keyed by family name.

    Attributes
    ----------
    families : Dict[str, bytes]
        Family name (as reported by the font file) → raw TrueType bytes
    """

    def __init__(self):
        self.families: Dict[str, bytes] = {}

    def register(self, path: Union[str, Path]) -> str:
        """Read a TrueType file and register it under its family name.

        Parameters
        ----------
        path : Union[str, Path]
            .ttf / .otf file

        Returns
        -------
        str
            Registered family name (e.g., "FreeMono")

        Raises
        ------
        FileNotFoundError
            If path doesn't exist
        OSError
            If FreeType can't parse the file
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Typeface not found: {path}")

        with open(path, 'rb') as f:
            data = f.read()

        # Parse once up front so a corrupt file fails at registration
        family, style = ImageFont.truetype(io.BytesIO(data), size=12).getname()
        if family in self.families:
            logger.warning(f"Typeface family {family!r} re-registered from {path}")
        self.families[family] = data
        logger.info(f"Registered typeface {family!r} ({style}) from {path.name}")
        return family

    def font(self, family: str, size: int) -> ImageFont.FreeTypeFont:
        """Build a font of the given size from a registered family.

        Raises
        ------
        KeyError
            If the family was never registered
        """
        if family not in self.families:
            raise KeyError(
                f"Typeface family {family!r} is not registered "
                f"(known: {sorted(self.families)})"
            )
        return ImageFont.truetype(io.BytesIO(self.families[family]), size=size)

    def __contains__(self, family: str) -> bool:
        return family in self.families

    def __len__(self) -> int:
        return len(self.families)


def load_typefaces(paths: Iterable[Union[str, Path]]) -> TypefaceRegistry:
    """Register every typeface in order; any failure propagates.

    Parameters
    ----------
    paths : Iterable[Union[str, Path]]
        TrueType files

    Returns
    -------
    TypefaceRegistry
    """
    registry = TypefaceRegistry()
    registered: List[str] = [registry.register(p) for p in paths]
    logger.debug(f"Typefaces available: {registered}")
    return registry
