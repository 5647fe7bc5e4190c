"""Pillow image plugin for Wireless Bitmap (WBMP type 0) files.

Pillow ships no WBMP codec, so this module registers one on import:

    from rasterkit.imaging import wbmp  # noqa: F401 (registers "WBMP")
    Image.open("showcase.wbmp")         # mode "1"
    img.save("out.wbmp")                # mode "1" only

File layout (type 0, uncompressed monochrome):
    - TypeField:      multi-byte integer, 0
    - FixHeaderField: one byte, 0
    - Width, Height:  multi-byte integers (7 bits per byte, MSB first,
                      high bit set on every byte except the last)
    - Data:           rows of packed bits, MSB first, each row padded to a
                      byte boundary; 1 = white, 0 = black

The bit layout is exactly Pillow's raw "1" packing, so the pixel data is
handled by the built-in raw codec.
"""

import io
from typing import IO, Tuple

from PIL import Image, ImageFile

FORMAT = "WBMP"

# Largest width or height accepted when sniffing a file
MAX_DIMENSION = 1 << 16


def encode_multibyte(value: int) -> bytes:
    """Encode a non-negative integer as a WBMP multi-byte integer."""
    if value < 0:
        raise ValueError(f"WBMP integers must be non-negative, got {value}")
    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append(0x80 | (value & 0x7F))
        value >>= 7
    return bytes(reversed(groups))


def read_multibyte(fp: IO[bytes], max_bytes: int = 5) -> int:
    """Read a WBMP multi-byte integer from a stream."""
    value = 0
    for _ in range(max_bytes):
        b = fp.read(1)
        if not b:
            raise SyntaxError("truncated WBMP header")
        value = (value << 7) | (b[0] & 0x7F)
        if not b[0] & 0x80:
            return value
    raise SyntaxError("WBMP multi-byte integer too long")


def _read_header(fp: IO[bytes]) -> Tuple[int, int]:
    if read_multibyte(fp) != 0:
        raise SyntaxError("not a type 0 WBMP file")
    fixed = fp.read(1)
    if fixed != b"\x00":
        raise SyntaxError("unsupported WBMP fixed header")
    width = read_multibyte(fp)
    height = read_multibyte(fp)
    if width <= 0 or height <= 0:
        raise SyntaxError(f"invalid WBMP size {width}x{height}")
    return width, height


def _accept(prefix: bytes) -> bool:
    # No magic number; require type 0 and a header that parses to a plausible size
    if prefix[:2] != b"\x00\x00":
        return False
    try:
        width, height = _read_header(io.BytesIO(prefix))
    except SyntaxError:
        return False
    return width <= MAX_DIMENSION and height <= MAX_DIMENSION


class WbmpImageFile(ImageFile.ImageFile):

    format = FORMAT
    format_description = "Wireless Bitmap"

    def _open(self):
        width, height = _read_header(self.fp)
        self._mode = "1"
        self._size = (width, height)
        self.tile = [("raw", (0, 0) + self.size, self.fp.tell(), ("1", 0, 1))]


def _save(im: Image.Image, fp: IO[bytes], filename) -> None:
    if im.mode != "1":
        raise OSError(f"cannot write mode {im.mode} as WBMP")

    fp.write(encode_multibyte(0))
    fp.write(b"\x00")
    fp.write(encode_multibyte(im.size[0]))
    fp.write(encode_multibyte(im.size[1]))

    ImageFile._save(im, fp, [("raw", (0, 0) + im.size, 0, ("1", 0, 1))])


# Core plugins (BMP, GIF, JPEG, PPM, PNG) must be sniffed before this one
Image.preinit()

Image.register_open(FORMAT, WbmpImageFile, _accept)
Image.register_save(FORMAT, _save)
Image.register_extension(FORMAT, ".wbmp")
Image.register_mime(FORMAT, "image/vnd.wap.wbmp")
