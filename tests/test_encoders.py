"""Test multi-format encoding of the synthetic image.

Tests for rasterkit.imaging.encoders:
    - flatten_alpha() → exactly 3 channels, composited over the backdrop
    - binarize() → mode "1", threshold on luma, no dithering
    - to_gif_palette() → transparent pixels on the reserved index
    - to_svg() → <svg> document embedding the raster as a PNG data URI
    - encode_all() → seven files, alpha kept where the format supports it,
      canonical image never modified

Test image: 40x30 RGBA, left half opaque red, right half blue at alpha 100,
bottom-right 10x10 block fully transparent.

Run:
    pytest tests/test_encoders.py -v
"""

import base64
import io
import re

import numpy as np
import pytest
from PIL import Image

from rasterkit.imaging import encoders


@pytest.fixture
def rgba_image():
    px = np.zeros((30, 40, 4), dtype=np.uint8)
    px[:, :20] = (255, 0, 0, 255)
    px[:, 20:] = (0, 0, 255, 100)
    px[20:, 30:] = (0, 0, 0, 0)
    return Image.fromarray(px)


@pytest.fixture
def encoded(rgba_image, tmp_path):
    return encoders.encode_all(rgba_image, tmp_path / "out", "mytest")


# ============================================================================
# NARROWING HELPERS
# ============================================================================

def test_flatten_alpha_channels(rgba_image):
    flat = encoders.flatten_alpha(rgba_image)
    assert flat.mode == "RGB"
    assert len(flat.getbands()) == 3
    assert flat.size == rgba_image.size


def test_flatten_alpha_over_black(rgba_image):
    px = np.asarray(encoders.flatten_alpha(rgba_image)).astype(int)
    assert tuple(px[0, 0]) == (255, 0, 0)
    # 100/255 blue over black
    assert abs(px[0, 25][2] - 100) <= 1
    assert tuple(px[25, 35]) == (0, 0, 0)


def test_flatten_alpha_custom_background(rgba_image):
    px = np.asarray(encoders.flatten_alpha(rgba_image, (255, 255, 255)))
    assert tuple(px[25, 35]) == (255, 255, 255)


def test_flatten_alpha_leaves_source(rgba_image):
    before = rgba_image.tobytes()
    encoders.flatten_alpha(rgba_image)
    assert rgba_image.mode == "RGBA"
    assert rgba_image.tobytes() == before


def test_binarize_threshold():
    gray = Image.fromarray(np.array([[0, 127, 128, 255]], dtype=np.uint8)).convert("RGBA")
    mono = encoders.binarize(gray, threshold=128)
    assert mono.mode == "1"
    assert np.asarray(mono).tolist() == [[False, False, True, True]]


def test_binarize_no_dither():
    """A flat mid-gray field stays flat (dithering would mix in white)."""
    gray = Image.new("RGBA", (16, 16), (100, 100, 100, 255))
    assert not np.asarray(encoders.binarize(gray)).any()


def test_gif_palette_transparency(rgba_image):
    pal = encoders.to_gif_palette(rgba_image)
    idx = np.asarray(pal)

    assert pal.mode == "P"
    assert pal.info["transparency"] == encoders.GIF_TRANSPARENT_INDEX
    assert len(pal.getpalette()) == 768
    # Only fully opaque pixels keep a color entry at the default threshold
    assert np.all(idx[:, :20] != encoders.GIF_TRANSPARENT_INDEX)
    assert np.all(idx[:, 20:] == encoders.GIF_TRANSPARENT_INDEX)


def test_gif_palette_threshold(rgba_image):
    """Lower threshold keeps the translucent half visible."""
    idx = np.asarray(encoders.to_gif_palette(rgba_image, alpha_threshold=50))
    assert np.all(idx[:20, 20:] != encoders.GIF_TRANSPARENT_INDEX)
    assert np.all(idx[20:, 30:] == encoders.GIF_TRANSPARENT_INDEX)


def test_gif_palette_opaque_has_no_transparency():
    pal = encoders.to_gif_palette(Image.new("RGBA", (8, 8), (1, 2, 3, 255)))
    assert "transparency" not in pal.info


def test_to_svg_embeds_png(rgba_image):
    doc = encoders.to_svg(rgba_image)

    assert doc.startswith("<svg")
    assert 'width="40"' in doc and 'height="30"' in doc
    match = re.search(r'href="data:image/png;base64,([^"]+)"', doc)
    assert match is not None

    with Image.open(io.BytesIO(base64.b64decode(match.group(1)))) as img:
        assert img.size == (40, 30)
        assert img.mode == "RGBA"
        assert img.tobytes() == rgba_image.tobytes()


# ============================================================================
# ENCODE ALL
# ============================================================================

def test_encode_all_writes_every_format(encoded, tmp_path):
    assert sorted(encoded) == sorted(encoders.ALL_FORMATS)
    assert len(encoded) == 7
    names = sorted(p.name for p in (tmp_path / "out").iterdir())
    assert names == sorted(f"mytest.{fmt}" for fmt in encoders.ALL_FORMATS)


@pytest.mark.parametrize("fmt", ["png", "tiff"])
def test_alpha_formats_lossless(encoded, rgba_image, fmt):
    with Image.open(encoded[fmt]) as img:
        assert img.mode == "RGBA"
        assert img.tobytes() == rgba_image.tobytes()


def test_gif_keeps_transparency(encoded):
    with Image.open(encoded["gif"]) as img:
        alpha = np.asarray(img.convert("RGBA"))[..., 3]
    assert np.all(alpha[:, :20] == 255)
    assert np.all(alpha[:, 20:] == 0)


@pytest.mark.parametrize("fmt", ["jpg", "bmp"])
def test_flat_formats_have_three_channels(encoded, fmt):
    with Image.open(encoded[fmt]) as img:
        assert img.mode == "RGB"
        assert img.size == (40, 30)


def test_bmp_matches_flattened(encoded, rgba_image):
    with Image.open(encoded["bmp"]) as img:
        assert img.tobytes() == encoders.flatten_alpha(rgba_image).tobytes()


def test_wbmp_is_one_bit(encoded):
    with Image.open(encoded["wbmp"]) as img:
        assert img.format == "WBMP"
        assert img.mode == "1"
        bits = np.asarray(img)
    # Red luma (~76) and dim blue fall below the cut
    assert not bits.any()


def test_svg_document(encoded):
    text = encoded["svg"].read_text(encoding="utf-8")
    assert "<image" in text
    assert "data:image/png;base64," in text


def test_encode_all_leaves_canonical_image(rgba_image, tmp_path):
    before = rgba_image.tobytes()
    encoders.encode_all(rgba_image, tmp_path, "x")
    assert rgba_image.mode == "RGBA"
    assert rgba_image.tobytes() == before


def test_encode_all_deterministic(rgba_image, tmp_path):
    a = encoders.encode_all(rgba_image, tmp_path / "a", "x")
    b = encoders.encode_all(rgba_image, tmp_path / "b", "x")
    for fmt in encoders.ALL_FORMATS:
        assert a[fmt].read_bytes() == b[fmt].read_bytes(), fmt


def test_encode_all_rejects_non_rgba(tmp_path):
    with pytest.raises(ValueError, match="RGBA"):
        encoders.encode_all(Image.new("RGB", (4, 4)), tmp_path, "x")


def test_encode_all_failure_is_fatal(rgba_image, tmp_path):
    (tmp_path / "x.gif").mkdir()
    with pytest.raises(RuntimeError, match="x.gif"):
        encoders.encode_all(rgba_image, tmp_path, "x")
