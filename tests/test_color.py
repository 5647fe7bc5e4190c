"""Test color space conversions.

Tests for rasterkit.utils.color:
    - sRGB ↔ linear RGB roundtrip and piecewise regions
    - Luminance calculation (3D and batched)
    - RGB → XYZ white point, normalization to reference white
    - PhotoYCC encoding of white, black and pure red

Run:
    pytest tests/test_color.py -v
"""

import pytest
import torch

from rasterkit.utils import color


def test_srgb_linear_roundtrip():
    """Test sRGB ↔ linear color space conversion."""
    torch.manual_seed(123)
    srgb = torch.rand(3, 10, 10)
    srgb_back = color.linear_to_srgb(color.srgb_to_linear(srgb))
    assert torch.allclose(srgb, srgb_back, atol=1e-5)


def test_srgb_to_linear_linear_region():
    """Small values use x / 12.92."""
    small_vals = torch.tensor([[[0.01, 0.02], [0.03, 0.04]]] * 3)
    linear = color.srgb_to_linear(small_vals)
    assert torch.allclose(linear, small_vals / 12.92, atol=1e-6)


def test_srgb_to_linear_midpoint():
    """sRGB 0.5 decodes to ~0.214 linear."""
    mid = torch.full((3, 2, 2), 0.5)
    linear = color.srgb_to_linear(mid)
    assert torch.allclose(linear, torch.full_like(mid, 0.21404), atol=1e-4)


def test_srgb_to_linear_clamps():
    """Out-of-range input is clamped before decoding."""
    vals = torch.tensor([[[-0.5, 1.5]]] * 3)
    linear = color.srgb_to_linear(vals)
    assert linear.min() >= 0.0 and linear.max() <= 1.0


def test_luminance_linear_white():
    """White has luminance 1, output drops the channel axis."""
    lum = color.luminance_linear(torch.ones(3, 10, 10))
    assert lum.shape == (10, 10)
    assert torch.allclose(lum, torch.ones(10, 10), atol=1e-4)


def test_luminance_linear_batched():
    lum = color.luminance_linear(torch.rand(2, 3, 8, 8))
    assert lum.shape == (2, 8, 8)


def test_luminance_linear_invalid_shape():
    with pytest.raises(ValueError, match="Expected shape"):
        color.luminance_linear(torch.rand(10, 10))


def test_rgb_to_xyz_white_point():
    """Linear white maps to the D65 white point."""
    xyz = color.rgb_to_xyz(torch.ones(3, 4, 4))
    expected = torch.tensor(color.WHITE_POINTS["D65"]).view(3, 1, 1).expand(3, 4, 4)
    assert torch.allclose(xyz, expected, atol=1e-3)


def test_normalize_xyz_white_is_unity():
    xyz = color.normalize_xyz(color.rgb_to_xyz(torch.ones(3, 4, 4)))
    assert torch.allclose(xyz, torch.ones(3, 4, 4), atol=1e-3)


def test_normalize_xyz_batched_in_range():
    xyz = color.normalize_xyz(color.rgb_to_xyz(torch.rand(2, 3, 5, 5)))
    assert xyz.shape == (2, 3, 5, 5)
    assert xyz.min() >= 0.0 and xyz.max() <= 1.0


def test_normalize_xyz_invalid_white_point():
    with pytest.raises(ValueError, match="Unknown white_point"):
        color.normalize_xyz(torch.ones(3, 2, 2), white_point="D75")


def test_photoycc_white_and_black():
    """White and black land on the Photo CD code values."""
    white = color.rgb_to_photoycc(torch.ones(3, 1, 1)).flatten() * 255.0
    black = color.rgb_to_photoycc(torch.zeros(3, 1, 1)).flatten() * 255.0

    assert torch.allclose(white, torch.tensor([255.0 / 1.402, 156.0, 137.0]), atol=1e-3)
    assert torch.allclose(black, torch.tensor([0.0, 156.0, 137.0]), atol=1e-3)


def test_photoycc_red_shifts_chroma():
    """Pure red lowers C1 (blue difference) and raises C2 (red difference)."""
    red = torch.zeros(3, 1, 1)
    red[0] = 1.0
    ycc = color.rgb_to_photoycc(red).flatten() * 255.0
    assert ycc[1] < 156.0
    assert ycc[2] > 137.0
    assert torch.all(ycc >= 0.0) and torch.all(ycc <= 255.0)


def test_photoycc_batched_shape():
    assert color.rgb_to_photoycc(torch.rand(2, 3, 6, 6)).shape == (2, 3, 6, 6)
