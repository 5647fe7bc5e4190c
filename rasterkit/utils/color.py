"""Color space conversions on torch tensors.

Provides:
    - sRGB ↔ linear RGB conversions (exact sRGB transfer function)
    - Linear RGB → CIE XYZ (D65 illuminant), normalized to reference white
    - Gamma-encoded RGB → Kodak PhotoYCC (8-bit encoding scaled to [0,1])
    - Luminance calculation from linear RGB

Used by:
    - Color-space conversion routine (imaging.conversions)

All conversions operate on torch tensors (3, H, W) or (B, 3, H, W).
Input/output ranges are documented per function.

Invariants:
    - Decoded rasters enter as sRGB [0,1]
    - Every output of this module is in [0,1] and ready for 8-bit quantization
      unless documented otherwise (rgb_to_xyz returns raw XYZ)
"""

import torch

# Reference white points (2° observer)
WHITE_POINTS = {
    "D65": (0.95047, 1.0, 1.08883),
    "D50": (0.96422, 1.0, 0.82521),
}

# PhotoYCC 8-bit encoding: (scale, offset) per channel
_PYCC_ENCODING = (
    (255.0 / 1.402, 0.0),
    (111.40, 156.0),
    (135.64, 137.0),
)


def _channels(img: torch.Tensor):
    """Split (3, H, W) or (B, 3, H, W) into r, g, b planes."""
    if img.ndim == 3:
        return img[0], img[1], img[2]
    elif img.ndim == 4:
        return img[:, 0], img[:, 1], img[:, 2]
    raise ValueError(f"Expected shape (3, H, W) or (B, 3, H, W), got {img.shape}")


def _stack(planes, like: torch.Tensor) -> torch.Tensor:
    return torch.stack(planes, dim=0 if like.ndim == 3 else 1)


def srgb_to_linear(img: torch.Tensor) -> torch.Tensor:
    """Convert sRGB [0,1] to linear RGB [0,1].

    Parameters
    ----------
    img : torch.Tensor
        sRGB image, shape (3, H, W) or (B, 3, H, W), range [0, 1]

    Returns
    -------
    torch.Tensor
        Linear RGB image, same shape, range [0, 1]

    Notes
    -----
    Uses exact sRGB transfer function (not gamma 2.2 approximation):
        - Linear region for small values: x / 12.92
        - Power region: ((x + 0.055) / 1.055)^2.4
    """
    img = torch.clamp(img, 0.0, 1.0)
    linear_mask = img <= 0.04045
    linear = img / 12.92
    power = torch.pow((img + 0.055) / 1.055, 2.4)
    return torch.where(linear_mask, linear, power)


def linear_to_srgb(img: torch.Tensor) -> torch.Tensor:
    """Convert linear RGB [0,1] to sRGB [0,1].

    Parameters
    ----------
    img : torch.Tensor
        Linear RGB image, shape (3, H, W) or (B, 3, H, W), range [0, 1]

    Returns
    -------
    torch.Tensor
        sRGB image, same shape, range [0, 1]

    Notes
    -----
    Inverse of srgb_to_linear, uses exact sRGB transfer function.
    """
    img = torch.clamp(img, 0.0, 1.0)
    linear_mask = img <= 0.0031308
    linear = img * 12.92
    power = 1.055 * torch.pow(img, 1.0 / 2.4) - 0.055
    return torch.where(linear_mask, linear, power)


def luminance_linear(img: torch.Tensor) -> torch.Tensor:
    """Calculate luminance from linear RGB.

    Parameters
    ----------
    img : torch.Tensor
        Linear RGB image, shape (3, H, W) or (B, 3, H, W), range [0, 1]

    Returns
    -------
    torch.Tensor
        Luminance image, shape (H, W) or (B, H, W), range [0, 1]

    Notes
    -----
    Uses Rec. 709 coefficients: Y = 0.2126*R + 0.7152*G + 0.0722*B
    """
    r, g, b = _channels(img)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def rgb_to_xyz(rgb: torch.Tensor) -> torch.Tensor:
    """Convert linear RGB to CIE XYZ (D65 illuminant).

    Parameters
    ----------
    rgb : torch.Tensor
        Linear RGB, shape (3, H, W) or (B, 3, H, W), range [0, 1]

    Returns
    -------
    torch.Tensor
        XYZ coordinates, same shape, D65 white point

    Notes
    -----
    Uses sRGB → XYZ matrix (D65):
    [[0.4124564, 0.3575761, 0.1804375],
     [0.2126729, 0.7151522, 0.0721750],
     [0.0193339, 0.1191920, 0.9503041]]
    """
    mat = torch.tensor([
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041]
    ], dtype=rgb.dtype, device=rgb.device)

    if rgb.ndim == 3:
        # (3, H, W) → (H, W, 3) for matmul
        xyz_hw3 = torch.matmul(rgb.permute(1, 2, 0), mat.T)
        return xyz_hw3.permute(2, 0, 1)
    elif rgb.ndim == 4:
        xyz_bhw3 = torch.matmul(rgb.permute(0, 2, 3, 1), mat.T)
        return xyz_bhw3.permute(0, 3, 1, 2)
    raise ValueError(f"Expected shape (3, H, W) or (B, 3, H, W), got {rgb.shape}")


def normalize_xyz(xyz: torch.Tensor, white_point: str = "D65") -> torch.Tensor:
    """Scale XYZ by the reference white so that white maps to (1, 1, 1).

    Parameters
    ----------
    xyz : torch.Tensor
        XYZ coordinates, shape (3, H, W) or (B, 3, H, W)
    white_point : str
        Reference white point, "D65" (default) or "D50"

    Returns
    -------
    torch.Tensor
        Normalized XYZ, same shape, clamped to [0, 1]
    """
    if white_point not in WHITE_POINTS:
        raise ValueError(f"Unknown white_point: {white_point}. Use 'D65' or 'D50'.")
    ref = torch.tensor(WHITE_POINTS[white_point], dtype=xyz.dtype, device=xyz.device)

    if xyz.ndim == 3:
        ref = ref.view(3, 1, 1)
    elif xyz.ndim == 4:
        ref = ref.view(1, 3, 1, 1)
    else:
        raise ValueError(f"Expected shape (3, H, W) or (B, 3, H, W), got {xyz.shape}")

    return torch.clamp(xyz / ref, 0.0, 1.0)


def rgb_to_photoycc(img: torch.Tensor) -> torch.Tensor:
    """Convert gamma-encoded RGB [0,1] to Kodak PhotoYCC [0,1].

    Parameters
    ----------
    img : torch.Tensor
        Gamma-encoded (sRGB) image, shape (3, H, W) or (B, 3, H, W)

    Returns
    -------
    torch.Tensor
        Encoded (Y, C1, C2), same shape, range [0, 1]

    Notes
    -----
    Luma uses Rec. 601 weights; C1 = B' - Y, C2 = R' - Y.
    8-bit encoding (Kodak Photo CD):
        Y8  = 255/1.402 * Y
        C18 = 111.40 * C1 + 156
        C28 = 135.64 * C2 + 137
    Result is divided by 255 so callers quantize the same way as RGB.
    """
    r, g, b = _channels(torch.clamp(img, 0.0, 1.0))
    y = 0.299 * r + 0.587 * g + 0.114 * b
    planes = []
    for plane, (scale, offset) in zip((y, b - y, r - y), _PYCC_ENCODING):
        planes.append(torch.clamp((plane * scale + offset) / 255.0, 0.0, 1.0))
    return _stack(planes, img)
