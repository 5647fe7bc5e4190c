"""Atomic filesystem operations for safe file writes and YAML handling.

Provides:
    - Atomic writes: tmp file → fsync → rename (prevents partial reads)
    - Atomic image saves through Pillow (any registered format)
    - YAML load/save
    - Directory creation with exist_ok semantics

Every artifact of a showcase run goes through this module, so a crashed or
failed write never leaves a truncated file under the final name.

All paths use pathlib.Path for cross-platform compatibility.

Usage:
    from rasterkit.utils import fs
    fs.atomic_save_image(tensor_chw, out_dir / "showcase_toL.png")
    fs.atomic_save_image(pil_img, out_dir / "showcase.wbmp", format="WBMP")
    fs.atomic_yaml_dump(manifest, out_dir / "manifest.yaml")
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import torch
import yaml
from PIL import Image


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory if it doesn't exist, return Path object.

    Parameters
    ----------
    p : Union[str, Path]
        Directory path

    Returns
    -------
    Path
        Path object (guaranteed to exist)
    """
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(
    path: Union[str, Path],
    data: bytes,
    tmp_suffix: str = ".tmp"
) -> None:
    """Write bytes to file atomically (tmp → fsync → rename).

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    data : bytes
        Data to write
    tmp_suffix : str
        Temporary file suffix, default ".tmp"

    Raises
    ------
    RuntimeError
        If the write or the rename fails (tmp file is removed)
    """
    path = Path(path)
    ensure_dir(path.parent)

    # Same directory keeps the rename on one filesystem
    tmp_path = path.with_suffix(path.suffix + tmp_suffix)

    try:
        with open(tmp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def atomic_write_text(
    path: Union[str, Path],
    text: str,
    encoding: str = "utf-8"
) -> None:
    """Write text to file atomically.

    Convenience wrapper around atomic_write_bytes.
    """
    atomic_write_bytes(path, text.encode(encoding))


def to_pil(img: Union[np.ndarray, torch.Tensor, Image.Image]) -> Image.Image:
    """Convert an array, tensor or PIL image to a PIL image.

    Parameters
    ----------
    img : Union[np.ndarray, torch.Tensor, Image.Image]
        - numpy: (H, W, C) or (H, W) uint8
        - torch: (C, H, W) or (H, W) float [0,1] (rounded to uint8)
        - PIL: returned unchanged

    Returns
    -------
    Image.Image
    """
    if isinstance(img, Image.Image):
        return img

    if isinstance(img, torch.Tensor):
        img = img.detach().cpu()
        if img.ndim == 3 and img.shape[0] in [1, 3, 4]:
            # (C, H, W) → (H, W, C)
            img = img.permute(1, 2, 0)
        if img.is_floating_point():
            # Round, not truncate: identity transforms must survive 8-bit
            img = torch.round(img.clamp(0, 1) * 255).to(torch.uint8)
        img = img.numpy()

    if img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)

    if img.ndim == 3 and img.shape[2] == 1:
        img = img.squeeze(2)

    return Image.fromarray(np.ascontiguousarray(img))


def atomic_save_image(
    img: Union[np.ndarray, torch.Tensor, Image.Image],
    path: Union[str, Path],
    format: Optional[str] = None,
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save image atomically (prevents partial reads).

    Parameters
    ----------
    img : Union[np.ndarray, torch.Tensor, Image.Image]
        Image data, see to_pil()
    path : Union[str, Path]
        Target file path (extension determines format unless given)
    format : str, optional
        Explicit Pillow format name (e.g., "WBMP")
    pil_kwargs : Optional[Dict[str, Any]]
        Additional kwargs for PIL.Image.save (e.g., quality=95)

    Raises
    ------
    RuntimeError
        If encoding or the rename fails (tmp file is removed)
    """
    path = Path(path)
    pil_kwargs = pil_kwargs or {}
    pil_img = to_pil(img)
    ensure_dir(path.parent)

    # Tmp file keeps the extension so format detection still works
    tmp_path = path.with_name(path.stem + ".tmp" + path.suffix)
    try:
        pil_img.save(tmp_path, format=format, **pil_kwargs)
        tmp_path.replace(path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to save image {path} atomically: {e}") from e


def atomic_yaml_dump(obj: Any, path: Union[str, Path]) -> None:
    """Save object as YAML atomically.

    Uses PyYAML safe_dump; key order is preserved.
    """
    yaml_str = yaml.safe_dump(
        obj,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True
    )
    atomic_write_bytes(Path(path), yaml_str.encode('utf-8'))


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file safely.

    Parameters
    ----------
    path : Union[str, Path]
        YAML file path

    Returns
    -------
    Dict[str, Any]
        Parsed YAML content

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e
