"""SHA-256 hashing for artifact and tensor provenance.

Provides:
    - sha256_file(): Hash file contents (outputs, source rasters, fonts)
    - sha256_tensor(): Hash tensor values (converted rasters before encoding)
    - file_manifest(): {artifact name: digest} for a set of outputs
    - compare_manifest(): Check a directory against an expected manifest

Showcase outputs are deterministic: the same source raster, typefaces and
library versions must produce byte-identical files. A manifest written by one
run is the reference for the next.

Deterministic hashing:
    - Tensors converted to bytes via .cpu().numpy().tobytes()
    - Files read in chunks (1 MB default) for memory efficiency
    - Results are hex strings (64 chars)

Usage:
    from rasterkit.utils import hashing
    digest = hashing.sha256_file("out/showcase.png")

Note: Module named `hashing.py` to avoid shadowing builtin `hash()`.
"""

import hashlib
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Union

import torch


def sha256_file(path: Union[str, Path], chunk_size: int = 1 << 20) -> str:
    """Compute SHA-256 hash of file contents.

    Parameters
    ----------
    path : Union[str, Path]
        File path
    chunk_size : int
        Read chunk size in bytes, default 1 MB

    Returns
    -------
    str
        SHA-256 hex digest (64 characters)

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    sha256 = hashlib.sha256()

    with open(path, 'rb') as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            sha256.update(chunk)

    return sha256.hexdigest()


def sha256_tensor(t: torch.Tensor) -> str:
    """Compute SHA-256 hash of tensor values.

    Parameters
    ----------
    t : torch.Tensor
        Tensor to hash (any shape, dtype)

    Returns
    -------
    str
        SHA-256 hex digest (64 characters)

    Notes
    -----
    Deterministic: same tensor values → same hash.
    Hash is invariant to device but NOT to dtype/shape.
    """
    t_bytes = t.detach().cpu().contiguous().numpy().tobytes()

    sha256 = hashlib.sha256()
    sha256.update(t_bytes)

    return sha256.hexdigest()


def file_manifest(paths: Iterable[Union[str, Path]]) -> Dict[str, str]:
    """Map each file's name to its SHA-256 digest.

    Parameters
    ----------
    paths : Iterable[Union[str, Path]]
        Files to hash; names must be unique

    Returns
    -------
    Dict[str, str]
        {file name: hex digest}, sorted by file name

    Examples
    --------
    >>> file_manifest(result.files)
    {'showcase.bmp': 'ec29...', 'showcase.gif': '2e8b...', ...}
    """
    manifest = {}
    for p in sorted(Path(p) for p in paths):
        if p.name in manifest:
            raise ValueError(f"Duplicate artifact name in manifest: {p.name}")
        manifest[p.name] = sha256_file(p)
    return manifest


def compare_manifest(
    expected: Mapping[str, str],
    root: Union[str, Path]
) -> List[str]:
    """Compare files under root against expected digests.

    Parameters
    ----------
    expected : Mapping[str, str]
        {file name: hex digest}, as produced by file_manifest()
    root : Union[str, Path]
        Directory containing the artifacts

    Returns
    -------
    List[str]
        Names of artifacts that are missing or whose digest differs
        (empty list means everything matches)
    """
    root = Path(root)
    mismatched = []
    for name, digest in expected.items():
        p = root / name
        if not p.is_file() or sha256_file(p) != digest:
            mismatched.append(name)
    return mismatched
