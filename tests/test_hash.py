"""Test hashing functions for provenance.

Tests for rasterkit.utils.hashing:
    - sha256_file() produces consistent hashes
    - sha256_tensor() produces consistent hashes
    - file_manifest() keys by file name, rejects duplicates
    - compare_manifest() reports missing and changed files

Known hash test:
    - Empty file hashes to the well-known SHA-256 of b""

Run:
    pytest tests/test_hash.py -v
"""

import pytest
import torch

from rasterkit.utils import hashing

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_sha256_file_known(tmp_path):
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")
    assert hashing.sha256_file(path) == EMPTY_SHA256


def test_sha256_file_consistent(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"x" * 5000)
    h1 = hashing.sha256_file(path)
    h2 = hashing.sha256_file(path, chunk_size=7)
    assert h1 == h2
    assert len(h1) == 64


def test_sha256_file_different(tmp_path):
    a, b = tmp_path / "a.bin", tmp_path / "b.bin"
    a.write_bytes(b"a")
    b.write_bytes(b"b")
    assert hashing.sha256_file(a) != hashing.sha256_file(b)


def test_sha256_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        hashing.sha256_file(tmp_path / "missing.bin")


def test_sha256_tensor_consistent():
    t = torch.linspace(0, 1, 100).view(10, 10)
    assert hashing.sha256_tensor(t) == hashing.sha256_tensor(t.clone())


def test_sha256_tensor_different():
    t = torch.zeros(4, 4)
    u = t.clone()
    u[0, 0] = 1e-6
    assert hashing.sha256_tensor(t) != hashing.sha256_tensor(u)


def test_sha256_tensor_non_contiguous():
    t = torch.arange(12, dtype=torch.float32).view(3, 4)
    assert hashing.sha256_tensor(t.T) == hashing.sha256_tensor(t.T.contiguous())


# ============================================================================
# MANIFESTS
# ============================================================================

@pytest.fixture
def artifacts(tmp_path):
    paths = []
    for name, data in [("b.png", b"bbb"), ("a.gif", b"aaa"), ("c.wbmp", b"ccc")]:
        p = tmp_path / name
        p.write_bytes(data)
        paths.append(p)
    return paths


def test_file_manifest_sorted(artifacts):
    manifest = hashing.file_manifest(artifacts)
    assert list(manifest) == ["a.gif", "b.png", "c.wbmp"]
    assert manifest["b.png"] == hashing.sha256_file(artifacts[0])


def test_file_manifest_duplicate_names(tmp_path, artifacts):
    other = tmp_path / "sub"
    other.mkdir()
    dup = other / "b.png"
    dup.write_bytes(b"other")
    with pytest.raises(ValueError, match="Duplicate"):
        hashing.file_manifest(artifacts + [dup])


def test_compare_manifest_match(tmp_path, artifacts):
    manifest = hashing.file_manifest(artifacts)
    assert hashing.compare_manifest(manifest, tmp_path) == []


def test_compare_manifest_detects_changes(tmp_path, artifacts):
    manifest = hashing.file_manifest(artifacts)
    (tmp_path / "a.gif").write_bytes(b"changed")
    (tmp_path / "c.wbmp").unlink()

    assert sorted(hashing.compare_manifest(manifest, tmp_path)) == ["a.gif", "c.wbmp"]
