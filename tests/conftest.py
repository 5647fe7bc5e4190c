"""Shared fixtures for the showcase test suite.

Fixtures:
    - font_paths: two TrueType files with distinct families (matplotlib's
      bundled DejaVu Sans Mono / DejaVu Serif stand in for FreeMono / FreeSerif)
    - font_families: family names those files register under
    - source_jp2: small lossless JPEG2000 gradient raster in tmp_path
    - showcase_cfg: ShowcaseV1 wired to the fixtures, writing to tmp_path/out
    - isolated_logging: restores the root logger after setup_logging()
"""

from pathlib import Path

import matplotlib
import numpy as np
import pytest
from PIL import Image

from rasterkit.imaging import resources
from rasterkit.utils import validators


@pytest.fixture(scope="session")
def font_paths():
    """Monospace and serif TrueType files."""
    ttf_dir = Path(matplotlib.get_data_path()) / "fonts" / "ttf"
    paths = [ttf_dir / "DejaVuSansMono.ttf", ttf_dir / "DejaVuSerif.ttf"]
    for p in paths:
        assert p.is_file(), f"matplotlib font missing: {p}"
    return paths


@pytest.fixture(scope="session")
def font_families(font_paths):
    """Family names as reported by the font files."""
    registry = resources.TypefaceRegistry()
    return [registry.register(p) for p in font_paths]


def make_gradient(width: int = 64, height: int = 48) -> Image.Image:
    """Deterministic RGB test pattern with all three channels varying."""
    y, x = np.mgrid[0:height, 0:width]
    rgb = np.stack([
        (x * 255) // (width - 1),
        (y * 255) // (height - 1),
        ((x + y) * 7) % 256,
    ], axis=-1).astype(np.uint8)
    return Image.fromarray(rgb)


@pytest.fixture
def gradient_image():
    return make_gradient()


@pytest.fixture
def source_jp2(tmp_path, gradient_image):
    """Lossless JPEG2000 copy of the gradient pattern."""
    path = tmp_path / "source.jp2"
    gradient_image.save(path, format="JPEG2000", irreversible=False)
    return path


@pytest.fixture
def showcase_cfg(tmp_path, source_jp2, font_paths, font_families):
    """Default showcase config pointing at test resources."""
    mono, serif = font_families
    return validators.ShowcaseV1(
        resources=validators.ResourcesV1(
            source_image=str(source_jp2),
            typefaces=[str(p) for p in font_paths],
        ),
        renderer=validators.RendererV1(
            labels=[
                validators.LabelV1(text="rasterkit", family=mono, size=15, position=(20, 20)),
                validators.LabelV1(text="rasterkit", family=serif, size=15, position=(20, 60)),
            ]
        ),
        outputs=validators.OutputsV1(directory=str(tmp_path / "out"), prefix="mytest"),
    )


@pytest.fixture
def isolated_logging(monkeypatch):
    """Undo setup_logging() side effects (root handlers, level, context, excepthook)."""
    import logging
    import sys

    from rasterkit.utils import logging_config

    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)

    yield

    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)
    logging_config.pop_context()
    logging.captureWarnings(False)
