"""Showcase pipeline: color conversions, then synthetic render + encode.

Runs the two stages sequentially with no shared state:
    1. Decode the source raster and write one PNG per color space
       (write failures are logged and skipped)
    2. Register typefaces, render the synthetic image, encode it into
       every output format (any failure is fatal)

Refactored architecture:
    - run_showcase(cfg) → ShowcaseResult
        * Callable function (used by the CLI and the test suite)
    - write_manifest() / verify_manifest(): sha256 provenance of outputs

Output structure (default prefix):
    <output_dir>/
        showcase_toG.png  showcase_toC.png  showcase_toL.png
        showcase_toP.png  showcase_toS.png
        showcase.tiff  showcase.gif  showcase.png  showcase.svg
        showcase.jpg   showcase.bmp  showcase.wbmp
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union

from rasterkit.imaging import conversions, encoders, renderer, resources
from rasterkit.imaging.conversions import ConversionReport
from rasterkit.utils import fs, hashing, profiler
from rasterkit.utils.logging_config import pop_context, push_context
from rasterkit.utils.validators import ShowcaseV1

logger = logging.getLogger(__name__)


@dataclass
class ShowcaseResult:
    """Artifacts of one showcase run."""
    conversions: ConversionReport
    artifacts: Dict[str, Path] = field(default_factory=dict)

    @property
    def files(self) -> List[Path]:
        """Every file written, conversions first."""
        return list(self.conversions.written.values()) + list(self.artifacts.values())


def run_conversions(cfg: ShowcaseV1) -> ConversionReport:
    spaces = [conversions.ColorSpace(name) for name in cfg.outputs.color_spaces]
    return conversions.convert_file(
        cfg.resources.source_image,
        cfg.outputs.directory,
        cfg.outputs.prefix,
        spaces,
    )


def run_rendering(cfg: ShowcaseV1) -> Dict[str, Path]:
    registry = resources.load_typefaces(cfg.resources.typefaces)
    image = renderer.render_synthetic(cfg.renderer, registry)
    out = cfg.outputs
    return encoders.encode_all(
        image,
        out.directory,
        out.prefix,
        gif_alpha_threshold=out.gif_alpha_threshold,
        flatten_background=out.flatten_background,
        mono_threshold=out.mono_threshold,
        jpeg_quality=out.jpeg_quality,
    )


def run_showcase(cfg: ShowcaseV1) -> ShowcaseResult:
    """Run both stages.

    Parameters
    ----------
    cfg : ShowcaseV1
        Validated configuration

    Returns
    -------
    ShowcaseResult
        Conversion report and encoded artifacts

    Raises
    ------
    FileNotFoundError
        If the source raster or a typeface is missing
    RuntimeError
        If any synthetic-image artifact fails to encode
    """
    fs.ensure_dir(cfg.outputs.directory)
    logger.info(f"Writing showcase artifacts to {Path(cfg.outputs.directory).resolve()}")

    try:
        push_context(stage="convert")
        with profiler.timer("color conversions"):
            report = run_conversions(cfg)

        push_context(stage="render")
        with profiler.timer("render + encode"):
            artifacts = run_rendering(cfg)
    finally:
        pop_context(keys=["stage"])

    result = ShowcaseResult(conversions=report, artifacts=artifacts)
    logger.info(
        f"Showcase complete: {len(result.files)} files "
        f"({len(report.failed)} conversions skipped)"
    )
    return result


def write_manifest(result: ShowcaseResult, path: Union[str, Path]) -> Dict[str, str]:
    """Write {artifact name: sha256} YAML for every file of a run."""
    manifest = hashing.file_manifest(result.files)
    fs.atomic_yaml_dump({'schema': 'manifest.v1', 'sha256': manifest}, path)
    logger.info(f"Manifest with {len(manifest)} entries written to {path}")
    return manifest


def verify_manifest(path: Union[str, Path], directory: Union[str, Path]) -> List[str]:
    """Compare a directory against a manifest written by write_manifest().

    Returns
    -------
    List[str]
        Missing or mismatching artifact names (empty when all match)

    Raises
    ------
    ValueError
        If the manifest file has the wrong schema
    """
    data = fs.load_yaml(path) or {}
    if data.get('schema') != 'manifest.v1' or not isinstance(data.get('sha256'), dict):
        raise ValueError(f"Not a manifest.v1 file: {path}")

    mismatched = hashing.compare_manifest(data['sha256'], directory)
    for name in mismatched:
        logger.error(f"Artifact {name} is missing or differs from {path}")
    return mismatched
