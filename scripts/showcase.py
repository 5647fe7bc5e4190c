"""Showcase script: color-space PNGs + synthetic image in every format.

Runs the full pipeline from a YAML config:
    1. Load and validate configs/showcase.v1.yaml (CLI flags override it)
    2. Decode the source raster, write five color-space PNGs
       (a failed write is logged and skipped)
    3. Register typefaces, render the synthetic image
    4. Encode tiff, gif, png, svg, jpg, bmp, wbmp
    5. Optionally write or verify a sha256 manifest of all outputs

CLI:
    python scripts/showcase.py
    python scripts/showcase.py --config configs/showcase.v1.yaml --output-dir out/
    python scripts/showcase.py --source hopper.jp2 --font FreeMono.ttf --font FreeSerif.ttf
    python scripts/showcase.py --manifest out/manifest.yaml
    python scripts/showcase.py --verify out/manifest.yaml

Exit codes:
    0: All outputs written (skipped conversions are logged, not fatal)
    1: --verify found missing or differing artifacts
    non-zero: Fatal error (missing resource, encoder failure), logged with
              traceback by the installed excepthook
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rasterkit.pipeline import run_showcase, verify_manifest, write_manifest
from rasterkit.utils import logging_config, validators

logger = logging_config.get_logger(__name__)

DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / "configs" / "showcase.v1.yaml"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Render color-space conversions and a synthetic image in every supported format"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=str(DEFAULT_CONFIG),
        help="Path to showcase.v1.yaml",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        help="Output directory (overrides outputs.directory)",
    )
    parser.add_argument(
        "--prefix",
        type=str,
        help="Output file name prefix (overrides outputs.prefix)",
    )
    parser.add_argument(
        "--source",
        type=str,
        help="Source raster (overrides resources.source_image)",
    )
    parser.add_argument(
        "--font",
        type=str,
        action="append",
        help="Typeface file, repeatable (overrides resources.typefaces)",
    )
    parser.add_argument(
        "--manifest",
        type=str,
        help="Write a sha256 manifest of all outputs to this path",
    )
    parser.add_argument(
        "--verify",
        type=str,
        help="Compare outputs against a manifest after the run",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (overrides logging.level)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Log file path (overrides logging.file)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="JSON lines in the log file",
    )
    return parser


def apply_overrides(cfg: validators.ShowcaseV1, args: argparse.Namespace) -> validators.ShowcaseV1:
    """Return a copy of cfg with CLI flags applied."""
    resources = cfg.resources
    if args.source:
        resources = resources.model_copy(update={'source_image': args.source})
    if args.font:
        resources = resources.model_copy(update={'typefaces': list(args.font)})

    outputs = cfg.outputs
    if args.output_dir:
        outputs = outputs.model_copy(update={'directory': args.output_dir})
    if args.prefix:
        outputs = outputs.model_copy(update={'prefix': args.prefix})

    log_cfg = cfg.logging
    if args.log_level:
        log_cfg = log_cfg.model_copy(update={'level': args.log_level})
    if args.log_file:
        log_cfg = log_cfg.model_copy(update={'file': args.log_file})
    if args.json_logs:
        log_cfg = log_cfg.model_copy(update={'json_format': True})

    # Revalidate so overrides get the same checks as the YAML
    data = cfg.model_copy(update={
        'resources': resources,
        'outputs': outputs,
        'logging': log_cfg,
    }).model_dump(by_alias=True)
    return validators.ShowcaseV1(**data)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    cfg = apply_overrides(validators.load_showcase_config(args.config), args)

    logging_config.configure_logging(cfg.logging, quiet_libs=["PIL"], context={"app": "showcase"})
    logging_config.install_excepthook()

    result = run_showcase(cfg)

    if args.manifest:
        write_manifest(result, args.manifest)

    status = 0
    if args.verify:
        mismatched = verify_manifest(args.verify, cfg.outputs.directory)
        if mismatched:
            logger.error(f"{len(mismatched)} artifacts do not match {args.verify}")
            status = 1
        else:
            logger.info(f"All artifacts match {args.verify}")

    logging_config.shutdown()
    return status


if __name__ == "__main__":
    sys.exit(main())
