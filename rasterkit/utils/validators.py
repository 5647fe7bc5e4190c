"""YAML schema validation and config loading.

Provides centralized validation for the showcase configuration using pydantic:
    - Resources: source raster and typeface files
    - Renderer: synthetic image geometry, colors, overlay and labels
    - Outputs: directory, file prefix, color spaces, format narrowing knobs
    - Logging: level, file, JSON mode, console, timestamps, file rotation

All entrypoints must use these validators to load configs for fail-fast error
detection with actionable messages (offending keys, expected ranges).

Units:
    - Geometry: pixels
    - Angles: degrees (clockwise on screen, y down)
    - Color: 8-bit RGB triples [0, 255]; opacity [0.0, 1.0]

Usage:
    from rasterkit.utils import validators

    cfg = validators.load_showcase_config("configs/showcase.v1.yaml")
    cfg.renderer.width  # 500 for five 100 px stripes
"""

from pathlib import Path
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

RGB = Tuple[int, int, int]

COLOR_SPACE_NAMES = ("gray", "ciexyz", "linear_rgb", "pycc", "srgb")
ColorSpaceName = Literal["gray", "ciexyz", "linear_rgb", "pycc", "srgb"]

DEFAULT_STRIPE_COLORS: List[RGB] = [
    (255, 255, 255),  # white
    (255, 0, 0),      # red
    (0, 255, 0),      # green
    (0, 0, 255),      # blue
    (0, 0, 0),        # black
]


def _check_rgb(v: RGB) -> RGB:
    for channel in v:
        if not 0 <= channel <= 255:
            raise ValueError(f"Color channel {channel} out of range [0, 255] in {v}")
    return v


# ============================================================================
# SHOWCASE SCHEMA V1
# ============================================================================

class LabelV1(BaseModel):
    """Text label drawn with a registered typeface."""
    text: str = Field(..., min_length=1, description="Label text")
    family: str = Field(..., min_length=1, description="Registered font family name")
    size: int = Field(15, ge=1, le=512, description="Font size (px)")
    position: Tuple[int, int] = Field(..., description="Baseline origin (x, y) in px")


class ResourcesV1(BaseModel):
    """Read-only inputs, loaded once per run."""
    source_image: str = Field("resources/source.jp2", description="Raster to color-convert")
    typefaces: List[str] = Field(
        default_factory=lambda: ["resources/FreeMono.ttf", "resources/FreeSerif.ttf"],
        min_length=1,
        description="TrueType files registered before rendering"
    )

    def resolve_against(self, base: Path) -> 'ResourcesV1':
        """Return a copy with relative paths anchored at base."""
        def _resolve(p: str) -> str:
            path = Path(p)
            return str(path if path.is_absolute() else (base / path))

        return self.model_copy(update={
            'source_image': _resolve(self.source_image),
            'typefaces': [_resolve(p) for p in self.typefaces],
        })


class RendererV1(BaseModel):
    """Synthetic image definition."""
    stripe_colors: List[RGB] = Field(
        default_factory=lambda: list(DEFAULT_STRIPE_COLORS),
        min_length=1,
        description="Stripe fill colors, drawn left to right"
    )
    stripe_width: int = Field(100, ge=1, le=10_000, description="Stripe width (px)")
    height: int = Field(500, ge=1, le=10_000, description="Canvas height (px)")
    background: RGB = Field((255, 175, 175), description="Canvas fill (pink)")
    rotation_step_deg: float = Field(5.0, ge=-360.0, le=360.0, description="Rotation added per stripe")
    overlay_color: RGB = Field((255, 0, 255), description="Ellipse color (magenta)")
    overlay_opacity: float = Field(0.5, ge=0.0, le=1.0, description="Ellipse source-over alpha")
    text_color: RGB = Field((0, 0, 0), description="Label color")
    labels: List[LabelV1] = Field(
        default_factory=lambda: [
            LabelV1(text="rasterkit", family="FreeMono", size=15, position=(20, 20)),
            LabelV1(text="rasterkit", family="FreeSerif", size=15, position=(20, 60)),
        ]
    )

    @field_validator('stripe_colors')
    @classmethod
    def validate_stripe_colors(cls, v: List[RGB]) -> List[RGB]:
        for c in v:
            _check_rgb(c)
        return v

    @field_validator('background', 'overlay_color', 'text_color')
    @classmethod
    def validate_rgb(cls, v: RGB) -> RGB:
        return _check_rgb(v)

    @property
    def width(self) -> int:
        return self.stripe_width * len(self.stripe_colors)


class OutputsV1(BaseModel):
    """Where and how artifacts are written."""
    directory: str = Field(".", description="Output directory")
    prefix: str = Field("showcase", min_length=1, description="File name prefix")
    color_spaces: List[ColorSpaceName] = Field(
        default_factory=lambda: list(COLOR_SPACE_NAMES),
        description="Conversions to run on the source raster"
    )
    gif_alpha_threshold: int = Field(
        255, ge=1, le=255,
        description="GIF pixels with alpha below this become transparent"
    )
    flatten_background: RGB = Field((0, 0, 0), description="Backdrop for alpha flattening")
    mono_threshold: int = Field(128, ge=0, le=255, description="Luma cut for 1-bit output")
    jpeg_quality: int = Field(75, ge=1, le=95, description="JPEG quality")

    @field_validator('prefix')
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if '/' in v or '\\' in v:
            raise ValueError(f"Prefix must be a bare file name stem, got: {v}")
        return v

    @field_validator('color_spaces')
    @classmethod
    def validate_unique_spaces(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate color spaces in {v}")
        return v

    @field_validator('flatten_background')
    @classmethod
    def validate_rgb(cls, v: RGB) -> RGB:
        return _check_rgb(v)


class LogRotationV1(BaseModel):
    """Log file rotation: by size (max_bytes) or by time (when, interval)."""
    mode: Literal["size", "time"] = "size"
    max_bytes: int = Field(50_000_000, ge=1024, description="Rotate when the file exceeds this (size mode)")
    when: Literal["S", "M", "H", "D", "midnight"] = Field("D", description="Interval unit (time mode)")
    interval: int = Field(1, ge=1, description="Intervals between rollovers (time mode)")
    backup_count: int = Field(5, ge=0, description="Rotated files kept")


class LoggingV1(BaseModel):
    """Logging section, applied by logging_config.configure_logging()."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: Optional[str] = None
    json_format: bool = Field(False, alias="json", description="JSON lines in the log file")
    color: bool = True
    console: bool = Field(True, description="Also log to stderr")
    tz: Literal["UTC", "local"] = "UTC"
    rotate: Optional[LogRotationV1] = Field(None, description="Rotation of the log file; None appends forever")

    model_config = ConfigDict(populate_by_name=True)


class ShowcaseV1(BaseModel):
    """Complete showcase run configuration (showcase.v1.yaml)."""
    schema_version: str = Field("showcase.v1", alias="schema", description="Schema version")
    resources: ResourcesV1 = Field(default_factory=ResourcesV1)
    renderer: RendererV1 = Field(default_factory=RendererV1)
    outputs: OutputsV1 = Field(default_factory=OutputsV1)
    logging: LoggingV1 = Field(default_factory=LoggingV1)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "showcase.v1":
            raise ValueError(f"Expected schema 'showcase.v1', got '{v}'")
        return v


# ============================================================================
# PUBLIC API
# ============================================================================

def load_showcase_config(path: Union[str, Path]) -> ShowcaseV1:
    """Load and validate showcase config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to showcase.v1.yaml file

    Returns
    -------
    ShowcaseV1
        Validated configuration; relative resource paths are resolved
        against the config file's directory

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Showcase config not found: {path}")

    data = fs.load_yaml(path) or {}
    try:
        cfg = ShowcaseV1(**data)
    except Exception as e:
        raise ValueError(f"Showcase config validation failed at {path}: {e}") from e

    return cfg.model_copy(update={
        'resources': cfg.resources.resolve_against(path.parent)
    })
