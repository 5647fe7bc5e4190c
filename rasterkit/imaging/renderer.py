"""Synthetic image renderer.

Builds the test raster every output format is encoded from. The drawing
sequence is fixed:

    1. RGBA canvas of (len(stripe_colors) * stripe_width) x height
    2. Opaque background fill
    3. Vertical stripes; stripe i is filled under i compounded rotations of
       rotation_step_deg about the canvas center, then the transform resets
    4. Full-canvas ellipse, source-over at overlay_opacity, opacity resets
    5. Text labels, one per registered typeface, baseline anchored

Architecture:
    - Geometry → anti-aliased coverage mask (OpenCV LINE_AA, 4-bit sub-pixel
      shift, pixel centers at +0.5)
    - Text → coverage mask (Pillow FreeType rasterizer)
    - Every mask is composited with non-premultiplied source-over onto a
      float32 RGBA working canvas; quantized to 8 bits once at the end

Invariants:
    - Deterministic: no randomness, same settings + fonts → same pixels
    - The returned image is the single canonical Synthetic Image; callers
      derive narrowed copies from it and never draw on it again

Usage:
    from rasterkit.imaging import renderer, resources
    from rasterkit.utils import validators

    registry = resources.load_typefaces(cfg.resources.typefaces)
    img = renderer.render_synthetic(cfg.renderer, registry)
    img.size  # (500, 500)
"""

import logging
import math
from typing import Sequence, Tuple

import cv2
import numpy as np
from PIL import Image, ImageDraw

from rasterkit.imaging.resources import TypefaceRegistry
from rasterkit.utils.validators import RendererV1

logger = logging.getLogger(__name__)

# Sub-pixel precision for OpenCV rasterization (coordinates scaled by 2**SHIFT)
SHIFT = 4
_SCALE = 1 << SHIFT


def rotation_matrix(
    step_deg: float,
    center: Tuple[float, float],
    times: int = 1
) -> np.ndarray:
    """Affine matrix for `times` compounded rotations about `center`.

    Parameters
    ----------
    step_deg : float
        Rotation per step in degrees (positive = clockwise on screen, y down)
    center : Tuple[float, float]
        Rotation center (x, y) in px
    times : int
        Number of compounded steps; 0 gives the identity

    Returns
    -------
    np.ndarray
        (2, 3) float64 matrix mapping [x, y, 1] → [x', y']

    Notes
    -----
    Rotations about a common center compose by adding angles, so
    R^i == rotation by i * step_deg.
    """
    theta = math.radians(step_deg * times)
    c, s = math.cos(theta), math.sin(theta)
    cx, cy = center
    return np.array([
        [c, -s, cx - c * cx + s * cy],
        [s, c, cy - s * cx - c * cy],
    ], dtype=np.float64)


def transform_points(points: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Apply a (2, 3) affine matrix to (N, 2) points."""
    return points @ matrix[:, :2].T + matrix[:, 2]


def polygon_coverage(shape_hw: Tuple[int, int], points: np.ndarray) -> np.ndarray:
    """Anti-aliased coverage of a polygon given in continuous px coords.

    Returns
    -------
    np.ndarray
        (H, W) float32 in [0, 1]
    """
    mask = np.zeros(shape_hw, dtype=np.uint8)
    # Continuous coords → OpenCV pixel-center coords, fixed point
    pts = np.round((points - 0.5) * _SCALE).astype(np.int32)
    cv2.fillPoly(mask, [pts.reshape(-1, 1, 2)], 255, lineType=cv2.LINE_AA, shift=SHIFT)
    return mask.astype(np.float32) / 255.0


def ellipse_coverage(
    shape_hw: Tuple[int, int],
    bbox: Tuple[float, float, float, float]
) -> np.ndarray:
    """Anti-aliased coverage of a filled ellipse inscribed in bbox (x, y, w, h)."""
    x, y, w, h = bbox
    mask = np.zeros(shape_hw, dtype=np.uint8)
    center = (int(round((x + w / 2.0 - 0.5) * _SCALE)), int(round((y + h / 2.0 - 0.5) * _SCALE)))
    axes = (int(round(w / 2.0 * _SCALE)), int(round(h / 2.0 * _SCALE)))
    cv2.ellipse(mask, center, axes, 0, 0, 360, 255, thickness=-1, lineType=cv2.LINE_AA, shift=SHIFT)
    return mask.astype(np.float32) / 255.0


def composite_over(
    canvas: np.ndarray,
    rgb: Sequence[int],
    coverage: np.ndarray,
    opacity: float = 1.0
) -> None:
    """Blend a solid color onto the canvas with source-over (in place).

    Parameters
    ----------
    canvas : np.ndarray
        (H, W, 4) float32 working canvas, non-premultiplied RGBA in [0, 1]
    rgb : Sequence[int]
        Source color, 8-bit channels
    coverage : np.ndarray
        (H, W) float32 shape coverage in [0, 1]
    opacity : float
        Constant source alpha (composite rule alpha)

    Notes
    -----
    out_a   = sa + da * (1 - sa)
    out_rgb = (src * sa + dst * da * (1 - sa)) / out_a
    """
    sa = coverage * np.float32(opacity)
    da = canvas[..., 3]
    keep = da * (1.0 - sa)
    out_a = sa + keep

    src = np.asarray(rgb, dtype=np.float32) / 255.0
    num = src[None, None, :] * sa[..., None] + canvas[..., :3] * keep[..., None]
    nonzero = out_a > 0
    canvas[..., :3] = np.where(
        nonzero[..., None], num / np.where(nonzero, out_a, 1.0)[..., None], 0.0
    )
    canvas[..., 3] = out_a


class SyntheticRenderer:
    """Draws the synthetic test raster from validated settings.

    Attributes
    ----------
    settings : RendererV1
        Geometry, colors, overlay and labels
    registry : TypefaceRegistry
        Fonts; every label family must be registered before render()
    width, height : int
        Canvas size in px
    """

    def __init__(self, settings: RendererV1, registry: TypefaceRegistry):
        self.settings = settings
        self.registry = registry
        self.width = settings.width
        self.height = settings.height

        missing = [lbl.family for lbl in settings.labels if lbl.family not in registry]
        if missing:
            raise KeyError(
                f"Label typefaces not registered: {missing} "
                f"(registered: {sorted(registry.families)})"
            )

    @property
    def center(self) -> Tuple[int, int]:
        return self.width // 2, self.height // 2

    def new_canvas(self) -> np.ndarray:
        return np.zeros((self.height, self.width, 4), dtype=np.float32)

    def fill_background(self, canvas: np.ndarray) -> None:
        coverage = np.ones((self.height, self.width), dtype=np.float32)
        composite_over(canvas, self.settings.background, coverage)

    def draw_stripes(self, canvas: np.ndarray) -> None:
        dx, h = self.settings.stripe_width, self.height
        for i, rgb in enumerate(self.settings.stripe_colors):
            rect = np.array([
                [i * dx, 0],
                [(i + 1) * dx, 0],
                [(i + 1) * dx, h],
                [i * dx, h],
            ], dtype=np.float64)
            matrix = rotation_matrix(self.settings.rotation_step_deg, self.center, times=i)
            coverage = polygon_coverage(canvas.shape[:2], transform_points(rect, matrix))
            composite_over(canvas, rgb, coverage)

    def draw_overlay(self, canvas: np.ndarray) -> None:
        coverage = ellipse_coverage(canvas.shape[:2], (0, 0, self.width, self.height))
        composite_over(canvas, self.settings.overlay_color, coverage, self.settings.overlay_opacity)

    def draw_labels(self, canvas: np.ndarray) -> None:
        for label in self.settings.labels:
            font = self.registry.font(label.family, label.size)
            mask = Image.new("L", (self.width, self.height), 0)
            ImageDraw.Draw(mask).text(label.position, label.text, fill=255, font=font, anchor="ls")
            coverage = np.asarray(mask, dtype=np.float32) / 255.0
            composite_over(canvas, self.settings.text_color, coverage)

    def render(self) -> Image.Image:
        """Run the full drawing sequence.

        Returns
        -------
        Image.Image
            RGBA image of size (width, height)
        """
        canvas = self.new_canvas()
        self.fill_background(canvas)
        self.draw_stripes(canvas)
        self.draw_overlay(canvas)
        self.draw_labels(canvas)

        pixels = np.round(np.clip(canvas, 0.0, 1.0) * 255.0).astype(np.uint8)
        logger.info(
            f"Rendered synthetic image {self.width}x{self.height} "
            f"({len(self.settings.stripe_colors)} stripes, {len(self.settings.labels)} labels)"
        )
        return Image.fromarray(pixels)


def render_synthetic(settings: RendererV1, registry: TypefaceRegistry) -> Image.Image:
    """Render the synthetic image (see SyntheticRenderer)."""
    return SyntheticRenderer(settings, registry).render()
