"""CPU point-sprite rasterizer for splat column stores.

Splats are drawn unsorted, in index order, as screen-aligned sprites blended
over the background (normal or additive). Overlap is not depth-correct; this
is the same approximation a depth-test-without-depth-write sprite pass makes.
"""

import io
import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image

from splats.camera import Camera
from splats.columns import ColumnStore
from splats.shading import (
    DEBUG_RING,
    RenderConfig,
    covariance_3d,
    covariance_alpha,
    covariance_extent,
    covariance_point_size,
    ellipse_alpha,
    ellipse_point_size,
    evaluate_sh,
    project_covariance,
    view_directions,
)

logger = logging.getLogger(__name__)

DEBUG_RING_COLOR = np.array([1.0, 0.0, 0.0])


@dataclass
class RenderResult:
    """Output from a rasterization call."""

    image: np.ndarray  # (H, W, 3) float32, unclamped
    n_drawn: int
    n_culled: int


def _sprite_window(center: np.ndarray, radius_px: float, width: int, height: int):
    x0 = max(int(np.floor(center[0] - radius_px)), 0)
    x1 = min(int(np.ceil(center[0] + radius_px)), width)
    y0 = max(int(np.floor(center[1] - radius_px)), 0)
    y1 = min(int(np.ceil(center[1] + radius_px)), height)
    return x0, x1, y0, y1


def _blend(region: np.ndarray, color: np.ndarray, alpha: np.ndarray, mode: str) -> None:
    a = alpha[..., None]
    if mode == "additive":
        region += color * a
    else:
        region *= 1.0 - a
        region += color * a


class SplatRasterizer:
    """Software rasterizer evaluating the splat shading model per pixel."""

    def rasterize(self, columns: ColumnStore, camera: Camera, config: RenderConfig) -> RenderResult:
        width, height = camera.width, camera.height
        image = np.empty((height, width, 3), dtype=np.float32)
        image[:] = np.asarray(config.background, dtype=np.float32)

        n = len(columns)
        if n == 0:
            return RenderResult(image=image, n_drawn=0, n_culled=0)

        view_pos = camera.to_view(columns.position)
        centers, visible = camera.project(view_pos)

        # View-dependent color, recomputed for this camera pose
        dirs = view_directions(columns.position, camera.position)
        colors = evaluate_sh(dirs, columns.sh_dc, columns.sh_rest, config.harmonic_degree)

        covariance = config.footprint == "covariance"
        if covariance:
            cov2d = project_covariance(
                covariance_3d(columns.scale, columns.rotation), camera.view_matrix(), view_pos
            )
            sizes = np.full(n, covariance_point_size(config.point_scale))
        else:
            sizes = ellipse_point_size(columns.scale, view_pos, config.point_scale)
        sizes = np.minimum(sizes, config.max_point_size)

        n_drawn = 0
        for i in np.flatnonzero(visible):
            size = float(sizes[i])
            if not np.isfinite(size) or size <= 0:
                continue
            opacity = float(columns.opacity[i])

            if covariance:
                extent = covariance_extent(cov2d[i], opacity, config.chi_scale, config.debug_ring)
            else:
                extent = 0.5
            if extent <= 0:
                continue

            x0, x1, y0, y1 = _sprite_window(centers[i], extent * size, width, height)
            if x0 >= x1 or y0 >= y1:
                continue

            # Offsets from the sprite center in point-coordinate units
            dx = (np.arange(x0, x1) + 0.5 - centers[i, 0]) / size
            dy = (np.arange(y0, y1) + 0.5 - centers[i, 1]) / size
            offsets = np.stack(np.meshgrid(dx, dy), axis=-1)

            src = np.broadcast_to(colors[i], offsets.shape[:-1] + (3,))
            if covariance:
                alpha, chi2 = covariance_alpha(offsets, cov2d[i], opacity, config.chi_scale)
                if config.debug_ring:
                    ring = (chi2 > DEBUG_RING[0]) & (chi2 < DEBUG_RING[1])
                    src = np.where(ring[..., None], DEBUG_RING_COLOR, src)
                    alpha = np.where(ring, 1.0, alpha)
            else:
                alpha = ellipse_alpha(offsets, columns.scale[i], columns.rotation[i], opacity)

            if not np.any(alpha != 0):
                continue
            _blend(image[y0:y1, x0:x1], src.astype(np.float32), alpha.astype(np.float32), config.blend)
            n_drawn += 1

        n_culled = int(n - np.count_nonzero(visible))
        logger.debug(f"Rasterized {n_drawn}/{n} splats ({n_culled} culled) at {width}x{height}")
        return RenderResult(image=image, n_drawn=n_drawn, n_culled=n_culled)

    def rasterize_png(self, columns: ColumnStore, camera: Camera, config: RenderConfig) -> bytes:
        """Render and encode as PNG bytes."""
        return encode_png(self.rasterize(columns, camera, config).image)


def encode_png(image: np.ndarray) -> bytes:
    """Float RGB in [0, 1] -> PNG bytes. NaN pixels from broken splats turn black."""
    clamped = np.nan_to_num(np.clip(image, 0.0, 1.0), nan=0.0)
    pil_img = Image.fromarray((clamped * 255).round().astype(np.uint8))
    buf = io.BytesIO()
    pil_img.save(buf, format="PNG")
    return buf.getvalue()
