"""Per-splat shading math: view-dependent color and screen footprint.

Everything here is vectorized over splats (leading axes) and mirrors what a
GPU point-sprite shader evaluates per vertex and per fragment:

- color: spherical harmonics up to degree 2, evaluated along the normalized
  splat -> camera direction
- footprint, covariance model: 3D covariance ``R S Sᵀ Rᵀ`` mapped into view
  space and projected with the first-order perspective Jacobian; each sprite
  pixel is shaded by its Mahalanobis distance
- footprint, ellipse model: sprite sized by ``max(scale) / distance``,
  rotated by the quaternion's twist about the view axis

Sprite offsets are in point-coordinate units: the sprite spans [-0.5, 0.5]
on both axes, +y pointing down the screen.
"""

from dataclasses import dataclass, replace
from typing import Literal

import numpy as np

SH_C0 = 0.28209479177387814
SH_C1 = 0.48860251190291987
SH_C2 = (
    1.0925484305920792,
    -1.0925484305920792,
    0.94617469575755997,
    -1.0925484305920792,
    0.54627421529603959,
)
MAX_SH_DEGREE = 2

DET_EPSILON = 1e-9
MIN_ALPHA = 0.01
ELLIPSE_FALLOFF = 8.0
ELLIPSE_CUTOFF = 2.0
MIN_POINT_SIZE = 4.0
COVARIANCE_POINT_SIZE = 200_000.0
ELLIPSE_POINT_SIZE = 200_000_000.0
DEBUG_RING = (0.1, 0.2)


@dataclass(frozen=True)
class RenderConfig:
    """Everything one draw call needs besides the camera."""

    footprint: Literal["covariance", "ellipse"] = "ellipse"
    harmonic_degree: int = 2
    point_scale: float = 1000.0
    chi_scale: float = 32.0
    debug_ring: bool = False  # covariance model only
    blend: Literal["normal", "additive"] = "normal"
    background: tuple[float, float, float] = (0.8, 0.8, 0.8)
    max_point_size: float = 512.0  # device point-size limit, in pixels

    def with_overrides(self, **overrides) -> "RenderConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


# ---------------------------------------------------------------------------
# Color
# ---------------------------------------------------------------------------

def sh_to_rgb(sh_dc):
    return 0.5 + SH_C0 * np.asarray(sh_dc)


def rgb_to_sh(rgb):
    return (np.asarray(rgb) - 0.5) / SH_C0


def view_directions(positions: np.ndarray, camera_position) -> np.ndarray:
    """Unit vectors from each splat toward the camera. Zero length gives NaN."""
    d = np.asarray(camera_position, dtype=np.float64) - np.asarray(positions, dtype=np.float64)
    norm = np.linalg.norm(d, axis=-1, keepdims=True)
    with np.errstate(invalid="ignore", divide="ignore"):
        return d / norm


def evaluate_sh(dirs: np.ndarray, sh_dc: np.ndarray, sh_rest: np.ndarray, degree: int) -> np.ndarray:
    """Reconstruct RGB from SH coefficients along ``dirs``.

    ``sh_rest`` holds RGB triples per basis function (..., >=8, 3). Degree 0
    and 1 results are clamped to [0, 1]; the degree 2 result is returned as is
    and can overshoot.
    """
    degree = max(0, min(int(degree), MAX_SH_DEGREE))
    dirs = np.asarray(dirs, dtype=np.float64)
    rest = np.asarray(sh_rest, dtype=np.float64)
    color = 0.5 + SH_C0 * np.asarray(sh_dc, dtype=np.float64)
    if degree < 1:
        return np.clip(color, 0.0, 1.0)

    x = dirs[..., 0:1]
    y = dirs[..., 1:2]
    z = dirs[..., 2:3]
    color = (
        color
        - SH_C1 * y * rest[..., 0, :]
        + SH_C1 * z * rest[..., 1, :]
        - SH_C1 * x * rest[..., 2, :]
    )
    if degree < 2:
        return np.clip(color, 0.0, 1.0)

    xx, yy, zz = x * x, y * y, z * z
    xy, yz, xz = x * y, y * z, x * z
    return (
        color
        + SH_C2[0] * xy * rest[..., 3, :]
        + SH_C2[1] * yz * rest[..., 4, :]
        + SH_C2[2] * (2.0 * zz - xx - yy) * rest[..., 5, :]
        + SH_C2[3] * xz * rest[..., 6, :]
        + SH_C2[4] * (xx - yy) * rest[..., 7, :]
    )


# ---------------------------------------------------------------------------
# Covariance footprint
# ---------------------------------------------------------------------------

def quaternion_to_matrix(q: np.ndarray) -> np.ndarray:
    """(x, y, z, w) quaternions -> rotation matrices, without renormalizing."""
    q = np.asarray(q, dtype=np.float64)
    x, y, z, w = q[..., 0], q[..., 1], q[..., 2], q[..., 3]
    cols = [
        (1 - 2 * (y * y + z * z), 2 * (x * y + w * z), 2 * (x * z - w * y)),
        (2 * (x * y - w * z), 1 - 2 * (x * x + z * z), 2 * (y * z + w * x)),
        (2 * (x * z + w * y), 2 * (y * z - w * x), 1 - 2 * (x * x + y * y)),
    ]
    # R[..., row, col]
    return np.stack([np.stack(col, axis=-1) for col in cols], axis=-1)


def covariance_3d(scale: np.ndarray, rotation: np.ndarray) -> np.ndarray:
    """World-space covariance ``R S Sᵀ Rᵀ``."""
    m = quaternion_to_matrix(rotation) * np.asarray(scale, dtype=np.float64)[..., None, :]
    return m @ np.swapaxes(m, -1, -2)


def project_covariance(cov3d: np.ndarray, view_matrix: np.ndarray, view_positions: np.ndarray) -> np.ndarray:
    """Project world covariances to 2x2 screen covariances.

    Uses the rotation/scale block of the view transform and the Jacobian of
    ``(x/z, y/z)`` at each splat's camera-space position.
    """
    r_view = np.asarray(view_matrix, dtype=np.float64)[:3, :3]
    cov_view = r_view @ cov3d @ r_view.T

    p = np.asarray(view_positions, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        z_inv = 1.0 / p[..., 2]
    z_inv_sq = z_inv * z_inv
    jac = np.zeros(p.shape[:-1] + (2, 3))
    jac[..., 0, 0] = z_inv
    jac[..., 1, 1] = z_inv
    jac[..., 0, 2] = -p[..., 0] * z_inv_sq
    jac[..., 1, 2] = -p[..., 1] * z_inv_sq
    return jac @ cov_view @ np.swapaxes(jac, -1, -2)


def covariance_extent(cov2d: np.ndarray, opacity: float, chi_scale: float, debug_ring: bool = False) -> float:
    """Largest sprite offset that can still produce a visible pixel.

    ``chi2 >= |d|² / λmax``, so beyond ``sqrt(chi2_max * λmax / chi_scale)``
    alpha is below the discard threshold. Capped at the sprite edge (0.5).
    """
    if opacity <= MIN_ALPHA and not debug_ring:
        return 0.0
    chi2_max = -2.0 * np.log(MIN_ALPHA / opacity) if opacity > MIN_ALPHA else 0.0
    if debug_ring:
        chi2_max = max(chi2_max, DEBUG_RING[1])
    a, b, c, d = cov2d[0, 0], cov2d[0, 1], cov2d[1, 0], cov2d[1, 1]
    trace = a + d
    disc = max(0.0, trace * trace - 4.0 * (a * d - b * c))
    lam_max = (trace + np.sqrt(disc)) / 2.0
    if not np.isfinite(lam_max) or lam_max <= 0 or chi_scale <= 0:
        return 0.5
    return float(min(0.5, np.sqrt(chi2_max * lam_max / chi_scale)))


def covariance_alpha(
    offsets: np.ndarray, cov2d: np.ndarray, opacity: float, chi_scale: float
) -> tuple[np.ndarray, np.ndarray]:
    """Per-pixel alpha from the Mahalanobis distance under ``cov2d``.

    Returns ``(alpha, chi2)``; chi2 is already multiplied by ``chi_scale``.
    Degenerate covariances and pixels under MIN_ALPHA get alpha 0.
    """
    offsets = np.asarray(offsets, dtype=np.float64)
    a, b, c, d = cov2d[0, 0], cov2d[0, 1], cov2d[1, 0], cov2d[1, 1]
    det = a * d - b * c
    if not abs(det) >= DET_EPSILON:
        shape = offsets.shape[:-1]
        return np.zeros(shape), np.full(shape, np.nan)

    inv = np.array([[d, -b], [-c, a]]) / det
    chi2 = np.einsum("...i,ij,...j->...", offsets, inv, offsets) * chi_scale
    alpha = np.exp(-0.5 * chi2) * opacity
    alpha = np.where(alpha < MIN_ALPHA, 0.0, alpha)
    return alpha, chi2


def covariance_point_size(point_scale: float) -> float:
    return float(np.clip(10.0 * point_scale, MIN_POINT_SIZE, COVARIANCE_POINT_SIZE))


# ---------------------------------------------------------------------------
# Ellipse footprint
# ---------------------------------------------------------------------------

def screen_twist(rotation: np.ndarray) -> np.ndarray:
    """Effective rotation angle about the view axis: ``2 * atan2(qz, qw)``."""
    rotation = np.asarray(rotation, dtype=np.float64)
    return 2.0 * np.arctan2(rotation[..., 2], rotation[..., 3])


def ellipse_point_size(scale: np.ndarray, view_positions: np.ndarray, point_scale: float) -> np.ndarray:
    max_scale = np.max(np.asarray(scale, dtype=np.float64), axis=-1)
    distance = np.linalg.norm(np.asarray(view_positions, dtype=np.float64), axis=-1)
    with np.errstate(divide="ignore", invalid="ignore"):
        size = max_scale * point_scale / distance
    return np.clip(size, MIN_POINT_SIZE, ELLIPSE_POINT_SIZE)


def ellipse_alpha(offsets: np.ndarray, scale, rotation, opacity: float) -> np.ndarray:
    """Gaussian falloff ``exp(-8 r²)`` over a rotated, scale-corrected sprite."""
    offsets = np.asarray(offsets, dtype=np.float64)
    angle = screen_twist(rotation)
    cos_a, sin_a = np.cos(angle), np.sin(angle)
    px, py = offsets[..., 0], offsets[..., 1]
    rx = px * cos_a - py * sin_a
    ry = px * sin_a + py * cos_a

    sx, sy = float(scale[0]), float(scale[1])
    avg = (sx + sy) * 0.5
    sx = max(sx, 0.001)
    sy = max(sy, 0.001)
    dist = np.hypot(rx * (avg / sx), ry * (avg / sy))

    alpha = np.exp(-dist * dist * ELLIPSE_FALLOFF) * opacity
    return np.where(dist > ELLIPSE_CUTOFF, 0.0, alpha)
