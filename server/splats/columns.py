"""Column-store view of a SplatCollection for rendering backends.

Per-attribute contiguous float32 arrays, with the SH rest coefficients grouped
into nine RGB triples (f_rest_0..2, f_rest_3..5, ... f_rest_24..26).
"""

from dataclasses import dataclass

import numpy as np

from splats.model import SplatCollection
from splats.shading import sh_to_rgb

SH_REST_GROUPS = 9
SH_REST_GROUP_NAMES = tuple(f"sh_rest_{3 * k}_{3 * k + 2}" for k in range(SH_REST_GROUPS))


@dataclass
class ColumnStore:
    position: np.ndarray  # (N, 3)
    scale: np.ndarray  # (N, 3)
    rotation: np.ndarray  # (N, 4) x, y, z, w
    opacity: np.ndarray  # (N,)
    sh_dc: np.ndarray  # (N, 3)
    sh_rest: np.ndarray  # (N, 9, 3)
    color: np.ndarray  # (N, 3) display RGB, unclamped

    def __len__(self) -> int:
        return len(self.position)

    def attributes(self) -> dict[str, np.ndarray]:
        """Named attribute arrays, one (N, k) block per attribute."""
        attrs = {
            "position": self.position,
            "scale": self.scale,
            "rotation": self.rotation,
            "opacity": self.opacity,
            "sh_dc": self.sh_dc,
        }
        for k, name in enumerate(SH_REST_GROUP_NAMES):
            attrs[name] = np.ascontiguousarray(self.sh_rest[:, k, :])
        attrs["color"] = self.color
        return attrs

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        if len(self) == 0:
            return np.zeros(3), np.zeros(3)
        return self.position.min(axis=0), self.position.max(axis=0)

    def frame_scene(self) -> tuple[np.ndarray, float]:
        """Bounding-box center and a viewing distance of twice the largest extent."""
        lo, hi = self.bounds()
        center = (lo + hi) / 2
        distance = float(np.max(hi - lo)) * 2
        return center.astype(np.float64), distance


def _column(values, n: int, width: int) -> np.ndarray:
    return np.array(values, dtype=np.float32).reshape(n, width)


def assemble_columns(collection: SplatCollection) -> ColumnStore:
    """Transpose the ordered splats into per-attribute arrays."""
    n = len(collection)
    splats = collection.splats
    dc = np.array([s.color_dc for s in splats], dtype=np.float64).reshape(n, 3)
    rest = _column([s.color_rest[: 3 * SH_REST_GROUPS] for s in splats], n, 3 * SH_REST_GROUPS)

    return ColumnStore(
        position=_column([s.position for s in splats], n, 3),
        scale=_column([s.scale for s in splats], n, 3),
        rotation=_column([s.rotation for s in splats], n, 4),
        opacity=_column([s.opacity for s in splats], n, 1).reshape(n),
        sh_dc=dc.astype(np.float32),
        sh_rest=rest.reshape(n, SH_REST_GROUPS, 3),
        color=sh_to_rgb(dc).astype(np.float32),
    )
