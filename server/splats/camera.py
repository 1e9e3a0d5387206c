"""Perspective camera: look-at pose, view matrix and pixel projection.

Camera space follows the usual GL convention: the camera looks down -Z with
+Y up, and pixel rows grow downward.
"""

import math
from dataclasses import dataclass, field

import numpy as np


def _vec3(v) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).reshape(3)


@dataclass
class Camera:
    width: int = 800
    height: int = 600
    fov: float = 75.0  # vertical, degrees
    near: float = 0.1
    far: float = 1000.0
    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 5.0]))
    target: np.ndarray = field(default_factory=lambda: np.zeros(3))
    up: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))

    @property
    def aspect(self) -> float:
        return self.width / self.height

    def look_at(self, target) -> None:
        self.target = _vec3(target)

    def move_to(self, position) -> None:
        self.position = _vec3(position)

    def basis(self) -> np.ndarray:
        """Camera axes as rows: right, up, back (camera looks along -back)."""
        z = _vec3(self.position) - _vec3(self.target)
        if np.linalg.norm(z) == 0:
            z = np.array([0.0, 0.0, 1.0])
        z = z / np.linalg.norm(z)
        up = _vec3(self.up)
        x = np.cross(up, z)
        if np.linalg.norm(x) == 0:
            # up parallel to view direction: nudge the view axis
            z = z + (np.array([0.0001, 0.0, 0.0]) if abs(up[2]) == 1 else np.array([0.0, 0.0, 0.0001]))
            z = z / np.linalg.norm(z)
            x = np.cross(up, z)
        x = x / np.linalg.norm(x)
        y = np.cross(z, x)
        return np.stack([x, y, z])

    def view_matrix(self) -> np.ndarray:
        """4x4 world -> camera transform."""
        rot = self.basis()
        view = np.eye(4)
        view[:3, :3] = rot
        view[:3, 3] = -rot @ _vec3(self.position)
        return view

    def direction(self) -> np.ndarray:
        """Unit world-space viewing direction."""
        return -self.basis()[2]

    def to_view(self, positions: np.ndarray) -> np.ndarray:
        view = self.view_matrix()
        return np.asarray(positions, dtype=np.float64) @ view[:3, :3].T + view[:3, 3]

    def project(self, view_positions: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Camera-space points -> (pixel xy, in_frustum mask)."""
        p = np.asarray(view_positions, dtype=np.float64)
        depth = -p[..., 2]
        focal = 1.0 / math.tan(math.radians(self.fov) / 2)
        with np.errstate(divide="ignore", invalid="ignore"):
            ndc_x = focal / self.aspect * p[..., 0] / depth
            ndc_y = focal * p[..., 1] / depth
        pixels = np.stack(
            [(ndc_x + 1.0) * 0.5 * self.width, (1.0 - ndc_y) * 0.5 * self.height], axis=-1
        )
        in_frustum = (depth >= self.near) & (depth <= self.far) & np.isfinite(pixels).all(axis=-1)
        return pixels, in_frustum
