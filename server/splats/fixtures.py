"""Small synthetic scenes for viewer debugging and tests.

Values are raw file values (pre-``exp`` scale, pre-``sigmoid`` opacity) in
the 17-property layout produced by common 3DGS trainers.
"""

import math

import numpy as np

from splats.encoder import BASE_FIELDS

RING_SCALE = 0.1
RING_OPACITY = 0.9
# Identity in a w-first layout. Read as (x, y, z, w) it is a half turn about X,
# which leaves the axis-aligned fixture splats unchanged.
FIXTURE_ROT = (1.0, 0.0, 0.0, 0.0)


def _empty(n: int) -> np.ndarray:
    return np.zeros(n, dtype=[(name, "f4") for name in BASE_FIELDS])


def _set_row(data: np.ndarray, i: int, position, dc, opacity, scale, rot=FIXTURE_ROT) -> None:
    data["x"][i], data["y"][i], data["z"][i] = position
    data["nx"][i], data["ny"][i], data["nz"][i] = 0.0, 0.0, 1.0
    data["f_dc_0"][i], data["f_dc_1"][i], data["f_dc_2"][i] = dc
    data["opacity"][i] = opacity
    data["scale_0"][i], data["scale_1"][i], data["scale_2"][i] = scale
    data["rot_0"][i], data["rot_1"][i], data["rot_2"][i], data["rot_3"][i] = rot


def ring_positions(radius: float, z: float, count: int = 6, phase: float = 0.0) -> list[tuple[float, float, float]]:
    return [
        (radius * math.cos(i * 2 * math.pi / count + phase), radius * math.sin(i * 2 * math.pi / count + phase), z)
        for i in range(count)
    ]


def ring_fixture() -> np.ndarray:
    """12 splats: a red ring (r=1.5, z=1) and a blue ring (r=0.8, z=-1, +30°)."""
    rings = [
        (ring_positions(1.5, 1.0), (0.8, 0.1, 0.1)),
        (ring_positions(0.8, -1.0, phase=math.pi / 6), (0.1, 0.1, 0.8)),
    ]
    data = _empty(12)
    i = 0
    for positions, dc in rings:
        for position in positions:
            _set_row(data, i, position, dc, RING_OPACITY, (RING_SCALE,) * 3)
            i += 1
    return data


def orthogonal_fixture() -> np.ndarray:
    """3 splats stretched along X, Y and Z respectively."""
    data = _empty(3)
    _set_row(data, 0, (0.5, 0.0, 0.5), (1.0, 0.0, 0.0), 0.9, (0.8, 0.05, 0.05))
    _set_row(data, 1, (-0.5, 0.0, 0.5), (0.0, 0.1, 0.0), 0.9, (0.05, 0.8, 0.05))
    _set_row(data, 2, (0.0, 0.5, 0.0), (0.0, 0.0, 1.0), 0.9, (0.05, 0.05, 0.8))
    return data


FIXTURES = {
    "ring": ring_fixture,
    "orthogonal": orthogonal_fixture,
}
