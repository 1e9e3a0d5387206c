"""Conventional point-cloud decode used when the Gaussian decode fails.

Files with faces, list properties or other elements the splat decoder rejects
are read with plyfile and treated as plain colored points: centered on their
bounding box, small isotropic footprint, fixed opacity.
"""

import io
import logging

import numpy as np
from plyfile import PlyData, PlyParseError

from splats.errors import PlyDecodeError
from splats.model import Splat, SplatCollection
from splats.shading import rgb_to_sh

logger = logging.getLogger(__name__)

POINT_SIZE = 0.02
POINT_OPACITY = 0.8
IDENTITY_QUAT = (0.0, 0.0, 0.0, 1.0)


def _point_colors(vertex, n: int, rng: np.random.Generator) -> np.ndarray:
    names = vertex.data.dtype.names
    if all(c in names for c in ("red", "green", "blue")):
        rgb = np.stack([vertex["red"], vertex["green"], vertex["blue"]], axis=1).astype(np.float64)
        if np.issubdtype(vertex["red"].dtype, np.integer):
            rgb /= 255.0
        return rgb
    if all(c in names for c in ("r", "g", "b")):
        return np.stack([vertex["r"], vertex["g"], vertex["b"]], axis=1).astype(np.float64)
    # Light random tints so uncolored clouds stay readable on grey
    return rng.random((n, 3)) * 0.5 + 0.5


def _format_name(plydata: PlyData) -> str:
    if plydata.text:
        return "ascii"
    return "binary_big_endian" if plydata.byte_order == ">" else "binary_little_endian"


def decode_point_cloud(buffer: bytes, seed: int | None = None) -> SplatCollection:
    """Decode any PLY with a vertex element as a plain colored point cloud."""
    try:
        plydata = PlyData.read(io.BytesIO(buffer))
        vertex = plydata["vertex"]
    except (PlyParseError, KeyError, ValueError) as e:
        raise PlyDecodeError(f"Not a readable point cloud: {e}") from e

    names = vertex.data.dtype.names
    n = len(vertex.data)
    positions = np.zeros((n, 3), dtype=np.float64)
    for axis, name in enumerate(("x", "y", "z")):
        if name in names:
            positions[:, axis] = vertex[name]

    if n:
        center = (positions.min(axis=0) + positions.max(axis=0)) / 2
        positions -= center
    colors = _point_colors(vertex, n, np.random.default_rng(seed))
    color_dc = rgb_to_sh(colors)

    splats = tuple(
        Splat(
            position=tuple(positions[i].tolist()),
            scale=(POINT_SIZE,) * 3,
            rotation=IDENTITY_QUAT,
            opacity=POINT_OPACITY,
            color_dc=tuple(color_dc[i].tolist()),
        )
        for i in range(n)
    )
    logger.info(f"Decoded {n:,} plain points ({len(plydata.elements)} elements in file)")
    return SplatCollection(
        splats=splats,
        format=_format_name(plydata),
        vertex_count=n,
        properties=tuple(names),
        source="point_cloud",
    )
