"""Write splats back to Gaussian splat PLY files.

Decoding applies ``exp`` to scale and ``sigmoid`` to opacity, so encoding
stores ``log(scale)`` and ``logit(opacity)``; everything else is written as
decoded.
"""

import io
import os
import shutil
import tempfile
from pathlib import Path

import numpy as np
from plyfile import PlyData, PlyElement

from splats.model import SH_REST_COUNT, Splat

BASE_FIELDS = (
    ["x", "y", "z", "nx", "ny", "nz"]
    + [f"f_dc_{i}" for i in range(3)]
    + ["opacity"]
    + [f"scale_{i}" for i in range(3)]
    + [f"rot_{i}" for i in range(4)]
)


def logit(p):
    p = np.asarray(p, dtype=np.float64)
    with np.errstate(divide="ignore"):
        return np.log(p) - np.log1p(-p)


def splats_to_vertex_data(splats: list[Splat], n_rest: int = 0) -> np.ndarray:
    """Pack splats into a structured float32 array in the standard 3DGS order.

    ``n_rest`` f_rest coefficients (0..45) are appended after the rotation.
    """
    n_rest = max(0, min(n_rest, SH_REST_COUNT))
    names = BASE_FIELDS + [f"f_rest_{i}" for i in range(n_rest)]
    data = np.zeros(len(splats), dtype=[(name, "f4") for name in names])
    if not splats:
        return data

    position = np.array([s.position for s in splats], dtype=np.float64)
    scale = np.array([s.scale for s in splats], dtype=np.float64)
    rotation = np.array([s.rotation for s in splats], dtype=np.float64)
    dc = np.array([s.color_dc for s in splats], dtype=np.float64)
    opacity = np.array([s.opacity for s in splats], dtype=np.float64)

    for axis, name in enumerate("xyz"):
        data[name] = position[:, axis]
    data["nz"] = 1.0
    for i in range(3):
        data[f"f_dc_{i}"] = dc[:, i]
        with np.errstate(divide="ignore"):
            data[f"scale_{i}"] = np.log(scale[:, i])
    for i in range(4):
        data[f"rot_{i}"] = rotation[:, i]
    data["opacity"] = logit(opacity)
    if n_rest:
        rest = np.array([s.color_rest[:n_rest] for s in splats], dtype=np.float64)
        for i in range(n_rest):
            data[f"f_rest_{i}"] = rest[:, i]
    return data


def encode_ply(vertex_data: np.ndarray, text: bool = False, byte_order: str = "<") -> bytes:
    """Serialize a structured vertex array as a single-element PLY."""
    element = PlyElement.describe(vertex_data, "vertex")
    buf = io.BytesIO()
    PlyData([element], text=text, byte_order=byte_order).write(buf)
    return buf.getvalue()


def write_gaussian_ply(path: Path, vertex_data: np.ndarray, text: bool = False, byte_order: str = "<") -> Path:
    """Write via temp file + rename so readers never see a partial file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(suffix=".ply", dir=str(path.parent))
    try:
        with os.fdopen(tmp_fd, "wb") as f:
            f.write(encode_ply(vertex_data, text=text, byte_order=byte_order))
        shutil.move(tmp_path, str(path))
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
    return path
