"""Decoded splat records and the collection handed to renderers."""

from dataclasses import dataclass
from typing import Literal

SH_REST_COUNT = 45


@dataclass(frozen=True)
class Splat:
    """One Gaussian primitive after attribute post-processing.

    rotation is (x, y, z, w) exactly as stored in the file, not renormalized.
    """

    position: tuple[float, float, float]
    scale: tuple[float, float, float]
    rotation: tuple[float, float, float, float]
    opacity: float
    color_dc: tuple[float, float, float]
    color_rest: tuple[float, ...] = (0.0,) * SH_REST_COUNT


@dataclass(frozen=True)
class SplatCollection:
    """Ordered splats plus the header metadata they were decoded from."""

    splats: tuple[Splat, ...]
    format: str
    vertex_count: int
    properties: tuple[str, ...] = ()
    source: Literal["gaussian", "point_cloud"] = "gaussian"

    def __len__(self) -> int:
        return len(self.splats)

    def __iter__(self):
        return iter(self.splats)

    def __getitem__(self, idx: int) -> Splat:
        return self.splats[idx]
