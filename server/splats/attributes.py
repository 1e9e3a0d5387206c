"""Per-record attribute transforms: raw PLY vertex -> Splat.

The order of fallback resolution is part of the format's behavior:

- position: ``x/y/z`` -> 0
- scale: ``scale_i`` -> ``scale_{x,y,z}`` -> 0.01, *then* ``exp``
- opacity: ``sigmoid(opacity)`` -> ``alpha`` -> 0.8, *then* clamp to [0, 1]
- color DC: ``f_dc_*``; only when all three are exactly 0.0 fall back to
  8-bit ``red/green/blue`` -> normalized ``r/g/b`` -> diagnostic orange

A step is skipped when its value is missing, 0.0 or NaN. A raw scale of 0.0
therefore becomes ``exp(0.01)``, and an opacity logit so negative that the
sigmoid underflows to 0.0 falls back to ``alpha``. Rotation is the exception:
its components are taken as read, so a NaN quaternion stays visible.

The zero check is exact: a near-black splat with a tiny nonzero
coefficient keeps its coefficients.
"""

import math
from dataclasses import dataclass, field, fields

from splats.model import SH_REST_COUNT, Splat
from splats.shading import SH_C0

DEFAULT_SCALE = 0.01
DEFAULT_OPACITY = 0.8
DIAGNOSTIC_DC = (0.5, 0.0, -0.5)


@dataclass
class VertexRecord:
    """Fixed schema for one decoded vertex. ``None`` means the property was absent."""

    x: float | None = None
    y: float | None = None
    z: float | None = None
    scale_0: float | None = None
    scale_1: float | None = None
    scale_2: float | None = None
    scale_x: float | None = None
    scale_y: float | None = None
    scale_z: float | None = None
    rot_0: float | None = None
    rot_1: float | None = None
    rot_2: float | None = None
    rot_3: float | None = None
    opacity: float | None = None
    alpha: float | None = None
    f_dc_0: float | None = None
    f_dc_1: float | None = None
    f_dc_2: float | None = None
    f_rest: list[float | None] = field(default_factory=lambda: [None] * SH_REST_COUNT)
    red: float | None = None
    green: float | None = None
    blue: float | None = None
    r: float | None = None
    g: float | None = None
    b: float | None = None
    # Unrecognized properties (normals, custom channels)
    extras: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: dict[str, float]) -> "VertexRecord":
        record = cls()
        for name, value in raw.items():
            if name in _SCALAR_FIELDS:
                setattr(record, name, value)
            elif name.startswith("f_rest_"):
                idx = _rest_index(name)
                if idx is not None and idx < SH_REST_COUNT:
                    record.f_rest[idx] = value
                else:
                    record.extras[name] = value
            else:
                record.extras[name] = value
        return record


_SCALAR_FIELDS = frozenset(
    f.name for f in fields(VertexRecord) if f.name not in ("f_rest", "extras")
)


def _rest_index(name: str) -> int | None:
    suffix = name[len("f_rest_"):]
    return int(suffix) if suffix.isdigit() else None


def _usable(value) -> bool:
    return value is not None and value != 0.0 and not math.isnan(value)


def _first(*values):
    """First usable value, or the last one given (the default)."""
    for v in values[:-1]:
        if _usable(v):
            return v
    return values[-1]


def _exp(value: float) -> float:
    try:
        return math.exp(value)
    except OverflowError:
        return math.inf


def sigmoid(value: float) -> float:
    """Logistic function that does not overflow for large negative inputs."""
    if value >= 0:
        return 1.0 / (1.0 + math.exp(-value))
    e = math.exp(value)
    return e / (1.0 + e)


def _resolve_scale(record: VertexRecord) -> tuple[float, float, float]:
    raw = (
        _first(record.scale_0, record.scale_x, DEFAULT_SCALE),
        _first(record.scale_1, record.scale_y, DEFAULT_SCALE),
        _first(record.scale_2, record.scale_z, DEFAULT_SCALE),
    )
    return tuple(_exp(s) for s in raw)


def _resolve_rotation(record: VertexRecord) -> tuple[float, float, float, float]:
    # Missing components propagate as NaN so broken files stay visible
    return tuple(
        math.nan if v is None else v
        for v in (record.rot_0, record.rot_1, record.rot_2, record.rot_3)
    )


def _resolve_opacity(record: VertexRecord) -> float:
    value = sigmoid(record.opacity) if record.opacity is not None else None
    value = _first(value, record.alpha, DEFAULT_OPACITY)
    return max(0.0, min(1.0, value))


def _resolve_color_dc(record: VertexRecord) -> tuple[float, float, float]:
    dc = tuple(_first(v, 0.0) for v in (record.f_dc_0, record.f_dc_1, record.f_dc_2))
    if dc != (0.0, 0.0, 0.0):
        return dc

    if None not in (record.red, record.green, record.blue):
        return tuple((c / 255.0 - 0.5) / SH_C0 for c in (record.red, record.green, record.blue))
    if None not in (record.r, record.g, record.b):
        return tuple((c - 0.5) / SH_C0 for c in (record.r, record.g, record.b))
    return DIAGNOSTIC_DC


def to_splat(record: VertexRecord) -> Splat:
    """Apply the format transforms to one record."""
    return Splat(
        position=(
            _first(record.x, 0.0),
            _first(record.y, 0.0),
            _first(record.z, 0.0),
        ),
        scale=_resolve_scale(record),
        rotation=_resolve_rotation(record),
        opacity=_resolve_opacity(record),
        color_dc=_resolve_color_dc(record),
        color_rest=tuple(_first(v, 0.0) for v in record.f_rest),
    )


def process_vertex(raw: dict[str, float]) -> Splat:
    return to_splat(VertexRecord.from_raw(raw))
