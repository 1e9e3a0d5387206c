"""Gaussian splat PLY decoding: raw bytes -> SplatCollection.

One synchronous pass: header -> property layout -> raw vertices -> splats.
Header and truncation errors abort the whole load; nothing partial is returned.
A non-numeric ascii token is read as NaN and falls through the attribute
defaults like any other unusable value.
"""

import asyncio
import logging
import math
import time
from pathlib import Path

from splats.attributes import process_vertex
from splats.errors import PlyDecodeError, TruncatedDataError
from splats.header import PlyHeader, parse_header
from splats.layout import PropertyLayout, build_layout
from splats.model import SplatCollection
from utils.struct_reader import read_scalar, record_struct

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Raw vertex decoding
# ---------------------------------------------------------------------------

def _decode_binary(buffer: bytes, header: PlyHeader, layout: PropertyLayout) -> list[dict]:
    start = header.header_byte_length
    required = start + layout.required_bytes(header.vertex_count)
    if required > len(buffer):
        raise TruncatedDataError(required, len(buffer))
    if required < len(buffer):
        logger.warning(f"Ignoring {len(buffer) - required} trailing bytes after vertex data")

    if header.vertex_count == 0 or layout.record_byte_size == 0:
        return [{} for _ in range(header.vertex_count)]

    names = list(layout.fields)
    record = record_struct(layout, header.little_endian)
    body = memoryview(buffer)[start:required]
    return [dict(zip(names, values)) for values in record.iter_unpack(body)]


def _parse_token(token: str) -> float:
    try:
        return float(token)
    except ValueError:
        logger.warning(f"Non-numeric value {token!r} in ascii vertex data; reading as NaN")
        return math.nan


def _decode_ascii(buffer: bytes, header: PlyHeader) -> list[dict]:
    text = buffer[header.header_byte_length:].decode("ascii", errors="ignore")
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < header.vertex_count:
        logger.warning(
            f"ascii body has {len(lines)} vertex lines, header declares {header.vertex_count}"
        )

    names = header.property_names
    vertices = []
    for line in lines[:header.vertex_count]:
        values = [_parse_token(tok) for tok in line.split()]
        # Short lines leave the trailing properties absent
        vertices.append(dict(zip(names, values)))
    return vertices


def decode_vertices(buffer: bytes, header: PlyHeader, layout: PropertyLayout) -> list[dict]:
    """Decode every vertex record into a transient name -> value mapping."""
    if header.is_binary:
        return _decode_binary(buffer, header, layout)
    return _decode_ascii(buffer, header)


def read_record(buffer: bytes, header: PlyHeader, layout: PropertyLayout, index: int) -> dict:
    """Decode a single binary record field by field (inspection helper)."""
    base = header.header_byte_length + index * layout.record_byte_size
    if base + layout.record_byte_size > len(buffer):
        raise TruncatedDataError(base + layout.record_byte_size, len(buffer))
    return {
        name: read_scalar(buffer, base + f.byte_offset, f.scalar_type, header.little_endian)
        for name, f in layout.fields.items()
    }


# ---------------------------------------------------------------------------
# Splat decoding
# ---------------------------------------------------------------------------

def decode_splats(buffer: bytes) -> SplatCollection:
    """Decode a Gaussian splat PLY held entirely in memory.

    Raises:
        MalformedHeaderError: header problems (see splats.header).
        TruncatedDataError: binary body shorter than declared.
    """
    if not isinstance(buffer, bytes):
        buffer = bytes(buffer)

    t0 = time.time()
    header = parse_header(buffer)
    layout = build_layout(header.properties)
    raw_vertices = decode_vertices(buffer, header, layout)
    splats = tuple(process_vertex(raw) for raw in raw_vertices)

    n_bad_rot = sum(1 for s in splats if any(math.isnan(q) for q in s.rotation))
    if n_bad_rot:
        logger.warning(f"{n_bad_rot} splats have missing or NaN rotation components")

    logger.info(
        f"Decoded {len(splats):,} splats ({header.format}, "
        f"{len(header.properties)} properties) in {time.time() - t0:.2f}s"
    )
    return SplatCollection(
        splats=splats,
        format=header.format,
        vertex_count=header.vertex_count,
        properties=tuple(header.property_names),
    )


def decode_with_fallback(buffer: bytes) -> SplatCollection:
    """Gaussian decode, retried as a plain colored point cloud on failure."""
    try:
        return decode_splats(buffer)
    except PlyDecodeError as e:
        logger.warning(f"Gaussian splat decode failed ({e}); retrying as point cloud")
        from splats.point_cloud import decode_point_cloud
        return decode_point_cloud(buffer)


async def load_splat_file(path: Path, fallback: bool = True) -> SplatCollection:
    """Read the whole file off the event loop, then decode in one pass."""
    buffer = await asyncio.to_thread(Path(path).read_bytes)
    logger.info(f"Read {len(buffer) / 1e6:.1f}MB from {path}")
    if fallback:
        return decode_with_fallback(buffer)
    return decode_splats(buffer)
