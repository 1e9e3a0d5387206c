"""Byte layout of one fixed-size vertex record."""

import logging
from dataclasses import dataclass, field

from splats.errors import UnsupportedScalarTypeError
from splats.header import PlyProperty
from utils.struct_reader import DEFAULT_SCALAR, scalar_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldLayout:
    byte_offset: int
    scalar_type: str
    byte_size: int


@dataclass
class PropertyLayout:
    """Property name -> field placement, in declaration order."""

    fields: dict[str, FieldLayout] = field(default_factory=dict)
    record_byte_size: int = 0

    def required_bytes(self, vertex_count: int) -> int:
        return self.record_byte_size * vertex_count

    def __contains__(self, name: str) -> bool:
        return name in self.fields


def build_layout(properties: list[PlyProperty]) -> PropertyLayout:
    """Accumulate offsets in declaration order.

    Unknown scalar types are tolerated with a 4-byte width, since real
    exporters emit nonstandard tokens.
    """
    layout = PropertyLayout()
    offset = 0
    for prop in properties:
        try:
            size = scalar_size(prop.scalar_type)
        except UnsupportedScalarTypeError as e:
            size = DEFAULT_SCALAR[1]
            logger.warning(f"{e}; reading '{prop.name}' as {size}-byte float")
        layout.fields[prop.name] = FieldLayout(
            byte_offset=offset, scalar_type=prop.scalar_type, byte_size=size
        )
        offset += size
    layout.record_byte_size = offset
    return layout
