"""Typed scalar reads for fixed-size PLY records."""

import struct

from splats.errors import UnsupportedScalarTypeError


# PLY scalar token -> (struct code, byte width)
SCALAR_TYPES: dict[str, tuple[str, int]] = {
    "float": ("f", 4),
    "double": ("d", 8),
    "int": ("i", 4),
    "uint": ("I", 4),
    "short": ("h", 2),
    "ushort": ("H", 2),
    "char": ("b", 1),
    "uchar": ("B", 1),
    # Sized aliases, common in exporters
    "float32": ("f", 4),
    "float64": ("d", 8),
    "int8": ("b", 1),
    "uint8": ("B", 1),
    "int16": ("h", 2),
    "uint16": ("H", 2),
    "int32": ("i", 4),
    "uint32": ("I", 4),
}

# Unknown tokens are read as float32
DEFAULT_SCALAR = ("f", 4)


def scalar_size(scalar_type: str) -> int:
    """Byte width of a PLY scalar type. Raises UnsupportedScalarTypeError."""
    try:
        return SCALAR_TYPES[scalar_type][1]
    except KeyError:
        raise UnsupportedScalarTypeError(scalar_type) from None


def scalar_code(scalar_type: str) -> str:
    return SCALAR_TYPES.get(scalar_type, DEFAULT_SCALAR)[0]


def read_scalar(buffer, offset: int, scalar_type: str, little_endian: bool = True) -> float | int:
    """Read one scalar at ``offset`` with the declared endianness."""
    prefix = "<" if little_endian else ">"
    return struct.unpack_from(prefix + scalar_code(scalar_type), buffer, offset)[0]


def record_struct(layout, little_endian: bool = True) -> struct.Struct:
    """Compile one vertex record of ``layout`` into a struct.Struct.

    Fields are packed back to back (``<``/``>`` disable alignment padding), so
    the struct size always equals ``layout.record_byte_size``.
    """
    prefix = "<" if little_endian else ">"
    fmt = prefix + "".join(scalar_code(f.scalar_type) for f in layout.fields.values())
    return struct.Struct(fmt)
