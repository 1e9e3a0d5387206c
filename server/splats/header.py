"""PLY header parsing.

The header is the ASCII preamble up to and including ``end_header``. Only the
``vertex`` element is represented; its property order defines the byte order
of every binary record.
"""

import logging
from dataclasses import dataclass, field

from splats.errors import MalformedHeaderError

logger = logging.getLogger(__name__)

FORMATS = ("ascii", "binary_little_endian", "binary_big_endian")


@dataclass(frozen=True)
class PlyProperty:
    name: str
    scalar_type: str


@dataclass
class PlyHeader:
    """Parsed header of a single-element (vertex) PLY file."""

    format: str = "ascii"
    vertex_count: int = 0
    properties: list[PlyProperty] = field(default_factory=list)
    header_byte_length: int = 0  # offset where vertex data begins

    @property
    def little_endian(self) -> bool:
        return self.format != "binary_big_endian"

    @property
    def is_binary(self) -> bool:
        return self.format != "ascii"

    @property
    def property_names(self) -> list[str]:
        return [p.name for p in self.properties]


def _iter_lines(buffer: bytes):
    """Yield (line_bytes, end_offset) where end_offset is past the newline."""
    pos = 0
    size = len(buffer)
    while pos < size:
        nl = buffer.find(b"\n", pos)
        if nl < 0:
            yield buffer[pos:], size
            return
        yield buffer[pos:nl], nl + 1
        pos = nl + 1


def parse_header(buffer: bytes) -> PlyHeader:
    """Parse the PLY preamble at the start of ``buffer``.

    Raises:
        MalformedHeaderError: no ``end_header``, no vertex count, unknown
            format, list properties or duplicate names on the vertex element,
            or a non-vertex element with a non-zero count.
    """
    header = PlyHeader()
    in_header = False
    current_element = None
    vertex_count = None
    seen_names = set()

    for raw_line, end_offset in _iter_lines(buffer):
        line = raw_line.decode("ascii", errors="ignore").strip()

        if not in_header:
            if line == "ply":
                in_header = True
            continue

        if line == "end_header":
            header.header_byte_length = end_offset
            break

        parts = line.split()
        if not parts:
            continue
        keyword = parts[0]

        if keyword == "format":
            if len(parts) < 2 or parts[1] not in FORMATS:
                raise MalformedHeaderError(f"Unsupported PLY format line: {line!r}")
            header.format = parts[1]
        elif keyword == "element":
            if len(parts) < 3:
                raise MalformedHeaderError(f"Malformed element line: {line!r}")
            try:
                count = int(parts[2])
            except ValueError:
                raise MalformedHeaderError(f"Malformed element count: {line!r}") from None
            if count < 0:
                raise MalformedHeaderError(f"Negative element count: {line!r}")
            current_element = parts[1]
            if current_element == "vertex":
                vertex_count = count
            elif count > 0:
                raise MalformedHeaderError(
                    f"Unsupported element '{current_element}' with {count} entries; "
                    f"only 'vertex' is supported"
                )
            else:
                logger.warning(f"Skipping empty PLY element '{current_element}'")
        elif keyword == "property":
            if current_element != "vertex":
                continue
            if len(parts) < 3:
                raise MalformedHeaderError(f"Malformed property line: {line!r}")
            if parts[1] == "list":
                raise MalformedHeaderError(f"List properties are not supported on vertex: {line!r}")
            name = parts[2]
            if name in seen_names:
                raise MalformedHeaderError(f"Duplicate vertex property '{name}'")
            seen_names.add(name)
            header.properties.append(PlyProperty(name=name, scalar_type=parts[1]))
        # comment / obj_info and anything else are ignored
    else:
        raise MalformedHeaderError("PLY header has no end_header line")

    if vertex_count is None:
        raise MalformedHeaderError("PLY header does not declare 'element vertex'")

    header.vertex_count = vertex_count
    return header
