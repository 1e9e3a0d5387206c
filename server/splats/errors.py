"""Decode errors for Gaussian splat PLY files.

Every error is terminal for the load that raised it: no partial collection is
returned. ``UnsupportedScalarTypeError`` is the exception: the layout builder
catches it and falls back to a 4-byte width.
"""


class PlyDecodeError(ValueError):
    """Base class for PLY decode failures."""


class MalformedHeaderError(PlyDecodeError):
    """Header is missing ``end_header``, a vertex count, or uses an unsupported element."""


class TruncatedDataError(PlyDecodeError):
    """Declared vertex data runs past the end of the buffer."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Vertex data needs {required} bytes but only {available} are available"
        )


class UnsupportedScalarTypeError(PlyDecodeError):
    """Property uses a scalar type token outside the PLY type table."""

    def __init__(self, scalar_type: str):
        self.scalar_type = scalar_type
        super().__init__(f"Unsupported PLY scalar type: {scalar_type!r}")
