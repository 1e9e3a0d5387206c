"""PNG data-URL helpers and export file naming."""

import base64
import binascii
import re
from datetime import datetime, timezone
from pathlib import Path

PNG_DATA_URL_PREFIX = "data:image/png;base64,"
PNG_MAGIC = b"\x89PNG\r\n\x1a\n"

_UNSAFE = re.compile(r"[^0-9A-Za-z_-]")


def to_data_url(png_bytes: bytes) -> str:
    return PNG_DATA_URL_PREFIX + base64.b64encode(png_bytes).decode("ascii")


def decode_data_url(data: str) -> bytes:
    """Decode a PNG data URL (or bare base64). Raises ValueError on bad input."""
    payload = data.removeprefix(PNG_DATA_URL_PREFIX)
    try:
        raw = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e
    if not raw.startswith(PNG_MAGIC):
        raise ValueError("Image data is not a PNG")
    return raw


def timestamp_slug(timestamp: str | None = None) -> str:
    """Filesystem-safe timestamp: ISO separators ``:`` and ``.`` become ``-``."""
    if timestamp is None:
        timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return _UNSAFE.sub("-", timestamp)


def save_png(directory: Path, prefix: str, png_bytes: bytes, timestamp: str | None = None) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{prefix}_{timestamp_slug(timestamp)}.png"
    path.write_bytes(png_bytes)
    return path
