#!/usr/bin/env python3
"""Print a splat PLY's header, record layout and first decoded splats.

Usage:
    python scripts/inspect_ply.py scene.ply
    python scripts/inspect_ply.py scene.ply --limit 10 --raw
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from splats.attributes import process_vertex
from splats.decoder import read_record
from splats.errors import PlyDecodeError
from splats.header import parse_header
from splats.layout import build_layout


def main():
    parser = argparse.ArgumentParser(description="Inspect a Gaussian splat PLY")
    parser.add_argument("path", type=Path)
    parser.add_argument("--limit", type=int, default=3, help="Records to print")
    parser.add_argument("--raw", action="store_true", help="Print raw property values too")
    args = parser.parse_args()

    buffer = args.path.read_bytes()
    try:
        header = parse_header(buffer)
    except PlyDecodeError as e:
        print(f"Invalid header: {e}", file=sys.stderr)
        sys.exit(1)

    layout = build_layout(header.properties)
    print(f"File:      {args.path} ({len(buffer):,} bytes)")
    print(f"Format:    {header.format}")
    print(f"Vertices:  {header.vertex_count:,}")
    print(f"Header:    {header.header_byte_length} bytes")
    print(f"Record:    {layout.record_byte_size} bytes")
    if header.is_binary:
        body = len(buffer) - header.header_byte_length
        print(f"Body:      {body:,} bytes (expected {layout.required_bytes(header.vertex_count):,})")

    print(f"\n{'offset':>6}  {'type':<8} name")
    for prop in header.properties:
        field = layout.fields[prop.name]
        print(f"{field.byte_offset:>6}  {prop.scalar_type:<8} {prop.name}")

    if not header.is_binary:
        return
    n = min(args.limit, header.vertex_count)
    available = (len(buffer) - header.header_byte_length) // max(layout.record_byte_size, 1)
    for i in range(min(n, available)):
        raw = read_record(buffer, header, layout, i)
        splat = process_vertex(raw)
        print(f"\n[{i}]")
        if args.raw:
            print("  raw:      " + ", ".join(f"{k}={v:.4g}" for k, v in raw.items()))
        print(f"  position: {tuple(round(v, 4) for v in splat.position)}")
        print(f"  scale:    {tuple(round(v, 4) for v in splat.scale)}")
        print(f"  rotation: {tuple(round(v, 4) for v in splat.rotation)}")
        print(f"  opacity:  {splat.opacity:.4f}")
        print(f"  color_dc: {tuple(round(v, 4) for v in splat.color_dc)}")


if __name__ == "__main__":
    main()
