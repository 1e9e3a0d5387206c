#!/usr/bin/env python3
"""Write a small synthetic Gaussian splat PLY for viewer debugging.

Usage:
    python scripts/generate_test_ply.py
    python scripts/generate_test_ply.py --fixture orthogonal --output data/orthogonal.ply
    python scripts/generate_test_ply.py --ascii --byte-order ">"
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from splats.encoder import write_gaussian_ply
from splats.fixtures import FIXTURES

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic splat PLY")
    parser.add_argument("--fixture", choices=sorted(FIXTURES), default="ring")
    parser.add_argument("--output", type=Path, default=None,
                        help="Output path (default: data/<fixture>.ply)")
    parser.add_argument("--ascii", action="store_true", help="Write ascii instead of binary")
    parser.add_argument("--byte-order", choices=["<", ">"], default="<",
                        help="Binary byte order (default little endian)")
    args = parser.parse_args()

    output = args.output or Path(__file__).parent.parent / "data" / f"{args.fixture}.ply"
    data = FIXTURES[args.fixture]()
    write_gaussian_ply(output, data, text=args.ascii, byte_order=args.byte_order)
    logger.info(f"Wrote {len(data)} splats ({args.fixture}) to {output}")


if __name__ == "__main__":
    main()
