#!/usr/bin/env python3
"""Drive the simulated robot over the relay socket and save returned frames.

Sends one forward step, then a random forward step or a turn of +/- pi/8
every interval.

Usage:
    python scripts/robot_client.py
    python scripts/robot_client.py --url ws://localhost:8000/ws/robot --interval 5 --steps 20
"""

import argparse
import asyncio
import json
import logging
import math
import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import websockets

from utils.images import decode_data_url, save_png

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

TURN_ANGLE = math.pi / 8


def random_command(rng: random.Random) -> dict:
    if rng.random() < 0.5:
        return {"type": "forward"}
    return {"type": "turn", "value": rng.choice([TURN_ANGLE, -TURN_ANGLE])}


async def run(url: str, interval: float, steps: int | None, output: Path, seed: int | None):
    rng = random.Random(seed)
    async with websockets.connect(url, max_size=None) as ws:
        logger.info(f"Connected to {url}")
        command = {"type": "forward"}
        sent = 0
        while steps is None or sent < steps:
            await ws.send(json.dumps(command))
            sent += 1
            reply = json.loads(await ws.recv())
            if reply.get("type") == "image":
                path = save_png(output, "robot_frame", decode_data_url(reply["data"]))
                robot = reply.get("robot", {})
                logger.info(f"{command['type']}: saved {path.name}, robot at {robot.get('position')}")
            else:
                logger.warning(f"{command['type']}: {reply.get('message', reply)}")
            await asyncio.sleep(interval)
            command = random_command(rng)


def main():
    parser = argparse.ArgumentParser(description="Random-walk robot client")
    parser.add_argument("--url", default="ws://localhost:8000/ws/robot")
    parser.add_argument("--interval", type=float, default=30.0, help="Seconds between commands")
    parser.add_argument("--steps", type=int, default=None, help="Stop after N commands")
    parser.add_argument("--output", type=Path, default=Path("robot_frames"))
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    try:
        asyncio.run(run(args.url, args.interval, args.steps, args.output, args.seed))
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
