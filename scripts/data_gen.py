#!/usr/bin/env python3
"""
Data Generator - emits random house point events

Writes one JSON event per line to stdout. The API server runs this script
when POST /generator/start is called and ingests every line.

Usage:
    python scripts/data_gen.py [--interval SECONDS] [--count N] [--seed N]
"""

import argparse
import json
import random
import sys
import time
from datetime import datetime, timezone
from uuid import uuid4

HOUSES = ["Gryffindor", "Hufflepuff", "Ravenclaw", "Slytherin"]


def generate_event(rng: random.Random) -> dict:
    """Build one random point event"""
    return {
        "id": str(uuid4()),
        "category": rng.choice(HOUSES),
        "points": rng.randint(-10, 30),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Emit random house point events as JSON lines")
    parser.add_argument("--interval", type=float, default=1.0, help="Seconds between events")
    parser.add_argument("--count", type=int, default=0, help="Number of events to emit (0 = forever)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    rng = random.Random(args.seed)

    emitted = 0
    try:
        while args.count == 0 or emitted < args.count:
            print(json.dumps(generate_event(rng)), flush=True)
            emitted += 1
            if args.interval > 0:
                time.sleep(args.interval)
    except (KeyboardInterrupt, BrokenPipeError):
        pass

    print(f"Data generator emitted {emitted} events", file=sys.stderr)


if __name__ == "__main__":
    main()
