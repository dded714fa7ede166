"""
Headless simulation runner.

Loads a data pack, runs a fixed number of ticks and prints periodic tick
summaries plus the final population and death tallies.

Usage:
    python scripts/run_simulation.py --ticks 3000 --every 100
"""

import argparse
import json
from pathlib import Path

from ecosim.constants import TICK_SUMMARY_INTERVAL
from ecosim.simulation import EcosystemSimulation

REPO_ROOT = Path(__file__).resolve().parent.parent


def parse_args():
    parser = argparse.ArgumentParser(description="Run the ecosystem simulation headless")
    parser.add_argument('--data', type=Path, default=REPO_ROOT / 'data', help="Data pack directory")
    parser.add_argument('--schemas', type=Path, default=REPO_ROOT / 'schemas', help="JSON schema directory")
    parser.add_argument('--world', default='world/meadow.yaml', help="World file relative to the data pack")
    parser.add_argument('--ticks', type=int, default=1000, help="Number of ticks to run")
    parser.add_argument('--every', type=int, default=TICK_SUMMARY_INTERVAL, help="Tick summary interval")
    parser.add_argument('--snapshot', type=Path, default=None, help="Write the final snapshot as JSON")
    return parser.parse_args()


def main():
    args = parse_args()

    sim = EcosystemSimulation.load(args.data, args.schemas, world_file=args.world)
    sim.run(args.ticks, summary_every=args.every)

    snapshot = sim.get_snapshot()

    print()
    print("=" * 80)
    print(f"Finished {snapshot['tick_count']} ticks ({snapshot['time']:.1f}s simulated)")
    print("=" * 80)
    print(f"  Populations: {snapshot['populations']}")
    print(f"  Births:      {snapshot['births']}")
    for key, count in snapshot['deaths'].items():
        print(f"  Deaths {key}: {count}")

    if args.snapshot is not None:
        with open(args.snapshot, 'w') as f:
            json.dump(snapshot, f, indent=2)
        print(f"[OK] Snapshot written to {args.snapshot}")


if __name__ == '__main__':
    main()
