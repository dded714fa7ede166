"""
Multi-N performance check for the spatial entity index.

Runs sense_food for every animal at 100, 500, 1000, 2000 plants and reports
median/p90 of the whole sweep.
"""

# Pin threading for stable measurement
import os
os.environ.update({
    'OPENBLAS_NUM_THREADS': '1',
    'MKL_NUM_THREADS': '1',
    'NUMEXPR_NUM_THREADS': '1',
    'OMP_NUM_THREADS': '1'
})

import numpy as np
import time
import gc

from ecosim.data_types import Species, EntityKind, SpeciesConfig, SimulationConfig
from ecosim.grid import GridOracle
from ecosim.rng import make_rng
from ecosim.spatial_queries import sense_food
from ecosim.world import WorldContext

GRID_SIZE = 100
ANIMAL_COUNT = 200


def build_world(plant_count: int, seed: int = 42) -> WorldContext:
    """Open 100x100 meadow with plants and rabbits on distinct random tiles."""
    grid = GridOracle.from_tiles(["." * GRID_SIZE] * GRID_SIZE)
    registry = {
        Species.PLANT: SpeciesConfig(species=Species.PLANT, name="Grass", kind=EntityKind.PLANT),
        Species.RABBIT: SpeciesConfig(
            species=Species.RABBIT, name="Rabbit", kind=EntityKind.ANIMAL, diet={Species.PLANT}
        ),
    }
    world = WorldContext(grid, registry, SimulationConfig(), seed=seed)

    rng = make_rng(seed, "perf")
    tiles = grid.walkable_coords
    order = rng.permutation(len(tiles))

    for i in range(plant_count):
        world.register_birth(world.instantiate(Species.PLANT, tiles[order[i]]), tiles[order[i]])
    for i in range(plant_count, plant_count + ANIMAL_COUNT):
        world.register_birth(world.instantiate(Species.RABBIT, tiles[order[i]]), tiles[order[i]])

    return world


def run_sense_perf_test(plant_count: int, runs: int = 7) -> dict:
    """
    Run sense_food for every rabbit at given plant count.

    Args:
        plant_count: Number of plants on the map
        runs: Number of test runs (default 7 for stable median)

    Returns:
        Dict with p50, p90, min, max, found
    """
    world = build_world(plant_count)
    animals = list(world.species_maps[Species.RABBIT].entities())

    # Warmup
    for animal in animals:
        sense_food(world, animal.coord, animal)

    # Measure (GC disabled for stable timing)
    gc.collect()
    gc.disable()

    times_ns = []
    found = 0
    try:
        for _ in range(runs):
            start = time.perf_counter_ns()
            found = sum(1 for animal in animals if sense_food(world, animal.coord, animal) is not None)
            elapsed_ns = time.perf_counter_ns() - start
            times_ns.append(elapsed_ns)
    finally:
        gc.enable()

    # Statistics
    times_ms = np.array(times_ns) / 1_000_000

    return {
        'plant_count': plant_count,
        'runs': runs,
        'p50_ms': np.percentile(times_ms, 50),
        'p90_ms': np.percentile(times_ms, 90),
        'min_ms': np.min(times_ms),
        'max_ms': np.max(times_ms),
        'found': found
    }


def main():
    """Run multi-N sense_food performance check."""
    print("=" * 80)
    print(f"sense_food Multi-N Performance ({ANIMAL_COUNT} rabbits, {GRID_SIZE}x{GRID_SIZE} grid)")
    print("=" * 80)
    print()

    results = []

    for plant_count in [100, 500, 1000, 2000]:
        print(f"[N = {plant_count}]")

        result = run_sense_perf_test(plant_count, runs=7)

        print(f"  p50: {result['p50_ms']:.3f}ms")
        print(f"  p90: {result['p90_ms']:.3f}ms")
        print(f"  min: {result['min_ms']:.3f}ms, max: {result['max_ms']:.3f}ms")
        print(f"  Rabbits that found food: {result['found']}/{ANIMAL_COUNT}")

        results.append(result)
        print()

    # Summary table
    print("=" * 80)
    print("| Plants | p50 (ms) | p90 (ms) | Found |")
    print("|--------|----------|----------|-------|")
    for r in results:
        print(f"| {r['plant_count']:6d} | {r['p50_ms']:8.3f} | {r['p90_ms']:8.3f} | {r['found']:5d} |")

    print()
    print("=" * 80)


if __name__ == '__main__':
    main()
