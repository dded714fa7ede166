"""
World setup spawning.

Places trees on the terrain and seeds the initial populations on distinct
random walkable tiles, deterministically from the world seed.
"""

import numpy as np
from typing import List, Optional

from .constants import SPAWN_HUNGER, SPAWN_THIRST
from .data_types import EntityKind, PopulationConfig, Species
from .rng import make_rng


def plant_trees(walkable: np.ndarray, world_seed: int, probability: float) -> int:
    """
    Turn walkable tiles into unwalkable trees at random.

    Args:
        walkable: (size, size) boolean mask, modified in place
        world_seed: World generation seed
        probability: Chance that a walkable tile becomes a tree

    Returns:
        Number of trees planted
    """
    if probability <= 0.0:
        return 0

    rng = make_rng(world_seed, "trees")
    trees = walkable & (rng.random(walkable.shape) < probability)
    walkable[trees] = False
    return int(trees.sum())


def spawn_initial_populations(
    world,
    populations: List[PopulationConfig],
    world_seed: int,
    limit: Optional[int] = None,
    only_species: Optional[List[Species]] = None
) -> list:
    """
    Spawn every configured population on distinct walkable tiles.

    Tiles are drawn without replacement from one shuffled list shared by
    all populations, so no two spawned entities share a tile. Animals
    start slightly hungry and thirsty and make their first decision on
    spawn.

    Args:
        world: WorldContext to populate
        populations: Species and counts, spawned in order
        world_seed: World generation seed
        limit: Optional limit on total entities spawned (for testing)
        only_species: Optional species filter (for testing)

    Returns:
        List of spawned entities

    Example (test override):
        spawned = spawn_initial_populations(world, pops, seed, limit=10, only_species=[Species.RABBIT])
    """
    rng = make_rng(world_seed, "spawn")
    free_tiles = list(world.grid.walkable_coords)
    order = rng.permutation(len(free_tiles))
    next_slot = 0

    spawned = []

    for population in populations:
        species = population.species

        # Filter by only_species if specified
        if only_species and species not in only_species:
            continue

        if species not in world.species_registry:
            print(f"[WARN] Species {species.value} not found in registry, skipping")
            continue

        # Determine spawn count (respect limit)
        count = population.count
        if limit is not None:
            count = min(count, limit - len(spawned))
        if count <= 0:
            break

        initial_state = {}
        if world.species_registry[species].kind is EntityKind.ANIMAL:
            initial_state = {'hunger': SPAWN_HUNGER, 'thirst': SPAWN_THIRST}

        for _ in range(count):
            if next_slot >= len(order):
                print(f"[WARN] No free tiles left, {species.value} population truncated")
                return spawned

            coord = free_tiles[order[next_slot]]
            next_slot += 1

            spawned.append(world.spawn(species, coord, **initial_state))

    return spawned
