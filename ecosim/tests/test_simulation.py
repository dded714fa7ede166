"""
Test the tick driver end to end.

Verifies:
- The meadow data pack loads, spawns and ticks with invariant checks on
- Determinism (same seed = identical results)
- Spawn filters, tile exhaustion warnings and spawn vitals
- Tree placement and plant regrowth
- Snapshots are JSON-compatible
"""

import sys
import json
import numpy as np
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from ecosim.constants import SPAWN_HUNGER, SPAWN_THIRST
from ecosim.data_types import (
    Species, EntityKind, SpeciesConfig, PlantConfig, WorldConfig,
    SimulationConfig, TerrainConfig, PopulationConfig
)
from ecosim.simulation import EcosystemSimulation
from ecosim.spawning import plant_trees

REPO_ROOT = Path(__file__).parent.parent.parent
DATA_ROOT = REPO_ROOT / "data"
SCHEMA_DIR = REPO_ROOT / "schemas"


def tiny_world(tiles, populations, seed=7, tree_probability=0.0):
    return WorldConfig(
        world_id="tiny",
        name="Tiny",
        seed=seed,
        simulation=SimulationConfig(),
        terrain=TerrainConfig(tiles=tiles, tree_probability=tree_probability),
        populations=populations
    )


def tiny_registry(regrowth_time=0.0):
    return {
        Species.PLANT: SpeciesConfig(
            species=Species.PLANT, name="Grass", kind=EntityKind.PLANT,
            plant=PlantConfig(initial_amount=1.0, regrowth_time=regrowth_time)
        ),
        Species.RABBIT: SpeciesConfig(
            species=Species.RABBIT, name="Rabbit", kind=EntityKind.ANIMAL, diet={Species.PLANT}
        ),
    }


def entity_state(sim):
    return [
        (e['instance_id'], tuple(e['coord']), e['alive'])
        for e in sim.get_snapshot()['entities']
    ]


def test_meadow_runs_with_invariant_checks(monkeypatch):
    """Full data pack: spawn, tick with SIM_DEBUG_INVARIANTS=1"""
    print("=" * 60)
    print("Test: Meadow smoke run")
    print("=" * 60)

    monkeypatch.setenv('SIM_DEBUG_INVARIANTS', '1')
    sim = EcosystemSimulation.load(DATA_ROOT, SCHEMA_DIR)

    populations = sim.get_populations()
    print(f"  Spawned: {populations}")
    assert populations == {'plant': 120, 'rabbit': 30, 'fox': 4}

    for i in range(200):
        sim.tick()
        if (i + 1) % 50 == 0:
            sim.print_tick_summary()

    assert sim.tick_count == 200
    assert abs(sim.world.time - 20.0) < 1e-6

    world = sim.world
    for species, index in world.species_maps.items():
        for entity in index.entities():
            assert entity.alive
            assert index.coord_of(entity) == entity.coord, \
                f"{entity.instance_id} indexed at {index.coord_of(entity)} but stands on {entity.coord}"
            assert world.grid.is_walkable(entity.coord)

    snapshot = sim.get_snapshot()
    json.dumps(snapshot)
    assert snapshot['entity_count'] == len(world.entities)
    print("[OK] 200 ticks with invariant checks\n")


def test_determinism():
    """Same seed = identical entity state"""
    sim1 = EcosystemSimulation.load(DATA_ROOT, SCHEMA_DIR)
    sim2 = EcosystemSimulation.load(DATA_ROOT, SCHEMA_DIR)

    sim1.run(100)
    sim2.run(100)

    assert entity_state(sim1) == entity_state(sim2)
    assert sim1.world.death_counts == sim2.world.death_counts
    assert sim1.world.births == sim2.world.births


def test_spawn_filters_and_vitals():
    sim = EcosystemSimulation.load(
        DATA_ROOT, SCHEMA_DIR,
        spawn_limit=10,
        spawn_only_species=[Species.RABBIT]
    )

    assert sim.get_populations() == {'rabbit': 10}
    for rabbit in sim.world.entities.values():
        assert rabbit.hunger == SPAWN_HUNGER
        assert rabbit.thirst == SPAWN_THIRST

    coords = [e.coord for e in sim.world.entities.values()]
    assert len(set(coords)) == len(coords), "Spawn tiles are drawn without replacement"


def test_spawn_runs_out_of_tiles(capsys):
    config = tiny_world(["...", "...", "..."], [PopulationConfig(Species.RABBIT, 20)])
    sim = EcosystemSimulation(config, tiny_registry())

    assert sim.world.population(Species.RABBIT) == 9
    assert "[WARN]" in capsys.readouterr().out


def test_unknown_population_species_is_skipped(capsys):
    config = tiny_world(
        ["....", "....", "....", "...."],
        [PopulationConfig(Species.DEER, 3), PopulationConfig(Species.PLANT, 2)]
    )
    sim = EcosystemSimulation(config, tiny_registry())

    assert sim.get_populations() == {'plant': 2}
    assert "[WARN] Species deer" in capsys.readouterr().out


def test_plant_trees():
    walkable = np.ones((20, 20), dtype=bool)
    walkable[0, :] = False

    a = walkable.copy()
    b = walkable.copy()
    count_a = plant_trees(a, 42, 0.3)
    count_b = plant_trees(b, 42, 0.3)

    assert count_a == count_b and np.array_equal(a, b), "Tree placement is seeded"
    assert 0 < count_a < 380
    assert int(walkable.sum()) - int(a.sum()) == count_a
    assert not a[0, :].any(), "Unwalkable tiles stay unwalkable"

    untouched = walkable.copy()
    assert plant_trees(untouched, 42, 0.0) == 0
    assert np.array_equal(untouched, walkable)


def test_trees_keep_shore():
    """Shore is fixed before trees cover the land next to it"""
    config = tiny_world(["~....", ".....", ".....", ".....", "....."], [], tree_probability=1.0)
    sim = EcosystemSimulation(config, tiny_registry())

    assert sim.tree_count == 24
    assert sim.world.grid.shore[0, 0]
    assert sim.world.grid.walkable_coords == []


def test_plant_regrowth():
    config = tiny_world(["...", "...", "..."], [PopulationConfig(Species.PLANT, 1)])
    sim = EcosystemSimulation(config, tiny_registry(regrowth_time=10.0))
    plant = next(iter(sim.world.entities.values()))

    plant.amount = 0.5
    sim.run(10)

    assert abs(plant.amount - 0.6) < 1e-9, f"1 s of regrowth at 0.1 per second, got {plant.amount}"

    sim.run(100)
    assert plant.amount == plant.max_amount


def test_tick_stats_and_summary(capsys):
    config = tiny_world(["....", "....", "....", "...."], [PopulationConfig(Species.RABBIT, 2)])
    sim = EcosystemSimulation(config, tiny_registry())

    assert sim.get_tick_stats()['tick_count'] == 0
    sim.run(5, summary_every=5)

    stats = sim.get_tick_stats()
    assert stats['tick_count'] == 5
    assert stats['avg_tick_time_ms'] >= 0.0
    assert "Tick     5" in capsys.readouterr().out
