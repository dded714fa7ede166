"""
Ecosystem simulation kernel.

Main simulation class that builds the world from a data pack, owns the
fixed-step tick loop and reports telemetry.
"""

import os
import time
from typing import Dict, List, Optional
from pathlib import Path

from .behavior import update_animal
from .constants import TICK_TIME_WINDOW
from .data_types import Species, EntityKind, SpeciesConfig, WorldConfig
from .grid import GridOracle, parse_tiles, compute_shore
from .loader import load_all_data
from .spawning import plant_trees, spawn_initial_populations
from .world import WorldContext


class EcosystemSimulation:
    """
    Main simulation class for the tile-grid ecosystem.

    Manages world setup, the tick loop and timing statistics. Every tick
    advances the clock by tick_delta_seconds, then updates each live entity
    once in instance_id order.
    """

    def __init__(
        self,
        world_config: WorldConfig,
        species_registry: Dict[Species, SpeciesConfig],
        spawn_limit: Optional[int] = None,
        spawn_only_species: Optional[List[Species]] = None
    ):
        """
        Initialize simulation from loaded configuration.

        Args:
            world_config: World definition (terrain, seed, populations)
            species_registry: Species -> SpeciesConfig
            spawn_limit: Optional limit on spawned entities (for testing)
            spawn_only_species: Optional list of species to spawn (for testing)
        """
        self.world_config = world_config
        self.species_registry = species_registry
        self.seed = world_config.seed

        # Simulation state
        self.tick_count: int = 0
        self.dt: float = world_config.simulation.tick_delta_seconds

        # Performance metrics
        self._tick_times: List[float] = []
        self._tick_time_sum: float = 0.0
        self._tick_time_window: int = TICK_TIME_WINDOW  # Rolling average window

        # Terrain (shore is fixed before trees cover any land)
        walkable, water = parse_tiles(world_config.terrain.tiles)
        shore = compute_shore(water, walkable)
        self.tree_count = plant_trees(walkable, self.seed, world_config.terrain.tree_probability)

        grid = GridOracle(walkable, shore, view_distance=world_config.simulation.view_distance)
        print(f"  Terrain: {grid.size}x{grid.size} tiles, "
              f"{len(grid.walkable_coords)} walkable, {self.tree_count} trees")

        self.world = WorldContext(
            grid=grid,
            species_registry=species_registry,
            simulation=world_config.simulation,
            seed=self.seed
        )

        # Spawn entities
        print(f"Spawning entities (limit={spawn_limit}, species={spawn_only_species})...")
        spawned = spawn_initial_populations(
            self.world,
            world_config.populations,
            self.seed,
            limit=spawn_limit,
            only_species=spawn_only_species
        )

        print(f"[OK] Simulation initialized: {len(spawned)} entities, "
              f"dt={self.dt}s, seed={self.seed}")

    @classmethod
    def load(
        cls,
        data_root: Path,
        schema_dir: Optional[Path] = None,
        world_file: str = "world/meadow.yaml",
        spawn_limit: Optional[int] = None,
        spawn_only_species: Optional[List[Species]] = None
    ) -> 'EcosystemSimulation':
        """
        Initialize simulation from data pack.

        Args:
            data_root: Path to data directory
            schema_dir: Optional path to JSON schemas
            world_file: World YAML relative to data_root
            spawn_limit: Optional limit on spawned entities (for testing)
            spawn_only_species: Optional list of species to spawn (for testing)
        """
        print("Loading data pack...")
        data = load_all_data(data_root, schema_dir, world_file=world_file)
        print(f"  World: {data['world'].name} ({len(data['species'])} species)")

        return cls(
            data['world'],
            data['species'],
            spawn_limit=spawn_limit,
            spawn_only_species=spawn_only_species
        )

    def tick(self):
        """
        Advance the simulation by one fixed step.

        Entities born during the tick are first updated on the next one;
        entities that die mid-tick are skipped.
        """
        start_time = time.perf_counter()

        world = self.world
        world.time += self.dt

        for entity in sorted(world.entities.values(), key=lambda e: e.instance_id):
            if not entity.alive:
                continue
            if entity.kind is EntityKind.ANIMAL:
                update_animal(entity, world, self.dt)
            elif entity.kind is EntityKind.PLANT:
                entity.regrow(self.dt)

        world.update_buildings()

        # Increment tick count
        self.tick_count += 1

        # Record timing
        elapsed = time.perf_counter() - start_time
        self._record_tick_time(elapsed)

        # Debug invariant check (zero perf impact when env var not set)
        # Invariant: the indexes hold exactly the registered live entities
        if os.getenv('SIM_DEBUG_INVARIANTS') == '1':
            indexed = sum(m.count() for m in world.species_maps.values())
            assert indexed == len(world.entities), \
                f"indexed entities ({indexed}) != registry size ({len(world.entities)})"
            indexed_buildings = sum(m.count() for m in world.building_maps.values())
            assert indexed_buildings == len(world.buildings), \
                f"indexed buildings ({indexed_buildings}) != registry size ({len(world.buildings)})"

    def run(self, ticks: int, summary_every: Optional[int] = None):
        """
        Run a fixed number of ticks.

        Args:
            ticks: Number of ticks
            summary_every: Print a tick summary every N ticks (None = never)
        """
        for _ in range(ticks):
            self.tick()
            if summary_every and self.tick_count % summary_every == 0:
                self.print_tick_summary()

    def get_populations(self) -> Dict[str, int]:
        """Live count per species with at least one member"""
        return {
            species.value: self.world.population(species)
            for species in Species
            if self.world.population(species) > 0
        }

    def get_tick_stats(self) -> dict:
        """
        Get current tick timing statistics.

        Returns:
            Dict with tick_count, avg_tick_time_ms, last_tick_time_ms
        """
        if not self._tick_times:
            return {
                'tick_count': self.tick_count,
                'avg_tick_time_ms': 0.0,
                'last_tick_time_ms': 0.0
            }

        avg_time = self._tick_time_sum / len(self._tick_times)
        last_time = self._tick_times[-1]

        return {
            'tick_count': self.tick_count,
            'avg_tick_time_ms': avg_time * 1000.0,
            'last_tick_time_ms': last_time * 1000.0
        }

    def _record_tick_time(self, elapsed: float):
        """
        Record tick timing for rolling average.

        Args:
            elapsed: Tick time in seconds
        """
        self._tick_times.append(elapsed)
        self._tick_time_sum += elapsed

        # Maintain rolling window
        if len(self._tick_times) > self._tick_time_window:
            removed = self._tick_times.pop(0)
            self._tick_time_sum -= removed

    def get_snapshot(self) -> dict:
        """
        Get complete simulation state snapshot.

        Returns:
            Dict with tick_count, time, populations, telemetry, entities,
            buildings and timing
        """
        world = self.world
        entities = sorted(world.entities.values(), key=lambda e: e.instance_id)
        buildings = sorted(world.buildings.values(), key=lambda b: b.instance_id)

        return {
            'tick_count': self.tick_count,
            'time': world.time,
            'entity_count': len(entities),
            'populations': self.get_populations(),
            'births': world.births,
            'deaths': {
                f"{species}:{cause}": count
                for (species, cause), count in sorted(world.death_counts.items())
            },
            'entities': [e.to_dict() for e in entities],
            'buildings': [b.to_dict() for b in buildings],
            'timing': self.get_tick_stats()
        }

    def print_tick_summary(self):
        """Print tick summary to console (lightweight monitoring)"""
        stats = self.get_tick_stats()
        populations = " ".join(f"{name}={count}" for name, count in self.get_populations().items())
        print(f"Tick {stats['tick_count']:5d} | "
              f"t={self.world.time:7.1f}s | "
              f"Avg: {stats['avg_tick_time_ms']:6.3f} ms | "
              f"Last: {stats['last_tick_time_ms']:6.3f} ms | "
              f"{populations}")
