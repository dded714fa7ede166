"""
World context.

Explicitly constructed container for everything a query or decision needs:
the terrain oracle, one spatial index per species and building type, the
predator/prey tables, the live-entity registry used to resolve weak
references, the simulation clock and the behavior RNG.

Created once at world setup and passed to every query and decision call.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from .behavior import choose_next_action
from .data_types import (
    Coord, Species, BuildingType, EntityKind, CauseOfDeath,
    SpeciesConfig, SimulationConfig
)
from .entity import Animal, Plant, House
from .grid import GridOracle, PathFinder
from .rng import make_rng, random_genes
from .spatial_index import EntityMap


def build_predator_prey_tables(
    species_registry: Dict[Species, SpeciesConfig]
) -> Tuple[Dict[Species, List[Species]], Dict[Species, List[Species]]]:
    """
    Derive prey and predator lists for every species from configured diets.

    Args:
        species_registry: Species -> SpeciesConfig

    Returns:
        Tuple of (prey_by_species, predators_by_species), each covering every
        Species member, lists in enum declaration order
    """
    prey_by_species = {s: [] for s in Species}
    predators_by_species = {s: [] for s in Species}

    for hunter in Species:
        config = species_registry.get(hunter)
        if config is None or config.kind is not EntityKind.ANIMAL:
            continue
        for hunted in Species:
            if hunted in config.diet:
                prey_by_species[hunter].append(hunted)
                predators_by_species[hunted].append(hunter)

    return prey_by_species, predators_by_species


class WorldContext:
    """
    Shared simulation state for one world.

    Attributes:
        grid: Terrain oracle
        simulation: Global simulation settings
        species_registry: Species -> SpeciesConfig
        species_maps: Species -> EntityMap
        building_maps: BuildingType -> EntityMap
        prey_by_species / predators_by_species: Relation tables
        entities: instance_id -> live living entity (registry for weak refs)
        buildings: instance_id -> live building
        time: Simulation clock (seconds)
        rng: Behavior generator (exploration, rest choice, genes)
    """

    def __init__(
        self,
        grid: GridOracle,
        species_registry: Dict[Species, SpeciesConfig],
        simulation: Optional[SimulationConfig] = None,
        seed: int = 0,
        path_finder: Optional[PathFinder] = None
    ):
        """
        Args:
            grid: Terrain oracle built for this world
            species_registry: Species -> SpeciesConfig
            simulation: Global settings (defaults if None)
            seed: World seed
            path_finder: Path-finding collaborator (A* over grid if None)
        """
        self.grid = grid
        self.simulation = simulation if simulation is not None else SimulationConfig()
        self.species_registry = species_registry
        self.seed = seed
        self.view_distance = self.simulation.view_distance

        region_size = self.simulation.region_size
        self.species_maps: Dict[Species, EntityMap] = {
            s: EntityMap(grid.size, region_size) for s in Species
        }
        self.building_maps: Dict[BuildingType, EntityMap] = {
            b: EntityMap(grid.size, region_size) for b in BuildingType
        }
        self.prey_by_species, self.predators_by_species = build_predator_prey_tables(species_registry)

        self.entities: Dict[str, object] = {}
        self.buildings: Dict[str, House] = {}
        self.path_finder = path_finder if path_finder is not None else PathFinder(grid)
        self.rng = make_rng(seed, "behaviour")
        self.time: float = 0.0

        # Telemetry
        self.births: int = 0
        self.death_counts: Dict[Tuple[str, str], int] = defaultdict(int)

        self._next_index: Dict[str, int] = defaultdict(int)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def resolve(self, instance_id: Optional[str]):
        """Live entity for a weak reference, or None if gone"""
        if instance_id is None:
            return None
        return self.entities.get(instance_id)

    def population(self, species: Species) -> int:
        """Live count for one species (O(1))"""
        return self.species_maps[species].count()

    def _new_instance_id(self, prefix: str) -> str:
        index = self._next_index[prefix]
        self._next_index[prefix] += 1
        return f"{prefix}-{index:04d}"

    # ------------------------------------------------------------------
    # Spawner / factory
    # ------------------------------------------------------------------

    def instantiate(self, species: Species, coord: Coord):
        """
        Create (but do not register) a new entity of a species.

        Args:
            species: Species to create; must be in the registry
            coord: Tile the entity starts on

        Returns:
            Animal or Plant

        Raises:
            KeyError: Species has no configuration
        """
        config = self.species_registry[species]
        instance_id = self._new_instance_id(species.value)
        position = self.grid.tile_centre(coord)

        if config.kind is EntityKind.PLANT:
            return Plant(
                instance_id=instance_id,
                species=species,
                coord=coord,
                position=position,
                amount=config.plant.initial_amount,
                max_amount=config.plant.initial_amount,
                regrowth_time=config.plant.regrowth_time
            )

        return Animal(
            instance_id=instance_id,
            species=species,
            coord=coord,
            position=position,
            config=config,
            diet=set(config.diet),
            genes=random_genes(self.rng)
        )

    def spawn(self, species: Species, coord: Coord, **initial_state):
        """
        Instantiate, register and (for animals) make the first decision.

        Args:
            species: Species to create
            coord: Tile the entity starts on
            **initial_state: Field values set before registration
                (e.g. hunger=0.1 for initial populations)

        Returns:
            The new entity
        """
        entity = self.instantiate(species, coord)
        for name, value in initial_state.items():
            setattr(entity, name, value)
        self.register_birth(entity, coord)
        if entity.kind is EntityKind.ANIMAL:
            entity.last_action_choose_time = self.time
            choose_next_action(entity, self)
        return entity

    # ------------------------------------------------------------------
    # Index mutation entry points
    # ------------------------------------------------------------------

    def register_birth(self, entity, coord: Coord) -> bool:
        """
        Start tracking an entity at coord.

        Returns:
            False if the index rejected the entity (already present)
        """
        if entity.kind is EntityKind.BUILDING:
            if not self.building_maps[entity.building_type].add(entity, coord):
                return False
            self.buildings[entity.instance_id] = entity
        else:
            if not self.species_maps[entity.species].add(entity, coord):
                return False
            self.entities[entity.instance_id] = entity
        entity.coord = coord
        return True

    def register_move(self, entity, from_coord: Coord, to_coord: Coord) -> bool:
        return self.species_maps[entity.species].move(entity, from_coord, to_coord)

    def register_death(self, entity, cause: CauseOfDeath) -> bool:
        """
        Stop tracking an entity and mark it dead.

        Dead entities are ignored (a target may be claimed twice in a tick).

        Returns:
            True if the entity was alive
        """
        if not entity.alive:
            return False

        if entity.kind is EntityKind.BUILDING:
            self.building_maps[entity.building_type].remove(entity, entity.coord)
            self.buildings.pop(entity.instance_id, None)
        else:
            self.species_maps[entity.species].remove(entity, entity.coord)
            self.entities.pop(entity.instance_id, None)
            self.death_counts[(entity.species.value, cause.value)] += 1

        entity.alive = False
        entity.cause_of_death = cause
        return True

    def cull(self, entity) -> bool:
        """External kill (environmental culling)"""
        return self.register_death(entity, CauseOfDeath.CULLED)

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def get_path(self, start: Coord, goal: Coord) -> List[Coord]:
        return self.path_finder.find_path(start, goal)

    # ------------------------------------------------------------------
    # Buildings
    # ------------------------------------------------------------------

    def build_house(self, builder: Animal) -> Optional[House]:
        """
        Build a house on the builder's tile for the builder and its mate.

        Returns:
            The new House, or None if the builder has no live mate
        """
        mate = self.resolve(builder.mate_id)
        if mate is None or not builder.alive:
            return None

        house = House(
            instance_id=self._new_instance_id(BuildingType.HOUSE.value),
            building_type=BuildingType.HOUSE,
            coord=builder.coord,
            position=self.grid.tile_centre(builder.coord),
            occupant_ids=(builder.instance_id, mate.instance_id)
        )
        self.register_birth(house, builder.coord)
        return house

    def house_is_valid(self, house: House) -> bool:
        return all(self.resolve(occupant) is not None for occupant in house.occupant_ids)

    def update_buildings(self) -> int:
        """
        Remove houses whose occupants are gone.

        Returns:
            Number of houses removed
        """
        removed = 0
        for house in list(self.buildings.values()):
            if not self.house_is_valid(house):
                self.register_death(house, CauseOfDeath.ABANDONED)
                removed += 1
        return removed
