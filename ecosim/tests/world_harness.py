"""
In-memory world harness.

Builds small deterministic worlds from ASCII terrain rows so scenario tests
do not depend on the data pack. Entities are placed directly on chosen
tiles without making a first decision.
"""

from typing import Dict, List, Optional

from ecosim.data_types import (
    Coord, Species, EntityKind, SpeciesConfig, SimulationConfig,
    VitalRates, FeedingConfig, MovementProperties, PlantConfig
)
from ecosim.grid import GridOracle
from ecosim.world import WorldContext


def open_rows(size: int) -> List[str]:
    """All-land terrain"""
    return ["." * size] * size


def make_registry(
    rabbit_vitals: Optional[VitalRates] = None,
    plant_amount: float = 1.0,
    rabbit_flees: bool = False
) -> Dict[Species, SpeciesConfig]:
    """
    Plant / rabbit / fox food chain with default rates.

    Args:
        rabbit_vitals: Override rabbit vital rates
        plant_amount: Initial amount of every plant
        rabbit_flees: Whether rabbits flee hunting foxes
    """
    return {
        Species.PLANT: SpeciesConfig(
            species=Species.PLANT,
            name="Grass",
            kind=EntityKind.PLANT,
            plant=PlantConfig(initial_amount=plant_amount)
        ),
        Species.RABBIT: SpeciesConfig(
            species=Species.RABBIT,
            name="Rabbit",
            kind=EntityKind.ANIMAL,
            diet={Species.PLANT},
            vitals=rabbit_vitals if rabbit_vitals is not None else VitalRates(),
            feeding=FeedingConfig(),
            movement=MovementProperties(),
            flees_predators=rabbit_flees
        ),
        Species.FOX: SpeciesConfig(
            species=Species.FOX,
            name="Fox",
            kind=EntityKind.ANIMAL,
            diet={Species.RABBIT},
            movement=MovementProperties(move_speed=2.0)
        ),
    }


def build_world(
    rows: List[str],
    seed: int = 42,
    registry: Optional[Dict[Species, SpeciesConfig]] = None,
    view_distance: int = 10,
    region_size: int = 10
) -> WorldContext:
    """
    World context over ASCII terrain.

    Args:
        rows: Equal-length rows of '.', '~' and '#'
        seed: World seed (behavior RNG)
        registry: Species registry (make_registry() if None)
        view_distance: Sense radius in tiles
        region_size: Spatial index region edge length
    """
    simulation = SimulationConfig(view_distance=view_distance, region_size=region_size)
    grid = GridOracle.from_tiles(rows, view_distance=view_distance)
    return WorldContext(
        grid,
        registry if registry is not None else make_registry(),
        simulation,
        seed=seed
    )


def place(world: WorldContext, species: Species, x: int, y: int, **fields):
    """
    Register a new entity on tile (x, y) with the given field values.

    Example:
        rabbit = place(world, Species.RABBIT, 2, 2, hunger=0.5, genes=Genes(is_male=True))
    """
    coord = Coord(x, y)
    entity = world.instantiate(species, coord)
    for name, value in fields.items():
        setattr(entity, name, value)
    world.register_birth(entity, coord)
    return entity
