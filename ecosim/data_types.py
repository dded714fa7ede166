"""
Data types mirroring YAML schema structures.

These dataclasses are populated by loader.py from YAML files. Enums
define the closed vocabularies (species, buildings, behavior states)
shared by the index, the query layer and the state machine.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Set, NamedTuple, Any
from enum import Enum

from .constants import (
    REGION_SIZE,
    VIEW_DISTANCE,
    TIME_BETWEEN_ACTION_CHOICES,
    TIME_TO_DEATH_BY_HUNGER_DEFAULT,
    TIME_TO_GROWTH_DEFAULT,
    TIME_TO_DEATH_BY_THIRST_DEFAULT,
    EAT_DURATION_DEFAULT,
    DRINK_DURATION_DEFAULT,
    PREDATION_HUNGER_REDUCTION_DEFAULT,
    MOVE_SPEED_DEFAULT,
    MOVE_ARC_HEIGHT_DEFAULT,
    PLANT_INITIAL_AMOUNT_DEFAULT,
    PLANT_REGROWTH_TIME_DEFAULT,
)


# ============================================================================
# Grid Coordinates
# ============================================================================

class Coord(NamedTuple):
    """Integer tile coordinate (x = column, y = row)"""
    x: int
    y: int

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


# Sentinel for "no location"
INVALID_COORD = Coord(-1, -1)


# ============================================================================
# Closed Vocabularies
# ============================================================================

class Species(Enum):
    """Species tags. A diet is a set of these."""
    PLANT = "plant"
    RABBIT = "rabbit"
    FOX = "fox"
    DEER = "deer"
    DUCK = "duck"
    SQUIRREL = "squirrel"
    SHARK = "shark"
    HUMAN = "human"


class BuildingType(Enum):
    HOUSE = "house"


class EntityKind(Enum):
    """Variant tag for entities"""
    ANIMAL = "animal"
    PLANT = "plant"
    BUILDING = "building"


class CreatureAction(Enum):
    """Behavior states of an animal"""
    EXPLORING = "exploring"
    SEARCHING_FOR_MATE = "searching_for_mate"
    GOING_TO_MATE = "going_to_mate"
    GOING_TO_FOOD = "going_to_food"
    GOING_TO_WATER = "going_to_water"
    EATING = "eating"
    DRINKING = "drinking"
    RESTING = "resting"


class CauseOfDeath(Enum):
    HUNGER = "hunger"
    THIRST = "thirst"
    EATEN = "eaten"
    CULLED = "culled"
    ABANDONED = "abandoned"  # Buildings whose occupants are gone


@dataclass
class Genes:
    """Heritable traits of an animal"""
    is_male: bool


# ============================================================================
# Species Definition
# ============================================================================

@dataclass
class VitalRates:
    """Per-species drive rates (seconds for a drive to go from 0 to 1)"""
    time_to_death_by_hunger: float = TIME_TO_DEATH_BY_HUNGER_DEFAULT
    time_to_growth: float = TIME_TO_GROWTH_DEFAULT
    time_to_death_by_thirst: float = TIME_TO_DEATH_BY_THIRST_DEFAULT


@dataclass
class FeedingConfig:
    """Eating and drinking rates"""
    eat_duration: float = EAT_DURATION_DEFAULT
    drink_duration: float = DRINK_DURATION_DEFAULT
    predation_hunger_reduction: float = PREDATION_HUNGER_REDUCTION_DEFAULT


@dataclass
class MovementProperties:
    """Movement capabilities of a species"""
    move_speed: float = MOVE_SPEED_DEFAULT  # straight tiles per second
    move_arc_height: float = MOVE_ARC_HEIGHT_DEFAULT


@dataclass
class PlantConfig:
    """Consumable quantity of a plant species"""
    initial_amount: float = PLANT_INITIAL_AMOUNT_DEFAULT
    regrowth_time: float = PLANT_REGROWTH_TIME_DEFAULT  # 0 = no regrowth


@dataclass
class SpeciesConfig:
    """Complete species definition"""
    species: Species
    name: str
    kind: EntityKind
    diet: Set[Species] = field(default_factory=set)
    vitals: VitalRates = field(default_factory=VitalRates)
    feeding: FeedingConfig = field(default_factory=FeedingConfig)
    movement: MovementProperties = field(default_factory=MovementProperties)
    plant: PlantConfig = field(default_factory=PlantConfig)
    flees_predators: bool = False
    description: Optional[str] = None


# ============================================================================
# World Definition
# ============================================================================

@dataclass
class SimulationConfig:
    """Simulation global defaults"""
    tick_delta_seconds: float = 0.1
    region_size: int = REGION_SIZE
    view_distance: int = VIEW_DISTANCE
    time_between_action_choices: float = TIME_BETWEEN_ACTION_CHOICES


@dataclass
class TerrainConfig:
    """ASCII terrain: '.' land, '~' water, '#' obstacle"""
    tiles: List[str]
    tree_probability: float = 0.0


@dataclass
class PopulationConfig:
    """Initial population of one species"""
    species: Species
    count: int


@dataclass
class WorldConfig:
    """World configuration"""
    world_id: str
    name: str
    seed: int
    simulation: SimulationConfig
    terrain: TerrainConfig
    populations: List[PopulationConfig] = field(default_factory=list)
    description: Optional[str] = None


# ============================================================================
# Query Results
# ============================================================================

@dataclass
class Surroundings:
    """Debug snapshot of what is around a tile"""
    nearest_food_source: Optional[Any] = None
    nearest_water_tile: Coord = INVALID_COORD

    def to_dict(self) -> Dict[str, Any]:
        food = self.nearest_food_source
        return {
            'nearest_food_source': food.instance_id if food is not None else None,
            'nearest_water_tile': list(self.nearest_water_tile),
        }
