"""
Entity runtime representation.

Entities are tagged variants (EntityKind): animals, plants and buildings.
Each has a unique instance_id, a tile coordinate and a world position.
References between entities (food target, mate, occupants) are stored as
instance_ids and resolved through the world registry, never owned.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from .data_types import (
    Coord, INVALID_COORD, Species, BuildingType, EntityKind,
    CreatureAction, CauseOfDeath, Genes, SpeciesConfig
)
from .constants import INITIAL_SIZE


@dataclass(eq=False)
class LivingEntity:
    """
    Runtime living entity in simulation.

    Attributes:
        instance_id: Unique identifier (format: "{species}-{index:04d}")
        species: Species tag
        coord: Current tile
        position: World position [x, height, y] (tile centre at rest)
        kind: Variant tag
        alive: False once the entity has died
        cause_of_death: Set when alive turns False
    """
    instance_id: str
    species: Species
    coord: Coord
    position: np.ndarray = None
    kind: EntityKind = EntityKind.ANIMAL
    alive: bool = True
    cause_of_death: Optional[CauseOfDeath] = None

    def __post_init__(self):
        """Ensure position is a float64 array"""
        if self.position is None:
            self.position = np.array([self.coord.x, 0.0, self.coord.y], dtype=np.float64)
        elif not isinstance(self.position, np.ndarray):
            self.position = np.array(self.position, dtype=np.float64)
        else:
            self.position = self.position.astype(np.float64, copy=False)

    def to_dict(self) -> dict:
        """
        Serialize read accessors to a JSON-compatible dict.

        Returns:
            Dict with identity, species, kind, tile, position and alive flag
        """
        return {
            'instance_id': self.instance_id,
            'species': self.species.value,
            'kind': self.kind.value,
            'coord': [self.coord.x, self.coord.y],
            'position': self.position.tolist(),
            'alive': self.alive,
        }


@dataclass(eq=False)
class Animal(LivingEntity):
    """
    Mobile agent driven by the behavior state machine.

    Vitals (hunger, thirst, size, reproduction_will) live in [0, 1].
    Movement fields describe the hop currently being animated.
    """
    kind: EntityKind = EntityKind.ANIMAL
    config: Optional[SpeciesConfig] = None
    diet: Set[Species] = field(default_factory=set)
    genes: Genes = field(default_factory=lambda: Genes(is_male=False))

    hunger: float = 0.0
    thirst: float = 0.0
    size: float = INITIAL_SIZE
    reproduction_will: float = 0.0

    current_action: CreatureAction = CreatureAction.EXPLORING
    food_target_id: Optional[str] = None
    water_target: Coord = INVALID_COORD
    mate_id: Optional[str] = None
    rendezvous: Coord = INVALID_COORD
    heading: float = 0.0

    path: Optional[List[Coord]] = None
    path_index: int = 0
    path_origin: Coord = INVALID_COORD

    animating_movement: bool = False
    move_from_coord: Coord = INVALID_COORD
    move_target_coord: Coord = INVALID_COORD
    move_start_pos: Optional[np.ndarray] = None
    move_target_pos: Optional[np.ndarray] = None
    move_time: float = 0.0
    move_speed_factor: float = 1.0
    move_arc_height_factor: float = 1.0

    last_action_choose_time: float = 0.0

    def __post_init__(self):
        super().__post_init__()
        if self.move_from_coord == INVALID_COORD:
            self.move_from_coord = self.coord
        if self.config is not None and not self.diet:
            self.diet = set(self.config.diet)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'is_male': self.genes.is_male,
            'hunger': self.hunger,
            'thirst': self.thirst,
            'size': self.size,
            'reproduction_will': self.reproduction_will,
            'current_action': self.current_action.value,
            'mate_id': self.mate_id,
        })
        return data


@dataclass(eq=False)
class Plant(LivingEntity):
    """Stationary food with a consumable amount"""
    kind: EntityKind = EntityKind.PLANT
    amount: float = 1.0
    max_amount: float = 1.0
    regrowth_time: float = 0.0  # seconds to regrow from 0 to max, 0 = never

    def regrow(self, dt: float):
        if self.regrowth_time > 0 and self.amount < self.max_amount:
            self.amount = min(self.max_amount, self.amount + dt * self.max_amount / self.regrowth_time)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['amount'] = self.amount
        return data


@dataclass(eq=False)
class Building:
    """Stationary structure tracked in a building index"""
    instance_id: str
    building_type: BuildingType
    coord: Coord
    position: np.ndarray = None
    kind: EntityKind = EntityKind.BUILDING
    alive: bool = True
    cause_of_death: Optional[CauseOfDeath] = None

    def __post_init__(self):
        if self.position is None:
            self.position = np.array([self.coord.x, 0.0, self.coord.y], dtype=np.float64)

    def to_dict(self) -> dict:
        return {
            'instance_id': self.instance_id,
            'building_type': self.building_type.value,
            'kind': self.kind.value,
            'coord': [self.coord.x, self.coord.y],
            'alive': self.alive,
        }


@dataclass(eq=False)
class House(Building):
    """Home of a mated pair; invalid once either occupant is gone"""
    occupant_ids: Tuple[str, str] = ("", "")


def consume(food, requested: float) -> Tuple[float, bool]:
    """
    Take a bite out of a food entity.

    Dispatches on the variant tag:
    - PLANT: removes min(requested, remaining) from the plant
    - ANIMAL: the prey is taken whole; the full requested amount is yielded

    Args:
        food: Living entity being eaten
        requested: Hunger the eater wants to remove

    Returns:
        Tuple of (amount actually consumed, whether the food is exhausted)
    """
    if food.kind is EntityKind.PLANT:
        eaten = min(requested, food.amount)
        food.amount -= eaten
        return eaten, food.amount <= 0.0
    elif food.kind is EntityKind.ANIMAL:
        return requested, True
    else:
        return 0.0, False
