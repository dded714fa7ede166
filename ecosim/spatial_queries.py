"""
Environment query service.

Read-only functions layered on the spatial entity index and the grid
oracle: "what is near me and visible". Nothing here mutates the world.

Distances are squared tile distances throughout.
"""

from typing import Callable, List, Optional, TYPE_CHECKING

from .constants import MATE_RADIUS_DIVISOR, PREDATOR_RADIUS_DIVISOR
from .data_types import Coord, INVALID_COORD, Species, BuildingType, CreatureAction, Surroundings
from .spatial import sqr_distance

if TYPE_CHECKING:
    from .entity import Animal
    from .world import WorldContext


def food_preference_penalty(animal, food) -> int:
    """Default preference: closer food has a lower penalty"""
    return sqr_distance(animal.coord, food.coord)


def sense_food(
    world: 'WorldContext',
    coord: Coord,
    animal: 'Animal',
    food_preference: Callable = food_preference_penalty
):
    """
    Nearest visible food of the animal's diet.

    Gathers living entities of every diet species within view distance,
    sorts them by food_preference (stable, so equal penalties keep
    discovery order) and returns the first one visible from coord.

    Args:
        world: World context
        coord: Tile the animal senses from
        animal: Hungry animal
        food_preference: (animal, candidate) -> penalty, lower wins

    Returns:
        Living entity or None
    """
    food_sources = []
    for prey in Species:
        if prey not in animal.diet:
            continue
        for candidate in world.species_maps[prey].query_radius(coord, world.view_distance):
            if candidate.alive and candidate is not animal:
                food_sources.append(candidate)

    food_sources.sort(key=lambda food: food_preference(animal, food))

    for food in food_sources:
        if world.grid.is_visible(coord, food.coord):
            return food

    return None


def sense_water(world: 'WorldContext', coord: Coord) -> Coord:
    """
    Precomputed nearest visible water tile, if within view distance.

    Returns:
        Water tile or INVALID_COORD
    """
    water = world.grid.nearest_visible_water(coord)
    if water != INVALID_COORD:
        if sqr_distance(coord, water) <= world.view_distance * world.view_distance:
            return water
    return INVALID_COORD


def sense_potential_mates(world: 'WorldContext', coord: Coord, animal: 'Animal') -> List['Animal']:
    """
    Same-species animals of the opposite sex looking for a mate.

    Candidates are within half the view distance, unmated, and currently
    searching for a mate. Order follows the index scan.
    """
    radius = world.view_distance / MATE_RADIUS_DIVISOR
    potential_mates = []

    for candidate in world.species_maps[animal.species].query_radius(coord, radius):
        if candidate is animal or not candidate.alive:
            continue
        if candidate.genes.is_male == animal.genes.is_male:
            continue
        if candidate.mate_id is None and candidate.current_action is CreatureAction.SEARCHING_FOR_MATE:
            potential_mates.append(candidate)

    return potential_mates


def sense_predators(world: 'WorldContext', animal: 'Animal') -> Optional['Animal']:
    """
    Nearest hunting predator that can see the animal.

    Looks within view_distance / 5 for animals of every species that preys
    on this one, keeps those going after food and in line of sight.

    Returns:
        Nearest such predator or None
    """
    radius = world.view_distance / PREDATOR_RADIUS_DIVISOR
    min_dist = radius * radius + 1
    predator = None

    for hunter_species in world.predators_by_species[animal.species]:
        for hunter in world.species_maps[hunter_species].query_radius(animal.coord, radius):
            if hunter is animal or not hunter.alive:
                continue
            if not world.grid.is_visible(animal.coord, hunter.coord):
                continue
            if hunter.current_action is not CreatureAction.GOING_TO_FOOD:
                continue
            dist = sqr_distance(animal.coord, hunter.coord)
            if dist < min_dist:
                predator = hunter
                min_dist = dist

    return predator


def sense_nearest_building(
    world: 'WorldContext',
    coord: Coord,
    radius: float,
    building_type: BuildingType = BuildingType.HOUSE
):
    """
    Nearest building of a type strictly within radius (linear scan).

    Returns:
        Building or None
    """
    best_dist = radius * radius
    nearest = None
    for building in world.building_maps[building_type].entities():
        dist = sqr_distance(coord, building.coord)
        if dist < best_dist:
            best_dist = dist
            nearest = building
    return nearest


def sense(world: 'WorldContext', coord: Coord) -> Surroundings:
    """Closest plant (no visibility test) and precomputed nearest water"""
    return Surroundings(
        nearest_food_source=world.species_maps[Species.PLANT].closest_entity(coord, world.view_distance),
        nearest_water_tile=world.grid.nearest_visible_water(coord)
    )
