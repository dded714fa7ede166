"""
Behavior state machine for animals.

Each tick an animal integrates its vitals, then either animates the hop in
progress or handles interactions (eating, drinking) and, once the decision
interval has elapsed, chooses and executes its next action.

Decision points fire when a hop completes or, while stationary, after
time_between_action_choices seconds. Priority logic:
1. Food, if hungrier than thirsty and hunger > 0.3, or still eating and
   thirst below the critical level
2. Water, if thirst > 0.3
3. Mate, if reproductive urge > 0.3
4. Rest (10%) or explore

An animal going to its mate skips the priority logic until the
rendezvous completes.
"""

from typing import TYPE_CHECKING

from .constants import DRIVE_THRESHOLD, CRITICAL_THIRST, REST_PROBABILITY
from .data_types import Coord, INVALID_COORD, CreatureAction, CauseOfDeath, EntityKind
from .entity import consume
from .movement import (
    next_tile_weighted, next_tile_away, move_speed_factor,
    move_arc_height_factor, arc_position
)
from .spatial import are_neighbours, heading_degrees
from .spatial_queries import (
    sense_food, sense_water, sense_potential_mates, sense_predators,
    food_preference_penalty
)
from .vitals import integrate_vitals, check_death

if TYPE_CHECKING:
    from .entity import Animal
    from .world import WorldContext


def update_animal(animal: 'Animal', world: 'WorldContext', dt: float):
    """
    Advance one animal by one tick.

    Args:
        animal: Live animal
        world: World context (clock already advanced)
        dt: Tick length in seconds
    """
    integrate_vitals(animal, animal.config.vitals, dt)

    cause = check_death(animal)
    if cause is not None:
        world.register_death(animal, cause)
        return

    # After moving a single tile the animal chooses its next action
    if animal.animating_movement:
        animate_move(animal, world, dt)
    else:
        handle_interactions(animal, world, dt)
        elapsed = world.time - animal.last_action_choose_time
        if elapsed > world.simulation.time_between_action_choices:
            choose_next_action(animal, world)


def choose_next_action(animal: 'Animal', world: 'WorldContext'):
    """Decision point: pick a behavior state, then act on it"""
    animal.last_action_choose_time = world.time

    # A rendezvous in progress is never abandoned by the priority logic
    if animal.current_action is CreatureAction.GOING_TO_MATE:
        act(animal, world)
        return

    if animal.config.flees_predators:
        predator = sense_predators(world, animal)
        if predator is not None:
            animal.current_action = CreatureAction.EXPLORING
            start_move_to_coord(animal, world, next_tile_away(world.grid, animal.coord, predator.coord, world.rng))
            return

    food = world.resolve(animal.food_target_id)
    currently_eating = (
        animal.current_action is CreatureAction.EATING
        and food is not None
        and animal.hunger > 0
    )

    if (animal.hunger >= animal.thirst and animal.hunger > DRIVE_THRESHOLD) or \
            (currently_eating and animal.thirst < CRITICAL_THIRST):
        find_food(animal, world)
    elif animal.thirst > DRIVE_THRESHOLD:
        find_water(animal, world)
    elif animal.reproduction_will > DRIVE_THRESHOLD:
        animal.current_action = CreatureAction.SEARCHING_FOR_MATE
        find_mate(animal, world)
    elif world.rng.random() < REST_PROBABILITY:
        animal.current_action = CreatureAction.RESTING
    else:
        animal.current_action = CreatureAction.EXPLORING

    act(animal, world)


def find_food(animal: 'Animal', world: 'WorldContext'):
    food = sense_food(world, animal.coord, animal, food_preference_penalty)
    if food is not None:
        animal.current_action = CreatureAction.GOING_TO_FOOD
        animal.food_target_id = food.instance_id
        create_path(animal, world, food.coord)
    else:
        animal.current_action = CreatureAction.EXPLORING


def find_water(animal: 'Animal', world: 'WorldContext'):
    water = sense_water(world, animal.coord)
    if water != INVALID_COORD:
        animal.current_action = CreatureAction.GOING_TO_WATER
        animal.water_target = water
        create_path(animal, world, water)
    else:
        animal.current_action = CreatureAction.EXPLORING


def find_mate(animal: 'Animal', world: 'WorldContext'):
    """
    Pair up with the first eligible candidate (the male initiates).

    Both partners get a mutual link, switch to GOING_TO_MATE and path to
    the female's tile.
    """
    if animal.genes.is_male:
        for candidate in sense_potential_mates(world, animal.coord, animal):
            if candidate.reproduction_will > DRIVE_THRESHOLD:
                rendezvous = candidate.coord
                animal.mate_id = candidate.instance_id
                candidate.mate_id = animal.instance_id
                animal.rendezvous = rendezvous
                candidate.rendezvous = rendezvous
                animal.current_action = CreatureAction.GOING_TO_MATE
                candidate.current_action = CreatureAction.GOING_TO_MATE
                create_path(animal, world, rendezvous)
                create_path(candidate, world, rendezvous)
                return

    animal.current_action = CreatureAction.SEARCHING_FOR_MATE


def act(animal: 'Animal', world: 'WorldContext'):
    """Execute the current state once"""
    action = animal.current_action

    if action is CreatureAction.EXPLORING or action is CreatureAction.SEARCHING_FOR_MATE:
        _explore(animal, world)

    elif action is CreatureAction.GOING_TO_MATE:
        mate = world.resolve(animal.mate_id)
        if mate is None or mate.mate_id != animal.instance_id:
            # Partner died or the pairing was already resolved
            _abandon_rendezvous(animal, world)
        elif are_neighbours(animal.coord, mate.coord):
            complete_mating(animal, mate, world)
        elif animal.coord != animal.rendezvous and \
                not _step_along_path(animal, world, animal.rendezvous):
            # Rendezvous unreachable
            _abandon_rendezvous(animal, world)

    elif action is CreatureAction.GOING_TO_FOOD:
        food = world.resolve(animal.food_target_id)
        if food is None:
            animal.current_action = CreatureAction.EXPLORING
            _explore(animal, world)
        elif are_neighbours(animal.coord, food.coord):
            look_at(animal, food.coord)
            animal.current_action = CreatureAction.EATING
        elif not _step_along_path(animal, world, food.coord):
            animal.current_action = CreatureAction.EXPLORING
            _explore(animal, world)

    elif action is CreatureAction.GOING_TO_WATER:
        if are_neighbours(animal.coord, animal.water_target):
            look_at(animal, animal.water_target)
            animal.current_action = CreatureAction.DRINKING
        elif not _step_along_path(animal, world, animal.water_target):
            animal.current_action = CreatureAction.EXPLORING
            _explore(animal, world)


def complete_mating(animal: 'Animal', mate: 'Animal', world: 'WorldContext'):
    """
    Finish a rendezvous for both partners.

    The female gives birth; both face each other, reset their urge, rest
    and drop the mate link.
    """
    for partner, other in ((animal, mate), (mate, animal)):
        look_at(partner, other.coord)

    female = mate if animal.genes.is_male else animal
    give_birth(female, world)

    for partner in (animal, mate):
        partner.reproduction_will = 0.0
        partner.current_action = CreatureAction.RESTING
        partner.mate_id = None
        partner.rendezvous = INVALID_COORD


def _abandon_rendezvous(animal: 'Animal', world: 'WorldContext'):
    animal.mate_id = None
    animal.rendezvous = INVALID_COORD
    animal.current_action = CreatureAction.EXPLORING
    _explore(animal, world)


def give_birth(mother: 'Animal', world: 'WorldContext'):
    """Spawn a child of the mother's species on her tile"""
    world.spawn(mother.species, mother.coord)
    world.births += 1


def create_path(animal: 'Animal', world: 'WorldContext', target: Coord):
    """
    Request a path to target unless the current one still leads there.

    The path is recomputed when there is none, it is used up, it ends
    somewhere else, or the last consumed step is not where the animal last
    moved (or, before any step, it was planned from another tile).
    """
    path = animal.path
    stale = (
        path is None
        or animal.path_index >= len(path)
        or path[-1] != target
        or (animal.path_index > 0 and path[animal.path_index - 1] != animal.move_target_coord)
        or (animal.path_index == 0 and animal.path_origin != animal.coord)
    )
    if stale:
        animal.path = world.get_path(animal.coord, target)
        animal.path_index = 0
        animal.path_origin = animal.coord


def _step_along_path(animal: 'Animal', world: 'WorldContext', target: Coord) -> bool:
    """Start the next hop towards target; False when no hop is available"""
    create_path(animal, world, target)
    if animal.path_index >= len(animal.path):
        return False

    next_tile = animal.path[animal.path_index]
    if not world.grid.is_walkable(next_tile):
        return False

    start_move_to_coord(animal, world, next_tile)
    animal.path_index += 1
    return True


def _explore(animal: 'Animal', world: 'WorldContext'):
    target = next_tile_weighted(world.grid, animal.coord, animal.move_from_coord, world.rng)
    start_move_to_coord(animal, world, target)


def start_move_to_coord(animal: 'Animal', world: 'WorldContext', target: Coord):
    """Begin animating a hop from the current tile to target"""
    animal.move_from_coord = animal.coord
    animal.move_target_coord = target
    animal.move_start_pos = animal.position.copy()
    animal.move_target_pos = world.grid.tile_centre(target)
    animal.animating_movement = True
    animal.move_time = 0.0
    animal.move_speed_factor = move_speed_factor(animal.coord, target)
    animal.move_arc_height_factor = move_arc_height_factor(animal.coord, target)
    look_at(animal, target)


def animate_move(animal: 'Animal', world: 'WorldContext', dt: float):
    """
    Progress the current hop; on arrival commit the tile and decide again.
    """
    movement = animal.config.movement
    animal.move_time = min(1.0, animal.move_time + dt * movement.move_speed * animal.move_speed_factor)
    animal.position = arc_position(
        animal.move_start_pos,
        animal.move_target_pos,
        animal.move_time,
        movement.move_arc_height * animal.move_arc_height_factor
    )

    if animal.move_time >= 1.0:
        world.register_move(animal, animal.move_from_coord, animal.move_target_coord)
        animal.coord = animal.move_target_coord
        animal.animating_movement = False
        animal.move_time = 0.0

        choose_next_action(animal, world)


def look_at(animal: 'Animal', target: Coord):
    if target != animal.coord:
        animal.heading = heading_degrees(animal.coord, target)


def handle_interactions(animal: 'Animal', world: 'WorldContext', dt: float):
    """
    Eat from or drink at the current target.

    Prey is killed outright for a flat hunger reduction; plants yield at
    most what they have left, at 1 / eat_duration per second.
    """
    feeding = animal.config.feeding

    if animal.current_action is CreatureAction.EATING:
        food = world.resolve(animal.food_target_id)
        if food is not None and animal.hunger > 0:
            if food.kind is EntityKind.ANIMAL:
                requested = feeding.predation_hunger_reduction
            else:
                requested = min(animal.hunger, dt / feeding.eat_duration)

            eaten, exhausted = consume(food, requested)
            animal.hunger = max(animal.hunger - eaten, 0.0)
            if exhausted:
                world.register_death(food, CauseOfDeath.EATEN)

    elif animal.current_action is CreatureAction.DRINKING:
        if animal.thirst > 0:
            animal.thirst -= dt / feeding.drink_duration
            animal.thirst = min(max(animal.thirst, 0.0), 1.0)
