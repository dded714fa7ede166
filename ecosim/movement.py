"""
Movement helpers for tile-to-tile hops.

Exploration steps pick a walkable neighbour biased towards the current
heading. Hop duration derives from the species' base speed, with diagonal
hops slowed by 1/sqrt(2) so real traversal speed is isotropic.
"""

import math
import numpy as np

from .constants import FORWARD_PROBABILITY, WEIGHTING_ITERATIONS
from .data_types import Coord
from .grid import GridOracle
from .spatial import is_diagonal_step, normalize

SQRT_TWO = math.sqrt(2.0)
ONE_OVER_SQRT_TWO = 1.0 / SQRT_TWO


def next_tile_random(grid: GridOracle, current: Coord, rng: np.random.Generator) -> Coord:
    """Uniformly random walkable neighbour, or current if boxed in"""
    neighbours = grid.walkable_neighbors(current)
    if not neighbours:
        return current
    return neighbours[int(rng.integers(len(neighbours)))]


def next_tile_weighted(
    grid: GridOracle,
    current: Coord,
    previous: Coord,
    rng: np.random.Generator,
    forward_probability: float = FORWARD_PROBABILITY,
    weighting_iterations: int = WEIGHTING_ITERATIONS
) -> Coord:
    """
    Random walkable neighbour, weighted towards the current heading.

    With probability forward_probability the tile straight ahead is taken
    (if walkable). Otherwise weighting_iterations random neighbours are
    sampled and the one best aligned with the heading wins.

    Args:
        grid: Terrain oracle
        current: Tile the agent stands on
        previous: Tile the agent came from (heading = current - previous)
        rng: Generator owned by the world
        forward_probability: Chance of continuing straight
        weighting_iterations: Number of random neighbours scored

    Returns:
        Next tile (current if there is nowhere to go)
    """
    if current == previous:
        return next_tile_random(grid, current, rng)

    forward_offset = (current.x - previous.x, current.y - previous.y)
    if rng.random() < forward_probability:
        forward = Coord(current.x + forward_offset[0], current.y + forward_offset[1])
        if grid.is_walkable(forward):
            return forward

    neighbours = grid.walkable_neighbors(current)
    if not neighbours:
        return current

    forward_dir, _ = normalize(np.array(forward_offset, dtype=np.float64))
    best_score = -math.inf
    best_neighbour = current

    for _ in range(weighting_iterations):
        neighbour = neighbours[int(rng.integers(len(neighbours)))]
        direction, _ = normalize(np.array([neighbour.x - current.x, neighbour.y - current.y], dtype=np.float64))
        score = float(np.dot(direction, forward_dir))
        if score > best_score:
            best_score = score
            best_neighbour = neighbour

    return best_neighbour


def next_tile_away(grid: GridOracle, current: Coord, threat: Coord, rng: np.random.Generator) -> Coord:
    """
    Step directly away from a threat.

    Tries the diagonal away, then the two axis-aligned tiles away; falls
    back to a random neighbour when all are blocked.
    """
    step_x = -1 if threat.x > current.x else 1
    step_y = -1 if threat.y > current.y else 1
    tries = (
        Coord(current.x + step_x, current.y + step_y),
        Coord(current.x, current.y + step_y),
        Coord(current.x + step_x, current.y),
    )
    for tile in tries:
        if grid.is_walkable(tile):
            return tile
    return next_tile_random(grid, current, rng)


def move_speed_factor(source: Coord, target: Coord) -> float:
    """1 for straight hops, 1/sqrt(2) for diagonal hops"""
    return ONE_OVER_SQRT_TWO if is_diagonal_step(source, target) else 1.0


def move_arc_height_factor(source: Coord, target: Coord) -> float:
    """Diagonal hops are sqrt(2) times longer, so they arc higher"""
    return SQRT_TWO if is_diagonal_step(source, target) else 1.0


def move_duration(source: Coord, target: Coord, move_speed: float) -> float:
    """
    Seconds to hop from source to target.

    Args:
        source: Start tile
        target: Adjacent destination tile
        move_speed: Straight tiles per second

    Returns:
        1 / (move_speed * speed factor); diagonal hops take sqrt(2) times longer
    """
    return 1.0 / (move_speed * move_speed_factor(source, target))


def arc_position(start: np.ndarray, target: np.ndarray, t: float, arc_height: float) -> np.ndarray:
    """
    Position along a parabolic hop.

    Args:
        start: World position at t = 0
        target: World position at t = 1
        t: Progress in [0, 1]
        arc_height: Peak height reached at t = 0.5

    Returns:
        Interpolated world position with vertical arc offset
    """
    height = (1.0 - 4.0 * (t - 0.5) * (t - 0.5)) * arc_height
    position = start + (target - start) * t
    position[1] += height
    return position
