"""
Spatial utility functions for tile geometry.

Helper functions for distance calculations, adjacency tests,
and headings on the integer tile grid.
"""

import math
import numpy as np
from typing import Tuple

from .data_types import Coord


def sqr_distance(a: Coord, b: Coord) -> int:
    """
    Calculate squared Euclidean distance between two tiles.

    Squared distance is the canonical metric for comparisons and radius
    tests (no square roots).

    Args:
        a: Tile (x, y)
        b: Tile (x, y)

    Returns:
        Squared distance in tiles
    """
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def are_neighbours(a: Coord, b: Coord) -> bool:
    """
    Check whether two tiles touch (8-connected Chebyshev distance <= 1).

    A tile counts as touching itself, so an agent standing on its target
    can interact with it.

    Args:
        a: Tile (x, y)
        b: Tile (x, y)

    Returns:
        True if the tiles are the same or adjacent, including diagonally
    """
    return abs(a.x - b.x) <= 1 and abs(a.y - b.y) <= 1


def offset(source: Coord, target: Coord) -> Coord:
    """Offset from source to target"""
    return Coord(target.x - source.x, target.y - source.y)


def is_diagonal_step(source: Coord, target: Coord) -> bool:
    """True when a single step between the tiles changes both x and y"""
    return sqr_distance(source, target) > 1


def heading_degrees(source: Coord, target: Coord) -> float:
    """
    Calculate the facing angle from source to target.

    Measured clockwise from +y, matching atan2(dx, dy).

    Args:
        source: Tile the agent stands on
        target: Tile the agent looks at

    Returns:
        Heading in degrees (-180, 180]
    """
    dx, dy = offset(source, target)
    return math.degrees(math.atan2(dx, dy))


def normalize(vec: np.ndarray) -> Tuple[np.ndarray, float]:
    """
    Normalize vector to unit length.

    Args:
        vec: Vector to normalize [x, y]

    Returns:
        Tuple of (normalized vector, original length)
    """
    length = np.sqrt(np.dot(vec, vec))

    if length < 1e-9:
        # Zero vector, return zero direction
        return np.zeros_like(vec, dtype=np.float64), 0.0

    return vec / length, length
