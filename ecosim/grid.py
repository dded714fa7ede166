"""
Grid & visibility oracle.

Static, precomputed per world: walkability grid, per-tile walkable
neighbours, per-tile nearest visible water tile, and a line-of-sight test
between two tiles. Built once at world setup; read-only afterward.

Also hosts the default path-finder collaborator (A* over the walkable
neighbour table).
"""
from __future__ import annotations

import heapq
import math
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np
from scipy import ndimage

from .constants import VIEW_DISTANCE
from .data_types import Coord, INVALID_COORD
from .spatial import are_neighbours, is_diagonal_step

LAND_TILE = '.'
WATER_TILE = '~'
OBSTACLE_TILE = '#'

_SQRT_TWO = math.sqrt(2.0)


def parse_tiles(rows: List[str]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Parse ASCII terrain rows into walkable and water masks.

    Row index is y, column index is x. Arrays are indexed [x, y].

    Args:
        rows: Equal-length strings of '.', '~' and '#'

    Returns:
        Tuple of (walkable, water) boolean arrays of shape (size, size)

    Raises:
        ValueError: Terrain is empty, ragged, non-square or has unknown tiles
    """
    if not rows:
        raise ValueError("Terrain has no rows")

    size = len(rows)
    for y, row in enumerate(rows):
        if len(row) != size:
            raise ValueError(f"Terrain must be square: row {y} has {len(row)} tiles, expected {size}")
        unknown = set(row) - {LAND_TILE, WATER_TILE, OBSTACLE_TILE}
        if unknown:
            raise ValueError(f"Unknown terrain tiles {sorted(unknown)} in row {y}")

    chars = np.array([list(row) for row in rows]).T  # [x, y]
    walkable = chars == LAND_TILE
    water = chars == WATER_TILE
    return walkable, water


def compute_shore(water: np.ndarray, walkable: np.ndarray) -> np.ndarray:
    """
    Water tiles that touch at least one walkable tile (8-connected).

    Args:
        water: (size, size) boolean water mask
        walkable: (size, size) boolean walkable mask

    Returns:
        (size, size) boolean shore mask
    """
    structure = np.ones((3, 3), dtype=bool)
    near_land = ndimage.binary_dilation(walkable, structure=structure)
    return water & near_land


def view_offsets(view_distance: int) -> List[Coord]:
    """
    All non-zero offsets within view distance, nearest first.

    Args:
        view_distance: Radius in tiles

    Returns:
        Offsets sorted ascending by squared length (stable)
    """
    sqr_radius = view_distance * view_distance
    offsets = []
    for dy in range(-view_distance, view_distance + 1):
        for dx in range(-view_distance, view_distance + 1):
            sqr_len = dx * dx + dy * dy
            if (dx != 0 or dy != 0) and sqr_len <= sqr_radius:
                offsets.append(Coord(dx, dy))

    offsets.sort(key=lambda o: o.x * o.x + o.y * o.y)
    return offsets


def line_tiles(a: Coord, b: Coord) -> Iterator[Coord]:
    """
    Tiles on the Bresenham line from a to b, both endpoints included.

    The traversal order (and therefore the tile set for ambiguous steps)
    depends on argument order.
    """
    x0, y0 = a
    x1, y1 = b
    dx = abs(x1 - x0)
    dy = -abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx + dy

    while True:
        yield Coord(x0, y0)
        if x0 == x1 and y0 == y1:
            return
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


class GridOracle:
    """
    Read-only terrain tables for one world.

    Attributes:
        size: Edge length of the square grid (tiles)
        walkable: (size, size) bool, indexed [x, y]
        shore: (size, size) bool, water tiles reachable for drinking
        tile_centres: (size, size, 3) world positions [x, height, y]
        walkable_coords: All walkable tiles in row-major order
    """

    def __init__(
        self,
        walkable: np.ndarray,
        shore: np.ndarray,
        view_distance: int = VIEW_DISTANCE
    ):
        """
        Build neighbour and nearest-water tables.

        Args:
            walkable: (size, size) bool array indexed [x, y]
            shore: (size, size) bool array indexed [x, y]
            view_distance: Search radius for the nearest water table
        """
        walkable = np.asarray(walkable, dtype=bool)
        shore = np.asarray(shore, dtype=bool)

        if walkable.ndim != 2 or walkable.shape[0] != walkable.shape[1]:
            raise ValueError(f"Walkable grid must be square, got shape {walkable.shape}")
        if shore.shape != walkable.shape:
            raise ValueError(f"Shore shape {shore.shape} != walkable shape {walkable.shape}")

        self.size: int = walkable.shape[0]
        self.view_distance: int = view_distance
        self.walkable: np.ndarray = walkable.copy()
        self.shore: np.ndarray = shore.copy()

        xs, ys = np.meshgrid(np.arange(self.size), np.arange(self.size), indexing='ij')
        self.tile_centres: np.ndarray = np.stack(
            [xs.astype(np.float64), np.zeros_like(xs, dtype=np.float64), ys.astype(np.float64)],
            axis=-1
        )

        self.walkable_coords: List[Coord] = [
            Coord(x, y)
            for y in range(self.size)
            for x in range(self.size)
            if self.walkable[x, y]
        ]

        self._neighbours: Dict[Coord, Tuple[Coord, ...]] = {}
        self._build_neighbour_table()

        # [x, y] -> (wx, wy), -1 where no water is visible
        self._nearest_water: np.ndarray = np.full((self.size, self.size, 2), -1, dtype=np.int32)
        self._build_nearest_water_table()

    @classmethod
    def from_tiles(cls, rows: List[str], view_distance: int = VIEW_DISTANCE) -> 'GridOracle':
        """Build an oracle straight from ASCII terrain rows"""
        walkable, water = parse_tiles(rows)
        return cls(walkable, compute_shore(water, walkable), view_distance=view_distance)

    def _build_neighbour_table(self):
        """Store the walkable 8-neighbours of every walkable tile"""
        for coord in self.walkable_coords:
            neighbours = []
            for dy in (-1, 0, 1):
                for dx in (-1, 0, 1):
                    if dx == 0 and dy == 0:
                        continue
                    n = Coord(coord.x + dx, coord.y + dy)
                    if self.is_walkable(n):
                        neighbours.append(n)
            self._neighbours[coord] = tuple(neighbours)

    def _build_nearest_water_table(self):
        """
        For each walkable tile, find the closest visible shore tile.

        Scans offsets nearest first and stops at the first visible shore tile.
        """
        offsets = view_offsets(self.view_distance)
        for coord in self.walkable_coords:
            for o in offsets:
                target = Coord(coord.x + o.x, coord.y + o.y)
                if not self.in_bounds(target) or not self.shore[target.x, target.y]:
                    continue
                if self.is_visible(coord, target):
                    self._nearest_water[coord.x, coord.y] = target
                    break

    def in_bounds(self, coord: Coord) -> bool:
        return 0 <= coord.x < self.size and 0 <= coord.y < self.size

    def is_walkable(self, coord: Coord) -> bool:
        return self.in_bounds(coord) and bool(self.walkable[coord.x, coord.y])

    def walkable_neighbors(self, coord: Coord) -> Tuple[Coord, ...]:
        """Walkable 8-neighbours in scan order (empty for unwalkable tiles)"""
        return self._neighbours.get(coord, ())

    def nearest_visible_water(self, coord: Coord) -> Coord:
        """Closest visible shore tile within view distance, or INVALID_COORD"""
        if not self.in_bounds(coord):
            return INVALID_COORD
        wx, wy = self._nearest_water[coord.x, coord.y]
        if wx < 0:
            return INVALID_COORD
        return Coord(int(wx), int(wy))

    def is_visible(self, a: Coord, b: Coord) -> bool:
        """
        Line-of-sight test from a to b.

        Every tile strictly between the endpoints must be walkable.
        Deterministic and side-effect free; query in the call site's order.
        """
        if not self.in_bounds(a) or not self.in_bounds(b):
            return False
        for tile in line_tiles(a, b):
            if tile == a or tile == b:
                continue
            if not self.walkable[tile.x, tile.y]:
                return False
        return True

    def tile_centre(self, coord: Coord) -> np.ndarray:
        """World position of a tile centre (copy)"""
        return self.tile_centres[coord.x, coord.y].copy()


class PathFinder:
    """
    A* path-finder over the oracle's walkable neighbour table.

    Paths exclude the start tile and end at the goal. The goal itself may
    be unwalkable (e.g. a shore tile); it is entered only from a neighbour.
    """

    def __init__(self, grid: GridOracle, max_expansions: Optional[int] = None):
        self.grid = grid
        self.max_expansions = max_expansions

    def find_path(self, start: Coord, goal: Coord) -> List[Coord]:
        """
        Shortest 8-connected path from start to goal.

        Returns:
            Ordered tiles after start up to and including goal, or [] if
            start == goal or the goal cannot be reached
        """
        if start == goal or not self.grid.in_bounds(goal):
            return []

        open_heap = [(self._heuristic(start, goal), 0, start)]
        came_from: Dict[Coord, Coord] = {}
        cost_so_far: Dict[Coord, float] = {start: 0.0}
        counter = 0
        expansions = 0

        while open_heap:
            _, _, current = heapq.heappop(open_heap)
            if current == goal:
                return self._reconstruct(came_from, start, goal)

            expansions += 1
            if self.max_expansions is not None and expansions > self.max_expansions:
                break

            candidates = list(self.grid.walkable_neighbors(current))
            if are_neighbours(current, goal) and goal not in candidates:
                candidates.append(goal)

            for nxt in candidates:
                step = _SQRT_TWO if is_diagonal_step(current, nxt) else 1.0
                new_cost = cost_so_far[current] + step
                if nxt not in cost_so_far or new_cost < cost_so_far[nxt]:
                    cost_so_far[nxt] = new_cost
                    came_from[nxt] = current
                    counter += 1
                    heapq.heappush(open_heap, (new_cost + self._heuristic(nxt, goal), counter, nxt))

        return []

    @staticmethod
    def _heuristic(a: Coord, b: Coord) -> float:
        # Octile distance
        dx = abs(a.x - b.x)
        dy = abs(a.y - b.y)
        return (dx + dy) + (_SQRT_TWO - 2.0) * min(dx, dy)

    @staticmethod
    def _reconstruct(came_from: Dict[Coord, Coord], start: Coord, goal: Coord) -> List[Coord]:
        path = [goal]
        node = goal
        while came_from[node] != start:
            node = came_from[node]
            path.append(node)
        path.reverse()
        return path
