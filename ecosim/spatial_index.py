"""
Spatial Entity Index.

Region-partitioned mapping from entity to tile, one EntityMap per tracked
category (species or building type). Regions are fixed-size square
sub-grids addressed by integer division of the tile coordinate.

Invariants:
- A tracked entity lives in exactly one region: the one containing its
  recorded tile.
- move() is a single logical operation; no caller observes the entity
  missing or duplicated.
- count is maintained incrementally (O(1)).

Invariant violations (duplicate add, removing or moving an absent entity)
raise AssertionError when SIM_DEBUG_INVARIANTS=1, otherwise print a
warning and leave the index untouched.
"""

import math
import os
from typing import Dict, Iterator, List, Optional

from .constants import REGION_SIZE
from .data_types import Coord
from .spatial import sqr_distance


def report_invariant_violation(message: str):
    """
    Fatal in debug runs, logged-and-ignored otherwise.

    Args:
        message: Description of the violated invariant
    """
    if os.getenv('SIM_DEBUG_INVARIANTS') == '1':
        raise AssertionError(message)
    print(f"[WARN] {message}")


class Region:
    """
    Unordered entity set for one sub-grid.

    Removal is a swap-remove: the last entity takes the removed slot.
    """

    __slots__ = ('entities', '_slot_of')

    def __init__(self):
        self.entities: List = []
        self._slot_of: Dict[str, int] = {}  # instance_id -> index in entities

    def __contains__(self, entity) -> bool:
        return entity.instance_id in self._slot_of

    def __len__(self) -> int:
        return len(self.entities)

    def __iter__(self) -> Iterator:
        return iter(self.entities)

    def add(self, entity):
        self._slot_of[entity.instance_id] = len(self.entities)
        self.entities.append(entity)

    def remove(self, entity):
        slot = self._slot_of.pop(entity.instance_id)
        last = self.entities.pop()
        if slot < len(self.entities):
            self.entities[slot] = last
            self._slot_of[last.instance_id] = slot


class EntityMap:
    """
    Region grid for one category.

    Attributes:
        size: World edge length (tiles)
        region_size: Region edge length (tiles)
        num_regions: Regions per axis
        num_entities: Live entity count
    """

    def __init__(self, size: int, region_size: int = REGION_SIZE):
        """
        Args:
            size: World edge length (tiles)
            region_size: Region edge length (tiles)
        """
        if region_size <= 0:
            raise ValueError(f"region_size must be positive, got {region_size}")

        self.size = size
        self.region_size = region_size
        self.num_regions = max(1, math.ceil(size / region_size))
        self.regions: List[List[Region]] = [
            [Region() for _ in range(self.num_regions)]
            for _ in range(self.num_regions)
        ]  # [rx][ry]
        self.num_entities: int = 0
        self._coords: Dict[str, Coord] = {}  # instance_id -> recorded tile

    def __len__(self) -> int:
        return self.num_entities

    def __contains__(self, entity) -> bool:
        return entity.instance_id in self._coords

    def count(self) -> int:
        """Live entity count (O(1))"""
        return self.num_entities

    def coord_of(self, entity) -> Optional[Coord]:
        """Tile recorded for the entity, or None if not indexed"""
        return self._coords.get(entity.instance_id)

    def region_index(self, coord: Coord):
        """(rx, ry) of the region covering coord, clamped to the grid"""
        rx = min(max(coord.x // self.region_size, 0), self.num_regions - 1)
        ry = min(max(coord.y // self.region_size, 0), self.num_regions - 1)
        return rx, ry

    def region_at(self, coord: Coord) -> Region:
        rx, ry = self.region_index(coord)
        return self.regions[rx][ry]

    def add(self, entity, coord: Coord) -> bool:
        """
        Insert entity into the region covering coord.

        Returns:
            True on success, False if the entity was already indexed
        """
        if entity.instance_id in self._coords:
            report_invariant_violation(
                f"add: {entity.instance_id} already indexed at {self._coords[entity.instance_id]}"
            )
            return False

        self.region_at(coord).add(entity)
        self._coords[entity.instance_id] = coord
        self.num_entities += 1
        return True

    def remove(self, entity, coord: Coord) -> bool:
        """
        Delete entity from the region covering coord.

        Returns:
            True on success, False if the entity is not recorded at coord
        """
        if self._coords.get(entity.instance_id) != coord:
            report_invariant_violation(f"remove: {entity.instance_id} not indexed at {coord}")
            return False

        self.region_at(coord).remove(entity)
        del self._coords[entity.instance_id]
        self.num_entities -= 1
        return True

    def move(self, entity, from_coord: Coord, to_coord: Coord) -> bool:
        """
        Relocate entity from one tile to another.

        Same region: only the recorded tile changes. Otherwise the entity is
        swap-removed from the old region and appended to the new one.

        Returns:
            True on success, False if the entity is not recorded at from_coord
        """
        if self._coords.get(entity.instance_id) != from_coord:
            report_invariant_violation(f"move: {entity.instance_id} not indexed at {from_coord}")
            return False

        old_region = self.region_at(from_coord)
        new_region = self.region_at(to_coord)
        if new_region is not old_region:
            old_region.remove(entity)
            new_region.add(entity)
        self._coords[entity.instance_id] = to_coord
        return True

    def query_radius(self, center: Coord, radius: float) -> List:
        """
        All entities within radius of center (squared-distance test).

        Visits every region whose bounds intersect the query circle's
        bounding box, then filters by true distance.

        Args:
            center: Query tile
            radius: Radius in tiles (0 = exact tile)

        Returns:
            Entities in region scan order
        """
        reach = int(math.floor(radius))
        min_rx, min_ry = self.region_index(Coord(center.x - reach, center.y - reach))
        max_rx, max_ry = self.region_index(Coord(center.x + reach, center.y + reach))
        sqr_radius = radius * radius

        result = []
        for rx in range(min_rx, max_rx + 1):
            for ry in range(min_ry, max_ry + 1):
                for entity in self.regions[rx][ry]:
                    if sqr_distance(center, self._coords[entity.instance_id]) <= sqr_radius:
                        result.append(entity)
        return result

    def closest_entity(self, center: Coord, max_radius: float):
        """
        Nearest entity within max_radius, searching outward ring by ring.

        Stops once no unvisited region can hold anything closer than the
        best candidate. Ties keep the first entity found.

        Returns:
            Entity or None
        """
        crx, cry = self.region_index(center)
        max_ring = int(math.ceil(max_radius / self.region_size)) + 1
        best = None
        best_sqr = max_radius * max_radius

        for ring in range(max_ring + 1):
            for rx, ry in self._ring_regions(crx, cry, ring):
                for entity in self.regions[rx][ry]:
                    d = sqr_distance(center, self._coords[entity.instance_id])
                    if d <= best_sqr and (best is None or d < best_sqr):
                        best = entity
                        best_sqr = d

            # Regions on ring+1 start at least ring*region_size tiles away
            if best is not None and best_sqr <= (ring * self.region_size) ** 2:
                break

        return best

    def _ring_regions(self, crx: int, cry: int, ring: int):
        """Region indices at Chebyshev distance `ring`, clipped to the grid"""
        if ring == 0:
            yield crx, cry
            return
        for rx in range(crx - ring, crx + ring + 1):
            for ry in range(cry - ring, cry + ring + 1):
                if max(abs(rx - crx), abs(ry - cry)) != ring:
                    continue
                if 0 <= rx < self.num_regions and 0 <= ry < self.num_regions:
                    yield rx, ry

    def entities(self) -> Iterator:
        """Iterate every indexed entity (region order)"""
        for column in self.regions:
            for region in column:
                yield from region
