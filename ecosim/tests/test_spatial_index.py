"""
Tests for the region-partitioned spatial entity index.

Verifies:
- count() tracks adds and removes
- Radius-0 queries return exactly the entities on a tile
- move() is atomic within and across regions
- Swap-remove keeps region slots consistent
- Random add/remove/move sequences and move loops keep the index consistent
- Invariant violations warn in release runs and assert in debug runs
- closest_entity() finds the nearest entity within max_radius
"""

import sys
import pytest
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from ecosim.data_types import Coord, Species
from ecosim.entity import LivingEntity
from ecosim.rng import make_rng
from ecosim.spatial_index import EntityMap, Region, report_invariant_violation


def make_entity(index: int, x: int = 0, y: int = 0) -> LivingEntity:
    return LivingEntity(instance_id=f"plant-{index:04d}", species=Species.PLANT, coord=Coord(x, y))


def test_count_tracks_adds_and_removes():
    """count() equals successful adds minus successful removes"""
    index = EntityMap(30, 10)
    entities = [make_entity(i, i, i) for i in range(12)]

    for e in entities:
        assert index.add(e, e.coord)
    assert index.count() == 12

    for e in entities[:5]:
        assert index.remove(e, e.coord)
    assert index.count() == 7
    assert len(index) == 7

    print(f"[OK] Count after 12 adds and 5 removes: {index.count()}")


def test_radius_zero_query_is_exact_tile():
    """query_radius(c, 0) returns exactly the entities recorded at c"""
    index = EntityMap(20, 10)
    a = make_entity(0, 4, 4)
    b = make_entity(1, 4, 4)
    c = make_entity(2, 4, 5)
    d = make_entity(3, 5, 5)
    for e in (a, b, c, d):
        index.add(e, e.coord)

    on_tile = index.query_radius(Coord(4, 4), 0)

    assert set(e.instance_id for e in on_tile) == {a.instance_id, b.instance_id}, \
        f"Expected only the two entities on (4, 4), got {[e.instance_id for e in on_tile]}"
    print("[OK] Radius-0 query returns only the exact tile")


def test_query_radius_uses_squared_distance():
    """Entities in the bounding box but outside the circle are excluded"""
    index = EntityMap(40, 10)
    inside = make_entity(0, 13, 14)     # sqr distance 9 + 16 = 25
    corner = make_entity(1, 15, 15)     # sqr distance 25 + 25 = 50
    far = make_entity(2, 30, 30)
    for e in (inside, corner, far):
        index.add(e, e.coord)

    found = index.query_radius(Coord(10, 10), 5)

    assert found == [inside], f"Expected only the entity at distance 5, got {[e.instance_id for e in found]}"
    print("[OK] Corner of the bounding box excluded")


def test_query_spans_region_boundaries():
    """A query near a region edge sees entities in neighbouring regions"""
    index = EntityMap(40, 10)
    left = make_entity(0, 9, 10)
    right = make_entity(1, 11, 10)
    below = make_entity(2, 10, 8)
    for e in (left, right, below):
        index.add(e, e.coord)

    found = index.query_radius(Coord(10, 10), 2)

    assert len(found) == 3, f"Expected 3 entities across regions, got {len(found)}"
    print("[OK] Query crosses region boundaries")


def test_move_within_and_across_regions():
    """After move(), queries see the entity at the new tile only"""
    index = EntityMap(30, 10)
    e = make_entity(0, 2, 2)
    index.add(e, e.coord)

    # Same region
    assert index.move(e, Coord(2, 2), Coord(3, 3))
    assert index.query_radius(Coord(2, 2), 0) == []
    assert index.query_radius(Coord(3, 3), 0) == [e]
    assert index.coord_of(e) == Coord(3, 3)

    # Across regions
    assert index.move(e, Coord(3, 3), Coord(25, 14))
    assert index.query_radius(Coord(3, 3), 0) == []
    assert index.query_radius(Coord(25, 14), 0) == [e]
    assert e in index.region_at(Coord(25, 14))
    assert e not in index.region_at(Coord(3, 3))
    assert index.count() == 1, "move() must not change count"

    print("[OK] Move within and across regions")


def test_add_remove_round_trip():
    """add then remove leaves the index as it was"""
    index = EntityMap(20, 10)
    keep = make_entity(0, 1, 1)
    index.add(keep, keep.coord)

    temp = make_entity(1, 1, 1)
    index.add(temp, temp.coord)
    index.remove(temp, temp.coord)

    assert index.count() == 1
    assert index.query_radius(Coord(1, 1), 0) == [keep]
    assert temp not in index
    print("[OK] Round trip leaves index unchanged")


def region_ids(region: Region) -> set:
    return {e.instance_id for e in region}


def test_move_loop_across_region_edge():
    """A path that leaves a region and comes back restores its membership"""
    index = EntityMap(30, 10)
    start = Coord(9, 9)
    walker = make_entity(0, *start)
    neighbours = [make_entity(1, 9, 8), make_entity(2, 8, 9), make_entity(3, 0, 0)]
    for e in [walker] + neighbours:
        index.add(e, e.coord)

    before = region_ids(index.region_at(start))

    path = [Coord(10, 9), Coord(11, 10), Coord(10, 11), Coord(9, 10), Coord(8, 9), start]
    current = start
    for step in path:
        assert index.move(walker, current, step)
        assert index.count() == 4
        current = step

    assert region_ids(index.region_at(start)) == before
    assert index.coord_of(walker) == start
    for far_corner in (Coord(10, 9), Coord(10, 10), Coord(9, 10)):
        region = index.region_at(far_corner)
        if region is not index.region_at(start):
            assert len(region) == 0, f"Region at {far_corner} still holds {region_ids(region)}"

    print(f"[OK] {len(path)}-step loop across a region edge restored membership")


def test_random_mutations_keep_index_consistent():
    """count() = adds - removes and every live entity is found on its tile"""
    rng = make_rng(42, "index-mutations")
    index = EntityMap(30, 10)
    live = {}  # instance_id -> (entity, coord)
    adds = 0
    removes = 0

    def random_coord() -> Coord:
        x, y = rng.integers(0, 30, size=2)
        return Coord(int(x), int(y))

    for step in range(500):
        op = int(rng.integers(0, 3))
        if op == 0 or not live:
            coord = random_coord()
            entity = make_entity(adds, *coord)
            assert index.add(entity, coord)
            live[entity.instance_id] = (entity, coord)
            adds += 1
        else:
            keys = sorted(live)
            entity, coord = live[keys[int(rng.integers(0, len(keys)))]]
            if op == 1:
                assert index.remove(entity, coord)
                del live[entity.instance_id]
                removes += 1
            else:
                target = random_coord()
                assert index.move(entity, coord, target)
                live[entity.instance_id] = (entity, target)

        assert index.count() == adds - removes, f"Step {step}: count drifted"
        assert sum(len(region) for column in index.regions for region in column) == index.count(), \
            f"Step {step}: an entity is in more or fewer than one region"
        for entity, coord in live.values():
            assert entity in index.query_radius(coord, 0), \
                f"Step {step}: {entity.instance_id} missing from radius-0 query at {coord}"
            assert index.coord_of(entity) == coord

    print(f"[OK] 500 random mutations: {adds} adds, {removes} removes, {index.count()} live")


def test_wrong_tile_in_same_region_is_rejected(monkeypatch, capsys):
    """remove/move must name the recorded tile, not just its region"""
    monkeypatch.delenv('SIM_DEBUG_INVARIANTS', raising=False)

    index = EntityMap(20, 10)
    e = make_entity(0, 3, 3)
    index.add(e, e.coord)

    assert not index.move(e, Coord(4, 4), Coord(5, 5))
    assert not index.remove(e, Coord(4, 4))
    assert index.coord_of(e) == Coord(3, 3)
    assert index.count() == 1
    assert capsys.readouterr().out.count("[WARN]") == 2

    monkeypatch.setenv('SIM_DEBUG_INVARIANTS', '1')
    with pytest.raises(AssertionError):
        index.move(e, Coord(4, 4), Coord(5, 5))


def test_region_swap_remove():
    """Removing from the middle moves the last entity into the hole"""
    region = Region()
    entities = [make_entity(i) for i in range(4)]
    for e in entities:
        region.add(e)

    region.remove(entities[1])

    assert len(region) == 3
    assert region.entities == [entities[0], entities[3], entities[2]], \
        f"Unexpected order after swap-remove: {[e.instance_id for e in region.entities]}"
    assert region._slot_of[entities[3].instance_id] == 1

    # Removing the last element needs no swap
    region.remove(entities[2])
    assert region.entities == [entities[0], entities[3]]
    assert entities[2] not in region

    print("[OK] Swap-remove keeps slots consistent")


def test_invariant_violation_warns_in_release(monkeypatch, capsys):
    """Without the debug flag, violations print a warning and are no-ops"""
    monkeypatch.delenv('SIM_DEBUG_INVARIANTS', raising=False)

    index = EntityMap(20, 10)
    e = make_entity(0, 3, 3)
    assert index.add(e, e.coord)

    assert not index.add(e, e.coord), "Duplicate add must be rejected"
    assert index.count() == 1, "Duplicate add must not change count"

    ghost = make_entity(1, 5, 5)
    assert not index.remove(ghost, ghost.coord)
    assert not index.move(ghost, Coord(5, 5), Coord(6, 6))
    assert index.count() == 1

    # Removing from the wrong tile's region is also rejected
    assert not index.remove(e, Coord(15, 15))
    assert index.count() == 1

    out = capsys.readouterr().out
    assert out.count("[WARN]") == 4, f"Expected 4 warnings, got:\n{out}"


def test_invariant_violation_asserts_in_debug(monkeypatch):
    """SIM_DEBUG_INVARIANTS=1 turns violations into AssertionError"""
    monkeypatch.setenv('SIM_DEBUG_INVARIANTS', '1')

    index = EntityMap(20, 10)
    e = make_entity(0, 3, 3)
    index.add(e, e.coord)

    with pytest.raises(AssertionError):
        index.add(e, e.coord)

    with pytest.raises(AssertionError):
        index.remove(make_entity(1), Coord(0, 0))

    with pytest.raises(AssertionError):
        report_invariant_violation("boom")


def test_closest_entity():
    """Nearest entity wins; nothing beyond max_radius is returned"""
    index = EntityMap(40, 10)
    near = make_entity(0, 12, 16)    # sqr distance 16
    mid = make_entity(1, 20, 20)     # sqr distance 128
    far = make_entity(2, 0, 0)       # sqr distance 288
    for e in (far, mid, near):
        index.add(e, e.coord)

    center = Coord(12, 12)
    assert index.closest_entity(center, 20) is near
    assert index.closest_entity(center, 3) is None, "Nearest is 4 tiles away, outside radius 3"
    assert index.closest_entity(center, 4) is near, "Radius is inclusive"

    index.remove(near, near.coord)
    assert index.closest_entity(center, 20) is mid
    assert index.closest_entity(center, 30) is mid

    print("[OK] closest_entity ring search")


def test_closest_entity_empty_index():
    index = EntityMap(20, 10)
    assert index.closest_entity(Coord(5, 5), 50) is None


def test_region_size_must_be_positive():
    with pytest.raises(ValueError):
        EntityMap(20, 0)
