import random

from settlement.environment import (
    EnvironmentGrid,
    GridPathService,
    GridSpec,
    grid_shortest_path,
    random_walkable,
)
from settlement.movement import PathService, Waypoint


def test_grid_shortest_path_excludes_start():
    grid = EnvironmentGrid(width=5, height=5)

    path = grid_shortest_path(grid, (0, 0), (2, 0))

    assert path == [Waypoint(1, 0), Waypoint(2, 0)]
    assert grid_shortest_path(grid, (2, 2), (2, 2)) == []


def test_grid_shortest_path_routes_around_collisions():
    grid = EnvironmentGrid(width=4, height=4)
    grid.block(1, 0)
    grid.block(1, 1)
    grid.block(1, 2)

    path = grid_shortest_path(grid, (0, 0), (2, 0))

    assert path is not None
    assert path[-1] == (2, 0)
    assert len(path) == 8
    assert all(grid.is_walkable(x, y) for x, y in path)


def test_grid_shortest_path_misses():
    grid = EnvironmentGrid(width=5, height=5)
    grid.block(4, 4)

    assert grid_shortest_path(grid, (0, 0), (4, 4)) is None
    assert grid_shortest_path(grid, (0, 0), (9, 9)) is None
    assert grid_shortest_path(grid, (0, 0), (4, 0), max_steps=3) is None
    assert len(grid_shortest_path(grid, (0, 0), (4, 0), max_steps=4)) == 4


def test_from_rows_marks_solid_terrain():
    grid = EnvironmentGrid.from_rows(
        ["..#", ".=."], {".": "grass", "#": "water", "=": "path"}, {"water"}
    )

    assert (grid.width, grid.height) == (3, 2)
    assert not grid.is_walkable(2, 0)
    assert grid.terrain_at(1, 1) == "path"
    assert grid.terrain_at(0, 0) == "grass"
    assert not grid.is_walkable(-1, 0)


def test_block_rect_records_building():
    grid = EnvironmentGrid(width=10, height=10)

    grid.block_rect(2, 2, 3, 2, "bakery")

    assert not grid.is_walkable(4, 3)
    assert grid.get_tile(2, 2).building == "bakery"
    assert grid.is_walkable(5, 3)


def test_grid_spec_builds_open_grid_with_blocked_tiles():
    grid = GridSpec(width=6, height=4, blocked=[[1, 1], [7]]).build()

    assert (grid.width, grid.height) == (6, 4)
    assert not grid.is_walkable(1, 1)
    assert grid.is_walkable(2, 1)


def test_random_walkable_stays_in_bounds_and_falls_back():
    grid = EnvironmentGrid(width=10, height=10)
    rng = random.Random(1)

    for _ in range(20):
        spot = random_walkable(grid, 5, 5, 3, rng)
        assert grid.is_walkable(*spot)

    walled = EnvironmentGrid(width=1, height=1)
    walled.block(0, 0)
    assert random_walkable(walled, 0, 0, 2, rng) == Waypoint(0, 0)


def test_grid_path_service_satisfies_protocol():
    service = GridPathService(EnvironmentGrid(width=3, height=3), rng=random.Random(0))

    assert isinstance(service, PathService)
    assert service.find_path(0, 0, 0, 2) == [Waypoint(0, 1), Waypoint(0, 2)]
    assert service.is_walkable(1, 1)
