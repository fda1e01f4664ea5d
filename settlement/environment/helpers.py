"""Route finding over an ``EnvironmentGrid``."""

from __future__ import annotations

import random
from collections import deque
from typing import Deque, Iterable, List, Optional, Tuple

from ..movement import Waypoint
from .grid import EnvironmentGrid

DEFAULT_MAX_STEPS = 200
RANDOM_WALKABLE_TRIES = 50

# Four-directional movement. Order affects tie-breaking between equal-length routes.
_DIRECTIONS = [(0, -1), (0, 1), (-1, 0), (1, 0)]


def grid_shortest_path(
    grid: EnvironmentGrid,
    start: Tuple[int, int],
    goal: Tuple[int, int],
    *,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> Optional[List[Waypoint]]:
    """Return the waypoints from ``start`` to ``goal`` using BFS.

    The start tile is excluded, so standing on the goal yields ``[]``. Returns
    None if the goal is not walkable, unreachable, or further than
    ``max_steps`` steps away.
    """

    if not grid.is_walkable(*goal):
        return None
    if start == goal:
        return []

    visited = {start}
    queue: Deque[Tuple[Tuple[int, int], List[Waypoint]]] = deque([(start, [])])

    def neighbors(coord: Tuple[int, int]) -> Iterable[Tuple[int, int]]:
        x, y = coord
        for dx, dy in _DIRECTIONS:
            nx, ny = x + dx, y + dy
            if grid.is_walkable(nx, ny):
                yield nx, ny

    while queue:
        coord, path = queue.popleft()
        # BFS explores by increasing length, so every later route is longer too.
        if len(path) >= max_steps:
            return None
        for nb in neighbors(coord):
            if nb in visited:
                continue
            visited.add(nb)
            new_path = path + [Waypoint(*nb)]
            if nb == goal:
                return new_path
            queue.append((nb, new_path))
    return None


def random_walkable(
    grid: EnvironmentGrid,
    near_x: int,
    near_y: int,
    radius: int,
    rng: random.Random,
) -> Waypoint:
    """Pick a random walkable tile within ``radius`` of (near_x, near_y).

    Falls back to the origin after a fixed number of misses.
    """

    for _ in range(RANDOM_WALKABLE_TRIES):
        x = near_x + int(rng.random() * radius * 2 - radius)
        y = near_y + int(rng.random() * radius * 2 - radius)
        if grid.is_walkable(x, y):
            return Waypoint(x, y)
    return Waypoint(near_x, near_y)


class GridPathService:
    """``PathService`` backed by an ``EnvironmentGrid``.

    Randomness comes from an injected ``random.Random`` so wandering is
    reproducible under a fixed seed.
    """

    def __init__(self, grid: EnvironmentGrid, rng: Optional[random.Random] = None):
        self.grid = grid
        self.rng = rng if rng is not None else random.Random()

    def find_path(
        self, from_x: int, from_y: int, to_x: int, to_y: int, max_steps: Optional[int] = None
    ) -> Optional[List[Waypoint]]:
        return grid_shortest_path(
            self.grid,
            (from_x, from_y),
            (to_x, to_y),
            max_steps=DEFAULT_MAX_STEPS if max_steps is None else max_steps,
        )

    def random_walkable(self, around_x: int, around_y: int, radius: int) -> Waypoint:
        return random_walkable(self.grid, around_x, around_y, radius, self.rng)

    def is_walkable(self, x: int, y: int) -> bool:
        return self.grid.is_walkable(x, y)
