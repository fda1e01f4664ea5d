"""
Movement primitives shared by every agent.

Agents never search for routes themselves. They consume a ``PathService``
(anything with ``find_path``, ``random_walkable`` and ``is_walkable``) and
walk the returned waypoints one tile at a time. Between two tiles the agent's
continuous pixel position is interpolated toward the next tile's centre; the
discrete tile coordinate only changes when the agent snaps onto it.
"""

from __future__ import annotations

import math
from typing import List, NamedTuple, Optional, Protocol, Tuple, runtime_checkable

from .config import Config


class Waypoint(NamedTuple):
    x: int
    y: int


@runtime_checkable
class PathService(Protocol):
    """Route-finding collaborator consumed by agents.

    ``find_path`` returns the waypoints after the start tile (the start is
    excluded), or ``None`` when no route exists. A miss is a soft failure.
    """

    def find_path(
        self, from_x: int, from_y: int, to_x: int, to_y: int, max_steps: Optional[int] = None
    ) -> Optional[List[Waypoint]]:
        ...

    def random_walkable(self, around_x: int, around_y: int, radius: int) -> Waypoint:
        ...

    def is_walkable(self, x: int, y: int) -> bool:
        ...


def tile_center(x: int, y: int, tile_size: Optional[int] = None) -> Tuple[float, float]:
    """Pixel coordinate of the centre of tile (x, y)."""

    size = Config.TILE_SIZE if tile_size is None else tile_size
    return ((x + 0.5) * size, (y + 0.5) * size)


def step_toward(
    px: float, py: float, target_px: float, target_py: float, speed: float
) -> Tuple[float, float, bool]:
    """Advance (px, py) toward a target pixel by ``speed``.

    Returns the new position and whether the target was reached. When the
    remaining distance is below one step the position snaps exactly onto the
    target, so there is never floating overshoot.
    """

    dx = target_px - px
    dy = target_py - py
    distance = math.hypot(dx, dy)
    if distance < speed:
        return target_px, target_py, True
    return px + dx / distance * speed, py + dy / distance * speed, False


def facing(dx: float, dy: float, current: str = "down") -> str:
    """Direction an agent faces when looking along (dx, dy).

    The dominant axis wins; a zero vector keeps ``current``.
    """

    if abs(dx) > abs(dy):
        return "right" if dx > 0 else "left"
    if dy != 0:
        return "down" if dy > 0 else "up"
    return current


def manhattan(ax: int, ay: int, bx: int, by: int) -> int:
    return abs(ax - bx) + abs(ay - by)
