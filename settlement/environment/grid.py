"""Tile grid the settlement lives on.

Tiles are addressed as (x, y) with x growing east and y growing south. Each
tile carries a terrain id from the world schema; whether it blocks movement is
derived from that terrain's ``walkable``/``solid`` flags, and building
footprints can be blocked on top of the terrain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set, Tuple


@dataclass
class GridTile:
    """Metadata about a single tile in the environment grid."""

    terrain: str = "grass"
    collision: bool = False
    building: Optional[str] = None


@dataclass
class EnvironmentGrid:
    """Sparse 2D grid; tiles not listed are open ``default_terrain``."""

    width: int
    height: int
    tiles: Dict[Tuple[int, int], GridTile] = field(default_factory=dict)
    default_terrain: str = "grass"

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_tile(self, x: int, y: int) -> Optional[GridTile]:
        return self.tiles.get((x, y))

    def terrain_at(self, x: int, y: int) -> str:
        tile = self.get_tile(x, y)
        return tile.terrain if tile is not None else self.default_terrain

    def is_walkable(self, x: int, y: int) -> bool:
        if not self.in_bounds(x, y):
            return False
        tile = self.get_tile(x, y)
        if tile is None:
            return True
        return not tile.collision

    def block(self, x: int, y: int, building: Optional[str] = None) -> None:
        tile = self.tiles.setdefault((x, y), GridTile(terrain=self.default_terrain))
        tile.collision = True
        if building is not None:
            tile.building = building

    def block_rect(self, x: int, y: int, w: int, h: int, building: Optional[str] = None) -> None:
        """Mark a building footprint as solid."""

        for ty in range(y, y + h):
            for tx in range(x, x + w):
                if self.in_bounds(tx, ty):
                    self.block(tx, ty, building)

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[str],
        legend: Dict[str, str],
        solid_terrain: Set[str],
        default_terrain: str = "grass",
    ) -> "EnvironmentGrid":
        """Build a grid from ASCII rows, one character per tile.

        ``legend`` maps characters to terrain ids; unknown characters are
        ``default_terrain``. Terrain ids in ``solid_terrain`` block movement.
        """

        rows = list(rows)
        width = max((len(row) for row in rows), default=0)
        grid = cls(width=width, height=len(rows), default_terrain=default_terrain)
        for y, row in enumerate(rows):
            for x, char in enumerate(row):
                terrain = legend.get(char, default_terrain)
                if terrain == default_terrain and terrain not in solid_terrain:
                    continue
                grid.tiles[(x, y)] = GridTile(
                    terrain=terrain, collision=terrain in solid_terrain
                )
        return grid
