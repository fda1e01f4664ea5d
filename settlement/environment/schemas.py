"""Pydantic schemas for grid definitions in scenario files.

These models mirror the dataclasses in ``grid.py`` but describe the
serialized form a scenario author writes.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

from .grid import EnvironmentGrid


class GridSpec(BaseModel):
    """ASCII description of the settlement map."""

    width: int = Field(40, ge=1, description="Used when no rows are given")
    height: int = Field(30, ge=1, description="Used when no rows are given")
    rows: List[str] = Field(
        default_factory=list,
        description="One string per map row, one character per tile",
    )
    legend: Dict[str, str] = Field(
        default_factory=lambda: {".": "grass", "#": "water", "=": "path"},
        description="Map of character → terrain id",
    )
    default_terrain: str = Field("grass", description="Terrain of unlisted tiles")
    blocked: List[List[int]] = Field(
        default_factory=list,
        description="Extra solid tiles as [x, y] pairs",
    )

    def build(self, solid_terrain: Optional[Set[str]] = None) -> EnvironmentGrid:
        solid = solid_terrain or set()
        if self.rows:
            grid = EnvironmentGrid.from_rows(
                self.rows, self.legend, solid, default_terrain=self.default_terrain
            )
        else:
            grid = EnvironmentGrid(
                width=self.width, height=self.height, default_terrain=self.default_terrain
            )
        for pair in self.blocked:
            if len(pair) == 2:
                grid.block(pair[0], pair[1])
        return grid
