"""Reference tile grid and path service for settlements."""

from .grid import EnvironmentGrid, GridTile
from .schemas import GridSpec
from .helpers import (
    GridPathService,
    grid_shortest_path,
    random_walkable,
)

__all__ = [
    "EnvironmentGrid",
    "GridTile",
    "GridSpec",
    "GridPathService",
    "grid_shortest_path",
    "random_walkable",
]
