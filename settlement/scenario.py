"""
Scenario loading for JSON-defined settlements.

A scenario bundles everything needed to start a ``WorldSession``:
- an optional (partial) world schema, layered over the built-in defaults
- an optional ASCII map; without one the settlement is an open 40x30 meadow
- placed buildings, whose footprints become solid on the map
- the villagers to spawn

Scenario file structure:
```json
{
  "name": "Millbrook",
  "seed": 7,
  "world_def": {"culture": "river village", "needs": [...]},
  "grid": {"rows": ["....##....", ...], "legend": {".": "grass", "#": "water"}},
  "buildings": [{"id": "bakery", "name": "The Bakery", "type": "house", "x": 4, "y": 3}],
  "npcs": [{"name": "Martha", "occupation": "baker", "home": "The Bakery"}]
}
```

Usage:
    loader = ScenarioLoader()
    session = loader.load("village")
"""

import json
import random
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from pydantic import ValidationError

from .config import Config
from .environment import EnvironmentGrid, GridPathService, GridSpec
from .logging_utils import log_success
from .normalizer import generate_world_def
from .schemas import PlacedBuilding, WorldDef
from .session import WorldSession


def solid_terrain_ids(world_def: WorldDef) -> Set[str]:
    """Terrain ids that block movement under this schema."""

    return {t.id for t in world_def.terrain if t.solid or not t.walkable}


def load_world_def(path: Path) -> WorldDef:
    """Read a (possibly partial) world schema file and normalize it over the defaults."""

    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError(f"World schema at {path} must be a JSON object")
    return generate_world_def(data)


class ScenarioLoader:
    """Load and validate settlement scenarios from JSON files.

    Directory structure:
    - Default: {PROJECT_ROOT}/examples/scenarios/
    - Override via constructor: ScenarioLoader(Path("/custom/scenarios"))
    - Scenario files: {scenario_name}.json (e.g., "village.json")
    """

    def __init__(self, scenarios_dir: Optional[Path] = None):
        self.scenarios_dir = Path(scenarios_dir or Config.SCENARIOS_DIR)

    def load(self, scenario_name: str) -> WorldSession:
        """Load a scenario by name and return a populated session.

        Raises:
            FileNotFoundError: If the scenario file does not exist
            ValueError: If the scenario is structurally invalid
        """
        scenario_path = self.scenarios_dir / f"{scenario_name}.json"

        if not scenario_path.exists():
            raise FileNotFoundError(
                f"Scenario '{scenario_name}' not found at {scenario_path}"
            )

        data = json.loads(scenario_path.read_text())
        session = self.build(data)
        log_success(
            f"Loaded scenario '{session.name}' "
            f"({len(session.agents)} villagers, {len(session.buildings)} buildings)"
        )
        return session

    def build(self, data: Dict[str, Any]) -> WorldSession:
        """Build a session from already-parsed scenario data."""

        self._validate_scenario(data)

        world_def = generate_world_def(data.get("world_def"))
        buildings = self._parse_buildings(data.get("buildings") or [])
        grid = self._build_grid(data.get("grid"), world_def, buildings)
        seed = data.get("seed")

        session = WorldSession(
            world_def,
            GridPathService(grid, rng=random.Random(seed)),
            name=str(data.get("name") or "Settlement"),
            buildings=buildings,
            seed=seed,
        )
        session.populate(data.get("npcs") or [])
        return session

    def _validate_scenario(self, data: Any) -> None:
        if not isinstance(data, dict):
            raise ValueError("Scenario must be a JSON object")

        npcs = data.get("npcs", [])
        if not isinstance(npcs, list):
            raise ValueError("Scenario 'npcs' must be a list")
        for npc in npcs:
            if not isinstance(npc, dict) or not npc.get("name"):
                raise ValueError("Each npc entry must be an object with a 'name'")

        world_def = data.get("world_def")
        if world_def is not None and not isinstance(world_def, dict):
            raise ValueError("Scenario 'world_def' must be an object")

    def _parse_buildings(self, raw: List[Dict[str, Any]]) -> List[PlacedBuilding]:
        buildings = []
        for entry in raw:
            try:
                buildings.append(PlacedBuilding.model_validate(entry))
            except ValidationError as exc:
                raise ValueError(f"Invalid building entry {entry!r}: {exc}") from exc
        return buildings

    def _build_grid(
        self,
        raw: Optional[Dict[str, Any]],
        world_def: WorldDef,
        buildings: List[PlacedBuilding],
    ) -> EnvironmentGrid:
        try:
            spec = GridSpec.model_validate(raw or {})
        except ValidationError as exc:
            raise ValueError(f"Invalid grid: {exc}") from exc

        grid = spec.build(solid_terrain_ids(world_def))
        for building in buildings:
            grid.block_rect(building.x, building.y, building.w, building.h, building.id)
        return grid


__all__ = ["ScenarioLoader", "load_world_def", "solid_terrain_ids"]
