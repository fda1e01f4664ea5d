"""
Pydantic schemas for the settlement simulation.

All declarative world-schema entities and the structured payloads exchanged with
external collaborators are defined here.

Design Philosophy:
- The world schema (``WorldDef``) replaces hardcoded enums: needs, resources,
  skills, occupations and actions are data, not code.
- Schema entities are frozen; a world is rebuilt wholesale when regenerated,
  never patched in place.
- Field names are snake_case in Python and camelCase on the wire
  (``growth_rate`` ↔ ``growthRate``) so authored JSON round-trips unchanged.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator
from pydantic.alias_generators import to_camel

from settlement.index import SchemaIndex


_FROZEN = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


# ============================================================================
# World Schema Entities
# ============================================================================


class TerrainDef(BaseModel):
    """A tile category and whether it blocks movement."""

    model_config = _FROZEN

    id: str = Field("ground", description="Terrain identifier")
    walkable: bool = Field(True, description="Whether agents may stand on this tile")
    color: str = Field("#5b8c3e", description="Base color hint for renderers")
    variants: int = Field(1, description="Number of visual variants")
    solid: bool = Field(False, description="Whether the tile blocks movement")


class ResourceDef(BaseModel):
    """A tradeable or consumable good."""

    model_config = _FROZEN

    id: str = Field(..., description="Lower-cased resource identifier")
    renewable: bool = Field(True, description="Whether the world regenerates it")
    base_production: float = Field(0.1, description="Amount regenerated per game day")
    unit: str = Field("units", description="Display unit (rations, coins, logs...)")
    category: str = Field("material", description="consumable, currency, material...")
    start_amount: float = Field(50, description="World stockpile at creation")


class NeedDef(BaseModel):
    """A depleting drive: 0 means satisfied, 1 means desperate.

    ``threshold`` marks when an agent becomes aware of the need, ``critical``
    marks when ``status_effects`` start draining status every need tick.
    ``threshold <= critical`` is expected but only warned about.
    """

    model_config = _FROZEN

    id: str = Field(..., description="Lower-cased need identifier")
    label: str = Field("Unknown", description="Human-friendly name")
    growth_rate: float = Field(0.001, description="Growth per need tick")
    satisfied_by: List[str] = Field(default_factory=list, description="Resource or tag ids")
    decay_action: Optional[str] = Field(None, description="Action that usually relieves it")
    start_min: float = Field(0.1, description="Lower bound of spawn value")
    start_max: float = Field(0.4, description="Upper bound of spawn value")
    status_effects: Dict[str, float] = Field(
        default_factory=dict, description="status id → delta applied while critical"
    )
    threshold: float = Field(0.7, description="Awareness threshold")
    critical: float = Field(0.9, description="Level where status effects kick in")


class TraitDef(BaseModel):
    """A static personality scalar in [0, 1]."""

    model_config = _FROZEN

    id: str
    label: str = "Unknown"
    description: str = ""


class SkillDef(BaseModel):
    """A competence scalar, unbounded above."""

    model_config = _FROZEN

    id: str
    label: str = "Unknown"


class StatusDef(BaseModel):
    """A bounded vital stat (health, wealth, reputation...).

    The normalizer guarantees ``min <= default <= max``.
    """

    model_config = _FROZEN

    id: str
    label: str = "Unknown"
    min: float = 0
    max: float = 100
    default: float = 50


class RecipeItem(BaseModel):
    """One line of a recipe: a quantity of a resource."""

    model_config = _FROZEN

    resource: str
    qty: float = 1


class OccupationDef(BaseModel):
    """A production recipe gated by a skill."""

    model_config = _FROZEN

    id: str
    inputs: List[RecipeItem] = Field(default_factory=list)
    outputs: List[RecipeItem] = Field(default_factory=list)
    skill: str = ""
    description: str = ""
    building: Optional[str] = None


class ActionRequirement(BaseModel):
    """A prerequisite of an action.

    ``building`` requirements are left to the caller (they depend on nearby
    structures); ``min_wealth`` is checked against the agent's wealth status.
    """

    model_config = _FROZEN

    building: Optional[str] = None
    min_wealth: Optional[float] = None


class ActionDef(BaseModel):
    """An atomic thing an agent can do.

    ``effects`` is keyed by need, status or skill id; keys that do not name one
    of those are dropped at normalization time.
    """

    model_config = _FROZEN

    id: str
    effects: Dict[str, float] = Field(default_factory=dict)
    inputs: List[RecipeItem] = Field(default_factory=list)
    outputs: List[RecipeItem] = Field(default_factory=list)
    requires: List[ActionRequirement] = Field(default_factory=list)
    description: str = ""
    location: Optional[str] = None
    # "resources.<id>" → delta on the shared world stockpile
    world_effects: Dict[str, float] = Field(default_factory=dict)
    social: bool = False
    target: Optional[str] = Field(None, description="'agent', 'building' or None")


class BuildingTypeDef(BaseModel):
    """Structural template for a placed building."""

    model_config = _FROZEN

    id: str
    w: int = 5
    h: int = 4
    shape: str = "default"
    color: str = "#8B7355"
    roof_color: str = "#6b5335"
    rooms: List[str] = Field(default_factory=list)


class VisualStyle(BaseModel):
    model_config = _FROZEN

    palette: List[str] = Field(
        default_factory=lambda: ["#5b8c3e", "#c9b48c", "#3a7bd5", "#8B7355", "#e8d5a3"]
    )
    ground_texture: str = "organic"
    building_material: str = "wood_plank"
    vegetation_type: str = "deciduous"
    water_style: str = "still"


class Economy(BaseModel):
    model_config = _FROZEN

    currency: str = "gold"
    tax_rate: float = 0.1
    prices: Dict[str, float] = Field(default_factory=dict)


class Season(BaseModel):
    """One leg of the seasonal cycle.

    ``need_mods`` multiplies need growth rates while the season is active.
    """

    model_config = _FROZEN

    id: str
    duration: int = 7
    production_mod: float = 1.0
    need_mods: Dict[str, float] = Field(default_factory=dict)


class Evolution(BaseModel):
    model_config = _FROZEN

    seasons: List[Season] = Field(default_factory=list)
    tech_tree: Optional[Any] = None
    aging_rate: float = 0


class WorldDef(BaseModel):
    """The declarative rules of one world.

    Constructed once (normally via ``settlement.normalizer.normalize``) and
    read-only for the lifetime of a world session. The lookup index is built
    in ``model_post_init`` and shared by every agent and the rule interpreter.
    """

    model_config = _FROZEN

    terrain: List[TerrainDef] = Field(default_factory=list)
    resources: List[ResourceDef] = Field(default_factory=list)
    needs: List[NeedDef] = Field(default_factory=list)
    traits: List[TraitDef] = Field(default_factory=list)
    skills: List[SkillDef] = Field(default_factory=list)
    status: List[StatusDef] = Field(default_factory=list)
    occupations: List[OccupationDef] = Field(default_factory=list)
    actions: List[ActionDef] = Field(default_factory=list)
    building_types: List[BuildingTypeDef] = Field(default_factory=list)
    visual_style: VisualStyle = Field(default_factory=VisualStyle)
    economy: Economy = Field(default_factory=Economy)
    evolution: Evolution = Field(default_factory=Evolution)
    culture: str = ""

    _index: SchemaIndex = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        self._index = SchemaIndex(self)

    @property
    def index(self) -> SchemaIndex:
        return self._index

    # Lookups ---------------------------------------------------------------

    def find_action(self, action_id: Optional[str]) -> Optional[ActionDef]:
        return self._index.actions.find(action_id)

    def find_occupation(self, occupation_id: Optional[str]) -> Optional[OccupationDef]:
        return self._index.occupations.find(occupation_id)

    def find_need(self, need_id: Optional[str]) -> Optional[NeedDef]:
        return self._index.needs.find(need_id)

    def find_resource(self, resource_id: Optional[str]) -> Optional[ResourceDef]:
        return self._index.resources.find(resource_id)

    def find_skill(self, skill_id: Optional[str]) -> Optional[SkillDef]:
        return self._index.skills.find(skill_id)

    def find_building(self, building_type_id: Optional[str]) -> Optional[BuildingTypeDef]:
        return self._index.building_types.find(building_type_id)

    def find_status(self, status_id: Optional[str]) -> Optional[StatusDef]:
        return self._index.statuses.find(status_id)


# ============================================================================
# Rule Interpreter Results
# ============================================================================


class CanPerformResult(BaseModel):
    """Outcome of an availability probe. Misses are data, not exceptions."""

    can: bool
    reason: Optional[str] = None


class SupplyChain(BaseModel):
    producers: List[OccupationDef] = Field(default_factory=list)
    consumers: List[OccupationDef] = Field(default_factory=list)


class NeedSatisfiers(BaseModel):
    actions: List[ActionDef] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)


class ActionOutcome(BaseModel):
    """What happened when an action was applied to an agent."""

    action_id: str
    performed: bool
    changes: List[str] = Field(default_factory=list)


# ============================================================================
# Agent-facing Runtime Records
# ============================================================================


class InventoryItem(BaseModel):
    """A stack of carried goods. ``type`` usually matches a resource id."""

    name: str
    type: str
    quantity: float = Field(1, ge=0)


class MemoryEntry(BaseModel):
    """One remembered observation.

    ``sequence`` is a per-log insertion counter: it orders entries whose
    timestamps collide and breaks importance ties during eviction.
    """

    text: str
    timestamp: datetime
    importance: int = Field(3, ge=1, le=10)
    sequence: int = Field(0, ge=0)


class PerceivedEvent(BaseModel):
    """A transient world occurrence an agent became aware of."""

    type: str = Field("generic", description="fire, announcement, or any other label")
    location: Optional[str] = Field(None, description="Named place, e.g. a building")
    message: Optional[str] = Field(None, description="Announcement text")
    description: Optional[str] = Field(None, description="Free-form description")
    x: Optional[int] = Field(None, description="Tile x of the source, when known")
    y: Optional[int] = Field(None, description="Tile y of the source, when known")

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, value: Any) -> str:
        return str(value or "generic").strip().lower()

    @property
    def is_danger(self) -> bool:
        return self.type == "fire"

    @property
    def source(self) -> Optional[Tuple[int, int]]:
        if self.x is None or self.y is None:
            return None
        return (self.x, self.y)


class PlacedBuilding(BaseModel):
    """A building instance on the map (top-left tile plus footprint)."""

    id: str
    name: str
    type: str
    x: int
    y: int
    w: int = 5
    h: int = 4

    @property
    def door(self) -> Tuple[int, int]:
        """Tile just below the front wall, centred horizontally."""

        return (self.x + self.w // 2, self.y + self.h + 1)

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.x + self.w and self.y <= y < self.y + self.h


# ============================================================================
# Decision / Dialogue Collaborator Payloads
# ============================================================================


class ActionTag(BaseModel):
    """Machine-readable tag appended to a conversation reply."""

    kind: Literal["follow", "go", "stay"]
    target: Optional[str] = None


class ConversationReply(BaseModel):
    """Spoken dialogue with the optional action tag already stripped."""

    text: str
    action: Optional[ActionTag] = None


class BehaviorDecision(BaseModel):
    """Structured autonomous-behavior decision."""

    action: Literal["walk_to", "idle", "talk_to", "flee", "investigate"] = "idle"
    target: str = ""
    thought: str = ""
    speech: str = ""

    @field_validator("action", mode="before")
    @classmethod
    def _lower_action(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("target", "thought", "speech", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class EventReaction(BaseModel):
    """Structured reaction to an urgent world event."""

    reaction: Literal["flee", "help", "investigate", "panic", "ignore"] = "ignore"
    target: str = ""
    speech: str = ""
    thought: str = ""

    @field_validator("reaction", mode="before")
    @classmethod
    def _lower_reaction(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("target", "thought", "speech", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value
