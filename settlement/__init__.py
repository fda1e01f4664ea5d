"""
Settlement - schema-driven NPC village simulation.

A world is described by data (``WorldDef``): needs, resources, skills,
occupations and actions. Villagers walk a tile grid, remember what happens to
them, and can optionally consult an external model for dialogue and
decisions. Without one, they keep wandering deterministically.
"""

__version__ = "0.1.0"

from .config import Config
from .index import EntityIndex, SchemaIndex
from .normalizer import (
    DEFAULT_WORLDDEF,
    generate_world_def,
    merge_over_defaults,
    normalize,
)
from .rules import RuleInterpreter, relationship_label
from .memory import MemoryLog, MemoryStrategy
from .perception import PerceivedEventLog, can_perceive, perceived_events_text
from .movement import PathService, Waypoint, step_toward, tile_center
from .environment import EnvironmentGrid, GridPathService, GridSpec, grid_shortest_path
from .agent import Agent, AgentSimState, AgentState, Appearance
from .session import WorldSession
from .scenario import ScenarioLoader, load_world_def
from .cognition import (
    DEFAULT_PROMPTS,
    LLMDecisionMaker,
    PromptContext,
    PromptLibrary,
    PromptTemplate,
    build_prompt_context,
    parse_action_tag,
    parse_json_lenient,
)
from .schemas import (
    ActionDef,
    ActionOutcome,
    ActionTag,
    BehaviorDecision,
    CanPerformResult,
    ConversationReply,
    EventReaction,
    MemoryEntry,
    NeedDef,
    OccupationDef,
    PerceivedEvent,
    PlacedBuilding,
    ResourceDef,
    WorldDef,
)

__all__ = [
    "Config",
    "EntityIndex",
    "SchemaIndex",
    "DEFAULT_WORLDDEF",
    "generate_world_def",
    "merge_over_defaults",
    "normalize",
    "RuleInterpreter",
    "relationship_label",
    "MemoryLog",
    "MemoryStrategy",
    "PerceivedEventLog",
    "can_perceive",
    "perceived_events_text",
    "PathService",
    "Waypoint",
    "step_toward",
    "tile_center",
    "EnvironmentGrid",
    "GridPathService",
    "GridSpec",
    "grid_shortest_path",
    "Agent",
    "AgentSimState",
    "AgentState",
    "Appearance",
    "WorldSession",
    "ScenarioLoader",
    "load_world_def",
    "DEFAULT_PROMPTS",
    "LLMDecisionMaker",
    "PromptContext",
    "PromptLibrary",
    "PromptTemplate",
    "build_prompt_context",
    "parse_action_tag",
    "parse_json_lenient",
    "ActionDef",
    "ActionOutcome",
    "ActionTag",
    "BehaviorDecision",
    "CanPerformResult",
    "ConversationReply",
    "EventReaction",
    "MemoryEntry",
    "NeedDef",
    "OccupationDef",
    "PerceivedEvent",
    "PlacedBuilding",
    "ResourceDef",
    "WorldDef",
]
