"""
Per-NPC runtime: identity, position, simulation state and the behavior FSM.

An ``Agent`` is owned exclusively by the tick loop of its world session. Each
tick the session calls ``Agent.update(dt, paths, registry)``; the agent then

1. counts down its speech bubble
2. runs the handler for its current state (idle, following, path-following)
3. interpolates its pixel position toward the tile it is stepping onto

State machine::

    idle ──timer expires, route found──▶ walking ──path exhausted──▶ idle
    idle ──danger perceived──────────▶ fleeing ──path exhausted──▶ idle
    any ──start_following()──────────▶ following ──stop_following()──▶ idle
    any ──start_leading()────────────▶ leading ──path exhausted──▶ idle
    talking / working: set externally, no autonomous movement

Route misses are never errors. An idle agent that fails to find a wander
route re-arms a shorter timer; a follower that gets no route simply retries
on the next tick.

Randomness is always drawn from a ``random.Random`` seeded from the agent's
identity, never from the module-level generator, so a run is reproducible.
"""

from __future__ import annotations

import hashlib
import math
import random
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .config import Config
from .defaults import HAIR_COLORS, PANTS_COLORS, SHIRT_COLORS, SKIN_COLOR
from .memory import MemoryLog, MemoryStrategy
from .movement import PathService, Waypoint, facing, manhattan, step_toward, tile_center
from .perception import PerceivedEventLog, event_importance, event_memory_text
from .rules import RuleInterpreter
from .schemas import InventoryItem, MemoryEntry, PerceivedEvent, PlacedBuilding


INVENTORY_CAPACITY = 40

# Dwell timers (ms)
INITIAL_IDLE_MIN, INITIAL_IDLE_SPREAD = 2000, 3000
ARRIVED_IDLE_MIN, ARRIVED_IDLE_SPREAD = 3000, 5000
RETRY_IDLE_MIN, RETRY_IDLE_SPREAD = 1000, 2000
AFTER_FOLLOW_IDLE = 2000

FOLLOW_SEARCH_STEPS = 50
FLEE_DISTANCE = 10
FLEE_SCATTER_RADIUS = 5
DEFAULT_SPEECH_MS = 4000


class AgentState(str, Enum):
    IDLE = "idle"
    WALKING = "walking"
    TALKING = "talking"
    FOLLOWING = "following"
    FLEEING = "fleeing"
    LEADING = "leading"
    WORKING = "working"


PATH_FOLLOWING_STATES = frozenset({AgentState.WALKING, AgentState.FLEEING, AgentState.LEADING})


def seeded_rng(seed_text: str) -> random.Random:
    """Deterministic generator derived from an identity string."""

    digest = hashlib.sha256(seed_text.encode("utf-8")).hexdigest()
    return random.Random(int(digest[:16], 16))


@dataclass
class Appearance:
    hair: str
    shirt: str
    pants: str
    skin: str = SKIN_COLOR

    @classmethod
    def from_name(cls, name: str, overrides: Optional[Mapping[str, str]] = None) -> "Appearance":
        """Same name, same look. Explicit ``hairColor``/``shirtColor`` overrides win."""

        rng = seeded_rng(name)
        overrides = overrides or {}
        hair = rng.choice(HAIR_COLORS)
        shirt = rng.choice(SHIRT_COLORS)
        pants = rng.choice(PANTS_COLORS)
        return cls(
            hair=overrides.get("hairColor") or overrides.get("hair_color") or hair,
            shirt=overrides.get("shirtColor") or overrides.get("shirt_color") or shirt,
            pants=pants,
        )


@dataclass
class AgentSimState:
    """Schema-driven vitals of one agent.

    Keys of ``needs``/``skills``/``traits``/``status`` are exactly the ids
    declared by the world schema the agent was spawned from.
    """

    needs: Dict[str, float] = field(default_factory=dict)
    skills: Dict[str, float] = field(default_factory=dict)
    traits: Dict[str, float] = field(default_factory=dict)
    status: Dict[str, float] = field(default_factory=dict)
    inventory: List[InventoryItem] = field(default_factory=list)
    familiarity: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_rules(cls, rules: RuleInterpreter, rng: random.Random) -> "AgentSimState":
        return cls(
            needs=rules.initial_needs(rng),
            skills=rules.initial_skills(rng),
            traits=rules.initial_traits(rng),
            status=rules.initial_status(rng),
        )

    @property
    def total_items(self) -> float:
        return sum(item.quantity for item in self.inventory)

    def add_item(self, name: str, type: Optional[str] = None, quantity: float = 1) -> float:
        """Add goods, truncated to the carrying capacity. Returns the amount added."""

        item_type = (type or name).lower()
        quantity = min(quantity, max(0.0, INVENTORY_CAPACITY - self.total_items))
        if quantity <= 0:
            return 0
        for item in self.inventory:
            if item.name == name and item.type == item_type:
                item.quantity += quantity
                return quantity
        self.inventory.append(InventoryItem(name=name, type=item_type, quantity=quantity))
        return quantity

    def remove_item(self, resource: str, quantity: float = 1) -> float:
        """Remove up to ``quantity`` matched by type or name. Returns the amount removed."""

        wanted = resource.lower()
        left = quantity
        for item in self.inventory:
            if left <= 0:
                break
            if item.type.lower() != wanted and item.name.lower() != wanted:
                continue
            take = min(item.quantity, left)
            item.quantity -= take
            left -= take
        self.inventory = [item for item in self.inventory if item.quantity > 0]
        return quantity - left

    def count_item(self, resource: str) -> float:
        wanted = resource.lower()
        return sum(
            item.quantity
            for item in self.inventory
            if item.type.lower() == wanted or item.name.lower() == wanted
        )


class Agent:
    """A simulated villager.

    Position is a discrete tile (``x``, ``y``), which is authoritative, plus a
    continuous pixel position (``px``, ``py``) used only to interpolate
    between tiles. The follow target is held as an id and resolved through the
    registry passed to ``update``, so a followed entity can disappear without
    leaving a dangling reference.
    """

    def __init__(
        self,
        agent_id: str,
        name: str,
        x: int,
        y: int,
        *,
        age: int = 25,
        occupation: str = "villager",
        personality: str = "Friendly and curious",
        home: str = "",
        relationships: Optional[Dict[str, str]] = None,
        appearance: Optional[Appearance] = None,
        sim: Optional[AgentSimState] = None,
        memory: Optional[MemoryStrategy] = None,
        rng: Optional[random.Random] = None,
        speed: Optional[float] = None,
        follow_distance: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.id = agent_id
        self.name = name
        self.age = age
        self.occupation = occupation
        self.personality = personality
        self.home = home
        self.relationships: Dict[str, str] = dict(relationships or {})

        self.x = x
        self.y = y
        self.px, self.py = tile_center(x, y)
        self.direction = "down"
        self.moving = False
        self.target_x = x
        self.target_y = y
        self.speed = Config.NPC_SPEED if speed is None else speed

        self.appearance = appearance or Appearance.from_name(name)
        self.rng = rng or seeded_rng(agent_id or name)
        self.sim = sim or AgentSimState()
        self.memory: MemoryStrategy = memory or MemoryLog()
        self.perceived = PerceivedEventLog()
        self.clock = clock or datetime.now

        self.state = AgentState.IDLE
        self.current_activity = "Standing around"
        self.path: List[Waypoint] = []
        self.path_index = 0
        self.wait_timer = INITIAL_IDLE_MIN + self.rng.random() * INITIAL_IDLE_SPREAD

        self.follow_target_id: Optional[str] = None
        self.follow_target_name: Optional[str] = None
        self.follow_distance = Config.FOLLOW_DISTANCE if follow_distance is None else follow_distance

        self.speech: Optional[str] = None
        self.speech_timer = 0.0

    def __repr__(self) -> str:
        return f"Agent({self.id!r}, {self.name!r}, ({self.x}, {self.y}), {self.state.value})"

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def update(
        self,
        dt: float,
        paths: PathService,
        registry: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Advance this agent by ``dt`` milliseconds."""

        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")

        if self.speech_timer > 0:
            self.speech_timer -= dt
            if self.speech_timer <= 0:
                self.speech = None
                self.speech_timer = 0.0

        if self.state == AgentState.FOLLOWING:
            self._update_following(paths, registry)
        elif self.state == AgentState.IDLE:
            self._update_idle(dt, paths)
        elif self.state in PATH_FOLLOWING_STATES:
            self._follow_path()

        if self.moving:
            target_px, target_py = tile_center(self.target_x, self.target_y)
            self.px, self.py, arrived = step_toward(
                self.px, self.py, target_px, target_py, self.speed
            )
            if arrived:
                self.x, self.y = self.target_x, self.target_y
                self.moving = False

    def _update_idle(self, dt: float, paths: PathService) -> None:
        danger = self.perceived.take_pending_danger()
        if danger is not None and danger.source is not None:
            self.flee_from(danger.source[0], danger.source[1], paths)
            return

        self.wait_timer -= dt
        if self.wait_timer <= 0:
            self._pick_new_target(paths)

    def _pick_new_target(self, paths: PathService) -> None:
        target = paths.random_walkable(self.x, self.y, Config.WANDER_RADIUS)
        path = paths.find_path(self.x, self.y, target.x, target.y)
        if path:
            self.path = list(path)
            self.path_index = 0
            self.state = AgentState.WALKING
            self.current_activity = "Wandering around"
        else:
            self.wait_timer = RETRY_IDLE_MIN + self.rng.random() * RETRY_IDLE_SPREAD

    def _follow_path(self) -> None:
        if self.moving:
            return
        if self.path_index < len(self.path):
            self._begin_step(self.path[self.path_index])
            self.path_index += 1
            return
        # Path exhausted
        self.state = AgentState.IDLE
        self.wait_timer = ARRIVED_IDLE_MIN + self.rng.random() * ARRIVED_IDLE_SPREAD
        self.path = []
        self.path_index = 0

    def _update_following(
        self, paths: PathService, registry: Optional[Mapping[str, Any]]
    ) -> None:
        target = None
        if registry is not None and self.follow_target_id is not None:
            target = registry.get(self.follow_target_id)
        if target is None:
            self.stop_following()
            return

        distance = manhattan(self.x, self.y, target.x, target.y)
        if distance > self.follow_distance:
            if self.moving:
                return
            path = paths.find_path(self.x, self.y, target.x, target.y, FOLLOW_SEARCH_STEPS)
            # Step once toward the target, never onto its tile.
            if path and len(path) > 1:
                self._begin_step(path[0])
        else:
            self.direction = facing(target.x - self.x, target.y - self.y, self.direction)

    def _begin_step(self, waypoint: Waypoint) -> None:
        self.target_x, self.target_y = waypoint.x, waypoint.y
        self.moving = True
        self.direction = facing(waypoint.x - self.x, waypoint.y - self.y, self.direction)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def set_state(self, state: Union[AgentState, str]) -> None:
        """Force a state; leaving ``following`` drops the follow target."""

        state = AgentState(state)
        if state != AgentState.FOLLOWING:
            self.follow_target_id = None
            self.follow_target_name = None
        if state not in PATH_FOLLOWING_STATES:
            self.path = []
            self.path_index = 0
        self.state = state

    def start_following(self, target_id: str, target_name: Optional[str] = None) -> None:
        """Accept a follow request; abandons any autonomous route in progress."""

        self.state = AgentState.FOLLOWING
        self.follow_target_id = target_id
        self.follow_target_name = target_name
        self.path = []
        self.path_index = 0
        who = target_name or "the traveler"
        self.current_activity = f"Following {who}"
        self.record_memory(f"I agreed to follow {who}.", 6)

    def stop_following(self) -> None:
        if self.state != AgentState.FOLLOWING:
            return
        who = self.follow_target_name or "the traveler"
        self.state = AgentState.IDLE
        self.follow_target_id = None
        self.follow_target_name = None
        self.wait_timer = AFTER_FOLLOW_IDLE
        self.current_activity = "Standing around after following someone"
        self.record_memory(f"I stopped following {who}.", 4)

    def go_to(
        self,
        x: int,
        y: int,
        paths: PathService,
        activity: Optional[str] = None,
        *,
        state: AgentState = AgentState.WALKING,
    ) -> bool:
        """Request a route to (x, y) and start walking it. False on a route miss."""

        path = paths.find_path(self.x, self.y, x, y)
        if not path:
            return False
        if self.state == AgentState.FOLLOWING:
            self.follow_target_id = None
            self.follow_target_name = None
        self.path = list(path)
        self.path_index = 0
        self.state = state
        self.current_activity = activity or f"Walking to ({x}, {y})"
        return True

    def go_to_building(self, building: Optional[PlacedBuilding], paths: PathService) -> bool:
        if building is None:
            return False
        door_x, door_y = building.door
        if not self.go_to(door_x, door_y, paths, f"Walking to {building.name}"):
            return False
        self.record_memory(f"Heading to {building.name}", 3)
        return True

    def start_leading(self, building: Optional[PlacedBuilding], paths: PathService) -> bool:
        """Walk ahead to a building so others can follow."""

        if building is None:
            return False
        door_x, door_y = building.door
        started = self.go_to(
            door_x, door_y, paths, f"Leading the way to {building.name}",
            state=AgentState.LEADING,
        )
        if started:
            self.record_memory(f"I led the way to {building.name}.", 4)
        return started

    def flee_from(self, x: int, y: int, paths: PathService) -> bool:
        """Run roughly ``FLEE_DISTANCE`` tiles directly away from (x, y)."""

        dx = self.x - x
        dy = self.y - y
        distance = max(1.0, math.hypot(dx, dy))
        flee_x = round(self.x + dx / distance * FLEE_DISTANCE)
        flee_y = round(self.y + dy / distance * FLEE_DISTANCE)
        target = paths.random_walkable(flee_x, flee_y, FLEE_SCATTER_RADIUS)
        return self.go_to(
            target.x, target.y, paths, "Fleeing from danger!", state=AgentState.FLEEING
        )

    def say(self, text: str, duration: float = DEFAULT_SPEECH_MS) -> None:
        self.speech = text
        self.speech_timer = duration

    # ------------------------------------------------------------------
    # Memory and perception
    # ------------------------------------------------------------------

    def record_memory(self, text: str, importance: int = 3) -> MemoryEntry:
        return self.memory.add(text, importance, timestamp=self.clock())

    def recent_memories_text(self, n: int = 10) -> str:
        """Last ``n`` memories, oldest first, as ``[HH:MM:SS] text`` lines."""

        return "\n".join(
            f"[{entry.timestamp:%H:%M:%S}] {entry.text}" for entry in self.memory.recent(n)
        )

    def perceive_event(self, event: Union[PerceivedEvent, Mapping[str, Any]]) -> PerceivedEvent:
        if not isinstance(event, PerceivedEvent):
            event = PerceivedEvent.model_validate(event)
        self.perceived.append(event)
        self.record_memory(event_memory_text(event), event_importance(event))
        return event

    def perceived_events_text(self) -> str:
        return self.perceived.render()

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def distance_to(self, other: Any) -> int:
        """Manhattan distance in tiles to anything with ``x``/``y``."""

        return manhattan(self.x, self.y, other.x, other.y)
