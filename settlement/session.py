"""
World session: the explicit context object for one running settlement.

Everything that would otherwise be global (the active world schema, the rule
interpreter, the path service, the agent registry, the game clock) lives on a
``WorldSession``. Agents and collaborators receive what they need from it
explicitly, so two sessions can run side by side in the same process.

Tick loop (``WorldSession.tick(dt)``):
1. Advance the game clock by ``dt`` milliseconds
2. Update every agent's FSM against the session's path service and registry
3. Apply need decay once per ``Config.NEEDS_TICK_MS`` of elapsed time
4. Detect season changes and announce them to every agent
5. On each new game day, regrow renewable stockpiles and collect tax
6. Invoke tick listeners
"""

from __future__ import annotations

import random
import re
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .agent import Agent, AgentSimState, Appearance, seeded_rng
from .config import Config
from .environment import EnvironmentGrid, GridPathService
from .logging_utils import log_deterministic, log_info, log_warning
from .movement import PathService, manhattan
from .normalizer import DEFAULT_WORLDDEF
from .perception import can_perceive
from .rules import RuleInterpreter
from .schemas import ActionOutcome, PerceivedEvent, PlacedBuilding, Season, WorldDef


TickListener = Callable[[int, "WorldSession"], None]

DEFAULT_START_TIME = datetime(2000, 1, 1, 8, 0, 0)


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_") or "npc"


class WorldSession:
    """
    One settlement, from populate to teardown.

    The session owns its agents; the schema and rule interpreter are shared,
    read-only, by all of them.
    """

    def __init__(
        self,
        world_def: Optional[WorldDef] = None,
        paths: Optional[PathService] = None,
        *,
        name: str = "Settlement",
        buildings: Optional[Iterable[PlacedBuilding]] = None,
        rules: Optional[RuleInterpreter] = None,
        seed: Optional[int] = None,
        start_time: Optional[datetime] = None,
        tick_listeners: Optional[List[TickListener]] = None,
    ):
        """Initialize a session.

        Args:
            world_def: Normalized schema (defaults to the built-in village)
            paths: Route-finding collaborator (defaults to an open 40x30 grid)
            name: World name shown to prompt consumers
            buildings: Placed buildings on the map
            rules: Rule interpreter (defaults to one over ``world_def``)
            seed: Seed for the session's own randomness (spawn points, wander)
            start_time: Game time at elapsed 0
            tick_listeners: Callables invoked as ``listener(tick, session)``
        """
        self.world_def = world_def or DEFAULT_WORLDDEF
        self.rules = rules or RuleInterpreter(self.world_def)
        self.rng = random.Random(seed)
        self.paths: PathService = paths or GridPathService(
            EnvironmentGrid(width=40, height=30), rng=random.Random(seed)
        )
        self.name = name
        self.buildings: List[PlacedBuilding] = list(buildings or [])

        self.agents: Dict[str, Agent] = {}
        # id → anything with x/y; agents plus externally driven entities (a player)
        self.entities: Dict[str, Any] = {}

        self.world_resources: Dict[str, float] = self.rules.initial_resources()
        self.start_time = start_time or DEFAULT_START_TIME
        self.elapsed_ms = 0.0
        self.tick_count = 0
        self._needs_elapsed = 0.0
        self.season: Optional[Season] = self.rules.current_season(self.day)
        self._economy_day = self.day
        self.treasury = 0.0

        self.tick_listeners: List[TickListener] = list(tick_listeners or [])

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        """Current game time."""

        minutes = self.elapsed_ms / 1000.0 * Config.GAME_MINUTES_PER_SECOND
        return self.start_time + timedelta(minutes=minutes)

    @property
    def day(self) -> int:
        """1-based game day."""

        return (self.now() - self.start_time).days + 1

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def populate(self, npc_specs: Iterable[Mapping[str, Any]]) -> List[Agent]:
        """Spawn one agent per spec mapping.

        Recognized keys: ``id``, ``name``, ``x``/``y``, ``age``, ``occupation``,
        ``personality``, ``home``, ``relationships``, ``appearance``,
        ``inventory`` (list of items or ``{resource: qty}``).
        """

        spawned = []
        for index, spec in enumerate(npc_specs):
            spawned.append(self.spawn(spec, index=index))
        log_info(f"Populated {self.name} with {len(spawned)} villagers")
        return spawned

    def spawn(self, spec: Mapping[str, Any], *, index: int = 0) -> Agent:
        name = str(spec.get("name") or f"Villager {index + 1}")
        agent_id = str(spec.get("id") or _slug(name))
        agent_id = self._unique_id(agent_id)

        x, y = self._spawn_point(spec)
        rng = seeded_rng(agent_id)
        agent = Agent(
            agent_id,
            name,
            x,
            y,
            age=int(spec.get("age") or 25),
            occupation=str(spec.get("occupation") or "villager"),
            personality=str(spec.get("personality") or "Friendly and curious"),
            home=str(spec.get("home") or ""),
            relationships=dict(spec.get("relationships") or {}),
            appearance=Appearance.from_name(name, spec.get("appearance")),
            sim=AgentSimState.from_rules(self.rules, rng),
            rng=rng,
        )
        self._give_inventory(agent, spec.get("inventory"))
        self.add_agent(agent)
        return agent

    def _unique_id(self, base: str) -> str:
        """``base``, or ``base_2``, ``base_3``... when the id is already registered."""

        agent_id = base
        suffix = 1
        while agent_id in self.entities:
            suffix += 1
            agent_id = f"{base}_{suffix}"
        return agent_id

    def _spawn_point(self, spec: Mapping[str, Any]) -> tuple:
        if isinstance(spec.get("x"), int) and isinstance(spec.get("y"), int):
            return spec["x"], spec["y"]
        home = self.find_building(spec.get("home"))
        if home is not None:
            door_x, door_y = home.door
            spot = self.paths.random_walkable(door_x, door_y, 2)
            return spot.x, spot.y
        spot = self.paths.random_walkable(20, 15, Config.WANDER_RADIUS)
        return spot.x, spot.y

    @staticmethod
    def _give_inventory(agent: Agent, inventory: Any) -> None:
        if isinstance(inventory, Mapping):
            for resource, qty in inventory.items():
                agent.sim.add_item(str(resource), str(resource), float(qty))
        elif isinstance(inventory, list):
            for item in inventory:
                if not isinstance(item, Mapping) or not item.get("name"):
                    log_warning(f"Ignoring malformed inventory item for {agent.name}: {item!r}")
                    continue
                agent.sim.add_item(
                    str(item["name"]),
                    str(item.get("type") or item["name"]),
                    float(item.get("quantity", 1)),
                )

    def add_agent(self, agent: Agent) -> Agent:
        if agent.id in self.entities and self.entities[agent.id] is not agent:
            raise ValueError(f"Entity id '{agent.id}' is already registered")
        agent.clock = self.now
        self.agents[agent.id] = agent
        self.entities[agent.id] = agent
        return agent

    def remove_agent(self, agent_id: str) -> Optional[Agent]:
        """Remove an agent. Anyone following it drops the follow on their next tick."""

        self.entities.pop(agent_id, None)
        return self.agents.pop(agent_id, None)

    def register_entity(self, entity: Any) -> None:
        """Make a non-agent entity (e.g. a player avatar) followable by id."""

        self.entities[entity.id] = entity

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_building(self, name: Optional[str]) -> Optional[PlacedBuilding]:
        """Case-insensitive lookup by name or id, falling back to substring match."""

        if not name:
            return None
        wanted = name.strip().lower()
        for building in self.buildings:
            if building.name.lower() == wanted or building.id.lower() == wanted:
                return building
        for building in self.buildings:
            if wanted in building.name.lower() or building.name.lower() in wanted:
                return building
        return None

    def building_at(self, x: int, y: int) -> Optional[PlacedBuilding]:
        for building in self.buildings:
            if building.contains(x, y):
                return building
        return None

    def nearby_agents(self, agent: Agent, radius: int = 5) -> List[Agent]:
        """Other agents within ``radius`` tiles, nearest first."""

        nearby = [
            other for other in self.agents.values()
            if other.id != agent.id and agent.distance_to(other) <= radius
        ]
        nearby.sort(key=lambda other: agent.distance_to(other))
        return nearby

    def nearby_buildings(self, agent: Agent, radius: int = 15) -> List[PlacedBuilding]:
        nearby = [
            b for b in self.buildings
            if manhattan(agent.x, agent.y, *b.door) <= radius
        ]
        nearby.sort(key=lambda b: manhattan(agent.x, agent.y, *b.door))
        return nearby

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def tick(self, dt: float) -> None:
        """Advance the whole settlement by ``dt`` milliseconds."""

        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")

        self.elapsed_ms += dt
        for agent in list(self.agents.values()):
            agent.update(dt, self.paths, self.entities)

        self._needs_elapsed += dt
        interval = Config.NEEDS_TICK_MS
        if interval <= 0:
            raise ValueError(f"NEEDS_TICK_MS must be positive, got {interval}")
        while self._needs_elapsed >= interval:
            self._needs_elapsed -= interval
            for agent in self.agents.values():
                self.rules.tick_needs(agent, self.season)

        self._check_season()
        self._check_new_day()

        self.tick_count += 1
        for listener in self.tick_listeners:
            listener(self.tick_count, self)

    def _check_season(self) -> None:
        season = self.rules.current_season(self.day)
        if season is None:
            return
        if self.season is not None and season.id == self.season.id:
            return
        self.season = season
        log_deterministic(f"Season changed to {season.id} on day {self.day}")
        self.broadcast_event(
            PerceivedEvent(type="season", description=f"The season changed to {season.id}")
        )

    def _check_new_day(self) -> None:
        day = self.day
        while self._economy_day < day:
            self._economy_day += 1
            self.rules.produce_resources(self.world_resources, self.season)
            collected = self.rules.collect_taxes(self.agents.values())
            self.treasury += collected
            log_deterministic(
                f"Day {self._economy_day}: stockpiles regrew, collected {collected:.2f} "
                f"{self.world_def.economy.currency} in tax"
            )

    def broadcast_event(
        self, event: PerceivedEvent | Mapping[str, Any], radius: Optional[int] = None
    ) -> List[Agent]:
        """Deliver an event to every agent that can perceive it."""

        if not isinstance(event, PerceivedEvent):
            event = PerceivedEvent.model_validate(event)
        reached = []
        for agent in self.agents.values():
            if can_perceive(agent.x, agent.y, event, radius):
                agent.perceive_event(event)
                reached.append(agent)
        return reached

    def apply_action(
        self, agent_id: str, action_id: str, target_id: Optional[str] = None
    ) -> ActionOutcome:
        """Perform a schema action for an agent against the shared stockpile."""

        agent = self.agents.get(agent_id)
        if agent is None:
            return ActionOutcome(
                action_id=action_id, performed=False, changes=[f"Unknown agent {agent_id}"]
            )
        target = self.entities.get(target_id) if target_id else None
        outcome = self.rules.apply_action(
            agent, action_id, target=target, world_resources=self.world_resources
        )
        if outcome.performed:
            agent.record_memory(f"I did {outcome.action_id}.", 3)
        return outcome
