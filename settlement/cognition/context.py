"""Context assembly for collaborator prompts.

A ``PromptContext`` is a flat snapshot of everything a prompt may mention
about one agent at one moment: who they are, what they remember, what just
happened around them, and what the world's rules look like. It is built from
live objects but holds only plain data, so rendering never touches the
simulation.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from settlement.logging_utils import log_info
from settlement.schemas import PerceivedEvent

if TYPE_CHECKING:  # pragma: no cover
    from settlement.agent import Agent
    from settlement.session import WorldSession


@dataclass
class PromptContext:
    """Structured context passed to conversation/behavior/reaction prompts."""

    world_name: str
    time: str
    agent_id: str
    name: str
    age: int
    occupation: str
    personality: str
    current_activity: str = ""
    state: str = "idle"
    memories_text: str = ""
    events_text: str = ""
    relationships: Dict[str, str] = field(default_factory=dict)
    needs: Dict[str, float] = field(default_factory=dict)
    buildings: List[str] = field(default_factory=list)
    nearby: List[str] = field(default_factory=list)
    schema_summary: str = ""
    event: Optional[PerceivedEvent] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_agent(
        cls,
        agent: "Agent",
        *,
        world_name: str,
        time: datetime | str,
        buildings: Optional[List[str]] = None,
        nearby: Optional[List[str]] = None,
        schema_summary: str = "",
        event: Optional[PerceivedEvent] = None,
        memory_limit: int = 10,
    ) -> "PromptContext":
        if isinstance(time, datetime):
            time = time.strftime("%I:%M %p").lstrip("0")
        return cls(
            world_name=world_name,
            time=time,
            agent_id=agent.id,
            name=agent.name,
            age=agent.age,
            occupation=agent.occupation,
            personality=agent.personality,
            current_activity=agent.current_activity,
            state=agent.state.value,
            memories_text=agent.recent_memories_text(memory_limit),
            events_text=agent.perceived_events_text(),
            relationships=dict(agent.relationships),
            needs=dict(agent.sim.needs),
            buildings=list(buildings or []),
            nearby=list(nearby or []),
            schema_summary=schema_summary,
            event=event,
        )

    def relationships_text(self) -> str:
        if not self.relationships:
            return ""
        lines = ["Your relationships:"]
        lines.extend(f"- {other}: {label}" for other, label in self.relationships.items())
        return "\n".join(lines)

    def needs_text(self) -> str:
        if not self.needs:
            return "none"
        return ", ".join(f"{need}:{value:.2f}" for need, value in self.needs.items())

    def event_text(self) -> str:
        if self.event is None:
            return ""
        return self.event.description or self.event.message or self.event.type

    def event_detail(self) -> str:
        if self.event is None or not self.event.is_danger:
            return ""
        return (
            f"There is a fire at {self.event.location or 'a nearby building'}! "
            "Buildings could be destroyed and people could be hurt."
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["event"] = self.event.model_dump(mode="json") if self.event else None
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), indent=2, default=str)


def build_prompt_context(
    session: "WorldSession",
    agent: "Agent",
    *,
    event: Optional[PerceivedEvent] = None,
    nearby_radius: int = 5,
    include_schema: bool = True,
) -> PromptContext:
    """Assemble a ``PromptContext`` for ``agent`` from its session."""

    nearby = [
        f"{other.name} ({other.occupation})"
        for other in session.nearby_agents(agent, nearby_radius)
    ]
    ctx = PromptContext.from_agent(
        agent,
        world_name=session.name,
        time=session.now(),
        buildings=[building.name for building in session.buildings],
        nearby=nearby,
        schema_summary=session.rules.summarize() if include_schema else "",
        event=event,
    )

    # Enable with DEBUG_PROMPT_CONTEXT=1
    if os.getenv("DEBUG_PROMPT_CONTEXT", "").lower() in ("1", "true", "yes"):
        log_info(
            f"[PROMPT_CONTEXT] agent={agent.id} state={ctx.state} "
            f"nearby={len(nearby)} event={'yes' if event else 'no'}"
        )
    return ctx
