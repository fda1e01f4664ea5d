"""Turn collaborator decisions into agent commands.

Each ``apply_*`` function mutates one agent through its public commands
(``go_to``, ``flee_from``, ``start_following``...) and reports whether a
movement command was issued. Targets that cannot be resolved are not errors:
the agent keeps its speech and thought and simply stays put.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from settlement.agent import Agent, AgentState
from settlement.logging_utils import log_deterministic
from settlement.schemas import (
    ActionTag,
    BehaviorDecision,
    ConversationReply,
    EventReaction,
    PerceivedEvent,
    PlacedBuilding,
)

if TYPE_CHECKING:  # pragma: no cover
    from settlement.session import WorldSession


REACTION_SPEECH_MS = 5000
SHOUT_SPEECH_MS = 3000
WATER_SOURCES = ("well", "river", "pond", "fountain")
# Rushing helpers stop just below the source instead of on it.
HELP_OFFSET_Y = 2


def _find_water_source(session: "WorldSession") -> Optional[PlacedBuilding]:
    for building in session.buildings:
        lowered = building.name.lower()
        if any(word in lowered for word in WATER_SOURCES):
            return building
    return None


def _find_agent_by_name(session: "WorldSession", name: str) -> Optional[Agent]:
    wanted = name.strip().lower()
    if not wanted:
        return None
    for agent in session.agents.values():
        if agent.name.lower() == wanted:
            return agent
    for agent in session.agents.values():
        if wanted in agent.name.lower():
            return agent
    return None


def apply_action_tag(
    agent: Agent,
    tag: Optional[ActionTag],
    session: "WorldSession",
    *,
    requester_id: Optional[str] = None,
    requester_name: Optional[str] = None,
) -> bool:
    """Carry out a tag attached to a conversation reply."""

    if tag is None:
        return False

    if tag.kind == "follow":
        if requester_id is None:
            return False
        agent.start_following(requester_id, requester_name)
        log_deterministic(f"{agent.name} is now following {requester_name or requester_id}")
        return True

    if tag.kind == "go":
        building = session.find_building(tag.target)
        if building is None:
            log_deterministic(f"{agent.name} cannot find a place called {tag.target!r}")
            return False
        return agent.go_to_building(building, session.paths)

    # stay
    agent.stop_following()
    return False


def apply_conversation_reply(
    agent: Agent,
    reply: ConversationReply,
    session: "WorldSession",
    *,
    requester_id: Optional[str] = None,
    requester_name: Optional[str] = None,
) -> bool:
    """Speak the reply, remember the exchange, then act on its tag."""

    agent.say(reply.text)
    if reply.text:
        who = requester_name or "the traveler"
        agent.record_memory(f"Talked with {who}. I said: \"{reply.text[:80]}\"", 4)
    return apply_action_tag(
        agent, reply.action, session, requester_id=requester_id, requester_name=requester_name
    )


def apply_behavior_decision(
    agent: Agent, decision: BehaviorDecision, session: "WorldSession"
) -> bool:
    if decision.speech:
        agent.say(decision.speech)
    if decision.thought:
        agent.current_activity = decision.thought

    if decision.action == "walk_to":
        building = session.find_building(decision.target)
        if building is not None:
            return agent.go_to_building(building, session.paths)
        other = _find_agent_by_name(session, decision.target)
        if other is not None:
            return agent.go_to(other.x, other.y + 1, session.paths, f"Walking to {other.name}")
        return False

    if decision.action == "talk_to":
        other = _find_agent_by_name(session, decision.target)
        if other is None or other.id == agent.id:
            return False
        return agent.go_to(other.x, other.y + 1, session.paths, f"Going to talk to {other.name}")

    if decision.action in ("flee", "investigate"):
        if decision.action == "flee":
            event = agent.perceived.take_pending_danger() or _latest_sourced_event(agent)
        else:
            event = agent.perceived.pending_danger or _latest_sourced_event(agent)
        if event is None or event.source is None:
            return False
        if decision.action == "flee":
            return agent.flee_from(event.x, event.y, session.paths)
        return agent.go_to(event.x, event.y + HELP_OFFSET_Y, session.paths, "Investigating")

    # idle
    if agent.state in (AgentState.WALKING, AgentState.LEADING):
        agent.set_state(AgentState.IDLE)
    return False


def _latest_sourced_event(agent: Agent) -> Optional[PerceivedEvent]:
    for event in reversed(agent.perceived.recent(len(agent.perceived))):
        if event.source is not None:
            return event
    return None


def apply_event_reaction(
    agent: Agent,
    reaction: EventReaction,
    event: PerceivedEvent,
    session: "WorldSession",
) -> bool:
    if reaction.speech:
        agent.say(reaction.speech, REACTION_SPEECH_MS)
    if reaction.thought:
        agent.current_activity = reaction.thought

    if event.source is None or reaction.reaction == "ignore":
        return False
    if agent.perceived.pending_danger is event:
        agent.perceived.take_pending_danger()

    if reaction.reaction in ("flee", "panic"):
        return agent.flee_from(event.x, event.y, session.paths)

    if reaction.reaction == "help":
        water = _find_water_source(session)
        if water is not None and agent.go_to_building(water, session.paths):
            agent.say(f"I'll get water from {water.name}!", REACTION_SPEECH_MS)
            return True
        return agent.go_to(
            event.x, event.y + HELP_OFFSET_Y, session.paths, "Rushing to help!"
        )

    # investigate
    return agent.go_to(event.x, event.y + HELP_OFFSET_Y, session.paths, "Investigating")


def fallback_event_reaction(
    agent: Agent, event: PerceivedEvent, session: "WorldSession", *, failed: bool = False
) -> bool:
    """Deterministic reaction used when no collaborator answer is available.

    ``failed`` marks that a collaborator was asked and gave nothing usable;
    only danger gets a reaction then.
    """

    if event.is_danger:
        agent.say("Fire! Run!" if failed else "Oh no, fire! We need to get away!", SHOUT_SPEECH_MS)
        if event.source is None:
            return False
        return agent.flee_from(event.x, event.y, session.paths)

    if failed:
        return False
    detail = event.description or event.message or event.type
    agent.say(f"Did you hear? {detail}", SHOUT_SPEECH_MS)
    return False
