"""
Perception of transient world events.

Agents do not see the whole world. They learn about fires, announcements and
other happenings only when an event is delivered to them (by a broadcast from
the world session, optionally limited to a radius around the source). Every
perceived event is also remembered, with an importance that depends on how
alarming the event type is.

Perception filtering rules:
- Events without coordinates reach everyone the broadcast targets
- Events with coordinates reach only agents within ``radius`` tiles
  (Manhattan distance) when a radius is given
- Only the last few events are rendered for prompt consumers

Usage:
    log = PerceivedEventLog()
    log.append(PerceivedEvent(type="fire", location="Bakery", x=10, y=4))
    log.render()
    # "URGENT EVENTS HAPPENING RIGHT NOW:\nThere is a FIRE at Bakery!"
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, List, Optional

from .config import Config
from .schemas import PerceivedEvent

URGENT_EVENTS_HEADER = "URGENT EVENTS HAPPENING RIGHT NOW:"

# How many perceived events are rendered for prompt consumers.
RENDERED_EVENT_WINDOW = 5

_IMPORTANCE_BY_TYPE = {
    "fire": 8,
    "announcement": 5,
}
_DEFAULT_IMPORTANCE = 4


def event_importance(event: PerceivedEvent) -> int:
    """Memory importance for an event: fire high, announcement medium, else low-medium."""

    return _IMPORTANCE_BY_TYPE.get(event.type, _DEFAULT_IMPORTANCE)


def event_memory_text(event: PerceivedEvent) -> str:
    """First-person memory line synthesized from an event."""

    if event.type == "fire":
        return f"I noticed a fire at {event.location or 'nearby'}! This is dangerous!"
    if event.type == "announcement":
        return f'I heard an announcement: "{event.message or ""}"'
    return f"Something happened nearby: {event.description or event.type}"


def describe_event(event: PerceivedEvent) -> str:
    if event.type == "fire":
        return f"There is a FIRE at {event.location or 'a nearby building'}!"
    if event.type == "announcement":
        return f'Announcement: "{event.message or ""}"'
    return f"Event: {event.description or event.type}"


def perceived_events_text(
    events: Iterable[PerceivedEvent], limit: int = RENDERED_EVENT_WINDOW
) -> str:
    """Render the last ``limit`` events under an urgency header ("" when empty)."""

    recent = list(events)[-limit:] if limit > 0 else []
    if not recent:
        return ""
    lines = "\n".join(describe_event(event) for event in recent)
    return f"{URGENT_EVENTS_HEADER}\n{lines}"


def can_perceive(
    x: int, y: int, event: PerceivedEvent, radius: Optional[int] = None
) -> bool:
    """Whether an observer standing on tile (x, y) perceives ``event``."""

    if radius is None or event.source is None:
        return True
    ex, ey = event.source
    return abs(ex - x) + abs(ey - y) <= radius


class PerceivedEventLog:
    """Bounded, agent-owned log of recent events.

    Also tracks the most recent danger with known coordinates that the agent
    has not reacted to yet, so the behavior FSM can flee on its next tick.
    """

    def __init__(self, max_events: Optional[int] = None):
        capacity = Config.MAX_PERCEIVED_EVENTS if max_events is None else max_events
        self._events: Deque[PerceivedEvent] = deque(maxlen=max(int(capacity), 1))
        self._pending_danger: Optional[PerceivedEvent] = None

    def append(self, event: PerceivedEvent) -> None:
        self._events.append(event)
        if event.is_danger and event.source is not None:
            self._pending_danger = event

    def take_pending_danger(self) -> Optional[PerceivedEvent]:
        """Return and clear the unhandled danger event, if any."""

        event, self._pending_danger = self._pending_danger, None
        return event

    @property
    def pending_danger(self) -> Optional[PerceivedEvent]:
        return self._pending_danger

    def recent(self, limit: int = RENDERED_EVENT_WINDOW) -> List[PerceivedEvent]:
        if limit <= 0:
            return []
        return list(self._events)[-limit:]

    def render(self, limit: int = RENDERED_EVENT_WINDOW) -> str:
        return perceived_events_text(self._events, limit)

    def clear(self) -> None:
        self._events.clear()
        self._pending_danger = None

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(list(self._events))
