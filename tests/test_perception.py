"""Tests for perceived events: filtering, rendering and danger tracking."""

from settlement.perception import (
    URGENT_EVENTS_HEADER,
    PerceivedEventLog,
    can_perceive,
    event_importance,
    event_memory_text,
    perceived_events_text,
)
from settlement.schemas import PerceivedEvent


def test_render_is_empty_without_events():
    assert PerceivedEventLog().render() == ""
    assert perceived_events_text([]) == ""


def test_render_lists_last_five_under_header():
    log = PerceivedEventLog()
    for index in range(7):
        log.append(PerceivedEvent(type="announcement", message=f"news {index}"))

    lines = log.render().split("\n")

    assert lines[0] == URGENT_EVENTS_HEADER
    assert len(lines) == 6
    assert lines[1] == 'Announcement: "news 2"'
    assert lines[-1] == 'Announcement: "news 6"'


def test_fire_rendering_and_memory_text():
    fire = PerceivedEvent(type="FIRE", location="The Bakery", x=5, y=5)

    assert fire.type == "fire"
    assert perceived_events_text([fire]).endswith("There is a FIRE at The Bakery!")
    assert event_memory_text(fire) == "I noticed a fire at The Bakery! This is dangerous!"
    assert event_importance(fire) == 8


def test_importance_by_type():
    assert event_importance(PerceivedEvent(type="announcement", message="hi")) == 5
    assert event_importance(PerceivedEvent(type="storm")) == 4


def test_log_is_bounded():
    log = PerceivedEventLog(max_events=3)
    for index in range(5):
        log.append(PerceivedEvent(description=str(index)))

    assert [e.description for e in log] == ["2", "3", "4"]


def test_pending_danger_requires_coordinates():
    log = PerceivedEventLog()

    log.append(PerceivedEvent(type="fire", location="somewhere"))
    assert log.pending_danger is None

    fire = PerceivedEvent(type="fire", x=3, y=4)
    log.append(fire)
    assert log.take_pending_danger() is fire
    assert log.take_pending_danger() is None


def test_can_perceive_uses_manhattan_radius():
    event = PerceivedEvent(type="fire", x=10, y=10)

    assert can_perceive(12, 11, event, radius=3)
    assert not can_perceive(12, 12, event, radius=3)
    assert can_perceive(40, 40, event)
    assert can_perceive(40, 40, PerceivedEvent(type="announcement"), radius=1)
