"""Tests for the agent behavior FSM and its movement."""

import random
from types import SimpleNamespace

import pytest

from settlement.agent import (
    AFTER_FOLLOW_IDLE,
    INVENTORY_CAPACITY,
    Agent,
    AgentSimState,
    AgentState,
    Appearance,
    seeded_rng,
)
from settlement.movement import Waypoint, tile_center


class StubPaths:
    """Scriptable path service that records every request."""

    def __init__(self, path=None, spot=Waypoint(8, 8)):
        self.path = path
        self.spot = spot
        self.requests = []

    def find_path(self, from_x, from_y, to_x, to_y, max_steps=None):
        self.requests.append((from_x, from_y, to_x, to_y, max_steps))
        return list(self.path) if self.path is not None else None

    def random_walkable(self, around_x, around_y, radius):
        return self.spot

    def is_walkable(self, x, y):
        return True


def make_agent(**kwargs):
    kwargs.setdefault("rng", random.Random(0))
    return Agent("martha", "Martha", 5, 5, **kwargs)


def test_new_agent_sits_on_tile_centre():
    agent = make_agent()

    assert (agent.px, agent.py) == tile_center(5, 5)
    assert agent.state == AgentState.IDLE
    assert 2000 <= agent.wait_timer <= 5000


def test_idle_timer_expiry_starts_walking():
    paths = StubPaths(path=[Waypoint(6, 5), Waypoint(7, 5)])
    agent = make_agent()
    agent.wait_timer = 5

    agent.update(10, paths)

    assert agent.state == AgentState.WALKING
    assert agent.path_index == 0
    assert agent.moving is False
    assert agent.current_activity == "Wandering around"


def test_failed_wander_rearms_shorter_timer():
    agent = make_agent()
    agent.wait_timer = 5

    agent.update(10, StubPaths(path=None))

    assert agent.state == AgentState.IDLE
    assert 1000 <= agent.wait_timer <= 3000


def test_walking_interpolates_then_snaps():
    paths = StubPaths(path=[Waypoint(6, 5)])
    agent = make_agent(speed=10)
    agent.wait_timer = 0
    agent.update(1, paths)

    agent.update(16, paths)
    assert agent.moving is True
    assert agent.direction == "right"
    assert agent.x == 5
    start_px = tile_center(5, 5)[0]
    assert agent.px == pytest.approx(start_px + 10)

    agent.update(16, paths)
    agent.update(16, paths)
    agent.update(16, paths)
    assert agent.moving is False
    assert (agent.x, agent.y) == (6, 5)
    assert (agent.px, agent.py) == tile_center(6, 5)

    # Path exhausted: back to idle with a fresh dwell timer.
    agent.update(16, paths)
    assert agent.state == AgentState.IDLE
    assert 3000 <= agent.wait_timer <= 8000


def test_follow_within_buffer_only_turns():
    paths = StubPaths(path=[Waypoint(6, 5), Waypoint(7, 5)])
    agent = make_agent()
    player = SimpleNamespace(id="player", x=5, y=3)
    agent.start_following("player", "the traveler")

    agent.update(16, paths, {"player": player})

    assert agent.state == AgentState.FOLLOWING
    assert agent.direction == "up"
    assert agent.moving is False
    assert paths.requests == []


def test_follow_beyond_buffer_steps_toward_target():
    paths = StubPaths(path=[Waypoint(6, 5), Waypoint(7, 5), Waypoint(8, 5), Waypoint(9, 5)])
    agent = make_agent()
    player = SimpleNamespace(id="player", x=9, y=5)
    agent.start_following("player")

    agent.update(16, paths, {"player": player})

    assert paths.requests == [(5, 5, 9, 5, 50)]
    assert agent.moving is True
    assert (agent.target_x, agent.target_y) == (6, 5)


def test_follow_never_steps_onto_target_tile():
    paths = StubPaths(path=[Waypoint(6, 5)])
    agent = make_agent(follow_distance=0)
    agent.start_following("player")

    agent.update(16, paths, {"player": SimpleNamespace(x=6, y=5)})

    assert agent.moving is False


def test_vanished_follow_target_returns_to_idle():
    agent = make_agent()
    agent.start_following("ghost", "Ghost")

    agent.update(16, StubPaths(), {})

    assert agent.state == AgentState.IDLE
    assert agent.follow_target_id is None
    assert agent.wait_timer == AFTER_FOLLOW_IDLE
    assert "stopped following Ghost" in agent.memory.recent(1)[0].text


def test_perceived_danger_makes_idle_agent_flee():
    paths = StubPaths(path=[Waypoint(5, 6)], spot=Waypoint(5, 14))
    agent = make_agent()

    agent.perceive_event({"type": "fire", "location": "The Bakery", "x": 5, "y": 2})
    agent.update(16, paths)

    assert agent.state == AgentState.FLEEING
    assert agent.current_activity == "Fleeing from danger!"
    assert paths.requests[0][2:4] == (5, 14)
    assert agent.perceived.pending_danger is None
    assert agent.memory.recent(1)[0].importance == 8


def test_speech_expires():
    agent = make_agent()
    agent.wait_timer = 10_000
    agent.say("Hello!", 100)

    agent.update(60, StubPaths())
    assert agent.speech == "Hello!"

    agent.update(60, StubPaths())
    assert agent.speech is None


def test_negative_dt_is_rejected():
    with pytest.raises(ValueError):
        make_agent().update(-1, StubPaths())


def test_go_to_building_walks_to_door():
    paths = StubPaths(path=[Waypoint(5, 6)])
    agent = make_agent()
    bakery = SimpleNamespace(name="The Bakery", door=(6, 9))

    assert agent.go_to_building(bakery, paths) is True
    assert paths.requests[0][2:4] == (6, 9)
    assert agent.current_activity == "Walking to The Bakery"
    assert agent.go_to_building(None, paths) is False


def test_start_leading_uses_leading_state():
    agent = make_agent()
    well = SimpleNamespace(name="Village Well", door=(3, 3))

    assert agent.start_leading(well, StubPaths(path=[Waypoint(4, 5)])) is True
    assert agent.state == AgentState.LEADING


def test_set_state_clears_follow_target():
    agent = make_agent()
    agent.start_following("player")

    agent.set_state("talking")

    assert agent.state == AgentState.TALKING
    assert agent.follow_target_id is None


def test_inventory_capacity_truncates():
    sim = AgentSimState()

    assert sim.add_item("Stone", "stone", 30) == 30
    assert sim.add_item("Wood", "wood", 30) == INVENTORY_CAPACITY - 30
    assert sim.total_items == INVENTORY_CAPACITY
    assert sim.remove_item("stone", 50) == 30
    assert sim.count_item("wood") == 10


def test_appearance_and_rng_are_seeded_by_identity():
    assert Appearance.from_name("Martha") == Appearance.from_name("Martha")
    assert Appearance.from_name("Martha", {"hairColor": "#000000"}).hair == "#000000"
    assert seeded_rng("martha").random() == seeded_rng("martha").random()
