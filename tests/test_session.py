"""Tests for the world session tick loop and queries."""

from datetime import datetime
from types import SimpleNamespace

import pytest

from settlement.agent import AgentState
from settlement.config import Config
from settlement.environment import EnvironmentGrid, GridPathService
from settlement.normalizer import generate_world_def
from settlement.schemas import PerceivedEvent, PlacedBuilding
from settlement.session import WorldSession


BUILDINGS = [
    PlacedBuilding(id="bakery", name="The Bakery", type="house", x=2, y=2),
    PlacedBuilding(id="well", name="Village Well", type="well", x=20, y=15, w=2, h=2),
]


@pytest.fixture
def session():
    world = WorldSession(name="Millbrook", buildings=BUILDINGS, seed=1)
    world.populate(
        [
            {"id": "martha", "name": "Martha", "x": 5, "y": 10, "occupation": "baker",
             "inventory": {"food": 3}},
            {"name": "Tom", "x": 7, "y": 10, "occupation": "innkeeper"},
            {"name": "Greta", "x": 30, "y": 25},
        ]
    )
    return world


def test_populate_spawns_schema_driven_agents(session):
    martha = session.agents["martha"]

    assert set(session.agents) == {"martha", "tom", "greta"}
    assert set(martha.sim.needs) == {n.id for n in session.world_def.needs}
    assert martha.sim.count_item("food") == 3
    assert martha.clock() == session.now()


def test_duplicate_ids_are_disambiguated(session):
    second = session.spawn({"name": "Tom"}, index=7)
    third = session.spawn({"name": "Tom"})

    assert (second.id, third.id) == ("tom_2", "tom_3")
    assert len(session.agents) == 5
    assert session.agents["tom"].name == "Tom"


def test_add_agent_rejects_taken_id(session):
    impostor = WorldSession(seed=9).spawn({"name": "Martha", "x": 1, "y": 1})

    with pytest.raises(ValueError, match="already registered"):
        session.add_agent(impostor)
    assert session.agents["martha"].occupation == "baker"


def test_spawn_near_home_door():
    world = WorldSession(buildings=BUILDINGS, seed=2)
    agent = world.spawn({"name": "Baker", "home": "the bakery"})

    door_x, door_y = BUILDINGS[0].door
    assert abs(agent.x - door_x) <= 2 and abs(agent.y - door_y) <= 2


def test_find_building_exact_then_substring(session):
    assert session.find_building("village well").id == "well"
    assert session.find_building("WELL").id == "well"
    assert session.find_building("bakery").id == "bakery"
    assert session.find_building("castle") is None
    assert session.find_building(None) is None


def test_nearby_queries(session):
    martha = session.agents["martha"]

    assert [a.id for a in session.nearby_agents(martha)] == ["tom"]
    assert [b.id for b in session.nearby_buildings(martha, radius=10)] == ["bakery"]
    assert session.building_at(3, 3).id == "bakery"
    assert session.building_at(0, 0) is None


def test_tick_advances_clock_and_needs(session):
    martha = session.agents["martha"]
    hunger = martha.sim.needs["hunger"]

    session.tick(Config.NEEDS_TICK_MS)

    assert session.tick_count == 1
    assert session.elapsed_ms == Config.NEEDS_TICK_MS
    assert martha.sim.needs["hunger"] == pytest.approx(hunger + 0.0004)


def test_tick_rejects_negative_dt(session):
    with pytest.raises(ValueError):
        session.tick(-5)


def test_tick_listeners_receive_tick_number(session):
    seen = []
    session.tick_listeners.append(lambda tick, world: seen.append((tick, world.name)))

    session.tick(16)
    session.tick(16)

    assert seen == [(1, "Millbrook"), (2, "Millbrook")]


def test_broadcast_event_respects_radius(session):
    reached = session.broadcast_event({"type": "fire", "location": "The Bakery", "x": 6, "y": 10}, radius=3)

    assert sorted(a.id for a in reached) == ["martha", "tom"]
    assert session.agents["martha"].perceived.pending_danger is not None
    assert len(session.agents["greta"].perceived) == 0


def test_announcement_reaches_everyone(session):
    reached = session.broadcast_event(PerceivedEvent(type="announcement", message="Harvest feast tonight"))

    assert len(reached) == 3
    assert "Harvest feast" in session.agents["greta"].perceived_events_text()


def test_season_change_is_announced():
    world = WorldSession(
        generate_world_def({"evolution": {"seasons": [{"id": "dry", "duration": 1}, {"id": "wet", "duration": 1}]}}),
        start_time=datetime(2000, 1, 1, 8, 0),
    )
    world.spawn({"name": "Ada", "x": 3, "y": 3})

    assert world.season.id == "dry"
    one_game_day_ms = 24 * 60 * 1000 / Config.GAME_MINUTES_PER_SECOND
    world.tick(one_game_day_ms)

    assert world.day == 2
    assert world.season.id == "wet"
    assert world.agents["ada"].perceived.recent(1)[0].type == "season"


def test_apply_action_uses_shared_stockpile(session):
    martha = session.agents["martha"]
    martha.sim.add_item("Coins", "gold", 10)
    food_before = session.world_resources["food"]

    outcome = session.apply_action("martha", "buy_food")

    assert outcome.performed
    assert session.world_resources["food"] == food_before - 1
    assert martha.memory.recent(1)[0].text == "I did buy_food."


def test_apply_action_unknown_agent(session):
    outcome = session.apply_action("nobody", "eat")

    assert outcome.performed is False
    assert outcome.changes == ["Unknown agent nobody"]


def test_follower_drops_removed_target(session):
    martha = session.agents["martha"]
    martha.start_following("tom", "Tom")

    session.remove_agent("tom")
    session.tick(16)

    assert martha.state == AgentState.IDLE


def test_registered_entity_can_be_followed():
    paths = GridPathService(EnvironmentGrid(width=20, height=20))
    world = WorldSession(paths=paths)
    npc = world.spawn({"name": "Ada", "x": 2, "y": 2})
    world.register_entity(SimpleNamespace(id="player", x=10, y=2))

    npc.start_following("player")
    world.tick(16)

    assert npc.state == AgentState.FOLLOWING
    assert (npc.target_x, npc.target_y) == (3, 2)


def test_new_day_regrows_stockpiles_and_collects_tax():
    world = WorldSession(seed=5)
    ada = world.spawn({"name": "Ada", "x": 3, "y": 3})
    ada.sim.status["wealth"] = 100.0
    food = world.world_resources["food"]

    world.tick(24 * 60 * 1000 / Config.GAME_MINUTES_PER_SECOND)

    assert world.day == 2
    assert world.world_resources["food"] == pytest.approx(food + 0.144)
    assert world.treasury == pytest.approx(2.0)
    assert ada.sim.status["wealth"] == pytest.approx(98.0)

    world.tick(16)
    assert world.treasury == pytest.approx(2.0)


def test_tick_rejects_non_positive_need_interval(session, monkeypatch):
    monkeypatch.setattr(Config, "NEEDS_TICK_MS", 0)

    with pytest.raises(ValueError, match="NEEDS_TICK_MS must be positive"):
        session.tick(16)
