"""Tests for the schema-driven rule interpreter."""

import random

import pytest

from settlement.agent import Agent, AgentSimState
from settlement.normalizer import DEFAULT_WORLDDEF, normalize
from settlement.rules import RuleInterpreter, relationship_label


@pytest.fixture
def rules():
    return RuleInterpreter(DEFAULT_WORLDDEF)


def make_sim(**kwargs):
    sim = AgentSimState(
        needs={"hunger": 0.8, "rest": 0.2, "purpose": 0.5, "social": 0.5},
        skills={"farming": 1.0, "cooking": 1.0},
        status={"health": 90, "wealth": 40, "happiness": 60, "energy": 50, "reputation": 50},
    )
    for key, value in kwargs.items():
        setattr(sim, key, value)
    return sim


def test_actions_for_location_matches_loosely(rules):
    assert [a.id for a in rules.actions_for_location("temple")] == ["pray"]
    assert [a.id for a in rules.actions_for_location("Temple_Ruins")] == ["pray"]
    assert [a.id for a in rules.actions_for_location("market")] == ["trade"]
    assert rules.actions_for_location("") == []
    assert rules.actions_for_location("lighthouse") == []


def test_supply_chain_for_food(rules):
    chain = rules.supply_chain("food")

    assert [o.id for o in chain.producers] == ["farmer", "fisherman", "hunter"]
    assert [o.id for o in chain.consumers] == ["baker", "innkeeper"]


def test_need_satisfiers(rules):
    satisfiers = rules.need_satisfiers("hunger")

    assert [a.id for a in satisfiers.actions] == ["eat", "buy_food"]
    assert satisfiers.resources == ["food", "bread", "fish", "vegetables"]

    empty = rules.need_satisfiers("boredom")
    assert empty.actions == [] and empty.resources == []


def test_can_perform_reports_reasons(rules):
    sim = make_sim()

    assert rules.can_perform(sim, "teleport").reason == "Unknown action"

    result = rules.can_perform(sim, "open_business")
    assert result.can is False
    assert result.reason == "Need 50 wealth (have 40, short 10)"

    sim.add_item("Coins", "gold", 2)
    result = rules.can_perform(sim, "buy_food")
    assert result.reason == "Need 3 gold (have 2)"

    sim.add_item("Coins", "gold", 1)
    assert rules.can_perform(sim, "buy_food").can is True


def test_can_perform_matches_inventory_by_name_or_type(rules):
    sim = make_sim()
    sim.add_item("food", "bread", 1)

    assert rules.can_perform(sim, "eat").can is True


def test_eat_consumes_food_and_relieves_hunger(rules):
    sim = make_sim()
    sim.add_item("food", "food", 2)

    outcome = rules.apply_action(sim, "eat")

    assert outcome.performed is True
    assert outcome.action_id == "eat"
    assert sim.needs["hunger"] == pytest.approx(0.1)
    assert sim.count_item("food") == 1
    assert any("used 1 food" in change for change in outcome.changes)


def test_apply_action_refuses_without_inputs(rules):
    sim = make_sim()

    outcome = rules.apply_action(sim, "eat")

    assert outcome.performed is False
    assert "Need 1 food (have 0)" in outcome.changes[0]
    assert sim.needs["hunger"] == 0.8


def test_effects_are_clamped(rules):
    sim = make_sim()

    rules.apply_action(sim, "sleep")

    assert sim.needs["rest"] == 0.0
    assert sim.status["energy"] == 100


def test_buy_food_touches_world_stockpile(rules):
    sim = make_sim()
    sim.add_item("Coins", "gold", 5)
    stockpile = {"food": 0.5}

    outcome = rules.apply_action(sim, "buy_food", world_resources=stockpile)

    assert outcome.performed
    assert stockpile["food"] == 0.0
    assert sim.count_item("gold") == 2
    assert sim.count_item("food") == 1


def test_social_action_builds_familiarity(rules):
    alice = Agent("alice", "Alice", 0, 0, sim=make_sim())
    bob = Agent("bob", "Bob", 1, 0, sim=make_sim())

    for _ in range(4):
        rules.apply_action(alice, "socialize", target=bob)

    assert alice.sim.familiarity["bob"] == pytest.approx(0.32)
    assert alice.relationships["bob"] == "acquaintance"


def test_work_grows_occupation_skill(rules):
    farmer = Agent("f", "Fern", 0, 0, occupation="farmer", sim=make_sim())

    rules.apply_action(farmer, "work")

    assert farmer.sim.skills["farming"] == pytest.approx(1.02)
    assert farmer.sim.needs["purpose"] == pytest.approx(0.1)


def test_urgent_needs_sorted_by_pressure(rules):
    sim = make_sim(needs={"hunger": 0.75, "rest": 0.95, "social": 0.1})

    assert rules.urgent_needs(sim) == ["rest", "hunger"]


def test_tick_needs_applies_growth_and_critical_effects(rules):
    sim = make_sim(needs={"hunger": 0.95, "rest": 0.0})

    rules.tick_needs(sim)

    assert sim.needs["hunger"] == pytest.approx(0.9504)
    assert sim.needs["rest"] == pytest.approx(0.002)
    assert sim.status["health"] == pytest.approx(89.9)
    assert sim.status["happiness"] == pytest.approx(59.85)


def test_tick_needs_uses_season_modifiers(rules):
    sim = make_sim(needs={"hunger": 0.0})
    winter = rules.current_season(22)

    rules.tick_needs(sim, winter)

    assert winter.id == "winter"
    assert sim.needs["hunger"] == pytest.approx(0.0006)


def test_current_season_cycles(rules):
    assert rules.current_season(1).id == "spring"
    assert rules.current_season(8).id == "summer"
    assert rules.current_season(28).id == "winter"
    assert rules.current_season(29).id == "spring"
    assert RuleInterpreter(normalize({})).current_season(3) is None


def test_summarize_is_deterministic(rules):
    summary = rules.summarize()

    assert summary == rules.summarize()
    assert summary.startswith(
        "WORLD SCHEMA:\n  Needs (0=satisfied, 1=desperate): hunger, rest, social"
    )
    assert "health(0-100)" in summary
    assert "  Currency: gold\n" in summary
    assert "eat: Eat a meal" in summary
    assert "baker: needs [1 food] produces [2 bread]" in summary


def test_initial_values_respect_schema(rules):
    rng = random.Random(3)

    needs = rules.initial_needs(rng)
    status = rules.initial_status(rng)

    assert set(needs) == {n.id for n in DEFAULT_WORLDDEF.needs}
    for need in DEFAULT_WORLDDEF.needs:
        assert need.start_min <= needs[need.id] <= need.start_max
    for definition in DEFAULT_WORLDDEF.status:
        assert definition.min <= status[definition.id] <= definition.max
    assert rules.initial_resources()["food"] == 80


@pytest.mark.parametrize(
    "familiarity,label",
    [(0.8, "close friend"), (0.5, "friend"), (0.35, "acquaintance"), (0.3, "stranger")],
)
def test_relationship_label(familiarity, label):
    assert relationship_label(familiarity) == label


def test_trade_buys_missing_inputs_at_schema_price(rules):
    baker = Agent("martha", "Martha", 0, 0, occupation="baker", sim=make_sim())
    seller = Agent("tom", "Tom", 1, 0, sim=make_sim())
    seller.sim.add_item("food", "food", 4)

    assert [item.resource for item in rules.needed_resources(baker)] == ["food"]
    outcome = rules.apply_action(baker, "trade", target=seller)

    assert "Martha bought 1 food from Tom for 3 gold" in outcome.changes
    assert baker.sim.count_item("food") == 1
    assert seller.sim.count_item("food") == 3
    assert baker.sim.status["wealth"] == 37
    assert seller.sim.status["wealth"] == 43
    assert rules.needed_resources(baker) == []


def test_trade_without_money_moves_nothing(rules):
    smith = Agent("greta", "Greta", 0, 0, occupation="blacksmith", sim=make_sim())
    smith.sim.status["wealth"] = 2
    seller = Agent("tom", "Tom", 1, 0, sim=make_sim())
    seller.sim.add_item("stone", "stone", 2)

    outcome = rules.apply_action(smith, "trade", target=seller)

    assert rules.price_of("stone") == 5
    assert "Greta can't afford stone from Tom" in outcome.changes
    assert seller.sim.count_item("stone") == 2
    assert smith.sim.status["wealth"] == 2


def test_collect_taxes_charges_wealth(rules):
    rich = make_sim()
    poor = make_sim(status={"health": 90})

    total = rules.collect_taxes([rich, poor])

    assert total == pytest.approx(0.8)
    assert rich.status["wealth"] == pytest.approx(39.2)
    assert poor.status == {"health": 90}


def test_produce_resources_regrows_renewables_with_season(rules):
    stockpile = {"food": 80.0, "gold": 100.0}

    changes = rules.produce_resources(stockpile, rules.current_season(1))

    assert stockpile["food"] == pytest.approx(80.144)
    assert stockpile["wood"] == pytest.approx(0.06)
    assert stockpile["gold"] == 100.0
    assert "World resources.food: +0.144" in changes
