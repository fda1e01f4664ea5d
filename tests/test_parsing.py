import pytest

from settlement.cognition.parsing import (
    parse_action_tag,
    parse_behavior_decision,
    parse_event_reaction,
    parse_json_lenient,
)


def test_follow_tag_is_stripped():
    text, tag = parse_action_tag("Lead the way, friend!\n[FOLLOW]")

    assert text == "Lead the way, friend!"
    assert tag.kind == "follow"
    assert tag.target is None


def test_go_tag_captures_building_name():
    text, tag = parse_action_tag("I'll meet you there. [go: The Rusty Tankard]")

    assert text == "I'll meet you there."
    assert tag.kind == "go"
    assert tag.target == "The Rusty Tankard"


def test_stay_tag():
    text, tag = parse_action_tag("No thank you. [STAY]")

    assert text == "No thank you."
    assert tag.kind == "stay"


def test_first_matching_kind_wins():
    text, tag = parse_action_tag("Sure. [STAY] [FOLLOW]")

    assert tag.kind == "follow"
    assert text == "Sure. [STAY]"


def test_plain_text_has_no_tag():
    text, tag = parse_action_tag("  Good morning!  ")

    assert text == "Good morning!"
    assert tag is None


def test_json_lenient_direct_fenced_and_embedded():
    assert parse_json_lenient('{"action": "idle"}') == {"action": "idle"}
    assert parse_json_lenient('Here:\n```json\n{"action": "flee"}\n```') == {"action": "flee"}
    assert parse_json_lenient('Sure! {"reaction": "help"} Hope that helps.') == {"reaction": "help"}


def test_json_lenient_raises_on_garbage():
    with pytest.raises(ValueError):
        parse_json_lenient("I would rather not say.")
    with pytest.raises(ValueError):
        parse_json_lenient("{broken json}")


def test_parse_behavior_decision():
    decision = parse_behavior_decision(
        '```json\n{"action": "WALK_TO", "target": "The Bakery", "thought": "Hungry", "speech": null}\n```'
    )

    assert decision.action == "walk_to"
    assert decision.target == "The Bakery"
    assert decision.speech == ""


def test_parse_behavior_decision_rejects_unknown_action():
    assert parse_behavior_decision('{"action": "dance"}') is None
    assert parse_behavior_decision("no json here") is None


def test_parse_event_reaction():
    reaction = parse_event_reaction('{"reaction": "help", "target": "water source", "speech": "Water!"}')

    assert reaction.reaction == "help"
    assert reaction.thought == ""
    assert parse_event_reaction('{"reaction": "cry"}') is None
