"""Tests for truthful logging tags ([AI] vs [•] vs [?]) in settlement output.

These tests assert that:
- Schema problems are reported as warnings, never raised
- Collaborator failures are reported as errors
- Only collaborator answers are tagged [AI]
"""

from __future__ import annotations

import pytest

from settlement.cognition import LLMDecisionMaker, build_prompt_context
from settlement.logging_utils import Color, colored
from settlement.normalizer import normalize
from settlement.schemas import BehaviorDecision
from settlement.session import WorldSession


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.setenv("SETTLEMENT_NO_COLOR", "1")


def test_colored_respects_no_color(monkeypatch):
    assert colored("hi", Color.RED) == "hi"

    monkeypatch.delenv("SETTLEMENT_NO_COLOR")
    assert colored("hi", Color.RED, bold=True) == "\033[1m\033[91mhi\033[0m"


def test_schema_problems_are_warnings(capsys):
    normalize(
        {
            "needs": [{"id": "hunger", "threshold": 0.95, "critical": 0.5}],
            "actions": [{"id": "eat", "effects": {"mana": 1}}],
        }
    )
    out = capsys.readouterr().out

    assert "[?] Need 'hunger': threshold 0.95 exceeds critical 0.5" in out
    assert "[?] Action 'eat': unknown effect 'mana' dropped" in out


@pytest.mark.asyncio
async def test_decision_tags(monkeypatch, capsys):
    session = WorldSession(name="Millbrook", seed=1)
    agent = session.spawn({"name": "Ada", "x": 4, "y": 4})
    ctx = build_prompt_context(session, agent)
    maker = LLMDecisionMaker(provider="openai", model="gpt-4o-mini")

    async def fake_ok(**kwargs):
        return BehaviorDecision(action="idle", thought="Resting")

    monkeypatch.setattr("settlement.cognition.llm.call_llm_with_retries", fake_ok)
    await maker.decide_behavior(ctx)
    assert "[AI] Ada:" in capsys.readouterr().out

    async def fake_fail(**kwargs):
        raise TimeoutError("slow provider")

    monkeypatch.setattr("settlement.cognition.llm.call_llm_with_retries", fake_fail)
    await maker.decide_behavior(ctx)
    out = capsys.readouterr().out
    assert "[!] BehaviorDecision call failed for Ada: slow provider" in out
    assert "[AI]" not in out
