"""
Rule interpreter: schema-driven simulation semantics.

The interpreter turns an arbitrary ``WorldDef`` into concrete per-agent
semantics without any hardcoded enums. Every need, status, skill, resource and
action it reasons about comes from the schema it was constructed with.

Two groups of operations live here:

- Pure queries (``actions_for_location``, ``supply_chain``, ``need_satisfiers``,
  ``can_perform``, ``summarize``, the ``initial_*`` factory helpers). These
  never mutate anything and are safe to call from any agent at any time.
- State transitions (``apply_action``, ``tick_needs``, ``collect_taxes``,
  ``produce_resources``). These mutate only the agent state or stockpile
  passed in by the caller.

Design principle: if it can be calculated, calculate it. Nothing in this module
asks the external decision-maker for anything.
"""

from __future__ import annotations

import random
from typing import Any, Dict, Iterable, List, MutableMapping, Optional

from .schemas import (
    ActionDef,
    ActionOutcome,
    CanPerformResult,
    NeedSatisfiers,
    OccupationDef,
    RecipeItem,
    Season,
    SupplyChain,
    WorldDef,
)


# Skill gained per action performed at a workplace (or an explicit ``work``).
SKILL_GROWTH_PER_WORK = 0.02
# Familiarity gained per social action with the same target.
FAMILIARITY_PER_INTERACTION = 0.03
# Price used for resources the economy does not list.
DEFAULT_PRICE = 5.0
# Daily tax is the smaller of rate * 0.2 and 5% of wealth.
TAX_SHARE_OF_RATE = 0.2
MAX_DAILY_TAX = 0.05


def fmt(value: float) -> str:
    """Compact number rendering for reasons and digests (``50``, ``0.7``, ``12.5``)."""

    return f"{value:g}"


def _sim(agent: Any) -> Any:
    """Accept either an ``Agent`` (with ``.sim``) or a bare ``AgentSimState``."""

    return getattr(agent, "sim", agent)


def held_quantity(sim: Any, resource: str) -> float:
    """Total quantity of ``resource`` carried, matched by type or name (case-insensitive)."""

    wanted = resource.lower()
    total = 0.0
    for item in getattr(sim, "inventory", None) or []:
        if item.type.lower() == wanted or item.name.lower() == wanted:
            total += item.quantity
    return total


def relationship_label(familiarity: float) -> str:
    if familiarity > 0.7:
        return "close friend"
    if familiarity > 0.4:
        return "friend"
    if familiarity > 0.3:
        return "acquaintance"
    return "stranger"


class RuleInterpreter:
    """Answers domain questions about one ``WorldDef``.

    The interpreter holds no per-agent state; a single instance is shared by
    every agent of a world session.
    """

    def __init__(self, world_def: WorldDef):
        self.world_def = world_def

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def actions_for_location(self, building_type_id: Optional[str]) -> List[ActionDef]:
        """Actions whose location matches the building type, loosely.

        Exact or substring match in either direction, so ``"temple"`` matches
        ``"temple_ruins"`` and vice versa. Actions without a location never match.
        """

        if not building_type_id:
            return []
        building = building_type_id.strip().lower()
        matches: List[ActionDef] = []
        for action in self.world_def.actions:
            if not action.location:
                continue
            location = action.location.strip().lower()
            if location == building or location in building or building in location:
                matches.append(action)
        return matches

    def supply_chain(self, resource_id: str) -> SupplyChain:
        rid = (resource_id or "").strip().lower()
        producers = [
            occ for occ in self.world_def.occupations
            if any(item.resource == rid for item in occ.outputs)
        ]
        consumers = [
            occ for occ in self.world_def.occupations
            if any(item.resource == rid for item in occ.inputs)
        ]
        return SupplyChain(producers=producers, consumers=consumers)

    def need_satisfiers(self, need_id: str) -> NeedSatisfiers:
        need = self.world_def.find_need(need_id)
        if need is None:
            return NeedSatisfiers()
        actions = [
            action for action in self.world_def.actions
            if action.effects.get(need.id, 0) < 0
        ]
        return NeedSatisfiers(actions=actions, resources=list(need.satisfied_by))

    def can_perform(self, agent: Any, action_id: str) -> CanPerformResult:
        """Check numeric and inventory prerequisites of an action.

        Building requirements are left to the caller, which knows which
        structures are nearby. Misses are reported in ``reason``; this never raises.
        """

        action = self.world_def.find_action(action_id)
        if action is None:
            return CanPerformResult(can=False, reason="Unknown action")

        sim = _sim(agent)
        for requirement in action.requires:
            if requirement.min_wealth is None:
                continue
            wealth = float((getattr(sim, "status", None) or {}).get("wealth", 0) or 0)
            if wealth < requirement.min_wealth:
                shortfall = requirement.min_wealth - wealth
                return CanPerformResult(
                    can=False,
                    reason=(
                        f"Need {fmt(requirement.min_wealth)} wealth "
                        f"(have {fmt(wealth)}, short {fmt(shortfall)})"
                    ),
                )

        for item in action.inputs:
            has = held_quantity(sim, item.resource)
            if has < item.qty:
                return CanPerformResult(
                    can=False,
                    reason=f"Need {fmt(item.qty)} {item.resource} (have {fmt(has)})",
                )

        return CanPerformResult(can=True)

    def needed_resources(self, agent: Any) -> List[RecipeItem]:
        """Occupation inputs the agent is short of, with the quantity one batch needs."""

        occupation = self.world_def.find_occupation(getattr(agent, "occupation", None))
        if occupation is None:
            return []
        sim = _sim(agent)
        return [item for item in occupation.inputs if held_quantity(sim, item.resource) < item.qty]

    def price_of(self, resource: str) -> float:
        return self.world_def.economy.prices.get(resource, DEFAULT_PRICE)

    def urgent_needs(self, agent: Any) -> List[str]:
        """Need ids at or above their awareness threshold, most pressing first."""

        needs = getattr(_sim(agent), "needs", None) or {}
        pressing = []
        for need in self.world_def.needs:
            value = needs.get(need.id)
            if value is not None and value >= need.threshold:
                pressing.append((value, need.id))
        pressing.sort(key=lambda pair: pair[0], reverse=True)
        return [need_id for _, need_id in pressing]

    def current_season(self, day: int) -> Optional[Season]:
        """Season active on a 1-based game ``day``; ``None`` when the schema has none."""

        seasons = self.world_def.evolution.seasons
        if not seasons:
            return None
        cycle = sum(season.duration for season in seasons)
        day_in_cycle = (max(day, 1) - 1) % cycle
        elapsed = 0
        for season in seasons:
            elapsed += season.duration
            if day_in_cycle < elapsed:
                return season
        return seasons[0]

    def summarize(self) -> str:
        """Deterministic digest of the schema for prompt construction."""

        wd = self.world_def
        needs = ", ".join(n.id for n in wd.needs)
        skills = ", ".join(s.id for s in wd.skills)
        status = ", ".join(f"{s.id}({fmt(s.min)}-{fmt(s.max)})" for s in wd.status)
        resources = ", ".join(r.id for r in wd.resources)
        actions = "\n  ".join(f"{a.id}: {a.description}" for a in wd.actions)
        occupations = "\n  ".join(self._describe_occupation(o) for o in wd.occupations)

        return (
            "WORLD SCHEMA:\n"
            f"  Needs (0=satisfied, 1=desperate): {needs}\n"
            f"  Skills (0-10): {skills}\n"
            f"  Status: {status}\n"
            f"  Resources: {resources}\n"
            f"  Currency: {wd.economy.currency}\n"
            "  Actions:\n"
            f"  {actions}\n"
            "  Occupations:\n"
            f"  {occupations}"
        )

    @staticmethod
    def _describe_occupation(occupation: OccupationDef) -> str:
        text = f"{occupation.id}:"
        if occupation.inputs:
            needs = ", ".join(f"{fmt(i.qty)} {i.resource}" for i in occupation.inputs)
            text += f" needs [{needs}]"
        if occupation.outputs:
            produces = ", ".join(f"{fmt(i.qty)} {i.resource}" for i in occupation.outputs)
            text += f" produces [{produces}]"
        return text

    # ------------------------------------------------------------------
    # Agent factory helpers
    # ------------------------------------------------------------------

    def initial_needs(self, rng: random.Random) -> Dict[str, float]:
        return {
            n.id: n.start_min + rng.random() * (n.start_max - n.start_min)
            for n in self.world_def.needs
        }

    def initial_skills(self, rng: random.Random) -> Dict[str, float]:
        return {s.id: rng.random() * 3 for s in self.world_def.skills}

    def initial_traits(self, rng: random.Random) -> Dict[str, float]:
        return {t.id: rng.random() for t in self.world_def.traits}

    def initial_status(self, rng: random.Random) -> Dict[str, float]:
        """Default ± 20% of the range, clamped into the range."""

        status = {}
        for s in self.world_def.status:
            spread = (s.max - s.min) * 0.4
            value = s.default + (rng.random() - 0.5) * spread
            status[s.id] = min(max(value, s.min), s.max)
        return status

    def initial_resources(self, rng: Optional[random.Random] = None) -> Dict[str, float]:
        # rng accepted for a uniform factory signature; stockpiles are fixed.
        return {r.id: r.start_amount for r in self.world_def.resources}

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def apply_action(
        self,
        agent: Any,
        action_id: str,
        *,
        target: Any = None,
        world_resources: Optional[MutableMapping[str, float]] = None,
    ) -> ActionOutcome:
        """Perform an action on ``agent``: consume inputs, apply effects, produce outputs."""

        name = getattr(agent, "name", "agent")
        check = self.can_perform(agent, action_id)
        action = self.world_def.find_action(action_id)
        if not check.can or action is None:
            return ActionOutcome(
                action_id=(action_id or "").lower(),
                performed=False,
                changes=[f"{name} couldn't {action_id}: {check.reason}"],
            )

        sim = _sim(agent)
        changes: List[str] = []

        for item in action.inputs:
            sim.remove_item(item.resource, item.qty)
            changes.append(f"{name} used {fmt(item.qty)} {item.resource}")

        for key, delta in action.effects.items():
            change = self._apply_effect(sim, key, delta)
            if change:
                changes.append(f"{name}: {change}")

        for item in action.outputs:
            added = sim.add_item(item.resource, item.resource, item.qty)
            if added > 0:
                changes.append(f"{name} received {fmt(added)} {item.resource}")

        if world_resources is not None:
            for path, delta in action.world_effects.items():
                section, _, key = path.partition(".")
                if section != "resources" or key not in world_resources:
                    continue
                world_resources[key] = max(0.0, world_resources[key] + delta)
                changes.append(f"World {path}: {delta:+g}")

        if action.social and target is not None and getattr(target, "id", None):
            relationships = getattr(agent, "relationships", None)
            if relationships is not None:
                familiarity = min(1.0, sim.familiarity.get(target.id, 0.2) + FAMILIARITY_PER_INTERACTION)
                sim.familiarity[target.id] = familiarity
                relationships[target.id] = relationship_label(familiarity)

        if action.id == "trade" and target is not None:
            changes.extend(self._trade(agent, sim, target))

        if action.id == "work" or action.location:
            self._grow_occupation_skill(agent, sim)

        if not changes:
            changes.append(f"{name} performed {action.id}")
        return ActionOutcome(action_id=action.id, performed=True, changes=changes)

    def tick_needs(self, agent: Any, season: Optional[Season] = None) -> None:
        """Advance every need by one need tick and apply critical status effects."""

        sim = _sim(agent)
        need_mods = season.need_mods if season is not None else {}
        for need in self.world_def.needs:
            if need.id not in sim.needs:
                continue
            rate = need.growth_rate * need_mods.get(need.id, 1.0)
            value = min(max(sim.needs[need.id] + rate, 0.0), 1.0)
            sim.needs[need.id] = value
            if value > need.critical:
                for status_id, delta in need.status_effects.items():
                    if status_id in sim.status:
                        sim.status[status_id] = self._clamp_status(
                            status_id, sim.status[status_id] + delta
                        )

    def produce_resources(
        self, world_resources: MutableMapping[str, float], season: Optional[Season] = None
    ) -> List[str]:
        """Regenerate renewable stockpiles by one day of ``baseProduction``."""

        modifier = season.production_mod if season is not None else 1.0
        changes: List[str] = []
        for resource in self.world_def.resources:
            if not resource.renewable or resource.base_production <= 0:
                continue
            amount = resource.base_production * modifier
            world_resources[resource.id] = world_resources.get(resource.id, 0.0) + amount
            changes.append(f"World resources.{resource.id}: {amount:+g}")
        return changes

    def collect_taxes(self, agents: Iterable[Any]) -> float:
        """Charge one day of tax on every agent's wealth; returns the total collected."""

        rate = self.world_def.economy.tax_rate
        total = 0.0
        for agent in agents:
            status = getattr(_sim(agent), "status", None)
            if not status or "wealth" not in status:
                continue
            wealth = status["wealth"]
            tax = min(wealth * rate * TAX_SHARE_OF_RATE, wealth * MAX_DAILY_TAX)
            if tax <= 0:
                continue
            status["wealth"] = self._clamp_status("wealth", wealth - tax)
            total += wealth - status["wealth"]
        return total

    def _trade(self, agent: Any, sim: Any, target: Any) -> List[str]:
        """Buy missing occupation inputs from ``target`` at schema prices."""

        other = getattr(target, "sim", None)
        if other is None or other is sim:
            return []
        name = getattr(agent, "name", "agent")
        other_name = getattr(target, "name", target.id)
        currency = self.world_def.economy.currency
        changes: List[str] = []
        for item in self.needed_resources(agent):
            if held_quantity(other, item.resource) < item.qty:
                continue
            price = self.price_of(item.resource)
            if sim.status.get("wealth", 0.0) < price:
                changes.append(f"{name} can't afford {item.resource} from {other_name}")
                continue
            moved = other.remove_item(item.resource, item.qty)
            sim.add_item(item.resource, item.resource, moved)
            sim.status["wealth"] = self._clamp_status("wealth", sim.status["wealth"] - price)
            if "wealth" in other.status:
                other.status["wealth"] = self._clamp_status("wealth", other.status["wealth"] + price)
            changes.append(
                f"{name} bought {fmt(moved)} {item.resource} from {other_name} for {fmt(price)} {currency}"
            )
        return changes

    def _apply_effect(self, sim: Any, key: str, delta: float) -> Optional[str]:
        if key in sim.needs:
            sim.needs[key] = min(max(sim.needs[key] + delta, 0.0), 1.0)
            return f"{key} {delta:+.2f}"
        if key in sim.status:
            sim.status[key] = self._clamp_status(key, sim.status[key] + delta)
            return f"{key} {delta:+g}"
        if key in sim.skills:
            sim.skills[key] = max(0.0, sim.skills[key] + delta)
            return f"{key} {delta:+g}"
        return None

    def _clamp_status(self, status_id: str, value: float) -> float:
        definition = self.world_def.find_status(status_id)
        if definition is None:
            return value
        return min(max(value, definition.min), definition.max)

    def _grow_occupation_skill(self, agent: Any, sim: Any) -> None:
        occupation = self.world_def.find_occupation(getattr(agent, "occupation", None))
        if occupation is None or not occupation.skill:
            return
        if occupation.skill in sim.skills:
            sim.skills[occupation.skill] += SKILL_GROWTH_PER_WORK
