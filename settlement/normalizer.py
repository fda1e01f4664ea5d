"""
Schema normalization: loosely-shaped input → fully-defaulted ``WorldDef``.

World schemas arrive from external generators (or hand-written JSON) in
whatever shape the author produced. This module is the single place where that
input is coerced into typed, frozen pydantic models:

- identifiers are lower-cased and unique within their collection (first wins)
- every numeric/string/bool field falls back to a documented default when
  missing or malformed
- ``effects`` / ``statusEffects`` keys are validated against the schema's own
  need/status/skill ids; unknown keys are dropped with a warning
- ``status`` ranges always satisfy ``min <= default <= max``

Nothing here raises. Configuration gaps are recovered locally and reported
through ``log_warning``; a world with a sloppy schema still runs.

Usage:
    world_def = generate_world_def({"needs": [{"id": "Hunger"}]})
    world_def.find_need("HUNGER").growth_rate  # 0.001
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from .defaults import DEFAULT_WORLDDEF_RAW
from .logging_utils import log_warning
from .schemas import (
    ActionDef,
    ActionRequirement,
    BuildingTypeDef,
    Economy,
    Evolution,
    NeedDef,
    OccupationDef,
    RecipeItem,
    ResourceDef,
    Season,
    SkillDef,
    StatusDef,
    TerrainDef,
    TraitDef,
    VisualStyle,
    WorldDef,
)


# Top-level keys accepted in snake_case and rewritten to the authored camelCase.
_SECTION_ALIASES = {
    "building_types": "buildingTypes",
    "visual_style": "visualStyle",
}


# ============================================================================
# Field coercion helpers
# ============================================================================


def _as_mapping(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _get(raw: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-None value among ``keys`` (camelCase and snake_case spellings)."""

    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _num(value: Any, default: float) -> float:
    # bool is an int subclass; a stray True must not become 1.0
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def _int(value: Any, default: int) -> int:
    number = _num(value, float(default))
    return int(number) if number > 0 else default


def _str(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _opt_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _ident(raw: Mapping[str, Any], default: str = "unknown") -> str:
    """Lower-cased ``id``, falling back to ``name`` when ``id`` is missing or blank."""

    for key in ("id", "name"):
        value = raw.get(key)
        if value is None or isinstance(value, bool):
            continue
        text = str(value).strip().lower()
        if text:
            return text
    return default


def _numeric_map(value: Any, *, lower_keys: bool = True) -> Dict[str, float]:
    result: Dict[str, float] = {}
    for key, delta in _as_mapping(value).items():
        if isinstance(delta, bool) or not isinstance(delta, (int, float)):
            continue
        name = str(key).strip()
        result[name.lower() if lower_keys else name] = float(delta)
    return result


def _entries(value: Any, section: str) -> Iterable[Dict[str, Any]]:
    """Yield mapping entries of a collection; bare strings become ``{"id": s}``."""

    for entry in _as_list(value):
        if isinstance(entry, Mapping):
            yield dict(entry)
        elif isinstance(entry, str) and entry.strip():
            yield {"id": entry}
        else:
            log_warning(f"Ignoring malformed {section} entry: {entry!r}")


def _recipe(value: Any) -> List[RecipeItem]:
    items: List[RecipeItem] = []
    for entry in _as_list(value):
        if isinstance(entry, str):
            entry = {"resource": entry}
        if not isinstance(entry, Mapping):
            continue
        resource = _get(entry, "resource", "name")
        if resource is None:
            continue
        items.append(
            RecipeItem(resource=str(resource).strip().lower(), qty=_num(entry.get("qty"), 1))
        )
    return items


def _requirements(value: Any) -> List[ActionRequirement]:
    """Normalize ``requires``: a building string, a mapping, or a list of either."""

    if value is None:
        return []
    raw_items = value if isinstance(value, (list, tuple)) else [value]
    requirements: List[ActionRequirement] = []
    for item in raw_items:
        if isinstance(item, str) and item.strip():
            requirements.append(ActionRequirement(building=item.strip().lower()))
        elif isinstance(item, Mapping):
            min_wealth = _get(item, "minWealth", "min_wealth")
            building = _opt_str(item.get("building"))
            if min_wealth is None and building is None:
                continue
            requirements.append(
                ActionRequirement(
                    building=building.lower() if building else None,
                    min_wealth=_num(min_wealth, 0) if min_wealth is not None else None,
                )
            )
    return requirements


# ============================================================================
# Per-entity normalizers
# ============================================================================


def normalize_terrain(raw: Mapping[str, Any]) -> TerrainDef:
    return TerrainDef(
        id=_ident(raw, "ground"),
        walkable=raw.get("walkable") is not False,
        color=_str(raw.get("color"), "#5b8c3e"),
        variants=_int(raw.get("variants"), 1),
        solid=bool(raw.get("solid") or False),
    )


def normalize_resource(raw: Mapping[str, Any]) -> ResourceDef:
    return ResourceDef(
        id=_ident(raw),
        renewable=raw.get("renewable") is not False,
        base_production=_num(_get(raw, "baseProduction", "base_production"), 0.1),
        unit=_str(raw.get("unit"), "units"),
        category=_str(raw.get("category"), "material"),
        start_amount=_num(_get(raw, "startAmount", "start_amount"), 50),
    )


def normalize_need(raw: Mapping[str, Any]) -> NeedDef:
    need_id = _ident(raw)
    start_min = _num(_get(raw, "startMin", "start_min"), 0.1)
    start_max = _num(_get(raw, "startMax", "start_max"), 0.4)
    if start_min > start_max:
        log_warning(f"Need '{need_id}': startMin > startMax, swapping")
        start_min, start_max = start_max, start_min
    threshold = _num(raw.get("threshold"), 0.7)
    critical = _num(raw.get("critical"), 0.9)
    if threshold > critical:
        log_warning(
            f"Need '{need_id}': threshold {threshold:g} exceeds critical {critical:g}"
        )
    satisfied_by = [
        str(item).strip().lower()
        for item in _as_list(_get(raw, "satisfiedBy", "satisfied_by"))
        if isinstance(item, str) and item.strip()
    ]
    return NeedDef(
        id=need_id,
        label=_str(raw.get("label"), _str(_get(raw, "id", "name"), "Unknown")),
        growth_rate=_num(_get(raw, "growthRate", "growth_rate"), 0.001),
        satisfied_by=satisfied_by,
        decay_action=_opt_str(_get(raw, "decayAction", "decay_action")),
        start_min=start_min,
        start_max=start_max,
        status_effects=_numeric_map(_get(raw, "statusEffects", "status_effects")),
        threshold=threshold,
        critical=critical,
    )


def normalize_trait(raw: Mapping[str, Any]) -> TraitDef:
    return TraitDef(
        id=_ident(raw),
        label=_str(raw.get("label"), _str(_get(raw, "id", "name"), "Unknown")),
        description=_str(raw.get("description"), ""),
    )


def normalize_skill(raw: Mapping[str, Any]) -> SkillDef:
    return SkillDef(
        id=_ident(raw),
        label=_str(raw.get("label"), _str(_get(raw, "id", "name"), "Unknown")),
    )


def normalize_status(raw: Mapping[str, Any]) -> StatusDef:
    status_id = _ident(raw)
    low = _num(raw.get("min"), 0)
    high = _num(raw.get("max"), 100)
    if low > high:
        log_warning(f"Status '{status_id}': min > max, swapping")
        low, high = high, low
    default = _num(raw.get("default"), 50)
    if not low <= default <= high:
        clamped = min(max(default, low), high)
        log_warning(
            f"Status '{status_id}': default {default:g} outside [{low:g}, {high:g}], using {clamped:g}"
        )
        default = clamped
    return StatusDef(
        id=status_id,
        label=_str(raw.get("label"), _str(_get(raw, "id", "name"), "Unknown")),
        min=low,
        max=high,
        default=default,
    )


def normalize_occupation(raw: Mapping[str, Any]) -> OccupationDef:
    building = _opt_str(raw.get("building"))
    return OccupationDef(
        id=_ident(raw),
        inputs=_recipe(raw.get("inputs")),
        outputs=_recipe(raw.get("outputs")),
        skill=_str(raw.get("skill"), "").strip().lower(),
        description=_str(raw.get("description"), ""),
        building=building.lower() if building else None,
    )


def normalize_action(raw: Mapping[str, Any]) -> ActionDef:
    return ActionDef(
        id=_ident(raw),
        effects=_numeric_map(raw.get("effects")),
        inputs=_recipe(raw.get("inputs")),
        outputs=_recipe(raw.get("outputs")),
        requires=_requirements(raw.get("requires")),
        description=_str(raw.get("description"), ""),
        location=_opt_str(raw.get("location")),
        world_effects=_numeric_map(_get(raw, "worldEffects", "world_effects"), lower_keys=False),
        social=bool(raw.get("social") or False),
        target=_opt_str(raw.get("target")),
    )


def normalize_building_type(raw: Mapping[str, Any]) -> BuildingTypeDef:
    return BuildingTypeDef(
        id=_ident(raw),
        w=_int(raw.get("w"), 5),
        h=_int(raw.get("h"), 4),
        shape=_str(raw.get("shape"), "default"),
        color=_str(raw.get("color"), "#8B7355"),
        roof_color=_str(_get(raw, "roofColor", "roof_color"), "#6b5335"),
        rooms=[str(room) for room in _as_list(raw.get("rooms")) if isinstance(room, str)],
    )


def normalize_visual_style(raw: Any) -> VisualStyle:
    raw = _as_mapping(raw)
    defaults = VisualStyle()
    palette = [c for c in _as_list(raw.get("palette")) if isinstance(c, str)]
    return VisualStyle(
        palette=palette or defaults.palette,
        ground_texture=_str(_get(raw, "groundTexture", "ground_texture"), defaults.ground_texture),
        building_material=_str(
            _get(raw, "buildingMaterial", "building_material"), defaults.building_material
        ),
        vegetation_type=_str(_get(raw, "vegetationType", "vegetation_type"), defaults.vegetation_type),
        water_style=_str(_get(raw, "waterStyle", "water_style"), defaults.water_style),
    )


def normalize_economy(raw: Any) -> Economy:
    raw = _as_mapping(raw)
    return Economy(
        currency=_str(_get(raw, "currency", "currencyName"), "gold"),
        tax_rate=_num(_get(raw, "taxRate", "tax_rate"), 0.1),
        prices=_numeric_map(raw.get("prices"), lower_keys=False),
    )


def normalize_evolution(raw: Any) -> Evolution:
    raw = _as_mapping(raw)
    seasons: List[Season] = []
    for entry in _entries(raw.get("seasons"), "season"):
        seasons.append(
            Season(
                id=_ident(entry, "season"),
                duration=_int(entry.get("duration"), 7),
                production_mod=_num(_get(entry, "productionMod", "production_mod"), 1.0),
                need_mods=_numeric_map(_get(entry, "needMods", "need_mods")),
            )
        )
    return Evolution(
        seasons=seasons,
        tech_tree=_get(raw, "techTree", "tech_tree"),
        aging_rate=_num(_get(raw, "agingRate", "aging_rate"), 0),
    )


def _collection(raw: Mapping[str, Any], key: str, normalizer) -> list:
    """Normalize one collection, dropping duplicate ids (first wins)."""

    seen: Set[str] = set()
    items = []
    for entry in _entries(raw.get(key), key):
        item = normalizer(entry)
        if item.id in seen:
            log_warning(f"Duplicate {key} id '{item.id}' ignored")
            continue
        seen.add(item.id)
        items.append(item)
    return items


# ============================================================================
# Cross-reference validation
# ============================================================================


def _validated_effects(
    owner: str, effects: Dict[str, float], allowed: Set[str], kind: str
) -> Dict[str, float]:
    kept: Dict[str, float] = {}
    for key, delta in effects.items():
        if key in allowed:
            kept[key] = delta
        else:
            log_warning(f"{owner}: unknown {kind} '{key}' dropped")
    return kept


def _validate_actions(
    actions: List[ActionDef], needs: List[NeedDef], status: List[StatusDef], skills: List[SkillDef]
) -> List[ActionDef]:
    allowed = {n.id for n in needs} | {s.id for s in status} | {s.id for s in skills}
    validated = []
    for action in actions:
        effects = _validated_effects(f"Action '{action.id}'", action.effects, allowed, "effect")
        if effects != action.effects:
            action = action.model_copy(update={"effects": effects})
        validated.append(action)
    return validated


def _validate_needs(needs: List[NeedDef], status: List[StatusDef]) -> List[NeedDef]:
    allowed = {s.id for s in status}
    validated = []
    for need in needs:
        effects = _validated_effects(
            f"Need '{need.id}'", need.status_effects, allowed, "status effect"
        )
        if effects != need.status_effects:
            need = need.model_copy(update={"status_effects": effects})
        validated.append(need)
    return validated


# ============================================================================
# Public entry points
# ============================================================================


def normalize(raw: Optional[Mapping[str, Any]]) -> WorldDef:
    """Convert a loosely-shaped mapping into a fully-defaulted ``WorldDef``.

    Missing collections become empty; use ``generate_world_def`` to layer the
    input over the built-in default catalog first.
    """

    raw = _canonical_sections(_as_mapping(raw))

    status = _collection(raw, "status", normalize_status)
    skills = _collection(raw, "skills", normalize_skill)
    needs = _validate_needs(_collection(raw, "needs", normalize_need), status)
    actions = _validate_actions(
        _collection(raw, "actions", normalize_action), needs, status, skills
    )

    culture = raw.get("culture")
    return WorldDef(
        terrain=_collection(raw, "terrain", normalize_terrain),
        resources=_collection(raw, "resources", normalize_resource),
        needs=needs,
        traits=_collection(raw, "traits", normalize_trait),
        skills=skills,
        status=status,
        occupations=_collection(raw, "occupations", normalize_occupation),
        actions=actions,
        building_types=_collection(raw, "buildingTypes", normalize_building_type),
        visual_style=normalize_visual_style(raw.get("visualStyle")),
        economy=normalize_economy(raw.get("economy")),
        evolution=normalize_evolution(raw.get("evolution")),
        culture=culture if isinstance(culture, str) else "",
    )


def _canonical_sections(raw: Dict[str, Any]) -> Dict[str, Any]:
    canonical: Dict[str, Any] = {}
    for key, value in raw.items():
        canonical[_SECTION_ALIASES.get(key, key)] = value
    return canonical


def merge_over_defaults(
    raw: Optional[Mapping[str, Any]],
    defaults: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Layer partial input over a complete default schema.

    - object sections (economy, evolution, visualStyle) merge key-by-key
    - a non-empty array replaces the default array wholesale
    - empty arrays and ``None`` keep the default
    - a non-list value for an array section keeps the default (warning)
    - anything else replaces the default value
    """

    merged = copy.deepcopy(dict(defaults if defaults is not None else DEFAULT_WORLDDEF_RAW))
    for key, value in _canonical_sections(_as_mapping(raw)).items():
        if value is None:
            continue
        base = merged.get(key)
        if isinstance(base, list):
            if isinstance(value, (list, tuple)):
                if value:
                    merged[key] = list(value)
            else:
                log_warning(
                    f"Section '{key}': expected a list, got {type(value).__name__}; keeping defaults"
                )
        elif isinstance(value, (list, tuple)):
            if value:
                merged[key] = list(value)
        elif isinstance(value, Mapping):
            merged[key] = {**(base if isinstance(base, Mapping) else {}), **value}
        else:
            merged[key] = value
    return merged


def generate_world_def(raw: Optional[Mapping[str, Any]] = None) -> WorldDef:
    """Build a runnable ``WorldDef`` from (possibly empty) generator output."""

    return normalize(merge_over_defaults(raw))


DEFAULT_WORLDDEF: WorldDef = normalize(DEFAULT_WORLDDEF_RAW)
