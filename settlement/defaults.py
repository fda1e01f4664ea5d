"""Built-in default world schema.

A medieval village: the schema every world falls back to for any section the
caller does not supply, which is what makes the simulation runnable with zero
external configuration. Written in the same camelCase shape an external
generator would author, so it flows through the normalizer like any other
input.
"""

from __future__ import annotations

from typing import Any, Dict


DEFAULT_WORLDDEF_RAW: Dict[str, Any] = {
    "terrain": [
        {"id": "grass", "walkable": True, "color": "#5b8c3e"},
        {"id": "grass_dark", "walkable": True, "color": "#4a7a32"},
        {"id": "grass_flower", "walkable": True, "color": "#5b8c3e"},
        {"id": "path", "walkable": True, "color": "#c9b48c"},
        {"id": "water", "walkable": False, "color": "#3a7bd5", "solid": True},
        {"id": "sand", "walkable": True, "color": "#e8d5a3"},
        {"id": "floor_wood", "walkable": True, "color": "#b8860b"},
        {"id": "floor_stone", "walkable": True, "color": "#999999"},
    ],
    "resources": [
        {"id": "food", "renewable": True, "baseProduction": 0.12, "unit": "rations", "category": "consumable", "startAmount": 80},
        {"id": "gold", "renewable": False, "baseProduction": 0, "unit": "coins", "category": "currency", "startAmount": 100},
        {"id": "wood", "renewable": True, "baseProduction": 0.05, "unit": "logs", "category": "material", "startAmount": 40},
        {"id": "stone", "renewable": True, "baseProduction": 0.03, "unit": "blocks", "category": "material", "startAmount": 30},
    ],
    "needs": [
        {"id": "hunger", "label": "Hunger", "growthRate": 0.0004, "satisfiedBy": ["food", "bread", "fish", "vegetables"], "decayAction": "eat", "critical": 0.9, "statusEffects": {"health": -0.1, "happiness": -0.15}},
        {"id": "rest", "label": "Rest", "growthRate": 0.002, "satisfiedBy": ["bed", "sleep"], "decayAction": "sleep", "critical": 0.9},
        {"id": "social", "label": "Social", "growthRate": 0.003, "satisfiedBy": ["conversation"], "decayAction": "socialize", "critical": 0.8, "statusEffects": {"happiness": -0.15}},
        {"id": "safety", "label": "Safety", "growthRate": 0, "satisfiedBy": [], "decayAction": None},
        {"id": "fun", "label": "Fun", "growthRate": 0.002, "satisfiedBy": ["entertainment"], "decayAction": "have_fun"},
        {"id": "purpose", "label": "Purpose", "growthRate": 0.001, "satisfiedBy": ["work", "craft"], "decayAction": "work"},
        {"id": "romance", "label": "Romance", "growthRate": 0.001, "satisfiedBy": ["partner", "flirt"], "decayAction": "flirt", "threshold": 0.6},
    ],
    "traits": [
        {"id": "romantic", "label": "Romantic"},
        {"id": "ambition", "label": "Ambitious"},
        {"id": "introversion", "label": "Introverted"},
        {"id": "aggression", "label": "Aggressive"},
        {"id": "empathy", "label": "Empathetic"},
        {"id": "curiosity", "label": "Curious"},
        {"id": "bravery", "label": "Brave"},
        {"id": "creativity", "label": "Creative"},
    ],
    "skills": [
        {"id": "farming", "label": "Farming"},
        {"id": "crafting", "label": "Crafting"},
        {"id": "cooking", "label": "Cooking"},
        {"id": "trading", "label": "Trading"},
        {"id": "leadership", "label": "Leadership"},
        {"id": "medicine", "label": "Medicine"},
        {"id": "combat", "label": "Combat"},
        {"id": "art", "label": "Art"},
        {"id": "science", "label": "Science"},
        {"id": "persuasion", "label": "Persuasion"},
    ],
    "status": [
        {"id": "health", "label": "Health", "min": 0, "max": 100, "default": 90},
        {"id": "wealth", "label": "Wealth", "min": 0, "max": 9999, "default": 40},
        {"id": "reputation", "label": "Reputation", "min": 0, "max": 100, "default": 50},
        {"id": "happiness", "label": "Happiness", "min": 0, "max": 100, "default": 60},
        {"id": "energy", "label": "Energy", "min": 0, "max": 100, "default": 80},
    ],
    "occupations": [
        {"id": "farmer", "inputs": [], "outputs": [{"resource": "food", "qty": 1}], "skill": "farming", "description": "Grows food", "building": "farm"},
        {"id": "baker", "inputs": [{"resource": "food", "qty": 1}], "outputs": [{"resource": "bread", "qty": 2}], "skill": "cooking", "description": "Bakes bread"},
        {"id": "blacksmith", "inputs": [{"resource": "stone", "qty": 1}], "outputs": [{"resource": "tool", "qty": 1}], "skill": "crafting", "description": "Forges tools", "building": "blacksmith"},
        {"id": "merchant", "inputs": [], "outputs": [], "skill": "trading", "description": "Trades goods", "building": "market"},
        {"id": "healer", "inputs": [], "outputs": [{"resource": "medicine", "qty": 1}], "skill": "medicine", "description": "Heals the sick", "building": "hospital"},
        {"id": "guard", "inputs": [], "outputs": [], "skill": "combat", "description": "Protects the village"},
        {"id": "bard", "inputs": [], "outputs": [], "skill": "art", "description": "Entertains people", "building": "tavern"},
        {"id": "scholar", "inputs": [], "outputs": [], "skill": "science", "description": "Researches knowledge"},
        {"id": "carpenter", "inputs": [{"resource": "wood", "qty": 1}], "outputs": [{"resource": "furniture", "qty": 1}], "skill": "crafting", "description": "Builds with wood"},
        {"id": "fisherman", "inputs": [], "outputs": [{"resource": "food", "qty": 1}], "skill": "farming", "description": "Catches fish"},
        {"id": "innkeeper", "inputs": [{"resource": "food", "qty": 1}], "outputs": [], "skill": "trading", "description": "Runs the inn", "building": "tavern"},
        {"id": "priest", "inputs": [], "outputs": [], "skill": "persuasion", "description": "Spiritual leader", "building": "temple"},
        {"id": "teacher", "inputs": [], "outputs": [], "skill": "science", "description": "Educates others"},
        {"id": "hunter", "inputs": [], "outputs": [{"resource": "food", "qty": 1}], "skill": "combat", "description": "Hunts game"},
        {"id": "tailor", "inputs": [{"resource": "material", "qty": 1}], "outputs": [{"resource": "clothing", "qty": 1}], "skill": "crafting", "description": "Makes clothes"},
    ],
    "actions": [
        {"id": "eat", "effects": {"hunger": -0.7}, "inputs": [{"resource": "food", "qty": 1}], "description": "Eat a meal"},
        {"id": "sleep", "effects": {"rest": -1, "energy": 100}, "description": "Rest and recover energy"},
        {"id": "work", "effects": {"purpose": -0.4}, "description": "Work at your occupation"},
        {"id": "socialize", "effects": {"social": -0.3}, "description": "Chat with someone", "social": True, "target": "agent"},
        {"id": "flirt", "effects": {"romance": -0.2}, "description": "Flirt with someone", "social": True, "target": "agent"},
        {"id": "give_gift", "effects": {}, "inputs": [{"resource": "gold", "qty": 5}], "description": "Give a gift", "social": True, "target": "agent"},
        {"id": "buy_food", "effects": {"hunger": -0.5}, "inputs": [{"resource": "gold", "qty": 3}], "outputs": [{"resource": "food", "qty": 1}], "description": "Buy food", "worldEffects": {"resources.food": -1}},
        {"id": "buy_item", "effects": {}, "inputs": [{"resource": "gold", "qty": 12}], "outputs": [{"resource": "tool", "qty": 1}], "description": "Buy a tool"},
        {"id": "sell_item", "effects": {}, "description": "Sell goods for gold"},
        {"id": "discover", "effects": {"reputation": 5}, "description": "Make a discovery or invention"},
        {"id": "open_business", "effects": {}, "inputs": [{"resource": "gold", "qty": 50}], "description": "Open a new business", "requires": [{"minWealth": 50}]},
        {"id": "betray", "effects": {"reputation": -10}, "description": "Betray someone", "social": True, "target": "agent"},
        {"id": "become_leader", "effects": {"purpose": -1, "reputation": 15}, "description": "Become the village leader"},
        {"id": "have_child", "effects": {"romance": -0.3, "happiness": 20}, "description": "Have a child with your partner", "social": True},
        {"id": "call_event", "effects": {}, "description": "Organize a community event"},
        {"id": "have_fun", "effects": {"fun": -0.4, "happiness": 5}, "description": "Do something enjoyable"},
        {"id": "pray", "effects": {"purpose": -0.2, "happiness": 3}, "description": "Pray or meditate", "location": "temple"},
        {"id": "trade", "effects": {}, "description": "Trade goods with another person", "social": True, "target": "agent", "location": "market"},
        {"id": "explore", "effects": {"fun": -0.2}, "description": "Explore the surroundings"},
        {"id": "craft", "effects": {"purpose": -0.3}, "description": "Craft something", "location": "workshop"},
    ],
    "buildingTypes": [
        {"id": "house", "w": 5, "h": 4, "shape": "default", "rooms": ["bedroom", "kitchen", "living room"]},
        {"id": "tavern", "w": 7, "h": 5, "shape": "default", "rooms": ["main hall", "kitchen", "cellar"]},
        {"id": "shop", "w": 5, "h": 4, "shape": "default", "rooms": ["storefront", "back room"]},
        {"id": "blacksmith", "w": 6, "h": 4, "shape": "default", "rooms": ["forge", "workshop"]},
        {"id": "church", "w": 6, "h": 6, "shape": "default", "rooms": ["sanctuary", "office"]},
        {"id": "farm", "w": 7, "h": 5, "shape": "default", "rooms": ["barn", "field"]},
        {"id": "market", "w": 6, "h": 3, "shape": "default", "rooms": ["stalls", "storage"]},
        {"id": "townhall", "w": 7, "h": 6, "shape": "default", "rooms": ["meeting hall", "office"]},
        {"id": "temple", "w": 6, "h": 6, "shape": "default", "rooms": ["prayer hall", "meditation room"]},
        {"id": "hospital", "w": 6, "h": 5, "shape": "default", "rooms": ["reception", "ward"]},
    ],
    "visualStyle": {
        "palette": ["#5b8c3e", "#c9b48c", "#3a7bd5", "#8B7355", "#e8d5a3"],
        "groundTexture": "organic",
        "buildingMaterial": "wood_plank",
        "vegetationType": "deciduous",
        "waterStyle": "still",
    },
    "economy": {
        "currency": "gold",
        "taxRate": 0.1,
        "prices": {"food": 3, "tool": 12, "lodging": 8, "healing": 15, "gift": 5, "marketStall": 50},
    },
    "evolution": {
        "seasons": [
            {"id": "spring", "duration": 7, "productionMod": 1.2, "needMods": {}},
            {"id": "summer", "duration": 7, "productionMod": 1.0, "needMods": {"rest": 1.3}},
            {"id": "autumn", "duration": 7, "productionMod": 0.8, "needMods": {}},
            {"id": "winter", "duration": 7, "productionMod": 0.4, "needMods": {"hunger": 1.5}},
        ],
        "techTree": None,
        "agingRate": 0,
    },
    "culture": "",
}


# Appearance palettes for name-seeded NPC looks.
HAIR_COLORS = [
    "#2c1810", "#4a2c17", "#8B4513", "#D2691E", "#daa520",
    "#f5deb3", "#ff6347", "#1a1a2e", "#c0c0c0", "#ff69b4",
]
SHIRT_COLORS = [
    "#e74c3c", "#3498db", "#2ecc71", "#f39c12", "#9b59b6",
    "#1abc9c", "#e67e22", "#ecf0f1", "#34495e", "#d35400",
]
PANTS_COLORS = [
    "#2c3e50", "#34495e", "#7f8c8d", "#1a1a2e", "#4a3728",
    "#2d5a27", "#1f3a5f", "#3d3d3d", "#5d4e37", "#2c2c54",
]
SKIN_COLOR = "#f5c49c"
