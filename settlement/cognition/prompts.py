"""Prompt templates for the decision/dialogue collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass
class PromptTemplate:
    """Represents a templated prompt with ``{{placeholder}}`` slots."""

    name: str
    system: str
    user: str
    description: str = ""


class PromptLibrary:
    """Container for named prompt templates."""

    def __init__(self) -> None:
        self.templates: Dict[str, PromptTemplate] = {}

    def register(self, template: PromptTemplate) -> None:
        self.templates[template.name] = template

    def get(self, name: str) -> PromptTemplate:
        return self.templates[name]


DEFAULT_PROMPTS = PromptLibrary()

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="conversation",
        system=(
            "You are {{name}}, a {{age}}-year-old {{occupation}} living in {{world_name}}. "
            "It is {{time}}.\n\n"
            "Personality: {{personality}}\n\n"
            "Your recent memories:\n{{memories_text}}\n\n"
            "{{events_text}}\n\n"
            "{{relationships_text}}\n\n"
            "IMPORTANT RULES:\n"
            "- Stay in character. Respond naturally and briefly (1-3 sentences).\n"
            "- Show your personality through your speech.\n"
            "- Reference your memories when relevant.\n"
            "- If the traveler asks you to DO something and you agree, add EXACTLY ONE of these "
            "action tags at the very end of your message on a new line:\n"
            "  [FOLLOW] if you agree to follow the traveler\n"
            "  [GO:building name] if you agree to go to a specific place (e.g., [GO:The Bakery])\n"
            "  [STAY] if you decline or prefer to stay\n"
            "- Only add an action tag when the traveler makes a request.\n"
            "- The action tag is NOT part of your spoken dialogue."
        ),
        user="{{message}}",
        description="First-person dialogue with an optional trailing action tag.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="behavior",
        system="You are an NPC behavior engine. Respond ONLY with JSON.",
        user=(
            "You are {{name}}, a {{occupation}} in {{world_name}}. It is {{time}}.\n"
            "Personality: {{personality}}\n"
            "Current activity: {{current_activity}}\n"
            "Current state: {{state}}\n"
            "Needs: {{needs_text}}\n"
            "Nearby buildings: {{buildings_text}}\n"
            "Nearby people: {{nearby_text}}\n"
            "{{events_text}}\n\n"
            "Recent memories:\n{{memories_text}}\n\n"
            "{{schema_summary}}\n\n"
            "What would you like to do next? Consider your personality, the time of day, "
            "and any events happening.\n"
            "Respond ONLY with JSON:\n"
            "{\n"
            "  \"action\": \"walk_to\" | \"idle\" | \"talk_to\" | \"flee\" | \"investigate\",\n"
            "  \"target\": \"building name or person name\",\n"
            "  \"thought\": \"brief internal thought about why\",\n"
            "  \"speech\": \"what you say out loud (or empty string if silent)\"\n"
            "}"
        ),
        description="Structured autonomous-behavior decision.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="event_reaction",
        system="You are an NPC reaction engine. Respond ONLY with JSON.",
        user=(
            "You are {{name}}, a {{occupation}} in {{world_name}}.\n"
            "Personality: {{personality}}\n\n"
            "URGENT: {{event_text}} is happening!\n"
            "{{event_detail}}\n\n"
            "Available buildings: {{buildings_text}}\n\n"
            "How do you react? Respond ONLY with JSON:\n"
            "{\n"
            "  \"reaction\": \"flee\" | \"help\" | \"investigate\" | \"panic\" | \"ignore\",\n"
            "  \"target\": \"where you want to go (building name, 'water source', or 'away')\",\n"
            "  \"speech\": \"what you shout or say\",\n"
            "  \"thought\": \"brief internal thought\"\n"
            "}"
        ),
        description="Structured reaction to an urgent world event.",
    )
)
