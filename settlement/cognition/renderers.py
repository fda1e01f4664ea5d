"""Prompt rendering utilities."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional

from .context import PromptContext
from .prompts import PromptTemplate


PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


@dataclass
class RenderedPrompt:
    system: str
    user: str


def render_prompt(
    template: PromptTemplate,
    context: PromptContext,
    *,
    message: Optional[str] = None,
) -> RenderedPrompt:
    """Render a prompt template using the supplied context.

    Parameters
    ----------
    template:
        PromptTemplate to render.
    context:
        Snapshot of the agent and its surroundings.
    message:
        What the traveler said; fills ``{{message}}`` in conversation prompts.
    """

    # Placeholders use {{double_brace}} syntax so JSON braces in templates survive.
    # Unknown placeholders are left untouched.
    replacements: Dict[str, str] = {
        "name": context.name,
        "age": str(context.age),
        "occupation": context.occupation,
        "personality": context.personality,
        "world_name": context.world_name,
        "time": context.time,
        "current_activity": context.current_activity,
        "state": context.state,
        "memories_text": context.memories_text or "(no memories yet)",
        "events_text": context.events_text,
        "relationships_text": context.relationships_text(),
        "needs_text": context.needs_text(),
        "buildings_text": ", ".join(context.buildings) or "none",
        "nearby_text": ", ".join(context.nearby) or "nobody",
        "schema_summary": context.schema_summary,
        "event_text": context.event_text(),
        "event_detail": context.event_detail(),
        "context_json": context.to_json(),
        "message": message or "",
        "agent_id": context.agent_id,
    }
    for key, value in context.extra.items():
        replacements.setdefault(key, str(value))

    # One pass, so placeholder-looking text inside substituted values stays literal.
    def substitute(match: re.Match) -> str:
        return replacements.get(match.group(1), match.group(0))

    return RenderedPrompt(
        system=PLACEHOLDER.sub(substitute, template.system),
        user=PLACEHOLDER.sub(substitute, template.user),
    )
