"""Prompting, parsing and execution of collaborator decisions."""

from .context import PromptContext, build_prompt_context
from .executor import (
    apply_action_tag,
    apply_behavior_decision,
    apply_conversation_reply,
    apply_event_reaction,
    fallback_event_reaction,
)
from .llm import LLMDecisionMaker
from .parsing import (
    parse_action_tag,
    parse_behavior_decision,
    parse_event_reaction,
    parse_json_lenient,
)
from .prompts import DEFAULT_PROMPTS, PromptLibrary, PromptTemplate
from .renderers import RenderedPrompt, render_prompt

__all__ = [
    "PromptContext",
    "build_prompt_context",
    "apply_action_tag",
    "apply_behavior_decision",
    "apply_conversation_reply",
    "apply_event_reaction",
    "fallback_event_reaction",
    "LLMDecisionMaker",
    "parse_action_tag",
    "parse_behavior_decision",
    "parse_event_reaction",
    "parse_json_lenient",
    "DEFAULT_PROMPTS",
    "PromptLibrary",
    "PromptTemplate",
    "RenderedPrompt",
    "render_prompt",
]
