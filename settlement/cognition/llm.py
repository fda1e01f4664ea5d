"""LLM-backed dialogue, behavior and event-reaction decisions.

Every method returns ``None`` when the collaborator is unconfigured, fails,
or answers with something unusable. Callers then fall back to deterministic
behavior; a missing or broken collaborator never stops the simulation.
"""

from __future__ import annotations

import os
from typing import Optional, Type, TypeVar

from pydantic import BaseModel

from settlement.config import Config
from settlement.llm_utils import call_llm_text, call_llm_with_retries
from settlement.logging_utils import log_error, log_info, log_llm, log_warning
from settlement.schemas import BehaviorDecision, ConversationReply, EventReaction

from .context import PromptContext
from .parsing import parse_action_tag, parse_behavior_decision, parse_event_reaction
from .prompts import DEFAULT_PROMPTS, PromptLibrary
from .renderers import RenderedPrompt, render_prompt


ModelT = TypeVar("ModelT", bound=BaseModel)


def _debug_enabled() -> bool:
    return os.getenv("DEBUG_LLM", "").lower() in ("1", "true", "yes")


class LLMDecisionMaker:
    """Ask an external model what an agent says or does next.

    ``structured`` selects how JSON decisions are obtained: validated with
    retries (``call_llm_with_retries``) or as free text parsed leniently.
    Dialogue is always free text.
    """

    def __init__(
        self,
        *,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        prompt_library: Optional[PromptLibrary] = None,
        structured: bool = True,
    ) -> None:
        self.provider = provider or Config.LLM_PROVIDER
        self.model = model or Config.LLM_MODEL
        self.prompt_library = prompt_library or DEFAULT_PROMPTS
        self.structured = structured

    @classmethod
    def from_config(cls, **kwargs) -> Optional["LLMDecisionMaker"]:
        """Build a decision maker if ``Config.validate()`` passes, else ``None``.

        ``None`` means agents run on rule-based behavior only.
        """

        provider = kwargs.get("provider") or Config.LLM_PROVIDER
        try:
            Config.validate(provider)
        except ValueError as exc:
            log_warning(f"{exc} Falling back to rule-based behavior.")
            return None
        maker = cls(**kwargs)
        log_info(f"Using LLM: {maker.provider}/{maker.model}")
        return maker

    @property
    def configured(self) -> bool:
        return bool(self.provider and self.model)

    def _render(self, template_name: str, context: PromptContext, message: Optional[str] = None) -> RenderedPrompt:
        try:
            template = self.prompt_library.get(template_name)
        except KeyError:
            template = DEFAULT_PROMPTS.get(template_name)
        rendered = render_prompt(template, context, message=message)
        if _debug_enabled():
            print(f"\n{'='*80}")
            print(f"[LLM {template_name.upper()}] Agent: {context.agent_id}")
            print(f"{'-'*80}")
            print(rendered.system)
            print(f"{'-'*80}")
            print(rendered.user)
            print(f"{'='*80}\n")
        return rendered

    async def converse(self, context: PromptContext, message: str) -> Optional[ConversationReply]:
        """First-person reply to ``message`` with any action tag split off."""

        if not self.configured:
            return None
        rendered = self._render("conversation", context, message=message)
        try:
            raw = await call_llm_text(
                system_prompt=rendered.system,
                user_prompt=rendered.user,
                llm_provider=self.provider,
                llm_model=self.model,
            )
        except Exception as exc:
            log_error(f"Conversation call failed for {context.name}: {exc}")
            return None

        text, tag = parse_action_tag(raw)
        if not text and tag is None:
            return None
        log_llm(f"{context.name} replied{f' [{tag.kind}]' if tag else ''}")
        return ConversationReply(text=text, action=tag)

    async def decide_behavior(self, context: PromptContext) -> Optional[BehaviorDecision]:
        """Autonomous next step for an idle agent."""

        return await self._decide(
            "behavior", context, BehaviorDecision, parse_behavior_decision
        )

    async def react_to_event(self, context: PromptContext) -> Optional[EventReaction]:
        """Reaction to ``context.event``; ``None`` when there is no event."""

        if context.event is None:
            return None
        return await self._decide(
            "event_reaction", context, EventReaction, parse_event_reaction
        )

    async def _decide(self, template_name, context, response_model: Type[ModelT], parser) -> Optional[ModelT]:
        if not self.configured:
            return None
        rendered = self._render(template_name, context)
        try:
            if self.structured:
                result = await call_llm_with_retries(
                    system_prompt=rendered.system,
                    user_prompt=rendered.user,
                    llm_provider=self.provider,
                    llm_model=self.model,
                    response_model=response_model,
                )
            else:
                raw = await call_llm_text(
                    system_prompt=rendered.system,
                    user_prompt=rendered.user,
                    llm_provider=self.provider,
                    llm_model=self.model,
                )
                result = parser(raw)
        except Exception as exc:
            log_error(f"{response_model.__name__} call failed for {context.name}: {exc}")
            return None

        if result is not None:
            log_llm(f"{context.name}: {result.model_dump_json()}")
        return result
