"""Calls to the external decision/dialogue collaborator.

Structured calls validate the response against a pydantic model and retry
with validation feedback appended to the prompt. Free-text calls (dialogue)
are single shot. Nothing here is required for the simulation to run: callers
treat any exception as "no response arrived".
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Sequence, TypeVar

from mirascope import llm
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from .config import Config
from .local_llm import LocalLLMError, call_ollama_chat
from .logging_utils import log_error, log_llm


ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(slots=True)
class ValidationFeedback:
    """Retry guidance for the model plus the raw issues for logging."""

    llm_text: str
    issues: Sequence[str]


def _preview(value: Any, *, limit: int = 80) -> str:
    if value is None:
        return "null"
    text = repr(value)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def inject_validation_feedback(error: ValidationError) -> ValidationFeedback:
    """Turn a pydantic ``ValidationError`` into correction instructions."""

    issues: list[str] = []
    for err in error.errors(include_url=False):
        loc = ".".join(str(part) for part in err.get("loc", [])) or "root"
        detail = f"{loc}: {err.get('msg', 'validation error')}"
        if err.get("type"):
            detail += f" [type={err['type']}]"
        if "input" in err:
            detail += f" | received={_preview(err.get('input'))}"
        issues.append(detail)

    if not issues:
        issues.append("root: response did not match the expected schema")

    lines = [
        "Your previous JSON response failed to validate against the required schema.",
        "Return only corrected JSON that strictly matches the schema, with no code fences.",
        "Issues detected:",
    ]
    lines.extend(f"- {issue}" for issue in issues)
    return ValidationFeedback(llm_text="\n".join(lines), issues=issues)


def _join(*sections: str) -> str:
    return "\n\n".join(section for section in sections if section)


async def call_llm_with_retries(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_provider: str,
    llm_model: str,
    response_model: type[ModelT],
    max_attempts: int = 3,
    feedback_builder: Callable[[ValidationError], ValidationFeedback] = inject_validation_feedback,
) -> ModelT:
    """Structured call; only validation errors are retried, everything else propagates."""

    system_prompt = system_prompt.strip()
    base_user_prompt = user_prompt.strip()
    feedback: ValidationFeedback | None = None
    use_local = llm_provider.lower() == "ollama"

    remote_invoke: Callable[[str], Any] | None = None
    if not use_local:
        @llm.call(provider=llm_provider, model=llm_model, response_model=response_model)
        async def _invoke(prompt: str) -> str:
            return prompt

        remote_invoke = _invoke

    attempt_number = 0
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(ValidationError),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
    ):
        with attempt:
            attempt_number += 1
            if attempt_number > 1:
                log_llm(
                    f"Retry {attempt_number}/{max_attempts} for {response_model.__name__}"
                )
            user_section = _join(base_user_prompt, feedback.llm_text if feedback else "")
            try:
                if use_local:
                    raw = await asyncio.wait_for(
                        call_ollama_chat(
                            system_prompt=system_prompt,
                            user_prompt=user_section,
                            llm_model=llm_model,
                            json_mode=True,
                        ),
                        timeout=Config.LLM_TIMEOUT,
                    )
                    return response_model.model_validate_json(raw)

                if remote_invoke is None:
                    raise RuntimeError("Remote LLM invoke is not initialized.")
                return await asyncio.wait_for(
                    remote_invoke(_join(system_prompt, user_section)),
                    timeout=Config.LLM_TIMEOUT,
                )
            except ValidationError as exc:
                feedback = feedback_builder(exc)
                log_error(
                    f"{response_model.__name__} failed validation "
                    f"(attempt {attempt_number}/{max_attempts})"
                )
                for issue in feedback.issues:
                    log_error(f"    {issue}")
                raise
            except asyncio.TimeoutError:
                log_error(
                    f"LLM call timed out after {int(Config.LLM_TIMEOUT)}s "
                    f"for {response_model.__name__}"
                )
                raise
            except LocalLLMError as exc:
                raise RuntimeError(f"Local LLM provider error ({llm_provider}): {exc}") from exc

    raise RuntimeError("LLM retry mechanism exited unexpectedly")


async def call_llm_text(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_provider: str,
    llm_model: str,
) -> str:
    """Free-text call used for dialogue."""

    system_prompt = system_prompt.strip()
    user_prompt = user_prompt.strip()

    if llm_provider.lower() == "ollama":
        try:
            return await asyncio.wait_for(
                call_ollama_chat(
                    system_prompt=system_prompt, user_prompt=user_prompt, llm_model=llm_model
                ),
                timeout=Config.LLM_TIMEOUT,
            )
        except LocalLLMError as exc:
            raise RuntimeError(f"Local LLM provider error ({llm_provider}): {exc}") from exc

    @llm.call(provider=llm_provider, model=llm_model)
    async def _invoke(prompt: str) -> str:
        return prompt

    response = await asyncio.wait_for(
        _invoke(_join(system_prompt, user_prompt)), timeout=Config.LLM_TIMEOUT
    )
    return str(getattr(response, "content", response))
