"""Unit tests for the LLM retry helper."""

import pytest
from pydantic import BaseModel, ValidationError

from settlement.llm_utils import call_llm_text, call_llm_with_retries, inject_validation_feedback


class DummyModel(BaseModel):
    content: str


def _validation_error():
    try:
        DummyModel.model_validate({})
    except ValidationError as exc:
        return exc
    raise AssertionError("expected a validation error")


@pytest.mark.asyncio
async def test_call_llm_with_retries_success(monkeypatch):
    recorded_prompts: list[str] = []

    async def fake_caller(prompt: str) -> DummyModel:
        recorded_prompts.append(prompt)
        return DummyModel(content="ok")

    def fake_decorator(*, provider, model, response_model):
        assert response_model is DummyModel

        def wrapper(fn):
            async def inner(prompt: str):
                return await fake_caller(prompt)

            return inner

        return wrapper

    monkeypatch.setattr("settlement.llm_utils.llm.call", fake_decorator)

    result = await call_llm_with_retries(
        system_prompt="System context",
        user_prompt="What now?",
        llm_provider="openai",
        llm_model="gpt-4o-mini",
        response_model=DummyModel,
    )

    assert result.content == "ok"
    assert recorded_prompts == ["System context\n\nWhat now?"]


@pytest.mark.asyncio
async def test_call_llm_with_retries_injects_feedback(monkeypatch):
    attempts: list[str] = []
    validation_error = _validation_error()

    async def fake_caller(prompt: str) -> DummyModel:
        attempts.append(prompt)
        if len(attempts) == 1:
            raise validation_error
        return DummyModel(content="fixed")

    def fake_decorator(*, provider, model, response_model):
        def wrapper(fn):
            async def inner(prompt: str):
                return await fake_caller(prompt)

            return inner

        return wrapper

    monkeypatch.setattr("settlement.llm_utils.llm.call", fake_decorator)

    result = await call_llm_with_retries(
        system_prompt="System",
        user_prompt="User",
        llm_provider="openai",
        llm_model="gpt-4o-mini",
        response_model=DummyModel,
    )

    assert result.content == "fixed"
    assert len(attempts) == 2
    assert "failed to validate" in attempts[1]
    assert "content: Field required" in attempts[1]


@pytest.mark.asyncio
async def test_call_llm_with_retries_gives_up(monkeypatch):
    validation_error = _validation_error()
    calls = []

    def fake_decorator(*, provider, model, response_model):
        def wrapper(fn):
            async def inner(prompt: str):
                calls.append(prompt)
                raise validation_error

            return inner

        return wrapper

    monkeypatch.setattr("settlement.llm_utils.llm.call", fake_decorator)

    with pytest.raises(ValidationError):
        await call_llm_with_retries(
            system_prompt="System",
            user_prompt="User",
            llm_provider="openai",
            llm_model="gpt-4o-mini",
            response_model=DummyModel,
            max_attempts=2,
        )
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_ollama_route_validates_raw_json(monkeypatch):
    async def fake_chat(*, system_prompt, user_prompt, llm_model, json_mode):
        assert llm_model == "llama3.1"
        assert json_mode is True
        return '{"content": "local"}'

    monkeypatch.setattr("settlement.llm_utils.call_ollama_chat", fake_chat)

    result = await call_llm_with_retries(
        system_prompt="System",
        user_prompt="User",
        llm_provider="ollama",
        llm_model="llama3.1",
        response_model=DummyModel,
    )

    assert result.content == "local"


@pytest.mark.asyncio
async def test_call_llm_text_returns_content(monkeypatch):
    class FakeResponse:
        content = "Good day, traveler! [FOLLOW]"

    def fake_decorator(*, provider, model):
        def wrapper(fn):
            async def inner(prompt: str):
                assert prompt == "You are Martha.\n\nHello"
                return FakeResponse()

            return inner

        return wrapper

    monkeypatch.setattr("settlement.llm_utils.llm.call", fake_decorator)

    text = await call_llm_text(
        system_prompt="You are Martha.",
        user_prompt="Hello",
        llm_provider="openai",
        llm_model="gpt-4o-mini",
    )

    assert text == "Good day, traveler! [FOLLOW]"


def test_inject_validation_feedback_lists_issues():
    feedback = inject_validation_feedback(_validation_error())

    assert feedback.issues == ["content: Field required [type=missing] | received={}"]
    assert feedback.llm_text.startswith(
        "Your previous JSON response failed to validate against the required schema."
    )
