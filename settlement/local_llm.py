"""NPC dialogue and decisions from a locally hosted Ollama server.

Endpoint and timeout come from ``Config.OLLAMA_BASE_URL`` and
``Config.OLLAMA_TIMEOUT`` unless the caller overrides them. Decision calls
set ``json_mode`` so Ollama constrains the answer to a JSON object; dialogue
calls leave it off so action tags like ``[FOLLOW]`` survive.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional
from urllib import error, request

from .config import Config

CHAT_PATH = "/api/chat"


class LocalLLMError(RuntimeError):
    """The local server was unreachable or answered with something unusable."""


def build_chat_payload(
    system_prompt: str,
    user_prompt: str,
    llm_model: str,
    *,
    json_mode: bool = False,
    temperature: Optional[float] = None,
) -> Dict[str, Any]:
    """Request body for one villager exchange; raises on an empty user turn."""

    user_prompt = user_prompt.strip()
    if not user_prompt:
        raise LocalLLMError("Refusing to send an empty user prompt.")

    messages: List[Dict[str, str]] = []
    if system_prompt.strip():
        messages.append({"role": "system", "content": system_prompt.strip()})
    messages.append({"role": "user", "content": user_prompt})

    payload: Dict[str, Any] = {"model": llm_model, "messages": messages, "stream": False}
    if json_mode:
        payload["format"] = "json"
    if temperature is not None:
        payload["options"] = {"temperature": temperature}
    return payload


def _reply_text(body: str) -> str:
    try:
        reply = json.loads(body)
    except json.JSONDecodeError as exc:
        raise LocalLLMError("Ollama answered with a non-JSON body.") from exc
    if reply.get("error"):
        raise LocalLLMError(f"Ollama refused the request: {reply['error']}")
    content = (reply.get("message") or {}).get("content")
    if not content or not content.strip():
        raise LocalLLMError("Ollama answer had no assistant content.")
    return content.strip()


def _post_chat(payload: Dict[str, Any], base_url: str, timeout: float) -> str:
    """Blocking POST to ``/api/chat``; returns the assistant message text."""

    url = base_url.rstrip("/") + CHAT_PATH
    req = request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with request.urlopen(req, timeout=timeout) as resp:
            body = resp.read().decode("utf-8")
    except error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="ignore") if exc.fp else ""
        raise LocalLLMError(f"Ollama returned HTTP {exc.code}: {detail or exc.reason}") from exc
    except error.URLError as exc:
        raise LocalLLMError(f"Ollama unreachable at {url}: {exc.reason}") from exc
    return _reply_text(body)


async def call_ollama_chat(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_model: str,
    json_mode: bool = False,
    temperature: Optional[float] = None,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> str:
    """Send one system+user exchange to Ollama without blocking the tick loop."""

    payload = build_chat_payload(
        system_prompt, user_prompt, llm_model, json_mode=json_mode, temperature=temperature
    )
    return await asyncio.to_thread(
        _post_chat,
        payload,
        base_url or Config.OLLAMA_BASE_URL,
        Config.OLLAMA_TIMEOUT if timeout is None else timeout,
    )


__all__ = ["LocalLLMError", "build_chat_payload", "call_ollama_chat"]
