"""
LLM inference service for StudyDeck.

Talks to an OpenAI-compatible chat completions endpoint (Groq by default,
configured through settings.llm_*).

Usage:
    result_dict = await chat_json(system_prompt, user_prompt)
    text = await chat_text(system_prompt, user_prompt)
    answer = await chat_text(system_prompt, question, history=[{"role": "user", ...}])
"""
from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from studydeck.config import settings

logger = logging.getLogger(__name__)


class LLMUnavailableError(Exception):
    """Raised when no API key is configured or the endpoint cannot be reached."""


class LLMResponseError(Exception):
    """Raised when the endpoint answers but the body is not a chat completion."""


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.llm_base_url,
        headers={"Authorization": f"Bearer {settings.llm_api_key}"},
        timeout=settings.llm_timeout,
    )


def _completion_text(body: Any) -> str:
    if not isinstance(body, dict):
        raise LLMResponseError("LLM endpoint returned an unexpected payload")
    choices = body.get("choices") or []
    if not choices:
        return ""
    if not isinstance(choices, list) or not isinstance(choices[0], dict):
        raise LLMResponseError("LLM endpoint returned malformed choices")
    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if content is not None and not isinstance(content, str):
        raise LLMResponseError("LLM endpoint returned non-text content")
    return content or ""


async def _chat(
    system_prompt: str,
    user_prompt: str,
    max_tokens: int,
    temperature: float,
    json_mode: bool,
    history: list[dict[str, str]] | None = None,
) -> str:
    if not settings.llm_api_key:
        raise LLMUnavailableError("No LLM configured: STUDYDECK_LLM_API_KEY is not set.")

    payload: dict[str, Any] = {
        "model": settings.llm_model,
        "messages": [
            {"role": "system", "content": system_prompt},
            *(history or []),
            {"role": "user", "content": user_prompt},
        ],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if json_mode:
        payload["response_format"] = {"type": "json_object"}

    try:
        async with _client() as client:
            res = await client.post("/chat/completions", json=payload)
            res.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("LLM request to %s failed: %s", settings.llm_base_url, e)
        raise LLMUnavailableError(f"LLM request failed: {e}") from e

    try:
        body = res.json()
    except ValueError as e:
        logger.warning("LLM endpoint %s returned a non-JSON body: %s", settings.llm_base_url, e)
        raise LLMResponseError("LLM endpoint returned a non-JSON body") from e
    return _completion_text(body)


async def chat_json(
    system_prompt: str,
    user_prompt: str,
    max_tokens: int = 2000,
    temperature: float = 0.7,
) -> dict:
    """
    Send a chat request to the LLM expecting a JSON object back.

    Raises LLMUnavailableError if the endpoint is not configured or unreachable.
    Raises LLMResponseError if the endpoint's reply is not a chat completion.
    Raises json.JSONDecodeError if the model returns invalid JSON (caller handles).
    """
    content = await _chat(system_prompt, user_prompt, max_tokens, temperature, json_mode=True)
    return json.loads(content or "{}")


async def chat_text(
    system_prompt: str,
    user_prompt: str,
    max_tokens: int = 1000,
    temperature: float = 0.5,
    history: list[dict[str, str]] | None = None,
) -> str:
    """Plain-text completion; history holds earlier {"role", "content"} turns."""
    content = await _chat(
        system_prompt, user_prompt, max_tokens, temperature, json_mode=False, history=history
    )
    return content.strip()
