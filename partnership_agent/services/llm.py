"""
OpenAI client singleton, JSON completions and token counting.

Shared by the entity extractor and the answer generator so one
AsyncOpenAI client (and its connection pool) serves every request.
"""

from __future__ import annotations

import json
import threading
from typing import Any

import tiktoken
from openai import AsyncOpenAI

from partnership_agent.core.config import settings
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.services.llm")


# ── Singleton OpenAI client ─────────────────────────────────────────
_client_lock = threading.Lock()
_client_instance: AsyncOpenAI | None = None


def get_openai_client() -> AsyncOpenAI:
    """
    Return a module-level AsyncOpenAI client singleton.

    Raises RuntimeError when the API key is missing.
    """
    global _client_instance
    if _client_instance is not None:
        return _client_instance

    with _client_lock:
        if _client_instance is not None:
            return _client_instance
        if not settings.openai_api_key:
            raise RuntimeError("OpenAI API key not configured (OPENAI_API_KEY).")

        _client_instance = AsyncOpenAI(api_key=settings.openai_api_key)
        logger.info("OpenAI client singleton initialized.")
        return _client_instance


# ── Token counting ──────────────────────────────────────────────────
_encoder_lock = threading.Lock()
_encoder: Any | None = None


def _get_encoder() -> Any:
    global _encoder
    if _encoder is not None:
        return _encoder
    with _encoder_lock:
        if _encoder is None:
            _encoder = tiktoken.get_encoding("cl100k_base")
        return _encoder


def count_tokens(text: str) -> int:
    return len(_get_encoder().encode(text))


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    """Cut ``text`` down to at most ``max_tokens`` tokens."""
    enc = _get_encoder()
    tokens = enc.encode(text)
    if len(tokens) <= max_tokens:
        return text
    return enc.decode(tokens[:max_tokens])


# ── Completions ─────────────────────────────────────────────────────
async def complete_json(
    system_prompt: str,
    user_prompt: str,
    *,
    model: str | None = None,
    max_tokens: int = 800,
    temperature: float = 0.0,
    history: list[dict[str, str]] | None = None,
) -> str:
    """
    Run one chat completion in JSON mode and return the raw message text.

    Decoding is left to the caller so a malformed reply can fall back
    to a named default instead of raising here.
    """
    client = get_openai_client()
    messages: list[dict[str, str]] = [{"role": "system", "content": system_prompt}]
    for turn in history or []:
        messages.append({"role": turn["role"], "content": turn["content"]})
    messages.append({"role": "user", "content": user_prompt})

    response = await client.chat.completions.create(
        model=model or settings.openai_chat_model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        response_format={"type": "json_object"},
    )
    content = response.choices[0].message.content or ""

    usage = getattr(response, "usage", None)
    if usage is not None:
        logger.info(
            "[LLM] %s | prompt_tokens=%s completion_tokens=%s",
            model or settings.openai_chat_model,
            usage.prompt_tokens,
            usage.completion_tokens,
        )
    return content


def parse_json_object(raw: str) -> dict[str, Any]:
    """
    Parse a JSON object out of an LLM reply.

    Tolerates markdown code fences around the payload.  Raises ValueError
    when no JSON object can be read.
    """
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data
