"""
LLM-backed answer generation.

Builds a document context within the token budget, passes recent chat
history, asks for a JSON answer and decodes it.  When the reply is not
usable JSON the raw text is kept as an incomplete answer.
"""

from __future__ import annotations

from typing import Any, Sequence

from partnership_agent.core.config import settings
from partnership_agent.prompts.answer_generator import (
    SYSTEM_PROMPT,
    build_answer_prompt,
    build_context_block,
)
from partnership_agent.schemas.answer import ConfidenceLevel, GeneratedAnswer
from partnership_agent.schemas.documents import Document
from partnership_agent.schemas.history import ChatTurn
from partnership_agent.services.decoding import DecodeResult
from partnership_agent.services.llm import (
    complete_json,
    count_tokens,
    parse_json_object,
    truncate_to_tokens,
)
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.services.answer_generation")

NO_INFORMATION_ANSWER = (
    "I don't have enough information in the available documents to answer your question."
)


def fallback_answer_from_text(raw: str) -> GeneratedAnswer:
    """Named fallback: treat an undecodable reply as an incomplete answer."""
    text = raw.strip() or NO_INFORMATION_ANSWER
    return GeneratedAnswer(text=text, confidence_level=ConfidenceLevel.LOW, is_complete=False)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


def decode_generated_answer(raw: str) -> DecodeResult[GeneratedAnswer]:
    try:
        data = parse_json_object(raw)
    except ValueError as e:
        return DecodeResult.failure(str(e))

    answer = data.get("answer")
    if not isinstance(answer, str) or not answer.strip():
        return DecodeResult.failure("missing 'answer' text")

    level = str(data.get("confidence_level") or "low").lower()
    try:
        confidence = ConfidenceLevel(level)
    except ValueError:
        confidence = ConfidenceLevel.LOW

    return DecodeResult.success(
        GeneratedAnswer(
            text=answer.strip(),
            confidence_level=confidence,
            source_titles=_string_list(data.get("source_documents")),
            is_complete=bool(data.get("has_complete_answer", False)),
            follow_ups=_string_list(data.get("follow_up_suggestions"))[:3],
        )
    )


def build_budgeted_context(documents: Sequence[Document], token_budget: int) -> str:
    """
    Render as many documents as fit in ``token_budget`` tokens, in order.

    The document that crosses the budget is truncated; later ones are
    dropped.
    """
    blocks: list[str] = []
    used = 0
    for doc in documents:
        block = build_context_block([doc])
        tokens = count_tokens(block)
        if used + tokens <= token_budget:
            blocks.append(block)
            used += tokens
            continue
        remaining = token_budget - used
        if remaining > 50:
            blocks.append(truncate_to_tokens(block, remaining))
        logger.info(
            "[ANSWER] Context budget reached at %d/%d documents (%d tokens)",
            len(blocks), len(documents), token_budget,
        )
        break
    return "\n\n".join(blocks)


class LLMAnswerGenerator:
    """AnswerGenerator backed by an OpenAI chat model in JSON mode."""

    def __init__(
        self,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        context_token_budget: int | None = None,
        history_turns: int | None = None,
    ):
        self.model = model or settings.openai_chat_model
        self.max_tokens = max_tokens or settings.answer_max_tokens
        self.temperature = settings.answer_temperature if temperature is None else temperature
        self.context_token_budget = context_token_budget or settings.answer_context_token_budget
        self.history_turns = settings.chat_history_turns if history_turns is None else history_turns

    async def generate(
        self,
        query: str,
        documents: Sequence[Document],
        history: Sequence[ChatTurn],
    ) -> GeneratedAnswer:
        context = build_budgeted_context(documents, self.context_token_budget)
        user_prompt = build_answer_prompt(query, context)
        recent = [turn.as_message() for turn in history][-self.history_turns:] if self.history_turns else []

        raw = await complete_json(
            SYSTEM_PROMPT,
            user_prompt,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            history=recent,
        )

        result = decode_generated_answer(raw)
        if not result.ok or result.value is None:
            logger.warning("[ANSWER] Could not decode generator output (%s), using raw text", result.error)
            return fallback_answer_from_text(raw)
        logger.info(
            "[ANSWER] Generated answer | chars=%d | complete=%s",
            len(result.value.text), result.value.is_complete,
        )
        return result.value
