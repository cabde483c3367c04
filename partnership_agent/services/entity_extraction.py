"""
LLM-backed entity extraction for the Query Understanding stage.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from partnership_agent.core.config import settings
from partnership_agent.pipeline.errors import MalformedCollaboratorOutput
from partnership_agent.prompts.entity_extraction import build_entity_prompt
from partnership_agent.schemas.answer import ExtractedEntity
from partnership_agent.services.decoding import DecodeResult
from partnership_agent.services.llm import complete_json, parse_json_object
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.services.entity_extraction")


def decode_entities(raw: str) -> DecodeResult[list[ExtractedEntity]]:
    """
    Decode ``{"entities": [...]}`` (or a bare JSON array) into entities.

    An empty list is a successful decode; the caller decides what an
    empty result means.
    """
    items: Any
    stripped = raw.strip()
    if stripped.startswith("["):
        try:
            items = json.loads(stripped)
        except json.JSONDecodeError as e:
            return DecodeResult.failure(f"invalid JSON: {e}")
    else:
        try:
            items = parse_json_object(stripped).get("entities")
        except ValueError as e:
            return DecodeResult.failure(str(e))

    if not isinstance(items, list):
        return DecodeResult.failure("'entities' is not a list")

    entities: list[ExtractedEntity] = []
    for item in items:
        if not isinstance(item, dict):
            return DecodeResult.failure(f"entity is not an object: {item!r}")
        try:
            confidence = float(item.get("confidence", 0.5))
        except (TypeError, ValueError):
            return DecodeResult.failure(f"bad confidence: {item.get('confidence')!r}")
        text = str(item.get("text") or "").strip()
        if not text:
            continue
        try:
            entities.append(
                ExtractedEntity(
                    text=text,
                    type=str(item.get("type") or "general"),
                    confidence=min(1.0, max(0.0, confidence)),
                )
            )
        except ValidationError as e:
            return DecodeResult.failure(str(e))
    return DecodeResult.success(entities)


class LLMEntityExtractor:
    """EntityExtractor backed by an OpenAI chat model in JSON mode."""

    def __init__(self, model: str | None = None):
        self.model = model or settings.openai_entity_model

    async def extract_entities(self, text: str) -> list[ExtractedEntity]:
        system_prompt, user_prompt = build_entity_prompt(text)
        raw = await complete_json(
            system_prompt,
            user_prompt,
            model=self.model,
            max_tokens=400,
            temperature=0.0,
        )
        result = decode_entities(raw)
        if not result.ok:
            logger.warning("[ENTITIES] Could not decode extractor output: %s", result.error)
            raise MalformedCollaboratorOutput(result.error or "undecodable entities")
        logger.info("[ENTITIES] Extracted %d entities", len(result.value or []))
        return result.value or []
