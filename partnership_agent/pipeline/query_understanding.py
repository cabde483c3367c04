"""
Stage 1: Query Understanding.

Records the user's turn, then extracts entities from the question.
Unusable extractor output degrades to a single generic entity; an
unavailable extractor asks the user to rephrase.
"""

from __future__ import annotations

from typing import Any

from partnership_agent.pipeline.base import NULL_CHANNEL, Stage, append_history
from partnership_agent.pipeline.errors import CollaboratorUnavailable, MalformedCollaboratorOutput
from partnership_agent.schemas.answer import ExtractedEntity
from partnership_agent.schemas.history import ChatTurn
from partnership_agent.schemas.pipeline import (
    PipelineState,
    RequestState,
    StageName,
    StageOutcome,
    StageResult,
)
from partnership_agent.services.protocols import ChatHistoryStore, EntityExtractor
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.pipeline.query_understanding")

FALLBACK_ENTITY = ExtractedEntity(text="general inquiry", type="general", confidence=0.6)

ENTITY_FAILURE_MESSAGE = (
    "I encountered an error while analyzing your request. "
    "Please try rephrasing your question."
)


def _usable_entities(value: Any) -> list[ExtractedEntity] | None:
    if not isinstance(value, list):
        return None
    if not all(isinstance(e, ExtractedEntity) for e in value):
        return None
    return value


class QueryUnderstandingStage(Stage):
    name = StageName.QUERY_UNDERSTANDING
    outcomes = frozenset({StageOutcome.CONTINUE, StageOutcome.NEEDS_CLARIFICATION})

    def __init__(
        self,
        extractor: EntityExtractor,
        history: ChatHistoryStore | None = None,
        timeout: float | None = None,
    ):
        super().__init__(timeout)
        self.extractor = extractor
        self.history = history

    async def execute(self, state: RequestState, channel: Any = NULL_CHANNEL) -> StageResult:
        await channel.status("Analyzing your question...")
        await append_history(
            self.history, state, ChatTurn(role="user", content=state.input_text), self.name,
        )

        try:
            raw = await self.call("entity_extraction", self.extractor.extract_entities(state.input_text))
        except MalformedCollaboratorOutput as e:
            logger.warning(
                "[STAGE:%s] Malformed entities, using fallback | session=%s | %s",
                self.name.value, state.session_id, e,
            )
            raw = []
        except CollaboratorUnavailable as e:
            logger.warning(
                "[STAGE:%s] Entity extraction failed | session=%s | %s",
                self.name.value, state.session_id, e,
            )
            return self.clarification(state, ENTITY_FAILURE_MESSAGE)

        entities = _usable_entities(raw)
        if entities is None:
            logger.warning(
                "[STAGE:%s] Extractor returned %s, using fallback | session=%s",
                self.name.value, type(raw).__name__, state.session_id,
            )
            entities = []
        if not entities:
            entities = [FALLBACK_ENTITY]

        logger.info(
            "[STAGE:%s] entities=%d | session=%s",
            self.name.value, len(entities), state.session_id,
        )
        await channel.status(
            f"Extracted {len(entities)} entities from your query",
            entities=[e.text for e in entities],
        )
        return self.proceed(
            state,
            PipelineState.QUERY_UNDERSTOOD,
            extracted_entities=tuple(entities),
        )
