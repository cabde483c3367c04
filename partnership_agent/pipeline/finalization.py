"""
Stage 4: Finalization.

Always reached, always terminal.  Builds the outward ChatResponse from
whatever the earlier stages produced and streams it to the client.
"""

from __future__ import annotations

from typing import Any

from partnership_agent.pipeline.base import NULL_CHANNEL, Stage
from partnership_agent.schemas.documents import DocumentSummary
from partnership_agent.schemas.pipeline import (
    PipelineState,
    RequestState,
    StageName,
    StageOutcome,
    StageResult,
)
from partnership_agent.schemas.response import ChatResponse, ResponseMetadata
from partnership_agent.services.streaming import EventType
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.pipeline.finalization")

FALLBACK_MESSAGE = (
    "I was unable to process your request completely. Please try again with "
    "a more specific question about partnership agreements."
)


def build_metadata(state: RequestState, final_state: PipelineState) -> ResponseMetadata:
    return ResponseMetadata(
        thread_id=state.session_id,
        documents_found=len(state.evidence_documents),
        entities_extracted=len(state.extracted_entities),
        steps_executed=len(state.completed_stages),
        final_state=final_state.value,
        needs_clarification=state.needs_clarification,
        processing_time_seconds=round(state.elapsed_seconds, 3),
    )


def build_response(state: RequestState) -> ChatResponse:
    entities = [e.text for e in state.extracted_entities]
    documents = [DocumentSummary.from_document(d) for d in state.evidence_documents]

    if state.needs_clarification:
        return ChatResponse(
            thread_id=state.session_id,
            response=state.clarification_text or FALLBACK_MESSAGE,
            extracted_entities=entities,
            relevant_documents=documents,
            has_complete_answer=False,
        )

    answer = state.generated_answer
    if answer is not None:
        return ChatResponse(
            thread_id=state.session_id,
            response=answer.text,
            extracted_entities=entities,
            relevant_documents=documents,
            citations=list(answer.citations),
            confidence_level=answer.confidence_level,
            has_complete_answer=answer.is_complete,
            follow_up_suggestions=list(answer.follow_ups),
            source_documents=list(answer.source_titles),
        )

    logger.warning("[STAGE:finalization] No answer or clarification, using fallback | session=%s", state.session_id)
    return ChatResponse(
        thread_id=state.session_id,
        response=FALLBACK_MESSAGE,
        extracted_entities=entities,
        relevant_documents=documents,
    )


class FinalizationStage(Stage):
    name = StageName.FINALIZATION
    outcomes = frozenset({StageOutcome.COMPLETED})

    async def execute(self, state: RequestState, channel: Any = NULL_CHANNEL) -> StageResult:
        response = build_response(state)
        final_state = state.evolve(
            completed_stages=state.completed_stages + (self.name,),
        )
        response = response.model_copy(
            update={"metadata": build_metadata(final_state, PipelineState.FINALIZED)}
        )
        final_state = final_state.evolve(pipeline_state=PipelineState.FINALIZED, response=response)

        await channel.write(
            EventType.CHAT,
            {
                "content": response.response,
                "confidence": response.confidence_level.value if response.confidence_level else None,
                "has_complete_answer": response.has_complete_answer,
                "sources": response.source_documents,
                "follow_up_suggestions": response.follow_up_suggestions,
                "citations": [c.model_dump() for c in response.citations],
            },
        )
        await channel.write(
            EventType.COMPLETION,
            {
                "thread_id": state.session_id,
                "success": not state.needs_clarification,
                "total_steps_completed": len(final_state.completed_stages),
            },
        )
        logger.info(
            "[STAGE:%s] clarification=%s | citations=%d | session=%s",
            self.name.value, state.needs_clarification, len(response.citations), state.session_id,
        )
        return StageResult(outcome=StageOutcome.COMPLETED, state=final_state)
