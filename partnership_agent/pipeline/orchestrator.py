"""
Pipeline orchestrator: top-level entry point.

Runs Query Understanding → Evidence Retrieval → Answer Generation →
Finalization.  Routing is a lookup in TRANSITIONS keyed by
(stage, outcome); the table is checked when the orchestrator is built so
an unrouted outcome fails at startup instead of mid-request.

Every call returns a ChatResponse, including when a stage fails or the
step ceiling is hit.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from partnership_agent.core.config import settings
from partnership_agent.pipeline.answer_generation import AnswerGenerationStage
from partnership_agent.pipeline.base import FATAL_MESSAGE, NULL_CHANNEL, Stage
from partnership_agent.pipeline.errors import PipelineLoopExceeded
from partnership_agent.pipeline.evidence_retrieval import EvidenceRetrievalStage
from partnership_agent.pipeline.finalization import FinalizationStage
from partnership_agent.pipeline.query_understanding import QueryUnderstandingStage
from partnership_agent.schemas.pipeline import (
    PipelineState,
    RequestState,
    StageName,
    StageOutcome,
)
from partnership_agent.schemas.response import ChatRequest, ChatResponse, ResponseMetadata
from partnership_agent.services.streaming import EventType
from partnership_agent.utils.logging import get_logger
from partnership_agent.utils.timing import Timer

logger = get_logger("partnership_agent.pipeline.orchestrator")

Transitions = Mapping[tuple[StageName, StageOutcome], "StageName | None"]

ENTRY_STAGE = StageName.QUERY_UNDERSTANDING

TRANSITIONS: dict[tuple[StageName, StageOutcome], StageName | None] = {
    # ── Query Understanding ─────────────────────────────────────────
    (StageName.QUERY_UNDERSTANDING, StageOutcome.CONTINUE): StageName.EVIDENCE_RETRIEVAL,
    (StageName.QUERY_UNDERSTANDING, StageOutcome.NEEDS_CLARIFICATION): StageName.FINALIZATION,
    (StageName.QUERY_UNDERSTANDING, StageOutcome.FATAL): StageName.FINALIZATION,
    # ── Evidence Retrieval ──────────────────────────────────────────
    (StageName.EVIDENCE_RETRIEVAL, StageOutcome.CONTINUE): StageName.ANSWER_GENERATION,
    (StageName.EVIDENCE_RETRIEVAL, StageOutcome.NEEDS_CLARIFICATION): StageName.FINALIZATION,
    (StageName.EVIDENCE_RETRIEVAL, StageOutcome.FATAL): StageName.FINALIZATION,
    # ── Answer Generation ───────────────────────────────────────────
    (StageName.ANSWER_GENERATION, StageOutcome.CONTINUE): StageName.FINALIZATION,
    (StageName.ANSWER_GENERATION, StageOutcome.NEEDS_CLARIFICATION): StageName.FINALIZATION,
    (StageName.ANSWER_GENERATION, StageOutcome.FATAL): StageName.FINALIZATION,
    # ── Finalization (terminal) ─────────────────────────────────────
    (StageName.FINALIZATION, StageOutcome.COMPLETED): None,
    (StageName.FINALIZATION, StageOutcome.FATAL): None,
}


def validate_transitions(
    stages: Mapping[StageName, Stage],
    transitions: Transitions,
    entry: StageName = ENTRY_STAGE,
) -> None:
    """Raise ValueError unless every declared outcome routes to a known stage."""
    if entry not in stages:
        raise ValueError(f"Entry stage {entry.value} is not registered")
    for name, stage in stages.items():
        for outcome in sorted(stage.declared_outcomes(), key=lambda o: o.value):
            key = (name, outcome)
            if key not in transitions:
                raise ValueError(f"No transition for {name.value} -> {outcome.value}")
            target = transitions[key]
            if target is not None and target not in stages:
                raise ValueError(
                    f"Transition {name.value} -> {outcome.value} targets "
                    f"unregistered stage {target.value}"
                )


def apology_response(state: RequestState, steps: int, message: str = FATAL_MESSAGE) -> ChatResponse:
    return ChatResponse(
        thread_id=state.session_id,
        response=message,
        extracted_entities=[e.text for e in state.extracted_entities],
        metadata=ResponseMetadata(
            thread_id=state.session_id,
            documents_found=len(state.evidence_documents),
            entities_extracted=len(state.extracted_entities),
            steps_executed=steps,
            final_state=PipelineState.FATAL.value,
            needs_clarification=True,
            processing_time_seconds=round(state.elapsed_seconds, 3),
        ),
    )


class PipelineOrchestrator:
    def __init__(
        self,
        stages: Iterable[Stage],
        transitions: Transitions | None = None,
        max_steps: int | None = None,
    ):
        self.stages: dict[StageName, Stage] = {}
        for stage in stages:
            if stage.name in self.stages:
                raise ValueError(f"Duplicate stage {stage.name.value}")
            self.stages[stage.name] = stage
        self.transitions = dict(TRANSITIONS if transitions is None else transitions)
        self.max_steps = settings.pipeline_max_steps if max_steps is None else max_steps
        validate_transitions(self.stages, self.transitions)

    def new_state(self, request: ChatRequest) -> RequestState:
        return RequestState(
            session_id=request.thread_id,
            input_text=request.prompt,
            tenant_id=request.tenant_id or settings.default_tenant_id,
            user_id=request.user_id or settings.default_user_id,
        )

    async def process_request(self, request: ChatRequest, channel: Any = None) -> ChatResponse:
        """
        Run one request through the pipeline and return its response.

        ``channel`` receives status/chat/completion/error events and is
        closed when the call returns.
        """
        channel = channel or NULL_CHANNEL
        state = self.new_state(request)
        logger.info(
            "[PIPELINE] Started | session=%s | tenant=%s | prompt: %s",
            state.session_id, state.tenant_id, state.input_text[:80],
        )
        try:
            return await self._run(state, channel)
        finally:
            await channel.close()

    async def _run(self, state: RequestState, channel: Any) -> ChatResponse:
        current: StageName | None = ENTRY_STAGE
        steps = 0
        try:
            while current is not None:
                if steps >= self.max_steps:
                    raise PipelineLoopExceeded(self.max_steps)
                stage = self.stages[current]
                async with Timer(f"stage_{current.value}") as t:
                    result = await stage.run(state, channel)
                steps += 1
                state = result.state
                logger.info(
                    "[PIPELINE] %s -> %s (%.2fs) | session=%s",
                    current.value, result.outcome.value, t.elapsed_s, state.session_id,
                )
                if result.outcome == StageOutcome.FATAL:
                    await channel.write(
                        EventType.ERROR,
                        {"message": state.clarification_text or FATAL_MESSAGE, "thread_id": state.session_id},
                    )
                current = self.transitions[(current, result.outcome)]
        except PipelineLoopExceeded as e:
            logger.error("[PIPELINE] %s | session=%s", e, state.session_id)
            await channel.write(EventType.ERROR, {"message": FATAL_MESSAGE, "thread_id": state.session_id})
            return apology_response(state, steps)

        if state.response is None:
            logger.error("[PIPELINE] Finished without a response | session=%s", state.session_id)
            return apology_response(state, steps)

        response = state.response
        if response.metadata is not None:
            response = response.model_copy(
                update={"metadata": response.metadata.model_copy(update={"steps_executed": steps})}
            )
        logger.info(
            "[PIPELINE] Done (%.2fs) | session=%s | steps=%d | clarification=%s",
            state.elapsed_seconds, state.session_id, steps, state.needs_clarification,
        )
        return response


def build_orchestrator(
    *,
    extractor: Any | None = None,
    search: Any | None = None,
    generator: Any | None = None,
    history: Any | None = None,
    evaluation: Any | None = None,
) -> PipelineOrchestrator:
    """Wire the four stages to their collaborators; defaults come from settings."""
    from partnership_agent.services.answer_generation import LLMAnswerGenerator
    from partnership_agent.services.chat_history import build_chat_history
    from partnership_agent.services.entity_extraction import LLMEntityExtractor
    from partnership_agent.services.search import ChromaDocumentSearch

    history = history if history is not None else build_chat_history()
    return PipelineOrchestrator(
        [
            QueryUnderstandingStage(extractor or LLMEntityExtractor(), history=history),
            EvidenceRetrievalStage(search or ChromaDocumentSearch()),
            AnswerGenerationStage(generator or LLMAnswerGenerator(), history=history, evaluation=evaluation),
            FinalizationStage(),
        ]
    )
