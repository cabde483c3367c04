"""
Stage 3: Answer Generation.

Generates the answer from the retrieved documents, stamps it with the
evidence-count confidence level, grounds it with citations and records
the assistant turn.  A low-confidence incomplete answer is turned into a
clarification request that still shows the partial answer.
"""

from __future__ import annotations

from typing import Any

from partnership_agent.core.config import settings
from partnership_agent.pipeline.base import NULL_CHANNEL, Stage, append_history, load_history
from partnership_agent.pipeline.citations import extract_citations
from partnership_agent.pipeline.errors import (
    CollaboratorUnavailable,
    LowConfidenceAnswer,
    MalformedCollaboratorOutput,
)
from partnership_agent.schemas.answer import (
    ConfidenceLevel,
    GeneratedAnswer,
    confidence_for_evidence,
)
from partnership_agent.schemas.history import ChatTurn
from partnership_agent.schemas.pipeline import (
    PipelineState,
    RequestState,
    StageName,
    StageOutcome,
    StageResult,
)
from partnership_agent.services.answer_generation import fallback_answer_from_text
from partnership_agent.services.protocols import AnswerGenerator, ChatHistoryStore
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.pipeline.answer_generation")

GENERATION_FAILURE_MESSAGE = (
    "I encountered an error while generating your response. Please try again."
)
SPECIFICITY_PROMPT = (
    " Could you provide more specific details about what aspect of "
    "partnership agreements you're interested in?"
)


def _prior_turns(history: list[ChatTurn], state: RequestState) -> list[ChatTurn]:
    # The current question is already part of the prompt
    if history and history[-1].role == "user" and history[-1].content == state.input_text:
        return history[:-1]
    return history


class AnswerGenerationStage(Stage):
    name = StageName.ANSWER_GENERATION
    outcomes = frozenset({StageOutcome.CONTINUE, StageOutcome.NEEDS_CLARIFICATION})

    def __init__(
        self,
        generator: AnswerGenerator,
        history: ChatHistoryStore | None = None,
        evaluation: Any | None = None,
        timeout: float | None = None,
    ):
        super().__init__(timeout)
        self.generator = generator
        self.history = history
        self.evaluation = evaluation

    async def _generate(self, state: RequestState) -> GeneratedAnswer:
        history = _prior_turns(await load_history(self.history, state, self.name), state)
        raw = await self.call(
            "answer_generation",
            self.generator.generate(state.input_text, list(state.evidence_documents), history),
        )
        if isinstance(raw, GeneratedAnswer):
            return raw
        if isinstance(raw, str):
            return fallback_answer_from_text(raw)
        raise MalformedCollaboratorOutput(f"generator returned {type(raw).__name__}")

    def _ground(self, state: RequestState, answer: GeneratedAnswer) -> GeneratedAnswer:
        citations = extract_citations(
            state.input_text,
            answer.text,
            state.evidence_documents,
            query_weight=settings.citation_query_weight,
            answer_weight=settings.citation_answer_weight,
            min_score=settings.citation_min_score,
            excerpt_length=settings.citation_excerpt_length,
            context_length=settings.citation_context_length,
            max_per_document=settings.citation_max_per_document,
        )
        return answer.model_copy(
            update={
                "confidence_level": confidence_for_evidence(len(state.evidence_documents)),
                "citations": citations,
            }
        )

    async def execute(self, state: RequestState, channel: Any = NULL_CHANNEL) -> StageResult:
        await channel.status("Generating comprehensive answer...")

        try:
            answer = self._ground(state, await self._generate(state))
        except (CollaboratorUnavailable, MalformedCollaboratorOutput) as e:
            logger.warning(
                "[STAGE:%s] Generation failed | session=%s | %s",
                self.name.value, state.session_id, e,
            )
            return self.clarification(state, GENERATION_FAILURE_MESSAGE)

        await append_history(
            self.history,
            state,
            ChatTurn(
                role="assistant",
                content=answer.text,
                metadata={"confidence_level": answer.confidence_level.value},
            ),
            self.name,
        )
        if self.evaluation is not None:
            self.evaluation.submit_answer(state, answer)

        logger.info(
            "[STAGE:%s] confidence=%s | complete=%s | citations=%d | session=%s",
            self.name.value, answer.confidence_level.value, answer.is_complete,
            len(answer.citations), state.session_id,
        )
        await channel.status(
            "Response generated successfully",
            confidence=answer.confidence_level.value,
            has_complete_answer=answer.is_complete,
            source_count=len(answer.source_titles),
        )

        state = state.evolve(generated_answer=answer)
        try:
            self._check_confidence(answer)
        except LowConfidenceAnswer:
            logger.info(
                "[STAGE:%s] Low confidence, asking for detail | session=%s",
                self.name.value, state.session_id,
            )
            return self.clarification(state, answer.text + SPECIFICITY_PROMPT)

        return self.proceed(state, PipelineState.ANSWER_GENERATED)

    @staticmethod
    def _check_confidence(answer: GeneratedAnswer) -> None:
        if answer.confidence_level == ConfidenceLevel.LOW and not answer.is_complete:
            raise LowConfidenceAnswer("low confidence and incomplete")
