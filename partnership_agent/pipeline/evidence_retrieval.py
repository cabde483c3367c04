"""
Stage 2: Evidence Retrieval.

One search call, restricted to the tenant and the allowed categories.
"""

from __future__ import annotations

from typing import Any, Sequence

from partnership_agent.core.config import settings
from partnership_agent.pipeline.base import NULL_CHANNEL, Stage
from partnership_agent.pipeline.errors import CollaboratorUnavailable, NoEvidenceFound
from partnership_agent.schemas.documents import Document
from partnership_agent.schemas.pipeline import (
    PipelineState,
    RequestState,
    StageName,
    StageOutcome,
    StageResult,
)
from partnership_agent.services.protocols import DocumentSearch
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.pipeline.evidence_retrieval")

NO_DOCUMENTS_MESSAGE = (
    "I couldn't find any relevant documents for your question. Could you please "
    "rephrase your question or provide more specific details about partnership agreements?"
)
SEARCH_FAILURE_MESSAGE = (
    "I encountered an error while searching for relevant documents. Please try again."
)


class EvidenceRetrievalStage(Stage):
    name = StageName.EVIDENCE_RETRIEVAL
    outcomes = frozenset({StageOutcome.CONTINUE, StageOutcome.NEEDS_CLARIFICATION})

    def __init__(
        self,
        search: DocumentSearch,
        allowed_categories: Sequence[str] | None = None,
        timeout: float | None = None,
    ):
        super().__init__(timeout)
        self.search = search
        self.allowed_categories = list(
            settings.allowed_categories if allowed_categories is None else allowed_categories
        )

    async def _search(self, state: RequestState) -> list[Document]:
        documents = await self.call(
            "document_search",
            self.search.search(state.input_text, state.tenant_id, self.allowed_categories),
        )
        if not documents:
            raise NoEvidenceFound(f"no documents for tenant {state.tenant_id}")
        return list(documents)

    async def execute(self, state: RequestState, channel: Any = NULL_CHANNEL) -> StageResult:
        await channel.status("Searching for relevant documents...")

        try:
            documents = await self._search(state)
        except NoEvidenceFound as e:
            logger.info(
                "[STAGE:%s] %s | session=%s",
                self.name.value, e, state.session_id,
            )
            return self.clarification(state, NO_DOCUMENTS_MESSAGE)
        except CollaboratorUnavailable as e:
            logger.warning(
                "[STAGE:%s] Search failed | session=%s | %s",
                self.name.value, state.session_id, e,
            )
            return self.clarification(state, SEARCH_FAILURE_MESSAGE)

        logger.info(
            "[STAGE:%s] documents=%d | session=%s",
            self.name.value, len(documents), state.session_id,
        )
        await channel.status(
            f"Found {len(documents)} relevant documents",
            documents=[d.title for d in documents],
        )
        return self.proceed(
            state,
            PipelineState.EVIDENCE_FOUND,
            evidence_documents=tuple(documents),
        )
