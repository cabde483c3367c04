"""
RequestState carries one request through the four pipeline stages.

The record is immutable: every stage returns a new RequestState built
with ``evolve()`` instead of mutating the one it was given, so each stage
can be exercised in isolation with a hand-built state.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from partnership_agent.schemas.answer import ExtractedEntity, GeneratedAnswer
from partnership_agent.schemas.documents import Document
from partnership_agent.schemas.response import ChatResponse


class StageName(str, Enum):
    QUERY_UNDERSTANDING = "query_understanding"
    EVIDENCE_RETRIEVAL = "evidence_retrieval"
    ANSWER_GENERATION = "answer_generation"
    FINALIZATION = "finalization"


class StageOutcome(str, Enum):
    CONTINUE = "continue"
    NEEDS_CLARIFICATION = "needs_clarification"
    FATAL = "fatal"
    COMPLETED = "completed"


class PipelineState(str, Enum):
    START = "start"
    QUERY_UNDERSTOOD = "query_understood"
    EVIDENCE_FOUND = "evidence_found"
    ANSWER_GENERATED = "answer_generated"
    NEEDS_CLARIFICATION = "needs_clarification"
    FATAL = "fatal"
    FINALIZED = "finalized"


class RequestState(BaseModel):
    """
    Request-scoped state, created once per incoming request and discarded
    after the response is produced.
    """

    # ── Inputs ───────────────────────────────────────────────────────
    session_id: str
    input_text: str
    tenant_id: str
    user_id: str

    # ── Stage outputs (populated progressively) ─────────────────────
    extracted_entities: tuple[ExtractedEntity, ...] = ()
    evidence_documents: tuple[Document, ...] = ()
    generated_answer: GeneratedAnswer | None = None
    needs_clarification: bool = False
    clarification_text: str | None = None
    response: ChatResponse | None = None

    # ── Routing bookkeeping ─────────────────────────────────────────
    pipeline_state: PipelineState = PipelineState.START
    completed_stages: tuple[StageName, ...] = ()
    start_time: float = Field(default_factory=time.time)

    class Config:
        frozen = True

    @property
    def elapsed_seconds(self) -> float:
        return time.time() - self.start_time

    def evolve(self, **changes: Any) -> "RequestState":
        """
        Return a copy with ``changes`` applied.

        ``needs_clarification`` is sticky: once set it stays set, and the
        first clarification message is kept.
        """
        if self.needs_clarification:
            changes["needs_clarification"] = True
            if self.clarification_text:
                changes["clarification_text"] = self.clarification_text
        return self.model_copy(update=changes)

    def clarify(self, message: str) -> "RequestState":
        return self.evolve(needs_clarification=True, clarification_text=message)


class StageResult(BaseModel):
    """Exactly one outcome plus the state the stage produced."""
    outcome: StageOutcome
    state: RequestState
