"""
Schemas for the outward request/response contract.

ChatResponse has a guaranteed shape regardless of which path
(full answer, clarification short-circuit, fatal apology) produced it.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from partnership_agent.schemas.answer import ConfidenceLevel
from partnership_agent.schemas.documents import Citation, DocumentSummary
from partnership_agent.utils.timing import utc_now


class ChatRequest(BaseModel):
    thread_id: str = ""
    prompt: str = ""
    user_id: str | None = None
    tenant_id: str | None = None


class ResponseMetadata(BaseModel):
    """Diagnostic metadata attached to every response."""
    thread_id: str = ""
    processed_at: datetime = Field(default_factory=utc_now)
    documents_found: int = 0
    entities_extracted: int = 0
    steps_executed: int = 0
    final_state: str = ""
    needs_clarification: bool = False
    processing_time_seconds: float = 0.0


class ChatResponse(BaseModel):
    thread_id: str = ""
    response: str
    extracted_entities: list[str] = Field(default_factory=list)
    relevant_documents: list[DocumentSummary] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)
    confidence_level: ConfidenceLevel | None = None
    has_complete_answer: bool = False
    follow_up_suggestions: list[str] = Field(default_factory=list)
    source_documents: list[str] = Field(default_factory=list)
    metadata: ResponseMetadata | None = None
