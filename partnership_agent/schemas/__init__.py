"""
Pydantic schemas for every pipeline boundary.
Each module covers one stage output or cross-cutting concern.
"""

from partnership_agent.schemas.documents import (
    Citation,
    Document,
    DocumentSummary,
)
from partnership_agent.schemas.answer import (
    ConfidenceLevel,
    ExtractedEntity,
    GeneratedAnswer,
    confidence_for_evidence,
)
from partnership_agent.schemas.history import ChatTurn
from partnership_agent.schemas.response import (
    ChatRequest,
    ChatResponse,
    ResponseMetadata,
)
from partnership_agent.schemas.pipeline import (
    PipelineState,
    RequestState,
    StageName,
    StageOutcome,
    StageResult,
)

__all__ = [
    # Documents
    "Citation",
    "Document",
    "DocumentSummary",
    # Answer
    "ConfidenceLevel",
    "ExtractedEntity",
    "GeneratedAnswer",
    "confidence_for_evidence",
    # History
    "ChatTurn",
    # Response
    "ChatRequest",
    "ChatResponse",
    "ResponseMetadata",
    # Pipeline
    "PipelineState",
    "RequestState",
    "StageName",
    "StageOutcome",
    "StageResult",
]
