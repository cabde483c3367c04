"""
Schemas for Query Understanding and Answer Generation output.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from partnership_agent.schemas.documents import Citation


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def confidence_for_evidence(document_count: int) -> ConfidenceLevel:
    """Coarse confidence label from the amount of supporting evidence."""
    if document_count >= 2:
        return ConfidenceLevel.HIGH
    if document_count == 1:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


class ExtractedEntity(BaseModel):
    """A named thing found in the user's question (company, term, amount...)."""
    text: str
    type: str = "general"
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    class Config:
        frozen = True


class GeneratedAnswer(BaseModel):
    """
    Structured answer produced by the answer generator, with the citations
    attached by the Answer Generation stage.
    """
    text: str
    confidence_level: ConfidenceLevel = ConfidenceLevel.LOW
    source_titles: list[str] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)
    is_complete: bool = False
    follow_ups: list[str] = Field(default_factory=list)

    class Config:
        frozen = True
