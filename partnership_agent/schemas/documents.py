"""
Schemas for retrieved evidence and the citations grounded in it.

Both records are frozen: a Document is never modified after retrieval and
a Citation is never modified after the citation engine creates it.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class Document(BaseModel):
    """One agreement-like document returned by the search collaborator."""
    id: str
    title: str
    content: str
    category: str = ""
    tenant_id: str = ""
    score: float = 0.0
    source_path: str | None = None
    last_modified: datetime | None = None

    class Config:
        frozen = True


class Citation(BaseModel):
    """
    A quoted excerpt with exact character offsets into its source document.

    ``excerpt`` always equals ``document.content[start_position:end_position]``.
    """
    document_id: str
    document_title: str
    category: str = ""
    excerpt: str
    start_position: int = Field(ge=0)
    end_position: int
    relevance_score: float = Field(ge=0.0, le=1.0)
    context_before: str = ""
    context_after: str = ""

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _check_span(self) -> "Citation":
        if self.end_position <= self.start_position:
            raise ValueError("end_position must be greater than start_position")
        if len(self.excerpt) != self.end_position - self.start_position:
            raise ValueError("excerpt length does not match its span")
        return self


class DocumentSummary(BaseModel):
    """Lightweight view of a document for outward responses."""
    id: str
    title: str
    category: str = ""
    score: float = 0.0

    @classmethod
    def from_document(cls, document: Document) -> "DocumentSummary":
        return cls(
            id=document.id,
            title=document.title,
            category=document.category,
            score=document.score,
        )
