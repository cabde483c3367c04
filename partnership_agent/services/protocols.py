"""
Narrow interfaces for the pipeline's external collaborators.

The stages depend only on these protocols; the OpenAI, ChromaDB and
SQLAlchemy implementations live in the sibling modules and tests pass
small in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from partnership_agent.schemas.answer import ExtractedEntity, GeneratedAnswer
from partnership_agent.schemas.documents import Document
from partnership_agent.schemas.history import ChatTurn


class EntityExtractor(Protocol):
    async def extract_entities(self, text: str) -> list[ExtractedEntity]:
        ...


class DocumentSearch(Protocol):
    async def search(
        self,
        query: str,
        tenant_id: str,
        allowed_categories: Sequence[str],
    ) -> list[Document]:
        ...


class AnswerGenerator(Protocol):
    async def generate(
        self,
        query: str,
        documents: Sequence[Document],
        history: Sequence[ChatTurn],
    ) -> GeneratedAnswer:
        ...


class ChatHistoryStore(Protocol):
    async def append(self, session_id: str, message: ChatTurn) -> None:
        ...

    async def get_history(self, session_id: str) -> list[ChatTurn]:
        ...
