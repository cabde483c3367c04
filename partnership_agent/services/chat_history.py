"""
Conversation history stores.

InMemoryChatHistory is process-local and keeps only the most recent
``memory_history_max_turns`` turns of each thread, so it suits development
and single-instance runs.  SqlChatHistory persists every turn in the
``chat_messages`` table, ordered by insertion time.
"""

from __future__ import annotations

import asyncio
import json
from collections import defaultdict, deque

from partnership_agent.core.config import settings
from partnership_agent.schemas.history import ChatTurn
from partnership_agent.sqlite.database import SessionLocal, get_db_context
from partnership_agent.sqlite.models import ChatMessage
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.services.chat_history")


class InMemoryChatHistory:
    def __init__(self, max_turns: int | None = None):
        self.max_turns = max_turns or settings.memory_history_max_turns
        self._threads: dict[str, deque[ChatTurn]] = defaultdict(lambda: deque(maxlen=self.max_turns))
        self._lock = asyncio.Lock()

    async def append(self, session_id: str, message: ChatTurn) -> None:
        async with self._lock:
            self._threads[session_id].append(message)

    async def get_history(self, session_id: str) -> list[ChatTurn]:
        async with self._lock:
            return list(self._threads.get(session_id, []))


class SqlChatHistory:
    """ChatHistoryStore over SQLAlchemy; each call uses its own session."""

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    def _append_sync(self, session_id: str, message: ChatTurn) -> None:
        with get_db_context(self.session_factory) as db:
            db.add(
                ChatMessage(
                    thread_id=session_id,
                    role=message.role,
                    content=message.content,
                    model_id=message.model_id,
                    metadata_json=json.dumps(message.metadata, default=str) if message.metadata else None,
                    date_inserted=message.created_at,
                )
            )

    def _history_sync(self, session_id: str) -> list[ChatTurn]:
        with get_db_context(self.session_factory) as db:
            rows = (
                db.query(ChatMessage)
                .filter(ChatMessage.thread_id == session_id)
                .order_by(ChatMessage.date_inserted, ChatMessage.id)
                .all()
            )
            return [
                ChatTurn(
                    role=row.role,
                    content=row.content,
                    model_id=row.model_id,
                    metadata=json.loads(row.metadata_json) if row.metadata_json else {},
                    created_at=row.date_inserted,
                )
                for row in rows
            ]

    async def append(self, session_id: str, message: ChatTurn) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._append_sync, session_id, message)

    async def get_history(self, session_id: str) -> list[ChatTurn]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._history_sync, session_id)


def build_chat_history(backend: str | None = None):
    backend = (backend or settings.chat_history_backend).lower()
    if backend == "sqlite":
        logger.info("[CHAT] Using SQL chat history")
        return SqlChatHistory()
    if backend != "memory":
        raise ValueError(f"Unknown chat history backend: {backend!r}")
    logger.info("[CHAT] Using in-memory chat history")
    return InMemoryChatHistory()
