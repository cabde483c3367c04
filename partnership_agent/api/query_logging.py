"""
Background query logging for the chat endpoints.

Writes one QueryLog row per answered request.  Uses its own DB session
so it is safe to run after the response has been sent.
"""

from __future__ import annotations

from partnership_agent.core.config import settings
from partnership_agent.schemas.response import ChatRequest, ChatResponse
from partnership_agent.sqlite.database import SessionLocal
from partnership_agent.sqlite.models import QueryLog
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.api.query_logging")

MAX_ANSWER_LENGTH = 1_000_000  # 1MB for answer


def log_query(request: ChatRequest, response: ChatResponse, session_factory=None) -> None:
    """
    Write one row to query_logs.  Failures are logged and swallowed so a
    logging problem never affects the user's answer.
    """
    db = (session_factory or SessionLocal)()
    try:
        meta = response.metadata
        answer = response.response[:MAX_ANSWER_LENGTH]
        if len(response.response) > MAX_ANSWER_LENGTH:
            answer = answer + "...[truncated]"

        log = QueryLog(
            thread_id=request.thread_id,
            tenant_id=request.tenant_id or settings.default_tenant_id,
            user_id=request.user_id or settings.default_user_id,
            query=request.prompt,
            answer=answer,
            confidence_level=response.confidence_level.value if response.confidence_level else None,
            needs_clarification=meta.needs_clarification if meta else False,
            documents_found=meta.documents_found if meta else len(response.relevant_documents),
            citation_count=len(response.citations),
            processing_time_seconds=meta.processing_time_seconds if meta else None,
            final_state=meta.final_state if meta else None,
        )
        db.add(log)
        db.commit()
        logger.info(
            "[LOG] Query logged | id=%s | thread=%s | time=%.2fs",
            log.id,
            request.thread_id,
            (meta.processing_time_seconds if meta else 0) or 0,
        )
    except Exception as e:
        db.rollback()
        logger.warning("Query logging failed: %s", e, exc_info=True)
    finally:
        db.close()
