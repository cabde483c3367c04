"""
Admin endpoints: re-seed the document index, inspect evaluation.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException, status

from partnership_agent.api.dependencies import get_document_search, get_evaluation_queue
from partnership_agent.core.config import settings
from partnership_agent.services.evaluation import EvaluationQueue
from partnership_agent.services.sample_documents import sample_documents
from partnership_agent.services.search import ChromaDocumentSearch
from partnership_agent.utils.logging import get_logger
from partnership_agent.utils.timing import utc_now

logger = get_logger("partnership_agent.api.admin")

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/reindex-documents")
async def reindex_documents(
    search: ChromaDocumentSearch = Depends(get_document_search),
):
    """Upsert the bundled sample documents into the search index."""
    logger.info("[ADMIN] Reindexing sample documents")
    try:
        loop = asyncio.get_running_loop()
        indexed = await loop.run_in_executor(
            None, search.index_documents, sample_documents(settings.default_tenant_id),
        )
    except Exception as e:
        logger.error("[ADMIN] Reindex failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reindex documents",
        )
    return {
        "message": "Documents reindexed successfully",
        "indexed": indexed,
        "timestamp": utc_now().isoformat(),
    }


@router.get("/evaluation")
async def evaluation_status(
    queue: EvaluationQueue | None = Depends(get_evaluation_queue),
):
    if queue is None:
        return {"enabled": False}
    return {"enabled": True, **queue.stats()}
