"""
ChromaDB-backed document search.

Documents are stored whole (one Chroma record per document) with tenant
and category metadata so both filters run inside the query.
"""

from __future__ import annotations

import asyncio
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

import chromadb

from partnership_agent.core.config import settings
from partnership_agent.schemas.documents import Document
from partnership_agent.services.sample_documents import sample_documents
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.services.search")


def _get_persist_directory(persist_directory: str | None = None) -> str:
    """
    Resolve the directory where ChromaDB data is stored.
    Defaults to partnership_agent/vector_db/chroma_db.
    """
    if persist_directory is not None:
        return persist_directory
    if settings.chromadb_persist_directory:
        return settings.chromadb_persist_directory
    base_dir = Path(__file__).resolve().parents[1]
    return str(base_dir / "vector_db" / "chroma_db")


_chroma_client_lock = threading.Lock()
_chroma_clients: dict[str, Any] = {}


def get_chroma_client(persist_directory: str | None = None) -> Any:
    """One PersistentClient per storage path, created on first use."""
    path = _get_persist_directory(persist_directory)
    with _chroma_client_lock:
        client = _chroma_clients.get(path)
        if client is None:
            client = chromadb.PersistentClient(
                path=path,
                settings=chromadb.Settings(
                    anonymized_telemetry=False,
                    allow_reset=True,
                ),
            )
            _chroma_clients[path] = client
        return client


def build_where_filter(tenant_id: str, allowed_categories: Sequence[str]) -> dict[str, Any]:
    tenant_clause = {"tenant_id": tenant_id}
    if not allowed_categories:
        return tenant_clause
    return {"$and": [tenant_clause, {"category": {"$in": list(allowed_categories)}}]}


def distance_to_score(distance: float) -> float:
    """Map a Chroma distance (0 = identical) into (0, 1]."""
    return 1.0 / (1.0 + max(distance, 0.0))


def _metadata_for(document: Document) -> dict[str, Any]:
    # Chroma metadata values must be non-null scalars
    metadata: dict[str, Any] = {
        "title": document.title,
        "category": document.category,
        "tenant_id": document.tenant_id,
    }
    if document.source_path:
        metadata["source_path"] = document.source_path
    if document.last_modified:
        metadata["last_modified"] = document.last_modified.isoformat()
    return metadata


def _document_from_record(doc_id: str, content: str, metadata: dict[str, Any], distance: float) -> Document:
    last_modified = metadata.get("last_modified")
    return Document(
        id=doc_id,
        title=str(metadata.get("title") or doc_id),
        content=content or "",
        category=str(metadata.get("category") or ""),
        tenant_id=str(metadata.get("tenant_id") or ""),
        score=distance_to_score(distance),
        source_path=metadata.get("source_path"),
        last_modified=datetime.fromisoformat(last_modified) if last_modified else None,
    )


class ChromaDocumentSearch:
    """DocumentSearch over a single ChromaDB collection."""

    def __init__(
        self,
        collection_name: str | None = None,
        top_k: int | None = None,
        client: Any | None = None,
    ):
        self.collection_name = collection_name or settings.chromadb_collection
        self.top_k = top_k or settings.search_top_k
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_chroma_client()
        return self._client

    def _collection(self) -> Any:
        return self.client.get_or_create_collection(name=self.collection_name)

    def count(self) -> int:
        return self._collection().count()

    def index_documents(self, documents: Sequence[Document]) -> int:
        """Upsert documents; returns how many were written."""
        if not documents:
            return 0
        collection = self._collection()
        collection.upsert(
            ids=[d.id for d in documents],
            documents=[d.content for d in documents],
            metadatas=[_metadata_for(d) for d in documents],
        )
        logger.info(
            "[SEARCH] Indexed %d documents into '%s'",
            len(documents), self.collection_name,
        )
        return len(documents)

    def _query(self, query: str, tenant_id: str, allowed_categories: Sequence[str]) -> list[Document]:
        collection = self._collection()
        results = collection.query(
            query_texts=[query],
            n_results=self.top_k,
            where=build_where_filter(tenant_id, allowed_categories),
            include=["documents", "metadatas", "distances"],
        )

        documents: list[Document] = []
        if not results.get("ids") or not results["ids"][0]:
            return documents

        ids = results["ids"][0]
        contents = (results.get("documents") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]
        for idx, doc_id in enumerate(ids):
            documents.append(
                _document_from_record(
                    doc_id,
                    contents[idx] if idx < len(contents) else "",
                    metadatas[idx] if idx < len(metadatas) and metadatas[idx] else {},
                    float(distances[idx]) if idx < len(distances) else 0.0,
                )
            )
        return documents

    async def search(
        self,
        query: str,
        tenant_id: str,
        allowed_categories: Sequence[str],
    ) -> list[Document]:
        # Chroma's client is synchronous
        loop = asyncio.get_running_loop()
        documents = await loop.run_in_executor(
            None, self._query, query, tenant_id, list(allowed_categories),
        )
        logger.info(
            "[SEARCH] tenant=%s | categories=%s | found=%d",
            tenant_id, ",".join(allowed_categories), len(documents),
        )
        return documents


def seed_sample_documents(search: ChromaDocumentSearch, tenant_id: str | None = None) -> int:
    """Index the bundled sample documents when the collection is empty."""
    if search.count() > 0:
        return 0
    return search.index_documents(sample_documents(tenant_id or settings.default_tenant_id))


def init_chromadb(persist_directory: str | None = None) -> bool:
    """
    Initialize ChromaDB connection and verify it works.
    Call this during app startup.
    """
    try:
        client = get_chroma_client(persist_directory)
        _ = client.list_collections()
        logger.info("[OK] ChromaDB connection initialized")
        return True
    except Exception as e:
        logger.error("[FAIL] ChromaDB connection failed: %s", e)
        return False
