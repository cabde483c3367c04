"""
Process-wide collaborators shared by the API routes.

Built lazily on first use; tests swap them out with
``app.dependency_overrides``.
"""

from __future__ import annotations

import threading

from partnership_agent.core.config import settings
from partnership_agent.pipeline.orchestrator import PipelineOrchestrator, build_orchestrator
from partnership_agent.services.evaluation import EvaluationQueue, ResponseEvaluator
from partnership_agent.services.ground_truth import GroundTruthStore
from partnership_agent.services.search import ChromaDocumentSearch

_lock = threading.Lock()
_search: ChromaDocumentSearch | None = None
_evaluation: EvaluationQueue | None = None
_orchestrator: PipelineOrchestrator | None = None


def get_document_search() -> ChromaDocumentSearch:
    global _search
    with _lock:
        if _search is None:
            _search = ChromaDocumentSearch()
        return _search


def get_evaluation_queue() -> EvaluationQueue | None:
    global _evaluation
    if not settings.evaluation_enabled:
        return None
    with _lock:
        if _evaluation is None:
            _evaluation = EvaluationQueue(ResponseEvaluator(GroundTruthStore.from_csv()))
        return _evaluation


def get_orchestrator() -> PipelineOrchestrator:
    global _orchestrator
    search = get_document_search()
    evaluation = get_evaluation_queue()
    with _lock:
        if _orchestrator is None:
            _orchestrator = build_orchestrator(search=search, evaluation=evaluation)
        return _orchestrator
