"""
Background response evaluation.

Answers are scored off the request path: the Answer Generation stage
submits a job without waiting, a single worker drains the bounded queue.
A full queue drops the job (counted); a failing job is logged and kept
in a bounded failure history that the admin API exposes.

Scores:
  - groundedness: share of answer key terms found in the retrieved documents
  - citation_coverage: share of retrieved documents that received a citation
  - expected_term_recall: share of ground-truth key terms found in the
    answer (only when a ground-truth answer exists for the prompt)
"""

from __future__ import annotations

import asyncio
from collections import deque
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from partnership_agent.core.config import settings
from partnership_agent.pipeline.citations import extract_key_terms
from partnership_agent.schemas.answer import GeneratedAnswer
from partnership_agent.schemas.documents import Citation, Document
from partnership_agent.services.ground_truth import GroundTruthStore
from partnership_agent.utils.logging import get_logger
from partnership_agent.utils.timing import utc_now

logger = get_logger("partnership_agent.services.evaluation")


class EvaluationJob(BaseModel):
    session_id: str
    user_prompt: str
    response: str
    module: str = "FAQAgent"
    documents: list[Document] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)


class EvaluationResult(BaseModel):
    session_id: str
    module: str
    groundedness: float
    citation_coverage: float
    expected_term_recall: float | None = None
    has_ground_truth: bool = False
    document_count: int = 0
    evaluated_at: datetime = Field(default_factory=utc_now)


class EvaluationFailure(BaseModel):
    session_id: str
    error: str
    failed_at: datetime = Field(default_factory=utc_now)


def _term_share(terms: list[str], text: str) -> float:
    if not terms:
        return 0.0
    lowered = text.lower()
    return sum(1 for t in terms if t in lowered) / len(terms)


class ResponseEvaluator:
    def __init__(self, ground_truth: GroundTruthStore | None = None):
        self.ground_truth = ground_truth or GroundTruthStore()

    def evaluate(self, job: EvaluationJob) -> EvaluationResult:
        evidence = " ".join(d.content for d in job.documents)
        groundedness = _term_share(extract_key_terms(job.response), evidence)

        cited = {c.document_id for c in job.citations}
        retrieved = {d.id for d in job.documents}
        coverage = len(cited & retrieved) / len(retrieved) if retrieved else 0.0

        expected = self.ground_truth.expected_output(job.user_prompt)
        recall = _term_share(extract_key_terms(expected), job.response) if expected else None

        return EvaluationResult(
            session_id=job.session_id,
            module=job.module,
            groundedness=round(groundedness, 4),
            citation_coverage=round(coverage, 4),
            expected_term_recall=round(recall, 4) if recall is not None else None,
            has_ground_truth=expected is not None,
            document_count=len(job.documents),
        )


class EvaluationQueue:
    """Bounded queue plus one worker task; never blocks the submitter."""

    def __init__(
        self,
        evaluator: ResponseEvaluator,
        maxsize: int | None = None,
        failure_history: int | None = None,
    ):
        self.evaluator = evaluator
        self._queue: asyncio.Queue[EvaluationJob] = asyncio.Queue(
            maxsize=maxsize or settings.evaluation_queue_size
        )
        history = failure_history or settings.evaluation_failure_history
        self.failures: deque[EvaluationFailure] = deque(maxlen=history)
        self.results: deque[EvaluationResult] = deque(maxlen=history)
        self.dropped = 0
        self.processed = 0
        self._worker: asyncio.Task | None = None

    # ── Producer side ───────────────────────────────────────────────
    def submit(self, job: EvaluationJob) -> bool:
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "[EVAL] Queue full, dropped job | session=%s | dropped=%d",
                job.session_id, self.dropped,
            )
            return False
        return True

    def submit_answer(self, state: Any, answer: GeneratedAnswer) -> bool:
        if not answer.text.strip():
            return False
        return self.submit(
            EvaluationJob(
                session_id=state.session_id,
                user_prompt=state.input_text,
                response=answer.text,
                documents=list(state.evidence_documents),
                citations=list(answer.citations),
            )
        )

    # ── Worker side ─────────────────────────────────────────────────
    async def _process(self, job: EvaluationJob) -> None:
        try:
            result = self.evaluator.evaluate(job)
        except Exception as e:
            logger.warning("[EVAL] Evaluation failed | session=%s | %s", job.session_id, e)
            self.failures.append(EvaluationFailure(session_id=job.session_id, error=str(e)))
            return
        self.processed += 1
        self.results.append(result)
        logger.info(
            "[EVAL] session=%s | groundedness=%.2f | citation_coverage=%.2f | recall=%s",
            result.session_id, result.groundedness, result.citation_coverage,
            f"{result.expected_term_recall:.2f}" if result.expected_term_recall is not None else "n/a",
        )

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._process(job)
            finally:
                self._queue.task_done()

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run())
            logger.info("[EVAL] Worker started")

    async def drain(self) -> None:
        """Wait until every submitted job has been processed."""
        await self._queue.join()

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("[EVAL] Worker stopped")

    def stats(self) -> dict[str, Any]:
        return {
            "queued": self._queue.qsize(),
            "processed": self.processed,
            "dropped": self.dropped,
            "failures": [f.model_dump(mode="json") for f in self.failures],
            "recent_results": [r.model_dump(mode="json") for r in self.results],
        }
