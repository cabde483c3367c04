"""
In-memory collaborators for pipeline tests.

Each fake records its calls so tests can assert which collaborators a
request reached.
"""

import asyncio

from partnership_agent.pipeline.answer_generation import AnswerGenerationStage
from partnership_agent.pipeline.evidence_retrieval import EvidenceRetrievalStage
from partnership_agent.pipeline.finalization import FinalizationStage
from partnership_agent.pipeline.orchestrator import PipelineOrchestrator
from partnership_agent.pipeline.query_understanding import QueryUnderstandingStage
from partnership_agent.schemas.answer import ConfidenceLevel, ExtractedEntity, GeneratedAnswer
from partnership_agent.schemas.documents import Document
from partnership_agent.schemas.pipeline import RequestState
from partnership_agent.services.chat_history import InMemoryChatHistory

TIER_QUERY = "What revenue share does a Tier 1 partner receive?"
TIER_ANSWER = "Tier 1 strategic partners receive 30% of net revenue, paid monthly."


def tier_documents():
    return [
        Document(
            id="rev-1",
            title="Revenue Sharing Guidelines",
            category="guidelines",
            tenant_id="tenant-123",
            content=(
                "Revenue Distribution Framework: Revenue sharing follows a tiered approach.\n"
                "- Tier 1 (Strategic Partners): 30% of net revenue, paid monthly\n"
                "- Tier 2 (Operational Partners): 20% of net revenue, paid quarterly"
            ),
        ),
        Document(
            id="rev-2",
            title="Partnership Agreement Template",
            category="templates",
            tenant_id="tenant-123",
            content=(
                "Revenue Sharing Structure: Tier 1 Partners (Strategic) receive 30-35% of net "
                "revenue from direct contributions. Payments are made monthly."
            ),
        ),
    ]


def make_state(**changes) -> RequestState:
    values = {
        "session_id": "thread-1",
        "input_text": TIER_QUERY,
        "tenant_id": "tenant-123",
        "user_id": "user-1",
    }
    values.update(changes)
    return RequestState(**values)


class FakeExtractor:
    def __init__(self, entities=None, error=None, delay=0.0):
        self.entities = [ExtractedEntity(text="Tier 1", type="term", confidence=0.9)] if entities is None else entities
        self.error = error
        self.delay = delay
        self.calls = []

    async def extract_entities(self, text):
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.entities


class FakeSearch:
    def __init__(self, documents=None, error=None):
        self.documents = tier_documents() if documents is None else documents
        self.error = error
        self.calls = []
        self.indexed = []

    async def search(self, query, tenant_id, allowed_categories):
        self.calls.append((query, tenant_id, list(allowed_categories)))
        if self.error is not None:
            raise self.error
        return list(self.documents)

    def index_documents(self, documents):
        self.indexed.extend(documents)
        return len(documents)


class FakeGenerator:
    def __init__(self, answer=None, error=None, delay=0.0):
        self.answer = answer if answer is not None else GeneratedAnswer(
            text=TIER_ANSWER,
            confidence_level=ConfidenceLevel.LOW,
            source_titles=["Revenue Sharing Guidelines"],
            is_complete=True,
            follow_ups=["How are Tier 2 partners paid?"],
        )
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate(self, query, documents, history):
        self.calls.append((query, list(documents), list(history)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.answer


class FailingHistory:
    async def append(self, session_id, message):
        raise RuntimeError("history store offline")

    async def get_history(self, session_id):
        raise RuntimeError("history store offline")


class RecordingEvaluation:
    def __init__(self):
        self.submitted = []

    def submit_answer(self, state, answer):
        self.submitted.append((state.session_id, answer))
        return True


def build_test_orchestrator(extractor=None, search=None, generator=None, history=None, evaluation=None, **kwargs):
    history = history if history is not None else InMemoryChatHistory()
    return PipelineOrchestrator(
        [
            QueryUnderstandingStage(extractor or FakeExtractor(), history=history),
            EvidenceRetrievalStage(search or FakeSearch()),
            AnswerGenerationStage(generator or FakeGenerator(), history=history, evaluation=evaluation),
            FinalizationStage(),
        ],
        **kwargs,
    )
