#!/usr/bin/env python3
"""
Test Suite for background response evaluation

PURPOSE:
    Evaluation runs off the request path.  These tests check the scores,
    the ground-truth lookup, and that the queue drops work instead of
    blocking when full and records failures instead of raising.

USAGE:
    Run from project root: python -m pytest tests/test_evaluation.py -v
"""

import unittest

from fakes import TIER_ANSWER, TIER_QUERY, make_state, tier_documents
from partnership_agent.pipeline.citations import extract_citations
from partnership_agent.schemas.answer import GeneratedAnswer
from partnership_agent.services.evaluation import EvaluationJob, EvaluationQueue, ResponseEvaluator
from partnership_agent.services.ground_truth import GroundTruthItem, GroundTruthStore


def _job(**changes):
    documents = tier_documents()
    values = {
        "session_id": "thread-1",
        "user_prompt": TIER_QUERY,
        "response": TIER_ANSWER,
        "documents": documents,
        "citations": extract_citations(TIER_QUERY, TIER_ANSWER, documents),
    }
    values.update(changes)
    return EvaluationJob(**values)


class _FailingEvaluator:
    def evaluate(self, job):
        raise RuntimeError("scorer crashed")


class TestGroundTruthStore(unittest.TestCase):

    def setUp(self):
        self.store = GroundTruthStore([
            GroundTruthItem(user_prompt="What is the revenue share for Tier 1?", expected_output="30%", module="FAQAgent"),
            GroundTruthItem(user_prompt="How do I terminate?", expected_output="Written notice", module="Other"),
        ])

    def test_exact_match_ignores_case(self):
        self.assertEqual(self.store.expected_output("what is the revenue share for tier 1?"), "30%")

    def test_partial_match(self):
        self.assertEqual(self.store.expected_output("Tell me: how do I terminate? Thanks"), "Written notice")

    def test_no_match(self):
        self.assertIsNone(self.store.expected_output("Unrelated question"))
        self.assertIsNone(self.store.expected_output("   "))

    def test_by_module(self):
        self.assertEqual(len(self.store.by_module("faqagent")), 1)

    def test_bundled_csv_loads(self):
        store = GroundTruthStore.from_csv()
        self.assertTrue(store.items)
        self.assertIsNotNone(store.expected_output("What are the revenue sharing percentages for partners?"))

    def test_missing_csv_gives_empty_store(self):
        self.assertEqual(GroundTruthStore.from_csv("/nonexistent/ground_truth.csv").items, [])


class TestResponseEvaluator(unittest.TestCase):

    def test_grounded_answer_scores_high(self):
        result = ResponseEvaluator().evaluate(_job())

        self.assertGreater(result.groundedness, 0.5)
        self.assertLessEqual(result.groundedness, 1.0)
        self.assertGreater(result.citation_coverage, 0.0)
        self.assertEqual(result.document_count, 2)
        self.assertFalse(result.has_ground_truth)
        self.assertIsNone(result.expected_term_recall)

    def test_ungrounded_answer_scores_zero(self):
        result = ResponseEvaluator().evaluate(_job(response="Zebras migrate seasonally", citations=[]))
        self.assertEqual(result.groundedness, 0.0)
        self.assertEqual(result.citation_coverage, 0.0)

    def test_ground_truth_recall(self):
        store = GroundTruthStore([
            GroundTruthItem(user_prompt=TIER_QUERY, expected_output="Tier 1 strategic partners receive thirty percent"),
        ])
        result = ResponseEvaluator(store).evaluate(_job())

        self.assertTrue(result.has_ground_truth)
        self.assertGreater(result.expected_term_recall, 0.0)
        self.assertLess(result.expected_term_recall, 1.0)


class TestEvaluationQueue(unittest.IsolatedAsyncioTestCase):

    async def test_full_queue_drops_without_blocking(self):
        queue = EvaluationQueue(ResponseEvaluator(), maxsize=1)

        self.assertTrue(queue.submit(_job()))
        self.assertFalse(queue.submit(_job(session_id="thread-2")))
        self.assertEqual(queue.dropped, 1)
        self.assertEqual(queue.stats()["queued"], 1)

    async def test_worker_processes_submitted_jobs(self):
        queue = EvaluationQueue(ResponseEvaluator(), maxsize=10)
        queue.start()
        try:
            queue.submit(_job())
            queue.submit(_job(session_id="thread-2"))
            await queue.drain()
        finally:
            await queue.stop()

        stats = queue.stats()
        self.assertEqual(stats["processed"], 2)
        self.assertEqual([r["session_id"] for r in stats["recent_results"]], ["thread-1", "thread-2"])

    async def test_failures_are_recorded(self):
        queue = EvaluationQueue(_FailingEvaluator(), maxsize=10, failure_history=2)
        queue.start()
        try:
            for n in range(3):
                queue.submit(_job(session_id=f"thread-{n}"))
            await queue.drain()
        finally:
            await queue.stop()

        self.assertEqual(queue.processed, 0)
        self.assertEqual([f.session_id for f in queue.failures], ["thread-1", "thread-2"])
        self.assertEqual(queue.failures[0].error, "scorer crashed")

    async def test_submit_answer_from_state(self):
        queue = EvaluationQueue(ResponseEvaluator(), maxsize=10)
        state = make_state(evidence_documents=tuple(tier_documents()))

        self.assertTrue(queue.submit_answer(state, GeneratedAnswer(text=TIER_ANSWER)))
        self.assertFalse(queue.submit_answer(state, GeneratedAnswer(text="  ")))
        self.assertEqual(queue.stats()["queued"], 1)


if __name__ == "__main__":
    unittest.main()
