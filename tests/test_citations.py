#!/usr/bin/env python3
"""
Test Suite for the citation engine

PURPOSE:
    Checks that every citation quotes its source exactly, that scores and
    per-document limits hold, and that the text helpers behave the way the
    scorer relies on.

TEST COVERAGE:
    - Key term extraction and truncation
    - Excerpt selection and location
    - Citation offsets, scores and per-document cap
    - Determinism

USAGE:
    Run from project root: python -m pytest tests/test_citations.py -v
"""

import unittest

from pydantic import ValidationError

from fakes import TIER_ANSWER, TIER_QUERY, tier_documents
from partnership_agent.pipeline.citations import (
    create_citation,
    extract_citations,
    extract_key_terms,
    find_relevant_excerpts,
    locate_excerpt,
    score_text,
    split_sentences,
    truncate_to_length,
)
from partnership_agent.schemas.documents import Citation, Document
from partnership_agent.services.sample_documents import sample_documents


def _doc(doc_id, content, title=None):
    return Document(id=doc_id, title=title or f"Document {doc_id}", content=content, category="guidelines")


class TestTextHelpers(unittest.TestCase):

    def test_key_terms_drop_short_and_stop_words(self):
        terms = extract_key_terms("What are the Revenue-Sharing terms for Tier partners?")
        self.assertEqual(terms, ["revenue", "sharing", "terms", "tier", "partners"])

    def test_key_terms_are_deduplicated_in_order(self):
        self.assertEqual(extract_key_terms("Revenue and revenue, REVENUE"), ["revenue"])

    def test_key_terms_keep_symbols_inside_words(self):
        self.assertEqual(extract_key_terms("cost+plus pricing"), ["cost+plus", "pricing"])
        self.assertEqual(extract_key_terms("fees in \u20acuros"), ["fees", "\u20acuros"])

    def test_key_terms_split_on_unicode_punctuation(self):
        terms = extract_key_terms("partner_tier\u2014revenue\u00abshare\u00bb")
        self.assertEqual(terms, ["partner", "tier", "revenue", "share"])

    def test_split_sentences_trims_and_skips_empty(self):
        self.assertEqual(split_sentences("One.  Two!? Three..."), ["One", "Two", "Three"])

    def test_truncate_cuts_at_last_space(self):
        self.assertEqual(truncate_to_length("one two three four", 10), "one two...")

    def test_truncate_leaves_short_text_alone(self):
        self.assertEqual(truncate_to_length("short", 10), "short")

    def test_score_is_weighted_term_share(self):
        score = score_text("revenue sharing", ["revenue", "tier"], ["revenue"])
        self.assertAlmostEqual(score, 0.5 * 0.6 + 1.0 * 0.4)

    def test_score_with_no_terms_is_zero(self):
        self.assertEqual(score_text("anything", [], []), 0.0)


class TestFindRelevantExcerpts(unittest.TestCase):

    def setUp(self):
        self.content = (
            "This is the first sentence about revenue sharing. The second sentence discusses "
            "partnership agreements. Third sentence covers compliance requirements. Fourth "
            "sentence mentions financial reporting."
        )

    def test_respects_max_excerpts_and_length(self):
        excerpts = find_relevant_excerpts(
            self.content,
            "revenue sharing partnership",
            "Revenue sharing is important for partnerships.",
            max_excerpts=2,
            excerpt_length=100,
        )
        self.assertTrue(excerpts)
        self.assertLessEqual(len(excerpts), 2)
        for excerpt in excerpts:
            self.assertLessEqual(len(excerpt), 103)

    def test_no_matching_terms_returns_nothing(self):
        excerpts = find_relevant_excerpts(self.content, "zebra giraffe", "elephants roam freely")
        self.assertEqual(excerpts, [])

    def test_symbol_joined_term_must_appear_whole(self):
        excerpts = find_relevant_excerpts("Pricing uses cost and plus margins", "cost+plus", "cost+plus")
        self.assertEqual(excerpts, [])


class TestLocateExcerpt(unittest.TestCase):

    def test_exact_match_is_case_insensitive(self):
        content = "Partners receive REVENUE monthly."
        start, end = locate_excerpt(content, "revenue monthly")
        self.assertEqual(content[start:end], "REVENUE monthly")

    def test_joined_window_maps_back_across_punctuation(self):
        content = "First part. Second part."
        self.assertEqual(locate_excerpt(content, "First part Second part"), (0, 23))

    def test_truncated_window_drops_ellipsis(self):
        content = "Alpha beta gamma. Delta epsilon."
        start, end = locate_excerpt(content, "Alpha beta gamma Delta...")
        self.assertEqual(content[start:end], "Alpha beta gamma. Delta")

    def test_missing_text_returns_none(self):
        self.assertIsNone(locate_excerpt("Alpha beta", "gamma delta"))
        self.assertIsNone(locate_excerpt("Alpha beta", "   "))


class TestCreateCitation(unittest.TestCase):

    def setUp(self):
        self.document = _doc(
            "doc1",
            "This is a test document with some content for testing purposes. "
            "The content contains important information.",
            title="Test Document",
        )

    def test_citation_carries_context(self):
        excerpt = "important information"
        start = self.document.content.index(excerpt)
        citation = create_citation(self.document, excerpt, start, start + len(excerpt), 0.8)

        self.assertEqual(citation.document_id, "doc1")
        self.assertEqual(citation.document_title, "Test Document")
        self.assertEqual(citation.excerpt, excerpt)
        self.assertEqual(citation.relevance_score, 0.8)
        self.assertTrue(citation.context_before)
        self.assertEqual(citation.context_after, ".")

    def test_context_is_empty_at_document_start(self):
        citation = create_citation(self.document, "This is", 0, 7, 0.5)
        self.assertEqual(citation.context_before, "")

    def test_span_must_match_excerpt(self):
        with self.assertRaises(ValidationError):
            Citation(
                document_id="doc1",
                document_title="Test Document",
                excerpt="important",
                start_position=0,
                end_position=4,
                relevance_score=0.5,
            )


class TestExtractCitations(unittest.TestCase):

    def setUp(self):
        self.documents = [
            _doc(
                "doc1",
                "Partnership revenue sharing must be calculated based on gross profits. "
                "The minimum threshold for revenue sharing is $10,000 per quarter. "
                "All calculations must be submitted monthly.",
                title="Revenue Guidelines",
            ),
            _doc(
                "doc2",
                "Partners must adhere to all compliance requirements including financial "
                "reporting and audit trails.",
                title="Compliance Policy",
            ),
        ]

    def _assert_sound(self, citations, documents):
        by_id = {d.id: d for d in documents}
        for c in citations:
            content = by_id[c.document_id].content
            self.assertGreaterEqual(c.start_position, 0)
            self.assertLess(c.start_position, c.end_position)
            self.assertLessEqual(c.end_position, len(content))
            self.assertEqual(content[c.start_position:c.end_position], c.excerpt)
            self.assertGreaterEqual(c.relevance_score, 0.0)
            self.assertLessEqual(c.relevance_score, 1.0)

    def test_citations_quote_their_source(self):
        citations = extract_citations(
            "What are the revenue sharing requirements?",
            "Revenue sharing must be calculated based on gross profits with a minimum threshold of $10,000 per quarter.",
            self.documents,
        )
        self.assertTrue(citations)
        self.assertIn("doc1", {c.document_id for c in citations})
        self._assert_sound(citations, self.documents)

    def test_results_are_sorted_by_score(self):
        citations = extract_citations(
            "What are the revenue sharing requirements?",
            "Revenue sharing must be calculated based on gross profits.",
            self.documents,
        )
        scores = [c.relevance_score for c in citations]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_weak_overlap_is_discarded(self):
        documents = [
            _doc(
                "doc1",
                "Partnership agreements must include compliance clauses. "
                "All partners must follow regulatory guidelines.",
            )
        ]
        citations = extract_citations(
            "revenue sharing requirements",
            "Revenue sharing must be calculated based on net profits.",
            documents,
        )
        self.assertEqual(citations, [])

    def test_only_matching_documents_are_cited(self):
        documents = [
            _doc("doc1", "Revenue sharing calculations must be performed monthly."),
            _doc("doc2", "Partnership compliance guidelines must be followed at all times."),
        ]
        citations = extract_citations("revenue sharing requirements", "revenue calculations", documents)
        self.assertEqual({c.document_id for c in citations}, {"doc1"})

    def test_empty_query_and_answer_yield_nothing(self):
        self.assertEqual(extract_citations("", "", self.documents), [])

    def test_at_most_three_citations_per_document(self):
        content = " ".join(f"Revenue rule number {n} applies." for n in range(1, 9))
        documents = [_doc("doc1", content)]
        citations = extract_citations("revenue rules", "revenue applies", documents)
        self.assertEqual(len(citations), 3)
        self._assert_sound(citations, documents)

        capped = extract_citations("revenue rules", "revenue applies", documents, max_per_document=1)
        self.assertEqual(len(capped), 1)

    def test_same_inputs_same_citations(self):
        first = extract_citations(TIER_QUERY, TIER_ANSWER, tier_documents())
        second = extract_citations(TIER_QUERY, TIER_ANSWER, tier_documents())
        self.assertEqual(first, second)

    def test_tier_one_answer_cites_the_guideline(self):
        documents = tier_documents()
        citations = extract_citations(TIER_QUERY, TIER_ANSWER, documents)
        self._assert_sound(citations, documents)

        guideline = [c for c in citations if c.document_id == "rev-1"]
        self.assertTrue(guideline)
        self.assertTrue(any("30% of net revenue" in c.excerpt for c in guideline))

    def test_offsets_hold_on_multiline_documents(self):
        documents = sample_documents()
        questions = [
            ("What are the revenue sharing tiers?", "Tier 1 partners receive 30-35% of net revenue."),
            ("What are the compliance requirements?", "Partners must complete quarterly compliance reviews."),
            ("How is partner performance measured?", "Client satisfaction scores must be at least 4.5/5.0."),
            ("How can a partnership be terminated?", "Either party may terminate with written notice."),
        ]
        for query, answer in questions:
            citations = extract_citations(query, answer, documents)
            self._assert_sound(citations, documents)
            per_document = {}
            for c in citations:
                per_document[c.document_id] = per_document.get(c.document_id, 0) + 1
            self.assertTrue(all(count <= 3 for count in per_document.values()))


if __name__ == "__main__":
    unittest.main()
