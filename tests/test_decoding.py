#!/usr/bin/env python3
"""
Test Suite for collaborator output decoding

PURPOSE:
    Structured LLM replies are decoded into typed results; bad replies must
    come back as failures (never exceptions) so the caller can pick its
    named fallback.

USAGE:
    Run from project root: python -m pytest tests/test_decoding.py -v
"""

import unittest

from partnership_agent.schemas.answer import ConfidenceLevel
from partnership_agent.services.answer_generation import (
    NO_INFORMATION_ANSWER,
    decode_generated_answer,
    fallback_answer_from_text,
)
from partnership_agent.services.entity_extraction import decode_entities
from partnership_agent.services.llm import parse_json_object


class TestParseJsonObject(unittest.TestCase):

    def test_plain_object(self):
        self.assertEqual(parse_json_object('{"a": 1}'), {"a": 1})

    def test_code_fence_is_stripped(self):
        self.assertEqual(parse_json_object('```json\n{"a": 1}\n```'), {"a": 1})

    def test_non_object_raises(self):
        with self.assertRaises(ValueError):
            parse_json_object("[1, 2]")

    def test_invalid_json_raises(self):
        with self.assertRaises(ValueError):
            parse_json_object("not json at all")


class TestDecodeEntities(unittest.TestCase):

    def test_entities_object(self):
        raw = '{"entities": [{"text": "Tier 1", "type": "term", "confidence": 0.9}]}'
        result = decode_entities(raw)

        self.assertTrue(result.ok)
        self.assertEqual(len(result.value), 1)
        self.assertEqual(result.value[0].text, "Tier 1")
        self.assertEqual(result.value[0].type, "term")
        self.assertEqual(result.value[0].confidence, 0.9)

    def test_bare_array(self):
        result = decode_entities('[{"text": "Acme Corp", "type": "company"}]')
        self.assertTrue(result.ok)
        self.assertEqual(result.value[0].text, "Acme Corp")
        self.assertEqual(result.value[0].confidence, 0.5)

    def test_confidence_is_clamped_and_blank_text_skipped(self):
        raw = '{"entities": [{"text": "revenue", "confidence": 3}, {"text": "  "}]}'
        result = decode_entities(raw)
        self.assertTrue(result.ok)
        self.assertEqual([e.text for e in result.value], ["revenue"])
        self.assertEqual(result.value[0].confidence, 1.0)

    def test_empty_list_is_a_successful_decode(self):
        result = decode_entities('{"entities": []}')
        self.assertTrue(result.ok)
        self.assertEqual(result.value, [])

    def test_malformed_replies_fail(self):
        for raw in ["not json", "{}", '{"entities": "revenue"}', '["revenue"]', "[oops"]:
            result = decode_entities(raw)
            self.assertFalse(result.ok, raw)
            self.assertIsNone(result.value)
            self.assertTrue(result.error)


class TestDecodeGeneratedAnswer(unittest.TestCase):

    def test_full_answer(self):
        raw = (
            '{"answer": "Tier 1 partners receive 30%.", "confidence_level": "high", '
            '"source_documents": ["Revenue Sharing Guidelines"], "has_complete_answer": true, '
            '"follow_up_suggestions": ["a", "b", "c", "d"]}'
        )
        result = decode_generated_answer(raw)

        self.assertTrue(result.ok)
        answer = result.value
        self.assertEqual(answer.text, "Tier 1 partners receive 30%.")
        self.assertEqual(answer.confidence_level, ConfidenceLevel.HIGH)
        self.assertEqual(answer.source_titles, ["Revenue Sharing Guidelines"])
        self.assertTrue(answer.is_complete)
        self.assertEqual(answer.follow_ups, ["a", "b", "c"])
        self.assertEqual(answer.citations, [])

    def test_unknown_confidence_becomes_low(self):
        result = decode_generated_answer('{"answer": "Maybe.", "confidence_level": "certain"}')
        self.assertTrue(result.ok)
        self.assertEqual(result.value.confidence_level, ConfidenceLevel.LOW)
        self.assertFalse(result.value.is_complete)

    def test_missing_answer_fails(self):
        for raw in ['{"confidence_level": "high"}', '{"answer": "   "}', "plain text reply"]:
            self.assertFalse(decode_generated_answer(raw).ok, raw)

    def test_fallback_keeps_raw_text(self):
        answer = fallback_answer_from_text("  Partners are paid monthly.  ")
        self.assertEqual(answer.text, "Partners are paid monthly.")
        self.assertEqual(answer.confidence_level, ConfidenceLevel.LOW)
        self.assertFalse(answer.is_complete)

    def test_fallback_for_empty_reply(self):
        self.assertEqual(fallback_answer_from_text("").text, NO_INFORMATION_ANSWER)


if __name__ == "__main__":
    unittest.main()
