#!/usr/bin/env python3
"""
Test Suite for the streaming event channel

PURPOSE:
    Event numbering, ordering and SSE framing, plus a check that model
    timestamps are UTC-aware.

USAGE:
    Run from project root: python -m pytest tests/test_streaming.py -v
"""

import json
import unittest
from datetime import timezone

from partnership_agent.schemas.history import ChatTurn
from partnership_agent.schemas.response import ResponseMetadata
from partnership_agent.services.evaluation import EvaluationFailure
from partnership_agent.services.streaming import EventChannel, EventType, NullChannel, StreamEvent


class TestEventChannel(unittest.IsolatedAsyncioTestCase):

    async def test_events_are_numbered_and_ordered(self):
        channel = EventChannel()
        await channel.status("Analyzing your question...")
        await channel.write(EventType.CHAT, {"content": "Tier 1 partners receive 30%."})
        await channel.write(EventType.COMPLETION, {"success": True})
        await channel.close()

        events = [event async for event in channel.events()]
        self.assertEqual([e.id for e in events], [0, 1, 2])
        self.assertEqual([e.type for e in events], [EventType.STATUS, EventType.CHAT, EventType.COMPLETION])
        self.assertEqual(events[0].payload, {"message": "Analyzing your question..."})

    async def test_full_response_joins_content(self):
        channel = EventChannel()
        await channel.status("working")
        await channel.write(EventType.CHAT, {"content": "First part."})
        await channel.write(EventType.CHAT, {"content": "Second part."})
        self.assertEqual(channel.full_response(), "First part. Second part.")

    async def test_writes_after_close_are_dropped(self):
        channel = EventChannel()
        await channel.close()
        await channel.write(EventType.CHAT, {"content": "late"})
        await channel.close()

        self.assertTrue(channel.closed)
        self.assertEqual(channel.events_written, [])
        self.assertEqual([e async for e in channel.events()], [])

    async def test_null_channel_accepts_everything(self):
        channel = NullChannel()
        await channel.status("ignored")
        await channel.write(EventType.ERROR, {"message": "ignored"})
        await channel.close()
        self.assertEqual(channel.full_response(), "")


class TestStreamEvent(unittest.TestCase):

    def test_sse_framing(self):
        event = StreamEvent(id=3, type=EventType.STATUS, payload={"message": "Searching..."})
        lines = event.to_sse().split("\n")

        self.assertEqual(lines[0], "id: 3")
        self.assertEqual(lines[1], "event: status")
        self.assertTrue(lines[2].startswith("data: "))
        self.assertEqual(lines[3:], ["", ""])

        data = json.loads(lines[2][len("data: "):])
        self.assertEqual(data["type"], "status")
        self.assertEqual(data["content"], {"message": "Searching..."})
        self.assertIn("timestamp", data)


class TestTimestamps(unittest.TestCase):

    def test_default_timestamps_are_utc_aware(self):
        stamps = [
            StreamEvent(id=0, type=EventType.STATUS).timestamp,
            ChatTurn(role="user", content="hi").created_at,
            ResponseMetadata().processed_at,
            EvaluationFailure(session_id="thread-1", error="boom").failed_at,
        ]
        for stamp in stamps:
            self.assertEqual(stamp.utcoffset(), timezone.utc.utcoffset(None))

    def test_sse_timestamp_carries_offset(self):
        data = json.loads(StreamEvent(id=0, type=EventType.STATUS).to_sse().split("data: ", 1)[1])
        self.assertTrue(data["timestamp"].endswith("+00:00"))


if __name__ == "__main__":
    unittest.main()
