"""
Event channel between the pipeline and a streaming client.

Stages write ``status`` / ``chat`` / ``completion`` / ``error`` events;
a single consumer (the SSE endpoint) drains them in order.  Every write
is also folded into an aggregate so the full response text is available
without a stream.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator

from pydantic import BaseModel, Field

from partnership_agent.utils.logging import get_logger
from partnership_agent.utils.timing import utc_now

logger = get_logger("partnership_agent.services.streaming")


class EventType(str, Enum):
    STATUS = "status"
    CHAT = "chat"
    COMPLETION = "completion"
    ERROR = "error"


class StreamEvent(BaseModel):
    id: int
    type: EventType
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)

    def to_sse(self) -> str:
        data = json.dumps(
            {"type": self.type.value, "content": self.payload, "timestamp": self.timestamp.isoformat()},
            default=str,
        )
        return f"id: {self.id}\nevent: {self.type.value}\ndata: {data}\n\n"


class EventChannel:
    """Single-consumer event queue for one request."""

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue(maxsize=maxsize)
        self._next_id = 0
        self._closed = False
        self._parts: list[str] = []
        self.events_written: list[StreamEvent] = []

    @property
    def closed(self) -> bool:
        return self._closed

    async def write(self, event_type: EventType, payload: dict[str, Any] | None = None) -> None:
        if self._closed:
            logger.warning("[STREAM] Write to closed channel dropped | type=%s", event_type.value)
            return
        event = StreamEvent(id=self._next_id, type=event_type, payload=payload or {})
        self._next_id += 1
        content = event.payload.get("content")
        if isinstance(content, str) and content:
            self._parts.append(content)
        self.events_written.append(event)
        await self._queue.put(event)

    async def status(self, message: str, **extra: Any) -> None:
        await self.write(EventType.STATUS, {"message": message, **extra})

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(None)

    async def events(self) -> AsyncIterator[StreamEvent]:
        """Yield events in write order until the channel is closed."""
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    def full_response(self) -> str:
        return " ".join(self._parts).strip()


class NullChannel:
    """Channel used when nobody is listening: every write is a no-op."""

    closed = False

    async def write(self, event_type: EventType, payload: dict[str, Any] | None = None) -> None:
        return None

    async def status(self, message: str, **extra: Any) -> None:
        return None

    async def close(self) -> None:
        return None

    def full_response(self) -> str:
        return ""
