"""
Performance timing context manager and the UTC clock used for timestamps.

Usage:
    async with Timer("stage_evidence_retrieval") as t:
        result = await stage.run(state)
    print(t.elapsed_ms)
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.timing")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Timer:
    """Simple context-manager timer (sync + async compatible)."""

    def __init__(self, label: str = ""):
        self.label = label
        self._start: float = 0.0
        self.elapsed_s: float = 0.0

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_s * 1000

    # Sync
    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: Any) -> None:
        self._stop()

    # Async
    async def __aenter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    async def __aexit__(self, *_: Any) -> None:
        self._stop()

    def _stop(self) -> None:
        self.elapsed_s = time.perf_counter() - self._start
        if self.label:
            logger.debug("%s completed in %.1fms", self.label, self.elapsed_ms)
