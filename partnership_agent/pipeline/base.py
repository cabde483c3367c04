"""
Stage abstraction shared by the four pipeline stages.

A stage consumes a RequestState and returns exactly one StageResult.
``run()`` makes every stage total: an exception escaping ``execute()``
becomes a FATAL outcome with a user-safe message.  Cancellation is
never caught.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, ClassVar

from partnership_agent.core.config import settings
from partnership_agent.pipeline.errors import CollaboratorUnavailable, PipelineError
from partnership_agent.schemas.history import ChatTurn
from partnership_agent.schemas.pipeline import (
    PipelineState,
    RequestState,
    StageName,
    StageOutcome,
    StageResult,
)
from partnership_agent.services.streaming import NullChannel
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.pipeline.base")

FATAL_MESSAGE = "I encountered an error while processing your request. Please try again."

NULL_CHANNEL = NullChannel()


async def call_collaborator(
    name: str,
    awaitable: Awaitable[Any],
    timeout: float | None = None,
) -> Any:
    """
    Await a collaborator call under a timeout.

    Timeouts and failures surface as CollaboratorUnavailable; errors from
    the pipeline's own taxonomy and cancellation pass through unchanged.
    """
    limit = settings.collaborator_timeout_seconds if timeout is None else timeout
    try:
        return await asyncio.wait_for(awaitable, timeout=limit)
    except asyncio.TimeoutError as e:
        raise CollaboratorUnavailable(name, f"timed out after {limit:.1f}s") from e
    except asyncio.CancelledError:
        raise
    except PipelineError:
        raise
    except Exception as e:
        raise CollaboratorUnavailable(name, str(e) or type(e).__name__) from e


class Stage(ABC):
    name: ClassVar[StageName]
    outcomes: ClassVar[frozenset[StageOutcome]]

    def __init__(self, timeout: float | None = None):
        self.timeout = settings.collaborator_timeout_seconds if timeout is None else timeout

    @abstractmethod
    async def execute(self, state: RequestState, channel: Any = NULL_CHANNEL) -> StageResult:
        ...

    async def run(self, state: RequestState, channel: Any = NULL_CHANNEL) -> StageResult:
        try:
            result = await self.execute(state, channel)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(
                "[STAGE:%s] Unhandled error | session=%s | %s",
                self.name.value, state.session_id, e,
            )
            return self.fatal(state)

        if result.outcome not in self.declared_outcomes():
            logger.error(
                "[STAGE:%s] Undeclared outcome %s | session=%s",
                self.name.value, result.outcome.value, state.session_id,
            )
            return self.fatal(state)
        return result

    @classmethod
    def declared_outcomes(cls) -> frozenset[StageOutcome]:
        """Outcomes this stage can return; FATAL is always possible via run()."""
        return cls.outcomes | {StageOutcome.FATAL}

    # ── Helpers for subclasses ──────────────────────────────────────
    def call(self, collaborator: str, awaitable: Awaitable[Any]) -> Awaitable[Any]:
        return call_collaborator(collaborator, awaitable, self.timeout)

    def fatal(self, state: RequestState, message: str = FATAL_MESSAGE) -> StageResult:
        return StageResult(
            outcome=StageOutcome.FATAL,
            state=state.clarify(message).evolve(pipeline_state=PipelineState.FATAL),
        )

    def clarification(self, state: RequestState, message: str) -> StageResult:
        return StageResult(
            outcome=StageOutcome.NEEDS_CLARIFICATION,
            state=state.clarify(message).evolve(
                pipeline_state=PipelineState.NEEDS_CLARIFICATION,
                completed_stages=state.completed_stages + (self.name,),
            ),
        )

    def proceed(self, state: RequestState, pipeline_state: PipelineState, **changes: Any) -> StageResult:
        return StageResult(
            outcome=StageOutcome.CONTINUE,
            state=state.evolve(
                pipeline_state=pipeline_state,
                completed_stages=state.completed_stages + (self.name,),
                **changes,
            ),
        )


async def append_history(store: Any, state: RequestState, turn: ChatTurn, stage: StageName) -> None:
    """Record a conversation turn; history failures are logged, never fatal."""
    if store is None:
        return
    try:
        await call_collaborator("chat_history", store.append(state.session_id, turn))
    except CollaboratorUnavailable as e:
        logger.warning(
            "[STAGE:%s] Chat history append failed | session=%s | %s",
            stage.value, state.session_id, e,
        )


async def load_history(store: Any, state: RequestState, stage: StageName) -> list[ChatTurn]:
    if store is None:
        return []
    try:
        return list(await call_collaborator("chat_history", store.get_history(state.session_id)))
    except CollaboratorUnavailable as e:
        logger.warning(
            "[STAGE:%s] Chat history read failed | session=%s | %s",
            stage.value, state.session_id, e,
        )
        return []
