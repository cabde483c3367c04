"""
Thin API routes for chat.

No business logic: validates the request, calls the orchestrator and
returns (or streams) its response.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from partnership_agent.api.dependencies import get_orchestrator
from partnership_agent.api.query_logging import log_query
from partnership_agent.pipeline.base import FATAL_MESSAGE
from partnership_agent.pipeline.orchestrator import PipelineOrchestrator
from partnership_agent.schemas.response import ChatRequest, ChatResponse
from partnership_agent.services.streaming import EventChannel, EventType, StreamEvent
from partnership_agent.utils.logging import get_logger
from partnership_agent.utils.timing import utc_now

logger = get_logger("partnership_agent.api.chat")

router = APIRouter(prefix="/chat", tags=["Chat"])

MISSING_FIELDS_DETAIL = "ThreadId and Prompt are required."


def _validated(request: ChatRequest) -> ChatRequest:
    thread_id = (request.thread_id or "").strip()
    prompt = (request.prompt or "").strip()
    if not thread_id or not prompt:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_FIELDS_DETAIL)
    return request.model_copy(update={"thread_id": thread_id, "prompt": prompt})


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    background_tasks: BackgroundTasks,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Answer one question and return the complete response."""
    request = _validated(request)
    logger.info("[CHAT] thread=%s | prompt: %s", request.thread_id, request.prompt[:80])

    try:
        response = await orchestrator.process_request(request)
    except Exception as e:
        logger.error("[CHAT] Error | thread=%s | %s", request.thread_id, e, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while processing your request.",
        )

    background_tasks.add_task(log_query, request, response)
    return response


@router.post("/stream")
async def chat_stream(
    request: ChatRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """
    Answer one question as Server-Sent Events.

    The pipeline runs as its own task; if the client goes away the
    generator is closed and the task is cancelled.
    """
    request = _validated(request)
    logger.info("[CHAT] stream | thread=%s | prompt: %s", request.thread_id, request.prompt[:80])
    channel = EventChannel()

    async def event_source():
        task = asyncio.create_task(orchestrator.process_request(request, channel))
        try:
            async for event in channel.events():
                yield event.to_sse()

            try:
                response = await task
            except Exception as e:
                logger.error("[CHAT] Stream error | thread=%s | %s", request.thread_id, e, exc_info=True)
                error = StreamEvent(
                    id=len(channel.events_written),
                    type=EventType.ERROR,
                    payload={"message": FATAL_MESSAGE, "thread_id": request.thread_id},
                )
                yield error.to_sse()
                return

            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, log_query, request, response)
        finally:
            if not task.done():
                logger.info("[CHAT] Client disconnected, cancelling | thread=%s", request.thread_id)
                task.cancel()

    return StreamingResponse(
        event_source(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/health")
async def chat_health():
    return {"status": "healthy", "timestamp": utc_now().isoformat()}
