"""
Interactive console client for the chat API.

Usage:
    python -m partnership_agent.console [--base-url URL] [--thread-id ID] [--stream]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import uuid
from typing import Any

import httpx

from partnership_agent.core.config import settings

EXIT_WORDS = {"quit", "exit"}


def format_response(data: dict[str, Any]) -> str:
    """Render a ChatResponse payload for the terminal."""
    lines = [f"\nA: {data.get('response', '')}"]

    entities = data.get("extracted_entities") or []
    if entities:
        lines.append(f"\nExtracted Entities: {', '.join(entities)}")

    documents = data.get("relevant_documents") or []
    if documents:
        lines.append(f"\nRelevant Documents ({len(documents)}):")
        for doc in documents:
            lines.append(
                f"- {doc.get('title')} (Category: {doc.get('category')}, Score: {float(doc.get('score') or 0):.2f})"
            )

    citations = data.get("citations") or []
    if citations:
        lines.append(f"\nCitations ({len(citations)}):")
        for c in citations:
            lines.append(
                f"- [{c.get('document_title')} {c.get('start_position')}-{c.get('end_position')}] "
                f"\"{c.get('excerpt')}\""
            )

    follow_ups = data.get("follow_up_suggestions") or []
    if follow_ups:
        lines.append("\nYou could also ask:")
        lines.extend(f"- {q}" for q in follow_ups)
    return "\n".join(lines)


async def send_message(client: httpx.AsyncClient, base_url: str, thread_id: str, prompt: str) -> str:
    response = await client.post(
        f"{base_url}/api/chat",
        json={"thread_id": thread_id, "prompt": prompt},
    )
    response.raise_for_status()
    return format_response(response.json())


async def stream_message(client: httpx.AsyncClient, base_url: str, thread_id: str, prompt: str) -> None:
    async with client.stream(
        "POST",
        f"{base_url}/api/chat/stream",
        json={"thread_id": thread_id, "prompt": prompt},
    ) as response:
        response.raise_for_status()
        async for line in response.aiter_lines():
            if not line.startswith("data: "):
                continue
            event = json.loads(line[len("data: "):])
            content = event.get("content") or {}
            if event.get("type") == "status":
                print(f"  ... {content.get('message', '')}")
            elif event.get("type") == "chat":
                print(f"\nA: {content.get('content', '')}")
            elif event.get("type") == "error":
                print(f"\nError: {content.get('message', '')}")


async def run_interactive_chat(base_url: str, thread_id: str, stream: bool = False) -> None:
    print("Partnership Agent Chat Console")
    print("==============================")
    print(f"Thread ID: {thread_id}")
    print("Type 'quit' or 'exit' to end the session.\n")

    async with httpx.AsyncClient(timeout=120.0) as client:
        while True:
            try:
                prompt = input("You: ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nGoodbye!")
                return
            if not prompt:
                continue
            if prompt.lower() in EXIT_WORDS:
                print("Goodbye!")
                return

            try:
                if stream:
                    await stream_message(client, base_url, thread_id, prompt)
                else:
                    print(await send_message(client, base_url, thread_id, prompt))
            except httpx.HTTPStatusError as e:
                print(f"Error: {e.response.status_code} - {e.response.text}")
            except httpx.HTTPError as e:
                print(f"Error sending message: {e}")
                print(f"Make sure the API is running on {base_url}")
            print()


def main() -> None:
    parser = argparse.ArgumentParser(description="Partnership Agent chat console")
    parser.add_argument("--base-url", default=settings.api_base_url)
    parser.add_argument("--thread-id", default=None)
    parser.add_argument("--stream", action="store_true", help="Use the streaming endpoint")
    args = parser.parse_args()

    thread_id = args.thread_id or str(uuid.uuid4())
    asyncio.run(run_interactive_chat(args.base_url.rstrip("/"), thread_id, stream=args.stream))


if __name__ == "__main__":
    main()
