"""
Prompt templates for Answer Generation.

The model answers only from the supplied documents and reports its
own view of completeness; the confidence label it returns is advisory
and is replaced by the evidence-count rule in the pipeline.
"""

from __future__ import annotations

from typing import Iterable

from partnership_agent.schemas.documents import Document


SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions about partnership agreements. "
    "Use only the context documents you are given. "
    "If the answer is not in the provided documents, say so clearly. "
    "You never fabricate terms, percentages or dates. "
    "You refer to sources by their document titles."
)

RESPONSE_FORMAT = """Respond with a JSON object with exactly these keys:
{
  "answer": "the answer text",
  "confidence_level": "high" | "medium" | "low",
  "source_documents": ["titles of the documents you used"],
  "has_complete_answer": true | false,
  "follow_up_suggestions": ["up to three short follow-up questions"]
}"""


def build_context_block(documents: Iterable[Document]) -> str:
    """Render documents as the context section of the prompt."""
    blocks = [
        f"Document: {d.title}\nCategory: {d.category}\nContent: {d.content}"
        for d in documents
    ]
    return "\n\n".join(blocks)


def build_answer_prompt(query: str, context: str) -> str:
    parts = [
        "## CONTEXT DOCUMENTS",
        context or "(no documents)",
        "",
        "## USER QUESTION",
        query,
        "",
        "Provide a comprehensive answer based on the available information.",
        "",
        RESPONSE_FORMAT,
    ]
    return "\n".join(parts)
