"""
Prompt templates for Query Understanding: entity extraction.
"""

from __future__ import annotations


ENTITY_TYPES: list[str] = [
    "company",
    "person",
    "contract_term",
    "date",
    "financial_amount",
    "legal_concept",
    "general",
]


def build_entity_prompt(text: str) -> tuple[str, str]:
    """Return ``(system_prompt, user_prompt)`` for entity extraction."""
    system_prompt = (
        "You extract entities from questions about partnership agreements. "
        "You return JSON only and never add commentary."
    )
    types = ", ".join(ENTITY_TYPES)
    user_prompt = (
        "Extract all entities from the following text. Focus on:\n"
        "- Company names\n"
        "- Person names\n"
        "- Contract terms\n"
        "- Dates\n"
        "- Financial amounts\n"
        "- Legal concepts\n\n"
        f"Text: {text}\n\n"
        'Return a JSON object of the form {"entities": [{"text": "...", '
        '"type": "...", "confidence": 0.0}]}.\n'
        f"Use one of these types: {types}. "
        "Confidence is a number between 0 and 1."
    )
    return system_prompt, user_prompt
