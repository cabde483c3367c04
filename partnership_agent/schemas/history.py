"""
Schema for one stored conversation turn.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from partnership_agent.utils.timing import utc_now


class ChatTurn(BaseModel):
    role: str  # "user" | "assistant"
    content: str
    model_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)

    class Config:
        frozen = True
        protected_namespaces = ()

    def as_message(self) -> dict[str, str]:
        """OpenAI chat message form."""
        return {"role": self.role, "content": self.content}
