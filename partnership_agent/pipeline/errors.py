"""
Error taxonomy for the request pipeline.

Everything except PipelineLoopExceeded is recovered inside the stage that
detected it and turned into a clarification message.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for pipeline errors."""


class CollaboratorUnavailable(PipelineError):
    """An entity, search, generation or history call failed or timed out."""

    def __init__(self, collaborator: str, detail: str = ""):
        self.collaborator = collaborator
        self.detail = detail
        super().__init__(f"{collaborator} unavailable: {detail}" if detail else f"{collaborator} unavailable")


class NoEvidenceFound(PipelineError):
    """Retrieval succeeded but returned no documents."""


class LowConfidenceAnswer(PipelineError):
    """Generation succeeded but the answer is low confidence and incomplete."""


class MalformedCollaboratorOutput(PipelineError):
    """A structured collaborator result could not be decoded."""


class PipelineLoopExceeded(PipelineError):
    """The orchestrator hit its step ceiling."""

    def __init__(self, max_steps: int):
        self.max_steps = max_steps
        super().__init__(f"Pipeline exceeded {max_steps} stage executions")
