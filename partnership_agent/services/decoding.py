"""
Typed result of decoding structured collaborator output.

Decoders never raise on bad input: they return a DecodeResult that is
either ``ok`` with a value or carries the parse error, and the caller
picks the named fallback.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "DecodeResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "DecodeResult[T]":
        return cls(error=error)
