"""
Result type returned by every external-call wrapper.

Collectors never raise to the pipeline; they hand back a CallResult and the
orchestrator decides whether a failure is absorbed or escalated.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CallResult(Generic[T]):
    """Success or failure of a single external call"""
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "CallResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "CallResult[T]":
        return cls(ok=False, error=error)

    def unwrap_or(self, default: T) -> T:
        """Value on success, ``default`` otherwise"""
        return self.value if self.ok else default
