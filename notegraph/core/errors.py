"""
Error Taxonomy

Exceptions raised by the notegraph services. The API layer maps them
to HTTP responses:

    ValidationError      -> 400, specific message (no provider call made)
    ProviderCallFailure  -> 502, generic message
    StoreWriteFailure    -> 500, generic message

JudgeCallFailure never leaves the judge: it is caught and converted to
a similarity of 0.0 so one bad pair cannot sink a whole batch.
"""

from __future__ import annotations


class NotegraphError(Exception):
    """
    Base class for all notegraph errors.

    Attributes:
        message: Human-readable message, safe to show to API callers
            for validation errors only.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(NotegraphError):
    """Caller input rejected before any provider call."""


class EmptyQuery(ValidationError):
    def __init__(self) -> None:
        super().__init__("Query is required")


class TooManyTags(ValidationError):
    """Tag count exceeds the exact path ceiling."""

    def __init__(self, count: int, limit: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(
            f"Too many tags ({count}). Limit to {limit} tags to avoid timeout."
        )


class ProviderCallFailure(NotegraphError):
    """Embedding batch call failed; no partial vector set is usable."""


class JudgeCallFailure(NotegraphError):
    """A single pairwise score call failed or returned unparseable content."""


class LLMCallError(NotegraphError):
    """Upstream language model request failed (network, status, payload)."""


class StoreWriteFailure(NotegraphError):
    """Persisting a relationship edge failed."""
