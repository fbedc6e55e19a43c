"""
API Schemas

Pydantic models for the notegraph HTTP request/response cycle.
Domain objects (Note, Tag, SearchResult, ...) are served as-is; only
request bodies and operation envelopes are defined here.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from notegraph.models.schemas import RelationshipEdge


class NoteCreate(BaseModel):
    """Request body for creating a note (tags are generated, not sent)."""

    title: str = Field(..., min_length=1, max_length=200, description="Note title")
    content: str = Field(..., min_length=1, description="Note content")


class SearchRequest(BaseModel):
    """
    Request body for semantic search.

    Blank queries are rejected by the search service with a 400,
    not by schema validation.
    """

    query: str = Field(default="", description="Natural language search query")


class RelationshipsResponse(BaseModel):
    """Outcome of a relationship recomputation."""

    message: str = Field(description="Human-readable status message")
    count: int = Field(ge=0, description="Number of edges written")
    edges: list[RelationshipEdge] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error envelope used in OpenAPI docs (FastAPI serves ``detail``)."""

    detail: str
