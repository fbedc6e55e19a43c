"""
Notegraph Domain Schemas

Pydantic models flowing between the repositories, the similarity
engine and the API layer. Only Tag and Note mirror persisted rows;
edges are persisted through the repository and SearchResult never is.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Tag(BaseModel):
    """A tag as read from the store (id is the stable surrogate key)."""

    id: UUID
    name: str = Field(min_length=1)

    model_config = ConfigDict(from_attributes=True, frozen=True)


class Note(BaseModel):
    """
    A note with its flattened tag names.

    Attributes:
        id: Note identifier.
        title: Note title.
        content: Full note content.
        tags: Tag names linked to the note (order is not meaningful).
        created_at: Insertion timestamp.
        updated_at: Last modification timestamp.
    """

    id: UUID
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record) -> Note:
        """Build from a NoteRecord whose ``tags`` relationship is loaded."""
        return cls(
            id=record.id,
            title=record.title,
            content=record.content,
            tags=[tag.name for tag in record.tags],
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    @property
    def embedding_text(self) -> str:
        """Text embedded for semantic search: title, content, then tag names."""
        return f"{self.title} {self.content} {' '.join(self.tags)}"


class SearchResult(Note):
    """A note ranked against one query. Lives for a single search call."""

    similarity: float = Field(ge=0.0, le=1.0)


class RelationshipEdge(BaseModel):
    """
    Undirected, thresholded similarity edge between two tags.

    Built through ``relationships.make_edge`` so that ``tag1_id`` always
    sorts before ``tag2_id``.
    """

    tag1_id: UUID
    tag2_id: UUID
    similarity: float = Field(ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)

    @property
    def pair(self) -> tuple[UUID, UUID]:
        return (self.tag1_id, self.tag2_id)


class RelationshipsComputed(BaseModel):
    """Outcome of one relationship recomputation."""

    count: int = Field(ge=0)
    edges: list[RelationshipEdge] = Field(default_factory=list)


class TagRelationship(BaseModel):
    """Stored edge resolved to tag names, as served by the read side."""

    tag1: str
    tag2: str
    similarity: float
