"""Models package — SQLAlchemy ORM and Pydantic domain schemas."""

from notegraph.models.base import Base, TimestampMixin
from notegraph.models.orm import (
    NoteRecord,
    TagRecord,
    TagRelationshipRecord,
    note_tags,
)
from notegraph.models.schemas import (
    Note,
    RelationshipEdge,
    RelationshipsComputed,
    SearchResult,
    Tag,
    TagRelationship,
)

__all__ = [
    # SQLAlchemy ORM (persistence layer)
    "Base",
    "TimestampMixin",
    "NoteRecord",
    "TagRecord",
    "TagRelationshipRecord",
    "note_tags",
    # Pydantic schemas (domain)
    "Note",
    "RelationshipEdge",
    "RelationshipsComputed",
    "SearchResult",
    "Tag",
    "TagRelationship",
]
