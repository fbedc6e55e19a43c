"""
Notegraph Database Models

SQLAlchemy 2.0 ORM models for notes, tags and discovered tag
relationships. Vectors are never persisted: they are recomputed per
request by the relationship and search services.

Tables:
    notes              — Free-text notes.
    tags               — Unique tag names, created lazily when a note is tagged.
    note_tags          — Note/tag links (cascade on either side).
    tag_relationships  — Undirected similarity edges, one row per
                         canonically ordered pair (tag1_id < tag2_id).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from notegraph.models.base import Base, TimestampMixin

note_tags = Table(
    "note_tags",
    Base.metadata,
    Column(
        "note_id",
        Uuid,
        ForeignKey("notes.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Uuid,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
    Column("confidence", Float, nullable=False, default=1.0, server_default="1.0"),
)


class NoteRecord(Base, TimestampMixin):
    """
    Persistent note.

    Attributes:
        id: UUID primary key (generated Python-side).
        title: Note title.
        content: Full note content.
        tags: Linked TagRecords (association rows removed with the note).
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    tags: Mapped[list[TagRecord]] = relationship(
        secondary=note_tags,
        back_populates="notes",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<NoteRecord(id={self.id!s:.8}, title='{self.title[:20]}')>"


class TagRecord(Base):
    """
    Persistent tag. Identity is the unique ``name``; ``id`` is a
    surrogate key assigned at first creation and never changed.
    """

    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    notes: Mapped[list[NoteRecord]] = relationship(
        secondary=note_tags,
        back_populates="tags",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<TagRecord(id={self.id!s:.8}, name='{self.name}')>"


class TagRelationshipRecord(Base):
    """
    Undirected similarity edge between two tags.

    The composite primary key over a canonically ordered pair guarantees
    at most one row per unordered pair; upserts replace the similarity.
    """

    __tablename__ = "tag_relationships"
    __table_args__ = (
        CheckConstraint("tag1_id <> tag2_id", name="ck_tag_relationships_no_self"),
    )

    tag1_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag2_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    similarity: Mapped[float] = mapped_column(Float, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<TagRelationshipRecord({self.tag1_id!s:.8}-{self.tag2_id!s:.8}, "
            f"sim={self.similarity:.3f})>"
        )
