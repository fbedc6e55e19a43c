"""
Tag Repository

Data access for tags and the tag relationship edge store.

Edge writes are "insert or replace" keyed by the canonically ordered
pair, so concurrent recomputations converge (last write wins per edge).
Each upsert commits on its own: a failure part-way through leaves the
edges written before it in place.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from notegraph.core.errors import StoreWriteFailure
from notegraph.models.orm import TagRecord, TagRelationshipRecord
from notegraph.models.schemas import TagRelationship

logger = logging.getLogger(__name__)


class TagRepository:
    """Repository for TagRecord entities and TagRelationshipRecord edges."""

    async def list_tags(self, session: AsyncSession) -> Sequence[TagRecord]:
        """All tags, ordered by name for stable pair enumeration."""
        result = await session.execute(select(TagRecord).order_by(TagRecord.name))
        return result.scalars().all()

    async def upsert_relationship(
        self,
        session: AsyncSession,
        tag_a: uuid.UUID,
        tag_b: uuid.UUID,
        similarity: float,
    ) -> None:
        """
        Insert or replace the edge between two tags.

        The pair is canonicalized here as well, so callers passing
        (B, A) hit the same row as (A, B).

        Raises:
            ValueError: If both ids are the same tag.
            StoreWriteFailure: If the database rejects the write.
        """
        if tag_a == tag_b:
            raise ValueError("Self-edges are not allowed")
        tag1_id, tag2_id = (tag_a, tag_b) if tag_a < tag_b else (tag_b, tag_a)

        stmt = (
            pg_insert(TagRelationshipRecord)
            .values(tag1_id=tag1_id, tag2_id=tag2_id, similarity=similarity)
            .on_conflict_do_update(
                index_elements=[
                    TagRelationshipRecord.tag1_id,
                    TagRelationshipRecord.tag2_id,
                ],
                set_={"similarity": similarity},
            )
        )
        try:
            await session.execute(stmt)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise StoreWriteFailure(
                f"upsert_relationship failed for {tag1_id}/{tag2_id}"
            ) from e

    async def list_relationships(
        self,
        session: AsyncSession,
        min_similarity: float,
    ) -> list[TagRelationship]:
        """
        Stored edges strictly above ``min_similarity``, resolved to tag
        names and sorted by similarity (highest first).
        """
        tag1 = aliased(TagRecord)
        tag2 = aliased(TagRecord)
        stmt = (
            select(tag1.name, tag2.name, TagRelationshipRecord.similarity)
            .join(tag1, TagRelationshipRecord.tag1_id == tag1.id)
            .join(tag2, TagRelationshipRecord.tag2_id == tag2.id)
            .where(TagRelationshipRecord.similarity > min_similarity)
            .order_by(TagRelationshipRecord.similarity.desc())
        )
        result = await session.execute(stmt)
        return [
            TagRelationship(tag1=row[0], tag2=row[1], similarity=float(row[2]))
            for row in result.all()
        ]
