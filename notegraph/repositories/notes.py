"""
Note Repository

Data access layer for notes and their tag links. Tags are created
lazily here when a note is tagged with a name the store has not seen.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from notegraph.models.orm import NoteRecord, TagRecord

logger = logging.getLogger(__name__)


class NoteRepository:
    """
    Repository for NoteRecord entities with their tag links.

    All methods expect an externally managed ``AsyncSession``
    (injected via FastAPI dependency or created in a service layer).
    Returned records always have ``tags`` eagerly loaded.
    """

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    async def create_with_tags(
        self,
        session: AsyncSession,
        *,
        title: str,
        content: str,
        tag_names: Sequence[str],
    ) -> NoteRecord:
        """
        Persist a note and link it to its tags in one transaction.

        Existing tags are reused by name; missing ones are created.

        Args:
            session: Active async database session.
            title: Note title.
            content: Note content.
            tag_names: Normalized, de-duplicated tag names.

        Returns:
            The stored note with ``tags`` loaded.
        """
        tags = await self._find_or_create_tags(session, tag_names)
        note = NoteRecord(title=title, content=content, tags=tags)
        session.add(note)
        await session.commit()

        logger.info("Saved note %s with %d tags", note.id, len(tags))
        # Reload so server-side timestamps and tag links come back populated
        result = await session.execute(
            select(NoteRecord)
            .options(selectinload(NoteRecord.tags))
            .where(NoteRecord.id == note.id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()

    async def delete(self, session: AsyncSession, note: NoteRecord) -> None:
        """Hard delete. Tag links go with the note; tags themselves stay."""
        await session.delete(note)
        await session.commit()

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    async def get_by_id(
        self,
        session: AsyncSession,
        note_id: uuid.UUID,
    ) -> NoteRecord | None:
        """Get a note by primary key. Returns None if not found."""
        stmt = (
            select(NoteRecord)
            .options(selectinload(NoteRecord.tags))
            .where(NoteRecord.id == note_id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def list_notes_with_tags(
        self,
        session: AsyncSession,
    ) -> Sequence[NoteRecord]:
        """All notes, most recently updated first."""
        stmt = (
            select(NoteRecord)
            .options(selectinload(NoteRecord.tags))
            .order_by(NoteRecord.updated_at.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_notes_by_tag(
        self,
        session: AsyncSession,
        tag_name: str,
    ) -> Sequence[NoteRecord]:
        """
        Notes linked to the named tag, most recently updated first.

        Each note carries all of its tags, not only the one matched.
        Unknown tag names yield an empty list.
        """
        stmt = (
            select(NoteRecord)
            .options(selectinload(NoteRecord.tags))
            .where(NoteRecord.tags.any(TagRecord.name == tag_name))
            .order_by(NoteRecord.updated_at.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _find_or_create_tags(
        self,
        session: AsyncSession,
        tag_names: Sequence[str],
    ) -> list[TagRecord]:
        """
        Resolve names to TagRecords inside the caller's transaction.

        Missing names are inserted with ON CONFLICT DO NOTHING, so two
        notes introducing the same new tag concurrently both succeed and
        end up linked to the single stored row.
        """
        names = list(dict.fromkeys(tag_names))
        if not names:
            return []

        stmt = (
            pg_insert(TagRecord)
            .values([{"id": uuid.uuid4(), "name": name} for name in names])
            .on_conflict_do_nothing(index_elements=["name"])
        )
        await session.execute(stmt)

        # Re-read both pre-existing and freshly inserted rows
        result = await session.execute(select(TagRecord).where(TagRecord.name.in_(names)))
        by_name = {tag.name: tag for tag in result.scalars().all()}
        logger.debug("Resolved %d tags", len(by_name))
        return [by_name[name] for name in names]
