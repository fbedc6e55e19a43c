"""
Notebook Orchestrator

Single entry point for the API layer. Composes the repositories, the
language model services and the similarity engine into the notebook
workflows:

    create_note                   content -> TagGenerator -> NoteRepository
    recompute_relationships_exact tags -> ExactRelationshipStrategy -> edge store
    recompute_relationships_fast  tags -> FastRelationshipStrategy -> edge store
    search_notes                  notes + query -> SemanticSearch

Every collaborator is injected (with configuration-driven defaults) so
tests can substitute deterministic fakes. Nothing computed here outlives
a call: vectors, indexes and score matrices are rebuilt every time.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.core.config import Settings, settings
from notegraph.models.schemas import (
    Note,
    RelationshipsComputed,
    SearchResult,
    Tag,
    TagRelationship,
)
from notegraph.repositories.notes import NoteRepository
from notegraph.repositories.tags import TagRepository
from notegraph.services.embeddings import EmbeddingProvider, get_embedding_provider
from notegraph.services.judge import PairScorer, SimilarityJudge
from notegraph.services.llm import LLMService
from notegraph.services.pairwise import PairwiseScorer
from notegraph.services.relationships import (
    ExactRelationshipStrategy,
    FastRelationshipStrategy,
    RelationshipStrategy,
)
from notegraph.services.search import SemanticSearch, validate_query
from notegraph.services.tagging import TagGenerator

logger = logging.getLogger(__name__)


class NotebookService:
    """
    Orchestrates notes, tags, relationships and search.

    Usage::

        notebook = NotebookService()
        async with session_factory() as session:
            note = await notebook.create_note(session, "Bread", "Sourdough...")
            outcome = await notebook.recompute_relationships_fast(session)
            hits = await notebook.search_notes(session, "fermentation")
    """

    def __init__(
        self,
        config: Settings = settings,
        *,
        embedder: EmbeddingProvider | None = None,
        judge: PairScorer | None = None,
        tagger: TagGenerator | None = None,
        notes: NoteRepository | None = None,
        tags: TagRepository | None = None,
    ) -> None:
        llm: LLMService | None = None
        if judge is None or tagger is None:
            llm = LLMService(config)

        self._embedder = embedder or get_embedding_provider(config)
        self._tagger = tagger or TagGenerator(llm)
        self._notes = notes or NoteRepository()
        self._tags = tags or TagRepository()
        self._relationships_min_similarity = config.RELATIONSHIPS_MIN_SIMILARITY

        self.exact = ExactRelationshipStrategy(
            PairwiseScorer(
                judge or SimilarityJudge(llm),
                max_tags=config.EXACT_MAX_TAGS,
                batch_size=config.EXACT_BATCH_SIZE,
                call_delay=config.EXACT_CALL_DELAY_MS / 1000,
            ),
            min_similarity=config.EXACT_MIN_SIMILARITY,
        )
        self.fast = FastRelationshipStrategy(
            self._embedder,
            min_similarity=config.FAST_MIN_SIMILARITY,
            metric=config.INDEX_METRIC,
            max_distance=config.MAX_DISTANCE,
        )
        self.search = SemanticSearch(
            self._embedder,
            max_results=config.SEARCH_MAX_RESULTS,
            min_similarity=config.SEARCH_MIN_SIMILARITY,
            metric=config.INDEX_METRIC,
            max_distance=config.MAX_DISTANCE,
        )

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def create_note(self, session: AsyncSession, title: str, content: str) -> Note:
        """Auto-tag and store a note. Tagging failures store it untagged."""
        tag_names = await self._tagger.generate_tags(content)
        record = await self._notes.create_with_tags(
            session, title=title, content=content, tag_names=tag_names
        )
        return Note.from_record(record)

    async def list_notes(self, session: AsyncSession) -> list[Note]:
        records = await self._notes.list_notes_with_tags(session)
        return [Note.from_record(record) for record in records]

    async def get_note(self, session: AsyncSession, note_id: uuid.UUID) -> Note | None:
        record = await self._notes.get_by_id(session, note_id)
        return Note.from_record(record) if record is not None else None

    async def notes_by_tag(self, session: AsyncSession, tag_name: str) -> list[Note]:
        records = await self._notes.get_notes_by_tag(session, tag_name)
        return [Note.from_record(record) for record in records]

    async def delete_note(self, session: AsyncSession, note_id: uuid.UUID) -> bool:
        """Delete a note; return False if it did not exist."""
        record = await self._notes.get_by_id(session, note_id)
        if record is None:
            return False
        await self._notes.delete(session, record)
        logger.info("Deleted note %s", note_id)
        return True

    # ------------------------------------------------------------------
    # Tags and relationships
    # ------------------------------------------------------------------

    async def list_tags(self, session: AsyncSession) -> list[Tag]:
        records = await self._tags.list_tags(session)
        return [Tag.model_validate(record) for record in records]

    async def list_relationships(
        self,
        session: AsyncSession,
        min_similarity: float | None = None,
    ) -> list[TagRelationship]:
        """Stored edges above ``min_similarity`` (config default), strongest first."""
        threshold = (
            self._relationships_min_similarity if min_similarity is None else min_similarity
        )
        return await self._tags.list_relationships(session, threshold)

    async def recompute_relationships_exact(
        self, session: AsyncSession
    ) -> RelationshipsComputed:
        """
        Judge every tag pair and upsert the edges.

        Raises:
            TooManyTags: Tag count over the ceiling (no judge call made).
            StoreWriteFailure: An edge upsert failed (earlier edges stay).
        """
        return await self._recompute(session, self.exact)

    async def recompute_relationships_fast(
        self, session: AsyncSession
    ) -> RelationshipsComputed:
        """
        Embed all tags, link nearest neighbors and upsert the edges.

        Raises:
            ProviderCallFailure: The embedding batch failed.
            StoreWriteFailure: An edge upsert failed (earlier edges stay).
        """
        return await self._recompute(session, self.fast)

    async def _recompute(
        self,
        session: AsyncSession,
        strategy: RelationshipStrategy,
    ) -> RelationshipsComputed:
        tags = await self.list_tags(session)
        if not tags:
            logger.info("No tags found, nothing to relate")
            return RelationshipsComputed(count=0, edges=[])

        logger.info(
            "Calculating relationships for %d tags using the %s path",
            len(tags),
            strategy.name,
        )
        edges = await strategy.compute(tags)

        # Sequential: one AsyncSession must not run statements concurrently
        for edge in edges:
            await self._tags.upsert_relationship(
                session, edge.tag1_id, edge.tag2_id, edge.similarity
            )

        return RelationshipsComputed(count=len(edges), edges=edges)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_notes(self, session: AsyncSession, query: str) -> list[SearchResult]:
        """
        Semantic search over every stored note.

        Raises:
            EmptyQuery: Blank query (checked before reading the store).
            ProviderCallFailure: The embedding batch failed.
        """
        validate_query(query)
        notes = await self.list_notes(session)
        return await self.search.search(query, notes)
