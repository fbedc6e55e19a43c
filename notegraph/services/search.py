"""
Semantic Search

Ranks a snapshot of notes against a free-text query using ephemeral
embeddings. The corpus and the query are embedded together in one
provider call (corpus first, query last); the corpus vectors go into a
throwaway similarity index which the query vector then probes.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from notegraph.core.errors import EmptyQuery, ProviderCallFailure
from notegraph.models.schemas import Note, SearchResult
from notegraph.services.embeddings import EmbeddingProvider
from notegraph.services.vector_index import DEFAULT_MAX_DISTANCE, Metric, SimilarityIndex

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS: int = 10
DEFAULT_MIN_SIMILARITY: float = 0.2


def validate_query(query: str | None) -> str:
    """Return the query unchanged, or raise ``EmptyQuery`` if blank."""
    if query is None or not query.strip():
        raise EmptyQuery()
    return query


class SemanticSearch:
    """
    Query-time note ranking.

    Usage::

        search = SemanticSearch(get_embedding_provider())
        results = await search.search("sourdough starter", notes)
        # results[0] is the closest note with similarity > 0.2

    Args:
        embedder: Batch embedding provider.
        max_results: Neighbor count limit (capped by corpus size).
        min_similarity: Results at or below this are dropped.
        metric: Distance metric of the ephemeral index.
        max_distance: Calibration constant for the ``l2`` metric.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        max_results: int = DEFAULT_MAX_RESULTS,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
        metric: Metric = "cosine",
        max_distance: float = DEFAULT_MAX_DISTANCE,
    ) -> None:
        self._embedder = embedder
        self.max_results = max_results
        self.min_similarity = min_similarity
        self.metric = metric
        self.max_distance = max_distance

    async def search(self, query: str, notes: Sequence[Note]) -> list[SearchResult]:
        """
        Rank ``notes`` by similarity to ``query``.

        Returns:
            Results above the similarity threshold, highest first.

        Raises:
            EmptyQuery: If the query is blank (before any provider call).
            ProviderCallFailure: If the embedding batch fails.
        """
        validate_query(query)
        if not notes:
            return []

        texts = [note.embedding_text for note in notes]
        texts.append(query)
        vectors = await self._embedder.embed_batch(texts)
        if len(vectors) != len(texts):
            raise ProviderCallFailure(
                f"Embedding provider returned {len(vectors)} vectors for {len(texts)} texts"
            )

        corpus_vectors, query_vector = vectors[:-1], vectors[-1]
        index = SimilarityIndex.build(
            [note.id for note in notes],
            corpus_vectors,
            metric=self.metric,
            max_distance=self.max_distance,
        )
        hits = index.query(query_vector, k=min(self.max_results, len(notes)))

        by_id = {note.id: note for note in notes}
        results: list[SearchResult] = []
        for hit in hits:
            similarity = index.to_similarity(hit.distance)
            if similarity <= self.min_similarity:
                continue
            note = by_id[hit.id]
            results.append(SearchResult(**note.model_dump(), similarity=similarity))

        results.sort(key=lambda result: result.similarity, reverse=True)
        logger.info(
            "Search %r: %d of %d notes above %.2f",
            query[:50],
            len(results),
            len(notes),
            self.min_similarity,
        )
        return results
