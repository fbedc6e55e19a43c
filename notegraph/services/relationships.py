"""
Relationship Builder

Turns a tag set into a deduplicated, thresholded, undirected edge set.
Two independent strategies share the edge-emission contract:

    ExactRelationshipStrategy
        Every pair judged by the language model (O(n^2) calls, tag
        ceiling enforced). Keeps edges with similarity > 0.1.

    FastRelationshipStrategy
        All tag names embedded in one batch, an ephemeral similarity
        index queried per tag (O(1) provider calls). Keeps edges with
        similarity > 0.3 and only emits a pair from the side whose id
        sorts first.

Both emit edges with ``tag1_id < tag2_id`` and never a self-edge, so
the store can upsert them keyed by the pair.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from notegraph.core.errors import ProviderCallFailure
from notegraph.models.schemas import RelationshipEdge, Tag
from notegraph.services.embeddings import EmbeddingProvider
from notegraph.services.pairwise import PairwiseScorer
from notegraph.services.vector_index import DEFAULT_MAX_DISTANCE, Metric, SimilarityIndex

logger = logging.getLogger(__name__)

EXACT_MIN_SIMILARITY: float = 0.1
FAST_MIN_SIMILARITY: float = 0.3


def canonical_pair(tag_a: UUID, tag_b: UUID) -> tuple[UUID, UUID]:
    """Order an unordered pair so it has exactly one representation."""
    return (tag_a, tag_b) if tag_a < tag_b else (tag_b, tag_a)


def make_edge(tag_a: UUID, tag_b: UUID, similarity: float) -> RelationshipEdge:
    """
    Build a canonically ordered edge.

    Raises:
        ValueError: For a self-edge.
    """
    if tag_a == tag_b:
        raise ValueError(f"Self-edge on tag {tag_a}")
    tag1_id, tag2_id = canonical_pair(tag_a, tag_b)
    return RelationshipEdge(tag1_id=tag1_id, tag2_id=tag2_id, similarity=similarity)


class EdgeSetBuilder:
    """
    Accumulates edges above a threshold, at most one per unordered pair.

    The first similarity offered for a pair wins; later offers for the
    same pair (in either orientation) are ignored.
    """

    def __init__(self, min_similarity: float) -> None:
        self.min_similarity = min_similarity
        self._edges: dict[tuple[UUID, UUID], RelationshipEdge] = {}

    def offer(self, tag_a: UUID, tag_b: UUID, similarity: float) -> bool:
        """Add the edge if it clears the threshold; return True if kept."""
        if tag_a == tag_b or similarity <= self.min_similarity:
            return False
        key = canonical_pair(tag_a, tag_b)
        if key in self._edges:
            return False
        self._edges[key] = make_edge(tag_a, tag_b, similarity)
        return True

    def __len__(self) -> int:
        return len(self._edges)

    def edges(self) -> list[RelationshipEdge]:
        """Edges in insertion order."""
        return list(self._edges.values())


class RelationshipStrategy(Protocol):
    """A named way of deriving tag relationship edges."""

    name: str

    async def compute(self, tags: Sequence[Tag]) -> list[RelationshipEdge]: ...


class ExactRelationshipStrategy:
    """Judge-scored edges over every pair (the exact path)."""

    name = "exact"

    def __init__(
        self,
        scorer: PairwiseScorer,
        min_similarity: float = EXACT_MIN_SIMILARITY,
    ) -> None:
        self._scorer = scorer
        self.min_similarity = min_similarity

    def validate(self, tags: Sequence[Tag]) -> None:
        """Raise ``TooManyTags`` without touching the judge."""
        self._scorer.check_size(tags)

    async def compute(self, tags: Sequence[Tag]) -> list[RelationshipEdge]:
        self.validate(tags)
        if len(tags) <= 1:
            return []

        builder = EdgeSetBuilder(self.min_similarity)
        for scored in await self._scorer.score_all(tags):
            builder.offer(scored.first.id, scored.second.id, scored.similarity)

        logger.info("Exact path: %d edges from %d tags", len(builder), len(tags))
        return builder.edges()


class FastRelationshipStrategy:
    """
    Embedding nearest-neighbor edges (the fast path).

    Args:
        embedder: Batch embedding provider.
        min_similarity: Edges at or below this are dropped.
        metric: Distance metric of the ephemeral index.
        max_distance: Calibration constant for the ``l2`` metric.
    """

    name = "fast"

    def __init__(
        self,
        embedder: EmbeddingProvider,
        min_similarity: float = FAST_MIN_SIMILARITY,
        metric: Metric = "cosine",
        max_distance: float = DEFAULT_MAX_DISTANCE,
    ) -> None:
        self._embedder = embedder
        self.min_similarity = min_similarity
        self.metric = metric
        self.max_distance = max_distance

    async def compute(self, tags: Sequence[Tag]) -> list[RelationshipEdge]:
        """
        Raises:
            ProviderCallFailure: If the embedding batch fails; no edges
                are produced from a partial vector set.
        """
        if len(tags) <= 1:
            return []

        vectors = await self._embedder.embed_batch([tag.name for tag in tags])
        if len(vectors) != len(tags):
            raise ProviderCallFailure(
                f"Embedding provider returned {len(vectors)} vectors for {len(tags)} tags"
            )

        ids = [tag.id for tag in tags]
        index = SimilarityIndex.build(
            ids, vectors, metric=self.metric, max_distance=self.max_distance
        )

        builder = EdgeSetBuilder(self.min_similarity)
        for tag in tags:
            for neighbor in index.neighbors_of(tag.id, k=len(tags) - 1):
                # Each pair shows up from both ends; emit it from the lower id only
                if not tag.id < neighbor.id:
                    continue
                builder.offer(tag.id, neighbor.id, index.to_similarity(neighbor.distance))

        logger.info("Fast path: %d edges from %d tags", len(builder), len(tags))
        return builder.edges()
