"""
Vector Similarity Index

Ephemeral exact nearest-neighbor index over one batch of vectors.
Built fresh for every relationship calculation or search call and
discarded afterwards: nothing is persisted or updated incrementally.

Distances:
    - ``cosine``: 1 - cosine similarity, range [0, 2].
    - ``l2``: Euclidean distance on L2-normalized vectors, range [0, 2].

Similarity is derived from a distance with a fixed, documented rule
(see ``SimilarityIndex.to_similarity``) and clamped into [0, 1].
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Sequence
from typing import Generic, Literal, NamedTuple, TypeVar

import numpy as np

logger = logging.getLogger(__name__)

IdT = TypeVar("IdT", bound=Hashable)
Metric = Literal["cosine", "l2"]

DEFAULT_MAX_DISTANCE: float = 2.0


class Neighbor(NamedTuple, Generic[IdT]):
    """One query hit: indexed id and its distance to the query vector."""

    id: IdT
    distance: float


def _normalize(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=-1, keepdims=True)
    # Zero vectors stay zero instead of becoming NaN
    return matrix / np.where(norms == 0, 1.0, norms)


class SimilarityIndex(Generic[IdT]):
    """
    Exact k-nearest-neighbor search over an in-memory matrix.

    Usage::

        index = SimilarityIndex.build(ids, vectors)
        for hit in index.query(vectors[0], k=len(ids) - 1):
            print(hit.id, index.to_similarity(hit.distance))

    Args:
        ids: Identifier per row, unique.
        matrix: (N, D) array of L2-normalized vectors.
        metric: Distance metric.
        max_distance: Calibration constant for the ``l2`` metric.
    """

    def __init__(
        self,
        ids: Sequence[IdT],
        matrix: np.ndarray,
        metric: Metric = "cosine",
        max_distance: float = DEFAULT_MAX_DISTANCE,
    ) -> None:
        self._ids = list(ids)
        self._matrix = matrix
        self.metric = metric
        self.max_distance = max_distance

    @classmethod
    def build(
        cls,
        ids: Sequence[IdT],
        vectors: Sequence[Sequence[float]],
        metric: Metric = "cosine",
        max_distance: float = DEFAULT_MAX_DISTANCE,
    ) -> SimilarityIndex[IdT]:
        """
        Build an index over ``vectors``, row ``i`` labelled ``ids[i]``.

        Raises:
            ValueError: If ids and vectors differ in length, ids repeat,
                or vectors differ in dimension.
        """
        if len(ids) != len(vectors):
            raise ValueError(f"Got {len(ids)} ids for {len(vectors)} vectors")
        if len(set(ids)) != len(ids):
            raise ValueError("Index ids must be unique")
        if metric not in ("cosine", "l2"):
            raise ValueError(f"Unknown metric: {metric!r}")

        if not vectors:
            matrix = np.empty((0, 0), dtype=np.float64)
        else:
            dims = {len(v) for v in vectors}
            if len(dims) != 1:
                raise ValueError(f"Vectors must share one dimension, got {sorted(dims)}")
            matrix = _normalize(np.asarray(vectors, dtype=np.float64))

        logger.debug("Built %s index over %d vectors", metric, len(ids))
        return cls(ids, matrix, metric=metric, max_distance=max_distance)

    def __len__(self) -> int:
        return len(self._ids)

    def _distances(self, query_vector: Sequence[float]) -> np.ndarray:
        query = _normalize(np.asarray(query_vector, dtype=np.float64))
        if query.shape[-1] != self._matrix.shape[1]:
            raise ValueError(
                f"Query has {query.shape[-1]} dims, index has {self._matrix.shape[1]}"
            )
        cosine = np.clip(self._matrix @ query, -1.0, 1.0)
        if self.metric == "cosine":
            return 1.0 - cosine
        # |a - b|^2 = 2 - 2cos for unit vectors
        return np.sqrt(np.maximum(2.0 - 2.0 * cosine, 0.0))

    def query(
        self,
        query_vector: Sequence[float],
        k: int,
        exclude: IdT | None = None,
    ) -> list[Neighbor[IdT]]:
        """
        Return up to ``k`` nearest indexed ids, nearest first.

        Args:
            query_vector: Vector in the same space as the index.
            k: Maximum number of neighbors.
            exclude: Optional id to leave out (the query's own row when
                querying an index with one of its members).

        Returns:
            Neighbors sorted ascending by distance; ties keep index order.
        """
        if k <= 0 or len(self._ids) == 0:
            return []

        distances = self._distances(query_vector)
        order = np.argsort(distances, kind="stable")

        hits: list[Neighbor[IdT]] = []
        for row in order:
            item_id = self._ids[row]
            if exclude is not None and item_id == exclude:
                continue
            hits.append(Neighbor(item_id, float(distances[row])))
            if len(hits) == k:
                break
        return hits

    def neighbors_of(self, item_id: IdT, k: int) -> list[Neighbor[IdT]]:
        """Nearest neighbors of an indexed member, itself excluded."""
        if len(self._ids) <= 1:
            return []
        row = self._ids.index(item_id)
        return self.query(self._matrix[row], k, exclude=item_id)

    def to_similarity(self, distance: float) -> float:
        """
        Convert a distance from this index into a similarity in [0, 1].

        cosine: ``1 - distance``
        l2:     ``1 - distance / max_distance``
        """
        if self.metric == "cosine":
            similarity = 1.0 - distance
        else:
            similarity = 1.0 - distance / self.max_distance
        return min(1.0, max(0.0, similarity))
