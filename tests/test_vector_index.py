"""
Similarity Index Tests

Tests for the ephemeral nearest-neighbor index: ordering, self
exclusion, distance-to-similarity conversion and input validation.
"""

import math

import pytest

from notegraph.services.vector_index import SimilarityIndex


def test_query_returns_nearest_first():
    index = SimilarityIndex.build(["a", "b", "c"], [[1, 0], [0.8, 0.6], [0, 1]])

    hits = index.query([1, 0], k=3)

    assert [hit.id for hit in hits] == ["a", "b", "c"]
    distances = [hit.distance for hit in hits]
    assert distances == sorted(distances)
    assert distances[0] == pytest.approx(0.0)


def test_query_caps_at_k():
    index = SimilarityIndex.build(["a", "b", "c"], [[1, 0], [0.8, 0.6], [0, 1]])

    assert len(index.query([1, 0], k=2)) == 2
    assert index.query([1, 0], k=0) == []


def test_neighbors_of_excludes_self():
    index = SimilarityIndex.build(["a", "b", "c"], [[1, 0], [0.8, 0.6], [0, 1]])

    hits = index.neighbors_of("b", k=2)

    assert "b" not in [hit.id for hit in hits]
    assert len(hits) == 2


@pytest.mark.parametrize("count", [0, 1])
def test_neighbors_of_tiny_index_is_empty(count):
    """An index with at most one member has no neighbor pairs."""
    ids = ["a", "b"][:count]
    vectors = [[1.0, 0.0], [0.0, 1.0]][:count]
    index = SimilarityIndex.build(ids, vectors)

    if count:
        assert index.neighbors_of("a", k=5) == []
    assert len(index) == count


def test_empty_index_query_is_empty():
    index = SimilarityIndex.build([], [])
    assert index.query([1.0, 0.0], k=3) == []


def test_vectors_are_normalized_before_comparison():
    """Magnitude does not matter, only direction."""
    index = SimilarityIndex.build(["small", "big"], [[1, 0], [50, 0]])

    hit = index.neighbors_of("small", k=1)[0]

    assert hit.id == "big"
    assert index.to_similarity(hit.distance) == pytest.approx(1.0)


def test_cosine_similarity_rule():
    index = SimilarityIndex.build(["x"], [[1.0]], metric="cosine")

    assert index.to_similarity(0.0) == 1.0
    assert index.to_similarity(0.25) == pytest.approx(0.75)
    # Opposite vectors have distance 2: clamped at zero
    assert index.to_similarity(2.0) == 0.0


def test_l2_similarity_rule():
    index = SimilarityIndex.build(["a", "b"], [[1, 0], [0, 1]], metric="l2", max_distance=2.0)

    hit = index.neighbors_of("a", k=1)[0]

    assert hit.distance == pytest.approx(math.sqrt(2))
    assert index.to_similarity(hit.distance) == pytest.approx(1 - math.sqrt(2) / 2)


def test_similarity_is_clamped():
    index = SimilarityIndex.build(["x"], [[1.0]], metric="l2", max_distance=1.0)

    assert index.to_similarity(1.5) == 0.0
    assert index.to_similarity(-0.1) == 1.0


def test_ties_keep_insertion_order():
    index = SimilarityIndex.build(["first", "second", "probe"], [[0, 1], [0, 1], [1, 0]])

    hits = index.query([0, 1], k=2)

    assert [hit.id for hit in hits] == ["first", "second"]


def test_build_rejects_mismatched_inputs():
    with pytest.raises(ValueError, match="ids"):
        SimilarityIndex.build(["a", "b"], [[1, 0]])
    with pytest.raises(ValueError, match="unique"):
        SimilarityIndex.build(["a", "a"], [[1, 0], [0, 1]])
    with pytest.raises(ValueError, match="dimension"):
        SimilarityIndex.build(["a", "b"], [[1, 0], [0, 1, 0]])
    with pytest.raises(ValueError, match="metric"):
        SimilarityIndex.build(["a"], [[1, 0]], metric="manhattan")  # type: ignore[arg-type]


def test_query_dimension_mismatch():
    index = SimilarityIndex.build(["a"], [[1, 0]])
    with pytest.raises(ValueError, match="dims"):
        index.query([1, 0, 0], k=1)
