"""
Pairwise Scorer

Exact O(n^2) similarity scoring of every unordered tag pair through
the judge capability. Each pair costs one language model round trip,
so the scorer enforces two guardrails:

    - A ceiling on the number of tags (``TooManyTags`` beyond it,
      checked before any judge call).
    - Batching and pacing: pairs are grouped into fixed-size batches,
      batches run strictly one after another, and calls inside a batch
      run concurrently with their starts staggered by a fixed delay.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Sequence
from typing import NamedTuple, TypeVar

from notegraph.core.errors import TooManyTags
from notegraph.models.schemas import Tag
from notegraph.services.judge import PairScorer

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_TAGS: int = 50
DEFAULT_BATCH_SIZE: int = 5
DEFAULT_CALL_DELAY: float = 0.1  # seconds


class TagPair(NamedTuple):
    first: Tag
    second: Tag


class ScoredPair(NamedTuple):
    """One cell of the (upper-triangular) similarity matrix."""

    first: Tag
    second: Tag
    similarity: float


def candidate_pairs(tags: Sequence[Tag]) -> list[TagPair]:
    """Every unordered pair exactly once, no self-pairs: n(n-1)/2 pairs."""
    return [
        TagPair(tags[i], tags[j])
        for i in range(len(tags))
        for j in range(i + 1, len(tags))
    ]


def batched(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Consecutive slices of ``items`` with at most ``size`` elements."""
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start : start + size]


class PairwiseScorer:
    """
    Batched, paced pairwise comparator over a tag set.

    Usage::

        scorer = PairwiseScorer(SimilarityJudge())
        scorer.check_size(tags)              # raises TooManyTags
        matrix = await scorer.score_all(tags)

    Args:
        judge: Judge capability scoring two texts.
        max_tags: Largest accepted tag count.
        batch_size: Pairs per batch.
        call_delay: Seconds between call starts inside a batch.
    """

    def __init__(
        self,
        judge: PairScorer,
        max_tags: int = DEFAULT_MAX_TAGS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        call_delay: float = DEFAULT_CALL_DELAY,
    ) -> None:
        if batch_size < 1:
            raise ValueError("Batch size must be at least 1")
        self._judge = judge
        self.max_tags = max_tags
        self.batch_size = batch_size
        self.call_delay = call_delay

    def check_size(self, tags: Sequence[Tag]) -> None:
        """Raise ``TooManyTags`` if the tag set exceeds the ceiling."""
        if len(tags) > self.max_tags:
            raise TooManyTags(len(tags), self.max_tags)

    async def score_all(self, tags: Sequence[Tag]) -> list[ScoredPair]:
        """
        Score every unordered pair of ``tags``.

        Returns:
            One ScoredPair per candidate pair, in pair enumeration order.
            Pairs whose judge call failed carry similarity 0.0.

        Raises:
            TooManyTags: Before any judge call, if over the ceiling.
        """
        self.check_size(tags)
        pairs = candidate_pairs(tags)
        if not pairs:
            return []

        total_batches = -(-len(pairs) // self.batch_size)
        logger.info(
            "Scoring %d tag pairs in %d batches of %d",
            len(pairs),
            total_batches,
            self.batch_size,
        )

        scored: list[ScoredPair] = []
        for number, batch in enumerate(batched(pairs, self.batch_size), start=1):
            similarities = await asyncio.gather(
                *(self._score_one(pair, position) for position, pair in enumerate(batch))
            )
            scored.extend(
                ScoredPair(pair.first, pair.second, similarity)
                for pair, similarity in zip(batch, similarities)
            )
            logger.debug("Processed batch %d/%d", number, total_batches)

        return scored

    async def _score_one(self, pair: TagPair, position: int) -> float:
        """Score one pair after its staggered delay; failures score 0.0."""
        if self.call_delay > 0:
            await asyncio.sleep(self.call_delay * (position + 1))
        try:
            return await self._judge.score_pair(pair.first.name, pair.second.name)
        except Exception:  # judge implementations are injected; absorb anything
            logger.exception(
                "Error comparing %r and %r, scoring 0", pair.first.name, pair.second.name
            )
            return 0.0
