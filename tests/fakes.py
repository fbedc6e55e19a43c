"""
Deterministic test doubles for the provider boundaries.

FakeEmbedder and FakeJudge record every call so tests can assert on
call counts and argument order as well as results.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence

from notegraph.core.errors import ProviderCallFailure


class FakeEmbedder:
    """Looks vectors up by exact text; unknown texts are a test bug."""

    def __init__(
        self,
        vectors: Mapping[str, Sequence[float]],
        fail: bool = False,
    ) -> None:
        self.vectors = dict(vectors)
        self.fail = fail
        self.calls: list[list[str]] = []

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.fail:
            raise ProviderCallFailure("Embedding provider call failed")
        return [list(self.vectors[text]) for text in texts]


class FakeJudge:
    """
    Scores pairs from a table keyed by unordered name pairs.

    Pairs listed in ``fail_on`` raise instead of scoring; pairs missing
    from the table score 0.0.
    """

    def __init__(
        self,
        scores: Mapping[tuple[str, str], float] | None = None,
        fail_on: Sequence[tuple[str, str]] = (),
        latency: float = 0.0,
    ) -> None:
        self.scores = {frozenset(pair): value for pair, value in (scores or {}).items()}
        self.fail_on = {frozenset(pair) for pair in fail_on}
        self.latency = latency
        self.calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def score_pair(self, text_a: str, text_b: str) -> float:
        self.calls.append((text_a, text_b))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            key = frozenset((text_a, text_b))
            if key in self.fail_on:
                raise RuntimeError(f"judge exploded on {text_a}/{text_b}")
            return self.scores.get(key, 0.0)
        finally:
            self.in_flight -= 1
