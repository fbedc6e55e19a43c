"""
Similarity Judge

Scores the conceptual similarity of two short texts with one prompted
language model call. Used by the exact relationship path.

Failure policy: the judge never raises. Upstream errors, non-numeric
replies and NaN all become 0.0; numeric replies outside [0, 1] are
clamped. One bad pair therefore costs that pair's accuracy, never the
whole batch.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Final, Protocol

from notegraph.core.errors import JudgeCallFailure, LLMCallError
from notegraph.services.llm import LLMService

logger = logging.getLogger(__name__)

SYSTEM_PROMPT: Final[str] = (
    "Rate the conceptual similarity between two tags on a scale of 0.0 to 1.0. "
    "Return only the number, no other text."
)

# Leading number, e.g. "0.8", ".75", "1", "1e-1"; anything else is unparseable
_NUMBER_RE: Final = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


class PairScorer(Protocol):
    """The judge capability: (text, text) -> similarity in [0, 1]."""

    async def score_pair(self, text_a: str, text_b: str) -> float: ...


def parse_score(raw: str) -> float:
    """
    Parse a judge reply into a similarity.

    Raises:
        JudgeCallFailure: If the reply does not start with a number.
    """
    match = _NUMBER_RE.match(raw)
    if match is None:
        raise JudgeCallFailure(f"Non-numeric judge reply: {raw[:40]!r}")
    value = float(match.group(1))
    if math.isnan(value):
        raise JudgeCallFailure("Judge reply is NaN")
    return max(0.0, min(1.0, value))


class SimilarityJudge:
    """
    LLM-backed implementation of the judge capability.

    Usage::

        judge = SimilarityJudge(LLMService())
        score = await judge.score_pair("cooking", "baking")  # e.g. 0.8
    """

    def __init__(self, llm: LLMService | None = None) -> None:
        self._llm = llm or LLMService()

    async def score_pair(self, text_a: str, text_b: str) -> float:
        """Similarity of two texts in [0, 1]; 0.0 on any failure."""
        try:
            raw = await self._llm.complete(
                system=SYSTEM_PROMPT,
                prompt=f'Rate similarity between "{text_a}" and "{text_b}"',
                max_tokens=10,
                temperature=0.1,
            )
            return parse_score(raw)
        except (LLMCallError, JudgeCallFailure) as e:
            logger.warning("Judge failed for (%r, %r), scoring 0: %s", text_a, text_b, e)
            return 0.0
