"""
Note Auto-Tagging

Asks the language model for 3-7 tags describing a note. Tagging is
best effort: any upstream or parse failure yields no tags, and the
note is still stored.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from typing import Any, Final

from notegraph.core.errors import LLMCallError
from notegraph.services.llm import LLMService

logger = logging.getLogger(__name__)

SYSTEM_PROMPT: Final[str] = (
    "You are a helpful assistant that generates relevant tags for notes. "
    "Return only a JSON array of strings representing tags, no other text."
)

MAX_TAG_LENGTH: Final[int] = 100

_FENCE_RE: Final = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)


def normalize_tag_names(names: Iterable[Any]) -> list[str]:
    """
    Strip, lower-case and de-duplicate tag names, preserving order.

    Non-strings, empty names and names longer than the column allows
    are dropped.
    """
    out: list[str] = []
    seen: set[str] = set()
    for name in names:
        if not isinstance(name, str):
            continue
        x = name.strip().lstrip("#").strip().lower()
        if not x or len(x) > MAX_TAG_LENGTH:
            continue
        if x not in seen:
            seen.add(x)
            out.append(x)
    return out


def parse_tag_list(text: str) -> list[Any]:
    """
    Extract a JSON array from a model reply.

    Accepts a bare array or one wrapped in a markdown code fence.
    Anything else yields an empty list.
    """
    candidates = [text.strip()]
    match = _FENCE_RE.search(text)
    if match:
        candidates.append(match.group(1).strip())

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, list):
            return parsed
    return []


class TagGenerator:
    """Generates tag names for note content via the LLM service."""

    def __init__(self, llm: LLMService | None = None) -> None:
        self._llm = llm or LLMService()

    async def generate_tags(self, content: str) -> list[str]:
        """Return normalized tag names for ``content`` ([] on failure)."""
        try:
            raw = await self._llm.complete(
                system=SYSTEM_PROMPT,
                prompt=f"Generate 3-7 relevant tags for this note content: {content}",
                max_tokens=150,
                temperature=0.7,
            )
        except LLMCallError as e:
            logger.warning("Tag generation failed, storing note untagged: %s", e)
            return []

        tags = normalize_tag_names(parse_tag_list(raw))
        if not tags:
            logger.info("Model reply held no usable tags: %r", raw[:80])
        return tags
