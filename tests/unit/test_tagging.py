"""
Tag Generation Unit Tests

Tests for parsing model replies into normalized tag names.
"""

from unittest.mock import AsyncMock

import pytest

from notegraph.core.errors import LLMCallError
from notegraph.services.tagging import TagGenerator, normalize_tag_names, parse_tag_list


def test_parse_bare_array():
    assert parse_tag_list('["cooking", "baking"]') == ["cooking", "baking"]


def test_parse_fenced_array():
    reply = 'Here you go:\n```json\n["python", "async"]\n```'
    assert parse_tag_list(reply) == ["python", "async"]


@pytest.mark.parametrize("reply", ["cooking, baking", '{"tags": ["a"]}', "", "[unclosed"])
def test_parse_garbage_yields_nothing(reply):
    assert parse_tag_list(reply) == []


def test_normalize_tag_names():
    names = ["  Cooking ", "#baking", "cooking", "", 42, None, "x" * 101, "Meal Prep"]
    assert normalize_tag_names(names) == ["cooking", "baking", "meal prep"]


@pytest.mark.asyncio
async def test_generate_tags():
    llm = AsyncMock()
    llm.complete.return_value = '["Sourdough", "baking", "Baking"]'

    tags = await TagGenerator(llm).generate_tags("Feed the starter")

    assert tags == ["sourdough", "baking"]
    kwargs = llm.complete.await_args.kwargs
    assert kwargs["prompt"].endswith("Feed the starter")
    assert kwargs["max_tokens"] == 150
    assert kwargs["temperature"] == 0.7


@pytest.mark.asyncio
async def test_generate_tags_failure_yields_no_tags():
    llm = AsyncMock()
    llm.complete.side_effect = LLMCallError("Ollama unreachable")

    assert await TagGenerator(llm).generate_tags("anything") == []
