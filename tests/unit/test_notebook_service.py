"""
Notebook Service Unit Tests

Tests for the orchestrator with mocked repositories and fake providers.
The session is never touched by the service itself, so None stands in.
"""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from notegraph.core.config import Settings
from notegraph.core.errors import EmptyQuery, StoreWriteFailure, TooManyTags
from notegraph.services.notebook import NotebookService
from tests.fakes import FakeEmbedder, FakeJudge

SESSION = None


def _settings(**overrides) -> Settings:
    base = {
        "POSTGRES_USER": "u",
        "POSTGRES_PASSWORD": "p",
        "POSTGRES_DB": "d",
        "EXACT_CALL_DELAY_MS": 0,
    }
    return Settings(**{**base, **overrides})


def _tag_record(i: int, name: str) -> SimpleNamespace:
    return SimpleNamespace(id=uuid.UUID(int=i), name=name)


def _note_record(title: str, content: str, tag_names: list[str]) -> SimpleNamespace:
    now = datetime.now(timezone.utc)
    return SimpleNamespace(
        id=uuid.uuid4(),
        title=title,
        content=content,
        tags=[SimpleNamespace(name=n) for n in tag_names],
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def tags_repo():
    repo = MagicMock()
    repo.list_tags = AsyncMock(
        return_value=[
            _tag_record(1, "cooking"),
            _tag_record(2, "baking"),
            _tag_record(3, "finance"),
        ]
    )
    repo.upsert_relationship = AsyncMock()
    repo.list_relationships = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def notes_repo():
    repo = MagicMock()
    repo.list_notes_with_tags = AsyncMock(return_value=[])
    repo.get_by_id = AsyncMock(return_value=None)
    repo.delete = AsyncMock()
    return repo


def _service(notes_repo, tags_repo, *, embedder=None, judge=None, tagger=None, **config):
    return NotebookService(
        _settings(**config),
        embedder=embedder or FakeEmbedder({}),
        judge=judge or FakeJudge(),
        tagger=tagger or AsyncMock(),
        notes=notes_repo,
        tags=tags_repo,
    )


# =============================================================================
# Relationships
# =============================================================================


@pytest.mark.asyncio
async def test_exact_recompute_upserts_kept_edges(notes_repo, tags_repo):
    judge = FakeJudge({("cooking", "baking"): 0.8, ("cooking", "finance"): 0.05})
    notebook = _service(notes_repo, tags_repo, judge=judge)

    outcome = await notebook.recompute_relationships_exact(SESSION)

    assert outcome.count == 1
    tags_repo.upsert_relationship.assert_awaited_once_with(
        SESSION, uuid.UUID(int=1), uuid.UUID(int=2), 0.8
    )


@pytest.mark.asyncio
async def test_fast_recompute_upserts_kept_edges(notes_repo, tags_repo):
    embedder = FakeEmbedder(
        {"cooking": [1.0, 0.0, 0.0], "baking": [0.9, 0.1, 0.0], "finance": [0.0, 0.0, 1.0]}
    )
    notebook = _service(notes_repo, tags_repo, embedder=embedder)

    outcome = await notebook.recompute_relationships_fast(SESSION)

    assert outcome.count == 1
    assert len(embedder.calls) == 1
    args = tags_repo.upsert_relationship.await_args.args
    assert args[1:3] == (uuid.UUID(int=1), uuid.UUID(int=2))


@pytest.mark.asyncio
async def test_no_tags_short_circuits(notes_repo, tags_repo):
    tags_repo.list_tags.return_value = []
    judge = FakeJudge()
    embedder = FakeEmbedder({})
    notebook = _service(notes_repo, tags_repo, judge=judge, embedder=embedder)

    exact = await notebook.recompute_relationships_exact(SESSION)
    fast = await notebook.recompute_relationships_fast(SESSION)

    assert exact.count == fast.count == 0
    assert judge.calls == [] and embedder.calls == []
    tags_repo.upsert_relationship.assert_not_awaited()


@pytest.mark.asyncio
async def test_exact_ceiling_writes_nothing(notes_repo, tags_repo):
    tags_repo.list_tags.return_value = [_tag_record(i + 1, f"t{i}") for i in range(3)]
    judge = FakeJudge()
    notebook = _service(notes_repo, tags_repo, judge=judge, EXACT_MAX_TAGS=2)

    with pytest.raises(TooManyTags):
        await notebook.recompute_relationships_exact(SESSION)

    assert judge.calls == []
    tags_repo.upsert_relationship.assert_not_awaited()


@pytest.mark.asyncio
async def test_store_failure_propagates_after_partial_write(notes_repo, tags_repo):
    judge = FakeJudge(
        {("cooking", "baking"): 0.8, ("cooking", "finance"): 0.5, ("baking", "finance"): 0.4}
    )
    tags_repo.upsert_relationship.side_effect = [None, StoreWriteFailure("disk full")]
    notebook = _service(notes_repo, tags_repo, judge=judge)

    with pytest.raises(StoreWriteFailure):
        await notebook.recompute_relationships_exact(SESSION)

    assert tags_repo.upsert_relationship.await_count == 2


@pytest.mark.asyncio
async def test_list_relationships_uses_configured_threshold(notes_repo, tags_repo):
    notebook = _service(notes_repo, tags_repo, RELATIONSHIPS_MIN_SIMILARITY=0.4)

    await notebook.list_relationships(SESSION)
    await notebook.list_relationships(SESSION, min_similarity=0.0)

    thresholds = [call.args[1] for call in tags_repo.list_relationships.await_args_list]
    assert thresholds == [0.4, 0.0]


# =============================================================================
# Notes and search
# =============================================================================


@pytest.mark.asyncio
async def test_create_note_tags_then_stores(notes_repo, tags_repo):
    tagger = AsyncMock()
    tagger.generate_tags.return_value = ["baking"]
    notes_repo.create_with_tags = AsyncMock(
        return_value=_note_record("Bread", "Sourdough", ["baking"])
    )
    notebook = _service(notes_repo, tags_repo, tagger=tagger)

    note = await notebook.create_note(SESSION, "Bread", "Sourdough")

    assert note.tags == ["baking"]
    notes_repo.create_with_tags.assert_awaited_once_with(
        SESSION, title="Bread", content="Sourdough", tag_names=["baking"]
    )


@pytest.mark.asyncio
async def test_search_blank_query_skips_store_and_provider(notes_repo, tags_repo):
    embedder = FakeEmbedder({})
    notebook = _service(notes_repo, tags_repo, embedder=embedder)

    with pytest.raises(EmptyQuery):
        await notebook.search_notes(SESSION, "  ")

    notes_repo.list_notes_with_tags.assert_not_awaited()
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_search_ranks_stored_notes(notes_repo, tags_repo):
    bread = _note_record("Bread", "Sourdough", ["baking"])
    money = _note_record("Money", "Budget", ["finance"])
    notes_repo.list_notes_with_tags.return_value = [bread, money]
    embedder = FakeEmbedder(
        {"Bread Sourdough baking": [0.0, 1.0], "Money Budget finance": [1.0, 0.0], "loaf": [0.1, 1.0]}
    )
    notebook = _service(notes_repo, tags_repo, embedder=embedder)

    results = await notebook.search_notes(SESSION, "loaf")

    assert [r.id for r in results] == [bread.id]


@pytest.mark.asyncio
async def test_delete_missing_note(notes_repo, tags_repo):
    notebook = _service(notes_repo, tags_repo)

    assert await notebook.delete_note(SESSION, uuid.uuid4()) is False
    notes_repo.delete.assert_not_awaited()
