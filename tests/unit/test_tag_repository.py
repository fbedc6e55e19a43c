"""
Tag Repository Unit Tests

Tests for the edge upsert against a mocked AsyncSession. The generated
SQL is compiled with the PostgreSQL dialect; no database needed.
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from notegraph.core.errors import StoreWriteFailure
from notegraph.repositories.tags import TagRepository

LOW = uuid.UUID(int=1)
HIGH = uuid.UUID(int=2)


@pytest.mark.asyncio
async def test_upsert_canonicalizes_and_commits():
    session = AsyncMock()

    await TagRepository().upsert_relationship(session, HIGH, LOW, 0.75)

    stmt = session.execute.await_args.args[0]
    compiled = stmt.compile(dialect=postgresql.dialect())
    assert "ON CONFLICT (tag1_id, tag2_id) DO UPDATE" in str(compiled)
    assert compiled.params["tag1_id"] == LOW
    assert compiled.params["tag2_id"] == HIGH
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_upsert_rejects_self_edge():
    session = AsyncMock()

    with pytest.raises(ValueError):
        await TagRepository().upsert_relationship(session, LOW, LOW, 1.0)
    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_upsert_failure_rolls_back():
    session = AsyncMock()
    session.execute.side_effect = OperationalError("INSERT", {}, Exception("connection lost"))

    with pytest.raises(StoreWriteFailure):
        await TagRepository().upsert_relationship(session, LOW, HIGH, 0.5)

    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()
