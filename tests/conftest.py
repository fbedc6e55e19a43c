"""
Pytest Configuration and Fixtures

Shared fixtures for the notegraph test suite. Unit tests run offline
with deterministic fakes; integration tests (marked ``integration``)
need a running API and Postgres.
"""

import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Test environment defaults — MUST be before any notegraph imports.
#
# 1. Load .env first so that local credentials are available.
# 2. setdefault fills in anything still missing (CI runners, fresh clones
#    without a .env file) so that pydantic Settings validation doesn't crash.
# ---------------------------------------------------------------------------
load_dotenv()  # .env → os.environ (no-op if file is missing)

_test_env = {
    "POSTGRES_USER": "notegraph",
    "POSTGRES_PASSWORD": "notegraph_password",
    "POSTGRES_HOST": "localhost",
    "POSTGRES_PORT": "5432",
    "POSTGRES_DB": "notegraph_db",
    "OPENAI_API_KEY": "mock",
}
for _key, _value in _test_env.items():
    os.environ.setdefault(_key, _value)

# ---------------------------------------------------------------------------
# Imports (safe now that env vars are set)
# ---------------------------------------------------------------------------
import uuid  # noqa: E402
from collections.abc import Callable  # noqa: E402

import pytest  # noqa: E402

from notegraph.models.schemas import Note, Tag  # noqa: E402


def _ordered_ids(count: int) -> list[uuid.UUID]:
    """UUIDs that sort in creation order (makes canonical order predictable)."""
    return [uuid.UUID(int=i + 1) for i in range(count)]


@pytest.fixture
def make_tags() -> Callable[..., list[Tag]]:
    """Build Tags with ascending ids: make_tags("a", "b") -> ids 1, 2."""

    def _make(*names: str) -> list[Tag]:
        return [Tag(id=tag_id, name=name) for tag_id, name in zip(_ordered_ids(len(names)), names)]

    return _make


@pytest.fixture
def make_note() -> Callable[..., Note]:
    """Build a Note with a random id."""

    def _make(title: str, content: str = "", tags: list[str] | None = None) -> Note:
        return Note(id=uuid.uuid4(), title=title, content=content, tags=tags or [])

    return _make
