"""Repositories package."""

from notegraph.repositories.notes import NoteRepository
from notegraph.repositories.tags import TagRepository

__all__ = [
    "NoteRepository",
    "TagRepository",
]
