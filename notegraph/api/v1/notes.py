"""
Notes API Router

Endpoints:
    GET    /                 — List notes with their tags (most recent first).
    POST   /                 — Create a note; tags are generated by the LLM.
    POST   /search           — Semantic search over all notes.
    GET    /by-tag/{name}    — Notes carrying a tag.
    GET    /{note_id}        — Single note.
    DELETE /{note_id}        — Delete a note (tag links go with it).
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.api.v1.deps import get_notebook, raise_http
from notegraph.core.database import get_db
from notegraph.core.errors import NotegraphError
from notegraph.models.schemas import Note, SearchResult
from notegraph.schemas.api import ErrorResponse, NoteCreate, SearchRequest
from notegraph.services.notebook import NotebookService

router = APIRouter()


@router.get("/", response_model=list[Note])
async def read_notes(
    db: AsyncSession = Depends(get_db),
    notebook: NotebookService = Depends(get_notebook),
) -> list[Note]:
    """List all notes with their tags, most recently updated first."""
    return await notebook.list_notes(db)


@router.post("/", response_model=Note, status_code=status.HTTP_201_CREATED)
async def create_note(
    note: NoteCreate,
    db: AsyncSession = Depends(get_db),
    notebook: NotebookService = Depends(get_notebook),
) -> Note:
    """
    Create a new note.

    Tags are generated from the content before the note is stored. If
    the language model is unavailable the note is stored without tags.
    """
    return await notebook.create_note(db, note.title, note.content)


@router.post(
    "/search",
    response_model=list[SearchResult],
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def search_notes(
    search_req: SearchRequest,
    db: AsyncSession = Depends(get_db),
    notebook: NotebookService = Depends(get_notebook),
) -> list[SearchResult]:
    """
    Semantic search using ephemeral embeddings.

    Embeds every note plus the query in one call, ranks notes by
    similarity and drops weak matches.

    Raises:
        HTTPException 400: Blank query.
        HTTPException 502: The embedding service is unavailable.
    """
    try:
        return await notebook.search_notes(db, search_req.query)
    except NotegraphError as e:
        raise_http(e, "perform semantic search")


@router.get("/by-tag/{tag_name}", response_model=list[Note])
async def read_notes_by_tag(
    tag_name: str,
    db: AsyncSession = Depends(get_db),
    notebook: NotebookService = Depends(get_notebook),
) -> list[Note]:
    """Notes linked to a tag. Unknown tags yield an empty list."""
    return await notebook.notes_by_tag(db, tag_name)


@router.get("/{note_id}", response_model=Note)
async def read_note(
    note_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    notebook: NotebookService = Depends(get_notebook),
) -> Note:
    """Retrieve a single note by ID."""
    note = await notebook.get_note(db, note_id)
    if note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
    return note


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    notebook: NotebookService = Depends(get_notebook),
) -> Response:
    """Delete a note. Its tags stay; only the links are removed."""
    if not await notebook.delete_note(db, note_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
