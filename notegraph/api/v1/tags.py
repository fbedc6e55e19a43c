"""
Tags API Router

Endpoints:
    GET  /                               — List tags.
    GET  /relationships                  — Stored edges above a threshold.
    POST /calculate-relationships        — Exact path (LLM judge, <= 50 tags).
    POST /calculate-relationships-fast   — Fast path (embeddings + index).

Both calculation endpoints upsert edges into the same store; a later run
on either path replaces the similarity of every pair it emits.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.api.v1.deps import get_notebook, raise_http
from notegraph.core.database import get_db
from notegraph.core.errors import NotegraphError
from notegraph.models.schemas import RelationshipsComputed, Tag, TagRelationship
from notegraph.schemas.api import ErrorResponse, RelationshipsResponse
from notegraph.services.notebook import NotebookService

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(outcome: RelationshipsComputed) -> RelationshipsResponse:
    if outcome.count == 0:
        message = "No relationships found"
    else:
        message = "Relationships calculated successfully"
    return RelationshipsResponse(message=message, count=outcome.count, edges=outcome.edges)


@router.get("/", response_model=list[Tag])
async def read_tags(
    db: AsyncSession = Depends(get_db),
    notebook: NotebookService = Depends(get_notebook),
) -> list[Tag]:
    """List all tags by name."""
    return await notebook.list_tags(db)


@router.get("/relationships", response_model=list[TagRelationship])
async def read_relationships(
    min_similarity: float | None = Query(default=None, ge=0.0, le=1.0),
    db: AsyncSession = Depends(get_db),
    notebook: NotebookService = Depends(get_notebook),
) -> list[TagRelationship]:
    """Stored tag relationships, strongest first."""
    return await notebook.list_relationships(db, min_similarity)


@router.post(
    "/calculate-relationships",
    response_model=RelationshipsResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def calculate_relationships(
    db: AsyncSession = Depends(get_db),
    notebook: NotebookService = Depends(get_notebook),
) -> RelationshipsResponse:
    """
    Recompute tag relationships by asking the LLM to score every pair.

    Quadratic in the number of tags: rejected with 400 beyond the
    configured ceiling, before any model call.
    """
    try:
        outcome = await notebook.recompute_relationships_exact(db)
    except NotegraphError as e:
        raise_http(e, "calculate relationships")
    logger.info("Exact recomputation wrote %d edges", outcome.count)
    return _to_response(outcome)


@router.post(
    "/calculate-relationships-fast",
    response_model=RelationshipsResponse,
    responses={500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def calculate_relationships_fast(
    db: AsyncSession = Depends(get_db),
    notebook: NotebookService = Depends(get_notebook),
) -> RelationshipsResponse:
    """Recompute tag relationships from embedding nearest neighbors."""
    try:
        outcome = await notebook.recompute_relationships_fast(db)
    except NotegraphError as e:
        raise_http(e, "calculate relationships")
    logger.info("Fast recomputation wrote %d edges", outcome.count)
    return _to_response(outcome)
