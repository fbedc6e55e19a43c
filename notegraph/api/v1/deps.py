"""
Shared API Dependencies

FastAPI dependencies and the error-to-HTTP mapping used by every
notegraph router.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import NoReturn

from fastapi import HTTPException, status

from notegraph.core.errors import (
    NotegraphError,
    ProviderCallFailure,
    ValidationError,
)
from notegraph.services.notebook import NotebookService

logger = logging.getLogger(__name__)


@lru_cache
def get_notebook() -> NotebookService:
    """
    FastAPI dependency — returns the process-wide NotebookService.

    The service holds no per-request state (sessions are passed per call),
    so one instance and its provider clients serve every request.
    """
    return NotebookService()


def raise_http(exc: NotegraphError, action: str) -> NoReturn:
    """
    Translate a service error into an HTTPException.

    Validation errors carry their specific message; everything else gets
    a generic one (502 for the embedding provider, 500 otherwise) and
    is logged with its traceback.
    """
    if isinstance(exc, ValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc

    logger.error("Failed to %s: %s", action, exc, exc_info=exc)
    if isinstance(exc, ProviderCallFailure):
        # 502 Bad Gateway: upstream AI service failure
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to {action}"
        ) from exc
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}"
    ) from exc
