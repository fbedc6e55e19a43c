"""
Embedding Providers

Maps an ordered batch of texts to an ordered batch of dense vectors.

Contract shared by every provider:
    - One vector per input text, in input order.
    - The batch fails as a unit: either every vector comes back or
      ``ProviderCallFailure`` is raised. Partial results never escape.
    - No caching: every call re-embeds all inputs.

Providers:
    - OpenAIEmbeddingProvider: text-embedding-3-small (1536 dims).
    - LocalEmbeddingProvider: sentence-transformers, runs in a worker thread.
    - MockEmbeddingProvider: deterministic hash-seeded vectors, for
      local development without API costs and for tests.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections.abc import Sequence
from typing import Any, ClassVar, Protocol

import numpy as np
from openai import AsyncOpenAI, OpenAIError

from notegraph.core.config import Settings, settings
from notegraph.core.errors import ProviderCallFailure

logger = logging.getLogger(__name__)

Vector = list[float]


class EmbeddingProvider(Protocol):
    """Anything that can embed an ordered batch of texts."""

    async def embed_batch(self, texts: Sequence[str]) -> list[Vector]: ...


def _check_batch(texts: Sequence[str], vectors: Sequence[Vector]) -> None:
    """Reject responses that would leave some inputs without a vector."""
    if len(vectors) != len(texts):
        raise ProviderCallFailure(
            f"Embedding provider returned {len(vectors)} vectors for {len(texts)} texts"
        )
    dims = {len(v) for v in vectors}
    if len(dims) > 1:
        raise ProviderCallFailure(f"Embedding provider returned mixed dimensions {dims}")


class OpenAIEmbeddingProvider:
    """
    Batch embeddings via the OpenAI embeddings endpoint.

    One ``embeddings.create`` call per batch, whatever its size, so a
    search (corpus + query) costs a single network round trip.

    Usage::

        provider = OpenAIEmbeddingProvider(api_key="sk-...")
        vectors = await provider.embed_batch(["cooking", "baking"])
        assert len(vectors) == 2 and len(vectors[0]) == 1536
    """

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        client: AsyncOpenAI | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._model = model
        # One bounded request per batch: the SDK retries twice by default
        self._client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def embed_batch(self, texts: Sequence[str]) -> list[Vector]:
        """
        Embed ``texts`` in one upstream call.

        Raises:
            ProviderCallFailure: If the API call errors or the response
                does not hold exactly one vector per input.
        """
        if not texts:
            return []

        # OpenAI recommends single-line input
        inputs = [text.replace("\n", " ") for text in texts]

        try:
            response = await self._client.embeddings.create(input=inputs, model=self._model)
        except OpenAIError as e:
            logger.error("OpenAI embedding call failed (%d texts): %s", len(inputs), e)
            raise ProviderCallFailure("Embedding provider call failed") from e

        # Items carry their input position; do not rely on response order
        items = sorted(response.data, key=lambda item: item.index)
        vectors = [list(item.embedding) for item in items]
        _check_batch(texts, vectors)

        logger.debug("Embedded %d texts with %s", len(vectors), self._model)
        return vectors


class LocalEmbeddingProvider:
    """
    Async embedding provider backed by a local sentence-transformers model.

    Models are loaded lazily on first use and cached at class level by
    name, so every provider instance in the process shares one copy.
    Inference is CPU-bound and runs in a thread pool to keep the event
    loop responsive.
    """

    _models: ClassVar[dict[str, Any]] = {}

    def __init__(self, model_name: str = "all-MiniLM-L6-v2") -> None:
        self._model_name = model_name

    def _get_model(self) -> Any:
        """
        Get or lazily initialize the sentence-transformers model.

        The import is deferred so that ``sentence_transformers`` is only
        required when this provider is actually selected.
        """
        cls = type(self)
        if self._model_name not in cls._models:
            from sentence_transformers import SentenceTransformer

            logger.info("Loading embedding model: %s ...", self._model_name)
            cls._models[self._model_name] = SentenceTransformer(self._model_name)
            logger.info("Embedding model loaded")
        return cls._models[self._model_name]

    @classmethod
    def reset(cls) -> None:
        """Drop cached models (tests, or to free memory)."""
        cls._models.clear()

    def _encode_sync(self, texts: list[str]) -> list[Vector]:
        """Synchronous batch encoding. Always call via ``asyncio.to_thread``."""
        embeddings = self._get_model().encode(texts, normalize_embeddings=True)
        result: list[Vector] = embeddings.tolist()
        return result

    async def embed_batch(self, texts: Sequence[str]) -> list[Vector]:
        if not texts:
            return []
        try:
            vectors = await asyncio.to_thread(self._encode_sync, list(texts))
        except Exception as e:  # model load or inference error
            logger.error("Local embedding failed (%d texts): %s", len(texts), e)
            raise ProviderCallFailure("Embedding provider call failed") from e
        _check_batch(texts, vectors)
        return vectors


class MockEmbeddingProvider:
    """
    Deterministic offline embeddings.

    Each text is hashed (SHA-256) to seed a generator, so the same text
    always maps to the same unit vector. Different texts are close to
    orthogonal in high dimensions, which keeps mock relationship and
    search results sparse.
    """

    def __init__(self, dimension: int = 1536) -> None:
        self._dimension = dimension
        self.calls = 0

    def _vector(self, text: str) -> Vector:
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
        raw = np.random.default_rng(seed).standard_normal(self._dimension)
        return (raw / np.linalg.norm(raw)).tolist()

    async def embed_batch(self, texts: Sequence[str]) -> list[Vector]:
        if not texts:
            return []
        self.calls += 1
        return [self._vector(text) for text in texts]


def get_embedding_provider(config: Settings = settings) -> EmbeddingProvider:
    """
    Build the provider selected by configuration.

    Falls back to the mock provider when OpenAI is selected but no key
    is configured (or the key is literally ``mock``).
    """
    if config.EMBEDDING_PROVIDER == "local":
        return LocalEmbeddingProvider(config.LOCAL_EMBEDDING_MODEL)

    if config.embeddings_mocked:
        if config.EMBEDDING_PROVIDER == "openai":
            logger.warning("No OpenAI API key configured, using mock embeddings")
        return MockEmbeddingProvider(config.EMBEDDING_DIMENSION)

    return OpenAIEmbeddingProvider(
        api_key=config.OPENAI_API_KEY or "",
        model=config.EMBEDDING_MODEL,
        timeout=config.LLM_TIMEOUT,
    )
