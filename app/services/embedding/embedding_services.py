# app/services/embedding/embedding_services.py
import asyncio
import logging
from typing import Iterator, List, Optional, Protocol, Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

from app.core.config import settings
from app.core.exceptions import EmbeddingServiceError

logger = logging.getLogger(__name__)


class EmbeddingClient(Protocol):
    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """Returns one vector per input text, in input order."""
        ...


class SentenceTransformerEmbeddingClient:
    """Embedding client backed by a locally loaded sentence-transformers model."""

    def __init__(self, model_name: Optional[str] = None, normalize: bool = True):
        self.model_name = model_name or settings.EMBEDDING_MODEL_NAME
        self.normalize = normalize
        self._model: Optional[SentenceTransformer] = None

    def load(self) -> SentenceTransformer:
        """Loads the model on first use and returns it."""
        if self._model is None:
            logger.info(f"Loading embedding model {self.model_name}")
            self._model = SentenceTransformer(self.model_name)
        return self._model

    @property
    def model(self) -> SentenceTransformer:
        return self.load()

    def _encode(self, texts: List[str]) -> List[List[float]]:
        vectors = self.model.encode(texts, normalize_embeddings=self.normalize, convert_to_numpy=True)
        return np.asarray(vectors, dtype=np.float32).tolist()

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        # encode() is CPU bound, keep the event loop free
        return await asyncio.to_thread(self._encode, list(texts))


def chunked(items: Sequence, size: int) -> Iterator[Sequence]:
    """Yields consecutive slices of at most `size` items."""
    if size <= 0:
        raise ValueError("Chunk size must be positive.")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def validate_embeddings(texts: Sequence[str], vectors, dimension: int) -> List[List[float]]:
    if vectors is None or len(vectors) != len(texts):
        received = 0 if vectors is None else len(vectors)
        raise EmbeddingServiceError(
            f"Embedding service returned {received} vectors for {len(texts)} texts."
        )

    validated = []
    for index, vector in enumerate(vectors):
        vector = [float(value) for value in vector]
        if len(vector) != dimension:
            raise EmbeddingServiceError(
                f"Vector {index} has dimension {len(vector)}, expected {dimension}."
            )
        validated.append(vector)
    return validated


async def embed_batch(
    client: EmbeddingClient,
    texts: Sequence[str],
    dimension: Optional[int] = None,
    batch_size: Optional[int] = None,
) -> List[List[float]]:
    """
    Embeds `texts` in order, sending at most `batch_size` texts per request.

    Args:
        client: The embedding client to call.
        texts: Non-empty strings to embed.
        dimension: Expected vector length. Defaults to EMBEDDING_DIMENSION.
        batch_size: Maximum texts per request. Defaults to EMBEDDING_BATCH_SIZE.

    Returns:
        One vector per text, where index i corresponds to texts[i].

    Raises:
        EmbeddingServiceError: If the service call fails or the output does not match the input.
    """
    dimension = dimension or settings.EMBEDDING_DIMENSION
    batch_size = batch_size or settings.EMBEDDING_BATCH_SIZE

    if any(not text or not text.strip() for text in texts):
        raise ValueError("Empty texts cannot be sent to the embedding service.")

    vectors: List[List[float]] = []
    for batch in chunked(list(texts), batch_size):
        try:
            response = await client.embed(batch)
        except EmbeddingServiceError:
            raise
        except Exception as e:
            raise EmbeddingServiceError(f"Embedding request for {len(batch)} texts failed: {e}") from e
        vectors.extend(validate_embeddings(batch, response, dimension))
    return vectors
