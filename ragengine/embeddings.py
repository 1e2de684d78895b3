"""OpenAI embeddings service."""

from collections.abc import Sequence
from typing import Protocol

import numpy as np
from openai import AsyncOpenAI

from .config import config
from .exceptions import NotInitializedError

logger = config.get_logger(__name__)


class EmbeddingBackend(Protocol):
    """Anything that can embed a text and a batch of texts."""

    async def get_embedding(self, text: str) -> np.ndarray: ...

    async def get_embeddings_batch(self, texts: list[str]) -> list[np.ndarray]: ...


def normalize_embedding(embedding: Sequence[float] | np.ndarray) -> np.ndarray:
    """Scale an embedding to unit length.

    Returns:
        Normalized float32 vector; zero vectors are returned unchanged.
    """
    vector = np.asarray(embedding, dtype="float32")
    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector
    return vector / norm


class EmbeddingService:
    """Handles OpenAI embeddings generation."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        batch_size: int | None = None,
    ) -> None:
        """Initialize the EmbeddingService with OpenAI API key and model.

        Args:
            api_key: OpenAI API key. If None,
                reads from OPENAI_API_KEY environment variable.
            model: Embedding model name. If None, uses config.EMBEDDING_MODEL.
            batch_size: Texts per API request. If None, uses
                config.EMBEDDING_BATCH_SIZE.
        """
        api_key = api_key or config.get_openai_api_key()
        default_headers = config.get_api_headers()
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=config.OPENAI_BASE_URL,
            default_headers=default_headers or None,
        )
        self.model = model or config.EMBEDDING_MODEL
        self.batch_size = batch_size or config.EMBEDDING_BATCH_SIZE

    async def get_embedding(self, text: str) -> np.ndarray:
        """Get embedding for a single text.

        Args:
            text: The input text to generate an embedding for.

        Returns:
            np.ndarray: The unit-length embedding vector for the input text.
        """
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text,
            )
            embedding = normalize_embedding(response.data[0].embedding)
        except Exception:
            logger.exception("Error generating embedding")
            raise
        else:
            return embedding

    async def get_embeddings_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Get embeddings for multiple texts in batches.

        Args:
            texts: List of input texts to generate embeddings for.

        Returns:
            list[np.ndarray]: Unit-length embeddings in input order.
        """
        embeddings: list[np.ndarray] = []

        for i in range(0, len(texts), self.batch_size):
            batch_texts = texts[i : i + self.batch_size]
            try:
                response = await self.client.embeddings.create(
                    model=self.model,
                    input=batch_texts,
                )
                embeddings.extend(
                    normalize_embedding(data.embedding) for data in response.data
                )
                logger.debug("Generated embeddings for batch %d", i // self.batch_size + 1)
            except Exception:
                logger.exception("Error generating batch embeddings")
                raise

        return embeddings


async def embed_all(
    service: EmbeddingBackend | None, chunks: Sequence[str]
) -> list[np.ndarray]:
    """Embed every chunk, one vector per chunk in the same order.

    Raises:
        NotInitializedError: If no embedding backend is attached.

    Returns:
        The chunk embeddings.
    """
    if service is None:
        raise NotInitializedError
    if not chunks:
        return []
    embeddings = await service.get_embeddings_batch(list(chunks))
    if len(embeddings) != len(chunks):
        msg = f"Embedding backend returned {len(embeddings)} vectors for {len(chunks)} texts"
        raise RuntimeError(msg)
    return embeddings
