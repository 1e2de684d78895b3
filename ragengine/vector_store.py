"""In-memory chunk/embedding storage."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import config
from .similarity import rank_scored

if TYPE_CHECKING:
    import numpy as np

logger = config.get_logger(__name__)


@dataclass(frozen=True)
class EmbeddingIndex:
    """Chunks and their embeddings, paired by position."""

    chunks: tuple[str, ...] = ()
    embeddings: tuple[np.ndarray, ...] = ()

    def __post_init__(self) -> None:
        """Check that chunks and embeddings line up.

        Raises:
            ValueError: If the two sequences differ in length.
        """
        if len(self.chunks) != len(self.embeddings):
            msg = (
                f"Got {len(self.chunks)} chunks but "
                f"{len(self.embeddings)} embeddings"
            )
            raise ValueError(msg)

    def __len__(self) -> int:
        return len(self.chunks)

    @classmethod
    def empty(cls) -> EmbeddingIndex:
        return cls()

    @classmethod
    def build(
        cls, chunks: Sequence[str], embeddings: Sequence[np.ndarray]
    ) -> EmbeddingIndex:
        return cls(chunks=tuple(chunks), embeddings=tuple(embeddings))

    def extend(
        self, chunks: Sequence[str], embeddings: Sequence[np.ndarray]
    ) -> EmbeddingIndex:
        """Return a new index with the given entries appended."""  # noqa: DOC201
        return EmbeddingIndex(
            chunks=self.chunks + tuple(chunks),
            embeddings=self.embeddings + tuple(embeddings),
        )


class InMemoryVectorStore:
    """Holds the current EmbeddingIndex and searches it by cosine similarity."""

    def __init__(self, index: EmbeddingIndex | None = None) -> None:
        self._index = index if index is not None else EmbeddingIndex.empty()

    @property
    def index(self) -> EmbeddingIndex:
        return self._index

    @property
    def chunks(self) -> tuple[str, ...]:
        return self._index.chunks

    @property
    def embeddings(self) -> tuple[np.ndarray, ...]:
        return self._index.embeddings

    def __len__(self) -> int:
        return len(self._index)

    def replace(self, index: EmbeddingIndex) -> None:
        """Swap in a new index in a single assignment."""
        self._index = index
        logger.debug("Vector store now holds %d chunks", len(index))

    def search_scored(
        self,
        query_embedding: np.ndarray,
        threshold: float,
        limit: int,
    ) -> list[tuple[str, float]]:
        """Search the stored chunks.

        Returns:
            Ranked list of (chunk, similarity) tuples.
        """
        index = self._index
        if not index.chunks:
            return []
        return rank_scored(
            query_embedding, index.chunks, index.embeddings, threshold, limit
        )

    def search(
        self,
        query_embedding: np.ndarray,
        threshold: float,
        limit: int,
    ) -> list[str]:
        """Search the stored chunks.

        Returns:
            The matching chunks, most similar first.
        """
        return [
            chunk
            for chunk, _ in self.search_scored(query_embedding, threshold, limit)
        ]
