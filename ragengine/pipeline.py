"""RAG pipeline: chunking, embedding, retrieval and context assembly."""

from collections.abc import Iterable, Sequence

import numpy as np

from .config import config
from .document_processing import PARAGRAPH_SEPARATOR, DocumentChunker
from .embeddings import EmbeddingBackend, embed_all
from .exceptions import NotInitializedError
from .models import Settings
from .similarity import rank
from .tokenizer import Tokenizer
from .vector_store import EmbeddingIndex, InMemoryVectorStore

logger = config.get_logger(__name__)


def join_context(first: str, second: str, separator: str = "\n") -> str:
    """Join two context blocks, skipping the separator when either is empty.

    Returns:
        The combined context.
    """
    if not first:
        return second
    if not second:
        return first
    return f"{first}{separator}{second}"


class RAGPipeline:
    """Main RAG pipeline orchestrating Split -> Embed -> Store -> Retrieve."""

    def __init__(
        self,
        settings: Settings,
        tokenizer: Tokenizer,
        embedding_service: EmbeddingBackend | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Engine settings.
            tokenizer: Tokenizer used by the chunker.
            embedding_service: Embedding backend. Retrieval raises
                NotInitializedError while it is None.
        """
        self.settings = settings
        self.chunker = DocumentChunker(tokenizer, enabled=settings.context_chunking)
        self.embedding_service = embedding_service
        self.vector_store = InMemoryVectorStore()

    def _log_progress(self, msg: str, *args: object) -> None:
        if self.settings.verbose:
            logger.info(msg, *args)
        else:
            logger.debug(msg, *args)

    @property
    def chunks(self) -> tuple[str, ...]:
        return self.vector_store.chunks

    @property
    def embeddings(self) -> tuple[np.ndarray, ...]:
        return self.vector_store.embeddings

    async def generate_document_embeddings(
        self, documents: Sequence[str]
    ) -> list[np.ndarray]:
        """Embed a list of chunks.

        Returns:
            One embedding per chunk, in order.
        """
        self._log_progress("Generating embeddings for %d documents...", len(documents))
        return await embed_all(self.embedding_service, documents)

    async def initialize_embeddings(self, documents: Iterable[str]) -> None:
        """Chunk and embed ``documents``, replacing any previous index."""
        self._log_progress("Initializing documents...")
        chunks = self.chunker.chunk_documents(documents)
        embeddings = await self.generate_document_embeddings(chunks)
        self.vector_store.replace(EmbeddingIndex.build(chunks, embeddings))
        self._log_progress("Documents ready!")

    async def add_documents(self, documents: Iterable[str]) -> None:
        """Chunk and embed new documents and append them to the index."""
        chunks = self.chunker.chunk_documents(documents)
        if not chunks:
            return
        embeddings = await self.generate_document_embeddings(chunks)
        self.vector_store.replace(self.vector_store.index.extend(chunks, embeddings))
        logger.info(
            "Added %d chunks; index holds %d", len(chunks), len(self.vector_store)
        )

    async def embed_query(self, query: str) -> np.ndarray:
        """Embed a query string.

        Raises:
            NotInitializedError: If no embedding backend is attached.

        Returns:
            The query embedding.
        """
        if self.embedding_service is None:
            raise NotInitializedError
        return await self.embedding_service.get_embedding(query)

    async def retrieval(
        self,
        query: str,
        documents: Sequence[str],
        document_embeddings: Sequence[np.ndarray],
    ) -> list[str]:
        """Retrieve the documents most similar to ``query``.

        Returns:
            At most ``rag_num_results`` documents scoring at or above the
            similarity threshold, most similar first.
        """
        query_embedding = await self.embed_query(query)
        return rank(
            query_embedding,
            documents,
            document_embeddings,
            self.settings.rag_similarity_threshold,
            self.settings.rag_num_results,
        )

    async def rag(self, query: str) -> list[str]:
        """Retrieve stored chunks relevant to ``query``.

        Returns:
            The retrieved chunks, or an empty list when RAG is disabled or
            no documents are registered.
        """
        if not self.settings.use_rag or not self.vector_store.chunks:
            return []
        query_embedding = await self.embed_query(query)
        return self.vector_store.search(
            query_embedding,
            self.settings.rag_similarity_threshold,
            self.settings.rag_num_results,
        )

    async def build_context(self, query: str, context: str = "") -> str:
        """Assemble the generation context for ``query``.

        Retrieved document chunks come first, then the caller context. When
        context chunking is on and the caller context splits into more than
        ``rag_num_results`` chunks, the chunks of the caller context that best
        match the query are appended as well. The result is not truncated.

        Returns:
            The assembled context.
        """
        rag_context = PARAGRAPH_SEPARATOR.join(await self.rag(query))
        full_context = join_context(rag_context, context)

        if self.settings.context_chunking and context:
            documents = self.chunker.chunk(context)
            if len(documents) > self.settings.rag_num_results:
                document_embeddings = await self.generate_document_embeddings(documents)
                ranked = await self.retrieval(query, documents, document_embeddings)
                if ranked:
                    full_context = (
                        full_context
                        + PARAGRAPH_SEPARATOR
                        + PARAGRAPH_SEPARATOR.join(ranked)
                    )

        return full_context
