"""RAGEngine facade wiring the pipeline, generation and extraction together."""

from collections.abc import Iterable, Sequence

from .config import config
from .conversation import ConversationManager, MessageLike
from .embeddings import EmbeddingBackend, EmbeddingService
from .extraction import ExtractedValue, ExtractionEngine, SchemaLike
from .generation import DEFAULT_SYSTEM_PROMPT, GenerationBackend, GenerationService
from .models import Settings
from .pipeline import RAGPipeline
from .tokenizer import TiktokenTokenizer, Tokenizer

logger = config.get_logger(__name__)


class RAGEngine:
    """Retrieval-augmented question answering, chat and extraction."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        tokenizer: Tokenizer | None = None,
        embedding_service: EmbeddingBackend | None = None,
        generation_service: GenerationBackend | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        """Initialize the engine.

        Collaborators that are not supplied are built from ``config``.

        Args:
            settings: Engine settings. If None, uses Settings.from_config().
            tokenizer: Tokenizer for chunking.
            embedding_service: Embedding backend.
            generation_service: Text-generation backend.
            system_prompt: Default system prompt.

        Raises:
            ValueError: If a backend must be built and no API key is configured.
        """
        self.settings = settings or Settings.from_config()
        if self.settings.verbose:
            logger.info("RAGEngine starting with %s", self.settings)

        if embedding_service is None or generation_service is None:
            config.validate()

        self.pipeline = RAGPipeline(
            self.settings,
            tokenizer or TiktokenTokenizer(),
            embedding_service if embedding_service is not None else EmbeddingService(),
        )
        self.generator = generation_service or GenerationService(self.settings)
        self.conversation = ConversationManager(
            self.pipeline, self.generator, system_prompt=system_prompt
        )
        self.extractor = ExtractionEngine(self.conversation, self.settings)

    @classmethod
    async def create(
        cls,
        documents: Iterable[str] | None = None,
        settings: Settings | None = None,
        *,
        tokenizer: Tokenizer | None = None,
        embedding_service: EmbeddingBackend | None = None,
        generation_service: GenerationBackend | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> "RAGEngine":
        """Build an engine and embed its initial documents.

        Documents are only embedded when RAG is enabled.

        Returns:
            The ready-to-use engine.
        """
        engine = cls(
            settings,
            tokenizer=tokenizer,
            embedding_service=embedding_service,
            generation_service=generation_service,
            system_prompt=system_prompt,
        )
        documents = list(documents or [])
        if engine.settings.use_rag and documents:
            await engine.pipeline.initialize_embeddings(documents)
        if engine.settings.verbose:
            logger.info("RAGEngine initialized successfully!")
        return engine

    @property
    def documents(self) -> tuple[str, ...]:
        return self.pipeline.chunks

    def chunk_document(self, text: str) -> list[str]:
        return self.pipeline.chunker.chunk(text)

    async def add_documents(self, documents: Iterable[str]) -> None:
        await self.pipeline.add_documents(documents)

    async def rag(self, query: str) -> list[str]:
        return await self.pipeline.rag(query)

    async def generate(self, prompt: str) -> str:
        return await self.generator.generate(prompt)

    async def query(
        self, query: str, context: str = "", system_prompt: str | None = None
    ) -> str:
        return await self.conversation.query(query, context, system_prompt)

    async def chat(self, messages: Sequence[MessageLike]) -> str:
        return await self.conversation.chat(messages)

    async def extract(
        self,
        schema: SchemaLike,
        query: str = "",
        context: str = "",
        *,
        concurrent: bool = False,
    ) -> dict[str, ExtractedValue]:
        return await self.extractor.extract(
            schema, query, context, concurrent=concurrent
        )
