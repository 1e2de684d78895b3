"""Test configuration and fixtures for RAGEngine tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Mock collaborators (tokenizer, embeddings, generation)
- OpenAI API response helpers
- Pipeline and engine factories
"""

import hashlib
from collections.abc import Callable, Sequence
from unittest.mock import AsyncMock, Mock, patch

import numpy as np
import pytest

from ragengine import (
    ConversationManager,
    EmbeddingService,
    GenerationService,
    RAGEngine,
    RAGPipeline,
    Settings,
)


class TestConstants:
    """Centralized test constants shared across test files."""

    TEST_API_KEY = "test-key"
    TEST_OPENAI_MODEL = "text-embedding-3-small"
    DEFAULT_EMBEDDING_DIMENSION = 64

    SPECIAL_TOKEN = "<eos>"
    SPECIAL_TOKEN_ID = 0

    EIFFEL_DOCUMENT = (
        "The Eiffel Tower is located in Paris, France. "
        "It was built in 1889 and stands 330 meters tall."
    )
    LANDMARK_QUERY = "What landmark was constructed in the 1800s?"
    LANDMARK_DOCUMENTS = (
        EIFFEL_DOCUMENT,
        "The Amazon Rainforest is the largest tropical rainforest in the world.",
        "The Grand Canyon is a natural landmark located in Arizona, USA.",
        "The Sahara Desert is the largest hot desert in the world.",
    )
    APARTMENT_DESCRIPTION = (
        "This spacious 2-bedroom apartment is available for rent in downtown "
        "New York. The monthly rent is $2500. It includes 1 bathrooms.\n\n"
        "Pets are welcome!\n\n"
        "Please reach out to us at 555-123-4567 or john@realty.com"
    )


class WhitespaceTokenizer:
    """Deterministic tokenizer: one token per whitespace-separated word.

    Token id 0 is reserved for the special ``<eos>`` marker.
    """

    def __init__(self) -> None:
        self.vocab: dict[str, int] = {
            TestConstants.SPECIAL_TOKEN: TestConstants.SPECIAL_TOKEN_ID
        }
        self.inverse: dict[int, str] = {
            TestConstants.SPECIAL_TOKEN_ID: TestConstants.SPECIAL_TOKEN
        }
        self.calls: list[str] = []

    def tokenize(self, text: str) -> list[int]:
        self.calls.append(text)
        ids = []
        for word in text.split():
            if word not in self.vocab:
                self.vocab[word] = len(self.vocab)
                self.inverse[self.vocab[word]] = word
            ids.append(self.vocab[word])
        return ids

    def decode(
        self, token_ids: Sequence[int], *, skip_special_tokens: bool = True
    ) -> str:
        return " ".join(
            self.inverse[token_id]
            for token_id in token_ids
            if not (skip_special_tokens and token_id == TestConstants.SPECIAL_TOKEN_ID)
        )


class MockEmbeddingService:
    """Mock embedding service for testing without API calls.

    Generates deterministic embeddings based on text content hash,
    ensuring consistent test results across runs. Texts listed in
    ``vectors`` get the given vector instead.
    """

    def __init__(
        self,
        dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION,
        vectors: dict[str, Sequence[float]] | None = None,
    ) -> None:
        self.dimension = dimension
        self.vectors = dict(vectors or {})
        self.embedded: list[str] = []
        self.batches: list[list[str]] = []

    def _embed(self, text: str) -> np.ndarray:
        if text in self.vectors:
            vector = np.asarray(self.vectors[text], dtype=np.float32)
            return vector / np.linalg.norm(vector)
        seed = int.from_bytes(
            hashlib.sha256(text.lower().encode("utf-8")).digest()[:8],
            byteorder="big",
            signed=False,
        )
        rng = np.random.default_rng(seed)
        embedding = rng.normal(0, 1, self.dimension)
        return (embedding / np.linalg.norm(embedding)).astype(np.float32)

    async def get_embedding(self, text: str) -> np.ndarray:
        self.embedded.append(text)
        return self._embed(text)

    async def get_embeddings_batch(self, texts: list[str]) -> list[np.ndarray]:
        self.batches.append(list(texts))
        return [self._embed(text) for text in texts]


class ScriptedGenerationService:
    """Generation backend that records prompts and replays canned answers."""

    def __init__(
        self,
        answer: str | Callable[[str], str] = "Test response",
    ) -> None:
        self.answer = answer
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if callable(self.answer):
            return self.answer(prompt)
        return self.answer


def create_mock_openai_response(embeddings: list[list[float]]) -> Mock:
    """Create a mock OpenAI embeddings API response.

    Args:
        embeddings: List of embedding vectors to return.

    Returns:
        Mock object representing OpenAI embeddings API response.
    """
    mock_response = Mock()
    mock_response.data = [Mock(embedding=emb) for emb in embeddings]
    return mock_response


def create_mock_chat_response(content: str | None) -> Mock:
    """Create a mock OpenAI chat completion response.

    Args:
        content: The content for the chat completion response.

    Returns:
        Mock object representing OpenAI chat completion response.
    """
    mock_response = Mock()
    mock_response.choices = [Mock(message=Mock(content=content))]
    return mock_response


def landmark_vectors() -> dict[str, list[float]]:
    """Hand-placed vectors: the landmark query points at the Eiffel document."""
    return {
        TestConstants.EIFFEL_DOCUMENT: [1.0, 0.0, 0.0, 0.0],
        TestConstants.LANDMARK_DOCUMENTS[1]: [0.0, 1.0, 0.0, 0.0],
        TestConstants.LANDMARK_DOCUMENTS[2]: [0.5, 0.0, 1.0, 0.0],
        TestConstants.LANDMARK_DOCUMENTS[3]: [0.0, 0.0, 0.0, 1.0],
        TestConstants.LANDMARK_QUERY: [0.9, 0.1, 0.1, 0.0],
        f"user: {TestConstants.LANDMARK_QUERY}": [0.9, 0.1, 0.1, 0.0],
    }


@pytest.fixture
def tokenizer():
    return WhitespaceTokenizer()


@pytest.fixture
def landmark_documents():
    """Landmark corpus and a query whose best match is the Eiffel document."""
    return list(TestConstants.LANDMARK_DOCUMENTS), TestConstants.LANDMARK_QUERY


@pytest.fixture
def apartment_description():
    return TestConstants.APARTMENT_DESCRIPTION


@pytest.fixture
def mock_embedding_service():
    """Hash-seeded MockEmbeddingService for consistent test embeddings."""
    return MockEmbeddingService()


@pytest.fixture
def landmark_embedding_service():
    return MockEmbeddingService(dimension=4, vectors=landmark_vectors())


@pytest.fixture
def generation_service():
    return ScriptedGenerationService()


@pytest.fixture
def settings_factory():
    """Factory for Settings with test-friendly defaults."""

    def _create_settings(**overrides) -> Settings:
        values = {
            "use_rag": True,
            "rag_num_results": 3,
            "rag_similarity_threshold": 0.3,
            "max_context_length": 512,
            "context_chunking": True,
        }
        values.update(overrides)
        return Settings(**values)

    return _create_settings


@pytest.fixture
def rag_pipeline_factory(settings_factory, tokenizer, mock_embedding_service):
    """Factory for RAGPipeline instances with mock collaborators."""

    def _create_pipeline(
        embedding_service=mock_embedding_service, **overrides
    ) -> RAGPipeline:
        return RAGPipeline(settings_factory(**overrides), tokenizer, embedding_service)

    return _create_pipeline


@pytest.fixture
def conversation_manager_factory(rag_pipeline_factory, generation_service):
    """Factory for ConversationManager instances on a fresh pipeline."""

    def _create_manager(
        generator=generation_service, **overrides
    ) -> ConversationManager:
        return ConversationManager(rag_pipeline_factory(**overrides), generator)

    return _create_manager


@pytest.fixture
def engine_factory(settings_factory, tokenizer, mock_embedding_service, generation_service):
    """Factory for RAGEngine instances wired to mock collaborators."""

    def _create_engine(
        embedding_service=mock_embedding_service,
        generator=generation_service,
        **overrides,
    ) -> RAGEngine:
        return RAGEngine(
            settings_factory(**overrides),
            tokenizer=tokenizer,
            embedding_service=embedding_service,
            generation_service=generator,
        )

    return _create_engine


@pytest.fixture
def embedding_service():
    """EmbeddingService with a test API key and a patched embeddings.create."""
    service = EmbeddingService(api_key=TestConstants.TEST_API_KEY, batch_size=2)
    with patch.object(service.client.embeddings, "create", new_callable=AsyncMock):
        yield service


@pytest.fixture
def openai_generation_factory(settings_factory):
    """Factory for GenerationService with a patched chat.completions.create."""

    def _create_service(content: str | None = "Test response", **overrides):
        service = GenerationService(
            settings_factory(**overrides), api_key=TestConstants.TEST_API_KEY
        )
        service.client.chat.completions.create = AsyncMock(
            return_value=create_mock_chat_response(content)
        )
        return service

    return _create_service
