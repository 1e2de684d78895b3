"""RAGEngine - retrieval and context assembly in front of generation models."""

from .conversation import NO_USER_MESSAGE_ERROR, ConversationManager
from .document_processing import MAX_CHUNK_TOKENS, DocumentChunker
from .embeddings import EmbeddingService, normalize_embedding
from .engine import RAGEngine
from .exceptions import NotInitializedError, RAGEngineError
from .extraction import ExtractionEngine
from .generation import DEFAULT_SYSTEM_PROMPT, GenerationService, format_prompt
from .models import ConversationMessage, FieldSpec, Settings
from .pipeline import RAGPipeline
from .similarity import cosine_similarity, rank
from .tokenizer import TiktokenTokenizer, Tokenizer
from .vector_store import EmbeddingIndex, InMemoryVectorStore

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "MAX_CHUNK_TOKENS",
    "NO_USER_MESSAGE_ERROR",
    "ConversationManager",
    "ConversationMessage",
    "DocumentChunker",
    "EmbeddingIndex",
    "EmbeddingService",
    "ExtractionEngine",
    "FieldSpec",
    "GenerationService",
    "InMemoryVectorStore",
    "NotInitializedError",
    "RAGEngine",
    "RAGEngineError",
    "RAGPipeline",
    "Settings",
    "TiktokenTokenizer",
    "Tokenizer",
    "cosine_similarity",
    "format_prompt",
    "normalize_embedding",
    "rank",
]
