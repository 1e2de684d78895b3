"""Data models for the RAG engine."""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Literal

from .config import config

DEFAULT_USE_RAG = True
DEFAULT_RAG_NUM_RESULTS = 3
DEFAULT_RAG_SIMILARITY_THRESHOLD = 0.5
DEFAULT_MAX_CONTEXT_LENGTH = 512
DEFAULT_CONTEXT_CHUNKING = True

LogLevel = Literal["info", "debug"]
Role = Literal["system", "user", "assistant"]
FieldType = Literal["boolean", "number", "string"]

VALID_LOG_LEVELS = {"info", "debug"}
VALID_ROLES = {"system", "user", "assistant"}


@dataclass(frozen=True)
class Settings:
    """Immutable engine settings applied at construction."""

    use_rag: bool = DEFAULT_USE_RAG
    rag_num_results: int = DEFAULT_RAG_NUM_RESULTS
    rag_similarity_threshold: float = DEFAULT_RAG_SIMILARITY_THRESHOLD
    max_context_length: int = DEFAULT_MAX_CONTEXT_LENGTH
    context_chunking: bool = DEFAULT_CONTEXT_CHUNKING
    verbose: bool = False
    log_level: LogLevel = "info"

    def __post_init__(self) -> None:
        """Validate setting ranges.

        Raises:
            ValueError: If any value is outside its allowed range.
        """
        if self.rag_num_results <= 0:
            msg = f"rag_num_results must be positive, got {self.rag_num_results}"
            raise ValueError(msg)
        if not -1.0 <= self.rag_similarity_threshold <= 1.0:
            msg = (
                "rag_similarity_threshold must be within [-1, 1], "
                f"got {self.rag_similarity_threshold}"
            )
            raise ValueError(msg)
        if self.max_context_length <= 0:
            msg = f"max_context_length must be positive, got {self.max_context_length}"
            raise ValueError(msg)
        if self.log_level not in VALID_LOG_LEVELS:
            msg = f"Unsupported log level: {self.log_level}"
            raise ValueError(msg)

    @classmethod
    def from_config(cls, **overrides: Any) -> "Settings":
        """Build settings from environment configuration.

        Args:
            **overrides: Field values that take precedence over the environment.

        Returns:
            A validated Settings snapshot.
        """
        settings = cls(
            use_rag=config.USE_RAG,
            rag_num_results=config.RAG_NUM_RESULTS,
            rag_similarity_threshold=config.RAG_SIMILARITY_THRESHOLD,
            max_context_length=config.MAX_CONTEXT_LENGTH,
            context_chunking=config.CONTEXT_CHUNKING,
            verbose=config.VERBOSE,
            log_level="debug" if config.LOG_LEVEL == "DEBUG" else "info",
        )
        return replace(settings, **overrides) if overrides else settings


@dataclass(frozen=True)
class ConversationMessage:
    """A single message of a chat conversation."""

    role: Role
    content: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConversationMessage":
        """Build a message from a ``{"role": ..., "content": ...}`` mapping.

        Raises:
            ValueError: If the role is not one of system, user or assistant.
        """
        role = str(data.get("role", ""))
        if role not in VALID_ROLES:
            msg = f"Unsupported message role: {role!r}"
            raise ValueError(msg)
        return cls(role=role, content=str(data.get("content", "")))  # type: ignore[arg-type]


@dataclass(frozen=True)
class FieldSpec:
    """Extraction schema entry for one field."""

    type: str = "string"
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldSpec":
        description = data.get("description")
        return cls(
            type=str(data.get("type", "string")),
            description=str(description) if description else None,
        )
