"""Token-budget document chunking."""

from collections.abc import Iterable

from .config import config
from .tokenizer import Tokenizer

logger = config.get_logger(__name__)

MAX_CHUNK_TOKENS = 512
PARAGRAPH_SEPARATOR = "\n\n"


class DocumentChunker:
    """Splits documents into model-sized chunks along paragraph boundaries."""

    def __init__(
        self,
        tokenizer: Tokenizer,
        *,
        enabled: bool = True,
        max_tokens: int = MAX_CHUNK_TOKENS,
    ) -> None:
        """Initialize the DocumentChunker.

        Args:
            tokenizer: Tokenizer used to measure and window text.
            enabled: When False, every document is returned as a single chunk.
            max_tokens: Token budget for each chunk.

        Raises:
            ValueError: If max_tokens is not positive.
        """
        if max_tokens <= 0:
            msg = f"max_tokens must be positive, got {max_tokens}"
            raise ValueError(msg)
        self.tokenizer = tokenizer
        self.enabled = enabled
        self.max_tokens = max_tokens

    def chunk(self, text: str) -> list[str]:
        """Split a document into chunks of at most ``max_tokens`` tokens.

        Documents within the budget are returned unchanged. Longer documents
        are split on blank lines; paragraphs within the budget are kept as-is
        and never merged, longer ones are cut into consecutive token windows.
        Empty paragraphs are dropped.

        Returns:
            The chunks in document order.
        """
        if not self.enabled:
            return [text]

        if len(self.tokenizer.tokenize(text)) <= self.max_tokens:
            return [text]

        chunks: list[str] = []
        for paragraph in text.split(PARAGRAPH_SEPARATOR):
            if not paragraph.strip():
                continue

            tokens = self.tokenizer.tokenize(paragraph)
            if len(tokens) <= self.max_tokens:
                chunks.append(paragraph)
                continue

            for start in range(0, len(tokens), self.max_tokens):
                window = tokens[start : start + self.max_tokens]
                chunks.append(self.tokenizer.decode(window, skip_special_tokens=True))

        logger.debug("Text split into %d chunks", len(chunks))
        return chunks

    def chunk_documents(self, documents: Iterable[str]) -> list[str]:
        """Chunk several documents, keeping insertion order.

        Returns:
            The concatenated chunks of every document.
        """
        return [chunk for document in documents for chunk in self.chunk(document)]
