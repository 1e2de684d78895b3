"""Tokenizer adapter used for token-budget chunking."""

from collections.abc import Sequence
from typing import Protocol

import tiktoken

from .config import config

logger = config.get_logger(__name__)


class Tokenizer(Protocol):
    """Minimal tokenizer interface consumed by the chunker."""

    def tokenize(self, text: str) -> list[int]: ...

    def decode(
        self, token_ids: Sequence[int], *, skip_special_tokens: bool = True
    ) -> str: ...


class TiktokenTokenizer:
    """Tokenizer backed by a ``tiktoken`` encoding."""

    def __init__(self, encoding_name: str | None = None) -> None:
        """Initialize the tokenizer.

        Args:
            encoding_name: tiktoken encoding name. If None, uses
                config.TOKENIZER_ENCODING. The encoding is loaded on first use.
        """
        self.encoding_name = encoding_name or config.TOKENIZER_ENCODING
        self._encoding: tiktoken.Encoding | None = None
        self._special_ids: frozenset[int] = frozenset()

    @property
    def encoding(self) -> tiktoken.Encoding:
        if self._encoding is None:
            try:
                encoding = tiktoken.get_encoding(self.encoding_name)
            except Exception:
                logger.exception("Error loading tiktoken encoding %s", self.encoding_name)
                raise
            self._special_ids = frozenset(
                encoding.encode_single_token(token)
                for token in encoding.special_tokens_set
            )
            self._encoding = encoding
        return self._encoding

    def tokenize(self, text: str) -> list[int]:
        """Encode text, treating special-token markup as ordinary text.

        Returns:
            The token ids for ``text``.
        """
        return self.encoding.encode(text, disallowed_special=())

    def decode(
        self, token_ids: Sequence[int], *, skip_special_tokens: bool = True
    ) -> str:
        """Decode token ids back to text.

        Returns:
            The decoded text, without special tokens when requested.
        """
        encoding = self.encoding
        ids = list(token_ids)
        if skip_special_tokens:
            ids = [token_id for token_id in ids if token_id not in self._special_ids]
        return encoding.decode(ids, errors="replace")
