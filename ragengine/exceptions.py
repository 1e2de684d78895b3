"""Exceptions raised by RAGEngine."""


class RAGEngineError(Exception):
    """Base class for engine errors."""


class NotInitializedError(RAGEngineError, RuntimeError):
    """An embedding call was requested before an embedding backend was attached."""

    def __init__(self, msg: str = "Embedding model not initialized") -> None:
        super().__init__(msg)
