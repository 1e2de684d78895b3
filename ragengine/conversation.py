"""Question answering and chat on top of the RAG pipeline."""

from collections.abc import Mapping, Sequence
from typing import Any

from .config import config
from .generation import DEFAULT_SYSTEM_PROMPT, GenerationBackend, format_prompt
from .models import ConversationMessage
from .pipeline import RAGPipeline

logger = config.get_logger(__name__)

NO_USER_MESSAGE_ERROR = "Error: No user message found in conversation history."

MessageLike = ConversationMessage | Mapping[str, Any]


def message_fields(message: MessageLike) -> tuple[str, str]:
    """Read role and content without validating the role.

    Returns:
        The (role, content) pair of the message.
    """
    if isinstance(message, ConversationMessage):
        return message.role, message.content
    return str(message.get("role", "")), str(message.get("content", ""))


class ConversationManager:
    """Answers questions and chat conversations with retrieved context."""

    def __init__(
        self,
        rag_pipeline: RAGPipeline,
        generator: GenerationBackend,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        """Initialize ConversationManager.

        Args:
            rag_pipeline: RAG pipeline used to assemble context.
            generator: Text-generation backend.
            system_prompt: Default system prompt placed between context and query.
        """
        self.rag_pipeline: RAGPipeline = rag_pipeline
        self.generator = generator
        self.system_prompt = system_prompt

    async def query(
        self,
        query: str,
        context: str = "",
        system_prompt: str | None = None,
    ) -> str:
        """Answer a query with retrieved and caller-supplied context.

        Returns:
            The generated answer.
        """
        logger.debug("Processing query: %s", query)
        full_context = await self.rag_pipeline.build_context(query, context)
        prompt = format_prompt(
            full_context,
            self.system_prompt if system_prompt is None else system_prompt,
            query,
        )
        return await self.generator.generate(prompt)

    async def chat(self, messages: Sequence[MessageLike]) -> str:
        """Answer the last user message of a conversation.

        Every other message, in order, becomes chat-history context. Roles
        other than system, user and assistant are kept in the history as-is.

        Returns:
            The generated reply, or NO_USER_MESSAGE_ERROR when the
            conversation holds no user message.
        """
        conversation = [message_fields(message) for message in messages]

        last_user_index = next(
            (
                index
                for index in range(len(conversation) - 1, -1, -1)
                if conversation[index][0] == "user"
            ),
            None,
        )
        if last_user_index is None:
            logger.warning("Chat called without a user message")
            return NO_USER_MESSAGE_ERROR

        _, last_user_content = conversation[last_user_index]
        history = conversation[:last_user_index] + conversation[last_user_index + 1 :]
        chat_history = "\n".join(f"{role}: {content}" for role, content in history)

        return await self.query(f"user: {last_user_content}", chat_history)
