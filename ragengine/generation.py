"""Prompt formatting and the OpenAI text-generation backend."""

from typing import Protocol

from openai import AsyncOpenAI

from .config import config
from .models import Settings

logger = config.get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful open-source AI assistant that gives short, accurate "
    "responses without hallucinating, and excels at information extraction and "
    "text summarization. Answer using only the context above; if the answer is "
    "not in the context, say that you do not know."
)


class GenerationBackend(Protocol):
    """Anything that turns a prompt into generated text."""

    async def generate(self, prompt: str) -> str: ...


def format_prompt(context: str, system_prompt: str, query: str) -> str:
    """Lay out context, system prompt and query on separate lines.

    Returns:
        The literal prompt sent to the model.
    """
    return f"{context}\n{system_prompt}\n{query}"


class GenerationService:
    """Handles OpenAI text generation."""

    def __init__(
        self,
        settings: Settings | None = None,
        api_key: str | None = None,
        model: str | None = None,
    ) -> None:
        """Initialize the GenerationService.

        Args:
            settings: Engine settings; ``max_context_length`` caps new tokens.
            api_key: OpenAI API key. If None,
                reads from OPENAI_API_KEY environment variable.
            model: Chat model name. If None, uses config.CHAT_MODEL.
        """
        self.settings = settings or Settings.from_config()
        default_headers = config.get_api_headers()
        self.client = AsyncOpenAI(
            api_key=api_key or config.get_openai_api_key(),
            base_url=config.OPENAI_BASE_URL,
            default_headers=default_headers or None,
        )
        self.model = model or config.CHAT_MODEL

    async def generate(self, prompt: str) -> str:
        """Generate a completion for a fully formatted prompt.

        Returns:
            The trimmed model output, or an empty string if the model
            returned nothing.
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.settings.max_context_length,
                temperature=config.CHAT_TEMPERATURE,
            )
        except Exception:
            logger.exception("Error generating text")
            raise

        result = ""
        if response.choices:
            content = response.choices[0].message.content
            result = content.strip() if content else ""

        if self.settings.log_level == "debug":
            logger.info("Input: %s", prompt)
            logger.info("Output: %s", result)

        return result
