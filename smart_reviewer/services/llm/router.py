import structlog

from smart_reviewer.core.config import Settings
from smart_reviewer.core.exceptions import LLMProviderUnavailableError
from smart_reviewer.services.llm.anthropic import AnthropicProvider
from smart_reviewer.services.llm.base import ChatBot, Message, get_provider_name
from smart_reviewer.services.llm.gemini import GeminiProvider
from smart_reviewer.services.llm.ollama import OllamaProvider
from smart_reviewer.services.llm.openai import OpenAIProvider

logger = structlog.get_logger()

PROVIDERS: dict[str, type[ChatBot]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
    "openrouter": OpenAIProvider,
    "google": GeminiProvider,
    "ollama": OllamaProvider,
}


def create_chatbot(full_model_name: str, system_prompt: str, settings: Settings) -> ChatBot:
    """Create the provider for a ``provider/model`` name."""
    provider = get_provider_name(full_model_name)
    provider_class = PROVIDERS.get(provider)
    if provider_class is None:
        raise LLMProviderUnavailableError(f"Unsupported model: {full_model_name}")
    return provider_class(full_model_name, system_prompt, settings)  # type: ignore[call-arg]


class ChatBotRouter:
    """Sends a prompt to the first model in priority order that answers."""

    def __init__(self, model_names: list[str], system_prompt: str, settings: Settings) -> None:
        if not model_names:
            raise LLMProviderUnavailableError("No models configured")
        self.model_names = model_names
        self.system_prompt = system_prompt
        self._settings = settings
        self._bots: dict[str, ChatBot] = {}

    def _get_bot(self, full_model_name: str) -> ChatBot:
        """Get or create a provider instance."""
        if full_model_name not in self._bots:
            self._bots[full_model_name] = create_chatbot(
                full_model_name, self.system_prompt, self._settings
            )
        return self._bots[full_model_name]

    def get_available_models(self) -> list[str]:
        """Get configured models whose provider is available."""
        available = []
        for name in self.model_names:
            try:
                if self._get_bot(name).is_available():
                    available.append(name)
            except LLMProviderUnavailableError:
                continue
        return available

    async def create(self, messages: list[Message]) -> str:
        """
        Send messages to the configured models, falling back in order.

        Args:
            messages: Prompt fragments for the model.

        Returns:
            The text reply of the first model that succeeded.

        Raises:
            LLMProviderUnavailableError: If every model is unavailable or fails.
        """
        for name in self.model_names:
            try:
                bot = self._get_bot(name)
                if not bot.is_available():
                    logger.info("Model unavailable, trying next", model=name)
                    continue

                logger.info("Using LLM model", provider=bot.name, model=bot.model)
                return await bot.create(messages)
            except Exception as e:
                logger.warning("Model failed, trying next", model=name, error=str(e))
                continue

        raise LLMProviderUnavailableError(
            "No LLM providers available", {"models": self.model_names}
        )
