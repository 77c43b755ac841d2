import time
from typing import Any

import structlog

from smart_reviewer.core.config import Settings
from smart_reviewer.core.exceptions import LLMError, LLMProviderUnavailableError
from smart_reviewer.core.metrics import record_llm_request
from smart_reviewer.services.llm.base import ChatBot, Message, get_provider_name

logger = structlog.get_logger()

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenAIProvider(ChatBot):
    """OpenAI (or OpenAI-compatible, e.g. OpenRouter) chat completions provider."""

    def __init__(self, full_model_name: str, system_prompt: str, settings: Settings) -> None:
        super().__init__(full_model_name, system_prompt)
        self._settings = settings
        self._client: Any = None

    @property
    def name(self) -> str:
        return "openrouter" if get_provider_name(self.full_model_name) == "openrouter" else "openai"

    def _api_key(self) -> str | None:
        key = (
            self._settings.openrouter_api_key
            if self.name == "openrouter"
            else self._settings.openai_api_key
        )
        return key.get_secret_value() if key is not None else None

    def _base_url(self) -> str | None:
        if self._settings.base_url:
            return self._settings.base_url
        return OPENROUTER_BASE_URL if self.name == "openrouter" else None

    def _get_client(self) -> Any:
        """Lazy initialization of the OpenAI client."""
        if self._client is None:
            if not self.is_available():
                raise LLMProviderUnavailableError(f"{self.name} API key not configured")

            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(
                api_key=self._api_key(),
                base_url=self._base_url(),
                max_retries=self._settings.retries,
                timeout=self._settings.timeout_seconds,
            )
        return self._client

    def is_available(self) -> bool:
        return self._api_key() is not None

    def build_messages(self, messages: list[Message]) -> list[dict[str, str]]:
        return [{"role": "system", "content": self.system_prompt}] + [
            {"role": message.role, "content": message.text} for message in messages
        ]

    async def create(self, messages: list[Message]) -> str:
        client = self._get_client()

        logger.debug("Sending request to OpenAI", model=self.model, provider=self.name)

        start_time = time.perf_counter()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(messages),
                temperature=self._settings.temperature,
            )
        except Exception as e:
            record_llm_request(self.name, self.model, "error", time.perf_counter() - start_time)
            logger.error("OpenAI API error", provider=self.name, error=str(e))
            raise LLMError(f"{self.name} API error: {e}") from e

        usage = response.usage
        record_llm_request(
            self.name,
            self.model,
            "success",
            time.perf_counter() - start_time,
            tokens_input=usage.prompt_tokens if usage else 0,
            tokens_output=usage.completion_tokens if usage else 0,
        )

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
