import time
from typing import Any

import structlog

from smart_reviewer.core.config import Settings
from smart_reviewer.core.exceptions import LLMError, LLMProviderUnavailableError
from smart_reviewer.core.metrics import record_llm_request
from smart_reviewer.services.llm.base import ChatBot, Message

logger = structlog.get_logger()


class AnthropicProvider(ChatBot):
    """Anthropic Claude provider."""

    def __init__(self, full_model_name: str, system_prompt: str, settings: Settings) -> None:
        super().__init__(full_model_name, system_prompt)
        self._settings = settings
        self._client: Any = None

    @property
    def name(self) -> str:
        return "anthropic"

    def _get_client(self) -> Any:
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            if not self.is_available():
                raise LLMProviderUnavailableError("Anthropic API key not configured")

            import anthropic

            self._client = anthropic.AsyncAnthropic(
                api_key=self._settings.anthropic_api_key.get_secret_value(),  # type: ignore[union-attr]
                max_retries=self._settings.retries,
                timeout=self._settings.timeout_seconds,
            )
        return self._client

    def is_available(self) -> bool:
        return self._settings.anthropic_api_key is not None

    def build_content(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Turn messages into text blocks, marking cacheable ones."""
        blocks: list[dict[str, Any]] = []
        for message in messages:
            block: dict[str, Any] = {"type": "text", "text": message.text}
            if message.cache:
                block["cache_control"] = {"type": "ephemeral"}
            blocks.append(block)
        return blocks

    async def create(self, messages: list[Message]) -> str:
        client = self._get_client()

        logger.debug("Sending request to Anthropic", model=self.model, messages=len(messages))

        start_time = time.perf_counter()
        try:
            result = await client.messages.create(
                model=self.model,
                max_tokens=self._settings.max_tokens,
                temperature=self._settings.temperature,
                system=self.system_prompt,
                messages=[{"role": "user", "content": self.build_content(messages)}],
            )
        except Exception as e:
            record_llm_request(self.name, self.model, "error", time.perf_counter() - start_time)
            logger.error("Anthropic API error", error=str(e))
            raise LLMError(f"Anthropic API error: {e}") from e

        record_llm_request(
            self.name,
            self.model,
            "success",
            time.perf_counter() - start_time,
            tokens_input=result.usage.input_tokens,
            tokens_output=result.usage.output_tokens,
        )

        block = result.content[0] if result.content else None
        return block.text if block is not None and block.type == "text" else ""
