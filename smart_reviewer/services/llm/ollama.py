import time
from typing import Any

import httpx
import structlog

from smart_reviewer.core.config import Settings
from smart_reviewer.core.exceptions import LLMError, LLMProviderUnavailableError
from smart_reviewer.core.metrics import record_llm_request
from smart_reviewer.services.llm.base import ChatBot, Message, retry_with_backoff

logger = structlog.get_logger()

PING_TIMEOUT_SECONDS = 5.0


class OllamaProvider(ChatBot):
    """Ollama provider for local LLM inference."""

    def __init__(self, full_model_name: str, system_prompt: str, settings: Settings) -> None:
        super().__init__(full_model_name, system_prompt)
        self._settings = settings
        self._base_url = settings.ollama_host
        self._transport: httpx.AsyncBaseTransport | None = None

    @property
    def name(self) -> str:
        return "ollama"

    def is_available(self) -> bool:
        """A host is configured; reachability is checked by :meth:`ping`."""
        return bool(self._base_url)

    def _http_client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self._base_url, timeout=timeout, transport=self._transport)

    async def ping(self) -> bool:
        """Check if the Ollama server answers on ``/api/tags``."""
        try:
            async with self._http_client(PING_TIMEOUT_SECONDS) as client:
                response = await client.get("/api/tags")
        except httpx.HTTPError:
            return False
        return response.status_code == 200

    def build_payload(self, messages: list[Message]) -> dict[str, Any]:
        # Ollama has no separate system/user blocks on /api/generate
        user_prompt = "\n\n".join(message.text for message in messages)
        return {
            "model": self.model,
            "prompt": f"{self.system_prompt}\n\n---\n\n{user_prompt}",
            "stream": False,
            "options": {
                "temperature": self._settings.temperature,
                "num_predict": self._settings.max_tokens,
            },
        }

    async def _generate(self, payload: dict[str, Any]) -> dict[str, Any]:
        async with self._http_client(self._settings.timeout_seconds) as client:
            response = await client.post("/api/generate", json=payload)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
            return data

    async def create(self, messages: list[Message]) -> str:
        if not self.is_available() or not await self.ping():
            raise LLMProviderUnavailableError("Ollama server is not available")

        payload = self.build_payload(messages)
        logger.debug("Sending request to Ollama", model=self.model)

        start_time = time.perf_counter()
        try:
            data = await retry_with_backoff(
                lambda: self._generate(payload), self._settings.retries, self.name
            )
        except httpx.HTTPError as e:
            record_llm_request(self.name, self.model, "error", time.perf_counter() - start_time)
            logger.error("Ollama API error", error=str(e))
            raise LLMError(f"Ollama API error: {e}") from e

        record_llm_request(
            self.name,
            self.model,
            "success",
            time.perf_counter() - start_time,
            tokens_input=data.get("prompt_eval_count", 0),
            tokens_output=data.get("eval_count", 0),
        )

        return str(data.get("response", ""))
