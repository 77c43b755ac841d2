import time
from typing import Any

import httpx
import structlog

from smart_reviewer.core.config import Settings
from smart_reviewer.core.exceptions import (
    LLMError,
    LLMProviderUnavailableError,
    LLMRateLimitError,
)
from smart_reviewer.core.metrics import record_llm_request
from smart_reviewer.services.llm.base import ChatBot, Message, retry_with_backoff

logger = structlog.get_logger()

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiProvider(ChatBot):
    """Google Gemini provider over the generateContent REST endpoint."""

    def __init__(self, full_model_name: str, system_prompt: str, settings: Settings) -> None:
        super().__init__(full_model_name, system_prompt)
        self._settings = settings
        self._transport: httpx.AsyncBaseTransport | None = None

    @property
    def name(self) -> str:
        return "google"

    def is_available(self) -> bool:
        return self._settings.google_api_key is not None

    def build_payload(self, messages: list[Message]) -> dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": self.system_prompt}]},
            "contents": [
                {
                    "role": "model" if message.role == "assistant" else "user",
                    "parts": [{"text": message.text}],
                }
                for message in messages
            ],
            "generationConfig": {
                "temperature": self._settings.temperature,
                "maxOutputTokens": self._settings.max_tokens,
            },
        }

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._settings.timeout_seconds, transport=self._transport)

    async def _generate(self, url: str, api_key: str, payload: dict[str, Any]) -> dict[str, Any]:
        async with self._http_client() as client:
            response = await client.post(url, params={"key": api_key}, json=payload)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
            return data

    async def create(self, messages: list[Message]) -> str:
        if not self.is_available():
            raise LLMProviderUnavailableError("Google API key not configured")

        api_key = self._settings.google_api_key.get_secret_value()  # type: ignore[union-attr]
        url = f"{GEMINI_API_URL}/{self.model}:generateContent"
        payload = self.build_payload(messages)

        logger.debug("Sending request to Gemini", model=self.model)

        start_time = time.perf_counter()
        try:
            data = await retry_with_backoff(
                lambda: self._generate(url, api_key, payload),
                self._settings.retries,
                self.name,
            )
        except httpx.HTTPError as e:
            record_llm_request(self.name, self.model, "error", time.perf_counter() - start_time)
            logger.error("Gemini API error", error=str(e))
            if isinstance(e, httpx.HTTPStatusError) and e.response.status_code == 429:
                raise LLMRateLimitError("Gemini rate limit exceeded") from e
            raise LLMError(f"Gemini API error: {e}") from e

        usage = data.get("usageMetadata", {})
        record_llm_request(
            self.name,
            self.model,
            "success",
            time.perf_counter() - start_time,
            tokens_input=usage.get("promptTokenCount", 0),
            tokens_output=usage.get("candidatesTokenCount", 0),
        )

        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)
