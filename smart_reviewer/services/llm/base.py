import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal, TypeVar

import httpx
import structlog

logger = structlog.get_logger()

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
RETRY_BASE_DELAY = 2.0


@dataclass(frozen=True)
class Message:
    """A prompt fragment sent to a chat model."""

    text: str
    role: Literal["user", "assistant"] = "user"
    # Providers that support prompt caching cache this fragment.
    cache: bool = False


def get_model_name(full_model_name: str) -> str:
    """Strip the provider prefix from ``provider/model``."""
    parts = full_model_name.split("/")
    return "/".join(parts[1:]) if len(parts) > 1 else full_model_name


def get_provider_name(full_model_name: str) -> str:
    return full_model_name.split("/", 1)[0] if "/" in full_model_name else ""


class ChatBot(ABC):
    """Abstract base class for chat model providers."""

    def __init__(self, full_model_name: str, system_prompt: str) -> None:
        self.full_model_name = full_model_name
        self.system_prompt = system_prompt

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        pass

    @property
    def model(self) -> str:
        """Model identifier without the provider prefix."""
        return get_model_name(self.full_model_name)

    @abstractmethod
    async def create(self, messages: list[Message]) -> str:
        """Send the messages and return the model's text reply."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is configured and available."""
        pass


def is_retryable(error: httpx.HTTPError) -> bool:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(error, httpx.TransportError)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    retries: int,
    provider: str,
) -> T:
    """
    Await ``operation``, retrying rate limits, server errors and transport failures.

    Up to ``retries`` extra attempts are made, doubling the delay each time.
    The last error propagates unchanged.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except httpx.HTTPError as e:
            if attempt >= retries or not is_retryable(e):
                raise
            delay = RETRY_BASE_DELAY * 2**attempt
            attempt += 1
            logger.warning(
                "Model request failed, retrying",
                provider=provider,
                attempt=attempt,
                retries=retries,
                delay=delay,
                error=str(e),
            )
            await asyncio.sleep(delay)
