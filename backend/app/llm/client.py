"""Chat-completion client for document matching.

Security: Reads API key from settings only, never hardcoded.
Provides a deterministic stub when no key is present for local runs.
"""

import logging
import time
from typing import Protocol

import openai
from openai import AsyncOpenAI

from backend.app.config import Settings
from backend.app.errors import CompletionRateLimitedError, UpstreamError
from backend.app.utils.metrics import completion_latency_ms

logger = logging.getLogger(__name__)

ChatTurn = dict[str, str]


class CompletionClient(Protocol):
    """Protocol for chat-completion implementations."""

    async def complete(self, messages: list[ChatTurn]) -> str:
        """Send ``messages`` and return ``choices[0].message.content``.

        Raises:
            CompletionRateLimitedError: Upstream answered HTTP 429
            UpstreamError: Any other failure or a malformed response
        """
        ...


class DeterministicStubClient:
    """Stub client used when no API key is configured."""

    async def complete(self, messages: list[ChatTurn]) -> str:
        """Return a fixed reply without document matches."""
        return (
            "The study assistant is running without an AI key, so I can't search "
            "the catalog right now. Please try again later."
        )


class OpenAICompletionClient:
    """OpenAI-compatible completion client (works with AI gateways)."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 60.0,
    ):
        """Initialize client.

        Args:
            api_key: Gateway API key
            model: Model name sent with each request
            base_url: OpenAI-compatible base URL (None = api.openai.com)
            timeout_seconds: Request timeout

        SDK retries are disabled so a 429 reaches the caller on first sight.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.model = model

    async def complete(self, messages: list[ChatTurn]) -> str:
        """Call the chat completions endpoint."""
        started = time.monotonic()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
            )
        except openai.RateLimitError as e:
            self._observe(started, "rate_limited")
            logger.error("AI Gateway error: 429 %s", e)
            raise CompletionRateLimitedError() from e
        except openai.APIStatusError as e:
            self._observe(started, "error")
            logger.error("AI Gateway error: %s %s", e.status_code, e.message)
            raise UpstreamError(f"AI Gateway error: {e.status_code}", e.status_code) from e
        except openai.APIError as e:
            self._observe(started, "error")
            logger.error("AI Gateway request failed: %s", e)
            raise UpstreamError(f"AI Gateway request failed: {type(e).__name__}") from e

        self._observe(started, "success")

        if not response.choices or response.choices[0].message.content is None:
            raise UpstreamError("AI Gateway returned no message content")

        return response.choices[0].message.content

    @staticmethod
    def _observe(started: float, outcome: str) -> None:
        completion_latency_ms.labels(outcome=outcome).observe((time.monotonic() - started) * 1000)


def get_completion_client(settings: Settings) -> CompletionClient:
    """Factory function to get the completion client for the current config.

    Returns:
        OpenAICompletionClient if an API key is configured, stub otherwise
    """
    api_key = settings.ai_api_key.get_secret_value()

    if api_key:
        logger.info("Using completion model %s via %s", settings.ai_model, settings.ai_gateway_url)
        return OpenAICompletionClient(
            api_key=api_key,
            model=settings.ai_model,
            base_url=settings.ai_gateway_url or None,
            timeout_seconds=settings.ai_timeout_seconds,
        )

    logger.warning("No AI API key configured, using deterministic stub client")
    return DeterministicStubClient()
