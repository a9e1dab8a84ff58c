"""Transactional e-mail client (Resend HTTP API)."""

import logging
from typing import Protocol

import httpx

from backend.app.config import Settings
from backend.app.errors import UpstreamError
from backend.app.models.notifications import OutgoingEmail

logger = logging.getLogger(__name__)


class EmailClient(Protocol):
    """Protocol for e-mail senders."""

    async def send(self, email: OutgoingEmail) -> str:
        """Send an e-mail and return the provider's message id.

        Raises:
            UpstreamError: Provider rejected the request
        """
        ...


class ResendEmailClient:
    """Sends mail through ``POST {base_url}/emails``."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.resend.com",
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResendEmailClient":
        return cls(
            api_key=settings.resend_api_key.get_secret_value(),
            base_url=settings.resend_base_url,
        )

    async def send(self, email: OutgoingEmail) -> str:
        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout)
            close_client = True

        try:
            response = await client.post(
                f"{self._base_url}/emails",
                headers={"Authorization": f"Bearer {self._api_key}"},
                json=email.model_dump(by_alias=True),
            )
        except httpx.HTTPError as e:
            logger.error("Resend request failed: %s", e)
            raise UpstreamError("Failed to send email", user_message="Failed to send email") from e
        finally:
            if close_client:
                await client.aclose()

        if response.is_error:
            logger.error("Resend error: %s %s", response.status_code, response.text)
            raise UpstreamError(
                "Failed to send email", response.status_code, user_message="Failed to send email"
            )

        message_id = response.json().get("id")
        if not message_id:
            raise UpstreamError(
                "Failed to send email", response.status_code, user_message="Failed to send email"
            )
        return str(message_id)
