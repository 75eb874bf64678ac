"""Posts chat notifications to a Slack-compatible incoming webhook."""

from typing import Any

import httpx
import structlog

from gitsorted.exceptions import TransportError
from gitsorted.utils.constants import DEFAULT_REQUEST_TIMEOUT

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class SlackNotifier:
    """Fire-and-forget message sender for an incoming webhook.

    The webhook receives a JSON payload with a single ``text`` field. Any 2xx
    status is success; other statuses are reported as failure rather than
    raised. Network failures and timeouts raise ``TransportError``.
    """

    def __init__(self, webhook_url: str, request_timeout: float = DEFAULT_REQUEST_TIMEOUT, client: httpx.AsyncClient | None = None) -> None:
        """Initialize the notifier, creating an HTTP client unless one is given."""
        self.webhook_url = webhook_url
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(request_timeout))

    async def __aenter__(self) -> "SlackNotifier":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit -- close httpx client."""
        await self.close()

    async def close(self) -> None:
        """Close the httpx client and release connections."""
        await self._client.aclose()

    async def send(self, text: str) -> bool:
        """Post ``text`` to the webhook, returning whether it was accepted."""
        try:
            response = await self._client.post(self.webhook_url, json={"text": text})
        except httpx.HTTPError as exc:
            raise TransportError(f"Chat webhook request did not complete: {exc}") from exc
        if response.is_success:
            return True
        logger.error("Chat webhook rejected message", status_code=response.status_code, response_body=response.text[:200])
        return False
