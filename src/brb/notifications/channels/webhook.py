"""
Generic webhook channel — send the completion event as JSON to any URL.

Supports a configurable HTTP method and static headers. Any response
outside 2xx is a delivery failure.
"""

from __future__ import annotations

import logging
import re

import httpx

from brb.notifications.channel import NotificationChannel
from brb.notifications.errors import DeliveryError, DeliveryErrorKind
from brb.notifications.events import CompletionEvent

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

# RFC 9110 token
_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


class WebhookChannel(NotificationChannel):
    """Generic webhook notification channel."""

    name: str = "webhook"

    def __init__(
        self,
        url: str,
        *,
        method: str = "POST",
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.method = method
        self.headers = headers or {}
        self.timeout = timeout
        self._transport = transport

    def _request_headers(self) -> httpx.Headers:
        for key, value in self.headers.items():
            if not _TOKEN.fullmatch(key):
                raise DeliveryError(
                    DeliveryErrorKind.TRANSPORT, f"invalid webhook header name `{key}`"
                )
            if "\r" in value or "\n" in value or not value.isascii():
                raise DeliveryError(
                    DeliveryErrorKind.TRANSPORT, f"invalid value for webhook header `{key}`"
                )
        # header names are case-insensitive; a configured Content-Type replaces ours
        headers = httpx.Headers({"Content-Type": "application/json"})
        headers.update(self.headers)
        return headers

    async def deliver(self, event: CompletionEvent) -> None:
        method = self.method.upper()
        if not _TOKEN.fullmatch(method):
            raise DeliveryError(
                DeliveryErrorKind.TRANSPORT, "invalid HTTP method in webhook config"
            )
        headers = self._request_headers()

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            try:
                resp = await client.request(
                    method, self.url, content=event.to_json(), headers=headers
                )
            except httpx.TimeoutException:
                raise DeliveryError(
                    DeliveryErrorKind.TRANSPORT,
                    f"webhook request timed out after {self.timeout:g}s",
                ) from None
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise DeliveryError(
                    DeliveryErrorKind.TRANSPORT, f"webhook request failed: {exc}"
                ) from exc

        if not resp.is_success:
            logger.debug("Webhook %s returned %s", self.url, resp.status_code)
            raise DeliveryError(
                DeliveryErrorKind.HTTP,
                f"webhook returned HTTP {resp.status_code}",
                status=resp.status_code,
            )
