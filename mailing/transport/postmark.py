"""Postmark mail transport.

See https://postmarkapp.com/developer/api/email-api for the wire format.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any

import httpx

from mailing.errors import ProviderTransportError
from mailing.types import (
    DeliveryResult,
    MailMessage,
    PostmarkConfig,
    ProviderFailed,
    ProviderOk,
    ProviderOutcome,
    TransportSettings,
)

from .policy import Envelope, TransportPolicy

logger = logging.getLogger(__name__)

POSTMARK_API_URL = "https://api.postmarkapp.com"
DEFAULT_TIMEOUT_SECONDS = 10.0
TRACK_LINKS = "HtmlAndText"


class PostmarkAPIError(ProviderTransportError):
    """Raised by :class:`PostmarkClient` when the API answers with an error status."""


def encode_attachment(body: bytes, name: str, mime_type: str) -> dict[str, str]:
    """Build a Postmark attachment object with base64 content."""
    return {
        "Name": name,
        "Content": base64.b64encode(body).decode("ascii"),
        "ContentType": mime_type,
    }


class PostmarkClient:
    """Minimal client for the Postmark email endpoint."""

    def __init__(self, server_token: str, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        if not server_token:
            raise ValueError("server_token is required")
        self._client = httpx.Client(
            base_url=POSTMARK_API_URL,
            timeout=timeout,
            headers={
                "Accept": "application/json",
                "X-Postmark-Server-Token": server_token,
            },
        )

    def close(self) -> None:
        self._client.close()

    def send_email(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST one email. Returns the decoded response body.

        Raises:
            PostmarkAPIError: the API answered with a non-2xx status.
        """
        response = self._client.post("/email", json=payload)
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not 200 <= response.status_code < 300:
            raise PostmarkAPIError(
                data.get("Message") or response.text,
                http_status=response.status_code,
                error_code=data.get("ErrorCode"),
            )
        return data


class PostmarkTransport:
    """Sends mail through the Postmark API.

    Usage::

        transport = PostmarkTransport(
            PostmarkConfig(server_token="..."),
            settings=TransportSettings(default_from=MailAddress("noreply@example.com")),
        )
        result = transport.send(message)
    """

    def __init__(
        self,
        config: PostmarkConfig,
        *,
        settings: TransportSettings | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._client = PostmarkClient(config.server_token)
        self._policy = TransportPolicy(settings, log or logger)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> PostmarkTransport:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def settings(self) -> TransportSettings:
        return self._policy.settings

    def configure(self, **changes: Any) -> None:
        self._policy.configure(**changes)

    # ── Public API ────────────────────────────────────────────────

    def send(self, message: MailMessage) -> DeliveryResult:
        """Deliver a message via Postmark."""
        result = self._policy.deliver(message, self._dispatch)
        logger.info("Mail sent via Postmark, message_id=%s", result.external_id)
        return result

    async def send_async(self, message: MailMessage) -> DeliveryResult:
        """Send a message asynchronously (runs sync send in a thread)."""
        return await asyncio.to_thread(self.send, message)

    def get_errors(self) -> list[str]:
        return list(self._policy.errors)

    # ── Private ───────────────────────────────────────────────────

    def _dispatch(self, envelope: Envelope) -> ProviderOutcome:
        payload = self._build_payload(envelope)
        try:
            data = self._client.send_email(payload)
        except PostmarkAPIError as exc:
            logger.error("Postmark API error: status=%s code=%s msg=%s", exc.http_status, exc.error_code, exc.message)
            return ProviderFailed(
                http_status=exc.http_status,
                message=exc.message,
                error_code=exc.error_code,
                exception=exc,
            )
        return ProviderOk(
            error_code=int(data.get("ErrorCode") or 0),
            message=data.get("Message", ""),
            external_id=data.get("MessageID"),
        )

    def _build_payload(self, envelope: Envelope) -> dict[str, Any]:
        # Postmark has no return path support
        self._policy.warn_unsupported("Postmark", envelope)

        get_addresses = self._policy.get_addresses
        payload: dict[str, Any] = {
            "From": envelope.from_,
            "To": get_addresses(envelope.to),
            "Cc": get_addresses(envelope.cc),
            "Bcc": get_addresses(envelope.bcc),
            "Subject": envelope.subject,
            "HtmlBody": envelope.html,
            "TextBody": envelope.text,
            "ReplyTo": envelope.reply_to,
            "Headers": [{"Name": name, "Value": value} for name, value in envelope.headers.items()],
            "Attachments": [
                encode_attachment(part.body, name, part.mime_type) for name, part in envelope.attachments
            ],
            "TrackOpens": self._config.track_opens,
            "TrackLinks": TRACK_LINKS,
            "MessageStream": self._config.message_stream,
        }
        return {key: value for key, value in payload.items() if value is not None}
