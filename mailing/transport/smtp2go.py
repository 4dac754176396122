"""SMTP2GO mail transport."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any

import httpx

from mailing.types import (
    DeliveryResult,
    MailMessage,
    ProviderFailed,
    ProviderOk,
    ProviderOutcome,
    Smtp2GoConfig,
    TransportSettings,
)

from .policy import Envelope, TransportPolicy

logger = logging.getLogger(__name__)

SMTP2GO_API_URL = "https://api.smtp2go.com/v3/email/send"
DEFAULT_TIMEOUT_SECONDS = 10.0


class Smtp2GoTransport:
    """Sends mail via the SMTP2GO REST API."""

    def __init__(
        self,
        config: Smtp2GoConfig,
        *,
        settings: TransportSettings | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        if not config.api_key:
            raise ValueError("Smtp2GoConfig.api_key is required")
        self._api_key = config.api_key
        self._client = httpx.Client(timeout=DEFAULT_TIMEOUT_SECONDS)
        self._policy = TransportPolicy(settings, log or logger)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> Smtp2GoTransport:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def settings(self) -> TransportSettings:
        return self._policy.settings

    def configure(self, **changes: Any) -> None:
        self._policy.configure(**changes)

    def send(self, message: MailMessage) -> DeliveryResult:
        """Deliver a message via SMTP2GO."""
        result = self._policy.deliver(message, self._dispatch)
        logger.info("Mail sent via SMTP2GO, email_id=%s", result.external_id)
        return result

    async def send_async(self, message: MailMessage) -> DeliveryResult:
        """Send a message asynchronously (runs sync send in a thread)."""
        return await asyncio.to_thread(self.send, message)

    def get_errors(self) -> list[str]:
        return list(self._policy.errors)

    def _dispatch(self, envelope: Envelope) -> ProviderOutcome:
        response = self._client.post(
            SMTP2GO_API_URL,
            json=self._build_payload(envelope),
            headers={"X-Smtp2go-Api-Key": self._api_key},
        )
        try:
            data = response.json().get("data") or {}
        except ValueError:
            data = {}

        if not 200 <= response.status_code < 300:
            logger.error(
                "SMTP2GO send failed. Status: %s, Body: %s",
                response.status_code,
                response.text,
            )
            return ProviderFailed(
                http_status=response.status_code,
                message=data.get("error") or response.text,
                error_code=data.get("error_code"),
            )

        failures = data.get("failures") or []
        if data.get("failed"):
            return ProviderOk(
                error_code=int(data["failed"]),
                message="".join(str(failure) for failure in failures) or "SMTP2GO reported failed recipients",
            )
        return ProviderOk(external_id=data.get("email_id"))

    @staticmethod
    def _build_payload(envelope: Envelope) -> dict[str, Any]:
        custom_headers = [{"header": name, "value": value} for name, value in envelope.headers.items()]
        if envelope.reply_to:
            custom_headers.append({"header": "Reply-To", "value": envelope.reply_to})
        if envelope.return_path:
            custom_headers.append({"header": "Return-Path", "value": envelope.return_path})

        payload: dict[str, Any] = {
            "sender": envelope.from_,
            "to": envelope.to,
            "subject": envelope.subject,
        }
        if envelope.cc:
            payload["cc"] = envelope.cc
        if envelope.bcc:
            payload["bcc"] = envelope.bcc
        if envelope.html is not None:
            payload["html_body"] = envelope.html
        if envelope.text is not None:
            payload["text_body"] = envelope.text
        if custom_headers:
            payload["custom_headers"] = custom_headers
        if envelope.attachments:
            payload["attachments"] = [
                {
                    "filename": name,
                    "fileblob": base64.b64encode(part.body).decode("ascii"),
                    "mimetype": part.mime_type,
                }
                for name, part in envelope.attachments
            ]
        return payload
