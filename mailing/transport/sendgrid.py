"""SendGrid mail transport."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any

from python_http_client.exceptions import HTTPError  # type: ignore[import-untyped]
from sendgrid import SendGridAPIClient  # type: ignore[import-untyped]
from sendgrid.helpers.mail import (  # type: ignore[import-untyped]
    Attachment,
    Bcc,
    Cc,
    Disposition,
    FileContent,
    FileName,
    FileType,
    Header,
    Mail,
    ReplyTo,
    To,
)

from mailing.types import (
    DeliveryResult,
    MailMessage,
    ProviderFailed,
    ProviderOk,
    ProviderOutcome,
    SendGridConfig,
    TransportSettings,
)

from .policy import Envelope, TransportPolicy

logger = logging.getLogger(__name__)


class SendGridTransport:
    """Sends mail via the SendGrid v3 API."""

    def __init__(
        self,
        config: SendGridConfig,
        *,
        settings: TransportSettings | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        if not config.api_key:
            raise ValueError("SendGridConfig.api_key is required")
        self._client = SendGridAPIClient(config.api_key)
        self._policy = TransportPolicy(settings, log or logger)

    @property
    def settings(self) -> TransportSettings:
        return self._policy.settings

    def configure(self, **changes: Any) -> None:
        self._policy.configure(**changes)

    def send(self, message: MailMessage) -> DeliveryResult:
        """Deliver a message via SendGrid."""
        result = self._policy.deliver(message, self._dispatch)
        logger.info("Mail sent via SendGrid to %s", ", ".join(a.email_address for a in message.to))
        return result

    async def send_async(self, message: MailMessage) -> DeliveryResult:
        """Send a message asynchronously (runs sync send in a thread)."""
        return await asyncio.to_thread(self.send, message)

    def get_errors(self) -> list[str]:
        return list(self._policy.errors)

    def _dispatch(self, envelope: Envelope) -> ProviderOutcome:
        mail = self._build_mail(envelope)
        try:
            response = self._client.send(mail)
        except HTTPError as exc:
            logger.error("SendGrid API error. Status: %s, Body: %s", exc.status_code, exc.body)
            return ProviderFailed(
                http_status=exc.status_code,
                message=_error_message(exc),
                error_code=exc.reason,
                exception=exc,
            )
        if 200 <= response.status_code < 300:
            return ProviderOk(external_id=response.headers.get("X-Message-Id"))
        logger.error("SendGrid send failed. Status: %s, Body: %s", response.status_code, response.body)
        return ProviderOk(
            error_code=response.status_code,
            message=f"SendGrid returned status {response.status_code}",
        )

    def _build_mail(self, envelope: Envelope) -> Mail:
        # SendGrid rejects a custom Return-Path header
        self._policy.warn_unsupported("SendGrid", envelope)

        mail = Mail(
            from_email=envelope.from_,
            to_emails=[To(address) for address in envelope.to],
            subject=envelope.subject,
            plain_text_content=envelope.text,
            html_content=envelope.html,
        )
        for address in envelope.cc:
            mail.add_cc(Cc(address))
        for address in envelope.bcc:
            mail.add_bcc(Bcc(address))
        if envelope.reply_to:
            mail.reply_to = ReplyTo(envelope.reply_to)
        for name, value in envelope.headers.items():
            mail.add_header(Header(name, value))
        for name, part in envelope.attachments:
            mail.add_attachment(
                Attachment(
                    FileContent(base64.b64encode(part.body).decode("ascii")),
                    FileName(name),
                    FileType(part.mime_type),
                    Disposition("attachment"),
                )
            )
        return mail


def _error_message(exc: HTTPError) -> str:
    """Join the ``errors[].message`` entries of a SendGrid error body."""
    try:
        data = exc.to_dict
        return "; ".join(error["message"] for error in data.get("errors", [])) or str(exc.reason)
    except (AttributeError, KeyError, TypeError, ValueError):
        return str(exc.reason)
