"""Tests for the SendGrid transport."""

from unittest.mock import MagicMock, patch

import pytest
from python_http_client.exceptions import HTTPError

from mailing import (
    PART_BODY,
    MailAddress,
    MailDeliveryError,
    MailMessage,
    MailPart,
    ProviderRejectionError,
    SendGridConfig,
    TransportSettings,
)
from mailing.transport.sendgrid import SendGridTransport


def _make_transport(settings: TransportSettings | None = None) -> SendGridTransport:
    """Create a SendGridTransport with a mocked client."""
    with patch("mailing.transport.sendgrid.SendGridAPIClient"):
        return SendGridTransport(SendGridConfig(api_key="SG.test_key"), settings=settings)


def _sent_mail(transport: SendGridTransport) -> dict:
    return transport._client.send.call_args[0][0].get()


def _ok_response() -> MagicMock:
    return MagicMock(status_code=202, body=b"", headers={"X-Message-Id": "sg-1"})


class TestSendGridSend:
    def test_send_success(self, html_message: MailMessage):
        transport = _make_transport()
        transport._client.send = MagicMock(return_value=_ok_response())

        result = transport.send(html_message)

        assert result.succeeded
        assert result.external_id == "sg-1"
        assert transport.get_errors() == []
        transport._client.send.assert_called_once()

    def test_send_constructs_mail_correctly(self, html_message: MailMessage):
        transport = _make_transport()
        transport._client.send = MagicMock(return_value=_ok_response())
        html_message.set_reply_to("support@example.com")
        html_message.add_header("X-Campaign", "spring")

        transport.send(html_message)

        mail = _sent_mail(transport)
        personalization = mail["personalizations"][0]
        assert mail["subject"] == "Monthly report"
        assert mail["from"]["email"] == "reports@example.com"
        assert [to["email"] for to in personalization["to"]] == ["alice@example.com", "bob@example.com"]
        assert [cc["email"] for cc in personalization["cc"]] == ["carol@example.com"]
        assert [bcc["email"] for bcc in personalization["bcc"]] == ["dave@example.com"]
        assert mail["reply_to"]["email"] == "support@example.com"
        assert mail["headers"] == {"X-Campaign": "spring"}

        content = {item["type"]: item["value"] for item in mail["content"]}
        assert content["text/html"] == "<p>See attached.</p>"
        assert content["text/plain"] == "See attached."

        assert len(mail["attachments"]) == 1
        assert mail["attachments"][0]["filename"] == "report.pdf"
        assert mail["attachments"][0]["type"] == "application/pdf"

    def test_attachment_named_by_part_key(self):
        transport = _make_transport()
        transport._client.send = MagicMock(return_value=_ok_response())
        message = MailMessage(
            subject="Report",
            from_=MailAddress("reports@example.com"),
            to=[MailAddress("user@example.com")],
            parts={
                PART_BODY: MailPart("text/plain", b"hi"),
                "report.pdf": MailPart("application/pdf", b"%PDF"),
            },
        )

        transport.send(message)

        assert [a["filename"] for a in _sent_mail(transport)["attachments"]] == ["report.pdf"]

    def test_debug_mode_redirects(self, html_message: MailMessage):
        transport = _make_transport(TransportSettings(debug_to=MailAddress("qa@example.com")))
        transport._client.send = MagicMock(return_value=_ok_response())

        transport.send(html_message)

        personalization = _sent_mail(transport)["personalizations"][0]
        assert [to["email"] for to in personalization["to"]] == ["qa@example.com"]
        assert "cc" not in personalization
        assert "bcc" not in personalization


class TestSendGridErrors:
    def test_send_failure_status(self, text_message: MailMessage):
        transport = _make_transport()
        transport._client.send = MagicMock(return_value=MagicMock(status_code=400, body=b"Bad Request"))

        with pytest.raises(MailDeliveryError) as exc_info:
            transport.send(text_message)

        assert transport.get_errors() == ["SendGrid returned status 400"]
        assert isinstance(exc_info.value.__cause__, ProviderRejectionError)

    def test_http_error(self, text_message: MailMessage):
        transport = _make_transport()
        error = HTTPError(401, "Unauthorized", b'{"errors": [{"message": "Permission denied"}]}', {})
        transport._client.send = MagicMock(side_effect=error)

        with pytest.raises(MailDeliveryError) as exc_info:
            transport.send(text_message)

        assert transport.get_errors() == ["401: Permission denied (Unauthorized)"]
        assert exc_info.value.__cause__ is error

    def test_send_exception(self, text_message: MailMessage):
        transport = _make_transport()
        transport._client.send = MagicMock(side_effect=ConnectionError("network error"))

        with pytest.raises(MailDeliveryError, match="Could not send the mail") as exc_info:
            transport.send(text_message)

        assert "network error" in str(exc_info.value.__cause__)

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            SendGridTransport(SendGridConfig(api_key=""))
