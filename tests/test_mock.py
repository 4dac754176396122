"""Tests for the MockTransport."""

import pytest

from mailing import MailAddress, MailDeliveryError, MailMessage, MockTransport, Transport, TransportSettings


class TestMockTransport:
    def test_records_sent_messages(self, mock_transport: MockTransport, text_message: MailMessage):
        result = mock_transport.send(text_message)

        assert result.succeeded
        assert result.external_id.startswith("mock_")
        assert len(mock_transport.sent) == 1
        assert mock_transport.sent[0].message is text_message
        assert mock_transport.sent[0].result is result
        assert mock_transport.sent[0].envelope.text == "Plain hello"

    def test_fixed_error(self, text_message: MailMessage):
        transport = MockTransport(fixed_error="mailbox full")

        with pytest.raises(MailDeliveryError) as exc_info:
            transport.send(text_message)

        assert exc_info.value.errors == ["mailbox full"]
        assert transport.get_errors() == ["mailbox full"]
        assert len(transport.sent) == 1
        assert transport.sent[0].result is None

    def test_applies_defaults_and_debug_mode(self, html_message: MailMessage):
        transport = MockTransport(
            settings=TransportSettings(
                default_bcc=MailAddress("archive@example.com"),
                debug_to=MailAddress("qa@example.com"),
            )
        )

        transport.send(html_message)

        envelope = transport.sent[0].envelope
        assert envelope.to == ["qa@example.com"]
        assert envelope.bcc == []
        assert "archive@example.com (BCC)" in envelope.text
        assert MailAddress("archive@example.com") in html_message.bcc

    def test_reset_clears_sent(self, mock_transport: MockTransport, text_message: MailMessage):
        mock_transport.send(text_message)
        assert len(mock_transport.sent) == 1

        mock_transport.reset()
        assert len(mock_transport.sent) == 0

    def test_satisfies_transport_protocol(self, mock_transport: MockTransport, text_message: MailMessage):
        transport: Transport = mock_transport
        transport.send(text_message)
        assert transport.get_errors() == []

    def test_result_attached_to_own_record(self, text_message: MailMessage, html_message: MailMessage):
        transport = MockTransport()
        deliver = transport._policy.deliver

        def deliver_then_interleave(message, dispatch):
            transport._policy.deliver = deliver
            result = deliver(message, dispatch)
            # Another thread's send lands before this call records its result.
            transport.send(html_message)
            return result

        transport._policy.deliver = deliver_then_interleave
        result = transport.send(text_message)

        own = next(record for record in transport.sent if record.message is text_message)
        other = next(record for record in transport.sent if record.message is html_message)
        assert own.result is result
        assert other.result is not result
