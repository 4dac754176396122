"""Shared test fixtures for the mailing library."""

import pytest

from mailing import MailMessage, MockTransport, PostmarkConfig, SendGridConfig, Smtp2GoConfig


@pytest.fixture
def postmark_config() -> PostmarkConfig:
    return PostmarkConfig(server_token="postmark-test-token")


@pytest.fixture
def sendgrid_config() -> SendGridConfig:
    return SendGridConfig(api_key="SG.test_key_123")


@pytest.fixture
def smtp2go_config() -> Smtp2GoConfig:
    return Smtp2GoConfig(api_key="smtp2go_test_key")


@pytest.fixture
def mock_transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
def html_message() -> MailMessage:
    message = MailMessage(subject="Monthly report")
    message.set_from("Reports <reports@example.com>")
    message.add_to("alice@example.com", "Bob <bob@example.com>")
    message.add_cc("carol@example.com")
    message.add_bcc("dave@example.com")
    message.set_message("<p>See attached.</p>", html=True)
    message.set_alternative("See attached.")
    message.add_attachment("report.pdf", b"%PDF-1.4 data", "application/pdf")
    return message


@pytest.fixture
def text_message() -> MailMessage:
    message = MailMessage(subject="Hello")
    message.set_from("noreply@example.com")
    message.add_to("user@example.com")
    message.set_message("Plain hello")
    return message
