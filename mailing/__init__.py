"""
maia-mailing — Mail delivery library with pluggable provider transports.

Owns everything from "I have a composed mail message and a provider account"
to "the provider accepted it, or here is why not." The consuming app keeps
configuration loading, templating and any retry policy.

Quick start — Postmark::

    from mailing import (
        MailAddress,
        MailDeliveryError,
        MailMessage,
        PostmarkConfig,
        PostmarkTransport,
        TransportSettings,
    )

    transport = PostmarkTransport(
        PostmarkConfig(server_token="..."),
        settings=TransportSettings(default_from=MailAddress("noreply@example.com", "My App")),
    )

    message = MailMessage(subject="Welcome")
    message.add_to("user@example.com")
    message.set_message("<h1>Hello!</h1>", html=True)
    message.set_alternative("Hello!")

    try:
        result = transport.send(message)
        print(f"Message ID: {result.external_id}")
    except MailDeliveryError as exc:
        print(f"Not sent: {exc} {exc.errors}")

Debug mode — redirect every mail to a test inbox::

    transport.configure(debug_to=MailAddress("qa@example.com"))

For testing::

    from mailing import MockTransport

    transport = MockTransport()
    transport.send(message)
    assert len(transport.sent) == 1

Module overview
---------------
- ``types``       — MailAddress, MailPart, MailMessage, DeliveryResult, configs
- ``errors``      — MailDeliveryError and the provider error taxonomy
- ``transport/``  — Transport protocol, shared TransportPolicy, Postmark,
                    SendGrid and SMTP2GO transports
- ``mock``        — MockTransport

What this library does NOT own (stays in the consuming app):
- Loading API keys and settings from the environment
- Queueing, retries and delivery guarantees
- Address validation beyond basic parsing
"""

from .errors import MailDeliveryError, MailError, ProviderRejectionError, ProviderTransportError
from .mock import MockTransport, SentMail
from .transport import (
    Envelope,
    PostmarkAPIError,
    PostmarkClient,
    PostmarkTransport,
    SendGridTransport,
    Smtp2GoTransport,
    Transport,
    TransportPolicy,
    encode_attachment,
)
from .types import (
    PART_ALTERNATIVE,
    PART_BODY,
    DeliveryResult,
    DeliveryStatus,
    MailAddress,
    MailMessage,
    MailPart,
    PostmarkConfig,
    ProviderFailed,
    ProviderOk,
    ProviderOutcome,
    SendGridConfig,
    Smtp2GoConfig,
    TransportSettings,
)

__all__ = [
    # Transports
    "Transport",
    "TransportPolicy",
    "Envelope",
    "PostmarkTransport",
    "PostmarkClient",
    "PostmarkAPIError",
    "encode_attachment",
    "SendGridTransport",
    "Smtp2GoTransport",
    "MockTransport",
    "SentMail",
    # Errors
    "MailError",
    "MailDeliveryError",
    "ProviderTransportError",
    "ProviderRejectionError",
    # Types — message
    "MailAddress",
    "MailMessage",
    "MailPart",
    "PART_BODY",
    "PART_ALTERNATIVE",
    # Types — results
    "DeliveryResult",
    "DeliveryStatus",
    "ProviderOk",
    "ProviderFailed",
    "ProviderOutcome",
    # Types — configuration
    "TransportSettings",
    "PostmarkConfig",
    "SendGridConfig",
    "Smtp2GoConfig",
]
