"""Mail transports."""

from .base import Transport
from .policy import Envelope, TransportPolicy
from .postmark import PostmarkAPIError, PostmarkClient, PostmarkTransport, encode_attachment
from .sendgrid import SendGridTransport
from .smtp2go import Smtp2GoTransport

__all__ = [
    "Envelope",
    "PostmarkAPIError",
    "PostmarkClient",
    "PostmarkTransport",
    "SendGridTransport",
    "Smtp2GoTransport",
    "Transport",
    "TransportPolicy",
    "encode_attachment",
]
