"""Base protocol for mail transports."""

from __future__ import annotations

from typing import Protocol

from mailing.types import DeliveryResult, MailMessage


class Transport(Protocol):
    """Interface that all mail transports must implement."""

    def send(self, message: MailMessage) -> DeliveryResult:
        """Deliver a message.

        Raises:
            MailDeliveryError: whenever the message could not be delivered,
                whatever the underlying cause.
        """
        ...

    def get_errors(self) -> list[str]:
        """Errors reported by the provider during the last completed send."""
        ...
