"""Mock mail transport for testing.

Runs messages through the same policy as the real transports (default
addresses, debug mode, logging) and records them instead of calling a
provider.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from .transport.policy import Envelope, TransportPolicy
from .types import DeliveryResult, MailMessage, ProviderOk, ProviderOutcome, TransportSettings

logger = logging.getLogger(__name__)


@dataclass
class SentMail:
    """Record of a message sent through the MockTransport."""

    message: MailMessage
    envelope: Envelope
    result: DeliveryResult | None = None


class MockTransport:
    """Test transport that records messages and returns configurable results.

    Usage::

        transport = MockTransport(settings=TransportSettings(debug_to=MailAddress("qa@example.com")))
        result = transport.send(message)
        assert result.succeeded
        assert transport.sent[0].envelope.to == ["qa@example.com"]

    Configure a failure::

        transport = MockTransport(fixed_error="mailbox full")
        transport.send(message)  # raises MailDeliveryError
        assert transport.get_errors() == ["mailbox full"]
    """

    def __init__(
        self,
        *,
        settings: TransportSettings | None = None,
        fixed_error: str | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.fixed_error = fixed_error
        self.sent: list[SentMail] = []
        self._policy = TransportPolicy(settings, log or logger)

    @property
    def settings(self) -> TransportSettings:
        return self._policy.settings

    def configure(self, **changes: Any) -> None:
        self._policy.configure(**changes)

    def send(self, message: MailMessage) -> DeliveryResult:
        records: list[SentMail] = []

        def dispatch(envelope: Envelope) -> ProviderOutcome:
            record = SentMail(message=message, envelope=envelope)
            records.append(record)
            self.sent.append(record)
            if self.fixed_error is not None:
                return ProviderOk(error_code=1, message=self.fixed_error)
            return ProviderOk(external_id=f"mock_{uuid.uuid4().hex[:12]}")

        result = self._policy.deliver(message, dispatch)
        # This call's own record; other threads may have appended since
        records[0].result = result
        return result

    def get_errors(self) -> list[str]:
        return list(self._policy.errors)

    def reset(self) -> None:
        """Clear all recorded messages."""
        self.sent.clear()
