"""Exceptions raised by mail transports.

Callers of ``Transport.send`` only ever see :class:`MailDeliveryError`. The
provider-level errors travel as its ``__cause__``.
"""

from __future__ import annotations


class MailError(Exception):
    """Base class for every mail-related error in this library."""


class MailDeliveryError(MailError):
    """Raised when a transport could not deliver a message."""

    def __init__(self, message: str, *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class ProviderTransportError(MailError):
    """The provider client failed at HTTP level (auth, protocol, server error)."""

    def __init__(self, message: str, *, http_status: int | None = None, error_code: int | str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status
        self.error_code = error_code


class ProviderRejectionError(MailError):
    """The provider accepted the request but refused the message."""

    def __init__(self, message: str, *, error_code: int | str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
