"""Core types for the mailing library."""

from __future__ import annotations

from dataclasses import dataclass, field
from email.utils import formataddr, parseaddr
from enum import Enum
from typing import Union

from mailing.errors import MailError, ProviderRejectionError, ProviderTransportError

PART_BODY = "body"
PART_ALTERNATIVE = "alternative"
_RESERVED_PARTS = frozenset({PART_BODY, PART_ALTERNATIVE})


# ── Addresses and parts ───────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class MailAddress:
    """An email address with an optional display name.

    Two addresses are equal when their email addresses are equal; the
    display name is ignored.
    """

    email_address: str
    display_name: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.email_address or not self.email_address.strip():
            raise ValueError("MailAddress.email_address must not be empty")

    def __str__(self) -> str:
        if self.display_name:
            return formataddr((self.display_name, self.email_address))
        return self.email_address

    @classmethod
    def parse(cls, value: str) -> MailAddress:
        """Build an address from ``"Name <user@example.com>"`` or a bare address."""
        name, address = parseaddr(value)
        if not address:
            raise ValueError(f"Invalid email address: {value!r}")
        return cls(email_address=address, display_name=name or None)


AddressLike = Union[MailAddress, str]


def to_address(value: AddressLike) -> MailAddress:
    if isinstance(value, MailAddress):
        return value
    return MailAddress.parse(value)


@dataclass(frozen=True, slots=True)
class MailPart:
    """A content part: the primary body, its alternative, or an attachment."""

    mime_type: str
    body: bytes = b""
    name: str | None = None

    def __post_init__(self) -> None:
        if not self.mime_type:
            raise ValueError("MailPart.mime_type must not be empty")
        if self.body is None:
            raise ValueError("MailPart.body must not be None")
        if isinstance(self.body, str):
            object.__setattr__(self, "body", self.body.encode("utf-8"))

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


# ── Message ───────────────────────────────────────────────────────────


@dataclass
class MailMessage:
    """A mail message as built by the caller.

    The body, its plain-text alternative and the attachments all live in
    ``parts``. The names ``PART_BODY`` and ``PART_ALTERNATIVE`` are
    reserved; every other name denotes an attachment.

    Transports apply their default from/bcc/reply-to addresses directly on
    the message passed to ``send``, so the caller can inspect the effective
    addressing afterwards.

    Usage::

        message = MailMessage(subject="Monthly report")
        message.set_from("Reports <reports@example.com>")
        message.add_to("boss@example.com")
        message.set_message("<p>See attached.</p>", html=True)
        message.set_alternative("See attached.")
        message.add_attachment("report.pdf", pdf_bytes, "application/pdf")
    """

    subject: str = ""
    from_: MailAddress | None = None
    to: list[MailAddress] = field(default_factory=list)
    cc: list[MailAddress] = field(default_factory=list)
    bcc: list[MailAddress] = field(default_factory=list)
    reply_to: MailAddress | None = None
    return_path: MailAddress | None = None
    headers: dict[str, str] = field(default_factory=dict)
    is_html: bool = False
    parts: dict[str, MailPart] = field(default_factory=dict)

    # ── Addressing ────────────────────────────────────────────────

    def set_from(self, address: AddressLike | None) -> None:
        self.from_ = to_address(address) if address is not None else None

    def set_reply_to(self, address: AddressLike | None) -> None:
        self.reply_to = to_address(address) if address is not None else None

    def set_return_path(self, address: AddressLike | None) -> None:
        self.return_path = to_address(address) if address is not None else None

    def add_to(self, *addresses: AddressLike) -> None:
        self.to.extend(to_address(a) for a in addresses)

    def add_cc(self, *addresses: AddressLike) -> None:
        self.cc.extend(to_address(a) for a in addresses)

    def add_bcc(self, *addresses: AddressLike) -> None:
        self.bcc.extend(to_address(a) for a in addresses)

    def add_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    # ── Content ───────────────────────────────────────────────────

    def set_message(self, body: str, *, html: bool = False) -> None:
        """Set the primary body. Switching to plain text drops the alternative."""
        self.is_html = html
        mime_type = "text/html" if html else "text/plain"
        self.parts[PART_BODY] = MailPart(mime_type=mime_type, body=body.encode("utf-8"), name=PART_BODY)
        if not html:
            self.parts.pop(PART_ALTERNATIVE, None)

    def set_alternative(self, text: str) -> None:
        """Set the plain-text fallback of an HTML message."""
        if not self.is_html:
            raise ValueError("An alternative part requires an HTML message")
        self.parts[PART_ALTERNATIVE] = MailPart(
            mime_type="text/plain", body=text.encode("utf-8"), name=PART_ALTERNATIVE
        )

    def add_attachment(self, name: str, body: bytes | str, mime_type: str = "application/octet-stream") -> None:
        if not name:
            raise ValueError("Attachment name must not be empty")
        if name in _RESERVED_PARTS:
            raise ValueError(f"'{name}' is a reserved part name")
        self.parts[name] = MailPart(mime_type=mime_type, body=body, name=name)

    def get_part(self, name: str) -> MailPart | None:
        return self.parts.get(name)

    @property
    def message(self) -> str | None:
        """Text of the primary body, or None when no body was set."""
        part = self.parts.get(PART_BODY)
        return part.text if part is not None else None

    @property
    def attachments(self) -> dict[str, MailPart]:
        return {name: part for name, part in self.parts.items() if name not in _RESERVED_PARTS}

    def validate(self) -> None:
        """Check the message is ready to be handed to a transport."""
        if PART_BODY not in self.parts:
            raise ValueError("MailMessage has no body part")
        if PART_ALTERNATIVE in self.parts and not self.is_html:
            raise ValueError("An alternative part requires an HTML body")


# ── Delivery results ──────────────────────────────────────────────────


class DeliveryStatus(str, Enum):
    """Outcome of a send attempt."""

    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DeliveryResult:
    """Result of a single send attempt, returned by every transport."""

    status: DeliveryStatus
    external_id: str | None = None
    errors: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.status is DeliveryStatus.SENT and not self.errors

    @classmethod
    def ok(cls, *, external_id: str | None = None) -> DeliveryResult:
        return cls(status=DeliveryStatus.SENT, external_id=external_id)

    @classmethod
    def fail(cls, errors: list[str] | tuple[str, ...]) -> DeliveryResult:
        return cls(status=DeliveryStatus.FAILED, errors=tuple(errors))


@dataclass(frozen=True, slots=True)
class ProviderOk:
    """The provider call returned; ``error_code`` may still report a rejection."""

    error_code: int = 0
    message: str = ""
    external_id: str | None = None

    @property
    def errors(self) -> list[str]:
        if self.error_code:
            return [self.message]
        return []

    def as_exception(self) -> MailError | None:
        if not self.error_code:
            return None
        return ProviderRejectionError(self.message, error_code=self.error_code)


@dataclass(frozen=True, slots=True)
class ProviderFailed:
    """The provider call raised."""

    http_status: int | None
    message: str
    error_code: int | str | None = None
    exception: BaseException | None = field(default=None, compare=False)

    @property
    def errors(self) -> list[str]:
        return [f"{self.http_status}: {self.message} ({self.error_code})"]

    def as_exception(self) -> BaseException:
        if self.exception is not None:
            return self.exception
        return ProviderTransportError(self.message, http_status=self.http_status, error_code=self.error_code)


ProviderOutcome = Union[ProviderOk, ProviderFailed]


# ── Configuration ─────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class TransportSettings:
    """Policy shared by all sends of one transport instance."""

    default_from: MailAddress | None = None
    default_bcc: MailAddress | None = None
    default_reply_to: MailAddress | None = None
    debug_to: MailAddress | None = None
    line_break: str = "\n"


@dataclass(frozen=True, slots=True)
class PostmarkConfig:
    """Configuration for creating a Postmark transport."""

    server_token: str
    message_stream: str | None = None
    track_opens: bool = True


@dataclass(frozen=True, slots=True)
class SendGridConfig:
    """Configuration for creating a SendGrid transport."""

    api_key: str


@dataclass(frozen=True, slots=True)
class Smtp2GoConfig:
    """Configuration for creating an SMTP2GO transport."""

    api_key: str
