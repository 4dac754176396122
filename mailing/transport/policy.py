"""Provider-independent sending policy shared by every transport.

Transports compose a :class:`TransportPolicy` instead of inheriting from a
base class. The policy owns default-address injection, debug-mode
redirection, address formatting and the per-send log record.
"""

from __future__ import annotations

import dataclasses
import html as html_lib
import logging
import pprint
import threading
from dataclasses import dataclass, field, fields
from typing import Any, Callable

from mailing.errors import MailDeliveryError
from mailing.types import (
    PART_ALTERNATIVE,
    DeliveryResult,
    MailAddress,
    MailMessage,
    MailPart,
    ProviderOk,
    ProviderOutcome,
    TransportSettings,
)

logger = logging.getLogger(__name__)

# Keys carrying message content; they never reach the log.
CONTENT_FIELDS = frozenset({"text", "html", "body", "attachments"})

_DEBUG_BANNER_STYLE = "padding: 15px; margin: 25px 50px; border: 1px solid red; color: red; background-color: #FFC"


@dataclass
class Envelope:
    """Provider-facing view of a message, with bare email addresses."""

    subject: str
    from_: str | None
    to: list[str] = field(default_factory=list)
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    reply_to: str | None = None
    return_path: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    html: str | None = None
    text: str | None = None
    attachments: list[tuple[str, MailPart]] = field(default_factory=list)

    def loggable(self) -> dict[str, Any]:
        """Envelope fields safe to log: addressing and metadata only."""
        data = {f.name.rstrip("_"): getattr(self, f.name) for f in fields(self)}
        return {key: value for key, value in data.items() if key not in CONTENT_FIELDS}


class TransportPolicy:
    """Default addresses, debug mode and mail logging for one transport.

    The policy also owns the transport's per-send state. ``deliver`` holds a
    lock for the whole attempt, so sends through one policy never overlap
    and ``errors`` always belongs to a single, complete send.
    """

    def __init__(self, settings: TransportSettings | None = None, log: logging.Logger | None = None) -> None:
        self.settings = settings or TransportSettings()
        self.log = log or logger
        self.errors: list[str] = []
        self._lock = threading.Lock()

    def configure(self, **changes: Any) -> None:
        """Replace some settings, e.g. ``configure(debug_to=MailAddress(...))``."""
        with self._lock:
            self.settings = dataclasses.replace(self.settings, **changes)

    # ── Send pipeline ─────────────────────────────────────────────

    def deliver(self, message: MailMessage, dispatch: Callable[[Envelope], ProviderOutcome]) -> DeliveryResult:
        """Run one send attempt, with ``dispatch`` as the provider call.

        Applies the defaults, builds the envelope, applies debug mode, calls
        the provider once and logs the envelope. Every failure leaves as a
        ``MailDeliveryError``.
        """
        with self._lock:
            self.errors = []
            try:
                return self._attempt(message, dispatch)
            except MailDeliveryError as exc:
                self.errors = list(exc.errors)
                raise

    def _attempt(self, message: MailMessage, dispatch: Callable[[Envelope], ProviderOutcome]) -> DeliveryResult:
        try:
            self.apply_defaults(message)
            envelope = self.build_envelope(message)
            self.apply_debug_mode(envelope)

            outcome = dispatch(envelope)
            errors = outcome.errors

            self.log_envelope(envelope, len(errors))

            # A ProviderFailed always carries errors
            if isinstance(outcome, ProviderOk) and not errors:
                return DeliveryResult.ok(external_id=outcome.external_id)
            raise MailDeliveryError(
                "Errors returned from the server: " + "".join(errors),
                errors=errors,
            ) from outcome.as_exception()
        except MailDeliveryError:
            raise
        except Exception as exc:
            raise MailDeliveryError("Could not send the mail") from exc

    # ── Defaults ──────────────────────────────────────────────────

    def apply_defaults(self, message: MailMessage) -> None:
        """Fill in default addresses on the caller's message, in place."""
        settings = self.settings
        if message.from_ is None and settings.default_from is not None:
            message.from_ = settings.default_from
        if settings.default_bcc is not None:
            message.bcc.append(settings.default_bcc)
        if message.reply_to is None and settings.default_reply_to is not None:
            message.reply_to = settings.default_reply_to

    # ── Envelope ──────────────────────────────────────────────────

    def build_envelope(self, message: MailMessage) -> Envelope:
        message.validate()

        body = message.message
        if message.is_html:
            alternative = message.get_part(PART_ALTERNATIVE)
            html_body: str | None = body
            text_body = alternative.text if alternative is not None else None
        else:
            html_body = None
            text_body = body

        return Envelope(
            subject=message.subject,
            from_=self.get_address(message.from_),
            to=[a.email_address for a in message.to],
            cc=[a.email_address for a in message.cc],
            bcc=[a.email_address for a in message.bcc],
            reply_to=self.get_address(message.reply_to),
            return_path=self.get_address(message.return_path),
            headers=dict(message.headers),
            html=html_body,
            text=text_body,
            attachments=list(message.attachments.items()),
        )

    def apply_debug_mode(self, envelope: Envelope) -> None:
        """Redirect the envelope to ``debug_to`` and list the real recipients in the bodies."""
        debug_to = self.settings.debug_to
        if debug_to is None:
            return

        recipients = [(a, "") for a in envelope.to]
        recipients += [(a, " (CC)") for a in envelope.cc]
        recipients += [(a, " (BCC)") for a in envelope.bcc]

        envelope.to = [debug_to.email_address]
        envelope.cc = []
        envelope.bcc = []

        if envelope.html is not None:
            items = "".join(f"<li>{html_lib.escape(address)}{marker}</li>" for address, marker in recipients)
            banner = (
                f'<div style="{_DEBUG_BANNER_STYLE}">'
                f"This mail is sent in debug mode. The original recipients are: <ul>{items}</ul></div>"
            )
            envelope.html = banner + envelope.html

        eol = self.settings.line_break
        text = f"{eol}{eol}This mail is sent in debug mode. The original recipients are: {eol}"
        text += "".join(f"- {address}{marker}{eol}" for address, marker in recipients)
        text += eol + eol
        envelope.text = text + (envelope.text or "")

    # ── Address formatting ────────────────────────────────────────

    @staticmethod
    def get_addresses(addresses: list[MailAddress] | list[str] | None) -> str | None:
        """Comma-joined bare email addresses, or None for an empty list."""
        if not addresses:
            return None
        return ",".join(a.email_address if isinstance(a, MailAddress) else a for a in addresses)

    @staticmethod
    def get_address(address: MailAddress | None) -> str | None:
        if address is None:
            return None
        return address.email_address

    # ── Logging ───────────────────────────────────────────────────

    def log_mail(self, subject: str, details: str, error_count: int) -> None:
        title = 'Sending mail "%s"' % subject.replace("\n", "")
        if error_count:
            self.log.error("%s (%d errors)\n%s", title, error_count, details)
        else:
            self.log.debug("%s\n%s", title, details)

    def log_envelope(self, envelope: Envelope, error_count: int) -> None:
        self.log_mail(envelope.subject, pprint.pformat(envelope.loggable(), sort_dicts=False), error_count)

    def warn_unsupported(self, provider: str, envelope: Envelope) -> None:
        """Drop the return path for providers that cannot set it."""
        if envelope.return_path is not None:
            self.log.warning(
                "%s does not support a return path; ignoring %s for \"%s\"",
                provider,
                envelope.return_path,
                envelope.subject,
            )
            envelope.return_path = None
