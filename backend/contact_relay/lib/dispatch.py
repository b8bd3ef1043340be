import logging
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol

from contact_relay.core.mailer import DeliveryError, build_message, format_sender
from contact_relay.lib.templates import (
    Branding,
    RenderedMessage,
    render_auto_reply,
    render_owner_notification,
)
from contact_relay.lib.validation import Inquiry

log = logging.getLogger("uvicorn.error")


class MailTransport(Protocol):
    def send(self, msg: EmailMessage) -> None: ...


@dataclass
class DispatchResult:
    notified: bool
    auto_reply_sent: Optional[bool] = None


class Dispatcher:
    """Sends the owner notification and, when enabled, the auto-reply.

    Only the owner notification decides the outcome. A failed auto-reply is
    logged and reported in the result; the caller still gets success.
    """

    def __init__(
        self,
        transport: MailTransport,
        *,
        sender_address: Optional[str],
        sender_name: str,
        recipient: Optional[str],
        branding: Branding,
        auto_reply: bool = False,
    ):
        self.transport = transport
        self.sender_address = sender_address
        self.sender_name = sender_name
        self.recipient = recipient
        self.branding = branding
        self.auto_reply = auto_reply

    def _message(self, rendered: RenderedMessage, to: str, reply_to: Optional[str]) -> EmailMessage:
        return build_message(
            sender=format_sender(self.sender_name, self.sender_address or ""),
            to=to,
            subject=rendered.subject,
            text=rendered.text,
            html=rendered.html,
            reply_to=reply_to,
        )

    def dispatch(self, inquiry: Inquiry) -> DispatchResult:
        if not self.sender_address or not self.recipient:
            raise DeliveryError("sender or recipient address is not configured")

        notice = render_owner_notification(inquiry, self.branding)
        self.transport.send(self._message(notice, self.recipient, inquiry.sender_email))
        log.info(f"[dispatch] inquiry from {inquiry.sender_email} relayed to {self.recipient}")

        if not self.auto_reply:
            return DispatchResult(notified=True)

        reply = render_auto_reply(inquiry, self.branding)
        try:
            self.transport.send(self._message(reply, inquiry.sender_email, self.recipient))
        except DeliveryError as exc:
            log.warning(f"[dispatch] auto-reply to {inquiry.sender_email} failed: {exc}")
            return DispatchResult(notified=True, auto_reply_sent=False)
        return DispatchResult(notified=True, auto_reply_sent=True)
