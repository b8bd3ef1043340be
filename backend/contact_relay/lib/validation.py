import html
import re
from dataclasses import dataclass
from email.errors import HeaderParseError
from email.headerregistry import Address
from typing import Any, Mapping

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

HONEYPOT_FIELD = "website"


class ValidationError(ValueError):
    """Caller-supplied input is unusable; the message is safe to return."""


class SpamSuppressed(Exception):
    """Honeypot was filled in. Acknowledge, send nothing."""


@dataclass(frozen=True)
class Inquiry:
    sender_email: str
    message: str
    name: str = ""

    @property
    def email_html(self) -> str:
        return html.escape(self.sender_email)

    @property
    def message_html(self) -> str:
        return html.escape(self.message)

    @property
    def name_html(self) -> str:
        return html.escape(self.name)


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def clamp(value: Any, max_length: int) -> str:
    """Cut to max_length, then trim."""
    return _text(value)[:max_length].strip()


def is_filled(value: Any) -> bool:
    """Any non-blank value counts, whatever its JSON type."""
    if value is None:
        return False
    return bool(str(value).strip())


def is_email(value: str) -> bool:
    if not EMAIL_RE.match(value or ""):
        return False
    # the address also ends up in To/Reply-To headers, so the header parser must accept it
    try:
        addr = Address(addr_spec=value)
    except (ValueError, HeaderParseError, AttributeError):
        # AttributeError: some interpreters fail this way on unterminated domain literals
        return False
    return addr.addr_spec == value


def validate_inquiry(
    payload: Mapping[str, Any],
    *,
    email_max: int = 254,
    message_max: int = 4000,
    name_max: int = 120,
) -> Inquiry:
    honeypot = payload.get(HONEYPOT_FIELD)
    if is_filled(honeypot):
        raise SpamSuppressed(str(honeypot))

    email = clamp(payload.get("email"), email_max)
    if not is_email(email):
        raise ValidationError("Invalid email.")

    message = clamp(payload.get("message"), message_max)
    if not message:
        raise ValidationError("Message required.")

    return Inquiry(
        sender_email=email,
        message=message,
        name=clamp(payload.get("name"), name_max),
    )
