import html
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

from contact_relay.lib.validation import Inquiry

OWNER_SUBJECT = "New website inquiry"
AUTO_REPLY_SUBJECT = "We received your message"

_BODY_STYLE = (
    "margin:0;padding:24px;background:#ffffff;color:#0f1726;"
    "font:14px/1.6 -apple-system,Segoe UI,Roboto,Arial,sans-serif"
)
_LINK_STYLE = "color:#0ea5e9;text-decoration:none"


@dataclass(frozen=True)
class Branding:
    brand_name: str
    site_url: Optional[str] = None

    @property
    def site_label(self) -> str:
        if not self.site_url:
            return ""
        host = urlparse(self.site_url).netloc or self.site_url
        return host[4:] if host.startswith("www.") else host


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    text: str
    html: str


def _year(now: Optional[datetime]) -> int:
    return (now or datetime.now(timezone.utc)).year


def _text_footer(branding: Branding, year: int) -> str:
    line = f"© {year} {branding.brand_name}"
    if branding.site_label:
        line += f" • {branding.site_label}"
    return line


def _html_footer(branding: Branding, year: int) -> str:
    brand = html.escape(branding.brand_name)
    link = ""
    if branding.site_url:
        link = (
            f' • <a href="{html.escape(branding.site_url, quote=True)}" style="{_LINK_STYLE}">'
            f"{html.escape(branding.site_label)}</a>"
        )
    return (
        '<p style="margin:16px 0 0;color:#64748b;font-size:12px">'
        f"© {year} {brand}{link}</p>"
    )


def _page(title: str, inner: str) -> str:
    return f"""<!doctype html>
<html>
  <body style="{_BODY_STYLE}">
    <div style="max-width:640px;margin:0 auto">
      <h1 style="margin:0 0 12px;font-size:20px;letter-spacing:.2px">{html.escape(title)}</h1>
{inner}
    </div>
  </body>
</html>"""


def _row(label: str, value_html: str) -> str:
    return f"""        <tr>
          <td style="padding:8px 0;width:96px;color:#475569;vertical-align:top">{label}</td>
          <td style="padding:8px 0">{value_html}</td>
        </tr>"""


def _message_block(inquiry: Inquiry) -> str:
    return (
        '<div style="padding:12px;border:1px solid #e5e7eb;border-radius:8px;white-space:pre-wrap">'
        f"{inquiry.message_html}</div>"
    )


def render_owner_notification(
    inquiry: Inquiry, branding: Branding, *, now: Optional[datetime] = None
) -> RenderedMessage:
    year = _year(now)

    lines = [OWNER_SUBJECT, "", f"From: {inquiry.sender_email}"]
    if inquiry.name:
        lines.append(f"Name: {inquiry.name}")
    lines += [
        "Message:",
        inquiry.message,
        "",
        "—",
        "You can reply directly to this email to contact the sender.",
        _text_footer(branding, year),
    ]

    email = inquiry.email_html
    rows = [
        _row(
            "From",
            f'<a href="mailto:{html.escape(inquiry.sender_email, quote=True)}" style="{_LINK_STYLE}">{email}</a>',
        )
    ]
    if inquiry.name:
        rows.append(_row("Name", inquiry.name_html))
    rows.append(_row("Message", _message_block(inquiry)))
    inner = (
        '      <table role="presentation" cellspacing="0" cellpadding="0" '
        'style="width:100%;border-collapse:collapse">\n'
        + "\n".join(rows)
        + "\n      </table>\n"
        '      <p style="margin:20px 0 0;color:#334155">'
        "You can reply directly to this email to contact the sender.</p>\n      "
        + _html_footer(branding, year)
    )

    return RenderedMessage(
        subject=OWNER_SUBJECT,
        text="\n".join(lines),
        html=_page(OWNER_SUBJECT, inner),
    )


def render_auto_reply(
    inquiry: Inquiry, branding: Branding, *, now: Optional[datetime] = None
) -> RenderedMessage:
    year = _year(now)
    subject = f"{branding.brand_name}: {AUTO_REPLY_SUBJECT}"
    greeting = f"Hi {inquiry.name}," if inquiry.name else "Hi,"
    greeting_html = f"Hi {inquiry.name_html}," if inquiry.name else "Hi,"

    text = "\n".join([
        greeting,
        "",
        f"Thanks for contacting {branding.brand_name}. We received your message and will get back to you soon.",
        "",
        "Your message:",
        inquiry.message,
        "",
        "—",
        _text_footer(branding, year),
    ])

    inner = (
        f'      <p style="margin:0 0 12px">{greeting_html}</p>\n'
        f'      <p style="margin:0 0 12px">Thanks for contacting {html.escape(branding.brand_name)}. '
        "We received your message and will get back to you soon.</p>\n"
        '      <p style="margin:0 0 8px;color:#475569">Your message:</p>\n      '
        + _message_block(inquiry)
        + "\n      "
        + _html_footer(branding, year)
    )

    return RenderedMessage(subject=subject, text=text, html=_page(AUTO_REPLY_SUBJECT, inner))
