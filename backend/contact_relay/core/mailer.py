# contact_relay/core/mailer.py
import logging
import smtplib
import ssl
import threading
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Callable, Optional

from contact_relay.core.settings import Settings

log = logging.getLogger("uvicorn.error")


class DeliveryError(Exception):
    """Mail could not be handed to the SMTP server.

    The message is meant for server logs only; callers get a generic reply.
    """


def build_message(
    *,
    sender: str,
    to: str,
    subject: str,
    text: str,
    html: Optional[str] = None,
    reply_to: Optional[str] = None,
) -> EmailMessage:
    """Plain text first, HTML as the alternative part."""
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to
    msg["Subject"] = subject
    if reply_to:
        msg["Reply-To"] = reply_to
    msg["Message-ID"] = make_msgid()
    msg.set_content(text)
    if html:
        msg.add_alternative(html, subtype="html")
    return msg


def format_sender(name: str, address: str) -> str:
    return formataddr((name, address))


class SMTPTransport:
    """One SMTP connection shared by every request in the process.

    The connection is opened at startup and reused. Before each send it is
    probed with NOOP and re-opened if the server dropped it. Access is
    serialised with a lock because smtplib connections are not thread-safe.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        *,
        use_ssl: bool = True,
        timeout: float = 15.0,
        smtp_factory: Optional[Callable[..., smtplib.SMTP]] = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.timeout = timeout
        self._smtp_factory = smtp_factory
        self._conn: Optional[smtplib.SMTP] = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, cfg: Settings) -> "SMTPTransport":
        return cls(
            cfg.smtp_host,
            cfg.smtp_port,
            cfg.mail_user,
            cfg.mail_pass,
            use_ssl=cfg.smtp_ssl,
            timeout=cfg.smtp_timeout,
        )

    @property
    def configured(self) -> bool:
        return bool(self.username and self.password)

    def _connect(self) -> smtplib.SMTP:
        if not self.configured:
            raise DeliveryError("mail credentials are not configured")
        try:
            if self._smtp_factory is not None:
                conn = self._smtp_factory(self.host, self.port, timeout=self.timeout)
            elif self.use_ssl:
                conn = smtplib.SMTP_SSL(
                    self.host, self.port, timeout=self.timeout,
                    context=ssl.create_default_context(),
                )
            else:
                conn = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
                conn.starttls(context=ssl.create_default_context())
            conn.login(self.username, self.password)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"connect to {self.host}:{self.port} failed: {exc}") from exc
        log.info(f"[mailer] connected to {self.host}:{self.port} as {self.username}")
        return conn

    def _alive(self, conn: smtplib.SMTP) -> bool:
        try:
            code, _ = conn.noop()
        except (smtplib.SMTPException, OSError):
            return False
        return code == 250

    def _ensure(self) -> smtplib.SMTP:
        if self._conn is not None and self._alive(self._conn):
            return self._conn
        self._drop()
        self._conn = self._connect()
        return self._conn

    def _drop(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.quit()
        except (smtplib.SMTPException, OSError):
            pass
        self._conn = None

    def open(self) -> None:
        with self._lock:
            self._ensure()

    def close(self) -> None:
        with self._lock:
            self._drop()

    def verify(self) -> None:
        """Raise DeliveryError unless the server accepts our credentials."""
        with self._lock:
            self._ensure()

    def send(self, msg: EmailMessage) -> None:
        with self._lock:
            conn = self._ensure()
            try:
                refused = conn.send_message(msg)
            except (smtplib.SMTPException, OSError) as exc:
                self._drop()
                raise DeliveryError(f"send to {msg['To']} failed: {exc}") from exc
        if refused:
            raise DeliveryError(f"recipients refused: {', '.join(refused)}")
