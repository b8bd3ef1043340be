import os

import pytest

os.environ.setdefault("MAIL_USER", "inbox@relay.example")
os.environ.setdefault("MAIL_PASS", "app-password")
os.environ.setdefault("RCPT_TO", "owner@relay.example")
os.environ.setdefault("FROM_NAME", "Relay Co")
os.environ.setdefault("SITE_URL", "https://www.relay.example")
os.environ.setdefault("CORS_ORIGINS", "https://relay.example,https://www.relay.example")
os.environ.setdefault("AUTO_REPLY", "false")
os.environ.setdefault("TRUST_PROXY", "false")
os.environ.pop("REDIS_URL", None)

FIXED_NOW = 1_700_000_010.0

from fastapi.testclient import TestClient

from contact_relay.core.mailer import DeliveryError
from contact_relay.core.ratelimit import RateLimiter
from contact_relay.dependencies import get_transport
from contact_relay.main import app


class FakeTransport:
    """Records outgoing messages instead of talking SMTP."""

    def __init__(self, fail_for=(), verify_error=None):
        self.sent = []
        self.fail_for = set(fail_for)
        self.verify_error = verify_error

    def send(self, msg):
        if msg["To"] in self.fail_for:
            raise DeliveryError(f"550 mailbox unavailable: {msg['To']}")
        self.sent.append(msg)

    def verify(self):
        if self.verify_error:
            raise DeliveryError(self.verify_error)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport):
    app.dependency_overrides[get_transport] = lambda: transport
    app.state.rate_limiter = RateLimiter(5, 60, clock=lambda: FIXED_NOW)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
