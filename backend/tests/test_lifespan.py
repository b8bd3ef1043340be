# backend/tests/test_lifespan.py
import pytest
from fastapi.testclient import TestClient

from contact_relay.core.mailer import DeliveryError
from contact_relay.main import app


class RecordingTransport:
    """Stands in for SMTPTransport.from_settings during startup/shutdown."""

    configured = True
    open_error = None

    def __init__(self):
        self.opened = 0
        self.closed = 0

    @classmethod
    def from_settings(cls, cfg):
        instance = cls()
        cls.last = instance
        return instance

    def open(self):
        self.opened += 1
        if self.open_error:
            raise DeliveryError(self.open_error)

    def close(self):
        self.closed += 1

    def verify(self):
        pass


@pytest.fixture
def recording(monkeypatch):
    class Transport(RecordingTransport):
        pass

    monkeypatch.setattr("contact_relay.main.SMTPTransport", Transport)
    try:
        yield Transport
    finally:
        if hasattr(app.state, "transport"):
            del app.state.transport


def test_startup_opens_and_shutdown_closes_transport(recording):
    with TestClient(app) as client:
        transport = recording.last
        assert app.state.transport is transport
        assert transport.opened == 1
        assert transport.closed == 0
        assert client.get("/api/health").json() == {"ok": True}
    assert transport.closed == 1


def test_missing_credentials_warn_and_skip_connect(recording, caplog):
    recording.configured = False
    with TestClient(app):
        transport = recording.last
    assert transport.opened == 0
    assert "MAIL_USER / MAIL_PASS not set" in caplog.text


def test_unreachable_smtp_does_not_block_startup(recording, caplog):
    recording.open_error = "connection refused"
    with TestClient(app) as client:
        assert client.get("/").status_code == 404
    assert "SMTP not reachable at startup" in caplog.text
    assert recording.last.closed == 1
