import pytest

from contact_relay.core.mailer import DeliveryError
from contact_relay.lib.dispatch import Dispatcher
from contact_relay.lib.templates import Branding
from contact_relay.lib.validation import Inquiry

from conftest import FakeTransport


def make_dispatcher(transport, **kwargs):
    opts = dict(
        sender_address="inbox@relay.example",
        sender_name="Relay Co",
        recipient="owner@relay.example",
        branding=Branding("Relay Co"),
    )
    opts.update(kwargs)
    return Dispatcher(transport, **opts)


def test_owner_only_by_default():
    transport = FakeTransport()
    result = make_dispatcher(transport).dispatch(Inquiry("a@b.com", "Hello"))
    assert result.notified is True
    assert result.auto_reply_sent is None
    assert len(transport.sent) == 1
    msg = transport.sent[0]
    assert msg["Reply-To"] == "a@b.com"
    assert msg["From"] == "Relay Co <inbox@relay.example>"
    assert msg.get_body(preferencelist=("plain",)).get_content().startswith("New website inquiry")


def test_primary_failure_raises_and_skips_auto_reply():
    transport = FakeTransport(fail_for={"owner@relay.example"})
    with pytest.raises(DeliveryError):
        make_dispatcher(transport, auto_reply=True).dispatch(Inquiry("a@b.com", "Hello"))
    assert transport.sent == []


def test_auto_reply_failure_is_swallowed(caplog):
    transport = FakeTransport(fail_for={"a@b.com"})
    result = make_dispatcher(transport, auto_reply=True).dispatch(Inquiry("a@b.com", "Hello"))
    assert result.notified is True
    assert result.auto_reply_sent is False
    assert "auto-reply to a@b.com failed" in caplog.text


def test_auto_reply_sent():
    transport = FakeTransport()
    result = make_dispatcher(transport, auto_reply=True).dispatch(Inquiry("a@b.com", "Hello"))
    assert result.auto_reply_sent is True
    assert transport.sent[1]["To"] == "a@b.com"


def test_missing_recipient_is_a_delivery_error():
    with pytest.raises(DeliveryError):
        make_dispatcher(FakeTransport(), recipient=None).dispatch(Inquiry("a@b.com", "Hello"))
