from contact_relay.core.settings import Settings


def test_origins_are_split_and_trimmed(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", " https://a.example , ,https://b.example ")
    cfg = Settings(_env_file=None)
    assert cfg.allowed_origins() == ["https://a.example", "https://b.example"]


def test_single_allowed_origin_is_accepted(monkeypatch):
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    monkeypatch.setenv("ALLOWED_ORIGIN", "https://only.example")
    cfg = Settings(_env_file=None)
    assert cfg.allowed_origins() == ["https://only.example"]


def test_recipient_defaults_to_mail_user(monkeypatch):
    monkeypatch.delenv("RCPT_TO", raising=False)
    monkeypatch.setenv("MAIL_USER", "inbox@example.com")
    cfg = Settings(_env_file=None)
    assert cfg.recipient == "inbox@example.com"


def test_defaults(monkeypatch):
    for name in ("SMTP_HOST", "SMTP_PORT", "RATE_LIMIT_MAX", "RATE_LIMIT_WINDOW", "PORT"):
        monkeypatch.delenv(name, raising=False)
    cfg = Settings(_env_file=None)
    assert cfg.smtp_host == "smtp.gmail.com"
    assert cfg.smtp_port == 465
    assert cfg.rate_limit_max == 5
    assert cfg.rate_limit_window == 60
    assert cfg.port == 3001
