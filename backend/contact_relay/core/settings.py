# contact_relay/core/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field
from typing import List, Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    api_title: str = Field(default="Contact Relay API", alias="API_TITLE")
    port: int = Field(default=3001, alias="PORT")

    # Comma-separated allow-list; CORS_ORIGINS wins over the single ALLOWED_ORIGIN
    cors_origins: str = Field(
        default="",
        validation_alias=AliasChoices("CORS_ORIGINS", "ALLOWED_ORIGIN"),
    )

    # SMTP account (Gmail app password by default)
    mail_user: Optional[str] = Field(default=None, alias="MAIL_USER")
    mail_pass: Optional[str] = Field(default=None, alias="MAIL_PASS")
    smtp_host: str = Field(default="smtp.gmail.com", alias="SMTP_HOST")
    smtp_port: int = Field(default=465, alias="SMTP_PORT")
    smtp_ssl: bool = Field(default=True, alias="SMTP_SSL")
    smtp_timeout: float = Field(default=15.0, alias="SMTP_TIMEOUT")

    rcpt_to: Optional[str] = Field(default=None, alias="RCPT_TO")
    from_name: str = Field(default="Contact Relay", alias="FROM_NAME")
    site_url: Optional[str] = Field(default=None, alias="SITE_URL")
    auto_reply: bool = Field(default=False, alias="AUTO_REPLY")

    rate_limit_max: int = Field(default=5, alias="RATE_LIMIT_MAX")
    rate_limit_window: int = Field(default=60, alias="RATE_LIMIT_WINDOW")
    # Shared counter store; in-memory when unset
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    trust_proxy: bool = Field(default=False, alias="TRUST_PROXY")

    max_body_bytes: int = Field(default=100 * 1024, alias="MAX_BODY_BYTES")
    email_max_length: int = Field(default=254, alias="EMAIL_MAX_LENGTH")
    message_max_length: int = Field(default=4000, alias="MESSAGE_MAX_LENGTH")
    name_max_length: int = Field(default=120, alias="NAME_MAX_LENGTH")

    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def recipient(self) -> Optional[str]:
        return self.rcpt_to or self.mail_user


settings = Settings()
