"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TEMPLATES: dict[str, str] = {
    "11111111-1111-1111-1111-111111111111": "<html>Template 1 with token: {0} and email: {1}</html>",
    "22222222-2222-2222-2222-222222222222": "<html>Template 2 with token: {0} and email: {1}</html>",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # API
    project_name: str = "Unsubscribe Service"
    version: str = "0.1.0"
    enable_docs: bool = False
    use_https_redirection: bool = False

    # Error reporting
    sentry_dsn: str = ""

    # Mailing list (in-memory, reverts to this baseline on restart)
    mailing_list: list[str] = Field(default_factory=list)

    # Tokens
    unsubscribe_cache_key_prefix: str = "unsubscribe_"
    token_ttl_seconds: int = 1800  # 30 minutes
    link_max_age_hours: int = 48
    confirmation_url: str = "https://myservice-x.net/unsubscribe"

    # Templates (UUID -> HTML with {0} = token, {1} = email)
    templates: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_TEMPLATES))
    default_template: str = "<html>Default template with token: {0} and email: {1}</html>"

    # Webhook
    webhook_url: str = "https://webhook.site/"
    webhook_timeout_seconds: float = 15.0

    # Mail relay
    smtp_host: str = "smtp.mailtrap.io"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_start_tls: bool | None = None  # None = STARTTLS when the relay offers it
    smtp_timeout_seconds: float = 30.0
    mail_sender_name: str = "MyService"
    mail_sender_address: str = "noreply@myservice-x.net"

    # Admission control (fixed window)
    rate_limit_permit_limit: int = 100
    rate_limit_window_seconds: int = 600
    rate_limit_queue_limit: int = 2

    # Credential gate (basic auth)
    manage_username: str = ""
    manage_password: str = ""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
