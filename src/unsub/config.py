"""Settings read from environment variables (and a local .env for development)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from unsub.errors import ConfigError

DEFAULT_SUBJECT = "Test Email - Unsubscribe POC"
DEFAULT_EMAIL_DOMAINS = [
    "example.com",
    "example.net",
    "example.org",
    "example.co.uk",
]


@dataclass
class Settings:
    jwt_secret: str
    table_name: str = "email_unsubscribes"
    supabase_url: str | None = None
    supabase_key: str | None = None
    sendgrid_api_key: str | None = None
    sender_email: str = "noreply@example.com"
    api_domain: str = "api.unsubscribe.example.com"
    web_domain: str = "unsubscribe.example.com"
    unsubscribe_mailbox: str = "unsubscribe@example.com"
    email_domains: list[str] = field(default_factory=lambda: list(DEFAULT_EMAIL_DOMAINS))
    default_subject: str = DEFAULT_SUBJECT
    auth_jwks_url: str | None = None
    auth_audience: str | None = None
    auth_issuer: str | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.jwt_secret:
            raise ConfigError("JWT_SECRET must be set")
        if not self.email_domains:
            raise ConfigError("EMAIL_DOMAINS must name at least one domain")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from the process environment.

        A .env file in the working directory is loaded first when reading
        from ``os.environ``; variables already set take precedence.
        """
        if environ is None:
            load_dotenv()
            environ = dict(os.environ)

        def opt(name: str) -> str | None:
            value = environ.get(name, "").strip()
            return value or None

        kwargs: dict = {"jwt_secret": environ.get("JWT_SECRET", "")}
        simple = {
            "TABLE_NAME": "table_name",
            "SUPABASE_URL": "supabase_url",
            "SUPABASE_KEY": "supabase_key",
            "SENDGRID_API_KEY": "sendgrid_api_key",
            "SENDER_EMAIL": "sender_email",
            "API_DOMAIN": "api_domain",
            "WEB_DOMAIN": "web_domain",
            "UNSUBSCRIBE_MAILBOX": "unsubscribe_mailbox",
            "DEFAULT_SUBJECT": "default_subject",
            "AUTH_JWKS_URL": "auth_jwks_url",
            "AUTH_AUDIENCE": "auth_audience",
            "AUTH_ISSUER": "auth_issuer",
            "LOG_LEVEL": "log_level",
        }
        for env_name, attr in simple.items():
            value = opt(env_name)
            if value is not None:
                kwargs[attr] = value

        domains = opt("EMAIL_DOMAINS")
        if domains is not None:
            kwargs["email_domains"] = [d.strip() for d in domains.split(",") if d.strip()]

        return cls(**kwargs)

    def require(self, *names: str) -> None:
        """Raise ConfigError if any of the named optional settings is unset."""
        missing = [n.upper() for n in names if not getattr(self, n)]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")
