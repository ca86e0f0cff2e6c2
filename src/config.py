# src/config.py

from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration read from the environment (and .env)."""

    database_url: str | None = field(default_factory=lambda: os.getenv("DATABASE_URL"))
    db_connect_max_retries: int = field(
        default_factory=lambda: int(os.getenv("DB_CONNECT_MAX_RETRIES", "30"))
    )
    db_connect_retry_delay: float = field(
        default_factory=lambda: float(os.getenv("DB_CONNECT_RETRY_DELAY", "1.5"))
    )

    google_maps_api_key: str | None = field(
        default_factory=lambda: os.getenv("GOOGLE_MAPS_API_KEY")
    )
    geocoding_url: str = field(
        default_factory=lambda: os.getenv(
            "GEOCODING_URL",
            "https://maps.googleapis.com/maps/api/geocode/json",
        )
    )
    geocoding_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("GEOCODING_TIMEOUT_SECONDS", "5"))
    )

    smtp_host: str | None = field(default_factory=lambda: os.getenv("SMTP_HOST"))
    smtp_port: int = field(default_factory=lambda: int(os.getenv("SMTP_PORT", "587")))
    smtp_username: str | None = field(default_factory=lambda: os.getenv("SMTP_USERNAME"))
    smtp_password: str | None = field(default_factory=lambda: os.getenv("SMTP_PASSWORD"))
    smtp_use_tls: bool = field(default_factory=lambda: _env_bool("SMTP_USE_TLS", True))
    smtp_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("SMTP_TIMEOUT_SECONDS", "10"))
    )
    mail_from: str = field(
        default_factory=lambda: os.getenv("MAIL_FROM", "no-reply@eventure.local")
    )
    email_template_dir: str | None = field(
        default_factory=lambda: os.getenv("EMAIL_TEMPLATE_DIR")
    )


settings = Settings()
