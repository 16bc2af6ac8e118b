"""
Application configuration from environment variables.

All settings have sensible defaults for local development.
A .env file in the project root is loaded automatically (if present).

Settings are read once into an immutable :class:`Settings` instance which
is passed explicitly into the request pipeline, so tests can build their
own without touching the process environment.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"

# Load .env file before reading any env vars
load_dotenv(PROJECT_ROOT / ".env")

_TRUTHY = {"1", "true", "on", "yes"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    # ── Environment ───────────────────────────────────────────────────
    environment: str = "development"
    log_level: str = "INFO"

    # ── CORS ──────────────────────────────────────────────────────────
    allowed_origins: tuple[str, ...] = ("https://joshuaharbert.com",)

    # ── Cloudflare Turnstile ──────────────────────────────────────────
    turnstile_enabled: bool = True
    turnstile_secret_key: str = ""
    turnstile_verify_url: str = "https://challenges.cloudflare.com/turnstile/v0/siteverify"
    turnstile_timeout: float = 10.0

    # ── SMTP ──────────────────────────────────────────────────────────
    # "true" always sends, "false" logs the message instead (dev only),
    # "auto" sends only when credentials are configured.
    mail_enabled: str = "true"
    mail_host: str = "smtp.gmail.com"
    mail_port: int = 587
    mail_username: str = ""
    mail_password: str = ""
    mail_from_address: str = ""
    mail_from_name: str = "Contact Form"
    mail_to_address: str = ""
    mail_use_starttls: bool = True
    mail_timeout: float = 30.0

    # ── Rate limiting ─────────────────────────────────────────────────
    rate_limit_max: int = 10
    rate_limit_window: int = 3600
    rate_limit_backend: str = "file"
    rate_limit_dir: Path = field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "jh_contact_rate_limits"
    )
    rate_limit_db_path: Path = DATA_DIR / "rate_limits.db"
    trust_forwarded_for: bool = False

    @classmethod
    def from_env(cls) -> Settings:
        mail_username = os.getenv("MAIL_USERNAME", "")
        return cls(
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            allowed_origins=_env_list("ALLOWED_ORIGINS", "https://joshuaharbert.com"),
            turnstile_enabled=_env_bool("TURNSTILE_ENABLED", True),
            turnstile_secret_key=os.getenv("TURNSTILE_SECRET_KEY", ""),
            turnstile_verify_url=os.getenv(
                "TURNSTILE_VERIFY_URL",
                "https://challenges.cloudflare.com/turnstile/v0/siteverify",
            ),
            turnstile_timeout=float(os.getenv("TURNSTILE_TIMEOUT", "10")),
            mail_enabled=os.getenv("MAIL_ENABLED", "true").strip().lower(),
            mail_host=os.getenv("MAIL_HOST", "smtp.gmail.com"),
            mail_port=int(os.getenv("MAIL_PORT", "587")),
            mail_username=mail_username,
            mail_password=os.getenv("MAIL_PASSWORD", ""),
            mail_from_address=os.getenv("MAIL_FROM_ADDRESS", ""),
            mail_from_name=os.getenv("MAIL_FROM_NAME", "Contact Form"),
            mail_to_address=os.getenv("MAIL_TO_ADDRESS", mail_username),
            mail_use_starttls=_env_bool("MAIL_USE_STARTTLS", True),
            mail_timeout=float(os.getenv("MAIL_TIMEOUT", "30")),
            rate_limit_max=int(os.getenv("RATE_LIMIT_MAX", "10")),
            rate_limit_window=int(os.getenv("RATE_LIMIT_WINDOW", "3600")),
            rate_limit_backend=os.getenv("RATE_LIMIT_BACKEND", "file").strip().lower(),
            rate_limit_dir=Path(
                os.getenv(
                    "RATE_LIMIT_DIR",
                    str(Path(tempfile.gettempdir()) / "jh_contact_rate_limits"),
                )
            ),
            rate_limit_db_path=Path(
                os.getenv("RATE_LIMIT_DB_PATH", str(DATA_DIR / "rate_limits.db"))
            ),
            trust_forwarded_for=_env_bool("TRUST_FORWARDED_FOR", False),
        )

    def smtp_enabled(self) -> bool:
        """True when SMTP should actually send emails.

        Controlled by MAIL_ENABLED:
          • "true" (default) — always send (fails if credentials are missing)
          • "auto"  — send if credentials are configured
          • "false" — never send, log the message instead
        """
        if self.mail_enabled == "false":
            return False
        if self.mail_enabled == "true":
            return True
        return bool(self.mail_host and self.mail_username and self.mail_password)


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings, read from the environment once."""
    return Settings.from_env()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
