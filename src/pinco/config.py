"""Application settings loaded from environment.

Settings are read once at startup into an immutable value and handed to
the parts of the system that need them. Core code never reads the
environment directly.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

_DURATION_RE = re.compile(r"^\s*(\d+)\s*(ms|s|m|h|d|w)?\s*$", re.IGNORECASE)

_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}


def parse_duration(value: str | int) -> int:
    """Parse a duration such as ``"7d"``, ``"12h"`` or ``"3600"`` into seconds.

    Args:
        value: Duration string or plain number of seconds.

    Returns:
        Duration in whole seconds.

    Raises:
        ValueError: If the value is not a recognized duration.
    """
    if isinstance(value, int):
        return value

    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")

    amount = int(match.group(1))
    unit = (match.group(2) or "s").lower()
    return int(amount * _UNIT_SECONDS[unit])


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Application settings."""

    database_url: str = "postgresql://localhost:5432/pinco"
    app_url: str = "http://localhost:3000/"
    widget_url: str = "http://localhost:3000/static/js/ui.js"
    api_prefix: str = "/api/v1"

    auth_secret: str = "dev-secret-change-in-production"  # pragma: allowlist secret
    auth_token_expires_in: int = 30 * 86400
    invite_token_expires_in: int = 7 * 86400

    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    email_from: str = "noreply@pinco.dev"
    email_from_name: str = "Pinco"

    screenshot_base_dir: str = "./screenshots"
    screenshot_base_url: str = "http://localhost:3000/screenshots"

    login_rate_limit_per_minute: int = 10
    login_rate_limit_burst: int = 5

    cors_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        defaults = cls()
        cors = os.getenv("CORS_ORIGINS")
        return cls(
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            app_url=os.getenv("APP_URL", defaults.app_url),
            widget_url=os.getenv("WIDGET_URL", defaults.widget_url),
            api_prefix=os.getenv("API_PREFIX", defaults.api_prefix),
            auth_secret=os.getenv("AUTH_SECRET", defaults.auth_secret),
            auth_token_expires_in=parse_duration(os.getenv("AUTH_TOKEN_EXPIRES_IN", "30d")),
            invite_token_expires_in=parse_duration(os.getenv("INVITE_TOKEN_EXPIRES_IN", "7d")),
            smtp_host=os.getenv("SMTP_HOST", defaults.smtp_host),
            smtp_port=int(os.getenv("SMTP_PORT", str(defaults.smtp_port))),
            smtp_user=os.getenv("SMTP_USER") or None,
            smtp_password=os.getenv("SMTP_PASS") or None,
            smtp_use_tls=_env_bool("SMTP_USE_TLS", defaults.smtp_use_tls),
            email_from=os.getenv("EMAIL_FROM", defaults.email_from),
            email_from_name=os.getenv("EMAIL_FROM_NAME", defaults.email_from_name),
            screenshot_base_dir=os.getenv("SCREENSHOT_BASE_DIR", defaults.screenshot_base_dir),
            screenshot_base_url=os.getenv("SCREENSHOT_BASE_URL", defaults.screenshot_base_url),
            login_rate_limit_per_minute=int(
                os.getenv("LOGIN_RATE_LIMIT_PER_MINUTE", str(defaults.login_rate_limit_per_minute))
            ),
            login_rate_limit_burst=int(
                os.getenv("LOGIN_RATE_LIMIT_BURST", str(defaults.login_rate_limit_burst))
            ),
            cors_origins=(
                tuple(o.strip() for o in cors.split(",") if o.strip())
                if cors
                else defaults.cors_origins
            ),
        )
