"""Evite Server Configuration."""

import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings

DEFAULT_INVITE_MESSAGE = """Hello {{GUEST_NAME}},

We would love to have you with us. All the event details are at the link below:

{{RSVP_LINK}}

The event takes place on {{EVENT_DATE}}.

See you there!"""


class Settings(BaseSettings):
    # Server
    app_name: str = "Evite"
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    base_url: str = "http://localhost:8080"

    # Paths
    data_dir: Path = Path.home() / "evite" / "data"

    # Database
    db_path: Path = Path.home() / "evite" / "data" / "evite.db"

    # JWT (admin sessions)
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    admin_token_expire_minutes: int = 720  # 12 hours

    # Admin access
    admin_emails: str = ""  # comma separated
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_url: str = ""

    # Invitations
    default_region: str = "RO"
    token_max_attempts: int = 5
    invite_message_template: str = DEFAULT_INVITE_MESSAGE

    # Event
    event_name: str = ""
    event_date: Optional[datetime] = None
    rsvp_deadline: Optional[datetime] = None
    timezone: str = "Europe/Bucharest"
    church_name: str = ""
    church_address: str = ""
    restaurant_name: str = ""
    restaurant_address: str = ""

    model_config = {"env_prefix": "EVITE_"}

    @property
    def admin_email_list(self) -> list[str]:
        return [e.strip().lower() for e in self.admin_emails.split(",") if e.strip()]

    def localize(self, value: datetime) -> datetime:
        """Attach the event timezone to naive timestamps."""
        if value.tzinfo is None:
            return value.replace(tzinfo=ZoneInfo(self.timezone))
        return value

    def rsvp_closed(self, now: Optional[datetime] = None) -> bool:
        """True once the RSVP deadline has passed. No deadline means always open."""
        if self.rsvp_deadline is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.localize(now) > self.localize(self.rsvp_deadline)

    def ensure_dirs(self) -> None:
        """Create all required directories."""
        for d in [self.data_dir, self.db_path.parent]:
            d.mkdir(parents=True, exist_ok=True)

    def ensure_secrets(self) -> None:
        """Generate the JWT secret if not set, persist it so it survives restarts."""
        secrets_file = self.data_dir / ".secrets"
        saved = {}
        if secrets_file.exists():
            for line in secrets_file.read_text().strip().splitlines():
                if "=" in line:
                    k, v = line.split("=", 1)
                    saved[k.strip()] = v.strip()

        if not self.jwt_secret:
            self.jwt_secret = saved.get("jwt_secret", "") or secrets.token_urlsafe(32)

        secrets_file.write_text(f"jwt_secret={self.jwt_secret}\n")


settings = Settings()
settings.ensure_dirs()
settings.ensure_secrets()
