"""Runtime settings loaded from the environment (and ``.env``)."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Load env from the project root regardless of CWD
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    app_name: str = Field(default="Eventura API", alias="APP_NAME")
    env: str = Field(default="dev", alias="ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    enable_scheduler: bool = Field(default=False, alias="ENABLE_SCHEDULER")
    job_interval_minutes: int = Field(default=60, gt=0, alias="JOB_INTERVAL_MINUTES")
    reminder_window_hours: int = Field(default=24, gt=0, alias="REMINDER_WINDOW_HOURS")
    # Reapplying after a sent reminder keeps reminder_sent unless enabled
    reset_reminder_on_reapply: bool = Field(default=False, alias="RESET_REMINDER_ON_REAPPLY")

    # Raw env value (string), parsed to a set via the property below
    admin_emails_raw: str | None = Field(default=None, alias="ADMIN_EMAILS")

    zeptomail_token: str | None = Field(default=None, alias="ZEPTOMAIL_TOKEN")
    zeptomail_from_email: str = Field(default="alerts@eventura.live", alias="ZEPTOMAIL_FROM_EMAIL")
    zeptomail_from_name: str = Field(default="Eventura", alias="ZEPTOMAIL_FROM_NAME")
    zeptomail_api_url: str = Field(default="https://api.zeptomail.in/v1.1/email", alias="ZEPTOMAIL_API_URL")
    mail_timeout_seconds: float = Field(default=10.0, gt=0, alias="MAIL_TIMEOUT_SECONDS")
    site_url: str = Field(default="https://eventura.live", alias="SITE_URL")

    @staticmethod
    def _parse_list(v: str | None) -> list[str]:
        if v is None:
            return []
        s = v.strip()
        if not s:
            return []
        if s.startswith("[") and s.endswith("]"):
            try:
                loaded = json.loads(s)
            except json.JSONDecodeError:
                # Unquoted list such as [a@x.edu, b@x.edu]
                s = s[1:-1]
            else:
                if isinstance(loaded, list):
                    return [str(e).strip() for e in loaded if str(e).strip()]
        return [e.strip() for e in s.split(",") if e.strip()]

    @property
    def admin_emails(self) -> frozenset[str]:
        return frozenset(e.lower() for e in self._parse_list(self.admin_emails_raw))

    @property
    def mail_preview_mode(self) -> bool:
        return not self.zeptomail_token


settings = Settings()
