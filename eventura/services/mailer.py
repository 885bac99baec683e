"""Outbound email over the ZeptoMail HTTP API.

``send`` never raises for delivery problems: transport errors and non-2xx
responses come back as ``SendResult(success=False, ...)``. Without a token the
mailer runs in preview mode, logging what it would have sent and reporting
success.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from pydantic import BaseModel, Field

from eventura.core.config import Settings
from eventura.domain.models import SendResult

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "Zoho-enczapikey"


class MailRecipient(BaseModel):
    email: str
    name: str | None = None


class MailMessage(BaseModel):
    to: list[MailRecipient] = Field(min_length=1)
    subject: str
    html_body: str

    @property
    def addresses(self) -> str:
        return ", ".join(r.email for r in self.to)


class Mailer(Protocol):
    def send(self, message: MailMessage) -> SendResult: ...


class ZeptoMailer:
    def __init__(self, settings: Settings, client: httpx.Client | None = None) -> None:
        self.settings = settings
        self._client = client

    @property
    def preview_mode(self) -> bool:
        return self.settings.mail_preview_mode

    def _authorization(self) -> str:
        token = self.settings.zeptomail_token or ""
        return token if token.startswith(TOKEN_PREFIX) else f"{TOKEN_PREFIX} {token}"

    def _payload(self, message: MailMessage) -> dict:
        return {
            "from": {
                "address": self.settings.zeptomail_from_email,
                "name": self.settings.zeptomail_from_name,
            },
            "to": [
                {"email_address": {"address": r.email, "name": r.name or r.email}}
                for r in message.to
            ],
            "subject": message.subject,
            "htmlbody": message.html_body,
        }

    def _post(self, message: MailMessage) -> httpx.Response:
        headers = {
            "Accept": "application/json",
            "Authorization": self._authorization(),
        }
        if self._client is not None:
            return self._client.post(
                self.settings.zeptomail_api_url, json=self._payload(message), headers=headers
            )
        with httpx.Client(timeout=self.settings.mail_timeout_seconds) as client:
            return client.post(
                self.settings.zeptomail_api_url, json=self._payload(message), headers=headers
            )

    def send(self, message: MailMessage) -> SendResult:
        if self.preview_mode:
            logger.info(
                "[mail preview] Would send %r to %s", message.subject, message.addresses
            )
            return SendResult(
                success=True,
                message=(
                    "Email logged (no ZEPTOMAIL_TOKEN configured). "
                    f"Would send to {message.addresses}"
                ),
            )

        try:
            response = self._post(message)
        except httpx.HTTPError as exc:
            logger.error("Email delivery to %s failed: %s", message.addresses, exc)
            return SendResult(success=False, message=str(exc) or "Email sending failed")

        if not response.is_success:
            logger.error(
                "ZeptoMail API error %s for %s: %s",
                response.status_code,
                message.addresses,
                response.text,
            )
            return SendResult(
                success=False,
                message=f"ZeptoMail API error: {response.status_code} - {response.text}",
            )

        return SendResult(success=True, message=f"Email sent to {message.addresses}")
