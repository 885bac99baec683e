"""Shared fixtures: an empty store, settings without a .env, and a fake mailer."""

from __future__ import annotations

import pytest

from eventura.core.config import Settings
from eventura.domain.models import SendResult
from eventura.repos.memory import DocumentStore
from eventura.services.mailer import MailMessage


class RecordingMailer:
    """Captures messages; addresses in *fail_for* get a failure result,
    addresses in *raise_for* make ``send`` raise."""

    def __init__(self, fail_for=(), raise_for=()) -> None:
        self.sent: list[MailMessage] = []
        self.attempts: list[MailMessage] = []
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)

    def send(self, message: MailMessage) -> SendResult:
        self.attempts.append(message)
        address = message.to[0].email
        if address in self.raise_for:
            raise RuntimeError("mail transport unavailable")
        if address in self.fail_for:
            return SendResult(success=False, message=f"Rejected {address}")
        self.sent.append(message)
        return SendResult(success=True, message=f"Email sent to {address}")

    @property
    def recipients(self) -> list[str]:
        return [m.to[0].email for m in self.sent]


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None, ADMIN_EMAILS="director@campus.edu, Dean@Campus.edu")


@pytest.fixture()
def store() -> DocumentStore:
    return DocumentStore()


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def make_mailer():
    return RecordingMailer
