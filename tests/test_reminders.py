"""Tests for the reminder dispatcher: window selection, copy, and partial failures."""

from __future__ import annotations

import threading
from datetime import date, datetime, timedelta, timezone

import pytest

from eventura.domain.models import EventStatus, SendResult
from eventura.repos.memory import EVENTS, PROFILES, SUBSCRIPTIONS, DocumentStore
from eventura.services.reminders import ReminderDispatcher, pending_subscriptions

_NOW = datetime(2025, 3, 9, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def dispatcher(store, mailer, settings) -> ReminderDispatcher:
    return ReminderDispatcher(store, mailer, settings)


def _add_event(store: DocumentStore, **overrides) -> str:
    fields = dict(title="Design Sprint", event_date=date(2025, 3, 20), location="Hall B")
    fields.update(overrides)
    return store.insert(EVENTS, fields)


def _add_profile(store: DocumentStore, user_id: str, email: str | None = None) -> str:
    return store.insert(
        PROFILES,
        {
            "user_id": user_id,
            "full_name": user_id.title(),
            "email": email if email is not None else f"{user_id}@campus.edu",
        },
    )


def _subscribe(store: DocumentStore, user_id: str, event_id: str, **overrides) -> str:
    fields = dict(user_id=user_id, event_id=event_id, applied_at=_NOW - timedelta(days=3))
    fields.update(overrides)
    return store.insert(SUBSCRIPTIONS, fields)


def _sent_flag(store: DocumentStore, subscription_id: str) -> bool:
    return store.get(SUBSCRIPTIONS, subscription_id).reminder_sent


# ---------------------------------------------------------------------------
# Window selection
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "offset, selected",
    [
        (timedelta(hours=23), True),
        (timedelta(hours=25), False),
        (timedelta(hours=-1), False),
        (timedelta(0), True),
        (timedelta(hours=24), True),
    ],
)
def test_deadline_window(store, mailer, dispatcher, offset, selected):
    event_id = _add_event(store, application_deadline=_NOW + offset)
    _add_profile(store, "asha")
    sub_id = _subscribe(store, "asha", event_id)

    summary = dispatcher.run(_NOW)

    assert summary.sent == (1 if selected else 0)
    assert _sent_flag(store, sub_id) is selected
    assert len(mailer.sent) == (1 if selected else 0)


def test_concrete_event_date_scenario(store, mailer, dispatcher):
    """Event on 2025-03-10 with no deadline, run at 2025-03-09T12:00."""
    event_id = _add_event(store, event_date=date(2025, 3, 10))
    _add_profile(store, "u", email="u@campus.edu")
    sub_id = _subscribe(store, "u", event_id)

    summary = dispatcher.run(_NOW)

    assert summary.sent == 1
    assert mailer.recipients == ["u@campus.edu"]
    assert _sent_flag(store, sub_id) is True
    assert summary.message == "Sent 1 deadline reminder(s)."


def test_window_is_fixed_for_the_whole_batch(store, mailer, dispatcher):
    """Every candidate is judged against the same now."""
    edge = _add_event(store, application_deadline=_NOW + timedelta(hours=24))
    _add_profile(store, "a")
    _add_profile(store, "b")
    _subscribe(store, "a", edge)
    _subscribe(store, "b", edge)

    assert dispatcher.run(_NOW).sent == 2


# ---------------------------------------------------------------------------
# Candidate selection
# ---------------------------------------------------------------------------


def test_already_sent_is_never_reselected(store, mailer, dispatcher):
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=2))
    _add_profile(store, "asha")
    _subscribe(store, "asha", event_id, reminder_sent=True)

    summary = dispatcher.run(_NOW)

    assert summary.candidates == 0
    assert summary.message == "No pending reminders."
    assert mailer.attempts == []


def test_second_run_does_not_resend(store, mailer, dispatcher):
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=2))
    _add_profile(store, "asha")
    _subscribe(store, "asha", event_id)

    assert dispatcher.run(_NOW).sent == 1
    assert dispatcher.run(_NOW + timedelta(hours=1)).sent == 0
    assert len(mailer.sent) == 1


def test_withdrawn_subscription_is_not_a_candidate(store, mailer, dispatcher):
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=2))
    _add_profile(store, "asha")
    _subscribe(store, "asha", event_id, is_applied=False)

    assert pending_subscriptions(store) == []
    assert dispatcher.run(_NOW).sent == 0
    assert mailer.attempts == []


@pytest.mark.parametrize("case", ["no_event", "no_profile", "no_email"])
def test_missing_related_records_are_skipped(store, mailer, dispatcher, case):
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=2))
    if case == "no_event":
        event_id = "missing-event"
    if case != "no_profile":
        _add_profile(store, "asha", email="" if case == "no_email" else None)
    sub_id = _subscribe(store, "asha", event_id)

    summary = dispatcher.run(_NOW)

    assert summary.sent == 0
    assert summary.skipped == 1
    assert summary.failed == 0
    assert _sent_flag(store, sub_id) is False


def test_event_without_dates_is_skipped(store, mailer, dispatcher):
    event_id = _add_event(store, event_date=None)
    _add_profile(store, "asha")
    _subscribe(store, "asha", event_id)

    assert dispatcher.run(_NOW).skipped == 1
    assert mailer.attempts == []


def test_cancelled_event_gets_no_reminder(store, mailer, dispatcher):
    event_id = _add_event(
        store,
        application_deadline=_NOW + timedelta(hours=2),
        status=EventStatus.CANCELLED,
    )
    _add_profile(store, "asha")
    sub_id = _subscribe(store, "asha", event_id)

    assert dispatcher.run(_NOW).sent == 0
    assert _sent_flag(store, sub_id) is False


def test_deleted_event_leaves_subscription_skipped(store, mailer, dispatcher):
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=2))
    _add_profile(store, "asha")
    sub_id = _subscribe(store, "asha", event_id)
    store.delete(EVENTS, event_id)

    summary = dispatcher.run(_NOW)

    assert summary.candidates == 1
    assert summary.skipped == 1
    assert mailer.attempts == []
    assert _sent_flag(store, sub_id) is False


# ---------------------------------------------------------------------------
# Email copy
# ---------------------------------------------------------------------------


def test_deadline_copy_when_deadline_drives_cutoff(store, mailer, dispatcher):
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=6))
    _add_profile(store, "asha")
    _subscribe(store, "asha", event_id)

    dispatcher.run(_NOW)

    message = mailer.sent[0]
    assert message.subject == "Tomorrow: Design Sprint - Application Deadline"
    assert "Deadline Reminder" in message.html_body
    assert "Application Deadline: Sunday, March 9, 2025" in message.html_body
    assert message.to[0].name == "Asha"


def test_event_copy_when_event_date_drives_cutoff(store, mailer, dispatcher):
    event_id = _add_event(store, event_date=date(2025, 3, 10), event_time="10:00 AM")
    _add_profile(store, "asha")
    _subscribe(store, "asha", event_id)

    dispatcher.run(_NOW)

    message = mailer.sent[0]
    assert message.subject == "Tomorrow: Design Sprint - Event Date"
    assert "Event Reminder" in message.html_body
    assert "Deadline Reminder" not in message.html_body
    assert "Monday, March 10, 2025" in message.html_body
    assert "10:00 AM" in message.html_body


def test_user_text_is_escaped(store, mailer, dispatcher):
    event_id = _add_event(
        store, title="<script>x</script>", application_deadline=_NOW + timedelta(hours=1)
    )
    _add_profile(store, "asha")
    _subscribe(store, "asha", event_id)

    dispatcher.run(_NOW)

    assert "<script>" not in mailer.sent[0].html_body
    assert "&lt;script&gt;" in mailer.sent[0].html_body


# ---------------------------------------------------------------------------
# Partial failure
# ---------------------------------------------------------------------------


def test_failed_send_isolated_from_rest_of_batch(store, make_mailer, settings):
    mailer = make_mailer(fail_for={"bo@campus.edu"})
    dispatcher = ReminderDispatcher(store, mailer, settings)
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=3))
    subs = []
    for user in ("al", "bo", "cy"):
        _add_profile(store, user)
        subs.append(_subscribe(store, user, event_id))

    summary = dispatcher.run(_NOW)

    assert summary.sent == 2
    assert summary.failed == 1
    assert [_sent_flag(store, s) for s in subs] == [True, False, True]
    assert mailer.recipients == ["al@campus.edu", "cy@campus.edu"]


def test_mailer_exception_is_contained(store, make_mailer, settings):
    mailer = make_mailer(raise_for={"bo@campus.edu"})
    dispatcher = ReminderDispatcher(store, mailer, settings)
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=3))
    subs = []
    for user in ("al", "bo", "cy"):
        _add_profile(store, user)
        subs.append(_subscribe(store, user, event_id))

    summary = dispatcher.run(_NOW)

    assert summary.sent == 2
    assert [_sent_flag(store, s) for s in subs] == [True, False, True]


def test_failed_reminder_is_retried_next_run(store, make_mailer, settings):
    mailer = make_mailer(fail_for={"al@campus.edu"})
    dispatcher = ReminderDispatcher(store, mailer, settings)
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=3))
    _add_profile(store, "al")
    sub_id = _subscribe(store, "al", event_id)

    assert dispatcher.run(_NOW).sent == 0
    mailer.fail_for.clear()
    assert dispatcher.run(_NOW + timedelta(hours=1)).sent == 1
    assert _sent_flag(store, sub_id) is True


def test_store_write_failure_after_send_leaves_candidate_pending(store, mailer, settings):
    class ReadOnlySubscriptions(DocumentStore):
        def patch(self, table, record_id, fields):
            if table == SUBSCRIPTIONS:
                raise RuntimeError("write timeout")
            return super().patch(table, record_id, fields)

    store = ReadOnlySubscriptions()
    dispatcher = ReminderDispatcher(store, mailer, settings)
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=3))
    _add_profile(store, "al")
    _add_profile(store, "bo")
    first = _subscribe(store, "al", event_id)
    _subscribe(store, "bo", event_id)

    summary = dispatcher.run(_NOW)

    assert summary.sent == 0
    assert summary.failed == 2
    assert len(mailer.sent) == 2
    assert _sent_flag(store, first) is False


# ---------------------------------------------------------------------------
# Overlapping runs
# ---------------------------------------------------------------------------


class _GatedMailer:
    """Blocks inside ``send`` until released, to hold a run open."""

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()
        self.sent: list = []

    def send(self, message) -> SendResult:
        self.entered.set()
        self.release.wait(timeout=5)
        self.sent.append(message)
        return SendResult(success=True, message="Email sent")


def test_run_started_during_another_run_is_skipped(store, settings):
    mailer = _GatedMailer()
    dispatcher = ReminderDispatcher(store, mailer, settings)
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=2))
    _add_profile(store, "asha")
    sub_id = _subscribe(store, "asha", event_id)

    results = []
    scheduled = threading.Thread(target=lambda: results.append(dispatcher.run(_NOW)))
    scheduled.start()
    assert mailer.entered.wait(timeout=5)

    manual = dispatcher.run(_NOW)
    mailer.release.set()
    scheduled.join(timeout=5)

    assert manual.busy is True
    assert manual.sent == 0
    assert manual.message == "Reminder run already in progress."
    assert results[0].sent == 1
    assert len(mailer.sent) == 1
    assert _sent_flag(store, sub_id) is True


def test_simultaneous_runs_send_each_reminder_once(store, settings):
    mailer = _GatedMailer()
    dispatcher = ReminderDispatcher(store, mailer, settings)
    event_id = _add_event(store, application_deadline=_NOW + timedelta(hours=2))
    for user in ("al", "bo"):
        _add_profile(store, user)
        _subscribe(store, user, event_id)

    results = []
    skipped = threading.Event()

    def dispatch():
        summary = dispatcher.run(_NOW)
        results.append(summary)
        if summary.busy:
            skipped.set()

    workers = [threading.Thread(target=dispatch) for _ in range(2)]
    for worker in workers:
        worker.start()
    assert mailer.entered.wait(timeout=5)
    assert skipped.wait(timeout=5)
    mailer.release.set()
    for worker in workers:
        worker.join(timeout=5)

    assert sorted(r.busy for r in results) == [False, True]
    assert sum(r.sent for r in results) == 2
    assert sorted(m.to[0].email for m in mailer.sent) == ["al@campus.edu", "bo@campus.edu"]


def test_run_lock_is_released_after_an_error(mailer, settings):
    class BrokenQueries(DocumentStore):
        fail = True

        def query_by_index(self, table, field, value):
            if self.fail:
                raise RuntimeError("store offline")
            return super().query_by_index(table, field, value)

    store = BrokenQueries()
    dispatcher = ReminderDispatcher(store, mailer, settings)

    with pytest.raises(RuntimeError):
        dispatcher.run(_NOW)
    store.fail = False

    summary = dispatcher.run(_NOW)
    assert summary.busy is False
    assert summary.message == "No pending reminders."


# ---------------------------------------------------------------------------
# Admin-triggered single reminder
# ---------------------------------------------------------------------------


def test_send_reminder_success(store, mailer, dispatcher):
    event_id = _add_event(
        store, event_date=date(2025, 4, 2), application_deadline=datetime(2025, 3, 30)
    )
    _add_profile(store, "asha")
    sub_id = _subscribe(store, "asha", event_id)

    result = dispatcher.send_reminder("asha", event_id)

    assert result.success is True
    assert mailer.sent[0].subject == "Reminder: Design Sprint - Wednesday, April 2, 2025"
    assert "Application Deadline: Sunday, March 30, 2025" in mailer.sent[0].html_body
    # the scheduled reminder is still due
    assert _sent_flag(store, sub_id) is False


def test_send_reminder_unknown_user(store, mailer, dispatcher):
    event_id = _add_event(store)

    result = dispatcher.send_reminder("ghost", event_id)

    assert result.success is False
    assert result.message == "User not found or no email"
    assert mailer.attempts == []


def test_send_reminder_unknown_event(store, mailer, dispatcher):
    _add_profile(store, "asha")

    result = dispatcher.send_reminder("asha", "missing-event")

    assert result.success is False
    assert result.message == "Event not found"
