from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import update

from eventease.db import SessionLocal
from eventease.models import Event
from eventease.models.event import EventStatus
from eventease.models.rsvp import RsvpStatus
from eventease.scheduler import (
    CompletionSweep,
    LiveTransitionSweep,
    ReminderSweep,
    build_supervisor,
    sweeps,
)
from tests.factories import add_rsvp, make_event, make_organizer, make_user


def _at(day: int, hh: int, mm: int, ss: int = 0) -> datetime:
    return datetime(2030, 6, day, hh, mm, ss, tzinfo=timezone.utc)


def test_missed_reminder_window_is_latched_without_sending(db_session, mailer, clock):
    organizer = make_organizer(db_session)
    alice = make_user(db_session, "alice@example.com")
    event = make_event(db_session, organizer, date="2030-06-03")
    rsvp = add_rsvp(db_session, event, alice, joined_at=clock.now())
    sweep = ReminderSweep(SessionLocal, mailer, clock=clock, send_attempts=3)

    clock.set(_at(2, 9, 30))  # start - 24h30m
    mailer.failures_left = 3
    first = sweep.run()

    assert (first.examined, first.sent, first.failed) == (1, 0, 1)
    assert mailer.attempts == 3
    db_session.refresh(rsvp)
    assert rsvp.reminder_sent is False

    clock.set(_at(2, 10, 15))  # start - 23h45m
    second = sweep.run()

    assert second.marked_missed == 1
    assert mailer.attempts == 3
    db_session.refresh(rsvp)
    assert rsvp.reminder_sent is True

    clock.advance(hours=1)
    assert sweep.run().examined == 0
    assert mailer.sent == []


def test_reminder_sent_once(db_session, mailer, clock):
    organizer = make_organizer(db_session)
    alice = make_user(db_session, "alice@example.com")
    bob = make_user(db_session, "bob@example.com")
    event = make_event(db_session, organizer, date="2030-06-03")
    rsvp = add_rsvp(db_session, event, alice, joined_at=clock.now())
    add_rsvp(db_session, event, bob, joined_at=clock.now(), status=RsvpStatus.CANCELED)
    sweep = ReminderSweep(SessionLocal, mailer, clock=clock)

    clock.set(_at(2, 9, 0))  # start - 25h, window not yet open
    assert sweep.run().examined == 0

    clock.set(_at(2, 9, 30))
    result = sweep.run()
    clock.set(_at(2, 9, 45))
    sweep.run()

    assert result.sent == 1
    assert [m.subject for m in mailer.sent] == ['Reminder: Upcoming Event "Python Meetup"']
    assert mailer.sent[0].to == "alice@example.com"
    db_session.refresh(rsvp)
    assert rsvp.reminder_sent is True


def test_reminders_skip_canceled_events(db_session, mailer, clock):
    organizer = make_organizer(db_session)
    alice = make_user(db_session, "alice@example.com")
    event = make_event(db_session, organizer, date="2030-06-03", status=EventStatus.CANCELED)
    add_rsvp(db_session, event, alice, joined_at=clock.now())

    clock.set(_at(2, 9, 30))
    result = ReminderSweep(SessionLocal, mailer, clock=clock).run()

    assert result.examined == 0
    assert mailer.attempts == 0


def test_live_transition_notifies_organizer_and_participants_once(db_session, mailer, clock):
    organizer = make_organizer(db_session)
    alice = make_user(db_session, "alice@example.com")
    event = make_event(db_session, organizer)
    add_rsvp(db_session, event, alice, joined_at=clock.now())
    sweep = LiveTransitionSweep(SessionLocal, mailer, clock=clock)

    clock.set(_at(2, 9, 59, 59))
    assert sweep.run().transitioned == 0

    clock.set(_at(2, 10, 0))
    result = sweep.run()

    assert (result.transitioned, result.sent) == (1, 2)
    assert [m.subject for m in mailer.sent_to("org@example.com")] == ["Your Event is Now Live: Python Meetup"]
    assert [m.subject for m in mailer.sent_to("alice@example.com")] == ["Event Now Live: Python Meetup"]
    db_session.refresh(event)
    assert event.status == EventStatus.LIVE
    assert event.organizer_live_notified is True

    clock.advance(minutes=1)
    assert sweep.run().transitioned == 0
    assert len(mailer.sent) == 2


def test_organizer_live_failure_leaves_flag_unset(db_session, mailer, clock):
    organizer = make_organizer(db_session)
    alice = make_user(db_session, "alice@example.com")
    event = make_event(db_session, organizer)
    add_rsvp(db_session, event, alice, joined_at=clock.now())
    mailer.failures_left = 3

    clock.set(_at(2, 10, 1))
    result = LiveTransitionSweep(SessionLocal, mailer, clock=clock, send_attempts=3).run()

    assert result.failed == 1
    assert mailer.sent_to("org@example.com") == []
    assert len(mailer.sent_to("alice@example.com")) == 1
    db_session.refresh(event)
    assert event.status == EventStatus.LIVE
    assert event.organizer_live_notified is False


def test_live_transition_skips_events_already_over(db_session, mailer, clock):
    organizer = make_organizer(db_session)
    event = make_event(db_session, organizer)

    clock.set(_at(2, 11, 0))
    assert LiveTransitionSweep(SessionLocal, mailer, clock=clock).run().examined == 0
    db_session.refresh(event)
    assert event.status == EventStatus.UPCOMING


def test_completion_waits_until_after_end(db_session, mailer, clock):
    organizer = make_organizer(db_session)
    event = make_event(db_session, organizer, status=EventStatus.LIVE)
    sweep = CompletionSweep(SessionLocal, mailer, clock=clock)

    clock.set(_at(2, 11, 0))
    assert sweep.run().transitioned == 0
    db_session.refresh(event)
    assert event.status == EventStatus.LIVE

    clock.set(_at(2, 11, 0, 1))
    assert sweep.run().transitioned == 1
    db_session.refresh(event)
    assert event.status == EventStatus.COMPLETED
    assert mailer.attempts == 0


def test_sweeps_leave_canceled_events_alone(db_session, mailer, clock):
    organizer = make_organizer(db_session)
    event = make_event(db_session, organizer, status=EventStatus.CANCELED)
    supervisor = build_supervisor(SessionLocal, mailer, clock=clock)

    for moment in (_at(2, 10, 0), _at(2, 10, 30), _at(2, 12, 0)):
        clock.set(moment)
        supervisor.run_all()

    db_session.refresh(event)
    assert event.status == EventStatus.CANCELED


def test_overlapping_run_is_skipped(mailer, clock):
    sweep = CompletionSweep(SessionLocal, mailer, clock=clock)
    sweep._running.acquire()
    try:
        assert sweep.is_running
        result = sweep.run()
    finally:
        sweep._running.release()

    assert result.skipped is True
    assert sweep.run().skipped is False


def test_one_failing_event_does_not_stop_the_sweep(db_session, mailer, clock, monkeypatch):
    organizer = make_organizer(db_session)
    other = make_organizer(db_session, "other@example.com")
    alice = make_user(db_session, "alice@example.com")
    broken = make_event(db_session, organizer, title="Broken")
    healthy = make_event(db_session, other, title="Healthy")
    add_rsvp(db_session, healthy, alice, joined_at=clock.now())

    original = sweeps.active_participants

    def flaky(db, event_id):
        if event_id == broken.id:
            raise RuntimeError("boom")
        return original(db, event_id)

    monkeypatch.setattr(sweeps, "active_participants", flaky)
    clock.set(_at(2, 10, 5))
    result = LiveTransitionSweep(SessionLocal, mailer, clock=clock).run()

    assert result.errors == 1
    assert result.transitioned == 2
    assert [m.subject for m in mailer.sent_to("alice@example.com")] == ["Event Now Live: Healthy"]


def test_supervisor_dispatches_by_name(mailer, clock):
    supervisor = build_supervisor(SessionLocal, mailer, clock=clock)

    assert supervisor.names == ["reminders", "live_transition", "completion"]
    assert supervisor.run("completion").name == "completion"
    with pytest.raises(ValueError):
        supervisor.get("cleanup")


def test_reminder_retried_until_accepted(db_session, mailer, clock):
    organizer = make_organizer(db_session)
    alice = make_user(db_session, "alice@example.com")
    event = make_event(db_session, organizer, date="2030-06-03")
    rsvp = add_rsvp(db_session, event, alice, joined_at=clock.now())
    mailer.failures_left = 2

    clock.set(_at(2, 9, 30))
    result = ReminderSweep(SessionLocal, mailer, clock=clock, send_attempts=3).run()

    assert (result.sent, result.failed) == (1, 0)
    assert mailer.attempts == 3
    assert len(mailer.sent_to("alice@example.com")) == 1
    db_session.refresh(rsvp)
    assert rsvp.reminder_sent is True


def _cancel_after_selection(monkeypatch):
    original = sweeps.event_window

    def cancel_then_window(event):
        with SessionLocal() as other:
            other.execute(update(Event).where(Event.id == event.id).values(status=EventStatus.CANCELED))
            other.commit()
        return original(event)

    monkeypatch.setattr(sweeps, "event_window", cancel_then_window)


def test_cancel_racing_live_transition_wins(db_session, mailer, clock, monkeypatch):
    organizer = make_organizer(db_session)
    alice = make_user(db_session, "alice@example.com")
    event = make_event(db_session, organizer)
    add_rsvp(db_session, event, alice, joined_at=clock.now())
    _cancel_after_selection(monkeypatch)

    clock.set(_at(2, 10, 0))
    result = LiveTransitionSweep(SessionLocal, mailer, clock=clock).run()

    assert (result.examined, result.transitioned, result.errors) == (1, 0, 0)
    assert mailer.sent == []
    db_session.refresh(event)
    assert event.status == EventStatus.CANCELED
    assert event.organizer_live_notified is False


def test_cancel_racing_completion_wins(db_session, mailer, clock, monkeypatch):
    organizer = make_organizer(db_session)
    event = make_event(db_session, organizer, status=EventStatus.LIVE)
    _cancel_after_selection(monkeypatch)

    clock.set(_at(2, 11, 30))
    result = CompletionSweep(SessionLocal, mailer, clock=clock).run()

    assert (result.examined, result.transitioned) == (1, 0)
    db_session.refresh(event)
    assert event.status == EventStatus.CANCELED


def test_base_sweep_is_abstract(mailer):
    with pytest.raises(TypeError):
        sweeps.Sweep(SessionLocal, mailer)
