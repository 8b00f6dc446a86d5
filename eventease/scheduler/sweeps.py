"""Periodic sweeps that move events through their lifecycle and send the
time-based notifications.

Each sweep owns a non-blocking "running" guard, so a run that starts while a
previous run of the same sweep is still in progress is skipped rather than
queued. Work is isolated per event: one failing event is rolled back and
logged, the rest of the batch proceeds, and ``run`` never raises.
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from datetime import timedelta

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from eventease.core.clock import SYSTEM_CLOCK, Clock
from eventease.mail import templates
from eventease.mail.base import Mailer
from eventease.models import Event, Rsvp
from eventease.models.event import EventStatus
from eventease.models.rsvp import RsvpStatus
from eventease.services.notifications import deliver_all, send_with_retry
from eventease.services.rsvp_service import active_participants
from eventease.services.status import combine, event_window, utc_day_and_minute

logger = structlog.get_logger(__name__)

REMINDER_WINDOW_HOURS = (24, 25)


@dataclass
class SweepResult:
    name: str
    skipped: bool = False
    examined: int = 0
    transitioned: int = 0
    sent: int = 0
    failed: int = 0
    marked_missed: int = 0
    errors: int = 0


class Sweep(ABC):
    name = "sweep"

    def __init__(
        self,
        session_factory: Callable[[], Session],
        mailer: Mailer,
        *,
        clock: Clock = SYSTEM_CLOCK,
        send_attempts: int = 3,
        max_workers: int = 8,
    ) -> None:
        self.session_factory = session_factory
        self.mailer = mailer
        self.clock = clock
        self.send_attempts = send_attempts
        self.max_workers = max_workers
        self._running = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._running.locked()

    def run(self) -> SweepResult:
        result = SweepResult(name=self.name)
        if not self._running.acquire(blocking=False):
            logger.warning("sweep_already_running", sweep=self.name)
            result.skipped = True
            return result

        try:
            with self.session_factory() as db:
                self._sweep(db, result)
        except Exception:
            logger.exception("sweep_failed", sweep=self.name)
            result.errors += 1
        finally:
            self._running.release()

        logger.info("sweep_finished", **asdict(result))
        return result

    @abstractmethod
    def _sweep(self, db: Session, result: SweepResult) -> None:
        """Do one pass of work inside an open session."""

    def _isolated(self, db: Session, result: SweepResult, event: Event, fn: Callable[..., None], *args) -> None:
        try:
            fn(db, event, *args)
        except Exception:
            db.rollback()
            result.errors += 1
            logger.exception("sweep_unit_failed", sweep=self.name, event_id=str(event.id))


class ReminderSweep(Sweep):
    """T-minus-24h reminders, at most one per active registration.

    A registration whose reminder was not delivered while its event was in the
    [24h, 25h) window is latched as sent without emailing.
    """

    name = "reminders"

    def _sweep(self, db: Session, result: SweepResult) -> None:
        now = self.clock.now()
        horizon = now + timedelta(hours=REMINDER_WINDOW_HOURS[1])
        first_day, _ = utc_day_and_minute(now)
        last_day, _ = utc_day_and_minute(horizon)

        events = db.scalars(
            select(Event)
            .where(
                Event.status != EventStatus.CANCELED,
                Event.date >= first_day,
                Event.date <= last_day,
            )
            .order_by(Event.date, Event.start_time)
        ).all()

        for event in events:
            if not (now <= combine(event.date, event.start_time) < horizon):
                continue
            pending = db.scalars(
                select(Rsvp).where(
                    Rsvp.event_id == event.id,
                    Rsvp.status == RsvpStatus.ACTIVE,
                    Rsvp.reminder_sent.is_(False),
                )
            ).all()
            if not pending:
                continue
            result.examined += 1
            self._isolated(db, result, event, self._remind, pending, result)

    def _remind(self, db: Session, event: Event, pending: list[Rsvp], result: SweepResult) -> None:
        start = combine(event.date, event.start_time)
        due: list[Rsvp] = []
        for rsvp in pending:
            hours_until = (start - self.clock.now()).total_seconds() / 3600
            if REMINDER_WINDOW_HOURS[0] <= hours_until < REMINDER_WINDOW_HOURS[1]:
                due.append(rsvp)
            else:
                self._latch(db, rsvp)
                result.marked_missed += 1
                logger.info(
                    "reminder_window_missed",
                    event_id=str(event.id),
                    rsvp_id=str(rsvp.id),
                    hours_until=round(hours_until, 2),
                )

        outcomes = deliver_all(
            self.mailer,
            [templates.reminder(rsvp.participant, event) for rsvp in due],
            attempts=self.send_attempts,
            max_workers=self.max_workers,
        )
        for rsvp, sent in zip(due, outcomes):
            if sent:
                self._latch(db, rsvp)
                result.sent += 1
            else:
                result.failed += 1
                logger.warning("reminder_not_sent", event_id=str(event.id), rsvp_id=str(rsvp.id))
        db.commit()

    @staticmethod
    def _latch(db: Session, rsvp: Rsvp) -> None:
        db.execute(
            update(Rsvp)
            .where(
                Rsvp.id == rsvp.id,
                Rsvp.status == RsvpStatus.ACTIVE,
                Rsvp.reminder_sent.is_(False),
            )
            .values(reminder_sent=True)
        )


class LiveTransitionSweep(Sweep):
    name = "live_transition"

    def _sweep(self, db: Session, result: SweepResult) -> None:
        now = self.clock.now()
        today, minute = utc_day_and_minute(now)

        events = db.scalars(
            select(Event).where(
                Event.status == EventStatus.UPCOMING,
                Event.date == today,
                Event.start_time <= minute,
            )
        ).all()

        for event in events:
            start, end = event_window(event)
            if not (start <= now < end):
                continue
            result.examined += 1
            self._isolated(db, result, event, self._go_live, result)

    def _go_live(self, db: Session, event: Event, result: SweepResult) -> None:
        flipped = db.execute(
            update(Event)
            .where(Event.id == event.id, Event.status == EventStatus.UPCOMING)
            .values(status=EventStatus.LIVE)
        ).rowcount
        db.commit()
        if flipped != 1:
            # Canceled or picked up by another worker in between.
            return
        result.transitioned += 1
        db.refresh(event)
        logger.info("event_live", event_id=str(event.id))

        if not event.organizer_live_notified:
            if send_with_retry(self.mailer, templates.organizer_live(event.organizer, event), self.send_attempts):
                db.execute(
                    update(Event)
                    .where(Event.id == event.id, Event.organizer_live_notified.is_(False))
                    .values(organizer_live_notified=True)
                )
                db.commit()
                result.sent += 1
            else:
                result.failed += 1
                logger.warning("organizer_live_not_sent", event_id=str(event.id))

        participants = active_participants(db, event.id)
        outcomes = deliver_all(
            self.mailer,
            [templates.participant_live(p, event) for p in participants],
            attempts=self.send_attempts,
            max_workers=self.max_workers,
        )
        result.sent += sum(outcomes)
        result.failed += len(outcomes) - sum(outcomes)


class CompletionSweep(Sweep):
    name = "completion"

    def _sweep(self, db: Session, result: SweepResult) -> None:
        now = self.clock.now()
        today, _ = utc_day_and_minute(now)

        events = db.scalars(
            select(Event).where(Event.status == EventStatus.LIVE, Event.date <= today)
        ).all()

        for event in events:
            _, end = event_window(event)
            if now <= end:
                continue
            result.examined += 1
            self._isolated(db, result, event, self._complete, result)

    def _complete(self, db: Session, event: Event, result: SweepResult) -> None:
        flipped = db.execute(
            update(Event)
            .where(Event.id == event.id, Event.status == EventStatus.LIVE)
            .values(status=EventStatus.COMPLETED)
        ).rowcount
        db.commit()
        if flipped == 1:
            result.transitioned += 1
            logger.info("event_completed", event_id=str(event.id))


class SweepSupervisor:
    """Owns one instance of each sweep; callers trigger them by name."""

    def __init__(self, sweeps: Iterable[Sweep]) -> None:
        self._sweeps = {sweep.name: sweep for sweep in sweeps}

    @property
    def names(self) -> list[str]:
        return list(self._sweeps)

    def get(self, name: str) -> Sweep:
        try:
            return self._sweeps[name]
        except KeyError:
            raise ValueError(f"unknown sweep: {name}") from None

    def run(self, name: str) -> SweepResult:
        return self.get(name).run()

    def run_all(self) -> list[SweepResult]:
        return [sweep.run() for sweep in self._sweeps.values()]


def build_supervisor(
    session_factory: Callable[[], Session],
    mailer: Mailer,
    *,
    clock: Clock = SYSTEM_CLOCK,
    send_attempts: int = 3,
    max_workers: int = 8,
) -> SweepSupervisor:
    kwargs = {"clock": clock, "send_attempts": send_attempts, "max_workers": max_workers}
    return SweepSupervisor(
        [
            ReminderSweep(session_factory, mailer, **kwargs),
            LiveTransitionSweep(session_factory, mailer, **kwargs),
            CompletionSweep(session_factory, mailer, **kwargs),
        ]
    )
