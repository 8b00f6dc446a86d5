from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventease.core.clock import SYSTEM_CLOCK, Clock
from eventease.mail import templates
from eventease.mail.base import Mailer
from eventease.models import Event, Rsvp, User
from eventease.models.event import EventStatus
from eventease.models.rsvp import RsvpStatus
from eventease.models.user import UserRole
from eventease.services.error_codes import ErrorCode
from eventease.services.exceptions import (
    AlreadyRegisteredError,
    EventAlreadyStartedError,
    EventCanceledError,
    EventLiveOrCompletedError,
    NotFoundError,
    NotRegisteredError,
    PermissionDeniedError,
)
from eventease.services.notifications import notify_best_effort
from eventease.services.status import resolve_status

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Attendee:
    participant_id: uuid.UUID
    name: str
    email: str | None
    joined_at: datetime | None
    status: RsvpStatus


def _get_event_for_update(db: Session, event_id: Any) -> Event:
    event = db.scalar(select(Event).where(Event.id == event_id).with_for_update())
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "Event not found.")
    return event


def _find_rsvp(db: Session, event_id: Any, participant_id: Any) -> Rsvp | None:
    return db.scalar(
        select(Rsvp).where(Rsvp.event_id == event_id, Rsvp.participant_id == participant_id)
    )


def count_active_rsvps(db: Session, event_id: Any) -> int:
    return int(
        db.scalar(
            select(func.count())
            .select_from(Rsvp)
            .where(Rsvp.event_id == event_id, Rsvp.status == RsvpStatus.ACTIVE)
        )
        or 0
    )


def active_rsvps(db: Session, event_id: Any) -> list[Rsvp]:
    return list(
        db.scalars(
            select(Rsvp)
            .where(Rsvp.event_id == event_id, Rsvp.status == RsvpStatus.ACTIVE)
            .order_by(Rsvp.joined_at, Rsvp.id)
        ).all()
    )


def active_participants(db: Session, event_id: Any) -> list[User]:
    return [rsvp.participant for rsvp in active_rsvps(db, event_id)]


def is_registered(db: Session, event_id: Any, participant_id: Any) -> bool:
    existing = _find_rsvp(db, event_id, participant_id)
    return bool(existing and existing.status == RsvpStatus.ACTIVE)


def sync_roster(db: Session, event: Event) -> None:
    """Rebuild ``event.rsvp_list`` from the ledger's active rows.

    The only writer of the embedded roster; every RSVP mutation calls it
    before committing.
    """
    db.flush()
    participant_ids = db.scalars(
        select(Rsvp.participant_id)
        .where(Rsvp.event_id == event.id, Rsvp.status == RsvpStatus.ACTIVE)
        .order_by(Rsvp.joined_at, Rsvp.id)
    ).all()
    event.rsvp_list = [
        {"participant_id": str(pid), "status": RsvpStatus.ACTIVE.value} for pid in participant_ids
    ]
    db.add(event)


def register(
    db: Session,
    participant: User,
    event_id: Any,
    *,
    mailer: Mailer,
    clock: Clock = SYSTEM_CLOCK,
) -> Rsvp:
    event = _get_event_for_update(db, event_id)
    existing = _find_rsvp(db, event.id, participant.id)
    if existing and existing.status == RsvpStatus.ACTIVE:
        raise AlreadyRegisteredError()

    now = clock.now()
    status = resolve_status(event, now)
    if status == EventStatus.CANCELED:
        raise EventCanceledError()
    if status != EventStatus.UPCOMING:
        raise EventAlreadyStartedError()

    if existing:
        rsvp = existing
    else:
        rsvp = Rsvp(event_id=event.id, participant_id=participant.id)
    rsvp.status = RsvpStatus.ACTIVE
    rsvp.joined_at = now
    rsvp.reminder_sent = False
    db.add(rsvp)

    try:
        sync_roster(db, event)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise AlreadyRegisteredError() from exc

    db.refresh(rsvp)
    logger.info("rsvp_registered", event_id=str(event.id), participant_id=str(participant.id))
    notify_best_effort(mailer, templates.rsvp_confirmed(participant, event))
    return rsvp


def cancel_rsvp(
    db: Session,
    participant: User,
    event_id: Any,
    *,
    mailer: Mailer,
    clock: Clock = SYSTEM_CLOCK,
) -> Rsvp:
    event = _get_event_for_update(db, event_id)
    rsvp = _find_rsvp(db, event.id, participant.id)
    if not rsvp or rsvp.status != RsvpStatus.ACTIVE:
        raise NotRegisteredError()

    status = resolve_status(event, clock.now())
    if status == EventStatus.LIVE:
        raise EventLiveOrCompletedError("RSVP cannot be canceled while the event is live.")
    if status == EventStatus.COMPLETED:
        raise EventLiveOrCompletedError(
            "RSVP cannot be canceled for an event that has already ended."
        )

    rsvp.status = RsvpStatus.CANCELED
    db.add(rsvp)
    sync_roster(db, event)
    db.commit()
    db.refresh(rsvp)

    logger.info("rsvp_canceled", event_id=str(event.id), participant_id=str(participant.id))
    notify_best_effort(mailer, templates.rsvp_canceled(participant, event))
    return rsvp


def get_participant_count(db: Session, event_id: Any) -> int:
    if not db.get(Event, event_id):
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "Event not found.")
    return count_active_rsvps(db, event_id)


def list_attendees(db: Session, viewer: User, event_id: Any) -> list[Attendee]:
    """Owner sees identities; a registered participant sees names only."""
    event = db.get(Event, event_id)
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "Event not found.")

    is_owner = event.organizer_id == viewer.id
    if not is_owner:
        if viewer.role != UserRole.PARTICIPANT or not is_registered(db, event.id, viewer.id):
            raise PermissionDeniedError(
                ErrorCode.FORBIDDEN.value, "Only the organizer or registered participants can view attendees."
            )

    return [
        Attendee(
            participant_id=rsvp.participant_id,
            name=rsvp.participant.full_name,
            email=rsvp.participant.email if is_owner else None,
            joined_at=rsvp.joined_at if is_owner else None,
            status=rsvp.status,
        )
        for rsvp in active_rsvps(db, event.id)
    ]
