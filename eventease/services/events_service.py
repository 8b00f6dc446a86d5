from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import and_, delete, func, not_, or_, select
from sqlalchemy.orm import Session

from eventease.api.v1.schemas.events import EventCreate, EventUpdate
from eventease.core.clock import SYSTEM_CLOCK, Clock
from eventease.core.config import settings
from eventease.mail import templates
from eventease.mail.base import Mailer
from eventease.models import Event, Feedback, Rsvp, User
from eventease.models.event import EventStatus
from eventease.models.rsvp import RsvpStatus
from eventease.models.user import UserRole
from eventease.services.error_codes import ErrorCode
from eventease.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ScheduleConflictError,
    ValidationError,
)
from eventease.services.notifications import deliver_all
from eventease.services.rsvp_service import (
    Attendee,
    active_participants,
    count_active_rsvps,
    is_registered,
    list_attendees,
)
from eventease.services.status import combine, normalize_time, parse_event_date, resolve_status, utc_day_and_minute

logger = structlog.get_logger(__name__)

LINK_REQUIRES_RSVP = "To get the link, you need to RSVP first."
LINK_EVENT_ENDED = "This event has already ended."
LINK_EVENT_CANCELED = "This event has been canceled."


class EventWindow(str, Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"
    ALL = "all"


@dataclass
class EventPage:
    items: list[Event]
    total: int
    page: int
    limit: int


@dataclass
class EventDetails:
    event: Event
    computed_status: EventStatus
    registration_count: int
    meeting_link: str
    is_registered: bool
    attendees: list[Attendee] = field(default_factory=list)


@dataclass
class MyEvents:
    upcoming: list[Event] = field(default_factory=list)
    live: list[Event] = field(default_factory=list)
    completed: list[Event] = field(default_factory=list)


def _is_organizer(user: User) -> bool:
    return user.role == UserRole.ORGANIZER


def _require_manage_permission(user: User, event: Event, action: str) -> None:
    if event.organizer_id != user.id:
        raise PermissionDeniedError(
            ErrorCode.FORBIDDEN.value, f"Only the organizer can {action} this event."
        )


def _get_event(db: Session, event_id: Any) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "Event not found.")
    return event


def _validated_schedule(day: str, start_time: str, end_time: str) -> tuple[str, str, str]:
    try:
        parse_event_date(day)
        start = normalize_time(start_time)
        end = normalize_time(end_time)
    except ValueError as exc:
        raise ValidationError(ErrorCode.VALIDATION_ERROR.value, str(exc)) from exc
    if start >= end:
        raise ValidationError(ErrorCode.VALIDATION_ERROR.value, "end_time must be after start_time")
    return day.strip(), start, end


def _check_schedule_conflict(
    db: Session,
    organizer_id: Any,
    day: str,
    start_time: str,
    end_time: str,
    exclude_event_id: Any = None,
) -> None:
    query = select(Event).where(
        Event.organizer_id == organizer_id,
        Event.date == day,
        Event.status != EventStatus.CANCELED,
        Event.start_time < end_time,
        Event.end_time > start_time,
    )
    if exclude_event_id is not None:
        query = query.where(Event.id != exclude_event_id)

    conflict = db.scalars(query.order_by(Event.start_time).limit(1)).first()
    if conflict:
        raise ScheduleConflictError(
            str(conflict.id),
            f"You already have another event ({conflict.title}) scheduled on {conflict.date} "
            f"from {conflict.start_time} to {conflict.end_time}.",
        )


def _meeting_link(value: str | None) -> str:
    if not value:
        room = f"EventEase-{int(time.time() * 1000)}-{secrets.token_hex(6)}"
        return f"{settings.meeting_link_prefix}{room}"
    value = value.strip()
    if not value.startswith(settings.meeting_link_prefix):
        raise ValidationError(ErrorCode.VALIDATION_ERROR.value, "Meeting link must be a valid Jitsi link.")
    return value


def create_event(
    db: Session,
    organizer: User,
    payload: EventCreate,
    *,
    clock: Clock = SYSTEM_CLOCK,
) -> Event:
    if not _is_organizer(organizer):
        raise PermissionDeniedError(ErrorCode.FORBIDDEN.value, "Only organizers can create events.")

    day, start_time, end_time = _validated_schedule(payload.date, payload.start_time, payload.end_time)
    if combine(day, start_time) < clock.now():
        raise ValidationError(ErrorCode.VALIDATION_ERROR.value, "Cannot create an event in the past.")

    meeting_link = _meeting_link(payload.meeting_link)
    _check_schedule_conflict(db, organizer.id, day, start_time, end_time)

    event = Event(
        title=payload.title,
        description=payload.description,
        date=day,
        start_time=start_time,
        end_time=end_time,
        meeting_link=meeting_link,
        thumbnail=payload.thumbnail or settings.default_thumbnail_url,
        organizer_id=organizer.id,
        status=EventStatus.UPCOMING,
        organizer_live_notified=False,
        rsvp_list=[],
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("event_created", event_id=str(event.id), organizer_id=str(organizer.id))
    return event


def update_event(
    db: Session,
    organizer: User,
    event_id: Any,
    patch: EventUpdate,
    *,
    mailer: Mailer,
    clock: Clock = SYSTEM_CLOCK,
) -> Event:
    event = _get_event(db, event_id)
    _require_manage_permission(organizer, event, "update")

    if event.status == EventStatus.CANCELED:
        raise ConflictError(ErrorCode.EVENT_CANCELED.value, "A canceled event cannot be updated.")

    patch_data = {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None}

    day, start_time, end_time = _validated_schedule(
        patch_data.get("date", event.date),
        patch_data.get("start_time", event.start_time),
        patch_data.get("end_time", event.end_time),
    )
    rescheduled = (day, start_time, end_time) != (event.date, event.start_time, event.end_time)

    if rescheduled:
        now = clock.now()
        if resolve_status(event, now) != EventStatus.UPCOMING:
            raise ConflictError(
                ErrorCode.EVENT_LIVE_OR_COMPLETED.value,
                "An event that has started cannot be rescheduled.",
            )
        if combine(day, start_time) < now:
            raise ValidationError(ErrorCode.VALIDATION_ERROR.value, "Cannot move an event into the past.")
        _check_schedule_conflict(db, event.organizer_id, day, start_time, end_time, exclude_event_id=event.id)

    if "meeting_link" in patch_data:
        event.meeting_link = _meeting_link(patch_data["meeting_link"])
    for key in ("title", "description", "thumbnail"):
        if key in patch_data:
            setattr(event, key, patch_data[key])
    event.date, event.start_time, event.end_time = day, start_time, end_time

    db.add(event)
    db.commit()
    db.refresh(event)

    if rescheduled:
        participants = active_participants(db, event.id)
        deliver_all(
            mailer,
            [templates.event_rescheduled(p, event) for p in participants],
            max_workers=settings.notify_max_workers,
        )
        logger.info("event_rescheduled", event_id=str(event.id), notified=len(participants))
    return event


def cancel_event(
    db: Session,
    organizer: User,
    event_id: Any,
    *,
    mailer: Mailer,
    clock: Clock = SYSTEM_CLOCK,
) -> Event:
    event = _get_event(db, event_id)
    _require_manage_permission(organizer, event, "cancel")

    status = resolve_status(event, clock.now())
    if status == EventStatus.CANCELED:
        raise ConflictError(ErrorCode.EVENT_CANCELED.value, "Event is already canceled.")
    if status == EventStatus.COMPLETED:
        raise ConflictError(ErrorCode.EVENT_COMPLETED.value, "A completed event cannot be canceled.")

    event.status = EventStatus.CANCELED
    db.add(event)
    db.commit()
    db.refresh(event)

    participants = active_participants(db, event.id)
    deliver_all(
        mailer,
        [templates.event_canceled(p, event) for p in participants],
        max_workers=settings.notify_max_workers,
    )
    logger.info("event_canceled", event_id=str(event.id), notified=len(participants))
    return event


def delete_event(db: Session, organizer: User, event_id: Any, *, mailer: Mailer) -> None:
    event = _get_event(db, event_id)
    _require_manage_permission(organizer, event, "delete")

    participants = active_participants(db, event.id)
    deliver_all(
        mailer,
        [templates.event_deleted(p, event) for p in participants],
        max_workers=settings.notify_max_workers,
    )

    db.execute(delete(Rsvp).where(Rsvp.event_id == event.id))
    db.execute(delete(Feedback).where(Feedback.event_id == event.id))
    db.delete(event)
    db.commit()
    logger.info("event_deleted", event_id=str(event_id), notified=len(participants))


def _window_clause(window: EventWindow, now: datetime):
    today, minute = utc_day_and_minute(now)
    on_minute = now.second == 0 and now.microsecond == 0

    not_started = or_(Event.date > today, and_(Event.date == today, Event.start_time > minute))
    ended_today = Event.end_time < minute if on_minute else Event.end_time <= minute
    ended = or_(Event.date < today, and_(Event.date == today, ended_today))

    if window == EventWindow.UPCOMING:
        return not_started
    if window == EventWindow.COMPLETED:
        return ended
    if window == EventWindow.LIVE:
        return and_(Event.status != EventStatus.CANCELED, not_(not_started), not_(ended))
    return None


def _paginate(db: Session, query, window: EventWindow, page: int, limit: int) -> EventPage:
    total = int(db.scalar(select(func.count()).select_from(query.subquery())) or 0)
    if window == EventWindow.COMPLETED:
        ordering = (Event.date.desc(), Event.end_time.desc())
    else:
        ordering = (Event.date, Event.start_time)
    items = db.scalars(query.order_by(*ordering).offset((page - 1) * limit).limit(limit)).all()
    return EventPage(items=list(items), total=total, page=page, limit=limit)


def list_organizer_events(
    db: Session,
    organizer: User,
    window: EventWindow,
    *,
    page: int = 1,
    limit: int = 10,
    clock: Clock = SYSTEM_CLOCK,
) -> EventPage:
    query = select(Event).where(Event.organizer_id == organizer.id)
    clause = _window_clause(window, clock.now())
    if clause is not None:
        query = query.where(clause)
    return _paginate(db, query, window, page, limit)


def list_participant_events(
    db: Session,
    window: EventWindow,
    *,
    page: int = 1,
    limit: int = 10,
    clock: Clock = SYSTEM_CLOCK,
) -> EventPage:
    query = select(Event).where(Event.status != EventStatus.CANCELED)
    clause = _window_clause(window, clock.now())
    if clause is not None:
        query = query.where(clause)
    return _paginate(db, query, window, page, limit)


def my_events(db: Session, participant: User, *, clock: Clock = SYSTEM_CLOCK) -> MyEvents:
    now = clock.now()
    events = db.scalars(
        select(Event)
        .join(Rsvp, Rsvp.event_id == Event.id)
        .where(Rsvp.participant_id == participant.id, Rsvp.status == RsvpStatus.ACTIVE)
        .order_by(Event.date, Event.start_time)
    ).all()

    grouped = MyEvents()
    for event in events:
        status = resolve_status(event, now)
        if status == EventStatus.UPCOMING:
            grouped.upcoming.append(event)
        elif status == EventStatus.LIVE:
            grouped.live.append(event)
        elif status == EventStatus.COMPLETED:
            grouped.completed.append(event)
    return grouped


def search_events(db: Session, q: str | None = None) -> list[Event]:
    query = select(Event)
    if q and q.strip():
        query = query.where(func.lower(Event.title).contains(q.strip().lower(), autoescape=True))
    return list(db.scalars(query.order_by(Event.date, Event.start_time)).all())


def get_event_details(
    db: Session,
    viewer: User,
    event_id: Any,
    *,
    clock: Clock = SYSTEM_CLOCK,
) -> EventDetails:
    event = _get_event(db, event_id)
    status = resolve_status(event, clock.now())
    registered = is_registered(db, event.id, viewer.id)

    details = EventDetails(
        event=event,
        computed_status=status,
        registration_count=count_active_rsvps(db, event.id),
        meeting_link=event.meeting_link,
        is_registered=registered,
    )

    if event.organizer_id == viewer.id:
        details.attendees = list_attendees(db, viewer, event.id)
        return details

    if status == EventStatus.CANCELED:
        details.meeting_link = LINK_EVENT_CANCELED
    elif status == EventStatus.COMPLETED:
        details.meeting_link = LINK_EVENT_ENDED
    elif not registered:
        details.meeting_link = LINK_REQUIRES_RSVP
    return details
