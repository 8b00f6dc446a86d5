from __future__ import annotations

import math
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from eventease.api.v1.schemas.events import (
    AttendeeOut,
    EventCreate,
    EventDetailsOut,
    EventListOut,
    EventMessageOut,
    EventOut,
    EventUpdate,
    MyEventsOut,
    OrganizerEventListOut,
    OrganizerEventOut,
    OrganizerOut,
    PaginationOut,
)
from eventease.api.v1.schemas.feedback import FeedbackIn, FeedbackOut
from eventease.auth.deps import ClockDep, CurrentUser, DBSession, MailerDep, Organizer, Participant
from eventease.models import Event, Feedback
from eventease.services import events_service, feedback_service
from eventease.services.error_codes import ErrorCode
from eventease.services.events_service import EventPage, EventWindow
from eventease.services.exceptions import ValidationError
from eventease.services.status import resolve_status

router = APIRouter(prefix="/events", tags=["events"])

_EVENT_FIELDS = (
    "id",
    "title",
    "description",
    "date",
    "start_time",
    "end_time",
    "thumbnail",
    "status",
    "organizer_id",
    "created_at",
    "updated_at",
)


def _event_data(event: Event, now: datetime) -> dict:
    data = {name: getattr(event, name) for name in _EVENT_FIELDS}
    data["computed_status"] = resolve_status(event, now)
    data["organizer"] = OrganizerOut.model_validate(event.organizer) if event.organizer else None
    return data


def event_out(event: Event, now: datetime) -> EventOut:
    return EventOut.model_validate(_event_data(event, now))


def organizer_event_out(event: Event, now: datetime) -> OrganizerEventOut:
    return OrganizerEventOut.model_validate(
        {
            **_event_data(event, now),
            "meeting_link": event.meeting_link,
            "registration_count": len(event.rsvp_list or []),
        }
    )


def _pagination(page: EventPage) -> PaginationOut:
    return PaginationOut(
        total_items=page.total,
        total_pages=math.ceil(page.total / page.limit) if page.total else 0,
        current_page=page.page,
        items_per_page=page.limit,
    )


def _feedback_out(feedback: Feedback) -> FeedbackOut:
    return FeedbackOut(
        id=feedback.id,
        event_id=feedback.event_id,
        participant_id=feedback.participant_id,
        participant_name=feedback.participant.full_name,
        rating=feedback.rating,
        comment=feedback.comment,
        created_at=feedback.created_at,
        updated_at=feedback.updated_at,
    )


@router.post("/create", response_model=EventMessageOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: DBSession, user: Organizer, clock: ClockDep):
    event = events_service.create_event(db, user, payload, clock=clock)
    return EventMessageOut(message="Event created successfully.", event=organizer_event_out(event, clock.now()))


@router.get("/organizer/{window}", response_model=OrganizerEventListOut)
def organizer_events(
    window: EventWindow,
    db: DBSession,
    user: Organizer,
    clock: ClockDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    result = events_service.list_organizer_events(db, user, window, page=page, limit=limit, clock=clock)
    now = clock.now()
    return OrganizerEventListOut(
        items=[organizer_event_out(event, now) for event in result.items],
        pagination=_pagination(result),
    )


@router.get("/participant/my-events", response_model=MyEventsOut)
def participant_my_events(db: DBSession, user: Participant, clock: ClockDep):
    grouped = events_service.my_events(db, user, clock=clock)
    now = clock.now()
    return MyEventsOut(
        upcoming=[event_out(e, now) for e in grouped.upcoming],
        live=[event_out(e, now) for e in grouped.live],
        completed=[event_out(e, now) for e in grouped.completed],
    )


@router.get("/participant/{window}", response_model=EventListOut)
def participant_events(
    window: EventWindow,
    db: DBSession,
    user: Participant,
    clock: ClockDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    if window == EventWindow.ALL:
        raise ValidationError(ErrorCode.VALIDATION_ERROR.value, "window must be upcoming, live or completed")
    result = events_service.list_participant_events(db, window, page=page, limit=limit, clock=clock)
    now = clock.now()
    return EventListOut(items=[event_out(e, now) for e in result.items], pagination=_pagination(result))


@router.get("/details/{event_id}", response_model=EventDetailsOut)
def event_details(event_id: UUID, db: DBSession, user: CurrentUser, clock: ClockDep):
    details = events_service.get_event_details(db, user, event_id, clock=clock)
    return EventDetailsOut.model_validate(
        {
            **_event_data(details.event, clock.now()),
            "computed_status": details.computed_status,
            "meeting_link": details.meeting_link,
            "registration_count": details.registration_count,
            "is_registered": details.is_registered,
            "attendees": [AttendeeOut.model_validate(a) for a in details.attendees],
        }
    )


@router.get("/search", response_model=list[EventOut])
def search_events(db: DBSession, clock: ClockDep, q: str | None = Query(None, max_length=200)):
    now = clock.now()
    return [event_out(e, now) for e in events_service.search_events(db, q)]


@router.patch("/{event_id}", response_model=EventMessageOut)
def update_event(
    event_id: UUID,
    payload: EventUpdate,
    db: DBSession,
    user: Organizer,
    mailer: MailerDep,
    clock: ClockDep,
):
    event = events_service.update_event(db, user, event_id, payload, mailer=mailer, clock=clock)
    return EventMessageOut(message="Event updated successfully.", event=organizer_event_out(event, clock.now()))


@router.patch("/{event_id}/cancel", response_model=EventMessageOut)
def cancel_event(event_id: UUID, db: DBSession, user: Organizer, mailer: MailerDep, clock: ClockDep):
    event = events_service.cancel_event(db, user, event_id, mailer=mailer, clock=clock)
    return EventMessageOut(message="Event canceled successfully.", event=organizer_event_out(event, clock.now()))


@router.delete("/{event_id}", response_model=EventMessageOut)
def delete_event(event_id: UUID, db: DBSession, user: Organizer, mailer: MailerDep):
    events_service.delete_event(db, user, event_id, mailer=mailer)
    return EventMessageOut(message="Event deleted successfully.")


@router.post("/feedback/{event_id}", response_model=FeedbackOut, status_code=status.HTTP_201_CREATED)
def submit_feedback(event_id: UUID, payload: FeedbackIn, db: DBSession, user: CurrentUser):
    feedback = feedback_service.submit_feedback(db, user, event_id, payload.rating, payload.comment)
    return _feedback_out(feedback)


@router.get("/feedback/{event_id}", response_model=list[FeedbackOut])
def list_feedback(event_id: UUID, db: DBSession, user: CurrentUser):
    return [_feedback_out(f) for f in feedback_service.list_feedback(db, event_id)]
