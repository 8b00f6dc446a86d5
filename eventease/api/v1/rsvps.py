from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, status

from eventease.api.v1.schemas.events import AttendeeOut
from eventease.api.v1.schemas.rsvp import AttendeeListOut, ParticipantCountOut, RsvpMessageOut, RsvpOut
from eventease.auth.deps import ClockDep, CurrentUser, DBSession, MailerDep, Participant
from eventease.services import rsvp_service

router = APIRouter(prefix="/rsvp", tags=["rsvp"])


@router.post("/{event_id}", response_model=RsvpMessageOut, status_code=status.HTTP_201_CREATED)
def rsvp_event(event_id: UUID, db: DBSession, user: Participant, mailer: MailerDep, clock: ClockDep):
    rsvp = rsvp_service.register(db, user, event_id, mailer=mailer, clock=clock)
    return RsvpMessageOut(message="RSVP successful.", rsvp=RsvpOut.model_validate(rsvp))


@router.post("/{event_id}/cancel", response_model=RsvpMessageOut)
def cancel_rsvp(event_id: UUID, db: DBSession, user: Participant, mailer: MailerDep, clock: ClockDep):
    rsvp = rsvp_service.cancel_rsvp(db, user, event_id, mailer=mailer, clock=clock)
    return RsvpMessageOut(message="RSVP canceled successfully.", rsvp=RsvpOut.model_validate(rsvp))


@router.get("/{event_id}/count", response_model=ParticipantCountOut)
def participant_count(event_id: UUID, db: DBSession, user: CurrentUser):
    return ParticipantCountOut(
        event_id=event_id,
        participant_count=rsvp_service.get_participant_count(db, event_id),
    )


@router.get("/{event_id}/attendees", response_model=AttendeeListOut)
def attendees(event_id: UUID, db: DBSession, user: CurrentUser):
    return AttendeeListOut(
        event_id=event_id,
        attendees=[AttendeeOut.model_validate(a) for a in rsvp_service.list_attendees(db, user, event_id)],
    )
