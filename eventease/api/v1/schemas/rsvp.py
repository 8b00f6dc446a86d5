from __future__ import annotations

from datetime import datetime
from uuid import UUID

from eventease.api.v1.schemas.events import AttendeeOut, SchemaBase
from eventease.models.rsvp import RsvpStatus


class RsvpOut(SchemaBase):
    id: UUID
    event_id: UUID
    participant_id: UUID
    status: RsvpStatus
    joined_at: datetime | None = None
    reminder_sent: bool


class RsvpMessageOut(SchemaBase):
    message: str
    rsvp: RsvpOut


class ParticipantCountOut(SchemaBase):
    event_id: UUID
    participant_count: int


class AttendeeListOut(SchemaBase):
    event_id: UUID
    attendees: list[AttendeeOut]
