from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from eventease.models.event import EventStatus


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore", populate_by_name=True)


class _TitleMixin(BaseModel):
    @field_validator("title", mode="after", check_fields=False)
    @classmethod
    def _strip_title(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value


class EventCreate(_TitleMixin, SchemaBase):
    title: str = Field(max_length=200)
    description: str | None = None
    date: str
    start_time: str = Field(validation_alias=AliasChoices("start_time", "startTime"))
    end_time: str = Field(validation_alias=AliasChoices("end_time", "endTime"))
    meeting_link: str | None = Field(default=None, validation_alias=AliasChoices("meeting_link", "meetingLink"))
    thumbnail: str | None = None


class EventUpdate(_TitleMixin, SchemaBase):
    title: str | None = Field(default=None, max_length=200)
    description: str | None = None
    date: str | None = None
    start_time: str | None = Field(default=None, validation_alias=AliasChoices("start_time", "startTime"))
    end_time: str | None = Field(default=None, validation_alias=AliasChoices("end_time", "endTime"))
    meeting_link: str | None = Field(default=None, validation_alias=AliasChoices("meeting_link", "meetingLink"))
    thumbnail: str | None = None


class OrganizerOut(SchemaBase):
    id: UUID
    first_name: str
    last_name: str


class EventOut(SchemaBase):
    id: UUID
    title: str
    description: str | None = None
    date: str
    start_time: str
    end_time: str
    thumbnail: str | None = None
    status: EventStatus
    computed_status: EventStatus
    organizer_id: UUID
    organizer: OrganizerOut | None = None
    created_at: datetime
    updated_at: datetime


class OrganizerEventOut(EventOut):
    meeting_link: str
    registration_count: int = 0


class AttendeeOut(SchemaBase):
    participant_id: UUID
    name: str
    email: str | None = None
    joined_at: datetime | None = None


class EventDetailsOut(EventOut):
    meeting_link: str
    registration_count: int
    is_registered: bool
    attendees: list[AttendeeOut] = Field(default_factory=list)


class PaginationOut(SchemaBase):
    total_items: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    current_page: int = Field(ge=1)
    items_per_page: int = Field(ge=1)


class EventListOut(SchemaBase):
    items: list[EventOut]
    pagination: PaginationOut


class OrganizerEventListOut(SchemaBase):
    items: list[OrganizerEventOut]
    pagination: PaginationOut


class MyEventsOut(SchemaBase):
    upcoming: list[EventOut]
    live: list[EventOut]
    completed: list[EventOut]


class EventMessageOut(SchemaBase):
    message: str
    event: OrganizerEventOut | None = None
