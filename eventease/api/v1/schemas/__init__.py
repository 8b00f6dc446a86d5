from eventease.api.v1.schemas.auth import (
    AuthTokensOut,
    LoginIn,
    MessageOut,
    PasswordResetIn,
    PasswordResetRequestIn,
    ProfileUpdateIn,
    RefreshIn,
    SignupIn,
    UserOut,
)
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
    PaginationOut,
)
from eventease.api.v1.schemas.feedback import FeedbackIn, FeedbackOut
from eventease.api.v1.schemas.rsvp import AttendeeListOut, ParticipantCountOut, RsvpMessageOut, RsvpOut

__all__ = [
    "AuthTokensOut",
    "LoginIn",
    "MessageOut",
    "PasswordResetIn",
    "PasswordResetRequestIn",
    "ProfileUpdateIn",
    "RefreshIn",
    "SignupIn",
    "UserOut",
    "AttendeeOut",
    "EventCreate",
    "EventDetailsOut",
    "EventListOut",
    "EventMessageOut",
    "EventOut",
    "EventUpdate",
    "MyEventsOut",
    "OrganizerEventListOut",
    "OrganizerEventOut",
    "PaginationOut",
    "FeedbackIn",
    "FeedbackOut",
    "AttendeeListOut",
    "ParticipantCountOut",
    "RsvpMessageOut",
    "RsvpOut",
]
