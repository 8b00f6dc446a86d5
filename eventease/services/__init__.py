from eventease.services.events_service import (
    cancel_event,
    create_event,
    delete_event,
    get_event_details,
    list_organizer_events,
    list_participant_events,
    my_events,
    search_events,
    update_event,
)
from eventease.services.feedback_service import list_feedback, submit_feedback
from eventease.services.rsvp_service import cancel_rsvp, get_participant_count, list_attendees, register

__all__ = [
    "create_event",
    "update_event",
    "cancel_event",
    "delete_event",
    "get_event_details",
    "list_organizer_events",
    "list_participant_events",
    "my_events",
    "search_events",
    "register",
    "cancel_rsvp",
    "get_participant_count",
    "list_attendees",
    "submit_feedback",
    "list_feedback",
]
