from __future__ import annotations

from eventease.services.error_codes import ErrorCode


class ServiceError(Exception):
    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or code
        super().__init__(self.message)


class NotFoundError(ServiceError):
    pass


class PermissionDeniedError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass


class ValidationError(ServiceError):
    pass


class AuthError(ServiceError):
    pass


class TransientIOError(ServiceError):
    pass


class ScheduleConflictError(ConflictError):
    def __init__(self, conflicting_event_id: str, message: str) -> None:
        self.conflicting_event_id = conflicting_event_id
        super().__init__(ErrorCode.SCHEDULE_CONFLICT.value, message)


class AlreadyRegisteredError(ConflictError):
    def __init__(self, message: str = "You have already RSVP'd for this event.") -> None:
        super().__init__(ErrorCode.ALREADY_REGISTERED.value, message)


class EventAlreadyStartedError(ConflictError):
    def __init__(
        self,
        message: str = "RSVP is not allowed after the event has started or completed.",
        code: str = ErrorCode.EVENT_ALREADY_STARTED.value,
    ) -> None:
        super().__init__(code, message)


class EventCanceledError(EventAlreadyStartedError):
    def __init__(self, message: str = "This event has been canceled.") -> None:
        super().__init__(message, ErrorCode.EVENT_CANCELED.value)


class NotRegisteredError(ValidationError):
    def __init__(
        self,
        message: str = "You have not RSVP'd for this event or your RSVP is already canceled.",
    ) -> None:
        super().__init__(ErrorCode.NOT_REGISTERED.value, message)


class EventLiveOrCompletedError(ConflictError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.EVENT_LIVE_OR_COMPLETED.value, message)
