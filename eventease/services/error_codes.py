from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    EMAIL_TAKEN = "EMAIL_TAKEN"

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_CANCELED = "EVENT_CANCELED"
    EVENT_COMPLETED = "EVENT_COMPLETED"
    EVENT_ALREADY_STARTED = "EVENT_ALREADY_STARTED"
    EVENT_LIVE_OR_COMPLETED = "EVENT_LIVE_OR_COMPLETED"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"

    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    FEEDBACK_CONFLICT = "FEEDBACK_CONFLICT"
    NOT_REGISTERED = "NOT_REGISTERED"

    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    RATE_LIMITED = "RATE_LIMITED"
