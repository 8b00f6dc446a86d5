"""Event schedule parsing and lifecycle status resolution.

Every ``date``/``start_time``/``end_time`` string in the system is a UTC
calendar day and UTC wall-clock time. Nothing here consults the server's
local timezone.
"""
from __future__ import annotations

import re
from datetime import date as date_type
from datetime import datetime, time, timezone
from typing import Protocol

from eventease.models.event import EventStatus

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{1,2})$")


class Schedulable(Protocol):
    date: str
    start_time: str
    end_time: str
    status: EventStatus


def parse_event_date(value: str) -> date_type:
    if not isinstance(value, str) or not _DATE_RE.match(value.strip()):
        raise ValueError("Invalid date format. Use YYYY-MM-DD (e.g., 2024-12-31).")
    try:
        return date_type.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid calendar date: {value}.") from exc


def normalize_time(value: str) -> str:
    """Return ``value`` as zero-padded ``HH:MM``; accepts ``9:5`` style input."""
    match = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time format: {value}. Use HH:MM (e.g., 13:00 or 1:00).")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid time format: {value}. Use HH:MM (e.g., 13:00 or 1:00).")
    return f"{hours:02d}:{minutes:02d}"


def combine(day: str, hhmm: str) -> datetime:
    hours, minutes = (int(part) for part in normalize_time(hhmm).split(":"))
    return datetime.combine(parse_event_date(day), time(hours, minutes), tzinfo=timezone.utc)


def event_window(event: Schedulable) -> tuple[datetime, datetime]:
    return combine(event.date, event.start_time), combine(event.date, event.end_time)


def to_utc(now: datetime) -> datetime:
    if now.tzinfo is None or now.tzinfo.utcoffset(now) is None:
        raise ValueError("reference instant must be timezone-aware")
    return now.astimezone(timezone.utc)


def resolve(
    day: str,
    start_time: str,
    end_time: str,
    persisted: EventStatus | str,
    now: datetime,
) -> EventStatus:
    if EventStatus(persisted) == EventStatus.CANCELED:
        return EventStatus.CANCELED

    now = to_utc(now)
    start, end = combine(day, start_time), combine(day, end_time)
    if now < start:
        return EventStatus.UPCOMING
    if now <= end:
        return EventStatus.LIVE
    return EventStatus.COMPLETED


def resolve_status(event: Schedulable, now: datetime) -> EventStatus:
    return resolve(event.date, event.start_time, event.end_time, event.status, now)


def utc_day_and_minute(now: datetime) -> tuple[str, str]:
    now = to_utc(now)
    return now.strftime("%Y-%m-%d"), now.strftime("%H:%M")
