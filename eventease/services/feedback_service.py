from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventease.models import Event, Feedback, User
from eventease.models.user import UserRole
from eventease.services.error_codes import ErrorCode
from eventease.services.exceptions import ConflictError, NotFoundError, PermissionDeniedError

logger = structlog.get_logger(__name__)


def _require_event(db: Session, event_id: Any) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "Event not found.")
    return event


def submit_feedback(db: Session, participant: User, event_id: Any, rating: int, comment: str) -> Feedback:
    if participant.role != UserRole.PARTICIPANT:
        raise PermissionDeniedError(ErrorCode.FORBIDDEN.value, "Only participants can leave feedback.")
    event = _require_event(db, event_id)

    feedback = db.scalar(
        select(Feedback).where(Feedback.event_id == event.id, Feedback.participant_id == participant.id)
    )
    if feedback is None:
        feedback = Feedback(event_id=event.id, participant_id=participant.id)
    else:
        # A resubmission counts as fresh for newest-first listing even when unchanged.
        feedback.updated_at = datetime.now(timezone.utc)
    feedback.rating = rating
    feedback.comment = comment
    db.add(feedback)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(ErrorCode.FEEDBACK_CONFLICT.value, "Feedback was submitted concurrently, retry.") from None

    db.refresh(feedback)
    logger.info("feedback_submitted", event_id=str(event.id), participant_id=str(participant.id), rating=rating)
    return feedback


def list_feedback(db: Session, event_id: Any) -> list[Feedback]:
    event = _require_event(db, event_id)
    return list(
        db.scalars(
            select(Feedback)
            .where(Feedback.event_id == event.id)
            .order_by(Feedback.updated_at.desc(), Feedback.id)
        ).all()
    )
