from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventease.api.v1.schemas.auth import ProfileUpdateIn, SignupIn
from eventease.auth.jwt import create_access_token, create_opaque_token, hash_opaque_token
from eventease.auth.password import hash_password, verify_password
from eventease.auth.tokens import (
    create_refresh_token,
    revoke_all_for_user,
    revoke_refresh_token,
    rotate_refresh_token,
)
from eventease.core.clock import SYSTEM_CLOCK, Clock
from eventease.core.config import settings
from eventease.mail import templates
from eventease.mail.base import Mailer
from eventease.models import Event, Feedback, RefreshToken, Rsvp, User
from eventease.models.user import UserRole
from eventease.services.error_codes import ErrorCode
from eventease.services.exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from eventease.services.notifications import deliver_all, notify_best_effort
from eventease.services.rsvp_service import active_participants, sync_roster

logger = structlog.get_logger(__name__)


@dataclass
class AuthSession:
    user: User
    access_token: str
    refresh_token: str


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _issue_session(db: Session, user: User, clock: Clock) -> AuthSession:
    raw_refresh, _ = create_refresh_token(db, user.id, clock.now())
    access_token = create_access_token(user.id, user.role.value)
    return AuthSession(user=user, access_token=access_token, refresh_token=raw_refresh)


def signup(db: Session, payload: SignupIn, *, clock: Clock = SYSTEM_CLOCK) -> AuthSession:
    email = _normalize_email(payload.email)
    if db.scalar(select(User).where(User.email == email)):
        raise ConflictError(ErrorCode.EMAIL_TAKEN.value, "User with this email already exists.")

    user = User(
        email=email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError(ErrorCode.EMAIL_TAKEN.value, "User with this email already exists.") from None

    session = _issue_session(db, user, clock)
    db.commit()
    db.refresh(user)
    logger.info("user_signed_up", user_id=str(user.id), role=user.role.value)
    return session


def login(db: Session, email: str, password: str, *, clock: Clock = SYSTEM_CLOCK) -> AuthSession:
    user = db.scalar(select(User).where(User.email == _normalize_email(email)))
    if not user or not verify_password(password, user.password_hash):
        raise AuthError(ErrorCode.INVALID_CREDENTIALS.value, "Invalid email or password.")

    user.last_login_at = clock.now()
    db.add(user)
    session = _issue_session(db, user, clock)
    db.commit()
    return session


def refresh(db: Session, raw_refresh: str | None, *, clock: Clock = SYSTEM_CLOCK) -> AuthSession:
    if not raw_refresh:
        raise AuthError(ErrorCode.AUTH_REQUIRED.value, "Missing refresh token.")

    new_raw, new_token = rotate_refresh_token(db, raw_refresh, clock.now())
    user = db.get(User, new_token.user_id)
    if not user:
        db.rollback()
        raise AuthError(ErrorCode.USER_NOT_FOUND.value, "User not found.")

    access_token = create_access_token(user.id, user.role.value)
    db.commit()
    return AuthSession(user=user, access_token=access_token, refresh_token=new_raw)


def logout(db: Session, raw_refresh: str | None, *, clock: Clock = SYSTEM_CLOCK) -> None:
    if raw_refresh:
        revoke_refresh_token(db, raw_refresh, clock.now())
    db.commit()


def update_profile(db: Session, user: User, patch: ProfileUpdateIn) -> User:
    changes = {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None}
    if not changes:
        raise ValidationError(ErrorCode.VALIDATION_ERROR.value, "Nothing to update.")
    for key, value in changes.items():
        setattr(user, key, value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def delete_account(db: Session, user: User, *, mailer: Mailer) -> None:
    """Remove ``user`` and everything hanging off it.

    Organizers lose their events (participants are told); participants lose
    their RSVPs and the rosters they were on are rebuilt.
    """
    if user.role == UserRole.ORGANIZER:
        events = db.scalars(select(Event).where(Event.organizer_id == user.id)).all()
        for event in events:
            participants = active_participants(db, event.id)
            deliver_all(
                mailer,
                [templates.event_deleted(p, event) for p in participants],
                max_workers=settings.notify_max_workers,
            )
            db.execute(delete(Rsvp).where(Rsvp.event_id == event.id))
            db.execute(delete(Feedback).where(Feedback.event_id == event.id))
            db.delete(event)

    affected_ids = db.scalars(select(Rsvp.event_id).where(Rsvp.participant_id == user.id)).all()
    db.execute(delete(Rsvp).where(Rsvp.participant_id == user.id))
    db.execute(delete(Feedback).where(Feedback.participant_id == user.id))
    for event_id in set(affected_ids):
        event = db.get(Event, event_id)
        if event:
            sync_roster(db, event)

    db.execute(delete(RefreshToken).where(RefreshToken.user_id == user.id))
    db.delete(user)
    db.commit()
    logger.info("account_deleted", user_id=str(user.id), role=user.role.value)


def request_password_reset(
    db: Session,
    email: str,
    *,
    mailer: Mailer,
    clock: Clock = SYSTEM_CLOCK,
) -> None:
    """Unknown addresses are ignored silently so callers cannot enumerate accounts."""
    user = db.scalar(select(User).where(User.email == _normalize_email(email)))
    if not user:
        logger.info("password_reset_unknown_email")
        return

    raw_token = create_opaque_token(32)
    user.password_reset_token_hash = hash_opaque_token(raw_token)
    user.password_reset_expires_at = clock.now() + timedelta(seconds=settings.password_reset_ttl_seconds)
    db.add(user)
    db.commit()

    reset_url = f"{settings.frontend_url.rstrip('/')}/reset-password/{raw_token}"
    notify_best_effort(
        mailer,
        templates.password_reset(user, reset_url, settings.password_reset_ttl_seconds // 60),
    )


def reset_password(
    db: Session,
    raw_token: str,
    new_password: str,
    *,
    clock: Clock = SYSTEM_CLOCK,
) -> User:
    now = clock.now()
    user = db.scalar(select(User).where(User.password_reset_token_hash == hash_opaque_token(raw_token)))
    if not user or not user.password_reset_expires_at or user.password_reset_expires_at <= now:
        raise ValidationError(ErrorCode.TOKEN_INVALID.value, "Invalid or expired password reset token.")

    user.password_hash = hash_password(new_password)
    user.password_reset_token_hash = None
    user.password_reset_expires_at = None
    db.add(user)
    revoke_all_for_user(db, user.id, now)
    db.commit()
    logger.info("password_reset", user_id=str(user.id))
    return user


def get_user(db: Session, user_id) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND.value, "User not found.")
    return user
