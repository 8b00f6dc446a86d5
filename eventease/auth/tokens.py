from __future__ import annotations

import uuid
from datetime import datetime, timedelta

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from eventease.auth.jwt import create_opaque_token, hash_opaque_token
from eventease.core.config import settings
from eventease.models import RefreshToken
from eventease.services.error_codes import ErrorCode
from eventease.services.exceptions import AuthError

logger = structlog.get_logger(__name__)


def create_refresh_token(
    db: Session,
    user_id: uuid.UUID,
    now: datetime,
    family_id: uuid.UUID | None = None,
) -> tuple[str, RefreshToken]:
    raw_token = create_opaque_token()
    token = RefreshToken(
        user_id=user_id,
        token_hash=hash_opaque_token(raw_token),
        issued_at=now,
        expires_at=now + timedelta(days=settings.refresh_token_ttl_days),
        family_id=family_id or uuid.uuid4(),
    )
    db.add(token)
    db.flush()
    return raw_token, token


def rotate_refresh_token(db: Session, raw_token: str, now: datetime) -> tuple[str, RefreshToken]:
    """Swap ``raw_token`` for a new token in the same family.

    Presenting an already revoked token revokes the whole family and commits
    that revocation before failing.
    """
    token = db.scalar(select(RefreshToken).where(RefreshToken.token_hash == hash_opaque_token(raw_token)))
    if not token:
        raise AuthError(ErrorCode.TOKEN_INVALID.value, "Invalid refresh token.")

    if token.revoked_at is not None:
        revoke_family(db, token.family_id, now)
        db.commit()
        logger.warning("refresh_token_replayed", user_id=str(token.user_id), family_id=str(token.family_id))
        raise AuthError(ErrorCode.TOKEN_INVALID.value, "Refresh token revoked.")

    if token.expires_at <= now:
        raise AuthError(ErrorCode.TOKEN_EXPIRED.value, "Refresh token expired.")

    new_raw, new_token = create_refresh_token(db, token.user_id, now, token.family_id)
    token.revoked_at = now
    token.replaced_by = new_token.id
    db.add(token)
    return new_raw, new_token


def revoke_family(db: Session, family_id: uuid.UUID, now: datetime) -> None:
    db.execute(
        update(RefreshToken)
        .where(RefreshToken.family_id == family_id, RefreshToken.revoked_at.is_(None))
        .values(revoked_at=now)
    )


def revoke_refresh_token(db: Session, raw_token: str, now: datetime) -> RefreshToken | None:
    token = db.scalar(select(RefreshToken).where(RefreshToken.token_hash == hash_opaque_token(raw_token)))
    if not token:
        return None
    if token.revoked_at is None:
        token.revoked_at = now
        db.add(token)
    return token


def revoke_all_for_user(db: Session, user_id: uuid.UUID, now: datetime) -> None:
    db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
        .values(revoked_at=now)
    )
