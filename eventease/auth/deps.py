from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from eventease.auth.jwt import verify_access_token
from eventease.core.clock import Clock, get_clock
from eventease.db import get_db
from eventease.mail import Mailer, get_mailer
from eventease.models import User
from eventease.models.user import UserRole
from eventease.services.error_codes import ErrorCode
from eventease.services.exceptions import AuthError, PermissionDeniedError

DBSession = Annotated[Session, Depends(get_db)]
MailerDep = Annotated[Mailer, Depends(get_mailer)]
ClockDep = Annotated[Clock, Depends(get_clock)]


def get_current_user(request: Request, db: DBSession) -> User:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise AuthError(ErrorCode.AUTH_REQUIRED.value, "Authentication required.")

    claims = verify_access_token(auth.removeprefix("Bearer ").strip())
    try:
        user_id = uuid.UUID(str(claims["sub"]))
    except ValueError:
        raise AuthError(ErrorCode.TOKEN_INVALID.value, "Invalid token.") from None

    user = db.get(User, user_id)
    if not user:
        raise AuthError(ErrorCode.USER_NOT_FOUND.value, "User not found.")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_role(role: UserRole):
    def _dep(user: CurrentUser) -> User:
        if user.role != role:
            raise PermissionDeniedError(
                ErrorCode.FORBIDDEN.value,
                f"Access denied. This action requires the {role.value} role.",
            )
        return user

    return _dep


Organizer = Annotated[User, Depends(require_role(UserRole.ORGANIZER))]
Participant = Annotated[User, Depends(require_role(UserRole.PARTICIPANT))]
