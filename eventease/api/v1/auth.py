from __future__ import annotations

from fastapi import APIRouter, Request, Response, status

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
from eventease.auth.deps import ClockDep, CurrentUser, DBSession, MailerDep
from eventease.core.config import settings
from eventease.services import accounts_service
from eventease.services.accounts_service import AuthSession

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_refresh_cookie(response: Response, raw_refresh: str) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=raw_refresh,
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite=settings.refresh_cookie_samesite,
        max_age=int(settings.refresh_token_ttl_days * 86400),
        path="/",
    )


def _tokens_out(session: AuthSession, response: Response) -> AuthTokensOut:
    _set_refresh_cookie(response, session.refresh_token)
    return AuthTokensOut(
        access_token=session.access_token,
        expires_in=settings.access_token_ttl_seconds,
        user=UserOut.model_validate(session.user),
    )


def _refresh_from(request: Request, payload: RefreshIn | None) -> str | None:
    raw_refresh = payload.refresh_token if payload else None
    return raw_refresh or request.cookies.get(settings.refresh_cookie_name)


@router.post("/signup", response_model=AuthTokensOut, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupIn, db: DBSession, response: Response, clock: ClockDep):
    return _tokens_out(accounts_service.signup(db, payload, clock=clock), response)


@router.post("/login", response_model=AuthTokensOut)
def login(payload: LoginIn, db: DBSession, response: Response, clock: ClockDep):
    return _tokens_out(accounts_service.login(db, payload.email, payload.password, clock=clock), response)


@router.post("/refresh-token", response_model=AuthTokensOut)
def refresh_token(
    request: Request,
    response: Response,
    db: DBSession,
    clock: ClockDep,
    payload: RefreshIn | None = None,
):
    session = accounts_service.refresh(db, _refresh_from(request, payload), clock=clock)
    return _tokens_out(session, response)


@router.post("/logout", response_model=MessageOut)
def logout(
    request: Request,
    response: Response,
    db: DBSession,
    user: CurrentUser,
    clock: ClockDep,
    payload: RefreshIn | None = None,
):
    accounts_service.logout(db, _refresh_from(request, payload), clock=clock)
    response.delete_cookie(key=settings.refresh_cookie_name, path="/")
    return MessageOut(message="Logged out successfully.")


@router.get("/me", response_model=UserOut)
def me(user: CurrentUser):
    return user


@router.patch("/me", response_model=UserOut)
def update_me(payload: ProfileUpdateIn, db: DBSession, user: CurrentUser):
    return accounts_service.update_profile(db, user, payload)


@router.delete("/me", response_model=MessageOut)
def delete_me(response: Response, db: DBSession, user: CurrentUser, mailer: MailerDep):
    accounts_service.delete_account(db, user, mailer=mailer)
    response.delete_cookie(key=settings.refresh_cookie_name, path="/")
    return MessageOut(message="Account deleted successfully.")


@router.post("/request-reset", response_model=MessageOut)
def request_reset(payload: PasswordResetRequestIn, db: DBSession, mailer: MailerDep, clock: ClockDep):
    accounts_service.request_password_reset(db, payload.email, mailer=mailer, clock=clock)
    return MessageOut(message="If an account exists for this email, a password reset link has been sent.")


@router.post("/reset-password/{token}", response_model=MessageOut)
def reset_password(token: str, payload: PasswordResetIn, db: DBSession, clock: ClockDep):
    accounts_service.reset_password(db, token, payload.new_password, clock=clock)
    return MessageOut(message="Password has been reset successfully.")
