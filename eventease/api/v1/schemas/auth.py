from __future__ import annotations

import re
from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, EmailStr, Field, field_validator

from eventease.api.v1.schemas.events import SchemaBase
from eventease.auth.password import PASSWORD_RULES, is_strong_password
from eventease.models.user import UserRole

_NAME_RE = re.compile(r"^[A-Za-z]+$")


def _letters_only(value: str, label: str) -> str:
    value = value.strip()
    if not _NAME_RE.match(value):
        raise ValueError(f"{label} must contain only letters")
    return value


def _strong(value: str) -> str:
    if not is_strong_password(value):
        raise ValueError(PASSWORD_RULES)
    return value


class SignupIn(SchemaBase):
    first_name: str = Field(max_length=100, validation_alias=AliasChoices("first_name", "firstName"))
    last_name: str = Field(max_length=100, validation_alias=AliasChoices("last_name", "lastName"))
    email: EmailStr
    password: str
    role: UserRole

    @field_validator("first_name")
    @classmethod
    def _first_name(cls, value: str) -> str:
        return _letters_only(value, "First name")

    @field_validator("last_name")
    @classmethod
    def _last_name(cls, value: str) -> str:
        return _letters_only(value, "Last name")

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        return _strong(value)


class LoginIn(SchemaBase):
    email: EmailStr
    password: str


class RefreshIn(SchemaBase):
    refresh_token: str | None = None


class UserOut(SchemaBase):
    id: UUID
    email: str
    first_name: str
    last_name: str
    role: UserRole
    created_at: datetime


class AuthTokensOut(SchemaBase):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut


class ProfileUpdateIn(SchemaBase):
    first_name: str | None = Field(
        default=None, max_length=100, validation_alias=AliasChoices("first_name", "firstName")
    )
    last_name: str | None = Field(
        default=None, max_length=100, validation_alias=AliasChoices("last_name", "lastName")
    )

    @field_validator("first_name")
    @classmethod
    def _first_name(cls, value: str | None) -> str | None:
        return value if value is None else _letters_only(value, "First name")

    @field_validator("last_name")
    @classmethod
    def _last_name(cls, value: str | None) -> str | None:
        return value if value is None else _letters_only(value, "Last name")


class PasswordResetRequestIn(SchemaBase):
    email: EmailStr


class PasswordResetIn(SchemaBase):
    new_password: str = Field(validation_alias=AliasChoices("new_password", "newPassword", "password"))

    @field_validator("new_password")
    @classmethod
    def _password(cls, value: str) -> str:
        return _strong(value)


class MessageOut(SchemaBase):
    message: str
