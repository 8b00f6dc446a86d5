from __future__ import annotations

import re

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError

_hasher = PasswordHasher()

# At least 8 characters with a lowercase, an uppercase, a digit and a symbol.
_STRONG_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")

PASSWORD_RULES = (
    "Password must be at least 8 characters long and include an uppercase letter, "
    "a lowercase letter, a number and a special character (@$!%*?&)."
)


def is_strong_password(plain: str) -> bool:
    return bool(plain) and _STRONG_PASSWORD_RE.match(plain) is not None


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("password is required")
    try:
        return _hasher.hash(plain)
    except HashingError as exc:
        raise ValueError("failed to hash password") from exc


def verify_password(plain: str, hashed: str) -> bool:
    if not plain or not hashed:
        return False
    try:
        return _hasher.verify(hashed, plain)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False
