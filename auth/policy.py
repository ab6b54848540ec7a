"""
auth/policy.py -- Password policy and identity field normalization.

The policy reports only the FIRST failing rule. Length in characters, then
length in UTF-8 bytes (bcrypt's input limit), is checked before character
classes, and the classes are checked in a fixed order:
uppercase, lowercase, number, special. Clients show one message at a time and
rely on this order, so do not aggregate.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import re

from auth.errors import AuthError, ErrorKind
from auth.passwords import BCRYPT_MAX_BYTES

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128

_CHARACTER_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (re.compile(r"[^A-Za-z0-9]"), "Password must contain at least one special character"),
)


def password_violation(password: str) -> str | None:
    """Return the message for the first rule `password` breaks, or None if it passes."""
    if len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    if len(password) > PASSWORD_MAX_LENGTH:
        return f"Password must be less than {PASSWORD_MAX_LENGTH} characters"
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        return f"Password must be at most {BCRYPT_MAX_BYTES} bytes"
    for pattern, message in _CHARACTER_RULES:
        if not pattern.search(password):
            return message
    return None


def check_password_policy(password: str, field: str = "password") -> None:
    """Raise AuthError(PASSWORD_POLICY) carrying the first violation, if any."""
    message = password_violation(password)
    if message is not None:
        raise AuthError(ErrorKind.PASSWORD_POLICY, message, field=field)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_name(name: str) -> str:
    return name.strip()
