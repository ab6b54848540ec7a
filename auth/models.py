"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services
do the work; these only own the shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4


class StoredHash(str):
    """A bcrypt hash as persisted. Only hash_password() and the store create these."""

    __slots__ = ()


@dataclass(frozen=True)
class PlaintextSecret:
    """A password exactly as the client sent it.

    Deliberately not a str subclass: it cannot be written to the store or
    compared against a StoredHash by accident, and its repr never shows the
    value in logs or tracebacks.
    """

    value: str = field(repr=False)


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


@dataclass
class Identity:
    """A registered subject, authenticated by email + password.

    id is a random UUID4 string assigned at construction, so the service
    knows the subject before the row is written.

    email is stored normalized (trimmed, lower-cased); the store's UNIQUE
    index enforces one identity per address.

    hashed_password is a StoredHash, never the plaintext. The type split
    between PlaintextSecret and StoredHash replaces any "does this look
    hashed already" guessing: the store refuses anything that is not a
    StoredHash.
    """

    name: str
    email: str
    hashed_password: StoredHash
    id: str = field(default_factory=lambda: str(uuid4()))
    avatar: str | None = None
    role: Role = Role.USER
    created_at: str | None = None
    updated_at: str | None = None
