"""
auth/passwords.py -- Password hashing and verification (bcrypt).

Security design decisions:
  bcrypt directly, no passlib wrapper. bcrypt's adaptive cost factor makes
      brute force of low-entropy secrets expensive; gensalt() draws a fresh
      salt per call, so hashing the same password twice yields two different
      hashes. That is salting, not a bug.

  72-byte limit: bcrypt only reads the first 72 bytes of its input. Older
      releases truncate silently, newer ones raise ValueError. We check the
      length ourselves and raise HashingFailure so behaviour does not depend on
      the installed bcrypt version.

  verify_password() never raises. A malformed stored hash, an over-long
      candidate, or any bcrypt error is a plain False.

  _DUMMY_HASH enables timing equalization on login: when the email is unknown
      the verifier still runs bcrypt once, so response time does not reveal
      whether an account exists.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.errors import HashingFailure
from auth.models import PlaintextSecret, StoredHash

logger = logging.getLogger("sessiongate.auth")

BCRYPT_MAX_BYTES = 72
BCRYPT_ROUNDS = 10


def hash_password(secret: PlaintextSecret) -> StoredHash:
    """Return a salted bcrypt hash of the given plaintext secret.

    Only PlaintextSecret is accepted. Passing an already-hashed value is a
    programming error and raises TypeError instead of double hashing.

    Raises:
        HashingFailure: the secret exceeds bcrypt's 72-byte limit or bcrypt
            itself failed.
    """
    if not isinstance(secret, PlaintextSecret):
        raise TypeError(f"hash_password() expects PlaintextSecret, got {type(secret).__name__}")
    raw = secret.value.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        raise HashingFailure(f"Password exceeds bcrypt's {BCRYPT_MAX_BYTES}-byte limit")
    try:
        hashed = bcrypt.hashpw(raw, bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    except (ValueError, TypeError) as exc:
        raise HashingFailure(str(exc)) from exc
    return StoredHash(hashed.decode("utf-8"))


def verify_password(secret: PlaintextSecret, hashed: StoredHash | str | None) -> bool:
    """Return True iff the secret reproduces the hash under its embedded salt and cost."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(secret.value.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Computed once at module load so the first failed login is not measurably
# slower than later ones.
_DUMMY_HASH: StoredHash = hash_password(PlaintextSecret("sessiongate_timing_dummy"))


def burn_verification(secret: PlaintextSecret) -> None:
    """Run one bcrypt comparison against the dummy hash and discard the result."""
    verify_password(secret, _DUMMY_HASH)
