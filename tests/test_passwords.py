"""Unit tests for auth/passwords.py -- bcrypt hashing and verification.

Covers:
- verify(s, hash(s)) is True; a different secret is rejected
- hashing is salted (same input, different output)
- malformed stored hashes return False instead of raising
- secrets over bcrypt's 72-byte limit raise HashingFailure
- only PlaintextSecret can be hashed (no double hashing)
"""

import pytest

from auth.errors import HashingFailure
from auth.models import PlaintextSecret, StoredHash
from auth.passwords import BCRYPT_MAX_BYTES, burn_verification, hash_password, verify_password


class TestHashPassword:
    def test_returns_stored_hash_not_plaintext(self) -> None:
        hashed = hash_password(PlaintextSecret("Passw0rd!"))
        assert isinstance(hashed, StoredHash)
        assert hashed != "Passw0rd!"
        assert hashed.startswith("$2")

    def test_same_input_hashes_differently(self) -> None:
        """Each call draws a fresh salt."""
        secret = PlaintextSecret("Passw0rd!")
        assert hash_password(secret) != hash_password(secret)

    def test_rejects_stored_hash_input(self) -> None:
        """A StoredHash is not a PlaintextSecret -- hashing it again is a TypeError."""
        hashed = hash_password(PlaintextSecret("Passw0rd!"))
        with pytest.raises(TypeError):
            hash_password(hashed)

    def test_rejects_plain_str(self) -> None:
        with pytest.raises(TypeError):
            hash_password("Passw0rd!")

    def test_over_byte_limit_raises_hashing_failure(self) -> None:
        with pytest.raises(HashingFailure):
            hash_password(PlaintextSecret("A" * (BCRYPT_MAX_BYTES + 1)))

    def test_multibyte_characters_count_as_bytes(self) -> None:
        """25 three-byte characters = 75 bytes, over the limit despite 25 chars."""
        with pytest.raises(HashingFailure):
            hash_password(PlaintextSecret("€" * 25))

    def test_exactly_at_byte_limit_is_accepted(self) -> None:
        secret = PlaintextSecret("a" * BCRYPT_MAX_BYTES)
        assert verify_password(secret, hash_password(secret))


class TestVerifyPassword:
    def test_correct_secret_verifies(self) -> None:
        secret = PlaintextSecret("Valid123!")
        assert verify_password(secret, hash_password(secret)) is True

    def test_wrong_secret_fails(self) -> None:
        hashed = hash_password(PlaintextSecret("Valid123!"))
        assert verify_password(PlaintextSecret("Valid123?"), hashed) is False

    @pytest.mark.parametrize("bad_hash", ["", "not-a-hash", "$2b$10$tooshort", None])
    def test_malformed_hash_returns_false(self, bad_hash) -> None:
        assert verify_password(PlaintextSecret("Valid123!"), bad_hash) is False

    def test_burn_verification_returns_nothing(self) -> None:
        assert burn_verification(PlaintextSecret("whatever")) is None


def test_plaintext_repr_hides_value() -> None:
    """PlaintextSecret must never print its value in logs or tracebacks."""
    assert "hunter2" not in repr(PlaintextSecret("hunter2"))
