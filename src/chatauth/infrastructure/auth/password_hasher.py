"""Password hashing using Argon2.

New digests are Argon2id. Digests produced by bcrypt (``$2a$``, ``$2b$``,
``$2y$``), as found in older user rows, are still accepted and are always
reported as needing a rehash so they get upgraded on the next login.
"""

import secrets

import bcrypt
from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def is_bcrypt_digest(hashed: str) -> bool:
    return hashed.startswith(BCRYPT_PREFIXES)


class PasswordHasher:
    """Hashes and verifies passwords with a configurable cost factor.

    The cost factor maps to Argon2's ``time_cost`` (number of passes).
    """

    def __init__(self, cost: int = 12) -> None:
        """Initialize the hasher.

        Args:
            cost: Hashing cost factor.
        """
        if cost < 1:
            raise ValueError("Hashing cost must be at least 1")
        self.cost = cost
        self._hasher = Argon2Hasher(time_cost=cost)
        self._dummy_hash: str | None = None

    def hash(self, password: str) -> str:
        """Hash a password using Argon2id.

        Example:
            >>> PasswordHasher(cost=1).hash("SecureP@ss123!").startswith("$argon2id$")
            True
        """
        return self._hasher.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        """Verify a password against a digest in constant time.

        Returns:
            True if the password matches, False otherwise (including when the
            digest is malformed).
        """
        if is_bcrypt_digest(hashed):
            try:
                return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
            except ValueError:
                return False
        try:
            return self._hasher.verify(hashed, password)
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, hashed: str) -> bool:
        """Check whether a digest should be replaced after a successful login."""
        if is_bcrypt_digest(hashed):
            return True
        try:
            return self._hasher.check_needs_rehash(hashed)
        except InvalidHashError:
            return True

    def verify_dummy(self, password: str) -> bool:
        """Spend the same work as a real verification against a throwaway digest.

        Used when the account does not exist so response time does not reveal
        whether an identifier is registered. Always returns False.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self._hasher.hash(secrets.token_urlsafe(16))
        self.verify(password, self._dummy_hash)
        return False
