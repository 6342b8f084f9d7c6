"""Authentication infrastructure components.

This module provides password hashing and JWT token issuing.
"""

from chatauth.infrastructure.auth.password_hasher import PasswordHasher
from chatauth.infrastructure.auth.token_issuer import TokenIssuer

__all__ = [
    "PasswordHasher",
    "TokenIssuer",
]
