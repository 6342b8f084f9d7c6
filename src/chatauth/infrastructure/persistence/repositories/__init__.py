"""Repositories for the credential and session stores."""

from chatauth.infrastructure.persistence.repositories.session_repository import SessionRepository
from chatauth.infrastructure.persistence.repositories.token_digest import hash_token
from chatauth.infrastructure.persistence.repositories.user_repository import UserRepository

__all__ = [
    "SessionRepository",
    "UserRepository",
    "hash_token",
]
