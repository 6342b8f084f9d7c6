"""JWT token issuer.

Creates and validates the signed access and refresh tokens. Access tokens
carry the user's identity claims; refresh tokens carry only an opaque token
id and are signed with a separate secret, so leaking one class of token does
not allow forging the other.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from pydantic import ValidationError

from chatauth.core.config import Settings
from chatauth.core.exceptions import ConfigError, InvalidTokenError
from chatauth.domain.entities.tokens import AccessClaims, TokenPair

BEARER_PREFIX = "Bearer "


class TokenIssuer:
    """Issues and verifies access/refresh token pairs."""

    ALGORITHM = "HS256"
    ISSUER = "chatauth"

    def __init__(
        self,
        access_secret: str | None,
        refresh_secret: str | None,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ) -> None:
        """Initialize the token issuer.

        Args:
            access_secret: Secret for signing access tokens.
            refresh_secret: Secret for signing refresh tokens.
            access_ttl: Lifetime of access tokens.
            refresh_ttl: Lifetime of refresh tokens.
        """
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            access_secret=settings.jwt_secret,
            refresh_secret=settings.jwt_refresh_secret,
            access_ttl=settings.jwt_expires_in,
            refresh_ttl=settings.jwt_refresh_expires_in,
        )

    @property
    def access_secret(self) -> str:
        if not self._access_secret:
            raise ConfigError("JWT_SECRET is required to sign access tokens")
        return self._access_secret

    @property
    def refresh_secret(self) -> str:
        if not self._refresh_secret:
            raise ConfigError("JWT_REFRESH_SECRET is required to sign refresh tokens")
        return self._refresh_secret

    def issue_access_token(self, claims: AccessClaims) -> str:
        """Create an access token.

        Args:
            claims: Identity claims of the user.

        Returns:
            Encoded JWT access token.

        Raises:
            ConfigError: If the access secret is not configured.
        """
        secret = self.access_secret
        now = datetime.now(timezone.utc)
        payload = {
            **claims.to_payload(),
            "iss": self.ISSUER,
            "sub": claims.user_id,
            "iat": now,
            "exp": now + self.access_ttl,
            "type": "access",
        }
        return jwt.encode(payload, secret, algorithm=self.ALGORITHM)

    def issue_refresh_token(self) -> str:
        """Create a refresh token holding only a random token id.

        Returns:
            Encoded JWT refresh token.

        Raises:
            ConfigError: If the refresh secret is not configured.
        """
        secret = self.refresh_secret
        now = datetime.now(timezone.utc)
        payload = {
            "iss": self.ISSUER,
            "iat": now,
            "exp": now + self.refresh_ttl,
            "tokenId": str(uuid.uuid4()),
            "type": "refresh",
        }
        return jwt.encode(payload, secret, algorithm=self.ALGORITHM)

    def issue_token_pair(self, claims: AccessClaims) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(claims),
            refresh_token=self.issue_refresh_token(),
        )

    def _decode(self, token: str, secret: str, token_type: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.ALGORITHM],
                issuer=self.ISSUER,
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError(f"{token_type.capitalize()} token has expired") from e
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"Invalid {token_type} token") from e
        if payload.get("type") != token_type:
            raise InvalidTokenError(f"Token is not a {token_type} token")
        return payload

    def verify_access_token(self, token: str) -> AccessClaims:
        """Validate an access token and return its claims.

        Raises:
            InvalidTokenError: If the token is malformed, expired, signed with
                another secret, or not an access token.
        """
        payload = self._decode(token, self.access_secret, "access")
        try:
            return AccessClaims.model_validate(payload)
        except ValidationError as e:
            raise InvalidTokenError("Invalid access token") from e

    def verify_refresh_token(self, token: str) -> dict[str, Any]:
        """Validate a refresh token and return its payload.

        Raises:
            InvalidTokenError: If the token is malformed, expired, signed with
                another secret, or not a refresh token.
        """
        payload = self._decode(token, self.refresh_secret, "refresh")
        if not payload.get("tokenId"):
            raise InvalidTokenError("Invalid refresh token")
        return payload

    @staticmethod
    def extract_bearer_token(header: str | None) -> str | None:
        """Extract the token from an ``Authorization: Bearer <token>`` value.

        Returns None when the header is missing or has no Bearer prefix.
        """
        if not header or not header.startswith(BEARER_PREFIX):
            return None
        token = header[len(BEARER_PREFIX):].strip()
        return token or None

    @staticmethod
    def decode_unverified(token: str) -> dict[str, Any] | None:
        """Decode a token without checking its signature or expiry."""
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError:
            return None

    def get_expiration(self, token: str) -> datetime | None:
        """Return the token's expiry as an aware UTC datetime, if readable."""
        payload = self.decode_unverified(token)
        if not payload or "exp" not in payload:
            return None
        try:
            return datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            return None

    def is_expired(self, token: str) -> bool:
        """Return True if the expiry is unknown or already reached."""
        expiration = self.get_expiration(token)
        if expiration is None:
            return True
        return expiration <= datetime.now(timezone.utc)
