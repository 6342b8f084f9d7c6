"""Domain services."""

from chatauth.domain.services.identity_service import IdentityService

__all__ = ["IdentityService"]
