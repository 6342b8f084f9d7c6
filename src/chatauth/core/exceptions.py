"""Exception taxonomy shared by every chatauth component."""


class ChatAuthError(Exception):
    """Base class for all chatauth errors."""

    pass


class ConfigError(ChatAuthError):
    """Raised when required configuration is missing or invalid."""

    pass


class ConflictError(ChatAuthError):
    """Raised when an email or username is already taken."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InvalidCredentialsError(ChatAuthError):
    """Raised when a login attempt fails.

    The message never says whether the identifier or the password was wrong.
    """

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class InvalidTokenError(ChatAuthError):
    """Raised for a bad, expired or already consumed token."""

    pass


class InfrastructureError(ChatAuthError):
    """Raised when a store or network dependency fails."""

    pass
